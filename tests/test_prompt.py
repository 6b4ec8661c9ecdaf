"""Tests for template-based prompt building."""

from __future__ import annotations

from pathlib import Path

import pytest

from sermon_annotator.prompt.builder import MetadataPromptBuilder, RadarPromptBuilder
from sermon_annotator.prompt.exceptions import PromptBuildError, TemplateNotFoundError


def test_radar_prompt_includes_header_details() -> None:
    messages = RadarPromptBuilder().build(
        {'sermon_title': 'Grace', 'texts': ['Luke 15', 'John 3:16']}, 'The body.',
    )

    assert [m.role for m in messages] == ['system', 'user']
    user = messages[1].content
    assert 'SERMON TITLE: Grace' in user
    assert 'TEXTS: Luke 15, John 3:16' in user
    assert 'AUDIO LINK: not available' in user
    assert 'The body.' in user


def test_metadata_prompt_omits_justifications_and_truncates() -> None:
    content = 'x' * (MetadataPromptBuilder.MAX_CONTENT_CHARS + 500)
    messages = MetadataPromptBuilder().build(
        {'sermon_title': 'Grace', 'radar_justifications': {'closing_force': 'secret'}}, content,
    )

    user = messages[1].content
    assert 'sermon_title: Grace' in user
    assert 'secret' not in user
    assert 'x' * (MetadataPromptBuilder.MAX_CONTENT_CHARS + 1) not in user


def test_missing_template_directory(tmp_path: Path) -> None:
    with pytest.raises(TemplateNotFoundError):
        RadarPromptBuilder(tmp_path)


def test_template_without_required_placeholders(tmp_path: Path) -> None:
    (tmp_path / 'radar_system.txt').write_text('System.', encoding='utf-8')
    (tmp_path / 'radar_user.txt').write_text('Only {content} here.', encoding='utf-8')

    with pytest.raises(PromptBuildError) as exc_info:
        RadarPromptBuilder(tmp_path)
    assert 'title' in str(exc_info.value)
