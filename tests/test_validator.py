"""Tests for header validation."""

from __future__ import annotations

import pytest

from sermon_annotator.processing.exceptions import ValidationFailed
from sermon_annotator.processing.validator import HeaderValidator


def test_valid_header_has_no_problems() -> None:
    header = {'sermon_title': 'Grace', 'radar_score': {'closing_force': 7.5, 'voice_fidelity': 0}}
    assert HeaderValidator.validate_header(header) == []


def test_missing_title_and_bad_scores_are_reported() -> None:
    header = {'sermon_title': '  ', 'radar_score': {'closing_force': 11, 'voice_fidelity': True,
                                                     'emotional_presence': 'high'}}

    problems = HeaderValidator.validate_header(header)

    assert problems == [
        'Missing required field: sermon_title',
        'Invalid radar score for voice_fidelity. Must be a number between 0 and 10.',
        'Invalid radar score for emotional_presence. Must be a number between 0 and 10.',
        'Invalid radar score for closing_force. Must be a number between 0 and 10.',
    ]


def test_validate_or_raise_carries_problems() -> None:
    with pytest.raises(ValidationFailed) as exc_info:
        HeaderValidator.validate_or_raise({}, doc_id='empty.md')
    assert exc_info.value.problems == ['Missing required field: sermon_title']
    assert exc_info.value.doc_id == 'empty.md'
