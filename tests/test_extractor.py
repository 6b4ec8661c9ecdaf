"""Tests for structured-object and labeled-score extraction."""

from __future__ import annotations

import pytest

from conftest import METADATA_REPLY, RADAR_REPLY
from sermon_annotator.processing.entities import NO_EVALUATION, RADAR_CATEGORIES
from sermon_annotator.processing.exceptions import ExtractionFailed
from sermon_annotator.processing.extractor import ResponseExtractor


def test_fenced_json_block_is_preferred() -> None:
    parsed = ResponseExtractor.extract_json_object(METADATA_REPLY)
    assert parsed['sermon_title'] == 'Generated Title'
    assert parsed['texts'] == ['John 3:16']


def test_balanced_object_found_in_prose() -> None:
    reply = 'Sure! {"sermon_title": "A {braced} title", "themes": ["hope"]} Hope this helps.'
    parsed = ResponseExtractor.extract_json_object(reply)
    assert parsed == {'sermon_title': 'A {braced} title', 'themes': ['hope']}


def test_skips_unparseable_candidate_before_valid_object() -> None:
    reply = 'Scores {not json} and then {"bolt": "Grace is enough."}'
    assert ResponseExtractor.extract_json_object(reply) == {'bolt': 'Grace is enough.'}


@pytest.mark.parametrize('reply', ['', '   ', 'No metadata today.', '["a", "b"]', '{"unterminated": '])
def test_missing_object_raises_extraction_failed(reply: str) -> None:
    with pytest.raises(ExtractionFailed) as exc_info:
        ResponseExtractor.extract_json_object(reply, doc_id='sermon.md')
    assert exc_info.value.doc_id == 'sermon.md'


def test_full_radar_reply_is_complete() -> None:
    result = ResponseExtractor.extract_scores(RADAR_REPLY)
    assert result.is_complete
    assert result.scores['closing_force'] == 9
    assert result.justifications['metaphorical_resonance'] == 'The river image returns.'
    assert result.flags == {}


def test_emphasis_and_bracketed_values_are_tolerated() -> None:
    reply = (
        '**SCORE theological_cohesion:** [7]\n'
        '**JUSTIFICATION theological_cohesion:** Holds together.\n'
        'SCORE closing_force: 8/10\n'
        'JUSTIFICATION closing_force: Strong finish.\n'
    )
    result = ResponseExtractor.extract_scores(reply)
    assert result.scores['theological_cohesion'] == 7
    assert result.justifications['theological_cohesion'] == 'Holds together.'
    assert result.scores['closing_force'] == 8


def test_out_of_range_and_non_numeric_scores_are_flagged() -> None:
    reply = 'SCORE voice_fidelity: 14\nSCORE closing_force: strong\n'
    result = ResponseExtractor.extract_scores(reply)
    assert result.scores['voice_fidelity'] is None
    assert result.scores['closing_force'] is None
    assert set(result.flags) == {'voice_fidelity', 'closing_force'}


def test_missing_category_defaults_to_zero_with_sentinel() -> None:
    reply = '\n'.join(
        line for line in RADAR_REPLY.splitlines() if 'liturgical_harmony' not in line
    )
    result = ResponseExtractor.extract_scores(reply)
    assert result.missing_categories == ['liturgical_harmony']

    filled = result.with_defaults()
    assert filled.is_complete
    assert filled.scores['liturgical_harmony'] == 0
    assert filled.justifications['liturgical_harmony'] == NO_EVALUATION
    assert filled.scores['closing_force'] == 9


def test_empty_reply_never_raises() -> None:
    result = ResponseExtractor.extract_scores('')
    assert result.missing_categories == list(RADAR_CATEGORIES)
    assert result.with_defaults().average == 0


def test_unclosed_brace_before_object_is_skipped() -> None:
    reply = 'Template {title then the answer: {"sermon_title": "X"}'
    assert ResponseExtractor.extract_json_object(reply) == {'sermon_title': 'X'}
