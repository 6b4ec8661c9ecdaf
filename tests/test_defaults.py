"""Tests for header default values."""

from __future__ import annotations

from datetime import date

import pytest

from sermon_annotator.processing.defaults import complete_header, manuscript_path, parse_preached_on
from sermon_annotator.processing.entities import RADAR_CATEGORIES
from sermon_annotator.processing.validator import HeaderValidator


@pytest.mark.parametrize(
    ('value', 'expected'),
    [
        (date(2024, 7, 1), '/2024/Sermon 07.01.24.md'),
        ('2009-12-24', '/2009/Sermon 12.24.09.md'),
        ('not a date', None),
        (None, None),
    ],
)
def test_manuscript_path_from_date(value, expected) -> None:
    assert manuscript_path(value) == expected


def test_quoted_iso_timestamp_is_read_as_date() -> None:
    assert parse_preached_on('2024-07-01T10:00:00Z') == date(2024, 7, 1)


def test_empty_header_gets_every_field() -> None:
    header = complete_header({}, today=date(2024, 7, 1))

    assert header['sermon_title'] == 'Untitled Sermon'
    assert header['preached_on'] == date(2024, 7, 1)
    assert header['texts'] == [] and header['themes'] == [] and header['metaphors'] == []
    assert header['bolt'] == '' and header['audio_url'] == ''
    assert header['manuscript_path'] == '/2024/Sermon 07.01.24.md'
    assert header['radar_score'] == dict.fromkeys(RADAR_CATEGORIES, 0)
    assert HeaderValidator.validate_header(header) == []


def test_existing_values_are_kept_and_invalid_scores_reset() -> None:
    existing = {
        'sermon_title': 'Grace',
        'preached_on': '2023-03-05',
        'themes': ['hope'],
        'manuscript_path': '/custom.md',
        'radar_score': {'closing_force': 7, 'voice_fidelity': 14, 'emotional_presence': 'high'},
        'radar_justifications': {'closing_force': 'dropped'},
        'series': 'Lent',
    }

    header = complete_header(existing)

    assert header['sermon_title'] == 'Grace'
    assert header['preached_on'] == '2023-03-05'
    assert header['themes'] == ['hope']
    assert header['manuscript_path'] == '/custom.md'
    assert header['series'] == 'Lent'
    assert 'radar_justifications' not in header
    assert header['radar_score']['closing_force'] == 7
    assert header['radar_score']['voice_fidelity'] == 0
    assert header['radar_score']['emotional_presence'] == 0
    assert existing['radar_score']['voice_fidelity'] == 14
