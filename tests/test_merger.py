"""Tests for header merge precedence."""

from __future__ import annotations

from sermon_annotator.processing.merger import MetadataMerger


def test_existing_scalars_win_over_extracted() -> None:
    existing = {'sermon_title': 'Hand Written', 'bolt': ''}
    extracted = {'sermon_title': 'Generated', 'bolt': '  The bolt.  '}

    merged = MetadataMerger.merge(existing, extracted)

    assert merged['sermon_title'] == 'Hand Written'
    assert merged['bolt'] == 'The bolt.'


def test_lists_use_whole_list_precedence() -> None:
    existing = {'texts': ['Luke 15'], 'themes': []}
    extracted = {'texts': ['John 3:16'], 'themes': [' grace ', '', 'hope'], 'metaphors': 'river'}

    merged = MetadataMerger.merge(existing, extracted)

    assert merged['texts'] == ['Luke 15']
    assert merged['themes'] == ['grace', 'hope']
    assert merged['metaphors'] == ['river']


def test_scores_merge_per_category_and_skip_none() -> None:
    existing = {'radar_score': {'closing_force': 4, 'voice_fidelity': 6}}
    extracted = {'radar_score': {'closing_force': 9, 'voice_fidelity': None, 'theological_cohesion': 7}}

    merged = MetadataMerger.merge(existing, extracted)

    assert merged['radar_score'] == {'theological_cohesion': 7, 'voice_fidelity': 6, 'closing_force': 9}
    assert list(merged['radar_score']) == ['theological_cohesion', 'voice_fidelity', 'closing_force']


def test_justifications_are_dropped_and_unknown_keys_kept() -> None:
    existing = {'radar_justifications': {'closing_force': 'old'}, 'audio_url': 'https://example.org/a.mp3'}
    extracted = {'radar_justifications': {'closing_force': 'new'}, 'audio_url': 'https://other'}

    merged = MetadataMerger.merge(existing, extracted)

    assert 'radar_justifications' not in merged
    assert merged['audio_url'] == 'https://example.org/a.mp3'


def test_inputs_are_not_mutated() -> None:
    existing = {'themes': ['love']}
    extracted = {'radar_score': {'closing_force': 5}}

    merged = MetadataMerger.merge(existing, extracted)
    merged['themes'].append('changed')

    assert existing == {'themes': ['love']}
    assert extracted == {'radar_score': {'closing_force': 5}}


def test_blank_values() -> None:
    assert MetadataMerger.is_blank(None)
    assert MetadataMerger.is_blank('  ')
    assert MetadataMerger.is_blank([])
    assert not MetadataMerger.is_blank(0)
