"""Tests for argument handling and the command pipeline."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from conftest import METADATA_REPLY, RADAR_REPLY, RecordedSleep, ScriptedClient, make_document
from sermon_annotator.config import Settings
from sermon_annotator.io.document import parse_document
from sermon_annotator.llm.factory import ProviderRegistry
from sermon_annotator.main import create_argument_parser, main
from sermon_annotator.pipeline import ApplicationError, SermonPipeline, required_providers, resolve_targets
from sermon_annotator.processing.entities import RADAR_CATEGORIES, ModelTarget


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Settings, 'LLM_PROVIDER', None)
    monkeypatch.setattr(Settings, 'FALLBACK_MODEL', None)
    monkeypatch.setattr(Settings, 'FALLBACK_PROVIDER', None)
    monkeypatch.setattr(Settings, 'CLAUDE_MODEL', 'claude-default')


def _reply_for(request) -> str:
    return METADATA_REPLY if request.max_tokens == 1000 else RADAR_REPLY


def test_provider_is_never_guessed() -> None:
    args = create_argument_parser().parse_args(['generate', 'sermons'])
    with pytest.raises(ApplicationError):
        resolve_targets(args)


def test_targets_from_flags() -> None:
    args = create_argument_parser().parse_args([
        'generate', 'sermons', '--provider', 'claude', '--radar-model', 'radar-x',
        '--fallback-model', 'gpt-4o', '--fallback-provider', 'openai',
    ])

    targets = resolve_targets(args)

    assert targets['metadata'] == ModelTarget('claude', 'claude-default')
    assert targets['radar'] == ModelTarget('claude', 'radar-x')
    assert targets['fallback'] == ModelTarget('openai', 'gpt-4o')
    assert required_providers(args) == ['claude', 'openai']


def test_provider_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(Settings, 'LLM_PROVIDER', 'claude')
    args = create_argument_parser().parse_args(['analyze', 'a.md'])
    assert resolve_targets(args)['radar'] == ModelTarget('claude', 'claude-default')
    assert resolve_targets(args)['fallback'] is None


def test_validate_and_list_models_need_no_llm_provider() -> None:
    parser = create_argument_parser()
    assert required_providers(parser.parse_args(['validate', 'x'])) == []
    assert required_providers(parser.parse_args(['list-models'])) == ['openrouter']
    assert required_providers(parser.parse_args(['fix', 'x'])) == []
    assert required_providers(parser.parse_args(['template'])) == []


def test_validate_command_exit_codes(sermon_dir: Path) -> None:
    (sermon_dir / 'good.md').write_text(make_document('sermon_title: Good\n'), encoding='utf-8')
    assert main(['validate', str(sermon_dir)]) == 0

    (sermon_dir / 'bad.md').write_text(make_document('radar_score:\n  closing_force: 12\n'), encoding='utf-8')
    assert main(['validate', str(sermon_dir)]) == 1


def test_missing_path_is_an_application_error(tmp_path: Path) -> None:
    assert main(['validate', str(tmp_path / 'missing')]) == 1


def test_generate_runs_every_document(sermon_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    for number in range(3):
        (sermon_dir / f's{number}.md').write_text(make_document(f'sermon_title: S{number}\n'), encoding='utf-8')
    args = create_argument_parser().parse_args([
        'generate', str(sermon_dir), '--provider', 'claude', '--batch-size', '2', '--batch-delay', '4',
    ])
    sleep = RecordedSleep()
    client = ScriptedClient('claude', [_reply_for])
    pipeline = SermonPipeline(args, registry=ProviderRegistry({'claude': client}), sleep=sleep)

    assert pipeline.run() == 0

    assert sleep.waits == [4.0]
    assert client.calls == 6
    output = capsys.readouterr().out
    assert 'Successfully processed: 3' in output
    assert 'Updated: 3' in output
    for path in sermon_dir.glob('*.md'):
        assert '<!-- end: radar-analysis -->' in path.read_text(encoding='utf-8')


def test_compare_exports_both_models(sermon_dir: Path, tmp_path: Path,
                                     capsys: pytest.CaptureFixture[str]) -> None:
    sermon = sermon_dir / 'sermon.md'
    sermon.write_text(make_document('sermon_title: Grace\n'), encoding='utf-8')
    export = tmp_path / 'out' / 'comparison.json'
    args = create_argument_parser().parse_args([
        'compare', str(sermon), '--provider', 'openrouter',
        '--model1', 'openai/gpt-4o', '--model2', 'anthropic/claude-3.7-sonnet', '--export', str(export),
    ])
    client = ScriptedClient('openrouter', [RADAR_REPLY])
    pipeline = SermonPipeline(args, registry=ProviderRegistry({'openrouter': client}), sleep=RecordedSleep())

    assert pipeline.run() == 0

    assert [r.model for r in client.requests] == ['openai/gpt-4o', 'anthropic/claude-3.7-sonnet']
    payload = json.loads(export.read_text(encoding='utf-8'))
    assert payload['sermon'] == 'sermon.md'
    assert payload['models'] == {'model1': 'openai/gpt-4o', 'model2': 'anthropic/claude-3.7-sonnet'}
    assert payload['results']['model1']['scores']['closing_force'] == 9
    assert '100%' in capsys.readouterr().out
    assert '## Radar Analysis' not in sermon.read_text(encoding='utf-8')


def test_fix_repairs_only_invalid_headers(sermon_dir: Path, capsys: pytest.CaptureFixture[str]) -> None:
    good = sermon_dir / 'good.md'
    good.write_text(make_document('sermon_title: Good\n'), encoding='utf-8')
    bad = sermon_dir / 'bad.md'
    bad.write_text(make_document('preached_on: 2024-07-01\nradar_score:\n  closing_force: 12\n'), encoding='utf-8')
    good_before = good.read_text(encoding='utf-8')

    assert main(['fix', str(sermon_dir)]) == 0

    assert good.read_text(encoding='utf-8') == good_before
    repaired = parse_document(bad.read_text(encoding='utf-8'))
    assert repaired.header['sermon_title'] == 'Untitled Sermon'
    assert repaired.header['radar_score']['closing_force'] == 0
    assert repaired.header['manuscript_path'] == '/2024/Sermon 07.01.24.md'
    assert repaired.body.strip() == '# Sermon\n\nIn the beginning.'
    assert 'Fixed 1 out of 1 invalid sermons.' in capsys.readouterr().out
    assert main(['validate', str(sermon_dir)]) == 0


def test_fix_dry_run_writes_nothing(sermon_dir: Path) -> None:
    bad = sermon_dir / 'bad.md'
    bad.write_text(make_document('bolt: Only a bolt.\n'), encoding='utf-8')
    before = bad.read_text(encoding='utf-8')

    assert main(['fix', str(sermon_dir), '--dry-run']) == 0

    assert bad.read_text(encoding='utf-8') == before


def test_fix_reports_unparseable_documents(sermon_dir: Path) -> None:
    (sermon_dir / 'broken.md').write_text('---\nsermon_title: Open\n', encoding='utf-8')
    assert main(['fix', str(sermon_dir)]) == 1


def test_template_prints_complete_header(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(['template']) == 0

    out = capsys.readouterr().out
    header = yaml.safe_load(out[out.index('sermon_title:'):])
    assert header['sermon_title'] == 'Untitled Sermon'
    assert list(header['radar_score']) == list(RADAR_CATEGORIES)
    assert header['manuscript_path'].startswith('/')
