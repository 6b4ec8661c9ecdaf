"""Tests for grouped batch execution."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from conftest import METADATA_REPLY, RADAR_REPLY, RecordedSleep, ScriptedClient, make_document
from sermon_annotator.io.exceptions import MalformedDocument
from sermon_annotator.io.store import FileDocumentStore
from sermon_annotator.llm.factory import ProviderRegistry
from sermon_annotator.pipeline.batch import BatchCancelled, BatchOrchestrator
from sermon_annotator.pipeline.stats import BatchStats
from sermon_annotator.processing.entities import ModelTarget
from sermon_annotator.processing.processor import SermonProcessor


def _reply_for(request) -> str:
    return METADATA_REPLY if request.max_tokens == 1000 else RADAR_REPLY


def test_failures_are_isolated_and_results_keep_input_order(sermon_dir: Path,
                                                            recorded_sleep: RecordedSleep) -> None:
    paths = []
    for number in range(1, 6):
        path = sermon_dir / f'sermon_{number}.md'
        if number == 3:
            path.write_text('---\nsermon_title: Broken\n\nNo closing delimiter.\n', encoding='utf-8')
        else:
            path.write_text(make_document(f'sermon_title: Sermon {number}\n'), encoding='utf-8')
        paths.append(str(path))

    client = ScriptedClient('claude', [_reply_for])
    target = ModelTarget('claude', 'claude-test')
    processor = SermonProcessor(
        ProviderRegistry({'claude': client}),
        FileDocumentStore(),
        metadata_target=target,
        radar_target=target,
        sleep=recorded_sleep,
        clock=lambda: '2024-07-01T12:00:00Z',
    )
    orchestrator = BatchOrchestrator(concurrency=2, inter_batch_delay=1.5, sleep=recorded_sleep)

    outcomes = asyncio.run(orchestrator.run(paths, processor.annotate))

    assert [o.index for o in outcomes] == [0, 1, 2, 3, 4]
    assert [o.ok for o in outcomes] == [True, True, False, True, True]
    assert isinstance(outcomes[2].error, MalformedDocument)
    assert recorded_sleep.waits == [1.5, 1.5]
    assert all(o.value.written for o in outcomes if o.ok)

    updated = Path(paths[0]).read_text(encoding='utf-8')
    assert '## Radar Analysis' in updated
    assert 'Radar Analysis' not in Path(paths[2]).read_text(encoding='utf-8')

    stats = BatchStats()
    stats.record(outcomes)
    assert stats.succeeded == 4
    assert stats.updated == 4
    assert stats.failed == 1
    assert not stats.all_succeeded


def test_cancel_event_marks_remaining_items() -> None:
    sleep = RecordedSleep()
    cancel = asyncio.Event()
    seen: list[int] = []

    async def op(item: int) -> int:
        seen.append(item)
        if item == 1:
            cancel.set()
        return item * 10

    orchestrator = BatchOrchestrator(concurrency=2, inter_batch_delay=0, sleep=sleep)
    outcomes = asyncio.run(orchestrator.run([0, 1, 2, 3], op, cancel_event=cancel))

    assert seen == [0, 1]
    assert [o.value for o in outcomes[:2]] == [0, 10]
    assert all(o.cancelled for o in outcomes[2:])
    assert isinstance(outcomes[3].error, BatchCancelled)
    assert sleep.waits == []


def test_no_delay_after_single_group() -> None:
    sleep = RecordedSleep()

    async def op(item: str) -> str:
        return item.upper()

    outcomes = asyncio.run(BatchOrchestrator(5, 10.0, sleep=sleep).run(['a', 'b'], op))

    assert [o.value for o in outcomes] == ['A', 'B']
    assert sleep.waits == []


@pytest.mark.parametrize(('concurrency', 'delay'), [(0, 1.0), (1, -1.0)])
def test_invalid_settings_are_rejected(concurrency: int, delay: float) -> None:
    with pytest.raises(ValueError):
        BatchOrchestrator(concurrency, delay)
