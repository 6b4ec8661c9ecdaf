"""Grouped concurrent execution with per-item failure isolation."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from ..llm.retry import SleepFunc

T = TypeVar('T')
R = TypeVar('R')


class BatchCancelled(Exception):
    """Recorded for items that never started because the run was cancelled."""


@dataclass
class Outcome(Generic[T, R]):
    """The result for one input item: a value or a captured error.

    Attributes:
        index: Position of the item in the input sequence.
        item: The input item.
        value: The operation's return value on success.
        error: The exception raised, if any.
    """
    index: int
    item: T
    value: R | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def cancelled(self) -> bool:
        return isinstance(self.error, BatchCancelled)


class BatchOrchestrator:
    """Runs an async operation over items in fixed-size concurrent groups.

    Groups run one after another with a delay between them (never after the
    last). A failing item never affects its siblings.
    """

    def __init__(
        self,
        concurrency: int = 5,
        inter_batch_delay: float = 10.0,
        *,
        sleep: SleepFunc = asyncio.sleep,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            concurrency: Items per concurrent group.
            inter_batch_delay: Seconds between groups.
            sleep: Awaitable sleep used for the delay, injectable for tests.

        Raises:
            ValueError: If concurrency < 1 or the delay is negative.
        """
        if concurrency < 1:
            raise ValueError('concurrency must be >= 1')
        if inter_batch_delay < 0:
            raise ValueError('inter_batch_delay must be >= 0')
        self.concurrency = concurrency
        self.inter_batch_delay = inter_batch_delay
        self._sleep = sleep

    @staticmethod
    async def _run_one(index: int, item: T, op: Callable[[T], Awaitable[R]]) -> Outcome[T, R]:
        try:
            value = await op(item)
        except Exception as e:
            logging.error('Item %d (%s) failed: %s', index, item, e)
            return Outcome(index=index, item=item, error=e)
        return Outcome(index=index, item=item, value=value)

    async def run(
        self,
        items: Sequence[T],
        op: Callable[[T], Awaitable[R]],
        *,
        concurrency: int | None = None,
        inter_batch_delay: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> list[Outcome[T, R]]:
        """Apply ``op`` to every item.

        Args:
            items: Inputs, processed in order of groups.
            op: Async operation applied to each item.
            concurrency: Overrides the group size for this run.
            inter_batch_delay: Overrides the delay for this run.
            cancel_event: Checked between groups; once set, the remaining
                items are recorded as cancelled.

        Returns:
            One Outcome per item, ``results[i]`` belonging to ``items[i]``.
        """
        size = concurrency or self.concurrency
        delay = self.inter_batch_delay if inter_batch_delay is None else inter_batch_delay
        results: list[Outcome[Any, Any]] = []
        total_groups = (len(items) + size - 1) // size

        for group_number, start in enumerate(range(0, len(items), size), start=1):
            if cancel_event is not None and cancel_event.is_set():
                logging.warning('Run cancelled, %d items not started', len(items) - start)
                results.extend(
                    Outcome(index=i, item=items[i], error=BatchCancelled('cancelled before start'))
                    for i in range(start, len(items))
                )
                break

            group = items[start:start + size]
            logging.info('Processing group %d/%d (%d items)', group_number, total_groups, len(group))
            outcomes = await asyncio.gather(
                *(self._run_one(start + offset, item, op) for offset, item in enumerate(group))
            )
            results.extend(outcomes)

            if group_number < total_groups and delay > 0:
                logging.info('Waiting %.1fs before next group', delay)
                await self._sleep(delay)

        return results
