"""Statistics and utility classes for the sermon annotation pipeline.

This module provides the run statistics collected from batch outcomes and
the application-level error raised by the pipeline entry points.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field

from .batch import Outcome


class ApplicationError(Exception):
    """Custom exception for application-level errors."""


@dataclass
class BatchStats:
    """Statistics for one pipeline run.

    Attributes:
        total: Number of documents considered.
        succeeded: Documents processed without error.
        failed: Documents whose processing raised.
        cancelled: Documents never started because the run was cancelled.
        updated: Documents rewritten on disk.
        skipped: Documents that needed no generation.
        start_time: Run start (epoch seconds).
        end_time: Run end (epoch seconds).
        failures: (document id, message) for every failed document.
    """
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    cancelled: int = 0
    updated: int = 0
    skipped: int = 0
    start_time: float = field(default_factory=time.time)
    end_time: float | None = None
    failures: list[tuple[str, str]] = field(default_factory=list)

    @property
    def processing_time(self) -> float:
        if self.end_time is None:
            return 0.0
        return self.end_time - self.start_time

    @property
    def success_rate(self) -> float:
        """Successful documents as a percentage of all documents."""
        if self.total == 0:
            return 0.0
        return (self.succeeded / self.total) * 100.0

    @property
    def all_succeeded(self) -> bool:
        return self.failed == 0 and self.cancelled == 0

    def record(self, outcomes: list[Outcome]) -> None:
        """Fold batch outcomes into the counters."""
        for outcome in outcomes:
            self.total += 1
            if outcome.ok:
                self.succeeded += 1
                result = outcome.value
                if getattr(result, 'written', False):
                    self.updated += 1
                if getattr(result, 'skipped', False):
                    self.skipped += 1
            elif outcome.cancelled:
                self.cancelled += 1
                self.failures.append((str(outcome.item), 'cancelled'))
            else:
                self.failed += 1
                self.failures.append((str(outcome.item), str(outcome.error)))

    def finish(self) -> None:
        self.end_time = time.time()

    def summary_lines(self) -> list[str]:
        """Human-readable summary, failing documents listed last."""
        lines = [
            'Processing complete!',
            f'Total files: {self.total}',
            f'Successfully processed: {self.succeeded}',
            f'Failed: {self.failed}',
            f'Updated: {self.updated}',
            f'Skipped (already annotated): {self.skipped}',
        ]
        if self.cancelled:
            lines.append(f'Cancelled: {self.cancelled}')
        lines.append(f'Elapsed: {self.processing_time:.1f}s')
        if self.failures:
            lines.append('')
            lines.append('Failed files:')
            lines.extend(f'- {doc_id}: {message}' for doc_id, message in self.failures)
        return lines
