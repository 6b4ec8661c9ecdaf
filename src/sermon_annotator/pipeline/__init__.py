"""Sermon annotation pipeline.

This package provides the batch orchestrator, run statistics, and the
SermonPipeline class behind every CLI subcommand.
"""

from .batch import BatchCancelled, BatchOrchestrator, Outcome
from .main_processor import SermonPipeline, required_providers, resolve_targets
from .stats import ApplicationError, BatchStats

__all__ = [
    "BatchCancelled",
    "BatchOrchestrator",
    "Outcome",
    "SermonPipeline",
    "required_providers",
    "resolve_targets",
    "ApplicationError",
    "BatchStats",
]
