"""Data models for sermon evaluation and annotation results.

This module provides the fixed radar category list, the evaluation result
produced by score extraction, and the per-document outcome records used by
the pipeline.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

RADAR_CATEGORIES: tuple[str, ...] = (
    'theological_cohesion',
    'scriptural_integration',
    'structural_clarity',
    'liturgical_harmony',
    'voice_fidelity',
    'emotional_presence',
    'metaphorical_resonance',
    'closing_force',
    'embodied_authority',
)

NO_EVALUATION = 'No evaluation provided.'

MIN_SCORE = 0.0
MAX_SCORE = 10.0


def format_category_name(category: str) -> str:
    """Turn 'closing_force' into 'Closing Force'."""
    return ' '.join(word.capitalize() for word in category.split('_'))


@dataclass
class EvaluationResult:
    """Scores and justifications for the nine radar categories.

    Every category key is present in ``scores`` and ``justifications``. An
    unset score or justification is ``None``; ``with_defaults`` turns those
    into 0 and the NO_EVALUATION sentinel.

    Attributes:
        scores: Category to score in [0, 10], or None when unset.
        justifications: Category to justification text, or None.
        flags: Category to a note about a rejected value (out of range etc.).
    """
    scores: dict[str, float | None] = field(
        default_factory=lambda: dict.fromkeys(RADAR_CATEGORIES))
    justifications: dict[str, str | None] = field(
        default_factory=lambda: dict.fromkeys(RADAR_CATEGORIES))
    flags: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        for category in RADAR_CATEGORIES:
            self.scores.setdefault(category, None)
            self.justifications.setdefault(category, None)

    @property
    def missing_categories(self) -> list[str]:
        """Categories without a usable score, in category order."""
        return [c for c in RADAR_CATEGORIES if self.scores.get(c) is None]

    @property
    def is_complete(self) -> bool:
        return not self.missing_categories

    def with_defaults(self) -> EvaluationResult:
        """Return a copy where unset scores are 0 and unset justifications the sentinel."""
        scores: dict[str, float | None] = {}
        justifications: dict[str, str | None] = {}
        for category in RADAR_CATEGORIES:
            score = self.scores.get(category)
            text = self.justifications.get(category)
            if score is None:
                scores[category] = 0.0
                justifications[category] = NO_EVALUATION
            else:
                scores[category] = score
                justifications[category] = text or NO_EVALUATION
        return EvaluationResult(scores=scores, justifications=justifications, flags=dict(self.flags))

    def score_map(self) -> dict[str, float | int]:
        """Scores as header values, whole numbers rendered as int."""
        result: dict[str, float | int] = {}
        for category in RADAR_CATEGORIES:
            score = self.scores.get(category)
            if score is None:
                continue
            result[category] = int(score) if float(score).is_integer() else score
        return result

    @property
    def average(self) -> float:
        """Mean of the set scores, 0.0 when nothing is set."""
        values = [s for s in self.scores.values() if s is not None]
        if not values:
            return 0.0
        return sum(values) / len(values)


@dataclass(frozen=True)
class ModelTarget:
    """A provider/model pair a request is addressed to.

    Attributes:
        provider: Registry key of the provider.
        model: Model identifier for that provider.
    """
    provider: str
    model: str

    def __str__(self) -> str:
        return f'{self.provider}:{self.model}'


@dataclass
class ProcessingOptions:
    """Per-run switches for the document pipeline.

    Attributes:
        update: Regenerate metadata and scores even when present.
        score_only: Only generate radar scores.
        dry_run: Compute everything, write nothing.
        section_name: Heading of the generated evaluation section.
    """
    update: bool = False
    score_only: bool = False
    dry_run: bool = False
    section_name: str = 'Radar Analysis'


@dataclass
class AnnotationResult:
    """Outcome of annotating a single document.

    Attributes:
        doc_id: Document identifier.
        header: Header written (or that would be written in a dry run).
        evaluation: Radar evaluation, if one was generated.
        metadata_generated: Whether narrative metadata was requested.
        scores_generated: Whether radar scores were requested.
        written: Whether the document was rewritten on disk.
        model: Model that produced the evaluation, if any.
        used_fallback: Whether the fallback model was needed.
        validation_problems: Header validation messages, if any.
    """
    doc_id: str
    header: dict[str, Any] = field(default_factory=dict)
    evaluation: EvaluationResult | None = None
    metadata_generated: bool = False
    scores_generated: bool = False
    written: bool = False
    model: str | None = None
    used_fallback: bool = False
    validation_problems: list[str] = field(default_factory=list)

    @property
    def skipped(self) -> bool:
        """True when the document needed no generation at all."""
        return not (self.metadata_generated or self.scores_generated)
