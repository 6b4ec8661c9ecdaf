"""Side-by-side comparison of two models' radar evaluations."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from .entities import RADAR_CATEGORIES, EvaluationResult


def agreement_level(difference: float) -> str:
    """High within one point, Medium within two, Low otherwise."""
    if difference <= 1:
        return 'High'
    if difference <= 2:
        return 'Medium'
    return 'Low'


@dataclass
class CategoryComparison:
    category: str
    score1: float
    score2: float

    @property
    def difference(self) -> float:
        return abs(self.score1 - self.score2)

    @property
    def agreement(self) -> str:
        return agreement_level(self.difference)


@dataclass
class ModelSummary:
    """Average, minimum, maximum and range of one model's scores."""
    average: float
    minimum: float
    maximum: float

    @property
    def range(self) -> float:
        return self.maximum - self.minimum

    @classmethod
    def from_scores(cls, scores: list[float]) -> ModelSummary:
        if not scores:
            return cls(0.0, 0.0, 0.0)
        return cls(sum(scores) / len(scores), min(scores), max(scores))


@dataclass
class ComparisonReport:
    """Per-category agreement and summary statistics for two evaluations.

    Attributes:
        model1: Name of the first model.
        model2: Name of the second model.
        rows: One comparison per radar category, in category order.
    """
    model1: str
    model2: str
    rows: list[CategoryComparison] = field(default_factory=list)

    @property
    def average_difference(self) -> float:
        if not self.rows:
            return 0.0
        return sum(r.difference for r in self.rows) / len(self.rows)

    @property
    def std_deviation(self) -> float:
        """Population standard deviation of the per-category differences."""
        if not self.rows:
            return 0.0
        mean = self.average_difference
        variance = sum((r.difference - mean) ** 2 for r in self.rows) / len(self.rows)
        return math.sqrt(variance)

    @property
    def high_agreement_percent(self) -> float:
        if not self.rows:
            return 0.0
        high = sum(1 for r in self.rows if r.agreement == 'High')
        return high / len(self.rows) * 100.0

    @property
    def summary1(self) -> ModelSummary:
        return ModelSummary.from_scores([r.score1 for r in self.rows])

    @property
    def summary2(self) -> ModelSummary:
        return ModelSummary.from_scores([r.score2 for r in self.rows])

    def format_table(self) -> str:
        """Render the comparison and summary tables as Markdown."""
        sep = '|-----------------------|-----------|-----------|----------|-----------|'
        lines = [
            sep,
            '| Category              | Model 1   | Model 2   | Diff     | Agreement |',
            sep,
        ]
        for row in self.rows:
            lines.append(
                f'| {row.category:<21} | {row.score1:<9.1f} | {row.score2:<9.1f} '
                f'| {row.difference:<8.1f} | {row.agreement:<9} |'
            )
        high = f'{self.high_agreement_percent:.0f}%'
        lines += [
            sep,
            f'| Average Difference    |           |           | {self.average_difference:<8.1f} |           |',
            f'| Standard Deviation    |           |           | {self.std_deviation:<8.1f} |           |',
            f'| High Agreement        |           |           |          | {high:<9} |',
            sep,
            '',
            'Overall Statistics:',
            '|----------------|-----------|-----------|',
            '| Metric         | Model 1   | Model 2   |',
            '|----------------|-----------|-----------|',
        ]
        s1, s2 = self.summary1, self.summary2
        for label, a, b in (
            ('Average Score', s1.average, s2.average),
            ('Minimum Score', s1.minimum, s2.minimum),
            ('Maximum Score', s1.maximum, s2.maximum),
            ('Range', s1.range, s2.range),
        ):
            lines.append(f'| {label:<14} | {a:<9.1f} | {b:<9.1f} |')
        lines.append('|----------------|-----------|-----------|')
        return '\n'.join(lines)


def compare_evaluations(
    first: EvaluationResult,
    second: EvaluationResult,
    model1: str,
    model2: str,
) -> ComparisonReport:
    """Compare two evaluations category by category; unset scores count as 0."""
    rows = [
        CategoryComparison(
            category=category,
            score1=float(first.scores.get(category) or 0.0),
            score2=float(second.scores.get(category) or 0.0),
        )
        for category in RADAR_CATEGORIES
    ]
    return ComparisonReport(model1=model1, model2=model2, rows=rows)


def export_payload(
    doc_name: str,
    header: dict[str, Any],
    timestamp: str,
    models: dict[str, str],
    results: dict[str, EvaluationResult],
) -> dict[str, Any]:
    """Build the JSON export for a comparison run."""
    return {
        'sermon': doc_name,
        'metadata': header,
        'date': timestamp,
        'models': models,
        'results': {
            key: {
                'scores': evaluation.score_map(),
                'justifications': {
                    c: evaluation.justifications.get(c) for c in RADAR_CATEGORIES
                },
            }
            for key, evaluation in results.items()
        },
    }
