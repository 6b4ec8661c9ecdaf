"""Header validation for sermon documents."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .entities import MAX_SCORE, MIN_SCORE, RADAR_CATEGORIES
from .exceptions import ValidationFailed

REQUIRED_FIELDS = ('sermon_title',)


class HeaderValidator:
    """Validates document headers before and after annotation."""

    @staticmethod
    def is_valid_score(score: Any) -> bool:
        # bool is an int subclass but never a valid score
        if isinstance(score, bool) or not isinstance(score, (int, float)):
            return False
        return MIN_SCORE <= score <= MAX_SCORE

    @staticmethod
    def validate_header(header: Mapping[str, Any]) -> list[str]:
        """Check a header against the document schema.

        Args:
            header: Parsed frontmatter.

        Returns:
            Validation messages; empty when the header is valid.
        """
        problems: list[str] = []

        for field_name in REQUIRED_FIELDS:
            value = header.get(field_name)
            if value is None or (isinstance(value, str) and not value.strip()):
                problems.append(f'Missing required field: {field_name}')

        scores = header.get('radar_score')
        if scores is None:
            return problems
        if not isinstance(scores, Mapping):
            problems.append('radar_score must be a mapping of category to score')
            return problems

        for category in RADAR_CATEGORIES:
            if category not in scores:
                continue
            if not HeaderValidator.is_valid_score(scores[category]):
                problems.append(
                    f'Invalid radar score for {category}. Must be a number between 0 and 10.'
                )
        return problems

    @classmethod
    def validate_or_raise(cls, header: Mapping[str, Any], doc_id: str | None = None) -> None:
        """Validate a header, raising on the first failing document.

        Raises:
            ValidationFailed: If any validation message is produced.
        """
        problems = cls.validate_header(header)
        if problems:
            raise ValidationFailed(
                f'Header validation failed: {"; ".join(problems)}',
                doc_id=doc_id,
                problems=problems,
            )
