"""Structured-response extraction for model replies.

Two modes are supported:

* Structured-object mode: a JSON object is located in free text (fenced code
  block first, then the first balanced brace-delimited substring).
* Labeled-score mode: ``SCORE <category>: <n>`` and
  ``JUSTIFICATION <category>: <text>`` lines for the radar categories.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, ClassVar

from .entities import MAX_SCORE, MIN_SCORE, RADAR_CATEGORIES, EvaluationResult
from .exceptions import ExtractionFailed


class ResponseExtractor:
    """Turns raw model reply text into structured data."""

    FENCE_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r'```[ \t]*(?:json)?[ \t]*\r?\n?(.*?)```', re.IGNORECASE | re.DOTALL
    )
    NUMBER_PATTERN: ClassVar[re.Pattern[str]] = re.compile(
        r'^[\s*_\[]*(-?\d+(?:\.\d+)?)'
    )
    # Optional markdown emphasis around labels.
    EMPHASIS: ClassVar[str] = r'[*_]*'

    @classmethod
    def extract_json_object(cls, reply: str, doc_id: str | None = None) -> dict[str, Any]:
        """Locate and parse a JSON object in a model reply.

        Args:
            reply: Raw reply text.
            doc_id: Optional document identifier for error context.

        Returns:
            The parsed object.

        Raises:
            ExtractionFailed: If no candidate parses to a JSON object.
        """
        if not reply or not reply.strip():
            raise ExtractionFailed('Empty reply, nothing to extract', doc_id=doc_id, response_text=reply)

        for match in cls.FENCE_PATTERN.finditer(reply):
            candidate = match.group(1).strip()
            parsed = cls._try_parse_object(candidate)
            if parsed is not None:
                return parsed
            # A fenced block may wrap an object in prose.
            parsed = cls._first_balanced_object(candidate)
            if parsed is not None:
                return parsed

        parsed = cls._first_balanced_object(reply)
        if parsed is not None:
            return parsed

        logging.debug('Unparseable reply for %s:\n%s', doc_id or 'request', reply)
        raise ExtractionFailed(
            'No JSON object found in model reply',
            doc_id=doc_id,
            response_text=reply,
        )

    @staticmethod
    def _try_parse_object(candidate: str) -> dict[str, Any] | None:
        try:
            value = json.loads(candidate)
        except (json.JSONDecodeError, ValueError):
            return None
        return value if isinstance(value, dict) else None

    @classmethod
    def _first_balanced_object(cls, text: str) -> dict[str, Any] | None:
        """Return the first balanced ``{...}`` substring that parses to an object."""
        start = text.find('{')
        while start != -1:
            end = cls._balanced_end(text, start)
            if end is not None:
                parsed = cls._try_parse_object(text[start:end + 1])
                if parsed is not None:
                    return parsed
            start = text.find('{', start + 1)
        return None

    @staticmethod
    def _balanced_end(text: str, start: int) -> int | None:
        """Index of the brace closing the one at ``start``, skipping string literals."""
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == '\\':
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == '{':
                depth += 1
            elif char == '}':
                depth -= 1
                if depth == 0:
                    return index
        return None

    @classmethod
    def _score_pattern(cls, category: str) -> re.Pattern[str]:
        e = cls.EMPHASIS
        return re.compile(
            rf'{e}SCORE\s+{e}{re.escape(category)}{e}\s*:{e}[ \t]*([^\n]*)',
            re.IGNORECASE,
        )

    @classmethod
    def _justification_pattern(cls, category: str) -> re.Pattern[str]:
        e = cls.EMPHASIS
        return re.compile(
            rf'{e}JUSTIFICATION\s+{e}{re.escape(category)}{e}\s*:{e}\s*(.+?)'
            rf'(?=\n\s*{e}SCORE\b|\n\s*{e}JUSTIFICATION\b|\Z)',
            re.IGNORECASE | re.DOTALL,
        )

    @classmethod
    def extract_scores(cls, reply: str) -> EvaluationResult:
        """Read labeled scores and justifications for every radar category.

        Never raises: unmatched categories stay unset, and values that are
        non-numeric or outside [0, 10] are unset with a flag recorded.

        Args:
            reply: Raw reply text.

        Returns:
            An EvaluationResult with every category key present.
        """
        result = EvaluationResult()
        text = reply or ''

        for category in RADAR_CATEGORIES:
            score_match = cls._score_pattern(category).search(text)
            if score_match:
                raw_value = score_match.group(1).strip()
                number_match = cls.NUMBER_PATTERN.match(raw_value)
                if number_match is None:
                    result.flags[category] = f'non-numeric score: {raw_value!r}'
                else:
                    value = float(number_match.group(1))
                    if MIN_SCORE <= value <= MAX_SCORE:
                        result.scores[category] = value
                    else:
                        result.flags[category] = f'score out of range: {value:g}'

            justification_match = cls._justification_pattern(category).search(text)
            if justification_match:
                justification = justification_match.group(1).strip().strip('*_').strip()
                if justification:
                    result.justifications[category] = justification

        if result.missing_categories:
            logging.debug('Reply left categories unset: %s', ', '.join(result.missing_categories))
        for category, note in result.flags.items():
            logging.warning('Rejected %s value (%s)', category, note)
        return result
