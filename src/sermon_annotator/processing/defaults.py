"""Default values for sermon headers.

Used by the ``fix`` and ``template`` commands to turn a partial or invalid
header into a complete one without touching values that are already usable.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from .entities import RADAR_CATEGORIES
from .merger import MetadataMerger
from .validator import HeaderValidator

DEFAULT_TITLE = 'Untitled Sermon'


def parse_preached_on(value: Any) -> date | None:
    """Read a ``preached_on`` value as a date.

    YAML already turns unquoted ISO dates into ``date`` objects; quoted ones
    arrive as strings.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def manuscript_path(preached_on: Any) -> str | None:
    """'2024-07-01' -> '/2024/Sermon 07.01.24.md', None for unreadable dates."""
    day = parse_preached_on(preached_on)
    if day is None:
        return None
    return f'/{day.year}/Sermon {day.month:02d}.{day.day:02d}.{day.year % 100:02d}.md'


def complete_header(header: Mapping[str, Any] | None = None, today: date | None = None) -> dict[str, Any]:
    """Fill every known sermon field, keeping usable existing values.

    Invalid or missing radar scores become 0. Unknown keys are kept as they
    are; ``radar_justifications`` is dropped.

    Args:
        header: Existing (possibly partial) header.
        today: Date used when ``preached_on`` is missing.

    Returns:
        A new, complete header.
    """
    header = dict(header or {})
    header.pop('radar_justifications', None)

    def existing(key: str, default: Any) -> Any:
        value = header.get(key)
        return default if MetadataMerger.is_blank(value) else value

    preached_on = existing('preached_on', today or date.today())

    old_scores = header.get('radar_score')
    if not isinstance(old_scores, Mapping):
        old_scores = {}
    scores: dict[str, Any] = {}
    for category in RADAR_CATEGORIES:
        score = old_scores.get(category)
        if score is not None and not HeaderValidator.is_valid_score(score):
            logging.warning('Resetting invalid %s score %r to 0', category, score)
            score = None
        scores[category] = 0 if score is None else score
    # Extra categories are kept only when they hold valid scores.
    for key, score in old_scores.items():
        if key not in scores and HeaderValidator.is_valid_score(score):
            scores[key] = score

    completed = dict(header)
    completed.update({
        'sermon_title': existing('sermon_title', DEFAULT_TITLE),
        'preached_on': preached_on,
        'texts': existing('texts', []),
        'bolt': existing('bolt', ''),
        'themes': existing('themes', []),
        'metaphors': existing('metaphors', []),
        'radar_score': scores,
        'audio_url': existing('audio_url', ''),
        'manuscript_path': existing('manuscript_path', manuscript_path(preached_on) or ''),
    })
    return completed
