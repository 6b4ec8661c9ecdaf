"""Merge policy for combining existing document headers with extracted metadata."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, ClassVar

from .entities import RADAR_CATEGORIES


class MetadataMerger:
    """Pure, deterministic merge of an existing header with extracted fields.

    Existing human-authored values win for narrative fields; machine scores
    are layered on top of existing ones per category.
    """

    SCALAR_FIELDS: ClassVar[tuple[str, ...]] = ('sermon_title', 'bolt')
    LIST_FIELDS: ClassVar[tuple[str, ...]] = ('texts', 'themes', 'metaphors')
    SCORE_FIELD: ClassVar[str] = 'radar_score'
    DROPPED_FIELDS: ClassVar[frozenset[str]] = frozenset({'radar_justifications'})

    @staticmethod
    def is_blank(value: Any) -> bool:
        """True for None, empty/whitespace strings and empty containers."""
        if value is None:
            return True
        if isinstance(value, str):
            return not value.strip()
        if isinstance(value, (list, tuple, dict, set)):
            return len(value) == 0
        return False

    @staticmethod
    def _normalize_list(value: Any) -> list[Any] | None:
        if value is None:
            return None
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return None
        items = [v.strip() if isinstance(v, str) else v for v in value]
        items = [v for v in items if not MetadataMerger.is_blank(v)]
        return items or None

    @classmethod
    def _merge_scores(cls, existing: Any, extracted: Any) -> dict[str, Any] | None:
        merged: dict[str, Any] = dict(existing) if isinstance(existing, Mapping) else {}
        if isinstance(extracted, Mapping):
            for category, value in extracted.items():
                if value is None:
                    continue
                merged[category] = value
        if not merged:
            return None
        known = [c for c in RADAR_CATEGORIES if c in merged]
        extra = sorted(k for k in merged if k not in RADAR_CATEGORIES)
        return {k: merged[k] for k in known + extra}

    @classmethod
    def merge(cls, existing: Mapping[str, Any] | None, extracted: Mapping[str, Any] | None) -> dict[str, Any]:
        """Combine an existing header with extracted metadata.

        Args:
            existing: Header already in the document.
            extracted: Fields produced by the model.

        Returns:
            A new merged header; neither input is modified.
        """
        existing = existing or {}
        extracted = extracted or {}
        merged: dict[str, Any] = {}

        for key in list(existing) + [k for k in extracted if k not in existing]:
            if key in cls.DROPPED_FIELDS:
                continue

            old = existing.get(key)
            new = extracted.get(key)

            if key == cls.SCORE_FIELD:
                value = cls._merge_scores(old, new)
            elif key in cls.LIST_FIELDS:
                # Whole-list precedence, no element union.
                if not cls.is_blank(old):
                    value = old
                else:
                    value = cls._normalize_list(new)
                    if value is None:
                        value = old
            elif key in cls.SCALAR_FIELDS:
                if not cls.is_blank(old):
                    value = old
                elif isinstance(new, str) and new.strip():
                    value = new.strip()
                elif not cls.is_blank(new):
                    value = new
                else:
                    value = old
            else:
                value = old if not cls.is_blank(old) else (new if not cls.is_blank(new) else old)

            if value is None and key not in existing:
                continue
            merged[key] = copy.deepcopy(value)

        return merged
