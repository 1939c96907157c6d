"""Small helpers shared by the models and the engine."""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import TypeVar


T = TypeVar("T")

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def clamp(value: int, low: int, high: int) -> int:
    """Constrain an integer to the inclusive range [low, high]."""
    return min(high, max(low, value))


def first_set(*values: T | None) -> T | None:
    """Return the first argument that is not None.

    Used for field-by-field merges where an explicit request value wins
    over a previously stored value, which wins over a computed default.
    """
    for value in values:
        if value is not None:
            return value
    return None


def slugify_id(value: str | None, fallback: str = "entry") -> str:
    """Turn a display name into an id fragment.

    Example:
        >>> slugify_id("Rusty Short-Sword")
        'rusty_short_sword'
    """
    slug = _SLUG_PATTERN.sub("_", (value or "").strip().lower()).strip("_")
    return slug or fallback


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


__all__ = [
    "clamp",
    "first_set",
    "slugify_id",
    "utc_now",
]
