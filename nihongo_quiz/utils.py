"""Utility functions for timestamps, sanitization and validation."""

import html
import math
from datetime import datetime, timezone

import bleach


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (the storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Normalise a client-supplied datetime to naive UTC.

    Naive values are assumed to already be UTC.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def sanitize_answer_text(text: str) -> str:
    """Strip HTML from a student's open-ended answer.

    Line breaks and Japanese text are preserved; markup is removed and
    plain characters such as ``<`` and ``&`` are kept as typed.
    """
    sanitized = bleach.clean(text, tags=[], strip=True)
    return html.unescape(sanitized).strip()


def sanitize_feedback(text: str) -> str:
    """Sanitize grader feedback text.

    Allows basic text but removes any HTML/script content.
    """
    sanitized = bleach.clean(text, tags=[], strip=True)
    return html.unescape(sanitized).strip()


def validate_score(score: float, total_points: float) -> bool:
    """Validate that a manually awarded score is within ``[0, total_points]``.

    Raises:
        ValueError: If the score is out of range
    """
    if not math.isfinite(score) or score < 0 or score > total_points:
        raise ValueError(f"Score must be between 0 and {total_points:g}")

    return True
