"""Lightweight request parameter helpers."""

from typing import Any, Optional

from utils.error_handling import ValidationError


def ensure_present(value: Any, field: str) -> None:
    """Raise ValidationError if value is falsy."""
    if value in (None, "", []):
        raise ValidationError(f"{field} is required")


def parse_limit(value: Optional[str], default: int, maximum: int) -> int:
    """Parse a ``limit`` query parameter, clamped to ``maximum``."""
    if value in (None, ""):
        return default
    try:
        limit = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"limit must be an integer, got {value!r}")
    if limit < 1:
        raise ValidationError("limit must be at least 1")
    return min(limit, maximum)
