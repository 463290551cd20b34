"""Scope key: partitions every store by trading-engine instance."""

from __future__ import annotations

from typing import Any

DEFAULT_SCOPE = "default"


def normalize_scope(value: Any, default: str = DEFAULT_SCOPE) -> str:
    """Trimmed scope string. Non-strings and blanks fall back to `default`."""
    if not isinstance(value, str):
        return default
    return value.strip() or default
