"""
Numeric coercion helpers shared by the models and the engine.

Catalog rows arrive from hand-maintained tables and free-form JSON, so
numbers may be missing, strings, negative, NaN or infinite. These helpers
turn any of that into a usable float without raising.
"""

from __future__ import annotations

import math
from typing import Any, Optional


def to_float(value: Any) -> Optional[float]:
    """Parse ``value`` as a finite float, or return ``None``.

    Accepts ints, floats and numeric strings (thousands separators, a leading
    ``$`` and a trailing ``%`` are tolerated). Booleans are rejected.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = value.strip().replace(",", "").lstrip("$").rstrip("%").strip()
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def non_negative(value: Any, default: float = 0.0) -> float:
    """Coerce ``value`` to a finite float >= 0, falling back to ``default``."""
    number = to_float(value)
    if number is None or number < 0:
        return default
    return number


def positive_or_none(value: Any) -> Optional[float]:
    """Coerce ``value`` to a finite float > 0, or ``None`` (0 means "undefined")."""
    number = to_float(value)
    if number is None or number <= 0:
        return None
    return number


def finite(value: float, default: float = 0.0) -> float:
    """Return ``value`` unchanged if finite, otherwise ``default``."""
    if value is None or not math.isfinite(value):
        return default
    return value


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
