"""Pure currency helpers used by record normalization."""
from __future__ import annotations

import math
from typing import Any, Optional


def to_finite_number(value: Any) -> Optional[float]:
    """Parse numbers and numeric strings; anything else (incl. NaN/inf, bools) is None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def minor_to_major(value: Any, factor: int) -> Optional[int]:
    """Convert a minor-unit amount to whole major units (250 cents -> 3)."""
    number = to_finite_number(value)
    if number is None or factor <= 0:
        return None
    return round_half_up(number / factor)


__all__ = ["to_finite_number", "round_half_up", "minor_to_major"]
