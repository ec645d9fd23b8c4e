"""Money rounding and numeric guards."""

import math
from typing import Any, Optional


def round_money(value: float) -> float:
    """Round an amount to cents."""
    return round(float(value) + 0.0, 2)


def is_finite_number(value: Any) -> bool:
    """True for real, finite int/float values (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def to_number(value: Any) -> Optional[float]:
    """Coerce a config value (number or numeric string) to float, or None."""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]; lower wins if the bounds cross."""
    return max(lower, min(value, upper))
