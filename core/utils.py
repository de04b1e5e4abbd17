"""Assorted utility helpers."""
import math


def to_number(value):
    """Return a finite float for ``value`` or ``None``.

    Amounts typed into console forms sometimes reach the rules as strings, so
    numeric strings are accepted alongside ints and floats.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if isinstance(value, str) and value.strip():
        try:
            parsed = float(value)
        except ValueError:
            return None
        return parsed if math.isfinite(parsed) else None
    return None


def is_positive(value) -> bool:
    """True when ``value`` is a number strictly greater than zero."""
    return isinstance(value, (int, float)) and not isinstance(value, bool) and value > 0
