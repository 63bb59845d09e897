"""
app/numeric.py

Numeric guards shared by the totalizer, aggregator, KPI and comparison layers.

Upstream sanitisation is not trusted: every value read from a record is passed
through :func:`finite_or_zero` before it takes part in arithmetic, and every
public result is passed through it again before it leaves the core.
"""

from __future__ import annotations

import math
from decimal import Decimal
from typing import Any


def finite_or_zero(value: Any) -> float:
    """
    Coerce *value* to a finite float.

    ``None``, NaN, ±Infinity, booleans, integers too large for a float and
    anything that cannot be converted to a float become ``0.0``.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, Decimal):
        value = float(value)
    try:
        number = float(value)
    except (OverflowError, TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def safe_divide(numerator: Any, denominator: Any) -> float:
    """
    Divide with the zero-guard policy of the KPI layer.

    Returns ``0.0`` when the denominator is zero or when either operand or
    the quotient is non-finite.
    """
    num = finite_or_zero(numerator)
    den = finite_or_zero(denominator)
    if den == 0.0:
        return 0.0
    return finite_or_zero(num / den)


def is_finite_number(value: Any) -> bool:
    """True when *value* is an int/float (not bool) with a finite value."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        return False
