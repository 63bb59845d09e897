"""
app/utils/formatting.py

Display formatting for euro amounts and percentages (pt-PT conventions).
"""

from __future__ import annotations

from app.numeric import finite_or_zero

_GROUPING_THRESHOLD = 10000


def _group_thousands(text: str) -> str:
    integer, _, decimals = text.partition(".")
    if int(integer) >= _GROUPING_THRESHOLD:
        integer = f"{int(integer):,}".replace(",", " ")
    return f"{integer},{decimals}"


def format_eur(value: float) -> str:
    """Formats a number as euros, e.g. ``12 345,60 €``; 4 digits stay ungrouped."""
    amount = round(finite_or_zero(value), 2) + 0.0
    text = _group_thousands(f"{abs(amount):.2f}")
    if amount < 0:
        return f"-{text} €"
    return f"{text} €"


def format_percent(value: float, decimals: int = 2) -> str:
    """Formats a number already in percent units, e.g. ``25,00 %``."""
    amount = round(finite_or_zero(value), decimals) + 0.0
    text = f"{abs(amount):.{decimals}f}".replace(".", ",")
    sign = "-" if amount < 0 else ""
    return f"{sign}{text} %"
