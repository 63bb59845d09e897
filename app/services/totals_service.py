"""
app/services/totals_service.py

Line and document totalizer.

This is the single implementation of the discount rules; every aggregate in
the project goes through :func:`document_total`.

Formulas
--------
line_total      = quantity * unit_price * (1 - discount_percent / 100)
document_total  = sum(line_total) * (1 - document_discount_percent / 100)

The order is fixed: line discounts first, plain sum, then the document
discount once on the summed total. A missing discount is 0 %.
"""

from __future__ import annotations

import logging
from typing import Iterable

from app.domain.documents import Document, LineItem
from app.numeric import finite_or_zero

logger = logging.getLogger(__name__)


def apply_discount(amount: float, discount_percent: float | None) -> float:
    """
    Reduce *amount* by *discount_percent* percent.

    ``None`` behaves as 0 %. Range validation (0–100) happens upstream at the
    API boundary; this function only guards against non-finite values.
    """
    multiplier = 1 - finite_or_zero(discount_percent) / 100
    return finite_or_zero(finite_or_zero(amount) * multiplier)


def line_total(item: LineItem) -> float:
    """Monetary total of one line with its own discount applied."""
    gross = finite_or_zero(item.quantity) * finite_or_zero(item.unit_price)
    return apply_discount(gross, item.discount_percent)


def sum_line_totals(items: Iterable[LineItem]) -> float:
    """Plain sum of line totals; ``0.0`` for an empty iterable."""
    total = 0.0
    for item in items:
        total += line_total(item)
    return finite_or_zero(total)


def document_total(document: Document) -> float:
    """
    Monetary total of one document.

    The document-level discount is applied to the summed line totals and is
    never redistributed into the lines.
    """
    subtotal = sum_line_totals(document.items or ())
    total = apply_discount(subtotal, document.document_discount_percent)
    logger.debug(
        "document_total kind=%s id=%s lines=%d subtotal=%.4f total=%.4f",
        document.kind.value,
        document.id,
        len(document.items or ()),
        subtotal,
        total,
    )
    return total
