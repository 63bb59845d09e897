"""
app/services/aggregation_service.py

Aggregation layer for KPI calculations.

Sums totalized documents across a collection, optionally restricted to a
closed calendar-date interval, and rolls sales, purchases and expenses into
an :class:`AggregateSnapshot`.

Composition rule
----------------
Aggregates compose by addition: ``aggregate(A + B) == aggregate(A) +
aggregate(B)`` for disjoint document lists, so ``total_spent`` is built from
the purchase and expense aggregates instead of being re-derived.

No division by anything other than the guarded snapshot ratios lives here;
KPI formulas belong to the ``kpi`` package and :mod:`app.services.kpi_service`.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, Sequence

from app.domain.documents import DateInterval, Document
from app.domain.metrics import AggregateSnapshot, MonthlyBucket
from app.numeric import finite_or_zero
from app.services.time_windows import month_bounds, shift_month
from app.services.totals_service import document_total

logger = logging.getLogger(__name__)

_MONTH_ABBREVIATIONS: tuple[str, ...] = (
    "jan", "fev", "mar", "abr", "mai", "jun",
    "jul", "ago", "set", "out", "nov", "dez",
)


def active_documents(documents: Iterable[Document]) -> list[Document]:
    """Drop soft-deleted documents."""
    return [doc for doc in documents if not doc.is_deleted]


def filter_by_interval(
    documents: Iterable[Document],
    interval: DateInterval | None,
) -> list[Document]:
    """
    Keep active documents whose date lies in *interval* (both ends inclusive).

    ``None`` keeps every active document.
    """
    kept = active_documents(documents)
    if interval is None:
        return kept
    return [doc for doc in kept if interval.contains(doc.date)]


def aggregate_documents(
    documents: Iterable[Document],
    interval: DateInterval | None = None,
) -> float:
    """
    Sum :func:`document_total` over *documents* within *interval*.

    Returns ``0.0`` for an empty collection.
    """
    selected = filter_by_interval(documents, interval)
    total = 0.0
    for doc in selected:
        total += document_total(doc)
    total = finite_or_zero(total)
    logger.debug(
        "aggregate_documents count=%d interval=%s total=%.4f",
        len(selected),
        f"[{interval.start.isoformat()}, {interval.end.isoformat()}]" if interval else "all",
        total,
    )
    return total


def build_snapshot(
    sales: Iterable[Document],
    purchases: Iterable[Document],
    expenses: Iterable[Document],
    interval: DateInterval | None = None,
) -> AggregateSnapshot:
    """Aggregate the three document collections into one snapshot."""
    return AggregateSnapshot.from_totals(
        total_sales=aggregate_documents(sales, interval),
        total_purchases=aggregate_documents(purchases, interval),
        total_expenses=aggregate_documents(expenses, interval),
    )


def count_documents(
    documents: Iterable[Document],
    interval: DateInterval | None = None,
) -> int:
    """Number of active documents within *interval*."""
    return len(filter_by_interval(documents, interval))


def month_label(year: int, month: int) -> str:
    """Short Portuguese month label, e.g. ``"out. 2026"``."""
    return f"{_MONTH_ABBREVIATIONS[month - 1]}. {year}"


def monthly_series(
    sales: Sequence[Document],
    purchases: Sequence[Document],
    expenses: Sequence[Document],
    reference: date,
    months: int = 6,
) -> list[MonthlyBucket]:
    """
    Per-month totals for the *months* calendar months ending at
    *reference*'s month, oldest first.

    Raises ValueError when *months* is lower than 1.
    """
    if months < 1:
        raise ValueError(f"months must be >= 1, got {months}.")

    buckets: list[MonthlyBucket] = []
    for offset in range(months - 1, -1, -1):
        year, month = shift_month(reference.year, reference.month, -offset)
        interval = month_bounds(year, month)
        buckets.append(
            MonthlyBucket(
                month_key=f"{year:04d}-{month:02d}",
                label=month_label(year, month),
                sales=aggregate_documents(sales, interval),
                purchases=aggregate_documents(purchases, interval),
                expenses=aggregate_documents(expenses, interval),
            )
        )
    return buckets
