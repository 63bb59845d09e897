"""
app/services/comparison_service.py

Time-window comparator.

Formula
-------
percent_change = (current - previous) / previous * 100

``None`` is returned when ``previous`` is zero: there is no baseline, and the
caller must render that differently from a real 0 % change.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Sequence

from app.domain.documents import Document
from app.domain.metrics import AggregateSnapshot, KPIDelta, KPIDeltas, TimeWindowDelta
from app.numeric import finite_or_zero
from app.services.aggregation_service import build_snapshot
from app.services.time_windows import current_month, last_n_days, previous_month, previous_n_days

logger = logging.getLogger(__name__)


def percent_change(current: float, previous: float) -> float | None:
    """
    Relative change from *previous* to *current*, in percent.

    Non-finite inputs are treated as 0. Returns ``None`` when the baseline is
    zero; a negative result means a decline.
    """
    cur = finite_or_zero(current)
    prev = finite_or_zero(previous)
    if prev == 0.0:
        return None
    return finite_or_zero((cur - prev) / prev * 100)


def compare(label: str, current: float, previous: float) -> TimeWindowDelta:
    """Labeled :func:`percent_change`."""
    cur = finite_or_zero(current)
    prev = finite_or_zero(previous)
    return TimeWindowDelta(
        label=label,
        current=cur,
        previous=prev,
        percent_change=percent_change(cur, prev),
    )


def _delta(
    metric: str,
    last_window: AggregateSnapshot,
    previous_window: AggregateSnapshot,
    this_month: AggregateSnapshot,
    last_month: AggregateSnapshot,
) -> KPIDelta:
    value_30d = getattr(last_window, metric)
    value_mom = getattr(this_month, metric)
    return KPIDelta(
        value_30d=value_30d,
        pct_30d=percent_change(value_30d, getattr(previous_window, metric)),
        value_mom=value_mom,
        pct_mom=percent_change(value_mom, getattr(last_month, metric)),
    )


def compute_kpi_deltas(
    sales: Sequence[Document],
    purchases: Sequence[Document],
    expenses: Sequence[Document],
    reference: date,
    window_days: int = 30,
) -> KPIDeltas:
    """
    Rolling-window and month-over-month variation of sales, spending,
    profit and margin.

    Windows (see :mod:`app.services.time_windows`):

    * rolling: last *window_days* days vs the *window_days* days before them;
    * month-over-month: month-to-date vs the whole previous month.
    """
    last_window = build_snapshot(sales, purchases, expenses, last_n_days(reference, window_days))
    previous_window = build_snapshot(sales, purchases, expenses, previous_n_days(reference, window_days))
    this_month = build_snapshot(sales, purchases, expenses, current_month(reference))
    last_month = build_snapshot(sales, purchases, expenses, previous_month(reference))

    deltas = KPIDeltas(
        sales=_delta("total_sales", last_window, previous_window, this_month, last_month),
        spent=_delta("total_spent", last_window, previous_window, this_month, last_month),
        profit=_delta("profit", last_window, previous_window, this_month, last_month),
        margin=_delta("profit_margin", last_window, previous_window, this_month, last_month),
    )
    logger.debug(
        "KPI deltas reference=%s window_days=%d sales_30d=%s sales_mom=%s",
        reference.isoformat(),
        window_days,
        deltas.sales.pct_30d,
        deltas.sales.pct_mom,
    )
    return deltas
