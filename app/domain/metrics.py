"""
app/domain/metrics.py

Result records produced by the aggregation, KPI and comparison layers.
"""

from __future__ import annotations

from dataclasses import dataclass

from app.numeric import finite_or_zero, safe_divide


@dataclass(frozen=True)
class AggregateSnapshot:
    """
    Scalar financial rollup over a document collection.

    Build it with :meth:`from_totals`, which derives ``total_spent``,
    ``profit``, ``profit_margin`` and ``roi`` and guarantees every field is
    finite.
    """

    total_sales: float = 0.0
    total_purchases: float = 0.0
    total_expenses: float = 0.0
    total_spent: float = 0.0
    profit: float = 0.0
    profit_margin: float = 0.0
    roi: float = 0.0

    @classmethod
    def from_totals(
        cls,
        total_sales: float,
        total_purchases: float,
        total_expenses: float,
    ) -> "AggregateSnapshot":
        sales = finite_or_zero(total_sales)
        purchases = finite_or_zero(total_purchases)
        expenses = finite_or_zero(total_expenses)
        spent = finite_or_zero(purchases + expenses)
        profit = finite_or_zero(sales - spent)
        margin = safe_divide(profit, sales) * 100 if sales > 0 else 0.0
        roi = safe_divide(profit, spent) * 100 if spent > 0 else 0.0
        return cls(
            total_sales=sales,
            total_purchases=purchases,
            total_expenses=expenses,
            total_spent=spent,
            profit=profit,
            profit_margin=finite_or_zero(margin),
            roi=finite_or_zero(roi),
        )


@dataclass(frozen=True)
class KPICounts:
    """
    Supporting counts for KPI derivation.

    ``supplier_entries`` is the number of stock entries received from
    suppliers; together with ``number_of_expenses`` it forms the denominator
    of "Valor Médio de Compra".
    """

    completed_orders: int = 0
    clients_count: int = 0
    number_of_expenses: int = 0
    supplier_entries: int = 0


@dataclass(frozen=True)
class KPI:
    """A named, user-facing metric compared against a target."""

    name: str
    value: float
    target: float
    unit: str
    description: str
    formula: str
    below_target: bool
    is_percentage: bool = False
    is_inverse: bool = False


@dataclass(frozen=True)
class TimeWindowDelta:
    """
    Percentage change between two time-bucketed values.

    ``percent_change`` is ``None`` when there is no baseline to compare
    against (previous value of zero), which is distinct from a real 0 %.
    """

    label: str
    current: float
    previous: float
    percent_change: float | None


@dataclass(frozen=True)
class KPIDelta:
    """Rolling-window and month-over-month variation of one metric."""

    value_30d: float
    pct_30d: float | None
    value_mom: float
    pct_mom: float | None


@dataclass(frozen=True)
class KPIDeltas:
    sales: KPIDelta
    spent: KPIDelta
    profit: KPIDelta
    margin: KPIDelta


@dataclass(frozen=True)
class MonthlyBucket:
    """Sales and spending totals for one calendar month."""

    month_key: str
    label: str
    sales: float = 0.0
    purchases: float = 0.0
    expenses: float = 0.0

    @property
    def spent(self) -> float:
        return self.purchases + self.expenses
