"""
app/schemas/metrics.py

Request and response schemas for the KPI endpoints.

Range checks on quantities, prices and discounts live here, at the API
boundary; the numeric core only guards against non-finite values.
"""

from __future__ import annotations

import datetime as dt
from datetime import date, datetime

from pydantic import BaseModel, Field

from app.domain.documents import Document, DocumentKind, LineItem
from app.domain.metrics import KPI, AggregateSnapshot, KPICounts, KPIDelta, MonthlyBucket
from app.services.kpi_service import UNIT_CURRENCY, kpi_progress
from app.services.time_windows import PERIOD_ALL_TIME
from app.utils.formatting import format_eur, format_percent


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class LineItemIn(BaseModel):
    quantity: float = Field(..., ge=0)
    unit_price: float = Field(..., ge=0)
    discount_percent: float | None = Field(default=None, ge=0, le=100)

    def to_domain(self) -> LineItem:
        return LineItem(
            quantity=self.quantity,
            unit_price=self.unit_price,
            discount_percent=self.discount_percent,
        )


class DocumentIn(BaseModel):
    date: dt.date
    items: list[LineItemIn] = Field(default_factory=list)
    document_discount_percent: float | None = Field(default=None, ge=0, le=100)
    id: str | None = None
    counterparty_id: str | None = None
    deleted_at: datetime | None = None

    def to_domain(self, kind: DocumentKind) -> Document:
        return Document(
            kind=kind,
            items=tuple(item.to_domain() for item in self.items),
            date=self.date,
            document_discount_percent=self.document_discount_percent,
            id=self.id,
            counterparty_id=self.counterparty_id,
            deleted_at=self.deleted_at,
        )


# ---------------------------------------------------------------------------
# Aggregates and KPIs
# ---------------------------------------------------------------------------


class SnapshotOut(BaseModel):
    total_sales: float
    total_purchases: float
    total_expenses: float
    total_spent: float
    profit: float
    profit_margin: float
    roi: float

    @classmethod
    def from_domain(cls, snapshot: AggregateSnapshot) -> "SnapshotOut":
        return cls(
            total_sales=snapshot.total_sales,
            total_purchases=snapshot.total_purchases,
            total_expenses=snapshot.total_expenses,
            total_spent=snapshot.total_spent,
            profit=snapshot.profit,
            profit_margin=snapshot.profit_margin,
            roi=snapshot.roi,
        )


class CountsOut(BaseModel):
    completed_orders: int = Field(..., ge=0)
    clients_count: int = Field(..., ge=0)
    number_of_expenses: int = Field(..., ge=0)
    supplier_entries: int = Field(..., ge=0)

    @classmethod
    def from_domain(cls, counts: KPICounts) -> "CountsOut":
        return cls(
            completed_orders=counts.completed_orders,
            clients_count=counts.clients_count,
            number_of_expenses=counts.number_of_expenses,
            supplier_entries=counts.supplier_entries,
        )


class KPIOut(BaseModel):
    name: str
    value: float
    target: float
    unit: str
    description: str
    formula: str
    below_target: bool
    is_percentage: bool
    is_inverse: bool
    progress: float = Field(..., ge=0, le=100)
    display_value: str

    @classmethod
    def from_domain(cls, kpi: KPI) -> "KPIOut":
        display = format_eur(kpi.value) if kpi.unit == UNIT_CURRENCY else format_percent(kpi.value)
        return cls(
            name=kpi.name,
            value=kpi.value,
            target=kpi.target,
            unit=kpi.unit,
            description=kpi.description,
            formula=kpi.formula,
            below_target=kpi.below_target,
            is_percentage=kpi.is_percentage,
            is_inverse=kpi.is_inverse,
            progress=max(kpi_progress(kpi), 0.0),
            display_value=display,
        )


class KPIComputeRequest(BaseModel):
    """
    Stateless KPI computation over documents supplied in the request.

    ``completed_orders``, ``supplier_entries`` and ``number_of_expenses``
    are counted from the documents within the period.
    """

    sales: list[DocumentIn] = Field(default_factory=list)
    purchases: list[DocumentIn] = Field(default_factory=list)
    expenses: list[DocumentIn] = Field(default_factory=list)
    clients_count: int = Field(default=0, ge=0)
    period: str = PERIOD_ALL_TIME
    year: int | None = Field(default=None, ge=1, le=9999)
    month: int | None = Field(default=None, ge=1, le=12)
    targets: dict[str, float] | None = None


class KPIComputeResponse(BaseModel):
    period: str
    snapshot: SnapshotOut
    counts: CountsOut
    kpis: list[KPIOut]


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


class CompareRequest(BaseModel):
    current: float
    previous: float
    label: str = ""


class CompareResponse(BaseModel):
    label: str
    current: float
    previous: float
    percent_change: float | None = Field(
        default=None,
        description="null when the previous value is zero (no baseline).",
    )


class KPIDeltaOut(BaseModel):
    value_30d: float
    pct_30d: float | None
    value_mom: float
    pct_mom: float | None

    @classmethod
    def from_domain(cls, delta: KPIDelta) -> "KPIDeltaOut":
        return cls(
            value_30d=delta.value_30d,
            pct_30d=delta.pct_30d,
            value_mom=delta.value_mom,
            pct_mom=delta.pct_mom,
        )


class KPIDeltasOut(BaseModel):
    sales: KPIDeltaOut
    spent: KPIDeltaOut
    profit: KPIDeltaOut
    margin: KPIDeltaOut


class MonthlyBucketOut(BaseModel):
    month_key: str
    label: str
    sales: float
    purchases: float
    expenses: float
    spent: float

    @classmethod
    def from_domain(cls, bucket: MonthlyBucket) -> "MonthlyBucketOut":
        return cls(
            month_key=bucket.month_key,
            label=bucket.label,
            sales=bucket.sales,
            purchases=bucket.purchases,
            expenses=bucket.expenses,
            spent=bucket.spent,
        )


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


class ClientPortfolioOut(BaseModel):
    active_clients_30d: int
    new_clients_30d: int
    clients_with_purchases: int
    total_spent: float
    avg_spent_per_active_client: float
    top5_percentage: float
    inactive_clients_90d: int


class TopClientOut(BaseModel):
    client_id: str
    name: str
    total_spent: float
    purchase_count: int
    last_purchase_date: date | None = None


class DashboardResponse(BaseModel):
    reference: date
    period: str
    interval_start: date | None = None
    interval_end: date | None = None
    snapshot: SnapshotOut
    counts: CountsOut
    kpis: list[KPIOut]
    deltas: KPIDeltasOut
    monthly: list[MonthlyBucketOut]
    portfolio: ClientPortfolioOut
    top_clients: list[TopClientOut] = Field(default_factory=list)


class KpiTargetsRequest(BaseModel):
    targets: dict[str, float] = Field(..., min_length=1)


class KpiTargetsResponse(BaseModel):
    targets: dict[str, float] = Field(default_factory=dict)
