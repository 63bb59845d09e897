"""
app/domain package marker.
"""

from app.domain.clients import (
    ClientHistory,
    ClientPortfolioKPIs,
    ClientSummary,
    ClientTag,
    ClientTagConfig,
)
from app.domain.documents import DateInterval, Document, DocumentKind, DocumentSet, LineItem
from app.domain.metrics import (
    KPI,
    AggregateSnapshot,
    KPICounts,
    KPIDelta,
    KPIDeltas,
    MonthlyBucket,
    TimeWindowDelta,
)

__all__ = [
    "AggregateSnapshot",
    "ClientHistory",
    "ClientPortfolioKPIs",
    "ClientSummary",
    "ClientTag",
    "ClientTagConfig",
    "DateInterval",
    "Document",
    "DocumentKind",
    "DocumentSet",
    "KPI",
    "KPICounts",
    "KPIDelta",
    "KPIDeltas",
    "LineItem",
    "MonthlyBucket",
    "TimeWindowDelta",
]
