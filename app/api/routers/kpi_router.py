"""
app/api/routers/kpi_router.py

KPI endpoints.

    POST /kpis/compute     – stateless: documents in, snapshot + eight KPIs out
    POST /kpis/compare     – percent change between two values
    GET  /kpis/dashboard   – full dashboard from the database
    GET  /kpis/targets     – effective targets (defaults + saved overrides)
    PUT  /kpis/targets     – save target overrides
"""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.api.dependencies import get_dashboard_service, get_kpi_service, get_reference_date
from app.domain.documents import DocumentKind
from app.domain.metrics import KPICounts
from app.schemas.metrics import (
    ClientPortfolioOut,
    CompareRequest,
    CompareResponse,
    CountsOut,
    DashboardResponse,
    KPIComputeRequest,
    KPIComputeResponse,
    KPIDeltaOut,
    KPIDeltasOut,
    KPIOut,
    KpiTargetsRequest,
    KpiTargetsResponse,
    MonthlyBucketOut,
    SnapshotOut,
    TopClientOut,
)
from app.services.aggregation_service import build_snapshot, count_documents
from app.services.comparison_service import compare
from app.services.dashboard_service import (
    DashboardDataError,
    DashboardPersistenceError,
    DashboardService,
    DashboardSummary,
)
from app.services.kpi_service import KPIService
from app.services.time_windows import PERIOD_ALL_TIME, period_interval
from db.repositories.errors import KpiTargetError
from db.repositories.kpi_target_repository import KpiTargetRepository
from db.session import get_db

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/kpis", tags=["kpi"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _dashboard_response(summary: DashboardSummary) -> DashboardResponse:
    portfolio = summary.portfolio
    return DashboardResponse(
        reference=summary.reference,
        period=summary.period,
        interval_start=summary.interval.start if summary.interval else None,
        interval_end=summary.interval.end if summary.interval else None,
        snapshot=SnapshotOut.from_domain(summary.snapshot),
        counts=CountsOut.from_domain(summary.counts),
        kpis=[KPIOut.from_domain(kpi) for kpi in summary.kpis],
        deltas=KPIDeltasOut(
            sales=KPIDeltaOut.from_domain(summary.deltas.sales),
            spent=KPIDeltaOut.from_domain(summary.deltas.spent),
            profit=KPIDeltaOut.from_domain(summary.deltas.profit),
            margin=KPIDeltaOut.from_domain(summary.deltas.margin),
        ),
        monthly=[MonthlyBucketOut.from_domain(bucket) for bucket in summary.monthly],
        portfolio=ClientPortfolioOut(
            active_clients_30d=portfolio.active_clients_30d,
            new_clients_30d=portfolio.new_clients_30d,
            clients_with_purchases=portfolio.clients_with_purchases,
            total_spent=portfolio.total_spent,
            avg_spent_per_active_client=portfolio.avg_spent_per_active_client,
            top5_percentage=portfolio.top5_percentage,
            inactive_clients_90d=portfolio.inactive_clients_90d,
        ),
        top_clients=[
            TopClientOut(
                client_id=client.client_id,
                name=client.name,
                total_spent=client.total_spent,
                purchase_count=client.history.purchase_count,
                last_purchase_date=client.history.last_purchase_date,
            )
            for client in summary.top_clients
        ],
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post(
    "/compute",
    response_model=KPIComputeResponse,
    status_code=status.HTTP_200_OK,
)
def compute_kpis(
    body: KPIComputeRequest,
    service: KPIService = Depends(get_kpi_service),
) -> KPIComputeResponse:
    """
    Derive the snapshot and the eight KPIs from the documents in the body.

    Raises HTTP 422 for an unknown period or a missing year/month.
    """
    try:
        interval = period_interval(body.period, year=body.year, month=body.month)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc

    sales = [doc.to_domain(DocumentKind.SALE) for doc in body.sales]
    purchases = [doc.to_domain(DocumentKind.PURCHASE) for doc in body.purchases]
    expenses = [doc.to_domain(DocumentKind.EXPENSE) for doc in body.expenses]

    snapshot = build_snapshot(sales, purchases, expenses, interval)
    counts = KPICounts(
        completed_orders=count_documents(sales, interval),
        clients_count=body.clients_count,
        number_of_expenses=count_documents(expenses, interval),
        supplier_entries=count_documents(purchases, interval),
    )
    kpis = service.derive_kpis(snapshot, counts, targets=body.targets)

    return KPIComputeResponse(
        period=body.period,
        snapshot=SnapshotOut.from_domain(snapshot),
        counts=CountsOut.from_domain(counts),
        kpis=[KPIOut.from_domain(kpi) for kpi in kpis],
    )


@router.post(
    "/compare",
    response_model=CompareResponse,
    status_code=status.HTTP_200_OK,
)
def compare_values(body: CompareRequest) -> CompareResponse:
    """``percent_change`` is null when ``previous`` is zero."""
    delta = compare(body.label, body.current, body.previous)
    return CompareResponse(
        label=delta.label,
        current=delta.current,
        previous=delta.previous,
        percent_change=delta.percent_change,
    )


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    status_code=status.HTTP_200_OK,
)
def get_dashboard(
    period: str = Query(default=PERIOD_ALL_TIME),
    year: int | None = Query(default=None, ge=1, le=9999),
    month: int | None = Query(default=None, ge=1, le=12),
    reference: date = Depends(get_reference_date),
    service: DashboardService = Depends(get_dashboard_service),
    db: Session = Depends(get_db),
) -> DashboardResponse:
    """
    Build the statistics dashboard from stored documents.

    Raises HTTP 422 for an unknown period or a missing year/month.
    Raises HTTP 500 when the database cannot be read.
    """
    try:
        summary = service.build(db=db, reference=reference, period=period, year=year, month=month)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except DashboardDataError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Dashboard data unavailable: {exc}",
        ) from exc
    return _dashboard_response(summary)


@router.get(
    "/targets",
    response_model=KpiTargetsResponse,
    status_code=status.HTTP_200_OK,
)
def get_targets(
    service: DashboardService = Depends(get_dashboard_service),
    db: Session = Depends(get_db),
) -> KpiTargetsResponse:
    try:
        saved = KpiTargetRepository(db).load_targets()
    except SQLAlchemyError as exc:
        logger.error("Loading KPI targets failed: %s", exc, exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="KPI targets unavailable.",
        ) from exc
    targets = dict(service.settings.kpi_targets)
    targets.update(saved)
    return KpiTargetsResponse(targets=targets)


@router.put(
    "/targets",
    response_model=KpiTargetsResponse,
    status_code=status.HTTP_200_OK,
)
def put_targets(
    body: KpiTargetsRequest,
    service: DashboardService = Depends(get_dashboard_service),
    db: Session = Depends(get_db),
) -> KpiTargetsResponse:
    """
    Save target overrides. Returns every saved override.

    Raises HTTP 422 for an unknown KPI name or a negative target.
    Raises HTTP 500 when the write fails.
    """
    try:
        saved = service.save_targets(db=db, targets=body.targets)
    except KpiTargetError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except DashboardPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc
    return KpiTargetsResponse(targets=saved)
