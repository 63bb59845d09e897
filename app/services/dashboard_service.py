"""
app/services/dashboard_service.py

Dashboard pipeline orchestrator.

Wires DocumentRepository → totals/aggregation → KPIService, the comparator
and client segmentation into one read of the statistics dashboard. No
business logic lives here; every layer keeps its own responsibility:

    DocumentRepository    – SQL reads, soft-delete filtering, row mapping
    aggregation_service   – document totals, snapshot, monthly series
    KPIService            – the eight KPIs against their targets
    comparison_service    – rolling-window and month-over-month deltas
    segmentation          – lifecycle tags and portfolio indicators

Failure contract
----------------
- Unknown period / missing year or month → ValueError, before any query
- Database read failure                  → DashboardDataError
- Target save failure                    → DashboardPersistenceError after rollback
- Invalid target payload                 → KpiTargetError (nothing written)
"""

from __future__ import annotations

import logging
import time
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Mapping, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import MetricsSettings, get_metrics_settings
from app.domain.clients import (
    ClientPortfolioKPIs,
    ClientSummary,
    ClientTag,
    ClientTagConfig,
)
from app.domain.documents import DateInterval, Document, DocumentKind, DocumentSet
from app.domain.metrics import KPI, AggregateSnapshot, KPICounts, KPIDeltas, MonthlyBucket
from app.services.aggregation_service import build_snapshot, count_documents, monthly_series
from app.services.comparison_service import compute_kpi_deltas
from app.services.kpi_service import KPIService, apply_target_overrides
from app.services.time_windows import PERIOD_ALL_TIME, period_interval
from app.services.totals_service import document_total
from db.repositories.document_repository import DocumentRepository
from db.repositories.kpi_target_repository import KpiTargetRepository
from db.repositories.types import ClientRow
from segmentation.client_portfolio import compute_client_portfolio, top_clients
from segmentation.client_tags import classify_clients

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class DashboardDataError(RuntimeError):
    """
    Raised when documents, clients or targets cannot be read.

    No writes happen on the read path, so the session needs no rollback.
    """


class DashboardPersistenceError(RuntimeError):
    """
    Raised when KPI targets cannot be saved.

    The session has been rolled back before this exception is raised.
    """


# ---------------------------------------------------------------------------
# Result dataclass
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DashboardSummary:
    """
    Everything the statistics page shows for one reference date.

    Attributes
    ----------
    reference:
        "Today" for every window computed here.
    period:
        Time filter the snapshot and KPIs were computed over.
    interval:
        Closed date interval of ``period``; ``None`` for all-time.
    snapshot, counts, kpis:
        Aggregates, supporting counts and the eight KPIs for ``interval``.
        KPI targets already include saved overrides.
    deltas:
        Rolling-window and month-over-month variation, independent of
        ``period``.
    monthly:
        Per-month totals, oldest first.
    portfolio, top_clients:
        Client indicators over all live sales.
    """

    reference: date
    period: str
    interval: DateInterval | None
    snapshot: AggregateSnapshot
    counts: KPICounts
    kpis: list[KPI]
    deltas: KPIDeltas
    monthly: list[MonthlyBucket]
    portfolio: ClientPortfolioKPIs
    top_clients: list[ClientSummary]


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class DashboardService:
    """
    Builds dashboard summaries from the database.

    Repositories are instantiated per call because they are bound to a
    request-scoped session.
    """

    def __init__(
        self,
        settings: MetricsSettings | None = None,
        kpi_service: KPIService | None = None,
    ) -> None:
        self._settings = settings or get_metrics_settings()
        self._kpi_service = kpi_service or KPIService(default_targets=self._settings.kpi_targets)

    @property
    def settings(self) -> MetricsSettings:
        return self._settings

    # ------------------------------------------------------------------
    # Public entry points
    # ------------------------------------------------------------------

    def build(
        self,
        *,
        db: Session,
        reference: date,
        period: str = PERIOD_ALL_TIME,
        year: int | None = None,
        month: int | None = None,
    ) -> DashboardSummary:
        """
        Compute the dashboard for *reference*.

        Raises
        ------
        ValueError
            Unknown ``period``, or ``year`` / ``month`` missing for it.
        DashboardDataError
            A database read failed.
        """
        interval = period_interval(period, year=year, month=month)

        run_start = time.monotonic()
        documents, clients_count, client_rows, saved_targets = self._fetch(db)

        snapshot = build_snapshot(documents.sales, documents.purchases, documents.expenses, interval)
        counts = KPICounts(
            completed_orders=count_documents(documents.sales, interval),
            clients_count=clients_count,
            number_of_expenses=count_documents(documents.expenses, interval),
            supplier_entries=count_documents(documents.purchases, interval),
        )
        kpis = apply_target_overrides(self._kpi_service.derive_kpis(snapshot, counts), saved_targets)

        deltas = compute_kpi_deltas(
            documents.sales,
            documents.purchases,
            documents.expenses,
            reference,
            window_days=self._settings.comparison_window_days,
        )
        monthly = monthly_series(
            documents.sales,
            documents.purchases,
            documents.expenses,
            reference,
            months=self._settings.monthly_series_months,
        )

        summaries = build_client_summaries(client_rows, documents.sales)
        portfolio = compute_client_portfolio(summaries, reference)
        ranked = top_clients(summaries, self._settings.top_clients_limit)

        logger.info(
            "Dashboard built reference=%s period=%s sales=%d purchases=%d expenses=%d "
            "clients=%d elapsed=%.3fs",
            reference.isoformat(),
            period,
            len(documents.sales),
            len(documents.purchases),
            len(documents.expenses),
            clients_count,
            time.monotonic() - run_start,
        )

        return DashboardSummary(
            reference=reference,
            period=period,
            interval=interval,
            snapshot=snapshot,
            counts=counts,
            kpis=kpis,
            deltas=deltas,
            monthly=monthly,
            portfolio=portfolio,
            top_clients=ranked,
        )

    def client_tags(self, *, db: Session, reference: date) -> dict[str, ClientTag]:
        """
        Tag every live client as of *reference*.

        Raises
        ------
        DashboardDataError
            A database read failed.
        """
        try:
            histories = DocumentRepository(db).client_histories()
        except SQLAlchemyError as exc:
            logger.error("client_tags failed: %s", exc, exc_info=True)
            raise DashboardDataError(f"Failed to load client histories: {exc}") from exc

        config = ClientTagConfig(inactivity_months=self._settings.inactivity_months)
        return classify_clients(histories, reference, config)

    def save_targets(self, *, db: Session, targets: Mapping[str, float]) -> dict[str, float]:
        """
        Upsert KPI target overrides and commit.

        Returns every saved override after the write.

        Raises
        ------
        KpiTargetError
            Unknown KPI name or invalid value; nothing is written.
        DashboardPersistenceError
            The write or commit failed.
        """
        repository = KpiTargetRepository(db)
        try:
            saved = repository.upsert_targets(targets)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("save_targets failed: %s", exc, exc_info=True)
            raise DashboardPersistenceError(f"Failed to save KPI targets: {exc}") from exc
        logger.info("Saved KPI targets: %s", sorted(targets))
        return saved

    # ------------------------------------------------------------------
    # Internal: fetch
    # ------------------------------------------------------------------

    def _fetch(
        self,
        db: Session,
    ) -> tuple[DocumentSet, int, list[ClientRow], dict[str, float]]:
        documents_repo = DocumentRepository(db)
        targets_repo = KpiTargetRepository(db)
        try:
            documents = DocumentSet(
                sales=documents_repo.list_documents(DocumentKind.SALE),
                purchases=documents_repo.list_documents(DocumentKind.PURCHASE),
                expenses=documents_repo.list_documents(DocumentKind.EXPENSE),
            )
            clients_count = documents_repo.count_clients()
            client_rows = documents_repo.list_clients()
            saved_targets = targets_repo.load_targets()
        except SQLAlchemyError as exc:
            logger.error("Dashboard fetch failed: %s", exc, exc_info=True)
            raise DashboardDataError(f"Failed to load dashboard data: {exc}") from exc
        return documents, clients_count, client_rows, saved_targets


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def build_client_summaries(
    clients: Sequence[ClientRow],
    sales: Sequence[Document],
) -> list[ClientSummary]:
    """
    Attach purchase dates and total spent to every client.

    Sales without a client, or for a client not in *clients*, are ignored.
    Soft-deleted sales never count.
    """
    dates: dict[str, list[date]] = defaultdict(list)
    spent: dict[str, float] = defaultdict(float)
    for sale in sales:
        if sale.is_deleted or sale.counterparty_id is None:
            continue
        dates[sale.counterparty_id].append(sale.date)
        spent[sale.counterparty_id] += document_total(sale)

    return [
        ClientSummary(
            client_id=client.client_id,
            name=client.name,
            created_at=client.created_at,
            purchase_dates=tuple(sorted(dates.get(client.client_id, ()))),
            total_spent=spent.get(client.client_id, 0.0),
        )
        for client in clients
    ]
