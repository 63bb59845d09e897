"""
tests/test_dashboard_service.py

End-to-end dashboard reads over a seeded SQLite store (see
``tests.factories.seed_store``) with reference date 2026-10-19.
"""

from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from app.config import MetricsSettings
from app.domain.clients import ClientTag
from app.services.dashboard_service import (
    DashboardDataError,
    DashboardPersistenceError,
    DashboardService,
)
from app.services.kpi_service import kpis_by_name
from app.services.time_windows import PERIOD_MONTH
from db.base import Base
from db.repositories import KpiTargetError, KpiTargetRepository
from kpi.retail import (
    AVERAGE_PURCHASE_VALUE,
    AVERAGE_SALE_VALUE,
    CONVERSION_RATE,
    PROFIT_PER_CLIENT,
    TOTAL_PROFIT,
)
from tests.factories import seed_store

REFERENCE = date(2026, 10, 19)


@pytest.fixture()
def service() -> DashboardService:
    return DashboardService(settings=MetricsSettings())


@pytest.fixture()
def seeded(db_session: Session) -> dict:
    return seed_store(db_session)


class TestBuild:
    def test_all_time_snapshot_and_counts(
        self, service: DashboardService, db_session: Session, seeded: dict
    ) -> None:
        summary = service.build(db=db_session, reference=REFERENCE)

        assert summary.interval is None
        assert summary.snapshot.total_sales == pytest.approx(550.0)
        assert summary.snapshot.total_spent == pytest.approx(300.0)
        assert summary.snapshot.profit == pytest.approx(250.0)
        assert summary.snapshot.profit_margin == pytest.approx(250 / 550 * 100)
        assert summary.counts.completed_orders == 3
        assert summary.counts.clients_count == 2
        assert summary.counts.supplier_entries == 1
        assert summary.counts.number_of_expenses == 1

    def test_kpis(self, service: DashboardService, db_session: Session, seeded: dict) -> None:
        kpis = kpis_by_name(service.build(db=db_session, reference=REFERENCE).kpis)

        assert len(kpis) == 8
        assert kpis[TOTAL_PROFIT].value == pytest.approx(250.0)
        assert kpis[CONVERSION_RATE].value == pytest.approx(150.0)
        assert kpis[AVERAGE_SALE_VALUE].value == pytest.approx(550 / 3)
        assert kpis[PROFIT_PER_CLIENT].value == pytest.approx(125.0)
        assert kpis[AVERAGE_PURCHASE_VALUE].value == pytest.approx(150.0)

    def test_month_period(self, service: DashboardService, db_session: Session, seeded: dict) -> None:
        summary = service.build(
            db=db_session, reference=REFERENCE, period=PERIOD_MONTH, year=2026, month=10
        )

        assert summary.interval.start == date(2026, 10, 1)
        assert summary.snapshot.total_sales == pytest.approx(250.0)
        assert summary.snapshot.total_purchases == pytest.approx(200.0)
        assert summary.snapshot.total_expenses == 0.0
        assert summary.counts.completed_orders == 2
        assert summary.counts.number_of_expenses == 0

    def test_deltas(self, service: DashboardService, db_session: Session, seeded: dict) -> None:
        deltas = service.build(db=db_session, reference=REFERENCE).deltas

        assert deltas.sales.value_30d == pytest.approx(250.0)
        assert deltas.sales.pct_30d is None
        # 200 in the last 30 days vs the 100 expense on 2026-09-15
        assert deltas.spent.value_30d == pytest.approx(200.0)
        assert deltas.spent.pct_30d == pytest.approx(100.0)
        assert deltas.sales.pct_mom is None

    def test_monthly_series(self, service: DashboardService, db_session: Session, seeded: dict) -> None:
        monthly = service.build(db=db_session, reference=REFERENCE).monthly

        assert [bucket.month_key for bucket in monthly] == [
            "2026-05",
            "2026-06",
            "2026-07",
            "2026-08",
            "2026-09",
            "2026-10",
        ]
        assert monthly[3].sales == pytest.approx(300.0)
        assert monthly[4].spent == pytest.approx(100.0)
        assert monthly[5].sales == pytest.approx(250.0)

    def test_portfolio_and_top_clients(
        self, service: DashboardService, db_session: Session, seeded: dict
    ) -> None:
        summary = service.build(db=db_session, reference=REFERENCE)

        assert summary.portfolio.active_clients_30d == 2
        assert summary.portfolio.new_clients_30d == 1
        assert summary.portfolio.total_spent == pytest.approx(550.0)
        assert [c.name for c in summary.top_clients] == ["Ana", "Bruno"]
        assert summary.top_clients[0].total_spent == pytest.approx(500.0)

    def test_saved_targets_override_defaults(
        self, service: DashboardService, db_session: Session, seeded: dict
    ) -> None:
        before = kpis_by_name(service.build(db=db_session, reference=REFERENCE).kpis)
        assert before[TOTAL_PROFIT].below_target is True

        service.save_targets(db=db_session, targets={TOTAL_PROFIT: 200})
        after = kpis_by_name(service.build(db=db_session, reference=REFERENCE).kpis)

        assert after[TOTAL_PROFIT].target == 200.0
        assert after[TOTAL_PROFIT].below_target is False

    def test_invalid_period_fails_before_query(self, service: DashboardService, db_session: Session) -> None:
        with pytest.raises(ValueError):
            service.build(db=db_session, reference=REFERENCE, period=PERIOD_MONTH, year=2026)

    def test_database_failure(self, service: DashboardService, db_session: Session) -> None:
        Base.metadata.drop_all(db_session.get_bind())
        with pytest.raises(DashboardDataError):
            service.build(db=db_session, reference=REFERENCE)


class TestClientTags:
    def test_tags_live_clients(self, service: DashboardService, db_session: Session, seeded: dict) -> None:
        tags = service.client_tags(db=db_session, reference=REFERENCE)

        assert tags == {
            str(seeded["ana"].id): ClientTag.RECORRENTE,
            str(seeded["bruno"].id): ClientTag.NOVO,
        }

    def test_database_failure(self, service: DashboardService, db_session: Session) -> None:
        Base.metadata.drop_all(db_session.get_bind())
        with pytest.raises(DashboardDataError):
            service.client_tags(db=db_session, reference=REFERENCE)


class TestSaveTargets:
    def test_commits(self, service: DashboardService, db_session: Session) -> None:
        saved = service.save_targets(db=db_session, targets={TOTAL_PROFIT: 5000})
        db_session.rollback()
        assert saved == {TOTAL_PROFIT: 5000.0}
        assert KpiTargetRepository(db_session).load_targets() == {TOTAL_PROFIT: 5000.0}

    def test_invalid_payload(self, service: DashboardService, db_session: Session) -> None:
        with pytest.raises(KpiTargetError):
            service.save_targets(db=db_session, targets={"Churn": 1})

    def test_write_failure_rolls_back(
        self,
        service: DashboardService,
        db_session: Session,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        def _fail(self, targets):
            raise OperationalError("INSERT", {}, Exception("disk full"))

        monkeypatch.setattr(KpiTargetRepository, "upsert_targets", _fail)
        with pytest.raises(DashboardPersistenceError):
            service.save_targets(db=db_session, targets={TOTAL_PROFIT: 1})
