"""
tests/test_document_repository.py

Repository reads and writes against an in-memory SQLite database.
"""

from __future__ import annotations

import math
import uuid
from datetime import date, datetime, timezone

import pytest
from sqlalchemy.orm import Session

from app.domain.documents import DocumentKind
from app.services.totals_service import document_total
from db.models import StockExit
from db.repositories import (
    DocumentNotFoundError,
    DocumentRepository,
    KpiTargetError,
    KpiTargetRepository,
)
from kpi.retail import ROI, TOTAL_PROFIT
from tests.factories import add_client, add_expense, add_purchase, add_sale, seed_store


class TestListDocuments:
    def test_maps_rows_with_items_and_discounts(self, db_session: Session) -> None:
        client = add_client(db_session, "Ana", date(2026, 1, 1))
        row = add_sale(db_session, date(2026, 10, 3), (2, 10, 50), (1, 5), client=client, discount=10)

        [document] = DocumentRepository(db_session).list_documents(DocumentKind.SALE)

        assert document.id == str(row.id)
        assert document.counterparty_id == str(client.id)
        assert document.date == date(2026, 10, 3)
        assert len(document.items) == 2
        # (2 * 10 * 0.5 + 5) * 0.9
        assert document_total(document) == pytest.approx(13.5)

    def test_excludes_deleted_and_inactive(self, db_session: Session) -> None:
        add_purchase(db_session, date(2026, 10, 1), (1, 10))
        add_purchase(
            db_session,
            date(2026, 10, 2),
            (1, 20),
            deleted_at=datetime(2026, 10, 3, tzinfo=timezone.utc),
        )
        add_purchase(db_session, date(2026, 10, 4), (1, 30), status="archived")

        documents = DocumentRepository(db_session).list_documents(DocumentKind.PURCHASE)
        assert [document_total(d) for d in documents] == [pytest.approx(10.0)]

    def test_ordered_by_date(self, db_session: Session) -> None:
        add_expense(db_session, date(2026, 10, 9), (1, 1))
        add_expense(db_session, date(2026, 3, 1), (1, 2))
        add_expense(db_session, date(2026, 7, 4), (1, 3))

        documents = DocumentRepository(db_session).list_documents(DocumentKind.EXPENSE)
        assert [d.date.month for d in documents] == [3, 7, 10]


class TestSoftDelete:
    def test_soft_delete_then_restore(self, db_session: Session) -> None:
        row = add_sale(db_session, date(2026, 10, 1), (1, 100))
        repo = DocumentRepository(db_session)

        repo.soft_delete(DocumentKind.SALE, str(row.id))
        assert repo.list_documents(DocumentKind.SALE) == []
        assert db_session.get(StockExit, row.id).deleted_at is not None

        repo.restore(DocumentKind.SALE, row.id)
        assert len(repo.list_documents(DocumentKind.SALE)) == 1

    def test_unknown_id(self, db_session: Session) -> None:
        repo = DocumentRepository(db_session)
        with pytest.raises(DocumentNotFoundError):
            repo.soft_delete(DocumentKind.SALE, uuid.uuid4())

    def test_malformed_id(self, db_session: Session) -> None:
        with pytest.raises(DocumentNotFoundError):
            DocumentRepository(db_session).restore(DocumentKind.EXPENSE, "not-a-uuid")

    def test_wrong_kind_is_not_found(self, db_session: Session) -> None:
        row = add_sale(db_session, date(2026, 10, 1), (1, 100))
        with pytest.raises(DocumentNotFoundError):
            DocumentRepository(db_session).soft_delete(DocumentKind.PURCHASE, row.id)


class TestClients:
    def test_count_and_list_skip_deleted(self, db_session: Session) -> None:
        seed_store(db_session)
        repo = DocumentRepository(db_session)

        assert repo.count_clients() == 2
        rows = repo.list_clients()
        assert [row.name for row in rows] == ["Ana", "Bruno"]
        assert rows[0].created_at == date(2026, 1, 10)

    def test_client_histories(self, db_session: Session) -> None:
        clients = seed_store(db_session)
        quiet = add_client(db_session, "Duarte", date(2026, 9, 1))

        histories = DocumentRepository(db_session).client_histories()

        ana = histories[str(clients["ana"].id)]
        assert ana.purchase_dates == (date(2026, 8, 1), date(2026, 10, 5))
        assert histories[str(quiet.id)].purchase_dates == ()
        assert str(clients["carla"].id) not in histories

    def test_sale_refs_skip_anonymous_and_deleted(self, db_session: Session) -> None:
        seed_store(db_session)
        add_sale(db_session, date(2026, 10, 15), (1, 10))

        refs = DocumentRepository(db_session).list_sale_refs()
        assert sorted(ref.date for ref in refs) == [
            date(2026, 8, 1),
            date(2026, 10, 5),
            date(2026, 10, 12),
        ]


class TestKpiTargets:
    def test_insert_then_update(self, db_session: Session) -> None:
        repo = KpiTargetRepository(db_session)
        assert repo.load_targets() == {}

        assert repo.upsert_targets({TOTAL_PROFIT: 2500}) == {TOTAL_PROFIT: 2500.0}
        saved = repo.upsert_targets({TOTAL_PROFIT: 3000, ROI: 15.5})
        assert saved == {TOTAL_PROFIT: 3000.0, ROI: 15.5}

    @pytest.mark.parametrize(
        "payload",
        [
            {"Churn": 1},
            {ROI: -1},
            {ROI: math.nan},
            {ROI: "ten"},
        ],
    )
    def test_rejects_invalid(self, db_session: Session, payload: dict) -> None:
        with pytest.raises(KpiTargetError):
            KpiTargetRepository(db_session).upsert_targets(payload)

    def test_invalid_payload_writes_nothing(self, db_session: Session) -> None:
        repo = KpiTargetRepository(db_session)
        with pytest.raises(KpiTargetError):
            repo.upsert_targets({TOTAL_PROFIT: 100, "Churn": 1})
        assert repo.load_targets() == {}
