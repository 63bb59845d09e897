"""
db/repositories/document_repository.py

Read access to sales, purchases and expenses, plus soft-delete / restore.

Rows are loaded with their items and converted to plain mappings before being
handed to :mod:`app.mappers.document_mapper`, so nothing returned from here
is bound to the session. The caller controls commit/rollback; this
repository never commits on its own.
"""

from __future__ import annotations

import logging
import uuid
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from app.domain.clients import ClientHistory
from app.domain.documents import Document, DocumentKind
from app.mappers.document_mapper import map_documents
from db.base import STATUS_ACTIVE
from db.models.client import Client
from db.models.documents import Expense, StockEntry, StockExit
from db.repositories.errors import DocumentNotFoundError
from db.repositories.types import ClientRow, SaleRef

logger = logging.getLogger(__name__)

DOCUMENT_MODELS: dict[DocumentKind, type] = {
    DocumentKind.SALE: StockExit,
    DocumentKind.PURCHASE: StockEntry,
    DocumentKind.EXPENSE: Expense,
}


def _columns_as_dict(row: Any) -> dict[str, Any]:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


def _document_as_dict(row: Any) -> dict[str, Any]:
    payload = _columns_as_dict(row)
    payload["items"] = [_columns_as_dict(item) for item in row.items]
    return payload


def _as_date(value: datetime | date) -> date:
    return value.date() if isinstance(value, datetime) else value


def _parse_id(document_id: uuid.UUID | str) -> uuid.UUID:
    if isinstance(document_id, uuid.UUID):
        return document_id
    try:
        return uuid.UUID(str(document_id))
    except ValueError as exc:
        raise DocumentNotFoundError(f"Invalid document id: {document_id!r}") from exc


class DocumentRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def list_documents(self, kind: DocumentKind) -> list[Document]:
        """
        Return every live document of ``kind``, oldest first.

        Soft-deleted rows (``deleted_at`` set) and rows whose status is not
        active are filtered in SQL.
        """
        model = DOCUMENT_MODELS[kind]
        stmt = (
            select(model)
            .where(model.deleted_at.is_(None), model.status == STATUS_ACTIVE)
            .options(selectinload(model.items))
            .order_by(model.date, model.id)
        )
        rows = self._session.scalars(stmt).all()
        documents = map_documents(kind, (_document_as_dict(row) for row in rows))
        logger.debug("Loaded %d %s documents", len(documents), kind.value)
        return documents

    def soft_delete(
        self,
        kind: DocumentKind,
        document_id: uuid.UUID | str,
        at: datetime | None = None,
    ) -> Any:
        """
        Mark a document as deleted. It stops counting in every aggregate.

        Raises
        ------
        DocumentNotFoundError
            No document of ``kind`` has that id.
        """
        row = self._get(kind, document_id)
        row.deleted_at = at or datetime.now(tz=timezone.utc)
        self._session.flush()
        logger.info("Soft-deleted %s %s", kind.value, row.id)
        return row

    def restore(self, kind: DocumentKind, document_id: uuid.UUID | str) -> Any:
        """Clear ``deleted_at`` so the document counts again."""
        row = self._get(kind, document_id)
        row.deleted_at = None
        row.status = STATUS_ACTIVE
        self._session.flush()
        logger.info("Restored %s %s", kind.value, row.id)
        return row

    def _get(self, kind: DocumentKind, document_id: uuid.UUID | str) -> Any:
        model = DOCUMENT_MODELS[kind]
        row = self._session.get(model, _parse_id(document_id))
        if row is None:
            raise DocumentNotFoundError(f"{kind.value} not found: {document_id}")
        return row

    # ------------------------------------------------------------------
    # Clients
    # ------------------------------------------------------------------

    def count_clients(self) -> int:
        stmt = select(func.count(Client.id)).where(
            Client.deleted_at.is_(None),
            Client.status == STATUS_ACTIVE,
        )
        return int(self._session.scalar(stmt) or 0)

    def list_clients(self) -> list[ClientRow]:
        stmt = (
            select(Client.id, Client.name, Client.created_at)
            .where(Client.deleted_at.is_(None), Client.status == STATUS_ACTIVE)
            .order_by(Client.name)
        )
        return [
            ClientRow(client_id=str(client_id), name=name, created_at=_as_date(created_at))
            for client_id, name, created_at in self._session.execute(stmt)
        ]

    def list_sale_refs(self) -> list[SaleRef]:
        """Client id and date of every live sale that has a client."""
        stmt = select(StockExit.client_id, StockExit.date).where(
            StockExit.deleted_at.is_(None),
            StockExit.status == STATUS_ACTIVE,
            StockExit.client_id.is_not(None),
        )
        return [
            SaleRef(client_id=str(client_id), date=_as_date(day))
            for client_id, day in self._session.execute(stmt)
        ]

    def client_histories(self) -> dict[str, ClientHistory]:
        """
        Build the segmentation input for every live client.

        Clients without sales get an empty history.
        """
        purchase_dates: dict[str, list[date]] = defaultdict(list)
        for ref in self.list_sale_refs():
            purchase_dates[ref.client_id].append(ref.date)

        return {
            client.client_id: ClientHistory(
                created_at=client.created_at,
                purchase_dates=tuple(sorted(purchase_dates.get(client.client_id, ()))),
            )
            for client in self.list_clients()
        }
