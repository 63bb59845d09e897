"""
app/mappers/document_mapper.py

Conversion of raw backend records into typed documents.

Rows arrive as loosely-typed mappings (ORM rows turned into dicts, or JSON
payloads from the backend) whose field names differ per table::

    stock_exits    + stock_exit_items   (sale_price)       → DocumentKind.SALE
    stock_entries  + stock_entry_items  (purchase_price)   → DocumentKind.PURCHASE
    expenses       + expense_items      (unit_price)       → DocumentKind.EXPENSE

Field presence checks and numeric coercion happen here, once, so the
totalizer and aggregator can work with :class:`Document` directly. Rows with
no usable date cannot be bucketed and are rejected with
:class:`DocumentMappingError`; :func:`map_documents` skips them with a
warning.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Sequence

from app.domain.documents import Document, DocumentKind, LineItem
from app.numeric import finite_or_zero

logger = logging.getLogger(__name__)

ITEM_COLLECTION_ALIASES: dict[DocumentKind, tuple[str, ...]] = {
    DocumentKind.SALE: ("items", "stock_exit_items"),
    DocumentKind.PURCHASE: ("items", "stock_entry_items"),
    DocumentKind.EXPENSE: ("items", "expense_items"),
}

UNIT_PRICE_ALIASES: dict[DocumentKind, tuple[str, ...]] = {
    DocumentKind.SALE: ("unit_price", "sale_price", "salePrice"),
    DocumentKind.PURCHASE: ("unit_price", "purchase_price", "purchasePrice"),
    DocumentKind.EXPENSE: ("unit_price", "unitPrice"),
}

COUNTERPARTY_ALIASES: dict[DocumentKind, tuple[str, ...]] = {
    DocumentKind.SALE: ("counterparty_id", "client_id", "clientId"),
    DocumentKind.PURCHASE: ("counterparty_id", "supplier_id", "supplierId"),
    DocumentKind.EXPENSE: ("counterparty_id", "supplier_id", "supplierId"),
}

LINE_DISCOUNT_ALIASES: tuple[str, ...] = ("discount_percent", "discountPercent")
DOCUMENT_DISCOUNT_ALIASES: tuple[str, ...] = ("document_discount_percent", "discount")
DATE_ALIASES: tuple[str, ...] = ("date", "created_at")
DELETED_AT_ALIASES: tuple[str, ...] = ("deleted_at", "deletedAt")


class DocumentMappingError(ValueError):
    """
    Raised when a raw record cannot be turned into a document.
    """

    def __init__(self, message: str, record_id: Any = None) -> None:
        super().__init__(message)
        self.record_id = record_id


def _first(row: Mapping[str, Any], aliases: Sequence[str]) -> Any:
    for key in aliases:
        if key in row and row[key] is not None:
            return row[key]
    return None


def _optional_percent(value: Any) -> float | None:
    if value is None:
        return None
    return finite_or_zero(value)


def to_date(value: Any) -> date | None:
    """
    Normalise a date, datetime or ISO-8601 string to a calendar date.

    Time-of-day is dropped. Returns ``None`` for anything unparseable.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError:
            return None
    return None


def to_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    return None


def map_line_item(kind: DocumentKind, row: Mapping[str, Any]) -> LineItem:
    """Map one raw item row; missing or non-finite numbers become 0."""
    return LineItem(
        quantity=finite_or_zero(row.get("quantity")),
        unit_price=finite_or_zero(_first(row, UNIT_PRICE_ALIASES[kind])),
        discount_percent=_optional_percent(_first(row, LINE_DISCOUNT_ALIASES)),
    )


def map_document(kind: DocumentKind, row: Mapping[str, Any]) -> Document:
    """
    Map one raw document row with its nested items.

    Raises
    ------
    DocumentMappingError
        The row has no parseable date.
    """
    record_id = row.get("id")
    day = to_date(_first(row, DATE_ALIASES))
    if day is None:
        raise DocumentMappingError(
            f"{kind.value} record {record_id!r} has no valid date.",
            record_id=record_id,
        )

    raw_items = _first(row, ITEM_COLLECTION_ALIASES[kind]) or ()
    items = tuple(
        map_line_item(kind, item)
        for item in raw_items
        if isinstance(item, Mapping)
    )
    counterparty = _first(row, COUNTERPARTY_ALIASES[kind])

    return Document(
        kind=kind,
        items=items,
        date=day,
        document_discount_percent=_optional_percent(_first(row, DOCUMENT_DISCOUNT_ALIASES)),
        id=str(record_id) if record_id is not None else None,
        counterparty_id=str(counterparty) if counterparty is not None else None,
        deleted_at=to_datetime(_first(row, DELETED_AT_ALIASES)),
    )


def map_documents(kind: DocumentKind, rows: Iterable[Mapping[str, Any]]) -> list[Document]:
    """
    Map a batch of rows, skipping (and logging) the ones without a date.
    """
    documents: list[Document] = []
    skipped = 0
    for row in rows:
        try:
            documents.append(map_document(kind, row))
        except DocumentMappingError as exc:
            skipped += 1
            logger.warning("Skipping %s record %r: %s", kind.value, exc.record_id, exc)
    if skipped:
        logger.info("Mapped %d %s records, skipped %d", len(documents), kind.value, skipped)
    return documents
