"""
app/domain/documents.py

Transactional records consumed by the totalizer and the aggregator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Sequence


class DocumentKind(str, Enum):
    """Kind of transactional document."""

    SALE = "sale"
    PURCHASE = "purchase"
    EXPENSE = "expense"


@dataclass(frozen=True)
class LineItem:
    """
    One product or service line within a document.

    ``discount_percent`` is optional; ``None`` means no line discount.
    """

    quantity: float
    unit_price: float
    discount_percent: float | None = None


@dataclass(frozen=True)
class Document:
    """
    A sale, purchase or expense.

    The document-level discount is applied once, after the line totals have
    been summed. A document with ``deleted_at`` set is soft-deleted and is
    excluded from every aggregate.
    """

    kind: DocumentKind
    items: Sequence[LineItem]
    date: date
    document_discount_percent: float | None = None
    id: str | None = None
    counterparty_id: str | None = None
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


@dataclass(frozen=True)
class DateInterval:
    """
    Calendar-date interval, closed on both ends.

    ``start`` and ``end`` are both part of the interval. An interval whose
    ``start`` is after its ``end`` contains no dates.
    """

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @property
    def days(self) -> int:
        return max((self.end - self.start).days + 1, 0)


@dataclass(frozen=True)
class DocumentSet:
    """
    The three document collections a dashboard is built from.
    """

    sales: Sequence[Document] = field(default_factory=tuple)
    purchases: Sequence[Document] = field(default_factory=tuple)
    expenses: Sequence[Document] = field(default_factory=tuple)
