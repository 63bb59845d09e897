"""
db/models/documents.py

Transactional documents: sales (stock exits), purchases (stock entries) and
expenses, each with its line items.

Price columns keep the backend's names (``sale_price``, ``purchase_price``,
``unit_price``); the document mapper resolves them into one ``unit_price``.
``discount`` on the parent row is the document-level discount percentage.
"""

from __future__ import annotations

import uuid
import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Date, ForeignKey, Index, Numeric, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from db.models.client import Client

_MONEY = Numeric(12, 2)
_PERCENT = Numeric(5, 2)
_QUANTITY = Numeric(12, 3)


class StockExit(Base, TimestampMixin, SoftDeleteMixin):
    """A sale to a client."""

    __tablename__ = "stock_exits"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    client_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
    )
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    discount: Mapped[Decimal | None] = mapped_column(
        _PERCENT,
        nullable=True,
        comment="Document-level discount percentage, applied after line discounts",
    )

    client: Mapped[Optional["Client"]] = relationship("Client", back_populates="stock_exits")
    items: Mapped[list["StockExitItem"]] = relationship(
        "StockExitItem",
        back_populates="stock_exit",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("ix_stock_exits_date", "date"),
        Index("ix_stock_exits_client_id", "client_id"),
    )


class StockExitItem(Base):
    __tablename__ = "stock_exit_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    exit_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("stock_exits.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity: Mapped[Decimal] = mapped_column(_QUANTITY, nullable=False)
    sale_price: Mapped[Decimal] = mapped_column(_MONEY, nullable=False)
    discount_percent: Mapped[Decimal | None] = mapped_column(_PERCENT, nullable=True)

    stock_exit: Mapped[StockExit] = relationship("StockExit", back_populates="items")

    __table_args__ = (Index("ix_stock_exit_items_exit_id", "exit_id"),)


class StockEntry(Base, TimestampMixin, SoftDeleteMixin):
    """A purchase received from a supplier."""

    __tablename__ = "stock_entries"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    supplier_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    discount: Mapped[Decimal | None] = mapped_column(_PERCENT, nullable=True)

    items: Mapped[list["StockEntryItem"]] = relationship(
        "StockEntryItem",
        back_populates="stock_entry",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("ix_stock_entries_date", "date"),)


class StockEntryItem(Base):
    __tablename__ = "stock_entry_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    entry_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("stock_entries.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity: Mapped[Decimal] = mapped_column(_QUANTITY, nullable=False)
    purchase_price: Mapped[Decimal] = mapped_column(_MONEY, nullable=False)
    discount_percent: Mapped[Decimal | None] = mapped_column(_PERCENT, nullable=True)

    stock_entry: Mapped[StockEntry] = relationship("StockEntry", back_populates="items")

    __table_args__ = (Index("ix_stock_entry_items_entry_id", "entry_id"),)


class Expense(Base, TimestampMixin, SoftDeleteMixin):
    """An operating expense."""

    __tablename__ = "expenses"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    supplier_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    discount: Mapped[Decimal | None] = mapped_column(_PERCENT, nullable=True)

    items: Mapped[list["ExpenseItem"]] = relationship(
        "ExpenseItem",
        back_populates="expense",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index("ix_expenses_date", "date"),)


class ExpenseItem(Base):
    __tablename__ = "expense_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    expense_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("expenses.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity: Mapped[Decimal] = mapped_column(_QUANTITY, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(_MONEY, nullable=False)
    discount_percent: Mapped[Decimal | None] = mapped_column(_PERCENT, nullable=True)

    expense: Mapped[Expense] = relationship("Expense", back_populates="items")

    __table_args__ = (Index("ix_expense_items_expense_id", "expense_id"),)
