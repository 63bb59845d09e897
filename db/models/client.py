"""
db/models/client.py

Client model. Sales (stock exits) reference it.
"""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Index, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from db.base import Base, SoftDeleteMixin, TimestampMixin

if TYPE_CHECKING:
    from db.models.documents import StockExit


class Client(Base, TimestampMixin, SoftDeleteMixin):
    """
    A customer of the store.

    Lifecycle tags (Novo / Recorrente / Inativo) are derived from the
    client's sales and ``created_at``; they are never stored.
    """

    __tablename__ = "clients"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    tax_id: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="Fiscal number (NIF)",
    )

    # ── Relationships ──────────────────────────────────────────────────────────

    stock_exits: Mapped[list["StockExit"]] = relationship(
        "StockExit",
        back_populates="client",
        passive_deletes=True,
    )

    # ── Indexes ────────────────────────────────────────────────────────────────

    __table_args__ = (
        Index("ix_clients_name", "name"),
        Index("ix_clients_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Client id={self.id} name={self.name!r} status={self.status!r}>"
