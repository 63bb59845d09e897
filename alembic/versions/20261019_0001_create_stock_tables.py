"""create clients, document and kpi_targets tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None

_MONEY = sa.Numeric(12, 2)
_PERCENT = sa.Numeric(5, 2)
_QUANTITY = sa.Numeric(12, 3)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def _soft_delete() -> list[sa.Column]:
    return [
        sa.Column("status", sa.String(length=20), server_default="active", nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _document_table(name: str, counterparty_column: sa.Column) -> None:
    op.create_table(
        name,
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        counterparty_column,
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("discount", _PERCENT, nullable=True),
        *_timestamps(),
        *_soft_delete(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(f"ix_{name}_date", name, ["date"], unique=False)


def _item_table(name: str, parent_column: str, parent_table: str, price_column: str) -> None:
    op.create_table(
        name,
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(parent_column, postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("quantity", _QUANTITY, nullable=False),
        sa.Column(price_column, _MONEY, nullable=False),
        sa.Column("discount_percent", _PERCENT, nullable=True),
        sa.ForeignKeyConstraint([parent_column], [f"{parent_table}.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(f"ix_{name}_{parent_column}", name, [parent_column], unique=False)


def upgrade() -> None:
    op.create_table(
        "clients",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("tax_id", sa.String(length=50), nullable=True, comment="Fiscal number (NIF)"),
        *_timestamps(),
        *_soft_delete(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_clients_name", "clients", ["name"], unique=False)
    op.create_index("ix_clients_status", "clients", ["status"], unique=False)

    _document_table(
        "stock_exits",
        sa.Column(
            "client_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("clients.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    op.create_index("ix_stock_exits_client_id", "stock_exits", ["client_id"], unique=False)
    _item_table("stock_exit_items", "exit_id", "stock_exits", "sale_price")

    _document_table("stock_entries", sa.Column("supplier_id", postgresql.UUID(as_uuid=True), nullable=True))
    _item_table("stock_entry_items", "entry_id", "stock_entries", "purchase_price")

    _document_table("expenses", sa.Column("supplier_id", postgresql.UUID(as_uuid=True), nullable=True))
    _item_table("expense_items", "expense_id", "expenses", "unit_price")

    op.create_table(
        "kpi_targets",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("kpi_name", sa.String(length=100), nullable=False),
        sa.Column("target_value", sa.Numeric(14, 2), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("kpi_name", name="uq_kpi_targets_kpi_name"),
    )


def downgrade() -> None:
    op.drop_table("kpi_targets")
    for name, parent_column in (
        ("expense_items", "expense_id"),
        ("stock_entry_items", "entry_id"),
        ("stock_exit_items", "exit_id"),
    ):
        op.drop_index(f"ix_{name}_{parent_column}", table_name=name)
        op.drop_table(name)
    op.drop_index("ix_expenses_date", table_name="expenses")
    op.drop_table("expenses")
    op.drop_index("ix_stock_entries_date", table_name="stock_entries")
    op.drop_table("stock_entries")
    op.drop_index("ix_stock_exits_client_id", table_name="stock_exits")
    op.drop_index("ix_stock_exits_date", table_name="stock_exits")
    op.drop_table("stock_exits")
    op.drop_index("ix_clients_status", table_name="clients")
    op.drop_index("ix_clients_name", table_name="clients")
    op.drop_table("clients")
