"""
db/models/kpi_target.py

Saved per-KPI target values. One row per KPI name; a missing row means the
configured default target applies.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, Numeric, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base

_UNIQUE_KPI_NAME = "uq_kpi_targets_kpi_name"


class KpiTarget(Base):
    """
    Overrides the default target of one dashboard KPI (e.g. ``"Lucro Total"``).
    """

    __tablename__ = "kpi_targets"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    kpi_name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Display name of the KPI, e.g. 'ROI' or 'Margem de Lucro'",
    )
    target_value: Mapped[Decimal] = mapped_column(
        Numeric(14, 2),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    __table_args__ = (
        UniqueConstraint("kpi_name", name=_UNIQUE_KPI_NAME),
    )
