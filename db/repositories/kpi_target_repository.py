"""
db/repositories/kpi_target_repository.py

Persistence for user-edited KPI targets.

The caller controls commit/rollback; this repository never commits on its own.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.numeric import is_finite_number
from db.models.kpi_target import KpiTarget
from db.repositories.errors import KpiTargetError
from kpi.retail import KPI_ORDER

logger = logging.getLogger(__name__)


def _validate(targets: Mapping[str, object]) -> dict[str, float]:
    validated: dict[str, float] = {}
    for name, value in targets.items():
        if name not in KPI_ORDER:
            raise KpiTargetError(f"Unknown KPI: {name!r}")
        if not is_finite_number(value) or float(value) < 0:
            raise KpiTargetError(f"Target for {name!r} must be a finite number >= 0, got {value!r}")
        validated[name] = float(value)
    return validated


class KpiTargetRepository:
    def __init__(self, session: Session) -> None:
        self._session = session

    def load_targets(self) -> dict[str, float]:
        """Return saved targets keyed by KPI name. Missing KPIs are absent."""
        rows = self._session.scalars(select(KpiTarget)).all()
        return {row.kpi_name: float(row.target_value) for row in rows}

    def upsert_targets(self, targets: Mapping[str, object]) -> dict[str, float]:
        """
        Insert or update one row per KPI name.

        The whole payload is validated before anything is written.

        Raises
        ------
        KpiTargetError
            Unknown KPI name, or a negative / non-finite target.
        """
        validated = _validate(targets)
        if not validated:
            return self.load_targets()

        existing = {
            row.kpi_name: row
            for row in self._session.scalars(
                select(KpiTarget).where(KpiTarget.kpi_name.in_(list(validated)))
            )
        }
        for name, value in validated.items():
            row = existing.get(name)
            if row is None:
                self._session.add(KpiTarget(kpi_name=name, target_value=Decimal(str(value))))
            else:
                row.target_value = Decimal(str(value))
        self._session.flush()
        logger.info("Saved targets for %d KPIs", len(validated))
        return self.load_targets()
