"""
app/services/kpi_service.py

Deterministic KPI derivation engine.

Turns an :class:`AggregateSnapshot` plus supporting counts into the eight
named dashboard KPIs, each compared against an injectable target.

The formulas live in :class:`kpi.retail.RetailKPIFormula`; this module adds
the presentation contract (unit, description, formula text, flags) and the
target comparison:

    below_target = value < target          (regular KPI)
    below_target = value > target          (inverse KPI, lower is better)

No database logic lives here; saved target overrides are loaded by the
caller and passed in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Sequence

from app.config import DEFAULT_KPI_TARGETS
from app.domain.metrics import KPI, AggregateSnapshot, KPICounts
from app.numeric import finite_or_zero, is_finite_number
from kpi.base import BaseKPIFormula
from kpi.retail import (
    AVERAGE_PROFIT_PER_SALE,
    AVERAGE_PURCHASE_VALUE,
    AVERAGE_SALE_VALUE,
    CONVERSION_RATE,
    KPI_ORDER,
    PROFIT_MARGIN,
    PROFIT_PER_CLIENT,
    ROI,
    TOTAL_PROFIT,
    RetailKPIFormula,
)

logger = logging.getLogger(__name__)

UNIT_CURRENCY = "€"
UNIT_PERCENT = "%"


# ---------------------------------------------------------------------------
# KPI catalogue
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class KPIDefinition:
    """Static presentation metadata of one KPI."""

    name: str
    unit: str
    description: str
    formula: str
    is_percentage: bool = False
    is_inverse: bool = False


KPI_DEFINITIONS: Mapping[str, KPIDefinition] = {
    definition.name: definition
    for definition in (
        KPIDefinition(
            name=ROI,
            unit=UNIT_PERCENT,
            description="Mede o retorno em relação ao custo de investimento.",
            formula="(Lucro / Valor de Compras e Despesas) × 100",
            is_percentage=True,
        ),
        KPIDefinition(
            name=PROFIT_MARGIN,
            unit=UNIT_PERCENT,
            description="Mede a rentabilidade da empresa.",
            formula="(Lucro / Receita) × 100",
            is_percentage=True,
        ),
        KPIDefinition(
            name=CONVERSION_RATE,
            unit=UNIT_PERCENT,
            description="Percentagem de clientes que resultaram em vendas concluídas.",
            formula="(Vendas Concluídas / Clientes) × 100",
            is_percentage=True,
        ),
        KPIDefinition(
            name=AVERAGE_PURCHASE_VALUE,
            unit=UNIT_CURRENCY,
            description="Valor médio gasto por compra a fornecedores ou despesa.",
            formula="Valor de Compras e Despesas / (Entradas de Stock + Despesas)",
            is_inverse=True,
        ),
        KPIDefinition(
            name=AVERAGE_SALE_VALUE,
            unit=UNIT_CURRENCY,
            description="Valor médio faturado por venda concluída.",
            formula="Valor de Vendas / Vendas Concluídas",
        ),
        KPIDefinition(
            name=AVERAGE_PROFIT_PER_SALE,
            unit=UNIT_CURRENCY,
            description="Lucro médio gerado por cada venda concluída.",
            formula="Lucro / Vendas Concluídas",
        ),
        KPIDefinition(
            name=TOTAL_PROFIT,
            unit=UNIT_CURRENCY,
            description="Diferença entre o valor de vendas e o valor gasto.",
            formula="Valor de Vendas - (Valor de Compras + Despesas)",
        ),
        KPIDefinition(
            name=PROFIT_PER_CLIENT,
            unit=UNIT_CURRENCY,
            description="Lucro médio gerado por cada cliente.",
            formula="Lucro / Número de Clientes",
        ),
    )
}


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------


def is_below_target(value: float, target: float, is_inverse: bool = False) -> bool:
    """
    ``value < target`` for regular KPIs, ``value > target`` for inverse ones.
    """
    if is_inverse:
        return value > target
    return value < target


def kpi_progress(kpi: KPI) -> float:
    """
    Progress towards the target as a percentage capped at 100.

    Returns 0 when the target is 0 or the value is not finite.
    """
    target = finite_or_zero(kpi.target)
    if target == 0.0 or not is_finite_number(kpi.value):
        return 0.0
    progress = finite_or_zero(kpi.value / target * 100)
    return min(progress, 100.0)


def apply_target_overrides(kpis: Iterable[KPI], overrides: Mapping[str, float]) -> list[KPI]:
    """
    Replace targets with saved overrides and recompute ``below_target``.

    KPIs without an override, and overrides that are not finite numbers,
    leave the KPI unchanged.
    """
    result: list[KPI] = []
    for kpi in kpis:
        override = overrides.get(kpi.name)
        if override is None or not is_finite_number(override):
            result.append(kpi)
            continue
        target = float(override)
        result.append(
            replace(
                kpi,
                target=target,
                below_target=is_below_target(kpi.value, target, kpi.is_inverse),
            )
        )
    return result


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class KPIService:
    """
    Stateless, deterministic KPI derivation engine.

    Usage::

        service = KPIService()
        kpis = service.derive_kpis(snapshot, KPICounts(completed_orders=50, clients_count=200))
        kpis[2].value  # Taxa de Conversão → 25.0

    Parameters
    ----------
    formula:
        Formula implementation; defaults to :class:`RetailKPIFormula`.
    default_targets:
        Targets used when :meth:`derive_kpis` is called without explicit
        ones. Missing names fall back to :data:`app.config.DEFAULT_KPI_TARGETS`.
    """

    def __init__(
        self,
        formula: BaseKPIFormula | None = None,
        default_targets: Mapping[str, float] | None = None,
    ) -> None:
        self._formula = formula or RetailKPIFormula()
        self._default_targets = dict(DEFAULT_KPI_TARGETS)
        if default_targets:
            self._default_targets.update(default_targets)

    def derive_kpis(
        self,
        snapshot: AggregateSnapshot,
        counts: KPICounts,
        targets: Mapping[str, float] | None = None,
    ) -> list[KPI]:
        """
        Derive the eight dashboard KPIs.

        The snapshot fields are read as given (a caller may pass a snapshot
        whose ``profit_margin`` was computed elsewhere); each is coerced to a
        finite number first, so ``None``, NaN and ±Infinity count as 0.

        Returns
        -------
        list[KPI]
            Always eight entries, ordered as :data:`kpi.retail.KPI_ORDER`.
            Every ``value`` is finite.
        """
        resolved_targets = dict(self._default_targets)
        if targets:
            resolved_targets.update(
                {name: float(value) for name, value in targets.items() if is_finite_number(value)}
            )

        values = self._formula.calculate(
            {
                "total_sales": snapshot.total_sales,
                "total_spent": snapshot.total_spent,
                "profit": snapshot.profit,
                "profit_margin": snapshot.profit_margin,
                "completed_orders": counts.completed_orders,
                "clients_count": counts.clients_count,
                "supplier_entries": counts.supplier_entries,
                "number_of_expenses": counts.number_of_expenses,
            }
        )

        kpis = [self._build_kpi(name, values.get(name), resolved_targets) for name in KPI_ORDER]
        logger.debug(
            "Derived %d KPIs; below target: %s",
            len(kpis),
            [kpi.name for kpi in kpis if kpi.below_target],
        )
        return kpis

    @staticmethod
    def _build_kpi(name: str, raw_value: float | None, targets: Mapping[str, float]) -> KPI:
        definition = KPI_DEFINITIONS[name]
        value = finite_or_zero(raw_value)
        target = finite_or_zero(targets.get(name, DEFAULT_KPI_TARGETS[name]))
        return KPI(
            name=definition.name,
            value=value,
            target=target,
            unit=definition.unit,
            description=definition.description,
            formula=definition.formula,
            below_target=is_below_target(value, target, definition.is_inverse),
            is_percentage=definition.is_percentage,
            is_inverse=definition.is_inverse,
        )


def kpis_by_name(kpis: Sequence[KPI]) -> dict[str, KPI]:
    return {kpi.name: kpi for kpi in kpis}
