"""
tests/test_kpi_service.py

Pytest unit tests for KPIService.

All tests are pure Python: no database, no I/O.
Every assertion is deterministic: given the same inputs, the same
output must be produced every time.

Coverage
--------
- Known values (ROI, conversion, average sale value)
- Zero denominators
- Finiteness over NaN / ±Infinity / None snapshot fields
- KPI schema contract (eight entries, fixed order, text fields)
- below_target for regular and inverse KPIs
- Target overrides and progress
- Statelessness across multiple calls
"""

from __future__ import annotations

import math
import random
from dataclasses import FrozenInstanceError

import pytest

from app.config import DEFAULT_KPI_TARGETS
from app.domain.metrics import KPI, AggregateSnapshot, KPICounts
from app.services.kpi_service import (
    KPIService,
    apply_target_overrides,
    is_below_target,
    kpi_progress,
    kpis_by_name,
)
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
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def svc() -> KPIService:
    """Fresh KPIService instance for each test."""
    return KPIService()


@pytest.fixture()
def snapshot() -> AggregateSnapshot:
    return AggregateSnapshot.from_totals(total_sales=10000.0, total_purchases=4500.0, total_expenses=1500.0)


@pytest.fixture()
def counts() -> KPICounts:
    return KPICounts(completed_orders=50, clients_count=200, number_of_expenses=10, supplier_entries=20)


def _kpi(value: float, target: float, is_inverse: bool = False) -> KPI:
    return KPI(
        name=ROI,
        value=value,
        target=target,
        unit="%",
        description="d",
        formula="f",
        below_target=is_below_target(value, target, is_inverse),
        is_inverse=is_inverse,
    )


# ---------------------------------------------------------------------------
# KPI contract
# ---------------------------------------------------------------------------


class TestKPIContract:
    def test_is_frozen(self) -> None:
        with pytest.raises(FrozenInstanceError):
            _kpi(1.0, 2.0).value = 3.0  # type: ignore[misc]

    def test_always_eight_in_fixed_order(self, svc: KPIService) -> None:
        kpis = svc.derive_kpis(AggregateSnapshot(), KPICounts())
        assert [k.name for k in kpis] == list(KPI_ORDER)
        assert len(kpis) == 8

    def test_text_fields_non_empty_and_flag_boolean(
        self, svc: KPIService, snapshot: AggregateSnapshot, counts: KPICounts
    ) -> None:
        for kpi in svc.derive_kpis(snapshot, counts):
            assert kpi.name and kpi.description and kpi.formula
            assert isinstance(kpi.below_target, bool)

    def test_units_and_flags(self, svc: KPIService) -> None:
        by_name = kpis_by_name(svc.derive_kpis(AggregateSnapshot(), KPICounts()))
        assert {n for n, k in by_name.items() if k.is_percentage} == {ROI, PROFIT_MARGIN, CONVERSION_RATE}
        assert {n for n, k in by_name.items() if k.is_inverse} == {AVERAGE_PURCHASE_VALUE}
        assert by_name[TOTAL_PROFIT].unit == "€"
        assert by_name[ROI].unit == "%"


# ---------------------------------------------------------------------------
# Known values
# ---------------------------------------------------------------------------


class TestKnownValues:
    def test_roi(self, svc: KPIService) -> None:
        snap = AggregateSnapshot(total_sales=10000.0, total_spent=6000.0, profit=4000.0)
        assert kpis_by_name(svc.derive_kpis(snap, KPICounts()))[ROI].value == pytest.approx(66.6667, rel=1e-4)

    def test_conversion_rate(self, svc: KPIService) -> None:
        kpis = svc.derive_kpis(AggregateSnapshot(), KPICounts(completed_orders=50, clients_count=200))
        assert kpis_by_name(kpis)[CONVERSION_RATE].value == pytest.approx(25.0)

    def test_average_sale_value(self, svc: KPIService) -> None:
        snap = AggregateSnapshot(total_sales=15000.0)
        kpis = svc.derive_kpis(snap, KPICounts(completed_orders=50))
        assert kpis_by_name(kpis)[AVERAGE_SALE_VALUE].value == pytest.approx(300.0)

    def test_full_snapshot(self, svc: KPIService, snapshot: AggregateSnapshot, counts: KPICounts) -> None:
        by_name = kpis_by_name(svc.derive_kpis(snapshot, counts))
        assert by_name[TOTAL_PROFIT].value == pytest.approx(4000.0)
        assert by_name[PROFIT_MARGIN].value == pytest.approx(40.0)
        assert by_name[AVERAGE_PURCHASE_VALUE].value == pytest.approx(200.0)
        assert by_name[AVERAGE_PROFIT_PER_SALE].value == pytest.approx(80.0)
        assert by_name[PROFIT_PER_CLIENT].value == pytest.approx(20.0)

    def test_zero_denominators_yield_zero(self, svc: KPIService) -> None:
        snap = AggregateSnapshot(total_sales=500.0, profit=500.0)
        for kpi in svc.derive_kpis(snap, KPICounts()):
            if kpi.name in (TOTAL_PROFIT, PROFIT_MARGIN):
                continue
            assert kpi.value == 0.0, kpi.name


# ---------------------------------------------------------------------------
# Finiteness
# ---------------------------------------------------------------------------


_BAD_VALUES = (math.nan, math.inf, -math.inf, None)


class TestFiniteness:
    @pytest.mark.parametrize("seed", range(50))
    def test_values_finite_and_non_negative(self, svc: KPIService, seed: int) -> None:
        rng = random.Random(seed)

        def draw() -> float | None:
            if rng.random() < 0.4:
                return rng.choice(_BAD_VALUES)
            return rng.uniform(0, 1e6)

        snap = AggregateSnapshot(
            total_sales=draw(),  # type: ignore[arg-type]
            total_purchases=draw(),  # type: ignore[arg-type]
            total_expenses=draw(),  # type: ignore[arg-type]
            total_spent=draw(),  # type: ignore[arg-type]
            profit=draw(),  # type: ignore[arg-type]
            profit_margin=draw(),  # type: ignore[arg-type]
            roi=draw(),  # type: ignore[arg-type]
        )
        counts = KPICounts(
            completed_orders=rng.choice([0, 1, 7, 300]),
            clients_count=rng.choice([0, 1, 40]),
            number_of_expenses=rng.choice([0, 3]),
            supplier_entries=rng.choice([0, 12]),
        )
        for kpi in svc.derive_kpis(snap, counts):
            assert math.isfinite(kpi.value), kpi.name
            assert kpi.value >= 0, kpi.name

    def test_count_too_large_for_float(self, svc: KPIService, snapshot: AggregateSnapshot) -> None:
        counts = KPICounts(completed_orders=10**400, clients_count=10**400)
        by_name = kpis_by_name(svc.derive_kpis(snapshot, counts))
        assert by_name[CONVERSION_RATE].value == 0.0
        assert by_name[PROFIT_PER_CLIENT].value == 0.0
        assert by_name[AVERAGE_SALE_VALUE].value == 0.0
        assert all(math.isfinite(kpi.value) for kpi in by_name.values())

    @pytest.mark.parametrize("bad", _BAD_VALUES)
    def test_all_fields_bad(self, svc: KPIService, bad: float | None) -> None:
        snap = AggregateSnapshot(
            total_sales=bad, total_spent=bad, profit=bad, profit_margin=bad  # type: ignore[arg-type]
        )
        assert all(kpi.value == 0.0 for kpi in svc.derive_kpis(snap, KPICounts()))


# ---------------------------------------------------------------------------
# Targets
# ---------------------------------------------------------------------------


class TestTargets:
    def test_default_targets_applied(self, svc: KPIService) -> None:
        by_name = kpis_by_name(svc.derive_kpis(AggregateSnapshot(), KPICounts()))
        for name in KPI_ORDER:
            assert by_name[name].target == DEFAULT_KPI_TARGETS[name]
        assert by_name[TOTAL_PROFIT].target == 10000.0

    def test_regular_below_target(self) -> None:
        assert is_below_target(5.0, 10.0) is True
        assert is_below_target(10.0, 10.0) is False

    def test_inverse_flips_comparison(self) -> None:
        assert is_below_target(600.0, 500.0, is_inverse=True) is True
        assert is_below_target(400.0, 500.0, is_inverse=True) is False

    def test_inverse_kpi_flag_in_derivation(self, svc: KPIService) -> None:
        snap = AggregateSnapshot(total_spent=1000.0)
        kpis = svc.derive_kpis(snap, KPICounts(supplier_entries=1))
        assert kpis_by_name(kpis)[AVERAGE_PURCHASE_VALUE].below_target is True

    def test_explicit_targets_override_defaults(self, svc: KPIService, snapshot: AggregateSnapshot) -> None:
        kpis = svc.derive_kpis(snapshot, KPICounts(), targets={TOTAL_PROFIT: 3000.0})
        profit = kpis_by_name(kpis)[TOTAL_PROFIT]
        assert profit.target == 3000.0
        assert profit.below_target is False

    def test_constructor_default_targets(self, snapshot: AggregateSnapshot) -> None:
        svc = KPIService(default_targets={ROI: 99.0})
        assert kpis_by_name(svc.derive_kpis(snapshot, KPICounts()))[ROI].target == 99.0

    def test_apply_target_overrides_recomputes_flag(self, svc: KPIService, snapshot: AggregateSnapshot) -> None:
        kpis = svc.derive_kpis(snapshot, KPICounts())
        assert kpis_by_name(kpis)[TOTAL_PROFIT].below_target is True
        overrides = {TOTAL_PROFIT: 1000.0, ROI: math.nan, PROFIT_MARGIN: 10**400}
        updated = kpis_by_name(apply_target_overrides(kpis, overrides))
        assert updated[TOTAL_PROFIT].target == 1000.0
        assert updated[TOTAL_PROFIT].below_target is False
        assert updated[ROI].target == DEFAULT_KPI_TARGETS[ROI]
        assert updated[PROFIT_MARGIN].target == DEFAULT_KPI_TARGETS[PROFIT_MARGIN]


class TestProgress:
    @pytest.mark.parametrize(
        "value, target, expected",
        [
            (50.0, 100.0, 50.0),
            (250.0, 100.0, 100.0),
            (10.0, 0.0, 0.0),
            (math.nan, 10.0, 0.0),
        ],
    )
    def test_progress(self, value: float, target: float, expected: float) -> None:
        assert kpi_progress(_kpi(value, target)) == pytest.approx(expected)


class TestStatelessness:
    def test_repeated_calls_identical(
        self, svc: KPIService, snapshot: AggregateSnapshot, counts: KPICounts
    ) -> None:
        assert svc.derive_kpis(snapshot, counts) == svc.derive_kpis(snapshot, counts)

    def test_per_call_targets_do_not_leak(self, svc: KPIService, snapshot: AggregateSnapshot) -> None:
        svc.derive_kpis(snapshot, KPICounts(), targets={ROI: 1.0})
        assert kpis_by_name(svc.derive_kpis(snapshot, KPICounts()))[ROI].target == DEFAULT_KPI_TARGETS[ROI]
