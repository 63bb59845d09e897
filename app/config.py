"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping

from app.domain.clients import DEFAULT_INACTIVITY_MONTHS
from app.numeric import is_finite_number
from db.config import load_env_files
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

logger = logging.getLogger(__name__)

DEFAULT_KPI_TARGETS: Mapping[str, float] = MappingProxyType(
    {
        ROI: 40.0,
        PROFIT_MARGIN: 25.0,
        CONVERSION_RATE: 20.0,
        AVERAGE_PURCHASE_VALUE: 500.0,
        AVERAGE_SALE_VALUE: 250.0,
        AVERAGE_PROFIT_PER_SALE: 50.0,
        TOTAL_PROFIT: 10000.0,
        PROFIT_PER_CLIENT: 200.0,
    }
)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def parse_kpi_targets(raw: str | None) -> dict[str, float]:
    """
    Merge a JSON object of ``{kpi_name: target}`` over :data:`DEFAULT_KPI_TARGETS`.

    Unknown KPI names and non-numeric targets are ignored. Malformed JSON
    falls back to the defaults.
    """

    targets = dict(DEFAULT_KPI_TARGETS)
    if not raw:
        return targets

    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("KPI_TARGETS_JSON is not valid JSON; using default KPI targets.")
        return targets

    if not isinstance(parsed, dict):
        logger.warning("KPI_TARGETS_JSON must be a JSON object; using default KPI targets.")
        return targets

    for name, value in parsed.items():
        if name not in KPI_ORDER:
            logger.warning("Ignoring target for unknown KPI %r.", name)
            continue
        if not is_finite_number(value):
            logger.warning("Ignoring non-numeric target %r for KPI %r.", value, name)
            continue
        targets[name] = float(value)
    return targets


@dataclass(frozen=True)
class MetricsSettings:
    """
    Runtime settings for the metrics core.
    """

    inactivity_months: int = DEFAULT_INACTIVITY_MONTHS
    comparison_window_days: int = 30
    monthly_series_months: int = 6
    top_clients_limit: int = 5
    kpi_targets: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_KPI_TARGETS))
    )


@lru_cache(maxsize=1)
def get_metrics_settings() -> MetricsSettings:
    """
    Return cached metrics settings from environment variables.
    """

    return MetricsSettings(
        inactivity_months=max(1, _get_int_env("CLIENT_INACTIVITY_MONTHS", DEFAULT_INACTIVITY_MONTHS)),
        comparison_window_days=max(1, _get_int_env("KPI_COMPARISON_WINDOW_DAYS", 30)),
        monthly_series_months=max(1, _get_int_env("MONTHLY_SERIES_MONTHS", 6)),
        top_clients_limit=max(1, _get_int_env("TOP_CLIENTS_LIMIT", 5)),
        kpi_targets=MappingProxyType(parse_kpi_targets(_get_str_env("KPI_TARGETS_JSON", ""))),
    )
