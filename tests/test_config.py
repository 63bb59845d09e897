"""
tests/test_config.py

Environment-driven settings: KPI target parsing, metrics settings, and the
database URL resolution order.
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from app.config import DEFAULT_KPI_TARGETS, get_metrics_settings, parse_kpi_targets
from db.config import load_env_files, normalize_postgres_url, resolve_database_url
from kpi.retail import ROI, TOTAL_PROFIT

_DB_VARS = ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL", "ENVIRONMENT")
_METRICS_VARS = (
    "CLIENT_INACTIVITY_MONTHS",
    "KPI_COMPARISON_WINDOW_DAYS",
    "MONTHLY_SERIES_MONTHS",
    "TOP_CLIENTS_LIMIT",
    "KPI_TARGETS_JSON",
)


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in _DB_VARS + _METRICS_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("db.config.load_env_files", lambda *args, **kwargs: [])
    get_metrics_settings.cache_clear()
    yield monkeypatch
    get_metrics_settings.cache_clear()


class TestParseKpiTargets:
    def test_empty_returns_defaults(self) -> None:
        assert parse_kpi_targets(None) == dict(DEFAULT_KPI_TARGETS)

    def test_overrides_known_names(self) -> None:
        targets = parse_kpi_targets('{"Lucro Total": 2500, "ROI": 12.5}')
        assert targets[TOTAL_PROFIT] == 2500.0
        assert targets[ROI] == 12.5

    def test_ignores_unknown_and_non_numeric(self) -> None:
        targets = parse_kpi_targets('{"Churn": 3, "ROI": "high"}')
        assert targets == dict(DEFAULT_KPI_TARGETS)

    @pytest.mark.parametrize("raw", ["{not json", "[1, 2]"])
    def test_malformed_falls_back(self, raw: str, caplog: pytest.LogCaptureFixture) -> None:
        assert parse_kpi_targets(raw) == dict(DEFAULT_KPI_TARGETS)
        assert "KPI_TARGETS_JSON" in caplog.text


class TestMetricsSettings:
    def test_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        settings = get_metrics_settings()
        assert settings.inactivity_months == 3
        assert settings.comparison_window_days == 30
        assert settings.monthly_series_months == 6
        assert settings.top_clients_limit == 5
        assert dict(settings.kpi_targets) == dict(DEFAULT_KPI_TARGETS)

    def test_reads_environment(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("CLIENT_INACTIVITY_MONTHS", "6")
        clean_env.setenv("MONTHLY_SERIES_MONTHS", "12")
        clean_env.setenv("KPI_TARGETS_JSON", '{"ROI": 55}')
        settings = get_metrics_settings()
        assert settings.inactivity_months == 6
        assert settings.monthly_series_months == 12
        assert settings.kpi_targets[ROI] == 55.0

    def test_invalid_integers_fall_back(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("CLIENT_INACTIVITY_MONTHS", "three")
        clean_env.setenv("TOP_CLIENTS_LIMIT", "0")
        settings = get_metrics_settings()
        assert settings.inactivity_months == 3
        assert settings.top_clients_limit == 1


class TestDatabaseUrl:
    def test_normalizes_postgres_scheme(self) -> None:
        assert normalize_postgres_url("postgres://u@h/db") == "postgresql+psycopg://u@h/db"
        assert normalize_postgres_url("postgresql://u@h/db") == "postgresql+psycopg://u@h/db"
        assert normalize_postgres_url("postgresql+psycopg://u@h/db") == "postgresql+psycopg://u@h/db"

    def test_priority(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("LOCAL_DATABASE_URL", "postgresql://local/db")
        clean_env.setenv("CLOUD_DATABASE_URL", "postgresql://cloud/db")
        assert resolve_database_url() == "postgresql+psycopg://local/db"
        clean_env.setenv("ENVIRONMENT", "production")
        assert resolve_database_url() == "postgresql+psycopg://cloud/db"
        clean_env.setenv("DATABASE_URL", "postgresql://direct/db")
        assert resolve_database_url() == "postgresql+psycopg://direct/db"

    def test_missing_raises(self, clean_env: pytest.MonkeyPatch) -> None:
        with pytest.raises(RuntimeError):
            resolve_database_url()

    def test_env_file_does_not_override_process_env(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        (tmp_path / ".env").write_text(
            "# comment\nSTOCK_TEST_A=from_file\nexport STOCK_TEST_B='quoted'\n",
            encoding="utf-8",
        )
        monkeypatch.setenv("STOCK_TEST_A", "from_process")
        monkeypatch.delenv("STOCK_TEST_B", raising=False)
        loaded = load_env_files(tmp_path)
        assert loaded == [tmp_path / ".env"]
        assert os.environ["STOCK_TEST_A"] == "from_process"
        assert os.environ["STOCK_TEST_B"] == "quoted"
        os.environ.pop("STOCK_TEST_B", None)
