from __future__ import annotations

import json
import logging
import os
from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

_POSITIVE_INT_VARS = (
    "CLIENT_INACTIVITY_MONTHS",
    "KPI_COMPARISON_WINDOW_DAYS",
    "MONTHLY_SERIES_MONTHS",
    "TOP_CLIENTS_LIMIT",
)


def _validate_env() -> None:
    """
    Validate environment variables at startup.

    Runs before any service or database connection is initialised.
    Raises RuntimeError listing every missing or invalid variable so the
    operator can fix all problems in one restart cycle.

    Rules:
    - One of DATABASE_URL, CLOUD_DATABASE_URL or LOCAL_DATABASE_URL is set.
    - Metrics tuning variables, when set, are integers >= 1.
    - KPI_TARGETS_JSON, when set, is a JSON object.
    """

    from db.config import load_env_files

    load_env_files()

    errors: list[str] = []

    # --- Database URL ---------------------------------------------------
    if not any(
        os.getenv(name, "").strip()
        for name in ("DATABASE_URL", "CLOUD_DATABASE_URL", "LOCAL_DATABASE_URL")
    ):
        errors.append(
            "No database URL configured. Set DATABASE_URL, CLOUD_DATABASE_URL "
            "or LOCAL_DATABASE_URL."
        )

    # --- Metrics tuning -------------------------------------------------
    for name in _POSITIVE_INT_VARS:
        raw = os.getenv(name)
        if raw is None:
            continue
        try:
            valid = int(raw) >= 1
        except ValueError:
            valid = False
        if not valid:
            errors.append(f"{name}={raw!r} is not valid. It must be an integer >= 1.")

    # --- KPI targets ----------------------------------------------------
    raw_targets = os.getenv("KPI_TARGETS_JSON", "").strip()
    if raw_targets:
        try:
            parsed = json.loads(raw_targets)
        except ValueError:
            parsed = None
        if not isinstance(parsed, dict):
            errors.append("KPI_TARGETS_JSON must be a JSON object of KPI name to target.")

    if errors:
        raise RuntimeError(
            "Startup validation failed: missing or invalid environment variables:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


def _configure_logging() -> None:
    """
    Configure root logging once for the API process.
    """

    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _check_db() -> None:
    """Open a session and run SELECT 1. Raises RuntimeError if the DB is unreachable."""
    from sqlalchemy import text
    from sqlalchemy.exc import SQLAlchemyError

    from db.session import session_scope

    try:
        with session_scope() as db:
            db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        raise RuntimeError("Database unavailable.") from exc


def _check_schema() -> None:
    """
    Every table and column on Base.metadata must exist in the database.

    Drift aborts startup; run ``alembic upgrade head`` first. Does NOT
    auto-migrate.
    """
    from db.schema_check import find_schema_drift
    from db.session import get_engine

    drift = find_schema_drift(get_engine())
    if drift:
        logging.getLogger(__name__).critical(
            "Schema mismatch: %d object(s) missing from the database: %s. "
            "Run 'alembic upgrade head' and restart.",
            len(drift),
            ", ".join(drift),
        )
        raise RuntimeError(
            f"Schema mismatch: {len(drift)} object(s) missing from the database "
            f"({', '.join(drift)}). Run migrations and restart."
        )


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Validate DB connectivity and schema on boot; dispose the engine on exit."""
    from db.session import reset_engine

    _check_db()
    logging.getLogger(__name__).info("Database connectivity confirmed")
    _check_schema()
    logging.getLogger(__name__).info("Database schema validated")
    try:
        yield
    finally:
        reset_engine()
        logging.getLogger(__name__).info("Database engine disposed")


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.
    """

    _validate_env()
    _configure_logging()

    application = FastAPI(
        title="Stock Metrics API",
        version="1.0.0",
        lifespan=_lifespan,
    )

    from app.api.routers import client_router, document_router, kpi_router

    application.include_router(kpi_router)
    application.include_router(client_router)
    application.include_router(document_router)

    @application.get("/health")
    def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
