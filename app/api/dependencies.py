"""
app/api/dependencies.py

Shared FastAPI dependencies.
"""

from __future__ import annotations

from datetime import date

from fastapi import Depends, Query

from app.config import MetricsSettings, get_metrics_settings
from app.services.dashboard_service import DashboardService
from app.services.document_service import DocumentService
from app.services.kpi_service import KPIService


def get_settings() -> MetricsSettings:
    return get_metrics_settings()


def get_kpi_service(settings: MetricsSettings = Depends(get_settings)) -> KPIService:
    return KPIService(default_targets=settings.kpi_targets)


def get_dashboard_service(settings: MetricsSettings = Depends(get_settings)) -> DashboardService:
    return DashboardService(settings=settings)


def get_document_service() -> DocumentService:
    return DocumentService()


def get_reference_date(
    reference: date | None = Query(
        default=None,
        description="Date treated as today for every window; defaults to the server date.",
    ),
) -> date:
    """
    Resolve the reference date once per request so every window agrees.
    """

    return reference or date.today()
