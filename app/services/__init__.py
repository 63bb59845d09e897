"""
app/services package marker.
"""

from app.services.comparison_service import compare, compute_kpi_deltas, percent_change
from app.services.kpi_service import KPIService, apply_target_overrides, kpi_progress
from app.services.totals_service import document_total, line_total

__all__ = [
    "KPIService",
    "apply_target_overrides",
    "compare",
    "compute_kpi_deltas",
    "document_total",
    "kpi_progress",
    "line_total",
    "percent_change",
]
