"""
app/api/routers package marker.
"""

from app.api.routers.client_router import router as client_router
from app.api.routers.document_router import router as document_router
from app.api.routers.kpi_router import router as kpi_router

__all__ = [
    "client_router",
    "document_router",
    "kpi_router",
]
