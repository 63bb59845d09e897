"""
Repository layer exports.
"""

from db.repositories.document_repository import DocumentRepository
from db.repositories.errors import DocumentNotFoundError, KpiTargetError, RepositoryError
from db.repositories.kpi_target_repository import KpiTargetRepository
from db.repositories.types import ClientRow, SaleRef

__all__ = [
    "DocumentRepository",
    "KpiTargetRepository",
    "ClientRow",
    "SaleRef",
    "RepositoryError",
    "DocumentNotFoundError",
    "KpiTargetError",
]
