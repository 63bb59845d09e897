"""
Repository-layer exceptions for document and KPI target persistence.
"""

from __future__ import annotations


class RepositoryError(Exception):
    """Base exception for repository failures."""


class DocumentNotFoundError(RepositoryError):
    """Raised when a referenced document does not exist."""


class KpiTargetError(RepositoryError):
    """Raised when a KPI target payload cannot be stored."""
