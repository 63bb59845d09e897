"""
app/schemas/documents.py

Schemas for soft-delete and restore.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from app.domain.documents import DocumentKind


class SoftDeleteRequest(BaseModel):
    """``deleted_at`` defaults to the current time."""

    deleted_at: datetime | None = None


class DocumentStateResponse(BaseModel):
    kind: DocumentKind
    id: str
    status: str
    deleted_at: datetime | None = None
