"""
app/services/document_service.py

Soft-delete and restore of stored documents.

A soft-deleted document stays in its table with ``deleted_at`` set and
drops out of every total, KPI and client indicator until it is restored.

Failure contract
----------------
- Unknown or malformed id  → DocumentNotFoundError (nothing written)
- Write or commit failure  → DocumentPersistenceError after rollback
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.documents import DocumentKind
from db.repositories.document_repository import DocumentRepository
from db.repositories.errors import DocumentNotFoundError

logger = logging.getLogger(__name__)


class DocumentPersistenceError(RuntimeError):
    """
    Raised when a soft-delete or restore cannot be committed.

    The session has been rolled back before this exception is raised.
    """


@dataclass(frozen=True)
class DocumentState:
    kind: DocumentKind
    id: str
    status: str
    deleted_at: datetime | None


class DocumentService:
    def soft_delete(
        self,
        *,
        db: Session,
        kind: DocumentKind,
        document_id: str,
        at: datetime | None = None,
    ) -> DocumentState:
        """
        Soft-delete one document and commit.

        Raises
        ------
        DocumentNotFoundError
            No document of ``kind`` has that id.
        DocumentPersistenceError
            The write or commit failed.
        """
        return self._apply(db, kind, document_id, lambda repo: repo.soft_delete(kind, document_id, at))

    def restore(self, *, db: Session, kind: DocumentKind, document_id: str) -> DocumentState:
        """Undo a soft-delete and commit. Same errors as :meth:`soft_delete`."""
        return self._apply(db, kind, document_id, lambda repo: repo.restore(kind, document_id))

    @staticmethod
    def _apply(db: Session, kind: DocumentKind, document_id: str, operation) -> DocumentState:
        try:
            row = operation(DocumentRepository(db))
            db.commit()
        except DocumentNotFoundError:
            db.rollback()
            raise
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Updating %s %s failed: %s", kind.value, document_id, exc, exc_info=True)
            raise DocumentPersistenceError(f"Failed to update {kind.value} {document_id}: {exc}") from exc
        return DocumentState(kind=kind, id=str(row.id), status=row.status, deleted_at=row.deleted_at)
