"""
app/api/routers/document_router.py

Document lifecycle endpoints.

    POST /documents/{kind}/{document_id}/delete   – soft-delete
    POST /documents/{kind}/{document_id}/restore  – undo a soft-delete
"""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_document_service
from app.domain.documents import DocumentKind
from app.schemas.documents import DocumentStateResponse, SoftDeleteRequest
from app.services.document_service import (
    DocumentPersistenceError,
    DocumentService,
    DocumentState,
)
from db.repositories.errors import DocumentNotFoundError
from db.session import get_db

router = APIRouter(prefix="/documents", tags=["documents"])


def _state_response(state: DocumentState) -> DocumentStateResponse:
    return DocumentStateResponse(
        kind=state.kind,
        id=state.id,
        status=state.status,
        deleted_at=state.deleted_at,
    )


def _run(operation) -> DocumentStateResponse:
    try:
        return _state_response(operation())
    except DocumentNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except DocumentPersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=str(exc),
        ) from exc


@router.post(
    "/{kind}/{document_id}/delete",
    response_model=DocumentStateResponse,
    status_code=status.HTTP_200_OK,
)
def soft_delete_document(
    kind: DocumentKind,
    document_id: str,
    body: SoftDeleteRequest | None = Body(default=None),
    service: DocumentService = Depends(get_document_service),
    db: Session = Depends(get_db),
) -> DocumentStateResponse:
    """
    Exclude a document from every aggregate.

    Raises HTTP 404 when no document of ``kind`` has that id.
    """
    at = body.deleted_at if body else None
    return _run(lambda: service.soft_delete(db=db, kind=kind, document_id=document_id, at=at))


@router.post(
    "/{kind}/{document_id}/restore",
    response_model=DocumentStateResponse,
    status_code=status.HTTP_200_OK,
)
def restore_document(
    kind: DocumentKind,
    document_id: str,
    service: DocumentService = Depends(get_document_service),
    db: Session = Depends(get_db),
) -> DocumentStateResponse:
    return _run(lambda: service.restore(db=db, kind=kind, document_id=document_id))
