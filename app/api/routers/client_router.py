"""
app/api/routers/client_router.py

Client lifecycle tag endpoints.
"""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.api.dependencies import get_dashboard_service, get_reference_date, get_settings
from app.config import MetricsSettings
from app.domain.clients import ClientTag, ClientTagConfig
from app.schemas.clients import ClientTagOut, ClientTagsRequest, ClientTagsResponse
from app.services.dashboard_service import DashboardDataError, DashboardService
from db.session import get_db
from segmentation.client_tags import classify_clients, count_tags, tag_description

router = APIRouter(prefix="/clients", tags=["clients"])


def _tags_response(
    tags: dict[str, ClientTag],
    reference: date,
    inactivity_months: int,
) -> ClientTagsResponse:
    counts = count_tags(tags.values())
    return ClientTagsResponse(
        reference=reference,
        inactivity_months=inactivity_months,
        tags=[
            ClientTagOut(client_id=client_id, tag=tag, description=tag_description(tag))
            for client_id, tag in tags.items()
        ],
        counts={tag.value: count for tag, count in counts.items()},
    )


@router.post(
    "/tags",
    response_model=ClientTagsResponse,
    status_code=status.HTTP_200_OK,
)
def classify_client_histories(
    body: ClientTagsRequest,
    today: date = Depends(get_reference_date),
    settings: MetricsSettings = Depends(get_settings),
) -> ClientTagsResponse:
    """
    Tag the client histories in the body.

    ``reference`` in the body wins over the ``reference`` query parameter,
    which defaults to the server date. ``inactivity_months`` defaults to the
    configured threshold.
    """
    reference = body.reference or today
    config = ClientTagConfig(inactivity_months=body.inactivity_months or settings.inactivity_months)
    histories = {client.client_id: client.to_domain() for client in body.clients}
    tags = classify_clients(histories, reference, config)
    return _tags_response(tags, reference, config.inactivity_months)


@router.get(
    "/tags",
    response_model=ClientTagsResponse,
    status_code=status.HTTP_200_OK,
)
def list_client_tags(
    reference: date = Depends(get_reference_date),
    service: DashboardService = Depends(get_dashboard_service),
    db: Session = Depends(get_db),
) -> ClientTagsResponse:
    """
    Tag every stored client.

    Raises HTTP 500 when the database cannot be read.
    """
    try:
        tags = service.client_tags(db=db, reference=reference)
    except DashboardDataError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Client data unavailable: {exc}",
        ) from exc
    return _tags_response(tags, reference, service.settings.inactivity_months)
