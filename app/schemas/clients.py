"""
app/schemas/clients.py

Schemas for client lifecycle tagging.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, Field

from app.domain.clients import ClientHistory, ClientTag


class ClientHistoryIn(BaseModel):
    client_id: str
    created_at: date
    purchase_dates: list[date] = Field(default_factory=list)

    def to_domain(self) -> ClientHistory:
        return ClientHistory(created_at=self.created_at, purchase_dates=tuple(self.purchase_dates))


class ClientTagsRequest(BaseModel):
    clients: list[ClientHistoryIn] = Field(default_factory=list)
    reference: date | None = None
    inactivity_months: int | None = Field(default=None, ge=1)


class ClientTagOut(BaseModel):
    client_id: str
    tag: ClientTag
    description: str


class ClientTagsResponse(BaseModel):
    reference: date
    inactivity_months: int
    tags: list[ClientTagOut] = Field(default_factory=list)
    counts: dict[str, int] = Field(default_factory=dict)
