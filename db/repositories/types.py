"""
Typed DTOs returned by the repositories.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class ClientRow:
    """
    A live client, detached from the session.
    """

    client_id: str
    name: str
    created_at: date


@dataclass(frozen=True)
class SaleRef:
    """
    Client and date of one live sale; enough for lifecycle tagging.
    """

    client_id: str
    date: date
