"""
app/domain/clients.py

Client records used by segmentation and the client portfolio KPIs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Sequence

DEFAULT_INACTIVITY_MONTHS = 3


class ClientTag(str, Enum):
    """Derived client lifecycle classification."""

    NOVO = "Novo"
    RECORRENTE = "Recorrente"
    INATIVO = "Inativo"


@dataclass(frozen=True)
class ClientTagConfig:
    """
    Segmentation configuration.

    Raises ValueError when ``inactivity_months`` is lower than 1.
    """

    inactivity_months: int = DEFAULT_INACTIVITY_MONTHS

    def __post_init__(self) -> None:
        if isinstance(self.inactivity_months, bool) or not isinstance(self.inactivity_months, int):
            raise ValueError("inactivity_months must be an integer.")
        if self.inactivity_months < 1:
            raise ValueError(
                f"inactivity_months must be >= 1, got {self.inactivity_months}."
            )


@dataclass(frozen=True)
class ClientHistory:
    """
    One client's purchase history as far as segmentation is concerned.

    Only dates matter: one entry in ``purchase_dates`` per purchase document.
    """

    created_at: date
    purchase_dates: Sequence[date] = field(default_factory=tuple)

    @property
    def purchase_count(self) -> int:
        return len(self.purchase_dates)

    @property
    def last_purchase_date(self) -> date | None:
        return max(self.purchase_dates) if self.purchase_dates else None


@dataclass(frozen=True)
class ClientSummary:
    """Per-client rollup used by the portfolio KPIs and the top-clients list."""

    client_id: str
    name: str
    created_at: date
    purchase_dates: Sequence[date] = field(default_factory=tuple)
    total_spent: float = 0.0

    @property
    def history(self) -> ClientHistory:
        return ClientHistory(created_at=self.created_at, purchase_dates=tuple(self.purchase_dates))


@dataclass(frozen=True)
class ClientPortfolioKPIs:
    active_clients_30d: int = 0
    new_clients_30d: int = 0
    clients_with_purchases: int = 0
    total_spent: float = 0.0
    avg_spent_per_active_client: float = 0.0
    top5_percentage: float = 0.0
    inactive_clients_90d: int = 0
