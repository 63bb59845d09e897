"""
Client portfolio indicators.

Rolls per-client summaries into the headline numbers of the clients page:
active, new and inactive counts, average spend and concentration of the top
spenders. Pure functions; the reference date is always passed in.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Sequence

from app.domain.clients import ClientPortfolioKPIs, ClientSummary
from app.numeric import finite_or_zero, safe_divide

ACTIVE_WINDOW_DAYS = 30
NEW_CLIENT_WINDOW_DAYS = 30
INACTIVE_WINDOW_DAYS = 90
TOP_CLIENTS_FOR_SHARE = 5


def top_clients(clients: Sequence[ClientSummary], limit: int = TOP_CLIENTS_FOR_SHARE) -> list[ClientSummary]:
    """
    The *limit* biggest spenders, highest first; ties are ordered by name.
    """
    ranked = sorted(clients, key=lambda c: (-finite_or_zero(c.total_spent), c.name))
    return ranked[: max(limit, 0)]


def compute_client_portfolio(clients: Sequence[ClientSummary], now: date) -> ClientPortfolioKPIs:
    """
    Portfolio indicators as of *now*.

    * active: last purchase on or after ``now - 30 days``;
    * new: created on or after ``now - 30 days``;
    * inactive: never bought, or last purchase before ``now - 90 days``;
    * averages and shares are 0 when their denominator is 0.
    """
    active_since = now - timedelta(days=ACTIVE_WINDOW_DAYS)
    new_since = now - timedelta(days=NEW_CLIENT_WINDOW_DAYS)
    inactive_before = now - timedelta(days=INACTIVE_WINDOW_DAYS)

    active = 0
    new = 0
    inactive = 0
    with_purchases = 0
    total_spent = 0.0

    for client in clients:
        last_purchase = client.history.last_purchase_date
        if last_purchase is not None and last_purchase >= active_since:
            active += 1
        if client.created_at >= new_since:
            new += 1
        if last_purchase is None or last_purchase < inactive_before:
            inactive += 1
        if client.purchase_dates:
            with_purchases += 1
        total_spent += finite_or_zero(client.total_spent)

    top_total = sum(finite_or_zero(c.total_spent) for c in top_clients(clients, TOP_CLIENTS_FOR_SHARE))

    return ClientPortfolioKPIs(
        active_clients_30d=active,
        new_clients_30d=new,
        clients_with_purchases=with_purchases,
        total_spent=finite_or_zero(total_spent),
        avg_spent_per_active_client=safe_divide(total_spent, with_purchases),
        top5_percentage=safe_divide(top_total, total_spent) * 100 if total_spent > 0 else 0.0,
        inactive_clients_90d=inactive,
    )
