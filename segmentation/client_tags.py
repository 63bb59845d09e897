"""
Client lifecycle tagging.

Applies deterministic rules to a client's purchase history to assign one of
``Novo``, ``Recorrente`` or ``Inativo``. No DB access and no clock reads:
the current date is always passed in.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Iterable, Mapping

from app.domain.clients import ClientHistory, ClientTag, ClientTagConfig

_TAG_DESCRIPTIONS: Mapping[ClientTag, str] = {
    ClientTag.NOVO: "Cliente recente ou com apenas 1 compra registada",
    ClientTag.RECORRENTE: "Cliente com múltiplas compras",
    ClientTag.INATIVO: "Cliente sem compras recentes",
}


def months_between(start: date, end: date) -> int:
    """
    Whole calendar months elapsed from *start* to *end*.

    A month counts once its day-of-month has been reached, or once *end* is
    the last day of its month: 2026-01-15 → 2026-04-14 is 2 months, while
    2026-01-31 → 2026-02-28 is 1 and 2025-11-30 → 2026-02-28 is 3.
    Negative when *end* is before *start*.
    """
    if end < start:
        return -months_between(end, start)
    months = (end.year - start.year) * 12 + (end.month - start.month)
    if end.day < start.day and end.day != calendar.monthrange(end.year, end.month)[1]:
        months -= 1
    return months


def classify_client(
    history: ClientHistory,
    now: date,
    config: ClientTagConfig | None = None,
) -> ClientTag:
    """
    Return the lifecycle tag for one client.

    Rules, in priority order:
        1. No purchases, client older than the threshold  → Inativo
        2. No purchases, client younger than the threshold → Novo
        3. Last purchase at least the threshold ago        → Inativo
        4. Exactly one purchase                            → Novo
        5. More than one purchase                          → Recorrente

    Args:
        history: Creation date and one date per purchase document.
        now:     Reference date.
        config:  Inactivity threshold; defaults to 3 months.
    """
    threshold = (config or ClientTagConfig()).inactivity_months

    if history.purchase_count == 0:
        if months_between(history.created_at, now) >= threshold:
            return ClientTag.INATIVO
        return ClientTag.NOVO

    last_purchase = history.last_purchase_date
    if last_purchase is not None and months_between(last_purchase, now) >= threshold:
        return ClientTag.INATIVO

    if history.purchase_count == 1:
        return ClientTag.NOVO
    return ClientTag.RECORRENTE


def classify_clients(
    histories: Mapping[str, ClientHistory],
    now: date,
    config: ClientTagConfig | None = None,
) -> dict[str, ClientTag]:
    """Tag every client in *histories*, keyed by client id."""
    return {
        client_id: classify_client(history, now, config)
        for client_id, history in histories.items()
    }


def count_tags(tags: Iterable[ClientTag]) -> dict[ClientTag, int]:
    """Number of clients per tag; every tag is present, possibly with 0."""
    counts = {tag: 0 for tag in ClientTag}
    for tag in tags:
        counts[tag] += 1
    return counts


def tag_description(tag: ClientTag) -> str:
    return _TAG_DESCRIPTIONS[tag]
