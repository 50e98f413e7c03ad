# -*- coding: utf-8 -*-
"""
evaluator – decides, for one watch entry, whether a fare dropped.

Order of checks:
  1. outbound date before today -> expired, nothing else happens
  2. outbound leg: cheapest eligible fare < outboundPrice -> drop
  3. return leg (round trips only): cheapest eligible fare < returnPrice -> drop
A leg without any eligible fare keeps its threshold.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from .fare_selector import best_fare
from .models import (
    CheapestAny,
    EvaluationDecision,
    ExactFlight,
    FareDrop,
    FareTable,
    Leg,
    SelectionMode,
    WatchEntry,
    format_date,
)

logger = logging.getLogger(__name__)


def is_expired(entry: WatchEntry, today: date) -> bool:
    """Return ``True`` if the entry's outbound date is before *today*."""
    return entry.outbound_date < today


def drop_message(
    leg: Leg,
    mode: SelectionMode,
    origin: str,
    destination: str,
    day: date,
    new_price: int,
    old_price: int,
    flight_number: Optional[str] = None,
) -> str:
    if isinstance(mode, ExactFlight):
        flight = f"flight #{mode.flight_number}"
    else:
        flight = "cheapest available flight"
        if flight_number:
            flight += f" (#{flight_number})"
    return (
        f"Price Drop: {leg.value} {flight} {origin}->{destination}"
        f" on {format_date(day)} is now ${new_price} (was ${old_price})"
    )


def _evaluate_leg(
    entry: WatchEntry,
    leg: Leg,
    table: FareTable,
) -> Optional[FareDrop]:
    if leg is Leg.OUTBOUND:
        mode, threshold = entry.outbound_mode, entry.outbound_price
        origin, destination, day = entry.origin, entry.destination, entry.outbound_date
    else:
        mode, threshold = entry.return_mode, entry.return_price
        origin, destination, day = entry.destination, entry.origin, entry.return_date

    target = mode.flight_number if isinstance(mode, ExactFlight) else "cheapest"

    if threshold is None:
        logger.warning(
            "%s: no %s price configured, skipping leg", entry.label, leg.value.lower()
        )
        return None

    row = best_fare(table, mode)
    if row is None:
        logger.info(
            "%s: no %s fare found for %s (%d rows), keeping $%s",
            entry.label,
            leg.value.lower(),
            target,
            len(table),
            threshold,
        )
        return None

    logger.debug(
        "%s: lowest %s price for %s is %s on #%s, threshold %s",
        entry.label,
        leg.value.lower(),
        target,
        row.price,
        row.flight_number,
        threshold,
    )
    if row.price >= threshold:
        return None

    message = drop_message(
        leg,
        mode,
        origin,
        destination,
        day,
        row.price,
        threshold,
        flight_number=row.flight_number if isinstance(mode, CheapestAny) else None,
    )
    return FareDrop(leg=leg, new_price=row.price, old_price=threshold, message=message)


def evaluate(
    entry: WatchEntry,
    outbound: FareTable,
    inbound: FareTable,
    today: date,
) -> EvaluationDecision:
    """Evaluate *entry* against the fare tables of one search."""
    if is_expired(entry, today):
        logger.info(
            "Removing %s from future checks because it is past %s",
            entry.label,
            format_date(entry.outbound_date),
        )
        return EvaluationDecision(updated_entry=entry, expired=True)

    outbound_drop = _evaluate_leg(entry, Leg.OUTBOUND, outbound)
    return_drop = None
    if entry.is_round_trip:
        return_drop = _evaluate_leg(entry, Leg.RETURN, inbound)

    updates = {}
    if outbound_drop:
        updates["outbound_price"] = outbound_drop.new_price
    if return_drop:
        updates["return_price"] = return_drop.new_price
    updated = entry.model_copy(update=updates) if updates else entry

    return EvaluationDecision(
        updated_entry=updated,
        outbound_drop=outbound_drop,
        return_drop=return_drop,
    )


__all__ = ["drop_message", "evaluate", "is_expired"]
