from __future__ import annotations

import logging
from datetime import date
from typing import Callable, Iterable, List, Optional, Tuple

from .evaluator import evaluate, is_expired
from .fare_parser import build_table
from .models import FareTable, Leg, RunResult, SearchResult, WatchEntry
from .notifier import notify
from .watch_store import WatchStore

logger = logging.getLogger(__name__)
fare_logger = logging.getLogger("fare_watch.fares")

Fetch = Callable[[WatchEntry], SearchResult]


def _log_fares(entry: WatchEntry, leg: Leg, table: FareTable) -> None:
    day = entry.outbound_date if leg is Leg.OUTBOUND else entry.return_date
    for row in table:
        fare_logger.debug(
            "Found price %s for %s flight %s on %s (%s->%s)",
            row.price,
            leg.value.lower(),
            row.flight_number,
            day,
            entry.origin,
            entry.destination,
        )


def _fetch_tables(entry: WatchEntry, fetch: Fetch) -> Tuple[FareTable, FareTable]:
    try:
        result = fetch(entry)
    except Exception as exc:
        logger.warning("  Failed to fetch %s: %s", entry.label, exc)
        return [], []

    outbound = build_table(result.outbound)
    inbound = build_table(result.inbound) if entry.is_round_trip else []
    _log_fares(entry, Leg.OUTBOUND, outbound)
    _log_fares(entry, Leg.RETURN, inbound)
    return outbound, inbound


def run(
    entries: Iterable[WatchEntry],
    fetch: Fetch,
    today: Optional[date] = None,
) -> RunResult:
    """Evaluate every entry in order and aggregate the outcome.

    Expired entries are not fetched. A failing fetch counts as an empty
    result for that entry only.
    """
    today = today or date.today()
    result = RunResult()

    for entry in entries:
        if is_expired(entry, today):
            outbound, inbound = [], []
        else:
            outbound, inbound = _fetch_tables(entry, fetch)

        decision = evaluate(entry, outbound, inbound, today)
        if decision.expired:
            result.dropped_count += 1
            result.persist_needed = True
            continue

        result.notifications.extend(d.message for d in decision.drops)
        result.kept_entries.append(decision.updated_entry)
        if decision.updated_entry != entry:
            result.persist_needed = True

    return result


def apply_date_override(
    entries: Iterable[WatchEntry],
    outbound_date: date,
    return_date: date,
) -> List[WatchEntry]:
    """Move every entry to the given dates; one-way entries keep no return date."""
    moved: List[WatchEntry] = []
    for entry in entries:
        updates = {"outbound_date": outbound_date}
        if entry.is_round_trip:
            updates["return_date"] = return_date
        moved.append(entry.model_copy(update=updates))
    return moved


def check_watches(
    store: WatchStore,
    fetch: Fetch,
    *,
    today: Optional[date] = None,
    dates: Optional[Tuple[date, date]] = None,
    send: Callable[[str], bool] = notify,
) -> RunResult:
    """Load watches, evaluate them, send drop messages and save if needed.

    ``WatchStoreError`` from loading or saving propagates to the caller.
    """
    entries = store.load()
    if dates:
        entries = apply_date_override(entries, *dates)

    result = run(entries, fetch, today=today)

    failed = 0
    for msg in result.notifications:
        try:
            delivered = send(msg)
        except Exception as exc:
            logger.error("Failed to send %r: %s", msg, exc)
            delivered = False
        if not delivered:
            failed += 1
    if failed:
        logger.warning("%d of %d notifications failed", failed, len(result.notifications))

    if result.persist_needed:
        store.save(result.kept_entries)
    else:
        logger.debug("No changes, watch file left untouched")

    logger.info(
        "All done checking flight prices: %d drops, %d kept, %d removed",
        len(result.notifications),
        len(result.kept_entries),
        result.dropped_count,
    )
    return result


__all__ = ["Fetch", "apply_date_override", "check_watches", "run"]
