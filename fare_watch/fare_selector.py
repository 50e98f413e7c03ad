from __future__ import annotations

from typing import Optional

from .fare_parser import flight_number_of
from .models import CheapestAny, ExactFlight, FareRow, FareTable, SelectionMode


def normalize_flight_number(value: object) -> str:
    """Return the flight number as its numeric value written without padding.

    ``" 0123"``, ``"123"`` and ``"WN 123"`` all normalize to ``"123"``.
    Values without digits are returned stripped.
    """
    text = str(value).strip()
    digits = flight_number_of(text)
    if digits is None:
        return text
    return str(int(digits))


def best_fare(table: FareTable, mode: SelectionMode) -> Optional[FareRow]:
    """Return the cheapest row of *table* eligible under *mode*.

    ``None`` means no row qualified; it is never a price.
    """
    if isinstance(mode, ExactFlight):
        target = normalize_flight_number(mode.flight_number)
        rows = [r for r in table if normalize_flight_number(r.flight_number) == target]
    elif isinstance(mode, CheapestAny):
        rows = list(table)
    else:
        raise TypeError(f"Unknown selection mode: {mode!r}")

    if not rows:
        return None
    return min(rows, key=lambda r: r.price)


def select_fare(table: FareTable, mode: SelectionMode) -> Optional[int]:
    """Return the comparison price for one leg, or ``None`` if none found."""
    row = best_fare(table, mode)
    return row.price if row else None


__all__ = ["best_fare", "normalize_flight_number", "select_fare"]
