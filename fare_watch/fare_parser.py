from __future__ import annotations

import re
from typing import Iterable, List

from .models import FareRow, FareTable, RawRow

_FLIGHT_RE = re.compile(r"\d+")
# "$89", "$ 89", "$1,204" and "$89.60" all count as one amount
_PRICE_RE = re.compile(r"\$\s*(\d{1,3}(?:,\d{3})+|\d+)")


def flight_number_of(text: str) -> str | None:
    """Return the first run of digits in *text* or ``None``."""
    match = _FLIGHT_RE.search(text or "")
    return match.group(0) if match else None


def prices_of(tokens: Iterable[str]) -> List[int]:
    """Return every whole-dollar amount found in *tokens*, in order."""
    prices: List[int] = []
    for token in tokens:
        for amount in _PRICE_RE.findall(token or ""):
            prices.append(int(amount.replace(",", "")))
    return prices


def parse_row(row: RawRow) -> List[FareRow]:
    """Turn one result row into one ``FareRow`` per fare-class price.

    Rows without a flight number yield nothing.
    """
    flight_number = flight_number_of(row.flight_text)
    if flight_number is None:
        return []
    return [FareRow(flight_number, price) for price in prices_of(row.price_tokens)]


def build_table(rows: Iterable[RawRow]) -> FareTable:
    """Parse all *rows* of one leg into a fare table, skipping malformed ones."""
    table: FareTable = []
    for row in rows:
        table.extend(parse_row(row))
    return table


__all__ = ["build_table", "flight_number_of", "parse_row", "prices_of"]
