from __future__ import annotations

import logging
from datetime import date
from typing import List

import requests
from selectolax.lexbor import LexborHTMLParser  # type: ignore[import-untyped]

from .models import RawRow, SearchResult, WatchEntry

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_URL = "https://www.southwest.com/air/booking/select.html"

OUTBOUND_ROWS = "table#faresOutbound tbody tr"
RETURN_ROWS = "table#faresReturn tbody tr"
FLIGHT_CELL = ".js-flight-performance"
PRICE_CELL = ".product_price"


class SearchProviderError(RuntimeError):
    """Fare search against southwest.com failed."""


def _rows(parser: LexborHTMLParser, selector: str) -> List[RawRow]:
    rows: List[RawRow] = []
    for tr in parser.css(selector):
        flight = tr.css_first(FLIGHT_CELL)
        prices = tuple(
            node.text(separator=" ", strip=True) for node in tr.css(PRICE_CELL)
        )
        rows.append(
            RawRow(
                flight_text=flight.text(separator=" ", strip=True) if flight else "",
                price_tokens=prices,
            )
        )
    return rows


def parse_results(html: str) -> SearchResult:
    """Split a result page into outbound and return rows.

    A missing fare table gives an empty list for that leg.
    """
    parser = LexborHTMLParser(html)
    return SearchResult(
        outbound=_rows(parser, OUTBOUND_ROWS),
        inbound=_rows(parser, RETURN_ROWS),
    )


class SouthwestFetcher:
    """
    Client for the southwest.com fare search (booking form, dollar fares).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_SEARCH_URL,
        timeout: float = 30,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout

    # ──────────────────────────────────────────────────────────

    def search_fares(
        self,
        origin: str,
        destination: str,
        outbound_date: date,
        return_date: date | None = None,
        *,
        adults: int = 1,
    ) -> SearchResult:
        """Return outbound (and, for round trips, return) rows for a search."""
        round_trip = return_date is not None
        params = {
            "twoWayTrip": "true" if round_trip else "false",
            "returnAirport": "RoundTrip" if round_trip else "",
            "originAirport": origin,
            "destinationAirport": destination,
            "outboundDateString": outbound_date.strftime("%m/%d/%Y"),
            "returnDateString": return_date.strftime("%m/%d/%Y") if return_date else "",
            "outboundTimeOfDay": "ANYTIME",
            "returnTimeOfDay": "ANYTIME",
            "adultPassengerCount": adults,
            "seniorPassengerCount": 0,
            "fareType": "DOLLARS",
        }
        logger.info(
            "Checking southwest.com: %s->%s out=%s ret=%s adults=%s",
            origin,
            destination,
            params["outboundDateString"],
            params["returnDateString"] or "-",
            adults,
        )

        try:
            resp = requests.get(
                self.base_url,
                params=params,
                timeout=self.timeout,
                headers={"Accept-Encoding": "gzip"},
            )
        except requests.RequestException as exc:
            raise SearchProviderError(f"Request failed: {exc}") from exc

        if resp.status_code != 200:
            raise SearchProviderError(f"HTTP {resp.status_code} – {resp.text[:120]}")

        result = parse_results(resp.text)
        if not round_trip:
            result.inbound = []
        logger.debug(
            "Got %d outbound and %d return rows",
            len(result.outbound),
            len(result.inbound),
        )
        return result

    def fetch_entry(self, entry: WatchEntry) -> SearchResult:
        return self.search_fares(
            entry.origin,
            entry.destination,
            entry.outbound_date,
            entry.return_date,
            adults=entry.adults,
        )


__all__ = [
    "DEFAULT_SEARCH_URL",
    "SearchProviderError",
    "SouthwestFetcher",
    "parse_results",
]
