"""Data models used throughout the project."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

# Format used by the watch file for dates written back to disk
DATE_FORMAT = "%m-%d-%Y"
_DATE_INPUT_FORMATS = (DATE_FORMAT, "%m/%d/%Y", "%Y-%m-%d")


def parse_date(value: Any) -> Optional[date]:
    """Return *value* as a calendar date.

    Accepts ``date``/``datetime`` objects and strings in ``MM-DD-YYYY``,
    ``MM/DD/YYYY`` or ISO ``YYYY-MM-DD`` form. Time of day is discarded.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    for fmt in _DATE_INPUT_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    raise ValueError(f"unrecognised date {text!r}, expected MM-DD-YYYY")


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


# ────────────────────────────────────────────────────────────────
# Selection modes
# ────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class ExactFlight:
    """Compare only fares of one flight number."""

    flight_number: str


@dataclass(slots=True, frozen=True)
class CheapestAny:
    """Compare the cheapest fare of the whole result table."""


SelectionMode = Union[ExactFlight, CheapestAny]


class Leg(str, Enum):
    OUTBOUND = "Outbound"
    RETURN = "Return"


# ────────────────────────────────────────────────────────────────
# Watch entry (one record of the watch file)
# ────────────────────────────────────────────────────────────────

_MUTABLE_FIELDS = ("outbound_date", "return_date", "outbound_price", "return_price")


class WatchEntry(BaseModel):
    """One monitored trip, keyed the way the watch file stores it."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    origin: str = Field(..., alias="originAirport")
    destination: str = Field(..., alias="destinationAirport")
    outbound_date: date = Field(..., alias="outboundDate")
    return_date: Optional[date] = Field(None, alias="returnDate")
    adults: int = Field(1, alias="adultPassengerCount", gt=0)
    outbound_flight: Optional[str] = Field(None, alias="outboundFlightNumber")
    return_flight: Optional[str] = Field(None, alias="returnFlightNumber")
    outbound_price: int = Field(..., alias="outboundPrice", ge=0)
    return_price: Optional[int] = Field(None, alias="returnPrice", ge=0)

    _source: Dict[str, Any] = PrivateAttr(default_factory=dict)

    @field_validator("origin", "destination")
    @classmethod
    def _iata_code(cls, v: str) -> str:
        code = v.strip().upper()
        if not re.fullmatch(r"[A-Z]{3}", code):
            raise ValueError(f"{v!r} is not a 3-letter IATA airport code")
        return code

    @field_validator("outbound_date", "return_date", mode="before")
    @classmethod
    def _calendar_date(cls, v):
        return parse_date(v)

    @field_validator("outbound_flight", "return_flight", mode="before")
    @classmethod
    def _flight_as_text(cls, v):
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @classmethod
    def from_mapping(cls, raw: Dict[str, Any]) -> "WatchEntry":
        """Validate *raw* and remember it so unrelated keys survive a save."""
        entry = cls.model_validate(raw)
        entry._source = dict(raw)
        return entry

    # ── derived ────────────────────────────────────────────────

    @property
    def is_round_trip(self) -> bool:
        return self.return_date is not None

    @property
    def outbound_mode(self) -> SelectionMode:
        if self.outbound_flight:
            return ExactFlight(self.outbound_flight)
        return CheapestAny()

    @property
    def return_mode(self) -> SelectionMode:
        if self.return_flight:
            return ExactFlight(self.return_flight)
        return CheapestAny()

    @property
    def label(self) -> str:
        trip = f"{self.origin}->{self.destination} {format_date(self.outbound_date)}"
        if self.return_date:
            trip += f" / {format_date(self.return_date)}"
        return trip

    def to_mapping(self) -> Dict[str, Any]:
        """Return the entry as stored in the watch file.

        Entries loaded from disk keep their original keys and key order; only
        prices and dates are written back, and only when they changed.
        """
        if not self._source:
            data = self.model_dump(by_alias=True, exclude_none=True)
            for key, value in data.items():
                if isinstance(value, date):
                    data[key] = format_date(value)
            return data

        data = dict(self._source)
        for name in _MUTABLE_FIELDS:
            alias = type(self).model_fields[name].alias
            value = getattr(self, name)
            if value is None:
                continue
            if isinstance(value, date):
                if alias in data and parse_date(data[alias]) == value:
                    continue
                data[alias] = format_date(value)
            elif data.get(alias) != value:
                data[alias] = value
        return data


# ────────────────────────────────────────────────────────────────
# Search results and fares
# ────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class RawRow:
    """One result-table row as scraped: flight text plus price cell texts."""

    flight_text: str
    price_tokens: tuple = ()


@dataclass(slots=True)
class SearchResult:
    outbound: List[RawRow] = field(default_factory=list)
    inbound: List[RawRow] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class FareRow:
    flight_number: str
    price: int


FareTable = List[FareRow]


# ────────────────────────────────────────────────────────────────
# Decisions
# ────────────────────────────────────────────────────────────────


@dataclass(slots=True, frozen=True)
class FareDrop:
    leg: Leg
    new_price: int
    old_price: int
    message: str


@dataclass(slots=True)
class EvaluationDecision:
    updated_entry: WatchEntry
    expired: bool = False
    outbound_drop: Optional[FareDrop] = None
    return_drop: Optional[FareDrop] = None

    @property
    def drops(self) -> List[FareDrop]:
        return [d for d in (self.outbound_drop, self.return_drop) if d]


@dataclass(slots=True)
class RunResult:
    notifications: List[str] = field(default_factory=list)
    kept_entries: List[WatchEntry] = field(default_factory=list)
    dropped_count: int = 0
    persist_needed: bool = False


__all__ = [
    "DATE_FORMAT",
    "CheapestAny",
    "EvaluationDecision",
    "ExactFlight",
    "FareDrop",
    "FareRow",
    "FareTable",
    "Leg",
    "RawRow",
    "RunResult",
    "SearchResult",
    "SelectionMode",
    "WatchEntry",
    "format_date",
    "parse_date",
]
