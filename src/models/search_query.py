# src/models/search_query.py

"""Validated search request for one hotel and stay."""

import re
from dataclasses import dataclass
from datetime import date

from src.models.errors import InvalidDateRange, InvalidQuery

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_iso_date(value: str | date, label: str) -> date:
    """Parse a ``YYYY-MM-DD`` string (or pass a date through)."""
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not _ISO_DATE_RE.match(text):
        raise InvalidDateRange(
            f"{label} '{value}' is not a YYYY-MM-DD date"
        )
    try:
        return date.fromisoformat(text)
    except ValueError as exc:
        raise InvalidDateRange(
            f"{label} '{value}' is not a valid calendar date"
        ) from exc


def parse_stay_dates(
    check_in: str | date, check_out: str | date,
) -> tuple[date, date]:
    """Parse both stay dates and require check-in before check-out."""
    start = parse_iso_date(check_in, "check-in")
    end = parse_iso_date(check_out, "check-out")
    if start >= end:
        raise InvalidDateRange(
            f"check-in {start} must be before check-out {end}"
        )
    return start, end


@dataclass(frozen=True)
class SearchQuery:
    """Everything a renderer needs to load one hotel's price page."""

    hotel_key: str
    check_in: date
    check_out: date
    guests: int = 1
    hotel_name: str = ""

    @classmethod
    def build(
        cls,
        hotel_key: str,
        check_in: str | date,
        check_out: str | date,
        guests: int = 1,
        hotel_name: str = "",
    ) -> "SearchQuery":
        """Validate raw inputs and return a query.

        Raises:
            InvalidDateRange: Malformed dates or an empty/negative stay.
            InvalidQuery: Missing hotel key or fewer than one guest.
        """
        if not hotel_key or not hotel_key.strip():
            raise InvalidQuery("hotel key must not be empty")
        if guests < 1:
            raise InvalidQuery(f"guests must be >= 1, got {guests}")
        start, end = parse_stay_dates(check_in, check_out)
        return cls(
            hotel_key=hotel_key.strip(),
            check_in=start,
            check_out=end,
            guests=guests,
            hotel_name=hotel_name.strip(),
        )
