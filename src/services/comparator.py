# src/services/comparator.py

"""Rank hotels by their most recent observed price."""

import logging
from dataclasses import dataclass
from datetime import date, datetime

from src.storage.price_history_db import PriceHistoryDB

logger = logging.getLogger("hotel_prices.comparator")


@dataclass(frozen=True)
class ComparisonRow:
    """One hotel's latest price; ``None`` fields mean never observed."""

    hotel_key: str
    name: str
    latest_price: float | None
    currency: str | None
    last_updated: datetime | None

    def to_dict(self) -> dict[str, object]:
        return {
            "hotelId": self.hotel_key,
            "name": self.name,
            "latestPrice": self.latest_price,
            "currency": self.currency,
            "lastUpdated": (
                self.last_updated.isoformat() if self.last_updated else None
            ),
        }


def sort_rows(rows: list[ComparisonRow]) -> list[ComparisonRow]:
    """Cheapest first; unobserved hotels last in their original order."""
    return sorted(
        rows,
        key=lambda r: (r.latest_price is None, r.latest_price or 0.0),
    )


def compare(
    store: PriceHistoryDB,
    hotel_keys: list[str] | None = None,
    check_in: date | None = None,
    check_out: date | None = None,
) -> list[ComparisonRow]:
    """Build a price-ranked row for every requested hotel.

    Args:
        store: Source of hotels and observations.
        hotel_keys: Hotels to include; ``None`` means all registered
            hotels in registration order.  Unregistered keys still get
            a row, named after the key.
        check_in: Only consider observations for this exact check-in.
        check_out: Only consider observations for this exact check-out.

    Returns:
        One row per input hotel.  Prices in different currencies are
        ranked by raw value; no conversion is applied.
    """
    if hotel_keys is None:
        names = {h.key: h.display_name for h in store.list_hotels()}
        keys = list(names)
    else:
        keys = list(hotel_keys)
        names = {}
        for key in keys:
            hotel = store.get_hotel(key)
            names[key] = hotel.display_name if hotel else key

    rows: list[ComparisonRow] = []
    for key in keys:
        latest = store.latest_observation(key, check_in, check_out)
        if latest is None:
            rows.append(ComparisonRow(key, names[key], None, None, None))
            continue
        rows.append(ComparisonRow(
            hotel_key=key,
            name=names[key],
            latest_price=latest.price,
            currency=latest.currency,
            last_updated=latest.recorded_at,
        ))

    ranked = sort_rows(rows)
    logger.debug(
        "Compared %d hotels (%d without observations)",
        len(ranked),
        sum(1 for r in ranked if r.latest_price is None),
    )
    return ranked
