# tests/test_comparator.py

"""Tests for the latest-price comparator."""

import unittest
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from src.models.observation import Observation
from src.services.comparator import ComparisonRow, compare, sort_rows
from src.storage.price_history_db import PriceHistoryDB

T0 = datetime(2024, 12, 1, 9, 0, tzinfo=timezone.utc)
XMAS_IN = date(2024, 12, 25)
XMAS_OUT = date(2024, 12, 26)


class TestCompare(unittest.TestCase):
    """Ranking, filtering and unobserved hotels."""

    def setUp(self) -> None:
        self.db = PriceHistoryDB(db_path=Path(":memory:"))
        for key, name in (
            ("a", "Alpha"),
            ("b", "Bravo"),
            ("c", "Charlie"),
            ("d", "Delta"),
        ):
            self.db.add_hotel(key, name)

    def tearDown(self) -> None:
        self.db.close()

    def _record(
        self,
        key: str,
        price: float,
        minutes: int = 0,
        check_in: date = XMAS_IN,
        check_out: date = XMAS_OUT,
    ) -> None:
        self.db.append(Observation(
            hotel_key=key,
            name=key.upper(),
            price=price,
            currency="USD",
            check_in=check_in,
            check_out=check_out,
            recorded_at=T0 + timedelta(minutes=minutes),
        ))

    def test_sorted_ascending_with_unobserved_last(self) -> None:
        self._record("a", 300.0)
        self._record("c", 120.0)
        rows = compare(self.db)
        self.assertEqual([r.hotel_key for r in rows], ["c", "a", "b", "d"])
        self.assertEqual(rows[0].latest_price, 120.0)
        self.assertIsNone(rows[2].latest_price)
        self.assertIsNone(rows[3].last_updated)

    def test_output_length_matches_input(self) -> None:
        self._record("b", 90.0)
        rows = compare(self.db, hotel_keys=["d", "b"])
        self.assertEqual(len(rows), 2)
        self.assertEqual([r.hotel_key for r in rows], ["b", "d"])

    def test_uses_most_recent_observation(self) -> None:
        self._record("a", 100.0, minutes=0)
        self._record("a", 400.0, minutes=5)
        [row] = compare(self.db, hotel_keys=["a"])
        self.assertEqual(row.latest_price, 400.0)
        self.assertEqual(row.last_updated, T0 + timedelta(minutes=5))
        self.assertEqual(row.name, "Alpha")

    def test_unobserved_keep_input_order(self) -> None:
        rows = compare(self.db, hotel_keys=["d", "b", "a"])
        self.assertEqual([r.hotel_key for r in rows], ["d", "b", "a"])

    def test_date_bounds_are_exact_filters(self) -> None:
        self._record("a", 100.0, minutes=10,
                     check_in=date(2025, 1, 1), check_out=date(2025, 1, 2))
        self._record("a", 250.0, minutes=0)
        [row] = compare(self.db, ["a"], check_in=XMAS_IN, check_out=XMAS_OUT)
        self.assertEqual(row.latest_price, 250.0)

        [row] = compare(self.db, ["a"], check_out=date(2025, 1, 3))
        self.assertIsNone(row.latest_price)

    def test_unregistered_key_still_gets_a_row(self) -> None:
        [row] = compare(self.db, hotel_keys=["zzz"])
        self.assertEqual(row.name, "zzz")
        self.assertIsNone(row.latest_price)

    def test_prices_non_decreasing(self) -> None:
        for i, (key, price) in enumerate(
            (("a", 50.0), ("b", 50.0), ("c", 10.0), ("d", 75.5))
        ):
            self._record(key, price, minutes=i)
        prices = [r.latest_price for r in compare(self.db)]
        self.assertEqual(prices, sorted(prices))  # type: ignore[type-var]

    def test_equal_prices_keep_input_order(self) -> None:
        self._record("a", 50.0)
        self._record("b", 50.0)
        rows = compare(self.db, hotel_keys=["b", "a"])
        self.assertEqual([r.hotel_key for r in rows], ["b", "a"])


class TestSortRows(unittest.TestCase):
    """Sorting and serialisation of plain rows."""

    def test_sort_rows(self) -> None:
        rows = [
            ComparisonRow("x", "X", None, None, None),
            ComparisonRow("y", "Y", 20.0, "USD", T0),
            ComparisonRow("z", "Z", 0.0, "USD", T0),
        ]
        self.assertEqual([r.hotel_key for r in sort_rows(rows)], ["z", "y", "x"])

    def test_to_dict(self) -> None:
        row = ComparisonRow("x", "X", 20.0, "USD", T0)
        self.assertEqual(row.to_dict(), {
            "hotelId": "x",
            "name": "X",
            "latestPrice": 20.0,
            "currency": "USD",
            "lastUpdated": T0.isoformat(),
        })


if __name__ == "__main__":
    unittest.main()
