# tests/test_file_manager.py

"""Tests for the FileManager storage module."""

import csv
import json
import tempfile
import unittest
from datetime import date, datetime, timezone
from pathlib import Path

from src.models.observation import Observation
from src.services.comparator import ComparisonRow
from src.storage.file_manager import FileManager, _slug

RECORDED = datetime(2024, 12, 1, 9, 0, tzinfo=timezone.utc)


class TestFileManager(unittest.TestCase):
    """Tests for JSON save and CSV export."""

    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.fm = FileManager(results_dir=Path(self._tmp.name) / "results")

    def _observations(self) -> list[Observation]:
        return [
            Observation(
                hotel_key=key,
                name=name,
                price=price,
                currency="USD",
                check_in=date(2024, 12, 25),
                check_out=date(2024, 12, 26),
                recorded_at=RECORDED,
            )
            for key, name, price in (
                ("2490015", "M Hotel Al Dana", 250.0),
                ("22074", "Elaf Ajyad Hotel", 180.5),
            )
        ]

    def test_creates_results_dir(self) -> None:
        self.assertTrue(self.fm.results_dir.is_dir())

    def test_save_observations_json(self) -> None:
        path = self.fm.save_observations(
            "2024-12-25 to 2024-12-26", self._observations(),
        )
        self.assertEqual(path.suffix, ".json")
        self.assertTrue(path.name.startswith("2024-12-25_to_2024-12-26_"))
        data = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(len(data), 2)
        self.assertEqual(data[0]["hotelId"], "2490015")
        self.assertEqual(data[1]["price"], 180.5)
        self.assertEqual(data[0]["checkIn"], "2024-12-25")

    def test_export_comparison_csv_sorted(self) -> None:
        rows = [
            ComparisonRow("a", "Alpha", None, None, None),
            ComparisonRow("b", "Bravo", 300.0, "USD", RECORDED),
            ComparisonRow("c", "Charlie", 99.5, "EUR", RECORDED),
        ]
        path = self.fm.export_comparison_csv("compare", rows)
        self.assertTrue(path.name.startswith("export_compare_"))
        with open(path, encoding="utf-8", newline="") as f:
            records = list(csv.reader(f))
        self.assertEqual(
            records[0],
            ["Hotel ID", "Name", "Latest Price", "Currency", "Last Updated"],
        )
        self.assertEqual([r[0] for r in records[1:]], ["c", "b", "a"])
        self.assertEqual(records[1][2], "99.50")
        self.assertEqual(records[3][2:], ["", "", ""])

    def test_slug(self) -> None:
        self.assertEqual(_slug("Elaf / Ajyad?"), "Elaf_Ajyad")
        self.assertEqual(_slug("  ***  "), "results")


if __name__ == "__main__":
    unittest.main()
