# tests/test_chart_exporter.py

"""Tests for the Plotly chart exporter."""

import tempfile
import unittest
from datetime import date, datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import MagicMock, patch

from src.models.observation import Observation
from src.storage.chart_exporter import (
    export_comparison_chart,
    export_history_chart,
)
from src.storage.price_history_db import PriceHistoryDB


class _DBMixin:
    """Provide an in-memory PriceHistoryDB with sample history."""

    db: PriceHistoryDB

    def _setup_db(self) -> None:
        """Three hotels, five days of prices for two of them."""
        self.db = PriceHistoryDB(db_path=Path(":memory:"))
        self.db.add_hotel("2490015", "M Hotel Al Dana Makkah by Millennium")
        self.db.add_hotel("22074", "Elaf Ajyad Hotel")
        self.db.add_hotel("2548785", "Voco Makkah")
        start = datetime(2024, 12, 1, 8, 0, tzinfo=timezone.utc)
        for day in range(5):
            for key, base in (("2490015", 250.0), ("22074", 180.0)):
                self.db.append(Observation(
                    hotel_key=key,
                    name=key,
                    price=base + day * 5,
                    currency="USD",
                    check_in=date(2024, 12, 25),
                    check_out=date(2024, 12, 26),
                    recorded_at=start + timedelta(days=day),
                ))
        # A single reading is not enough for a trend
        self.db.append(Observation(
            hotel_key="2548785",
            name="Voco Makkah",
            price=300.0,
            currency="SAR",
            check_in=date(2024, 12, 25),
            check_out=date(2024, 12, 26),
            recorded_at=start,
        ))


class TestExportHistoryChart(_DBMixin, unittest.TestCase):
    """Tests for single-hotel chart export."""

    def setUp(self) -> None:
        self._setup_db()

    def tearDown(self) -> None:
        self.db.close()

    @patch("src.storage.chart_exporter.webbrowser")
    def test_generates_html_file(self, mock_wb: MagicMock) -> None:
        """Export should create an HTML file and skip the browser."""
        with tempfile.TemporaryDirectory() as tmp:
            with patch("src.storage.chart_exporter._CHARTS_DIR", Path(tmp)):
                result = export_history_chart(
                    "2490015", self.db, open_browser=False,
                )
                self.assertIsNotNone(result)
                assert result is not None
                self.assertTrue(result.exists())
                self.assertTrue(result.name.startswith("hotel_2490015_"))
                content = result.read_text(encoding="utf-8")
                self.assertIn("plotly", content.lower())
                self.assertIn("M Hotel Al Dana", content)
        mock_wb.open.assert_not_called()

    @patch("src.storage.chart_exporter.webbrowser")
    def test_opens_browser_when_asked(self, mock_wb: MagicMock) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with patch("src.storage.chart_exporter._CHARTS_DIR", Path(tmp)):
                result = export_history_chart("22074", self.db)
        assert result is not None
        mock_wb.open.assert_called_once_with(result.as_uri())

    def test_returns_none_for_insufficient_data(self) -> None:
        """Fewer than two readings give no chart."""
        self.assertIsNone(
            export_history_chart("2548785", self.db, open_browser=False)
        )
        self.assertIsNone(
            export_history_chart("unknown", self.db, open_browser=False)
        )


class TestExportComparisonChart(_DBMixin, unittest.TestCase):
    """Tests for the multi-hotel overlay chart."""

    def setUp(self) -> None:
        self._setup_db()

    def tearDown(self) -> None:
        self.db.close()

    @patch("src.storage.chart_exporter.webbrowser")
    def test_generates_comparison_html(self, _mock_wb: MagicMock) -> None:
        """Hotels with a trend are drawn; the rest are skipped."""
        with tempfile.TemporaryDirectory() as tmp:
            with patch("src.storage.chart_exporter._CHARTS_DIR", Path(tmp)):
                result = export_comparison_chart(
                    ["2490015", "22074", "2548785"], self.db,
                    open_browser=False,
                )
                self.assertIsNotNone(result)
                assert result is not None
                self.assertTrue(result.exists())
                content = result.read_text(encoding="utf-8")
                self.assertIn("Elaf Ajyad Hotel", content)
                self.assertNotIn("Voco Makkah", content)

    def test_returns_none_without_trends(self) -> None:
        result = export_comparison_chart(
            ["2548785", "missing"], self.db, open_browser=False,
        )
        self.assertIsNone(result)


if __name__ == "__main__":
    unittest.main()
