# tests/test_cli_runner.py

"""Tests for the headless CLI commands and argument parsing."""

import io
import json
import tempfile
import unittest
from datetime import date, datetime, timezone
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from main import _build_parser
from src.cli.runner import (
    cli_search,
    resolve_hotels,
    run_chart,
    run_compare,
    run_history,
    run_hotels,
)
from src.models.errors import InvalidDateRange
from src.models.observation import Observation
from src.services.search_pipeline import BatchResult, SearchFailure
from src.storage.price_history_db import PriceHistoryDB

RECORDED = datetime(2024, 12, 1, 9, 0, tzinfo=timezone.utc)


def _observation(key: str, price: float, name: str = "Hotel") -> Observation:
    return Observation(
        hotel_key=key,
        name=name,
        price=price,
        currency="USD",
        check_in=date(2024, 12, 25),
        check_out=date(2024, 12, 26),
        recorded_at=RECORDED,
    )


class _StoreMixin:
    """In-memory store with two tracked hotels."""

    db: PriceHistoryDB

    def _setup_store(self) -> None:
        self.db = PriceHistoryDB(db_path=Path(":memory:"))
        self.db.add_hotel("2490015", "M Hotel Al Dana Makkah by Millennium")
        self.db.add_hotel("22074", "Elaf Ajyad Hotel")


class TestResolveHotels(_StoreMixin, unittest.TestCase):

    def setUp(self) -> None:
        self._setup_store()

    def tearDown(self) -> None:
        self.db.close()

    def test_none_means_all(self) -> None:
        self.assertIsNone(resolve_hotels(None, self.db))

    def test_known_keys(self) -> None:
        self.assertEqual(
            resolve_hotels(" 22074 , 2490015,", self.db), ["22074", "2490015"],
        )

    def test_unknown_key_exits(self) -> None:
        with self.assertRaises(SystemExit):
            resolve_hotels("22074,nope", self.db)


@patch("src.cli.runner.HotelSearchPipeline")
class TestCliSearch(_StoreMixin, unittest.IsolatedAsyncioTestCase):
    """Batch search from the command line."""

    def setUp(self) -> None:
        self._setup_store()
        self._tmp = tempfile.TemporaryDirectory()

    def tearDown(self) -> None:
        self.db.close()
        self._tmp.cleanup()

    async def _run(self, **overrides: object) -> tuple[int, str]:
        kwargs: dict[str, object] = {
            "check_in": "2024-12-25",
            "check_out": "2024-12-26",
            "hotels_csv": None,
            "guests": 1,
            "output_format": "json",
            "output_dir": self._tmp.name,
            "db": self.db,
            "renderer": MagicMock(),
        }
        kwargs.update(overrides)
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = await cli_search(**kwargs)  # type: ignore[arg-type]
        return code, out.getvalue()

    async def test_json_output_and_saved_file(self, mock_pipeline: MagicMock) -> None:
        mock_pipeline.return_value.search_batch = AsyncMock(return_value=BatchResult(
            observations=[_observation("2490015", 250.0)],
            failures=[SearchFailure("22074", "NotFound", "no price")],
        ))
        code, out = await self._run()
        self.assertEqual(code, 0)
        data = json.loads(out)
        self.assertEqual(data[0]["hotelId"], "2490015")
        self.assertEqual(data[0]["price"], 250.0)
        saved = list(Path(self._tmp.name).glob("search_2024-12-25_2024-12-26_*.json"))
        self.assertEqual(len(saved), 1)

    async def test_hotel_subset_passed_through(self, mock_pipeline: MagicMock) -> None:
        mock_pipeline.return_value.search_batch = AsyncMock(return_value=BatchResult(
            observations=[_observation("22074", 99.0)],
        ))
        await self._run(hotels_csv="22074", guests=2)
        mock_pipeline.return_value.search_batch.assert_awaited_once_with(
            ["22074"], "2024-12-25", "2024-12-26", 2,
        )

    async def test_no_prices_is_failure(self, mock_pipeline: MagicMock) -> None:
        mock_pipeline.return_value.search_batch = AsyncMock(return_value=BatchResult())
        code, out = await self._run()
        self.assertEqual(code, 1)
        self.assertEqual(out, "")

    async def test_invalid_dates_is_failure(self, mock_pipeline: MagicMock) -> None:
        mock_pipeline.return_value.search_batch = AsyncMock(
            side_effect=InvalidDateRange("check-in must be before check-out"),
        )
        code, _ = await self._run(check_in="2024-12-26")
        self.assertEqual(code, 1)

    async def test_table_output(self, mock_pipeline: MagicMock) -> None:
        mock_pipeline.return_value.search_batch = AsyncMock(return_value=BatchResult(
            observations=[_observation("2490015", 250.0, name="M Hotel")],
        ))
        code, out = await self._run(output_format="table")
        self.assertEqual(code, 0)
        self.assertIn("M Hotel", out)


class TestRunCommands(_StoreMixin, unittest.TestCase):
    """compare, history, hotels and chart."""

    def setUp(self) -> None:
        self._setup_store()

    def tearDown(self) -> None:
        self.db.close()

    def _stdout(self, fn: object, *args: object, **kwargs: object) -> tuple[int, str]:
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = fn(*args, **kwargs)  # type: ignore[operator]
        return code, out.getvalue()

    def test_compare_json(self) -> None:
        self.db.append(_observation("22074", 180.0))
        code, out = self._stdout(
            run_compare, None, None, None, "json", db=self.db,
        )
        self.assertEqual(code, 0)
        rows = json.loads(out)
        self.assertEqual([r["hotelId"] for r in rows], ["22074", "2490015"])
        self.assertIsNone(rows[1]["latestPrice"])

    def test_compare_bad_date(self) -> None:
        code, _ = self._stdout(
            run_compare, "12/25/2024", None, None, "json", db=self.db,
        )
        self.assertEqual(code, 1)

    def test_history(self) -> None:
        self.db.append(_observation("22074", 180.0, name="Elaf Ajyad"))
        code, out = self._stdout(run_history, "22074", 10, db=self.db)
        self.assertEqual(code, 0)
        self.assertIn("Elaf Ajyad", out)

    def test_history_unknown_hotel(self) -> None:
        code, _ = self._stdout(run_history, "nope", 10, db=self.db)
        self.assertEqual(code, 1)

    def test_hotels_add_list_remove(self) -> None:
        code, _ = self._stdout(run_hotels, "add", "2548785", "Voco Makkah", db=self.db)
        self.assertEqual(code, 0)
        code, out = self._stdout(run_hotels, "list", db=self.db)
        self.assertIn("Voco Makkah", out)
        code, _ = self._stdout(run_hotels, "remove", "2548785", db=self.db)
        self.assertEqual(code, 0)
        self.assertIsNone(self.db.get_hotel("2548785"))
        code, _ = self._stdout(run_hotels, "remove", "2548785", db=self.db)
        self.assertEqual(code, 1)

    def test_hotels_add_needs_name(self) -> None:
        code, _ = self._stdout(run_hotels, "add", "2548785", db=self.db)
        self.assertEqual(code, 1)

    def test_chart_without_history(self) -> None:
        code, _ = self._stdout(run_chart, ["22074"], open_browser=False, db=self.db)
        self.assertEqual(code, 1)


class TestArgumentParser(unittest.TestCase):
    """Subcommand parsing."""

    def test_no_command_launches_tui(self) -> None:
        self.assertIsNone(_build_parser().parse_args([]).command)

    def test_search_arguments(self) -> None:
        args = _build_parser().parse_args([
            "search", "--check-in", "2024-12-25", "--check-out", "2024-12-26",
            "--hotels", "22074", "-f", "table",
        ])
        self.assertEqual(args.command, "search")
        self.assertEqual(args.check_in, "2024-12-25")
        self.assertEqual(args.hotels, "22074")
        self.assertEqual(args.guests, 1)
        self.assertEqual(args.output_format, "table")

    def test_search_requires_dates(self) -> None:
        with patch("sys.stderr", new_callable=io.StringIO):
            with self.assertRaises(SystemExit):
                _build_parser().parse_args(["search", "--check-in", "2024-12-25"])

    def test_chart_no_open(self) -> None:
        args = _build_parser().parse_args(["chart", "1", "2", "--no-open"])
        self.assertEqual(args.hotel_keys, ["1", "2"])
        self.assertFalse(args.open_browser)


if __name__ == "__main__":
    unittest.main()
