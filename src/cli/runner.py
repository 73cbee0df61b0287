# src/cli/runner.py

"""Headless CLI commands, reusing the async search pipeline."""

import json
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from src.config.settings import ScraperConfig, Settings
from src.models.errors import InvalidQuery
from src.models.observation import Observation
from src.models.search_query import parse_iso_date
from src.scrapers.renderers import Renderer, build_renderer
from src.services.comparator import ComparisonRow, compare
from src.services.search_pipeline import HotelSearchPipeline
from src.storage.file_manager import FileManager
from src.storage.price_history_db import PriceHistoryDB

logger = logging.getLogger("hotel_prices.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)


def open_store(db_path: Path | None = None) -> PriceHistoryDB:
    """Open the history DB, seeding the predefined hotels on first use."""
    db = PriceHistoryDB(db_path)
    db.seed_hotels(Settings.PREDEFINED_HOTELS)
    return db


def resolve_hotels(
    hotels_csv: str | None,
    db: PriceHistoryDB,
) -> list[str] | None:
    """Map a comma-separated list of hotel keys to registered keys.

    Returns ``None`` (all hotels) when *hotels_csv* is ``None``.
    Raises ``SystemExit`` on unknown keys.
    """
    if hotels_csv is None:
        return None

    registered = {h.key for h in db.list_hotels()}
    requested = [
        k.strip() for k in hotels_csv.split(",") if k.strip()
    ]
    unknown = [r for r in requested if r not in registered]
    if unknown:
        _err.print(
            f"[red]Unknown hotel(s): {', '.join(unknown)}[/red]"
        )
        _err.print(
            "[dim]Register one with: hotels add KEY NAME[/dim]"
        )
        raise SystemExit(1)
    return requested


def _format_price(price: float | None, currency: str | None) -> str:
    if price is None:
        return "N/A"
    return f"{currency} {price:,.2f}"


def _print_observations(observations: list[Observation], title: str) -> None:
    """Render a Rich table of observations to stdout."""
    table = Table(
        title=title,
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Hotel ID", style="magenta")
    table.add_column("Name", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Stay", justify="center")
    table.add_column("Recorded (UTC)", style="dim")

    for idx, o in enumerate(observations, 1):
        table.add_row(
            str(idx),
            o.hotel_key,
            o.name[:50],
            _format_price(o.price, o.currency),
            f"{o.check_in} → {o.check_out}",
            o.recorded_at.strftime("%Y-%m-%d %H:%M:%S"),
        )

    Console().print(table)


def _print_comparison(rows: list[ComparisonRow]) -> None:
    """Render a Rich table of comparison rows to stdout."""
    table = Table(
        title="Hotel Price Comparison",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Hotel ID", style="magenta")
    table.add_column("Name", max_width=50)
    table.add_column("Latest Price", justify="right", style="green")
    table.add_column("Last Updated", style="dim")

    for idx, r in enumerate(rows, 1):
        table.add_row(
            str(idx),
            r.hotel_key,
            r.name[:50],
            _format_price(r.latest_price, r.currency),
            (
                r.last_updated.strftime("%Y-%m-%d %H:%M")
                if r.last_updated
                else "—"
            ),
        )

    Console().print(table)


def _dump_json(data: object) -> None:
    json.dump(data, sys.stdout, ensure_ascii=False, indent=2)
    sys.stdout.write("\n")


async def cli_search(
    check_in: str,
    check_out: str,
    hotels_csv: str | None,
    guests: int,
    output_format: str,
    output_dir: str | None,
    db: PriceHistoryDB | None = None,
    renderer: Renderer | None = None,
) -> int:
    """Run a headless batch search and return an exit code (0=ok, 1=fail)."""
    store = db or open_store()
    try:
        hotel_keys = resolve_hotels(hotels_csv, store)
        file_manager = FileManager(
            Path(output_dir) if output_dir is not None else None
        )
        config = ScraperConfig.from_settings()
        pipeline = HotelSearchPipeline(
            renderer=renderer or build_renderer(base_url=config.booking_base_url),
            store=store,
            config=config,
        )

        label = "all hotels" if hotel_keys is None else ", ".join(hotel_keys)
        _err.print(
            f"[bold]Searching:[/bold] {check_in} → {check_out}  "
            f"[dim]hotels={label} guests={guests}[/dim]"
        )

        try:
            result = await pipeline.search_batch(
                hotel_keys, check_in, check_out, guests,
            )
        except InvalidQuery as exc:
            _err.print(f"[red]{exc}[/red]")
            return 1

        for failure in result.failures:
            _err.print(
                f"[red]✗ {failure.hotel_key}: "
                f"{failure.error_type}: {failure.message}[/red]"
            )

        if not result.observations:
            _err.print("[yellow]No prices found.[/yellow]")
            return 1

        _err.print(
            f"[green]✓ {len(result.observations)} prices"
            f" ({len(result.failures)} failed)[/green]"
        )

        try:
            path = file_manager.save_observations(
                f"search_{check_in}_{check_out}", result.observations,
            )
            _err.print(f"[dim]Saved → {path}[/dim]")
        except OSError as exc:
            logger.error("Save failed: %s", exc, exc_info=True)
            _err.print(f"[red]Save failed: {exc}[/red]")

        if output_format == "table":
            _print_observations(result.observations, "Search Results")
        else:
            _dump_json([o.to_dict() for o in result.observations])
        return 0
    finally:
        if db is None:
            store.close()


def run_compare(
    check_in: str | None,
    check_out: str | None,
    hotels_csv: str | None,
    output_format: str,
    db: PriceHistoryDB | None = None,
) -> int:
    """Print the latest-price ranking across hotels."""
    store = db or open_store()
    try:
        try:
            start = (
                parse_iso_date(check_in, "check-in") if check_in else None
            )
            end = (
                parse_iso_date(check_out, "check-out") if check_out else None
            )
        except InvalidQuery as exc:
            _err.print(f"[red]{exc}[/red]")
            return 1

        rows = compare(store, resolve_hotels(hotels_csv, store), start, end)
        if output_format == "table":
            _print_comparison(rows)
        else:
            _dump_json([r.to_dict() for r in rows])
        return 0
    finally:
        if db is None:
            store.close()


def run_history(
    hotel_key: str,
    limit: int,
    db: PriceHistoryDB | None = None,
) -> int:
    """Print a hotel's recent observations and trend summary."""
    store = db or open_store()
    try:
        hotel = store.get_hotel(hotel_key)
        if hotel is None:
            _err.print(f"[red]Unknown hotel: {hotel_key}[/red]")
            return 1

        history = store.query_history(hotel_key, limit=limit)
        if not history:
            _err.print(
                f"[yellow]No observations for {hotel.display_name}.[/yellow]"
            )
            return 0

        _print_observations(history, f"Price History: {hotel.display_name}")
        summary = store.get_trend_summary(hotel_key)
        if summary:
            currency = summary["currency"]
            _err.print(
                f"[bold]{summary['count']} observations[/bold]  "
                f"min {currency} {summary['min']:,.2f}  "
                f"max {currency} {summary['max']:,.2f}  "
                f"avg {currency} {summary['avg']:,.2f}  "
                f"latest {currency} {summary['latest']:,.2f}"
            )
        return 0
    finally:
        if db is None:
            store.close()


def run_hotels(
    action: str,
    key: str | None = None,
    name: str | None = None,
    db: PriceHistoryDB | None = None,
) -> int:
    """List, add or remove tracked hotels."""
    store = db or open_store()
    try:
        if action == "add":
            if not key or not name:
                _err.print("[red]hotels add needs KEY and NAME[/red]")
                return 1
            hotel = store.add_hotel(key, name)
            _err.print(
                f"[green]✓ Registered {hotel.key} ({hotel.display_name})[/green]"
            )
            return 0

        if action == "remove":
            if not key:
                _err.print("[red]hotels remove needs KEY[/red]")
                return 1
            if not store.remove_hotel(key):
                _err.print(f"[yellow]No hotel {key} to remove.[/yellow]")
                return 1
            _err.print(f"[green]✓ Removed {key}[/green]")
            return 0

        table = Table(
            title="Tracked Hotels",
            show_lines=True,
            title_style="bold cyan",
        )
        table.add_column("Hotel ID", style="magenta")
        table.add_column("Name")
        table.add_column("Registered", style="dim")
        for h in store.list_hotels():
            table.add_row(
                h.key,
                h.display_name,
                h.created_at.strftime("%Y-%m-%d %H:%M"),
            )
        Console().print(table)
        return 0
    finally:
        if db is None:
            store.close()


def run_chart(
    hotel_keys: list[str],
    open_browser: bool = True,
    db: PriceHistoryDB | None = None,
) -> int:
    """Write a history chart (one hotel) or an overlay chart (several)."""
    from src.storage.chart_exporter import (
        export_comparison_chart,
        export_history_chart,
    )

    store = db or open_store()
    try:
        if len(hotel_keys) == 1:
            path = export_history_chart(
                hotel_keys[0], store, open_browser=open_browser,
            )
        else:
            path = export_comparison_chart(
                hotel_keys, store, open_browser=open_browser,
            )
        if path is None:
            _err.print(
                "[yellow]Not enough price history to chart "
                "(need at least 2 observations).[/yellow]"
            )
            return 1
        _err.print(f"[green]✓ Chart saved → {path}[/green]")
        return 0
    finally:
        if db is None:
            store.close()
