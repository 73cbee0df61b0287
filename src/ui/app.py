# src/ui/app.py

"""Terminal UI for tracking and comparing hotel prices."""

import logging
from typing import cast

from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    Static,
)

from src.cli.runner import open_store
from src.config.settings import ScraperConfig, Settings
from src.models.errors import InvalidQuery
from src.models.observation import Observation
from src.models.search_query import parse_stay_dates
from src.scrapers.renderers import Renderer, build_renderer
from src.services.comparator import ComparisonRow, compare, sort_rows
from src.services.search_pipeline import HotelSearchPipeline
from src.storage.file_manager import FileManager
from src.storage.price_history_db import PriceHistoryDB

logger = logging.getLogger("hotel_prices.ui")


class HotelPriceApp(App[object]):
    """Terminal UI for tracking and comparing hotel prices."""

    CSS_PATH = "styles.tcss"

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("s", "save", "Save"),
        Binding("e", "export", "Export CSV"),
        Binding("p", "sort_price", "Price Sort"),
        Binding("c", "chart", "History Chart"),
        Binding("r", "refresh", "Refresh"),
    ]

    def __init__(
        self,
        db: PriceHistoryDB | None = None,
        renderer: Renderer | None = None,
        file_manager: FileManager | None = None,
    ) -> None:
        super().__init__()
        self._owns_db = db is None
        self.db = db or open_store()
        self._renderer = renderer
        self.file_manager = file_manager or FileManager()
        self.settings = Settings()
        self.rows: list[ComparisonRow] = []
        self.observations: list[Observation] = []
        self.current_label: str = ""

    def compose(self) -> ComposeResult:
        """Build the widget tree for the TUI."""
        yield Header()
        yield Container(
            Static("🏨 Hotel Price Tracker", id="title"),

            # Stay dates
            Horizontal(
                Input(placeholder="Check-in YYYY-MM-DD", id="check_in"),
                Input(placeholder="Check-out YYYY-MM-DD", id="check_out"),
                Button("Search", variant="primary", id="search_btn"),
                id="search_bar",
            ),

            Static("Ready", id="status"),
            cast(
                DataTable[str | Text],
                DataTable(
                    id="results_table",
                    zebra_stripes=True,
                    cursor_type="row",
                ),
            ),
            id="main_container",
        )
        yield Footer()

    def on_mount(self) -> None:
        """Configure the table and show stored prices on startup."""
        table = self._table()
        table.add_columns(
            "#", "Hotel ID", "Name", "Latest Price", "Last Updated",
        )
        self.rows = compare(self.db)
        self.populate_table()

    def on_unmount(self) -> None:
        if self._owns_db:
            self.db.close()

    def _table(self) -> DataTable[str | Text]:
        return cast(
            DataTable[str | Text],
            self.query_one("#results_table", DataTable),
        )

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button click events."""
        if event.button.id == "search_btn":
            await self.perform_search()

    async def on_input_submitted(self, event: Input.Submitted) -> None:
        """Handle Enter key in either date input."""
        if event.input.id in ("check_in", "check_out"):
            await self.perform_search()

    async def perform_search(self) -> None:
        """Search every tracked hotel for the entered stay."""
        check_in = self.query_one("#check_in", Input).value.strip()
        check_out = self.query_one("#check_out", Input).value.strip()
        if not check_in or not check_out:
            self.notify(
                "Enter check-in and check-out dates", severity="warning"
            )
            return
        try:
            start, end = parse_stay_dates(check_in, check_out)
        except InvalidQuery as exc:
            self.notify(str(exc), severity="error")
            return

        status = self.query_one("#status", Static)
        status.update(f"🔍 Searching {start} → {end}...")

        config = ScraperConfig.from_settings()
        if self._renderer is None:
            self._renderer = build_renderer(base_url=config.booking_base_url)
        pipeline = HotelSearchPipeline(
            renderer=self._renderer,
            store=self.db,
            config=config,
        )
        try:
            result = await pipeline.search_batch(None, start, end)
        except Exception as e:
            # Renderer start-up faults (e.g. no Chromium installed)
            logger.error("Batch search failed: %s", e, exc_info=True)
            self.notify(f"Search failed: {e}", severity="error")
            status.update("❌ Search failed")
            return

        for failure in result.failures:
            self.notify(
                f"{failure.hotel_key}: {failure.message}",
                severity="error",
            )

        self.observations = result.observations
        self.current_label = f"search_{start}_{end}"
        self.rows = compare(self.db, check_in=start, check_out=end)
        self.populate_table()

        if not result.observations:
            status.update("❌ No prices found")
        else:
            self._auto_save_results()
            status.update(
                f"✅ {len(result.observations)} prices, "
                f"{len(result.failures)} failed (saved)"
            )

    def _auto_save_results(self) -> None:
        """Save observations after every successful search."""
        try:
            path = self.file_manager.save_observations(
                self.current_label, self.observations,
            )
            logger.info("Auto-saved observations to %s", path)
        except OSError as e:
            logger.error("Auto-save failed: %s", e, exc_info=True)
            self.notify(f"Auto-save failed: {e}", severity="error")

    def populate_table(self) -> None:
        """Fill the DataTable with the current comparison rows."""
        table = self._table()
        table.clear()
        if not self.rows:
            return

        min_price = min(
            (r.latest_price for r in self.rows if r.latest_price is not None),
            default=None,
        )

        for idx, r in enumerate(self.rows, 1):
            if r.latest_price is None:
                price = Text("N/A", style="dim")
            else:
                is_cheapest = r.latest_price == min_price
                price = Text(
                    f"{r.currency} {r.latest_price:,.2f}",
                    style="bold green" if is_cheapest else "",
                )
            table.add_row(
                str(idx),
                r.hotel_key,
                r.name[:50],
                price,
                (
                    r.last_updated.strftime("%Y-%m-%d %H:%M")
                    if r.last_updated
                    else "—"
                ),
            )

    def _selected_row(self) -> ComparisonRow | None:
        row = self._table().cursor_row
        if 0 <= row < len(self.rows):
            return self.rows[row]
        return None

    def action_refresh(self) -> None:
        """Reload the comparison from the store."""
        self.rows = compare(self.db)
        self.populate_table()

    def action_sort_price(self) -> None:
        """Sort rows by latest price, ascending."""
        self.rows = sort_rows(self.rows)
        self.populate_table()

    def action_save(self) -> None:
        """Save the last search's observations to a JSON file."""
        if not self.observations:
            self.notify("No results to save", severity="warning")
            return
        try:
            path = self.file_manager.save_observations(
                self.current_label, self.observations,
            )
            logger.info("Results saved to %s", path)
            self.notify(f"Saved to {path}")
        except OSError as e:
            logger.error("Failed to save results", exc_info=True)
            self.notify(f"Save failed: {e}", severity="error")

    def action_export(self) -> None:
        """Export the comparison table to a CSV file."""
        if not self.rows:
            self.notify("No results to export", severity="warning")
            return
        try:
            path = self.file_manager.export_comparison_csv(
                self.current_label or "comparison", self.rows,
            )
            logger.info("Exported comparison to %s", path)
            self.notify(f"Exported to {path}")
        except OSError as e:
            logger.error("Failed to export comparison", exc_info=True)
            self.notify(f"Export failed: {e}", severity="error")

    def action_chart(self) -> None:
        """Open a price history chart for the selected hotel."""
        from src.storage.chart_exporter import export_history_chart

        selected = self._selected_row()
        if selected is None:
            self.notify("Select a hotel first", severity="warning")
            return
        path = export_history_chart(selected.hotel_key, self.db)
        if path is None:
            self.notify(
                "Need at least 2 observations for a chart",
                severity="warning",
            )
        else:
            self.notify(f"Chart saved to {path}")
