# src/storage/chart_exporter.py

"""Generate interactive Plotly HTML charts from price history."""

import importlib
import logging
import webbrowser
from datetime import datetime
from pathlib import Path
from types import ModuleType
from typing import Any

from src.config.settings import Settings
from src.models.observation import Observation
from src.storage.price_history_db import PriceHistoryDB

logger = logging.getLogger("hotel_prices.chart")

_CHARTS_DIR: Path = Settings.DATA_DIR / "charts"


def _get_plotly_go() -> ModuleType:
    """Import plotly.graph_objects lazily."""
    return importlib.import_module("plotly.graph_objects")


def _ensure_charts_dir() -> Path:
    """Create charts directory if it doesn't exist."""
    _CHARTS_DIR.mkdir(parents=True, exist_ok=True)
    return _CHARTS_DIR


def _chronological(
    db: PriceHistoryDB, hotel_key: str,
) -> list[Observation]:
    return list(reversed(
        db.query_history(hotel_key, limit=Settings.CHART_HISTORY_LIMIT)
    ))


def _build_single_chart(
    observations: list[Observation],
    title: str,
) -> Any:
    """Build a Plotly line chart for one hotel."""
    go = _get_plotly_go()
    dates = [o.recorded_at for o in observations]
    prices = [o.price for o in observations]
    currency = observations[-1].currency

    fig: Any = go.Figure()
    fig.add_trace(go.Scatter(
        x=dates,
        y=prices,
        mode="lines+markers",
        name=title[:50],
        hovertemplate=(
            "%{x|%Y-%m-%d %H:%M}<br>"
            f"Price: %{{y:.2f}} {currency}"
            "<extra></extra>"
        ),
    ))

    min_price = min(prices)
    max_price = max(prices)
    min_idx = prices.index(min_price)
    max_idx = prices.index(max_price)

    fig.add_annotation(
        x=dates[min_idx], y=min_price,
        text=f"Min: {min_price:.2f}",
        showarrow=True, arrowhead=2,
    )
    fig.add_annotation(
        x=dates[max_idx], y=max_price,
        text=f"Max: {max_price:.2f}",
        showarrow=True, arrowhead=2,
    )

    fig.update_layout(
        title=f"Price History: {title[:60]}",
        xaxis_title="Recorded at (UTC)",
        yaxis_title=f"Price ({currency})",
        hovermode="x unified",
        template="plotly_white",
    )
    return fig


def export_history_chart(
    hotel_key: str,
    db: PriceHistoryDB,
    open_browser: bool = True,
) -> Path | None:
    """Export a single hotel's price chart as HTML."""
    observations = _chronological(db, hotel_key)
    if len(observations) < 2:
        logger.warning(
            "Not enough data points for chart: %s", hotel_key,
        )
        return None

    hotel = db.get_hotel(hotel_key)
    title = hotel.display_name if hotel else observations[-1].name
    fig = _build_single_chart(observations, title)

    charts_dir = _ensure_charts_dir()
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = charts_dir / f"hotel_{hotel_key}_{stamp}.html"
    fig.write_html(str(filepath))
    logger.info("Chart saved to %s", filepath)

    if open_browser:
        webbrowser.open(filepath.as_uri())

    return filepath


def export_comparison_chart(
    hotel_keys: list[str],
    db: PriceHistoryDB,
    open_browser: bool = True,
) -> Path | None:
    """Export an overlay chart comparing several hotels."""
    go = _get_plotly_go()
    fig: Any = go.Figure()
    for hotel_key in hotel_keys:
        observations = _chronological(db, hotel_key)
        if len(observations) < 2:
            continue
        hotel = db.get_hotel(hotel_key)
        name = hotel.display_name if hotel else hotel_key
        fig.add_trace(go.Scatter(
            x=[o.recorded_at for o in observations],
            y=[o.price for o in observations],
            mode="lines+markers",
            name=f"{name[:40]} ({observations[-1].currency})",
            hovertemplate=(
                "%{x|%Y-%m-%d %H:%M}<br>"
                "Price: %{y:.2f}"
                "<extra></extra>"
            ),
        ))

    if not fig.data:
        logger.warning("No trend data for comparison chart")
        return None

    fig.update_layout(
        title="Hotel Price Comparison",
        xaxis_title="Recorded at (UTC)",
        yaxis_title="Price",
        hovermode="x unified",
        template="plotly_white",
        legend={"orientation": "h", "y": -0.15},
    )

    charts_dir = _ensure_charts_dir()
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    filepath = charts_dir / f"comparison_{stamp}.html"
    fig.write_html(str(filepath))
    logger.info("Comparison chart saved to %s", filepath)

    if open_browser:
        webbrowser.open(filepath.as_uri())

    return filepath
