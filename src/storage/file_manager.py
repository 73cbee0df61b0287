# src/storage/file_manager.py

"""Handles saving search results to disk."""

import csv
import json
import logging
import re
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings
from src.models.observation import Observation
from src.services.comparator import ComparisonRow, sort_rows

logger = logging.getLogger("hotel_prices.storage")

_UNSAFE_CHARS_RE = re.compile(r"[^\w\-]+")


def _slug(label: str) -> str:
    """Filesystem-safe version of a free-form label."""
    return _UNSAFE_CHARS_RE.sub("_", label.strip()).strip("_") or "results"


class FileManager:
    """Handles saving search results to disk."""

    def __init__(self, results_dir: Path | None = None) -> None:
        self.results_dir: Path = results_dir or Settings.RESULTS_DIR
        self.results_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("FileManager initialised, results_dir=%s", self.results_dir)

    def save_observations(
        self, label: str, observations: list[Observation],
    ) -> Path:
        """Save observations to a timestamped JSON file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = self.results_dir / f"{_slug(label)}_{timestamp}.json"

        data = [o.to_dict() for o in observations]
        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

        logger.info(
            "Saved %d observations for '%s' to %s",
            len(observations),
            label,
            filepath,
        )
        return filepath

    def export_comparison_csv(
        self, label: str, rows: list[ComparisonRow],
    ) -> Path:
        """Export comparison rows to a CSV file, cheapest first."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = self.results_dir / f"export_{_slug(label)}_{timestamp}.csv"

        with open(filepath, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(
                ["Hotel ID", "Name", "Latest Price", "Currency", "Last Updated"]
            )
            for r in sort_rows(rows):
                writer.writerow([
                    r.hotel_key,
                    r.name,
                    "" if r.latest_price is None else f"{r.latest_price:.2f}",
                    r.currency or "",
                    r.last_updated.isoformat() if r.last_updated else "",
                ])

        logger.info(
            "Exported %d comparison rows for '%s' to %s",
            len(rows),
            label,
            filepath,
        )
        return filepath
