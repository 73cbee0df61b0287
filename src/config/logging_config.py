# src/config/logging_config.py

"""Run-scoped logging for hotel_prices.

Every launch writes ``logs/run_<timestamp>.log`` at DEBUG; only the
newest ``Settings.LOG_RETENTION`` run files are kept.  The stderr
handler follows ``HOTEL_LOG_LEVEL`` so a headless ``search`` can be
made chatty without touching the file.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

ROOT_LOGGER_NAME = "hotel_prices"

# Libraries that log every request or browser event at INFO
NOISY_LOGGERS: tuple[str, ...] = ("asyncio", "urllib3", "playwright")

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | "
    "%(module)s:%(funcName)s:%(lineno)d | %(message)s"
)
_STDERR_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _console_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.WARNING


def prune_run_logs(logs_dir: Path, keep: int) -> list[Path]:
    """Delete all but the newest *keep* run logs; return what was removed."""
    runs = sorted(logs_dir.glob("run_*.log"))
    stale = runs[:-keep] if keep > 0 else runs
    removed: list[Path] = []
    for path in stale:
        try:
            path.unlink()
        except OSError:
            continue
        removed.append(path)
    return removed


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Attach the run file and stderr handlers to ``hotel_prices``.

    Safe to call more than once: later calls leave the existing
    handlers in place and return the path they would have used.
    """
    target_dir: Path = logs_dir or Settings.LOGS_DIR
    target_dir.mkdir(parents=True, exist_ok=True)
    log_file = target_dir / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)
    if root_logger.handlers:
        return log_file

    # Older runs go first so this run's file always survives
    removed = prune_run_logs(target_dir, Settings.LOG_RETENTION - 1)

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT, _DATE_FORMAT))
    root_logger.addHandler(file_handler)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(_console_level(Settings.LOG_LEVEL))
    stderr_handler.setFormatter(logging.Formatter(_STDERR_FORMAT, _DATE_FORMAT))
    root_logger.addHandler(stderr_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(
        "Logging to %s (stderr level %s, %d old run log(s) pruned)",
        log_file,
        logging.getLevelName(stderr_handler.level),
        len(removed),
    )
    return log_file
