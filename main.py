# main.py

"""Entry point for the hotel price tracker (TUI or headless CLI)."""

import argparse
import asyncio
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("hotel_prices.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="hotel_prices",
        description="Track and compare hotel prices from a booking site.",
        epilog="Run without a command to launch the interactive TUI.",
    )
    sub = parser.add_subparsers(dest="command")

    search = sub.add_parser("search", help="Search prices for a stay.")
    search.add_argument("--check-in", required=True, help="YYYY-MM-DD")
    search.add_argument("--check-out", required=True, help="YYYY-MM-DD")
    search.add_argument(
        "--hotels",
        default=None,
        help="Comma-separated hotel IDs (default: all tracked).",
    )
    search.add_argument(
        "--guests", type=int, default=Settings.DEFAULT_GUESTS,
    )
    search.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    search.add_argument(
        "-o",
        "--output",
        default=None,
        dest="output_dir",
        help="Custom output directory (default: results/).",
    )

    comp = sub.add_parser("compare", help="Rank hotels by latest price.")
    comp.add_argument("--check-in", default=None, help="YYYY-MM-DD")
    comp.add_argument("--check-out", default=None, help="YYYY-MM-DD")
    comp.add_argument("--hotels", default=None)
    comp.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="table",
        dest="output_format",
    )

    history = sub.add_parser("history", help="Show a hotel's price history.")
    history.add_argument("hotel_key")
    history.add_argument(
        "--limit", type=int, default=Settings.HISTORY_LIMIT,
    )

    hotels = sub.add_parser("hotels", help="Manage tracked hotels.")
    hotels.add_argument("action", choices=["list", "add", "remove"])
    hotels.add_argument("key", nargs="?", default=None)
    hotels.add_argument("name", nargs="?", default=None)

    chart = sub.add_parser("chart", help="Write Plotly price charts.")
    chart.add_argument("hotel_keys", nargs="+")
    chart.add_argument(
        "--no-open",
        action="store_false",
        dest="open_browser",
        help="Do not open the chart in a browser.",
    )
    return parser


def _run_tui() -> None:
    """Launch the interactive Textual TUI."""
    from src.ui.app import HotelPriceApp

    try:
        app = HotelPriceApp()
        app.run()
    except Exception:
        logger.critical("Fatal error during TUI run", exc_info=True)
        raise
    finally:
        logger.info("hotel_prices TUI shutting down")


def _run_command(args: argparse.Namespace) -> int:
    """Dispatch a headless subcommand and return its exit code."""
    from src.cli import runner

    if args.command == "search":
        return asyncio.run(
            runner.cli_search(
                check_in=args.check_in,
                check_out=args.check_out,
                hotels_csv=args.hotels,
                guests=args.guests,
                output_format=args.output_format,
                output_dir=args.output_dir,
            )
        )
    if args.command == "compare":
        return runner.run_compare(
            args.check_in, args.check_out, args.hotels, args.output_format,
        )
    if args.command == "history":
        return runner.run_history(args.hotel_key, args.limit)
    if args.command == "hotels":
        return runner.run_hotels(args.action, args.key, args.name)
    return runner.run_chart(args.hotel_keys, open_browser=args.open_browser)


def main() -> None:
    """Route to TUI (no command) or a headless subcommand."""
    log_file = setup_logging()
    logger.info("hotel_prices starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()

    if args.command is None:
        _run_tui()
    else:
        sys.exit(_run_command(args))


if __name__ == "__main__":
    main()
