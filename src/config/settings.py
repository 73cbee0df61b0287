# src/config/settings.py

"""Central configuration for the hotel price tracker."""

import os
from dataclasses import dataclass
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

from src.parsing.price_normalizer import COMMA_POLICIES

load_dotenv()


def _env_float(name: str, default: float) -> float:
    """Read a float override from ``HOTEL_<name>``."""
    return float(os.getenv(f"HOTEL_{name}", str(default)))


def _env_int(name: str, default: int) -> int:
    """Read an int override from ``HOTEL_<name>``."""
    return int(os.getenv(f"HOTEL_{name}", str(default)))


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean override from ``HOTEL_<name>``."""
    raw = os.getenv(f"HOTEL_{name}")
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Central configuration for the hotel price tracker."""

    # --- Scraping ---
    REQUEST_DELAY: float = _env_float("REQUEST_DELAY", 2.0)    # Seconds between hotels in a batch
    FETCH_TIMEOUT: float = _env_float("FETCH_TIMEOUT", 45.0)   # Seconds per render attempt
    NAVIGATION_TIMEOUT_MS: int = _env_int("NAVIGATION_TIMEOUT_MS", 30000)
    PRICE_WAIT_TIMEOUT_MS: int = _env_int("PRICE_WAIT_TIMEOUT_MS", 10000)

    # --- Retry / backoff ---
    MAX_ATTEMPTS: int = _env_int("MAX_ATTEMPTS", 3)
    RETRY_INITIAL_DELAY: float = _env_float("RETRY_INITIAL_DELAY", 1.0)
    RETRY_MAX_DELAY: float = _env_float("RETRY_MAX_DELAY", 30.0)
    RETRY_MULTIPLIER: float = _env_float("RETRY_MULTIPLIER", 2.0)

    # --- Normalisation ---
    # How a lone "," is read: "decimal" (1,234 -> 1.234),
    # "thousands" (1,234 -> 1234) or "strict" (reject grouped shapes)
    COMMA_POLICY: str = os.getenv("HOTEL_COMMA_POLICY", "decimal")

    # --- Rendering ---
    RENDERER: str = os.getenv("HOTEL_RENDERER", "browser")     # "browser" | "http"
    BOOKING_BASE_URL: str = os.getenv(
        "HOTEL_BOOKING_BASE_URL", "https://www.webbeds.com"
    )
    HEADLESS: bool = _env_bool("HEADLESS", True)
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    )
    VIEWPORT: dict[str, int] = {"width": 1920, "height": 1080}
    CHROMIUM_ARGS: list[str] = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
        "--disable-gpu",
    ]
    CAPTCHA_KEYWORDS: list[str] = [
        "captcha",
        "verify you are human",
        "unusual traffic",
        "automated requests",
    ]

    # --- Browser Impersonation (HTTP renderer) ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/avif,"
            "image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9",
        "sec-ch-ua": (
            '"Google Chrome";v="131", '
            '"Chromium";v="131", '
            '"Not_A Brand";v="24"'
        ),
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "sec-fetch-dest": "document",
        "sec-fetch-mode": "navigate",
        "sec-fetch-site": "none",
        "sec-fetch-user": "?1",
        "Upgrade-Insecure-Requests": "1",
    }

    # --- Defaults ---
    DEFAULT_GUESTS: int = 1
    HISTORY_LIMIT: int = 30
    CHART_HISTORY_LIMIT: int = 500

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = BASE_DIR / "src" / "config" / "selectors.json"
    DATA_DIR: Path = BASE_DIR / "data"
    PRICE_DB_PATH: Path = DATA_DIR / "hotel_prices.db"
    RESULTS_DIR: Path = BASE_DIR / "results"
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Logging ---
    LOG_LEVEL: str = os.getenv("HOTEL_LOG_LEVEL", "WARNING")    # stderr only; the run file is DEBUG
    LOG_RETENTION: int = _env_int("LOG_RETENTION", 20)          # Run logs kept, this one included

    # --- Hotels seeded into a fresh database (key, display name) ---
    PREDEFINED_HOTELS: list[tuple[str, str]] = [
        ("2490015", "M Hotel Al Dana Makkah by Millennium"),
        ("5150335", "Novotel Thakher Makkah Hotel"),
        ("2548785", "Voco Makkah"),
        ("22074", "Elaf Ajyad Hotel"),
        ("2236075", "Makkah al Aziziah EX"),
        ("5559815", "Mercure Makkah Aziziah"),
        ("2308285", "Four Points By Sheraton Makkah Al Naseem"),
        ("2113125", "Ibis Styles Makkah"),
        ("1894035", "ELAF BAKKAH HOTEL"),
    ]


@dataclass(frozen=True)
class ScraperConfig:
    """Immutable per-run scraping configuration.

    Built once at process start (usually via :meth:`from_settings`)
    and handed to every pipeline invocation, so no component reads
    mutable global state mid-run.
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 30.0
    backoff_multiplier: float = 2.0
    request_delay: float = 2.0
    fetch_timeout: float = 45.0
    comma_policy: str = "decimal"
    booking_base_url: str = "https://www.webbeds.com"

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.initial_delay < 0 or self.max_delay < 0:
            raise ValueError("retry delays must be non-negative")
        if self.backoff_multiplier < 1:
            raise ValueError("backoff_multiplier must be >= 1")
        if self.request_delay < 0:
            raise ValueError("request_delay must be non-negative")
        if self.fetch_timeout <= 0:
            raise ValueError("fetch_timeout must be positive")
        if self.comma_policy not in COMMA_POLICIES:
            raise ValueError(
                f"Unknown comma_policy {self.comma_policy!r}; "
                f"expected one of {sorted(COMMA_POLICIES)}"
            )

    @classmethod
    def from_settings(cls) -> "ScraperConfig":
        """Snapshot the current :class:`Settings` into a config value."""
        return cls(
            max_attempts=Settings.MAX_ATTEMPTS,
            initial_delay=Settings.RETRY_INITIAL_DELAY,
            max_delay=Settings.RETRY_MAX_DELAY,
            backoff_multiplier=Settings.RETRY_MULTIPLIER,
            request_delay=Settings.REQUEST_DELAY,
            fetch_timeout=Settings.FETCH_TIMEOUT,
            comma_policy=Settings.COMMA_POLICY,
            booking_base_url=Settings.BOOKING_BASE_URL,
        )
