# src/scrapers/renderers.py

"""Renderer interface: turn a search query into the booking page's HTML."""

import importlib
import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import urlencode

from src.config.settings import Settings
from src.models.search_query import SearchQuery

# Dotted paths keep playwright unimported unless the browser is chosen
RENDERERS: dict[str, str] = {
    "browser": "src.scrapers.browser_renderer.BrowserRenderer",
    "http": "src.scrapers.http_renderer.HttpRenderer",
}

# Cloudflare challenge page markers (checked before keyword scan)
CF_CHALLENGE_MARKERS: list[str] = [
    "challenges.cloudflare.com",
    "cdn-cgi/challenge-platform",
    "just a moment",
    "cf-turnstile",
    "cf_chl_opt",
]


def build_search_url(base_url: str, query: SearchQuery) -> str:
    """Hotel search URL carrying the id, stay dates and guest count."""
    params: dict[str, str] = {
        "hotelId": query.hotel_key,
        "checkIn": query.check_in.isoformat(),
        "checkOut": query.check_out.isoformat(),
        "guests": str(query.guests),
    }
    if query.hotel_name:
        params["s"] = query.hotel_name
    return f"{base_url.rstrip('/')}/search?{urlencode(params)}"


def detect_challenge(html: str, captcha_keywords: list[str]) -> str | None:
    """Return the bot-challenge marker found in *html*, if any."""
    lower = html.lower()

    for marker in CF_CHALLENGE_MARKERS:
        if marker in lower:
            return marker

    # Generic CAPTCHA keyword scan (skip if page has
    # real content to avoid false positives)
    has_body_content = "<body" in lower and len(html) > 5000
    if not has_body_content:
        for keyword in captcha_keywords:
            if keyword in lower:
                return keyword
    return None


class Renderer(ABC):
    """Single-owner page renderer with an explicit open/close lifecycle."""

    name = "renderer"

    def __init__(
        self,
        settings: Settings | None = None,
        base_url: str | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.base_url = base_url or self.settings.BOOKING_BASE_URL
        self.logger = logging.getLogger(f"hotel_prices.renderer.{self.name}")

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether :meth:`open` has acquired the underlying resources."""
        ...

    @abstractmethod
    async def open(self) -> None:
        """Acquire the underlying client; a no-op when already open."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release everything :meth:`open` acquired."""
        ...

    @abstractmethod
    async def fetch_rendered_html(self, query: SearchQuery) -> str:
        """Render the search page for *query* and return its HTML.

        Raises:
            RenderError: Bad status, bot challenge or client fault.
        """
        ...

    @asynccontextmanager
    async def session(self) -> AsyncIterator["Renderer"]:
        """Hold the renderer open for the block.

        Only a session that opened the renderer closes it, so nested
        sessions (a batch wrapping single searches) share one browser.
        """
        opened_here = not self.is_open
        if opened_here:
            await self.open()
        try:
            yield self
        finally:
            if opened_here:
                await self.close()

    def search_url(self, query: SearchQuery) -> str:
        return build_search_url(self.base_url, query)


def _load_renderer_class(dotted_path: str) -> type[Any]:
    """Dynamically import a renderer class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


def build_renderer(
    settings: Settings | None = None,
    base_url: str | None = None,
) -> Renderer:
    """Instantiate the renderer named by ``Settings.RENDERER``."""
    resolved = settings or Settings()
    kind = resolved.RENDERER.strip().lower()
    if kind not in RENDERERS:
        raise ValueError(
            f"Unknown renderer {resolved.RENDERER!r}; "
            f"expected one of {sorted(RENDERERS)}"
        )
    renderer: Renderer = _load_renderer_class(RENDERERS[kind])(
        settings=resolved, base_url=base_url,
    )
    return renderer
