# src/scrapers/http_renderer.py

"""Plain-HTTP renderer using browser-impersonating TLS."""

import asyncio
from typing import Any

import cloudscraper  # type: ignore[import-untyped]
from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.models.errors import RenderError
from src.models.search_query import SearchQuery
from src.scrapers.renderers import Renderer, detect_challenge


class HttpRenderer(Renderer):
    """Fetch search pages over HTTP; no JavaScript is executed.

    curl_cffi is tried first, cloudscraper (JS challenge solver)
    second.  Suited to booking pages that ship prices in the initial
    HTML.
    """

    name = "http"

    def __init__(
        self,
        settings: Settings | None = None,
        base_url: str | None = None,
    ) -> None:
        super().__init__(settings, base_url)
        self._session: curl_requests.Session | None = None
        # Primary and fallback share one FETCH_TIMEOUT budget
        self.request_timeout = self.settings.FETCH_TIMEOUT / 2
        self._inflight: asyncio.Future[str] | None = None

    @property
    def is_open(self) -> bool:
        return self._session is not None

    async def open(self) -> None:
        if self._session is None:
            self._session = curl_requests.Session(
                impersonate=self.settings.IMPERSONATE_BROWSER
            )

    async def close(self) -> None:
        await self._wait_for_inflight()
        session, self._session = self._session, None
        if session is not None:
            session.close()

    def _validate_html(self, html: str) -> bool:
        """False (and a warning) when *html* is a bot challenge page."""
        marker = detect_challenge(html, self.settings.CAPTCHA_KEYWORDS)
        if marker is None:
            return True
        self.logger.warning(
            "[http] Bot challenge detected (marker: '%s')", marker,
        )
        return False

    def _fetch_primary(
        self, url: str, headers: dict[str, str],
    ) -> str | None:
        assert self._session is not None
        try:
            resp = self._session.get(
                url,
                headers=headers,
                timeout=self.request_timeout,
            )
        except Exception as exc:
            self.logger.warning(
                "[http] Request error for %s: %s", url, exc, exc_info=True,
            )
            return None
        if resp.status_code != 200:
            self.logger.warning(
                "[http] HTTP %d for %s", resp.status_code, url,
            )
            return None
        if not self._validate_html(resp.text):
            return None
        return str(resp.text)

    def _fetch_fallback(
        self, url: str, headers: dict[str, str],
    ) -> str | None:
        self.logger.info(
            "[http] curl_cffi failed, falling back to cloudscraper",
        )
        try:
            _cs: Any = cloudscraper
            scraper: Any = _cs.create_scraper()
            fallback_resp: Any = scraper.get(
                url,
                headers=headers,
                timeout=self.request_timeout,
            )
        except Exception as exc:
            self.logger.error(
                "[http] cloudscraper fallback also failed: %s",
                exc,
                exc_info=True,
            )
            return None
        if fallback_resp.status_code != 200:
            self.logger.warning(
                "[http] cloudscraper HTTP %d for %s",
                fallback_resp.status_code,
                url,
            )
            return None
        html = str(fallback_resp.text)
        if not self._validate_html(html):
            return None
        return html

    def _get_html(self, url: str) -> str:
        """Blocking fetch: primary client, then the fallback."""
        headers: dict[str, str] = {
            **self.settings.DEFAULT_HEADERS,
            "Referer": self.base_url,
        }
        html = self._fetch_primary(url, headers)
        if html is None:
            html = self._fetch_fallback(url, headers)
        if html is None:
            raise RenderError(f"Could not fetch {url}")
        return html

    async def _wait_for_inflight(self) -> None:
        """Block until a fetch abandoned by a timed-out caller finishes.

        Cancelling the awaiting coroutine cannot stop the worker
        thread, so the next fetch (or close) waits for it here.
        """
        task = self._inflight
        if task is None:
            return
        if not task.done():
            self.logger.info("[http] Waiting for an abandoned fetch to finish")
            await asyncio.wait({task})
        if self._inflight is task:
            self._inflight = None
        if not task.cancelled() and task.exception() is not None:
            self.logger.debug(
                "[http] Abandoned fetch failed: %s", task.exception(),
            )

    async def fetch_rendered_html(self, query: SearchQuery) -> str:
        if self._session is None:
            raise RenderError("HTTP renderer is not open")
        await self._wait_for_inflight()
        url = self.search_url(query)
        self.logger.info("[http] Fetching %s", url)
        task = asyncio.ensure_future(asyncio.to_thread(self._get_html, url))
        self._inflight = task
        # Shielded so a caller timeout leaves the task tracked, not orphaned
        return await asyncio.shield(task)
