# src/scrapers/browser_renderer.py

"""Headless Chromium renderer for JavaScript-driven booking pages."""

from playwright.async_api import (
    Browser,
    BrowserContext,
    Playwright,
    async_playwright,
)
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from src.config.settings import Settings
from src.models.errors import RenderError
from src.models.search_query import SearchQuery
from src.scrapers.candidate_extractor import load_strategies
from src.scrapers.renderers import Renderer, detect_challenge


class BrowserRenderer(Renderer):
    """Owns one Playwright browser and context; one page per fetch."""

    name = "browser"

    def __init__(
        self,
        settings: Settings | None = None,
        base_url: str | None = None,
    ) -> None:
        super().__init__(settings, base_url)
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        price_selectors = [
            selector
            for strategy in load_strategies(self.settings.SELECTORS_PATH)["price"]
            for selector in strategy.selectors
        ]
        self.price_wait_selector = ", ".join(price_selectors)

    @property
    def is_open(self) -> bool:
        return self._context is not None

    async def open(self) -> None:
        if self._context is not None:
            return
        self._playwright = await async_playwright().start()
        try:
            self.logger.info(
                "Launching Chromium (headless=%s)", self.settings.HEADLESS,
            )
            self._browser = await self._playwright.chromium.launch(
                headless=self.settings.HEADLESS,
                args=self.settings.CHROMIUM_ARGS,
            )
            self._context = await self._browser.new_context(
                user_agent=self.settings.USER_AGENT,
                viewport=self.settings.VIEWPORT,
            )
        except Exception:
            await self.close()
            raise

    async def close(self) -> None:
        """Release context, browser and Playwright in reverse order."""
        context, self._context = self._context, None
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        if context is not None:
            try:
                await context.close()
            except Exception:
                self.logger.warning("Failed to close context", exc_info=True)
        if browser is not None:
            try:
                await browser.close()
            except Exception:
                self.logger.warning("Failed to close browser", exc_info=True)
        if playwright is not None:
            await playwright.stop()

    async def fetch_rendered_html(self, query: SearchQuery) -> str:
        if self._context is None:
            raise RenderError("Browser renderer is not open")

        url = self.search_url(query)
        page = await self._context.new_page()
        try:
            page.set_default_navigation_timeout(
                self.settings.NAVIGATION_TIMEOUT_MS
            )
            page.set_default_timeout(self.settings.NAVIGATION_TIMEOUT_MS)

            self.logger.info("[browser] Navigating to %s", url)
            response = await page.goto(url, wait_until="networkidle")
            if response is not None and response.status >= 400:
                raise RenderError(f"HTTP {response.status} for {url}")

            try:
                await page.wait_for_selector(
                    self.price_wait_selector,
                    timeout=self.settings.PRICE_WAIT_TIMEOUT_MS,
                )
            except PlaywrightTimeoutError:
                self.logger.warning(
                    "[browser] No price element within %dms for hotel %s",
                    self.settings.PRICE_WAIT_TIMEOUT_MS,
                    query.hotel_key,
                )

            html = await page.content()
        finally:
            await page.close()

        marker = detect_challenge(html, self.settings.CAPTCHA_KEYWORDS)
        if marker is not None:
            raise RenderError(
                f"Bot challenge on {url} (marker: '{marker}')"
            )
        return html
