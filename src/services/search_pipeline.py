# src/services/search_pipeline.py

"""Validate → render with retry → extract → record, per hotel."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import date, datetime, timezone

from src.config.settings import ScraperConfig
from src.models.errors import (
    FetchFailure,
    HotelSearchError,
    InvalidQuery,
    RetryExhaustedError,
    UnknownHotel,
)
from src.models.observation import Observation
from src.models.search_query import SearchQuery, parse_stay_dates
from src.scrapers.candidate_extractor import CandidateExtractor
from src.scrapers.renderers import Renderer
from src.services.retry import with_retry
from src.storage.price_history_db import PriceHistoryDB

logger = logging.getLogger("hotel_prices.pipeline")

# Module-level so tests can patch the inter-hotel delay out
_sleep = asyncio.sleep


@dataclass(frozen=True)
class SearchFailure:
    """Why one hotel in a batch produced no observation."""

    hotel_key: str
    error_type: str
    message: str


@dataclass
class BatchResult:
    """Container for a completed batch across several hotels."""

    observations: list[Observation] = field(
        default_factory=lambda: list[Observation]()
    )
    failures: list[SearchFailure] = field(
        default_factory=lambda: list[SearchFailure]()
    )

    @property
    def succeeded(self) -> bool:
        return bool(self.observations)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HotelSearchPipeline:
    """Runs hotel price searches against one renderer and one store."""

    def __init__(
        self,
        renderer: Renderer,
        store: PriceHistoryDB,
        config: ScraperConfig | None = None,
        extractor: CandidateExtractor | None = None,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.renderer = renderer
        self.store = store
        self.config = config or ScraperConfig.from_settings()
        self.extractor = extractor or CandidateExtractor(
            comma_policy=self.config.comma_policy,
        )
        self._clock = clock

    # ── Private helpers ──────────────────────────────────

    async def _fetch_html(self, query: SearchQuery) -> str:
        """Render the page, retrying transient faults with backoff."""

        async def attempt() -> str:
            return await asyncio.wait_for(
                self.renderer.fetch_rendered_html(query),
                timeout=self.config.fetch_timeout,
            )

        try:
            return await with_retry(
                attempt,
                max_attempts=self.config.max_attempts,
                initial_delay=self.config.initial_delay,
                max_delay=self.config.max_delay,
                multiplier=self.config.backoff_multiplier,
                operation_name=f"fetch hotel {query.hotel_key}",
            )
        except RetryExhaustedError as exc:
            reason = str(exc.last_error) or type(exc.last_error).__name__
            raise FetchFailure(
                query.hotel_key, exc.attempts, reason,
            ) from exc

    # ── Single search ────────────────────────────────────

    async def search(
        self,
        hotel_key: str,
        check_in: str | date,
        check_out: str | date,
        guests: int = 1,
    ) -> Observation:
        """Search one hotel and record the observed price.

        Raises:
            InvalidDateRange: Bad dates; nothing is fetched or stored.
            InvalidQuery: Empty key or fewer than one guest.
            UnknownHotel: The key is not registered.
            FetchFailure: Rendering failed on every attempt.
            ExtractionError: The page held no usable price.
        """
        query = SearchQuery.build(hotel_key, check_in, check_out, guests)

        hotel = await asyncio.to_thread(self.store.get_hotel, query.hotel_key)
        if hotel is None:
            raise UnknownHotel(query.hotel_key)
        query = replace(query, hotel_name=hotel.display_name)

        logger.info(
            "Searching hotel %s (%s) %s → %s for %d guest(s)",
            query.hotel_key,
            hotel.display_name,
            query.check_in,
            query.check_out,
            query.guests,
        )
        async with self.renderer.session():
            html = await self._fetch_html(query)

        extracted = self.extractor.extract(
            html, expected_name=hotel.display_name,
        )
        observation = Observation(
            hotel_key=query.hotel_key,
            name=extracted.name or hotel.display_name,
            price=extracted.price,
            currency=extracted.currency,
            check_in=query.check_in,
            check_out=query.check_out,
            recorded_at=self._clock(),
        )
        stored = await asyncio.to_thread(self.store.append, observation)
        logger.info(
            "Hotel %s: %.2f %s via %s (rating=%s, image=%s)",
            stored.hotel_key,
            stored.price,
            stored.currency,
            extracted.strategy,
            extracted.rating if extracted.rating is not None else "n/a",
            extracted.image_url or "n/a",
        )
        return stored

    # ── Batch search ─────────────────────────────────────

    async def search_batch(
        self,
        hotel_keys: list[str] | None,
        check_in: str | date,
        check_out: str | date,
        guests: int = 1,
    ) -> BatchResult:
        """Search hotels one after another, collecting failures.

        ``None`` means every registered hotel.  Dates and guests are
        checked before anything is fetched; per-hotel errors are
        recorded in :attr:`BatchResult.failures` and never abort the
        batch.  The renderer stays open for the whole batch.
        """
        parse_stay_dates(check_in, check_out)
        if guests < 1:
            raise InvalidQuery(f"guests must be >= 1, got {guests}")

        if hotel_keys is None:
            hotels = await asyncio.to_thread(self.store.list_hotels)
            hotel_keys = [h.key for h in hotels]

        result = BatchResult()
        async with self.renderer.session():
            for index, hotel_key in enumerate(hotel_keys):
                if index:
                    await _sleep(self.config.request_delay)
                try:
                    observation = await self.search(
                        hotel_key, check_in, check_out, guests,
                    )
                except HotelSearchError as exc:
                    logger.error(
                        "Search failed for hotel %s: %s",
                        hotel_key,
                        exc,
                        exc_info=exc,
                    )
                    result.failures.append(SearchFailure(
                        hotel_key=hotel_key,
                        error_type=type(exc).__name__,
                        message=str(exc),
                    ))
                else:
                    result.observations.append(observation)

        logger.info(
            "Batch complete: %d succeeded, %d failed",
            len(result.observations),
            len(result.failures),
        )
        return result
