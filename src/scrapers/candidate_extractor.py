# src/scrapers/candidate_extractor.py

"""Pull a hotel's name and price out of a rendered booking page.

Each field is read by an ordered list of :class:`SelectorStrategy`
matchers loaded from ``selectors.json``.  Strategies are tried inside
the first hotel card, then against the whole document; when no
selector yields a positive price the visible page text is scanned
for anything that looks like money.
"""

import json
import logging
import re
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from bs4 import BeautifulSoup, Comment, Doctype, Tag

from src.config.settings import Settings
from src.models.errors import AmbiguousFormat, NoNumericValue, NotFound
from src.models.extraction import ExtractionResult
from src.parsing.price_normalizer import CURRENCY_CODES, normalize

logger = logging.getLogger("hotel_prices.extractor")

_CODES = "|".join(CURRENCY_CODES)
_FREE_TEXT_PRICE_RE = re.compile(
    rf"(?:\b(?:{_CODES})\s*)?"
    r"[$€£¥₹]?\s*"
    r"\d(?:[\d,.]*\d)?"
    rf"(?:\s*(?:{_CODES})\b)?",
    re.IGNORECASE,
)
_RATING_RE = re.compile(r"\d+(?:\.\d+)?")
_INVISIBLE_TAGS = frozenset({"script", "style", "noscript", "template"})

FIELDS: tuple[str, ...] = ("name", "price", "rating", "image")


@dataclass(frozen=True)
class SelectorStrategy:
    """A named, ordered group of CSS selectors for one field."""

    name: str
    selectors: tuple[str, ...]

    def __call__(self, root: Tag) -> list[Tag]:
        """Return the tags matched under *root*, in selector order."""
        seen: set[int] = set()
        matches: list[Tag] = []
        for selector in self.selectors:
            for element in root.select(selector):
                if id(element) not in seen:
                    seen.add(id(element))
                    matches.append(element)
        return matches


def load_strategies(
    path: Path | None = None,
) -> dict[str, tuple[SelectorStrategy, ...]]:
    """Load per-field strategies (plus ``hotel_card``) from JSON."""
    selectors_path = path or Settings.SELECTORS_PATH
    with open(selectors_path, encoding="utf-8") as f:
        raw: dict[str, Any] = json.load(f)

    strategies: dict[str, tuple[SelectorStrategy, ...]] = {
        "hotel_card": (
            SelectorStrategy(
                "hotel_card", tuple(raw.get("hotel_card", []))
            ),
        ),
    }
    for field in FIELDS:
        strategies[field] = tuple(
            SelectorStrategy(
                str(entry["strategy"]), tuple(entry["selectors"])
            )
            for entry in raw.get(field, [])
        )
    return strategies


def _element_price_text(element: Tag) -> str:
    """Visible text of a price node, else its ``data-price`` value."""
    text = element.get_text(" ", strip=True)
    if text:
        return text
    attr = element.get("data-price")
    return str(attr).strip() if attr else ""


def visible_text(soup: Tag) -> str:
    """Document text without script/style content or comments."""
    parts: list[str] = []
    for string in soup.find_all(string=True):
        if isinstance(string, (Comment, Doctype)):
            continue
        if string.parent is not None and string.parent.name in _INVISIBLE_TAGS:
            continue
        stripped = string.strip()
        if stripped:
            parts.append(stripped)
    return " ".join(parts)


class CandidateExtractor:
    """Apply selector strategies and a free-text fallback to a page."""

    def __init__(
        self,
        strategies: dict[str, tuple[SelectorStrategy, ...]] | None = None,
        comma_policy: str = "decimal",
    ) -> None:
        self.strategies = (
            strategies if strategies is not None else load_strategies()
        )
        self.comma_policy = comma_policy

    def _scopes(self, soup: BeautifulSoup) -> list[Tag]:
        """First hotel card (when present) followed by the whole page."""
        for card_strategy in self.strategies.get("hotel_card", ()):
            cards = card_strategy(soup)
            if cards:
                return [cards[0], soup]
        return [soup]

    def _matches(self, field: str, scopes: list[Tag]) -> Iterator[tuple[str, Tag]]:
        for scope in scopes:
            for strategy in self.strategies.get(field, ()):
                for element in strategy(scope):
                    yield strategy.name, element

    def _price_candidates(
        self, soup: BeautifulSoup, scopes: list[Tag],
    ) -> Iterator[tuple[str, str]]:
        for strategy_name, element in self._matches("price", scopes):
            yield strategy_name, _element_price_text(element)
        for match in _FREE_TEXT_PRICE_RE.finditer(visible_text(soup)):
            yield "free_text", match.group(0)

    def _extract_name(self, scopes: list[Tag]) -> str | None:
        for _, element in self._matches("name", scopes):
            text = element.get_text(" ", strip=True)
            if text:
                return text
        return None

    def _extract_rating(self, scopes: list[Tag]) -> float | None:
        for _, element in self._matches("rating", scopes):
            match = _RATING_RE.search(element.get_text(" ", strip=True))
            if match:
                return float(match.group(0))
        return None

    def _extract_image(self, scopes: list[Tag]) -> str | None:
        for _, element in self._matches("image", scopes):
            img = element if element.name == "img" else element.find("img")
            if isinstance(img, Tag) and img.get("src"):
                return str(img["src"])
        return None

    def extract(
        self,
        document: str | BeautifulSoup,
        expected_name: str | None = None,
    ) -> ExtractionResult:
        """Return the first positive price found on the page.

        Args:
            document: Rendered HTML or an already-parsed soup.
            expected_name: Used as the name when no name node matches.

        Raises:
            NotFound: No candidate produced a positive price.
            AmbiguousFormat: No positive price, and at least one
                candidate was rejected as ambiguous.
        """
        soup = (
            document
            if isinstance(document, BeautifulSoup)
            else BeautifulSoup(document or "", "lxml")
        )
        scopes = self._scopes(soup)

        ambiguous: AmbiguousFormat | None = None
        for strategy_name, raw_text in self._price_candidates(soup, scopes):
            if not raw_text:
                continue
            try:
                value = normalize(raw_text, self.comma_policy)
            except AmbiguousFormat as exc:
                logger.debug(
                    "Ambiguous candidate '%s' (%s)", raw_text, strategy_name,
                )
                if ambiguous is None:
                    ambiguous = exc
                continue
            except NoNumericValue:
                continue
            if value.price <= 0:
                continue

            logger.debug(
                "Price %s %s via %s from '%s'",
                value.price, value.currency, strategy_name, raw_text,
            )
            return ExtractionResult(
                price=value.price,
                currency=value.currency,
                name=self._extract_name(scopes) or expected_name,
                rating=self._extract_rating(scopes),
                image_url=self._extract_image(scopes),
                strategy=strategy_name,
            )

        if ambiguous is not None:
            raise ambiguous
        raise NotFound("no positive price candidate on the page")
