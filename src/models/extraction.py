# src/models/extraction.py

"""Transient result of reading one rendered hotel page."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExtractionResult:
    """Price, currency and optional details pulled from a page.

    Failures are not represented here; the extractor raises one of
    the :class:`~src.models.errors.ExtractionError` subclasses.
    """

    price: float
    currency: str
    name: str | None = None
    rating: float | None = None
    image_url: str | None = None
    strategy: str = ""
