# src/models/errors.py

"""Exception taxonomy for hotel price searches.

Caller errors (:class:`InvalidQuery`) are never retried, transient
render faults (:class:`RenderError`) are retried with backoff and
surface as :class:`FetchFailure` once the bound is hit, and
extraction/normalisation faults (:class:`ExtractionError`) are
surfaced immediately because retrying cannot fix malformed text.
"""


class HotelSearchError(Exception):
    """Base class for every failure a single hotel search can produce."""


class InvalidQuery(HotelSearchError):
    """The caller supplied an unusable search query."""


class InvalidDateRange(InvalidQuery):
    """Dates are malformed or check-in is not before check-out."""


class UnknownHotel(HotelSearchError):
    """The hotel key is not registered in the store."""

    def __init__(self, hotel_key: str) -> None:
        super().__init__(f"Hotel '{hotel_key}' is not registered")
        self.hotel_key = hotel_key


class RenderError(HotelSearchError):
    """One render attempt failed (bad status, bot challenge, browser fault)."""


class FetchFailure(HotelSearchError):
    """Rendering kept failing until the retry bound was exhausted."""

    def __init__(self, hotel_key: str, attempts: int, reason: str) -> None:
        super().__init__(
            f"Fetching hotel '{hotel_key}' failed after "
            f"{attempts} attempt(s): {reason}"
        )
        self.hotel_key = hotel_key
        self.attempts = attempts


class ExtractionError(HotelSearchError):
    """No usable price could be read from a rendered page."""


class NotFound(ExtractionError):
    """No selector or free-text candidate produced a positive price."""


class AmbiguousFormat(ExtractionError):
    """The numeric text can be read more than one way."""


class NoNumericValue(ExtractionError):
    """The text holds no parseable number."""


class RetryExhaustedError(Exception):
    """A retried operation failed on every allowed attempt."""

    def __init__(
        self,
        operation: str,
        attempts: int,
        last_error: BaseException,
    ) -> None:
        super().__init__(
            f"{operation} failed after {attempts} attempt(s): {last_error}"
        )
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error
