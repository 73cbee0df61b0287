# src/parsing/price_normalizer.py

"""Turn raw booking-site price text into a ``(price, currency)`` pair.

Handles currency symbols and ISO codes, US (``1,234.56``) and
European (``1.234,56``) separators, and stray words around the
number.  A lone comma with no dot is ambiguous (``1,234`` could be
one thousand or one point two); ``comma_policy`` decides how it is
read instead of guessing per string.
"""

import logging
import math
import re
from typing import NamedTuple

from src.models.errors import AmbiguousFormat, NoNumericValue

logger = logging.getLogger("hotel_prices.normalizer")

DEFAULT_CURRENCY = "USD"

COMMA_POLICIES: frozenset[str] = frozenset({"decimal", "thousands", "strict"})

# Checked in order; the first symbol contained in the text wins
SYMBOL_CURRENCIES: tuple[tuple[str, str], ...] = (
    ("$", "USD"),
    ("€", "EUR"),
    ("£", "GBP"),
    ("¥", "JPY"),
    ("₹", "INR"),
)

CURRENCY_CODES: tuple[str, ...] = (
    "USD", "EUR", "GBP", "JPY", "INR", "CAD", "AUD",
)

_CODE_RE = re.compile(
    r"\b(" + "|".join(CURRENCY_CODES) + r")\b", re.IGNORECASE
)
_NUMERIC_RUN_RE = re.compile(r"[\d.,\s]*\d[\d.,\s]*")
_GROUPED_THOUSANDS_RE = re.compile(r"^\d{1,3}(?:,\d{3})+$")


class PriceValue(NamedTuple):
    """A normalised price in major currency units."""

    price: float
    currency: str


def detect_currency(text: str) -> tuple[str | None, str]:
    """Find the currency marker and return it with the marker removed.

    Symbols are checked before codes, so ``"$100 CAD"`` is USD.
    """
    for symbol, code in SYMBOL_CURRENCIES:
        if symbol in text:
            return code, text.replace(symbol, "", 1)

    match = _CODE_RE.search(text)
    if match:
        remainder = text[: match.start()] + " " + text[match.end():]
        return match.group(1).upper(), remainder

    return None, text


def _resolve_separators(number: str, comma_policy: str) -> str:
    """Rewrite thousands/decimal separators into a float-parseable string."""
    has_dot = "." in number
    has_comma = "," in number

    if has_dot and has_comma:
        # The rightmost mark is the decimal separator
        if number.rfind(".") > number.rfind(","):
            return number.replace(",", "")
        return number.replace(".", "").replace(",", ".")

    if has_comma:
        if comma_policy == "thousands":
            return number.replace(",", "")
        if comma_policy == "strict" and _GROUPED_THOUSANDS_RE.match(number):
            raise AmbiguousFormat(
                f"'{number}' reads as either thousands or decimals"
            )
        return number.replace(",", ".")

    return number


def normalize(
    raw_text: str | None, comma_policy: str = "decimal",
) -> PriceValue:
    """Parse price text such as ``"$1,234.56"`` or ``"1.234,56 EUR"``.

    Args:
        raw_text: Text content of a price element or a free-text match.
        comma_policy: ``"decimal"``, ``"thousands"`` or ``"strict"``;
            only consulted when the number contains commas but no dot.

    Returns:
        The parsed :class:`PriceValue`; currency defaults to USD.

    Raises:
        NoNumericValue: Empty text or no parseable number.
        AmbiguousFormat: ``strict`` policy and a grouped-thousands shape.
        ValueError: Unknown ``comma_policy``.
    """
    if comma_policy not in COMMA_POLICIES:
        raise ValueError(f"Unknown comma_policy {comma_policy!r}")

    text = (raw_text or "").strip()
    if not text:
        raise NoNumericValue("price text is empty")

    currency, remainder = detect_currency(text)

    run = _NUMERIC_RUN_RE.search(remainder)
    if run is None:
        raise NoNumericValue(f"no digits in '{text}'")
    number = re.sub(r"\s+", "", run.group(0)).rstrip(".,")

    cleaned = _resolve_separators(number, comma_policy)
    try:
        price = float(cleaned)
    except ValueError as exc:
        raise NoNumericValue(
            f"cannot parse '{cleaned}' from '{text}'"
        ) from exc
    if math.isnan(price):
        raise NoNumericValue(f"'{text}' is not a number")

    resolved = currency or DEFAULT_CURRENCY
    logger.debug(
        "Normalised '%s' -> %s %s", text, price, resolved,
    )
    return PriceValue(price=price, currency=resolved)


def format_price(value: PriceValue) -> str:
    """Canonical text form; feeding it back to :func:`normalize` is a no-op."""
    return f"{value.price:.2f} {value.currency}"
