# src/models/observation.py

"""Price observation model for hotel price history tracking."""

from dataclasses import dataclass
from datetime import date, datetime

from src.models.errors import InvalidDateRange


@dataclass(frozen=True)
class Observation:
    """A single price reading for a hotel and stay at a point in time."""

    hotel_key: str
    name: str
    price: float
    currency: str
    check_in: date
    check_out: date
    recorded_at: datetime

    def __post_init__(self) -> None:
        if self.check_in >= self.check_out:
            raise InvalidDateRange(
                f"check-in {self.check_in} must be before "
                f"check-out {self.check_out}"
            )
        if self.price < 0:
            raise ValueError(f"price must be non-negative, got {self.price}")
        if not self.currency:
            raise ValueError("currency must not be empty")

    @property
    def nights(self) -> int:
        """Length of stay in nights."""
        return (self.check_out - self.check_in).days

    def to_dict(self) -> dict[str, object]:
        """Serialise to the JSON shape used by result files and the CLI."""
        return {
            "hotelId": self.hotel_key,
            "name": self.name,
            "price": self.price,
            "currency": self.currency,
            "checkIn": self.check_in.isoformat(),
            "checkOut": self.check_out.isoformat(),
            "recordedAt": self.recorded_at.isoformat(),
        }
