# src/models/hotel.py

"""Hotel data model."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Hotel:
    """A tracked hotel; observations refer to it by ``key`` only."""

    key: str
    display_name: str
    created_at: datetime
