# src/storage/price_history_db.py

"""SQLite-backed hotel registry and price observation history."""

import logging
import sqlite3
from collections.abc import Iterable
from dataclasses import replace
from datetime import date, datetime, timezone
from pathlib import Path

from src.config.settings import Settings
from src.models.errors import UnknownHotel
from src.models.hotel import Hotel
from src.models.observation import Observation

logger = logging.getLogger("hotel_prices.price_history")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS hotels (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    key          TEXT    NOT NULL UNIQUE,
    display_name TEXT    NOT NULL,
    created_at   TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS observations (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    hotel_key   TEXT    NOT NULL
                REFERENCES hotels(key) ON DELETE CASCADE,
    name        TEXT    NOT NULL,
    price       REAL    NOT NULL,
    currency    TEXT    NOT NULL DEFAULT 'USD',
    check_in    TEXT    NOT NULL,
    check_out   TEXT    NOT NULL,
    recorded_at TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_observations_hotel_date
    ON observations(hotel_key, recorded_at);
"""

_OBSERVATION_COLUMNS = (
    "hotel_key, name, price, currency, check_in, check_out, recorded_at"
)


def _utc_timestamp(value: datetime) -> str:
    """Fixed-width UTC ISO string, so text order matches time order."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _row_to_observation(row: tuple[object, ...]) -> Observation:
    return Observation(
        hotel_key=str(row[0]),
        name=str(row[1]),
        price=float(str(row[2])),
        currency=str(row[3]),
        check_in=date.fromisoformat(str(row[4])),
        check_out=date.fromisoformat(str(row[5])),
        recorded_at=datetime.fromisoformat(str(row[6])),
    )


class PriceHistoryDB:
    """SQLite-backed store for hotels and their price observations."""

    def __init__(
        self, db_path: Path | None = None,
    ) -> None:
        path = db_path or Settings.PRICE_DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.executescript(_SCHEMA)
        logger.debug(
            "PriceHistoryDB opened at %s", path,
        )

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Hotels ───────────────────────────────────────────

    def add_hotel(self, key: str, display_name: str) -> Hotel:
        """Register a hotel, or rename it if the key already exists.

        ``created_at`` is kept from the first registration.
        """
        key = key.strip()
        display_name = display_name.strip()
        if not key or not display_name:
            raise ValueError("hotel key and display name are required")

        now = _utc_timestamp(datetime.now(timezone.utc))
        self._conn.execute(
            "INSERT INTO hotels (key, display_name, created_at) "
            "VALUES (?, ?, ?) "
            "ON CONFLICT(key) DO UPDATE "
            "SET display_name=excluded.display_name",
            (key, display_name, now),
        )
        self._conn.commit()
        hotel = self.get_hotel(key)
        assert hotel is not None
        logger.info("Registered hotel %s (%s)", key, display_name)
        return hotel

    def get_hotel(self, key: str) -> Hotel | None:
        """Return the hotel registered under *key*, if any."""
        row = self._conn.execute(
            "SELECT key, display_name, created_at "
            "FROM hotels WHERE key = ?",
            (key,),
        ).fetchone()
        if row is None:
            return None
        return Hotel(
            key=row[0],
            display_name=row[1],
            created_at=datetime.fromisoformat(row[2]),
        )

    def list_hotels(self) -> list[Hotel]:
        """All registered hotels, oldest registration first."""
        rows = self._conn.execute(
            "SELECT key, display_name, created_at "
            "FROM hotels ORDER BY created_at ASC, id ASC",
        ).fetchall()
        return [
            Hotel(
                key=r[0],
                display_name=r[1],
                created_at=datetime.fromisoformat(r[2]),
            )
            for r in rows
        ]

    def remove_hotel(self, key: str) -> bool:
        """Delete a hotel and (by cascade) its observations."""
        cur = self._conn.execute(
            "DELETE FROM hotels WHERE key = ?", (key,),
        )
        self._conn.commit()
        removed = cur.rowcount > 0
        if removed:
            logger.info("Removed hotel %s", key)
        return removed

    def seed_hotels(
        self, hotels: Iterable[tuple[str, str]],
    ) -> int:
        """Register hotels that are not present yet.

        Existing entries are left untouched.  Returns how many
        were inserted.
        """
        now = _utc_timestamp(datetime.now(timezone.utc))
        count = 0
        cur = self._conn.cursor()
        for key, display_name in hotels:
            cur.execute(
                "INSERT OR IGNORE INTO hotels "
                "(key, display_name, created_at) VALUES (?, ?, ?)",
                (key, display_name, now),
            )
            count += cur.rowcount
        self._conn.commit()
        if count:
            logger.info("Seeded %d hotels", count)
        return count

    # ── Recording ────────────────────────────────────────

    def append(self, observation: Observation) -> Observation:
        """Persist one observation and return it as stored.

        ``recorded_at`` is raised to the newest stored timestamp when
        the caller's clock is behind, so insertion order and time
        order never disagree.

        Raises:
            UnknownHotel: ``observation.hotel_key`` is not registered.
        """
        if self.get_hotel(observation.hotel_key) is None:
            raise UnknownHotel(observation.hotel_key)

        requested = _utc_timestamp(observation.recorded_at)
        # Single statement: the clamp and the insert share one transaction
        cur = self._conn.execute(
            f"INSERT INTO observations ({_OBSERVATION_COLUMNS}) "
            "SELECT ?, ?, ?, ?, ?, ?, MAX(?, COALESCE("
            "(SELECT MAX(recorded_at) FROM observations), ''))",
            (
                observation.hotel_key,
                observation.name,
                observation.price,
                observation.currency,
                observation.check_in.isoformat(),
                observation.check_out.isoformat(),
                requested,
            ),
        )
        stored_at = self._conn.execute(
            "SELECT recorded_at FROM observations WHERE id = ?",
            (cur.lastrowid,),
        ).fetchone()[0]
        self._conn.commit()

        if stored_at != requested:
            logger.warning(
                "Clock behind history for hotel %s: %s raised to %s",
                observation.hotel_key,
                requested,
                stored_at,
            )
            observation = replace(
                observation, recorded_at=datetime.fromisoformat(stored_at),
            )
        logger.info(
            "Recorded %s %.2f %s for hotel %s",
            observation.name,
            observation.price,
            observation.currency,
            observation.hotel_key,
        )
        return observation

    # ── Querying ─────────────────────────────────────────

    def query_history(
        self, hotel_key: str, limit: int = 30,
    ) -> list[Observation]:
        """Observations for a hotel, most recent first."""
        rows = self._conn.execute(
            f"SELECT {_OBSERVATION_COLUMNS} FROM observations "
            "WHERE hotel_key = ? "
            "ORDER BY recorded_at DESC, id DESC LIMIT ?",
            (hotel_key, limit),
        ).fetchall()
        return [_row_to_observation(r) for r in rows]

    def latest_observation(
        self,
        hotel_key: str,
        check_in: date | None = None,
        check_out: date | None = None,
    ) -> Observation | None:
        """Most recent observation, optionally for exact stay dates."""
        sql = (
            f"SELECT {_OBSERVATION_COLUMNS} FROM observations "
            "WHERE hotel_key = ?"
        )
        params: list[object] = [hotel_key]
        if check_in is not None:
            sql += " AND check_in = ?"
            params.append(check_in.isoformat())
        if check_out is not None:
            sql += " AND check_out = ?"
            params.append(check_out.isoformat())
        sql += " ORDER BY recorded_at DESC, id DESC LIMIT 1"

        row = self._conn.execute(sql, params).fetchone()
        return _row_to_observation(row) if row else None

    def get_trend_summary(
        self, hotel_key: str,
    ) -> dict[str, object] | None:
        """Compute min / max / avg / latest price for a hotel."""
        row = self._conn.execute(
            "SELECT MIN(price), MAX(price), AVG(price), COUNT(id) "
            "FROM observations WHERE hotel_key = ?",
            (hotel_key,),
        ).fetchone()
        if row is None or row[3] == 0:
            return None
        latest = self.latest_observation(hotel_key)
        return {
            "min": row[0],
            "max": row[1],
            "avg": round(row[2], 2),
            "count": row[3],
            "latest": latest.price if latest else 0.0,
            "currency": latest.currency if latest else "",
        }
