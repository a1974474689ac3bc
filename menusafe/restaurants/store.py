from __future__ import annotations

import json
import logging
import sqlite3
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from ..matching.geo import bounding_box, distance_meters
from .config import DEFAULT_STORE_CONFIG, StoreConfig
from .errors import StoreError
from .models import ExternalMatch, Location, MenuItem, RestaurantRecord, Source

logger = logging.getLogger(__name__)


def _nearest_within(
    records: list[RestaurantRecord],
    location: Location,
    radius_meters: float,
) -> RestaurantRecord | None:
    best: RestaurantRecord | None = None
    best_dist = radius_meters
    for record in records:
        dist = distance_meters(record.location, location)
        if dist <= best_dist:
            best, best_dist = record, dist
    return best


class InMemoryRestaurantStore:
    """Process-local store, mostly for tests and single-process demos."""

    def __init__(self, records: list[RestaurantRecord] | None = None) -> None:
        self._records: dict[str, RestaurantRecord] = {}
        self._lock = threading.Lock()
        for record in records or []:
            self.upsert(record)

    def find_exact_near(
        self, name: str, location: Location, radius_meters: float
    ) -> RestaurantRecord | None:
        with self._lock:
            same_name = [r for r in self._records.values() if r.name == name]
        found = _nearest_within(same_name, location, radius_meters)
        return found.model_copy(deep=True) if found else None

    def list_all(self) -> list[RestaurantRecord]:
        with self._lock:
            return [r.model_copy(deep=True) for r in self._records.values()]

    def get(self, record_id: str) -> RestaurantRecord | None:
        with self._lock:
            record = self._records.get(record_id)
        return record.model_copy(deep=True) if record else None

    def upsert(self, record: RestaurantRecord) -> RestaurantRecord:
        stored = record.model_copy(deep=True)
        if stored.id is None:
            stored.id = uuid.uuid4().hex
        with self._lock:
            self._records[stored.id] = stored
        return stored.model_copy(deep=True)


_SCHEMA = """
CREATE TABLE IF NOT EXISTS restaurants (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    lat REAL NOT NULL,
    lng REAL NOT NULL,
    source TEXT NOT NULL,
    menu_items TEXT NOT NULL,
    external_match TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_restaurants_name ON restaurants (name);
CREATE INDEX IF NOT EXISTS idx_restaurants_lat_lng ON restaurants (lat, lng);
"""


class SQLiteRestaurantStore:
    """
    SQLite-backed store. One connection per operation so the store can be
    shared by worker threads.
    """

    def __init__(self, db_path: Path | str) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._connect() as conn:
            conn.executescript(_SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self.db_path))
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open restaurant store at {self.db_path}") from exc
        conn.row_factory = sqlite3.Row
        try:
            with conn:
                yield conn
        except sqlite3.Error as exc:
            raise StoreError("Restaurant store operation failed") from exc
        finally:
            conn.close()

    @staticmethod
    def _from_row(row: sqlite3.Row) -> RestaurantRecord:
        external = json.loads(row["external_match"]) if row["external_match"] else None
        return RestaurantRecord(
            id=row["id"],
            name=row["name"],
            location=Location(lat=row["lat"], lng=row["lng"]),
            menu_items=[MenuItem(**item) for item in json.loads(row["menu_items"])],
            source=Source(row["source"]),
            external_match=ExternalMatch(**external) if external else None,
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
        )

    def find_exact_near(
        self, name: str, location: Location, radius_meters: float
    ) -> RestaurantRecord | None:
        min_lat, max_lat, min_lng, max_lng = bounding_box(location, radius_meters)
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM restaurants WHERE name = ? "
                "AND lat BETWEEN ? AND ? AND lng BETWEEN ? AND ?",
                (name, min_lat, max_lat, min_lng, max_lng),
            ).fetchall()
        return _nearest_within([self._from_row(r) for r in rows], location, radius_meters)

    def list_all(self) -> list[RestaurantRecord]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM restaurants ORDER BY created_at").fetchall()
        return [self._from_row(r) for r in rows]

    def get(self, record_id: str) -> RestaurantRecord | None:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM restaurants WHERE id = ?", (record_id,)
            ).fetchone()
        return self._from_row(row) if row else None

    def upsert(self, record: RestaurantRecord) -> RestaurantRecord:
        stored = record.model_copy(deep=True)
        if stored.id is None:
            stored.id = uuid.uuid4().hex

        external = (
            stored.external_match.model_dump_json() if stored.external_match else None
        )
        menu_json = json.dumps([item.model_dump() for item in stored.menu_items])

        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO restaurants
                    (id, name, lat, lng, source, menu_items, external_match, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    name = excluded.name,
                    lat = excluded.lat,
                    lng = excluded.lng,
                    source = excluded.source,
                    menu_items = excluded.menu_items,
                    external_match = excluded.external_match,
                    updated_at = excluded.updated_at
                """,
                (
                    stored.id,
                    stored.name,
                    stored.location.lat,
                    stored.location.lng,
                    stored.source.value,
                    menu_json,
                    external,
                    stored.created_at.isoformat(),
                    stored.updated_at.isoformat(),
                ),
            )
        logger.debug("Upserted restaurant %s (%s)", stored.id, stored.name)
        return stored


def build_store(config: StoreConfig = DEFAULT_STORE_CONFIG):
    """Return the store selected by ``config.backend``."""
    if config.backend == "memory":
        return InMemoryRestaurantStore()
    if config.backend == "sqlite":
        return SQLiteRestaurantStore(config.db_path)
    raise ValueError(f"Unknown store backend: {config.backend!r}")
