"""
SQLite-backed store for locations, soil readings and aggregated summaries.

Stands in for the hosted backend the dashboard talks to:
  - reading store     : insert / query / edit / delete readings
  - location store    : CRUD by user; deleting a location cascades to its readings
  - aggregation compute : aggregate_soil_data() upserts one summary row per window
  - aggregated row store: get_aggregated_rows() newest period first

Every call opens its own connection and commits or rolls back before returning.
Timestamps are stored as naive local-time 'YYYY-MM-DD HH:MM:SS.ffffff' text so they
sort lexically. Aware datetimes are converted to local time first, matching the
naive datetime.now() used for readings without an explicit date.
"""

import logging
import sqlite3
import uuid
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator

from soil_monitor.config import AGGREGATED_ROWS_LIMIT, READINGS_LIMIT
from soil_monitor.exceptions import AuthError, StoreError
from soil_monitor.models import AggregatedRow, Location, Reading
from soil_monitor.readings import validate_reading_update

log = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS locations (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    name        TEXT NOT NULL,
    latitude    REAL,
    longitude   REAL,
    description TEXT,
    created_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_locations_user ON locations (user_id, created_at);

CREATE TABLE IF NOT EXISTS soil_readings (
    id           TEXT PRIMARY KEY,
    user_id      TEXT NOT NULL,
    location_id  TEXT NOT NULL REFERENCES locations (id) ON DELETE CASCADE,
    nitrogen     REAL NOT NULL,
    ph           REAL NOT NULL,
    moisture     REAL NOT NULL,
    temperature  REAL,
    plant_type   TEXT,
    reading_date TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_readings_user_date ON soil_readings (user_id, reading_date);
CREATE INDEX IF NOT EXISTS idx_readings_location ON soil_readings (location_id);

CREATE TABLE IF NOT EXISTS aggregated_data (
    id               TEXT PRIMARY KEY,
    user_id          TEXT NOT NULL,
    aggregation_type TEXT NOT NULL,
    period_start     TEXT NOT NULL,
    period_end       TEXT NOT NULL,
    avg_nitrogen     REAL NOT NULL,
    avg_ph           REAL NOT NULL,
    avg_moisture     REAL NOT NULL,
    avg_temperature  REAL,
    min_nitrogen     REAL,
    max_nitrogen     REAL,
    min_ph           REAL,
    max_ph           REAL,
    min_moisture     REAL,
    max_moisture     REAL,
    total_readings   INTEGER NOT NULL DEFAULT 0,
    created_at       TEXT NOT NULL,
    UNIQUE (user_id, aggregation_type, period_start)
);
"""

_LOCATION_FIELDS = ("name", "latitude", "longitude", "description")
_READING_FIELDS  = ("nitrogen", "ph", "moisture", "temperature", "plant_type", "reading_date")

_STAT_COLUMNS = (
    "avg_nitrogen", "avg_ph", "avg_moisture", "avg_temperature",
    "min_nitrogen", "max_nitrogen", "min_ph", "max_ph",
    "min_moisture", "max_moisture", "total_readings",
)


def to_db_timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone().replace(tzinfo=None)
    return value.strftime("%Y-%m-%d %H:%M:%S.%f")


def from_db_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value)


def _new_id() -> str:
    return uuid.uuid4().hex


def _require_user(user_id: str | None) -> str:
    if not user_id:
        raise AuthError("You must be logged in to access soil data.")
    return user_id


def _row_to_location(row: sqlite3.Row) -> Location:
    return Location(
        id=row["id"],
        user_id=row["user_id"],
        name=row["name"],
        latitude=row["latitude"],
        longitude=row["longitude"],
        description=row["description"],
        created_at=from_db_timestamp(row["created_at"]),
    )


def _row_to_reading(row: sqlite3.Row) -> Reading:
    return Reading(
        id=row["id"],
        user_id=row["user_id"],
        location_id=row["location_id"],
        nitrogen=row["nitrogen"],
        ph=row["ph"],
        moisture=row["moisture"],
        temperature=row["temperature"],
        plant_type=row["plant_type"],
        reading_date=from_db_timestamp(row["reading_date"]),
        location_name=row["location_name"],
    )


def _row_to_aggregate(row: sqlite3.Row) -> AggregatedRow:
    return AggregatedRow(
        aggregation_type=row["aggregation_type"],
        period_start=from_db_timestamp(row["period_start"]),
        period_end=from_db_timestamp(row["period_end"]),
        **{c: row[c] for c in _STAT_COLUMNS},
    )


class SoilStore:
    """Reading, location and aggregate persistence on a single SQLite file."""

    def __init__(self, database_path: str | Path) -> None:
        self._database_path = str(database_path)
        db_dir = Path(self._database_path).parent
        if not db_dir.exists():
            db_dir.mkdir(parents=True, exist_ok=True)
            log.info("Created database directory: %s", db_dir)
        self.create_tables()

    @property
    def database_path(self) -> str:
        return self._database_path

    # --- Lifecycle ------------------------------------------------------------
    @contextmanager
    def connection(self) -> Iterator[sqlite3.Connection]:
        """Open a connection, commit on success, roll back and raise StoreError on failure."""
        try:
            conn = sqlite3.connect(self._database_path)
        except sqlite3.Error as exc:
            log.error("Cannot open database %s: %s", self._database_path, exc)
            raise StoreError(f"Soil data store unavailable: {exc}") from exc
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            conn.rollback()
            log.error("Store operation failed: %s", exc)
            raise StoreError(f"Soil data store error: {exc}") from exc
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def create_tables(self) -> None:
        with self.connection() as db:
            db.executescript(_SCHEMA)

    # --- Locations ------------------------------------------------------------
    def create_location(
        self,
        user_id: str,
        name: str,
        latitude: float | None = None,
        longitude: float | None = None,
        description: str | None = None,
        created_at: datetime | None = None,
    ) -> Location:
        _require_user(user_id)
        location = Location(
            id=_new_id(),
            user_id=user_id,
            name=name,
            latitude=latitude,
            longitude=longitude,
            description=description,
            created_at=created_at or datetime.now(),
        )
        with self.connection() as db:
            db.execute(
                "INSERT INTO locations (id, user_id, name, latitude, longitude, description, created_at)"
                " VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    location.id, user_id, name, latitude, longitude, description,
                    to_db_timestamp(location.created_at),
                ),
            )
        log.info("Created location %s (%s)", location.id, name)
        return location

    def get_locations(self, user_id: str) -> list[Location]:
        """All locations of a user, newest first."""
        _require_user(user_id)
        with self.connection() as db:
            rows = db.execute(
                "SELECT * FROM locations WHERE user_id = ? ORDER BY created_at DESC, rowid DESC",
                (user_id,),
            ).fetchall()
        return [_row_to_location(r) for r in rows]

    def get_location(self, user_id: str, location_id: str) -> Location | None:
        _require_user(user_id)
        with self.connection() as db:
            row = db.execute(
                "SELECT * FROM locations WHERE user_id = ? AND id = ?",
                (user_id, location_id),
            ).fetchone()
        return _row_to_location(row) if row else None

    def update_location(self, user_id: str, location_id: str, **fields) -> bool:
        """Update name / latitude / longitude / description. Returns False if not found."""
        _require_user(user_id)
        unknown = set(fields) - set(_LOCATION_FIELDS)
        if unknown:
            raise ValueError(f"Unknown location fields: {sorted(unknown)}")
        if not fields:
            return self.get_location(user_id, location_id) is not None
        assignments = ", ".join(f"{k} = ?" for k in fields)
        with self.connection() as db:
            cur = db.execute(
                f"UPDATE locations SET {assignments} WHERE user_id = ? AND id = ?",
                (*fields.values(), user_id, location_id),
            )
        return cur.rowcount > 0

    def delete_location(self, user_id: str, location_id: str) -> bool:
        """Delete a location and, through the foreign key, all of its readings."""
        _require_user(user_id)
        with self.connection() as db:
            cur = db.execute(
                "DELETE FROM locations WHERE user_id = ? AND id = ?",
                (user_id, location_id),
            )
        if cur.rowcount:
            log.info("Deleted location %s and its readings", location_id)
        return cur.rowcount > 0

    # --- Readings -------------------------------------------------------------
    def insert_readings(
        self,
        user_id: str,
        location_id: str,
        readings: list[dict],
        reading_date: datetime | None = None,
    ) -> list[str]:
        """
        Insert several readings for one location in a single transaction.
        Each dict carries nitrogen, ph, moisture and optionally temperature,
        plant_type and reading_date (defaults to `reading_date` / now).
        """
        _require_user(user_id)
        default_date = reading_date or datetime.now()
        ids = []
        with self.connection() as db:
            owned = db.execute(
                "SELECT 1 FROM locations WHERE id = ? AND user_id = ?",
                (location_id, user_id),
            ).fetchone()
            if owned is None:
                raise StoreError(f"Location {location_id} not found for this user.")
            for r in readings:
                reading_id = _new_id()
                db.execute(
                    "INSERT INTO soil_readings (id, user_id, location_id, nitrogen, ph, moisture,"
                    " temperature, plant_type, reading_date) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        reading_id, user_id, location_id,
                        float(r["nitrogen"]), float(r["ph"]), float(r["moisture"]),
                        r.get("temperature"), r.get("plant_type"),
                        to_db_timestamp(r.get("reading_date") or default_date),
                    ),
                )
                ids.append(reading_id)
        log.info("Stored %d reading(s) for location %s", len(ids), location_id)
        return ids

    def insert_reading(
        self,
        user_id: str,
        location_id: str,
        nitrogen: float,
        ph: float,
        moisture: float,
        temperature: float | None = None,
        plant_type: str | None = None,
        reading_date: datetime | None = None,
    ) -> str:
        return self.insert_readings(
            user_id,
            location_id,
            [{
                "nitrogen": nitrogen, "ph": ph, "moisture": moisture,
                "temperature": temperature, "plant_type": plant_type,
            }],
            reading_date=reading_date,
        )[0]

    def get_readings(
        self,
        user_id: str,
        location_id: str | None = None,
        limit: int = READINGS_LIMIT,
    ) -> list[Reading]:
        """Readings of a user (optionally one location), newest first, with location names."""
        _require_user(user_id)
        sql = (
            "SELECT r.*, l.name AS location_name FROM soil_readings r"
            " JOIN locations l ON l.id = r.location_id"
            " WHERE r.user_id = ?"
        )
        params: list = [user_id]
        if location_id:
            sql += " AND r.location_id = ?"
            params.append(location_id)
        sql += " ORDER BY r.reading_date DESC, r.rowid DESC LIMIT ?"
        params.append(int(limit))
        with self.connection() as db:
            rows = db.execute(sql, params).fetchall()
        return [_row_to_reading(r) for r in rows]

    def update_reading(self, user_id: str, reading_id: str, **fields) -> bool:
        """Edit a reading; numeric fields go through the same checks as form entry."""
        _require_user(user_id)
        unknown = set(fields) - set(_READING_FIELDS)
        if unknown:
            raise ValueError(f"Unknown reading fields: {sorted(unknown)}")
        if not fields:
            return False
        fields = validate_reading_update(fields)
        if isinstance(fields.get("reading_date"), datetime):
            fields["reading_date"] = to_db_timestamp(fields["reading_date"])
        assignments = ", ".join(f"{k} = ?" for k in fields)
        with self.connection() as db:
            cur = db.execute(
                f"UPDATE soil_readings SET {assignments} WHERE user_id = ? AND id = ?",
                (*fields.values(), user_id, reading_id),
            )
        return cur.rowcount > 0

    def delete_reading(self, user_id: str, reading_id: str) -> bool:
        _require_user(user_id)
        with self.connection() as db:
            cur = db.execute(
                "DELETE FROM soil_readings WHERE user_id = ? AND id = ?",
                (user_id, reading_id),
            )
        return cur.rowcount > 0

    # --- Aggregation ----------------------------------------------------------
    def aggregate_soil_data(
        self,
        user_id: str,
        aggregation_type: str,
        period_start: datetime,
        period_end: datetime,
    ) -> AggregatedRow | None:
        """
        Compute count / avg / min / max over readings in [period_start, period_end)
        and upsert the summary keyed by (user_id, aggregation_type, period_start).
        Running it twice for the same window overwrites, never double counts.
        A window without readings removes any stale summary and returns None.
        """
        _require_user(user_id)
        start, end = to_db_timestamp(period_start), to_db_timestamp(period_end)
        with self.connection() as db:
            stats = db.execute(
                "SELECT COUNT(*) AS total_readings,"
                " AVG(nitrogen) AS avg_nitrogen, AVG(ph) AS avg_ph,"
                " AVG(moisture) AS avg_moisture, AVG(temperature) AS avg_temperature,"
                " MIN(nitrogen) AS min_nitrogen, MAX(nitrogen) AS max_nitrogen,"
                " MIN(ph) AS min_ph, MAX(ph) AS max_ph,"
                " MIN(moisture) AS min_moisture, MAX(moisture) AS max_moisture"
                " FROM soil_readings"
                " WHERE user_id = ? AND reading_date >= ? AND reading_date < ?",
                (user_id, start, end),
            ).fetchone()

            if not stats["total_readings"]:
                db.execute(
                    "DELETE FROM aggregated_data"
                    " WHERE user_id = ? AND aggregation_type = ? AND period_start = ?",
                    (user_id, aggregation_type, start),
                )
                return None

            values = {c: stats[c] for c in _STAT_COLUMNS}
            columns = ", ".join(_STAT_COLUMNS)
            placeholders = ", ".join("?" for _ in _STAT_COLUMNS)
            updates = ", ".join(f"{c} = excluded.{c}" for c in _STAT_COLUMNS)
            db.execute(
                f"INSERT INTO aggregated_data (id, user_id, aggregation_type, period_start,"
                f" period_end, {columns}, created_at)"
                f" VALUES (?, ?, ?, ?, ?, {placeholders}, ?)"
                f" ON CONFLICT (user_id, aggregation_type, period_start) DO UPDATE SET"
                f" period_end = excluded.period_end, {updates}",
                (
                    _new_id(), user_id, aggregation_type, start, end,
                    *values.values(), to_db_timestamp(datetime.now()),
                ),
            )
        return AggregatedRow(
            aggregation_type=aggregation_type,
            period_start=from_db_timestamp(start),
            period_end=from_db_timestamp(end),
            **values,
        )

    def get_aggregated_rows(
        self,
        user_id: str,
        aggregation_type: str,
        limit: int = AGGREGATED_ROWS_LIMIT,
    ) -> list[AggregatedRow]:
        """Stored summaries for a user and granularity, newest period first."""
        _require_user(user_id)
        with self.connection() as db:
            rows = db.execute(
                "SELECT * FROM aggregated_data WHERE user_id = ? AND aggregation_type = ?"
                " ORDER BY period_start DESC LIMIT ?",
                (user_id, aggregation_type, int(limit)),
            ).fetchall()
        return [_row_to_aggregate(r) for r in rows]
