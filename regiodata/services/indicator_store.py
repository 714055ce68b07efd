"""
Indicator Store Service

SQLite document store for resolved indicators:
1. ``current``: the latest resolved series per indicator (last write wins)
2. ``snapshots``: periodic copies of every current indicator
3. ``descriptions``: name -> description style lookup tables
   (indicator descriptions, location labels)

Series are stored as JSON with absent values as ``null``.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from ..config import get_settings
from ..exceptions import PersistenceError
from ..models import IndicatorMetadata, Series

logger = logging.getLogger(__name__)


@dataclass
class StoredIndicator:
    """A resolved indicator as read back from the store."""
    name: str
    default_year: int
    unit_of_measure: str
    type: str
    data: Series = field(default_factory=dict)
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "default_year": self.default_year,
            "unit_of_measure": self.unit_of_measure,
            "type": self.type,
            "data": self.data,
        }


def _now() -> datetime:
    return datetime.now(timezone.utc)


class IndicatorStore:
    """
    SQLite-backed persistence for resolved indicators and snapshots.

    Writes are serialized with a lock; the connection is shared across the
    event loop and worker threads.
    """

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = Path(db_path or get_settings().database_path)
        self._conn: Optional[sqlite3.Connection] = None
        self._write_lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create database connection."""
        if self._conn is None:
            try:
                if str(self.db_path) != ":memory:":
                    self.db_path.parent.mkdir(parents=True, exist_ok=True)
                self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
                self._conn.row_factory = sqlite3.Row
                self._initialize_db()
            except (sqlite3.Error, OSError) as e:
                self._conn = None
                raise PersistenceError(
                    f"Cannot open indicator store at {self.db_path}: {e}"
                ) from e
        return self._conn

    def _initialize_db(self) -> None:
        """Create the schema if missing."""
        conn = self._conn
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS current (
                name TEXT PRIMARY KEY,
                default_year INTEGER NOT NULL,
                unit_of_measure TEXT NOT NULL,
                type TEXT NOT NULL,
                json_dump TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS snapshots (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                taken_at TEXT NOT NULL,
                data TEXT NOT NULL
            )
        """)
        cursor.execute("CREATE INDEX IF NOT EXISTS idx_snapshots_taken_at ON snapshots(taken_at)")
        cursor.execute("""
            CREATE TABLE IF NOT EXISTS descriptions (
                name TEXT PRIMARY KEY,
                data TEXT NOT NULL
            )
        """)

        conn.commit()
        logger.info(f"Initialized indicator store at {self.db_path}")

    def _write(self, sql: str, params: Tuple[Any, ...]) -> int:
        conn = self._get_connection()
        with self._write_lock:
            try:
                cursor = conn.execute(sql, params)
                conn.commit()
                return cursor.lastrowid
            except sqlite3.Error as e:
                conn.rollback()
                raise PersistenceError(f"Indicator store write failed: {e}") from e

    def _read(self, sql: str, params: Tuple[Any, ...] = ()) -> List[sqlite3.Row]:
        conn = self._get_connection()
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise PersistenceError(f"Indicator store read failed: {e}") from e

    # ------------------------------------------------------------------
    # Current indicators
    # ------------------------------------------------------------------

    def save(self, name: str, series: Series, metadata: IndicatorMetadata) -> None:
        """Insert or replace the current series of an indicator."""
        self._write(
            """
            INSERT INTO current (name, default_year, unit_of_measure, type, json_dump, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(name) DO UPDATE SET
                default_year = excluded.default_year,
                unit_of_measure = excluded.unit_of_measure,
                type = excluded.type,
                json_dump = excluded.json_dump,
                updated_at = excluded.updated_at
            """,
            (
                name,
                metadata.default_year,
                metadata.unit_of_measure,
                metadata.type,
                json.dumps(series),
                _now().isoformat(),
            ),
        )
        logger.debug(f"Saved indicator {name} ({len(series)} locations)")

    def load_current(self) -> Dict[str, StoredIndicator]:
        """Every current indicator, keyed by name, in name order."""
        rows = self._read("SELECT * FROM current ORDER BY name")
        return {
            row["name"]: StoredIndicator(
                name=row["name"],
                default_year=row["default_year"],
                unit_of_measure=row["unit_of_measure"],
                type=row["type"],
                data=json.loads(row["json_dump"]),
                updated_at=row["updated_at"],
            )
            for row in rows
        }

    # ------------------------------------------------------------------
    # Descriptions
    # ------------------------------------------------------------------

    def save_description(self, name: str, mapping: Dict[str, str]) -> None:
        self._write(
            """
            INSERT INTO descriptions (name, data) VALUES (?, ?)
            ON CONFLICT(name) DO UPDATE SET data = excluded.data
            """,
            (name, json.dumps(mapping)),
        )

    def load_description(self, name: str) -> Optional[Dict[str, str]]:
        rows = self._read("SELECT data FROM descriptions WHERE name = ?", (name,))
        if not rows:
            return None
        return json.loads(rows[0]["data"])

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def take_snapshot(self) -> int:
        """Copy every current indicator into a new snapshot row.

        Returns:
            The id of the new snapshot
        """
        current = self.load_current()
        payload = {name: stored.to_dict() for name, stored in current.items()}
        snapshot_id = self._write(
            "INSERT INTO snapshots (taken_at, data) VALUES (?, ?)",
            (_now().isoformat(), json.dumps(payload)),
        )
        logger.info(f"Took snapshot {snapshot_id} of {len(payload)} indicators")
        return snapshot_id

    def list_snapshots(self) -> List[Tuple[int, str]]:
        """``(id, "YYYY-MM")`` for every snapshot, oldest first."""
        rows = self._read("SELECT id, taken_at FROM snapshots ORDER BY taken_at, id")
        return [(row["id"], row["taken_at"][:7]) for row in rows]

    def get_snapshot(self, year: int, month: int) -> Optional[Dict[str, Any]]:
        """The most recent snapshot taken in the given month, if any."""
        rows = self._read(
            "SELECT data FROM snapshots WHERE substr(taken_at, 1, 7) = ? "
            "ORDER BY taken_at DESC, id DESC LIMIT 1",
            (f"{year:04d}-{month:02d}",),
        )
        if not rows:
            return None
        return json.loads(rows[0]["data"])

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None


# Global instance
_indicator_store: Optional[IndicatorStore] = None


def get_indicator_store() -> IndicatorStore:
    """Get or create the global indicator store instance."""
    global _indicator_store
    if _indicator_store is None:
        _indicator_store = IndicatorStore()
    return _indicator_store
