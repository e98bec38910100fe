"""
SQLite implementation of the preference store.

Used as the default backend for the CLI and local development.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional

from metrics_dashboard.infra.preferences import AbstractPreferenceStore

logger = logging.getLogger(__name__)

_CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS preferences (
    key   TEXT PRIMARY KEY,
    value TEXT NOT NULL
);
"""


class SQLitePreferenceStore(AbstractPreferenceStore):
    """SQLite-backed preference store for single-user use."""

    def __init__(self, db_path: str = "preferences.db") -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(self._db_path)
            self._conn.row_factory = sqlite3.Row
        return self._conn

    def initialize(self) -> None:
        try:
            conn = self._get_conn()
            conn.execute(_CREATE_TABLE_SQL)
            conn.commit()
        except sqlite3.Error as exc:
            logger.warning("Preference storage unavailable at %s: %s", self._db_path, exc)

    def get(self, key: str) -> Optional[str]:
        try:
            row = self._get_conn().execute(
                "SELECT value FROM preferences WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as exc:
            logger.warning("Could not read preference %r: %s", key, exc)
            return None
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        try:
            conn = self._get_conn()
            conn.execute(
                """
                INSERT INTO preferences (key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, value),
            )
            conn.commit()
        except sqlite3.Error as exc:
            logger.warning("Could not persist preference %r: %s", key, exc)

    def close(self) -> None:
        if self._conn:
            self._conn.close()
            self._conn = None
