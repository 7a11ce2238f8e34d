from __future__ import annotations

import json
import logging
import sqlite3
import threading

from config import STATE_KEY

from .base import Storage

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""


class SQLiteStorage(Storage):
    """SQLite-backed key-value storage holding the state as one JSON record."""

    def __init__(self, db_path: str = "finance.db", key: str = STATE_KEY) -> None:
        self._db_path = db_path
        self._key = key
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode = WAL;")
        self.initialize_schema()

    @property
    def db_path(self) -> str:
        return self._db_path

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def initialize_schema(self) -> None:
        with self._lock:
            self._conn.executescript(SCHEMA)
            self._conn.commit()

    def has_data(self) -> bool:
        with self._lock:
            row = self._conn.execute(
                "SELECT COUNT(*) FROM kv_store WHERE key = ?", (self._key,)
            ).fetchone()
        return int(row[0]) > 0

    def load_state(self) -> dict | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT value FROM kv_store WHERE key = ?", (self._key,)
            ).fetchone()
        if row is None:
            return None
        try:
            data = json.loads(row["value"])
        except json.JSONDecodeError:
            logger.warning("Stored state under key %s is not valid JSON, ignoring it", self._key)
            return None
        if not isinstance(data, dict):
            logger.warning("Stored state under key %s has invalid root, ignoring it", self._key)
            return None
        return data

    def save_state(self, data: dict) -> None:
        payload = json.dumps(data, ensure_ascii=False)
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (self._key, payload),
            )
            self._conn.commit()
