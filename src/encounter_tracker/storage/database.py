"""SQLite storage for saved encounters."""
from __future__ import annotations

import contextlib
import importlib
import logging
import pathlib
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Generator

logger = logging.getLogger(__name__)

MEMORY = ":memory:"

# Applied in order; the position (1-based) is the schema version.
MIGRATIONS = (
    "001_initial",
)


class Database:
    """One shared SQLite connection for the whole process.

    Autosave listeners write from whichever thread mutated an encounter, so
    every use of the connection is serialised by a lock held for the length
    of a ``get_connection()`` block. Rows come back as ``sqlite3.Row`` so
    repos can read columns by name.
    """

    def __init__(self, db_path: str) -> None:
        self.db_path = db_path
        self._connection: sqlite3.Connection | None = None
        self._lock = threading.RLock()
        if db_path != MEMORY:
            pathlib.Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    def initialize(self) -> None:
        """Bring the schema up to date. Safe to call on every start."""
        with self.get_connection() as conn:
            conn.execute(
                "CREATE TABLE IF NOT EXISTS schema_version ("
                "version INTEGER PRIMARY KEY, name TEXT NOT NULL, applied_at TEXT NOT NULL)"
            )
            current = self._current_version(conn)
            for version, name in enumerate(MIGRATIONS, 1):
                if version <= current:
                    continue
                module = importlib.import_module(f"encounter_tracker.storage.migrations.{name}")
                module.upgrade(conn)
                conn.execute(
                    "INSERT INTO schema_version (version, name, applied_at) VALUES (?, ?, ?)",
                    (version, name, datetime.now(timezone.utc).isoformat()),
                )
                logger.info("Applied migration %s to %s", name, self.db_path)

    def schema_version(self) -> int:
        with self.get_connection() as conn:
            return self._current_version(conn)

    @staticmethod
    def _current_version(conn: sqlite3.Connection) -> int:
        row = conn.execute("SELECT MAX(version) FROM schema_version").fetchone()
        return row[0] or 0

    @contextlib.contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Yield the shared connection with the lock held.

        Commits when the block exits cleanly; rolls back and re-raises
        otherwise.
        """
        with self._lock:
            if self._connection is None:
                self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
                self._connection.row_factory = sqlite3.Row
            conn = self._connection
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    def close(self) -> None:
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
