"""Migration 001: saved encounter state."""
from __future__ import annotations

import sqlite3


def upgrade(conn: sqlite3.Connection) -> None:
    conn.executescript("""
        CREATE TABLE IF NOT EXISTS encounters (
            id          TEXT PRIMARY KEY,
            name        TEXT NOT NULL DEFAULT '',
            version     INTEGER NOT NULL,
            state       TEXT NOT NULL,
            updated_at  TEXT NOT NULL
        );
        CREATE INDEX IF NOT EXISTS idx_encounters_updated ON encounters(updated_at DESC);
    """)
