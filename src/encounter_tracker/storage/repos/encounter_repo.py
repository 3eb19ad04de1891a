"""Repository for saved encounter state."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

from pydantic import ValidationError

from encounter_tracker.models.encounter import EncounterSnapshot
from encounter_tracker.storage.database import Database
from encounter_tracker.storage.state_migrations import CURRENT_VERSION, migrate_state

logger = logging.getLogger(__name__)


class EncounterRepo:
    """Saves and restores encounter snapshots, one row per encounter id."""

    def __init__(self, db: Database) -> None:
        self.db = db

    def save(self, encounter_id: str, snapshot: EncounterSnapshot, name: str = "") -> None:
        """Insert or replace the stored state for an encounter."""
        now = datetime.now(timezone.utc).isoformat()
        state = snapshot.model_dump(mode="json")
        state["version"] = CURRENT_VERSION
        with self.db.get_connection() as conn:
            conn.execute(
                "INSERT INTO encounters (id, name, version, state, updated_at) "
                "VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET name = excluded.name, "
                "version = excluded.version, state = excluded.state, "
                "updated_at = excluded.updated_at",
                (encounter_id, name or encounter_id, CURRENT_VERSION, json.dumps(state), now),
            )

    def load(self, encounter_id: str) -> EncounterSnapshot:
        """Load an encounter, migrating old shapes.

        A missing row gives a fresh encounter. So does anything that fails to
        decode, with a warning logged.
        """
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT version, state FROM encounters WHERE id = ?", (encounter_id,)
            ).fetchone()
        if row is None:
            return EncounterSnapshot()
        try:
            raw = json.loads(row["state"])
            migrated = migrate_state({"state": raw, "version": row["version"]})
            return EncounterSnapshot.model_validate(migrated["state"])
        except (json.JSONDecodeError, TypeError, ValidationError) as e:
            logger.warning("Saved encounter %s is unreadable (%s). Starting fresh.", encounter_id, e)
            return EncounterSnapshot()

    def exists(self, encounter_id: str) -> bool:
        with self.db.get_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM encounters WHERE id = ?", (encounter_id,)
            ).fetchone()
        return row is not None

    def list_encounters(self) -> list[dict]:
        """Saved encounters, most recently updated first."""
        with self.db.get_connection() as conn:
            rows = conn.execute(
                "SELECT id, name, version, updated_at FROM encounters ORDER BY updated_at DESC"
            ).fetchall()
        return [dict(r) for r in rows]

    def delete(self, encounter_id: str) -> None:
        with self.db.get_connection() as conn:
            conn.execute("DELETE FROM encounters WHERE id = ?", (encounter_id,))
