"""Application bootstrap: wires config, storage and the encounter store."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from encounter_tracker.engine.encounter_store import EncounterStore
from encounter_tracker.models.encounter import EncounterSnapshot

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config.toml"


def _load_config(config_path: Path | None = None) -> dict[str, Any]:
    """Load config.toml from project root."""
    import tomllib

    path = config_path or DEFAULT_CONFIG_PATH
    if path.exists():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


def configure_logging(config: dict[str, Any]) -> None:
    level = str(config.get("logging", {}).get("level", "WARNING")).upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


class TrackerApp:
    """Owns the database and hands out auto-saving encounter stores."""

    def __init__(
        self,
        config: dict[str, Any] | None = None,
        db_path: str | None = None,
    ) -> None:
        self.config = config if config is not None else _load_config()
        self.db_path_override = db_path
        self._db = None
        self._repo = None

    # -- Component initialization (lazy) --

    @property
    def db(self):
        if self._db is None:
            from encounter_tracker.storage.database import Database

            db_path = self.db_path_override or self.config.get("storage", {}).get(
                "db_path", "saves/encounters.db"
            )
            self._db = Database(db_path)
            self._db.initialize()
        return self._db

    @property
    def repo(self):
        if self._repo is None:
            from encounter_tracker.storage.repos import EncounterRepo

            self._repo = EncounterRepo(self.db)
        return self._repo

    @property
    def default_encounter(self) -> str:
        return self.config.get("tracker", {}).get("default_encounter", "default")

    @property
    def max_import_bytes(self) -> int:
        return int(self.config.get("tracker", {}).get("max_import_bytes", 10 * 1024 * 1024))

    # -- Encounters --

    def open_encounter(self, encounter_id: str | None = None) -> EncounterStore:
        """Load an encounter and save it again after every change."""
        encounter_id = encounter_id or self.default_encounter
        store = EncounterStore(self.repo.load(encounter_id))

        def autosave(snapshot: EncounterSnapshot) -> None:
            self.repo.save(encounter_id, snapshot)

        store.subscribe(autosave)
        return store

    def close(self) -> None:
        if self._db is not None:
            self._db.close()
            self._db = None
            self._repo = None
