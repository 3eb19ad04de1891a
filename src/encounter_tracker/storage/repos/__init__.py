from __future__ import annotations

from encounter_tracker.storage.repos.encounter_repo import EncounterRepo

__all__ = [
    "EncounterRepo",
]
