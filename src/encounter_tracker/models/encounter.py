from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from encounter_tracker.models.character import Character
from encounter_tracker.models.combatant import Combatant


class EncounterSnapshot(BaseModel):
    """Plain-data contract with the persistence layer."""

    model_config = ConfigDict(from_attributes=True)

    combatants: list[Combatant] = Field(default_factory=list)
    round: int = 1
    in_combat: bool = False
    characters: list[Character] = Field(default_factory=list)


class EncounterView(BaseModel):
    """Derived, read-only view returned by every store mutation."""

    combatants: list[Combatant] = Field(default_factory=list)
    round: int = 1
    in_combat: bool = False
    active_id: Optional[str] = None
