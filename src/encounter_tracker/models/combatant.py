from __future__ import annotations

import math
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from encounter_tracker.mechanics.conditions import Condition


class CombatantKind(str, Enum):
    CHARACTER = "character"
    MONSTER = "monster"


class NewCombatant(BaseModel):
    """Validated input for EncounterStore.add_combatant."""

    model_config = ConfigDict(from_attributes=True)

    entity_id: str = Field(min_length=1)
    kind: CombatantKind
    name: str = Field(min_length=1, max_length=60)
    armor_class: int = Field(ge=1, le=30)
    max_hp: int = Field(ge=1, le=999)
    current_hp: int = Field(ge=0, le=999)
    initiative: int = Field(default=10, ge=-10, le=50)
    dex_modifier: int = Field(default=0, ge=-5, le=10)
    conditions: set[Condition] = Field(default_factory=set)
    is_player: bool = False
    notes: Optional[str] = Field(default=None, max_length=500)


class Combatant(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    entity_id: str
    kind: CombatantKind
    name: str
    armor_class: int
    max_hp: int
    current_hp: int
    initiative: int = 10
    dex_modifier: int = 0
    is_active: bool = False
    conditions: set[Condition] = Field(default_factory=set)
    is_player: bool = False
    notes: Optional[str] = None
    added_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def is_defeated(self) -> bool:
        return self.current_hp <= 0

    def is_bloodied(self) -> bool:
        return self.current_hp <= self.max_hp * 0.5

    def hp_percentage(self) -> int:
        if self.max_hp == 0:
            return 0
        # Half rounds up, not to even.
        return math.floor(self.current_hp / self.max_hp * 100 + 0.5)
