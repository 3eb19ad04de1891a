from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MonsterSize(str, Enum):
    TINY = "tiny"
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    HUGE = "huge"
    GARGANTUAN = "gargantuan"


class Difficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    DEADLY = "deadly"


class MonsterAbility(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    description: str = Field(min_length=1, max_length=500)
    damage: Optional[str] = None
    usage: Optional[str] = None


class Monster(BaseModel):
    """Read-only record from the monster library."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str = Field(min_length=1, max_length=50)
    monster_type: str = "humanoid"
    armor_class: int = Field(ge=1, le=30)
    hit_points: int = Field(ge=1, le=999)
    damage: str = Field(default="1d6", pattern=r"^\d+d\d+([+-]\d+)?$")
    dex_modifier: int = Field(default=0, ge=-5, le=10)
    abilities: list[MonsterAbility] = Field(default_factory=list)
    challenge: float = Field(default=1, ge=0, le=30)
    size: MonsterSize = MonsterSize.MEDIUM
    speed: int = Field(default=30, ge=0, le=200)
    description: str = ""


class EncounterMonster(BaseModel):
    monster_id: str
    count: int = Field(default=1, ge=1)


class EncounterTemplate(BaseModel):
    id: str
    name: str
    description: str = ""
    difficulty: Difficulty = Difficulty.MEDIUM
    monsters: list[EncounterMonster] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
