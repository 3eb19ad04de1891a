from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


def _now() -> datetime:
    return datetime.now(timezone.utc)


class Character(BaseModel):
    """Roster entry for a player character. Not owned by any encounter."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = Field(min_length=1, max_length=50)
    character_class: str = Field(default="Fighter", min_length=1, max_length=30)
    level: int = Field(default=1, ge=1, le=20)
    max_hp: int = Field(default=10, ge=1, le=999)
    current_hp: int = Field(default=10, ge=0, le=999)
    armor_class: int = Field(default=10, ge=1, le=30)
    dex_modifier: int = Field(default=0, ge=-5, le=10)
    conditions: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
