"""Validates and builds combatant input before it reaches the store."""
from __future__ import annotations

import re
from collections.abc import Iterable
from typing import Any

from encounter_tracker.mechanics.conditions import parse_condition
from encounter_tracker.models.character import Character
from encounter_tracker.models.combatant import CombatantKind, NewCombatant
from encounter_tracker.models.monster import Monster

MAX_INSTANCES = 10

_TRAILING_NUMBER_RE = re.compile(r"\s+\d+$")


def validate_new_combatant(data: dict[str, Any]) -> NewCombatant:
    """Parse raw combatant data. Raises pydantic.ValidationError on bad input."""
    return NewCombatant.model_validate(data)


def combatant_from_character(
    character: Character,
    initiative: int | None = None,
    dex_modifier: int | None = None,
) -> NewCombatant:
    conditions = {c for c in (parse_condition(raw) for raw in character.conditions) if c}
    return NewCombatant(
        entity_id=character.id,
        kind=CombatantKind.CHARACTER,
        name=character.name,
        armor_class=character.armor_class,
        max_hp=character.max_hp,
        current_hp=character.current_hp,
        initiative=10 if initiative is None else initiative,
        dex_modifier=character.dex_modifier if dex_modifier is None else dex_modifier,
        conditions=conditions,
        is_player=True,
    )


def combatant_from_monster(
    monster: Monster,
    initiative: int | None = None,
    instance_name: str | None = None,
    dex_modifier: int | None = None,
) -> NewCombatant:
    return NewCombatant(
        entity_id=monster.id,
        kind=CombatantKind.MONSTER,
        name=instance_name or monster.name,
        armor_class=monster.armor_class,
        max_hp=monster.hit_points,
        current_hp=monster.hit_points,
        initiative=10 if initiative is None else initiative,
        dex_modifier=monster.dex_modifier if dex_modifier is None else dex_modifier,
        is_player=False,
    )


def base_name(name: str) -> str:
    """Strip a trailing instance number: 'Goblin 2' -> 'Goblin'."""
    return _TRAILING_NUMBER_RE.sub("", name)


def instance_names(name: str, count: int, existing_names: Iterable[str] = ()) -> list[str]:
    """Display names for `count` new copies of a monster.

    A single first copy keeps the plain name. Otherwise copies are numbered,
    continuing after the copies already in the encounter.
    """
    count = max(1, min(MAX_INSTANCES, count))
    existing = sum(1 for n in existing_names if base_name(n) == name)
    if count == 1 and existing == 0:
        return [name]
    return [f"{name} {existing + i + 1}" for i in range(count)]
