"""Status condition tags: pure data, no I/O."""
from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Any


class Condition(str, Enum):
    BLINDED = "blinded"
    CHARMED = "charmed"
    FRIGHTENED = "frightened"
    PARALYZED = "paralyzed"
    POISONED = "poisoned"
    PRONE = "prone"
    STUNNED = "stunned"


ALL_CONDITIONS: list[Condition] = list(Condition)


CONDITION_DETAILS: dict[Condition, dict[str, Any]] = {
    Condition.BLINDED: {
        "description": "Cannot see, impaired vision",
        "mechanical_effect": (
            "Automatically fail sight-based checks, disadvantage on attack rolls, "
            "attackers have advantage"
        ),
        "color": "grey50",
    },
    Condition.CHARMED: {
        "description": "Magically influenced to be friendly",
        "mechanical_effect": (
            "Cannot attack charmer or target with harmful effects, "
            "charmer has advantage on social checks"
        ),
        "color": "magenta",
    },
    Condition.FRIGHTENED: {
        "description": "Overcome with fear",
        "mechanical_effect": (
            "Disadvantage on ability checks and attack rolls while source of fear "
            "is visible, cannot willingly move closer to source"
        ),
        "color": "red",
    },
    Condition.PARALYZED: {
        "description": "Unable to move or act",
        "mechanical_effect": (
            "Incapacitated, cannot move or speak, automatically fail STR and DEX "
            "saves, attacks have advantage"
        ),
        "color": "purple",
    },
    Condition.POISONED: {
        "description": "Afflicted by poison, toxins, or disease",
        "mechanical_effect": "Disadvantage on attack rolls and ability checks",
        "color": "green",
    },
    Condition.PRONE: {
        "description": "Knocked down or lying on the ground",
        "mechanical_effect": "Disadvantage on attack rolls; melee attackers have advantage",
        "color": "dark_orange",
    },
    Condition.STUNNED: {
        "description": "Dazed and unable to react effectively",
        "mechanical_effect": (
            "Incapacitated, cannot move, can speak falteringly, "
            "automatically fail DEX saves"
        ),
        "color": "yellow",
    },
}


def parse_condition(value: Any) -> Condition | None:
    """Case-insensitive lookup. Returns None for unknown tags."""
    if isinstance(value, Condition):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Condition(value.strip().lower())
    except ValueError:
        return None


def get_condition_details(condition: Condition) -> dict[str, Any]:
    return CONDITION_DETAILS.get(condition, {})


def add_condition(conditions: Iterable[Condition], condition: Condition) -> set[Condition]:
    return set(conditions) | {condition}


def remove_condition(conditions: Iterable[Condition], condition: Condition) -> set[Condition]:
    return set(conditions) - {condition}


def toggle_condition(conditions: Iterable[Condition], condition: Condition) -> set[Condition]:
    current = set(conditions)
    if condition in current:
        return current - {condition}
    return current | {condition}


def has_condition(conditions: Iterable[Condition], condition: Condition) -> bool:
    return condition in set(conditions)
