"""Version migrations for persisted encounter state.

Version history:
  0 - legacy unversioned state (camelCase keys).
  1 - same shape with an explicit ``version`` field.
  2 - snake_case shape matching ``EncounterSnapshot``.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Callable

from encounter_tracker.mechanics.conditions import parse_condition

logger = logging.getLogger(__name__)

CURRENT_VERSION = 2

MigrationFn = Callable[[dict[str, Any]], dict[str, Any]]

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")

_RENAMED_KEYS = {
    "type": "kind",
    "isInCombat": "in_combat",
}

_DROPPED_KEYS = frozenset({"imageUrl", "avatarSeed"})


def _snake(key: str) -> str:
    if key in _RENAMED_KEYS:
        return _RENAMED_KEYS[key]
    return _CAMEL_RE.sub("_", key).lower()


def _snake_keys(record: dict[str, Any]) -> dict[str, Any]:
    return {_snake(k): v for k, v in record.items() if k not in _DROPPED_KEYS}


def _migrate_v1(old_state: dict[str, Any]) -> dict[str, Any]:
    return {**old_state, "version": 1}


def _migrate_v2(old_state: dict[str, Any]) -> dict[str, Any]:
    combatants = []
    for raw in old_state.get("combatants") or []:
        combatant = _snake_keys(raw)
        tags = (parse_condition(c) for c in combatant.get("conditions") or [])
        combatant["conditions"] = sorted({t.value for t in tags if t})
        combatant.setdefault("dex_modifier", 0)
        combatant.setdefault("is_active", False)
        combatants.append(combatant)
    return {
        "version": 2,
        "combatants": combatants,
        "round": old_state.get("round") or 1,
        "in_combat": bool(combatants),
        "characters": [_snake_keys(ch) for ch in old_state.get("characters") or []],
    }


# Key is the version migrated TO.
_MIGRATIONS: dict[int, MigrationFn] = {
    1: _migrate_v1,
    2: _migrate_v2,
}


def fresh_state() -> dict[str, Any]:
    """Empty encounter at the current version."""
    return {
        "state": {
            "version": CURRENT_VERSION,
            "combatants": [],
            "round": 1,
            "in_combat": False,
            "characters": [],
        },
        "version": CURRENT_VERSION,
    }


def get_state_version(persisted: Any) -> int:
    """Version of a persisted blob; 0 when none is recorded."""
    if not isinstance(persisted, dict):
        return 0
    if isinstance(persisted.get("version"), int):
        return persisted["version"]
    state = persisted.get("state")
    if isinstance(state, dict) and isinstance(state.get("version"), int):
        return state["version"]
    return 0


def is_valid_persisted_state(persisted: Any) -> bool:
    if not isinstance(persisted, dict):
        return False
    return any(key in persisted for key in ("state", "version", "combatants", "characters"))


def migrate_state(persisted: Any) -> dict[str, Any]:
    """Bring a persisted blob up to CURRENT_VERSION.

    Accepts either ``{"state": ..., "version": n}`` or a bare state dict.
    A failing migration yields a fresh state rather than raising.
    """
    if not persisted:
        return fresh_state()
    if not is_valid_persisted_state(persisted):
        logger.warning("Unrecognised persisted state (%s). Starting fresh.", type(persisted).__name__)
        return fresh_state()

    version = get_state_version(persisted)
    state = persisted.get("state") if isinstance(persisted.get("state"), dict) else persisted

    if version >= CURRENT_VERSION:
        return {"state": state, "version": version}

    migrated = dict(state)
    for target in range(version + 1, CURRENT_VERSION + 1):
        migration = _MIGRATIONS.get(target)
        if migration is None:
            continue
        try:
            migrated = migration(migrated)
        except Exception as e:
            logger.warning("Migration to version %d failed: %s. Starting fresh.", target, e)
            return fresh_state()

    return {"state": migrated, "version": CURRENT_VERSION}
