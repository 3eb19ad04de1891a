from __future__ import annotations

import functools
import tomllib
from pathlib import Path
from typing import Any

from encounter_tracker.models.monster import Difficulty, EncounterTemplate, Monster

CONTENT_DIR = Path(__file__).parent


def load_toml(filepath: Path) -> dict[str, Any]:
    with open(filepath, "rb") as f:
        return tomllib.load(f)


@functools.cache
def load_all_monsters() -> dict[str, Monster]:
    monsters = {}
    monster_dir = CONTENT_DIR / "monsters"
    for f in sorted(monster_dir.glob("*.toml")):
        data = load_toml(f)
        for entry in data.get("monsters", []):
            monster = Monster.model_validate(entry)
            monsters[monster.id] = monster
    return monsters


def get_monster(monster_id: str) -> Monster | None:
    return load_all_monsters().get(monster_id)


def search_monsters(query: str) -> list[Monster]:
    """Case-insensitive match on name, type or description."""
    needle = query.strip().lower()
    if not needle:
        return list(load_all_monsters().values())
    return [
        m for m in load_all_monsters().values()
        if needle in m.name.lower()
        or needle in m.monster_type.lower()
        or needle in m.description.lower()
    ]


def get_monsters_by_challenge(min_cr: float, max_cr: float) -> list[Monster]:
    return [m for m in load_all_monsters().values() if min_cr <= m.challenge <= max_cr]


@functools.cache
def load_all_encounters() -> dict[str, EncounterTemplate]:
    encounters_file = CONTENT_DIR / "encounters.toml"
    if not encounters_file.exists():
        return {}
    data = load_toml(encounters_file)
    templates = (EncounterTemplate.model_validate(e) for e in data.get("encounters", []))
    return {t.id: t for t in templates}


def get_encounter(encounter_id: str) -> EncounterTemplate | None:
    return load_all_encounters().get(encounter_id)


def get_encounters_by_difficulty(difficulty: Difficulty | str) -> list[EncounterTemplate]:
    wanted = Difficulty(difficulty.lower())
    return [e for e in load_all_encounters().values() if e.difficulty == wanted]


def get_encounters_by_tag(tag: str) -> list[EncounterTemplate]:
    wanted = tag.lower()
    return [e for e in load_all_encounters().values() if wanted in (t.lower() for t in e.tags)]


def resolve_encounter_monsters(encounter_id: str) -> list[tuple[Monster, int]]:
    """(monster, count) pairs for a template. Unknown monster ids are skipped."""
    encounter = get_encounter(encounter_id)
    if encounter is None:
        return []
    resolved = []
    for entry in encounter.monsters:
        monster = get_monster(entry.monster_id)
        if monster is not None:
            resolved.append((monster, entry.count))
    return resolved


def get_encounter_monster_count(encounter_id: str) -> int:
    return sum(count for _, count in resolve_encounter_monsters(encounter_id))
