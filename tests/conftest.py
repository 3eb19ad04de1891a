"""Shared fixtures for the encounter tracker test suite."""
from __future__ import annotations

import random
from typing import Any

import pytest

from encounter_tracker.engine.encounter_store import EncounterStore
from encounter_tracker.models.combatant import CombatantKind, NewCombatant


def make_new_combatant(name: str, initiative: int = 10, **overrides: Any) -> NewCombatant:
    data: dict[str, Any] = {
        "entity_id": f"entity-{name.lower()}",
        "kind": CombatantKind.MONSTER,
        "name": name,
        "armor_class": 12,
        "max_hp": 20,
        "current_hp": 20,
        "initiative": initiative,
        "dex_modifier": 0,
    }
    data.update(overrides)
    return NewCombatant(**data)


@pytest.fixture
def make_combatant():
    return make_new_combatant


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(42)


@pytest.fixture
def store(seeded_rng) -> EncounterStore:
    return EncounterStore(rng=seeded_rng)


@pytest.fixture
def abc_store(store) -> EncounterStore:
    """A(20), B(15), C(10), all at 20 HP. A is active."""
    store.add_combatant(make_new_combatant("A", 20))
    store.add_combatant(make_new_combatant("B", 15))
    store.add_combatant(make_new_combatant("C", 10))
    return store


@pytest.fixture
def in_memory_db(tmp_path):
    from encounter_tracker.storage.database import Database

    db = Database(str(tmp_path / "test.db"))
    db.initialize()
    yield db
    db.close()
