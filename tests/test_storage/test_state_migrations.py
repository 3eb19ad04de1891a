"""Tests for src/encounter_tracker/storage/state_migrations.py."""
from __future__ import annotations

import pytest

from encounter_tracker.models.encounter import EncounterSnapshot
from encounter_tracker.storage.state_migrations import (
    CURRENT_VERSION,
    fresh_state,
    get_state_version,
    is_valid_persisted_state,
    migrate_state,
)

LEGACY_COMBATANT = {
    "id": "c-1",
    "entityId": "goblin",
    "type": "monster",
    "name": "Goblin",
    "armorClass": 13,
    "maxHp": 7,
    "currentHp": 4,
    "initiative": 15,
    "isActive": True,
    "conditions": ["Prone", "POISONED", "bogus"],
    "isPlayer": False,
    "imageUrl": "https://example.invalid/goblin.png",
    "addedAt": "2024-01-02T03:04:05Z",
}

LEGACY_STATE = {
    "combatants": [LEGACY_COMBATANT],
    "round": 3,
    "isInCombat": True,
    "characters": [{"id": "ch-1", "name": "Aria", "maxHp": 20, "avatarSeed": "xyz"}],
}


class TestGetStateVersion:
    @pytest.mark.parametrize("persisted, expected", [
        ({"state": {}, "version": 2}, 2),
        ({"state": {"version": 1}}, 1),
        ({"combatants": []}, 0),
        ("nonsense", 0),
        (None, 0),
    ])
    def test_versions(self, persisted, expected):
        assert get_state_version(persisted) == expected


class TestIsValidPersistedState:
    @pytest.mark.parametrize("persisted, expected", [
        ({"state": {}}, True),
        ({"combatants": []}, True),
        ({"characters": []}, True),
        ({"unrelated": 1}, False),
        ([1, 2, 3], False),
        ("text", False),
    ])
    def test_shapes(self, persisted, expected):
        assert is_valid_persisted_state(persisted) is expected


class TestMigrateState:
    def test_empty_gives_fresh(self):
        assert migrate_state(None) == fresh_state()
        assert migrate_state({}) == fresh_state()

    def test_unrecognised_gives_fresh_with_warning(self, caplog):
        with caplog.at_level("WARNING"):
            assert migrate_state({"foo": "bar"}) == fresh_state()
        assert "Starting fresh" in caplog.text

    def test_current_version_untouched(self):
        state = {"version": CURRENT_VERSION, "combatants": [], "round": 4}
        migrated = migrate_state({"state": state, "version": CURRENT_VERSION})
        assert migrated == {"state": state, "version": CURRENT_VERSION}

    def test_legacy_unversioned(self):
        migrated = migrate_state(LEGACY_STATE)
        assert migrated["version"] == CURRENT_VERSION
        state = migrated["state"]
        assert state["round"] == 3
        assert state["in_combat"] is True
        combatant = state["combatants"][0]
        assert combatant["entity_id"] == "goblin"
        assert combatant["kind"] == "monster"
        assert combatant["armor_class"] == 13
        assert combatant["current_hp"] == 4
        assert combatant["is_active"] is True
        assert combatant["dex_modifier"] == 0
        assert combatant["conditions"] == ["poisoned", "prone"]
        assert "image_url" not in combatant
        assert "imageUrl" not in combatant
        assert state["characters"] == [{"id": "ch-1", "name": "Aria", "max_hp": 20}]

    def test_legacy_v1_wrapped(self):
        migrated = migrate_state({"state": {**LEGACY_STATE, "version": 1}, "version": 1})
        assert migrated["version"] == CURRENT_VERSION
        assert migrated["state"]["combatants"][0]["max_hp"] == 7

    def test_legacy_validates_as_snapshot(self):
        snapshot = EncounterSnapshot.model_validate(migrate_state(LEGACY_STATE)["state"])
        assert snapshot.round == 3
        assert snapshot.combatants[0].name == "Goblin"
        assert snapshot.combatants[0].is_active is True
        assert snapshot.characters[0].name == "Aria"
        assert snapshot.characters[0].max_hp == 20

    def test_missing_round_defaults_to_one(self):
        migrated = migrate_state({"combatants": []})
        assert migrated["state"]["round"] == 1
        assert migrated["state"]["in_combat"] is False

    def test_broken_migration_gives_fresh(self, caplog):
        with caplog.at_level("WARNING"):
            migrated = migrate_state({"combatants": ["not-a-dict"]})
        assert migrated == fresh_state()
        assert "Migration to version" in caplog.text
