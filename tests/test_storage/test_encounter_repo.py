"""Tests for src/encounter_tracker/storage/repos/encounter_repo.py."""
from __future__ import annotations

import json

import pytest

from encounter_tracker.engine.encounter_store import EncounterStore
from encounter_tracker.models.character import Character
from encounter_tracker.models.encounter import EncounterSnapshot
from encounter_tracker.storage.repos import EncounterRepo
from encounter_tracker.storage.state_migrations import CURRENT_VERSION


@pytest.fixture
def repo(in_memory_db) -> EncounterRepo:
    return EncounterRepo(in_memory_db)


def _raw_insert(db, encounter_id: str, version: int, state: str) -> None:
    with db.get_connection() as conn:
        conn.execute(
            "INSERT INTO encounters (id, name, version, state, updated_at) VALUES (?, ?, ?, ?, ?)",
            (encounter_id, encounter_id, version, state, "2024-01-01T00:00:00+00:00"),
        )


class TestSaveLoad:
    def test_missing_gives_fresh(self, repo):
        assert repo.load("nothing") == EncounterSnapshot()
        assert not repo.exists("nothing")

    def test_round_trip(self, repo, abc_store):
        abc_store.next_turn()
        repo.save("cave", abc_store.snapshot())
        loaded = repo.load("cave")
        assert loaded.model_dump() == abc_store.snapshot().model_dump()
        assert repo.exists("cave")

    def test_overwrite(self, repo, abc_store):
        repo.save("cave", abc_store.snapshot())
        abc_store.clear_combat()
        repo.save("cave", abc_store.snapshot())
        assert repo.load("cave").combatants == []
        assert len(repo.list_encounters()) == 1

    def test_stored_version(self, repo, in_memory_db, abc_store):
        repo.save("cave", abc_store.snapshot())
        with in_memory_db.get_connection() as conn:
            row = conn.execute("SELECT version, state FROM encounters WHERE id = 'cave'").fetchone()
        assert row["version"] == CURRENT_VERSION
        assert json.loads(row["state"])["version"] == CURRENT_VERSION

    def test_corrupt_json_gives_fresh(self, repo, in_memory_db, caplog):
        _raw_insert(in_memory_db, "bad", CURRENT_VERSION, "{not json")
        with caplog.at_level("WARNING"):
            assert repo.load("bad") == EncounterSnapshot()
        assert "unreadable" in caplog.text

    def test_invalid_shape_gives_fresh(self, repo, in_memory_db):
        state = json.dumps({"combatants": [{"name": "No fields"}], "round": 1})
        _raw_insert(in_memory_db, "bad", CURRENT_VERSION, state)
        assert repo.load("bad") == EncounterSnapshot()

    def test_legacy_row_is_migrated(self, repo, in_memory_db):
        legacy = {
            "combatants": [{
                "id": "x", "entityId": "orc", "type": "monster", "name": "Orc",
                "armorClass": 13, "maxHp": 15, "currentHp": 15, "initiative": 12,
                "isActive": True, "conditions": [], "isPlayer": False,
            }],
            "round": 2,
            "isInCombat": True,
        }
        _raw_insert(in_memory_db, "old", 0, json.dumps(legacy))
        loaded = repo.load("old")
        assert loaded.round == 2
        assert loaded.combatants[0].armor_class == 13
        assert EncounterStore(loaded).get_active_combatant().name == "Orc"


class TestListDelete:
    def test_list(self, repo, abc_store):
        repo.save("a", abc_store.snapshot(), name="Cave")
        repo.save("b", EncounterSnapshot())
        listed = {e["id"]: e for e in repo.list_encounters()}
        assert listed["a"]["name"] == "Cave"
        assert listed["b"]["name"] == "b"
        assert listed["a"]["version"] == CURRENT_VERSION

    def test_delete(self, repo, abc_store):
        repo.save("a", abc_store.snapshot())
        repo.delete("a")
        assert not repo.exists("a")
        repo.delete("a")


class TestRoster:
    def test_characters_persist(self, repo, store):
        store.add_character(Character(name="Aria", character_class="Bard", max_hp=18, current_hp=11))
        repo.save("party", store.snapshot())
        loaded = repo.load("party")
        assert len(loaded.characters) == 1
        aria = loaded.characters[0]
        assert isinstance(aria, Character)
        assert (aria.name, aria.character_class, aria.current_hp) == ("Aria", "Bard", 11)
