"""Tests for src/encounter_tracker/models/combatant.py."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from encounter_tracker.models.combatant import Combatant, CombatantKind, NewCombatant


def _combatant(current_hp: int, max_hp: int = 20) -> Combatant:
    return Combatant(
        entity_id="e1", kind=CombatantKind.MONSTER, name="Goblin",
        armor_class=13, max_hp=max_hp, current_hp=current_hp,
    )


class TestDerivedQueries:
    @pytest.mark.parametrize("hp, expected", [(0, True), (-3, True), (1, False), (20, False)])
    def test_is_defeated(self, hp, expected):
        assert _combatant(hp).is_defeated() is expected

    @pytest.mark.parametrize("hp, expected", [(10, True), (11, False), (0, True), (20, False)])
    def test_is_bloodied_at_half(self, hp, expected):
        assert _combatant(hp).is_bloodied() is expected

    def test_is_bloodied_odd_max(self):
        assert _combatant(7, max_hp=15).is_bloodied() is True
        assert _combatant(8, max_hp=15).is_bloodied() is False

    @pytest.mark.parametrize("hp, max_hp, expected", [
        (20, 20, 100), (10, 20, 50), (1, 3, 33), (2, 3, 67), (1, 8, 13), (0, 20, 0),
    ])
    def test_hp_percentage(self, hp, max_hp, expected):
        assert _combatant(hp, max_hp).hp_percentage() == expected

    def test_hp_percentage_zero_max(self):
        assert _combatant(0, max_hp=0).hp_percentage() == 0


class TestDefaults:
    def test_generated_fields(self):
        a, b = _combatant(5), _combatant(5)
        assert a.id != b.id
        assert a.added_at.tzinfo is not None
        assert a.is_active is False
        assert a.conditions == set()


class TestNewCombatantValidation:
    def _data(self, **overrides):
        data = {
            "entity_id": "e1", "kind": "monster", "name": "Orc",
            "armor_class": 13, "max_hp": 15, "current_hp": 15,
        }
        data.update(overrides)
        return data

    def test_valid(self):
        new = NewCombatant(**self._data())
        assert new.kind is CombatantKind.MONSTER
        assert new.initiative == 10

    @pytest.mark.parametrize("field, value", [
        ("armor_class", 0), ("armor_class", 31), ("max_hp", 0),
        ("initiative", 51), ("initiative", -11), ("dex_modifier", 11),
        ("dex_modifier", -6), ("name", ""), ("kind", "dragon"), ("entity_id", ""),
    ])
    def test_rejects_out_of_range(self, field, value):
        with pytest.raises(ValidationError):
            NewCombatant(**self._data(**{field: value}))

    def test_conditions_deduplicated(self):
        new = NewCombatant(**self._data(conditions=["poisoned", "poisoned", "prone"]))
        assert len(new.conditions) == 2
