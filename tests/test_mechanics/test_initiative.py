"""Tests for src/encounter_tracker/mechanics/initiative.py."""
from __future__ import annotations

import random

import pytest

from encounter_tracker.mechanics.initiative import (
    InitiativeRoll,
    compare,
    normalize_manual_initiative,
    roll_all_initiatives,
    roll_initiative,
    sort_by_initiative,
)
from encounter_tracker.models.combatant import Combatant, CombatantKind


def _c(name: str, initiative: int, dex: int = 0) -> Combatant:
    return Combatant(
        entity_id=name, kind=CombatantKind.MONSTER, name=name, armor_class=10,
        max_hp=10, current_hp=10, initiative=initiative, dex_modifier=dex,
    )


class TestRollInitiative:
    @pytest.mark.parametrize("dex", [-5, 0, 4, 10])
    def test_total_is_roll_plus_modifier(self, dex, seeded_rng):
        for _ in range(50):
            result = roll_initiative(dex, seeded_rng)
            assert isinstance(result, InitiativeRoll)
            assert 1 <= result.roll <= 20
            assert result.modifier == dex
            assert result.total == result.roll + dex

    def test_roll_all_replaces_every_value(self):
        combatants = [_c("A", 99, dex=2), _c("B", 99, dex=-1)]
        roll_all_initiatives(combatants, random.Random(3))
        assert combatants[0].initiative in range(3, 23)
        assert combatants[1].initiative in range(0, 20)

    def test_roll_all_empty(self, seeded_rng):
        roll_all_initiatives([], seeded_rng)


class TestNormalizeManualInitiative:
    @pytest.mark.parametrize("value, expected", [
        (10, 10), (-10, -10), (50, 50), (12.4, 12), (12.5, 13), (-2.5, -2),
        (50.4, 50), (-10.4, -10),
    ])
    def test_accepted(self, value, expected):
        assert normalize_manual_initiative(value) == expected

    @pytest.mark.parametrize("value", [
        55, 51, -11, 50.5, -10.6, float("nan"), float("inf"), "12", None, True,
    ])
    def test_rejected(self, value):
        assert normalize_manual_initiative(value) is None


class TestOrdering:
    def test_initiative_descending(self):
        order = sort_by_initiative([_c("low", 5), _c("high", 18), _c("mid", 12)])
        assert [c.name for c in order] == ["high", "mid", "low"]

    def test_dex_breaks_ties(self):
        order = sort_by_initiative([_c("slow", 15, dex=1), _c("quick", 15, dex=4)])
        assert [c.name for c in order] == ["quick", "slow"]

    def test_full_ties_keep_collection_order(self):
        combatants = [_c(name, 12, dex=2) for name in ("first", "second", "third", "fourth")]
        assert [c.name for c in sort_by_initiative(combatants)] == [
            "first", "second", "third", "fourth",
        ]

    def test_compare_sign(self):
        assert compare(_c("a", 20), _c("b", 10)) < 0
        assert compare(_c("a", 10), _c("b", 20)) > 0
        assert compare(_c("a", 10, dex=3), _c("b", 10, dex=1)) < 0
        assert compare(_c("a", 10, dex=1), _c("b", 10, dex=1)) == 0

    def test_sort_does_not_mutate_input(self):
        combatants = [_c("low", 1), _c("high", 20)]
        sort_by_initiative(combatants)
        assert [c.name for c in combatants] == ["low", "high"]

    def test_random_rosters_stay_sorted_and_stable(self):
        rng = random.Random(1234)
        for _ in range(50):
            combatants = [
                _c(f"c{i}", rng.randint(-2, 4), dex=rng.randint(-1, 1)) for i in range(12)
            ]
            position = {c.name: i for i, c in enumerate(combatants)}
            order = sort_by_initiative(combatants)
            for a, b in zip(order, order[1:]):
                key_a = (a.initiative, a.dex_modifier)
                key_b = (b.initiative, b.dex_modifier)
                assert key_a >= key_b
                if key_a == key_b:
                    assert position[a.name] < position[b.name]
