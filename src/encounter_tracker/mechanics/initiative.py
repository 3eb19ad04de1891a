"""Initiative rolls and turn ordering: pure functions, no state."""
from __future__ import annotations

import functools
import math
import random
from collections.abc import Iterable
from dataclasses import dataclass
from numbers import Real

from encounter_tracker.mechanics.dice import roll_d20
from encounter_tracker.models.combatant import Combatant

MIN_INITIATIVE = -10
MAX_INITIATIVE = 50


@dataclass(frozen=True)
class InitiativeRoll:
    roll: int
    modifier: int
    total: int


def roll_initiative(dex_modifier: int = 0, rng: random.Random | None = None) -> InitiativeRoll:
    """Roll initiative: 1d20 + DEX modifier. The caller applies the result."""
    result = roll_d20(modifier=dex_modifier, rng=rng)
    return InitiativeRoll(
        roll=result.individual_rolls[0],
        modifier=dex_modifier,
        total=result.total,
    )


def roll_all_initiatives(
    combatants: Iterable[Combatant], rng: random.Random | None = None
) -> None:
    """Replace every combatant's initiative with a fresh roll."""
    for combatant in combatants:
        combatant.initiative = roll_initiative(combatant.dex_modifier, rng).total


def normalize_manual_initiative(value: object) -> int | None:
    """Round a manually entered initiative and range-check it.

    Returns None when the value must be ignored (non-numeric, non-finite,
    or outside [-10, 50] after rounding half up).
    """
    if isinstance(value, bool) or not isinstance(value, Real):
        return None
    if not math.isfinite(value):
        return None
    rounded = math.floor(value + 0.5)
    if rounded < MIN_INITIATIVE or rounded > MAX_INITIATIVE:
        return None
    return int(rounded)


def compare(a: Combatant, b: Combatant) -> int:
    """Negative when a acts before b: initiative desc, then DEX modifier desc."""
    if a.initiative != b.initiative:
        return b.initiative - a.initiative
    return b.dex_modifier - a.dex_modifier


def sort_by_initiative(combatants: Iterable[Combatant]) -> list[Combatant]:
    """Stable sort; equal keys keep their collection order."""
    return sorted(combatants, key=functools.cmp_to_key(compare))
