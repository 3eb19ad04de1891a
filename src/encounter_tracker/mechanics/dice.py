"""Dice rolling engine: pure math, no I/O."""
from __future__ import annotations

import random
import re
import secrets
from dataclasses import dataclass

# Pattern: NdM, NdMkhK, NdMklK, optional +/-X
_DICE_RE = re.compile(
    r"^(\d+)d(\d+)"
    r"(?:kh(\d+)|kl(\d+))?"
    r"([+-]\d+)?$",
    re.IGNORECASE,
)

STANDARD_DICE = (4, 6, 8, 10, 12, 20, 100)

_rng = random.Random(secrets.randbits(128))


@dataclass
class DiceResult:
    expression: str
    individual_rolls: list[int]
    modifier: int = 0
    total: int = 0


def roll_die(sides: int, rng: random.Random | None = None) -> int:
    """Uniformly random integer in [1, sides]."""
    if isinstance(sides, bool) or not isinstance(sides, int) or sides < 1:
        raise ValueError(f"Invalid die: sides must be a positive integer, got {sides!r}")
    return (rng or _rng).randint(1, sides)


def roll(expression: str, rng: random.Random | None = None) -> DiceResult:
    """Roll dice from an expression like '2d6+3', '1d20', '4d6kh3'."""
    expr = expression.replace(" ", "")
    m = _DICE_RE.match(expr)
    if not m:
        raise ValueError(f"Invalid dice expression: {expression}")

    num_dice = int(m.group(1))
    die_size = int(m.group(2))
    keep_highest = int(m.group(3)) if m.group(3) else None
    keep_lowest = int(m.group(4)) if m.group(4) else None
    modifier = int(m.group(5)) if m.group(5) else 0

    if num_dice < 1:
        raise ValueError(f"Invalid dice count in expression: {expression}")

    rolls = [roll_die(die_size, rng) for _ in range(num_dice)]

    if keep_highest is not None:
        kept = sorted(rolls, reverse=True)[:keep_highest]
    elif keep_lowest is not None:
        kept = sorted(rolls)[:keep_lowest]
    else:
        kept = rolls

    return DiceResult(
        expression=expression,
        individual_rolls=rolls,
        modifier=modifier,
        total=sum(kept) + modifier,
    )


def roll_d20(modifier: int = 0, rng: random.Random | None = None) -> DiceResult:
    """Convenience: roll 1d20 + modifier."""
    natural = roll_die(20, rng)
    return DiceResult(
        expression="1d20",
        individual_rolls=[natural],
        modifier=modifier,
        total=natural + modifier,
    )


def is_standard_die(sides: int) -> bool:
    return sides in STANDARD_DICE
