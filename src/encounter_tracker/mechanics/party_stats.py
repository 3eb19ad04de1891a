"""Party health summaries for the dashboard: pure functions, no I/O."""
from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol


class HasHitPoints(Protocol):
    current_hp: int
    max_hp: int


def _hp_percent(member: HasHitPoints) -> float | None:
    if member.max_hp == 0:
        return None
    return member.current_hp / member.max_hp * 100


def team_size(members: Sequence[HasHitPoints]) -> int:
    return len(members)


def average_hp_percentage(members: Sequence[HasHitPoints]) -> int:
    """Mean HP percentage, rounded. Members with max_hp 0 count as 0 %."""
    if not members:
        return 0
    total = sum(_hp_percent(m) or 0 for m in members)
    return int(total / len(members) + 0.5)


def healthy_count(members: Sequence[HasHitPoints]) -> int:
    return sum(1 for m in members if (pct := _hp_percent(m)) is not None and pct > 75)


def injured_count(members: Sequence[HasHitPoints]) -> int:
    return sum(1 for m in members if (pct := _hp_percent(m)) is not None and 0 < pct <= 75)


def unconscious_count(members: Sequence[HasHitPoints]) -> int:
    return sum(1 for m in members if m.current_hp == 0)
