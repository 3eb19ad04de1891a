"""Turn cursor: who acts now, and how the turn moves on.

The cursor never stores the turn order. Every call receives the combatant
collection, derives the sorted order through the initiative engine and
flips ``is_active`` flags on the records it is given. The caller owns the
records and the round counter; ``advance`` returns the new round.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence

from encounter_tracker.mechanics.initiative import sort_by_initiative
from encounter_tracker.models.combatant import Combatant

logger = logging.getLogger(__name__)

FIRST_ROUND = 1


class TurnCursor:
    """Stateless helper enforcing the single-active rule."""

    @staticmethod
    def active(combatants: Sequence[Combatant]) -> Combatant | None:
        return next((c for c in combatants if c.is_active), None)

    @staticmethod
    def set_active(combatants: Sequence[Combatant], combatant_id: str | None) -> None:
        for c in combatants:
            c.is_active = c.id == combatant_id

    def activate_first(self, combatants: Sequence[Combatant]) -> Combatant | None:
        """Activate the first living combatant in initiative order.

        With nobody alive (or nobody at all) every flag is cleared.
        """
        first = next(
            (c for c in sort_by_initiative(combatants) if not c.is_defeated()),
            None,
        )
        self.set_active(combatants, first.id if first else None)
        if first:
            logger.debug("Activated %s (%s)", first.name, first.id)
        else:
            logger.debug("No living combatant to activate")
        return first

    def advance(self, combatants: Sequence[Combatant], round_number: int) -> int:
        """Move the turn to the next living combatant and return the round.

        Passing the end of the order increments the round. A lone survivor
        keeps the turn and the round still increments. Nothing changes when
        nobody is active or nobody is alive.
        """
        order = sort_by_initiative(combatants)
        if not order:
            return round_number

        current = self.active(order)
        if current is None:
            logger.debug("No active combatant; turn unchanged")
            return round_number

        start = next(i for i, c in enumerate(order) if c.id == current.id)
        size = len(order)
        for step in range(1, size + 1):
            index = (start + step) % size
            candidate = order[index]
            if candidate.is_defeated():
                continue
            if start + step >= size:
                round_number += 1
                logger.debug("Round %d begins", round_number)
            self.set_active(combatants, candidate.id)
            logger.debug("Turn passes to %s (%s)", candidate.name, candidate.id)
            return round_number

        logger.debug("Everyone is defeated; turn unchanged")
        return round_number

    def deactivate_all(self, combatants: Sequence[Combatant]) -> None:
        self.set_active(combatants, None)

    def reset(self, combatants: Sequence[Combatant]) -> int:
        """Clear the turn and return the starting round."""
        self.deactivate_all(combatants)
        return FIRST_ROUND
