"""Encounter store: sole owner and mutator of combatant records."""
from __future__ import annotations

import functools
import logging
import random
import threading
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from encounter_tracker.engine.turn_cursor import FIRST_ROUND, TurnCursor
from encounter_tracker.engine.validators import combatant_from_character
from encounter_tracker.mechanics import conditions as cond
from encounter_tracker.mechanics import initiative
from encounter_tracker.models.character import Character
from encounter_tracker.models.combatant import Combatant, NewCombatant
from encounter_tracker.models.encounter import EncounterSnapshot, EncounterView

logger = logging.getLogger(__name__)

Listener = Callable[[EncounterSnapshot], None]


def _mutation(method: Callable[..., Any]) -> Callable[..., EncounterView]:
    """Run a store mutation under the lock, then publish the new state.

    The snapshot handed to listeners is captured while the lock is held;
    listeners themselves run after it is released. Calls that leave the
    state unchanged publish nothing.
    """

    @functools.wraps(method)
    def wrapper(self: EncounterStore, *args: Any, **kwargs: Any) -> EncounterView:
        with self._lock:
            before = self._snapshot_dump()
            method(self, *args, **kwargs)
            self._enforce_single_active()
            view = self._view()
            changed = self._snapshot_dump() != before
            if changed:
                self._revision += 1
                revision = self._revision
                snapshot = self._snapshot()
        if changed:
            self._publish(revision, snapshot)
        return view

    return wrapper


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _clamp_hp(value: int, max_hp: int) -> int:
    return max(0, min(int(value), max_hp))


class EncounterStore:
    """Holds one encounter: combatants, round counter, combat flag and the
    character roster kept alongside it.

    Every mutation returns an EncounterView with the freshly derived
    initiative order. Unknown ids are ignored rather than raising.
    """

    def __init__(
        self,
        snapshot: EncounterSnapshot | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._lock = threading.RLock()
        self._publish_lock = threading.RLock()
        self._cursor = TurnCursor()
        self._rng = rng
        self._combatants: list[Combatant] = []
        self._round = FIRST_ROUND
        self._characters: list[Character] = []
        self._listeners: list[Listener] = []
        self._revision = 0
        self._published_revision = 0
        if snapshot is not None:
            self._load(snapshot)

    # -- Properties --

    @property
    def round(self) -> int:
        return self._round

    @property
    def in_combat(self) -> bool:
        return bool(self._combatants)

    # -- Listeners --

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback fired after each state change. Returns an unsubscribe."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _publish(self, revision: int, snapshot: EncounterSnapshot) -> None:
        # Listeners never see state go backwards: a revision older than the
        # last one published is dropped.
        with self._publish_lock:
            if revision <= self._published_revision:
                logger.debug("Skipping stale revision %d", revision)
                return
            self._published_revision = revision
            with self._lock:
                listeners = list(self._listeners)
            for listener in listeners:
                try:
                    listener(snapshot.model_copy(deep=True))
                except Exception as e:
                    logger.error("Encounter listener failed: %s", e)

    # -- Combatant mutations --

    @_mutation
    def add_combatant(self, data: NewCombatant) -> None:
        self._insert(data)

    @_mutation
    def remove_combatant(self, combatant_id: str) -> None:
        target = self._find(combatant_id)
        if target is None:
            return
        self._combatants = [c for c in self._combatants if c.id != combatant_id]
        logger.debug("Removed %s (%s)", target.name, target.id)
        if not self._combatants:
            self._round = FIRST_ROUND
            return
        if target.is_active:
            self._cursor.activate_first(self._combatants)

    @_mutation
    def update_hp(self, combatant_id: str, new_hp: int) -> None:
        target = self._find(combatant_id)
        if target is not None:
            target.current_hp = _clamp_hp(new_hp, target.max_hp)

    @_mutation
    def apply_damage(self, combatant_id: str, amount: int) -> None:
        target = self._find(combatant_id)
        if target is not None:
            target.current_hp = _clamp_hp(target.current_hp - max(0, int(amount)), target.max_hp)

    @_mutation
    def heal(self, combatant_id: str, amount: int) -> None:
        target = self._find(combatant_id)
        if target is not None:
            target.current_hp = _clamp_hp(target.current_hp + max(0, int(amount)), target.max_hp)

    @_mutation
    def set_notes(self, combatant_id: str, notes: str | None) -> None:
        target = self._find(combatant_id)
        if target is not None:
            target.notes = notes or None

    # -- Conditions --

    @_mutation
    def toggle_condition(self, combatant_id: str, condition: cond.Condition) -> None:
        target = self._find(combatant_id)
        if target is not None:
            target.conditions = cond.toggle_condition(target.conditions, condition)

    @_mutation
    def add_condition(self, combatant_id: str, condition: cond.Condition) -> None:
        target = self._find(combatant_id)
        if target is not None:
            target.conditions = cond.add_condition(target.conditions, condition)

    @_mutation
    def remove_condition(self, combatant_id: str, condition: cond.Condition) -> None:
        target = self._find(combatant_id)
        if target is not None:
            target.conditions = cond.remove_condition(target.conditions, condition)

    # -- Turn control --

    @_mutation
    def set_active(self, combatant_id: str) -> None:
        if self._find(combatant_id) is not None:
            self._cursor.set_active(self._combatants, combatant_id)

    @_mutation
    def next_turn(self) -> None:
        if not self._combatants:
            return
        self._round = self._cursor.advance(self._combatants, self._round)

    @_mutation
    def start_combat(self) -> None:
        self._round = FIRST_ROUND
        self._cursor.activate_first(self._combatants)

    @_mutation
    def end_combat(self) -> None:
        self._round = self._cursor.reset(self._combatants)

    @_mutation
    def clear_combat(self) -> None:
        self._combatants = []
        self._round = FIRST_ROUND

    # -- Initiative --

    @_mutation
    def roll_initiative(self, combatant_id: str) -> None:
        target = self._find(combatant_id)
        if target is None:
            return
        result = initiative.roll_initiative(target.dex_modifier, self._rng)
        target.initiative = result.total
        logger.debug(
            "%s rolled %d%+d = %d", target.name, result.roll, result.modifier, result.total
        )

    @_mutation
    def roll_all_initiatives(self) -> None:
        initiative.roll_all_initiatives(self._combatants, self._rng)
        if self._combatants and self._cursor.active(self._combatants) is None:
            self._cursor.activate_first(self._combatants)

    @_mutation
    def set_manual_initiative(self, combatant_id: str, value: float) -> None:
        normalized = initiative.normalize_manual_initiative(value)
        if normalized is None:
            logger.warning(
                "Invalid initiative value: %r. Must be between %d and %d.",
                value, initiative.MIN_INITIATIVE, initiative.MAX_INITIATIVE,
            )
            return
        target = self._find(combatant_id)
        if target is not None:
            target.initiative = normalized

    # -- Character roster --

    @_mutation
    def add_character(self, character: Character) -> None:
        if self._find_character(character.id) is not None:
            logger.warning("Character %s is already on the roster", character.id)
            return
        added = character.model_copy(deep=True)
        added.current_hp = _clamp_hp(added.current_hp, added.max_hp)
        self._characters.append(added)
        logger.debug("Added character %s (%s)", added.name, added.id)

    @_mutation
    def update_character(self, character_id: str, **changes: Any) -> None:
        """Apply field changes to a roster entry.

        The merged record is re-validated, so bad values raise
        pydantic.ValidationError and leave the roster untouched.
        """
        target = self._find_character(character_id)
        if target is None:
            return
        changes.pop("id", None)
        changes.pop("created_at", None)
        merged = {**target.model_dump(), **changes, "updated_at": _now()}
        updated = Character.model_validate(merged)
        updated.current_hp = _clamp_hp(updated.current_hp, updated.max_hp)
        self._characters = [updated if ch.id == character_id else ch for ch in self._characters]

    @_mutation
    def remove_character(self, character_id: str) -> None:
        self._characters = [ch for ch in self._characters if ch.id != character_id]

    @_mutation
    def update_character_hp(self, character_id: str, new_hp: int) -> None:
        target = self._find_character(character_id)
        if target is None:
            return
        clamped = _clamp_hp(new_hp, target.max_hp)
        if clamped != target.current_hp:
            target.current_hp = clamped
            target.updated_at = _now()

    @_mutation
    def toggle_character_condition(self, character_id: str, condition: str) -> None:
        """Add or remove a free-text condition. Matching ignores case."""
        target = self._find_character(character_id)
        wanted = condition.strip()
        if target is None or not wanted:
            return
        kept = [c for c in target.conditions if c.lower() != wanted.lower()]
        if len(kept) == len(target.conditions):
            kept.append(wanted)
        target.conditions = kept
        target.updated_at = _now()

    @_mutation
    def add_character_to_combat(self, character_id: str, initiative_value: int | None = None) -> None:
        """Put a roster character into the encounter.

        Characters already fighting are skipped. Initiative is rolled from
        the character's DEX modifier when not given.
        """
        character = self._find_character(character_id)
        if character is None:
            return
        if any(c.entity_id == character_id for c in self._combatants):
            logger.debug("%s is already in combat", character.name)
            return
        if initiative_value is None:
            initiative_value = initiative.roll_initiative(character.dex_modifier, self._rng).total
        self._insert(combatant_from_character(character, initiative=initiative_value))

    # -- Queries --

    def get_sorted_combatants(self) -> list[Combatant]:
        with self._lock:
            return [c.model_copy(deep=True) for c in initiative.sort_by_initiative(self._combatants)]

    def get_active_combatant(self) -> Combatant | None:
        with self._lock:
            active = self._cursor.active(self._combatants)
            return active.model_copy(deep=True) if active else None

    def get_by_id(self, combatant_id: str) -> Combatant | None:
        with self._lock:
            target = self._find(combatant_id)
            return target.model_copy(deep=True) if target else None

    def get_characters(self) -> list[Character]:
        with self._lock:
            return [ch.model_copy(deep=True) for ch in self._characters]

    def get_character(self, character_id: str) -> Character | None:
        with self._lock:
            target = self._find_character(character_id)
            return target.model_copy(deep=True) if target else None

    def view(self) -> EncounterView:
        with self._lock:
            return self._view()

    # -- Persistence contract --

    def snapshot(self) -> EncounterSnapshot:
        with self._lock:
            return self._snapshot()

    @_mutation
    def restore(self, snapshot: EncounterSnapshot) -> None:
        self._load(snapshot)

    # -- Internals --

    def _insert(self, data: NewCombatant) -> None:
        combatant = Combatant(
            **data.model_dump(exclude={"current_hp"}),
            current_hp=_clamp_hp(data.current_hp, data.max_hp),
        )
        self._combatants.append(combatant)
        logger.debug("Added %s (%s)", combatant.name, combatant.id)
        if self._cursor.active(self._combatants) is None:
            self._cursor.activate_first(self._combatants)

    def _load(self, snapshot: EncounterSnapshot) -> None:
        combatants = [c.model_copy(deep=True) for c in snapshot.combatants]
        for c in combatants:
            c.current_hp = _clamp_hp(c.current_hp, c.max_hp)
        characters = [ch.model_copy(deep=True) for ch in snapshot.characters]
        for ch in characters:
            ch.current_hp = _clamp_hp(ch.current_hp, ch.max_hp)
        self._combatants = combatants
        self._characters = characters
        self._round = max(FIRST_ROUND, snapshot.round)
        self._enforce_single_active()

    def _find(self, combatant_id: str) -> Combatant | None:
        return next((c for c in self._combatants if c.id == combatant_id), None)

    def _find_character(self, character_id: str) -> Character | None:
        return next((ch for ch in self._characters if ch.id == character_id), None)

    def _enforce_single_active(self) -> None:
        seen = False
        for c in self._combatants:
            if c.is_active:
                if seen:
                    c.is_active = False
                seen = True

    def _view(self) -> EncounterView:
        active = self._cursor.active(self._combatants)
        return EncounterView(
            combatants=[
                c.model_copy(deep=True)
                for c in initiative.sort_by_initiative(self._combatants)
            ],
            round=self._round,
            in_combat=self.in_combat,
            active_id=active.id if active else None,
        )

    def _snapshot(self) -> EncounterSnapshot:
        return EncounterSnapshot(
            combatants=[c.model_copy(deep=True) for c in self._combatants],
            round=self._round,
            in_combat=self.in_combat,
            characters=[ch.model_copy(deep=True) for ch in self._characters],
        )

    def _snapshot_dump(self) -> dict[str, Any]:
        return {
            "combatants": [c.model_dump() for c in self._combatants],
            "round": self._round,
            "characters": [ch.model_dump() for ch in self._characters],
        }
