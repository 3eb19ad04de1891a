"""Resolve what the user typed to a record id."""
from __future__ import annotations

from collections.abc import Iterable

import typer

from encounter_tracker.cli.display import EncounterDisplay


def resolve_ref(
    candidates: Iterable[tuple[str, str]],
    ref: str,
    kind: str,
    display: EncounterDisplay,
) -> str:
    """Match ``(id, name)`` pairs by exact id, id prefix or case-insensitive name.

    Prints an error and exits with code 1 when nothing or more than one
    record matches.
    """
    candidates = list(candidates)
    for record_id, _ in candidates:
        if record_id == ref:
            return record_id
    matches = [
        record_id for record_id, name in candidates
        if record_id.startswith(ref) or name.lower() == ref.lower()
    ]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        display.show_message(f"No {kind} matches '{ref}'.", style="red")
    else:
        display.show_message(f"'{ref}' is ambiguous; use the id.", style="red")
    raise typer.Exit(code=1)
