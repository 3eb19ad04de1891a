"""Character roster commands (``encounter-tracker character ...``)."""
from __future__ import annotations

from typing import Optional

import typer
from pydantic import ValidationError

from encounter_tracker.cli.display import EncounterDisplay
from encounter_tracker.cli.refs import resolve_ref
from encounter_tracker.engine.encounter_store import EncounterStore
from encounter_tracker.models.character import Character

app = typer.Typer(
    name="character",
    help="Manage the character roster kept with the encounter.",
    no_args_is_help=True,
)

display = EncounterDisplay()


def resolve_character(store: EncounterStore, ref: str) -> str:
    return resolve_ref(((ch.id, ch.name) for ch in store.get_characters()), ref, "character", display)


@app.command("add")
def add_character(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Character name"),
    character_class: str = typer.Option("Fighter", "--class", help="Class or role"),
    level: int = typer.Option(1, "--level", help="Level (1-20)"),
    hp: int = typer.Option(10, "--hp", help="Maximum hit points"),
    armor_class: int = typer.Option(10, "--ac", help="Armor class"),
    dex: int = typer.Option(0, "--dex", help="DEX modifier"),
) -> None:
    """Add a character to the roster at full health."""
    store: EncounterStore = ctx.obj["store"]
    try:
        character = Character(
            name=name,
            character_class=character_class,
            level=level,
            max_hp=hp,
            current_hp=hp,
            armor_class=armor_class,
            dex_modifier=dex,
        )
    except ValidationError as e:
        display.show_message(f"Invalid character: {e.errors()[0]['msg']}", style="red")
        raise typer.Exit(code=1)
    store.add_character(character)
    display.show_characters(store.get_characters())


@app.command("list")
def list_characters(ctx: typer.Context) -> None:
    """Show the roster."""
    display.show_characters(ctx.obj["store"].get_characters())


@app.command("remove")
def remove_character(ctx: typer.Context, ref: str = typer.Argument(..., help="Character id or name")) -> None:
    """Delete a character from the roster. Combatants already added stay."""
    store: EncounterStore = ctx.obj["store"]
    store.remove_character(resolve_character(store, ref))
    display.show_characters(store.get_characters())


@app.command("hp")
def character_hp(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Character id or name"),
    value: int = typer.Argument(..., help="New current HP"),
) -> None:
    """Set a roster character's current HP (clamped to 0..max)."""
    store: EncounterStore = ctx.obj["store"]
    store.update_character_hp(resolve_character(store, ref), value)
    display.show_characters(store.get_characters())


@app.command("condition")
def character_condition(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Character id or name"),
    tag: str = typer.Argument(..., help="Condition to toggle"),
) -> None:
    """Toggle a condition on a roster character."""
    store: EncounterStore = ctx.obj["store"]
    store.toggle_character_condition(resolve_character(store, ref), tag)
    display.show_characters(store.get_characters())


@app.command("update")
def update_character(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Character id or name"),
    name: Optional[str] = typer.Option(None, "--name"),
    character_class: Optional[str] = typer.Option(None, "--class"),
    level: Optional[int] = typer.Option(None, "--level"),
    max_hp: Optional[int] = typer.Option(None, "--max-hp"),
    armor_class: Optional[int] = typer.Option(None, "--ac"),
    dex: Optional[int] = typer.Option(None, "--dex"),
) -> None:
    """Change roster fields; omitted options are left alone."""
    store: EncounterStore = ctx.obj["store"]
    character_id = resolve_character(store, ref)
    changes = {
        "name": name,
        "character_class": character_class,
        "level": level,
        "max_hp": max_hp,
        "armor_class": armor_class,
        "dex_modifier": dex,
    }
    try:
        store.update_character(character_id, **{k: v for k, v in changes.items() if v is not None})
    except ValidationError as e:
        display.show_message(f"Invalid character: {e.errors()[0]['msg']}", style="red")
        raise typer.Exit(code=1)
    display.show_characters(store.get_characters())
