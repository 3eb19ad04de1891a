"""Typer CLI application."""
from __future__ import annotations

import uuid
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError

from encounter_tracker.app import TrackerApp, _load_config, configure_logging
from encounter_tracker.cli import roster
from encounter_tracker.cli.display import EncounterDisplay
from encounter_tracker.cli.refs import resolve_ref
from encounter_tracker.engine.encounter_store import EncounterStore
from encounter_tracker.engine.validators import (
    combatant_from_monster,
    instance_names,
    validate_new_combatant,
)
from encounter_tracker.mechanics.conditions import ALL_CONDITIONS, parse_condition
from encounter_tracker.mechanics.initiative import normalize_manual_initiative, roll_initiative

app = typer.Typer(
    name="encounter-tracker",
    help="Initiative and turn tracker for tabletop combat encounters",
    no_args_is_help=True,
)
app.add_typer(roster.app, name="character", help="Manage the character roster")

display = EncounterDisplay()


def _store(ctx: typer.Context) -> EncounterStore:
    return ctx.obj["store"]


def _resolve(store: EncounterStore, ref: str) -> str:
    return resolve_ref(((c.id, c.name) for c in store.get_sorted_combatants()), ref, "combatant", display)


@app.callback()
def main(
    ctx: typer.Context,
    encounter: Optional[str] = typer.Option(None, "--encounter", "-e", help="Encounter save slot"),
    db_path: Optional[str] = typer.Option(None, "--db", help="Path to the SQLite save file"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Path to config.toml"),
) -> None:
    """Track initiative, turns, HP and conditions for one encounter."""
    config = _load_config(config_path)
    configure_logging(config)
    tracker = TrackerApp(config=config, db_path=db_path)
    ctx.obj = {"app": tracker, "store": tracker.open_encounter(encounter)}
    ctx.call_on_close(tracker.close)


@app.command()
def show(ctx: typer.Context) -> None:
    """Show the initiative order."""
    display.show_encounter(_store(ctx).view())


@app.command()
def add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Display name"),
    armor_class: int = typer.Option(10, "--ac", help="Armor class"),
    hp: int = typer.Option(10, "--hp", help="Maximum hit points"),
    initiative: Optional[int] = typer.Option(None, "--init", help="Initiative; rolled if omitted"),
    dex: int = typer.Option(0, "--dex", help="DEX modifier"),
    player: bool = typer.Option(False, "--player", help="Add as a player character"),
) -> None:
    """Add a custom combatant."""
    store = _store(ctx)
    try:
        data = validate_new_combatant({
            "entity_id": str(uuid.uuid4()),
            "kind": "character" if player else "monster",
            "name": name,
            "armor_class": armor_class,
            "max_hp": hp,
            "current_hp": hp,
            "initiative": roll_initiative(dex).total if initiative is None else initiative,
            "dex_modifier": dex,
            "is_player": player,
        })
    except ValidationError as e:
        display.show_message(f"Invalid combatant: {e.errors()[0]['msg']}", style="red")
        raise typer.Exit(code=1)
    display.show_encounter(store.add_combatant(data))


@app.command("add-monster")
def add_monster(
    ctx: typer.Context,
    monster_id: str = typer.Argument(..., help="Monster library id"),
    count: int = typer.Option(1, "--count", "-c", help="Number of copies (1-10)"),
    initiative: Optional[int] = typer.Option(None, "--init", help="Initiative for every copy"),
) -> None:
    """Add monsters from the library."""
    from encounter_tracker.content.loader import get_monster

    monster = get_monster(monster_id)
    if monster is None:
        display.show_message(f"Unknown monster '{monster_id}'.", style="red")
        raise typer.Exit(code=1)
    store = _store(ctx)
    existing = [c.name for c in store.get_sorted_combatants()]
    view = store.view()
    for name in instance_names(monster.name, count, existing):
        init = roll_initiative(monster.dex_modifier).total if initiative is None else initiative
        view = store.add_combatant(combatant_from_monster(monster, init, name))
    display.show_encounter(view)


@app.command("add-character")
def add_character(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Roster character id or name"),
    initiative: Optional[int] = typer.Option(None, "--init", help="Initiative; rolled if omitted"),
) -> None:
    """Add a roster character to the encounter."""
    store = _store(ctx)
    character_id = roster.resolve_character(store, ref)
    if any(c.entity_id == character_id for c in store.get_sorted_combatants()):
        display.show_message("That character is already in combat.", style="yellow")
        return
    if initiative is not None and normalize_manual_initiative(initiative) is None:
        display.show_message("Initiative must be between -10 and 50.", style="red")
        raise typer.Exit(code=1)
    display.show_encounter(store.add_character_to_combat(character_id, initiative))


@app.command("add-encounter")
def add_encounter(
    ctx: typer.Context,
    template_id: str = typer.Argument(..., help="Encounter template id"),
) -> None:
    """Add every monster of a prebuilt encounter, rolling initiative for each."""
    from encounter_tracker.content.loader import resolve_encounter_monsters

    resolved = resolve_encounter_monsters(template_id)
    if not resolved:
        display.show_message(f"Unknown encounter '{template_id}'.", style="red")
        raise typer.Exit(code=1)
    store = _store(ctx)
    view = store.view()
    for monster, count in resolved:
        existing = [c.name for c in store.get_sorted_combatants()]
        for name in instance_names(monster.name, count, existing):
            init = roll_initiative(monster.dex_modifier).total
            view = store.add_combatant(combatant_from_monster(monster, init, name))
    display.show_encounter(view)


@app.command()
def remove(ctx: typer.Context, ref: str = typer.Argument(..., help="Combatant id or name")) -> None:
    """Remove a combatant."""
    store = _store(ctx)
    display.show_encounter(store.remove_combatant(_resolve(store, ref)))


@app.command()
def hp(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Combatant id or name"),
    value: int = typer.Argument(..., help="New current HP"),
) -> None:
    """Set current HP (clamped to 0..max)."""
    store = _store(ctx)
    display.show_encounter(store.update_hp(_resolve(store, ref), value))


@app.command()
def damage(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Combatant id or name"),
    amount: int = typer.Argument(..., min=0),
) -> None:
    """Subtract HP."""
    store = _store(ctx)
    display.show_encounter(store.apply_damage(_resolve(store, ref), amount))


@app.command()
def heal(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Combatant id or name"),
    amount: int = typer.Argument(..., min=0),
) -> None:
    """Restore HP."""
    store = _store(ctx)
    display.show_encounter(store.heal(_resolve(store, ref), amount))


@app.command()
def condition(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Combatant id or name"),
    tag: str = typer.Argument(..., help="Condition to toggle"),
) -> None:
    """Toggle a condition on a combatant."""
    parsed = parse_condition(tag)
    if parsed is None:
        valid = ", ".join(c.value for c in ALL_CONDITIONS)
        display.show_message(f"Unknown condition '{tag}'. Choose from: {valid}", style="red")
        raise typer.Exit(code=1)
    store = _store(ctx)
    display.show_encounter(store.toggle_condition(_resolve(store, ref), parsed))


@app.command("init")
def set_initiative(
    ctx: typer.Context,
    ref: str = typer.Argument(..., help="Combatant id or name"),
    value: float = typer.Argument(..., help="Initiative (-10..50)"),
) -> None:
    """Set initiative by hand. Out-of-range values are ignored."""
    store = _store(ctx)
    display.show_encounter(store.set_manual_initiative(_resolve(store, ref), value))


@app.command("roll")
def roll_command(
    ctx: typer.Context,
    ref: Optional[str] = typer.Argument(None, help="Combatant id or name; all if omitted"),
) -> None:
    """Roll initiative for one combatant or everyone."""
    store = _store(ctx)
    if ref is None:
        display.show_encounter(store.roll_all_initiatives())
    else:
        display.show_encounter(store.roll_initiative(_resolve(store, ref)))


@app.command("next")
def next_turn(ctx: typer.Context) -> None:
    """Advance to the next living combatant."""
    display.show_encounter(_store(ctx).next_turn())


@app.command("activate")
def activate(ctx: typer.Context, ref: str = typer.Argument(..., help="Combatant id or name")) -> None:
    """Give the turn to a specific combatant."""
    store = _store(ctx)
    display.show_encounter(store.set_active(_resolve(store, ref)))


@app.command()
def start(ctx: typer.Context) -> None:
    """Start combat: round 1, top of the order acts."""
    display.show_encounter(_store(ctx).start_combat())


@app.command()
def end(ctx: typer.Context) -> None:
    """End combat but keep the roster."""
    display.show_encounter(_store(ctx).end_combat())
    display.show_message("Combat ended.")


@app.command()
def clear(ctx: typer.Context) -> None:
    """Remove every combatant."""
    _store(ctx).clear_combat()
    display.show_message("Encounter cleared.")


@app.command("export")
def export_command(ctx: typer.Context, path: Path = typer.Argument(..., help="Output .json file")) -> None:
    """Write a JSON backup of the encounter."""
    from encounter_tracker.storage.export_import import export_state

    path.write_text(export_state(_store(ctx).snapshot()), encoding="utf-8")
    display.show_message(f"Exported to {path}")


@app.command("import")
def import_command(ctx: typer.Context, path: Path = typer.Argument(..., help="Backup .json file")) -> None:
    """Replace the encounter with a JSON backup."""
    from encounter_tracker.storage.export_import import import_state_from_file

    result = import_state_from_file(path, max_bytes=ctx.obj["app"].max_import_bytes)
    if not result.success:
        display.show_message(result.error or "Import failed.", style="red")
        raise typer.Exit(code=1)
    if result.warning:
        display.show_message(result.warning, style="yellow")
    display.show_encounter(_store(ctx).restore(result.data))


@app.command()
def saves(ctx: typer.Context) -> None:
    """List saved encounters, most recent first."""
    display.show_saves(ctx.obj["app"].repo.list_encounters())


@app.command()
def monsters(
    search: Optional[str] = typer.Option(None, "--search", "-s", help="Filter by name or type"),
) -> None:
    """List the monster library."""
    from encounter_tracker.content.loader import load_all_monsters, search_monsters

    found = search_monsters(search) if search else list(load_all_monsters().values())
    display.show_monsters(found)


if __name__ == "__main__":
    app()
