"""Rich terminal rendering of the encounter."""
from __future__ import annotations

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from encounter_tracker.mechanics import party_stats
from encounter_tracker.mechanics.conditions import get_condition_details
from encounter_tracker.models.character import Character
from encounter_tracker.models.combatant import Combatant
from encounter_tracker.models.encounter import EncounterView
from encounter_tracker.models.monster import Monster

console = Console()


def _hp_bar(combatant: Combatant, width: int = 12) -> str:
    pct = combatant.hp_percentage()
    filled = int(pct / 100 * width)
    if combatant.is_defeated():
        color = "dim"
    elif pct > 50:
        color = "green"
    elif pct > 25:
        color = "yellow"
    else:
        color = "red"
    return f"[{color}]{'█' * filled}[/{color}][dim]{'░' * (width - filled)}[/dim]"


class EncounterDisplay:
    def __init__(self, console_: Console | None = None) -> None:
        self.console = console_ or console

    def show_encounter(self, view: EncounterView) -> None:
        if not view.combatants:
            self.console.print(Panel("No combatants. Add some with [cyan]add[/cyan].", border_style="dim"))
            return

        table = Table(box=box.SIMPLE_HEAVY, title=f"Round {view.round}", title_style="bold yellow")
        table.add_column("", width=2)
        table.add_column("Init", justify="right")
        table.add_column("Name")
        table.add_column("AC", justify="right")
        table.add_column("HP")
        table.add_column("Conditions")
        table.add_column("ID", style="dim")

        for c in view.combatants:
            marker = "[bold yellow]▶[/bold yellow]" if c.is_active else ""
            name_color = "green" if c.is_player else "red"
            name = f"[{name_color}]{c.name}[/{name_color}]"
            if c.is_defeated():
                name = f"[strike dim]{c.name}[/strike dim]"
            elif c.is_bloodied():
                name += " [red]✚[/red]"
            conditions = " ".join(
                f"[{get_condition_details(cond).get('color', 'cyan')}]{cond.value}[/]"
                for cond in sorted(c.conditions, key=lambda x: x.value)
            )
            table.add_row(
                marker,
                str(c.initiative),
                name,
                str(c.armor_class),
                f"{_hp_bar(c)} {c.current_hp}/{c.max_hp}",
                conditions,
                c.id[:8],
            )
        self.console.print(table)

        party = [c for c in view.combatants if c.is_player]
        if party:
            summary = Text()
            summary.append(f"Party: {party_stats.team_size(party)}  ", style="bold")
            summary.append(f"avg HP {party_stats.average_hp_percentage(party)}%  ")
            summary.append(f"healthy {party_stats.healthy_count(party)}  ", style="green")
            summary.append(f"injured {party_stats.injured_count(party)}  ", style="yellow")
            summary.append(f"down {party_stats.unconscious_count(party)}", style="red")
            self.console.print(summary)

    def show_characters(self, characters: list[Character]) -> None:
        if not characters:
            self.console.print(Panel("No characters. Add some with [cyan]character add[/cyan].", border_style="dim"))
            return
        table = Table(box=box.SIMPLE, title="Character Roster")
        table.add_column("Name", style="green")
        table.add_column("Class")
        table.add_column("Lvl", justify="right")
        table.add_column("AC", justify="right")
        table.add_column("HP")
        table.add_column("Conditions")
        table.add_column("ID", style="dim")
        for ch in characters:
            table.add_row(
                ch.name,
                ch.character_class,
                str(ch.level),
                str(ch.armor_class),
                f"{ch.current_hp}/{ch.max_hp}",
                ", ".join(ch.conditions),
                ch.id[:8],
            )
        self.console.print(table)

    def show_monsters(self, monsters: list[Monster]) -> None:
        table = Table(box=box.SIMPLE, title="Monster Library")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Type")
        table.add_column("CR", justify="right")
        table.add_column("AC", justify="right")
        table.add_column("HP", justify="right")
        for m in sorted(monsters, key=lambda m: (m.challenge, m.name)):
            table.add_row(m.id, m.name, m.monster_type, f"{m.challenge:g}", str(m.armor_class), str(m.hit_points))
        self.console.print(table)

    def show_saves(self, saves: list[dict]) -> None:
        if not saves:
            self.console.print("[dim]No saved encounters.[/dim]")
            return
        table = Table(box=box.SIMPLE, title="Saved Encounters")
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Updated", style="dim")
        for s in saves:
            table.add_row(s["id"], s["name"], s["updated_at"][:19].replace("T", " "))
        self.console.print(table)

    def show_message(self, message: str, style: str = "green") -> None:
        self.console.print(f"[{style}]{message}[/{style}]")
