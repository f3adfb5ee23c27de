"""
Batch battle simulator.

Runs many automatic battles where the player only uses basic attacks, and
reports balance statistics. Usage::

    python -m battle_engine.simulate 1000 slime
"""

import argparse
import logging
import random
import sys

from pydantic import BaseModel
from rich.table import Table

from battle_engine.combat.battle_engine import BattleEngine
from battle_engine.combat.battle_state import BattleState
from battle_engine.core.constants import BattleResult, Turn
from battle_engine.core.logging import setup_logging
from battle_engine.core.utils import cprint, crule, make_bar
from battle_engine.effects.status_effect import StatusEffect


class BattleStats(BaseModel):
    """Statistics of one simulated battle."""

    result: BattleResult
    turns: int = 0
    damage_taken: int = 0
    hits: int = 0
    crits: int = 0
    damage_dealt: int = 0


class SimulationReport(BaseModel):
    """Aggregated statistics over many battles."""

    enemy_id: str
    iterations: int = 0
    wins: int = 0
    losses: int = 0
    turns: int = 0
    damage_taken: int = 0
    hits: int = 0
    crits: int = 0
    damage_dealt: int = 0

    def add(self, stats: BattleStats) -> None:
        self.iterations += 1
        if stats.result == BattleResult.WIN:
            self.wins += 1
        else:
            self.losses += 1
        self.turns += stats.turns
        self.damage_taken += stats.damage_taken
        self.hits += stats.hits
        self.crits += stats.crits
        self.damage_dealt += stats.damage_dealt

    @property
    def win_rate(self) -> float:
        return self.wins / self.iterations if self.iterations else 0.0

    @property
    def avg_turns(self) -> float:
        return self.turns / self.iterations if self.iterations else 0.0

    @property
    def hits_per_battle(self) -> float:
        return self.hits / self.iterations if self.iterations else 0.0

    @property
    def crit_rate(self) -> float:
        return self.crits / self.hits if self.hits else 0.0

    @property
    def damage_per_hit(self) -> float:
        return self.damage_dealt / self.hits if self.hits else 0.0

    @property
    def damage_taken_per_battle(self) -> float:
        return self.damage_taken / self.iterations if self.iterations else 0.0


def simulate_battle(
    engine: BattleEngine,
    enemy_id: str,
    max_turns: int = 500,
    dungeon_level: int | None = None,
) -> tuple[BattleStats, BattleState]:
    """
    Plays one battle with basic attacks only.

    Battles still running after ``max_turns`` actions count as losses.

    Returns:
        tuple[BattleStats, BattleState]: The statistics and the final state.

    """
    state = engine.start([enemy_id], dungeon_level=dungeon_level)
    stats = BattleStats(result=BattleResult.LOSS)
    while not state.over and stats.turns < max_turns:
        if state.turn == Turn.PLAYER:
            previous_hit = state.last_hit
            state = engine.player_attack(state)
            if state.last_hit is not None and state.last_hit is not previous_hit:
                stats.hits += 1
                stats.damage_dealt += state.last_hit.damage
                stats.crits += int(state.last_hit.crit)
        else:
            before = state.player.hp
            state = engine.enemy_act(state)
            stats.damage_taken += max(0, before - state.player.hp)
        stats.turns += 1
    if state.result is not None:
        stats.result = state.result
    return stats, state


def run_simulation(
    iterations: int,
    enemy_id: str,
    engine: BattleEngine | None = None,
    max_turns: int = 500,
    dungeon_level: int | None = None,
) -> SimulationReport:
    """Runs ``iterations`` battles against ``enemy_id`` and aggregates them."""
    engine = engine or BattleEngine()
    report = SimulationReport(enemy_id=enemy_id)
    for _ in range(max(0, iterations)):
        stats, _ = simulate_battle(engine, enemy_id, max_turns, dungeon_level)
        report.add(stats)
    return report


def _format_statuses(statuses: list[StatusEffect]) -> str:
    return ", ".join(s.type.colorize(str(s)) for s in statuses)


def print_battle_state(state: BattleState, log_lines: int = 10) -> None:
    """Renders the combatants and the end of the log of a battle."""
    table = Table(title="Combatants", pad_edge=False)
    table.add_column("Name", style="bold")
    table.add_column("HP")
    table.add_column("MP")
    table.add_column("Statuses")
    player = state.player
    table.add_row(
        f"[bold blue]{player.name}[/] (lv {player.level})",
        f"{make_bar(player.hp, player.max_hp, 12)} {player.hp}/{player.max_hp}",
        f"{make_bar(player.mp, player.max_mp, 12, 'blue')} {player.mp}/{player.max_mp}",
        _format_statuses(player.statuses),
    )
    for enemy in state.enemies:
        table.add_row(
            f"{enemy.colored_name} (lv {enemy.scaled_level})",
            f"{make_bar(enemy.hp, enemy.max_hp, 12, 'red')} {enemy.hp}/{enemy.max_hp}",
            f"{enemy.mp}/{enemy.max_mp}",
            _format_statuses(enemy.statuses),
        )
    cprint(table)
    for line in state.log[-log_lines:]:
        cprint(f"  {line}", markup=False)
    if state.over and state.result is not None:
        cprint(state.result.colorize(f"Result: {state.result.display_name}"))


def print_report(report: SimulationReport) -> None:
    """Renders a simulation report."""
    crule(f"{report.iterations} battles vs {report.enemy_id}", style="bold green")
    table = Table(pad_edge=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="bold")
    table.add_row("Wins", str(report.wins))
    table.add_row("Losses", str(report.losses))
    table.add_row("Win rate", f"{report.win_rate:.1%}")
    table.add_row("Avg turns", f"{report.avg_turns:.2f}")
    table.add_row("Hits / battle", f"{report.hits_per_battle:.2f}")
    table.add_row("Crit rate", f"{report.crit_rate:.1%}")
    table.add_row("Damage / hit", f"{report.damage_per_hit:.2f}")
    table.add_row("Damage taken / battle", f"{report.damage_taken_per_battle:.2f}")
    cprint(table)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Simulate battles where the player only uses basic attacks."
    )
    parser.add_argument("iterations", nargs="?", type=int, default=500)
    parser.add_argument("enemy_id", nargs="?", default="slime")
    parser.add_argument("--seed", type=int, default=None, help="Seed for crit rolls.")
    parser.add_argument("--dungeon-level", type=int, default=None)
    parser.add_argument(
        "--show-last",
        action="store_true",
        help="Print the final state of one extra battle.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    args = parser.parse_args(argv)

    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)
    engine = BattleEngine(rng=random.Random(args.seed))
    report = run_simulation(
        args.iterations, args.enemy_id, engine, dungeon_level=args.dungeon_level
    )
    print_report(report)
    if args.show_last:
        _, state = simulate_battle(engine, args.enemy_id, dungeon_level=args.dungeon_level)
        print_battle_state(state)
    return 0


if __name__ == "__main__":
    sys.exit(main())
