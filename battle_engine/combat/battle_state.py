"""
Battle state for the battle engine.

A ``BattleState`` is the complete, immutable-from-outside snapshot of a
battle: the player, the enemies in turn order, whose turn it is, the
outcome and the battle log.
"""

from pydantic import BaseModel, Field

from battle_engine.combat.damage import HitResult
from battle_engine.core.constants import LOG_TAIL, BattleResult, Turn
from battle_engine.entities.enemy_builder import ScalingContext
from battle_engine.entities.entity import Enemy, Entity, Player
from battle_engine.entities.player import DerivationRules


class TurnStartResult(BaseModel):
    """What happened when a unit started its turn."""

    unit: Turn = Field(description="Side of the unit.")
    entity_id: str = Field(description="Id of the unit.")
    skipped: bool = Field(default=False, description="Stunned this turn.")
    died: bool = Field(default=False, description="Killed by damage over time.")


class BattleState(BaseModel):
    """
    A snapshot of a battle.

    Engine entry points never mutate a state they receive: they work on a
    ``fork()`` and return it.
    """

    player: Player = Field(description="The player.")
    enemies: list[Enemy] = Field(
        default_factory=list,
        description="Living enemies, in turn order.",
    )
    turn: Turn = Field(default=Turn.PLAYER, description="Side expected to act.")
    over: bool = Field(default=False, description="Whether the battle ended.")
    result: BattleResult | None = Field(default=None, description="Outcome.")
    log: list[str] = Field(default_factory=list, description="Battle narrative.")

    scaling: ScalingContext = Field(
        default_factory=ScalingContext,
        description="Scaling used for enemies built during the battle.",
    )
    rules: DerivationRules = Field(
        default_factory=DerivationRules,
        description="Player derivation formula and equipment.",
    )
    last_start_result: TurnStartResult | None = None
    last_hit: HitResult | None = Field(
        default=None,
        description="Most recent hit landed by the player.",
    )
    round: int = Field(default=0, description="Completed enemy turns.")
    summon_seq: int = Field(default=0, description="Runtime id counter for summons.")

    @property
    def dungeon_level(self) -> int | None:
        return self.scaling.dungeon_level

    def fork(self) -> "BattleState":
        """Copies the state with forked entities and a fresh log."""
        return self.model_copy(
            update={
                "player": self.player.fork(),
                "enemies": [enemy.fork() for enemy in self.enemies],
                "log": list(self.log),
            }
        )

    def add_log(self, line: str) -> None:
        """Appends a log line, keeping only the most recent ones."""
        self.log.append(line)
        if len(self.log) > LOG_TAIL:
            del self.log[: len(self.log) - LOG_TAIL]

    def living_enemies(self) -> list[Enemy]:
        return [enemy for enemy in self.enemies if enemy.is_alive]

    def target_position(self, target_index: int | None) -> int | None:
        """
        Position of the targeted enemy in ``enemies``.

        Without an index the first living enemy is targeted. Out-of-range
        indices and dead enemies resolve to None.
        """
        if target_index is None:
            return next(
                (i for i, enemy in enumerate(self.enemies) if enemy.is_alive), None
            )
        if not 0 <= target_index < len(self.enemies):
            return None
        return target_index if self.enemies[target_index].is_alive else None

    def entity_ids(self) -> set[str]:
        ids: set[str] = {self.player.id}
        ids.update(enemy.id for enemy in self.enemies)
        return ids

    def side_of(self, entity: Entity) -> Turn:
        return Turn.PLAYER if isinstance(entity, Player) else Turn.ENEMY
