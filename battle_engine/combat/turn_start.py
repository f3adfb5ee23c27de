"""
Start-of-turn processing.

Runs when a unit is about to act: cooldowns advance, damage over time is
applied, and a stun is detected. Status decay happens later, at the end of
the unit's turn.
"""

from battle_engine.combat.battle_state import BattleState, TurnStartResult
from battle_engine.combat.cooldowns import tick_cooldowns
from battle_engine.core.constants import StatusType
from battle_engine.core.logging import log_debug
from battle_engine.effects.status_system import apply_dot_damage, is_stunned
from battle_engine.entities.entity import Entity


def start_unit_turn(state: BattleState, entity: Entity) -> TurnStartResult:
    """
    Starts the turn of a unit and records the outcome on the state.

    A unit killed by damage over time is reported as ``died`` and never as
    ``skipped``; what a death means for the battle is up to the caller.

    Args:
        state (BattleState): The state being built; mutated.
        entity (Entity): The unit starting its turn, owned by ``state``.

    Returns:
        TurnStartResult: Whether the unit died or must skip its turn.

    """
    result = TurnStartResult(unit=state.side_of(entity), entity_id=entity.id)
    tick_cooldowns(entity)

    was_alive = entity.is_alive
    for status, damage, hp_left in apply_dot_damage(entity):
        state.add_log(
            f"{entity.name} suffers {damage} damage from {status.id}. "
            f"({hp_left}/{entity.max_hp})"
        )
    if was_alive and not entity.is_alive:
        result.died = True
        dot_ids = [s.id for s in entity.statuses if s.type == StatusType.DOT]
        state.add_log(f"{entity.name} succumbed to {', '.join(dot_ids) or 'its wounds'}...")
    elif is_stunned(entity):
        result.skipped = True
        state.add_log(f"{entity.name} is stunned and cannot act!")

    log_debug(
        f"Turn start for {entity.name}",
        {"died": result.died, "skipped": result.skipped, "hp": entity.hp},
    )
    state.last_start_result = result
    return result
