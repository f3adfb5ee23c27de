"""
Status system for the battle engine.

Applies and decays timed statuses, and recomputes the derived combat stats
of an entity from its base values, equipment and active buffs/debuffs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from battle_engine.combat.damage import clamp_hp
from battle_engine.core.abilities import StatusTemplate
from battle_engine.core.constants import BaseAttribute, DerivedField, StatusType
from battle_engine.core.logging import log_debug
from battle_engine.effects.status_effect import StatusEffect
from battle_engine.entities.entity import Enemy, Entity, Player

if TYPE_CHECKING:
    from battle_engine.entities.player import DerivationRules


def push_status(
    entity: Entity,
    status: StatusTemplate | StatusEffect,
    source: str | None = None,
) -> StatusEffect | None:
    """
    Adds a status to an entity.

    Templates are instantiated with the given source. Statuses without a
    positive duration are dropped.

    Args:
        entity (Entity): The entity receiving the status.
        status (StatusTemplate | StatusEffect): What to apply.
        source (str | None): Name of whoever applies it.

    Returns:
        StatusEffect | None: The pushed status, or None if dropped.

    """
    effect = status.instantiate(source) if isinstance(status, StatusTemplate) else status
    if effect is None or effect.turns_left <= 0:
        return None
    entity.statuses = [*entity.statuses, effect]
    log_debug(
        f"Pushed status {effect.id} onto {entity.name}",
        {"type": effect.type.value, "turns": effect.turns_left},
    )
    return effect


def apply_statuses(
    entity: Entity,
    templates: list[StatusTemplate],
    source: str | None,
    rules: DerivationRules | None = None,
) -> list[StatusEffect]:
    """Pushes every template onto an entity, then recomputes it once."""
    pushed = [e for e in (push_status(entity, t, source) for t in templates) if e]
    if pushed:
        recompute_derived(entity, rules)
    return pushed


def apply_dot_damage(entity: Entity) -> list[tuple[StatusEffect, int, int]]:
    """
    Applies the damage of every active DOT status.

    Args:
        entity (Entity): The entity taking damage.

    Returns:
        list[tuple[StatusEffect, int, int]]: Each DOT that dealt damage, the
        damage, and the hp left after it.

    """
    ticks = []
    for status in entity.statuses:
        if status.type != StatusType.DOT or status.value <= 0:
            continue
        entity.hp = clamp_hp(entity.hp - status.value, entity.max_hp)
        ticks.append((status, status.value, entity.hp))
    return ticks


def is_stunned(entity: Entity) -> bool:
    return entity.has_status(StatusType.STUN)


def decay_statuses(entity: Entity, rules: DerivationRules | None = None) -> None:
    """
    Ends a turn for an entity's statuses.

    Every status loses one turn, expired ones are removed, and the derived
    stats are always recomputed.
    """
    decayed = (s.decayed() for s in entity.statuses)
    entity.statuses = [s for s in decayed if s is not None]
    recompute_derived(entity, rules)


def stat_deltas(
    statuses: list[StatusEffect],
) -> tuple[dict[BaseAttribute, int], dict[DerivedField, int], int]:
    """
    Sums buff and debuff values by target.

    Returns:
        tuple: Base attribute deltas, derived field deltas, and the total of
        modifiers without a resolved stat.

    """
    base: dict[BaseAttribute, int] = {}
    derived: dict[DerivedField, int] = {}
    untargeted = 0
    for status in statuses:
        if not status.type.is_modifier or not status.value:
            continue
        if isinstance(status.stat, BaseAttribute):
            base[status.stat] = base.get(status.stat, 0) + status.value
        elif isinstance(status.stat, DerivedField):
            derived[status.stat] = derived.get(status.stat, 0) + status.value
        else:
            untargeted += status.value
    return base, derived, untargeted


def recompute_derived(entity: Entity, rules: DerivationRules | None = None) -> None:
    """
    Recomputes the derived combat stats of an entity in place.

    Args:
        entity (Entity): A player or an enemy.
        rules (DerivationRules | None): Derivation formula and equipment for
            players; the default rules are used when omitted.

    """
    if isinstance(entity, Player):
        _recompute_player(entity, rules)
    elif isinstance(entity, Enemy):
        _recompute_enemy(entity)


def _recompute_player(player: Player, rules: DerivationRules | None) -> None:
    if rules is None:
        from battle_engine.entities.player import DerivationRules

        rules = DerivationRules()
    base_deltas, derived_deltas, _ = stat_deltas(player.statuses)
    final_stats = rules.equipment.apply_to_stats(player.stats, player.equipped)
    for attribute, delta in base_deltas.items():
        final_stats[attribute] = final_stats.get(attribute, 0) + delta
    derived = rules.derive(final_stats, player.level)
    derived = rules.equipment.apply_to_derived(derived, player.equipped)
    player.effective_stats = final_stats
    player.set_derived(derived.plus(derived_deltas).clamped())


def _recompute_enemy(enemy: Enemy) -> None:
    _, derived_deltas, untargeted = stat_deltas(enemy.statuses)
    if untargeted:
        derived_deltas[DerivedField.ATK] = derived_deltas.get(DerivedField.ATK, 0) + untargeted
    enemy.set_derived(enemy.base.plus(derived_deltas).clamped())
