"""
Enemy AI for the battle engine.

Each enemy takes exactly one action per enemy turn: the first of its
spells that is known and off cooldown, or a basic attack. Enemies never pay
MP and never land critical hits.
"""

from collections.abc import Callable, Mapping

from battle_engine.combat.battle_state import BattleState
from battle_engine.combat.cooldowns import get_cooldown, set_cooldown
from battle_engine.combat.damage import calc_damage, clamp_hp, resolve_hit
from battle_engine.core.abilities import Spell, SummonSpec
from battle_engine.core.constants import AbilityKind, DamageType
from battle_engine.core.logging import log_debug
from battle_engine.effects.status_system import apply_statuses
from battle_engine.entities.entity import Enemy, Entity

SummonHandler = Callable[[BattleState, Entity, SummonSpec], None]


def get_enemy_spells(enemy: Enemy, catalog: Mapping[str, Spell]) -> list[Spell]:
    """The enemy's spells known to the catalog, in declared order."""
    return [catalog[spell_id] for spell_id in enemy.spells if spell_id in catalog]


def choose_enemy_spell(enemy: Enemy, catalog: Mapping[str, Spell]) -> Spell | None:
    """The first known spell whose cooldown has run out, if any."""
    for spell in get_enemy_spells(enemy, catalog):
        if get_cooldown(enemy, spell.id) <= 0:
            return spell
    return None


def enemy_basic_attack(state: BattleState, enemy: Enemy) -> int:
    """Hits the player with ``calc_damage(atk, defense)``; returns the damage."""
    player = state.player
    damage = calc_damage(enemy.atk, player.defense)
    player.hp = clamp_hp(player.hp - damage, player.max_hp)
    state.add_log(
        f"{enemy.name} hits {player.name} for {damage} physical damage. "
        f"({player.name} HP {player.hp}/{player.max_hp})"
    )
    return damage


def enemy_use_spell(
    state: BattleState,
    enemy: Enemy,
    spell: Spell,
    summon: SummonHandler | None = None,
) -> None:
    """
    Resolves an enemy spell.

    Heal spells restore the caster and apply their statuses to it. Damage
    spells hit the player, apply their statuses to the player and hand
    summon directives to ``summon``. The spell then goes on cooldown for
    at least one turn.

    Args:
        state (BattleState): The state being built; mutated.
        enemy (Enemy): The caster, owned by ``state``.
        spell (Spell): The spell to cast.
        summon (SummonHandler | None): Called for each summon directive.

    """
    player = state.player
    if spell.kind == AbilityKind.HEAL:
        before = enemy.hp
        enemy.hp = clamp_hp(before + spell.heal_amount, enemy.max_hp)
        state.add_log(
            f"{enemy.name} casts {spell.name} and heals {enemy.hp - before}. "
            f"({enemy.name} HP {enemy.hp}/{enemy.max_hp})"
        )
        apply_statuses(enemy, spell.status_effects, spell.id)
    else:
        if spell.damage_type == DamageType.PHYSICAL:
            base = calc_damage(enemy.atk, player.defense)
        else:
            base = calc_damage(enemy.m_atk, player.m_def)
        hit = resolve_hit(
            base,
            player,
            element=spell.element or spell.damage_type.value,
            power_mult=spell.power_mult,
        )
        player.hp = clamp_hp(player.hp - hit.damage, player.max_hp)
        state.add_log(
            f"{enemy.name} uses {spell.name} for {hit.damage} "
            f"{spell.damage_type.value} damage{hit.describe()}. "
            f"({player.name} HP {player.hp}/{player.max_hp})"
        )
        apply_statuses(player, spell.status_effects, spell.id, state.rules)

    if summon is not None:
        for directive in spell.summon_effects:
            summon(state, enemy, directive)

    set_cooldown(enemy, spell.id, spell.cooldown or 1)


def perform_enemy_action(
    state: BattleState,
    enemy: Enemy,
    catalog: Mapping[str, Spell],
    summon: SummonHandler | None = None,
) -> None:
    """Performs the single action of an enemy for this turn."""
    spell = choose_enemy_spell(enemy, catalog)
    log_debug(
        f"{enemy.name} acts",
        {"action": spell.id if spell else "attack", "hp": enemy.hp},
    )
    if spell is not None:
        enemy_use_spell(state, enemy, spell, summon)
    else:
        enemy_basic_attack(state, enemy)
