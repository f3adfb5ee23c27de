"""
Tests for enemy action selection and resolution.
"""

import pytest

from battle_engine.combat.cooldowns import get_cooldown, set_cooldown
from battle_engine.combat.enemy_ai import (
    choose_enemy_spell,
    enemy_basic_attack,
    enemy_use_spell,
    get_enemy_spells,
    perform_enemy_action,
)
from battle_engine.core.constants import StatusType


@pytest.fixture
def state(engine):
    """A fresh battle against a viper and a shaman."""
    return engine.start(["viper", "shaman"])


def test_get_enemy_spells_skips_unknown(content, state):
    """
    Test that spells missing from the catalog are ignored.
    """
    viper = state.enemies[0]
    viper.spells = ["missing", "bite"]
    assert [s.id for s in get_enemy_spells(viper, content.spells)] == ["bite"]


def test_choose_enemy_spell_respects_cooldowns(content, state):
    """
    Test that a spell on cooldown is not chosen.
    """
    viper = state.enemies[0]
    assert choose_enemy_spell(viper, content.spells).id == "bite"
    set_cooldown(viper, "bite", 1)
    assert choose_enemy_spell(viper, content.spells) is None


def test_basic_attack(state):
    """
    Test that a basic attack uses atk against the player's defense.
    """
    damage = enemy_basic_attack(state, state.enemies[0])
    assert damage == 1
    assert state.player.hp == 45
    assert state.log[-1] == "Viper hits Tester for 1 physical damage. (Tester HP 45/46)"


def test_damage_spell_applies_status_to_player(content, state):
    """
    Test that a damage spell hits the player, poisons them and starts its cooldown.
    """
    viper = state.enemies[0]
    enemy_use_spell(state, viper, content.spells["bite"])
    assert state.player.hp == 45
    assert state.player.has_status(StatusType.DOT)
    assert state.player.statuses[0].source == "bite"
    assert get_cooldown(viper, "bite") == 2
    assert viper.mp == viper.max_mp


def test_spell_without_cooldown_still_waits_a_turn(content, state):
    """
    Test that enemy spells always go on cooldown for at least one turn.
    """
    shaman = state.enemies[1]
    spell = content.spells["call"].model_copy(update={"cooldown": 0})
    enemy_use_spell(state, shaman, spell)
    assert get_cooldown(shaman, "call") == 1


def test_summon_directives_are_delegated(content, state, mocker):
    """
    Test that summon directives go to the summon handler, once each.
    """
    handler = mocker.Mock()
    shaman = state.enemies[1]
    spell = content.spells["call"]
    enemy_use_spell(state, shaman, spell, handler)
    handler.assert_called_once_with(state, shaman, spell.summon_effects[0])


def test_perform_enemy_action_falls_back_to_attack(content, state, mocker):
    """
    Test that an enemy without an available spell attacks.
    """
    attack = mocker.patch("battle_engine.combat.enemy_ai.enemy_basic_attack")
    viper = state.enemies[0]
    set_cooldown(viper, "bite", 2)
    perform_enemy_action(state, viper, content.spells)
    attack.assert_called_once_with(state, viper)
