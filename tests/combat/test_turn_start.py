"""
Tests for start-of-turn processing.
"""

import pytest

from battle_engine.combat.cooldowns import set_cooldown
from battle_engine.combat.turn_start import start_unit_turn
from battle_engine.core.constants import StatusType, Turn
from battle_engine.effects.status_effect import StatusEffect
from battle_engine.effects.status_system import push_status


@pytest.fixture
def state(engine):
    return engine.start(["brute"])


@pytest.fixture
def brute(state):
    return state.enemies[0]


def test_turn_start_ticks_cooldowns(state, brute):
    """
    Test that cooldowns advance when a unit starts its turn.
    """
    set_cooldown(brute, "smash", 2)
    result = start_unit_turn(state, brute)
    assert brute.cooldowns == {"smash": 1}
    assert not result.died
    assert not result.skipped
    assert result.unit == Turn.ENEMY
    assert state.last_start_result == result


def test_turn_start_applies_each_dot(state, brute):
    """
    Test that every damage over time status deals its damage and is logged.
    """
    push_status(brute, StatusEffect(id="burn", type=StatusType.DOT, value=3, turns_left=2))
    push_status(brute, StatusEffect(id="poison", type=StatusType.DOT, value=2, turns_left=1))
    start_unit_turn(state, brute)
    assert brute.hp == 35
    assert state.log[-2:] == [
        "Brute suffers 3 damage from burn. (37/40)",
        "Brute suffers 2 damage from poison. (35/40)",
    ]
    assert [s.turns_left for s in brute.statuses] == [2, 1]


def test_turn_start_dot_death_is_not_a_skip(state, brute):
    """
    Test that a unit killed by damage over time is reported dead, not stunned.
    """
    brute.hp = 2
    push_status(brute, StatusEffect(id="burn", type=StatusType.DOT, value=5, turns_left=2))
    push_status(brute, StatusEffect(id="dazed", type=StatusType.STUN, turns_left=1))
    result = start_unit_turn(state, brute)
    assert result.died
    assert not result.skipped
    assert brute.hp == 0
    assert state.log[-1] == "Brute succumbed to burn..."


def test_turn_start_detects_stun(state):
    """
    Test that a stunned player is told to skip the turn.
    """
    player = state.player
    push_status(player, StatusEffect(id="dazed", type=StatusType.STUN, turns_left=1))
    result = start_unit_turn(state, player)
    assert result.skipped
    assert result.unit == Turn.PLAYER
    assert state.log[-1] == "Tester is stunned and cannot act!"
