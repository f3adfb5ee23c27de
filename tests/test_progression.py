"""
Tests for player progression.
"""

import pytest

from battle_engine.core.abilities import LevelRewards
from battle_engine.progression import (
    PlayerProgress,
    SpellChoice,
    apply_exp_gain,
    apply_level_rewards,
    commit_spell_choice,
    exp_to_next_level,
    free_unlock_spell,
)


@pytest.fixture
def rewards():
    return LevelRewards(
        fixed_unlocks={2: ["spark"], 3: ["spark"]},
        spell_choices={2: ["ice", "rock"], 3: ["ice", "bolt"]},
    )


def test_exp_curve():
    """
    Test the EXP needed per level.
    """
    assert exp_to_next_level(1) == 100
    assert exp_to_next_level(2) == 120
    assert exp_to_next_level(0) == 100
    assert exp_to_next_level(5) == 208


def test_small_gain_does_not_level(rewards):
    progress = PlayerProgress()
    gain = apply_exp_gain(progress, 99, rewards)
    assert gain.levels_gained == 0
    assert gain.progress.exp == 99
    assert progress.exp == 0


def test_multi_level_gain(rewards):
    """
    Test that one large gain processes every level reached.
    """
    progress = PlayerProgress(spells=["bolt"])
    gain = apply_exp_gain(progress, 250, rewards)

    assert gain.levels_gained == 2
    assert gain.progress.level == 3
    assert gain.progress.exp == 30
    assert gain.progress.unspent_points == 2
    assert gain.unlocked == ["spark"]
    assert gain.progress.spells == ["bolt", "spark"]
    assert gain.new_choices == [
        SpellChoice(level=2, options=["ice", "rock"]),
        SpellChoice(level=3, options=["ice"]),
    ]
    assert progress.spells == ["bolt"]


def test_negative_gain_is_ignored(rewards):
    gain = apply_exp_gain(PlayerProgress(exp=10), -50, rewards)
    assert gain.progress.exp == 10


def test_level_rewards_skip_known_spells(rewards):
    """
    Test that choices only offer spells the player does not know.
    """
    progress = PlayerProgress(spells=["ice", "rock"])
    updated, unlocked, choice = apply_level_rewards(progress, 2, rewards)
    assert unlocked == ["spark"]
    assert choice is None
    assert updated.unspent_points == 1
    assert updated.pending_spell_choices == []


def test_commit_spell_choice():
    """
    Test that committing a choice learns the spell and drops the choice.
    """
    progress = PlayerProgress(
        pending_spell_choices=[
            SpellChoice(level=2, options=["ice", "rock"]),
            SpellChoice(level=5, options=["ice", "storm"]),
        ]
    )
    updated = commit_spell_choice(progress, "ice", level=5)
    assert updated.spells == ["ice"]
    assert [c.level for c in updated.pending_spell_choices] == [2]

    oldest = commit_spell_choice(progress, "ice")
    assert [c.level for c in oldest.pending_spell_choices] == [5]

    assert commit_spell_choice(progress, "meteor") is progress
    assert len(progress.pending_spell_choices) == 2


def test_free_unlock_spell():
    progress = PlayerProgress(spells=["bolt"])
    assert free_unlock_spell(progress, "bolt") is progress
    assert free_unlock_spell(progress, "mend").spells == ["bolt", "mend"]
