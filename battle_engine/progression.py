"""
Player progression for the battle engine.

The EXP curve, multi-level gains and the spell rewards handed out when a
level is reached. Every helper returns a new ``PlayerProgress`` and leaves
its input untouched.
"""

import math

from pydantic import BaseModel, ConfigDict, Field

from battle_engine.core.abilities import LevelRewards
from battle_engine.core.constants import (
    EXP_CURVE_BASE,
    EXP_CURVE_GROWTH,
    LEVEL_UP_GUARD,
    BaseAttribute,
)
from battle_engine.core.logging import log_debug


class SpellChoice(BaseModel):
    """Spells offered at a level; the player picks one of them."""

    model_config = ConfigDict(frozen=True)

    level: int = Field(description="Level that offered the choice.")
    options: list[str] = Field(description="Spell ids to choose from.")


class PlayerProgress(BaseModel):
    """The persistent record of a player between battles."""

    level: int = Field(default=1, ge=1)
    exp: int = Field(default=0, ge=0)
    unspent_points: int = Field(default=0, ge=0)
    stats: dict[BaseAttribute, int] = Field(
        default_factory=lambda: {
            BaseAttribute.STR: 3,
            BaseAttribute.DEX: 3,
            BaseAttribute.MAG: 3,
            BaseAttribute.CON: 3,
        }
    )
    spells: list[str] = Field(default_factory=list)
    inventory: dict[str, int] = Field(default_factory=dict)
    gold: int = Field(default=0, ge=0)
    equipped: dict[str, str] = Field(default_factory=dict)
    pending_spell_choices: list[SpellChoice] = Field(default_factory=list)

    def copy_record(self) -> "PlayerProgress":
        """Copies the record with fresh containers."""
        return self.model_copy(
            update={
                "stats": dict(self.stats),
                "spells": list(self.spells),
                "inventory": dict(self.inventory),
                "equipped": dict(self.equipped),
                "pending_spell_choices": list(self.pending_spell_choices),
            }
        )


class ExpGain(BaseModel):
    """Result of granting EXP."""

    progress: PlayerProgress
    levels_gained: int = 0
    new_choices: list[SpellChoice] = Field(default_factory=list)
    unlocked: list[str] = Field(default_factory=list)


def exp_to_next_level(level: int) -> int:
    """
    EXP needed to go from ``level`` to the next one.

    Args:
        level (int): The current level; values below 1 count as 1.

    Returns:
        int: ``ceil(100 * 1.2^(level - 1))``.

    """
    current = max(1, int(level))
    return math.ceil(EXP_CURVE_BASE * EXP_CURVE_GROWTH ** (current - 1))


def _learn(progress: PlayerProgress, spell_id: str) -> bool:
    if spell_id in progress.spells:
        return False
    progress.spells.append(spell_id)
    return True


def apply_level_rewards(
    progress: PlayerProgress, level: int, rewards: LevelRewards
) -> tuple[PlayerProgress, list[str], SpellChoice | None]:
    """
    Grants what reaching ``level`` gives.

    One unspent stat point, the fixed spell unlocks of the level, and the
    spell choice offered at that level if any.

    Args:
        progress (PlayerProgress): The record before the rewards.
        level (int): The level just reached.
        rewards (LevelRewards): The reward tables.

    Returns:
        tuple: The new record, the unlocked spell ids, and the offered choice.

    """
    updated = progress.copy_record()
    updated.unspent_points += 1
    unlocked = [s for s in rewards.fixed_unlocks.get(level, []) if _learn(updated, s)]
    choice = None
    options = [s for s in rewards.spell_choices.get(level, []) if s not in updated.spells]
    if options:
        choice = SpellChoice(level=level, options=options)
        updated.pending_spell_choices.append(choice)
    return updated, unlocked, choice


def apply_exp_gain(progress: PlayerProgress, amount: int, rewards: LevelRewards) -> ExpGain:
    """
    Adds EXP and processes every level-up it triggers.

    Args:
        progress (PlayerProgress): The record before the gain.
        amount (int): EXP gained; negative amounts count as 0.
        rewards (LevelRewards): The reward tables.

    Returns:
        ExpGain: The new record and what the level-ups granted.

    """
    updated = progress.copy_record()
    updated.exp += max(0, int(amount))
    result = ExpGain(progress=updated)
    for _ in range(LEVEL_UP_GUARD):
        needed = exp_to_next_level(updated.level)
        if updated.exp < needed:
            break
        updated.exp -= needed
        updated.level += 1
        updated, unlocked, choice = apply_level_rewards(updated, updated.level, rewards)
        result.levels_gained += 1
        result.unlocked.extend(unlocked)
        if choice is not None:
            result.new_choices.append(choice)
        log_debug("Level up", {"level": updated.level, "exp": updated.exp})
    result.progress = updated
    return result


def commit_spell_choice(
    progress: PlayerProgress, spell_id: str, level: int | None = None
) -> PlayerProgress:
    """
    Learns a spell from a pending choice and drops that choice.

    When ``level`` is omitted, the oldest choice offering the spell is used.
    Spells no pending choice offers leave the record unchanged.
    """
    for index, choice in enumerate(progress.pending_spell_choices):
        if spell_id not in choice.options:
            continue
        if level is not None and choice.level != level:
            continue
        updated = progress.copy_record()
        del updated.pending_spell_choices[index]
        _learn(updated, spell_id)
        return updated
    return progress


def free_unlock_spell(progress: PlayerProgress, spell_id: str) -> PlayerProgress:
    """Learns a spell outside of the choice tables."""
    if spell_id in progress.spells:
        return progress
    updated = progress.copy_record()
    _learn(updated, spell_id)
    return updated
