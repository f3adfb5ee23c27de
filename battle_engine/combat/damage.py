"""
Damage module for the battle engine.

Pure numeric helpers for damage resolution: the attack/defense baseline,
elemental multipliers, critical hits and the hp/mp clamps applied at every
arithmetic boundary.
"""

import math
import random
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field

from battle_engine.core.constants import (
    CRIT_BASE_CHANCE,
    CRIT_BASE_MULT,
    CRIT_DEX_WEIGHT,
    CRIT_DMG_WEIGHT,
    CRIT_MAX_CHANCE,
    CRIT_MAX_MULT,
    CRIT_MIN_MULT,
    CRIT_STAT_WEIGHT,
    BaseAttribute,
)
from battle_engine.core.utils import as_number, clamp


class ElementalHit(BaseModel):
    """Damage after the target's elemental modifier."""

    final: int = Field(description="Floored damage, at least 1.")
    mult: float = Field(description="The multiplier that was applied.")


class HitResult(BaseModel):
    """Outcome of a single resolved hit."""

    damage: int = Field(description="Damage dealt, at least 1.")
    mult: float = Field(default=1.0, description="Elemental multiplier.")
    crit: bool = Field(default=False, description="Whether the hit crit.")
    crit_mult: float = Field(default=1.0, description="Applied crit multiplier.")

    def describe(self) -> str:
        """Suffix appended to the log line of the hit."""
        parts = []
        if self.mult != 1.0:
            parts.append(f" (×{self.mult:g})")
        if self.crit:
            parts.append(f" CRIT ×{self.crit_mult:g}")
        return "".join(parts)


def calc_damage(atk: Any, defense: Any) -> int:
    """
    Baseline damage of an attack.

    Args:
        atk (Any): Attacker's attack value.
        defense (Any): Defender's defense value.

    Returns:
        int: ``atk - defense``, never less than 1.

    """
    return max(1, math.floor(as_number(atk) - as_number(defense)))


def get_element_multiplier(target: Any, element: str | None) -> float:
    """
    Looks up the target's multiplier for an element.

    Modifiers may be numbers or numeric strings; missing, unparsable or
    non-finite modifiers count as 1.0.
    """
    if not element:
        return 1.0
    mods = getattr(target, "element_mods", None) or {}
    return as_number(mods.get(element), 1.0)


def apply_elemental_multiplier(base_damage: Any, element: str | None, target: Any) -> ElementalHit:
    """
    Applies the target's elemental modifier to a damage value.

    Args:
        base_damage (Any): Damage before the modifier.
        element (str | None): Element of the hit.
        target (Any): Anything carrying an ``element_mods`` mapping.

    Returns:
        ElementalHit: The floored final damage (at least 1) and the multiplier.

    """
    mult = get_element_multiplier(target, element)
    final = max(1, math.floor(as_number(base_damage, 1.0) * mult))
    return ElementalHit(final=final, mult=mult)


def _stat(stats: Mapping[Any, Any] | None, key: BaseAttribute) -> float:
    if not stats:
        return 0.0
    return as_number(stats.get(key, stats.get(key.value)))


def compute_crit_chance(stats: Mapping[Any, Any] | None) -> float:
    """Critical chance from DEX and CRIT, clamped to [0, 0.5]."""
    raw = (
        CRIT_BASE_CHANCE
        + _stat(stats, BaseAttribute.DEX) * CRIT_DEX_WEIGHT
        + _stat(stats, BaseAttribute.CRIT) * CRIT_STAT_WEIGHT
    )
    return clamp(raw, 0.0, CRIT_MAX_CHANCE)


def compute_crit_multiplier(stats: Mapping[Any, Any] | None) -> float:
    """Critical multiplier from CRITDMG, clamped to [1, 3]."""
    raw = CRIT_BASE_MULT + _stat(stats, BaseAttribute.CRITDMG) * CRIT_DMG_WEIGHT
    return clamp(raw, CRIT_MIN_MULT, CRIT_MAX_MULT)


def can_crit(spec: Any) -> bool:
    """Abilities may crit unless they opt out; a missing ability cannot."""
    if spec is None:
        return False
    return bool(getattr(spec, "can_crit", True))


def roll_crit(rng: random.Random, chance: float) -> bool:
    """Rolls a critical hit with the given chance."""
    return chance > 0 and rng.random() < chance


def resolve_hit(
    base_damage: Any,
    target: Any,
    *,
    element: str | None = None,
    power_mult: float = 1.0,
    crit_stats: Mapping[Any, Any] | None = None,
    allow_crit: bool = False,
    rng: random.Random | None = None,
) -> HitResult:
    """
    Combines baseline, power multiplier, elemental modifier and crit roll.

    Args:
        base_damage (Any): Baseline damage, usually from ``calc_damage``.
        target (Any): The defender, for its elemental modifiers.
        element (str | None): Element of the hit.
        power_mult (float): Ability power multiplier.
        crit_stats (Mapping | None): Attacker stats used for crit math.
        allow_crit (bool): Whether this hit may crit at all.
        rng (random.Random | None): Source of the crit roll.

    Returns:
        HitResult: The resolved hit.

    """
    scaled = max(1, math.floor(as_number(base_damage, 1.0) * as_number(power_mult, 1.0)))
    elemental = apply_elemental_multiplier(scaled, element, target)
    if allow_crit and rng is not None and roll_crit(rng, compute_crit_chance(crit_stats)):
        crit_mult = compute_crit_multiplier(crit_stats)
        damage = max(1, math.floor(elemental.final * crit_mult))
        return HitResult(damage=damage, mult=elemental.mult, crit=True, crit_mult=crit_mult)
    return HitResult(damage=elemental.final, mult=elemental.mult)


def _clamp_pool(value: Any, maximum: Any) -> int:
    upper = max(0, math.floor(as_number(maximum)))
    return int(clamp(math.floor(as_number(value)), 0, upper))


def clamp_hp(value: Any, maximum: Any) -> int:
    """Floors hp and clamps it to [0, maximum]; non-finite values become 0."""
    return _clamp_pool(value, maximum)


def clamp_mp(value: Any, maximum: Any) -> int:
    """Floors mp and clamps it to [0, maximum]; non-finite values become 0."""
    return _clamp_pool(value, maximum)
