"""
Enemy builder for the battle engine.

Resolves enemy references (``"goblin"``, ``"goblin-lv5"`` or dict specs)
against the template catalog, scales the template to the requested level
and materializes runtime ``Enemy`` instances.
"""

import math
import re
from collections.abc import Mapping
from typing import Any

from catchery import log_warning
from pydantic import BaseModel, ConfigDict, Field, field_validator

from battle_engine.core.abilities import EnemyTemplate
from battle_engine.core.constants import (
    BOSS_EXP_MULT,
    GROWTH_LEVEL_CAP,
    GROWTH_RATES,
    ExpScaling,
)
from battle_engine.core.logging import log_debug
from battle_engine.core.utils import as_number
from battle_engine.entities.entity import DerivedStats, Enemy

_SCALED_ID = re.compile(r"^(.+?)[-_]lv(\d+)$", re.IGNORECASE)

EnemyRef = str | Mapping[str, Any]


class ScalingContext(BaseModel):
    """
    Per-dungeon scaling parameters.

    When ``dungeon_level`` is set it overrides every explicit level, and
    enemies keep their bare base id.
    """

    model_config = ConfigDict(frozen=True)

    dungeon_level: int | None = Field(
        default=None,
        description="Level forced on every enemy built in this context.",
    )
    exp_multiplier: float = Field(default=1.0, description="EXP reward multiplier.")
    exp_mode: ExpScaling = Field(default=ExpScaling.EXPONENTIAL)

    @field_validator("exp_multiplier", mode="before")
    @classmethod
    def _non_negative_multiplier(cls, value: Any) -> float:
        return max(0.0, as_number(value, 1.0))

    @field_validator("dungeon_level", mode="before")
    @classmethod
    def _positive_level(cls, value: Any) -> int | None:
        if value is None:
            return None
        level = as_number(value, 0.0)
        return max(1, math.floor(level)) if level else None


def parse_scaled_id(enemy_id: str) -> tuple[str, int] | None:
    """
    Splits ``"<base>-lv<N>"`` (or ``_lv``) into its base id and level.

    Returns:
        tuple[str, int] | None: The base id and level, or None when the id
        carries no level suffix.

    """
    match = _SCALED_ID.match(enemy_id or "")
    if not match:
        return None
    return match.group(1), int(match.group(2))


def scale_linear(base: float, level: int, rate: float) -> int:
    if level <= 1:
        return max(0, math.floor(base))
    return max(1, math.floor(base * (1 + rate * (level - 1))))


def scale_exponential(base: float, level: int, rate: float) -> int:
    if level <= 1:
        return max(0, math.floor(base))
    factor = (1 + rate) ** min(level - 1, GROWTH_LEVEL_CAP)
    return max(1, math.floor(base * factor))


def scale_exp_reward(base: float, level: int, mode: ExpScaling) -> int:
    """EXP reward at a level, before the boss and dungeon multipliers."""
    if level <= 1 or base <= 0:
        return max(0, math.floor(base))
    if mode == ExpScaling.LINEAR:
        return max(0, math.floor(base * (1 + GROWTH_RATES["exp"] * (level - 1))))
    factor = (1 + GROWTH_RATES["exp"]) ** min(level - 1, GROWTH_LEVEL_CAP)
    return max(0, math.floor(base * factor))


def scale_enemy_template(
    template: EnemyTemplate, level: int, scaling: ScalingContext | None = None
) -> tuple[DerivedStats, int]:
    """
    Scales a template to a level.

    Args:
        template (EnemyTemplate): The unscaled template.
        level (int): Target level; values below 1 count as 1.
        scaling (ScalingContext | None): EXP mode and multiplier.

    Returns:
        tuple[DerivedStats, int]: The scaled combat fields and EXP reward.

    """
    scaling = scaling or ScalingContext()
    level = max(1, int(level))
    stats = DerivedStats(
        atk=scale_linear(template.atk, level, GROWTH_RATES["atk"]),
        defense=scale_linear(template.defense, level, GROWTH_RATES["defense"]),
        m_atk=scale_linear(template.magic_attack, level, GROWTH_RATES["m_atk"]),
        m_def=scale_linear(template.magic_defense, level, GROWTH_RATES["m_def"]),
        max_hp=max(1, scale_exponential(template.max_hp, level, GROWTH_RATES["max_hp"])),
        max_mp=scale_linear(template.max_mp, level, GROWTH_RATES["max_mp"]),
    )
    exp = scale_exp_reward(template.exp_reward, level, scaling.exp_mode)
    if template.boss:
        exp = math.floor(exp * BOSS_EXP_MULT)
    exp = math.floor(exp * scaling.exp_multiplier)
    return stats, exp


class EnemyBuilder:
    """Builds runtime enemies from the template catalog."""

    def __init__(self, templates: Mapping[str, EnemyTemplate]) -> None:
        self.templates = templates

    def _template(self, base_id: str) -> EnemyTemplate:
        template = self.templates.get(base_id)
        if template is None:
            log_warning(
                f"Unknown enemy '{base_id}', building a placeholder.",
                {"enemy_id": base_id, "known": len(self.templates)},
            )
            return EnemyTemplate(id=base_id, name=base_id)
        return template

    def _resolve(self, ref: EnemyRef, scaling: ScalingContext) -> tuple[EnemyTemplate, int, str]:
        """Returns the template, the level and the runtime id of a reference."""
        forced = scaling.dungeon_level
        if isinstance(ref, str):
            parsed = parse_scaled_id(ref)
            base_id, level = parsed if parsed else (ref, 1)
            level = max(1, level)
            template = self._template(base_id)
            if forced is not None:
                return template, forced, base_id
            return template, level, ref if parsed else base_id

        spec = dict(ref)
        base_id = spec.pop("base_id", None)
        explicit_level = spec.pop("level", None)
        runtime_id = spec.get("id") or base_id or "enemy"
        if base_id:
            data = self._template(base_id).model_dump()
            data.update(spec)
            data["id"] = base_id
            template = EnemyTemplate.model_validate(data)
        else:
            template = EnemyTemplate.model_validate(spec)
        level = 1
        if forced is not None:
            level = forced
        elif explicit_level is not None:
            level = max(1, math.floor(as_number(explicit_level, 1.0)))
            if base_id and not spec.get("id"):
                runtime_id = f"{base_id}-lv{level}"
        return template, level, runtime_id

    def build_one(self, ref: EnemyRef, scaling: ScalingContext | None = None) -> Enemy:
        """
        Builds one enemy with full hp and mp.

        Args:
            ref (EnemyRef): An id, an id with a level suffix, or a dict spec
                (``{"base_id": ..., "level": ...}`` or an inline template).
            scaling (ScalingContext | None): Scaling parameters.

        Returns:
            Enemy: The runtime enemy.

        """
        scaling = scaling or ScalingContext()
        template, level, runtime_id = self._resolve(ref, scaling)
        stats, exp = scale_enemy_template(template, level, scaling)
        log_debug(
            f"Built enemy {runtime_id}",
            {"level": level, "max_hp": stats.max_hp, "atk": stats.atk, "exp": exp},
        )
        return Enemy(
            id=runtime_id,
            template_id=template.id or runtime_id,
            name=template.name or runtime_id,
            level=level,
            atk=stats.atk,
            defense=stats.defense,
            m_atk=stats.m_atk,
            m_def=stats.m_def,
            max_hp=stats.max_hp,
            max_mp=stats.max_mp,
            hp=stats.max_hp,
            mp=stats.max_mp,
            base=stats,
            element_mods=dict(template.element_mods),
            exp_reward=exp,
            drops=list(template.drops),
            spells=list(template.spells),
            ai=dict(template.ai) if template.ai else None,
            boss=template.boss,
            element=template.element,
            scaled_level=level,
        )

    def build(
        self,
        refs: EnemyRef | list[EnemyRef],
        scaling: ScalingContext | None = None,
        taken: set[str] | None = None,
    ) -> list[Enemy]:
        """
        Builds every referenced enemy, keeping the given order.

        Runtime ids are unique across the batch and ``taken``: repeated ids
        get a ``-2``, ``-3``, ... suffix.
        """
        if isinstance(refs, (str, Mapping)):
            refs = [refs]
        taken = set(taken or ())
        enemies = []
        for ref in refs:
            enemy = self.build_one(ref, scaling)
            enemy.id = _unique_id(enemy.id, taken)
            taken.add(enemy.id)
            enemies.append(enemy)
        return enemies


def _unique_id(base_id: str, taken: set[str]) -> str:
    if base_id not in taken:
        return base_id
    n = 2
    while f"{base_id}-{n}" in taken:
        n += 1
    return f"{base_id}-{n}"
