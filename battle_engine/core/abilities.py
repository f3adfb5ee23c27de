"""
Content models for the battle engine.

Defines the read-only records loaded from the content catalogs: spells,
items, equipment bonuses, status and summon directives, enemy templates,
the player template and the level-reward tables.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from battle_engine.core.constants import (
    AbilityKind,
    BaseAttribute,
    DamageType,
    StatusType,
    TargetMode,
)
from battle_engine.effects.status_effect import StatTargetField, StatusEffect


def _default_name(data: dict[str, Any]) -> dict[str, Any]:
    data = dict(data)
    if not data.get("name") and data.get("id"):
        data["name"] = data["id"]
    return data


class StatusTemplate(BaseModel):
    """A status effect an ability applies when it resolves."""

    model_config = ConfigDict(frozen=True)

    type: StatusType = Field(description="The kind of status to apply.")
    id: str | None = Field(
        default=None,
        description="Identifier of the status; defaults to its type.",
    )
    stat: StatTargetField = Field(
        default=None,
        description="The stat adjusted by a buff or debuff.",
    )
    value: int = Field(default=0, description="DOT damage or stat delta.")
    turns: int = Field(default=0, description="Duration in turns.")

    @model_validator(mode="before")
    @classmethod
    def _accept_turns_left(cls, data: Any) -> Any:
        if isinstance(data, dict) and "turns" not in data and "turns_left" in data:
            data = {**data, "turns": data["turns_left"]}
            data.pop("turns_left")
        return data

    def instantiate(self, source: str | None) -> StatusEffect | None:
        """
        Creates the runtime status, or None when the duration is not positive.

        Args:
            source (str | None): Name of whoever applies the status.

        Returns:
            StatusEffect | None: The new status.

        """
        if self.turns <= 0:
            return None
        return StatusEffect(
            id=self.id or self.type.value,
            type=self.type,
            stat=self.stat,
            value=self.value,
            turns_left=self.turns,
            source=source,
        )


class SummonSpec(BaseModel):
    """A directive that brings new enemies into the battle."""

    model_config = ConfigDict(frozen=True)

    type: Literal["summon"] = "summon"
    id: str = Field(description="Base enemy id of the summoned creature.")
    count: int = Field(default=1, description="How many to summon.")
    level: int | None = Field(default=None, description="Explicit level.")
    level_offset: int | None = Field(
        default=None,
        description="Level relative to the summoner.",
    )

    @model_validator(mode="before")
    @classmethod
    def _accept_base_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and "id" not in data and "base_id" in data:
            data = {**data, "id": data["base_id"]}
            data.pop("base_id")
        return data

    @field_validator("count", mode="before")
    @classmethod
    def _positive_count(cls, value: Any) -> int:
        try:
            count = int(value)
        except (TypeError, ValueError):
            return 1
        return count if count > 0 else 1


AbilityEffect = SummonSpec | StatusTemplate


class EquipmentBonus(BaseModel):
    """Bonuses granted by an equipped item."""

    model_config = ConfigDict(frozen=True)

    stats: dict[BaseAttribute, int] = Field(
        default_factory=dict,
        description="Base attribute bonuses, e.g. {'STR': 2}.",
    )
    atk: int = 0
    defense: int = 0
    m_atk: int = 0
    m_def: int = 0
    max_hp: int = 0
    max_mp: int = 0


class AbilitySpec(BaseModel):
    """Common fields of spells and items."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="Catalog identifier.")
    name: str = Field(default="", description="Display name.")
    description: str = Field(default="", description="Flavor text.")
    kind: AbilityKind = Field(description="What the ability does.")
    cost: int = Field(default=0, ge=0, description="MP cost.")
    cooldown: int = Field(default=0, ge=0, description="Turns before reuse.")
    target: TargetMode = Field(default=TargetMode.SINGLE)
    element: str | None = Field(default=None, description="Element tag.")
    power_mult: float = Field(default=1.0, description="Damage multiplier.")
    can_crit: bool = Field(default=True, description="Whether hits may crit.")
    heal_amount: int = Field(default=0, ge=0)
    mp_amount: int = Field(default=0, ge=0)
    damage: int = Field(default=0, ge=0, description="Flat damage.")
    effects: list[AbilityEffect] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = _default_name(data)
        if "aoe" in data:
            if data.pop("aoe") and "target" not in data:
                data["target"] = TargetMode.AOE.value
        return data

    @property
    def is_aoe(self) -> bool:
        return self.target == TargetMode.AOE

    @property
    def status_effects(self) -> list[StatusTemplate]:
        return [e for e in self.effects if isinstance(e, StatusTemplate)]

    @property
    def summon_effects(self) -> list[SummonSpec]:
        return [e for e in self.effects if isinstance(e, SummonSpec)]


class Spell(AbilitySpec):
    """A castable spell; damage spells are magical unless marked physical."""

    damage_type: DamageType = Field(default=DamageType.MAGICAL)


class Item(AbilitySpec):
    """An inventory item: a consumable or a piece of equipment."""

    damage_type: DamageType = Field(default=DamageType.PHYSICAL)
    slot: str | None = Field(default=None, description="Equipment slot.")
    bonus: EquipmentBonus = Field(default_factory=EquipmentBonus)


class Drop(BaseModel):
    """An item an enemy leaves behind when it falls."""

    model_config = ConfigDict(frozen=True)

    id: str
    qty: int = Field(default=1, ge=1)


class EnemyTemplate(BaseModel):
    """
    An enemy as described by the content catalog, before scaling.

    Magical attack and defense default to the physical ones when omitted.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="Catalog identifier.")
    name: str = Field(default="", description="Display name.")
    atk: int = Field(default=1, ge=0)
    defense: int = Field(default=0, ge=0)
    m_atk: int | None = Field(default=None, ge=0)
    m_def: int | None = Field(default=None, ge=0)
    max_hp: int = Field(default=10, ge=1)
    max_mp: int = Field(default=0, ge=0)
    exp_reward: int = Field(default=0, ge=0)
    drops: list[Drop] = Field(default_factory=list)
    element_mods: dict[str, float | str] = Field(default_factory=dict)
    spells: list[str] = Field(default_factory=list)
    ai: dict[str, Any] | None = Field(default=None, description="AI hints.")
    boss: bool = False
    element: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any) -> Any:
        return _default_name(data) if isinstance(data, dict) else data

    @property
    def magic_attack(self) -> int:
        return self.atk if self.m_atk is None else self.m_atk

    @property
    def magic_defense(self) -> int:
        return self.defense if self.m_def is None else self.m_def


class PlayerTemplate(BaseModel):
    """Defaults used for a player without saved progression."""

    model_config = ConfigDict(frozen=True)

    name: str = "Hero"
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


class LevelRewards(BaseModel):
    """Spells unlocked or offered when reaching a level."""

    model_config = ConfigDict(frozen=True)

    fixed_unlocks: dict[int, list[str]] = Field(default_factory=dict)
    spell_choices: dict[int, list[str]] = Field(default_factory=dict)
