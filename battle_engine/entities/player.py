"""
Player construction and stat derivation.

Turns a progression record (or the player template) into a fully derived
``Player``: base stats, equipment bonuses and the combat formula.
"""

from collections.abc import Mapping

from catchery import log_warning
from pydantic import BaseModel, ConfigDict, Field

from battle_engine.core.abilities import EquipmentBonus, Item, PlayerTemplate
from battle_engine.core.constants import AbilityKind, BaseAttribute
from battle_engine.effects.status_system import recompute_derived
from battle_engine.entities.entity import DerivedStats, Player
from battle_engine.progression import PlayerProgress


def derive_combat_stats(stats: Mapping[BaseAttribute, int], level: int) -> DerivedStats:
    """
    The player combat formula.

    Args:
        stats (Mapping[BaseAttribute, int]): Final base attributes.
        level (int): Player level.

    Returns:
        DerivedStats: The derived combat fields.

    """
    strength = stats.get(BaseAttribute.STR, 0)
    dexterity = stats.get(BaseAttribute.DEX, 0)
    magic = stats.get(BaseAttribute.MAG, 0)
    constitution = stats.get(BaseAttribute.CON, 0)
    return DerivedStats(
        atk=2 + strength * 2 + level // 2,
        defense=1 + (constitution + dexterity) // 2,
        m_atk=2 + magic * 2 + level // 2,
        m_def=1 + (magic + constitution) // 2,
        max_hp=20 + constitution * 8 + level * 2,
        max_mp=5 + magic * 5 + level // 2,
    )


class EquipmentResolver(BaseModel):
    """Resolves equipped item ids into stat bonuses."""

    model_config = ConfigDict(frozen=True)

    bonuses: dict[str, EquipmentBonus] = Field(
        default_factory=dict,
        description="Equipment item id to its bonus.",
    )

    @classmethod
    def from_items(cls, items: Mapping[str, Item]) -> "EquipmentResolver":
        return cls(
            bonuses={
                item_id: item.bonus
                for item_id, item in items.items()
                if item.kind == AbilityKind.EQUIPMENT
            }
        )

    def _equipped_bonuses(self, equipped: Mapping[str, str]) -> list[EquipmentBonus]:
        found = []
        for slot, item_id in equipped.items():
            bonus = self.bonuses.get(item_id)
            if bonus is None:
                log_warning(
                    f"Equipped item '{item_id}' is not a known equipment piece.",
                    {"slot": slot, "item_id": item_id},
                )
                continue
            found.append(bonus)
        return found

    def apply_to_stats(
        self, stats: Mapping[BaseAttribute, int], equipped: Mapping[str, str]
    ) -> dict[BaseAttribute, int]:
        """Returns a copy of the stats with equipment attribute bonuses added."""
        final = dict(stats)
        for bonus in self._equipped_bonuses(equipped):
            for attribute, value in bonus.stats.items():
                final[attribute] = final.get(attribute, 0) + value
        return final

    def apply_to_derived(self, derived: DerivedStats, equipped: Mapping[str, str]) -> DerivedStats:
        """Returns the derived stats with equipment combat bonuses added."""
        for bonus in self._equipped_bonuses(equipped):
            derived = derived.model_copy(
                update={
                    "atk": derived.atk + bonus.atk,
                    "defense": derived.defense + bonus.defense,
                    "m_atk": derived.m_atk + bonus.m_atk,
                    "m_def": derived.m_def + bonus.m_def,
                    "max_hp": derived.max_hp + bonus.max_hp,
                    "max_mp": derived.max_mp + bonus.max_mp,
                }
            )
        return derived


class DerivationRules(BaseModel):
    """What the status system needs to recompute a player."""

    model_config = ConfigDict(frozen=True)

    equipment: EquipmentResolver = Field(default_factory=EquipmentResolver)

    def derive(self, stats: Mapping[BaseAttribute, int], level: int) -> DerivedStats:
        return derive_combat_stats(stats, level)


def build_player(
    template: PlayerTemplate,
    progress: PlayerProgress | None = None,
    rules: DerivationRules | None = None,
) -> Player:
    """
    Builds a battle-ready player with full hp and mp.

    Args:
        template (PlayerTemplate): Defaults, and the source of the name.
        progress (PlayerProgress | None): Saved progression; the template
            values are used when missing.
        rules (DerivationRules | None): Derivation formula and equipment.

    Returns:
        Player: The derived player.

    """
    if progress is None:
        progress = PlayerProgress(
            level=template.level,
            exp=template.exp,
            unspent_points=template.unspent_points,
            stats=dict(template.stats),
            spells=list(template.spells),
            inventory=dict(template.inventory),
            gold=template.gold,
            equipped=dict(template.equipped),
        )
    player = Player(
        name=template.name,
        level=progress.level,
        stats=dict(progress.stats),
        exp=progress.exp,
        unspent_points=progress.unspent_points,
        spells=list(progress.spells),
        inventory=dict(progress.inventory),
        gold=progress.gold,
        equipped=dict(progress.equipped),
        pending_spell_choices=list(progress.pending_spell_choices),
    )
    recompute_derived(player, rules)
    player.hp = player.max_hp
    player.mp = player.max_mp
    return player
