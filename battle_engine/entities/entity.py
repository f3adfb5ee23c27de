"""
Entity module for the battle engine.

Defines the combatants: the common ``Entity`` base with derived combat
stats, current pools, statuses and cooldowns, plus the ``Player`` and
``Enemy`` specializations.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Self

from battle_engine.combat.damage import clamp_hp, clamp_mp
from battle_engine.core.abilities import Drop
from battle_engine.core.constants import BaseAttribute, DerivedField, StatusType
from battle_engine.effects.status_effect import StatusEffect
from battle_engine.progression import PlayerProgress, SpellChoice


class DerivedStats(BaseModel):
    """A snapshot of the six derived combat fields."""

    model_config = ConfigDict(frozen=True)

    atk: int = 0
    defense: int = 0
    m_atk: int = 0
    m_def: int = 0
    max_hp: int = 1
    max_mp: int = 0

    def get(self, field: DerivedField) -> int:
        return getattr(self, field.attr)

    def plus(self, deltas: dict[DerivedField, int]) -> "DerivedStats":
        """Returns a copy with the deltas added, unclamped."""
        if not deltas:
            return self
        return self.model_copy(
            update={f.attr: self.get(f) + delta for f, delta in deltas.items()}
        )

    def clamped(self) -> "DerivedStats":
        """Returns a copy with every field non-negative and max_hp at least 1."""
        return DerivedStats(
            atk=max(0, self.atk),
            defense=max(0, self.defense),
            m_atk=max(0, self.m_atk),
            m_def=max(0, self.m_def),
            max_hp=max(1, self.max_hp),
            max_mp=max(0, self.max_mp),
        )


class Entity(BaseModel):
    """
    A combatant.

    Entities are mutable, but a battle state never shares one between two
    states: each action works on ``fork()`` copies.
    """

    id: str = Field(description="Runtime identifier, unique within a battle.")
    name: str = Field(description="Display name.")
    level: int = Field(default=1, description="Level of the entity.")

    atk: int = Field(default=0, description="Physical attack.")
    defense: int = Field(default=0, description="Physical defense.")
    m_atk: int = Field(default=0, description="Magical attack.")
    m_def: int = Field(default=0, description="Magical defense.")
    max_hp: int = Field(default=1, description="Maximum hit points.")
    max_mp: int = Field(default=0, description="Maximum mana points.")
    hp: int = Field(default=0, description="Current hit points.")
    mp: int = Field(default=0, description="Current mana points.")

    statuses: list[StatusEffect] = Field(
        default_factory=list,
        description="Active timed statuses.",
    )
    cooldowns: dict[str, int] = Field(
        default_factory=dict,
        description="Ability id to remaining cooldown turns.",
    )
    element_mods: dict[str, float | str] = Field(
        default_factory=dict,
        description="Element to damage multiplier.",
    )

    @property
    def is_alive(self) -> bool:
        return self.hp > 0

    @property
    def derived(self) -> DerivedStats:
        return DerivedStats(
            atk=self.atk,
            defense=self.defense,
            m_atk=self.m_atk,
            m_def=self.m_def,
            max_hp=self.max_hp,
            max_mp=self.max_mp,
        )

    def set_derived(self, derived: DerivedStats) -> None:
        """Commits derived fields and re-clamps the current pools."""
        self.atk = derived.atk
        self.defense = derived.defense
        self.m_atk = derived.m_atk
        self.m_def = derived.m_def
        self.max_hp = derived.max_hp
        self.max_mp = derived.max_mp
        self.hp = clamp_hp(self.hp, self.max_hp)
        self.mp = clamp_mp(self.mp, self.max_mp)

    def has_status(self, status_type: StatusType) -> bool:
        return any(s.type == status_type for s in self.statuses)

    def fork(self) -> Self:
        """
        Copies the entity for a new battle state.

        Containers that actions mutate are copied; status effects are frozen
        and shared.

        Returns:
            Self: The copy.

        """
        return self.model_copy(
            update={
                "statuses": list(self.statuses),
                "cooldowns": dict(self.cooldowns),
                "element_mods": dict(self.element_mods),
            }
        )


class Player(Entity):
    """The player character."""

    id: str = "player"
    stats: dict[BaseAttribute, int] = Field(
        default_factory=dict,
        description="Progression stats, before equipment and statuses.",
    )
    effective_stats: dict[BaseAttribute, int] = Field(
        default_factory=dict,
        description="Stats after equipment and statuses, used for crit math.",
    )
    exp: int = Field(default=0, description="EXP towards the next level.")
    unspent_points: int = Field(default=0, description="Unallocated stat points.")
    spells: list[str] = Field(default_factory=list, description="Known spell ids.")
    inventory: dict[str, int] = Field(
        default_factory=dict,
        description="Item id to quantity.",
    )
    gold: int = 0
    equipped: dict[str, str] = Field(
        default_factory=dict,
        description="Slot to equipped item id.",
    )
    pending_spell_choices: list[SpellChoice] = Field(
        default_factory=list,
        description="Spell choices offered by level-ups, not yet committed.",
    )

    def fork(self) -> Self:
        copy = super().fork()
        copy.stats = dict(self.stats)
        copy.effective_stats = dict(self.effective_stats)
        copy.spells = list(self.spells)
        copy.inventory = dict(self.inventory)
        copy.equipped = dict(self.equipped)
        copy.pending_spell_choices = list(self.pending_spell_choices)
        return copy

    def to_progress(self) -> PlayerProgress:
        """Exports the persistent part of the player."""
        return PlayerProgress(
            level=self.level,
            exp=self.exp,
            unspent_points=self.unspent_points,
            stats=dict(self.stats),
            spells=list(self.spells),
            inventory=dict(self.inventory),
            gold=self.gold,
            equipped=dict(self.equipped),
            pending_spell_choices=list(self.pending_spell_choices),
        )


class Enemy(Entity):
    """A scaled enemy, or a creature summoned during the battle."""

    base: DerivedStats = Field(
        default_factory=DerivedStats,
        description="Scaled derived stats before status modifiers.",
    )
    template_id: str = Field(default="", description="Catalog id it was built from.")
    exp_reward: int = 0
    drops: list[Drop] = Field(default_factory=list)
    spells: list[str] = Field(default_factory=list)
    ai: dict[str, Any] | None = None
    boss: bool = False
    element: str | None = None
    scaled_level: int = 1
    death_processed: bool = False
    summon: bool = False
    summon_owner: str | None = None
    just_summoned: bool = False

    @property
    def colored_name(self) -> str:
        color = "bold magenta" if self.boss else "bold red"
        return f"[{color}]{self.name}[/]"
