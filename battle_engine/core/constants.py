"""
Constants and enumerations for the battle engine.

Defines the tunables of the combat formulas (critical hits, enemy growth,
experience curve) and the enumerations shared by every module: turns,
battle results, status kinds, ability kinds and stat targets.
"""

from enum import Enum

# Number of log lines retained by a battle state.
LOG_TAIL = 50

# Enemy used when a battle is started without an enemy list.
DEFAULT_ENEMY_ID = "goblin"

# Safety bound on the number of level-ups processed by a single gain.
LEVEL_UP_GUARD = 100

# ---- Critical hits ----
CRIT_BASE_CHANCE = 0.05
CRIT_DEX_WEIGHT = 0.004
CRIT_STAT_WEIGHT = 0.01
CRIT_MAX_CHANCE = 0.5
CRIT_BASE_MULT = 1.5
CRIT_DMG_WEIGHT = 0.01
CRIT_MIN_MULT = 1.0
CRIT_MAX_MULT = 3.0

# ---- Enemy growth per level above 1 ----
GROWTH_RATES: dict[str, float] = {
    "max_hp": 0.05,
    "atk": 0.05,
    "m_atk": 0.04,
    "defense": 0.0,
    "m_def": 0.0,
    "max_mp": 0.05,
    "exp": 0.16,
}
# Exponential growth stops compounding past this many levels.
GROWTH_LEVEL_CAP = 20
BOSS_EXP_MULT = 1.5

# ---- Experience curve ----
EXP_CURVE_BASE = 100
EXP_CURVE_GROWTH = 1.2


class NiceEnum(Enum):
    """An enumeration that provides a nicer string representation."""

    def __str__(self) -> str:
        return self.name

    @property
    def display_name(self) -> str:
        return self.name.lower().capitalize()


class Turn(NiceEnum):
    """Whose side is expected to act next."""

    PLAYER = "player"
    ENEMY = "enemy"


class BattleResult(NiceEnum):
    """Final outcome of a battle, from the player's point of view."""

    WIN = "win"
    LOSS = "loss"

    @property
    def color(self) -> str:
        return {
            BattleResult.WIN: "bold green",
            BattleResult.LOSS: "bold red",
        }.get(self, "dim white")

    def colorize(self, message: str) -> str:
        return f"[{self.color}]{message}[/]"


class StatusType(NiceEnum):
    """Kinds of timed status effects."""

    DOT = "dot"
    STUN = "stun"
    BUFF = "buff"
    DEBUFF = "debuff"

    @property
    def emoji(self) -> str:
        """Returns the emoji associated with this status type."""
        return {
            StatusType.DOT: "❣️",
            StatusType.STUN: "💫",
            StatusType.BUFF: "🛡️",
            StatusType.DEBUFF: "☠️",
        }.get(self, "❔")

    @property
    def color(self) -> str:
        """Returns the color string associated with this status type."""
        return {
            StatusType.DOT: "bold magenta",
            StatusType.STUN: "bold yellow",
            StatusType.BUFF: "bold cyan",
            StatusType.DEBUFF: "bold red",
        }.get(self, "dim white")

    @property
    def is_modifier(self) -> bool:
        """True for statuses that adjust a stat while active."""
        return self in (StatusType.BUFF, StatusType.DEBUFF)

    def colorize(self, message: str) -> str:
        return f"[{self.color}]{message}[/]"


class AbilityKind(NiceEnum):
    """What a spell or item does when used."""

    DAMAGE = "damage"
    HEAL = "heal"
    MANA = "mana"
    EQUIPMENT = "equipment"


class TargetMode(NiceEnum):
    """How many enemies an ability hits."""

    SINGLE = "single"
    AOE = "aoe"


class DamageType(NiceEnum):
    """Which attack/defense pair a damaging ability uses."""

    PHYSICAL = "physical"
    MAGICAL = "magical"


class ToastSeverity(NiceEnum):
    """Severity attached to a toast notification."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


class ExpScaling(NiceEnum):
    """How the EXP reward of an enemy grows with its level."""

    LINEAR = "linear"
    EXPONENTIAL = "exponential"


class BaseAttribute(NiceEnum):
    """Progression stats of the player."""

    STR = "STR"
    DEX = "DEX"
    MAG = "MAG"
    CON = "CON"
    INT = "INT"
    WIS = "WIS"
    LUC = "LUC"
    CRIT = "CRIT"
    CRITDMG = "CRITDMG"


# Stats a player may spend unspent points on.
ALLOCATABLE_STATS: tuple[BaseAttribute, ...] = (
    BaseAttribute.STR,
    BaseAttribute.DEX,
    BaseAttribute.MAG,
    BaseAttribute.CON,
)


class DerivedField(NiceEnum):
    """Combat fields computed from stats, equipment and statuses."""

    ATK = "atk"
    DEF = "def"
    M_ATK = "mAtk"
    M_DEF = "mDef"
    MAX_HP = "maxHP"
    MAX_MP = "maxMP"

    @property
    def attr(self) -> str:
        """Name of the entity attribute holding this field."""
        return {
            DerivedField.ATK: "atk",
            DerivedField.DEF: "defense",
            DerivedField.M_ATK: "m_atk",
            DerivedField.M_DEF: "m_def",
            DerivedField.MAX_HP: "max_hp",
            DerivedField.MAX_MP: "max_mp",
        }[self]


# Accepted spellings of derived-field tokens in content data.
DERIVED_FIELD_SYNONYMS: dict[str, DerivedField] = {
    "atk": DerivedField.ATK,
    "attack": DerivedField.ATK,
    "def": DerivedField.DEF,
    "defense": DerivedField.DEF,
    "defence": DerivedField.DEF,
    "matk": DerivedField.M_ATK,
    "m_atk": DerivedField.M_ATK,
    "magicattack": DerivedField.M_ATK,
    "mdef": DerivedField.M_DEF,
    "m_def": DerivedField.M_DEF,
    "magicdefense": DerivedField.M_DEF,
    "maxhp": DerivedField.MAX_HP,
    "max_hp": DerivedField.MAX_HP,
    "maxmp": DerivedField.MAX_MP,
    "max_mp": DerivedField.MAX_MP,
}
