"""
Status effect module for the battle engine.

Defines the timed status effects (damage over time, stun, buffs and
debuffs) carried by entities, and the resolution of the stat tokens used by
content data into typed stat targets.
"""

from typing import Annotated, Any

from catchery import log_warning
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from battle_engine.core.constants import (
    DERIVED_FIELD_SYNONYMS,
    BaseAttribute,
    DerivedField,
    StatusType,
)

StatTarget = BaseAttribute | DerivedField


def resolve_stat_token(token: Any) -> StatTarget | None:
    """
    Resolves a stat token from content data into a typed stat target.

    Derived fields are matched case-insensitively against a synonym table
    (``atk``, ``def``, ``mAtk``, ``maxHP``, ...); base attributes match
    their upper-case names (``STR``, ``CRITDMG``, ...).

    Args:
        token (Any): The raw token, an already resolved target, or None.

    Returns:
        StatTarget | None: The target, or None when the token is missing or
        unknown.

    """
    if token is None or isinstance(token, (BaseAttribute, DerivedField)):
        return token
    if not isinstance(token, str):
        log_warning(
            f"Stat token '{token}' is not a string, ignoring it.",
            {"token": token, "type": type(token).__name__},
        )
        return None
    raw = token.strip()
    if not raw:
        return None
    derived = DERIVED_FIELD_SYNONYMS.get(raw.lower())
    if derived is not None:
        return derived
    if raw.upper() in BaseAttribute.__members__:
        return BaseAttribute[raw.upper()]
    log_warning(
        f"Unknown stat token '{token}', the status will not modify any stat.",
        {"token": token},
    )
    return None


StatTargetField = Annotated[StatTarget | None, BeforeValidator(resolve_stat_token)]


class StatusEffect(BaseModel):
    """
    A timed status carried by an entity.

    Status effects are immutable: decaying one produces a new instance, so
    copies of a battle state can share them safely.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Identifier of the status, e.g. 'burn'.")
    type: StatusType = Field(description="The kind of status.")
    stat: StatTargetField = Field(
        default=None,
        description="The stat adjusted by a buff or debuff.",
    )
    value: int = Field(
        default=0,
        description="DOT damage per turn, or the stat delta of a buff/debuff.",
    )
    turns_left: int = Field(description="Remaining turns, always positive.")
    source: str | None = Field(
        default=None,
        description="Name of whoever applied the status.",
    )

    def decayed(self) -> "StatusEffect | None":
        """
        Returns the status one turn later, or None once it expires.

        Returns:
            StatusEffect | None: The decayed copy, or None.

        """
        remaining = self.turns_left - 1
        if remaining <= 0:
            return None
        return self.model_copy(update={"turns_left": remaining})

    def __str__(self) -> str:
        target = f" {self.stat.value}{self.value:+d}" if self.stat else ""
        return f"{self.type.emoji} {self.id}{target} ({self.turns_left})"
