"""
Cooldown tracking for spells and items.

Each entity holds a mapping of ability id to remaining turns; entries are
removed as soon as they reach zero.
"""

import math
from typing import Any

from battle_engine.core.utils import as_number


def tick_cooldowns(entity: Any) -> None:
    """
    Advances every cooldown of an entity by one turn.

    Entries that reach zero, or were already non-positive, are removed.

    Args:
        entity (Any): The entity owning the cooldowns.

    """
    remaining = {}
    for ability_id, turns in entity.cooldowns.items():
        left = math.floor(as_number(turns)) - 1
        if left > 0:
            remaining[ability_id] = left
    entity.cooldowns = remaining


def set_cooldown(entity: Any, ability_id: str, turns: Any) -> None:
    """Starts a cooldown; non-positive durations are ignored."""
    value = math.floor(as_number(turns))
    if value > 0:
        entity.cooldowns = {**entity.cooldowns, ability_id: value}


def get_cooldown(entity: Any, ability_id: str) -> int:
    """Remaining turns of a cooldown, or 0 when it is not running."""
    return max(0, math.floor(as_number(entity.cooldowns.get(ability_id))))


def is_on_cooldown(entity: Any, ability_id: str) -> bool:
    return get_cooldown(entity, ability_id) > 0
