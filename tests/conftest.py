"""
Shared fixtures for the battle engine tests.
"""

import random

import pytest

from battle_engine.combat.battle_engine import BattleEngine
from battle_engine.core.content import ContentRepository
from battle_engine.core.events import GameEvents

SPELLS = {
    "bolt": {
        "name": "Bolt",
        "kind": "damage",
        "cost": 3,
        "cooldown": 2,
        "element": "fire",
        "effects": [{"type": "dot", "id": "burn", "value": 2, "turns": 2}],
    },
    "sweep": {
        "name": "Sweep",
        "kind": "damage",
        "damage_type": "physical",
        "target": "aoe",
        "cost": 2,
    },
    "daze": {
        "name": "Daze",
        "kind": "damage",
        "cooldown": 1,
        "can_crit": False,
        "effects": [{"type": "stun", "id": "dazed", "turns": 1}],
    },
    "mend": {
        "name": "Mend",
        "kind": "heal",
        "cost": 2,
        "heal_amount": 10,
        "effects": [{"type": "buff", "id": "guard", "stat": "def", "value": 2, "turns": 2}],
    },
    "raise-dead": {
        "name": "Raise Dead",
        "kind": "damage",
        "effects": [{"type": "summon", "id": "skeleton", "count": 2}],
    },
    "bite": {
        "name": "Bite",
        "kind": "damage",
        "damage_type": "physical",
        "cooldown": 2,
        "effects": [{"type": "dot", "id": "poison", "value": 3, "turns": 2}],
    },
    "hex": {
        "name": "Hex",
        "kind": "damage",
        "cooldown": 3,
        "effects": [{"type": "stun", "id": "hexed", "turns": 1}],
    },
    "call": {
        "name": "Call",
        "kind": "heal",
        "cooldown": 3,
        "effects": [{"type": "summon", "id": "goblin", "count": 2}],
    },
}

ITEMS = {
    "potion": {"name": "Potion", "kind": "heal", "heal_amount": 20},
    "ether": {"name": "Ether", "kind": "mana", "mp_amount": 10},
    "bomb": {
        "name": "Bomb",
        "kind": "damage",
        "target": "aoe",
        "damage": 6,
        "can_crit": False,
    },
    "sword": {
        "name": "Sword",
        "kind": "equipment",
        "slot": "weapon",
        "bonus": {"stats": {"STR": 1}, "atk": 3},
    },
}

ENEMIES = {
    "goblin": {
        "name": "Goblin",
        "atk": 4,
        "defense": 2,
        "max_hp": 8,
        "exp_reward": 12,
        "drops": [{"id": "potion", "qty": 1}],
    },
    "brute": {"name": "Brute", "atk": 6, "defense": 0, "max_hp": 40},
    "viper": {"name": "Viper", "atk": 3, "max_hp": 30, "spells": ["bite"]},
    "shaman": {"name": "Shaman", "atk": 3, "m_atk": 5, "max_hp": 30, "spells": ["call"]},
    "warlock": {"name": "Warlock", "atk": 3, "max_hp": 30, "spells": ["hex"]},
    "ogre": {"name": "Ogre", "atk": 5, "max_hp": 50, "exp_reward": 100, "boss": True},
    "slime": {
        "name": "Slime",
        "atk": 2,
        "max_hp": 20,
        "element_mods": {"fire": 2.0, "physical": "0.5"},
    },
    "skeleton": {"name": "Skeleton", "atk": 2, "max_hp": 6, "exp_reward": 5},
}

PLAYER = {
    "name": "Tester",
    "stats": {"STR": 3, "DEX": 3, "MAG": 3, "CON": 3},
    "spells": ["bolt", "sweep", "daze", "mend", "raise-dead"],
    "inventory": {"potion": 2, "ether": 1, "bomb": 1},
}

LEVEL_REWARDS = {
    "fixed_unlocks": {"1": ["bolt"]},
    "spell_choices": {"2": ["ice", "rock"]},
}


@pytest.fixture
def content():
    """A small in-memory content repository."""
    return ContentRepository.from_data(
        spells=SPELLS,
        items=ITEMS,
        enemies=ENEMIES,
        player=PLAYER,
        level_rewards=LEVEL_REWARDS,
    )


@pytest.fixture
def events():
    return GameEvents()


@pytest.fixture
def no_crit_rng(mocker):
    """A random source whose rolls never crit."""
    rng = mocker.Mock(spec=random.Random)
    rng.random.return_value = 0.99
    return rng


@pytest.fixture
def always_crit_rng(mocker):
    """A random source whose rolls always crit."""
    rng = mocker.Mock(spec=random.Random)
    rng.random.return_value = 0.0
    return rng


@pytest.fixture
def engine(content, events, no_crit_rng):
    return BattleEngine(content=content, events=events, rng=no_crit_rng)
