"""
Tests for player construction, equipment and entity copies.
"""

import pytest

from battle_engine.core.abilities import Item, PlayerTemplate
from battle_engine.core.constants import BaseAttribute, StatusType
from battle_engine.effects.status_effect import StatusEffect
from battle_engine.entities.entity import DerivedStats
from battle_engine.entities.player import (
    DerivationRules,
    EquipmentResolver,
    build_player,
    derive_combat_stats,
)
from battle_engine.progression import PlayerProgress


@pytest.fixture
def rules(content):
    """Derivation rules knowing the catalog equipment."""
    return DerivationRules(equipment=EquipmentResolver.from_items(content.items))


def test_derive_combat_stats():
    """
    Test the player combat formula.
    """
    stats = {BaseAttribute.STR: 3, BaseAttribute.DEX: 3, BaseAttribute.MAG: 3, BaseAttribute.CON: 3}
    assert derive_combat_stats(stats, 1) == DerivedStats(
        atk=8, defense=4, m_atk=8, m_def=4, max_hp=46, max_mp=20
    )
    assert derive_combat_stats(stats, 4) == DerivedStats(
        atk=10, defense=4, m_atk=10, m_def=4, max_hp=52, max_mp=22
    )
    assert derive_combat_stats({}, 1).max_hp == 22


def test_build_player_from_template():
    """
    Test that a missing progression record falls back to the template.
    """
    template = PlayerTemplate(name="Aria", spells=["firebolt"], inventory={"potion": 2})
    player = build_player(template)
    assert player.id == "player"
    assert player.name == "Aria"
    assert player.level == 1
    assert player.spells == ["firebolt"]
    assert player.inventory == {"potion": 2}
    assert player.hp == player.max_hp == 46
    assert player.mp == player.max_mp == 20


def test_build_player_from_progress():
    """
    Test that saved progression overrides the template values.
    """
    progress = PlayerProgress(level=3, stats={"STR": 5, "DEX": 1, "MAG": 0, "CON": 2})
    player = build_player(PlayerTemplate(), progress)
    assert player.level == 3
    assert player.atk == 13
    assert player.max_hp == 42
    assert player.spells == []


def test_equipment_resolver_keeps_only_equipment(content):
    resolver = EquipmentResolver.from_items(content.items)
    assert list(resolver.bonuses) == ["sword"]


def test_equipped_items_add_bonuses(rules):
    """
    Test that equipped items add attribute and combat bonuses.
    """
    player = build_player(PlayerTemplate(equipped={"weapon": "sword"}), rules=rules)
    assert player.atk == 13
    assert player.effective_stats[BaseAttribute.STR] == 4
    assert player.stats[BaseAttribute.STR] == 3


def test_unknown_equipment_warns(rules, mocker):
    """
    Test that an equipped id without a bonus is reported and ignored.
    """
    warning = mocker.patch("battle_engine.entities.player.log_warning")
    player = build_player(PlayerTemplate(equipped={"ring": "mystery"}), rules=rules)
    assert player.atk == 8
    assert warning.called


def test_item_bonus_parses_attribute_names():
    item = Item.model_validate(
        {"id": "charm", "kind": "equipment", "bonus": {"stats": {"CRIT": 10}, "max_hp": 5}}
    )
    assert item.bonus.stats == {BaseAttribute.CRIT: 10}
    assert item.bonus.max_hp == 5


def test_fork_copies_mutable_containers():
    """
    Test that a forked player shares no mutable container with the original.
    """
    player = build_player(PlayerTemplate(inventory={"potion": 1}, spells=["bolt"]))
    player.statuses = [StatusEffect(id="burn", type=StatusType.DOT, value=1, turns_left=2)]
    player.cooldowns = {"bolt": 1}
    copy = player.fork()

    copy.inventory["potion"] = 5
    copy.spells.append("mend")
    copy.cooldowns["bolt"] = 3
    copy.statuses.clear()
    copy.stats[BaseAttribute.STR] = 9
    copy.hp = 1

    assert player.inventory == {"potion": 1}
    assert player.spells == ["bolt"]
    assert player.cooldowns == {"bolt": 1}
    assert len(player.statuses) == 1
    assert player.stats[BaseAttribute.STR] == 3
    assert player.hp == 46


def test_to_progress_round_trips_through_build():
    progress = PlayerProgress(level=2, exp=30, unspent_points=1, spells=["bolt"], gold=7)
    player = build_player(PlayerTemplate(), progress)
    assert player.to_progress() == progress
