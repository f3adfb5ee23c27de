"""
Tests for enemy scaling and construction.
"""

import pytest

from battle_engine.core.abilities import EnemyTemplate
from battle_engine.core.constants import ExpScaling
from battle_engine.entities.enemy_builder import (
    EnemyBuilder,
    ScalingContext,
    parse_scaled_id,
    scale_enemy_template,
    scale_exponential,
    scale_linear,
)


@pytest.fixture
def builder(content):
    return EnemyBuilder(content.enemies)


def test_parse_scaled_id():
    """
    Test that level suffixes are split from the base id.
    """
    assert parse_scaled_id("goblin-lv5") == ("goblin", 5)
    assert parse_scaled_id("goblin_LV3") == ("goblin", 3)
    assert parse_scaled_id("dire-wolf-lv12") == ("dire-wolf", 12)
    assert parse_scaled_id("goblin") is None
    assert parse_scaled_id("") is None


def test_scaling_helpers():
    """
    Test the linear and exponential growth formulas.
    """
    assert scale_linear(4, 1, 0.05) == 4
    assert scale_linear(4, 5, 0.05) == 4
    assert scale_linear(10, 5, 0.05) == 12
    assert scale_linear(0, 5, 0.0) == 1
    assert scale_exponential(8, 5, 0.05) == 9
    assert scale_exponential(8, 30, 0.05) == scale_exponential(8, 21, 0.05) == 21


def test_build_level_one(builder):
    """
    Test that a bare id builds the unscaled template with full pools.
    """
    goblin = builder.build_one("goblin")
    assert goblin.id == "goblin"
    assert goblin.template_id == "goblin"
    assert goblin.scaled_level == 1
    assert (goblin.atk, goblin.defense, goblin.m_atk, goblin.m_def) == (4, 2, 4, 2)
    assert goblin.hp == goblin.max_hp == 8
    assert goblin.exp_reward == 12
    assert goblin.base == goblin.derived
    assert [d.id for d in goblin.drops] == ["potion"]


def test_build_scaled_id(builder):
    """
    Test that a level suffix scales stats and EXP and is kept in the id.
    """
    goblin = builder.build_one("goblin-lv5")
    assert goblin.id == "goblin-lv5"
    assert goblin.scaled_level == 5
    assert goblin.max_hp == 9
    assert goblin.atk == 4
    assert goblin.defense == 2
    assert goblin.exp_reward == 21


def test_dungeon_level_overrides_everything(builder):
    """
    Test that a forced dungeon level wins over suffixes and explicit levels.
    """
    scaling = ScalingContext(dungeon_level=3)
    enemies = builder.build(
        ["goblin", "goblin-lv5", {"base_id": "goblin", "level": 9}], scaling
    )
    assert [e.id for e in enemies] == ["goblin", "goblin-2", "goblin-3"]
    assert {e.scaled_level for e in enemies} == {3}


def test_build_avoids_taken_ids(builder):
    """
    Test that batch builds never reuse an id.
    """
    enemies = builder.build(["goblin", "goblin", "brute"], taken={"goblin-2"})
    assert [e.id for e in enemies] == ["goblin", "goblin-3", "brute"]
    assert [e.template_id for e in enemies] == ["goblin", "goblin", "brute"]


def test_level_zero_suffix_builds_level_one(builder):
    """
    Test that a level below 1 in an id is raised to 1.
    """
    goblin = builder.build_one("goblin-lv0")
    assert goblin.id == "goblin-lv0"
    assert goblin.level == goblin.scaled_level == 1
    assert goblin.max_hp == builder.build_one("goblin").max_hp


def test_dict_references(builder):
    """
    Test that dict specs can set a level and override template fields.
    """
    leveled = builder.build_one({"base_id": "goblin", "level": 2})
    assert leveled.id == "goblin-lv2"
    assert leveled.scaled_level == 2

    renamed = builder.build_one({"base_id": "goblin", "name": "Big Goblin", "id": "boss-1"})
    assert renamed.id == "boss-1"
    assert renamed.name == "Big Goblin"
    assert renamed.template_id == "goblin"

    inline = builder.build_one({"id": "wisp", "atk": 7, "max_hp": 3})
    assert (inline.id, inline.atk, inline.max_hp) == ("wisp", 7, 3)


def test_unknown_enemy_builds_placeholder(builder, mocker):
    """
    Test that an unknown id warns and builds a default enemy.
    """
    warning = mocker.patch("battle_engine.entities.enemy_builder.log_warning")
    ghost = builder.build_one("ghost")
    warning.assert_called_once()
    assert ghost.name == "ghost"
    assert (ghost.atk, ghost.max_hp) == (1, 10)


def test_exp_multipliers(content):
    """
    Test the boss bonus, the dungeon multiplier and the linear EXP mode.
    """
    ogre = content.enemies["ogre"]
    assert scale_enemy_template(ogre, 1)[1] == 150
    assert scale_enemy_template(ogre, 1, ScalingContext(exp_multiplier=2.0))[1] == 300
    assert scale_enemy_template(ogre, 1, ScalingContext(exp_multiplier=-1))[1] == 0

    goblin = content.enemies["goblin"]
    linear = ScalingContext(exp_mode=ExpScaling.LINEAR)
    assert scale_enemy_template(goblin, 5, linear)[1] == 19


def test_magic_stats_default_to_physical():
    template = EnemyTemplate(id="golem", atk=6, defense=4)
    assert (template.magic_attack, template.magic_defense) == (6, 4)
