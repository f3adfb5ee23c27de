"""
Tests for status effects and stat token resolution.
"""

import pytest

from battle_engine.core.abilities import StatusTemplate
from battle_engine.core.constants import BaseAttribute, DerivedField, StatusType
from battle_engine.effects.status_effect import StatusEffect, resolve_stat_token


@pytest.fixture
def mock_warning(mocker):
    return mocker.patch("battle_engine.effects.status_effect.log_warning")


@pytest.mark.parametrize(
    ("token", "expected"),
    [
        ("atk", DerivedField.ATK),
        ("def", DerivedField.DEF),
        ("Defense", DerivedField.DEF),
        ("mAtk", DerivedField.M_ATK),
        ("mdef", DerivedField.M_DEF),
        ("MaxHP", DerivedField.MAX_HP),
        ("maxMP", DerivedField.MAX_MP),
        ("str", BaseAttribute.STR),
        ("CRITDMG", BaseAttribute.CRITDMG),
        (BaseAttribute.DEX, BaseAttribute.DEX),
        (None, None),
    ],
)
def test_resolve_known_tokens(token, expected, mock_warning):
    """
    Test that known stat tokens resolve to their typed target.
    """
    assert resolve_stat_token(token) == expected
    mock_warning.assert_not_called()


def test_resolve_unknown_token_warns(mock_warning):
    """
    Test that an unknown token resolves to None and emits a warning.
    """
    assert resolve_stat_token("luck_of_the_draw") is None
    mock_warning.assert_called_once()
    assert "luck_of_the_draw" in mock_warning.call_args.args[0]


def test_resolve_non_string_token_warns(mock_warning):
    assert resolve_stat_token(42) is None
    mock_warning.assert_called_once()


def test_status_effect_resolves_stat_on_validation():
    """
    Test that a status built from raw data carries a typed stat.
    """
    effect = StatusEffect.model_validate(
        {"id": "guard", "type": "buff", "stat": "def", "value": 2, "turns_left": 2}
    )
    assert effect.stat == DerivedField.DEF
    assert effect.type == StatusType.BUFF
    assert str(effect).endswith("guard def+2 (2)")


def test_decayed_counts_down_and_expires():
    """
    Test that decaying returns a new status until the last turn.
    """
    effect = StatusEffect(id="burn", type=StatusType.DOT, value=2, turns_left=2)
    later = effect.decayed()
    assert later is not effect
    assert later.turns_left == 1
    assert effect.turns_left == 2
    assert later.decayed() is None


def test_status_template_instantiate():
    """
    Test that templates accept either duration spelling and drop empty durations.
    """
    template = StatusTemplate.model_validate({"type": "stun", "turns_left": 2})
    effect = template.instantiate("daze")
    assert effect.id == "stun"
    assert effect.turns_left == 2
    assert effect.source == "daze"
    assert StatusTemplate(type=StatusType.DOT, turns=0).instantiate(None) is None
