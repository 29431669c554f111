"""
Unit tests for expression building.
"""

import pytest

from rollkeep.modules.dice.expression import (
    RollFlags, build_expression, build_modifier_label, format_bonus
)
from rollkeep.modules.dice.pool import DicePool, InvalidPoolError


class TestBuildExpression:
    """Test roller expression text."""

    def test_default_explodes(self):
        """Test that tens explode unless suppressed."""
        expression = build_expression(DicePool(6, 3), 5)
        assert str(expression) == "6d10k3x10+5"
        assert expression.bonus == 5

    def test_emphasis(self):
        """Test that emphasis rerolls ones."""
        expression = build_expression(DicePool(6, 3), 5, RollFlags(reroll_ones=True))
        assert str(expression) == "6d10r1k3x10+5"

    def test_unskilled(self):
        """Test that unskilled rolls do not explode."""
        expression = build_expression(DicePool(6, 3), 5, RollFlags(suppress_exploding=True))
        assert str(expression) == "6d10k3+5"

    def test_both_flags(self):
        """Test that both flags apply independently."""
        flags = RollFlags(suppress_exploding=True, reroll_ones=True)
        assert str(build_expression(DicePool(5, 2), 0, flags)) == "5d10r1k2"

    def test_negative_bonus(self):
        """Test that negative bonuses keep their sign."""
        assert str(build_expression(DicePool(4, 2), -2)) == "4d10k2x10-2"

    def test_zero_bonus_omitted(self):
        """Test that a zero bonus adds nothing."""
        assert str(build_expression(DicePool(4, 2))) == "4d10k2x10"

    def test_empty_pool_rejected(self):
        """Test that pools without dice to roll or keep are rejected."""
        with pytest.raises(InvalidPoolError):
            build_expression(DicePool(0, 1))
        with pytest.raises(InvalidPoolError):
            build_expression(DicePool(3, 0))


class TestLabels:
    """Test presentation helpers."""

    def test_format_bonus(self):
        """Test bonus formatting."""
        assert format_bonus(3) == "+3"
        assert format_bonus(-3) == "-3"
        assert format_bonus(0) == ""

    def test_modifier_label(self):
        """Test the situational modifier label."""
        assert build_modifier_label(2, 1, 5) == " Mod (2k1+5)"
        assert build_modifier_label(0, 0, -3) == " Mod (0k0-3)"
        assert build_modifier_label(0, 0, 0) == ""
        assert build_modifier_label(1, 0, 0, mod_label="Bonus") == " Bonus (1k0+0)"
