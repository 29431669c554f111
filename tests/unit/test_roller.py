"""
Unit tests for the dice roller.
"""

import pytest

from rollkeep.modules.dice.expression import RollFlags, build_expression
from rollkeep.modules.dice.parser import DiceNotationError
from rollkeep.modules.dice.pool import DicePool
from rollkeep.modules.dice.roller import DiceRoller, DieResult


class TestDiceRoller:
    """Test rolling expressions."""

    def test_keeps_highest(self, scripted_roller):
        """Test that the highest dice are kept and the bonus added."""
        roller = scripted_roller([7, 2, 9])
        result = roller.roll("3d10k2+1")
        assert result.kept == [9, 7]
        assert result.total == 17

    def test_tens_explode(self, scripted_roller):
        """Test that tens roll again and add."""
        roller = scripted_roller([10, 4, 7, 2])
        result = roller.roll("3d10k2x10+1")
        assert result.dice[0].faces == [10, 4]
        assert result.kept == [14, 7]
        assert result.total == 22

    def test_tens_do_not_explode_without_flag(self, scripted_roller):
        """Test unskilled rolls."""
        roller = scripted_roller([10])
        result = roller.roll("1d10k1")
        assert result.total == 10
        assert roller.faces == []

    def test_ones_rerolled_once(self, scripted_roller):
        """Test emphasis rerolls a one a single time."""
        roller = scripted_roller([1, 1, 3])
        result = roller.roll("2d10r1k1")
        assert result.dice[0].faces == [1]
        assert result.dice[0].rerolled
        assert result.kept == [3]

    def test_reroll_can_explode(self, scripted_roller):
        """Test that a rerolled ten still explodes."""
        roller = scripted_roller([1, 10, 5])
        result = roller.roll("1d10r1k1x10")
        assert result.total == 15
        assert str(result.dice[0]) == "10+5*"

    def test_accepts_expression_object(self, scripted_roller):
        """Test rolling a built Expression."""
        roller = scripted_roller([6, 6])
        expression = build_expression(DicePool(2, 1), -1, RollFlags(suppress_exploding=True))
        result = roller.roll(expression, metadata={'purpose': 'test'})
        assert result.notation == "2d10k1-1"
        assert result.total == 5
        assert result.metadata == {'purpose': 'test'}

    def test_breakdown(self, scripted_roller):
        """Test the human-readable breakdown."""
        roller = scripted_roller([10, 4, 7, 2])
        result = roller.roll("3d10k2x10+1")
        assert result.get_breakdown() == (
            "3d10k2x10+1: [10+4, 7, 2] kept [14, 7] | modifier: +1 | **Total: 22**"
        )

    def test_seeded_rolls_repeat(self):
        """Test that equal seeds give equal rolls."""
        first = DiceRoller(seed=7).roll("10d10k5x10")
        second = DiceRoller(seed=7).roll("10d10k5x10")
        assert first.total == second.total
        assert first.kept == second.kept

    def test_set_seed(self):
        """Test reseeding a roller."""
        roller = DiceRoller(seed=1)
        first = roller.roll("5d10k3").total
        roller.set_seed(1)
        assert roller.roll("5d10k3").total == first

    def test_faces_in_range(self):
        """Test that unexploded dice stay within 1-10."""
        roller = DiceRoller(seed=3)
        for _ in range(50):
            result = roller.roll("10d10k10")
            for die in result.dice:
                assert 1 <= die.total <= 10

    def test_invalid_expression(self):
        """Test that bad expressions raise."""
        with pytest.raises(DiceNotationError):
            DiceRoller().roll("12d10k3")

    def test_to_dict(self, scripted_roller):
        """Test event serialization."""
        data = scripted_roller([3]).roll("1d10k1").to_dict()
        assert data['total'] == 3
        assert data['dice'] == [{'faces': [3], 'total': 3, 'rerolled': False}]


class TestDieResult:
    """Test single die display."""

    def test_str(self):
        """Test die formatting."""
        assert str(DieResult([7])) == "7"
        assert str(DieResult([10, 10, 2])) == "10+10+2"
        assert DieResult([10, 10, 2]).total == 22
