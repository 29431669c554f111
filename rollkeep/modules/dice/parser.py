"""
Roll-and-keep notation parser.

Two notations are understood:

- Pool notation, as written on character sheets and weapon stats:
  ``6k3``, ``6k3x10+4``, ``4k2-1``, with an optional ``u`` (unskilled, no
  exploding dice) or ``e`` (emphasis, reroll ones) marker anywhere.
- Expression notation, as produced by build_expression():
  ``6d10k3x10``, ``6d10r1k3x10+5``, ``4d10k2-2``.
"""

import re
from dataclasses import dataclass
from typing import Optional

from .expression import RollFlags
from .pool import DicePool, NormalizationRules, NormalizedRoll, normalize


class DiceNotationError(Exception):
    """Raised when dice notation is invalid."""


@dataclass(frozen=True)
class ParsedPool:
    """
    Parsed pool notation, both as written and normalized.

    Attributes:
        normalized: Pool and bonus after the Ten Dice Rule
        written_roll / written_keep / written_bonus: Values before normalization;
            callers that add dice of their own start from these
        explodes_on: Face that explodes, None when no ``x`` term was written
        unskilled: ``u`` marker present
        emphasis: ``e`` marker present (ignored when unskilled)
        original_notation: Cleaned-up input
    """
    normalized: NormalizedRoll
    explodes_on: Optional[int]
    unskilled: bool
    emphasis: bool
    original_notation: str
    written_roll: int
    written_keep: int
    written_bonus: int

    @property
    def pool(self) -> DicePool:
        return self.normalized.pool

    @property
    def bonus(self) -> int:
        return self.normalized.bonus

    @property
    def flags(self) -> RollFlags:
        return RollFlags(suppress_exploding=self.unskilled, reroll_ones=self.emphasis)


@dataclass(frozen=True)
class ParsedExpression:
    """A parsed ``Nd10[r1]kK[x10][+B]`` expression."""
    roll_dice: int
    keep_dice: int
    reroll_ones: bool
    explode: bool
    bonus: int
    original_notation: str


class NotationParser:
    """Parser for roll-and-keep notation."""

    POOL_PATTERN = re.compile(r'^(\d+)k(\d+)(?:x(\d+))?((?:[+-]\d+)*)$')
    EXPRESSION_PATTERN = re.compile(r'^(\d+)d10(r1)?k(\d+)(x10)?([+-]\d+)?$')
    MODIFIER_PATTERN = re.compile(r'[+-]\d+')

    @staticmethod
    def _clean(notation: str) -> str:
        if not notation or not isinstance(notation, str):
            raise DiceNotationError("Notation must be a non-empty string")

        notation = notation.strip().replace(' ', '').lower()
        if not notation:
            raise DiceNotationError("Notation cannot be empty")
        return notation

    @classmethod
    def parse_pool(cls, notation: str,
                   rules: Optional[NormalizationRules] = None) -> ParsedPool:
        """
        Parse pool notation and normalize it.

        Examples:
            "6k3"        -> 6k3, bonus 0
            "6k3x10+4"   -> 6k3, bonus 4, explodes on 10
            "12k4+1-3"   -> 10k4, bonus -2 (modifiers are summed)
            "4k2u"       -> 4k2, unskilled

        Args:
            notation: Pool notation string
            rules: House rules for normalization

        Returns:
            ParsedPool

        Raises:
            DiceNotationError: If notation is invalid
        """
        notation = cls._clean(notation)

        unskilled = 'u' in notation
        emphasis = 'e' in notation and not unskilled
        body = notation.replace('u', '').replace('e', '')

        match = cls.POOL_PATTERN.match(body)
        if not match:
            raise DiceNotationError(f"Invalid pool notation '{notation}'")

        roll_dice = int(match.group(1))
        keep_dice = int(match.group(2))
        explodes_on = int(match.group(3)) if match.group(3) else None
        bonus = sum(int(m) for m in cls.MODIFIER_PATTERN.findall(match.group(4)))

        if roll_dice < 1 or keep_dice < 1:
            raise DiceNotationError(f"Roll and keep must be at least 1, got {roll_dice}k{keep_dice}")

        return ParsedPool(
            normalized=normalize(roll_dice, keep_dice, bonus, rules),
            explodes_on=explodes_on,
            unskilled=unskilled,
            emphasis=emphasis,
            original_notation=notation,
            written_roll=roll_dice,
            written_keep=keep_dice,
            written_bonus=bonus
        )

    @classmethod
    def parse_expression(cls, notation: str) -> ParsedExpression:
        """
        Parse a built roller expression.

        Raises:
            DiceNotationError: If notation is invalid or outside ten-dice limits
        """
        notation = cls._clean(notation)

        match = cls.EXPRESSION_PATTERN.match(notation)
        if not match:
            raise DiceNotationError(f"Invalid roll expression '{notation}'")

        roll_dice = int(match.group(1))
        keep_dice = int(match.group(3))

        if not 1 <= roll_dice <= 10:
            raise DiceNotationError(f"Rolled dice must be between 1 and 10, got {roll_dice}")
        if not 1 <= keep_dice <= 10:
            raise DiceNotationError(f"Kept dice must be between 1 and 10, got {keep_dice}")

        return ParsedExpression(
            roll_dice=roll_dice,
            keep_dice=keep_dice,
            reroll_ones=bool(match.group(2)),
            explode=bool(match.group(4)),
            bonus=int(match.group(5)) if match.group(5) else 0,
            original_notation=notation
        )

    @classmethod
    def validate(cls, notation: str) -> bool:
        """
        Check if pool notation is valid without keeping the result.

        Returns:
            True if valid, False otherwise
        """
        try:
            cls.parse_pool(notation)
            return True
        except DiceNotationError:
            return False


__all__ = ['DiceNotationError', 'ParsedPool', 'ParsedExpression', 'NotationParser']
