"""
Ten Dice Rule pool normalization.

No more than ten dice may be rolled or kept. Excess rolled dice turn into
kept dice (three rolled for two kept), and excess kept dice turn into a flat
bonus (two points per die over ten).
"""

from dataclasses import dataclass
from typing import Optional, Tuple

MAX_DICE = 10


class InvalidPoolError(ValueError):
    """Raised when a pool has negative dice or fewer than one die to roll/keep."""


@dataclass(frozen=True)
class DicePool:
    """Number of d10s rolled and how many of the highest are kept."""
    roll_dice: int
    keep_dice: int

    def __str__(self) -> str:
        return f"{self.roll_dice}k{self.keep_dice}"


@dataclass(frozen=True)
class NormalizedRoll:
    """A pool within the ten-dice limits plus the flat bonus it carries."""
    pool: DicePool
    bonus: int

    def to_dict(self):
        return {
            'roll_dice': self.pool.roll_dice,
            'keep_dice': self.pool.keep_dice,
            'bonus': self.bonus
        }


@dataclass(frozen=True)
class NormalizationRules:
    """
    House rules that change normalization.

    Attributes:
        compensation_exception: Add a further +2 whenever kept dice above ten
            were converted to bonus
    """
    compensation_exception: bool = False


DEFAULT_RULES = NormalizationRules()


def normalize(roll_dice: int, keep_dice: int, flat_bonus: int = 0,
              rules: Optional[NormalizationRules] = None) -> NormalizedRoll:
    """
    Apply the Ten Dice Rule to a (roll, keep, bonus) triple.

    Leftover excess rolled dice (one or two, short of a full group of three)
    only become bonus once keep is already at ten; otherwise they are lost.

    Args:
        roll_dice: Dice to roll, may exceed ten
        keep_dice: Dice to keep, may exceed ten
        flat_bonus: Flat modifier to carry through (may be negative)
        rules: House rules, defaults to none

    Returns:
        NormalizedRoll with roll_dice <= 10 and keep_dice <= 10

    Raises:
        InvalidPoolError: If roll_dice or keep_dice is negative

    Examples:
        >>> normalize(14, 3)
        NormalizedRoll(pool=DicePool(roll_dice=10, keep_dice=5), bonus=0)
        >>> normalize(13, 9)
        NormalizedRoll(pool=DicePool(roll_dice=10, keep_dice=9), bonus=2)
        >>> normalize(11, 10)
        NormalizedRoll(pool=DicePool(roll_dice=10, keep_dice=10), bonus=2)
    """
    if roll_dice < 0 or keep_dice < 0:
        raise InvalidPoolError(
            f"Dice pool cannot be negative, got {roll_dice}k{keep_dice}"
        )

    rules = rules or DEFAULT_RULES
    bonus = flat_bonus

    extras = 0
    if roll_dice > MAX_DICE:
        extras = roll_dice - MAX_DICE
        roll_dice = MAX_DICE

    while extras >= 3:
        keep_dice += 2
        extras -= 3

    kept_overflow = False
    while keep_dice > MAX_DICE:
        keep_dice -= 2
        bonus += 2
        kept_overflow = True

    if keep_dice == MAX_DICE and extras > 0:
        bonus += extras * 2

    if rules.compensation_exception and kept_overflow:
        bonus += 2

    return NormalizedRoll(pool=DicePool(roll_dice, keep_dice), bonus=bonus)


def ensure_minimum_pool(roll_dice: int, keep_dice: int) -> Tuple[int, int]:
    """
    Clamp a pool to at least one die rolled and one die kept.

    Callers apply this before normalize() when modifiers push a pool to zero
    or below.
    """
    return max(1, roll_dice), max(1, keep_dice)


__all__ = [
    'MAX_DICE',
    'InvalidPoolError',
    'DicePool',
    'NormalizedRoll',
    'NormalizationRules',
    'DEFAULT_RULES',
    'normalize',
    'ensure_minimum_pool',
]
