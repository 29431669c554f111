"""
Roll-and-keep expression construction.

Builds the notation handed to the roller, e.g. ``6d10r1k3x10+5``:
six d10s, ones rerolled once, keep three, tens explode, plus five.
"""

from dataclasses import dataclass, field

from .pool import DicePool, InvalidPoolError


@dataclass(frozen=True)
class RollFlags:
    """
    Situational toggles for one roll.

    Attributes:
        suppress_exploding: Tens do not explode (unskilled rolls)
        reroll_ones: Each die showing 1 is rerolled once (emphasis)
    """
    suppress_exploding: bool = False
    reroll_ones: bool = False


@dataclass(frozen=True)
class Expression:
    """A built dice expression plus the pieces it was built from."""
    text: str
    pool: DicePool
    bonus: int
    flags: RollFlags = field(default_factory=RollFlags)

    def __str__(self) -> str:
        return self.text


def format_bonus(bonus: int) -> str:
    """Render a flat bonus as ``+N``, ``-N`` or nothing for zero."""
    if bonus > 0:
        return f"+{bonus}"
    elif bonus < 0:
        return str(bonus)
    return ""


def build_expression(pool: DicePool, bonus: int = 0,
                     flags: RollFlags = None) -> Expression:
    """
    Build the roller expression for a normalized pool.

    Flags apply independently: with both set the result rerolls ones and
    does not explode, e.g. ``5d10r1k2``.

    Args:
        pool: Normalized dice pool
        bonus: Flat bonus to append
        flags: Situational toggles

    Returns:
        Expression whose text has the form ``{roll}d10[r1]k{keep}[x10][+N|-N]``

    Raises:
        InvalidPoolError: If fewer than one die is rolled or kept
    """
    flags = flags or RollFlags()

    if pool.roll_dice < 1 or pool.keep_dice < 1:
        raise InvalidPoolError(
            f"Cannot build an expression for {pool}: roll and keep must be at least 1"
        )

    text = f"{pool.roll_dice}d10"
    if flags.reroll_ones:
        text += "r1"
    text += f"k{pool.keep_dice}"
    if not flags.suppress_exploding:
        text += "x10"
    text += format_bonus(bonus)

    return Expression(text=text, pool=pool, bonus=bonus, flags=flags)


def build_modifier_label(roll_mod: int, keep_mod: int, total_mod: int,
                         mod_label: str = "Mod") -> str:
    """
    Describe the situational modifiers applied to a roll.

    Examples:
        >>> build_modifier_label(2, 1, 5)
        ' Mod (2k1+5)'
        >>> build_modifier_label(0, 0, -3)
        ' Mod (0k0-3)'
        >>> build_modifier_label(0, 0, 0)
        ''
    """
    if roll_mod or keep_mod or total_mod:
        sign = str(total_mod) if total_mod < 0 else f"+{total_mod}"
        return f" {mod_label} ({roll_mod}k{keep_mod}{sign})"
    return ""


__all__ = [
    'RollFlags',
    'Expression',
    'format_bonus',
    'build_expression',
    'build_modifier_label',
]
