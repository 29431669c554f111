"""
In-process dice roller for roll-and-keep expressions.
"""

import random
from dataclasses import dataclass, field
from typing import List, Optional, Dict, Any, Union

from .expression import Expression
from .parser import NotationParser, ParsedExpression

SIDES = 10


class RollerUnavailable(Exception):
    """Raised when a roll cannot be produced or delivered."""


@dataclass
class DieResult:
    """One d10, including its reroll and explosions."""
    faces: List[int]          # Every face shown, in order
    rerolled: bool = False    # Was a 1 rerolled?

    @property
    def total(self) -> int:
        return sum(self.faces)

    def __str__(self) -> str:
        text = '+'.join(str(f) for f in self.faces)
        return f"{text}*" if self.rerolled else text


@dataclass
class RollResult:
    """Complete result of a roll-and-keep roll."""
    notation: str                   # Expression that was rolled
    dice: List[DieResult]           # Every die rolled
    kept: List[int]                 # Totals of the kept dice, highest first
    bonus: int                      # Flat bonus
    total: int                      # Final total
    metadata: Dict[str, Any] = field(default_factory=dict)

    def get_breakdown(self) -> str:
        """Human-readable breakdown of the roll."""
        rolled = ', '.join(str(d) for d in self.dice)
        kept = ', '.join(str(k) for k in self.kept)
        parts = [f"{self.notation}: [{rolled}] kept [{kept}]"]

        if self.bonus != 0:
            parts.append(f"modifier: {self.bonus:+d}")

        parts.append(f"**Total: {self.total}**")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for event data."""
        return {
            'notation': self.notation,
            'total': self.total,
            'breakdown': self.get_breakdown(),
            'dice': [
                {'faces': d.faces, 'total': d.total, 'rerolled': d.rerolled}
                for d in self.dice
            ],
            'kept': self.kept,
            'bonus': self.bonus,
            'metadata': self.metadata
        }


class DiceRoller:
    """
    Rolls roll-and-keep expressions.

    - Ones are rerolled once when the expression has ``r1``
    - Tens explode (roll again and add, repeatedly) when it has ``x10``
    - The highest ``keep`` dice are summed with the flat bonus
    """

    def __init__(self, seed: Optional[int] = None):
        """
        Initialize roller.

        Args:
            seed: Random seed for deterministic rolls (testing/replay)
        """
        self.rng = random.Random(seed)
        self.seed = seed

    def roll(self, expression: Union[str, Expression],
             metadata: Optional[Dict[str, Any]] = None) -> RollResult:
        """
        Roll an expression.

        Args:
            expression: Built Expression or its text, e.g. "6d10r1k3x10+5"
            metadata: Additional context (purpose, character_id, etc.)

        Returns:
            RollResult with complete breakdown

        Raises:
            DiceNotationError: If the expression is invalid
        """
        parsed = NotationParser.parse_expression(str(expression))
        return self.roll_parsed(parsed, metadata)

    def roll_parsed(self, parsed: ParsedExpression,
                    metadata: Optional[Dict[str, Any]] = None) -> RollResult:
        dice = [self._roll_one(parsed.reroll_ones, parsed.explode)
                for _ in range(parsed.roll_dice)]

        kept = sorted((d.total for d in dice), reverse=True)[:parsed.keep_dice]
        total = sum(kept) + parsed.bonus

        return RollResult(
            notation=parsed.original_notation,
            dice=dice,
            kept=kept,
            bonus=parsed.bonus,
            total=total,
            metadata=metadata or {}
        )

    def _roll_one(self, reroll_ones: bool, explode: bool) -> DieResult:
        face = self._roll_die()
        rerolled = False
        if reroll_ones and face == 1:
            face = self._roll_die()
            rerolled = True

        faces = [face]
        while explode and faces[-1] == SIDES:
            faces.append(self._roll_die())

        return DieResult(faces=faces, rerolled=rerolled)

    def _roll_die(self) -> int:
        """Roll a single d10."""
        return self.rng.randint(1, SIDES)

    def set_seed(self, seed: int):
        """Change random seed (for testing/replay)."""
        self.seed = seed
        self.rng = random.Random(seed)


__all__ = ['RollerUnavailable', 'DieResult', 'RollResult', 'DiceRoller']
