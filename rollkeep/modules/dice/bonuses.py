"""
Active-effect bonuses read from character records.

Bonuses live at ``bonuses.<kind>.<name>.{roll,keep,total}`` where kind is
skill, trait or ring, e.g. ``bonuses.skill.kenjutsu.roll``. Missing or
malformed entries count as zero.
"""

from dataclasses import dataclass
from typing import Any, Dict

from ...core.paths import get_int


@dataclass(frozen=True)
class Bonus:
    roll: int = 0
    keep: int = 0
    total: int = 0

    def __add__(self, other: 'Bonus') -> 'Bonus':
        return Bonus(self.roll + other.roll, self.keep + other.keep, self.total + other.total)


NO_BONUS = Bonus()


def _read(data: Dict[str, Any], kind: str, name: str) -> Bonus:
    if not name:
        return NO_BONUS
    prefix = f"bonuses.{kind}.{str(name).lower()}"
    return Bonus(
        roll=get_int(data, f"{prefix}.roll"),
        keep=get_int(data, f"{prefix}.keep"),
        total=get_int(data, f"{prefix}.total")
    )


def skill_bonus(data: Dict[str, Any], skill: str) -> Bonus:
    return _read(data, 'skill', skill)


def trait_bonus(data: Dict[str, Any], trait: str) -> Bonus:
    return _read(data, 'trait', trait)


def ring_bonus(data: Dict[str, Any], ring: str) -> Bonus:
    return _read(data, 'ring', ring)


def skill_and_trait_bonus(data: Dict[str, Any], skill: str, trait: str) -> Bonus:
    """Skill rolls get both the skill's and the governing trait's bonuses."""
    return skill_bonus(data, skill) + trait_bonus(data, trait)
