"""
Attack target resolution.

An attack with no TN of its own is rolled against the target's armor TN,
read from ``defense.armor_tn`` on the target's record.
"""

from dataclasses import dataclass
from typing import Optional

from ...core.paths import get_int

ARMOR_TN_PATH = 'defense.armor_tn'
WOUND_PENALTY_PATH = 'defense.wound_penalty'


@dataclass(frozen=True)
class TargetInfo:
    """Automatic TN for a roll and the label suffix naming the target."""
    auto_tn: int = 0
    label: str = ""


NO_TARGET_INFO = TargetInfo()


def resolve_target(engine, target_id: Optional[str], roll_type: Optional[str]) -> TargetInfo:
    """
    Look up the armor TN of an attack's target.

    Only attack rolls use a target. Unknown targets and targets without a
    positive armor TN give no automatic TN.
    """
    if roll_type != 'attack' or not target_id:
        return NO_TARGET_INFO

    target = engine.get_character(target_id)
    if target is None:
        return NO_TARGET_INFO

    armor_tn = get_int(target.data, ARMOR_TN_PATH)
    if armor_tn <= 0:
        return NO_TARGET_INFO
    return TargetInfo(auto_tn=armor_tn, label=f" vs {target.name}")
