"""
Initiative expressions.

Initiative pools are stored on the record at ``initiative.roll`` /
``initiative.keep`` with a flat ``initiative.total_mod``. NPCs may carry
effective values (``eff_roll`` / ``eff_keep``) that replace the base ones when
positive. The pool goes through the same normalize() as every other roll.
"""

from typing import Any, Dict, Optional

from ...core.paths import get_int
from .expression import Expression, RollFlags, build_expression
from .pool import NormalizationRules, NormalizedRoll, ensure_minimum_pool, normalize


def initiative_pool(data: Dict[str, Any]) -> Dict[str, int]:
    """Raw (roll, keep, bonus) for a record, before normalization."""
    roll = get_int(data, 'initiative.roll')
    keep = get_int(data, 'initiative.keep')

    if data.get('type') == 'npc':
        eff_roll = get_int(data, 'initiative.eff_roll')
        eff_keep = get_int(data, 'initiative.eff_keep')
        if eff_roll > 0:
            roll = eff_roll
        if eff_keep > 0:
            keep = eff_keep

    return {'roll': roll, 'keep': keep, 'bonus': get_int(data, 'initiative.total_mod')}


def normalized_initiative(data: Dict[str, Any],
                          rules: Optional[NormalizationRules] = None) -> NormalizedRoll:
    raw = initiative_pool(data)
    roll, keep = ensure_minimum_pool(raw['roll'], raw['keep'])
    return normalize(roll, keep, raw['bonus'], rules)


def initiative_expression(data: Dict[str, Any],
                          rules: Optional[NormalizationRules] = None) -> Expression:
    """
    Build the initiative expression for a record, e.g. ``6d10k3x10+2``.

    Records without initiative values roll 1k1.
    """
    normalized = normalized_initiative(data, rules)
    return build_expression(normalized.pool, normalized.bonus, RollFlags())
