"""
Target number and raise evaluation.

A roll succeeds when its total meets or beats the effective TN. Raises
declared before the roll are priced into the TN (five points each); raises
achieved count the margin beyond that, again in steps of five.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

RAISE_STEP = 5


@dataclass(frozen=True)
class TargetNumber:
    """
    A target number and what modifies it.

    Attributes:
        base: Base TN set by the situation (or the target's armor TN)
        raises: Raises declared before rolling
        wound_penalty: Current wound penalty of the roller
        apply_penalty: Whether the wound penalty counts for this roll
    """
    base: int
    raises: int = 0
    wound_penalty: int = 0
    apply_penalty: bool = True

    @property
    def effective(self) -> int:
        """Effective TN; not clamped, so it can be negative."""
        penalty = self.wound_penalty if self.apply_penalty else 0
        return self.base + self.raises * RAISE_STEP - penalty


@dataclass(frozen=True)
class NoTarget:
    """No TN supplied; the roll is informational."""

    def to_dict(self) -> Dict[str, Any]:
        return {'outcome': 'no_target'}


@dataclass(frozen=True)
class Success:
    """Total met the effective TN, clearing it by ``raises_achieved`` raises."""
    raises_achieved: int

    def to_dict(self) -> Dict[str, Any]:
        return {'outcome': 'success', 'raises_achieved': self.raises_achieved}


@dataclass(frozen=True)
class Failure:
    """Total fell short of the effective TN."""

    def to_dict(self) -> Dict[str, Any]:
        return {'outcome': 'failure'}


Outcome = Union[NoTarget, Success, Failure]


def evaluate(total: int, tn: Optional[TargetNumber]) -> Outcome:
    """
    Classify a rolled total against a target number.

    Examples:
        >>> evaluate(15, TargetNumber(base=10))
        Success(raises_achieved=1)
        >>> evaluate(9, TargetNumber(base=10))
        Failure()
        >>> evaluate(9, None)
        NoTarget()
    """
    if tn is None:
        return NoTarget()

    effective = tn.effective
    if total < effective:
        return Failure()
    return Success(raises_achieved=(total - effective) // RAISE_STEP)


def build_tn_label(effective_tn: int, raises: int = 0,
                   raises_label: str = "Raises") -> str:
    """
    Describe the TN of a roll, e.g. ``" [TN 25 (Raises: 2)]"``.

    Returns an empty string when there is no positive TN to show.
    """
    if effective_tn <= 0:
        return ""
    raise_part = f" ({raises_label}: {raises})" if raises else ""
    return f" [TN {effective_tn}{raise_part}]"


def outcome_label(outcome: Outcome, roll_type: Optional[str] = None) -> Optional[str]:
    """
    Presentation label for an outcome.

    Failed attack rolls read "Missed"; everything else uses the plain
    outcome name. Informational rolls have no label.
    """
    if isinstance(outcome, Success):
        return "Success"
    if isinstance(outcome, Failure):
        return "Missed" if roll_type == "attack" else "Failure"
    return None


__all__ = [
    'RAISE_STEP',
    'TargetNumber',
    'NoTarget',
    'Success',
    'Failure',
    'Outcome',
    'evaluate',
    'build_tn_label',
    'outcome_label',
]
