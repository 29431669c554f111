"""
Roll requests and dice-pool assembly.

A roll is one of four kinds:

- TraitRoll: trait rank rolled and kept (``Agility 3`` -> 3k3)
- SkillRoll: trait + skill rolled, trait kept (Agility 3, Kenjutsu 2 -> 5k3)
- RingRoll: ring rank rolled and kept, optionally spending spell slots
- PoolRoll: an explicit pool, e.g. weapon damage or an NPC attack

assemble_pool() is the one place that turns any of them into a pool.
"""

from dataclasses import dataclass, field, fields, replace
from typing import Any, ClassVar, Dict, Optional, Union

from ...core.paths import get_int
from .bonuses import Bonus, ring_bonus, skill_and_trait_bonus, trait_bonus
from .expression import RollFlags, build_modifier_label

RINGS = ('earth', 'water', 'fire', 'air', 'void')


@dataclass(frozen=True)
class RollOptions:
    """
    Situational choices shared by every kind of roll.

    Attributes:
        roll_mod / keep_mod / total_mod: Situational modifiers
        tn: Base target number (0 for none)
        raises: Raises declared
        apply_wound_penalty: Whether the roller's wound penalty lowers the TN
        spend_void: Spend a void point for +1k1
        emphasis: Reroll ones
        unskilled: Tens do not explode
        roll_type: 'attack', 'damage', ... ; attacks may take an automatic TN
        target_id: Character being attacked
    """
    roll_mod: int = 0
    keep_mod: int = 0
    total_mod: int = 0
    tn: int = 0
    raises: int = 0
    apply_wound_penalty: bool = True
    spend_void: bool = False
    emphasis: bool = False
    unskilled: bool = False
    roll_type: Optional[str] = None
    target_id: Optional[str] = None

    @property
    def flags(self) -> RollFlags:
        return RollFlags(suppress_exploding=self.unskilled, reroll_ones=self.emphasis)


@dataclass(frozen=True)
class TraitRoll:
    kind: ClassVar[str] = 'trait'
    trait: str
    rank: Optional[int] = None
    options: RollOptions = field(default_factory=RollOptions)


@dataclass(frozen=True)
class SkillRoll:
    kind: ClassVar[str] = 'skill'
    skill: str
    trait: str
    skill_rank: Optional[int] = None
    trait_rank: Optional[int] = None
    options: RollOptions = field(default_factory=RollOptions)


@dataclass(frozen=True)
class RingRoll:
    kind: ClassVar[str] = 'ring'
    ring: str
    rank: Optional[int] = None
    spell_slot: bool = False
    void_slot: bool = False
    options: RollOptions = field(default_factory=RollOptions)


@dataclass(frozen=True)
class PoolRoll:
    """Explicit pool; each attack raise adds one rolled die."""
    kind: ClassVar[str] = 'pool'
    roll_dice: int
    keep_dice: int
    name: str = ''
    attack_raises: int = 0
    options: RollOptions = field(default_factory=RollOptions)


RollRequest = Union[TraitRoll, SkillRoll, RingRoll, PoolRoll]


@dataclass(frozen=True)
class AssembledPool:
    """
    A pool before normalization, split into base dice and modifiers.

    Attributes:
        base_roll / base_keep: Dice from ranks (or the explicit pool)
        roll_mod / keep_mod / total_mod: Everything added on top
        label: Description of the roll ("Skill Roll: Kenjutsu / Agility")
    """
    base_roll: int
    base_keep: int
    roll_mod: int
    keep_mod: int
    total_mod: int
    label: str

    @property
    def roll_dice(self) -> int:
        return self.base_roll + self.roll_mod

    @property
    def keep_dice(self) -> int:
        return self.base_keep + self.keep_mod

    def with_dice(self, roll: int, keep: int) -> 'AssembledPool':
        """Fold extra dice (e.g. a spend grant) into the modifiers."""
        return replace(self, roll_mod=self.roll_mod + roll, keep_mod=self.keep_mod + keep)

    def modifier_label(self) -> str:
        return build_modifier_label(self.roll_mod, self.keep_mod, self.total_mod)


def _rank(data: Dict[str, Any], explicit: Optional[int], path: str) -> int:
    if explicit is not None:
        return int(explicit)
    return get_int(data, path)


def trait_path(trait: str) -> str:
    """Void is a ring, every other trait lives under traits."""
    name = str(trait).lower()
    return 'rings.void' if name == 'void' else f'traits.{name}'


def assemble_pool(request: RollRequest, data: Optional[Dict[str, Any]] = None) -> AssembledPool:
    """
    Build the pre-normalization pool for a request.

    Ranks not given on the request are read from the record: ``traits.<name>``,
    ``skills.<name>``, ``rings.<name>``. Active-effect bonuses come from
    ``bonuses.*``. Explicit pools take no record bonuses.

    Raises:
        ValueError: If the request kind is unknown
    """
    data = data or {}

    if isinstance(request, TraitRoll):
        rank = _rank(data, request.rank, trait_path(request.trait))
        base_roll, base_keep = rank, rank
        bonus = trait_bonus(data, request.trait)
        label = f"Trait Roll: {request.trait.title()}"
    elif isinstance(request, SkillRoll):
        trait_rank = _rank(data, request.trait_rank, trait_path(request.trait))
        skill_rank = _rank(data, request.skill_rank, f"skills.{request.skill.lower()}")
        base_roll, base_keep = trait_rank + skill_rank, trait_rank
        bonus = skill_and_trait_bonus(data, request.skill, request.trait)
        label = f"Skill Roll: {request.skill.title()} / {request.trait.title()}"
    elif isinstance(request, RingRoll):
        rank = _rank(data, request.rank, f"rings.{request.ring.lower()}")
        base_roll, base_keep = rank, rank
        bonus = ring_bonus(data, request.ring)
        label = f"Ring Roll: {request.ring.title()}"
    elif isinstance(request, PoolRoll):
        base_roll, base_keep = request.roll_dice, request.keep_dice
        bonus = Bonus(roll=max(0, request.attack_raises))
        label = f"Weapon Roll: {request.name}" if request.name else "Roll"
    else:
        raise ValueError(f"Unknown roll request: {request!r}")

    options = request.options
    return AssembledPool(
        base_roll=base_roll,
        base_keep=base_keep,
        roll_mod=options.roll_mod + bonus.roll,
        keep_mod=options.keep_mod + bonus.keep,
        total_mod=options.total_mod + bonus.total,
        label=label
    )


# ========== Parsing from JSON payloads ==========

_OPTION_INTS = ('roll_mod', 'keep_mod', 'total_mod', 'tn', 'raises')
_OPTION_BOOLS = ('apply_wound_penalty', 'spend_void', 'emphasis', 'unskilled')


def _int(payload: Dict[str, Any], key: str, default: Optional[int] = 0) -> Optional[int]:
    value = payload.get(key, default)
    if value is None:
        return default
    if isinstance(value, bool):
        raise ValueError(f"'{key}' must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValueError(f"'{key}' must be an integer, got {value!r}")


def _flag(payload: Dict[str, Any], key: str, default: bool = False) -> bool:
    value = payload.get(key, default)
    if value is None:
        return default
    # "false" is truthy; a spend cannot be taken back
    if not isinstance(value, bool):
        raise ValueError(f"'{key}' must be true or false, got {value!r}")
    return value


def options_from_dict(payload: Dict[str, Any]) -> RollOptions:
    values: Dict[str, Any] = {key: _int(payload, key) for key in _OPTION_INTS}
    for key in _OPTION_BOOLS:
        if key in payload:
            values[key] = _flag(payload, key, getattr(RollOptions, key))
    values['roll_type'] = payload.get('roll_type')
    values['target_id'] = payload.get('target_id')

    if values['raises'] < 0 or values['tn'] < 0:
        raise ValueError("'tn' and 'raises' cannot be negative")
    return RollOptions(**values)


def _name(payload: Dict[str, Any], key: str) -> str:
    value = payload.get(key)
    if not value or not isinstance(value, str):
        raise ValueError(f"'{key}' is required")
    return value


def request_from_dict(payload: Dict[str, Any]) -> RollRequest:
    """
    Build a RollRequest from a JSON-style dict.

    Examples:
        {'kind': 'skill', 'skill': 'kenjutsu', 'trait': 'agility', 'tn': 15}
        {'kind': 'pool', 'roll_dice': 7, 'keep_dice': 2, 'roll_type': 'attack'}

    Raises:
        ValueError: If the payload is missing fields or has an unknown kind
    """
    if not isinstance(payload, dict):
        raise ValueError("Roll request must be an object")

    kind = payload.get('kind')
    options = options_from_dict(payload)

    if kind == 'trait':
        return TraitRoll(trait=_name(payload, 'trait'),
                         rank=_int(payload, 'rank', None), options=options)
    if kind == 'skill':
        return SkillRoll(skill=_name(payload, 'skill'), trait=_name(payload, 'trait'),
                         skill_rank=_int(payload, 'skill_rank', None),
                         trait_rank=_int(payload, 'trait_rank', None),
                         options=options)
    if kind == 'ring':
        ring = _name(payload, 'ring')
        if ring.lower() not in RINGS:
            raise ValueError(f"Unknown ring '{ring}'. Must be one of: {', '.join(RINGS)}")
        return RingRoll(ring=ring, rank=_int(payload, 'rank', None),
                        spell_slot=_flag(payload, 'spell_slot'),
                        void_slot=_flag(payload, 'void_slot'),
                        options=options)
    if kind == 'pool':
        return PoolRoll(roll_dice=_int(payload, 'roll_dice'),
                        keep_dice=_int(payload, 'keep_dice'),
                        name=payload.get('name') or '',
                        attack_raises=_int(payload, 'attack_raises'),
                        options=options)

    raise ValueError(f"Unknown roll kind '{kind}'. Must be one of: trait, skill, ring, pool")


def request_to_dict(request: RollRequest) -> Dict[str, Any]:
    """Inverse of request_from_dict, for event payloads."""
    payload: Dict[str, Any] = {'kind': request.kind}
    for f in fields(request):
        if f.name != 'options':
            payload[f.name] = getattr(request, f.name)
    for f in fields(RollOptions):
        payload[f.name] = getattr(request.options, f.name)
    return payload
