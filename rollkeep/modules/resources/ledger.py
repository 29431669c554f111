"""
Resource ledger: consumable points that grant a dice-pool bonus when spent.

The protocol is two pure functions, validate() and spend(), over a
ResourcePool value. Record-bound ledgers apply them to a counter inside a
character record and write the result back with a compare-and-swap on the
record version.

A spend is a commitment made before the roll. Nothing here restores a point
when a later step (rolling, delivering the result) fails.
"""

import copy
import logging
from dataclasses import dataclass, replace
from typing import Optional, Tuple

from ...core.models import Event
from ...core.paths import get_int, set_by_path
from ...core.result import Result, ErrorCode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Grant:
    """Dice added to a pool by spending one point."""
    roll: int = 0
    keep: int = 0

    def to_dict(self):
        return {'roll': self.roll, 'keep': self.keep}


@dataclass(frozen=True)
class ResourcePool:
    """
    A named consumable counter and what one unit of it grants.

    Attributes:
        name: Display name used in messages ("Void Points")
        current: Points left
        grants_roll: Rolled dice granted per point
        grants_keep: Kept dice granted per point
    """
    name: str
    current: int
    grants_roll: int = 0
    grants_keep: int = 0

    @property
    def grant(self) -> Grant:
        return Grant(self.grants_roll, self.grants_keep)


@dataclass(frozen=True)
class Validation:
    """Outcome of validate(): ok, or the reason a spend would be refused."""
    ok: bool
    reason: Optional[ErrorCode] = None
    message: Optional[str] = None

    def to_result(self) -> Result:
        if self.ok:
            return Result.ok()
        return Result.fail(self.message, self.reason)


@dataclass(frozen=True)
class SpendReceipt:
    """
    Proof of a committed spend.

    Attributes:
        pool: The pool after spending
        grant: Dice to fold into the roll
        path: Record path that was decremented (record-bound ledgers only)
        label: Presentation suffix, e.g. " [Fire Slot]"
    """
    pool: ResourcePool
    grant: Grant
    path: Optional[str] = None
    label: str = ""


def validate(pool: ResourcePool) -> Validation:
    """
    Check that a pool has a point to spend.

    Examples:
        >>> validate(ResourcePool('Void Points', 0)).message
        'Void Points: 0'
    """
    if pool.current <= 0:
        return Validation(
            ok=False,
            reason=ErrorCode.INSUFFICIENT_RESOURCE,
            message=f"{pool.name}: 0"
        )
    return Validation(ok=True)


def spend(pool: ResourcePool) -> Result:
    """
    Spend one point.

    Returns:
        Result with a SpendReceipt holding the decremented pool and its grant,
        or INSUFFICIENT_RESOURCE with the pool untouched
    """
    validation = validate(pool)
    if not validation.ok:
        return validation.to_result()

    return Result.ok(SpendReceipt(
        pool=replace(pool, current=pool.current - 1),
        grant=pool.grant
    ))


class ResourceLedger:
    """
    Spends points stored inside character records.

    Subclasses decide where a counter lives and what it grants; the read,
    validate, decrement and versioned write are shared in _spend_at().

    Attributes:
        engine: RecordEngine holding the characters
        max_attempts: Compare-and-swap attempts before giving up
    """

    max_attempts = 5

    def __init__(self, engine):
        self.engine = engine

    def _read_pool(self, character_id: str, path: str, name: str,
                   grant: Grant) -> Result:
        found = self.engine.require_character(character_id)
        if not found.success:
            return found
        character = found.data
        pool = ResourcePool(name, get_int(character.data, path), grant.roll, grant.keep)
        return Result.ok((character, pool))

    def _check_at(self, character_id: str, path: str, name: str) -> Validation:
        read = self._read_pool(character_id, path, name, Grant())
        if not read.success:
            return Validation(ok=False, reason=ErrorCode(read.error_code), message=read.error)
        _, pool = read.data
        return validate(pool)

    def _spend_at(self, character_id: str, path: str, name: str, grant: Grant,
                  label: str = "", actor_id: Optional[str] = None) -> Result:
        """
        Spend one point stored at ``path`` in a character record.

        Each attempt re-reads the record and re-validates, so a point taken
        by a concurrent writer is never spent twice.

        Returns:
            Result with a SpendReceipt, or INSUFFICIENT_RESOURCE,
            CHARACTER_NOT_FOUND, CONCURRENT_MODIFICATION when attempts run out
        """
        for attempt in range(1, self.max_attempts + 1):
            read = self._read_pool(character_id, path, name, grant)
            if not read.success:
                return read
            character, pool = read.data

            result = spend(pool)
            if not result.success:
                logger.info(f"Spend refused for {character_id} at {path}: {result.error}")
                return result
            receipt = result.data

            data = copy.deepcopy(character.data)
            set_by_path(data, path, receipt.pool.current)

            write = self.engine.compare_and_swap(character_id, character.version, data)
            if write.success:
                self._publish_spent(character_id, actor_id, path, pool, receipt)
                logger.info(
                    f"{character_id} spent {name} ({pool.current} -> {receipt.pool.current})"
                )
                return Result.ok(replace(receipt, path=path, label=label))

            if not write.is_error(ErrorCode.CONCURRENT_MODIFICATION):
                return write

            logger.debug(f"Spend at {path} for {character_id} lost a race (attempt {attempt})")

        return Result.fail(
            f"Could not spend {name} for {character_id}: record kept changing",
            ErrorCode.CONCURRENT_MODIFICATION
        )

    def _publish_spent(self, character_id: str, actor_id: Optional[str], path: str,
                       before: ResourcePool, receipt: SpendReceipt) -> None:
        self.engine.event_bus.publish(Event.create(
            event_type='resource.spent',
            data={
                'resource': before.name,
                'path': path,
                'before': before.current,
                'after': receipt.pool.current,
                'grant': receipt.grant.to_dict()
            },
            character_id=character_id,
            actor_id=actor_id or character_id
        ))


class VoidPointLedger(ResourceLedger):
    """The single universal void point counter; each point grants +1k1."""

    PATH = 'void_points.current'
    NAME = 'Void Points'
    GRANT = Grant(roll=1, keep=1)

    def check(self, character_id: str) -> Validation:
        return self._check_at(character_id, self.PATH, self.NAME)

    def spend(self, character_id: str, actor_id: Optional[str] = None) -> Result:
        """Spend one void point. Returns Result with a SpendReceipt granting 1k1."""
        return self._spend_at(character_id, self.PATH, self.NAME, self.GRANT,
                              label=" Void!", actor_id=actor_id)


VALID_RINGS = ('water', 'air', 'fire', 'earth', 'void')


class SpellSlotLedger(ResourceLedger):
    """
    Per-ring spell slots at ``spell_slots.<ring>``.

    Slots gate casting rather than adding dice, so spending one grants 0k0.
    The void slot is a separate counter at ``spell_slots.void``.
    """

    ROOT = 'spell_slots'
    GRANT = Grant()

    @classmethod
    def path_for(cls, ring: str) -> Result:
        """Resolve a ring name to its counter path (INVALID_INPUT for unknown rings)."""
        ring_key = str(ring).lower()
        if ring_key not in VALID_RINGS:
            return Result.fail(
                f"Invalid ring for spell slot: '{ring}'. Must be one of: {', '.join(VALID_RINGS)}",
                ErrorCode.INVALID_INPUT
            )
        return Result.ok(f"{cls.ROOT}.{ring_key}")

    @staticmethod
    def _names(ring_key: str) -> Tuple[str, str]:
        if ring_key == 'void':
            return 'Void Slot', ' [Void Slot]'
        title = ring_key.title()
        return f'{title} Slot', f' [{title} Slot]'

    def check(self, character_id: str, ring: str) -> Validation:
        path = self.path_for(ring)
        if not path.success:
            return Validation(ok=False, reason=ErrorCode.INVALID_INPUT, message=path.error)
        name, _ = self._names(str(ring).lower())
        return self._check_at(character_id, path.data, name)

    def spend(self, character_id: str, ring: str, actor_id: Optional[str] = None) -> Result:
        """Spend one elemental slot of the given ring."""
        path = self.path_for(ring)
        if not path.success:
            return path
        name, label = self._names(str(ring).lower())
        return self._spend_at(character_id, path.data, name, self.GRANT,
                              label=label, actor_id=actor_id)

    def spend_void_slot(self, character_id: str, actor_id: Optional[str] = None) -> Result:
        """Spend the void spell slot."""
        return self.spend(character_id, 'void', actor_id=actor_id)


__all__ = [
    'Grant',
    'ResourcePool',
    'Validation',
    'SpendReceipt',
    'validate',
    'spend',
    'ResourceLedger',
    'VoidPointLedger',
    'SpellSlotLedger',
    'VALID_RINGS',
]
