"""
Records the engine stores.

- Character: caller-owned nested data, versioned for compare-and-swap writes
- Event: immutable audit entry (a spend, a roll, a failed request)
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Dict, Any
import copy
import uuid


def generate_id(prefix: str) -> str:
    """'char' -> 'char_a1b2c3d4e5f6'"""
    return f"{prefix}_{uuid.uuid4().hex[:12]}"


def now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Character:
    """
    A character record.

    ``data`` is an opaque tree addressed by dotted paths
    (``void_points.current``, ``spell_slots.fire``). Its layout belongs to
    whoever owns the character; the engine only touches the paths a roll or
    a spend asks for. ``version`` starts at 1 and goes up by one per write.
    """
    id: str
    name: str
    data: Dict[str, Any]
    version: int
    created_at: datetime
    modified_at: datetime

    @staticmethod
    def create(name: str, data: Optional[Dict[str, Any]] = None,
               character_id: Optional[str] = None) -> 'Character':
        """New record at version 1; ``data`` is copied, not shared."""
        created = now()
        return Character(
            id=character_id or generate_id('char'),
            name=name,
            data=copy.deepcopy(data or {}),
            version=1,
            created_at=created,
            modified_at=created
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'data': self.data,
            'version': self.version,
            'created_at': self.created_at.isoformat(),
            'modified_at': self.modified_at.isoformat()
        }


@dataclass
class Event:
    """
    Something that happened, as written to the audit log.

    ``actor_id`` is whoever caused it; for rolls that is the rolling
    character unless a caller says otherwise.

    Examples:
        Event.create('resource.spent',
                      {'path': 'void_points.current', 'before': 2, 'after': 1},
                      character_id='akodo')
    """
    event_id: str
    timestamp: datetime
    event_type: str
    character_id: Optional[str]
    actor_id: Optional[str]
    data: Dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def create(event_type: str, data: Dict[str, Any],
               character_id: Optional[str] = None,
               actor_id: Optional[str] = None,
               event_id: Optional[str] = None) -> 'Event':
        return Event(
            event_id=event_id or generate_id('evt'),
            timestamp=now(),
            event_type=event_type,
            character_id=character_id,
            actor_id=actor_id,
            data=data
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'event_id': self.event_id,
            'timestamp': self.timestamp.isoformat(),
            'event_type': self.event_type,
            'character_id': self.character_id,
            'actor_id': self.actor_id,
            'data': self.data
        }
