"""
Event bus for rollkeep.

Publishes roll and resource events. Every event is logged to storage before
any listener sees it.
"""

import logging
from typing import Callable, Dict, List, Optional

from .models import Event
from .storage import RecordStorage

logger = logging.getLogger(__name__)


class EventBus:
    """
    Pub/sub for events, keyed by event type.

    Attributes:
        storage: RecordStorage for the audit log
        listeners: Dict mapping event types to lists of callback functions
    """

    def __init__(self, storage: RecordStorage):
        self.storage = storage
        self.listeners: Dict[str, List[Callable[[Event], None]]] = {}

    def subscribe(self, event_type: str, callback: Callable[[Event], None]) -> None:
        """
        Subscribe to events of a specific type.

        Args:
            event_type: Type of event to listen for (e.g., 'roll.completed')
            callback: Function to call with the Event
        """
        callbacks = self.listeners.setdefault(event_type, [])
        if callback not in callbacks:
            callbacks.append(callback)

    def unsubscribe(self, event_type: str, callback: Callable[[Event], None]) -> None:
        """Remove a callback; unknown callbacks are ignored."""
        if callback in self.listeners.get(event_type, []):
            self.listeners[event_type].remove(callback)

    def publish(self, event: Event) -> None:
        """
        Log an event to storage, then notify its listeners.

        A failing listener is logged and does not stop the others.

        Examples:
            >>> bus.publish(Event.create('resource.spent',
            ...     {'path': 'void_points.current', 'before': 2, 'after': 1},
            ...     character_id='char_123'))
        """
        self.storage.log_event(event)

        for callback in list(self.listeners.get(event.event_type, [])):
            try:
                callback(event)
            except Exception:
                logger.exception(f"Error in listener for '{event.event_type}'")

    def clear_listeners(self, event_type: Optional[str] = None) -> None:
        """Clear listeners for one event type, or all of them."""
        if event_type:
            self.listeners.pop(event_type, None)
        else:
            self.listeners = {}

    def get_listener_count(self, event_type: Optional[str] = None) -> int:
        """Number of listeners for an event type, or in total."""
        if event_type:
            return len(self.listeners.get(event_type, []))
        return sum(len(callbacks) for callbacks in self.listeners.values())
