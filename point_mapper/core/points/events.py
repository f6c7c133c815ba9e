"""
Event system for the point mapping workflow.

Provides a decoupled way for the core to notify the rendering and
notification collaborators about state changes without depending on a
specific UI framework.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events that can occur during point mapping."""

    # Image events
    IMAGE_LOADED = "image_loaded"

    # Point events
    POINT_ADDED = "point_added"
    POINT_UPDATED = "point_updated"
    POINT_DUPLICATED = "point_duplicated"
    POINTS_DELETED = "points_deleted"
    POINTS_MOVED = "points_moved"
    POINTS_CLEARED = "points_cleared"

    # Prefix events
    PREFIX_ADDED = "prefix_added"
    PREFIX_REMOVED = "prefix_removed"

    # Selection events
    SELECTION_CHANGED = "selection_changed"
    FILTER_CHANGED = "filter_changed"

    # History events
    HISTORY_CHANGED = "history_changed"
    STATE_RESTORED = "state_restored"

    # Interaction events
    ADD_REQUESTED = "add_requested"
    CONTEXT_MENU = "context_menu"

    # Output events
    EXPORTED = "exported"
    SETTINGS_CHANGED = "settings_changed"


@dataclass
class SessionEvent:
    """Event that occurs during a point mapping session."""

    event_type: EventType
    data: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.data is None:
            self.data = {}


class EventEmitter:
    """
    Simple event emitter for pub/sub pattern.

    Allows components to subscribe to events without tight coupling.
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[Callable]] = {}

    def on(self, event_type: EventType, callback: Callable[[SessionEvent], None]):
        """Subscribe to an event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(callback)

    def on_any(self, callback: Callable[[SessionEvent], None]):
        """Subscribe to every event type."""
        for event_type in EventType:
            self.on(event_type, callback)

    def off(self, event_type: EventType, callback: Callable[[SessionEvent], None]):
        """Unsubscribe from an event type."""
        if event_type in self._listeners and callback in self._listeners[event_type]:
            self._listeners[event_type].remove(callback)

    def emit(self, event: SessionEvent):
        """Emit an event to all subscribers."""
        for callback in list(self._listeners.get(event.event_type, [])):
            try:
                callback(event)
            except Exception:
                # Listener failures never break the core
                logger.exception("Error in event listener for %s", event.event_type.value)

    def clear(self):
        """Clear all event listeners."""
        self._listeners.clear()
