"""
Core point mapping module - UI-agnostic point annotation logic.

This module provides the point store, selection, history and interaction
state machine that can be used with any UI framework (OpenCV, Web, CLI).
"""

from ..errors import (
    ConfirmationDeclined,
    DuplicateIdError,
    PersistenceError,
    PointMapperError,
    ValidationError,
)
from .events import EventEmitter, EventType, SessionEvent
from .history import HistoryEntry, HistoryStack
from .interaction import (
    ContextMenu,
    InteractionController,
    InteractionMode,
    KeyEvent,
    PointerEvent,
    PointerKind,
)
from .selection import SelectionModel
from .session import PointMappingSession
from .state import Point, PointStore, PrefixRegistry

__all__ = [
    "PointMappingSession",
    "SessionEvent",
    "EventType",
    "EventEmitter",
    "Point",
    "PointStore",
    "PrefixRegistry",
    "SelectionModel",
    "HistoryEntry",
    "HistoryStack",
    "InteractionController",
    "InteractionMode",
    "PointerEvent",
    "PointerKind",
    "KeyEvent",
    "ContextMenu",
    "PointMapperError",
    "ValidationError",
    "DuplicateIdError",
    "ConfirmationDeclined",
    "PersistenceError",
]
