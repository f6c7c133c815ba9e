"""
Pointer and keyboard interaction.

The controller is a small state machine (idle, dragging points, box
selecting) that turns pointer and key events into session operations.
Events are processed one at a time, to completion.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from gettext import gettext as _
from typing import Callable, Optional, Tuple

from .events import EventType, SessionEvent
from .session import PointMappingSession
from .state import Point
from .utils import normalize_rect

logger = logging.getLogger(__name__)

# Minimum cursor travel, in display units, before a press becomes a drag
DRAG_THRESHOLD = 3.0

LEFT_BUTTON = 0
RIGHT_BUTTON = 2

CONTEXT_ACTIONS = ("edit", "duplicate", "delete")


class InteractionMode(Enum):
    IDLE = "idle"
    DRAGGING_POINTS = "dragging_points"
    BOX_SELECTING = "box_selecting"


class PointerKind(Enum):
    DOWN = "down"
    MOVE = "move"
    UP = "up"
    LEAVE = "leave"
    CLICK = "click"
    CONTEXT = "context"


@dataclass
class PointerEvent:
    """Pointer event in display-surface coordinates."""

    kind: PointerKind
    x: float
    y: float
    button: int = LEFT_BUTTON
    ctrl: bool = False
    meta: bool = False
    shift: bool = False

    @property
    def command(self) -> bool:
        """Ctrl on most platforms, Cmd on macOS."""
        return self.ctrl or self.meta


@dataclass
class KeyEvent:
    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False

    @property
    def command(self) -> bool:
        return self.ctrl or self.meta


@dataclass
class SelectionBox:
    start_x: float
    start_y: float
    end_x: float
    end_y: float

    @property
    def rect(self) -> Tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y)"""
        return normalize_rect((self.start_x, self.start_y), (self.end_x, self.end_y))


@dataclass
class ContextMenu:
    """Actions offered for one point. Nothing changes until one is chosen."""

    point: Point
    x: float
    y: float
    actions: Tuple[str, ...] = CONTEXT_ACTIONS


class InteractionController:
    """
    Drives click, drag, range-select and box-select against a session.

    Browsers and GUI toolkits report ``down``, ``move``... ``up`` and then
    ``click`` for a plain press; the click following a real drag (cursor
    travel of at least ``drag_threshold``) is ignored.
    """

    def __init__(
        self,
        session: PointMappingSession,
        drag_threshold: float = DRAG_THRESHOLD,
        export_handler: Optional[Callable[[], object]] = None,
    ):
        self.session = session
        self.drag_threshold = drag_threshold
        self.export_handler = export_handler

        self.mode = InteractionMode.IDLE
        self.box: Optional[SelectionBox] = None
        self.context_menu: Optional[ContextMenu] = None
        self.pending_click: Optional[Tuple[float, float]] = None
        self.editing_point: Optional[Point] = None
        self.drag_offset: Tuple[float, float] = (0.0, 0.0)

        self._down_pos: Optional[Tuple[float, float]] = None
        self._last_pos: Optional[Tuple[float, float]] = None
        self._dragged = False
        self._suppress_click = False

    @property
    def is_idle(self) -> bool:
        return self.mode is InteractionMode.IDLE

    def handle(self, event: PointerEvent):
        """Dispatch a pointer event."""
        handlers = {
            PointerKind.DOWN: self.pointer_down,
            PointerKind.MOVE: self.pointer_move,
            PointerKind.UP: self.pointer_up,
            PointerKind.LEAVE: self.pointer_up,
            PointerKind.CLICK: self.click,
            PointerKind.CONTEXT: self.context_click,
        }
        return handlers[event.kind](event)

    # Pointer

    def pointer_down(self, event: PointerEvent):
        if not self.session.is_loaded or event.button != LEFT_BUTTON:
            return
        self._down_pos = (event.x, event.y)
        self._last_pos = (event.x, event.y)
        self._dragged = False
        self._suppress_click = False

        point = self.session.hit_test(event.x, event.y)
        if point is not None and point in self.session.selection:
            self.mode = InteractionMode.DRAGGING_POINTS
            self.drag_offset = (event.x - point.x, event.y - point.y)
        elif point is None and not (event.command or event.shift):
            self.mode = InteractionMode.BOX_SELECTING
            self.box = SelectionBox(event.x, event.y, event.x, event.y)
            self.session.deselect_all()

    def pointer_move(self, event: PointerEvent):
        if self.mode is InteractionMode.DRAGGING_POINTS:
            if not self._dragged:
                if self._travel(event) < self.drag_threshold:
                    return
                self._dragged = True
            last_x, last_y = self._last_pos
            self.session.move_selected(event.x - last_x, event.y - last_y, snap=False)
            self._last_pos = (event.x, event.y)
        elif self.mode is InteractionMode.BOX_SELECTING:
            self.box.end_x = event.x
            self.box.end_y = event.y
            if self._travel(event) >= self.drag_threshold:
                self._dragged = True
            self.session.select_box(
                (self.box.start_x, self.box.start_y), (self.box.end_x, self.box.end_y)
            )
        elif self.session.is_loaded:
            self._last_pos = (event.x, event.y)

    def pointer_up(self, event: Optional[PointerEvent] = None):
        if self.mode is InteractionMode.DRAGGING_POINTS and self._dragged:
            self.session.snap_selected()
            count = len(self.session.selection)
            if count:
                self.session.commit(_("Move {count} point(s)").format(count=count))
        self._suppress_click = self._dragged
        self.mode = InteractionMode.IDLE
        self.box = None
        self._dragged = False
        self._down_pos = None

    def click(self, event: PointerEvent):
        if not self.session.is_loaded:
            return
        if self._suppress_click:
            self._suppress_click = False
            return
        self.context_menu = None
        session = self.session
        point = session.hit_test(event.x, event.y)

        if event.command:
            if point is not None:
                session.toggle_selected(point)
        elif event.shift and len(session.selection) > 0:
            session.select_range(event.x, event.y)
        elif point is not None:
            session.select_only(point)
        else:
            session.deselect_all()
            self.request_add(event.x, event.y)

    def context_click(self, event: PointerEvent) -> Optional[ContextMenu]:
        if not self.session.is_loaded:
            return None
        point = self.session.hit_test(event.x, event.y)
        if point is None:
            self.context_menu = None
            return None
        if self.session.selection.keys != [point.key]:
            self.session.select_only(point)
        self.context_menu = ContextMenu(point, event.x, event.y)
        self.session.events.emit(
            SessionEvent(
                EventType.CONTEXT_MENU,
                {"point_id": point.point_id, "x": event.x, "y": event.y},
            )
        )
        return self.context_menu

    def choose(self, action: str):
        """
        Run a context menu action on its point.

        ``edit`` only opens the edit flow and returns the prefilled
        (prefix, id); ``duplicate`` returns the new point; ``delete``
        returns whether the point was deleted.
        """
        menu = self.context_menu
        self.context_menu = None
        if menu is None:
            return None
        if action not in menu.actions:
            raise ValueError(f"Unknown context menu action: {action}")
        if action == "edit":
            return self.begin_edit(menu.point)
        if action == "duplicate":
            return self.session.duplicate_point(menu.point)
        return self.session.delete_point(menu.point)

    def dismiss_context_menu(self):
        self.context_menu = None

    # Add and edit flows

    def request_add(self, x: float, y: float):
        self.pending_click = (x, y)
        prefix, suggested = self.session.suggest_id()
        self.session.events.emit(
            SessionEvent(
                EventType.ADD_REQUESTED,
                {"x": x, "y": y, "prefix": prefix, "point_id": suggested},
            )
        )

    def suggest(self, prefix: Optional[str] = None) -> Tuple[str, str]:
        return self.session.suggest_id(prefix)

    def confirm_add(self, prefix: str, raw_id: str) -> Optional[Point]:
        """
        Create the pending point.

        The pending location is kept when validation fails, so the user
        can correct the ID and try again.
        """
        if self.pending_click is None:
            return None
        x, y = self.pending_click
        point = self.session.add_point(prefix, raw_id, x, y)
        self.pending_click = None
        return point

    def cancel_add(self):
        self.pending_click = None

    def begin_edit(self, point: Point) -> Tuple[str, str]:
        self.editing_point = point
        return point.namespace, point.suffix

    def confirm_edit(self, prefix: str, raw_id: str) -> Optional[Point]:
        if self.editing_point is None:
            return None
        point = self.session.rename_point(self.editing_point, prefix, raw_id)
        self.editing_point = None
        return point

    def cancel_edit(self):
        self.editing_point = None

    # Keyboard

    def handle_key(self, event: KeyEvent) -> Optional[str]:
        """
        Apply a keyboard shortcut.

        Returns:
            Name of the action performed, None if the key was ignored
        """
        key = event.key.lower() if len(event.key) == 1 else event.key
        if key == "Escape":
            self.cancel_add()
            self.cancel_edit()
            self.dismiss_context_menu()
            self.session.deselect_all()
            return "escape"
        if not self.session.settings.enable_shortcuts:
            return None
        if key in ("Delete", "Backspace"):
            self.session.delete_selected()
            return "delete"
        if not event.command:
            return None
        if key == "z":
            return self.redo() if event.shift else self.undo()
        if key == "y":
            return self.redo()
        if key == "a":
            self.session.select_all()
            return "select_all"
        if key == "s":
            if not len(self.session.store):
                return None
            handler = self.export_handler or self.session.export_csv
            handler()
            return "export"
        return None

    def undo(self) -> Optional[str]:
        if not self.is_idle:
            logger.debug("Undo refused while %s", self.mode.value)
            return None
        return "undo" if self.session.undo() is not None else None

    def redo(self) -> Optional[str]:
        if not self.is_idle:
            logger.debug("Redo refused while %s", self.mode.value)
            return None
        return "redo" if self.session.redo() is not None else None

    def _travel(self, event: PointerEvent) -> float:
        if self._down_pos is None:
            return 0.0
        return math.hypot(event.x - self._down_pos[0], event.y - self._down_pos[1])
