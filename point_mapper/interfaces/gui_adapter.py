"""
OpenCV HighGUI adapter for a point mapping session.

Bridges PointMappingSession and InteractionController with an OpenCV
window: mouse callbacks become pointer events, key codes become key
events, and session events trigger a redraw.
"""

import logging
from gettext import gettext as _
from pathlib import Path
from typing import Callable, List, Optional

import cv2
import numpy as np

from ..core.errors import PointMapperError
from ..core.points import (
    EventType,
    InteractionController,
    KeyEvent,
    PointerEvent,
    PointerKind,
    PointMappingSession,
    SessionEvent,
)
from ..core.points.interaction import LEFT_BUTTON, RIGHT_BUTTON
from ..core.points.selection import FILTER_ALL
from .renderer import PointRenderer

logger = logging.getLogger(__name__)

ESCAPE = 27
TAB = 9
BACKSPACE = 8
ENTER = 13
NAMED_KEYS = {
    ESCAPE: "Escape",
    TAB: "Tab",
    BACKSPACE: "Backspace",
    0xFF08: "Backspace",
    ENTER: "Enter",
    10: "Enter",
}
# waitKeyEx codes for the Delete key (GTK, Qt, Win32)
DELETE_CODES = {0xFFFF, 0x2E0000, 0x0100_0007}

# GTK builds report the keyboard modifier state above the keysym
KEYSYM_MASK = 0xFFFF
SHIFT_STATE = 0x01 << 16
CONTROL_STATE = 0x04 << 16
MODIFIER_STATES = 0xFF << 16

# Ctrl+letter arrives as an ASCII control character on Win32
CONTROL_KEYS = {
    0x01: "a",
    0x13: "s",
    0x19: "y",
    0x1A: "z",
}


def pointer_events(event: int, x: int, y: int, flags: int) -> List[PointerEvent]:
    """
    Translate one ``cv2.setMouseCallback`` event into pointer events.

    A left button release is followed by a synthesized click, the way
    browsers and GUI toolkits report a plain press.
    """
    modifiers = dict(
        ctrl=bool(flags & cv2.EVENT_FLAG_CTRLKEY),
        shift=bool(flags & cv2.EVENT_FLAG_SHIFTKEY),
        meta=False,
    )
    if event == cv2.EVENT_LBUTTONDOWN:
        return [PointerEvent(PointerKind.DOWN, x, y, LEFT_BUTTON, **modifiers)]
    if event == cv2.EVENT_MOUSEMOVE:
        return [PointerEvent(PointerKind.MOVE, x, y, LEFT_BUTTON, **modifiers)]
    if event == cv2.EVENT_LBUTTONUP:
        return [
            PointerEvent(PointerKind.UP, x, y, LEFT_BUTTON, **modifiers),
            PointerEvent(PointerKind.CLICK, x, y, LEFT_BUTTON, **modifiers),
        ]
    if event == cv2.EVENT_RBUTTONDOWN:
        return [PointerEvent(PointerKind.CONTEXT, x, y, RIGHT_BUTTON, **modifiers)]
    return []


def key_event(code: int) -> Optional[KeyEvent]:
    """
    Translate a ``cv2.waitKeyEx`` code into a key event.

    Shift and Ctrl are read from the GTK modifier state when present, so
    Ctrl+Shift+Z redoes there. Win32 reports Ctrl+Shift+Z like Ctrl+Z;
    Ctrl+Y redoes on every backend.
    """
    if code < 0:
        return None
    keysym = code & KEYSYM_MASK
    if code in DELETE_CODES or keysym == 0xFFFF:
        return KeyEvent("Delete")
    if code & ~(KEYSYM_MASK | MODIFIER_STATES):
        return None
    ctrl = bool(code & CONTROL_STATE)
    shift = bool(code & SHIFT_STATE)
    if keysym in NAMED_KEYS:
        return KeyEvent(NAMED_KEYS[keysym], ctrl=ctrl, shift=shift)
    if keysym > 0xFF:
        return None
    if keysym in CONTROL_KEYS:
        return KeyEvent(CONTROL_KEYS[keysym], ctrl=True, shift=shift)
    char = chr(keysym)
    if char.isprintable():
        return KeyEvent(char, ctrl=ctrl, shift=shift or char.isupper())
    return None


def terminal_confirm(message: str) -> bool:
    answer = input(f"{message} [y/N] ")
    return answer.strip().lower() in ("y", "yes")


class GUIPointMappingAdapter:
    """
    Adapter connecting PointMappingSession to an OpenCV window.

    Keys handled here, on top of the controller shortcuts:
    ``Tab`` cycles the active prefix, ``f`` cycles the filter, ``d``
    duplicates and ``e`` renames the last selected point (or the point
    of an open context menu), ``p`` registers a prefix, ``s`` exports
    and ``q`` quits.
    """

    def __init__(
        self,
        session: PointMappingSession,
        image: np.ndarray,
        output: Optional[Path] = None,
        window_name: str = "point_mapper",
        prompt: Callable[[str], str] = input,
    ):
        """
        Initialize adapter.

        Args:
            session: Session with the image already loaded
            image: RGB image sized to the session display surface
            output: CSV file or directory the export is written to
            window_name: Title of the OpenCV window
            prompt: Reads one line of user input
        """
        self.session = session
        self.image = image
        self.output = output
        self.window_name = window_name
        self.prompt = prompt
        self.active_prefix = session.prefixes.default()
        self.running = False
        self._dirty = True

        self.controller = InteractionController(session, export_handler=self.export)
        self.renderer = PointRenderer(
            session, selection_box=lambda: self.controller.box.rect if self.controller.box else None
        )
        self._setup_event_handlers()

    def _setup_event_handlers(self):
        """Setup event handlers for session events."""
        self.session.events.on_any(self._on_any_event)
        self.session.events.on(EventType.ADD_REQUESTED, self._on_add_requested)
        self.session.events.on(EventType.CONTEXT_MENU, self._on_context_menu)

    def _on_any_event(self, event: SessionEvent):
        self._dirty = True

    def _on_add_requested(self, event: SessionEvent):
        """Create the point right away with the suggested ID."""
        prefix, suggested = self.controller.suggest(self.active_prefix)
        raw_id = suggested or self.prompt(_("Point ID for prefix {prefix!r}: ").format(prefix=prefix))
        if not raw_id.strip():
            self.controller.cancel_add()
            return
        try:
            point = self.controller.confirm_add(prefix, raw_id)
        except PointMapperError as e:
            logger.warning(str(e))
            self.controller.cancel_add()
            return
        if point is not None:
            logger.info(_("Added {point_id} at ({x}, {y})").format(
                point_id=point.point_id, x=point.x, y=point.y
            ))

    def _on_context_menu(self, event: SessionEvent):
        logger.info(
            _("{point_id}: [e]dit, [d]uplicate, [Delete] remove, [Esc] close").format(
                point_id=event.data["point_id"]
            )
        )

    # OpenCV callbacks

    def on_mouse(self, event, x, y, flags, param=None):
        for pointer_event in pointer_events(event, x, y, flags):
            try:
                self.controller.handle(pointer_event)
            except PointMapperError as e:
                logger.warning(str(e))

    def on_key(self, code: int) -> Optional[str]:
        """
        Apply a key press.

        Returns:
            Name of the action performed, None if the key was ignored
        """
        event = key_event(code)
        if event is None:
            return None
        try:
            return self._dispatch_key(event)
        except PointMapperError as e:
            logger.warning(str(e))
            return None

    def _dispatch_key(self, event: KeyEvent) -> Optional[str]:
        key = event.key.lower() if len(event.key) == 1 else event.key
        menu = self.controller.context_menu
        if menu is not None and key in ("Delete", "Backspace"):
            self.controller.choose("delete")
            return "delete"
        if event.command or (len(key) > 1 and key != "Tab"):
            return self.controller.handle_key(event)
        if key == "q":
            self.running = False
            return "quit"
        if key == "Tab":
            return self.cycle_prefix()
        if key == "f":
            return self.cycle_filter()
        if key == "p":
            return self.prompt_prefix()
        if key == "s":
            self.export()
            return "export"
        target = menu.point if menu is not None else self.session.last_selected()
        if target is None:
            return None
        if key == "d":
            if menu is not None:
                self.controller.choose("duplicate")
            else:
                self.session.duplicate_point(target)
            return "duplicate"
        if key == "e":
            return self.prompt_rename(target)
        return None

    # Actions

    def cycle_prefix(self) -> str:
        prefixes = [""] + self.session.prefixes.list_sorted()
        current = prefixes.index(self.active_prefix) if self.active_prefix in prefixes else 0
        self.active_prefix = prefixes[(current + 1) % len(prefixes)]
        logger.info(_("Active prefix: {prefix}").format(prefix=self.active_prefix or _("(none)")))
        self._dirty = True
        return "prefix"

    def cycle_filter(self) -> str:
        filters = [FILTER_ALL] + self.session.prefixes.list_sorted()
        current = self.session.selection.filter
        index = filters.index(current) if current in filters else 0
        self.session.set_filter(filters[(index + 1) % len(filters)])
        logger.info(_("Filter: {filter}").format(filter=self.session.selection.filter))
        return "filter"

    def prompt_prefix(self) -> Optional[str]:
        raw = self.prompt(_("New prefix: "))
        if not raw.strip():
            return None
        self.active_prefix = self.session.add_prefix(raw)
        return "add_prefix"

    def prompt_rename(self, point) -> Optional[str]:
        prefix, suffix = self.controller.begin_edit(point)
        answer = self.prompt(
            _("New ID for {point_id} (prefix {prefix!r}, empty to cancel): ").format(
                point_id=point.point_id, prefix=prefix
            )
        ).strip()
        if not answer:
            self.controller.cancel_edit()
            return None
        new_prefix, dash, new_suffix = answer.rpartition("-")
        if not dash:
            new_prefix, new_suffix = prefix, answer
        try:
            self.controller.confirm_edit(new_prefix, new_suffix)
        finally:
            self.controller.cancel_edit()
        return "rename"

    def export(self) -> Path:
        path = self.session.write_csv(self.output)
        print(_("Saved {path}").format(path=path.resolve()))
        return path

    # Main loop

    def visualization(self) -> np.ndarray:
        return self.renderer.render(self.image)

    def run(self):
        """Show the window until ``q`` is pressed or the window is closed."""
        cv2.namedWindow(self.window_name, cv2.WINDOW_AUTOSIZE)
        cv2.setMouseCallback(self.window_name, self.on_mouse)
        self.running = True
        frame = None
        try:
            while self.running:
                if self._dirty or frame is None:
                    frame = cv2.cvtColor(self.visualization(), cv2.COLOR_RGB2BGR)
                    self._dirty = False
                cv2.imshow(self.window_name, frame)
                self.on_key(cv2.waitKeyEx(20))
                if cv2.getWindowProperty(self.window_name, cv2.WND_PROP_VISIBLE) < 1:
                    break
        finally:
            cv2.destroyWindow(self.window_name)
