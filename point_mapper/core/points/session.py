"""
Point mapping session management.

Core logic for one open document: the points placed on one image.
UI-agnostic - can be used with any interface (GUI, Web, CLI).
"""

import logging
from gettext import gettext as _
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ..settings import default_settings, merge_settings
from ..errors import ConfirmationDeclined, ValidationError
from .events import EventEmitter, EventType, SessionEvent
from .history import HistoryEntry, HistoryStack
from .selection import FILTER_ALL, SelectionModel
from .state import Point, PointStore, PrefixRegistry
from .utils import MAX_PREFIX_LENGTH, coordinates_array, hit_index, normalize_prefix

logger = logging.getLogger(__name__)


def always_confirm(message: str) -> bool:
    return True


class PointMappingSession:
    """
    Manages the state and logic of a point mapping session.

    This class handles:
    - Prefix and point management
    - Selection and filtering
    - Snapshot history for undo/redo
    - CSV export
    - Event emission for UI updates

    There is no global state: every collaborator receives the session it
    works on. Every operation validates before mutating, so a failing
    operation leaves no partial change behind.
    """

    def __init__(
        self,
        settings: Optional[Mapping[str, Any]] = None,
        confirm: Optional[Callable[[str], bool]] = None,
    ):
        """
        Initialize point mapping session.

        Args:
            settings: Settings mapping, defaults are used for missing keys
            confirm: Callback asked before destructive operations; returns
                True to proceed. Defaults to always proceeding.
        """
        self.settings, _ignored = merge_settings(default_settings(), settings or {})
        self.confirm = confirm or always_confirm

        self.prefixes = PrefixRegistry()
        self.store = PointStore()
        self.selection = SelectionModel()
        self.history = HistoryStack(max(1, self.settings.history_size))

        # Event emitter for UI notifications
        self.events = EventEmitter()

        self.image_path: Optional[str] = None
        self.original_size: Optional[Tuple[int, int]] = None
        self.display_size: Optional[Tuple[int, int]] = None

    # Lifecycle

    @property
    def is_loaded(self) -> bool:
        return self.display_size is not None

    def load_image(
        self,
        original_size: Tuple[int, int],
        display_size: Optional[Tuple[int, int]] = None,
        image_path: Optional[str] = None,
    ) -> HistoryEntry:
        """
        Start annotating a newly decoded image.

        Points, selection and history are reset and one baseline snapshot
        is taken. Prefixes are kept.

        Args:
            original_size: (width, height) of the decoded image
            display_size: (width, height) of the display surface,
                defaults to the original size
            image_path: Optional path to the image file
        """
        display_size = tuple(display_size or original_size)
        original_size = tuple(original_size)
        if min(original_size) <= 0 or min(display_size) <= 0:
            raise ValidationError(
                f"Invalid image size: original={original_size}, display={display_size}"
            )

        self.original_size = original_size
        self.display_size = display_size
        self.image_path = image_path
        self.store.clear()
        self.selection.clear()
        baseline = self.history.reset(
            self.store, self.selection, self.prefixes, _("Load image")
        )
        logger.debug(
            "Loaded image %s (%dx%d shown as %dx%d)",
            image_path, *original_size, *display_size,
        )
        self._emit(
            EventType.IMAGE_LOADED,
            {
                "path": image_path,
                "original_size": original_size,
                "display_size": display_size,
            },
        )
        return baseline

    def close(self):
        """Tear the session down: listeners, points and history are dropped."""
        self.events.clear()
        self.store.clear()
        self.selection.clear()
        self.history.clear()
        self.image_path = None
        self.original_size = None
        self.display_size = None

    # Queries

    @property
    def mapper(self):
        """Display to original coordinate transform of the loaded image."""
        from ..export import CoordinateMapper

        self._require_image()
        return CoordinateMapper(self.display_size, self.original_size)

    @property
    def points(self) -> List[Point]:
        return self.store.points

    def visible_points(self) -> List[Point]:
        return self.selection.filter_visible(self.store.points)

    def selected_points(self) -> List[Point]:
        return self.selection.selected_points(self.store)

    def last_selected(self) -> Optional[Point]:
        key = self.selection.last()
        return self.store.get(key) if key is not None else None

    def hit_test(self, x: float, y: float) -> Optional[Point]:
        """First visible point within ``click_tolerance`` of (x, y)."""
        candidates = self.visible_points()
        index = hit_index(
            coordinates_array(candidates), x, y, self.settings.click_tolerance
        )
        return candidates[index] if index is not None else None

    def suggest_id(self, prefix: Optional[str] = None) -> Tuple[str, str]:
        """
        Prefilled values for the add flow.

        Returns:
            (prefix, suggested ID); the ID is empty when suggestions are off
        """
        if prefix is None:
            prefix = self.prefixes.default()
        if not self.settings.auto_suggest_ids:
            return prefix, ""
        return prefix, self.store.next_id_for(prefix)

    # Prefixes

    def add_prefix(self, raw: str) -> str:
        """
        Register a prefix. Not recorded in the history.

        Returns:
            The normalized prefix

        Raises:
            ValidationError: Empty after normalization, too long or taken
        """
        prefix = normalize_prefix(raw)
        if prefix in self.prefixes:
            raise ValidationError(_("Prefix already exists"))
        if not self.prefixes.add(prefix):
            raise ValidationError(
                _("Prefix must be 1 to {max_length} letters or digits").format(
                    max_length=MAX_PREFIX_LENGTH
                )
            )
        self._emit(EventType.PREFIX_ADDED, {"prefix": prefix})
        return prefix

    def remove_prefix(self, prefix: str) -> bool:
        """
        Remove a prefix, cascading to the points that use it.

        When points use the prefix the removal is destructive: with
        ``confirm_delete`` on, the confirmation callback must agree first.
        The points are removed from the store and the selection, then the
        prefix is removed and one snapshot is taken. An unused prefix is
        removed without confirmation and without a snapshot.

        Returns:
            True if the prefix was removed, False if it is unknown or the
            user declined
        """
        if prefix not in self.prefixes:
            return False
        users = self.store.in_namespace(prefix)
        if users:
            try:
                self._require_confirmation(
                    _("This prefix is used by {count} point(s). Remove anyway?").format(
                        count=len(users)
                    )
                )
            except ConfirmationDeclined:
                logger.debug("Removal of prefix %s declined", prefix)
                return False
            removed = self.store.delete_many(users)
            self.selection.evict(p.key for p in removed)

        self.prefixes.remove(prefix)
        if self.selection.filter == prefix:
            self.selection.set_filter(FILTER_ALL)
            self._emit(EventType.FILTER_CHANGED, {"filter": FILTER_ALL})

        if users:
            self.commit(_("Remove prefix {prefix} and its points").format(prefix=prefix))
            self._emit(
                EventType.POINTS_DELETED,
                {"point_ids": [p.point_id for p in users]},
            )
        self._emit(EventType.PREFIX_REMOVED, {"prefix": prefix, "removed": len(users)})
        return True

    # Points

    def add_point(self, prefix: str, raw_id: str, x: float, y: float) -> Point:
        """
        Add a point and make it the only selected one.

        Raises:
            ValidationError: No image, unknown prefix or empty ID
            DuplicateIdError: The ID is taken
        """
        self._require_image()
        prefix = self._check_prefix(prefix)
        point = self.store.add_point(prefix, raw_id, x, y)
        self.selection.set([point])
        self.commit(_("Add point {point_id}").format(point_id=point.point_id))
        self._emit(EventType.POINT_ADDED, {"point": point.to_dict()})
        return point

    def rename_point(self, point: Point, prefix: str, raw_id: str) -> Point:
        """
        Change the ID of a point.

        Raises:
            ValidationError: Unknown prefix or empty ID
            DuplicateIdError: Another point has the ID
        """
        prefix = self._check_prefix(prefix, allowed=point.namespace)
        old_id = self.store.rename_point(point, prefix, raw_id)
        self.commit(
            _("Edit point {old_id} to {new_id}").format(old_id=old_id, new_id=point.point_id)
        )
        self._emit(
            EventType.POINT_UPDATED, {"old_id": old_id, "point": point.to_dict()}
        )
        return point

    def duplicate_point(self, point: Point) -> Point:
        new_point = self.store.duplicate_point(point)
        self.selection.set([new_point])
        self.commit(_("Duplicate point {point_id}").format(point_id=point.point_id))
        self._emit(
            EventType.POINT_DUPLICATED,
            {"source": point.point_id, "point": new_point.to_dict()},
        )
        return new_point

    def delete_point(self, point: Point) -> bool:
        if not self.store.delete_point(point):
            return False
        self.selection.evict([point.key])
        self.commit(_("Delete point {point_id}").format(point_id=point.point_id))
        self._emit(EventType.POINTS_DELETED, {"point_ids": [point.point_id]})
        return True

    def delete_selected(self) -> int:
        """
        Delete all selected points, after confirmation if enabled.

        Returns:
            Number of deleted points, 0 if the user declined

        Raises:
            ValidationError: Nothing is selected
        """
        selected = self.selected_points()
        if not selected:
            raise ValidationError(_("No points selected"))
        count = len(selected)
        try:
            self._require_confirmation(
                _("Delete {count} selected point(s)? ({point_ids})").format(
                    count=count, point_ids=", ".join(p.point_id for p in selected)
                )
            )
        except ConfirmationDeclined:
            return 0
        self.store.delete_many(selected)
        self.selection.clear()
        self.commit(_("Delete {count} point(s)").format(count=count))
        self._emit(
            EventType.POINTS_DELETED, {"point_ids": [p.point_id for p in selected]}
        )
        return count

    def clear_all(self) -> bool:
        """
        Remove every point. History restarts from this state.

        Raises:
            ValidationError: There are no points
        """
        if not len(self.store):
            raise ValidationError(_("No points to clear"))
        try:
            self._require_confirmation(
                _("Clear all {count} points? This cannot be undone.").format(
                    count=len(self.store)
                )
            )
        except ConfirmationDeclined:
            return False
        count = len(self.store.clear())
        self.selection.clear()
        self.history.reset(self.store, self.selection, self.prefixes, _("Clear all points"))
        self._emit(EventType.HISTORY_CHANGED, self._history_data())
        self._emit(EventType.POINTS_CLEARED, {"count": count})
        return True

    def move_selected(self, dx: float, dy: float, snap: bool = True) -> int:
        """
        Move selected points by a delta, clamped into the display surface.

        With ``snap=False`` the fractional position is kept until
        ``snap_selected`` is called.
        """
        self._require_image()
        moved = self.store.move_points(
            self.selected_points(), dx, dy, self.display_size, snap=snap
        )
        if moved:
            self._emit(EventType.POINTS_MOVED, {"count": moved, "dx": dx, "dy": dy})
        return moved

    def snap_selected(self):
        self.store.snap_points(self.selected_points())

    # Selection

    def select_only(self, point: Point):
        self.selection.set([point])
        self._selection_changed()

    def toggle_selected(self, point: Point) -> bool:
        selected = self.selection.toggle(point)
        self._selection_changed()
        return selected

    def select_range(self, x: float, y: float) -> List[Point]:
        """Add the points between the last selected point and (x, y)."""
        anchor = self.last_selected()
        if anchor is None:
            return []
        inside = self.selection.select_in_rectangle(
            self.store.points, (anchor.x, anchor.y), (x, y)
        )
        self._selection_changed()
        return inside

    def select_box(
        self, corner_a: Tuple[float, float], corner_b: Tuple[float, float]
    ) -> List[Point]:
        inside = self.selection.select_in_rectangle(
            self.store.points, corner_a, corner_b, replace=True
        )
        self._selection_changed()
        return inside

    def select_all(self):
        self.selection.set(self.visible_points())
        self._selection_changed()

    def deselect_all(self):
        self.selection.clear()
        self._selection_changed()

    def set_filter(self, filter_prefix: str):
        self.selection.set_filter(filter_prefix)
        self._emit(EventType.FILTER_CHANGED, {"filter": self.selection.filter})
        self._selection_changed()

    # History

    def commit(self, action: str) -> HistoryEntry:
        """Snapshot the current state as the result of ``action``."""
        entry = self.history.snapshot(self.store, self.selection, self.prefixes, action)
        logger.debug("Committed %r", action)
        self._emit(EventType.HISTORY_CHANGED, self._history_data())
        return entry

    def undo(self) -> Optional[str]:
        """
        Restore the previous snapshot.

        Returns:
            Label of the undone action, None if there is nothing to undo
        """
        entry = self.history.undo()
        if entry is None:
            return None
        self._restore(entry)
        action = self.history.undone_action()
        self._emit(EventType.STATE_RESTORED, {"undone": action})
        return action

    def redo(self) -> Optional[str]:
        """
        Restore the next snapshot.

        Returns:
            Label of the redone action, None if there is nothing to redo
        """
        entry = self.history.redo()
        if entry is None:
            return None
        self._restore(entry)
        self._emit(EventType.STATE_RESTORED, {"redone": entry.action})
        return entry.action

    # Export

    def export_csv(self) -> str:
        """
        Serialize the visible points as CSV.

        Raises:
            ValidationError: There are no points to export
        """
        points = self.visible_points()
        if not points:
            raise ValidationError(_("No points to export"))
        from ..export import CSVExporter

        exporter = CSVExporter.from_settings(self.settings)
        text = exporter.export(points, self.mapper)
        self._emit(EventType.EXPORTED, {"count": len(points)})
        return text

    def write_csv(self, path: Optional[Path] = None) -> Path:
        """
        Write the CSV export to ``path``.

        A directory, or no path at all, gets the default
        ``image_points_<date>.csv`` file name.
        """
        from ..export import default_export_filename

        text = self.export_csv()
        if path is None:
            path = Path(default_export_filename())
        path = Path(path)
        if path.is_dir():
            path = path / default_export_filename()
        path.write_text(text, encoding="utf-8", newline="")
        logger.info(_("Exported {count} points to {path}").format(
            count=len(self.visible_points()), path=path
        ))
        return path

    # Settings

    def apply_settings(self, updates: Mapping[str, Any]):
        """Merge new settings. Not recorded in the history."""
        self.settings, _ignored = merge_settings(self.settings, updates)
        self.history.max_size = max(1, self.settings.history_size)
        self._emit(EventType.SETTINGS_CHANGED, {"settings": dict(self.settings)})

    # Visualization

    def get_visualization_data(self) -> Dict[str, Any]:
        """
        Get data needed for visualization.

        Returns:
            Dictionary with visualization data
        """
        return {
            "display_size": self.display_size,
            "points": self.visible_points(),
            "selected": set(self.selection.keys),
            "filter": self.selection.filter,
            "prefixes": self.prefixes.list_sorted(),
            "can_undo": self.history.can_undo,
            "can_redo": self.history.can_redo,
            "num_points": len(self.store),
        }

    def state_dict(self) -> Dict[str, Any]:
        """Plain view of the document state, mostly for comparisons."""
        return {
            "points": [p.to_dict() for p in self.store.points],
            "selected": [p.point_id for p in self.selected_points()],
            "prefixes": self.prefixes.list_sorted(),
        }

    # Internals

    def _restore(self, entry: HistoryEntry):
        self.history.restore(entry, self.store, self.selection, self.prefixes)
        self._emit(EventType.HISTORY_CHANGED, self._history_data())
        self._selection_changed()

    def _require_image(self):
        if not self.is_loaded:
            raise ValidationError(_("No image loaded"))

    def _check_prefix(self, prefix: Optional[str], allowed: str = "") -> str:
        prefix = normalize_prefix(prefix)
        if prefix and prefix not in self.prefixes and prefix != allowed:
            raise ValidationError(_("Unknown prefix: {prefix}").format(prefix=prefix))
        return prefix

    def _require_confirmation(self, message: str):
        """Ask the confirmation callback when ``confirm_delete`` is on."""
        if not self.settings.confirm_delete:
            return
        if not self.confirm(message):
            raise ConfirmationDeclined(message)

    def _history_data(self) -> Dict[str, Any]:
        return {
            "can_undo": self.history.can_undo,
            "can_redo": self.history.can_redo,
            "size": len(self.history),
        }

    def _selection_changed(self):
        self._emit(EventType.SELECTION_CHANGED, {"count": len(self.selection)})

    def _emit(self, event_type: EventType, data: Optional[Dict[str, Any]] = None):
        self.events.emit(SessionEvent(event_type, data))
