"""
Snapshot based undo/redo history.

Every entry is a deep copy of the points plus the selected keys and the
prefixes at the time of the snapshot. Entries never share mutable state
with the live store.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .selection import SelectionModel
from .state import Point, PointStore, PrefixRegistry

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_SIZE = 50


@dataclass(frozen=True)
class HistoryEntry:
    """Immutable snapshot of the point set."""

    points: Tuple[Point, ...]
    selected: Tuple[int, ...]
    prefixes: Tuple[str, ...]
    action: str
    timestamp: float = field(default_factory=time.time, compare=False)

    def to_dict(self):
        return {
            "points": [p.to_dict() for p in self.points],
            "selected": [p.point_id for p in self.points if p.key in self.selected],
            "prefixes": list(self.prefixes),
            "action": self.action,
            "timestamp": self.timestamp,
        }


class HistoryStack:
    """
    Linear, bounded undo/redo history.

    ``max_size`` counts undoable steps: up to ``max_size + 1`` snapshots
    are kept, the current state plus ``max_size`` states to go back to.

    Invariant: ``0 <= index < len(entries)`` whenever the history is not
    empty; ``index == len(entries) - 1`` means there is nothing to redo.
    """

    def __init__(self, max_size: int = DEFAULT_HISTORY_SIZE):
        if max_size < 1:
            raise ValueError(f"History size must be positive, got {max_size}")
        self._max_size = max_size
        self._entries: List[HistoryEntry] = []
        self._index = -1

    @property
    def max_size(self) -> int:
        return self._max_size

    @max_size.setter
    def max_size(self, value: int):
        if value < 1:
            raise ValueError(f"History size must be positive, got {value}")
        self._max_size = value
        self._trim(reanchor=False)

    @property
    def index(self) -> int:
        return self._index

    @property
    def entries(self) -> Tuple[HistoryEntry, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def can_undo(self) -> bool:
        return self._index > 0

    @property
    def can_redo(self) -> bool:
        return self._index < len(self._entries) - 1

    @property
    def current(self) -> Optional[HistoryEntry]:
        if self._index < 0:
            return None
        return self._entries[self._index]

    def snapshot(
        self,
        store: PointStore,
        selection: SelectionModel,
        prefixes: PrefixRegistry,
        action: str,
    ) -> HistoryEntry:
        """
        Push a snapshot of the current state.

        Entries after the current index (a redo branch left by undo) are
        discarded first. When more than ``max_size`` undo steps would be
        kept, the oldest entries are dropped and the index points at the
        new tail.
        """
        entry = HistoryEntry(
            points=store.snapshot(),
            selected=tuple(k for k in selection.keys if store.get(k) is not None),
            prefixes=tuple(prefixes.list_sorted()),
            action=action,
        )
        if self.can_redo:
            discarded = len(self._entries) - self._index - 1
            del self._entries[self._index + 1:]
            logger.debug("Discarded %d redo entries", discarded)
        self._entries.append(entry)
        self._index = len(self._entries) - 1
        self._trim()
        logger.debug("History snapshot %r (%d/%d)", action, len(self._entries), self._max_size)
        return entry

    def undo(self) -> Optional[HistoryEntry]:
        """
        Step back.

        Returns:
            Entry to restore, or None if there is nothing to undo
        """
        if not self.can_undo:
            return None
        self._index -= 1
        return self._entries[self._index]

    def redo(self) -> Optional[HistoryEntry]:
        """
        Step forward.

        Returns:
            Entry to restore, or None if there is nothing to redo
        """
        if not self.can_redo:
            return None
        self._index += 1
        return self._entries[self._index]

    def undone_action(self) -> Optional[str]:
        """Label of the entry just after the current one (what the last undo reverted)."""
        if self._index + 1 < len(self._entries):
            return self._entries[self._index + 1].action
        return None

    def clear(self):
        self._entries = []
        self._index = -1

    def reset(
        self,
        store: PointStore,
        selection: SelectionModel,
        prefixes: PrefixRegistry,
        action: str,
    ) -> HistoryEntry:
        """Drop all entries and push one fresh baseline."""
        self.clear()
        return self.snapshot(store, selection, prefixes, action)

    @staticmethod
    def restore(
        entry: HistoryEntry,
        store: PointStore,
        selection: SelectionModel,
        prefixes: PrefixRegistry,
    ):
        """Replace store, selection and prefixes with the content of ``entry``."""
        store.replace(entry.points)
        selection.set_keys(k for k in entry.selected if store.get(k) is not None)
        prefixes.replace(entry.prefixes)

    def _trim(self, reanchor: bool = True):
        overflow = len(self._entries) - (self._max_size + 1)
        if overflow <= 0:
            return
        del self._entries[:overflow]
        if reanchor:
            self._index = len(self._entries) - 1
        else:
            self._index = max(0, self._index - overflow)
