"""
Selection model.

The selection is a set of point keys, never live point objects, plus the
active filter that derives the visible subset of the store.
"""

from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .state import Point, PointStore
from .utils import coordinates_array, indices_in_rect

FILTER_ALL = "all"


def filter_visible(points: Sequence[Point], filter_prefix: str = FILTER_ALL) -> List[Point]:
    """
    Subset of ``points`` visible under a filter.

    Under a filter other than ``"all"`` a point is visible iff its
    namespace equals the filter (an empty filter shows unprefixed points).
    """
    if filter_prefix == FILTER_ALL:
        return list(points)
    return [p for p in points if p.namespace == filter_prefix]


class SelectionModel:
    """Currently selected points plus filter state."""

    def __init__(self):
        # dict keeps insertion order, used as an ordered set
        self._keys: Dict[int, None] = {}
        self.filter = FILTER_ALL

    @property
    def keys(self) -> List[int]:
        return list(self._keys)

    def __len__(self) -> int:
        return len(self._keys)

    def __bool__(self) -> bool:
        return bool(self._keys)

    def __contains__(self, point) -> bool:
        return self.contains(point)

    def contains(self, point: Optional[Point]) -> bool:
        return point is not None and point.key in self._keys

    def add(self, point: Point):
        self._keys[point.key] = None

    def add_many(self, points: Iterable[Point]):
        for point in points:
            self._keys[point.key] = None

    def discard(self, point: Point):
        self._keys.pop(point.key, None)

    def toggle(self, point: Point) -> bool:
        """
        Flip membership of a point.

        Returns:
            True if the point is selected afterwards
        """
        if point.key in self._keys:
            del self._keys[point.key]
            return False
        self._keys[point.key] = None
        return True

    def set(self, points: Iterable[Point]):
        self._keys = {p.key: None for p in points}

    def set_keys(self, keys: Iterable[int]):
        self._keys = {k: None for k in keys}

    def clear(self):
        self._keys = {}

    def evict(self, keys: Iterable[int]):
        """Forget keys of points that no longer exist."""
        for key in keys:
            self._keys.pop(key, None)

    def last(self) -> Optional[int]:
        """Key of the most recently added selected point."""
        if not self._keys:
            return None
        return list(self._keys)[-1]

    def selected_points(self, store: PointStore) -> List[Point]:
        """Selected points in store order."""
        return [p for p in store.points if p.key in self._keys]

    def select_in_rectangle(
        self,
        points: Sequence[Point],
        corner_a: Tuple[float, float],
        corner_b: Tuple[float, float],
        replace: bool = False,
    ) -> List[Point]:
        """
        Select every point inside the rectangle spanned by two raw corners.

        The rectangle is normalized on every call, so inverted corners are
        fine. Used by shift-click range selection (anchor is the last
        selected point, adds to the selection) and by box selection
        (anchor is the mouse-down location, replaces the selection).

        Args:
            points: Candidate points
            corner_a: Reference corner
            corner_b: Moving corner
            replace: Replace the selection instead of adding to it

        Returns:
            Points found inside the rectangle
        """
        points = list(points)
        inside = [
            points[i]
            for i in indices_in_rect(coordinates_array(points), corner_a, corner_b)
        ]
        if replace:
            self.set(inside)
        else:
            self.add_many(inside)
        return inside

    def filter_visible(self, points: Sequence[Point]) -> List[Point]:
        return filter_visible(points, self.filter)

    def set_filter(self, filter_prefix: Optional[str]):
        """Change the filter. The selection is cleared."""
        self.filter = FILTER_ALL if filter_prefix is None else filter_prefix
        self.clear()
