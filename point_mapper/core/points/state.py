"""
State management for point mapping sessions.

Contains the point entity, the prefix registry and the point store, the
single source of truth for point identity and geometry.
"""

import logging
from dataclasses import dataclass, replace
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from ...utils.misc import incrf
from ..errors import DuplicateIdError, ValidationError
from .utils import (
    DEFAULT_MARGIN,
    DUPLICATE_OFFSET,
    MAX_PREFIX_LENGTH,
    clamp,
    clean_point_id,
    compose_point_id,
    js_round,
    namespace_of,
    next_point_number,
    normalize_prefix,
    split_point_id,
)

logger = logging.getLogger(__name__)


@dataclass
class Point:
    """A labeled point on the display surface."""

    key: int
    point_id: str
    x: float
    y: float

    @property
    def namespace(self) -> str:
        """Prefix of the point ID, empty for unprefixed points."""
        return namespace_of(self.point_id)

    @property
    def suffix(self) -> str:
        return split_point_id(self.point_id)[1]

    def copy(self) -> "Point":
        return replace(self)

    def to_dict(self):
        """Convert to dictionary for serialization."""
        return {
            "point_id": self.point_id,
            "x": self.x,
            "y": self.y,
        }

    @classmethod
    def from_dict(cls, data: dict, key: int = 0):
        """Create from dictionary."""
        return cls(
            key=data.get("key", key),
            point_id=data["point_id"],
            x=js_round(data["x"]),
            y=js_round(data["y"]),
        )


class PrefixRegistry:
    """
    Set of label prefixes used to namespace point IDs.

    Zero prefixes is a valid state; points are then created unprefixed.
    """

    def __init__(self, prefixes: Iterable[str] = ()):
        self._prefixes = set()
        for prefix in prefixes:
            self.add(prefix)

    @staticmethod
    def normalize(raw: Optional[str]) -> str:
        return normalize_prefix(raw)

    def add(self, raw: Optional[str]) -> bool:
        """
        Add a prefix.

        Args:
            raw: User input, normalized before validation

        Returns:
            True if the prefix was added, False if it is empty, too long
            or already registered
        """
        prefix = self.normalize(raw)
        if not prefix or len(prefix) > MAX_PREFIX_LENGTH:
            return False
        if prefix in self._prefixes:
            return False
        self._prefixes.add(prefix)
        return True

    def remove(self, prefix: str) -> bool:
        """Remove a prefix name. Points using it are the caller's business."""
        if prefix not in self._prefixes:
            return False
        self._prefixes.remove(prefix)
        return True

    def list_sorted(self) -> List[str]:
        return sorted(self._prefixes)

    def default(self) -> str:
        """Prefix preselected for new points, empty when there are none."""
        prefixes = self.list_sorted()
        return prefixes[0] if prefixes else ""

    def replace(self, prefixes: Iterable[str]):
        self._prefixes = set(prefixes)

    def __contains__(self, prefix) -> bool:
        return prefix in self._prefixes

    def __iter__(self) -> Iterator[str]:
        return iter(self.list_sorted())

    def __len__(self) -> int:
        return len(self._prefixes)

    def __repr__(self):
        return f"PrefixRegistry({self.list_sorted()!r})"


class PointStore:
    """
    Ordered collection of points.

    Points are owned exclusively by the store. Every point gets a stable
    integer key that is never reused, so selections and history snapshots
    can refer to points without holding the live objects.
    """

    def __init__(self, margin: int = DEFAULT_MARGIN):
        self.margin = margin
        self._points: List[Point] = []
        self._by_key: Dict[int, Point] = {}
        self._keys = incrf()
        self._last_key = 0

    @property
    def points(self) -> List[Point]:
        """Points in insertion order. Do not mutate the returned list."""
        return self._points

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Point]:
        return iter(list(self._points))

    def __contains__(self, point) -> bool:
        return point is not None and point.key in self._by_key

    def get(self, key: int) -> Optional[Point]:
        return self._by_key.get(key)

    def find_by_id(self, point_id: str) -> Optional[Point]:
        for point in self._points:
            if point.point_id == point_id:
                return point
        return None

    def in_namespace(self, prefix: str) -> List[Point]:
        return [p for p in self._points if p.namespace == prefix]

    def next_id_for(self, prefix: str) -> str:
        """Suggested ID (without prefix) for the next point in a namespace."""
        return str(next_point_number((p.point_id for p in self._points), prefix))

    def validate_id(
        self, prefix: str, raw_id: str, exclude: Optional[Point] = None
    ) -> str:
        """
        Build and validate a point ID without mutating anything.

        Raises:
            ValidationError: If the cleaned ID is empty
            DuplicateIdError: If another point already uses the ID
        """
        clean_id = clean_point_id(raw_id)
        if not clean_id:
            raise ValidationError(
                "Point ID must contain at least one alphanumeric character"
            )
        point_id = compose_point_id(prefix or "", clean_id)
        existing = self.find_by_id(point_id)
        if existing is not None and (exclude is None or existing.key != exclude.key):
            raise DuplicateIdError(point_id)
        return point_id

    def add_point(self, prefix: str, raw_id: str, x: float, y: float) -> Point:
        point_id = self.validate_id(prefix, raw_id)
        point = Point(
            key=self._new_key(), point_id=point_id, x=js_round(x), y=js_round(y)
        )
        self._append(point)
        logger.debug("Added point %s at (%d, %d)", point.point_id, point.x, point.y)
        return point

    def rename_point(self, point: Point, new_prefix: str, new_raw_id: str) -> str:
        """
        Rename a point in place.

        Returns:
            The previous point ID
        """
        self._require(point)
        point_id = self.validate_id(new_prefix, new_raw_id, exclude=point)
        old_id = point.point_id
        point.point_id = point_id
        return old_id

    def duplicate_point(self, point: Point) -> Point:
        self._require(point)
        prefix = point.namespace
        number = next_point_number((p.point_id for p in self._points), prefix)
        new_point = Point(
            key=self._new_key(),
            point_id=compose_point_id(prefix, str(number)),
            x=point.x + DUPLICATE_OFFSET,
            y=point.y + DUPLICATE_OFFSET,
        )
        self._append(new_point)
        return new_point

    def delete_point(self, point: Point) -> bool:
        return bool(self.delete_many([point]))

    def delete_many(self, points: Iterable[Point]) -> List[Point]:
        """
        Remove points by identity.

        Returns:
            The points that were actually removed
        """
        keys = {p.key for p in points if p is not None}
        removed = [p for p in self._points if p.key in keys]
        if removed:
            self._points = [p for p in self._points if p.key not in keys]
            for point in removed:
                del self._by_key[point.key]
        return removed

    def clear(self) -> List[Point]:
        removed = self._points
        self._points = []
        self._by_key = {}
        return removed

    def move_points(
        self,
        points: Iterable[Point],
        dx: float,
        dy: float,
        bounds: Tuple[float, float],
        snap: bool = True,
    ) -> int:
        """
        Translate points and clamp them into the display surface.

        Each axis is clamped to ``[margin, extent - margin]`` on every call,
        so a drag pushing a point against a border keeps it there.

        Args:
            points: Points to move
            dx: Horizontal delta
            dy: Vertical delta
            bounds: (width, height) of the display surface
            snap: Round the result to whole units. A running drag passes
                False and calls ``snap_points`` once it ends.

        Returns:
            Number of points moved
        """
        width, height = bounds
        moved = 0
        for point in points:
            if point.key not in self._by_key:
                continue
            point.x = clamp(point.x + dx, self.margin, width - self.margin)
            point.y = clamp(point.y + dy, self.margin, height - self.margin)
            if snap:
                point.x, point.y = js_round(point.x), js_round(point.y)
            moved += 1
        return moved

    def snap_points(self, points: Iterable[Point]):
        """Round point coordinates to whole display units."""
        for point in points:
            point.x = js_round(point.x)
            point.y = js_round(point.y)

    def snapshot(self) -> Tuple[Point, ...]:
        """Deep copy of the current points."""
        return tuple(p.copy() for p in self._points)

    def replace(self, points: Iterable[Point]):
        """Replace the whole content with copies of ``points``."""
        self._points = [p.copy() for p in points]
        self._by_key = {p.key: p for p in self._points}
        # keys stay unique across restores
        highest = max(self._by_key, default=0)
        if highest > self._last_key:
            self._keys = incrf(highest + 1)
            self._last_key = highest

    def _new_key(self) -> int:
        self._last_key = next(self._keys)
        return self._last_key

    def _append(self, point: Point):
        self._points.append(point)
        self._by_key[point.key] = point

    def _require(self, point: Point):
        if point not in self:
            raise ValidationError(f"Point {point.point_id!r} is not in the store")
