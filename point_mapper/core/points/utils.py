"""
Pure utility functions for point mapping logic.

These functions have no side effects and can be tested in isolation.
"""

import math
import re
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

NON_ALNUM = re.compile(r"[^A-Za-z0-9]")
LEADING_INT = re.compile(r"^(\d+)")

MAX_PREFIX_LENGTH = 10
DEFAULT_MARGIN = 15
DUPLICATE_OFFSET = 30


def js_round(value):
    """
    Round half up, like ``Math.round`` in a browser.

    Python's ``round`` uses banker's rounding, which would place a point
    clicked at 10.5 on 10 instead of 11.

    Args:
        value: Scalar or numpy array

    Returns:
        int for scalars, int64 array for arrays
    """
    if isinstance(value, np.ndarray):
        return np.floor(value + 0.5).astype(np.int64)
    return int(math.floor(value + 0.5))


def normalize_prefix(raw: Optional[str]) -> str:
    """Trim, uppercase and strip everything that is not alphanumeric."""
    if not raw:
        return ""
    return NON_ALNUM.sub("", raw.strip().upper())


def clean_point_id(raw: Optional[str]) -> str:
    """Strip every non-alphanumeric character from a raw point ID."""
    if not raw:
        return ""
    return NON_ALNUM.sub("", raw.strip())


def compose_point_id(prefix: str, clean_id: str) -> str:
    return f"{prefix}-{clean_id}" if prefix else clean_id


def split_point_id(point_id: str) -> Tuple[str, str]:
    """
    Split a point ID into (namespace, suffix).

    Unprefixed IDs have an empty namespace and the whole ID as suffix.
    """
    if "-" in point_id:
        namespace, _, suffix = point_id.partition("-")
        return namespace, suffix
    return "", point_id


def namespace_of(point_id: str) -> str:
    return split_point_id(point_id)[0]


def parse_leading_int(text: str) -> Optional[int]:
    """Parse the leading integer of ``text`` ("12" -> 12, "3a" -> 3, "a3" -> None)."""
    match = LEADING_INT.match(text or "")
    if match is None:
        return None
    return int(match.group(1))


def next_point_number(point_ids: Iterable[str], prefix: str) -> int:
    """
    Next free number in a namespace.

    Among the IDs sharing ``prefix`` as namespace (or the unprefixed IDs
    when ``prefix`` is empty), the numeric suffixes are parsed and the
    result is ``max + 1``. Non-numeric suffixes are ignored.

    Args:
        point_ids: Existing point IDs
        prefix: Namespace to allocate in

    Returns:
        Next number, 1 if the namespace has no numeric IDs
    """
    numbers = []
    for point_id in point_ids:
        namespace, suffix = split_point_id(point_id)
        if namespace != prefix:
            continue
        number = parse_leading_int(suffix)
        if number is not None:
            numbers.append(number)
    return max(numbers) + 1 if numbers else 1


def coordinates_array(points: Sequence) -> np.ndarray:
    """Stack point coordinates into an (N, 2) float array."""
    if not points:
        return np.zeros((0, 2), dtype=np.float64)
    return np.array([(p.x, p.y) for p in points], dtype=np.float64)


def hit_index(
    coords: np.ndarray, x: float, y: float, tolerance: float
) -> Optional[int]:
    """
    Index of the first point within ``tolerance`` of (x, y).

    Args:
        coords: (N, 2) array of point coordinates in store order
        x: Cursor X
        y: Cursor Y
        tolerance: Maximum Euclidean distance (inclusive)

    Returns:
        Index into ``coords`` or None
    """
    if len(coords) == 0:
        return None
    distances = np.hypot(coords[:, 0] - x, coords[:, 1] - y)
    hits = np.flatnonzero(distances <= tolerance)
    if len(hits) == 0:
        return None
    return int(hits[0])


def normalize_rect(
    corner_a: Tuple[float, float], corner_b: Tuple[float, float]
) -> Tuple[float, float, float, float]:
    """Resolve two raw corners into (min_x, min_y, max_x, max_y)."""
    (ax, ay), (bx, by) = corner_a, corner_b
    return min(ax, bx), min(ay, by), max(ax, bx), max(ay, by)


def indices_in_rect(
    coords: np.ndarray,
    corner_a: Tuple[float, float],
    corner_b: Tuple[float, float],
) -> List[int]:
    """Indices of the points inside the (inclusive) rectangle spanned by two corners."""
    if len(coords) == 0:
        return []
    min_x, min_y, max_x, max_y = normalize_rect(corner_a, corner_b)
    inside = (
        (coords[:, 0] >= min_x)
        & (coords[:, 0] <= max_x)
        & (coords[:, 1] >= min_y)
        & (coords[:, 1] <= max_y)
    )
    return [int(i) for i in np.flatnonzero(inside)]


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def fit_display_size(
    image_size: Tuple[int, int], container_size: Tuple[int, int]
) -> Tuple[int, int]:
    """
    Size of the display surface for an image in a container.

    The image is scaled down (never up) to fit while keeping its aspect
    ratio.

    Args:
        image_size: (width, height) of the original image
        container_size: (width, height) available

    Returns:
        (width, height) of the display surface
    """
    width, height = image_size
    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size: {image_size}")
    container_w, container_h = container_size
    scale = min(container_w / width, container_h / height, 1.0)
    if scale < 1.0:
        return max(1, int(width * scale)), max(1, int(height * scale))
    return width, height
