"""
Transform between display-surface and original image coordinates.
"""

from typing import Tuple

import numpy as np

from ..points.utils import js_round


def to_original(
    x: float,
    y: float,
    display_width: float,
    display_height: float,
    original_width: float,
    original_height: float,
) -> Tuple[int, int]:
    """Map a display coordinate to the original image, rounded half up."""
    return (
        js_round(x * (original_width / display_width)),
        js_round(y * (original_height / display_height)),
    )


class CoordinateMapper:
    """
    Stateless scale transform between the display surface and the image.

    Args:
        display_size: (width, height) of the display surface
        original_size: (width, height) of the decoded image
    """

    def __init__(self, display_size: Tuple[float, float], original_size: Tuple[float, float]):
        if min(display_size) <= 0 or min(original_size) <= 0:
            raise ValueError(
                f"Sizes must be positive: display={display_size}, original={original_size}"
            )
        self.display_size = tuple(display_size)
        self.original_size = tuple(original_size)

    @classmethod
    def identity(cls, size: Tuple[float, float]) -> "CoordinateMapper":
        return cls(size, size)

    @property
    def scale(self) -> Tuple[float, float]:
        """(sx, sy) factors from display to original coordinates."""
        return (
            self.original_size[0] / self.display_size[0],
            self.original_size[1] / self.display_size[1],
        )

    def to_original(self, x: float, y: float) -> Tuple[int, int]:
        return to_original(x, y, *self.display_size, *self.original_size)

    def to_display(self, x: float, y: float) -> Tuple[float, float]:
        sx, sy = self.scale
        return x / sx, y / sy

    def to_original_array(self, coords: np.ndarray) -> np.ndarray:
        """
        Map an (N, 2) array of display coordinates.

        Returns:
            (N, 2) int64 array of original coordinates
        """
        coords = np.asarray(coords, dtype=np.float64).reshape(-1, 2)
        scaled = coords * np.array(self.scale)
        return js_round(scaled)

    def __repr__(self):
        return f"CoordinateMapper(display_size={self.display_size}, original_size={self.original_size})"
