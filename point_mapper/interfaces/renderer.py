"""
Point overlay rendering with OpenCV.
"""

from typing import Dict, Optional, Tuple

import cv2
import numpy as np

from ..core.points import PointMappingSession

Color = Tuple[int, int, int]

PREFIX_COLORS: Dict[str, str] = {
    "LOC": "#22c55e",
    "PT": "#1e40af",
    "MK": "#eab308",
    "REF": "#065f46",
    "TGT": "#ef4444",
    "OBJ": "#14b8a6",
    "POI": "#84cc16",
    "NAV": "#4ade80",
}
DEFAULT_POINT_COLOR = "#1e40af"
SELECTED_RING_COLOR = "#f97316"
BOX_COLOR = "#3b82f6"
WHITE = (255, 255, 255)
BLACK = (0, 0, 0)


def hex_to_rgb(value: str) -> Color:
    """``#rrggbb`` to an (r, g, b) tuple."""
    value = value.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Not a #rrggbb color: {value!r}")
    return tuple(int(value[i:i + 2], 16) for i in (0, 2, 4))


def prefix_color(prefix: str) -> Color:
    return hex_to_rgb(PREFIX_COLORS.get(prefix, DEFAULT_POINT_COLOR))


class PointRenderer:
    """
    Draws the visible points of a session over an RGB image.

    Args:
        session: Session to draw
        selection_box: Callable returning the live box rectangle
            (min_x, min_y, max_x, max_y) or None
    """

    def __init__(self, session: PointMappingSession, selection_box=None):
        self.session = session
        self.selection_box = selection_box

    def render(self, image: np.ndarray) -> np.ndarray:
        """
        Get visualization for display.

        Args:
            image: RGB image already sized to the display surface

        Returns:
            RGB visualization image
        """
        settings = self.session.settings
        viz_data = self.session.get_visualization_data()
        vis = image.copy()

        radius = max(1, int(settings.point_size) // 2)
        font_scale = float(settings.label_font_size) / 24.0
        selected = viz_data["selected"]

        for point in viz_data["points"]:
            center = (int(point.x), int(point.y))
            if point.key in selected:
                cv2.circle(vis, center, radius + 5, hex_to_rgb(SELECTED_RING_COLOR), 2)
            cv2.circle(vis, center, radius, prefix_color(point.namespace), -1)
            # Border
            cv2.circle(vis, center, radius + 1, WHITE, 1)
            if settings.show_labels:
                self._draw_label(vis, point.point_id, center, radius, font_scale)

        rect = self.selection_box() if self.selection_box else None
        if rect is not None:
            self._draw_box(vis, rect)
        return vis

    def _draw_label(
        self,
        vis: np.ndarray,
        text: str,
        center: Tuple[int, int],
        radius: int,
        font_scale: float,
    ):
        origin = (center[0] + radius + 4, center[1] - radius - 4)
        cv2.putText(
            vis, text, origin, cv2.FONT_HERSHEY_SIMPLEX, font_scale, BLACK, 3, cv2.LINE_AA
        )
        cv2.putText(
            vis, text, origin, cv2.FONT_HERSHEY_SIMPLEX, font_scale, WHITE, 1, cv2.LINE_AA
        )

    def _draw_box(self, vis: np.ndarray, rect, alpha: float = 0.15):
        min_x, min_y, max_x, max_y = (int(round(v)) for v in rect)
        color = hex_to_rgb(BOX_COLOR)
        overlay = vis.copy()
        cv2.rectangle(overlay, (min_x, min_y), (max_x, max_y), color, -1)
        cv2.addWeighted(overlay, alpha, vis, 1 - alpha, 0, dst=vis)
        cv2.rectangle(vis, (min_x, min_y), (max_x, max_y), color, 1)


def render_points(
    session: PointMappingSession,
    image: np.ndarray,
    box: Optional[Tuple[float, float, float, float]] = None,
) -> np.ndarray:
    """One-shot rendering, e.g. to save an annotated copy of the image."""
    return PointRenderer(session, selection_box=lambda: box).render(image)
