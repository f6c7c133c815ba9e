"""
Interfaces module - UI adapters for the point mapping core.

Provides image decoding, overlay rendering and an OpenCV window adapter
around the UI-agnostic session.
"""

from .gui_adapter import GUIPointMappingAdapter
from .image_io import decode_image, load_image
from .renderer import PointRenderer, render_points

__all__ = [
    "GUIPointMappingAdapter",
    "PointRenderer",
    "render_points",
    "decode_image",
    "load_image",
]
