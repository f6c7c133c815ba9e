"""Place, label and export named points on an image."""

from pathlib import Path

__version__ = (Path(__file__).parent / "VERSION").read_text().strip()
