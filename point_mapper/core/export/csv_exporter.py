"""
CSV export of point sets.
"""

import csv
import io
import logging
from datetime import date
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence

from ..points.state import Point
from ..points.utils import js_round
from .coordinates import CoordinateMapper

logger = logging.getLogger(__name__)

UNPREFIXED_POINT_TYPE = "POINT"


def default_export_filename(day: Optional[date] = None) -> str:
    """``image_points_<YYYY-MM-DD>.csv`` for today (or ``day``)."""
    day = day or date.today()
    return f"image_points_{day.isoformat()}.csv"


def point_type(point: Point) -> str:
    return point.namespace or UNPREFIXED_POINT_TYPE


class CSVExporter:
    """
    Serializes points as CSV.

    The header is ``point_id,x,y`` followed by ``point_type`` and
    ``original_x,original_y`` when enabled. Rows are terminated by ``\\n``.
    """

    def __init__(
        self,
        delimiter: str = ",",
        include_point_type: bool = True,
        include_original_coords: bool = True,
    ):
        if not delimiter or len(delimiter) != 1:
            raise ValueError(f"CSV delimiter must be a single character, got {delimiter!r}")
        self.delimiter = delimiter
        self.include_point_type = include_point_type
        self.include_original_coords = include_original_coords

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "CSVExporter":
        return cls(
            delimiter=settings.get("csv_delimiter", ","),
            include_point_type=settings.get("include_point_type", True),
            include_original_coords=settings.get("include_original_coords", True),
        )

    def header(self) -> List[str]:
        headers = ["point_id", "x", "y"]
        if self.include_point_type:
            headers.append("point_type")
        if self.include_original_coords:
            headers.extend(["original_x", "original_y"])
        return headers

    def rows(
        self, points: Sequence[Point], mapper: Optional[CoordinateMapper] = None
    ) -> List[List[Any]]:
        """
        One row per point.

        Raises:
            ValueError: If original coordinates are requested without a mapper
        """
        if self.include_original_coords and mapper is None:
            raise ValueError("Original coordinates need a coordinate mapper")
        rows = []
        for point in points:
            row = [point.point_id, js_round(point.x), js_round(point.y)]
            if self.include_point_type:
                row.append(point_type(point))
            if self.include_original_coords:
                row.extend(mapper.to_original(point.x, point.y))
            rows.append(row)
        return rows

    def export(
        self, points: Sequence[Point], mapper: Optional[CoordinateMapper] = None
    ) -> str:
        buffer = io.StringIO()
        self._write(buffer, points, mapper)
        return buffer.getvalue()

    def write(
        self,
        path: Path,
        points: Sequence[Point],
        mapper: Optional[CoordinateMapper] = None,
    ) -> Path:
        path = Path(path)
        with path.open("w", encoding="utf-8", newline="") as f:
            self._write(f, points, mapper)
        logger.info("Exported %d points to %s", len(points), path)
        return path

    def _write(self, f, points, mapper):
        rows = self.rows(points, mapper)
        writer = csv.writer(f, delimiter=self.delimiter, lineterminator="\n")
        writer.writerow(self.header())
        writer.writerows(rows)
