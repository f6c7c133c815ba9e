"""
Export of point sets: coordinate mapping and CSV serialization.
"""

from .coordinates import CoordinateMapper, to_original
from .csv_exporter import CSVExporter, default_export_filename

__all__ = [
    "CoordinateMapper",
    "to_original",
    "CSVExporter",
    "default_export_filename",
]
