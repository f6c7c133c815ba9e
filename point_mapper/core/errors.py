"""
Error taxonomy for the point mapping core.

Validation always happens before any mutation, so every error raised from
the core leaves the store, the selection and the history untouched.
"""


class PointMapperError(Exception):
    """Base class for all point mapper errors."""


class ValidationError(PointMapperError, ValueError):
    """Invalid point ID, invalid prefix or an operation with nothing to act on."""


class DuplicateIdError(ValidationError):
    """A point with the requested ID already exists."""

    def __init__(self, point_id: str):
        super().__init__(f"A point with ID {point_id!r} already exists")
        self.point_id = point_id


class ConfirmationDeclined(PointMapperError):
    """The user declined a destructive operation. Not shown as an error."""


class PersistenceError(PointMapperError, OSError):
    """Settings could not be loaded, saved or imported."""
