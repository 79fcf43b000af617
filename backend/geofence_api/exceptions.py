"""Domain errors raised by the geofence core and service layer.

Each error carries the HTTP status it is surfaced with; the mapping to a
response happens once, in the application exception handler.
"""
from typing import Any, Optional, Sequence

from fastapi import status


class GeofenceError(Exception):
    """Base class for all geofence domain errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GeofenceError):
    """Malformed or out-of-range input. Always user-fixable."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, path: Optional[Sequence[Any]] = None):
        super().__init__(message)
        self.path = tuple(path) if path is not None else ()


class ConflictError(GeofenceError):
    """Zone name already in use."""

    status_code = status.HTTP_409_CONFLICT


class NotFoundError(GeofenceError):
    """Unknown zone identifier."""

    status_code = status.HTTP_404_NOT_FOUND


class PersistenceError(GeofenceError):
    """Unexpected store failure; the message never includes store internals."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
