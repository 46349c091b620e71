"""
Input quality error classifications for mission parameter handling.

These exceptions describe problems with user-supplied values. They are
always recoverable: the caller fixes the input and tries again.
"""

from typing import Any, Dict, Optional


class InputQualityError(Exception):
    """Base class for input problems that can be handled gracefully."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class ValidationFailure(InputQualityError):
    """One or more validation rules rejected the mission parameters."""

    def __init__(self, message: str, errors: Optional[list] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.errors = list(errors or [])

    @property
    def error_count(self) -> int:
        return len(self.errors)


class UnsupportedCoordinateError(InputQualityError):
    """Coordinates cannot be represented in the requested grid system."""

    def __init__(self, message: str, latitude: Optional[float] = None,
                 longitude: Optional[float] = None, system: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.latitude = latitude
        self.longitude = longitude
        self.system = system
