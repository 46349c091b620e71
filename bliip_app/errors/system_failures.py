"""
System failure error classifications for programming errors.

These exceptions represent preconditions violated by a caller that
bypassed validation. They are not user-facing and fail fast.
"""

from typing import Any, Dict, Optional


class SystemFailureError(Exception):
    """Base class for unrecoverable system failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class ConfigurationError(SystemFailureError):
    """A precondition guaranteed by validation or configuration was violated."""

    def __init__(self, message: str, parameter: Optional[str] = None,
                 value: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.parameter = parameter
        self.value = value


class MalformedInputError(SystemFailureError):
    """Input has the wrong shape and cannot be validated at all."""

    def __init__(self, message: str, expected_type: Optional[str] = None,
                 actual_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.expected_type = expected_type
        self.actual_type = actual_type
