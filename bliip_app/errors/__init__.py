"""
Error classification system for the prediction core.

This module provides the structured exception hierarchy for input
problems, programming errors and Monte Carlo ensemble failures.
"""

from .input_quality import (
    InputQualityError,
    ValidationFailure,
    UnsupportedCoordinateError,
)
from .system_failures import (
    SystemFailureError,
    ConfigurationError,
    MalformedInputError,
)
from .recovery import (
    RecoverableError,
    GracefulDegradationError,
)
from .ensemble import (
    DrawFailure,
    PartialEnsembleError,
    EnsembleTimeoutError,
    EnsembleCancelledError,
)

__all__ = [
    # Input Quality Errors
    "InputQualityError",
    "ValidationFailure",
    "UnsupportedCoordinateError",
    # System Failures
    "SystemFailureError",
    "ConfigurationError",
    "MalformedInputError",
    # Recovery Categories
    "RecoverableError",
    "GracefulDegradationError",
    # Ensemble Errors
    "DrawFailure",
    "PartialEnsembleError",
    "EnsembleTimeoutError",
    "EnsembleCancelledError",
]
