"""
Input validation module.

Rule tables and the stateless validator that gates every prediction,
plus the range check applied to assembled responses.
"""
from .engine import InputValidator, format_validation_errors, validate
from .response_schema import ResponseValidationError, ResponseValidator, validate_response
from .rules import Severity, ValidationError

__all__ = [
    "InputValidator",
    "ResponseValidationError",
    "ResponseValidator",
    "Severity",
    "ValidationError",
    "format_validation_errors",
    "validate",
    "validate_response",
]
