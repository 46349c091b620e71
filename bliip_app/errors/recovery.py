"""
Recovery strategy classifications for error handling.

These mixins categorize errors by their recovery characteristics and
guide how the ensemble runner reports them.
"""

from typing import Any, Dict, Optional


class RecoverableError(Exception):
    """Mixin for errors that are tolerated up to a policy limit."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = True


class GracefulDegradationError(Exception):
    """Mixin for errors that allow continued operation with reduced functionality."""

    def __init__(self, message: str, degraded_functionality: Optional[str] = None,
                 fallback_strategy: Optional[str] = None,
                 context: Optional[Dict[str, Any]] = None, **kwargs):
        super().__init__(message)
        self.degraded_functionality = degraded_functionality
        self.fallback_strategy = fallback_strategy
        self.context = context or {}
        self.recoverable = True
        self.allows_degradation = True
