"""
Monte Carlo ensemble error classifications.

Draw failures are tolerated up to a policy fraction of the ensemble;
beyond that the run escalates to a partial-ensemble error. Timeouts and
cancellations are kept distinct from draw failures so callers can tell
"the answer was wrong" from "the answer never arrived".
"""

from typing import Optional

from .recovery import GracefulDegradationError, RecoverableError


class DrawFailure(RecoverableError):
    """A single simulation draw did not converge or errored internally."""

    def __init__(self, message: str, draw_index: Optional[int] = None,
                 seed: Optional[int] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.draw_index = draw_index
        self.seed = seed


class PartialEnsembleError(GracefulDegradationError):
    """Too few draws succeeded for a statistically defensible aggregate."""

    def __init__(self, message: str, succeeded: int = 0, required: int = 0,
                 total: int = 0, **kwargs):
        kwargs.setdefault("degraded_functionality", "ensemble_aggregation")
        super().__init__(message, **kwargs)
        self.succeeded = succeeded
        self.required = required
        self.total = total


class EnsembleTimeoutError(PartialEnsembleError):
    """A draw or the whole ensemble exceeded its time budget."""

    def __init__(self, message: str, timeout_seconds: Optional[float] = None,
                 scope: str = "ensemble", **kwargs):
        super().__init__(message, **kwargs)
        self.timeout_seconds = timeout_seconds
        self.scope = scope


class EnsembleCancelledError(GracefulDegradationError):
    """The caller aborted the request while draws were in flight."""

    def __init__(self, message: str, completed: int = 0, total: int = 0, **kwargs):
        kwargs.setdefault("degraded_functionality", "ensemble_aggregation")
        kwargs.setdefault("fallback_strategy", "aggregate_completed_draws")
        super().__init__(message, **kwargs)
        self.completed = completed
        self.total = total
