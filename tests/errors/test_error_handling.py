"""
Error handling tests for the prediction core.

Tests cover the error classification hierarchy, fail-fast programming
errors and the mapping of ensemble failures to explicit outcomes.
"""

import pytest
from dataclasses import replace

from conftest import FakeIntegrator
from bliip_app.ensemble.aggregator import EnsembleAggregator
from bliip_app.ensemble.runner import EnsembleRunner
from bliip_app.errors import (
    ConfigurationError,
    DrawFailure,
    EnsembleCancelledError,
    EnsembleTimeoutError,
    GracefulDegradationError,
    InputQualityError,
    MalformedInputError,
    PartialEnsembleError,
    RecoverableError,
    SystemFailureError,
    UnsupportedCoordinateError,
    ValidationFailure,
)
from bliip_app.models.results import OutcomeStatus
from bliip_app.validation import InputValidator


class TestErrorClassification:
    """Test error classification system."""

    def test_input_quality_error_hierarchy(self):
        """Test that input quality errors are recoverable."""
        base_error = InputQualityError("base error")
        assert base_error.recoverable is True
        assert base_error.context == {}

        failure = ValidationFailure("2 errors", errors=["a", "b"], context={"request": "r1"})
        assert isinstance(failure, InputQualityError)
        assert failure.error_count == 2
        assert failure.context == {"request": "r1"}

        coordinate_error = UnsupportedCoordinateError("polar", latitude=85.0, longitude=0.0, system="MGRS")
        assert isinstance(coordinate_error, InputQualityError)
        assert coordinate_error.system == "MGRS"

    def test_system_failure_error_hierarchy(self):
        """Test that system failures are unrecoverable."""
        config_error = ConfigurationError("empty ensemble", parameter="draws", value=0)
        assert isinstance(config_error, SystemFailureError)
        assert config_error.recoverable is False
        assert config_error.parameter == "draws"

        malformed = MalformedInputError("bad shape", expected_type="UserInputs", actual_type="dict")
        assert malformed.recoverable is False
        assert malformed.actual_type == "dict"

    def test_ensemble_error_hierarchy(self):
        """Test that ensemble errors degrade gracefully."""
        draw_failure = DrawFailure("diverged", draw_index=4, seed=99)
        assert isinstance(draw_failure, RecoverableError)
        assert draw_failure.recoverable is True
        assert draw_failure.draw_index == 4

        partial = PartialEnsembleError("too few", succeeded=80, required=90, total=100)
        assert isinstance(partial, GracefulDegradationError)
        assert partial.allows_degradation is True
        assert partial.degraded_functionality == "ensemble_aggregation"
        assert partial.context == {}

        timeout = EnsembleTimeoutError("slow", timeout_seconds=30.0, scope="draw", succeeded=3, total=10)
        assert isinstance(timeout, PartialEnsembleError)
        assert timeout.scope == "draw"
        assert timeout.succeeded == 3

        cancelled = EnsembleCancelledError("aborted", completed=4, total=10)
        assert not isinstance(cancelled, PartialEnsembleError)
        assert cancelled.fallback_strategy == "aggregate_completed_draws"


class TestFailFast:
    """Programming errors raise instead of returning defaults."""

    def test_malformed_inputs(self):
        """Test that a non-record is rejected before any rule runs."""
        with pytest.raises(MalformedInputError) as exc_info:
            InputValidator().validate(["not", "inputs"])

        assert exc_info.value.expected_type == "UserInputs"
        assert exc_info.value.actual_type == "list"

    def test_malformed_section(self, default_inputs):
        """Test that a section of the wrong type is rejected."""
        inputs = replace(default_inputs, balloon={"burst_altitude": 30000})

        with pytest.raises(MalformedInputError):
            InputValidator().validate(inputs)

    def test_empty_ensemble(self):
        """Test that aggregating nothing is a configuration error."""
        with pytest.raises(ConfigurationError):
            EnsembleAggregator().aggregate([])


class TestOutcomeMapping:
    """Ensemble failures surface as explicit outcome variants."""

    def test_partial_ensemble_outcome(self, default_inputs):
        """Test that escalation produces a PARTIAL outcome, not zeros."""
        inputs = replace(default_inputs, prediction=replace(default_inputs.prediction, monte_carlo_runs=10))

        outcome = EnsembleRunner(FakeIntegrator(failure_rate=1.0)).run(inputs)

        assert outcome.status == OutcomeStatus.PARTIAL
        assert outcome.aggregate is None
        assert outcome.error.required == 9

    def test_configuration_error_outcome(self, default_inputs):
        """Test that an invalid aggregation policy becomes CONFIGURATION_ERROR."""

        class BrokenAggregator(EnsembleAggregator):
            def aggregate(self, draws, **kwargs):
                raise ConfigurationError("bad level", parameter="confidence_level", value=2.0)

        inputs = replace(default_inputs, prediction=replace(default_inputs.prediction, monte_carlo_runs=3))
        runner = EnsembleRunner(FakeIntegrator(), aggregator=BrokenAggregator())

        outcome = runner.run(inputs)

        assert outcome.status == OutcomeStatus.CONFIGURATION_ERROR
        assert isinstance(outcome.error, ConfigurationError)
