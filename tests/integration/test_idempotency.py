"""Integration tests for repeatable predictions and side-effect-free validation."""

import pytest
import threading
from dataclasses import replace

from conftest import FakeIntegrator
from bliip_app.config.loader import ConfigLoader
from bliip_app.engine import PredictionEngine
from bliip_app.validation import InputValidator


def engine_for(tmp_path, **overrides) -> PredictionEngine:
    return PredictionEngine(FakeIntegrator(), config_loader=ConfigLoader.create(tmp_path),
                            overrides=overrides or None)


@pytest.mark.integration
class TestPredictionIdempotency:
    """Same inputs, same answer."""

    def test_independent_engines_agree(self, tmp_path, default_inputs, evaluation_time) -> None:
        """Test that two engines produce byte-identical responses."""
        first = engine_for(tmp_path).predict(default_inputs, evaluation_time, prediction_id="p")
        second = engine_for(tmp_path).predict(default_inputs, evaluation_time, prediction_id="p")

        assert first == second

    def test_worker_count_does_not_matter(self, tmp_path, default_inputs, evaluation_time) -> None:
        """Test that parallelism never changes the statistics."""
        serial = engine_for(tmp_path, ensemble={"max_workers": 1})
        parallel = engine_for(tmp_path, ensemble={"max_workers": 8})

        assert serial.predict(default_inputs, evaluation_time, prediction_id="p") == \
            parallel.predict(default_inputs, evaluation_time, prediction_id="p")

    def test_changed_inputs_change_prediction(self, tmp_path, default_inputs, evaluation_time) -> None:
        """Test that the seed follows the inputs."""
        engine = engine_for(tmp_path)
        windier = replace(default_inputs, prediction=replace(default_inputs.prediction,
                                                             wind_uncertainty_percent=30))

        base = engine.predict(default_inputs, evaluation_time)["data"]["landing_prediction"]
        changed = engine.predict(windier, evaluation_time)["data"]["landing_prediction"]

        assert changed["confidence_interval"]["radius_km"] > base["confidence_interval"]["radius_km"]


@pytest.mark.integration
class TestValidationPurity:
    """Validation is stateless and safe to share across threads."""

    def test_repeated_validation(self, default_inputs, evaluation_time) -> None:
        validator = InputValidator()
        inputs = replace(default_inputs, balloon=replace(default_inputs.balloon, burst_altitude=500))

        assert validator.validate(inputs, evaluation_time) == validator.validate(inputs, evaluation_time)
        assert inputs.balloon.burst_altitude == 500

    def test_concurrent_validation(self, default_inputs, evaluation_time) -> None:
        """Test one validator shared by many threads."""
        validator = InputValidator()
        bad = replace(default_inputs, balloon=replace(default_inputs.balloon, ascent_rate=20.0))
        results = {}

        def check(i):
            inputs = bad if i % 2 else default_inputs
            results[i] = [e.rule for e in validator.validate(inputs, evaluation_time)]

        threads = [threading.Thread(target=check, args=(i,)) for i in range(16)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert all(results[i] == ["ascent_rate.range"] for i in range(1, 16, 2))
        assert all(results[i] == [] for i in range(0, 16, 2))
