"""Integration tests for the full prediction pipeline."""

import pytest
from dataclasses import replace

from conftest import FakeIntegrator
from bliip_app.config.defaults import PRESET_CONFIGURATIONS, preset_inputs
from bliip_app.config.loader import ConfigLoader
from bliip_app.engine import PredictionEngine
from bliip_app.models.inputs import UserInputs
from bliip_app.output import to_json
from bliip_app.output.serialization import from_json
from bliip_app.validation import validate_response


@pytest.fixture
def engine(tmp_path) -> PredictionEngine:
    return PredictionEngine(FakeIntegrator(), config_loader=ConfigLoader.create(tmp_path))


@pytest.mark.integration
class TestFullPipeline:
    """Integration tests for the complete prediction pipeline."""

    def test_form_payload_to_json(self, engine, default_inputs, evaluation_time) -> None:
        """Test a form-style mapping through prediction and JSON encoding."""
        payload = default_inputs.to_dict()
        payload["balloon"]["balloon_type"] = "Latex Meteorological"
        payload["environment"]["wind_model"] = "GFS (Global)"
        payload["prediction"]["monte_carlo_runs"] = 50

        response = engine.predict(UserInputs.from_dict(payload), evaluation_time, prediction_id="form-1")
        decoded = from_json(to_json(response))

        assert decoded["status"] == "success"
        assert decoded["data"]["monte_carlo"]["simulations"] == 50
        assert decoded["data"]["landing_prediction"]["estimated_landing_time"].endswith("+00:00")
        assert decoded == response

    @pytest.mark.parametrize("preset", sorted(PRESET_CONFIGURATIONS))
    def test_presets_predict(self, engine, evaluation_time, preset) -> None:
        """Test that every balloon preset yields a valid prediction."""
        inputs = preset_inputs(preset, evaluation_time)
        inputs = replace(inputs, prediction=replace(inputs.prediction, monte_carlo_runs=30))

        response = engine.predict(inputs, evaluation_time)

        assert response["status"] == "success"
        assert validate_response(response) is True
        assert response["data"]["flight_summary"]["max_altitude"] <= inputs.balloon.burst_altitude

    def test_higher_burst_flies_longer(self, engine, evaluation_time) -> None:
        """Test that physics differences reach the landing prediction."""

        def duration(preset):
            inputs = preset_inputs(preset, evaluation_time)
            inputs = replace(inputs, prediction=replace(inputs.prediction, monte_carlo_runs=10))
            return engine.predict(inputs, evaluation_time)["data"]["landing_prediction"]["flight_duration_hours"]

        assert duration("high_altitude_research") > duration("educational")

    def test_hrrr_outside_conus_rejected(self, engine, default_inputs, evaluation_time) -> None:
        """Test a cross-field rule surfacing through the engine."""
        payload = default_inputs.to_dict()
        payload["launch_location"]["latitude"] = 51.5
        payload["launch_location"]["longitude"] = -0.12
        payload["environment"]["wind_model"] = "hrrr"

        response = engine.predict(UserInputs.from_dict(payload), evaluation_time)

        assert response["status"] == "error"
        assert [e["rule"] for e in response["error"]["errors"]] == ["wind_model.hrrr_region"]

    def test_every_error_reported(self, engine, default_inputs, evaluation_time) -> None:
        """Test that validation reports all errors in field order."""
        payload = default_inputs.to_dict()
        payload["launch_location"]["latitude"] = 95
        payload["balloon"]["ascent_rate"] = 0
        payload["prediction"]["monte_carlo_runs"] = 5000

        response = engine.predict(UserInputs.from_dict(payload), evaluation_time)

        assert [e["field"] for e in response["error"]["errors"]] == [
            "launch_location.latitude",
            "balloon.ascent_rate",
            "prediction.monte_carlo_runs",
        ]
