"""Tests for prediction response assembly."""

from datetime import timedelta

import pytest

from conftest import FakeIntegrator
from bliip_app.config.defaults import OutputPolicy
from bliip_app.ensemble.aggregator import EnsembleAggregator
from bliip_app.ensemble.runner import EnsembleRunner
from bliip_app.models.results import (
    CurrentPosition,
    EnvironmentalData,
    FlightMetrics,
    Telemetry,
)
from bliip_app.output import OutputAssembler
from bliip_app.output.assembler import simplify_points
from bliip_app.validation import Severity, ValidationError, validate_response


@pytest.fixture
def ensemble(default_inputs):
    """Aggregate and nominal draw from a fake-physics run."""
    runner = EnsembleRunner(FakeIntegrator())
    outcome = runner.run(default_inputs)
    return outcome.aggregate, runner.run_nominal(default_inputs)


def assemble(ensemble, inputs, evaluation_time, **kwargs):
    aggregate, nominal = ensemble
    return OutputAssembler().assemble(aggregate, nominal, inputs, "pred-1", evaluation_time, **kwargs)


class TestSuccessResponse:
    """Layout and precision of success responses."""

    def test_envelope(self, ensemble, default_inputs, evaluation_time):
        response = assemble(ensemble, default_inputs, evaluation_time)

        assert response["status"] == "success"
        assert response["prediction_id"] == "pred-1"
        assert set(response["data"]) == {
            "landing_prediction", "trajectory", "uncertainty", "monte_carlo", "flight_summary",
        }
        assert response["metadata"] == {
            "generated_at": "2025-06-01T12:00:00+00:00",
            "weather_source": "Auto-select",
            "model_version": "2.0.0",
        }

    def test_passes_response_schema(self, ensemble, default_inputs, evaluation_time):
        assert validate_response(assemble(ensemble, default_inputs, evaluation_time)) is True

    def test_landing_precision(self, ensemble, default_inputs, evaluation_time):
        landing = assemble(ensemble, default_inputs, evaluation_time)["data"]["landing_prediction"]

        assert landing["coordinates"]["latitude"] == round(landing["coordinates"]["latitude"], 6)
        assert isinstance(landing["coordinates"]["altitude"], int)
        assert landing["confidence_interval"]["probability"] == 0.95
        assert landing["confidence_interval"]["radius_km"] == round(landing["confidence_interval"]["radius_km"], 1)
        assert landing["estimated_landing_time"].endswith("+00:00")
        assert "coordinate_conversion" not in landing

    def test_uncertainty_factors(self, ensemble, default_inputs, evaluation_time):
        zone = assemble(ensemble, default_inputs, evaluation_time)["data"]["uncertainty"]["landing_zone"]

        assert zone["attribution"] == "available"
        assert set(zone["factors"]) == {"wind_uncertainty", "model_uncertainty", "data_quality"}
        assert sum(zone["factors"].values()) == pytest.approx(1.0, abs=0.005)

    def test_unavailable_attribution(self, make_draw, default_inputs, evaluation_time):
        aggregate = EnsembleAggregator().aggregate([make_draw(40.0, -74.0, source=None)] * 3)

        response = OutputAssembler().assemble(aggregate, None, default_inputs, "pred-2", evaluation_time)
        zone = response["data"]["uncertainty"]["landing_zone"]

        assert zone["factors"] is None
        assert zone["attribution"] == "unavailable"

    def test_monte_carlo_distribution(self, ensemble, default_inputs, evaluation_time):
        mc = assemble(ensemble, default_inputs, evaluation_time)["data"]["monte_carlo"]

        assert mc["simulations"] == mc["successful"] == 100
        assert list(mc["landing_distribution"]["percentiles"]) == ["10", "50", "90"]
        assert list(mc["landing_distribution"]["distance_percentiles_km"]) == ["10", "50", "90"]
        assert mc["reduced_confidence"] is False


class TestTrajectory:
    """Nominal trajectory and its summary."""

    def test_full_trajectory(self, ensemble, default_inputs, evaluation_time):
        trajectory = assemble(ensemble, default_inputs, evaluation_time)["data"]["trajectory"]

        assert trajectory["metadata"] == {
            "total_points": 7,
            "time_step_seconds": 10,
            "coordinate_system": "WGS84",
        }
        assert len(trajectory["points"]) == 7
        assert {"timestamp", "latitude", "longitude", "altitude", "temperature"} <= set(trajectory["points"][0])

    def test_simplified_trajectory(self, ensemble, default_inputs, evaluation_time):
        aggregate, nominal = ensemble
        assembler = OutputAssembler(OutputPolicy(simplification_factor=3))

        trajectory = assembler.assemble(aggregate, nominal, default_inputs, "p", evaluation_time,
                                        simplify=True)["data"]["trajectory"]

        # Points 0, 3 and 6 of seven; the last point is already kept
        assert trajectory["metadata"]["total_points"] == 3
        assert trajectory["metadata"]["simplification_factor"] == 3
        assert trajectory["points"][-1]["altitude"] == 0

    def test_missing_nominal_draw(self, ensemble, default_inputs, evaluation_time):
        aggregate, _ = ensemble

        response = OutputAssembler().assemble(aggregate, None, default_inputs, "p", evaluation_time)

        assert response["data"]["trajectory"]["points"] == []
        assert "flight_summary" not in response["data"]

    def test_flight_summary(self, ensemble, default_inputs, evaluation_time):
        summary = assemble(ensemble, default_inputs, evaluation_time)["data"]["flight_summary"]

        assert summary["launch_time"] == "2025-06-01T13:00:00+00:00"
        assert summary["flight_duration"] == 10000
        assert summary["total_distance"] == pytest.approx(100.0, abs=1.0)
        assert summary["average_speed"] == pytest.approx(10.0, abs=0.1)
        assert summary["max_altitude"] == round(max(p.altitude for p in ensemble[1].points))

    def test_simplify_points(self):
        points = list(range(25))

        assert simplify_points(points, 10) == [0, 10, 20, 24]
        assert simplify_points(points, 1) == points
        assert simplify_points([1, 2], 10) == [1, 2]


class TestOptionalSections:
    """Conversions and telemetry appear only on request."""

    def test_coordinate_conversion(self, ensemble, default_inputs, evaluation_time):
        landing = assemble(ensemble, default_inputs, evaluation_time,
                           include_conversions=True)["data"]["landing_prediction"]

        conversion = landing["coordinate_conversion"]
        assert conversion["wgs84"] == {
            "latitude": landing["coordinates"]["latitude"],
            "longitude": landing["coordinates"]["longitude"],
        }
        assert conversion["utm"]["zone"] == "18N"
        assert isinstance(conversion["utm"]["easting"], int)
        assert conversion["mgrs"]["grid"].startswith("18T")

    def test_polar_landing_skips_conversion(self, make_draw, default_inputs, evaluation_time):
        aggregate = EnsembleAggregator().aggregate([make_draw(85.0, 10.0)])

        response = OutputAssembler().assemble(aggregate, None, default_inputs, "p", evaluation_time,
                                              include_conversions=True)

        assert response["data"]["landing_prediction"]["coordinate_conversion"] is None

    def test_telemetry(self, ensemble, default_inputs, evaluation_time):
        telemetry = Telemetry(
            current_position=CurrentPosition(40.9, -73.5, 12345.6, evaluation_time + timedelta(hours=2)),
            flight_metrics=FlightMetrics(current_speed=12.34, ascent_rate=5.06,
                                         distance_traveled=42.123, time_in_flight=3600.4),
            environmental_data=EnvironmentalData(temperature=-40.26, pressure=180.456,
                                                 wind_speed=15.55, wind_direction=271.6),
        )

        data = assemble(ensemble, default_inputs, evaluation_time, telemetry=telemetry)["data"]["telemetry"]

        assert data["current_position"]["altitude"] == 12346
        assert data["current_position"]["timestamp"] == "2025-06-01T14:00:00+00:00"
        assert data["flight_metrics"]["distance_traveled"] == 42.12
        assert data["flight_metrics"]["time_in_flight"] == 3600
        assert data["environmental_data"]["wind_direction"] == 272


class TestFailureResponse:

    def test_validation_failure(self, evaluation_time):
        errors = [ValidationError("balloon.burst_altitude", "burst_altitude.above_launch",
                                  "Burst altitude must exceed launch altitude", Severity.ERROR)]

        response = OutputAssembler().assemble_failure("p", evaluation_time, "validation_failure",
                                                      "Input validation failed", errors)

        assert response["status"] == "error"
        assert response["error"]["kind"] == "validation_failure"
        assert response["error"]["errors"] == [{
            "field": "balloon.burst_altitude",
            "rule": "burst_altitude.above_launch",
            "message": "Burst altitude must exceed launch altitude",
            "severity": "error",
        }]
        assert "data" not in response

    def test_plain_errors_stringified(self, evaluation_time):
        response = OutputAssembler().assemble_failure("p", evaluation_time, "timeout", "Too slow",
                                                      [RuntimeError("draw 3")])

        assert response["error"]["errors"] == ["draw 3"]
