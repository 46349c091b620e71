"""Unit tests for data models."""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime, timezone

from bliip_app.models.inputs import BalloonType, UserInputs, WeatherSource, WindModel
from bliip_app.models.results import UncertaintyAttribution
from bliip_app.models.trajectory import DrawStatus, PerturbationSource, SimulationDraw, TrajectoryPoint
from bliip_app.validation import validate


class TestLabeledEnums:
    """Test suite for enums accepting values and display labels."""

    @pytest.mark.parametrize("raw,member", [
        ("latex", BalloonType.LATEX),
        ("Latex Meteorological", BalloonType.LATEX),
        ("HDPE", BalloonType.HDPE),
        (BalloonType.CUSTOM, BalloonType.CUSTOM),
    ])
    def test_parse_balloon_type(self, raw, member) -> None:
        """Test parsing balloon types from values and labels."""
        assert BalloonType.parse(raw) is member

    @pytest.mark.parametrize("enum_cls,raw,member", [
        (BalloonType, "Latex", BalloonType.LATEX),
        (BalloonType, "LATEX", BalloonType.LATEX),
        (BalloonType, "Hdpe", BalloonType.HDPE),
        (WeatherSource, "Auto", WeatherSource.AUTO),
        (WeatherSource, "OpenMeteo", WeatherSource.OPEN_METEO),
        (WeatherSource, "open-meteo", WeatherSource.OPEN_METEO),
        (WeatherSource, "NOAA_GFS", WeatherSource.NOAA_GFS),
        (WeatherSource, "NoaaGfs", WeatherSource.NOAA_GFS),
        (WindModel, "GFS", WindModel.GFS),
        (WindModel, "HRRR", WindModel.HRRR),
        (WindModel, "Auto", WindModel.AUTO),
    ])
    def test_parse_variant_spellings(self, enum_cls, raw, member) -> None:
        """Test that member names and mixed-case spellings resolve."""
        assert enum_cls.parse(raw) is member

    @pytest.mark.parametrize("raw", ["ecmwf", "", 3, None])
    def test_parse_unknown(self, raw) -> None:
        """Test that unknown choices are rejected."""
        with pytest.raises(ValueError):
            WindModel.parse(raw)

    def test_labels(self) -> None:
        """Test display labels."""
        assert WeatherSource.OPEN_METEO.label == "Open-Meteo (Recommended)"
        assert WindModel.HRRR.label == "HRRR (CONUS only)"


class TestUserInputs:
    """Test suite for the mission parameter record."""

    def test_round_trip_through_mapping(self, default_inputs) -> None:
        """Test that to_dict output rebuilds the same record."""
        assert UserInputs.from_dict(default_inputs.to_dict()) == default_inputs

    def test_to_dict_formats(self, default_inputs) -> None:
        """Test that enums and instants are rendered as plain values."""
        data = default_inputs.to_dict()

        assert data["launch_location"]["launch_time"] == "2025-06-01T13:00:00+00:00"
        assert data["balloon"]["balloon_type"] == "latex"
        assert data["environment"]["wind_model"] == "auto"

    def test_from_dict_accepts_labels(self, default_inputs) -> None:
        """Test that display labels and Z-suffixed times are accepted."""
        data = default_inputs.to_dict()
        data["environment"]["weather_source"] = "NOAA GFS"
        data["launch_location"]["launch_time"] = "2025-06-01T18:30:00Z"

        inputs = UserInputs.from_dict(data)

        assert inputs.environment.weather_source == WeatherSource.NOAA_GFS
        assert inputs.launch_location.launch_time == datetime(2025, 6, 1, 18, 30, tzinfo=timezone.utc)

    def test_from_dict_accepts_variant_names(self, default_inputs, evaluation_time) -> None:
        """Test that capitalized variant names validate cleanly."""
        data = default_inputs.to_dict()
        data["balloon"]["balloon_type"] = "Latex"
        data["environment"]["weather_source"] = "Auto"
        data["environment"]["wind_model"] = "GFS"

        inputs = UserInputs.from_dict(data)

        assert inputs.balloon.balloon_type is BalloonType.LATEX
        assert inputs.environment.weather_source is WeatherSource.AUTO
        assert inputs.environment.wind_model is WindModel.GFS
        assert validate(inputs, evaluation_time) == []

    def test_from_dict_keeps_invalid_values(self, default_inputs) -> None:
        """Test that unparseable values are left for the validator."""
        data = default_inputs.to_dict()
        data["balloon"]["balloon_type"] = "mylar"
        data["launch_location"]["launch_time"] = "tomorrow"

        inputs = UserInputs.from_dict(data)

        assert inputs.balloon.balloon_type == "mylar"
        assert inputs.launch_location.launch_time == "tomorrow"

    def test_immutable(self, default_inputs) -> None:
        """Test that records are frozen."""
        with pytest.raises(FrozenInstanceError):
            default_inputs.balloon.ascent_rate = 6.0  # type: ignore[misc]


class TestSimulationDraw:
    """Test suite for Monte Carlo draws."""

    def test_failed_draw(self, default_inputs) -> None:
        """Test the draw-level failure flag."""
        draw = SimulationDraw.failed(7, default_inputs, "diverged")

        assert draw.status == DrawStatus.FAILED
        assert not draw.succeeded
        assert draw.landing is None

    def test_tagged_keeps_existing_source(self, make_draw) -> None:
        """Test that integrator-supplied provenance wins over the plan slot."""
        draw = make_draw(40.0, -74.0, source=PerturbationSource.MODEL)

        tagged = draw.tagged(PerturbationSource.WIND, 3)

        assert tagged.source == PerturbationSource.MODEL
        assert tagged.index == 3

    def test_tagged_fills_missing_source(self, make_draw) -> None:
        """Test that untagged draws take the plan slot's source."""
        tagged = make_draw(40.0, -74.0, source=None).tagged(PerturbationSource.DATA_QUALITY, 0)

        assert tagged.source == PerturbationSource.DATA_QUALITY

    def test_max_altitude_point(self, default_inputs, evaluation_time) -> None:
        """Test burst point lookup."""
        points = tuple(
            TrajectoryPoint(timestamp=evaluation_time, latitude=40.0, longitude=-74.0, altitude=alt)
            for alt in (0.0, 30000.0, 100.0)
        )
        draw = SimulationDraw(seed=1, inputs=default_inputs, points=points, landing=None,
                              flight_duration_hours=2.0)

        assert draw.max_altitude_point().altitude == 30000.0
        assert SimulationDraw.failed(1, default_inputs, "x").max_altitude_point() is None


class TestUncertaintyAttribution:
    """Test suite for attribution variants."""

    def test_unavailable(self) -> None:
        """Test the unavailable marker."""
        attribution = UncertaintyAttribution.unavailable("untagged draws")

        assert not attribution.available
        assert attribution.total() == 0

    def test_model_only(self) -> None:
        """Test the degenerate all-model attribution."""
        attribution = UncertaintyAttribution.model_only("single draw")

        assert attribution.fractions[PerturbationSource.MODEL] == 1.0
        assert attribution.total() == 1.0
