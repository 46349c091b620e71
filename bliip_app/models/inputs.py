"""
Mission parameter models for balloon landing prediction.

Pure value containers: construction never fails and carries no range
checks. Validity is decided by ``bliip_app.validation``.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional, Union

from ..utils.time import format_instant, parse_instant


class LabeledEnum(str, Enum):
    """String enum that also accepts the human-readable display label."""

    @property
    def label(self) -> str:
        return self._labels()[self.value]

    @classmethod
    def _labels(cls) -> dict[str, str]:
        return {}

    @classmethod
    def parse(cls, raw: Union[str, "LabeledEnum"]) -> "LabeledEnum":
        """
        Resolve a member from its value, name or display label.

        Matching ignores case, underscores, hyphens and spaces, so
        "Latex", "OpenMeteo" and "NOAA_GFS" all resolve.
        """
        if isinstance(raw, cls):
            return raw
        if isinstance(raw, str):
            key = _normalize_choice(raw)
            for member in cls:
                if key in (_normalize_choice(member.value),
                           _normalize_choice(member.name),
                           _normalize_choice(member.label)):
                    return member
        raise ValueError(f"{raw!r} is not a valid {cls.__name__}")


def _normalize_choice(text: str) -> str:
    return "".join(ch for ch in text.lower() if ch not in "_- ")


class BalloonType(LabeledEnum):
    """Balloon envelope material."""
    LATEX = "latex"
    HDPE = "hdpe"
    CUSTOM = "custom"

    @classmethod
    def _labels(cls) -> dict[str, str]:
        return {"latex": "Latex Meteorological", "hdpe": "HDPE", "custom": "Custom"}


class WeatherSource(LabeledEnum):
    """Upstream weather data provider."""
    OPEN_METEO = "open_meteo"
    NOAA_GFS = "noaa_gfs"
    AUTO = "auto"

    @classmethod
    def _labels(cls) -> dict[str, str]:
        return {
            "open_meteo": "Open-Meteo (Recommended)",
            "noaa_gfs": "NOAA GFS",
            "auto": "Auto-select",
        }


class WindModel(LabeledEnum):
    """Numerical wind model driving the integrator."""
    GFS = "gfs"
    HRRR = "hrrr"
    AUTO = "auto"

    @classmethod
    def _labels(cls) -> dict[str, str]:
        return {"gfs": "GFS (Global)", "hrrr": "HRRR (CONUS only)", "auto": "Auto"}


@dataclass(frozen=True)
class LaunchLocation:
    """Launch site and time."""
    latitude: float                 # Decimal degrees (-90 to +90)
    longitude: float                # Decimal degrees (-180 to +180)
    altitude: int                   # Meters above sea level (-500 to 6000)
    launch_time: datetime           # Aware UTC instant, must be in the future

    def to_dict(self) -> dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "altitude": self.altitude,
            "launch_time": _instant_or_raw(self.launch_time),
        }


@dataclass(frozen=True)
class BalloonSpecification:
    """Balloon physical parameters."""
    balloon_type: BalloonType
    initial_volume: float           # Cubic meters (0.1 to 1000)
    burst_altitude: int             # Meters above sea level (1000 to 60000)
    ascent_rate: float              # Meters per second (1 to 10)
    payload_weight: float           # Kilograms (0.1 to 50)
    drag_coefficient: float         # Dimensionless (0.1 to 2.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "balloon_type": _enum_or_raw(self.balloon_type),
            "initial_volume": self.initial_volume,
            "burst_altitude": self.burst_altitude,
            "ascent_rate": self.ascent_rate,
            "payload_weight": self.payload_weight,
            "drag_coefficient": self.drag_coefficient,
        }


@dataclass(frozen=True)
class EnvironmentalParameters:
    """Weather source selection and atmosphere adjustments."""
    weather_source: WeatherSource
    wind_model: WindModel
    temperature_offset: float       # Celsius (-10 to +10)
    humidity_factor: int            # Percent (0 to 100)

    def to_dict(self) -> dict[str, Any]:
        return {
            "weather_source": _enum_or_raw(self.weather_source),
            "wind_model": _enum_or_raw(self.wind_model),
            "temperature_offset": self.temperature_offset,
            "humidity_factor": self.humidity_factor,
        }


@dataclass(frozen=True)
class PredictionParameters:
    """Simulation controls."""
    max_flight_duration_hours: int  # Hours (1 to 168)
    time_step_seconds: int          # Seconds (1 to 60)
    wind_uncertainty_percent: int   # Percent (0 to 50)
    monte_carlo_runs: int           # Draws (1 to 1000)

    def to_dict(self) -> dict[str, Any]:
        return {
            "max_flight_duration_hours": self.max_flight_duration_hours,
            "time_step_seconds": self.time_step_seconds,
            "wind_uncertainty_percent": self.wind_uncertainty_percent,
            "monte_carlo_runs": self.monte_carlo_runs,
        }


@dataclass(frozen=True)
class UserInputs:
    """Complete mission parameter set, validated atomically."""
    launch_location: LaunchLocation
    balloon: BalloonSpecification
    environment: EnvironmentalParameters
    prediction: PredictionParameters

    def to_dict(self) -> dict[str, Any]:
        return {
            "launch_location": self.launch_location.to_dict(),
            "balloon": self.balloon.to_dict(),
            "environment": self.environment.to_dict(),
            "prediction": self.prediction.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "UserInputs":
        """
        Build inputs from a plain mapping, e.g. merged defaults and user overrides.

        Enum fields accept values or display labels. Unknown strings and
        unparseable timestamps are kept as-is so the validator can report
        them instead of this constructor failing.
        """
        location = data["launch_location"]
        balloon = data["balloon"]
        environment = data["environment"]
        prediction = data["prediction"]

        return cls(
            launch_location=LaunchLocation(
                latitude=location["latitude"],
                longitude=location["longitude"],
                altitude=location["altitude"],
                launch_time=_coerce_instant(location["launch_time"]),
            ),
            balloon=BalloonSpecification(
                balloon_type=_coerce_enum(BalloonType, balloon["balloon_type"]),
                initial_volume=balloon["initial_volume"],
                burst_altitude=balloon["burst_altitude"],
                ascent_rate=balloon["ascent_rate"],
                payload_weight=balloon["payload_weight"],
                drag_coefficient=balloon["drag_coefficient"],
            ),
            environment=EnvironmentalParameters(
                weather_source=_coerce_enum(WeatherSource, environment["weather_source"]),
                wind_model=_coerce_enum(WindModel, environment["wind_model"]),
                temperature_offset=environment["temperature_offset"],
                humidity_factor=environment["humidity_factor"],
            ),
            prediction=PredictionParameters(
                max_flight_duration_hours=prediction["max_flight_duration_hours"],
                time_step_seconds=prediction["time_step_seconds"],
                wind_uncertainty_percent=prediction["wind_uncertainty_percent"],
                monte_carlo_runs=prediction["monte_carlo_runs"],
            ),
        )


def _coerce_enum(enum_cls: type, raw: Any) -> Any:
    try:
        return enum_cls.parse(raw)
    except ValueError:
        return raw


def _coerce_instant(raw: Any) -> Any:
    if isinstance(raw, str):
        try:
            return parse_instant(raw)
        except ValueError:
            return raw
    return raw


def _enum_or_raw(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def _instant_or_raw(value: Optional[Any]) -> Any:
    return format_instant(value) if isinstance(value, datetime) else value
