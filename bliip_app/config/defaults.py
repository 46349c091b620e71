"""Default mission parameters and policy constants for the prediction core."""

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from types import MappingProxyType
from typing import Any, Mapping, Optional

from ..models.inputs import (
    BalloonSpecification,
    BalloonType,
    EnvironmentalParameters,
    LaunchLocation,
    PredictionParameters,
    UserInputs,
    WeatherSource,
    WindModel,
)
from ..utils.time import get_evaluation_time


@dataclass(frozen=True)
class LaunchDefaults:
    """Launch site defaults (New York City, sea level)."""
    latitude: float = 40.7128
    longitude: float = -74.0060
    altitude: int = 0
    launch_lead_seconds: int = 3600                 # Launch one hour after evaluation time


@dataclass(frozen=True)
class BalloonDefaults:
    """Standard meteorological latex balloon."""
    balloon_type: BalloonType = BalloonType.LATEX
    initial_volume: float = 1.0
    burst_altitude: int = 30000
    ascent_rate: float = 5.0
    payload_weight: float = 1.0
    drag_coefficient: float = 0.5


@dataclass(frozen=True)
class EnvironmentDefaults:
    weather_source: WeatherSource = WeatherSource.AUTO
    wind_model: WindModel = WindModel.AUTO
    temperature_offset: float = 0.0
    humidity_factor: int = 50


@dataclass(frozen=True)
class PredictionDefaults:
    max_flight_duration_hours: int = 24
    time_step_seconds: int = 10
    wind_uncertainty_percent: int = 10
    monte_carlo_runs: int = 100


@dataclass(frozen=True)
class ValidationPolicy:
    """Policy constants consulted by cross-field and advisory rules."""
    generic_max_flight_hours: int = 168
    latex_max_flight_hours: int = 48                # Latex envelopes degrade in sunlight

    # Continental United States bounding box for HRRR coverage
    conus_min_latitude: float = 24.7
    conus_max_latitude: float = 49.4
    conus_min_longitude: float = -125.0
    conus_max_longitude: float = -66.9

    # Advisory thresholds
    high_launch_altitude_m: int = 3000
    polar_latitude: float = 70.0
    min_ascent_minutes: float = 30.0
    max_ascent_minutes: float = 240.0
    min_volume_payload_ratio: float = 0.5
    near_term_launch_minutes: float = 30.0
    max_launch_lead_days: int = 7


@dataclass(frozen=True)
class EnsemblePolicy:
    """Monte Carlo execution and aggregation policy."""
    confidence_level: float = 0.95
    min_success_fraction: float = 0.9               # Draw failures tolerated below 10%
    draw_timeout_seconds: float = 30.0
    ensemble_timeout_seconds: float = 600.0
    max_workers: int = 8
    salvage_on_cancel: bool = True
    poll_interval_seconds: float = 0.05


@dataclass(frozen=True)
class OutputPolicy:
    simplification_factor: int = 10
    coordinate_system: str = "WGS84"
    model_version: str = "2.0.0"


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    launch: LaunchDefaults
    balloon: BalloonDefaults
    environment: EnvironmentDefaults
    prediction: PredictionDefaults
    validation: ValidationPolicy
    ensemble: EnsemblePolicy
    output: OutputPolicy


# Balloon specification overrides per preset
PRESET_CONFIGURATIONS: Mapping[str, Mapping[str, Any]] = MappingProxyType({
    "standard_meteorological": MappingProxyType({
        "name": "Standard Meteorological Balloon",
        "initial_volume": 1.0,
        "burst_altitude": 30000,
        "ascent_rate": 5.0,
        "payload_weight": 1.0,
        "drag_coefficient": 0.5,
    }),
    "high_altitude_research": MappingProxyType({
        "name": "High-Altitude Research Balloon",
        "initial_volume": 10.0,
        "burst_altitude": 45000,
        "ascent_rate": 3.0,
        "payload_weight": 5.0,
        "drag_coefficient": 0.6,
    }),
    "educational": MappingProxyType({
        "name": "Educational Balloon",
        "initial_volume": 0.5,
        "burst_altitude": 20000,
        "ascent_rate": 4.0,
        "payload_weight": 0.5,
        "drag_coefficient": 0.4,
    }),
})


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig(
        launch=LaunchDefaults(),
        balloon=BalloonDefaults(),
        environment=EnvironmentDefaults(),
        prediction=PredictionDefaults(),
        validation=ValidationPolicy(),
        ensemble=EnsemblePolicy(),
        output=OutputPolicy(),
    )


def default_user_inputs(evaluation_time: Optional[datetime] = None,
                        config: Optional[DefaultConfig] = None) -> UserInputs:
    """
    Build the pre-populated inputs shown before any user edit.

    Args:
        evaluation_time: Reference instant for the default launch time
        config: Defaults to use, the built-in table when omitted

    Returns:
        UserInputs assembled from the default tables
    """
    config = config or get_default_config()
    now = get_evaluation_time(evaluation_time)

    return UserInputs(
        launch_location=LaunchLocation(
            latitude=config.launch.latitude,
            longitude=config.launch.longitude,
            altitude=config.launch.altitude,
            launch_time=now + timedelta(seconds=config.launch.launch_lead_seconds),
        ),
        balloon=BalloonSpecification(
            balloon_type=config.balloon.balloon_type,
            initial_volume=config.balloon.initial_volume,
            burst_altitude=config.balloon.burst_altitude,
            ascent_rate=config.balloon.ascent_rate,
            payload_weight=config.balloon.payload_weight,
            drag_coefficient=config.balloon.drag_coefficient,
        ),
        environment=EnvironmentalParameters(
            weather_source=config.environment.weather_source,
            wind_model=config.environment.wind_model,
            temperature_offset=config.environment.temperature_offset,
            humidity_factor=config.environment.humidity_factor,
        ),
        prediction=PredictionParameters(
            max_flight_duration_hours=config.prediction.max_flight_duration_hours,
            time_step_seconds=config.prediction.time_step_seconds,
            wind_uncertainty_percent=config.prediction.wind_uncertainty_percent,
            monte_carlo_runs=config.prediction.monte_carlo_runs,
        ),
    )


def preset_inputs(name: str, evaluation_time: Optional[datetime] = None) -> UserInputs:
    """
    Default inputs with a named balloon preset applied.

    Raises:
        KeyError: If the preset name is unknown
    """
    preset = PRESET_CONFIGURATIONS[name]
    base = default_user_inputs(evaluation_time)
    overrides = {key: value for key, value in preset.items() if key != "name"}
    return replace(base, balloon=replace(base.balloon, **overrides))
