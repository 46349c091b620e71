"""
Prediction result models.

Immutable outputs computed once per ensemble. Values keep full
precision; rounding happens in ``bliip_app.output`` only.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .trajectory import PerturbationSource


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float
    altitude: Optional[float] = None


@dataclass(frozen=True)
class ConfidenceInterval:
    """Landing zone circle about the centroid."""
    radius_km: float
    probability: float


@dataclass(frozen=True)
class LandingPrediction:
    coordinates: Coordinates
    confidence_interval: ConfidenceInterval
    estimated_landing_time: Optional[datetime]
    flight_duration_hours: float
    total_distance_km: float


@dataclass(frozen=True)
class UncertaintyAttribution:
    """Share of landing dispersion explained by each perturbation source."""
    available: bool
    fractions: dict[PerturbationSource, float] = field(default_factory=dict)
    reason: Optional[str] = None

    @classmethod
    def unavailable(cls, reason: str) -> "UncertaintyAttribution":
        return cls(available=False, reason=reason)

    @classmethod
    def model_only(cls, reason: str) -> "UncertaintyAttribution":
        return cls(
            available=True,
            fractions={
                PerturbationSource.WIND: 0.0,
                PerturbationSource.MODEL: 1.0,
                PerturbationSource.DATA_QUALITY: 0.0,
            },
            reason=reason,
        )

    def total(self) -> float:
        return sum(self.fractions.values())


@dataclass(frozen=True)
class LandingZoneUncertainty:
    radius_km: float
    confidence_level: float
    attribution: UncertaintyAttribution


@dataclass(frozen=True)
class TimeUncertainty:
    hours: float
    confidence_level: float


@dataclass(frozen=True)
class AltitudeUncertainty:
    meters: float
    confidence_level: float


@dataclass(frozen=True)
class UncertaintyAnalysis:
    landing_zone: LandingZoneUncertainty
    time_uncertainty: TimeUncertainty
    altitude_uncertainty: AltitudeUncertainty


@dataclass(frozen=True)
class MonteCarloPercentiles:
    """Order-statistic percentiles keyed by percent (10, 50, 90)."""
    distance_km: dict[int, float]
    coordinates: dict[int, Coordinates]


@dataclass(frozen=True)
class MonteCarloResults:
    simulations: int
    successful: int
    mean_latitude: float
    mean_longitude: float
    std_deviation_km: float
    achieved_coverage: float
    percentiles: MonteCarloPercentiles


@dataclass(frozen=True)
class EnsembleAggregate:
    """Everything the aggregator derives from one ensemble."""
    landing_prediction: LandingPrediction
    uncertainty: UncertaintyAnalysis
    monte_carlo: MonteCarloResults
    sample_size: int
    reduced_confidence: bool = False


class OutcomeStatus(str, Enum):
    """Result variant of an ensemble run."""
    OK = "ok"
    CANCELLED = "cancelled"
    PARTIAL = "partial_ensemble"
    TIMEOUT = "timeout"
    CONFIGURATION_ERROR = "configuration_error"


@dataclass(frozen=True)
class EnsembleOutcome:
    """Explicit result of an ensemble run; failures never masquerade as zeros."""
    status: OutcomeStatus
    planned: int
    completed: int
    aggregate: Optional[EnsembleAggregate] = None
    error: Optional[Exception] = None

    @property
    def usable(self) -> bool:
        return self.aggregate is not None


@dataclass(frozen=True)
class CurrentPosition:
    latitude: float
    longitude: float
    altitude: float
    timestamp: datetime


@dataclass(frozen=True)
class FlightMetrics:
    current_speed: float            # Meters per second
    ascent_rate: float              # Meters per second
    distance_traveled: float        # Kilometers
    time_in_flight: float           # Seconds


@dataclass(frozen=True)
class EnvironmentalData:
    temperature: float
    pressure: float
    wind_speed: float
    wind_direction: float


@dataclass(frozen=True)
class Telemetry:
    """Live flight state supplied by the caller while a run is in progress."""
    current_position: CurrentPosition
    flight_metrics: FlightMetrics
    environmental_data: EnvironmentalData
