"""
Ensemble aggregation: landing centroid, empirical confidence radius,
percentiles and per-source uncertainty attribution.

The aggregator raises on unusable ensembles instead of returning
zero-filled results; the runner turns those errors into explicit
``EnsembleOutcome`` variants.
"""

import math
from datetime import datetime
from typing import Optional, Sequence

import structlog

from ..config.defaults import EnsemblePolicy
from ..errors import ConfigurationError, PartialEnsembleError
from ..geo.geodesy import distances_from, haversine_km, path_length_km
from ..models.results import (
    AltitudeUncertainty,
    ConfidenceInterval,
    Coordinates,
    EnsembleAggregate,
    LandingPrediction,
    LandingZoneUncertainty,
    MonteCarloPercentiles,
    MonteCarloResults,
    TimeUncertainty,
    UncertaintyAnalysis,
    UncertaintyAttribution,
)
from ..models.trajectory import PerturbationSource, SimulationDraw
from ..utils.time import add_hours
from .statistics import empirical_radius, mean, mean_square, percentile, root_mean_square

logger = structlog.get_logger(__name__)

PERCENTILES = (10, 50, 90)


def _unwrap_longitudes(longitudes: Sequence[float]) -> list[float]:
    """Shift longitudes onto a continuous range around the first sample."""
    reference = longitudes[0]
    unwrapped = []
    for lon in longitudes:
        delta = lon - reference
        if delta > 180.0:
            lon -= 360.0
        elif delta < -180.0:
            lon += 360.0
        unwrapped.append(lon)
    return unwrapped


def _wrap_longitude(lon: float) -> float:
    if -180.0 <= lon <= 180.0:
        return lon
    return ((lon + 180.0) % 360.0) - 180.0


def _draw_distance_km(draw: SimulationDraw) -> float:
    if len(draw.points) >= 2:
        return path_length_km(draw.points)
    launch = draw.inputs.launch_location
    return haversine_km(launch.latitude, launch.longitude, draw.landing.latitude, draw.landing.longitude)


def attribute_dispersion(draws: Sequence[SimulationDraw], distances: Sequence[float]) -> UncertaintyAttribution:
    """
    Split landing dispersion across perturbation sources.

    Each source's contribution is the mean squared distance of its stratum
    from the ensemble centroid. Any untagged draw disables attribution.
    """
    if len(draws) == 1:
        return UncertaintyAttribution.model_only("single draw")

    if any(draw.source is None for draw in draws):
        return UncertaintyAttribution.unavailable("draws without perturbation source")

    strata: dict[PerturbationSource, list[float]] = {source: [] for source in PerturbationSource}
    for draw, distance in zip(draws, distances):
        strata[draw.source].append(distance)

    contributions = {
        source: mean_square(values) if values else 0.0
        for source, values in strata.items()
    }
    total = sum(contributions.values())
    if total <= 0.0:
        return UncertaintyAttribution.model_only("no landing dispersion")

    return UncertaintyAttribution(
        available=True,
        fractions={source: value / total for source, value in contributions.items()},
    )


class EnsembleAggregator:
    """Reduces a set of simulation draws to landing statistics."""

    def __init__(self, policy: Optional[EnsemblePolicy] = None) -> None:
        self.policy = policy or EnsemblePolicy()

    def aggregate(self, draws: Sequence[SimulationDraw],
                  confidence_level: Optional[float] = None,
                  launch_time: Optional[datetime] = None,
                  reduced_confidence: bool = False) -> EnsembleAggregate:
        """
        Aggregate an ensemble.

        Args:
            draws: Completed draws, failed ones included
            confidence_level: Landing zone probability, policy default when omitted
            launch_time: Launch instant for the estimated landing time
            reduced_confidence: Mark a salvaged partial ensemble

        Returns:
            EnsembleAggregate with prediction, uncertainty and distribution

        Raises:
            ConfigurationError: Empty ensemble or invalid confidence level
            PartialEnsembleError: Too few draws succeeded
        """
        p = self.policy.confidence_level if confidence_level is None else confidence_level
        if isinstance(p, bool) or not isinstance(p, (int, float)) or not 0.0 < p <= 1.0:
            raise ConfigurationError(
                "Confidence level must be in (0, 1]",
                parameter="confidence_level",
                value=p,
            )

        if not draws:
            raise ConfigurationError("Cannot aggregate an empty ensemble", parameter="draws", value=0)

        successful = [draw for draw in draws if draw.succeeded]
        required = max(1, math.ceil(round(self.policy.min_success_fraction * len(draws), 9)))
        if len(successful) < required:
            raise PartialEnsembleError(
                f"Only {len(successful)} of {len(draws)} draws succeeded, {required} required",
                succeeded=len(successful),
                required=required,
                total=len(draws),
            )

        if launch_time is None:
            launch_time = successful[0].inputs.launch_location.launch_time
        if not isinstance(launch_time, datetime):
            launch_time = None

        latitudes = [draw.landing.latitude for draw in successful]
        longitudes = _unwrap_longitudes([draw.landing.longitude for draw in successful])
        altitudes = [draw.landing.altitude for draw in successful]
        durations = [draw.flight_duration_hours for draw in successful]

        centroid_lat = mean(latitudes)
        centroid_lon = _wrap_longitude(mean(longitudes))
        distances = distances_from(
            centroid_lat, centroid_lon,
            ((draw.landing.latitude, draw.landing.longitude) for draw in successful),
        )

        mean_duration = mean(durations)
        mean_altitude = mean(altitudes)

        if len(successful) == 1:
            # A lone landing point is its own zone at full confidence
            p = 1.0
            radius, coverage, probability = 0.0, 1.0, 1.0
            time_spread = altitude_spread = 0.0
        else:
            radius, coverage = empirical_radius(distances, p)
            probability = p
            time_spread, _ = empirical_radius([abs(d - mean_duration) for d in durations], p)
            altitude_spread, _ = empirical_radius([abs(a - mean_altitude) for a in altitudes], p)

        attribution = attribute_dispersion(successful, distances)

        landing = LandingPrediction(
            coordinates=Coordinates(latitude=centroid_lat, longitude=centroid_lon, altitude=mean_altitude),
            confidence_interval=ConfidenceInterval(radius_km=radius, probability=probability),
            estimated_landing_time=add_hours(launch_time, mean_duration) if launch_time else None,
            flight_duration_hours=mean_duration,
            total_distance_km=mean([_draw_distance_km(draw) for draw in successful]),
        )

        uncertainty = UncertaintyAnalysis(
            landing_zone=LandingZoneUncertainty(radius_km=radius, confidence_level=p, attribution=attribution),
            time_uncertainty=TimeUncertainty(hours=time_spread, confidence_level=p),
            altitude_uncertainty=AltitudeUncertainty(meters=altitude_spread, confidence_level=p),
        )

        monte_carlo = MonteCarloResults(
            simulations=len(draws),
            successful=len(successful),
            mean_latitude=centroid_lat,
            mean_longitude=centroid_lon,
            std_deviation_km=root_mean_square(distances) if len(successful) > 1 else 0.0,
            achieved_coverage=coverage,
            percentiles=MonteCarloPercentiles(
                distance_km={q: percentile(distances, q / 100) for q in PERCENTILES},
                coordinates={
                    q: Coordinates(
                        latitude=percentile(latitudes, q / 100),
                        longitude=_wrap_longitude(percentile(longitudes, q / 100)),
                    )
                    for q in PERCENTILES
                },
            ),
        )

        logger.debug(
            "Ensemble aggregated",
            draws=len(draws),
            successful=len(successful),
            radius_km=radius,
            attribution_available=attribution.available,
        )

        return EnsembleAggregate(
            landing_prediction=landing,
            uncertainty=uncertainty,
            monte_carlo=monte_carlo,
            sample_size=len(successful),
            reduced_confidence=reduced_confidence,
        )
