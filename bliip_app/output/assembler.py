"""
Prediction response assembly.

Builds the public response mapping from an ensemble aggregate and the
nominal trajectory. Precision normalization happens here and nowhere
else; all timestamps are rendered as timezone-aware ISO 8601 strings.
"""

from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

import structlog

from ..config.defaults import OutputPolicy
from ..errors import UnsupportedCoordinateError
from ..geo.coordinates import convert_coordinates
from ..geo.geodesy import path_length_km
from ..models.inputs import LabeledEnum, UserInputs
from ..models.results import (
    Coordinates,
    EnsembleAggregate,
    Telemetry,
    UncertaintyAttribution,
)
from ..models.trajectory import PerturbationSource, SimulationDraw, TrajectoryPoint
from ..utils.time import hours_between
from .serialization import format_timestamp, round_to

logger = structlog.get_logger(__name__)

_FACTOR_KEYS = {
    PerturbationSource.WIND: "wind_uncertainty",
    PerturbationSource.MODEL: "model_uncertainty",
    PerturbationSource.DATA_QUALITY: "data_quality",
}

_OPTIONAL_SAMPLES = ("wind_speed", "wind_direction", "temperature", "pressure")


def simplify_points(points: Sequence[TrajectoryPoint], factor: int) -> list[TrajectoryPoint]:
    """Keep every ``factor``-th point plus the final point."""
    if factor <= 1 or len(points) <= 2:
        return list(points)
    kept = list(points[::factor])
    if kept[-1] is not points[-1]:
        kept.append(points[-1])
    return kept


def _point(point: TrajectoryPoint) -> dict[str, Any]:
    data = {
        "timestamp": format_timestamp(point.timestamp),
        "latitude": round_to(point.latitude, "latitude"),
        "longitude": round_to(point.longitude, "longitude"),
        "altitude": round_to(point.altitude, "altitude"),
    }
    for name in _OPTIONAL_SAMPLES:
        value = getattr(point, name)
        if value is not None:
            data[name] = round_to(value, name)
    return data


def _coordinates(coords: Coordinates) -> dict[str, Any]:
    data = {
        "latitude": round_to(coords.latitude, "latitude"),
        "longitude": round_to(coords.longitude, "longitude"),
    }
    if coords.altitude is not None:
        data["altitude"] = round_to(coords.altitude, "altitude")
    return data


def _factors(attribution: UncertaintyAttribution) -> Optional[dict[str, float]]:
    if not attribution.available:
        return None
    return {
        key: round_to(attribution.fractions.get(source, 0.0), "factor")
        for source, key in _FACTOR_KEYS.items()
    }


def _percentile_keys(values: dict[int, Any]) -> Iterable[tuple[str, Any]]:
    return ((str(q), values[q]) for q in sorted(values))


def _label(value: Any) -> Any:
    return value.label if isinstance(value, LabeledEnum) else value


class OutputAssembler:
    """Turns ensemble results into the public prediction response."""

    def __init__(self, policy: Optional[OutputPolicy] = None) -> None:
        self.policy = policy or OutputPolicy()

    def assemble(self, aggregate: EnsembleAggregate, nominal_draw: Optional[SimulationDraw],
                 inputs: UserInputs, prediction_id: str, generated_at: datetime,
                 simplify: bool = False, telemetry: Optional[Telemetry] = None,
                 include_conversions: bool = False) -> dict[str, Any]:
        """
        Assemble a success response.

        Args:
            aggregate: Ensemble statistics
            nominal_draw: Unperturbed draw providing the displayed trajectory
            inputs: Validated mission parameters
            prediction_id: Request identifier
            generated_at: Response creation instant
            simplify: Thin the trajectory by the policy simplification factor
            telemetry: Live flight state to echo back
            include_conversions: Add UTM/MGRS views of the landing point

        Returns:
            Response mapping ready for ``to_json``
        """
        data = {
            "landing_prediction": self._landing_prediction(aggregate, include_conversions),
            "trajectory": self._trajectory(nominal_draw, inputs, simplify),
            "uncertainty": self._uncertainty(aggregate),
            "monte_carlo": self._monte_carlo(aggregate),
        }

        summary = self._flight_summary(nominal_draw, inputs)
        if summary is not None:
            data["flight_summary"] = summary
        if telemetry is not None:
            data["telemetry"] = self._telemetry(telemetry)

        return {
            "status": "success",
            "prediction_id": prediction_id,
            "data": data,
            "metadata": {
                "generated_at": format_timestamp(generated_at),
                "weather_source": _label(inputs.environment.weather_source),
                "model_version": self.policy.model_version,
            },
        }

    def assemble_failure(self, prediction_id: str, generated_at: datetime, kind: str,
                         message: str, errors: Sequence[Any] = ()) -> dict[str, Any]:
        """Assemble an error response; ``errors`` may hold ValidationError records."""
        return {
            "status": "error",
            "prediction_id": prediction_id,
            "error": {
                "kind": kind,
                "message": message,
                "errors": [e.to_dict() if hasattr(e, "to_dict") else str(e) for e in errors],
            },
            "metadata": {
                "generated_at": format_timestamp(generated_at),
                "model_version": self.policy.model_version,
            },
        }

    def _landing_prediction(self, aggregate: EnsembleAggregate,
                            include_conversions: bool) -> dict[str, Any]:
        landing = aggregate.landing_prediction
        data = {
            "coordinates": _coordinates(landing.coordinates),
            "confidence_interval": {
                "radius_km": round_to(landing.confidence_interval.radius_km, "radius_km"),
                "probability": round_to(landing.confidence_interval.probability, "probability"),
            },
            "estimated_landing_time": format_timestamp(landing.estimated_landing_time),
            "flight_duration_hours": round_to(landing.flight_duration_hours, "hours"),
            "total_distance_km": round_to(landing.total_distance_km, "distance_km"),
        }

        if include_conversions:
            lat, lon = landing.coordinates.latitude, landing.coordinates.longitude
            try:
                conversion = convert_coordinates(lat, lon)
            except UnsupportedCoordinateError as e:
                logger.info("Grid conversion skipped", latitude=lat, longitude=lon, reason=str(e))
                data["coordinate_conversion"] = None
            else:
                data["coordinate_conversion"] = {
                    "wgs84": {
                        "latitude": round_to(lat, "latitude"),
                        "longitude": round_to(lon, "longitude"),
                    },
                    "utm": {
                        "zone": conversion.utm.zone,
                        "easting": round_to(conversion.utm.easting, "easting"),
                        "northing": round_to(conversion.utm.northing, "northing"),
                    },
                    "mgrs": {"grid": conversion.mgrs.grid},
                }

        return data

    def _trajectory(self, nominal_draw: Optional[SimulationDraw], inputs: UserInputs,
                    simplify: bool) -> dict[str, Any]:
        points = list(nominal_draw.points) if nominal_draw is not None else []
        if simplify:
            points = simplify_points(points, self.policy.simplification_factor)

        metadata = {
            "total_points": len(points),
            "time_step_seconds": inputs.prediction.time_step_seconds,
            "coordinate_system": self.policy.coordinate_system,
        }
        if simplify:
            metadata["simplification_factor"] = self.policy.simplification_factor

        return {"points": [_point(p) for p in points], "metadata": metadata}

    @staticmethod
    def _uncertainty(aggregate: EnsembleAggregate) -> dict[str, Any]:
        analysis = aggregate.uncertainty
        zone = analysis.landing_zone
        return {
            "landing_zone": {
                "radius_km": round_to(zone.radius_km, "radius_km"),
                "confidence_level": round_to(zone.confidence_level, "confidence_level"),
                "factors": _factors(zone.attribution),
                "attribution": "available" if zone.attribution.available else "unavailable",
            },
            "time_uncertainty": {
                "hours": round_to(analysis.time_uncertainty.hours, "hours"),
                "confidence_level": round_to(analysis.time_uncertainty.confidence_level, "confidence_level"),
            },
            "altitude_uncertainty": {
                "meters": round_to(analysis.altitude_uncertainty.meters, "meters"),
                "confidence_level": round_to(analysis.altitude_uncertainty.confidence_level, "confidence_level"),
            },
        }

    @staticmethod
    def _monte_carlo(aggregate: EnsembleAggregate) -> dict[str, Any]:
        mc = aggregate.monte_carlo
        return {
            "simulations": mc.simulations,
            "successful": mc.successful,
            "landing_distribution": {
                "mean_latitude": round_to(mc.mean_latitude, "latitude"),
                "mean_longitude": round_to(mc.mean_longitude, "longitude"),
                "std_deviation_km": round_to(mc.std_deviation_km, "distance_km"),
                "achieved_coverage": round_to(mc.achieved_coverage, "probability"),
                "percentiles": {
                    key: _coordinates(coords)
                    for key, coords in _percentile_keys(mc.percentiles.coordinates)
                },
                "distance_percentiles_km": {
                    key: round_to(value, "distance_km")
                    for key, value in _percentile_keys(mc.percentiles.distance_km)
                },
            },
            "reduced_confidence": aggregate.reduced_confidence,
        }

    @staticmethod
    def _flight_summary(nominal_draw: Optional[SimulationDraw],
                        inputs: UserInputs) -> Optional[dict[str, Any]]:
        if nominal_draw is None or len(nominal_draw.points) < 2:
            return None

        points = nominal_draw.points
        launch_time = inputs.launch_location.launch_time
        landing_time = points[-1].timestamp
        burst = nominal_draw.max_altitude_point()
        duration_seconds = hours_between(points[0].timestamp, landing_time) * 3600.0
        distance_km = path_length_km(points)

        return {
            "launch_time": format_timestamp(launch_time),
            "burst_time": format_timestamp(burst.timestamp),
            "landing_time": format_timestamp(landing_time),
            "max_altitude": round_to(burst.altitude, "altitude"),
            "total_distance": round_to(distance_km, "distance_km"),
            "flight_duration": round_to(duration_seconds, "seconds"),
            "average_speed": round_to(
                distance_km * 1000.0 / duration_seconds if duration_seconds > 0 else 0.0, "speed"
            ),
        }

    @staticmethod
    def _telemetry(telemetry: Telemetry) -> dict[str, Any]:
        position = telemetry.current_position
        metrics = telemetry.flight_metrics
        environment = telemetry.environmental_data
        return {
            "current_position": {
                "latitude": round_to(position.latitude, "latitude"),
                "longitude": round_to(position.longitude, "longitude"),
                "altitude": round_to(position.altitude, "altitude"),
                "timestamp": format_timestamp(position.timestamp),
            },
            "flight_metrics": {
                "current_speed": round_to(metrics.current_speed, "speed"),
                "ascent_rate": round_to(metrics.ascent_rate, "speed"),
                "distance_traveled": round_to(metrics.distance_traveled, "distance_km"),
                "time_in_flight": round_to(metrics.time_in_flight, "seconds"),
            },
            "environmental_data": {
                "temperature": round_to(environment.temperature, "temperature"),
                "pressure": round_to(environment.pressure, "pressure"),
                "wind_speed": round_to(environment.wind_speed, "wind_speed"),
                "wind_direction": round_to(environment.wind_direction, "wind_direction"),
            },
        }
