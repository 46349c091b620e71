"""
Validation rule objects for mission parameters.

Rules are pure predicate + message objects. Field rules look at a single
value and are grouped per field so that only the first failing rule of a
field fires. Context rules look at several fields (and the evaluation
time) and always run, whatever the per-field outcome was.
"""

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Callable, Optional

from ..config.defaults import ValidationPolicy
from ..models.inputs import BalloonType, LabeledEnum, UserInputs, WeatherSource, WindModel


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationError:
    """Single rule violation."""
    field: str                  # Dotted path, e.g. "launch_location.latitude"
    rule: str                   # Stable rule identifier, e.g. "latitude.range"
    message: str
    severity: Severity = Severity.ERROR
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "field": self.field,
            "rule": self.rule,
            "message": self.message,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class RuleContext:
    """Everything a context rule may look at."""
    inputs: UserInputs
    evaluation_time: datetime
    policy: ValidationPolicy


@dataclass(frozen=True)
class FieldRule:
    rule: str
    passes: Callable[[Any], bool]
    message: str


@dataclass(frozen=True)
class FieldSpec:
    """Ordered rules for one field; the first failing rule wins."""
    path: str
    getter: Callable[[UserInputs], Any]
    rules: tuple[FieldRule, ...]

    def evaluate(self, inputs: UserInputs) -> Optional[ValidationError]:
        value = self.getter(inputs)
        for field_rule in self.rules:
            if not field_rule.passes(value):
                return ValidationError(
                    field=self.path,
                    rule=field_rule.rule,
                    message=field_rule.message,
                    value=value,
                )
        return None


@dataclass(frozen=True)
class ContextRule:
    """Rule whose truth depends on more than one field."""
    rule: str
    field: str
    violated: Callable[[RuleContext], bool]
    message: Callable[[RuleContext], str]
    value: Callable[[RuleContext], Any]
    severity: Severity = Severity.ERROR

    def evaluate(self, ctx: RuleContext) -> Optional[ValidationError]:
        if not self.violated(ctx):
            return None
        return ValidationError(
            field=self.field,
            rule=self.rule,
            message=self.message(ctx),
            severity=self.severity,
            value=self.value(ctx),
        )


def as_number(value: Any) -> Optional[float]:
    """Finite numeric value, or None when the operand is not comparable."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if not math.isfinite(value):
        return None
    return float(value)


def as_instant(value: Any) -> Optional[datetime]:
    """Aware datetime, or None when the operand is not comparable."""
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value
    return None


def numeric_rules(name: str, low: float, high: float, message: str,
                  integer: bool = False) -> tuple[FieldRule, ...]:
    """Type, finiteness, range and (for integer fields) whole-number rules."""
    rules = [
        FieldRule(
            rule=f"{name}.type",
            passes=lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
            message=f"{message}: value must be a number",
        ),
        FieldRule(
            rule=f"{name}.finite",
            passes=lambda v: math.isfinite(v),
            message=f"{message}: value must be finite",
        ),
        FieldRule(
            rule=f"{name}.range",
            passes=lambda v: low <= v <= high,
            message=message,
        ),
    ]
    if integer:
        rules.append(FieldRule(
            rule=f"{name}.integer",
            passes=lambda v: float(v).is_integer(),
            message=f"{message}: value must be a whole number",
        ))
    return tuple(rules)


def choice_rules(name: str, enum_cls: type[LabeledEnum], title: str) -> tuple[FieldRule, ...]:
    labels = ", ".join(member.label for member in enum_cls)
    return (
        FieldRule(
            rule=f"{name}.invalid_choice",
            passes=lambda v: isinstance(v, enum_cls),
            message=f"{title} must be one of: {labels}",
        ),
    )


def build_field_specs(policy: ValidationPolicy) -> tuple[FieldSpec, ...]:
    """Field specs in evaluation order: location, balloon, environment, prediction."""
    return (
        # Launch location
        FieldSpec("launch_location.latitude", lambda i: i.launch_location.latitude,
                  numeric_rules("latitude", -90, 90,
                                "Latitude must be between -90 and +90 degrees")),
        FieldSpec("launch_location.longitude", lambda i: i.launch_location.longitude,
                  numeric_rules("longitude", -180, 180,
                                "Longitude must be between -180 and +180 degrees")),
        FieldSpec("launch_location.altitude", lambda i: i.launch_location.altitude,
                  numeric_rules("altitude", -500, 6000,
                                "Launch altitude must be between -500m and 6000m", integer=True)),
        FieldSpec("launch_location.launch_time", lambda i: i.launch_location.launch_time,
                  (FieldRule(
                      rule="launch_time.format",
                      passes=lambda v: as_instant(v) is not None,
                      message="Launch time must be a valid timezone-aware ISO 8601 date/time",
                  ),)),

        # Balloon specification
        FieldSpec("balloon.balloon_type", lambda i: i.balloon.balloon_type,
                  choice_rules("balloon_type", BalloonType, "Balloon type")),
        FieldSpec("balloon.initial_volume", lambda i: i.balloon.initial_volume,
                  numeric_rules("initial_volume", 0.1, 1000,
                                "Initial volume must be between 0.1 and 1000 cubic meters")),
        FieldSpec("balloon.burst_altitude", lambda i: i.balloon.burst_altitude,
                  numeric_rules("burst_altitude", 1000, 60000,
                                "Burst altitude must be between 1000m and 60000m", integer=True)),
        FieldSpec("balloon.ascent_rate", lambda i: i.balloon.ascent_rate,
                  numeric_rules("ascent_rate", 1, 10,
                                "Ascent rate must be between 1 and 10 m/s")),
        FieldSpec("balloon.payload_weight", lambda i: i.balloon.payload_weight,
                  numeric_rules("payload_weight", 0.1, 50,
                                "Payload weight must be between 0.1 and 50 kg")),
        FieldSpec("balloon.drag_coefficient", lambda i: i.balloon.drag_coefficient,
                  numeric_rules("drag_coefficient", 0.1, 2.0,
                                "Drag coefficient must be between 0.1 and 2.0")),

        # Environmental parameters
        FieldSpec("environment.weather_source", lambda i: i.environment.weather_source,
                  choice_rules("weather_source", WeatherSource, "Weather source")),
        FieldSpec("environment.wind_model", lambda i: i.environment.wind_model,
                  choice_rules("wind_model", WindModel, "Wind model")),
        FieldSpec("environment.temperature_offset", lambda i: i.environment.temperature_offset,
                  numeric_rules("temperature_offset", -10, 10,
                                "Temperature offset must be between -10 and +10 degrees Celsius")),
        FieldSpec("environment.humidity_factor", lambda i: i.environment.humidity_factor,
                  numeric_rules("humidity_factor", 0, 100,
                                "Humidity factor must be between 0 and 100 percent", integer=True)),

        # Prediction parameters
        FieldSpec("prediction.max_flight_duration_hours",
                  lambda i: i.prediction.max_flight_duration_hours,
                  numeric_rules("max_flight_duration", 1, policy.generic_max_flight_hours,
                                f"Max flight duration must be between 1 and "
                                f"{policy.generic_max_flight_hours} hours", integer=True)),
        FieldSpec("prediction.time_step_seconds", lambda i: i.prediction.time_step_seconds,
                  numeric_rules("time_step", 1, 60,
                                "Time step must be between 1 and 60 seconds", integer=True)),
        FieldSpec("prediction.wind_uncertainty_percent",
                  lambda i: i.prediction.wind_uncertainty_percent,
                  numeric_rules("wind_uncertainty", 0, 50,
                                "Wind uncertainty must be between 0 and 50 percent", integer=True)),
        FieldSpec("prediction.monte_carlo_runs", lambda i: i.prediction.monte_carlo_runs,
                  numeric_rules("monte_carlo_runs", 1, 1000,
                                "Monte Carlo simulations must be between 1 and 1000", integer=True)),
    )


def _burst_not_above_launch(ctx: RuleContext) -> bool:
    burst = as_number(ctx.inputs.balloon.burst_altitude)
    launch = as_number(ctx.inputs.launch_location.altitude)
    if burst is None or launch is None:
        return False
    return burst <= launch


def _launch_not_in_future(ctx: RuleContext) -> bool:
    launch_time = as_instant(ctx.inputs.launch_location.launch_time)
    if launch_time is None:
        return False
    return launch_time <= ctx.evaluation_time


def _latex_duration_exceeded(ctx: RuleContext) -> bool:
    duration = as_number(ctx.inputs.prediction.max_flight_duration_hours)
    if duration is None or ctx.inputs.balloon.balloon_type != BalloonType.LATEX:
        return False
    return duration > ctx.policy.latex_max_flight_hours


def in_conus(latitude: float, longitude: float, policy: ValidationPolicy) -> bool:
    return (policy.conus_min_latitude <= latitude <= policy.conus_max_latitude and
            policy.conus_min_longitude <= longitude <= policy.conus_max_longitude)


def _hrrr_outside_conus(ctx: RuleContext) -> bool:
    if ctx.inputs.environment.wind_model != WindModel.HRRR:
        return False
    lat = as_number(ctx.inputs.launch_location.latitude)
    lon = as_number(ctx.inputs.launch_location.longitude)
    if lat is None or lon is None:
        return False
    return not in_conus(lat, lon, ctx.policy)


CROSS_FIELD_RULES: tuple[ContextRule, ...] = (
    ContextRule(
        rule="burst_altitude.above_launch",
        field="balloon.burst_altitude",
        violated=_burst_not_above_launch,
        message=lambda ctx: "Burst altitude must be higher than launch altitude",
        value=lambda ctx: ctx.inputs.balloon.burst_altitude,
    ),
    ContextRule(
        rule="launch_time.future",
        field="launch_location.launch_time",
        violated=_launch_not_in_future,
        message=lambda ctx: "Launch time must be in the future",
        value=lambda ctx: ctx.inputs.launch_location.launch_time,
    ),
    ContextRule(
        rule="max_flight_duration.latex_ceiling",
        field="prediction.max_flight_duration_hours",
        violated=_latex_duration_exceeded,
        message=lambda ctx: (
            "Latex meteorological balloons are limited to "
            f"{ctx.policy.latex_max_flight_hours} hours of flight"
        ),
        value=lambda ctx: ctx.inputs.prediction.max_flight_duration_hours,
    ),
    ContextRule(
        rule="wind_model.hrrr_region",
        field="environment.wind_model",
        violated=_hrrr_outside_conus,
        message=lambda ctx: "HRRR wind model is only available for CONUS (Continental United States)",
        value=lambda ctx: ctx.inputs.environment.wind_model,
    ),
)


def _high_launch_site(ctx: RuleContext) -> bool:
    altitude = as_number(ctx.inputs.launch_location.altitude)
    return altitude is not None and altitude > ctx.policy.high_launch_altitude_m


def _polar_launch(ctx: RuleContext) -> bool:
    lat = as_number(ctx.inputs.launch_location.latitude)
    return lat is not None and abs(lat) > ctx.policy.polar_latitude


def ascent_minutes(ctx: RuleContext) -> Optional[float]:
    burst = as_number(ctx.inputs.balloon.burst_altitude)
    launch = as_number(ctx.inputs.launch_location.altitude)
    rate = as_number(ctx.inputs.balloon.ascent_rate)
    if burst is None or launch is None or rate is None or rate <= 0 or burst <= launch:
        return None
    return (burst - launch) / rate / 60.0


def _fast_ascent(ctx: RuleContext) -> bool:
    minutes = ascent_minutes(ctx)
    return minutes is not None and minutes < ctx.policy.min_ascent_minutes


def _slow_ascent(ctx: RuleContext) -> bool:
    minutes = ascent_minutes(ctx)
    return minutes is not None and minutes > ctx.policy.max_ascent_minutes


def _low_lift_ratio(ctx: RuleContext) -> bool:
    volume = as_number(ctx.inputs.balloon.initial_volume)
    payload = as_number(ctx.inputs.balloon.payload_weight)
    if volume is None or payload is None or payload <= 0:
        return False
    return volume / payload < ctx.policy.min_volume_payload_ratio


def _minutes_until_launch(ctx: RuleContext) -> Optional[float]:
    launch_time = as_instant(ctx.inputs.launch_location.launch_time)
    if launch_time is None:
        return None
    return (launch_time - ctx.evaluation_time).total_seconds() / 60.0


def _near_term_launch(ctx: RuleContext) -> bool:
    minutes = _minutes_until_launch(ctx)
    return minutes is not None and 0 < minutes < ctx.policy.near_term_launch_minutes


def _distant_launch(ctx: RuleContext) -> bool:
    minutes = _minutes_until_launch(ctx)
    return minutes is not None and minutes > ctx.policy.max_launch_lead_days * 24 * 60


ADVISORY_RULES: tuple[ContextRule, ...] = (
    ContextRule(
        rule="altitude.high_launch_site",
        field="launch_location.altitude",
        violated=_high_launch_site,
        message=lambda ctx: "High altitude launch location may affect weather data accuracy",
        value=lambda ctx: ctx.inputs.launch_location.altitude,
        severity=Severity.WARNING,
    ),
    ContextRule(
        rule="latitude.polar",
        field="launch_location.latitude",
        violated=_polar_launch,
        message=lambda ctx: "Polar launch location may have limited weather model accuracy",
        value=lambda ctx: ctx.inputs.launch_location.latitude,
        severity=Severity.WARNING,
    ),
    ContextRule(
        rule="ascent_rate.fast_ascent",
        field="balloon.ascent_rate",
        violated=_fast_ascent,
        message=lambda ctx: "Very fast ascent rate may result in less accurate predictions",
        value=lambda ctx: ctx.inputs.balloon.ascent_rate,
        severity=Severity.WARNING,
    ),
    ContextRule(
        rule="ascent_rate.slow_ascent",
        field="balloon.ascent_rate",
        violated=_slow_ascent,
        message=lambda ctx: "Very slow ascent rate may encounter changing weather conditions",
        value=lambda ctx: ctx.inputs.balloon.ascent_rate,
        severity=Severity.WARNING,
    ),
    ContextRule(
        rule="initial_volume.low_lift_ratio",
        field="balloon.initial_volume",
        violated=_low_lift_ratio,
        message=lambda ctx: "Low balloon volume to payload weight ratio may result in poor ascent performance",
        value=lambda ctx: ctx.inputs.balloon.initial_volume,
        severity=Severity.WARNING,
    ),
    ContextRule(
        rule="launch_time.near_term",
        field="launch_location.launch_time",
        violated=_near_term_launch,
        message=lambda ctx: "Launch time is very soon - weather data may not be current",
        value=lambda ctx: ctx.inputs.launch_location.launch_time,
        severity=Severity.WARNING,
    ),
    ContextRule(
        rule="launch_time.beyond_forecast",
        field="launch_location.launch_time",
        violated=_distant_launch,
        message=lambda ctx: (
            f"Launch time is more than {ctx.policy.max_launch_lead_days} days ahead - "
            "forecast data may not be available"
        ),
        value=lambda ctx: ctx.inputs.launch_location.launch_time,
        severity=Severity.WARNING,
    ),
)
