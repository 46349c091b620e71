"""Policy configuration validation utilities."""

from dataclasses import dataclass, fields
from typing import Any

from .defaults import EnsemblePolicy, OutputPolicy, ValidationPolicy


@dataclass(frozen=True)
class PolicyViolation:
    """Represents a policy configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_positive_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


class PolicyValidator:
    """Validates policy parameters merged from defaults, files and overrides."""

    @staticmethod
    def _unknown_keys(section: str, params: dict[str, Any], known: type) -> list[PolicyViolation]:
        allowed = {f.name for f in fields(known)}
        return [
            PolicyViolation(field=f"{section}.{key}", message="Unknown policy key", value=params[key])
            for key in params
            if key not in allowed
        ]

    @staticmethod
    def validate_validation_policy(params: dict[str, Any]) -> list[PolicyViolation]:
        """Validate cross-field and advisory rule policy."""
        errors = PolicyValidator._unknown_keys("validation", params, ValidationPolicy)

        generic = params.get("generic_max_flight_hours")
        if "generic_max_flight_hours" in params and not _is_positive_int(generic):
            errors.append(PolicyViolation(
                field="validation.generic_max_flight_hours",
                message="Must be a positive integer",
                value=generic
            ))

        # Latex ceiling must stay below the generic ceiling
        if "latex_max_flight_hours" in params:
            value = params["latex_max_flight_hours"]
            if not _is_positive_int(value):
                errors.append(PolicyViolation(
                    field="validation.latex_max_flight_hours",
                    message="Must be a positive integer",
                    value=value
                ))
            elif _is_positive_int(generic) and value >= generic:
                errors.append(PolicyViolation(
                    field="validation.latex_max_flight_hours",
                    message="Must be lower than generic_max_flight_hours",
                    value=value
                ))

        for low, high in (("conus_min_latitude", "conus_max_latitude"),
                          ("conus_min_longitude", "conus_max_longitude")):
            if low not in params and high not in params:
                continue
            lo_value, hi_value = params.get(low), params.get(high)
            if not _is_number(lo_value) or not _is_number(hi_value) or lo_value >= hi_value:
                errors.append(PolicyViolation(
                    field=f"validation.{low}",
                    message=f"Must be a number lower than {high}",
                    value=lo_value
                ))

        return errors

    @staticmethod
    def validate_ensemble_policy(params: dict[str, Any]) -> list[PolicyViolation]:
        """Validate Monte Carlo execution policy."""
        errors = PolicyValidator._unknown_keys("ensemble", params, EnsemblePolicy)

        for name in ("confidence_level", "min_success_fraction"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value <= 0 or value > 1:
                    errors.append(PolicyViolation(
                        field=f"ensemble.{name}",
                        message="Must be a number in (0, 1]",
                        value=value
                    ))

        for name in ("draw_timeout_seconds", "ensemble_timeout_seconds", "poll_interval_seconds"):
            if name in params:
                value = params[name]
                if not _is_number(value) or value <= 0:
                    errors.append(PolicyViolation(
                        field=f"ensemble.{name}",
                        message="Must be a positive number",
                        value=value
                    ))

        if "max_workers" in params and not _is_positive_int(params["max_workers"]):
            errors.append(PolicyViolation(
                field="ensemble.max_workers",
                message="Must be a positive integer",
                value=params["max_workers"]
            ))

        if "salvage_on_cancel" in params and not isinstance(params["salvage_on_cancel"], bool):
            errors.append(PolicyViolation(
                field="ensemble.salvage_on_cancel",
                message="Must be a boolean",
                value=params["salvage_on_cancel"]
            ))

        return errors

    @staticmethod
    def validate_output_policy(params: dict[str, Any]) -> list[PolicyViolation]:
        """Validate response assembly policy."""
        errors = PolicyValidator._unknown_keys("output", params, OutputPolicy)

        if "simplification_factor" in params and not _is_positive_int(params["simplification_factor"]):
            errors.append(PolicyViolation(
                field="output.simplification_factor",
                message="Must be a positive integer",
                value=params["simplification_factor"]
            ))

        for name in ("coordinate_system", "model_version"):
            if name in params and (not isinstance(params[name], str) or not params[name]):
                errors.append(PolicyViolation(
                    field=f"output.{name}",
                    message="Must be a non-empty string",
                    value=params[name]
                ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[PolicyViolation]:
        """Validate complete configuration."""
        errors = []

        if "validation" in config:
            errors.extend(PolicyValidator.validate_validation_policy(config["validation"]))

        if "ensemble" in config:
            errors.extend(PolicyValidator.validate_ensemble_policy(config["ensemble"]))

        if "output" in config:
            errors.extend(PolicyValidator.validate_output_policy(config["output"]))

        return errors
