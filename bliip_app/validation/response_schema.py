"""Schema validation for assembled prediction responses."""

from datetime import datetime
from typing import Any

import structlog

logger = structlog.get_logger(__name__)


# Output value ranges of the public response
RESPONSE_SCHEMA = {
    "type": "object",
    "required": ["status", "prediction_id", "data", "metadata"],
    "properties": {
        "status": {
            "type": "string",
            "enum": ["success", "error"],
            "description": "Response status"
        },
        "prediction_id": {
            "type": "string",
            "minLength": 1,
            "description": "Unique prediction identifier"
        },
        "data": {
            "type": "object",
            "required": ["landing_prediction", "trajectory", "uncertainty"],
            "properties": {
                "coordinates": {
                    "latitude": {"minimum": -90, "maximum": 90, "precision": 6},
                    "longitude": {"minimum": -180, "maximum": 180, "precision": 6},
                    "altitude": {"minimum": -1000, "maximum": 100000, "precision": 0}
                },
                "confidence_interval": {
                    "radius_km": {"minimum": 0, "maximum": 1000, "precision": 1},
                    "probability": {"minimum": 0, "maximum": 1, "precision": 3}
                },
                "trajectory_point": {
                    "timestamp": {"format": "date-time"},
                    "wind_speed": {"minimum": 0, "maximum": 200, "precision": 1},
                    "wind_direction": {"minimum": 0, "maximum": 360, "precision": 0},
                    "temperature": {"minimum": -100, "maximum": 100, "precision": 1},
                    "pressure": {"minimum": 0, "maximum": 2000, "precision": 2}
                }
            }
        },
        "metadata": {
            "type": "object",
            "required": ["generated_at", "model_version"],
            "description": "Response provenance"
        }
    },
    "additionalProperties": True
}

FACTOR_SUM_TOLERANCE = 0.005


class ResponseValidationError(Exception):
    """Response validation error."""
    pass


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ResponseValidator:
    """Validates assembled success responses against the output ranges."""

    def __init__(self):
        self.logger = logger
        self.schema = RESPONSE_SCHEMA
        self.ranges = RESPONSE_SCHEMA["properties"]["data"]["properties"]

    def validate_response(self, response: dict[str, Any]) -> bool:
        """
        Validate a success response against the schema.

        Args:
            response: Assembled response mapping

        Returns:
            True if valid

        Raises:
            ResponseValidationError: If validation fails
        """
        try:
            self._validate_required_fields(response)
            self._validate_coordinates(response["data"])
            self._validate_confidence_interval(response["data"])
            self._validate_trajectory(response["data"])
            self._validate_factors(response["data"])
            self._validate_timestamps(response)

            return True

        except (ValueError, KeyError, TypeError, AttributeError) as e:
            error_msg = f"Response validation failed: {str(e)}"
            self.logger.error(error_msg, prediction_id=response.get("prediction_id")
                              if isinstance(response, dict) else None)
            raise ResponseValidationError(error_msg) from e

    def _validate_required_fields(self, response: dict[str, Any]) -> None:
        """Validate required fields are present."""
        missing_fields = [field for field in self.schema["required"] if field not in response]
        if missing_fields:
            raise ValueError(f"Missing required fields: {missing_fields}")

        if response["status"] != "success":
            raise ValueError(f"Only success responses carry data, got status: {response['status']}")

        if not isinstance(response["prediction_id"], str) or not response["prediction_id"]:
            raise ValueError("prediction_id must be a non-empty string")

        data_required = self.schema["properties"]["data"]["required"]
        missing_data = [field for field in data_required if field not in response["data"]]
        if missing_data:
            raise ValueError(f"Missing data sections: {missing_data}")

    def _check_range(self, group: str, name: str, value: Any) -> None:
        rule = self.ranges[group][name]
        if not _is_number(value) or not (rule["minimum"] <= value <= rule["maximum"]):
            raise ValueError(
                f"{name} must be a number between {rule['minimum']} and {rule['maximum']}, got: {value}"
            )

    def _validate_coordinates(self, data: dict[str, Any]) -> None:
        """Validate landing and percentile coordinates are on the globe."""
        coordinates = [data["landing_prediction"]["coordinates"]]
        monte_carlo = data.get("monte_carlo")
        if monte_carlo:
            coordinates.extend(monte_carlo["landing_distribution"]["percentiles"].values())

        for coords in coordinates:
            self._check_range("coordinates", "latitude", coords["latitude"])
            self._check_range("coordinates", "longitude", coords["longitude"])
            if coords.get("altitude") is not None:
                self._check_range("coordinates", "altitude", coords["altitude"])

    def _validate_confidence_interval(self, data: dict[str, Any]) -> None:
        interval = data["landing_prediction"]["confidence_interval"]
        self._check_range("confidence_interval", "radius_km", interval["radius_km"])
        self._check_range("confidence_interval", "probability", interval["probability"])

    def _validate_trajectory(self, data: dict[str, Any]) -> None:
        """Validate trajectory samples against point ranges."""
        for point in data["trajectory"]["points"]:
            self._check_range("coordinates", "latitude", point["latitude"])
            self._check_range("coordinates", "longitude", point["longitude"])
            self._check_range("coordinates", "altitude", point["altitude"])
            for name in ("wind_speed", "wind_direction", "temperature", "pressure"):
                if point.get(name) is not None:
                    self._check_range("trajectory_point", name, point[name])

    def _validate_factors(self, data: dict[str, Any]) -> None:
        """Validate attribution factors are fractions summing to one."""
        factors = data["uncertainty"]["landing_zone"].get("factors")
        if factors is None:
            return

        for name, value in factors.items():
            if not _is_number(value) or not (0 <= value <= 1):
                raise ValueError(f"{name} must be between 0 and 1, got: {value}")

        total = sum(factors.values())
        if abs(total - 1.0) > FACTOR_SUM_TOLERANCE:
            raise ValueError(f"Uncertainty factors must sum to 1, got: {total}")

    def _validate_timestamps(self, response: dict[str, Any]) -> None:
        """Validate timestamps are ISO 8601 with an explicit offset."""
        timestamps = [("generated_at", response["metadata"]["generated_at"])]
        landing_time = response["data"]["landing_prediction"].get("estimated_landing_time")
        if landing_time is not None:
            timestamps.append(("estimated_landing_time", landing_time))
        timestamps.extend(
            ("trajectory.timestamp", point["timestamp"]) for point in response["data"]["trajectory"]["points"]
        )

        for name, value in timestamps:
            try:
                ts = datetime.fromisoformat(value.replace('Z', '+00:00'))
            except (ValueError, AttributeError):
                raise ValueError(f"Invalid {name} timestamp format: {value}")
            if ts.tzinfo is None:
                raise ValueError(f"{name} timestamp must carry a UTC offset: {value}")

    def validate_responses(self, responses: list[dict[str, Any]]) -> list[bool]:
        """
        Validate multiple responses.

        Args:
            responses: List of response dictionaries

        Returns:
            List of boolean validation results
        """
        results = []
        for response in responses:
            try:
                results.append(self.validate_response(response))
            except ResponseValidationError:
                results.append(False)
        return results

    def get_schema(self) -> dict[str, Any]:
        """Get the schema for responses."""
        return self.schema.copy()


# Global validator instance
response_validator = ResponseValidator()


def validate_response(response: dict[str, Any]) -> bool:
    """Convenience function to validate a response."""
    return response_validator.validate_response(response)
