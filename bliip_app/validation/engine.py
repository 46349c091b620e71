"""
Mission parameter validation engine.

Evaluates the rule tables of ``rules.py`` in a fixed order so that the
resulting error list is deterministic and diffable across runs:

1. launch location field rules
2. balloon specification field rules
3. environmental parameter field rules
4. prediction parameter field rules
5. cross-field rules

The validator is stateless and side-effect free; it is safe to share one
instance across concurrent requests.
"""

from datetime import datetime
from typing import Optional

from ..config.defaults import ValidationPolicy
from ..errors import MalformedInputError, ValidationFailure
from ..models.inputs import (
    BalloonSpecification,
    EnvironmentalParameters,
    LaunchLocation,
    PredictionParameters,
    UserInputs,
)
from ..utils.time import get_evaluation_time
from .rules import (
    ADVISORY_RULES,
    CROSS_FIELD_RULES,
    ContextRule,
    FieldSpec,
    RuleContext,
    ValidationError,
    build_field_specs,
)

_SECTIONS = (
    ("launch_location", LaunchLocation),
    ("balloon", BalloonSpecification),
    ("environment", EnvironmentalParameters),
    ("prediction", PredictionParameters),
)


class InputValidator:
    """Validates a complete ``UserInputs`` record."""

    def __init__(self, policy: Optional[ValidationPolicy] = None) -> None:
        self.policy = policy or ValidationPolicy()
        self.field_specs: tuple[FieldSpec, ...] = build_field_specs(self.policy)
        self.cross_field_rules: tuple[ContextRule, ...] = CROSS_FIELD_RULES
        self.advisory_rules: tuple[ContextRule, ...] = ADVISORY_RULES

    def validate(self, inputs: UserInputs,
                 evaluation_time: Optional[datetime] = None) -> list[ValidationError]:
        """
        Validate mission parameters.

        Args:
            inputs: Mission parameters to check
            evaluation_time: Reference instant for time-dependent rules

        Returns:
            Ordered list of validation errors, empty when inputs are accepted

        Raises:
            MalformedInputError: If ``inputs`` does not have the UserInputs shape
        """
        self._check_shape(inputs)

        errors = []
        for spec in self.field_specs:
            error = spec.evaluate(inputs)
            if error is not None:
                errors.append(error)

        ctx = RuleContext(inputs, get_evaluation_time(evaluation_time), self.policy)
        for rule in self.cross_field_rules:
            error = rule.evaluate(ctx)
            if error is not None:
                errors.append(error)

        return errors

    def advisories(self, inputs: UserInputs,
                   evaluation_time: Optional[datetime] = None) -> list[ValidationError]:
        """Non-blocking warnings about conditions that reduce prediction quality."""
        self._check_shape(inputs)

        ctx = RuleContext(inputs, get_evaluation_time(evaluation_time), self.policy)
        return [
            warning
            for warning in (rule.evaluate(ctx) for rule in self.advisory_rules)
            if warning is not None
        ]

    def is_valid(self, inputs: UserInputs, evaluation_time: Optional[datetime] = None) -> bool:
        return not self.validate(inputs, evaluation_time)

    def require_valid(self, inputs: UserInputs, evaluation_time: Optional[datetime] = None) -> None:
        """
        Validate and raise when any rule fails.

        Raises:
            ValidationFailure: Carrying the ordered error list
            MalformedInputError: If ``inputs`` does not have the UserInputs shape
        """
        now = get_evaluation_time(evaluation_time)
        errors = self.validate(inputs, now)
        if errors:
            raise ValidationFailure(
                f"{len(errors)} input validation error(s)",
                errors=errors,
                context={"evaluation_time": now.isoformat()},
            )

    @staticmethod
    def _check_shape(inputs: UserInputs) -> None:
        if not isinstance(inputs, UserInputs):
            raise MalformedInputError(
                "Validation requires a UserInputs record",
                expected_type="UserInputs",
                actual_type=type(inputs).__name__,
            )
        for name, section_type in _SECTIONS:
            section = getattr(inputs, name)
            if not isinstance(section, section_type):
                raise MalformedInputError(
                    f"UserInputs.{name} must be a {section_type.__name__}",
                    expected_type=section_type.__name__,
                    actual_type=type(section).__name__,
                )


def format_validation_errors(errors: list[ValidationError]) -> list[str]:
    """Format validation errors for display."""
    return [f"{error.field}: {error.message}" for error in errors]


# Global validator instance
validator = InputValidator()


def validate(inputs: UserInputs, evaluation_time: Optional[datetime] = None) -> list[ValidationError]:
    """Convenience function to validate inputs with the default policy."""
    return validator.validate(inputs, evaluation_time)
