"""
Main prediction engine coordinator.

Orchestrates the prediction pipeline, coordinating input validation, the
nominal trajectory, the Monte Carlo ensemble and response assembly:

User Inputs → Validation → Nominal Draw → Ensemble → Aggregate → Response
"""

import uuid
from datetime import datetime
from typing import Any, Optional

import structlog

from .config.loader import ConfigLoader
from .errors import ValidationFailure
from .ensemble.runner import CancellationToken, EnsembleRunner, TrajectoryIntegrator
from .logging.config import (
    get_ensemble_logger,
    get_validation_logger,
    log_ensemble_outcome,
    log_validation_result,
)
from .models.inputs import UserInputs
from .models.results import OutcomeStatus, Telemetry
from .models.trajectory import SimulationDraw
from .output.assembler import OutputAssembler
from .utils.time import get_evaluation_time
from .validation.engine import InputValidator
from .validation.response_schema import ResponseValidator

logger = structlog.get_logger(__name__)
validation_logger = get_validation_logger(__name__)
ensemble_logger = get_ensemble_logger(__name__)

FAILURE_KINDS = {
    OutcomeStatus.PARTIAL: "partial_ensemble",
    OutcomeStatus.TIMEOUT: "timeout",
    OutcomeStatus.CANCELLED: "cancelled",
    OutcomeStatus.CONFIGURATION_ERROR: "configuration_error",
}


class PredictionEngine:
    """
    Main coordinator for the balloon landing prediction system.

    The trajectory integrator is supplied by the caller; the engine owns
    validation, ensemble execution and response assembly.
    """

    def __init__(self, integrator: TrajectoryIntegrator,
                 config_loader: Optional[ConfigLoader] = None,
                 overrides: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize the prediction engine.

        Raises:
            ConfigurationError: If the merged policy configuration is invalid
        """
        self.logger = logger
        self.config_loader = config_loader or ConfigLoader.create()
        self.policies = self.config_loader.load_policies(overrides)

        self.validator = InputValidator(self.policies.validation)
        self.runner = EnsembleRunner(integrator, self.policies.ensemble)
        self.assembler = OutputAssembler(self.policies.output)
        self.response_validator = ResponseValidator()

        self.logger.info(
            "Prediction engine initialized",
            config_dir=str(self.config_loader.config_dir),
            model_version=self.policies.output.model_version,
        )

    def predict(self, inputs: UserInputs, evaluation_time: Optional[datetime] = None,
                cancel_token: Optional[CancellationToken] = None, simplify: bool = False,
                telemetry: Optional[Telemetry] = None, prediction_id: Optional[str] = None,
                include_conversions: bool = False) -> dict[str, Any]:
        """
        Produce a landing prediction response.

        Args:
            inputs: Mission parameters
            evaluation_time: Reference "now" for time-dependent rules
            cancel_token: Optional cooperative cancellation token
            simplify: Thin the returned trajectory
            telemetry: Live flight state to include in the response
            prediction_id: Caller-supplied identifier, generated when omitted
            include_conversions: Add UTM/MGRS views of the landing point

        Returns:
            Success or error response mapping

        Raises:
            MalformedInputError: If ``inputs`` is not a UserInputs record
        """
        prediction_id = prediction_id or uuid.uuid4().hex
        now = get_evaluation_time(evaluation_time)

        try:
            self.validator.require_valid(inputs, now)
        except ValidationFailure as e:
            log_validation_result(validation_logger, prediction_id, e.errors, [])
            return self.assembler.assemble_failure(
                prediction_id,
                now,
                kind="validation_failure",
                message=str(e),
                errors=e.errors,
            )

        advisories = self.validator.advisories(inputs, now)
        log_validation_result(validation_logger, prediction_id, [], advisories)

        nominal = self._nominal_draw(inputs, prediction_id)
        outcome = self.runner.run(inputs, cancel_token=cancel_token)

        log_ensemble_outcome(
            ensemble_logger,
            prediction_id,
            outcome.status.value,
            outcome.completed,
            outcome.planned,
            context={"salvaged": outcome.usable} if outcome.status == OutcomeStatus.CANCELLED else None,
        )

        if not outcome.usable:
            return self.assembler.assemble_failure(
                prediction_id,
                now,
                kind=FAILURE_KINDS.get(outcome.status, outcome.status.value),
                message=str(outcome.error) if outcome.error else outcome.status.value,
            )

        response = self.assembler.assemble(
            outcome.aggregate,
            nominal,
            inputs,
            prediction_id,
            now,
            simplify=simplify,
            telemetry=telemetry,
            include_conversions=include_conversions,
        )

        if not self.response_validator.validate_responses([response])[0]:
            self.logger.warning("Assembled response outside output ranges", prediction_id=prediction_id)

        return response

    def validate(self, inputs: UserInputs, evaluation_time: Optional[datetime] = None) -> list:
        """Validation-only pass, for form feedback before a full prediction."""
        return self.validator.validate(inputs, evaluation_time)

    def _nominal_draw(self, inputs: UserInputs, prediction_id: str) -> Optional[SimulationDraw]:
        try:
            draw = self.runner.run_nominal(inputs)
        except Exception as e:
            self.logger.warning("Nominal trajectory failed", prediction_id=prediction_id, error=str(e))
            return None

        if not draw.succeeded:
            self.logger.warning("Nominal trajectory failed", prediction_id=prediction_id, error=draw.error)
            return None
        return draw
