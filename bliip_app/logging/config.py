"""
Centralized logging configuration for the prediction core.

This module provides standardized logging configuration using structlog
for all components. All logging throughout the system should use this
configuration to ensure consistent formatting and structured logging.
"""
import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import FilteringBoundLogger


def configure_logging(
    level: str = "INFO",
    format_json: bool = False,
    include_timestamp: bool = True,
    include_caller: bool = False,
    extra_processors: Optional[list] = None
) -> None:
    """
    Configure structlog for the entire application.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_json: If True, output JSON format; otherwise human-readable
        include_timestamp: Include timestamp in log output
        include_caller: Include caller information (filename, line number)
        extra_processors: Additional structlog processors to include
    """
    log_level = getattr(logging, level.upper())

    logging.basicConfig(
        level=log_level,
        stream=sys.stdout,
        format="%(message)s"  # structlog will handle formatting
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if include_caller:
        processors.append(structlog.processors.CallsiteParameterAdder(
            parameters=[structlog.processors.CallsiteParameter.FILENAME,
                        structlog.processors.CallsiteParameter.LINENO]
        ))

    if extra_processors:
        processors.extend(extra_processors)

    if format_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> FilteringBoundLogger:
    """
    Get a configured structlog logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def get_validation_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound to the input validation subsystem.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for validation decisions
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="validation",
        audit_trail=True
    )


def get_ensemble_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound to the Monte Carlo ensemble subsystem.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for ensemble execution
    """
    logger = get_logger(name)

    return logger.bind(
        subsystem="ensemble"
    )


def log_validation_result(
    logger: FilteringBoundLogger,
    prediction_id: str,
    errors: list,
    advisories: Optional[list] = None,
) -> None:
    """
    Log the outcome of an input validation pass with standardized format.

    Args:
        logger: Structlog logger instance
        prediction_id: ID of the prediction request
        errors: Ordered validation errors (empty when accepted)
        advisories: Optional advisory warnings
    """
    bound_logger = logger.bind(
        prediction_id=prediction_id,
        validation_result="PASS" if not errors else "FAIL",
        error_count=len(errors),
        rules=[err.rule for err in errors],
    )

    if advisories:
        bound_logger = bound_logger.bind(advisories=[adv.rule for adv in advisories])

    if errors:
        bound_logger.warning("Input validation failed")
    else:
        bound_logger.info("Input validation passed")


def log_ensemble_outcome(
    logger: FilteringBoundLogger,
    prediction_id: str,
    status: str,
    completed: int,
    total: int,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log the outcome of a Monte Carlo ensemble run with standardized format.

    Args:
        logger: Structlog logger instance
        prediction_id: ID of the prediction request
        status: Outcome status value
        completed: Number of successful draws
        total: Number of planned draws
        context: Additional context data
    """
    bound_logger = logger.bind(
        prediction_id=prediction_id,
        ensemble_status=status,
        completed_draws=completed,
        planned_draws=total,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if status == "ok":
        bound_logger.info("Ensemble completed")
    else:
        bound_logger.warning("Ensemble did not complete cleanly")
