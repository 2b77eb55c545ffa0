"""
Centralized logging configuration for the clobster strategy core.

This module provides standardized logging configuration using structlog
for all components. Risk decisions and strategy lifecycle transitions are
written through dedicated bound loggers so they can be filtered as an
audit trail.
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


def get_risk_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for risk guard decisions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for risk decisions
    """
    return get_logger(name).bind(
        subsystem="risk_guard",
        audit_trail=True
    )


def get_lifecycle_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for strategy lifecycle transitions.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger for lifecycle transitions
    """
    return get_logger(name).bind(
        subsystem="strategy_lifecycle",
        audit_trail=True
    )


def log_risk_decision(
    logger: FilteringBoundLogger,
    signal_id: str,
    strategy_name: Optional[str],
    market_id: str,
    accepted: bool,
    violation: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a risk guard decision with standardized format.

    Args:
        logger: Structlog logger instance
        signal_id: ID of the validated signal
        strategy_name: Strategy that produced the signal
        market_id: Market the signal targets
        accepted: Whether the signal passed every check
        violation: Serialized violation when rejected
    """
    bound_logger = logger.bind(
        signal_id=signal_id,
        strategy_name=strategy_name,
        market_id=market_id,
        risk_result="ACCEPT" if accepted else "REJECT",
    )

    if violation:
        bound_logger = bound_logger.bind(violation=violation)

    if accepted:
        bound_logger.debug("Signal accepted by risk guard")
    else:
        bound_logger.warning("Signal rejected by risk guard")


def log_lifecycle_transition(
    logger: FilteringBoundLogger,
    strategy_name: str,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a strategy lifecycle transition with standardized format.

    Args:
        logger: Structlog logger instance
        strategy_name: Name of the transitioning strategy
        from_state: Current state
        to_state: Target state
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        strategy_name=strategy_name,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Strategy lifecycle transition")
