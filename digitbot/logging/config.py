"""
Centralized logging configuration for the digitbot trading engine.

Every component logs through structlog. Call configure_logging() once at
process start; modules obtain loggers with structlog.get_logger(__name__)
or through the audit helpers below.
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
        format="%(message)s"
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


def get_session_logger(name: str) -> FilteringBoundLogger:
    """
    Get a logger bound for session lifecycle auditing.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger carrying the session subsystem and audit markers
    """
    return get_logger(name).bind(
        subsystem="session",
        audit_trail=True
    )


def get_strategy_logger(name: str, contract_type: Optional[str] = None) -> FilteringBoundLogger:
    """
    Get a logger bound for strategy decisions.

    Args:
        name: Logger name (typically __name__)
        contract_type: Contract type tag the strategy trades, if known

    Returns:
        Logger carrying the strategy subsystem and audit markers
    """
    logger = get_logger(name).bind(
        subsystem="strategy",
        audit_trail=True
    )
    if contract_type:
        logger = logger.bind(contract_type=contract_type)
    return logger


def log_session_transition(
    logger: FilteringBoundLogger,
    session_id: str,
    from_state: str,
    to_state: str,
    trigger: str,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a session state transition with standardized format.

    Args:
        logger: Structlog logger instance
        session_id: ID of the session transitioning
        from_state: Current state
        to_state: Target state
        trigger: What triggered the transition
        context: Additional context data
    """
    bound_logger = logger.bind(
        session_id=session_id,
        from_state=from_state,
        to_state=to_state,
        trigger=trigger,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    bound_logger.info("Session transition")


def log_trade_decision(
    logger: FilteringBoundLogger,
    should_trade: bool,
    reason: str,
    stake: Optional[float] = None,
    context: Optional[dict[str, Any]] = None
) -> None:
    """
    Log a strategy's decision to place or refuse the next trade.

    Args:
        logger: Structlog logger instance
        should_trade: Whether the trade was cleared
        reason: Why the decision was taken
        stake: Stake of the cleared trade
        context: Additional context data
    """
    bound_logger = logger.bind(
        decision="TRADE" if should_trade else "REFUSE",
        reason=reason,
        stake=stake,
    )

    if context:
        bound_logger = bound_logger.bind(context=context)

    if should_trade:
        bound_logger.info("Trade decision")
    else:
        bound_logger.warning("Trade refused")
