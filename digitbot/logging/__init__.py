"""
Logging configuration and utilities for the digitbot trading engine.
"""
from .config import (
    configure_logging,
    get_logger,
    get_session_logger,
    get_strategy_logger,
    log_session_transition,
    log_trade_decision,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "get_session_logger",
    "get_strategy_logger",
    "log_session_transition",
    "log_trade_decision",
]
