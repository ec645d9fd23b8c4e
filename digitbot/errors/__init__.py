"""
Error classification for the trading engine.

Structured exception hierarchy separating recoverable runtime failures,
fatal session failures and trade-level errors.
"""

from .recovery import (
    BrokerConnectionError,
    NetworkError,
    RecoverableError,
    TemporaryServiceError,
    TradeTimeoutError,
    UnrecoverableError,
    is_recoverable_error,
)
from .session_failures import (
    AccountUnavailableError,
    PersistenceError,
    SessionFailureError,
    SessionPreconditionError,
)
from .trading import (
    InvalidTradeParametersError,
    RewardStructureError,
    SafetyHaltError,
    TradeExecutionError,
    TradeGatedError,
    TradingError,
)

__all__ = [
    # Recovery categories
    "RecoverableError",
    "NetworkError",
    "TradeTimeoutError",
    "TemporaryServiceError",
    "BrokerConnectionError",
    "UnrecoverableError",
    "is_recoverable_error",
    # Session failures
    "SessionFailureError",
    "SessionPreconditionError",
    "AccountUnavailableError",
    "PersistenceError",
    # Trading errors
    "TradingError",
    "RewardStructureError",
    "InvalidTradeParametersError",
    "TradeExecutionError",
    "TradeGatedError",
    "SafetyHaltError",
]
