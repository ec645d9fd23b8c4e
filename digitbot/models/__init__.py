"""Value types shared across the engine."""
from .account import Account
from .aggregate import AuditEntry, RunningAggregate
from .enums import (
    ContractType,
    DurationUnit,
    NotificationAction,
    SafetyMode,
    SafetyStatus,
    SessionState,
)
from .session import SessionConfig, TradingConfig
from .trade import ContractParams, TradeResult

__all__ = [
    "Account",
    "AuditEntry",
    "ContractParams",
    "ContractType",
    "DurationUnit",
    "NotificationAction",
    "RunningAggregate",
    "SafetyMode",
    "SafetyStatus",
    "SessionConfig",
    "SessionState",
    "TradeResult",
    "TradingConfig",
]
