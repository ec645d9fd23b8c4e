"""Enumerations used by the trading engine."""

from enum import Enum


class ContractType(str, Enum):
    """Broker contract types the engine can buy."""
    DIGITDIFF = "DIGITDIFF"
    DIGITMATCH = "DIGITMATCH"
    DIGITEVEN = "DIGITEVEN"
    DIGITODD = "DIGITODD"
    DIGITOVER = "DIGITOVER"
    DIGITUNDER = "DIGITUNDER"
    CALLE = "CALLE"
    PUTE = "PUTE"

    @property
    def uses_barrier(self) -> bool:
        """Whether contracts of this type carry a predicted digit."""
        return self not in (ContractType.DIGITEVEN, ContractType.DIGITODD,
                            ContractType.CALLE, ContractType.PUTE)


class DurationUnit(str, Enum):
    """Contract duration units."""
    TICKS = "t"
    SECONDS = "s"
    MINUTES = "m"
    HOURS = "h"
    DAYS = "d"


class SessionState(str, Enum):
    """Session controller lifecycle states."""
    IDLE = "idle"
    VALIDATING = "validating"
    CONNECTING = "connecting"
    AUTHORIZING = "authorizing"
    TRADING = "trading"
    STOPPING = "stopping"


class SafetyMode(str, Enum):
    """Circuit breaker mode reported by the risk manager."""
    NORMAL = "normal"
    SAFETY = "safety"
    BLOCKED = "blocked"


class SafetyStatus(str, Enum):
    """Outcome of the pre-trade risk check."""
    OK = "OK"
    SAFETY_MODE = "SAFETY_MODE"
    BLOCKED = "BLOCKED"
    RAPID_LOSS_DETECTED = "RAPID_LOSS_DETECTED"


class NotificationAction(str, Enum):
    """Messaging sink notification kinds."""
    SESSION_STARTED = "session_started"
    SESSION_STOPPED = "session_stopped"
    TRADING_SUMMARY = "trading_summary"
    VALIDATION_ERROR = "validation_error"
    ACCOUNT_REQUIRED = "account_selection_required"
    ERROR = "error"
