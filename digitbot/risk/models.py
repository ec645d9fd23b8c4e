"""Risk manager state models."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Optional

from ..models.enums import SafetyMode


@dataclass(frozen=True)
class CircuitBreakerState:
    """Safety mode flag plus the moment it expires."""
    mode: SafetyMode = SafetyMode.NORMAL
    safety_mode_until: Optional[datetime] = None
    reason: Optional[str] = None
    triggered_at: Optional[datetime] = None

    @property
    def is_normal(self) -> bool:
        return self.mode == SafetyMode.NORMAL

    def update(self, **changes: Any) -> "CircuitBreakerState":
        return replace(self, **changes)


@dataclass(frozen=True)
class RapidLossState:
    """Sliding window of recent losses and the escalating cooldown."""
    recent_losses: tuple[tuple[datetime, float], ...] = ()
    trigger_count: int = 0
    last_trigger_at: Optional[datetime] = None
    current_cooldown_seconds: float = 0.0
    active: bool = False

    def update(self, **changes: Any) -> "RapidLossState":
        return replace(self, **changes)


@dataclass(frozen=True)
class BalanceValidation:
    """Outcome of checking a stake against the account balance."""
    is_valid: bool
    reasons: tuple[str, ...] = ()
    metrics: dict[str, float] = field(default_factory=dict)
