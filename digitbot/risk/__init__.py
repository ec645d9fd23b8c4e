"""Default risk manager: circuit breakers, rapid-loss detection, stake sizing."""
from .manager import VolatilityRiskManager
from .models import BalanceValidation, CircuitBreakerState, RapidLossState

__all__ = [
    "BalanceValidation",
    "CircuitBreakerState",
    "RapidLossState",
    "VolatilityRiskManager",
]
