"""Default configuration parameters for the trading engine."""

from dataclasses import dataclass, field, fields
from typing import Any


@dataclass(frozen=True)
class StakeLimits:
    """Global stake bounds shared by payout tables and parameter validation."""
    min_stake: float = 0.35
    max_stake: float = 2000.0


@dataclass(frozen=True)
class SessionDefaults:
    """Values used when a session mapping omits optional fields."""
    currency: str = "USD"
    contract_duration_value: int = 1
    contract_duration_unit: str = "t"
    session_duration: str = "1h"
    telemetry_interval: str = "5m"
    trading_mode: str = "auto"
    max_recovery_attempts: int = 2


@dataclass(frozen=True)
class RecoveryDefaults:
    """1-3-2-6 sequencer tunables."""
    recovery_mode: str = "neutral"
    enable_sequence_protection: bool = True
    max_daily_trades: int = 50
    max_volatility: float = 0.6
    min_trend_strength: float = 0.4         # Below this the profit lock engages
    min_win_rate: float = 0.4
    profit_lock_ratio: float = 0.5          # Share of the profit target that locks in
    sequence_profit_lock_multiple: float = 10.0
    first_loss_reduction: float = 0.3
    recovery_exit_ratio: float = 0.75       # Share of loss threshold tolerated on exit
    recovery_stake_cap_ratio: float = 0.25
    abnormal_profit_multiple: float = 5.0
    max_failed_sequences: int = 3
    sequence_lookback: int = 5
    market_window: int = 20
    assumed_payout_ratio: float = 0.92


@dataclass(frozen=True)
class CircuitBreakerDefaults:
    """Default risk manager circuit breakers."""
    max_absolute_loss: float = 1000.0
    max_daily_loss: float = 500.0
    max_consecutive_losses: int = 4
    max_balance_percentage_loss: float = 0.5
    cooldown_seconds: float = 15.0


@dataclass(frozen=True)
class RapidLossDefaults:
    """Rapid-loss detector: too many losses inside a sliding window."""
    window_seconds: float = 40.0
    threshold: int = 4
    initial_cooldown_seconds: float = 15.0
    max_cooldown_seconds: float = 300.0
    cooldown_multiplier: float = 2.0


@dataclass(frozen=True)
class BackoffDefaults:
    """Retry policy for recoverable session errors."""
    base_seconds: float = 1.0
    max_seconds: float = 30.0
    max_retries: int = 5


@dataclass(frozen=True)
class StrategyDefaults:
    """Shared strategy pipeline settings."""
    recovery_target_multiplier: float = 12.75
    safety_buffer_seconds: float = 1.0
    max_safety_waits: int = 3
    minimum_balance_multiple: float = 3.0   # Balance must cover this many base stakes


@dataclass(frozen=True)
class DefaultConfig:
    """Complete default configuration."""
    stake_limits: StakeLimits = field(default_factory=StakeLimits)
    session: SessionDefaults = field(default_factory=SessionDefaults)
    recovery: RecoveryDefaults = field(default_factory=RecoveryDefaults)
    circuit_breaker: CircuitBreakerDefaults = field(default_factory=CircuitBreakerDefaults)
    rapid_loss: RapidLossDefaults = field(default_factory=RapidLossDefaults)
    backoff: BackoffDefaults = field(default_factory=BackoffDefaults)
    strategy: StrategyDefaults = field(default_factory=StrategyDefaults)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DefaultConfig":
        """Build a config from a merged mapping; unknown keys are ignored."""
        sections = {}
        for section in fields(cls):
            section_type = section.default_factory  # type: ignore[misc]
            raw = data.get(section.name) or {}
            known = {f.name for f in fields(section_type)}
            sections[section.name] = section_type(
                **{key: value for key, value in raw.items() if key in known}
            )
        return cls(**sections)


def get_default_config() -> DefaultConfig:
    """Get the default configuration instance."""
    return DefaultConfig()
