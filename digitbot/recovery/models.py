"""State and parameter models for the recovery sequencer."""

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Sequence


class RecoveryMode(str, Enum):
    """Named stake sequence variants."""
    BASE = "base"
    CONSERVATIVE = "conservative"
    AGGRESSIVE = "aggressive"
    NEUTRAL = "neutral"


SEQUENCE_VARIANTS: dict[RecoveryMode, tuple[int, ...]] = {
    RecoveryMode.BASE: (1, 3, 2, 6),
    RecoveryMode.CONSERVATIVE: (1, 2, 3, 4),
    RecoveryMode.AGGRESSIVE: (1, 3, 5, 7),
    RecoveryMode.NEUTRAL: (1, 3, 2, 6),
}

RECOVERY_MULTIPLIERS: dict[RecoveryMode, float] = {
    RecoveryMode.BASE: 15.0,
    RecoveryMode.CONSERVATIVE: 10.75,
    RecoveryMode.AGGRESSIVE: 12.5,
    RecoveryMode.NEUTRAL: 5.0,
}

SEQUENCE_LENGTH = 4


def validate_sequence(sequence: Sequence[Any]) -> bool:
    """A sequence has four whole-number multipliers and starts at 1."""
    return (
        len(sequence) == SEQUENCE_LENGTH
        and all(isinstance(step, int) and not isinstance(step, bool) and step > 0 for step in sequence)
        and sequence[0] == 1
    )


@dataclass(frozen=True)
class RecoveryParams:
    """Sequencer configuration; validated on construction."""
    initial_stake: float = 5.0
    profit_threshold: float = 1000.0
    loss_threshold: float = 500.0
    market: str = "1HZ100V"
    max_recovery_attempts: int = 2
    recovery_mode: RecoveryMode = RecoveryMode.NEUTRAL
    enable_sequence_protection: bool = True
    max_daily_trades: int = 50
    max_volatility: float = 0.6
    min_trend_strength: float = 0.4
    min_win_rate: float = 0.4
    profit_lock_ratio: float = 0.5
    sequence_profit_lock_multiple: float = 10.0
    first_loss_reduction: float = 0.3
    recovery_exit_ratio: float = 0.75
    recovery_stake_cap_ratio: float = 0.25
    abnormal_profit_multiple: float = 5.0
    max_failed_sequences: int = 3
    sequence_lookback: int = 5
    market_window: int = 20
    assumed_payout_ratio: float = 0.92

    def __post_init__(self) -> None:
        object.__setattr__(self, "recovery_mode", RecoveryMode(self.recovery_mode))

        for name in ("max_volatility", "min_trend_strength", "min_win_rate",
                     "profit_lock_ratio", "first_loss_reduction",
                     "recovery_exit_ratio", "recovery_stake_cap_ratio"):
            value = getattr(self, name)
            if not 0 <= value <= 1:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")

        for name in ("initial_stake", "profit_threshold", "loss_threshold"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")

        if self.max_recovery_attempts < 0:
            raise ValueError("max_recovery_attempts cannot be negative")

        if self.max_daily_trades <= 0:
            raise ValueError("max_daily_trades must be positive")

        if self.market_window <= 0 or self.sequence_lookback <= 0:
            raise ValueError("market_window and sequence_lookback must be positive")

    @property
    def recovery_multiplier(self) -> float:
        return RECOVERY_MULTIPLIERS[self.recovery_mode]


@dataclass(frozen=True)
class SequencerState:
    """
    Position within the current stake sequence and running totals.

    Never mutated; every transition produces a new instance.
    """
    sequence: tuple[int, ...]
    position: int
    current_stake: float
    trading_day: date
    sequence_profit: float = 0.0
    total_profit: float = 0.0
    consecutive_wins: int = 0
    consecutive_losses: int = 0
    recovery_attempts: int = 0
    trades_today: int = 0
    daily_profit_loss: float = 0.0
    in_recovery: bool = False
    last_trade_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not validate_sequence(self.sequence):
            raise ValueError(f"Invalid stake sequence: {self.sequence}")
        if not 0 <= self.position < len(self.sequence):
            raise ValueError(f"Sequence position out of range: {self.position}")

    @property
    def multiplier(self) -> int:
        return self.sequence[self.position]

    def update(self, **changes: Any) -> "SequencerState":
        """Create new state with the given fields replaced."""
        return replace(self, **changes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequence": list(self.sequence),
            "position": self.position,
            "current_stake": self.current_stake,
            "sequence_profit": self.sequence_profit,
            "total_profit": self.total_profit,
            "consecutive_wins": self.consecutive_wins,
            "consecutive_losses": self.consecutive_losses,
            "recovery_attempts": self.recovery_attempts,
            "trades_today": self.trades_today,
            "daily_profit_loss": self.daily_profit_loss,
            "in_recovery": self.in_recovery,
        }


@dataclass(frozen=True)
class SequencerStatistics:
    """Lifetime counters for one sequencer."""
    total_wins: int = 0
    total_losses: int = 0
    sequences_completed: int = 0
    max_win_streak: int = 0
    max_loss_streak: int = 0
    best_sequence_profit: float = 0.0
    worst_sequence_loss: float = 0.0
    total_recovery_attempts: int = 0
    successful_recoveries: int = 0

    def update(self, **changes: Any) -> "SequencerStatistics":
        return replace(self, **changes)


@dataclass(frozen=True)
class TradeRecord:
    """One settled trade as seen by the sequencer."""
    is_win: bool
    profit: float
    stake: float
    position: int
    in_recovery: bool
    recovery_attempt: int
    timestamp: datetime


@dataclass(frozen=True)
class SequenceRecord:
    """A finished sequence attempt, completed or abandoned."""
    sequence: tuple[int, ...]
    completed: bool
    profit: float
    timestamp: datetime


@dataclass(frozen=True)
class TradeDecision:
    """Whether to place the next trade and with what parameters."""
    should_trade: bool
    reason: str
    amount: float = 0.0
    prediction: Optional[int] = None
    contract_type: str = "DIGITDIFF"
    duration: int = 1
    duration_unit: str = "t"
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def refuse(cls, reason: str, **metadata: Any) -> "TradeDecision":
        return cls(should_trade=False, reason=reason, metadata=metadata)
