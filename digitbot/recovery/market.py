"""Market-condition signal derived from recent trade outcomes."""

from dataclasses import dataclass
from typing import Sequence

from .models import RecoveryParams, TradeRecord


@dataclass(frozen=True)
class MarketConditions:
    """Recent win rate, a volatility proxy and the trend score."""
    volatility: float
    trend_strength: float
    win_rate: float
    sample_size: int


def analyze_market_conditions(
    history: Sequence[TradeRecord],
    params: RecoveryParams,
) -> MarketConditions:
    """
    Summarise the last params.market_window trades.

    Without history the neutral thresholds are reported so that nothing is
    gated on an empty sample. Volatility measures how far the average profit
    magnitude sits from what a winning stake is expected to pay.
    """
    recent = list(history)[-params.market_window:]
    if not recent:
        return MarketConditions(
            volatility=0.0,
            trend_strength=params.min_trend_strength,
            win_rate=params.min_win_rate,
            sample_size=0,
        )

    wins = sum(1 for record in recent if record.is_win)
    win_rate = wins / len(recent)
    average_magnitude = sum(abs(record.profit) for record in recent) / len(recent)

    volatility = 0.0
    if average_magnitude > 0:
        expected = params.initial_stake * params.assumed_payout_ratio
        volatility = max(0.0, 1 - expected / average_magnitude)

    return MarketConditions(
        volatility=volatility,
        trend_strength=win_rate,
        win_rate=win_rate,
        sample_size=len(recent),
    )
