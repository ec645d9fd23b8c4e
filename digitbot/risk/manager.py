"""
Volatility-aware risk manager.

Tracks outstanding losses, sizes the next stake to recover them, and trips
circuit breakers on loss streaks, daily/absolute loss limits and bursts of
rapid losses.
"""

import random
from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog

from ..config.defaults import CircuitBreakerDefaults, RapidLossDefaults, StrategyDefaults
from ..errors import RewardStructureError
from ..models.account import Account
from ..models.enums import ContractType, SafetyMode
from ..models.session import SessionConfig
from ..models.trade import ContractParams, TradeResult
from ..rewards import RewardCalculator
from ..utils.numbers import clamp, round_money
from ..utils.time import utc_now
from .models import BalanceValidation, CircuitBreakerState, RapidLossState

logger = structlog.get_logger(__name__)

CONSECUTIVE_LOSS_REASON = "max_consecutive_losses"


class VolatilityRiskManager:
    """Default risk manager used by the strategy family."""

    def __init__(
        self,
        session: SessionConfig,
        contract_type: str,
        reward_key: str,
        reward_calculator: RewardCalculator,
        circuit_breaker: Optional[CircuitBreakerDefaults] = None,
        rapid_loss: Optional[RapidLossDefaults] = None,
        strategy: Optional[StrategyDefaults] = None,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
    ):
        self.session = session
        self.contract_type = contract_type
        self.reward_key = reward_key
        self.rewards = reward_calculator
        self.circuit_breaker = circuit_breaker or CircuitBreakerDefaults()
        self.rapid_loss = rapid_loss or RapidLossDefaults()
        self.strategy = strategy or StrategyDefaults()
        self._clock = clock
        self._rng = rng or random.Random()

        self._breaker_state = CircuitBreakerState()
        self._rapid_state = RapidLossState(
            current_cooldown_seconds=self.rapid_loss.initial_cooldown_seconds
        )

        self.consecutive_losses = 0
        self.winning_trades = 0
        self.losing_trades = 0
        self.total_profit = 0.0
        self.total_lost_amount = 0.0
        self.daily_loss_amount = 0.0
        self.highest_stake_invested = 0.0
        self.highest_profit_achieved = 0.0
        self.last_trade_won = True

    # ---------------------------------------------------------- parameters

    def get_next_trade_params(self, barrier: Optional[int] = None) -> ContractParams:
        """
        Contract parameters for the next trade.

        Without outstanding losses the base stake is used. Otherwise the stake
        is sized so that a win at the tier payout recovers the whole loss.
        """
        stake = self.session.base_stake
        if self.total_lost_amount > 0:
            stake = max(stake, self._recovery_stake())

        stake = round_money(clamp(stake, self.session.min_stake, self.session.max_stake))

        return ContractParams(
            amount=stake,
            contract_type=self.contract_type,
            currency=self.session.currency,
            duration=self.session.contract_duration_value,
            duration_unit=self.session.contract_duration_unit,
            symbol=self.session.market,
            barrier=self._barrier(barrier),
        )

    def _recovery_stake(self) -> float:
        try:
            payout = self.rewards.calculate_profit_percentage(
                self.reward_key,
                clamp(self.session.base_stake, self.session.min_stake, self.session.max_stake),
            )
        except RewardStructureError as e:
            logger.warning("No payout tier for recovery sizing", reward_key=self.reward_key, error=str(e))
            return self.session.base_stake
        return self.total_lost_amount * 100 / payout

    def _barrier(self, barrier: Optional[int]) -> Optional[int]:
        try:
            uses_barrier = ContractType(self.contract_type).uses_barrier
        except ValueError:
            uses_barrier = True
        if not uses_barrier:
            return None
        if barrier is None:
            return self._rng.randint(0, 9)
        return barrier

    # -------------------------------------------------------- bookkeeping

    def process_trade_result(self, result: TradeResult) -> None:
        """Fold a settled trade into loss tracking and breaker counters."""
        profit = result.signed_profit
        self.total_profit += profit
        self.highest_stake_invested = max(self.highest_stake_invested, result.buy_price)
        self.highest_profit_achieved = max(self.highest_profit_achieved, self.total_profit)
        self.last_trade_won = result.is_win

        if result.is_win:
            self.consecutive_losses = 0
            self.winning_trades += 1
            if self.total_lost_amount > 0:
                self.total_lost_amount = max(0.0, self.total_lost_amount - profit)
                if self.total_lost_amount == 0:
                    logger.info("Full recovery achieved", total_profit=self.total_profit)
                else:
                    logger.warning("Partial recovery", remaining=round_money(self.total_lost_amount),
                                   total_profit=round_money(self.total_profit))
        else:
            loss = abs(profit)
            self.consecutive_losses += 1
            self.losing_trades += 1
            self.total_lost_amount += loss
            self.daily_loss_amount += loss
            self._rapid_state = self._rapid_state.update(
                recent_losses=self._rapid_state.recent_losses + ((self._clock(), loss),)
            )
            logger.warning("Trade lost", loss=round_money(loss),
                           total_lost=round_money(self.total_lost_amount),
                           consecutive_losses=self.consecutive_losses)

    # ----------------------------------------------------- circuit breakers

    @property
    def max_consecutive_losses(self) -> int:
        """Session limit when the session sets one, else the breaker default."""
        if self.session.max_consecutive_losses is not None:
            return self.session.max_consecutive_losses
        return self.circuit_breaker.max_consecutive_losses

    def check_circuit_breakers(self, account: Optional[Account] = None) -> bool:
        """Trip safety mode when a loss limit is breached. True if tripped."""
        limits = self.circuit_breaker

        if self.total_profit <= -limits.max_absolute_loss:
            self.enter_safety_mode("max_absolute_loss", mode=SafetyMode.BLOCKED)
            return True

        if self.daily_loss_amount >= limits.max_daily_loss:
            self.enter_safety_mode("max_daily_loss", mode=SafetyMode.BLOCKED)
            return True

        if self.consecutive_losses >= self.max_consecutive_losses:
            self.enter_safety_mode(CONSECUTIVE_LOSS_REASON)
            return True

        if account is not None and account.balance > 0:
            if self.total_lost_amount >= account.balance * limits.max_balance_percentage_loss:
                self.enter_safety_mode("max_balance_percentage_loss")
                return True

        return False

    def check_rapid_losses(self) -> bool:
        """True while a burst of losses inside the window is cooling down."""
        now = self._clock()
        state = self._rapid_state

        if state.active and state.last_trigger_at is not None:
            if now < state.last_trigger_at + timedelta(seconds=state.current_cooldown_seconds):
                return True
            # Trigger count survives so repeated bursts escalate the cooldown
            state = state.update(active=False, recent_losses=())

        window_start = now - timedelta(seconds=self.rapid_loss.window_seconds)
        recent = tuple(entry for entry in state.recent_losses if entry[0] >= window_start)
        state = state.update(recent_losses=recent)

        if len(recent) < self.rapid_loss.threshold:
            self._rapid_state = state
            return False

        trigger_count = state.trigger_count + 1
        cooldown = min(
            self.rapid_loss.initial_cooldown_seconds * self.rapid_loss.cooldown_multiplier ** (trigger_count - 1),
            self.rapid_loss.max_cooldown_seconds,
        )
        self._rapid_state = state.update(
            trigger_count=trigger_count,
            last_trigger_at=now,
            current_cooldown_seconds=cooldown,
            active=True,
        )
        logger.warning("Rapid losses detected", losses=len(recent),
                       total_amount=round_money(sum(amount for _, amount in recent)),
                       cooldown_seconds=cooldown, trigger_count=trigger_count)
        self.enter_safety_mode("rapid_losses", cooldown_seconds=cooldown)
        return True

    def enter_safety_mode(
        self,
        reason: str,
        cooldown_seconds: Optional[float] = None,
        mode: SafetyMode = SafetyMode.SAFETY,
    ) -> None:
        now = self._clock()
        seconds = self.circuit_breaker.cooldown_seconds if cooldown_seconds is None else cooldown_seconds
        self._breaker_state = CircuitBreakerState(
            mode=mode,
            safety_mode_until=now + timedelta(seconds=seconds),
            reason=reason,
            triggered_at=now,
        )
        logger.warning("Entering safety mode", reason=reason, mode=mode.value,
                       cooldown_seconds=seconds)

    def reset_safety_mode(self) -> None:
        if self._breaker_state.reason == CONSECUTIVE_LOSS_REASON:
            self.consecutive_losses = 0
        if not self._breaker_state.is_normal:
            logger.info("Safety mode reset", previous_reason=self._breaker_state.reason)
        self._breaker_state = CircuitBreakerState()

    def get_circuit_breaker_state(self) -> CircuitBreakerState:
        return self._breaker_state

    # ------------------------------------------------------------- balance

    def validate_account_balance(self, amount: float, account: Optional[Account]) -> BalanceValidation:
        """Check that the account can carry a stake of the given amount."""
        if account is None:
            return BalanceValidation(is_valid=False, reasons=("could_not_fetch_balance",))

        balance = account.balance
        required_minimum = self.session.base_stake * self.strategy.minimum_balance_multiple
        reasons = []

        if amount > balance:
            reasons.append("insufficient_balance")
        if balance - amount < required_minimum:
            reasons.append("minimum_balance_violation")
        if amount > balance * self.circuit_breaker.max_balance_percentage_loss:
            reasons.append("max_risk_exceeded")

        return BalanceValidation(
            is_valid=not reasons,
            reasons=tuple(reasons),
            metrics={
                "balance": balance,
                "proposed_stake": amount,
                "risk_percentage": (amount / balance * 100) if balance > 0 else 100.0,
                "required_minimum": required_minimum,
                "available_after_trade": balance - amount,
            },
        )

    # ------------------------------------------------------------- getters

    def get_total_lost_amount(self) -> float:
        return self.total_lost_amount

    def get_total_profit(self) -> float:
        return self.total_profit

    def get_highest_stake_invested(self) -> float:
        return self.highest_stake_invested

    def get_highest_profit_achieved(self) -> float:
        return self.highest_profit_achieved
