"""
Recovery sequencer implementing the 1-3-2-6 stake progression.

The sequencer keeps a four-step multiplier sequence. Wins walk forward
through it; a completed sequence banks its profit and starts over. Two
consecutive losses switch to recovery mode, where the stake is sized from
the current drawdown until the drawdown is mostly recovered.

Every transition builds a new SequencerState and swaps it in, so callers
reading state never observe a half-applied update.
"""

import random
from datetime import datetime
from typing import Any, Callable, Optional

import structlog

from ..logging import get_strategy_logger, log_trade_decision
from ..utils.numbers import clamp, is_finite_number, round_money
from ..utils.time import utc_now
from .market import MarketConditions, analyze_market_conditions
from .models import (
    SEQUENCE_VARIANTS,
    RecoveryMode,
    RecoveryParams,
    SequenceRecord,
    SequencerState,
    SequencerStatistics,
    TradeDecision,
    TradeRecord,
    validate_sequence,
)

logger = structlog.get_logger(__name__)

TRADE_HISTORY_LIMIT = 100
TRADE_HISTORY_KEEP = 50
SESSION_MONITOR_MIN_TRADES = 30


class RecoverySequencer:
    """Stateful 1-3-2-6 stake sequencer with recovery mode."""

    def __init__(
        self,
        params: Optional[RecoveryParams] = None,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
    ):
        self.params = params or RecoveryParams()
        self._clock = clock
        self._rng = rng or random.Random()
        self._audit = get_strategy_logger(__name__, "DIGITDIFF1326")

        self._active = True
        self._pause_reason: Optional[str] = None
        self._stats = SequencerStatistics()
        self._trade_history: list[TradeRecord] = []
        self._sequence_history: list[SequenceRecord] = []
        self._state = self._initial_state()

    # ---------------------------------------------------------------- views

    @property
    def state(self) -> SequencerState:
        return self._state

    @property
    def in_recovery(self) -> bool:
        return self._state.in_recovery

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def pause_reason(self) -> Optional[str]:
        return self._pause_reason

    @property
    def trade_history(self) -> tuple[TradeRecord, ...]:
        return tuple(self._trade_history)

    @property
    def sequence_history(self) -> tuple[SequenceRecord, ...]:
        return tuple(self._sequence_history)

    def get_statistics(self) -> SequencerStatistics:
        return self._stats

    def get_current_state(self) -> dict[str, Any]:
        """Snapshot of the state plus activity flags, for telemetry."""
        snapshot = self._state.to_dict()
        snapshot["active"] = self._active
        snapshot["pause_reason"] = self._pause_reason
        return snapshot

    def validate_sequence(self, sequence: Any) -> bool:
        return validate_sequence(sequence)

    # ------------------------------------------------------- sequence choice

    def select_sequence(self, in_recovery: bool, consecutive_losses: int) -> tuple[int, ...]:
        """
        Choose the multiplier sequence for the next cycle.

        Neutral while recovering, conservative after repeated losses or in
        a volatile market, otherwise the configured mode.
        """
        if in_recovery:
            return SEQUENCE_VARIANTS[RecoveryMode.NEUTRAL]

        if consecutive_losses >= 2:
            return SEQUENCE_VARIANTS[RecoveryMode.CONSERVATIVE]

        if self.analyze_market_conditions().volatility > self.params.max_volatility:
            return SEQUENCE_VARIANTS[RecoveryMode.CONSERVATIVE]

        return SEQUENCE_VARIANTS[self.params.recovery_mode]

    def analyze_market_conditions(self) -> MarketConditions:
        return analyze_market_conditions(self._trade_history, self.params)

    # -------------------------------------------------------------- gating

    def should_lock_in_profits(self) -> bool:
        """True once enough profit is banked that the session should stop."""
        state = self._state
        params = self.params

        if state.total_profit >= params.profit_threshold * params.profit_lock_ratio:
            return True

        if state.sequence_profit >= params.initial_stake * params.sequence_profit_lock_multiple:
            return True

        trend = self.analyze_market_conditions().trend_strength
        return trend < params.min_trend_strength and state.sequence_profit > 0

    def prepare_for_next_trade(self) -> TradeDecision:
        """
        Decide whether the next trade may be placed.

        Refusals are returned as a decision carrying the reason; this method
        does not raise for trading conditions.
        """
        if not self._active:
            return self._refuse("Strategy is paused", pause_reason=self._pause_reason)

        if self.should_lock_in_profits():
            self._state = self._reset_sequence(self._state)
            return self._refuse("Profit lock activated", total_profit=self._state.total_profit)

        self._check_day_change()

        refusal = self._evaluate_trading_conditions()
        if refusal is not None:
            return self._refuse(refusal)

        state = self._state
        market = self.analyze_market_conditions()
        decision = TradeDecision(
            should_trade=True,
            reason="Conditions met",
            amount=round_money(state.current_stake),
            prediction=self._rng.randint(0, 9),
            contract_type="DIGITDIFF",
            duration=1,
            duration_unit="t",
            metadata={
                "sequence": list(state.sequence),
                "position": state.position,
                "in_recovery": state.in_recovery,
                "consecutive_losses": state.consecutive_losses,
                "total_profit": state.total_profit,
                "volatility": market.volatility,
                "win_rate": market.win_rate,
            },
        )
        log_trade_decision(self._audit, True, decision.reason, decision.amount,
                           context={"position": state.position, "in_recovery": state.in_recovery})
        return decision

    def _refuse(self, reason: str, **metadata: Any) -> TradeDecision:
        log_trade_decision(self._audit, False, reason, context=metadata or None)
        return TradeDecision.refuse(reason, **metadata)

    def _evaluate_trading_conditions(self) -> Optional[str]:
        state = self._state
        params = self.params

        if state.trades_today >= params.max_daily_trades:
            return "Daily trade limit reached"

        if state.total_profit >= params.profit_threshold:
            return f"Profit target reached ({round_money(state.total_profit)})"

        if state.total_profit <= -params.loss_threshold:
            return f"Loss limit reached ({round_money(state.total_profit)})"

        if state.consecutive_losses >= params.max_recovery_attempts:
            return f"Max consecutive losses reached ({state.consecutive_losses})"

        if not self._sequence_is_safe():
            return "Sequence safety check failed"

        lookback = self._sequence_history[-params.sequence_lookback:]
        if len(lookback) >= params.sequence_lookback and not any(record.completed for record in lookback):
            return f"No successful sequences in last {params.sequence_lookback} attempts"

        return None

    def _sequence_is_safe(self) -> bool:
        state = self._state
        params = self.params

        if state.in_recovery and state.total_profit < -(params.loss_threshold * 0.5):
            return False

        today = state.trading_day
        failed_today = sum(
            1 for record in self._sequence_history
            if not record.completed and record.timestamp.date() == today
        )
        return failed_today < params.max_failed_sequences

    def _check_day_change(self) -> None:
        today = self._clock().date()
        if today != self._state.trading_day:
            logger.info("Trading day rolled over", previous_day=str(self._state.trading_day),
                        trades_yesterday=self._state.trades_today)
            self._state = self._state.update(
                trading_day=today,
                trades_today=0,
                daily_profit_loss=0.0,
            )

    # --------------------------------------------------------- transitions

    def update_state(self, is_win: bool, profit: float) -> None:
        """
        Apply one settled trade.

        Non-finite profits pause the sequencer and are otherwise ignored.
        Implausibly large profits pause it but are still recorded.
        """
        if not is_finite_number(profit):
            logger.error("Non-finite profit reported, pausing", profit=repr(profit))
            self.pause("Non-finite profit reported")
            return

        params = self.params
        if abs(profit) > params.abnormal_profit_multiple * params.loss_threshold:
            logger.error("Abnormal profit magnitude, pausing", profit=profit,
                         loss_threshold=params.loss_threshold)
            self.pause("Abnormal profit magnitude")

        previous = self._state
        state = previous.update(
            trades_today=previous.trades_today + 1,
            daily_profit_loss=previous.daily_profit_loss + profit,
            total_profit=previous.total_profit + self._safe_profit(profit),
            sequence_profit=previous.sequence_profit + profit,
            last_trade_at=self._clock(),
        )

        if is_win:
            state = self._apply_win(state)
        else:
            state = self._apply_loss(state)

        self._state = state
        self._update_statistics(is_win, state)
        self._record_trade(is_win, profit, previous)
        self._monitor_session()

        logger.debug("Sequencer updated", is_win=is_win, profit=profit, **state.to_dict())

    def _safe_profit(self, profit: float) -> float:
        cap = self.params.profit_threshold * 1.5
        if profit > cap:
            logger.warning("Capping oversized profit", profit=profit, capped_to=self.params.profit_threshold)
            return self.params.profit_threshold
        return profit

    def _apply_win(self, state: SequencerState) -> SequencerState:
        state = state.update(
            consecutive_wins=state.consecutive_wins + 1,
            consecutive_losses=0,
        )

        if state.in_recovery:
            exit_floor = -(self.params.loss_threshold * self.params.recovery_exit_ratio)
            if state.total_profit >= 0 or state.total_profit >= exit_floor:
                self._stats = self._stats.update(
                    successful_recoveries=self._stats.successful_recoveries + 1
                )
                return self._exit_recovery(state)
            return state.update(current_stake=self._recovery_stake(state))

        position = state.position + 1
        if position >= len(state.sequence):
            return self._complete_sequence(state)

        return state.update(
            position=position,
            current_stake=round_money(self.params.initial_stake * state.sequence[position]),
        )

    def _apply_loss(self, state: SequencerState) -> SequencerState:
        state = state.update(
            consecutive_losses=state.consecutive_losses + 1,
            consecutive_wins=0,
        )

        if state.in_recovery:
            attempts = state.recovery_attempts + 1
            self._stats = self._stats.update(
                total_recovery_attempts=self._stats.total_recovery_attempts + 1
            )
            if attempts > self.params.max_recovery_attempts:
                logger.warning("Recovery attempts exhausted, hard reset",
                               recovery_attempts=attempts,
                               max_recovery_attempts=self.params.max_recovery_attempts)
                return self._fresh_state(keep_day_from=state)
            state = state.update(recovery_attempts=attempts)
            return state.update(current_stake=self._recovery_stake(state))

        if state.consecutive_losses == 1:
            reduced = round_money(state.current_stake * (1 - self.params.first_loss_reduction))
            return state.update(current_stake=max(self.params.initial_stake, reduced))

        self._record_sequence(state, completed=False)
        if self.params.enable_sequence_protection:
            return self._enter_recovery(state)
        return self._reset_sequence(state)

    def _complete_sequence(self, state: SequencerState) -> SequencerState:
        self._stats = self._stats.update(
            sequences_completed=self._stats.sequences_completed + 1,
            best_sequence_profit=max(self._stats.best_sequence_profit, state.sequence_profit),
        )
        self._record_sequence(state, completed=True)
        logger.info("Sequence completed", sequence=list(state.sequence),
                    sequence_profit=state.sequence_profit)
        return self._reset_sequence(state)

    def _reset_sequence(self, state: SequencerState) -> SequencerState:
        sequence = self.select_sequence(state.in_recovery, state.consecutive_losses)
        return state.update(
            sequence=sequence,
            position=0,
            current_stake=round_money(self.params.initial_stake * sequence[0]),
            sequence_profit=0.0,
        )

    def _enter_recovery(self, state: SequencerState) -> SequencerState:
        state = state.update(in_recovery=True)
        state = state.update(
            sequence=self.select_sequence(True, state.consecutive_losses),
            position=0,
            sequence_profit=0.0,
            current_stake=self._recovery_stake(state),
        )
        logger.warning("Entering recovery mode", sequence=list(state.sequence),
                       total_profit=state.total_profit, stake=state.current_stake)
        return state

    def _exit_recovery(self, state: SequencerState) -> SequencerState:
        state = state.update(in_recovery=False, recovery_attempts=0)
        logger.info("Exited recovery mode", total_profit=state.total_profit)
        return self._reset_sequence(state)

    def _recovery_stake(self, state: SequencerState) -> float:
        """Stake sized from the drawdown, bounded by base stake and loss cap."""
        params = self.params
        raw = abs(state.total_profit) * params.recovery_multiplier * (1 + 0.1 * state.consecutive_losses)
        ceiling = params.loss_threshold * params.recovery_stake_cap_ratio
        return round_money(clamp(raw, params.initial_stake, ceiling))

    def _record_sequence(self, state: SequencerState, completed: bool) -> None:
        self._sequence_history.append(SequenceRecord(
            sequence=state.sequence,
            completed=completed,
            profit=state.sequence_profit,
            timestamp=self._clock(),
        ))

    def _record_trade(self, is_win: bool, profit: float, before: SequencerState) -> None:
        self._trade_history.append(TradeRecord(
            is_win=is_win,
            profit=profit,
            stake=before.current_stake,
            position=before.position,
            in_recovery=before.in_recovery,
            recovery_attempt=before.recovery_attempts,
            timestamp=self._clock(),
        ))
        if len(self._trade_history) > TRADE_HISTORY_LIMIT:
            self._trade_history = self._trade_history[-TRADE_HISTORY_KEEP:]

    def _update_statistics(self, is_win: bool, state: SequencerState) -> None:
        stats = self._stats
        if is_win:
            stats = stats.update(
                total_wins=stats.total_wins + 1,
                max_win_streak=max(stats.max_win_streak, state.consecutive_wins),
            )
        else:
            stats = stats.update(
                total_losses=stats.total_losses + 1,
                max_loss_streak=max(stats.max_loss_streak, state.consecutive_losses),
                worst_sequence_loss=min(stats.worst_sequence_loss, state.sequence_profit),
            )
        self._stats = stats

    def _monitor_session(self) -> None:
        state = self._state
        if (state.trades_today > SESSION_MONITOR_MIN_TRADES
                and state.daily_profit_loss < -(self.params.loss_threshold * 0.5)):
            logger.warning("Stopping after significant daily losses",
                           trades_today=state.trades_today,
                           daily_profit_loss=state.daily_profit_loss)
            self.pause("Significant daily losses")

    # ------------------------------------------------------------ controls

    def _initial_state(self) -> SequencerState:
        sequence = SEQUENCE_VARIANTS[self.params.recovery_mode]
        return SequencerState(
            sequence=sequence,
            position=0,
            current_stake=round_money(self.params.initial_stake * sequence[0]),
            trading_day=self._clock().date(),
        )

    def _fresh_state(self, keep_day_from: Optional[SequencerState] = None) -> SequencerState:
        state = self._initial_state()
        if keep_day_from is not None:
            state = state.update(
                trading_day=keep_day_from.trading_day,
                trades_today=keep_day_from.trades_today,
                daily_profit_loss=keep_day_from.daily_profit_loss,
                last_trade_at=keep_day_from.last_trade_at,
            )
        return state

    def hard_reset(self) -> None:
        """Discard progression and recovery state; daily counters survive."""
        self._state = self._fresh_state(keep_day_from=self._state)
        logger.warning("Sequencer hard reset")

    def reset_strategy(self) -> None:
        """Return to a brand-new sequencer, statistics and history included."""
        self._state = self._initial_state()
        self._stats = SequencerStatistics()
        self._trade_history = []
        self._sequence_history = []
        self._active = True
        self._pause_reason = None
        logger.info("Sequencer reset")

    def pause(self, reason: str = "Paused") -> None:
        if self._active:
            logger.warning("Sequencer paused", reason=reason)
        self._active = False
        self._pause_reason = reason

    def resume(self) -> None:
        self._active = True
        self._pause_reason = None
        logger.info("Sequencer resumed")
