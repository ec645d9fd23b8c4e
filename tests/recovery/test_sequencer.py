"""Tests for the 1-3-2-6 recovery sequencer."""

import math
import random
from datetime import timedelta

import pytest

from digitbot.recovery import (
    SEQUENCE_VARIANTS,
    RecoveryMode,
    RecoveryParams,
    RecoverySequencer,
    SequencerState,
)


def make_sequencer(clock, **overrides):
    params = dict(initial_stake=1.0, profit_threshold=100.0, loss_threshold=50.0)
    params.update(overrides)
    return RecoverySequencer(RecoveryParams(**params), clock=clock, rng=random.Random(1))


class TestProgression:
    """Test the win path through a sequence."""

    def test_initial_state(self, clock):
        """Test a fresh sequencer starts at position 0 with the base stake."""
        sequencer = make_sequencer(clock)

        assert sequencer.state.sequence == (1, 3, 2, 6)
        assert sequencer.state.position == 0
        assert sequencer.state.current_stake == 1.0
        assert sequencer.in_recovery is False

    def test_first_decision_trades_base_stake(self, clock):
        """Test the first decision trades the base stake with a digit prediction."""
        decision = make_sequencer(clock).prepare_for_next_trade()

        assert decision.should_trade is True
        assert decision.amount == 1.0
        assert 0 <= decision.prediction <= 9
        assert decision.contract_type == "DIGITDIFF"

    def test_stake_follows_sequence_on_wins(self, clock):
        """Test stake at position p equals base stake times the multiplier."""
        sequencer = make_sequencer(clock, initial_stake=2.0)

        for expected_position in (1, 2, 3):
            sequencer.update_state(True, 0.2)
            state = sequencer.state
            assert state.position == expected_position
            assert state.current_stake == 2.0 * state.sequence[expected_position]

    def test_completed_sequence_resets(self, clock):
        """Test a completed sequence resets position and sequence profit."""
        sequencer = make_sequencer(clock)

        for _ in range(4):
            sequencer.update_state(True, 0.1)

        state = sequencer.state
        assert state.position == 0
        assert state.sequence_profit == 0.0
        assert state.current_stake == 1.0
        assert sequencer.get_statistics().sequences_completed == 1
        assert sequencer.sequence_history[-1].completed is True
        assert math.isclose(state.total_profit, 0.4)

    def test_first_loss_reduces_stake(self, clock):
        """Test a single loss cuts the stake by 30% without moving position."""
        sequencer = make_sequencer(clock)
        sequencer.update_state(True, 0.1)
        assert sequencer.state.current_stake == 3.0

        sequencer.update_state(False, -3.0)

        assert sequencer.state.position == 1
        assert sequencer.state.current_stake == 2.1
        assert sequencer.state.consecutive_losses == 1

    def test_reduced_stake_never_below_base(self, clock):
        """Test the first-loss reduction is floored at the base stake."""
        sequencer = make_sequencer(clock)
        sequencer.update_state(False, -1.0)
        assert sequencer.state.current_stake == 1.0

    def test_position_stays_in_range(self, clock):
        """Test position and sequence invariants over a long random run."""
        sequencer = make_sequencer(clock, max_recovery_attempts=3)
        outcomes = random.Random(7)

        for _ in range(300):
            stake = sequencer.state.current_stake
            is_win = outcomes.random() < 0.6
            sequencer.update_state(is_win, round(stake * 0.1, 2) if is_win else -stake)
            state = sequencer.state
            assert 0 <= state.position <= 3
            assert len(state.sequence) == 4
            assert state.sequence[0] == 1


class TestRecovery:
    """Test recovery mode transitions."""

    def test_two_losses_enter_recovery_with_neutral_sequence(self, clock):
        """Test two consecutive losses switch to recovery and the neutral variant."""
        sequencer = make_sequencer(clock, recovery_mode="conservative")
        assert sequencer.state.sequence == (1, 2, 3, 4)

        sequencer.update_state(False, -1.0)
        assert sequencer.in_recovery is False
        sequencer.update_state(False, -1.0)

        assert sequencer.in_recovery is True
        assert sequencer.state.sequence == SEQUENCE_VARIANTS[RecoveryMode.NEUTRAL]
        assert sequencer.state.position == 0
        assert sequencer.sequence_history[-1].completed is False

    def test_recovery_stake_is_capped(self, clock):
        """Test the recovery stake never exceeds a quarter of the loss threshold."""
        sequencer = make_sequencer(clock, recovery_mode="conservative")
        sequencer.update_state(False, -1.0)
        sequencer.update_state(False, -1.0)

        # 2 x 10.75 x 1.2 = 25.8, capped at 50 x 0.25
        assert sequencer.state.current_stake == 12.5

    def test_recovery_stake_from_drawdown(self, clock):
        """Test the neutral multiplier sizes the stake from the drawdown."""
        sequencer = make_sequencer(clock)
        sequencer.update_state(False, -1.0)
        sequencer.update_state(False, -1.0)

        # 2 x 5.0 x 1.2
        assert sequencer.state.current_stake == 12.0

    def test_win_exits_recovery(self, clock):
        """Test a win that brings the drawdown under the exit floor leaves recovery."""
        sequencer = make_sequencer(clock)
        sequencer.update_state(False, -1.0)
        sequencer.update_state(False, -1.0)

        sequencer.update_state(True, 1.2)

        assert sequencer.in_recovery is False
        assert sequencer.state.recovery_attempts == 0
        assert sequencer.state.position == 0
        assert sequencer.get_statistics().successful_recoveries == 1

    def test_exhausted_attempts_hard_reset_keeps_daily_counters(self, clock):
        """Test exceeding max recovery attempts resets progression only."""
        sequencer = make_sequencer(clock, max_recovery_attempts=2)

        for _ in range(4):
            sequencer.update_state(False, -1.0)
        assert sequencer.in_recovery is True
        assert sequencer.state.recovery_attempts == 2

        sequencer.update_state(False, -1.0)

        state = sequencer.state
        assert state.in_recovery is False
        assert state.position == 0
        assert state.consecutive_losses == 0
        assert state.trades_today == 5
        assert state.daily_profit_loss == -5.0

    def test_protection_disabled_resets_instead(self, clock):
        """Test that without sequence protection two losses only reset the sequence."""
        sequencer = make_sequencer(clock, enable_sequence_protection=False)
        sequencer.update_state(False, -1.0)
        sequencer.update_state(False, -1.0)

        assert sequencer.in_recovery is False
        assert sequencer.state.position == 0


class TestGating:
    """Test prepare_for_next_trade refusals."""

    def test_consecutive_loss_limit(self, clock):
        """Test consecutive losses equal to max recovery attempts refuse trading."""
        sequencer = make_sequencer(clock, max_recovery_attempts=2)
        sequencer.update_state(False, -1.0)
        sequencer.update_state(False, -1.0)

        decision = sequencer.prepare_for_next_trade()

        assert decision.should_trade is False
        assert decision.reason == "Max consecutive losses reached (2)"

    def test_paused(self, clock):
        """Test a paused sequencer refuses with the pause reason attached."""
        sequencer = make_sequencer(clock)
        sequencer.pause("maintenance")

        decision = sequencer.prepare_for_next_trade()

        assert decision.should_trade is False
        assert decision.reason == "Strategy is paused"
        assert decision.metadata["pause_reason"] == "maintenance"

        sequencer.resume()
        assert sequencer.prepare_for_next_trade().should_trade is True

    def test_profit_lock_on_half_target(self, clock):
        """Test reaching half the profit target locks in profits."""
        sequencer = make_sequencer(clock, profit_threshold=10.0)
        sequencer.update_state(True, 5.0)

        decision = sequencer.prepare_for_next_trade()

        assert decision.should_trade is False
        assert decision.reason == "Profit lock activated"
        assert sequencer.state.position == 0

    def test_profit_lock_on_sequence_profit(self, clock):
        """Test a sequence profit of ten base stakes locks in profits."""
        sequencer = make_sequencer(clock, profit_threshold=1000.0)
        sequencer.update_state(True, 10.0)

        assert sequencer.should_lock_in_profits() is True

    def test_daily_trade_limit(self, clock):
        """Test the daily trade cap refuses further trades."""
        sequencer = make_sequencer(clock, max_daily_trades=3)
        for _ in range(3):
            sequencer.update_state(True, 0.1)

        decision = sequencer.prepare_for_next_trade()

        assert decision.should_trade is False
        assert decision.reason == "Daily trade limit reached"

    def test_day_change_resets_daily_counters(self, clock):
        """Test a new trading day clears the daily trade count."""
        sequencer = make_sequencer(clock, max_daily_trades=3)
        for _ in range(3):
            sequencer.update_state(True, 0.1)

        clock.advance(timedelta(days=1).total_seconds())
        decision = sequencer.prepare_for_next_trade()

        assert decision.should_trade is True
        assert sequencer.state.trades_today == 0

    def test_loss_limit(self, clock):
        """Test the loss threshold refuses trading."""
        sequencer = make_sequencer(clock, loss_threshold=5.0)
        sequencer.update_state(False, -5.0)

        decision = sequencer.prepare_for_next_trade()

        assert decision.should_trade is False
        assert decision.reason.startswith("Loss limit reached")

    def test_full_target_refuses(self, clock):
        """Test reaching the full profit target refuses trading."""
        sequencer = make_sequencer(clock, profit_threshold=10.0, profit_lock_ratio=1.0,
                                   sequence_profit_lock_multiple=100.0)
        sequencer.update_state(True, 10.0)

        decision = sequencer.prepare_for_next_trade()

        assert decision.should_trade is False
        assert decision.reason == "Profit lock activated"

    def test_failed_sequences_trip_safety_check(self, clock):
        """Test three failed sequences in a day fail the safety check."""
        sequencer = make_sequencer(clock, enable_sequence_protection=False, max_recovery_attempts=10)
        for _ in range(4):
            sequencer.update_state(False, -1.0)

        assert sum(1 for record in sequencer.sequence_history if not record.completed) == 3
        decision = sequencer.prepare_for_next_trade()

        assert decision.should_trade is False
        assert decision.reason == "Sequence safety check failed"

    def test_no_recent_successful_sequence(self, clock):
        """Test five failed sequences in a row refuse trading."""
        sequencer = make_sequencer(clock, enable_sequence_protection=False,
                                   max_recovery_attempts=100, max_failed_sequences=100)
        for _ in range(6):
            sequencer.update_state(False, -1.0)

        decision = sequencer.prepare_for_next_trade()

        assert decision.should_trade is False
        assert decision.reason == "No successful sequences in last 5 attempts"


class TestAnomalies:
    """Test defensive pausing on bad numbers."""

    @pytest.mark.parametrize("profit", [math.nan, math.inf, -math.inf])
    def test_non_finite_profit_pauses(self, clock, profit):
        """Test non-finite profits pause without touching state."""
        sequencer = make_sequencer(clock)

        sequencer.update_state(False, profit)

        assert sequencer.is_active is False
        assert sequencer.state.trades_today == 0
        assert sequencer.prepare_for_next_trade().reason == "Strategy is paused"

    def test_abnormal_profit_pauses_but_records(self, clock):
        """Test an implausible loss pauses the sequencer and is still recorded."""
        sequencer = make_sequencer(clock, loss_threshold=10.0)

        sequencer.update_state(False, -60.0)

        assert sequencer.is_active is False
        assert sequencer.pause_reason == "Abnormal profit magnitude"
        assert sequencer.state.trades_today == 1
        assert sequencer.state.total_profit == -60.0

    def test_oversized_profit_is_capped(self, clock):
        """Test profits above 1.5x the target only count as the target."""
        sequencer = make_sequencer(clock, profit_threshold=10.0, loss_threshold=100.0)

        sequencer.update_state(True, 20.0)

        assert sequencer.state.total_profit == 10.0


class TestControls:
    """Test resets and sequence helpers."""

    def test_select_sequence(self, clock):
        """Test sequence selection rules."""
        sequencer = make_sequencer(clock, recovery_mode="aggressive")

        assert sequencer.select_sequence(True, 0) == (1, 3, 2, 6)
        assert sequencer.select_sequence(False, 2) == (1, 2, 3, 4)
        assert sequencer.select_sequence(False, 0) == (1, 3, 5, 7)

    @pytest.mark.parametrize("sequence,valid", [
        ((1, 3, 2, 6), True),
        ((1, 2, 3, 4), True),
        ((2, 3, 2, 6), False),
        ((1, 3, 2), False),
        ((1, 3.0, 2, 6), False),
        ((1, 0, 2, 6), False),
    ])
    def test_validate_sequence(self, clock, sequence, valid):
        """Test sequence validation."""
        assert make_sequencer(clock).validate_sequence(sequence) is valid

    def test_state_rejects_bad_position(self, fixed_now):
        """Test state construction enforces the position range."""
        with pytest.raises(ValueError):
            SequencerState(sequence=(1, 3, 2, 6), position=4, current_stake=1.0,
                           trading_day=fixed_now.date())

    def test_state_rejects_bad_sequence(self, fixed_now):
        """Test state construction enforces the sequence shape."""
        with pytest.raises(ValueError):
            SequencerState(sequence=(0, 3, 2, 6), position=0, current_stake=1.0,
                           trading_day=fixed_now.date())

    def test_params_validation(self):
        """Test invalid tunables are rejected."""
        with pytest.raises(ValueError):
            RecoveryParams(min_win_rate=1.5)
        with pytest.raises(ValueError):
            RecoveryParams(initial_stake=0)
        with pytest.raises(ValueError):
            RecoveryParams(recovery_mode="reckless")

    def test_reset_strategy(self, clock):
        """Test a full reset clears history, statistics and pause."""
        sequencer = make_sequencer(clock)
        sequencer.update_state(False, -1.0)
        sequencer.pause("test")

        sequencer.reset_strategy()

        assert sequencer.is_active is True
        assert sequencer.trade_history == ()
        assert sequencer.get_statistics().total_losses == 0
        assert sequencer.state.trades_today == 0

    def test_current_state_snapshot(self, clock):
        """Test the telemetry snapshot carries activity flags."""
        snapshot = make_sequencer(clock).get_current_state()

        assert snapshot["sequence"] == [1, 3, 2, 6]
        assert snapshot["active"] is True
        assert snapshot["pause_reason"] is None

    def test_hard_reset(self, clock):
        """Test a hard reset drops progression but keeps today's counters."""
        sequencer = make_sequencer(clock)
        sequencer.update_state(False, -1.0)
        sequencer.update_state(False, -1.0)
        assert sequencer.in_recovery is True

        sequencer.hard_reset()

        assert sequencer.in_recovery is False
        assert sequencer.state.position == 0
        assert sequencer.state.trades_today == 2
        assert sequencer.state.daily_profit_loss == -2.0
        assert len(sequencer.trade_history) == 2
