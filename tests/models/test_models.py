"""Tests for the engine value types."""

from dataclasses import FrozenInstanceError

import pytest

from digitbot.models.account import Account
from digitbot.models.aggregate import AuditEntry, RunningAggregate
from digitbot.models.enums import ContractType
from digitbot.models.session import SessionConfig


class TestRunningAggregate:
    """Test folding trades into the session aggregate."""

    def test_zero_state(self):
        aggregate = RunningAggregate()
        assert aggregate.runs == 0
        assert aggregate.win_rate == 0.0
        assert aggregate.audit_trail == ()

    def test_with_trade(self, make_result):
        """Test every counter after a win, a loss and a win."""
        aggregate = RunningAggregate()
        for profit, stake in ((0.95, 1.0), (-1.0, 1.0), (-2.0, 2.0), (3.0, 12.75)):
            aggregate = aggregate.with_trade(make_result(profit, stake=stake))

        assert aggregate.runs == 4
        assert aggregate.wins == 2
        assert aggregate.losses == 2
        assert aggregate.consecutive_losses == 0
        assert aggregate.total_stake == pytest.approx(16.75)
        assert aggregate.total_payout == pytest.approx(1.95 + 15.75)
        assert aggregate.total_profit == pytest.approx(0.95)
        assert aggregate.total_gained == pytest.approx(3.95)
        assert aggregate.total_lost == pytest.approx(3.0)
        assert aggregate.highest_stake_invested == 12.75
        assert aggregate.highest_profit_achieved == pytest.approx(0.95)
        assert aggregate.win_rate == 0.5

    def test_consecutive_losses(self, make_result):
        aggregate = RunningAggregate()
        for profit in (1.0, -1.0, -1.0):
            aggregate = aggregate.with_trade(make_result(profit))
        assert aggregate.consecutive_losses == 2

    def test_cumulative_profit_is_sum(self, make_result):
        """Test total profit equals the sum of the signed profits."""
        profits = [0.09, -1.0, 11.5, -12.75, 0.35]
        aggregate = RunningAggregate()
        for profit in profits:
            aggregate = aggregate.with_trade(make_result(profit))

        assert aggregate.total_profit == sum(profits)
        assert [entry.profit for entry in aggregate.audit_trail] == profits

    def test_audit_keys(self, make_result):
        aggregate = RunningAggregate()
        for _ in range(3):
            aggregate = aggregate.with_trade(make_result(1.0))

        assert [entry.key for entry in aggregate.audit_trail] == ["R001", "R002", "R003"]
        assert AuditEntry(12, 1.0, 1.0).key == "R0012"

    def test_audit_history_shared_between_aggregates(self, make_result):
        """Test folding a trade leaves earlier aggregates' trails untouched."""
        first = RunningAggregate().with_trade(make_result(1.0))
        second = first.with_trade(make_result(-1.0))
        branch = first.with_trade(make_result(2.0))

        assert [entry.profit for entry in first.audit_trail] == [1.0]
        assert [entry.profit for entry in second.audit_trail] == [1.0, -1.0]
        assert [entry.profit for entry in branch.audit_trail] == [1.0, 2.0]

    def test_recent_audit_entries(self, make_result):
        aggregate = RunningAggregate()
        for run in range(1, 5001):
            aggregate = aggregate.with_trade(make_result(float(run)))

        assert [entry.key for entry in aggregate.recent_audit_entries(2)] == ["R004999", "R005000"]
        assert len(aggregate.audit_trail) == 5000
        assert aggregate.audit_trail[0].run == 1
        assert aggregate.to_dict()["runs"] == 5000
        assert "_last_audit" not in aggregate.to_dict()

    def test_immutable(self):
        with pytest.raises(FrozenInstanceError):
            RunningAggregate().runs = 1  # type: ignore[misc]


class TestTradeResult:
    """Test settlement helpers."""

    def test_signed_profit(self, make_result):
        assert make_result(0.95).signed_profit == 0.95
        assert make_result(-1.0).signed_profit == -1.0

    def test_to_dict(self, make_result):
        data = make_result(-1.0, barrier=4).to_dict()
        assert data["signed_profit"] == -1.0
        assert data["purchase_time"] == "2024-03-04T12:00:00+00:00"
        assert data["barrier"] == 4


class TestSessionConfig:
    """Test building session settings from raw mappings."""

    def test_from_mapping(self, session_mapping):
        raw = {**session_mapping, "contract_type": " digitdiff ", "base_stake": "2.5",
               "contract_duration_unit": "T", "max_consecutive_losses": "3"}
        config = SessionConfig.from_mapping(raw, min_stake=0.5, max_stake=100.0)

        assert config.contract_type == "DIGITDIFF"
        assert config.base_stake == 2.5
        assert config.contract_duration_unit == "t"
        assert config.session_duration_seconds == 3600.0
        assert config.telemetry_interval_seconds == 300.0
        assert config.min_stake == 0.5
        assert config.max_stake == 100.0
        assert config.max_consecutive_losses == 3
        assert config.max_recovery_attempts == 2

    def test_optional_limits_default(self, session_mapping):
        config = SessionConfig.from_mapping(session_mapping)
        assert config.max_consecutive_losses is None
        assert config.min_stake == 0.35
        assert config.max_stake == 2000.0

    def test_trading_config_shortcuts(self, trading_config):
        assert trading_config.contract_type == "DIGITDIFF"
        assert trading_config.base_stake == 1.0


class TestAccountAndEnums:
    """Test small value types."""

    def test_with_balance(self):
        account = Account(login_id="VRTC1", currency="USD", balance=10.0)
        updated = account.with_balance(12.5)
        assert updated.balance == 12.5
        assert account.balance == 10.0

    def test_barrier_types(self):
        assert ContractType.DIGITDIFF.uses_barrier is True
        assert ContractType.DIGITOVER.uses_barrier is True
        assert ContractType.DIGITEVEN.uses_barrier is False
        assert ContractType.CALLE.uses_barrier is False
