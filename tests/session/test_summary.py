"""Tests for session summaries."""

from datetime import timedelta

import pytest

from digitbot.models.aggregate import RunningAggregate
from digitbot.session import build_trading_summary, calculate_total_loss
from digitbot.session.summary import build_audit_table, build_session_table


@pytest.fixture
def aggregate(make_result):
    aggregate = RunningAggregate()
    for profit, stake in ((0.95, 1.0), (-1.0, 1.0), (11.0, 12.75)):
        aggregate = aggregate.with_trade(make_result(profit, stake=stake))
    return aggregate


class TestSessionTable:
    """Test the statistics table."""

    def test_contains_statistics(self, aggregate, session_config, account, fixed_now):
        """Test every headline number is rendered in the session currency."""
        table = build_session_table(aggregate, session_config, account, fixed_now,
                                    fixed_now + timedelta(minutes=2, seconds=5))

        assert "VRTC0000001 (USD)" in table
        assert "00:02:05" in table
        assert "2 / 1" in table
        assert "66.7%" in table
        assert "USD 14.75" in table
        assert "USD 10.95" in table
        assert "USD 12.75" in table

    def test_without_account(self, session_config, fixed_now):
        """Test a missing account renders placeholders."""
        table = build_session_table(RunningAggregate(), session_config, None, None, fixed_now)

        assert "Account" in table
        assert "00:00:00" in table


class TestAuditTable:
    """Test the per-run audit table."""

    def test_keys_and_profits(self, aggregate):
        """Test one line per run with signed profits."""
        lines = build_audit_table(aggregate).splitlines()

        assert len(lines) == 3
        assert lines[0].startswith("R001")
        assert "profit +0.95" in lines[0]
        assert "profit -1.00" in lines[1]
        assert "stake 12.75" in lines[2]

    def test_limit_keeps_latest(self, aggregate):
        """Test a limit keeps the most recent runs."""
        lines = build_audit_table(aggregate, limit=1).splitlines()
        assert len(lines) == 1
        assert lines[0].startswith("R003")

    def test_empty(self):
        """Test an empty trail says so."""
        assert build_audit_table(RunningAggregate()) == "No trades"


def test_trading_summary_sections(aggregate, session_config, account, fixed_now):
    """Test the summary joins the title, statistics and recent runs."""
    summary = build_trading_summary(aggregate, session_config, account, fixed_now, fixed_now)

    assert summary.startswith("Trading summary")
    assert "Recent runs" in summary
    assert "R002" in summary


def test_total_loss(make_result):
    """Test only losing trades count towards the total loss."""
    trades = [make_result(2.0), make_result(-1.5), make_result(-0.5)]
    assert calculate_total_loss(trades) == 2.0
    assert calculate_total_loss([]) == 0
