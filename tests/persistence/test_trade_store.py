"""Tests for trade persistence."""

from datetime import timedelta

import pytest

from digitbot.errors import PersistenceError
from digitbot.persistence import InMemoryTradeStore, TradeStore


@pytest.fixture
def store(tmp_path):
    return TradeStore(str(tmp_path / "trades.db"))


class TestTradeStore:
    """Test the SQLite trade store."""

    def test_insert_and_get(self, store, make_result):
        """Test a stored trade round-trips its key fields."""
        trade_id = store.insert_trade(make_result(0.95, contract_id="C1"), "s-1")

        stored = store.get_trade(trade_id)

        assert stored.session_id == "s-1"
        assert stored.contract_id == "C1"
        assert stored.is_win is True
        assert stored.stake == 1.0
        assert stored.profit == 0.95
        assert stored.trade_data["signed_profit"] == 0.95
        assert stored.purchase_time == "2024-03-04T12:00:00+00:00"

    def test_missing_trade(self, store):
        assert store.get_trade(999) is None

    def test_duplicate_contract_replaced(self, store, make_result):
        """Test re-inserting the same contract keeps one row."""
        store.insert_trade(make_result(0.95, contract_id="C1"), "s-1")
        store.insert_trade(make_result(-1.0, contract_id="C1"), "s-1")

        trades = store.get_trades_by_session("s-1")

        assert len(trades) == 1
        assert trades[0].profit == -1.0

    def test_trades_by_session(self, store, make_result):
        """Test sessions are kept apart and ordered by insertion."""
        store.insert_trade(make_result(0.95, contract_id="C1"), "s-1")
        store.insert_trade(make_result(-1.0, contract_id="C2"), "s-1")
        store.insert_trade(make_result(0.95, contract_id="C1"), "s-2")

        trades = store.get_trades_by_session("s-1")

        assert [t.contract_id for t in trades] == ["C1", "C2"]
        assert store.get_trades_by_session("s-3") == []

    def test_time_range(self, store, make_result, fixed_now):
        """Test purchase-time range queries."""
        store.insert_trade(make_result(0.95, contract_id="C1"), "s-1")

        inside = store.get_trades_by_time_range(fixed_now - timedelta(minutes=1),
                                                fixed_now + timedelta(minutes=1))
        outside = store.get_trades_by_time_range(fixed_now + timedelta(minutes=1),
                                                 fixed_now + timedelta(minutes=2))

        assert len(inside) == 1
        assert outside == []

    def test_session_stats(self, store, make_result):
        """Test aggregate totals per session."""
        store.insert_trade(make_result(0.95, contract_id="C1"), "s-1")
        store.insert_trade(make_result(-1.0, contract_id="C2"), "s-1")
        store.insert_trade(make_result(1.9, stake=2.0, contract_id="C3"), "s-1")

        stats = store.get_session_stats("s-1")

        assert stats["runs"] == 3
        assert stats["wins"] == 2
        assert stats["losses"] == 1
        assert stats["total_stake"] == pytest.approx(4.0)
        assert stats["total_profit"] == pytest.approx(1.85)

    def test_empty_session_stats(self, store):
        stats = store.get_session_stats("none")
        assert stats == {"runs": 0, "wins": 0, "losses": 0, "total_stake": 0, "total_profit": 0}

    def test_unwritable_path_raises(self, tmp_path):
        """Test database errors surface as PersistenceError."""
        with pytest.raises(PersistenceError):
            TradeStore(str(tmp_path / "missing" / "trades.db"))


class TestInMemoryTradeStore:
    """Test the list-backed store."""

    def test_insert_and_filter(self, make_result):
        store = InMemoryTradeStore()

        assert store.insert_trade(make_result(1.0), "s-1") == 1
        assert store.insert_trade(make_result(-1.0), "s-2") == 2

        assert len(store.get_trades_by_session("s-1")) == 1
        assert store.get_trades_by_session("s-2")[0].signed_profit == -1.0
