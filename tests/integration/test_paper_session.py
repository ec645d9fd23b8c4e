"""
End-to-end sessions against the paper broker.

Runs the real controller, dispatcher, strategies and risk manager with a
seeded paper executor, so every trade is actually settled.
"""

import asyncio
import random

import pytest

from digitbot.config.loader import ConfigLoader
from digitbot.models.enums import NotificationAction, SessionState
from digitbot.paper import PaperBroker, PaperExecutor
from digitbot.persistence import InMemoryTradeStore, TradeStore
from digitbot.rewards import RewardCalculator
from digitbot.session import SessionController


class BalanceRecordingExecutor:
    """Records the balance a strategy trades on next to the broker balance."""

    def __init__(self, inner):
        self.inner = inner
        self.seen = []

    async def purchase_contract(self, params, config):
        broker_balance = self.inner.broker.accounts[config.account_token].balance
        self.seen.append((config.account.balance, broker_balance))
        return await self.inner.purchase_contract(params, config)


def run_session(session, sink, sleep, clock, storage, seed=7, start_balance=10000.0, wrap_executor=None):
    settings = ConfigLoader.create().load_settings()
    calculator = RewardCalculator(stake_limits=settings.stake_limits)
    broker = PaperBroker(start_balance=start_balance)
    executor = PaperExecutor(broker, reward_calculator=calculator, rng=random.Random(seed))
    if wrap_executor is not None:
        executor = wrap_executor(executor)

    controller = SessionController(
        connector=broker,
        account_provider=broker,
        executor=executor,
        messaging=sink,
        storage=storage,
        settings=settings,
        reward_calculator=calculator,
        sleep=sleep,
        clock=clock,
    )

    asyncio.run(asyncio.wait_for(
        controller.start_trading(session, account_token="paper-token", session_id="paper-1", session_seq=1),
        timeout=30,
    ))
    return controller, broker


@pytest.fixture
def paper_session(session_mapping):
    return {**session_mapping, "take_profit": 2.0, "stop_loss": 20.0}


class TestPaperSession:
    """Test complete sessions settle consistently."""

    @pytest.mark.parametrize("contract_type", ["DIGITDIFF", "DIGITEVEN", "DIGITOVER_4", "CALLE", "DIGITDIFF1326"])
    def test_session_runs_to_a_single_stop(self, paper_session, contract_type, recording_sink,
                                           recording_sleep, clock, tmp_path):
        """Test one start and one stop message, with storage matching the summary."""
        storage = TradeStore(str(tmp_path / "trades.db"))
        controller, broker = run_session({**paper_session, "contract_type": contract_type},
                                         recording_sink, recording_sleep, clock, storage)

        actions = recording_sink.actions()
        assert actions[0] == NotificationAction.SESSION_STARTED.value
        assert actions.count(NotificationAction.SESSION_STOPPED.value) == 1
        assert controller.state == SessionState.IDLE

        stopped = recording_sink.of(NotificationAction.SESSION_STOPPED.value)[0]
        stored = storage.get_trades_by_session("paper-1")
        assert stopped.meta["runs"] == len(stored)
        assert stopped.meta["total_profit"] == pytest.approx(sum(t.profit for t in stored))

        balance = broker.accounts["paper-token"].balance
        assert balance == pytest.approx(10000.0 + stopped.meta["total_profit"], abs=0.01 * max(1, len(stored)))

    def test_profit_or_loss_bound_respected(self, paper_session, recording_sink, recording_sleep, clock, tmp_path):
        """Test a session stopped by a threshold crossed it on the last trade only."""
        storage = TradeStore(str(tmp_path / "trades.db"))
        run_session(paper_session, recording_sink, recording_sleep, clock, storage)

        stopped = recording_sink.of(NotificationAction.SESSION_STOPPED.value)[0]
        profits = [t.profit for t in storage.get_trades_by_session("paper-1")]
        running = 0.0
        for profit in profits[:-1]:
            running += profit
            assert -20.0 < running < 2.0

        reason = stopped.meta["reason"]
        if reason.startswith("Take profit reached"):
            assert stopped.meta["total_profit"] >= 2.0
        elif reason.startswith("Stop loss triggered"):
            assert stopped.meta["total_profit"] <= -20.0

    def test_shipped_session_template(self, recording_sink, recording_sleep, clock):
        """Test the session block of engine.yaml validates and trades."""
        template = ConfigLoader.create().load_session_template()
        run_session(template, recording_sink, recording_sleep, clock, InMemoryTradeStore())

        assert NotificationAction.VALIDATION_ERROR.value not in recording_sink.actions()
        assert recording_sink.actions()[-1] == NotificationAction.SESSION_STOPPED.value

    def test_strategy_sees_live_balance(self, paper_session, recording_sink, recording_sleep, clock):
        """Test every purchase is checked against the balance left by the previous trade."""
        recorder = None

        def wrap(executor):
            nonlocal recorder
            recorder = BalanceRecordingExecutor(executor)
            return recorder

        run_session(paper_session, recording_sink, recording_sleep, clock, InMemoryTradeStore(),
                    start_balance=200.0, wrap_executor=wrap)

        assert len(recorder.seen) > 1
        assert all(strategy_balance == broker_balance for strategy_balance, broker_balance in recorder.seen)
        assert len({broker_balance for _, broker_balance in recorder.seen}) > 1
