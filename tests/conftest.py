"""Pytest configuration and shared fixtures."""

import random
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import pytest

from digitbot.config.defaults import get_default_config
from digitbot.models.account import Account
from digitbot.models.session import SessionConfig, TradingConfig
from digitbot.models.trade import ContractParams, TradeResult
from digitbot.rewards import RewardCalculator

FIXED_NOW = datetime(2024, 3, 4, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that advances by step on every read."""

    def __init__(self, start: datetime = FIXED_NOW, step: timedelta = timedelta(0)):
        self.now = start
        self.step = step

    def __call__(self) -> datetime:
        current = self.now
        self.now = self.now + self.step
        return current

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class RecordingSink:
    """Messaging sink that keeps every notification."""

    def __init__(self):
        self.notifications = []

    def deliver(self, notification):
        self.notifications.append(notification)

    def actions(self):
        return [n.action for n in self.notifications]

    def of(self, action):
        return [n for n in self.notifications if n.action == action]


class RecordingSleep:
    """Async sleep replacement that records requested delays."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def build_result(profit: float, stake: float = 1.0, contract_type: str = "DIGITDIFF",
                 barrier=None, contract_id: str = "C1") -> TradeResult:
    is_win = profit > 0
    return TradeResult(
        is_win=is_win,
        buy_price=stake,
        sell_price=stake + profit if is_win else 0.0,
        profit_value=abs(profit),
        profit_sign=1 if is_win else -1,
        contract_id=contract_id,
        contract_type=contract_type,
        currency="USD",
        purchase_time=FIXED_NOW,
        sell_time=FIXED_NOW + timedelta(seconds=2),
        entry_spot=1000.12,
        exit_spot=1000.15,
        barrier=barrier,
    )


class ScriptedExecutor:
    """Executor that settles purchases with scripted outcomes."""

    def __init__(self, outcomes, payout_pct: float = 95.0):
        self.outcomes = list(outcomes)
        self.payout_pct = payout_pct
        self.purchases = []

    async def purchase_contract(self, params: ContractParams, config: TradingConfig) -> TradeResult:
        self.purchases.append(params)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        profit = round(params.amount * self.payout_pct / 100, 2) if outcome else -params.amount
        return build_result(profit, stake=params.amount, contract_type=params.contract_type,
                            barrier=params.barrier, contract_id=f"C{len(self.purchases)}")


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def make_result():
    """Factory for settled trade results."""
    return build_result


@pytest.fixture
def scripted_executor():
    """Factory for executors with scripted win/loss outcomes."""
    return ScriptedExecutor


@pytest.fixture
def session_mapping() -> Dict[str, Any]:
    """Valid raw session settings."""
    return {
        "account_type": "demo",
        "trading_type": "digits",
        "trading_mode": "auto",
        "market": "R_100",
        "contract_type": "DIGITDIFF",
        "currency": "USD",
        "base_stake": 1.0,
        "take_profit": 5.0,
        "stop_loss": 2.0,
        "contract_duration_value": 1,
        "contract_duration_unit": "t",
        "session_duration": "1h",
        "telemetry_interval": "5m",
    }


@pytest.fixture
def session_config(session_mapping) -> SessionConfig:
    return SessionConfig.from_mapping(session_mapping)


@pytest.fixture
def account() -> Account:
    return Account(login_id="VRTC0000001", currency="USD", balance=10000.0, token="tok-1")


@pytest.fixture
def trading_config(session_config, account) -> TradingConfig:
    return TradingConfig(session=session_config, account_token="tok-1", account=account, session_id="s-1")


@pytest.fixture
def settings():
    return get_default_config()


@pytest.fixture
def reward_calculator() -> RewardCalculator:
    return RewardCalculator()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(42)
