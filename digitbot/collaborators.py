"""
Interfaces of the services the engine drives but does not own.

Broker connectivity, account lookup, contract purchase, persistence and
messaging are supplied at construction time. The paper trading package
provides implementations for running without a broker.
"""

from typing import Callable, Optional, Protocol

from .models.account import Account
from .models.session import TradingConfig
from .models.trade import ContractParams, TradeResult
from .notifications.base import Notification
from .risk.models import BalanceValidation, CircuitBreakerState

BalanceCallback = Callable[[float], None]


class Connector(Protocol):
    """Broker connectivity."""

    async def ping(self) -> bool:
        ...


class AccountProvider(Protocol):
    """Resolves the account a session trades under."""

    async def get_user_account(
        self,
        token: str,
        on_balance_update: Optional[BalanceCallback] = None,
    ) -> Account:
        ...


class Executor(Protocol):
    """Buys one contract and waits for it to settle. Never retried."""

    async def purchase_contract(self, params: ContractParams, config: TradingConfig) -> TradeResult:
        ...


class RiskManager(Protocol):
    """Per-strategy risk bookkeeping and circuit breakers."""

    def get_next_trade_params(self, barrier: Optional[int] = None) -> ContractParams:
        ...

    def validate_account_balance(self, amount: float, account: Optional[Account]) -> BalanceValidation:
        ...

    def process_trade_result(self, result: TradeResult) -> None:
        ...

    def check_circuit_breakers(self, account: Optional[Account] = None) -> bool:
        ...

    def check_rapid_losses(self) -> bool:
        ...

    def enter_safety_mode(self, reason: str) -> None:
        ...

    def reset_safety_mode(self) -> None:
        ...

    def get_circuit_breaker_state(self) -> CircuitBreakerState:
        ...

    def get_total_lost_amount(self) -> float:
        ...

    def get_total_profit(self) -> float:
        ...

    def get_highest_stake_invested(self) -> float:
        ...

    def get_highest_profit_achieved(self) -> float:
        ...


class TradeStorage(Protocol):
    """Fire-and-forget trade persistence."""

    def insert_trade(self, result: TradeResult, session_id: str = "") -> None:
        ...


class MessagingSink(Protocol):
    """Receives human-readable session notifications."""

    def deliver(self, notification: Notification) -> None:
        ...
