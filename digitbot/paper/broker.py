"""Paper broker: connectivity and a simulated account."""

from typing import Optional

import structlog

from ..collaborators import BalanceCallback
from ..models.account import Account
from ..utils.numbers import round_money

logger = structlog.get_logger(__name__)


class PaperBroker:
    """
    In-process stand-in for the broker connection.

    Tracks one virtual account per token and pushes balance changes to the
    subscriber registered through get_user_account().
    """

    def __init__(self, start_balance: float = 10000.0, currency: str = "USD", online: bool = True):
        self.start_balance = start_balance
        self.currency = currency
        self.online = online
        self.accounts: dict[str, Account] = {}
        self._subscribers: dict[str, BalanceCallback] = {}

    async def ping(self) -> bool:
        return self.online

    async def get_user_account(
        self,
        token: str,
        on_balance_update: Optional[BalanceCallback] = None,
    ) -> Optional[Account]:
        if not token:
            return None

        account = self.accounts.get(token)
        if account is None:
            account = Account(
                login_id=f"VRTC{len(self.accounts) + 1:07d}",
                currency=self.currency,
                balance=self.start_balance,
                is_virtual=True,
                token=token,
            )
            self.accounts[token] = account
            logger.info("Paper account opened", login_id=account.login_id, balance=account.balance)

        if on_balance_update is not None:
            self._subscribers[token] = on_balance_update
        return account

    def adjust_balance(self, token: str, delta: float) -> float:
        """Apply a settlement to the account and notify the subscriber."""
        account = self.accounts[token]
        account = account.with_balance(round_money(account.balance + delta))
        self.accounts[token] = account

        callback = self._subscribers.get(token)
        if callback is not None:
            callback(account.balance)
        return account.balance
