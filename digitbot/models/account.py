"""Broker account snapshot."""

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class Account:
    """Account context resolved for a session."""
    login_id: str
    currency: str
    balance: float
    is_virtual: bool = True
    token: Optional[str] = None

    def with_balance(self, balance: float) -> "Account":
        """Create new snapshot with an updated balance."""
        return replace(self, balance=balance)
