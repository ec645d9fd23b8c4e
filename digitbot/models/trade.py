"""Contract parameters and settled trade results."""

from dataclasses import asdict, dataclass, replace
from datetime import datetime
from typing import Any, Optional


@dataclass(frozen=True)
class ContractParams:
    """Everything the executor needs to buy one contract."""
    amount: float
    contract_type: str
    currency: str
    duration: int
    duration_unit: str
    symbol: str
    basis: str = "stake"
    barrier: Optional[int] = None
    expected_payout_pct: Optional[float] = None

    def with_amount(self, amount: float) -> "ContractParams":
        """Create new params with a different stake."""
        return replace(self, amount=amount)

    def with_barrier(self, barrier: Optional[int]) -> "ContractParams":
        """Create new params with a different barrier."""
        return replace(self, barrier=barrier)


@dataclass(frozen=True)
class TradeResult:
    """
    Settled outcome of one contract.

    profit_value is the magnitude and profit_sign its direction (+1 or -1),
    matching how the broker reports settlements.
    """
    is_win: bool
    buy_price: float
    sell_price: float
    profit_value: float
    profit_sign: int
    contract_id: str
    contract_type: str
    currency: str
    purchase_time: datetime
    sell_time: datetime
    entry_spot: Optional[float] = None
    exit_spot: Optional[float] = None
    barrier: Optional[int] = None
    transaction_buy_id: Optional[str] = None
    transaction_sell_id: Optional[str] = None

    @property
    def signed_profit(self) -> float:
        return self.profit_value * self.profit_sign

    @property
    def payout(self) -> float:
        return self.sell_price

    def to_dict(self) -> dict[str, Any]:
        """Flat, JSON-friendly representation."""
        data = asdict(self)
        data["purchase_time"] = self.purchase_time.isoformat()
        data["sell_time"] = self.sell_time.isoformat()
        data["signed_profit"] = self.signed_profit
        return data
