"""
Paper executor.

Settles contracts against a simulated tick stream instead of the broker:
digit contracts look at the last digit of the exit spot, rise/fall
contracts compare exit and entry spots. Winning trades are paid with the
percentage from the reward tables.
"""

import asyncio
import itertools
import random
from typing import Optional

import structlog

from ..errors import RewardStructureError, TradeExecutionError
from ..models.enums import ContractType
from ..models.session import TradingConfig
from ..models.trade import ContractParams, TradeResult
from ..rewards import RewardCalculator
from ..utils.numbers import round_money
from ..utils.time import utc_now
from .broker import PaperBroker

logger = structlog.get_logger(__name__)

FALLBACK_PAYOUT_PCT = 92.0


def last_digit(spot: float, decimals: int = 2) -> int:
    """Last quoted digit of a spot price."""
    return int(round(spot * (10 ** decimals))) % 10


def contract_wins(contract_type: str, barrier: Optional[int], entry_spot: float, exit_spot: float) -> bool:
    """Whether a contract settles as a win for the given spots."""
    digit = last_digit(exit_spot)
    kind = ContractType(contract_type)

    if kind == ContractType.DIGITDIFF:
        return digit != barrier
    if kind == ContractType.DIGITMATCH:
        return digit == barrier
    if kind == ContractType.DIGITEVEN:
        return digit % 2 == 0
    if kind == ContractType.DIGITODD:
        return digit % 2 == 1
    if kind == ContractType.DIGITOVER:
        return digit > barrier  # type: ignore[operator]
    if kind == ContractType.DIGITUNDER:
        return digit < barrier  # type: ignore[operator]
    if kind == ContractType.CALLE:
        return exit_spot >= entry_spot
    return exit_spot <= entry_spot


class PaperExecutor:
    """Buys and settles contracts against a random-walk price."""

    def __init__(
        self,
        broker: PaperBroker,
        reward_calculator: Optional[RewardCalculator] = None,
        rng: Optional[random.Random] = None,
        start_spot: float = 1000.0,
        tick_volatility: float = 0.5,
        latency_seconds: float = 0.0,
    ):
        self.broker = broker
        self.reward_calculator = reward_calculator or RewardCalculator()
        self.rng = rng or random.Random()
        self.spot = start_spot
        self.tick_volatility = tick_volatility
        self.latency_seconds = latency_seconds
        self._ids = itertools.count(1)

    def _next_spot(self) -> float:
        self.spot = round(max(0.01, self.spot + self.rng.gauss(0.0, self.tick_volatility)), 2)
        return self.spot

    def _payout_pct(self, params: ContractParams) -> float:
        if params.expected_payout_pct is not None:
            return params.expected_payout_pct
        try:
            return self.reward_calculator.calculate_profit_percentage(params.contract_type, params.amount)
        except RewardStructureError:
            return FALLBACK_PAYOUT_PCT

    async def purchase_contract(self, params: ContractParams, config: TradingConfig) -> TradeResult:
        token = config.account_token
        account = self.broker.accounts.get(token)
        if account is None:
            raise TradeExecutionError("Unknown paper account", contract_type=params.contract_type)
        if account.balance < params.amount:
            raise TradeExecutionError(
                f"Insufficient balance {account.balance:.2f} for stake {params.amount:.2f}",
                contract_type=params.contract_type,
            )

        contract_id = f"P{next(self._ids):08d}"
        purchase_time = utc_now()
        entry_spot = self._next_spot()
        self.broker.adjust_balance(token, -params.amount)

        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)

        exit_spot = self._next_spot()
        is_win = contract_wins(params.contract_type, params.barrier, entry_spot, exit_spot)

        if is_win:
            profit = round_money(params.amount * self._payout_pct(params) / 100)
            sell_price = round_money(params.amount + profit)
        else:
            profit = params.amount
            sell_price = 0.0
        self.broker.adjust_balance(token, sell_price)

        result = TradeResult(
            is_win=is_win,
            buy_price=params.amount,
            sell_price=sell_price,
            profit_value=profit,
            profit_sign=1 if is_win else -1,
            contract_id=contract_id,
            contract_type=params.contract_type,
            currency=params.currency,
            purchase_time=purchase_time,
            sell_time=utc_now(),
            entry_spot=entry_spot,
            exit_spot=exit_spot,
            barrier=params.barrier,
            transaction_buy_id=f"{contract_id}B",
            transaction_sell_id=f"{contract_id}S",
        )
        logger.debug(
            "Paper contract settled",
            contract_id=contract_id,
            contract_type=params.contract_type,
            barrier=params.barrier,
            exit_digit=last_digit(exit_spot),
            is_win=is_win,
            profit=result.signed_profit,
        )
        return result
