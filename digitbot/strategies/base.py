"""
Shared execution pipeline for all trading strategies.

A strategy places exactly one contract per execute() call:

1. wait out any safety mode or circuit breaker cooldown
2. compute contract parameters (risk manager or recovery sequencer)
3. raise the stake to the drawdown floor while the strategy is in a loss
4. validate and normalise the parameters
5. buy through the executor and feed the settlement back
"""

import asyncio
import random
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Awaitable, Callable, Optional

from ..collaborators import Executor, RiskManager
from ..config.defaults import DefaultConfig, get_default_config
from ..errors import InvalidTradeParametersError, RewardStructureError, SafetyHaltError
from ..logging import get_strategy_logger
from ..models.enums import ContractType, SafetyMode, SafetyStatus
from ..models.account import Account
from ..models.session import TradingConfig
from ..models.trade import ContractParams, TradeResult
from ..rewards import RewardCalculator
from ..risk import VolatilityRiskManager
from ..utils.numbers import is_finite_number, round_money
from ..utils.time import utc_now

RiskManagerFactory = Callable[[TradingConfig, str, str], RiskManager]


@dataclass
class StrategyDependencies:
    """Collaborators and settings handed to every strategy."""
    executor: Executor
    reward_calculator: RewardCalculator = field(default_factory=RewardCalculator)
    settings: DefaultConfig = field(default_factory=get_default_config)
    risk_manager_factory: Optional[RiskManagerFactory] = None
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    clock: Callable[[], datetime] = utc_now
    rng: random.Random = field(default_factory=random.Random)


class TradeStrategy:
    """
    Base strategy: one contract type, fixed or random barrier.

    Subclasses set contract_type and, for digit contracts, the barrier
    range random predictions are drawn from.
    """

    contract_type: str = ContractType.DIGITDIFF.value
    barrier_range: Optional[tuple[int, int]] = (0, 9)

    def __init__(
        self,
        config: TradingConfig,
        deps: StrategyDependencies,
        reward_key: Optional[str] = None,
        barrier: Optional[int] = None,
    ):
        self.config = config
        self.deps = deps
        self.reward_key = reward_key or self.contract_type
        self.barrier = barrier
        self.logger = get_strategy_logger(__name__, self.reward_key)

        if deps.risk_manager_factory is not None:
            self.risk_manager = deps.risk_manager_factory(config, self.contract_type, self.reward_key)
        else:
            settings = deps.settings
            self.risk_manager = VolatilityRiskManager(
                session=config.session,
                contract_type=self.contract_type,
                reward_key=self.reward_key,
                reward_calculator=deps.reward_calculator,
                circuit_breaker=settings.circuit_breaker,
                rapid_loss=settings.rapid_loss,
                strategy=settings.strategy,
                clock=deps.clock,
                rng=deps.rng,
            )

    # ------------------------------------------------------------ pipeline

    async def execute(self) -> TradeResult:
        """Run the pipeline for one trade and return its settlement."""
        await self._await_clearance()

        params = self._next_contract_params()
        params = self._apply_drawdown_floor(params)
        params = self._validate_params(params)

        self.logger.info(
            "Purchasing contract",
            stake=params.amount,
            barrier=params.barrier,
            symbol=params.symbol,
            expected_payout_pct=params.expected_payout_pct,
        )

        try:
            result = await self.deps.executor.purchase_contract(params, self.config)
        except Exception as e:
            self.logger.error(
                "Contract purchase failed",
                error=str(e),
                error_type=type(e).__name__
            )
            self.risk_manager.check_circuit_breakers(self.config.account)
            raise

        self._record_result(result)
        self.logger.info(
            "Contract settled",
            is_win=result.is_win,
            profit=result.signed_profit,
            contract_id=result.contract_id,
        )
        return result

    async def _await_clearance(self) -> None:
        """Block until the risk manager reports OK, or give up."""
        strategy_settings = self.deps.settings.strategy
        waits = 0

        while True:
            status = self._pre_trade_status()
            if status == SafetyStatus.OK:
                return

            waits += 1
            if waits > strategy_settings.max_safety_waits:
                raise SafetyHaltError(
                    f"Risk checks still report {status.value} after {waits - 1} cooldowns",
                    status=status.value,
                    contract_type=self.reward_key,
                )

            delay = self._cooldown_remaining() + strategy_settings.safety_buffer_seconds
            self.logger.warning(
                "Trade deferred by risk checks",
                status=status.value,
                wait_seconds=round(delay, 2),
                attempt=waits,
            )
            await self.deps.sleep(delay)
            self.risk_manager.reset_safety_mode()

    def _pre_trade_status(self) -> SafetyStatus:
        breaker = self.risk_manager.get_circuit_breaker_state()

        if breaker.mode == SafetyMode.BLOCKED:
            return SafetyStatus.BLOCKED

        if breaker.mode == SafetyMode.SAFETY:
            until = breaker.safety_mode_until
            if until is None or self.deps.clock() < until:
                return SafetyStatus.SAFETY_MODE
            self.risk_manager.reset_safety_mode()

        if self.risk_manager.check_rapid_losses():
            return SafetyStatus.RAPID_LOSS_DETECTED

        if self.risk_manager.check_circuit_breakers(self.config.account):
            if self.risk_manager.get_circuit_breaker_state().mode == SafetyMode.BLOCKED:
                return SafetyStatus.BLOCKED
            return SafetyStatus.SAFETY_MODE

        return SafetyStatus.OK

    def _cooldown_remaining(self) -> float:
        until = self.risk_manager.get_circuit_breaker_state().safety_mode_until
        if until is None:
            return self.deps.settings.circuit_breaker.cooldown_seconds
        return max(0.0, (until - self.deps.clock()).total_seconds())

    def _next_contract_params(self) -> ContractParams:
        return self.risk_manager.get_next_trade_params(self._choose_barrier())

    def _choose_barrier(self) -> Optional[int]:
        if self.barrier is not None or self.barrier_range is None:
            return self.barrier
        low, high = self.barrier_range
        return self.deps.rng.randint(low, high)

    def _apply_drawdown_floor(self, params: ContractParams) -> ContractParams:
        """Never stake less than what offsets the current drawdown."""
        total_profit = self.risk_manager.get_total_profit()
        if total_profit >= 0:
            return params

        multiplier = self.deps.settings.strategy.recovery_target_multiplier
        target = round_money(abs(total_profit) * multiplier)
        if params.amount < target:
            self.logger.info(
                "Raising stake to drawdown floor",
                computed_stake=params.amount,
                floor_stake=target,
                total_profit=total_profit,
            )
            return params.with_amount(target)
        return params

    def _validate_params(self, params: ContractParams) -> ContractParams:
        """Check required fields and stake bounds; normalise the barrier."""
        session = self.config.session
        reasons = []

        if not is_finite_number(params.amount) or params.amount <= 0:
            reasons.append("Stake must be a positive number")
        elif not session.min_stake <= params.amount <= session.max_stake:
            reasons.append(
                f"Stake {params.amount} outside allowed range {session.min_stake}-{session.max_stake}"
            )

        for name in ("basis", "currency", "duration_unit", "symbol"):
            if not getattr(params, name):
                reasons.append(f"Missing {name}")

        if not isinstance(params.duration, int) or params.duration <= 0:
            reasons.append("Missing duration")

        if reasons:
            raise InvalidTradeParametersError(
                "Invalid contract parameters",
                reasons=reasons,
                contract_type=self.reward_key,
            )

        params = params.with_barrier(self._normalise_barrier(params))

        balance = self.risk_manager.validate_account_balance(params.amount, self.config.account)
        if not balance.is_valid:
            raise InvalidTradeParametersError(
                "Account balance check failed",
                reasons=list(balance.reasons),
                contract_type=self.reward_key,
            )

        try:
            payout = self.deps.reward_calculator.calculate_profit_percentage(self.reward_key, params.amount)
        except RewardStructureError as e:
            self.logger.warning("No payout tier for stake", stake=params.amount, error=str(e))
            payout = None

        return ContractParams(
            amount=round_money(params.amount),
            contract_type=params.contract_type,
            currency=params.currency,
            duration=params.duration,
            duration_unit=params.duration_unit,
            symbol=params.symbol,
            basis=params.basis,
            barrier=params.barrier,
            expected_payout_pct=payout,
        )

    def _normalise_barrier(self, params: ContractParams) -> Optional[int]:
        try:
            uses_barrier = ContractType(params.contract_type).uses_barrier
        except ValueError:
            uses_barrier = params.barrier is not None
        if not uses_barrier:
            return None

        barrier = params.barrier
        if is_finite_number(barrier):
            barrier = int(round(barrier))  # type: ignore[arg-type]
            if 0 <= barrier <= 9:
                return barrier

        replacement = self.deps.rng.randint(0, 9)
        self.logger.warning("Barrier out of range, using random digit",
                            barrier=params.barrier, replacement=replacement)
        return replacement

    def _record_result(self, result: TradeResult) -> None:
        self.risk_manager.process_trade_result(result)

    def update_account(self, account: Account) -> None:
        """Swap in the latest account snapshot for balance and breaker checks."""
        self.config = replace(self.config, account=account)

    # --------------------------------------------------------------- views

    def check_pending_recovery(self) -> bool:
        return self.risk_manager.get_total_lost_amount() > 0

    def get_total_profit(self) -> float:
        return self.risk_manager.get_total_profit()

    def get_highest_stake_invested(self) -> float:
        return self.risk_manager.get_highest_stake_invested()

    def get_highest_profit_achieved(self) -> float:
        return self.risk_manager.get_highest_profit_achieved()
