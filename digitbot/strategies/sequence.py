"""Differs strategy staked by the 1-3-2-6 recovery sequencer."""

from dataclasses import asdict
from typing import Optional

from ..config.defaults import RecoveryDefaults
from ..errors import TradeGatedError
from ..models.enums import ContractType
from ..models.session import SessionConfig, TradingConfig
from ..models.trade import ContractParams, TradeResult
from ..recovery import RecoveryParams, RecoverySequencer
from .base import StrategyDependencies, TradeStrategy


def recovery_params_for(session: SessionConfig, defaults: RecoveryDefaults) -> RecoveryParams:
    """Sequencer parameters for a session: stakes and limits come from the session."""
    return RecoveryParams(
        initial_stake=session.base_stake,
        profit_threshold=session.take_profit,
        loss_threshold=session.stop_loss,
        market=session.market,
        max_recovery_attempts=session.max_recovery_attempts,
        **asdict(defaults),
    )


class SequenceStrategy(TradeStrategy):
    """
    DIGITDIFF contracts sized by a RecoverySequencer.

    The sequencer gates every trade; a refusal surfaces as TradeGatedError
    so the dispatcher can stop the session with the sequencer's reason.
    """

    contract_type = ContractType.DIGITDIFF.value

    def __init__(
        self,
        config: TradingConfig,
        deps: StrategyDependencies,
        reward_key: Optional[str] = "DIGITDIFF1326",
        barrier: Optional[int] = None,
        sequencer: Optional[RecoverySequencer] = None,
    ):
        super().__init__(config, deps, reward_key=reward_key, barrier=barrier)
        self.sequencer = sequencer or RecoverySequencer(
            recovery_params_for(config.session, deps.settings.recovery),
            clock=deps.clock,
            rng=deps.rng,
        )

    def _next_contract_params(self) -> ContractParams:
        decision = self.sequencer.prepare_for_next_trade()
        if not decision.should_trade:
            raise TradeGatedError(decision.reason, metadata=decision.metadata,
                                  contract_type=self.reward_key)

        session = self.config.session
        return ContractParams(
            amount=decision.amount,
            contract_type=decision.contract_type,
            currency=session.currency,
            duration=session.contract_duration_value,
            duration_unit=session.contract_duration_unit,
            symbol=session.market,
            barrier=self.barrier if self.barrier is not None else decision.prediction,
        )

    def _record_result(self, result: TradeResult) -> None:
        super()._record_result(result)
        self.sequencer.update_state(result.is_win, result.signed_profit)

    def check_pending_recovery(self) -> bool:
        return self.sequencer.in_recovery
