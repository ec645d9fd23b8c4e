"""
Strategy dispatcher.

Owns the single strategy of a session and shields the session controller
from trade-level failures: whatever goes wrong inside a trade becomes a
StopRequest on the event channel and a None result.
"""

from dataclasses import replace
from typing import Optional

import structlog

from .errors import SafetyHaltError, TradeGatedError, TradingError
from .events import EventChannel, StopRequest
from .models.account import Account
from .models.session import TradingConfig
from .models.trade import TradeResult
from .strategies import StrategyDependencies, StrategyRegistry, TradeStrategy, build_default_registry

logger = structlog.get_logger(__name__)

TRADE_FAILED_REASON = "Trade execution failed"


class StrategyDispatcher:
    """Routes trade requests to the strategy chosen for the session."""

    def __init__(
        self,
        config: TradingConfig,
        channel: EventChannel,
        deps: StrategyDependencies,
        registry: Optional[StrategyRegistry] = None,
    ):
        self.config = config
        self.channel = channel
        self.registry = registry or build_default_registry()
        self.strategy: Optional[TradeStrategy] = None

        if config.contract_type:
            self.strategy = self.registry.create(config.contract_type, config, deps)

    async def execute_trade(self) -> Optional[TradeResult]:
        """
        Place one trade through the strategy.

        Never raises. On failure a stop request is published and None is
        returned.
        """
        reasons = []
        if not self.config.contract_type:
            reasons.append("Missing contract type")
        if not self.config.account_token:
            reasons.append("Missing account token")
        if reasons or self.strategy is None:
            logger.error("Cannot execute trade", reasons=reasons)
            self._request_stop(TRADE_FAILED_REASON, reasons or ["No strategy available"])
            return None

        try:
            return await self.strategy.execute()

        except TradeGatedError as e:
            logger.warning("Strategy declined trade", reason=e.reason)
            self._request_stop(e.reason, [e.reason])

        except SafetyHaltError as e:
            logger.error("Risk checks halted trading", status=e.status, error=str(e))
            self._request_stop(TRADE_FAILED_REASON, [str(e)])

        except TradingError as e:
            logger.error(
                "Trade failed",
                error=str(e),
                error_type=type(e).__name__,
                reasons=getattr(e, "reasons", None),
            )
            self._request_stop(TRADE_FAILED_REASON, list(getattr(e, "reasons", [str(e)])))

        except Exception as e:
            logger.error(
                "Unexpected error executing trade",
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            self._request_stop(TRADE_FAILED_REASON, [str(e)])

        return None

    def _request_stop(self, reason: str, reasons: list[str]) -> None:
        self.channel.publish(StopRequest(
            reason=reason,
            reasons=tuple(reasons),
            profit=self.get_total_profit(),
            source="dispatcher",
        ))

    def update_account(self, account: Account) -> None:
        """Forward a balance change to the strategy."""
        self.config = replace(self.config, account=account)
        if self.strategy is not None:
            self.strategy.update_account(account)

    def check_pending_recovery(self) -> bool:
        return self.strategy.check_pending_recovery() if self.strategy else False

    def get_total_profit(self) -> float:
        return self.strategy.get_total_profit() if self.strategy else 0.0

    def get_highest_stake_invested(self) -> float:
        return self.strategy.get_highest_stake_invested() if self.strategy else 0.0

    def get_highest_profit_achieved(self) -> float:
        return self.strategy.get_highest_profit_achieved() if self.strategy else 0.0
