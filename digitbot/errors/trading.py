"""
Trade-level error classifications.

Raised inside the strategy pipeline. The dispatcher turns any of them into
a stop request instead of letting them reach the session controller.
"""

from typing import Any, Optional, Sequence


class TradingError(Exception):
    """Base class for errors raised while preparing or placing a trade."""

    def __init__(self, message: str, contract_type: Optional[str] = None):
        super().__init__(message)
        self.contract_type = contract_type


class RewardStructureError(TradingError):
    """Payout table is malformed or a lookup cannot be served."""

    def __init__(self, message: str, stake: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.stake = stake


class InvalidTradeParametersError(TradingError):
    """Computed contract parameters failed validation."""

    def __init__(self, message: str, reasons: Optional[Sequence[str]] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.reasons = list(reasons or [message])


class TradeExecutionError(TradingError):
    """The executor failed to buy or settle a contract."""


class TradeGatedError(TradingError):
    """The recovery sequencer declined the next trade."""

    def __init__(self, reason: str, metadata: Optional[dict] = None, **kwargs):
        super().__init__(reason, **kwargs)
        self.reason = reason
        self.metadata = metadata or {}


class SafetyHaltError(TradingError):
    """Risk checks kept reporting an unsafe status after repeated cooldowns."""

    def __init__(self, message: str, status: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.status = status
