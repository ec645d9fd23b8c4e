"""
Contract-type registry.

Maps each contract tag to a strategy factory. Tags with a fixed barrier
(DIGITOVER_3, DIGITUNDER_7, ...) register the over/under strategy bound to
that barrier.
"""

from functools import partial
from typing import Callable, Optional

import structlog

from ..models.session import TradingConfig
from .base import StrategyDependencies, TradeStrategy
from .digits import (
    DigitDiffStrategy,
    DigitEvenStrategy,
    DigitMatchStrategy,
    DigitOddStrategy,
    DigitOverStrategy,
    DigitUnderStrategy,
)
from .rise_fall import FallStrategy, RiseStrategy
from .sequence import SequenceStrategy

logger = structlog.get_logger(__name__)

StrategyFactory = Callable[..., TradeStrategy]

DEFAULT_CONTRACT_TYPE = "DIGITDIFF"


class StrategyRegistry:
    """Contract tag to strategy factory lookup."""

    def __init__(self, default_tag: str = DEFAULT_CONTRACT_TYPE):
        self.default_tag = default_tag
        self._factories: dict[str, StrategyFactory] = {}

    def register(self, tag: str, factory: StrategyFactory) -> None:
        """Register a factory called as factory(config, deps, reward_key=tag)."""
        tag = tag.upper()
        if tag in self._factories:
            logger.warning("Replacing strategy registration", contract_type=tag)
        self._factories[tag] = factory

    def is_registered(self, tag: str) -> bool:
        return tag.upper() in self._factories

    def tags(self) -> tuple[str, ...]:
        return tuple(sorted(self._factories))

    def create(self, tag: Optional[str], config: TradingConfig, deps: StrategyDependencies) -> TradeStrategy:
        """
        Build the strategy for a contract tag.

        Unknown tags fall back to the default strategy with a warning.
        """
        key = (tag or "").upper()
        if key not in self._factories:
            logger.warning(
                "Unknown contract type, falling back to default strategy",
                contract_type=tag,
                default=self.default_tag,
            )
            key = self.default_tag

        strategy = self._factories[key](config, deps, reward_key=key)
        logger.info("Strategy created", contract_type=key, strategy=type(strategy).__name__)
        return strategy


def build_default_registry() -> StrategyRegistry:
    """Registry with every built-in contract tag."""
    registry = StrategyRegistry()

    registry.register("DIGITDIFF", DigitDiffStrategy)
    registry.register("DIGITMATCH", DigitMatchStrategy)
    registry.register("DIGITEVEN", DigitEvenStrategy)
    registry.register("DIGITODD", DigitOddStrategy)
    registry.register("CALLE", RiseStrategy)
    registry.register("PUTE", FallStrategy)
    registry.register("DIGITDIFF1326", SequenceStrategy)
    registry.register("DIGITOVER", DigitOverStrategy)
    registry.register("DIGITUNDER", DigitUnderStrategy)

    for barrier in range(0, 9):
        registry.register(f"DIGITOVER_{barrier}", partial(DigitOverStrategy, barrier=barrier))
    for barrier in range(1, 10):
        registry.register(f"DIGITUNDER_{barrier}", partial(DigitUnderStrategy, barrier=barrier))

    return registry
