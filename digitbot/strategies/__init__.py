"""Strategy family: one pipeline, one class per contract type."""
from .base import StrategyDependencies, TradeStrategy
from .digits import (
    DigitDiffStrategy,
    DigitEvenStrategy,
    DigitMatchStrategy,
    DigitOddStrategy,
    DigitOverStrategy,
    DigitUnderStrategy,
)
from .registry import StrategyRegistry, build_default_registry
from .rise_fall import FallStrategy, RiseStrategy
from .sequence import SequenceStrategy, recovery_params_for

__all__ = [
    "DigitDiffStrategy",
    "DigitEvenStrategy",
    "DigitMatchStrategy",
    "DigitOddStrategy",
    "DigitOverStrategy",
    "DigitUnderStrategy",
    "FallStrategy",
    "RiseStrategy",
    "SequenceStrategy",
    "StrategyDependencies",
    "StrategyRegistry",
    "TradeStrategy",
    "build_default_registry",
    "recovery_params_for",
]
