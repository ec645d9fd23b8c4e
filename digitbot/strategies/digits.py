"""Last-digit prediction strategies."""

from ..models.enums import ContractType
from .base import TradeStrategy


class DigitDiffStrategy(TradeStrategy):
    """Wins when the last digit differs from the prediction."""
    contract_type = ContractType.DIGITDIFF.value


class DigitMatchStrategy(TradeStrategy):
    """Wins when the last digit matches the prediction."""
    contract_type = ContractType.DIGITMATCH.value


class DigitEvenStrategy(TradeStrategy):
    """Wins on an even last digit."""
    contract_type = ContractType.DIGITEVEN.value
    barrier_range = None


class DigitOddStrategy(TradeStrategy):
    """Wins on an odd last digit."""
    contract_type = ContractType.DIGITODD.value
    barrier_range = None


class DigitOverStrategy(TradeStrategy):
    """Wins when the last digit is above the barrier."""
    contract_type = ContractType.DIGITOVER.value
    barrier_range = (0, 8)


class DigitUnderStrategy(TradeStrategy):
    """Wins when the last digit is below the barrier."""
    contract_type = ContractType.DIGITUNDER.value
    barrier_range = (1, 9)
