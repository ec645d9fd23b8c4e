"""Rise/fall strategies; the contract carries no barrier."""

from ..models.enums import ContractType
from .base import TradeStrategy


class RiseStrategy(TradeStrategy):
    """Wins when the exit spot is at or above the entry spot."""
    contract_type = ContractType.CALLE.value
    barrier_range = None


class FallStrategy(TradeStrategy):
    """Wins when the exit spot is at or below the entry spot."""
    contract_type = ContractType.PUTE.value
    barrier_range = None
