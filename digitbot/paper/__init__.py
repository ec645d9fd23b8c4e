"""Paper trading collaborators for running sessions without a broker."""

from .broker import PaperBroker
from .executor import PaperExecutor, contract_wins, last_digit

__all__ = ["PaperBroker", "PaperExecutor", "contract_wins", "last_digit"]
