"""1-3-2-6 stake progression with loss recovery."""
from .market import MarketConditions, analyze_market_conditions
from .models import (
    RECOVERY_MULTIPLIERS,
    SEQUENCE_VARIANTS,
    RecoveryMode,
    RecoveryParams,
    SequenceRecord,
    SequencerState,
    SequencerStatistics,
    TradeDecision,
    TradeRecord,
    validate_sequence,
)
from .sequencer import RecoverySequencer

__all__ = [
    "RECOVERY_MULTIPLIERS",
    "SEQUENCE_VARIANTS",
    "MarketConditions",
    "RecoveryMode",
    "RecoveryParams",
    "RecoverySequencer",
    "SequenceRecord",
    "SequencerState",
    "SequencerStatistics",
    "TradeDecision",
    "TradeRecord",
    "analyze_market_conditions",
    "validate_sequence",
]
