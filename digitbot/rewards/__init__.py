"""Payout tables and the reward calculator."""
from .structures import (
    RewardCalculator,
    RewardTier,
    build_tiers,
    find_tier,
    validate_tier_coverage,
)
from .tables import DEFAULT_PAYOUT_SCHEDULE, STAKE_BANDS

__all__ = [
    "DEFAULT_PAYOUT_SCHEDULE",
    "STAKE_BANDS",
    "RewardCalculator",
    "RewardTier",
    "build_tiers",
    "find_tier",
    "validate_tier_coverage",
]
