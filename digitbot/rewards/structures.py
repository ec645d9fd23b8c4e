"""
Stake-tiered payout lookup.

Tier lists are plain tuples of RewardTier validated once when a
RewardCalculator is built. Stakes are compared at cent resolution, so a
tier ending at 0.49 is followed by one starting at 0.50.
"""

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

import structlog

from ..config.defaults import StakeLimits
from ..errors import RewardStructureError
from .tables import DEFAULT_PAYOUT_SCHEDULE, STAKE_BANDS

logger = structlog.get_logger(__name__)


def _cents(value: float) -> int:
    return int(round(value * 100))


@dataclass(frozen=True)
class RewardTier:
    """A stake range and the payout percentage it earns."""
    min_stake: float
    max_stake: float
    reward_percentage: float

    def contains(self, stake: float) -> bool:
        return _cents(self.min_stake) <= _cents(stake) <= _cents(self.max_stake)


def build_tiers(
    percentages: Sequence[float],
    min_stake: float,
    max_stake: float,
    bands: Sequence[tuple[Optional[float], Optional[float]]] = STAKE_BANDS,
) -> tuple[RewardTier, ...]:
    """
    Turn a payout schedule into tiers spanning [min_stake, max_stake].

    A single percentage yields one tier over the whole range. Bands lying
    entirely outside the range are dropped and the edge bands clipped.
    """
    if len(percentages) == 1:
        return (RewardTier(min_stake, max_stake, percentages[0]),)

    if len(percentages) != len(bands):
        raise RewardStructureError(
            f"Expected {len(bands)} payout values, got {len(percentages)}"
        )

    tiers = []
    for (low, high), percentage in zip(bands, percentages):
        low = min_stake if low is None else max(low, min_stake)
        high = max_stake if high is None else min(high, max_stake)
        if _cents(low) > _cents(high):
            continue
        tiers.append(RewardTier(low, high, percentage))
    return tuple(tiers)


def validate_tier_coverage(
    contract_type: str,
    tiers: Sequence[RewardTier],
    min_stake: float,
    max_stake: float,
) -> None:
    """
    Check that tiers cover [min_stake, max_stake] without gaps or overlaps.

    Raises:
        RewardStructureError: describing the first defect found
    """
    if not tiers:
        raise RewardStructureError(
            f"Invalid reward structure for {contract_type}", contract_type=contract_type
        )

    ordered = sorted(tiers, key=lambda tier: tier.min_stake)

    if _cents(ordered[0].min_stake) > _cents(min_stake) or _cents(ordered[-1].max_stake) < _cents(max_stake):
        raise RewardStructureError(
            f"Reward structure for {contract_type} must cover full stake range",
            contract_type=contract_type,
        )

    for tier in ordered:
        if _cents(tier.min_stake) > _cents(tier.max_stake):
            raise RewardStructureError(
                f"Reward tier {tier.min_stake}-{tier.max_stake} for {contract_type} is inverted",
                contract_type=contract_type,
            )
        if not math.isfinite(tier.reward_percentage) or tier.reward_percentage <= 0:
            raise RewardStructureError(
                f"Reward tier {tier.min_stake}-{tier.max_stake} for {contract_type} "
                f"has invalid percentage {tier.reward_percentage}",
                contract_type=contract_type,
            )

    for previous, current in zip(ordered, ordered[1:]):
        expected = _cents(previous.max_stake) + 1
        if _cents(current.min_stake) > expected:
            raise RewardStructureError(
                f"Gap in reward structure for {contract_type} between "
                f"{previous.max_stake} and {current.min_stake}",
                contract_type=contract_type,
            )
        if _cents(current.min_stake) < expected:
            raise RewardStructureError(
                f"Overlap in reward structure for {contract_type} at {current.min_stake}",
                contract_type=contract_type,
            )


def find_tier(tiers: Sequence[RewardTier], stake: float) -> Optional[RewardTier]:
    """Tier containing the stake rounded to cents, or None."""
    for tier in tiers:
        if tier.contains(stake):
            return tier
    return None


class RewardCalculator:
    """
    Immutable payout lookup by contract type and stake.

    Every tier list is validated on construction; an invalid table never
    produces a calculator.
    """

    def __init__(
        self,
        structures: Optional[Mapping[str, Sequence[RewardTier]]] = None,
        stake_limits: Optional[StakeLimits] = None,
    ):
        self._limits = stake_limits or StakeLimits()

        if structures is None:
            structures = {
                contract_type: build_tiers(schedule, self._limits.min_stake, self._limits.max_stake)
                for contract_type, schedule in DEFAULT_PAYOUT_SCHEDULE.items()
            }

        for contract_type, tiers in structures.items():
            validate_tier_coverage(contract_type, tiers, self._limits.min_stake, self._limits.max_stake)

        self._structures = MappingProxyType({
            contract_type: tuple(sorted(tiers, key=lambda tier: tier.min_stake))
            for contract_type, tiers in structures.items()
        })

    @property
    def stake_limits(self) -> StakeLimits:
        return self._limits

    @property
    def contract_types(self) -> tuple[str, ...]:
        return tuple(self._structures)

    def calculate_profit_percentage(self, contract_type: str, stake: float) -> float:
        """
        Payout percentage for a stake on a contract type.

        Raises:
            RewardStructureError: stake not a finite number, outside the
                global stake range, unsupported contract type, or no tier
                matching the stake
        """
        if isinstance(stake, bool) or not isinstance(stake, (int, float)) or not math.isfinite(stake):
            logger.error("Invalid stake amount", stake=stake)
            raise RewardStructureError("Stake must be a valid number", stake=stake)

        if _cents(stake) < _cents(self._limits.min_stake) or _cents(stake) > _cents(self._limits.max_stake):
            logger.error("Stake out of allowed range", stake=stake,
                         min_stake=self._limits.min_stake, max_stake=self._limits.max_stake)
            raise RewardStructureError(
                f"Stake must be between {self._limits.min_stake} and {self._limits.max_stake}",
                stake=stake,
            )

        tiers = self._structures.get(contract_type)
        if tiers is None:
            logger.error("No reward structure found", contract_type=contract_type)
            raise RewardStructureError(
                f"Unsupported contract type: {contract_type}", contract_type=contract_type
            )

        tier = find_tier(tiers, stake)
        if tier is None:
            logger.error("No reward tier found", contract_type=contract_type, stake=stake)
            raise RewardStructureError(
                f"Stake amount {stake} out of valid range for {contract_type}",
                stake=stake, contract_type=contract_type,
            )

        logger.debug("Calculated profit percentage", contract_type=contract_type,
                     stake=stake, reward_percentage=tier.reward_percentage)
        return tier.reward_percentage

    def get_reward_structure(self, contract_type: str) -> tuple[RewardTier, ...]:
        """Full tier list for a contract type."""
        tiers = self._structures.get(contract_type)
        if tiers is None:
            logger.error("No reward structure for contract type", contract_type=contract_type)
            raise RewardStructureError(
                f"No reward structure for {contract_type}", contract_type=contract_type
            )
        return tiers
