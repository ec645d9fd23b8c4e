"""Running session statistics."""

from dataclasses import dataclass, field, fields
from typing import Any, Iterator, Optional

from .trade import TradeResult


@dataclass(frozen=True)
class AuditEntry:
    """Stake and signed profit of one run."""
    run: int
    stake: float
    profit: float

    @property
    def key(self) -> str:
        return f"R00{self.run}"


@dataclass(frozen=True)
class _AuditLink:
    entry: AuditEntry
    previous: Optional["_AuditLink"] = None


@dataclass(frozen=True)
class RunningAggregate:
    """
    Cumulative statistics for one session.

    Replaced wholesale after every trade; a fresh instance is the zero state.
    Aggregates share their audit history, so folding a trade never copies it.
    """
    total_profit: float = 0.0
    total_stake: float = 0.0
    total_payout: float = 0.0
    runs: int = 0
    wins: int = 0
    losses: int = 0
    consecutive_losses: int = 0
    total_gained: float = 0.0
    total_lost: float = 0.0
    highest_stake_invested: float = 0.0
    highest_profit_achieved: float = 0.0
    _last_audit: Optional[_AuditLink] = field(default=None, repr=False, compare=False)

    def with_trade(self, result: TradeResult) -> "RunningAggregate":
        """Fold one settled trade into a new aggregate."""
        run = self.runs + 1
        profit = result.signed_profit
        total_profit = self.total_profit + profit

        return RunningAggregate(
            total_profit=total_profit,
            total_stake=self.total_stake + result.buy_price,
            total_payout=self.total_payout + result.sell_price,
            runs=run,
            wins=self.wins + (1 if result.is_win else 0),
            losses=self.losses + (0 if result.is_win else 1),
            consecutive_losses=0 if result.is_win else self.consecutive_losses + 1,
            total_gained=self.total_gained + (profit if profit > 0 else 0.0),
            total_lost=self.total_lost + (-profit if profit < 0 else 0.0),
            highest_stake_invested=max(self.highest_stake_invested, result.buy_price),
            highest_profit_achieved=max(self.highest_profit_achieved, total_profit),
            _last_audit=_AuditLink(AuditEntry(run, result.buy_price, profit), self._last_audit),
        )

    def _audit_newest_first(self) -> Iterator[AuditEntry]:
        link = self._last_audit
        while link is not None:
            yield link.entry
            link = link.previous

    def recent_audit_entries(self, limit: Optional[int] = None) -> tuple[AuditEntry, ...]:
        """The last limit entries (all when limit is None), oldest first."""
        entries = []
        for entry in self._audit_newest_first():
            if limit is not None and len(entries) >= limit:
                break
            entries.append(entry)
        return tuple(reversed(entries))

    @property
    def audit_trail(self) -> tuple[AuditEntry, ...]:
        return self.recent_audit_entries()

    @property
    def win_rate(self) -> float:
        return self.wins / self.runs if self.runs else 0.0

    def to_dict(self) -> dict[str, Any]:
        """Counters and totals, without the audit history."""
        return {f.name: getattr(self, f.name) for f in fields(self) if f.name != "_last_audit"}
