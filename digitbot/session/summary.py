"""Plain-text session summaries for the messaging sink."""

from datetime import datetime
from typing import Iterable, Optional

from ..models.account import Account
from ..models.aggregate import RunningAggregate
from ..models.session import SessionConfig
from ..models.trade import TradeResult
from ..utils.time import format_elapsed


def calculate_total_loss(trades: Iterable[TradeResult]) -> float:
    """Sum of the losses of all losing trades, as a positive amount."""
    return sum(-trade.signed_profit for trade in trades if trade.signed_profit < 0)


def _table(rows: list[tuple[str, str]]) -> str:
    width = max(len(label) for label, _ in rows)
    return "\n".join(f"{label.ljust(width)}  {value}" for label, value in rows)


def build_session_table(
    aggregate: RunningAggregate,
    session: SessionConfig,
    account: Optional[Account],
    started_at: Optional[datetime],
    now: datetime,
) -> str:
    """Key/value table of the running statistics."""
    currency = session.currency
    elapsed = (now - started_at).total_seconds() if started_at else 0.0

    rows = [
        ("Account", f"{account.login_id} ({account.currency})" if account else "-"),
        ("Balance", f"{currency} {account.balance:.2f}" if account else "-"),
        ("Market", session.market),
        ("Contract", session.contract_type),
        ("Elapsed", format_elapsed(elapsed)),
        ("Runs", str(aggregate.runs)),
        ("Wins / Losses", f"{aggregate.wins} / {aggregate.losses}"),
        ("Win rate", f"{aggregate.win_rate * 100:.1f}%"),
        ("Total stake", f"{currency} {aggregate.total_stake:.2f}"),
        ("Total payout", f"{currency} {aggregate.total_payout:.2f}"),
        ("Total profit", f"{currency} {aggregate.total_profit:.2f}"),
        ("Gained / Lost", f"{currency} {aggregate.total_gained:.2f} / {currency} {aggregate.total_lost:.2f}"),
        ("Highest stake", f"{currency} {aggregate.highest_stake_invested:.2f}"),
        ("Highest profit", f"{currency} {aggregate.highest_profit_achieved:.2f}"),
        ("Take profit", f"{currency} {session.take_profit:.2f}"),
        ("Stop loss", f"{currency} {session.stop_loss:.2f}"),
    ]
    return _table(rows)


def build_audit_table(aggregate: RunningAggregate, limit: Optional[int] = None) -> str:
    """One line per run: key, stake and signed profit."""
    entries = aggregate.recent_audit_entries(limit)
    if not entries:
        return "No trades"
    rows = [(entry.key, f"stake {entry.stake:.2f}  profit {entry.profit:+.2f}") for entry in entries]
    return _table(rows)


def build_trading_summary(
    aggregate: RunningAggregate,
    session: SessionConfig,
    account: Optional[Account],
    started_at: Optional[datetime],
    now: datetime,
    audit_limit: Optional[int] = 20,
) -> str:
    """Statistics table followed by the most recent audit entries."""
    return "\n\n".join([
        "Trading summary",
        build_session_table(aggregate, session, account, started_at, now),
        "Recent runs",
        build_audit_table(aggregate, audit_limit),
    ])
