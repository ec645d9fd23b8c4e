#!/usr/bin/env python3
"""
Basic Usage Example - digitbot trading engine

This script demonstrates the basic usage of the engine against the paper
broker. It shows how to:
- Look up payout percentages from the reward tables
- Drive the 1-3-2-6 recovery sequencer by hand
- Run a complete session through the session controller

Run: python examples/basic_usage.py
"""

import asyncio
import random

from digitbot.logging import configure_logging
from digitbot.notifications import Notification
from digitbot.paper import PaperBroker, PaperExecutor
from digitbot.persistence import InMemoryTradeStore
from digitbot.recovery import RecoveryParams, RecoverySequencer
from digitbot.rewards import RewardCalculator
from digitbot.session import SessionController


class PrintingSink:
    """Minimal messaging sink: anything with deliver() works."""

    def deliver(self, notification: Notification) -> None:
        print(f"\n[{notification.action}]\n{notification.text}")


def show_reward_tables() -> None:
    """Print the payout percentage for a few stakes."""
    print("💰 Reward tables")
    calculator = RewardCalculator()
    for contract_type in ("DIGITDIFF", "DIGITEVEN", "DIGITOVER_4"):
        for stake in (0.35, 1.0, 12.75, 2000.0):
            pct = calculator.calculate_profit_percentage(contract_type, stake)
            print(f"   {contract_type:<12} stake {stake:>8.2f} -> {pct:.2f}%")


def walk_sequencer() -> None:
    """Feed a fixed win/loss pattern through the sequencer."""
    print("\n🔁 1-3-2-6 sequencer")
    sequencer = RecoverySequencer(RecoveryParams(initial_stake=1.0), rng=random.Random(1))

    for outcome in (True, True, False, True, True, True, True):
        decision = sequencer.prepare_for_next_trade()
        if not decision.should_trade:
            print(f"   refused: {decision.reason}")
            break
        profit = round(decision.amount * 0.09, 2) if outcome else -decision.amount
        sequencer.update_state(outcome, profit)
        state = sequencer.state
        print(f"   stake {decision.amount:>6.2f} barrier {decision.prediction} "
              f"{'WIN ' if outcome else 'LOSS'} profit {profit:+.2f} "
              f"position {state.position} recovery {state.in_recovery}")


async def run_paper_session() -> None:
    """Run one DIGITDIFF session until take profit or stop loss."""
    print("\n🚀 Paper session")
    broker = PaperBroker(start_balance=1000.0)
    storage = InMemoryTradeStore()
    controller = SessionController(
        connector=broker,
        account_provider=broker,
        executor=PaperExecutor(broker, rng=random.Random(7)),
        messaging=PrintingSink(),
        storage=storage,
    )

    await controller.start_trading(
        {
            "account_type": "demo",
            "trading_type": "digits",
            "trading_mode": "auto",
            "market": "R_100",
            "contract_type": "DIGITDIFF",
            "base_stake": 1.0,
            "take_profit": 2.0,
            "stop_loss": 20.0,
        },
        account_token="example-token",
        session_id="example-1",
        session_seq=1,
    )
    print(f"\n📊 {len(storage.trades)} trades stored, final balance "
          f"{broker.accounts['example-token'].balance:.2f}")


def main():
    configure_logging(level="WARNING")
    show_reward_tables()
    walk_sequencer()
    asyncio.run(run_paper_session())


if __name__ == "__main__":
    main()
