#!/usr/bin/env python3
"""Run one trading session against the paper broker.

Usage:
    python scripts/run_paper_session.py [CONTRACT_TAG] [--seed N] [--json]

The session comes from the "session" block of config/engine.yaml; the
contract tag on the command line overrides its contract_type.
"""

import argparse
import asyncio
import random
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from digitbot.config.loader import ConfigLoader
from digitbot.logging import configure_logging
from digitbot.notifications import StdoutNotificationSink
from digitbot.config.notifications import StdoutSinkConfig
from digitbot.paper import PaperBroker, PaperExecutor
from digitbot.persistence import InMemoryTradeStore
from digitbot.rewards import RewardCalculator
from digitbot.session import SessionController


async def run(contract_tag: str, seed: int, json_output: bool) -> int:
    loader = ConfigLoader.create()
    settings = loader.load_settings()
    session = loader.load_session_template()
    if contract_tag:
        session["contract_type"] = contract_tag

    rng = random.Random(seed)
    calculator = RewardCalculator(stake_limits=settings.stake_limits)
    broker = PaperBroker(start_balance=10000.0, currency=session.get("currency", "USD"))
    executor = PaperExecutor(broker, reward_calculator=calculator, rng=rng)
    storage = InMemoryTradeStore()
    sink = StdoutNotificationSink(config=StdoutSinkConfig(format="json" if json_output else "pretty"))

    controller = SessionController(
        connector=broker,
        account_provider=broker,
        executor=executor,
        messaging=sink,
        storage=storage,
        settings=settings,
        reward_calculator=calculator,
    )

    await controller.start_trading(session, account_token="paper-token", session_id="paper-1", session_seq=1)

    print(f"\n📊 {len(storage.trades)} trades stored")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Run a paper trading session")
    parser.add_argument("contract_tag", nargs="?", default="", help="Contract tag, e.g. DIGITOVER_4")
    parser.add_argument("--seed", type=int, default=7, help="Random seed for the simulated ticks")
    parser.add_argument("--json", action="store_true", help="Emit JSON logs and notifications")
    args = parser.parse_args()

    configure_logging(level="INFO", format_json=args.json)
    sys.exit(asyncio.run(run(args.contract_tag, args.seed, args.json)))


if __name__ == "__main__":
    main()
