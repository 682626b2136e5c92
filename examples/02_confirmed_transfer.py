"""Example: Send Sepolia ETH after an explicit confirmation."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from chain_prophet import ChainProphet, InboundMessage, Reply, Settings, TextSignal

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

SESSION = "example-transfer"
AMOUNT = "0.001"


def show(reply: Reply) -> None:
    print(reply.text)
    print("-" * 40)


def main() -> None:
    """Request a transfer, review the prompt and confirm it from the terminal."""

    recipient = os.getenv("TRANSFER_RECIPIENT")
    if not recipient:
        raise ValueError("TRANSFER_RECIPIENT not found in environment variables")

    agent = ChainProphet.from_settings(Settings.from_env())
    agent.handle(InboundMessage(SESSION, TextSignal(f"send {AMOUNT} ETH to {recipient}")), show)

    answer = input("Reply (yes/no): ").strip() or "no"
    result = agent.handle(InboundMessage(SESSION, TextSignal(answer)), show)

    if result is None:
        print("Nothing was pending")
    elif result.success:
        print(f"Outcome: {result.values.get('status') or result.values.get('settlement')}")
    else:
        print(f"Transfer failed ({result.error.value})")


if __name__ == "__main__":
    main()
