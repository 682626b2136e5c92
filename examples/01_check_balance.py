"""Example: Look up the agent wallet balance through the confirmation flow."""

from __future__ import annotations

import logging

from dotenv import load_dotenv

from chain_prophet import ChainProphet, InboundMessage, Reply, Settings, TextSignal

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

SESSION = "example-balance"


def show(reply: Reply) -> None:
    print(reply.text)
    if reply.affordances:
        print("Buttons:", ", ".join(f"{item.label} [{item.token}]" for item in reply.affordances))
    print("-" * 40)


def main() -> None:
    """Ask for the balance, then press the confirm button."""

    agent = ChainProphet.from_settings(Settings.from_env())

    agent.handle(InboundMessage(SESSION, TextSignal("what's my balance?")), show)
    result = agent.handle(InboundMessage(SESSION, TextSignal("balance_confirm_yes")), show)

    if result is not None and result.success:
        print(f"Balance: {result.values['balance']} ETH")


if __name__ == "__main__":
    main()
