"""Example: Stake an NFT, letting the agent approve the staking contract first."""

from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from chain_prophet import CallbackSignal, ChainProphet, InboundMessage, Reply, Settings, TextSignal

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

SESSION = "example-nft"


def show(reply: Reply) -> None:
    print(reply.text)
    print("-" * 40)


def main() -> None:
    """Stake a token, then print its staking record."""

    token_id = int(os.getenv("NFT_TOKEN_ID", "1"))
    agent = ChainProphet.from_settings(Settings.from_env())

    agent.handle(InboundMessage(SESSION, TextSignal(f"stake NFT #{token_id}")), show)
    result = agent.handle(InboundMessage(SESSION, CallbackSignal("nft_confirm_yes")), show)
    if result is None or not result.success:
        return

    info = agent.nft.staking(token_id)
    print(info.text)


if __name__ == "__main__":
    main()
