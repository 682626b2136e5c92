"""Transaction dispatch helpers for the chain access client."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from ..exceptions import NetworkError
from ..types import TransactionHandle
from .account import Account
from .connections import Web3Connections
from .endpoints import Failover

logger = logging.getLogger(__name__)

ALREADY_KNOWN_MARKERS = ("already known", "known transaction")


def is_already_known(exc: BaseException) -> bool:
    text = str(exc).lower()
    return any(marker in text for marker in ALREADY_KNOWN_MARKERS)


class TransactionDispatcher:
    """Sign a transaction once and broadcast the same bytes through failover."""

    def __init__(
        self,
        connections: Web3Connections,
        failover: Failover,
        account: Account,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._connections = connections
        self._failover = failover
        self._account = account
        self._clock = clock

    def next_nonce(self) -> int:
        address = self._account.address
        return self._failover.run(
            lambda url: self._connections.web3_for(url).eth.get_transaction_count(
                address, "pending"
            ),
            label="nonce",
        )

    def send(self, tx: Mapping[str, Any], *, label: str) -> TransactionHandle:
        """Sign ``tx`` (nonce filled in when absent) and broadcast it."""

        payload = dict(tx)
        payload.setdefault("from", self._account.address)
        if "nonce" not in payload:
            payload["nonce"] = self.next_nonce()

        raw, tx_hash = self._account.sign_transaction(payload)
        logger.info("Dispatching %s nonce=%s hash=%s", label, payload["nonce"], tx_hash)

        used: dict[str, str] = {}

        def _broadcast(url: str) -> str:
            used["endpoint"] = url
            web3 = self._connections.web3_for(url)
            try:
                sent = web3.eth.send_raw_transaction(raw)
            except Exception as exc:
                if is_already_known(exc):
                    logger.info("Endpoint %s already knows %s; treating as submitted", url, tx_hash)
                    return tx_hash
                raise
            return sent.to_0x_hex() if hasattr(sent, "to_0x_hex") else str(sent)

        try:
            sent_hash = self._failover.run(_broadcast, label=label)
        except Exception as exc:
            raise NetworkError(
                f"Failed to submit transaction: {exc}",
                endpoint=used.get("endpoint"),
                details={"label": label, "tx_hash": tx_hash, "error": str(exc)},
            ) from exc

        if sent_hash.lower() != tx_hash.lower():
            logger.warning("Node returned hash %s for locally signed %s", sent_hash, tx_hash)

        logger.info("Transaction sent for %s hash=%s", label, tx_hash)
        return TransactionHandle(
            tx_hash=tx_hash,
            endpoint=used.get("endpoint", self._failover.pool.current()),
            submitted_at=self._clock(),
            label=label,
        )
