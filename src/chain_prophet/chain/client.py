"""Failover-aware chain access client."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from typing import Any

from web3 import Web3
from web3.exceptions import ContractLogicError
from web3.types import ChecksumAddress

from ..base import ChainAccess
from ..config import ChainClientConfig
from ..types import (
    ContractCall,
    RemoteCall,
    Settlement,
    SettlementStatus,
    TransactionHandle,
    ValueTransfer,
)
from ..utils import normalise_address, serialise_receipt
from .account import Account
from .connections import Web3Connections
from .endpoints import EndpointPool, Failover
from .transactions import TransactionDispatcher

logger = logging.getLogger(__name__)


class ChainClient(ChainAccess):
    """Read and write calls spread across a pool of interchangeable endpoints.

    Every remote call goes through :class:`Failover`, so a rate-limited node
    is swapped for the next one without the caller noticing. Writes are
    signed once by the injected :class:`Account` and the same raw bytes are
    rebroadcast on retries.
    """

    def __init__(
        self,
        config: ChainClientConfig,
        account: Account,
        *,
        connections: Web3Connections | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ):
        self.config = config
        self._account = account
        self._connections = connections or Web3Connections(config, EndpointPool(config.rpc_urls))
        self._failover = Failover(
            self._connections.pool,
            max_attempts=config.max_failover_attempts,
            backoff=config.failover_backoff,
            sleep=sleep,
        )
        self._dispatcher = TransactionDispatcher(
            self._connections, self._failover, account, clock=clock
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    @property
    def address(self) -> ChecksumAddress:
        return self._account.address

    @property
    def failover(self) -> Failover:
        return self._failover

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def query(self, call: ContractCall) -> Any:
        def _call(url: str) -> Any:
            contract = self._connections.contract_for(url, call.target, call.abi)
            function = getattr(contract.functions, call.function)(*call.args)
            return function.call({"from": self.address})

        logger.debug("Querying %s args=%s", call.label, call.args)
        return self._failover.run(_call, label=call.label)

    def get_balance(self, address: str) -> int:
        target = normalise_address(address)
        return int(
            self._failover.run(
                lambda url: self._connections.web3_for(url).eth.get_balance(target),
                label="get_balance",
            )
        )

    def gas_price(self) -> int:
        try:
            return int(
                self._failover.run(
                    lambda url: self._connections.web3_for(url).eth.gas_price,
                    label="gas_price",
                )
            )
        except Exception as exc:
            logger.warning(
                "Gas price lookup failed (%s); using default %s wei",
                exc,
                self.config.default_gas_price,
            )
            return self.config.default_gas_price

    def estimate_gas(self, tx: Mapping[str, Any], fallback: int) -> int:
        """Estimate gas for ``tx``; contract reverts propagate, anything else falls back."""
        try:
            return int(
                self._failover.run(
                    lambda url: self._connections.web3_for(url).eth.estimate_gas(dict(tx)),
                    label="estimate_gas",
                )
            )
        except ContractLogicError:
            raise
        except Exception as exc:
            logger.warning("Gas estimation failed (%s); using fallback %s", exc, fallback)
            return fallback

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def build_transaction(self, call: RemoteCall) -> dict[str, Any]:
        """Assemble an unsigned transaction with fee and gas limit filled in."""

        if isinstance(call, ValueTransfer):
            tx: dict[str, Any] = {
                "from": self.address,
                "to": normalise_address(call.to, field="to"),
                "value": int(call.value),
            }
            fallback = self.config.transfer_gas_limit
        else:
            contract = self._connections.contract_for(
                self._failover.pool.current(), call.target, call.abi
            )
            tx = {
                "from": self.address,
                "to": Web3.to_checksum_address(call.target),
                "value": int(call.value),
                "data": contract.encode_abi(call.function, args=list(call.args)),
            }
            fallback = self.config.contract_gas_limit

        tx["gas"] = self.estimate_gas(tx, fallback)
        tx["gasPrice"] = self.gas_price()
        tx["chainId"] = self.config.chain_id
        return tx

    def submit(self, call: RemoteCall) -> TransactionHandle:
        tx = self.build_transaction(call)
        return self._dispatcher.send(tx, label=call.label)

    def wait_for_settlement(
        self, handle: TransactionHandle, timeout: float | None = None
    ) -> Settlement:
        """Wait for a receipt; never raises, timeouts yield ``UNCONFIRMED``."""

        limit = self.config.receipt_timeout if timeout is None else timeout
        try:
            receipt = self._failover.run(
                lambda url: self._connections.web3_for(url).eth.wait_for_transaction_receipt(
                    handle.tx_hash, timeout=limit
                ),
                label=f"receipt:{handle.label or handle.tx_hash}",
            )
        except Exception as exc:
            logger.warning("Settlement of %s unconfirmed: %s", handle.tx_hash, exc)
            return Settlement(
                status=SettlementStatus.UNCONFIRMED, tx_hash=handle.tx_hash, error=str(exc)
            )

        block_number = _field(receipt, "blockNumber")
        gas_used = _field(receipt, "gasUsed")
        status = _field(receipt, "status")
        serialised = serialise_receipt(receipt)
        if status == 0:
            logger.warning("Transaction %s reverted in block %s", handle.tx_hash, block_number)
            return Settlement(
                status=SettlementStatus.REVERTED,
                tx_hash=handle.tx_hash,
                block_number=block_number,
                gas_used=gas_used,
                receipt=serialised,
                error="execution reverted",
            )

        logger.info("Transaction %s confirmed in block %s", handle.tx_hash, block_number)
        return Settlement(
            status=SettlementStatus.CONFIRMED,
            tx_hash=handle.tx_hash,
            block_number=block_number,
            gas_used=gas_used,
            receipt=serialised,
        )


def _field(receipt: Any, name: str) -> Any:
    if isinstance(receipt, Mapping):
        return receipt.get(name)
    return getattr(receipt, name, None)
