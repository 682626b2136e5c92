"""Shared test doubles for the chain access layer."""

from collections.abc import Mapping
from typing import Any

import pytest

from chain_prophet.base import ChainAccess
from chain_prophet.config import ContractAddresses
from chain_prophet.types import (
    ContractCall,
    RemoteCall,
    Settlement,
    SettlementStatus,
    TransactionHandle,
)


class FakeChain(ChainAccess):
    """In-memory ChainAccess: contract reads are scripted per function name."""

    def __init__(
        self,
        address: str = "0x1111111111111111111111111111111111111111",
        balance: int = 10**18,
        gas_price: int = 10**9,
    ):
        self._address = address
        self.balance = balance
        self.price = gas_price
        self.reads: dict[str, Any] = {}
        self.queries: list[ContractCall] = []
        self.submitted: list[RemoteCall] = []
        self.submit_errors: list[Exception] = []
        self.settlement = SettlementStatus.CONFIRMED
        self.receipt: dict[str, Any] = {"status": 1, "logs": []}
        self.balance_requests: list[str] = []

    @property
    def address(self):
        return self._address

    def query(self, call: ContractCall) -> Any:
        self.queries.append(call)
        handler = self.reads[call.function]
        if isinstance(handler, Exception):
            raise handler
        return handler(*call.args) if callable(handler) else handler

    def submit(self, call: RemoteCall) -> TransactionHandle:
        self.submitted.append(call)
        if self.submit_errors:
            raise self.submit_errors.pop(0)
        return TransactionHandle(
            tx_hash=f"0x{len(self.submitted):064x}",
            endpoint="https://rpc.test",
            submitted_at=0.0,
            label=call.label,
        )

    def get_balance(self, address: str) -> int:
        self.balance_requests.append(address)
        return self.balance

    def gas_price(self) -> int:
        return self.price

    def estimate_gas(self, tx: Mapping[str, Any], fallback: int) -> int:
        return fallback

    def wait_for_settlement(
        self, handle: TransactionHandle, timeout: float | None = None
    ) -> Settlement:
        if self.settlement is SettlementStatus.UNCONFIRMED:
            return Settlement(status=self.settlement, tx_hash=handle.tx_hash, error="timed out")
        return Settlement(
            status=self.settlement,
            tx_hash=handle.tx_hash,
            block_number=100,
            gas_used=21000,
            receipt=self.receipt,
        )

    def calls_to(self, function: str) -> list[ContractCall]:
        return [
            call
            for call in self.submitted
            if isinstance(call, ContractCall) and call.function == function
        ]


class Clock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def contracts() -> ContractAddresses:
    return ContractAddresses(
        nft="0x3333333333333333333333333333333333333333",
        marketplace="0x4444444444444444444444444444444444444444",
        staking="0x5555555555555555555555555555555555555555",
        loan="0x6666666666666666666666666666666666666666",
    )
