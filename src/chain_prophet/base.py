"""Chain access interface shared by the client and test doubles."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from web3.types import ChecksumAddress

from .types import ContractCall, RemoteCall, Settlement, TransactionHandle


class ChainAccess(ABC):
    """Read and write access to a remote EVM node."""

    @property
    @abstractmethod
    def address(self) -> ChecksumAddress:
        pass

    @abstractmethod
    def query(self, call: ContractCall) -> Any:
        pass

    @abstractmethod
    def submit(self, call: RemoteCall) -> TransactionHandle:
        pass

    @abstractmethod
    def get_balance(self, address: str) -> int:
        pass

    @abstractmethod
    def gas_price(self) -> int:
        pass

    @abstractmethod
    def estimate_gas(self, tx: Mapping[str, Any], fallback: int) -> int:
        pass

    @abstractmethod
    def wait_for_settlement(
        self, handle: TransactionHandle, timeout: float | None = None
    ) -> Settlement:
        pass
