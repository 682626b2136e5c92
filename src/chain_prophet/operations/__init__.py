"""Operation executors returning ``OperationResult`` values."""

from .balance import BalanceExecutor
from .base import Notify, OperationExecutor
from .nft import NftExecutor
from .transfer import TransferExecutor

__all__ = [
    "BalanceExecutor",
    "NftExecutor",
    "Notify",
    "OperationExecutor",
    "TransferExecutor",
]
