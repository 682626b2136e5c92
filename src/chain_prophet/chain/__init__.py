"""Chain access layer: signing account, endpoint failover and the client."""

from .account import Account, derive_address
from .client import ChainClient
from .connections import Web3Connections
from .endpoints import EndpointPool, Failover, is_rate_limited
from .transactions import TransactionDispatcher

__all__ = [
    "Account",
    "ChainClient",
    "EndpointPool",
    "Failover",
    "TransactionDispatcher",
    "Web3Connections",
    "derive_address",
    "is_rate_limited",
]
