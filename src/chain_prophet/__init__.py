"""Chain Prophet - confirmation-gated on-chain operations for conversational agents.

The package combines a two-phase confirmation engine with a failover-aware
EVM access layer, ownership and approval checks, and an error classifier
that turns raw node failures into actionable messages.
"""

from .agent import ChainProphet
from .base import ChainAccess
from .chain import Account, ChainClient, EndpointPool, Failover
from .classifier import ErrorAnalysis, ErrorClassifier
from .config import ChainClientConfig, ContractAddresses, EngineConfig, Settings
from .confirmation import ConfirmationEngine, InboundMessage, InMemoryHistory
from .exceptions import (
    AuthorizationRequiredError,
    ChainProphetError,
    ConfigurationError,
    InsufficientBalanceError,
    InvalidAddressError,
    InvalidAmountError,
    InvalidStateError,
    MissingParameterError,
    NetworkError,
    NotOwnerError,
    ValidationError,
)
from .types import (
    Affordance,
    CallbackSignal,
    ErrorCategory,
    NftOperation,
    OperationResult,
    PendingKind,
    PendingRequest,
    Reply,
    SettlementStatus,
    TextSignal,
)

__version__ = "0.1.0"

__all__ = [
    # Facade
    "ChainProphet",
    # Chain access
    "Account",
    "ChainAccess",
    "ChainClient",
    "EndpointPool",
    "Failover",
    # Confirmation
    "ConfirmationEngine",
    "InboundMessage",
    "InMemoryHistory",
    # Configuration
    "ChainClientConfig",
    "ContractAddresses",
    "EngineConfig",
    "Settings",
    # Types
    "Affordance",
    "CallbackSignal",
    "ErrorAnalysis",
    "ErrorCategory",
    "ErrorClassifier",
    "NftOperation",
    "OperationResult",
    "PendingKind",
    "PendingRequest",
    "Reply",
    "SettlementStatus",
    "TextSignal",
    # Exceptions
    "ChainProphetError",
    "ConfigurationError",
    "ValidationError",
    "InvalidAddressError",
    "InvalidAmountError",
    "MissingParameterError",
    "NetworkError",
    "NotOwnerError",
    "AuthorizationRequiredError",
    "InsufficientBalanceError",
    "InvalidStateError",
]
