"""Type definitions and data models for Chain Prophet."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from web3.types import ChecksumAddress

Address = str  # 0x-prefixed, 40 hex characters
Wei = int


class ErrorCategory(str, Enum):
    """Closed taxonomy of user-facing failure categories."""

    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    MISSING_PARAMETER = "MISSING_PARAMETER"
    NOT_OWNER = "NOT_OWNER"
    AUTHORIZATION_REQUIRED = "AUTHORIZATION_REQUIRED"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    RATE_LIMITED = "RATE_LIMITED"
    SETTLEMENT_UNCONFIRMED = "SETTLEMENT_UNCONFIRMED"
    EXECUTION_REVERTED = "EXECUTION_REVERTED"
    INVALID_STATE = "INVALID_STATE"
    INVALID_TOKEN = "INVALID_TOKEN"
    NETWORK_ERROR = "NETWORK_ERROR"
    PENDING_NOT_FOUND = "PENDING_NOT_FOUND"
    UNKNOWN = "UNKNOWN"


class PendingKind(str, Enum):
    """Independent confirmation state machines kept per session."""

    BALANCE = "balance"
    TRANSFER = "transfer"
    NFT = "nft"

    @property
    def accept_token(self) -> str:
        return f"{self.value}_confirm_yes"

    @property
    def reject_token(self) -> str:
        return f"{self.value}_confirm_no"

    @property
    def prompt_action(self) -> str:
        return f"CONFIRM_{self.name}"

    @property
    def resolution_action(self) -> str:
        return f"HANDLE_{self.name}_CONFIRMATION"


class NftOperation(str, Enum):
    """NFT and loan mutations gated behind the NFT confirmation kind."""

    MINT = "mint"
    LIST = "list"
    BUY = "buy"
    STAKE = "stake"
    UNSTAKE = "unstake"
    CREATE_LOAN = "create_loan"
    FULFILL_LOAN = "fulfill_loan"
    REPAY_LOAN = "repay_loan"


class SettlementStatus(str, Enum):
    """Outcome of waiting for a submitted transaction."""

    CONFIRMED = "confirmed"
    REVERTED = "reverted"
    UNCONFIRMED = "unconfirmed"


class Role(str, Enum):
    USER = "user"
    AGENT = "agent"


@dataclass(frozen=True)
class OperationResult:
    """Structured outcome produced by every operation executor."""

    success: bool
    text: str
    values: Mapping[str, Any] = field(default_factory=dict)
    data: Mapping[str, Any] = field(default_factory=dict)
    error: ErrorCategory | None = None

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise ValueError("A successful result cannot carry an error category")
        if not self.success and self.error is None:
            raise ValueError("A failed result must carry an error category")

    @classmethod
    def ok(
        cls,
        text: str,
        values: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> OperationResult:
        return cls(success=True, text=text, values=dict(values or {}), data=dict(data or {}))

    @classmethod
    def failure(
        cls,
        error: ErrorCategory,
        text: str,
        values: Mapping[str, Any] | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> OperationResult:
        merged = {"error": error.value, **dict(values or {})}
        return cls(success=False, text=text, values=merged, data=dict(data or {}), error=error)


@dataclass(frozen=True)
class PendingRequest:
    """An operation awaiting explicit user confirmation."""

    kind: PendingKind
    created_at: float
    raw_input: str
    resolved_parameters: Mapping[str, Any] = field(default_factory=dict)

    def is_expired(self, now: float, ttl: float) -> bool:
        return ttl > 0 and now - self.created_at > ttl


@dataclass(frozen=True)
class Listing:
    token_id: int
    seller: ChecksumAddress
    price_wei: Wei
    active: bool


@dataclass(frozen=True)
class StakeRecord:
    token_id: int
    staker: ChecksumAddress
    start_time: int
    rewards_wei: Wei


@dataclass(frozen=True)
class Loan:
    loan_id: int
    borrower: ChecksumAddress
    lender: ChecksumAddress
    token_id: int
    loan_amount_wei: Wei
    interest_rate: int
    start_time: int
    due_date: int
    repayment_amount_wei: Wei
    active: bool
    repaid: bool


@dataclass(frozen=True)
class ContractCall:
    """Typed descriptor for a contract read or write."""

    target: ChecksumAddress
    abi: Sequence[Mapping[str, Any]]
    function: str
    args: tuple[Any, ...] = ()
    value: Wei = 0

    @property
    def label(self) -> str:
        return f"{self.function}@{self.target}"


@dataclass(frozen=True)
class ValueTransfer:
    """Plain native-token transfer."""

    to: ChecksumAddress
    value: Wei

    @property
    def label(self) -> str:
        return f"transfer@{self.to}"


RemoteCall = ContractCall | ValueTransfer


@dataclass(frozen=True)
class TransactionHandle:
    tx_hash: str
    endpoint: str
    submitted_at: float
    label: str = ""


@dataclass(frozen=True)
class Settlement:
    status: SettlementStatus
    tx_hash: str
    block_number: int | None = None
    gas_used: int | None = None
    receipt: Mapping[str, Any] | None = None
    error: str | None = None


@dataclass(frozen=True)
class TextSignal:
    text: str


@dataclass(frozen=True)
class CallbackSignal:
    """A button press; the token stands in for the text it represents."""

    token: str


InboundSignal = TextSignal | CallbackSignal


@dataclass(frozen=True)
class Affordance:
    label: str
    token: str


@dataclass(frozen=True)
class Reply:
    """Outbound message delivered through the reply callback."""

    text: str
    affordances: tuple[Affordance, ...] = ()
    actions: tuple[str, ...] = ()
    result: OperationResult | None = None


@dataclass(frozen=True)
class HistoryEntry:
    """One stored conversation message as exposed by the history collaborator."""

    text: str
    role: Role
    created_at: float
    actions: tuple[str, ...] = ()
    affordance_tokens: tuple[str, ...] = ()

    @classmethod
    def from_reply(cls, reply: Reply, created_at: float) -> HistoryEntry:
        return cls(
            text=reply.text,
            role=Role.AGENT,
            created_at=created_at,
            actions=reply.actions,
            affordance_tokens=tuple(item.token for item in reply.affordances),
        )
