"""Map raw chain and library failures onto the closed error taxonomy."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .exceptions import (
    AuthorizationRequiredError,
    InsufficientBalanceError,
    InvalidStateError,
    NetworkError,
    NotOwnerError,
    ValidationError,
)
from .types import ErrorCategory
from .utils import RATE_LIMIT_RE, decode_revert_reason

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ErrorAnalysis:
    category: ErrorCategory
    reason: str
    suggestion: str
    user_message: str
    raw: str


@dataclass(frozen=True)
class _Rule:
    category: ErrorCategory
    markers: tuple[str, ...]
    headline: str
    reason: str
    suggestion: str
    pattern: re.Pattern[str] | None = None

    def matches(self, raw: str) -> bool:
        if self.pattern is not None and self.pattern.search(raw):
            return True
        lowered = raw.lower()
        return any(marker in lowered for marker in self.markers)


# First match wins; markers are compared case-insensitively.
_RULES: tuple[_Rule, ...] = (
    _Rule(
        ErrorCategory.AUTHORIZATION_REQUIRED,
        (
            "0x177e802f",
            "erc721insufficientapproval",
            "insufficient approval",
            "caller is not token owner or approved",
            "not authorized",
            "未授权",
        ),
        "authorization missing",
        "The NFT has not been approved for the contract that needs to move it.",
        "Approve the NFT for the contract, wait for the approval to be mined, then retry.",
    ),
    _Rule(
        ErrorCategory.NOT_OWNER,
        ("not the owner", "not owner", "ownableunauthorizedaccount", "不是所有者"),
        "not the owner",
        "The signing account does not own this NFT or contract.",
        "Check the token id and make sure the NFT is held by the agent wallet.",
    ),
    _Rule(
        ErrorCategory.INSUFFICIENT_BALANCE,
        ("insufficient funds", "insufficient balance", "balance too low", "余额不足"),
        "insufficient balance",
        "The account cannot cover the amount plus gas fees.",
        "Top up the wallet with enough ETH for the amount and gas, then retry.",
    ),
    _Rule(
        ErrorCategory.INVALID_STATE,
        ("already listed", "already staked", "not listed", "已上架", "已质押"),
        "NFT state conflict",
        "The NFT is not in a state that allows this operation.",
        "Check whether the NFT is already listed or staked and adjust before retrying.",
    ),
    _Rule(
        ErrorCategory.INVALID_TOKEN,
        ("invalid tokenid", "token does not exist", "erc721nonexistenttoken", "nft not found"),
        "unknown token",
        "The token id is invalid or the NFT does not exist.",
        "Verify the token id refers to a minted NFT.",
    ),
    _Rule(
        ErrorCategory.INVALID_AMOUNT,
        ("invalid price", "price too low", "价格无效", "价格过低"),
        "invalid price",
        "The price or amount was rejected by the contract.",
        "Use a positive ETH amount such as 0.1 or 1.5.",
    ),
    _Rule(
        ErrorCategory.RATE_LIMITED,
        (),
        "node rate limited",
        "Every configured RPC endpoint is rate limiting requests.",
        "Wait a moment and retry, or configure an additional RPC endpoint.",
        pattern=RATE_LIMIT_RE,
    ),
    _Rule(
        ErrorCategory.EXECUTION_REVERTED,
        ("execution reverted", "revert", "gas"),
        "transaction reverted",
        "The contract rejected the call while executing it.",
        "Check the NFT state and the operation parameters, then retry.",
    ),
    _Rule(
        ErrorCategory.NETWORK_ERROR,
        ("timeout", "timed out", "connection", "network"),
        "network problem",
        "The blockchain node could not be reached.",
        "Check connectivity and the RPC endpoints, then retry.",
    ),
)

_TYPED_CATEGORIES = (
    NotOwnerError,
    AuthorizationRequiredError,
    InsufficientBalanceError,
    InvalidStateError,
    ValidationError,
)


def _collect_text(error: BaseException | str) -> str:
    if isinstance(error, str):
        return error

    parts: list[str] = []
    seen: set[int] = set()
    current: BaseException | None = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        parts.append(str(current))
        message = getattr(current, "message", None)
        if isinstance(message, str) and message not in parts:
            parts.append(message)
        decoded = decode_revert_reason(getattr(current, "data", None))
        if decoded:
            parts.append(decoded)
        current = current.__cause__ or current.__context__
    return " | ".join(part for part in parts if part)


def _compose(operation: str, rule: _Rule) -> str:
    return (
        f"{operation} failed: {rule.headline}\n\n"
        f"Reason: {rule.reason}\n\n"
        f"What to do: {rule.suggestion}"
    )


class ErrorClassifier:
    """Stateless classifier; :meth:`classify` has no side effects besides logging."""

    def classify(self, error: BaseException | str, operation: str) -> ErrorAnalysis:
        raw = _collect_text(error)
        logger.debug("Classifying %s error: %s", operation, raw)

        if isinstance(error, _TYPED_CATEGORIES):
            return ErrorAnalysis(
                category=error.category,
                reason=error.message,
                suggestion="",
                user_message=f"{operation} failed: {error.message}",
                raw=raw,
            )

        for rule in _RULES:
            if rule.matches(raw):
                return ErrorAnalysis(
                    category=rule.category,
                    reason=rule.reason,
                    suggestion=rule.suggestion,
                    user_message=_compose(operation, rule),
                    raw=raw,
                )

        if isinstance(error, NetworkError):
            return ErrorAnalysis(
                category=ErrorCategory.NETWORK_ERROR,
                reason=error.message,
                suggestion="Check connectivity and the RPC endpoints, then retry.",
                user_message=f"{operation} failed: {error.message}",
                raw=raw,
            )

        return ErrorAnalysis(
            category=ErrorCategory.UNKNOWN,
            reason=raw or "unknown failure",
            suggestion="Check the parameters and network status, then retry.",
            user_message=f"{operation} failed\n\nError: {raw or 'unknown failure'}",
            raw=raw,
        )

    def is_authorization_error(self, error: BaseException | str) -> bool:
        if isinstance(error, AuthorizationRequiredError):
            return True
        if isinstance(error, _TYPED_CATEGORIES):
            return False
        return self.classify(error, "check").category is ErrorCategory.AUTHORIZATION_REQUIRED
