"""Pull operation parameters out of free-form chat text."""

from __future__ import annotations

import logging
import re
from typing import Any

from ..chain.account import derive_address
from ..constants import LOAN_DEFAULT_DAYS, LOAN_MAX_DAYS, LOAN_MIN_DAYS
from ..exceptions import (
    InvalidAddressError,
    InvalidAmountError,
    MissingParameterError,
    ValidationError,
)
from ..types import NftOperation, PendingKind
from ..utils import normalise_address, parse_eth_amount

logger = logging.getLogger(__name__)

# A 40-hex address never matches inside a longer hex run such as a 64-hex key.
ADDRESS_RE = re.compile(r"(?<![0-9a-zA-Z])0x[a-fA-F0-9]{40}(?![0-9a-zA-Z])")
PRIVATE_KEY_RE = re.compile(r"(?<![0-9a-zA-Z])0x[a-fA-F0-9]{64}(?![0-9a-zA-Z])")
HEX_TOKEN_RE = re.compile(r"(?<![0-9a-zA-Z])0x[0-9a-zA-Z]+")
LIST_ENTRY_RE = re.compile(
    r"([^\s（(]+)[（(]\s*(0x[a-fA-F0-9]{40})\s*\+\s*(whitelist|blacklist)\s*[）)]",
    re.IGNORECASE,
)

_NUMBER = r"(\d+(?:\.\d+)?)"
ETH_AMOUNT_RE = re.compile(r"(?<![#\d.])" + _NUMBER + r"\s*(?:eth|ether|以太坊)", re.IGNORECASE)
TRANSFER_AMOUNT_PATTERNS = (
    ETH_AMOUNT_RE,
    re.compile(r"(?:发送|转)\s*" + _NUMBER, re.IGNORECASE),
    re.compile(r"(?:transfer|send)\s+" + _NUMBER, re.IGNORECASE),
    re.compile(_NUMBER + r"\s*to\b", re.IGNORECASE),
)
PRICE_PATTERNS = (
    ETH_AMOUNT_RE,
    re.compile(r"(?:价格|price)\s*[是为：:=]?\s*" + _NUMBER, re.IGNORECASE),
)
LOAN_AMOUNT_PATTERNS = (
    re.compile(r"(?:金额|amount)\s*[是为：:=]?\s*" + _NUMBER, re.IGNORECASE),
    ETH_AMOUNT_RE,
)
DURATION_PATTERNS = (
    re.compile(r"(?:期限|duration)\s*[是为：:=]?\s*(\d+)", re.IGNORECASE),
    re.compile(r"(\d+)\s*(?:days?\b|天)", re.IGNORECASE),
)
TOKEN_ID_PATTERNS = (
    re.compile(r"(?:token\s*id|tokenid|nft\s*id|id|编号)\s*[是为：:#=]?\s*#?(\d+)", re.IGNORECASE),
    re.compile(r"#(\d+)"),
    re.compile(r"(?<![\d.])(\d+)(?![\d.])"),
)
LOAN_ID_PATTERNS = (
    re.compile(r"(?:loan\s*id|loan|借贷\s*id|借贷|id)\s*[是为：:#=]?\s*#?(\d+)", re.IGNORECASE),
) + TOKEN_ID_PATTERNS


def _first(patterns, text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def _take(patterns, text: str) -> tuple[str | None, str]:
    """Like :func:`_first`, also returning ``text`` with only the matched span blanked."""
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            start, end = match.span()
            return match.group(1), text[:start] + " " + text[end:]
    return None, text


def _strip_hex(text: str) -> str:
    """Remove hex tokens so their digits are never read as numbers."""
    return HEX_TOKEN_RE.sub(" ", text)


def find_address(text: str) -> str | None:
    match = ADDRESS_RE.search(text)
    return match.group(0) if match else None


def find_private_key(text: str) -> str | None:
    match = PRIVATE_KEY_RE.search(text)
    return match.group(0) if match else None


def has_amount(text: str) -> bool:
    return _first(TRANSFER_AMOUNT_PATTERNS, _strip_hex(text)) is not None


def _require_address(text: str, field: str = "address") -> str:
    entry = LIST_ENTRY_RE.search(text)
    candidate = entry.group(2) if entry else find_address(text)
    if candidate is None:
        stray = HEX_TOKEN_RE.search(text)
        if stray and not PRIVATE_KEY_RE.fullmatch(stray.group(0)):
            raise InvalidAddressError(
                f"Invalid address: {stray.group(0)}. Expected 0x followed by 40 hex characters",
                field=field,
                value=stray.group(0),
            )
        raise MissingParameterError(
            "No recipient address found. Provide a 0x-prefixed, 40 hex character address",
            field=field,
        )
    return normalise_address(candidate, field=field)


def _amount(value: str | None, field: str, hint: str) -> str:
    if value is None:
        raise MissingParameterError(f"No {field} found. {hint}", field=field)
    return str(parse_eth_amount(value, field=field))


def _token_id(text: str, patterns=TOKEN_ID_PATTERNS, field: str = "token_id") -> int:
    value = _first(patterns, text)
    if value is None:
        raise MissingParameterError(f"No {field} found. Mention the number, e.g. #1", field=field)
    return int(value)


def extract_transfer(text: str) -> dict[str, Any]:
    """Recipient and amount, plus optional contact label and list membership."""

    params: dict[str, Any] = {"address": _require_address(text)}
    entry = LIST_ENTRY_RE.search(text)
    if entry:
        params["counterparty_label"] = entry.group(1)
        params["list_type"] = entry.group(3).lower()

    params["amount"] = _amount(
        _first(TRANSFER_AMOUNT_PATTERNS, _strip_hex(text)),
        "amount",
        "Specify how much ETH to send, e.g. 0.1",
    )
    return params


def extract_balance(text: str) -> dict[str, Any]:
    """Target address; a private key in the text wins over any address."""

    key = find_private_key(text)
    if key is not None:
        return {"address": derive_address(key), "derived_from_private_key": True}
    address = find_address(text)
    if address is not None:
        return {"address": normalise_address(address), "derived_from_private_key": False}
    return {}


def extract_nft(text: str, operation: NftOperation) -> dict[str, Any]:
    """Parameters for one NFT operation; the operation itself is stored too."""

    params: dict[str, Any] = {"operation": operation.value}
    plain = _strip_hex(text)

    if operation is NftOperation.MINT:
        recipient = find_address(text)
        if recipient is not None:
            params["recipient"] = normalise_address(recipient, field="recipient")
        return params

    if operation in (NftOperation.FULFILL_LOAN, NftOperation.REPAY_LOAN):
        params["loan_id"] = _token_id(plain, LOAN_ID_PATTERNS, field="loan_id")
        return params

    if operation is NftOperation.LIST:
        price, rest = _take(PRICE_PATTERNS, plain)
        params["price"] = _amount(price, "price", "Specify the price in ETH, e.g. 0.1 ETH")
        params["token_id"] = _token_id(rest)
        return params

    if operation is NftOperation.BUY:
        price, rest = _take(PRICE_PATTERNS, plain)
        if price is not None:
            params["price"] = str(parse_eth_amount(price, field="price"))
        params["token_id"] = _token_id(rest)
        return params

    if operation is NftOperation.CREATE_LOAN:
        amount, rest = _take(LOAN_AMOUNT_PATTERNS, plain)
        params["amount"] = _amount(
            amount,
            "amount",
            "Specify the loan amount in ETH, e.g. 0.5 ETH",
        )
        duration, rest = _take(DURATION_PATTERNS, rest)
        days = int(duration) if duration is not None else LOAN_DEFAULT_DAYS
        if not LOAN_MIN_DAYS <= days <= LOAN_MAX_DAYS:
            raise InvalidAmountError(
                f"Loan duration must be between {LOAN_MIN_DAYS} and {LOAN_MAX_DAYS} days",
                field="duration_days",
                value=days,
            )
        params["duration_days"] = days
        params["token_id"] = _token_id(rest)
        return params

    params["token_id"] = _token_id(plain)
    return params


def extract(kind: PendingKind, text: str, operation: NftOperation | None = None) -> dict[str, Any]:
    """Extract parameters for ``kind``; raises a ``ValidationError`` subclass when incomplete."""

    if kind is PendingKind.TRANSFER:
        params = extract_transfer(text)
    elif kind is PendingKind.BALANCE:
        params = extract_balance(text)
    elif operation is None:
        raise MissingParameterError("NFT operation could not be determined", field="operation")
    else:
        params = extract_nft(text, operation)

    logger.debug("Extracted %s parameters: %s", kind.value, params)
    return params


def redact_private_keys(text: str) -> str:
    """Replace private keys with their derived address so the key is never kept."""

    def _replace(match: re.Match[str]) -> str:
        try:
            return f"[private key redacted, address {derive_address(match.group(0))}]"
        except ValidationError:
            return "[private key redacted]"

    return PRIVATE_KEY_RE.sub(_replace, text)
