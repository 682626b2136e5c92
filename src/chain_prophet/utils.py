"""Utility functions for Chain Prophet."""

import re
from collections.abc import Mapping, Sequence
from decimal import Decimal, InvalidOperation
from typing import Any

from eth_abi import decode as abi_decode
from eth_typing import HexStr
from hexbytes import HexBytes
from web3 import Web3
from web3.types import ChecksumAddress

from .constants import ERROR_SELECTORS, REVERT_REASON_SELECTOR
from .exceptions import InvalidAddressError, InvalidAmountError

WEI_PER_ETH = Decimal(10**18)

# 429 only as a standalone status number, never inside a hex address or hash.
RATE_LIMIT_RE = re.compile(
    r"(?<![0-9a-fA-Fx])429(?![0-9a-fA-F])|rate limit|too many requests", re.IGNORECASE
)


def parse_eth_amount(value: str | Decimal | int | float, *, field: str = "amount") -> Decimal:
    """Parse a positive ETH amount without losing precision."""
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmountError(f"Invalid {field}: {value}", field=field, value=value)

    if not amount.is_finite() or amount <= 0:
        raise InvalidAmountError(f"{field.capitalize()} must be positive", field=field, value=value)

    if amount.as_tuple().exponent < -18:  # type: ignore[operator]
        raise InvalidAmountError(
            f"{field.capitalize()} has more than 18 decimals", field=field, value=value
        )

    return amount


def to_wei(value: str | Decimal | int | float, *, field: str = "amount") -> int:
    """Convert a positive ETH amount to wei."""
    return int(parse_eth_amount(value, field=field) * WEI_PER_ETH)


def from_wei(value: int) -> Decimal:
    """Convert wei to an ETH Decimal."""
    return Decimal(value) / WEI_PER_ETH


def format_eth(value: int) -> str:
    """Render a wei amount as a plain ETH string (no exponent, no trailing zeros)."""
    amount = from_wei(value)
    text = f"{amount:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def is_hex_address(value: str | None) -> bool:
    """Check the 0x + 40 hex shape, ignoring checksum casing."""
    if not isinstance(value, str):
        return False
    candidate = value.strip()
    return len(candidate) == 42 and Web3.is_address(candidate.lower())


def normalise_address(value: str | None, *, field: str = "address") -> ChecksumAddress:
    """Return the checksummed form of an address or raise InvalidAddressError."""
    if not is_hex_address(value):
        raise InvalidAddressError(
            f"Invalid address: {value}. Expected 0x followed by 40 hex characters",
            field=field,
            value=value,
        )
    return Web3.to_checksum_address(str(value).strip())


def same_address(left: str | None, right: str | None) -> bool:
    if not left or not right:
        return False
    return left.lower() == right.lower()


def mask_secret(value: str) -> str:
    """Mask a secret for safe logging."""
    if len(value) <= 10:
        return "****"
    return f"{value[:6]}...{value[-4:]}"


def explorer_tx_url(explorer_url: str, tx_hash: str) -> str:
    return f"{explorer_url.rstrip('/')}/tx/{tx_hash}"


def decode_revert_reason(data: Any) -> str | None:
    """Decode revert data into ``Error(string)`` text or a known custom error name."""
    if data is None:
        return None

    if isinstance(data, bytes | bytearray | HexBytes):
        hex_data = HexBytes(data).to_0x_hex()
    elif isinstance(data, str) and data.startswith("0x"):
        hex_data = data.lower()
    else:
        return None

    selector = hex_data[:10]
    if selector == REVERT_REASON_SELECTOR:
        try:
            (reason,) = abi_decode(["string"], Web3.to_bytes(hexstr=HexStr(hex_data[10:])))
        except Exception:
            return None
        return str(reason)

    return ERROR_SELECTORS.get(selector)


def serialise_receipt(receipt: Any) -> Any:
    """Serialise web3 receipt objects into JSON-friendly structures."""
    if receipt is None:
        return None
    if isinstance(receipt, Mapping):
        return {key: serialise_receipt(value) for key, value in receipt.items()}
    if isinstance(receipt, Sequence) and not isinstance(
        receipt, str | bytes | bytearray | HexBytes
    ):
        return [serialise_receipt(item) for item in receipt]
    if isinstance(receipt, bytes | bytearray | HexBytes):
        return HexBytes(receipt).to_0x_hex()
    return receipt


def mentions_rate_limit(text: str) -> bool:
    """Return ``True`` when ``text`` reads like an HTTP 429 / rate-limit message."""
    return RATE_LIMIT_RE.search(text) is not None
