"""Signing identity used by the chain client."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, cast

from eth_account import Account as EthAccount
from eth_account.signers.local import LocalAccount
from web3.types import ChecksumAddress

from ..exceptions import ValidationError
from ..utils import mask_secret


def derive_address(private_key: str) -> ChecksumAddress:
    """Derive the checksummed address controlled by a private key."""
    return Account.from_private_key(private_key).address


@dataclass(frozen=True)
class Account:
    """Immutable signer derived once from a private key."""

    address: ChecksumAddress
    _signer: LocalAccount = field(repr=False, compare=False)

    @classmethod
    def from_private_key(cls, private_key: str) -> Account:
        key = private_key.strip()
        if not key.startswith("0x"):
            key = f"0x{key}"
        try:
            signer = cast(LocalAccount, EthAccount.from_key(key))
        except Exception as exc:
            raise ValidationError(
                "Failed to derive signer account from provided private key",
                field="private_key",
                value=mask_secret(key),
                details={"error": str(exc)},
            ) from exc
        return cls(address=cast(ChecksumAddress, signer.address), _signer=signer)

    def sign_transaction(self, tx: Mapping[str, Any]) -> tuple[bytes, str]:
        """Sign ``tx`` and return ``(raw_transaction, tx_hash_hex)``."""
        signed = self._signer.sign_transaction(dict(tx))
        return bytes(signed.raw_transaction), signed.hash.to_0x_hex()
