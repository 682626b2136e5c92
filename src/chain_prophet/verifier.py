"""Ownership and authorization checks performed before any mutation."""

from __future__ import annotations

import logging

from .abi import MintableNFT_abi
from .base import ChainAccess
from .exceptions import NotOwnerError
from .types import ContractCall
from .utils import normalise_address, same_address

logger = logging.getLogger(__name__)


class PreconditionVerifier:
    """Read-only checks against the NFT contract."""

    def __init__(self, chain: ChainAccess, nft_address: str):
        self._chain = chain
        self._nft = normalise_address(nft_address, field="nft_address")

    def _call(self, function: str, *args) -> ContractCall:
        return ContractCall(target=self._nft, abi=MintableNFT_abi, function=function, args=args)

    def owner_of(self, token_id: int) -> str:
        return str(self._chain.query(self._call("ownerOf", int(token_id))))

    def is_owner(self, identity: str, token_id: int) -> bool:
        owner = self.owner_of(token_id)
        logger.debug("Token %s owned by %s (checking %s)", token_id, owner, identity)
        return same_address(owner, identity)

    def is_contract_owner(self, identity: str) -> bool:
        owner = str(self._chain.query(self._call("owner")))
        return same_address(owner, identity)

    def is_authorized_for(self, identity: str, token_id: int, grantee: str) -> bool:
        """True when ``grantee`` may move ``token_id`` on behalf of ``identity``."""
        try:
            if self._chain.query(self._call("isApprovedForAll", identity, grantee)):
                return True
            approved = str(self._chain.query(self._call("getApproved", int(token_id))))
        except Exception as exc:
            logger.warning(
                "Authorization lookup for token %s -> %s failed: %s", token_id, grantee, exc
            )
            return False
        return same_address(approved, grantee)

    def require_owner(self, identity: str, token_id: int) -> None:
        if not self.is_owner(identity, token_id):
            raise NotOwnerError(
                f"Address {identity} is not the owner of NFT #{token_id}",
                identity=identity,
                resource=f"token:{token_id}",
            )

    def require_contract_owner(self, identity: str) -> None:
        if not self.is_contract_owner(identity):
            raise NotOwnerError(
                f"Address {identity} is not the owner of the NFT contract",
                identity=identity,
                resource=f"contract:{self._nft}",
            )
