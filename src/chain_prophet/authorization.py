"""Issue a single ERC-721 approval when an operation needs one."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from .abi import ERC721_abi
from .base import ChainAccess
from .classifier import ErrorClassifier
from .exceptions import AuthorizationRequiredError
from .types import ContractCall, TransactionHandle
from .utils import normalise_address
from .verifier import PreconditionVerifier

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AutoAuthorizer:
    """Approve-then-retry workflow.

    At most one approval transaction is sent per :meth:`run` invocation and
    the dependent operation is retried at most once. Nothing is remembered
    between invocations.
    """

    def __init__(
        self,
        chain: ChainAccess,
        verifier: PreconditionVerifier,
        nft_address: str,
        *,
        classifier: ErrorClassifier | None = None,
        settle_seconds: float = 3.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._chain = chain
        self._verifier = verifier
        self._nft = normalise_address(nft_address, field="nft_address")
        self._classifier = classifier or ErrorClassifier()
        self._settle_seconds = settle_seconds
        self._sleep = sleep

    def approve(self, token_id: int, grantee: str) -> TransactionHandle:
        call = ContractCall(
            target=self._nft,
            abi=ERC721_abi,
            function="approve",
            args=(normalise_address(grantee, field="grantee"), int(token_id)),
        )
        handle = self._chain.submit(call)
        logger.info("Approval for token %s -> %s sent: %s", token_id, grantee, handle.tx_hash)
        self._sleep(self._settle_seconds)
        return handle

    def ensure_authorized(self, token_id: int, grantee: str) -> TransactionHandle | None:
        """Approve ``grantee`` for ``token_id`` unless it already is."""
        if self._verifier.is_authorized_for(self._chain.address, token_id, grantee):
            logger.debug("Token %s already authorized for %s", token_id, grantee)
            return None
        return self.approve(token_id, grantee)

    def run(
        self,
        operation: Callable[[], T],
        token_id: int,
        grantee: str,
        label: str,
    ) -> T:
        """Run ``operation`` with authorization ensured, retrying once after approving."""

        approved = self.ensure_authorized(token_id, grantee) is not None
        try:
            return operation()
        except Exception as exc:
            if not self._classifier.is_authorization_error(exc):
                raise
            if approved:
                raise self._manual_action(label, token_id, grantee, exc) from exc
            logger.info("%s hit an authorization error; approving and retrying once", label)

        self.approve(token_id, grantee)
        try:
            return operation()
        except Exception as exc:
            if self._classifier.is_authorization_error(exc):
                raise self._manual_action(label, token_id, grantee, exc) from exc
            raise

    @staticmethod
    def _manual_action(
        label: str, token_id: int, grantee: str, exc: Exception
    ) -> AuthorizationRequiredError:
        return AuthorizationRequiredError(
            f"{label} still lacks authorization after an automatic approval. "
            f"Approve NFT #{token_id} for {grantee} manually, wait for it to confirm, then retry.",
            grantee=grantee,
            token_id=token_id,
            details={"error": str(exc)},
        )
