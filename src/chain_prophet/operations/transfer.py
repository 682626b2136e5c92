"""Native-token transfer executor."""

from __future__ import annotations

import logging
from decimal import Decimal

from ..base import ChainAccess
from ..classifier import ErrorClassifier
from ..constants import SEPOLIA_EXPLORER_URL, TRANSFER_GAS_LIMIT
from ..exceptions import ValidationError
from ..types import ErrorCategory, OperationResult, ValueTransfer
from ..utils import format_eth, from_wei, normalise_address, to_wei
from .base import Notify, OperationExecutor, noop_notify

logger = logging.getLogger(__name__)


class TransferExecutor(OperationExecutor):
    """Send ETH after a proactive balance check."""

    def __init__(
        self,
        chain: ChainAccess,
        *,
        classifier: ErrorClassifier | None = None,
        explorer_url: str = SEPOLIA_EXPLORER_URL,
        gas_limit: int = TRANSFER_GAS_LIMIT,
    ):
        super().__init__(chain, classifier=classifier, explorer_url=explorer_url)
        self._gas_limit = gas_limit

    def execute(
        self,
        to: str,
        amount: str | Decimal,
        *,
        notify: Notify | None = None,
    ) -> OperationResult:
        notify = notify or noop_notify
        operation = "Transfer"

        try:
            recipient = normalise_address(to, field="address")
            value = to_wei(amount)
        except ValidationError as exc:
            return self._fail(exc, operation)

        amount_text = format_eth(value)
        try:
            notify(f"Checking balance before sending {amount_text} ETH...")
            balance = self._chain.get_balance(self._chain.address)
            gas_price = self._chain.gas_price()
            required = value + gas_price * self._gas_limit
            if balance < required:
                shortfall = required - balance
                logger.info(
                    "Transfer of %s ETH blocked: balance=%s required=%s",
                    amount_text,
                    balance,
                    required,
                )
                return OperationResult.failure(
                    ErrorCategory.INSUFFICIENT_BALANCE,
                    f"Transfer failed: insufficient balance.\n\n"
                    f"Balance: {format_eth(balance)} ETH\n"
                    f"Required (amount + gas): {format_eth(required)} ETH\n"
                    f"Shortfall: {format_eth(shortfall)} ETH",
                    values={
                        "balance": str(from_wei(balance)),
                        "required": str(from_wei(required)),
                        "shortfall": str(from_wei(shortfall)),
                    },
                )

            notify(f"Sending {amount_text} ETH to {recipient}...")
            handle = self._chain.submit(ValueTransfer(to=recipient, value=value))
        except Exception as exc:
            return self._fail(exc, operation)

        logger.info("Transfer of %s ETH to %s submitted: %s", amount_text, recipient, handle.tx_hash)
        return self._settle(
            handle,
            operation,
            f"Sent {amount_text} ETH to {recipient}.",
            values={"to": recipient, "amount": amount_text, "from": self._chain.address},
            notify=notify,
        )
