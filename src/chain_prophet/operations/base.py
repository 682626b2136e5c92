"""Shared plumbing for operation executors."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from ..base import ChainAccess
from ..classifier import ErrorClassifier
from ..constants import SEPOLIA_EXPLORER_URL
from ..exceptions import ValidationError
from ..types import ErrorCategory, OperationResult, SettlementStatus, TransactionHandle
from ..utils import explorer_tx_url

logger = logging.getLogger(__name__)

Notify = Callable[[str], None]


def noop_notify(_: str) -> None:
    return None


class OperationExecutor:
    """Base class turning chain outcomes and exceptions into ``OperationResult``."""

    def __init__(
        self,
        chain: ChainAccess,
        *,
        classifier: ErrorClassifier | None = None,
        explorer_url: str = SEPOLIA_EXPLORER_URL,
    ):
        self._chain = chain
        self._classifier = classifier or ErrorClassifier()
        self._explorer_url = explorer_url

    def _fail(self, exc: Exception, operation: str) -> OperationResult:
        if isinstance(exc, ValidationError):
            return OperationResult.failure(
                exc.category,
                f"{operation} failed: {exc.message}",
                values={"field": exc.field, "value": exc.value},
            )

        analysis = self._classifier.classify(exc, operation)
        if analysis.category is ErrorCategory.UNKNOWN:
            logger.exception("Unexpected failure during %s", operation)
        else:
            logger.warning("%s failed (%s): %s", operation, analysis.category.value, analysis.raw)
        return OperationResult.failure(
            analysis.category,
            analysis.user_message,
            values={"reason": analysis.reason, "suggestion": analysis.suggestion},
            data={"raw_error": analysis.raw},
        )

    def _settle(
        self,
        handle: TransactionHandle,
        operation: str,
        success_text: str,
        *,
        values: Mapping[str, Any] | None = None,
        notify: Notify | None = None,
        enrich: Callable[[Mapping[str, Any] | None], Mapping[str, Any]] | None = None,
    ) -> OperationResult:
        """Wait for ``handle`` and describe the outcome."""

        notify = notify or noop_notify
        link = explorer_tx_url(self._explorer_url, handle.tx_hash)
        notify(f"{operation} submitted: {handle.tx_hash}\nWaiting for confirmation...")

        settlement = self._chain.wait_for_settlement(handle)
        base_values = {"tx_hash": handle.tx_hash, "explorer_url": link, **dict(values or {})}

        if settlement.status is SettlementStatus.REVERTED:
            return OperationResult.failure(
                ErrorCategory.EXECUTION_REVERTED,
                f"{operation} failed: the transaction reverted in block "
                f"{settlement.block_number}.\n{link}",
                values={**base_values, "settlement": settlement.status.value},
                data={"receipt": settlement.receipt},
            )

        if settlement.status is SettlementStatus.UNCONFIRMED:
            return OperationResult.ok(
                f"{success_text}\n\nThe transaction was submitted but its confirmation could "
                f"not be observed yet. Track it here: {link}",
                values={**base_values, "settlement": settlement.status.value},
                data={"settlement_error": settlement.error},
            )

        extra = dict(enrich(settlement.receipt)) if enrich else {}
        text = success_text
        if extra.get("summary"):
            text = f"{text}\n{extra.pop('summary')}"
        return OperationResult.ok(
            f"{text}\n\nBlock: {settlement.block_number}\nGas used: {settlement.gas_used}\n{link}",
            values={
                **base_values,
                **extra,
                "settlement": settlement.status.value,
                "block_number": settlement.block_number,
                "gas_used": settlement.gas_used,
            },
            data={"receipt": settlement.receipt},
        )
