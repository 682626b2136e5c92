"""Native balance lookup executor."""

from __future__ import annotations

from ..types import OperationResult
from ..utils import format_eth, normalise_address
from .base import OperationExecutor


class BalanceExecutor(OperationExecutor):
    """Read an account's ETH balance; defaults to the agent wallet."""

    def execute(self, address: str | None = None) -> OperationResult:
        operation = "Balance lookup"
        try:
            target = normalise_address(address) if address else self._chain.address
            balance = self._chain.get_balance(target)
        except Exception as exc:
            return self._fail(exc, operation)

        balance_text = format_eth(balance)
        return OperationResult.ok(
            f"Balance of {target}: {balance_text} ETH",
            values={"address": target, "balance": balance_text, "balance_wei": balance},
        )
