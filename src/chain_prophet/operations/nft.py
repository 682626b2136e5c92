"""NFT, marketplace, staking and loan executors."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from decimal import Decimal
from typing import Any

from ..base import ChainAccess
from ..classifier import ErrorClassifier
from ..constants import LOAN_DEFAULT_DAYS, SEPOLIA_EXPLORER_URL, TRANSFER_EVENT_TOPIC
from ..exceptions import MissingParameterError, ValidationError
from ..nft import NftService
from ..types import NftOperation, OperationResult, TransactionHandle
from ..utils import format_eth, to_wei
from .base import Notify, OperationExecutor

logger = logging.getLogger(__name__)


def minted_token_id(receipt: Mapping[str, Any] | None) -> int | None:
    """Extract the token id from the ERC-721 ``Transfer`` log of a mint receipt."""
    if not receipt:
        return None
    for log in receipt.get("logs") or []:
        topics = log.get("topics") or []
        if len(topics) == 4 and str(topics[0]).lower() == TRANSFER_EVENT_TOPIC:
            return int(str(topics[3]), 16)
    return None


def _token_id(value: Any, field: str = "token_id") -> int:
    if value is None or value == "":
        raise MissingParameterError(f"{field} is required", field=field)
    try:
        parsed = int(str(value).strip().lstrip("#"))
    except ValueError as exc:
        raise ValidationError(f"{field} must be a whole number", field=field, value=value) from exc
    if parsed < 0:
        raise ValidationError(f"{field} must not be negative", field=field, value=value)
    return parsed


class NftExecutor(OperationExecutor):
    """Run NFT operations and report them as ``OperationResult`` values."""

    def __init__(
        self,
        chain: ChainAccess,
        service: NftService,
        *,
        classifier: ErrorClassifier | None = None,
        explorer_url: str = SEPOLIA_EXPLORER_URL,
    ):
        super().__init__(chain, classifier=classifier, explorer_url=explorer_url)
        self._service = service

    def execute(
        self,
        operation: NftOperation | str,
        params: Mapping[str, Any],
        *,
        notify: Notify | None = None,
    ) -> OperationResult:
        """Dispatch a stored confirmation request to the matching operation."""

        op = NftOperation(operation)
        if op is NftOperation.MINT:
            return self.mint(params.get("recipient"), notify=notify)
        if op is NftOperation.LIST:
            return self.list(params.get("token_id"), params.get("price"), notify=notify)
        if op is NftOperation.BUY:
            return self.buy(params.get("token_id"), params.get("price"), notify=notify)
        if op is NftOperation.STAKE:
            return self.stake(params.get("token_id"), notify=notify)
        if op is NftOperation.UNSTAKE:
            return self.unstake(params.get("token_id"), notify=notify)
        if op is NftOperation.CREATE_LOAN:
            return self.create_loan(
                params.get("token_id"),
                params.get("amount"),
                params.get("duration_days") or LOAN_DEFAULT_DAYS,
                notify=notify,
            )
        if op is NftOperation.FULFILL_LOAN:
            return self.fulfill_loan(params.get("loan_id"), notify=notify)
        return self.repay_loan(params.get("loan_id"), notify=notify)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def mint(self, recipient: str | None = None, *, notify: Notify | None = None) -> OperationResult:
        target = recipient or self._chain.address

        def _enrich(receipt: Mapping[str, Any] | None) -> Mapping[str, Any]:
            token_id = minted_token_id(receipt)
            if token_id is None:
                return {}
            return {"token_id": token_id, "summary": f"Token ID: {token_id}"}

        return self._run(
            "Mint NFT",
            lambda: self._service.mint(recipient),
            f"Minted a new NFT to {target}.",
            values={"recipient": target},
            notify=notify,
            enrich=_enrich,
        )

    def list(
        self, token_id: Any, price: str | Decimal | None, *, notify: Notify | None = None
    ) -> OperationResult:
        def _submit() -> TransactionHandle:
            tid = _token_id(token_id)
            if price is None or price == "":
                raise MissingParameterError("price is required", field="price")
            return self._service.list_nft(tid, to_wei(price, field="price"))

        return self._run(
            "List NFT",
            _submit,
            f"Listed NFT #{token_id} for {price} ETH.",
            values={"token_id": token_id, "price": str(price)},
            notify=notify,
        )

    def buy(
        self, token_id: Any, price: str | Decimal | None = None, *, notify: Notify | None = None
    ) -> OperationResult:
        def _submit() -> TransactionHandle:
            tid = _token_id(token_id)
            payment = to_wei(price, field="price") if price not in (None, "") else None
            return self._service.buy_nft(tid, payment)

        return self._run(
            "Buy NFT",
            _submit,
            f"Bought NFT #{token_id}.",
            values={"token_id": token_id},
            notify=notify,
        )

    def stake(self, token_id: Any, *, notify: Notify | None = None) -> OperationResult:
        return self._run(
            "Stake NFT",
            lambda: self._service.stake(_token_id(token_id)),
            f"Staked NFT #{token_id}.",
            values={"token_id": token_id},
            notify=notify,
        )

    def unstake(self, token_id: Any, *, notify: Notify | None = None) -> OperationResult:
        return self._run(
            "Unstake NFT",
            lambda: self._service.unstake(_token_id(token_id)),
            f"Unstaked NFT #{token_id}.",
            values={"token_id": token_id},
            notify=notify,
        )

    def create_loan(
        self,
        token_id: Any,
        amount: str | Decimal | None,
        duration_days: Any = LOAN_DEFAULT_DAYS,
        *,
        notify: Notify | None = None,
    ) -> OperationResult:
        def _submit() -> TransactionHandle:
            tid = _token_id(token_id)
            if amount is None or amount == "":
                raise MissingParameterError("amount is required", field="amount")
            days = _token_id(duration_days, field="duration_days")
            return self._service.create_loan(tid, to_wei(amount), days)

        return self._run(
            "Create loan",
            _submit,
            f"Created a {duration_days}-day loan request of {amount} ETH against NFT #{token_id}.",
            values={"token_id": token_id, "amount": str(amount), "duration_days": duration_days},
            notify=notify,
        )

    def fulfill_loan(self, loan_id: Any, *, notify: Notify | None = None) -> OperationResult:
        operation = "Fund loan"
        try:
            handle, loan = self._service.fulfill_loan(_token_id(loan_id, field="loan_id"))
        except Exception as exc:
            return self._fail(exc, operation)
        return self._settle(
            handle,
            operation,
            f"Funded loan #{loan_id} with {format_eth(loan.loan_amount_wei)} ETH.",
            values={"loan_id": loan_id, "amount": format_eth(loan.loan_amount_wei)},
            notify=notify,
        )

    def repay_loan(self, loan_id: Any, *, notify: Notify | None = None) -> OperationResult:
        operation = "Repay loan"
        try:
            handle, loan = self._service.repay_loan(_token_id(loan_id, field="loan_id"))
        except Exception as exc:
            return self._fail(exc, operation)
        return self._settle(
            handle,
            operation,
            f"Repaid loan #{loan_id} ({format_eth(loan.repayment_amount_wei)} ETH).",
            values={"loan_id": loan_id, "amount": format_eth(loan.repayment_amount_wei)},
            notify=notify,
        )

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def listing(self, token_id: Any) -> OperationResult:
        try:
            tid = _token_id(token_id)
            listing = self._service.get_listing(tid)
        except Exception as exc:
            return self._fail(exc, "Listing lookup")
        if listing is None:
            return OperationResult.ok(
                f"NFT #{tid} is not listed.", values={"token_id": tid, "active": False}
            )
        price = format_eth(listing.price_wei)
        return OperationResult.ok(
            f"NFT #{tid} is listed by {listing.seller} for {price} ETH.",
            values={"token_id": tid, "seller": listing.seller, "price": price, "active": True},
        )

    def staking(self, token_id: Any) -> OperationResult:
        try:
            tid = _token_id(token_id)
            record = self._service.get_staking_info(tid)
        except Exception as exc:
            return self._fail(exc, "Staking lookup")
        if record is None:
            return OperationResult.ok(
                f"NFT #{tid} is not staked.", values={"token_id": tid, "staked": False}
            )
        rewards = format_eth(record.rewards_wei)
        return OperationResult.ok(
            f"NFT #{tid} is staked by {record.staker}; accrued rewards {rewards} ETH.",
            values={
                "token_id": tid,
                "staked": True,
                "staker": record.staker,
                "start_time": record.start_time,
                "rewards": rewards,
            },
        )

    def loan(self, loan_id: Any) -> OperationResult:
        try:
            lid = _token_id(loan_id, field="loan_id")
            loan = self._service.get_loan_info(lid)
        except Exception as exc:
            return self._fail(exc, "Loan lookup")
        if loan is None:
            return OperationResult.ok(f"Loan #{lid} does not exist.", values={"loan_id": lid, "exists": False})
        return OperationResult.ok(
            f"Loan #{lid}: {format_eth(loan.loan_amount_wei)} ETH against NFT #{loan.token_id}, "
            f"repay {format_eth(loan.repayment_amount_wei)} ETH by {loan.due_date}"
            f"{' (repaid)' if loan.repaid else ''}.",
            values={
                "loan_id": lid,
                "exists": True,
                "borrower": loan.borrower,
                "lender": loan.lender,
                "token_id": loan.token_id,
                "amount": format_eth(loan.loan_amount_wei),
                "repayment_amount": format_eth(loan.repayment_amount_wei),
                "due_date": loan.due_date,
                "repaid": loan.repaid,
            },
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _run(
        self,
        operation: str,
        submit: Callable[[], TransactionHandle],
        success_text: str,
        *,
        values: Mapping[str, Any],
        notify: Notify | None,
        enrich: Callable[[Mapping[str, Any] | None], Mapping[str, Any]] | None = None,
    ) -> OperationResult:
        try:
            handle = submit()
        except Exception as exc:
            return self._fail(exc, operation)
        logger.info("%s submitted: %s", operation, handle.tx_hash)
        return self._settle(
            handle, operation, success_text, values=values, notify=notify, enrich=enrich
        )
