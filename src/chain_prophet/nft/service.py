"""Contract-level NFT, marketplace, staking and loan operations."""

from __future__ import annotations

import logging

from ..abi import MintableNFT_abi, NFTLoan_abi, NFTMarketplace_abi, NFTStaking_abi
from ..authorization import AutoAuthorizer
from ..base import ChainAccess
from ..config import ContractAddresses
from ..constants import CONTRACT_GAS_LIMIT, LOAN_MAX_DAYS, LOAN_MIN_DAYS, SECONDS_PER_DAY
from ..exceptions import (
    InsufficientBalanceError,
    InvalidAmountError,
    InvalidStateError,
    NotOwnerError,
)
from ..types import ContractCall, Listing, Loan, StakeRecord, TransactionHandle
from ..utils import format_eth, from_wei, normalise_address, same_address
from ..verifier import PreconditionVerifier

logger = logging.getLogger(__name__)


def _is_zero(address: str | None) -> bool:
    return not address or int(str(address), 16) == 0


class NftService:
    """Precondition-checked wrappers around the NFT contract suite.

    Write methods return the :class:`TransactionHandle` of the submitted
    transaction; waiting for settlement is left to the caller. On-chain
    projections (listings, stakes, loans) are read fresh on every call.
    """

    def __init__(
        self,
        chain: ChainAccess,
        contracts: ContractAddresses,
        verifier: PreconditionVerifier,
        authorizer: AutoAuthorizer,
        *,
        gas_limit: int = CONTRACT_GAS_LIMIT,
    ):
        self._chain = chain
        self.contracts = contracts
        self._verifier = verifier
        self._authorizer = authorizer
        self._gas_limit = gas_limit

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def get_listing(self, token_id: int) -> Listing | None:
        seller, price, active = self._chain.query(
            ContractCall(
                self.contracts.marketplace, NFTMarketplace_abi, "getListing", (int(token_id),)
            )
        )
        if not active:
            return None
        return Listing(
            token_id=int(token_id),
            seller=normalise_address(seller, field="seller"),
            price_wei=int(price),
            active=bool(active),
        )

    def get_staking_info(self, token_id: int) -> StakeRecord | None:
        staker, start_time, rewards = self._chain.query(
            ContractCall(self.contracts.staking, NFTStaking_abi, "getStakingInfo", (int(token_id),))
        )
        if _is_zero(staker):
            return None
        return StakeRecord(
            token_id=int(token_id),
            staker=normalise_address(staker, field="staker"),
            start_time=int(start_time),
            rewards_wei=int(rewards),
        )

    def get_loan_info(self, loan_id: int) -> Loan | None:
        (
            borrower,
            lender,
            token_id,
            loan_amount,
            interest_rate,
            start_time,
            due_date,
            repayment_amount,
            active,
            repaid,
        ) = self._chain.query(
            ContractCall(self.contracts.loan, NFTLoan_abi, "loans", (int(loan_id),))
        )
        if _is_zero(borrower):
            return None
        return Loan(
            loan_id=int(loan_id),
            borrower=normalise_address(borrower, field="borrower"),
            lender=normalise_address(lender, field="lender"),
            token_id=int(token_id),
            loan_amount_wei=int(loan_amount),
            interest_rate=int(interest_rate),
            start_time=int(start_time),
            due_date=int(due_date),
            repayment_amount_wei=int(repayment_amount),
            active=bool(active),
            repaid=bool(repaid),
        )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def mint(self, recipient: str | None = None) -> TransactionHandle:
        me = self._chain.address
        self._verifier.require_contract_owner(me)
        to = normalise_address(recipient, field="recipient") if recipient else me
        return self._chain.submit(ContractCall(self.contracts.nft, MintableNFT_abi, "mint", (to,)))

    def list_nft(self, token_id: int, price_wei: int) -> TransactionHandle:
        if price_wei <= 0:
            raise InvalidAmountError("Price must be positive", field="price", value=price_wei)
        self._verifier.require_owner(self._chain.address, token_id)
        call = ContractCall(
            self.contracts.marketplace,
            NFTMarketplace_abi,
            "listNFT",
            (int(token_id), int(price_wei)),
        )
        return self._authorizer.run(
            lambda: self._chain.submit(call),
            token_id,
            self.contracts.marketplace,
            "List NFT",
        )

    def buy_nft(self, token_id: int, payment_wei: int | None = None) -> TransactionHandle:
        listing = self.get_listing(token_id)
        if listing is None:
            raise InvalidStateError(f"NFT #{token_id} is not listed or has already been sold")
        if same_address(listing.seller, self._chain.address):
            raise InvalidStateError(f"NFT #{token_id} is your own listing")

        payment = listing.price_wei if payment_wei is None else int(payment_wei)
        if payment < listing.price_wei:
            raise InvalidAmountError(
                f"Payment is below the listing price of {format_eth(listing.price_wei)} ETH",
                field="price",
                value=format_eth(payment),
            )
        self._require_funds(payment)
        return self._chain.submit(
            ContractCall(
                self.contracts.marketplace,
                NFTMarketplace_abi,
                "buyNFT",
                (int(token_id),),
                value=payment,
            )
        )

    def stake(self, token_id: int) -> TransactionHandle:
        self._verifier.require_owner(self._chain.address, token_id)
        call = ContractCall(self.contracts.staking, NFTStaking_abi, "stakeNFT", (int(token_id),))
        return self._authorizer.run(
            lambda: self._chain.submit(call),
            token_id,
            self.contracts.staking,
            "Stake NFT",
        )

    def unstake(self, token_id: int) -> TransactionHandle:
        record = self.get_staking_info(token_id)
        if record is None:
            raise InvalidStateError(f"NFT #{token_id} is not staked")
        if not same_address(record.staker, self._chain.address):
            raise NotOwnerError(
                f"NFT #{token_id} was staked by {record.staker}, not by this wallet",
                identity=self._chain.address,
                resource=f"stake:{token_id}",
            )
        return self._chain.submit(
            ContractCall(self.contracts.staking, NFTStaking_abi, "unstakeNFT", (int(token_id),))
        )

    def create_loan(
        self, token_id: int, amount_wei: int, duration_days: int
    ) -> TransactionHandle:
        if not LOAN_MIN_DAYS <= int(duration_days) <= LOAN_MAX_DAYS:
            raise InvalidAmountError(
                f"Loan duration must be between {LOAN_MIN_DAYS} and {LOAN_MAX_DAYS} days",
                field="duration_days",
                value=duration_days,
            )
        if amount_wei <= 0:
            raise InvalidAmountError("Loan amount must be positive", field="amount", value=amount_wei)
        self._verifier.require_owner(self._chain.address, token_id)
        call = ContractCall(
            self.contracts.loan,
            NFTLoan_abi,
            "createLoan",
            (int(token_id), int(amount_wei), int(duration_days) * SECONDS_PER_DAY),
        )
        return self._authorizer.run(
            lambda: self._chain.submit(call),
            token_id,
            self.contracts.loan,
            "Create loan",
        )

    def fulfill_loan(self, loan_id: int) -> tuple[TransactionHandle, Loan]:
        loan = self.get_loan_info(loan_id)
        if loan is None:
            raise InvalidStateError(f"Loan #{loan_id} does not exist")
        if not _is_zero(loan.lender):
            raise InvalidStateError(f"Loan #{loan_id} has already been funded")
        self._require_funds(loan.loan_amount_wei)
        handle = self._chain.submit(
            ContractCall(
                self.contracts.loan,
                NFTLoan_abi,
                "fulfillLoan",
                (int(loan_id),),
                value=loan.loan_amount_wei,
            )
        )
        return handle, loan

    def repay_loan(self, loan_id: int) -> tuple[TransactionHandle, Loan]:
        loan = self.get_loan_info(loan_id)
        if loan is None:
            raise InvalidStateError(f"Loan #{loan_id} does not exist")
        if not same_address(loan.borrower, self._chain.address):
            raise NotOwnerError(
                f"Loan #{loan_id} belongs to {loan.borrower}; only the borrower can repay it",
                identity=self._chain.address,
                resource=f"loan:{loan_id}",
            )
        if loan.repaid:
            raise InvalidStateError(f"Loan #{loan_id} has already been repaid")
        self._require_funds(loan.repayment_amount_wei)
        handle = self._chain.submit(
            ContractCall(
                self.contracts.loan,
                NFTLoan_abi,
                "repayLoan",
                (int(loan_id),),
                value=loan.repayment_amount_wei,
            )
        )
        return handle, loan

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _require_funds(self, value_wei: int) -> None:
        balance = self._chain.get_balance(self._chain.address)
        required = value_wei + self._chain.gas_price() * self._gas_limit
        if balance < required:
            raise InsufficientBalanceError(
                f"Insufficient balance: need {format_eth(required)} ETH "
                f"(including gas), have {format_eth(balance)} ETH",
                balance=from_wei(balance),
                required=from_wei(required),
            )

