"""Tests for parameter extraction and the confirmation vocabulary."""

import pytest
from eth_account import Account as EthAccount

from chain_prophet.confirmation.extraction import (
    extract,
    extract_balance,
    extract_nft,
    extract_transfer,
    find_address,
    redact_private_keys,
)
from chain_prophet.confirmation.vocabulary import (
    Decision,
    detect_trigger,
    parse_response,
    trigger_from_intent,
)
from chain_prophet.exceptions import (
    InvalidAddressError,
    InvalidAmountError,
    MissingParameterError,
)
from chain_prophet.types import NftOperation, PendingKind

RECIPIENT = "0x2222222222222222222222222222222222222222"
PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
KEY_ADDRESS = EthAccount.from_key(PRIVATE_KEY).address


class TestTransferExtraction:
    """Test recipient and amount extraction."""

    def test_english(self):
        """Test a plain English request."""
        params = extract_transfer(f"send 0.01 ETH to {RECIPIENT}")
        assert params == {"address": RECIPIENT, "amount": "0.01"}

    def test_chinese(self):
        """Test a Chinese request."""
        params = extract_transfer(f"转账 0.5 ETH 给 {RECIPIENT}")
        assert params["amount"] == "0.5"
        assert params["address"] == RECIPIENT

    def test_list_entry(self):
        """Test the label(address+list) contact format."""
        params = extract_transfer(f"转账 0.5 ETH 给 Alice（{RECIPIENT}+blacklist）")
        assert params["counterparty_label"] == "Alice"
        assert params["list_type"] == "blacklist"
        assert params["address"] == RECIPIENT

    def test_address_not_taken_from_private_key(self):
        """Test that the first 40 hex characters of a key are not read as an address."""
        with pytest.raises(MissingParameterError):
            extract_transfer(f"send 1 ETH to {PRIVATE_KEY}")

    def test_malformed_address(self):
        """Test that a short hex token is reported as an invalid address."""
        with pytest.raises(InvalidAddressError) as exc_info:
            extract_transfer("send 1 ETH to 0x1234")
        assert exc_info.value.value == "0x1234"

    def test_missing_amount(self):
        """Test that digits inside the address are never read as the amount."""
        with pytest.raises(MissingParameterError) as exc_info:
            extract_transfer(f"send to {RECIPIENT}")
        assert exc_info.value.field == "amount"

    def test_find_address_boundaries(self):
        """Test that an address embedded in a longer hex run is ignored."""
        assert find_address(f"key {PRIVATE_KEY}") is None
        assert find_address(f"to:{RECIPIENT}.") == RECIPIENT


class TestBalanceExtraction:
    """Test balance target resolution."""

    def test_private_key_wins(self):
        """Test that a private key takes priority over any address."""
        params = extract_balance(f"balance of {RECIPIENT} or my key {PRIVATE_KEY}")
        assert params == {"address": KEY_ADDRESS, "derived_from_private_key": True}

    def test_address(self):
        """Test an explicit address."""
        params = extract_balance(f"check balance {RECIPIENT}")
        assert params == {"address": RECIPIENT, "derived_from_private_key": False}

    def test_nothing(self):
        """Test that no target means the agent wallet."""
        assert extract_balance("what is my balance") == {}

    def test_redaction(self):
        """Test that stored text keeps the derived address but not the key."""
        redacted = redact_private_keys(f"my key is {PRIVATE_KEY}")
        assert PRIVATE_KEY not in redacted
        assert PRIVATE_KEY[2:] not in redacted
        assert KEY_ADDRESS in redacted
        assert extract_balance(redacted)["address"] == KEY_ADDRESS


class TestNftExtraction:
    """Test per-operation NFT parameters."""

    def test_list(self):
        """Test token id and price for a listing."""
        params = extract_nft("list NFT #3 for 0.25 ETH", NftOperation.LIST)
        assert params == {"operation": "list", "price": "0.25", "token_id": 3}

    def test_list_requires_price(self):
        """Test that a listing without a price is incomplete."""
        with pytest.raises(MissingParameterError):
            extract_nft("list NFT #3", NftOperation.LIST)

    def test_stake(self):
        """Test a bare token id."""
        assert extract_nft("stake token id 12", NftOperation.STAKE)["token_id"] == 12

    def test_create_loan(self):
        """Test amount, duration and token id for a loan request."""
        params = extract_nft(
            "create loan with NFT #5 amount 0.5 ETH duration 60 days", NftOperation.CREATE_LOAN
        )
        assert params["amount"] == "0.5"
        assert params["duration_days"] == 60
        assert params["token_id"] == 5

    def test_create_loan_default_duration(self):
        """Test that the duration defaults to thirty days."""
        params = extract_nft("create loan NFT #5 amount 1 ETH", NftOperation.CREATE_LOAN)
        assert params["duration_days"] == 30

    @pytest.mark.parametrize(
        "text",
        [
            "create loan NFT #5 amount 1 ETH",
            "create loan for 1 ETH on NFT #5 for 14 days",
            "borrow 1 ETH against NFT #5",
        ],
    )
    def test_create_loan_keeps_token_id(self, text):
        """Test that reading the amount never consumes the token id."""
        params = extract_nft(text, NftOperation.CREATE_LOAN)
        assert params["amount"] == "1"
        assert params["token_id"] == 5

    def test_list_price_after_token(self):
        """Test that a token id written next to ETH is not taken as the price."""
        params = extract_nft("list NFT #3 ETH price 0.25", NftOperation.LIST)
        assert params["price"] == "0.25"
        assert params["token_id"] == 3

    @pytest.mark.parametrize("days", [3, 400])
    def test_create_loan_duration_bounds(self, days):
        """Test durations outside seven to 365 days."""
        with pytest.raises(InvalidAmountError):
            extract_nft(f"create loan NFT #5 amount 1 ETH {days} days", NftOperation.CREATE_LOAN)

    def test_repay(self):
        """Test loan id extraction."""
        assert extract_nft("repay loan 2", NftOperation.REPAY_LOAN) == {
            "operation": "repay_loan",
            "loan_id": 2,
        }

    def test_mint_recipient_optional(self):
        """Test that minting works with and without a recipient."""
        assert extract_nft("mint an NFT", NftOperation.MINT) == {"operation": "mint"}
        assert extract_nft(f"mint an NFT to {RECIPIENT}", NftOperation.MINT)["recipient"] == RECIPIENT

    def test_nft_requires_operation(self):
        """Test that the NFT kind needs an operation."""
        with pytest.raises(MissingParameterError):
            extract(PendingKind.NFT, "stake NFT #1")


class TestResponses:
    """Test accept/reject parsing."""

    @pytest.mark.parametrize(
        "text,decision,kind",
        [
            ("yes", Decision.ACCEPT, None),
            (" OK! ", Decision.ACCEPT, None),
            ("确认", Decision.ACCEPT, None),
            ("no", Decision.REJECT, None),
            ("取消", Decision.REJECT, None),
            ("confirm transfer", Decision.ACCEPT, PendingKind.TRANSFER),
            ("取消转账", Decision.REJECT, PendingKind.TRANSFER),
            ("cancel balance", Decision.REJECT, PendingKind.BALANCE),
            ("nft_confirm_yes", Decision.ACCEPT, PendingKind.NFT),
        ],
    )
    def test_parse(self, text, decision, kind):
        """Test synonyms, kind-specific phrases and tokens."""
        response = parse_response(text)
        assert response is not None
        assert response.decision is decision
        assert response.kind is kind

    def test_callback_token(self):
        """Test that a button token is honoured regardless of text."""
        response = parse_response("", "transfer_confirm_no")
        assert response.decision is Decision.REJECT
        assert response.kind is PendingKind.TRANSFER

    @pytest.mark.parametrize("text", ["yes please send it", "", "hello"])
    def test_not_a_response(self, text):
        """Test that free text is not mistaken for a response."""
        assert parse_response(text) is None


class TestTriggers:
    """Test trigger detection order and keyword matching."""

    @pytest.mark.parametrize(
        "text,kind,operation",
        [
            (f"send 0.1 ETH to {RECIPIENT}", PendingKind.TRANSFER, None),
            (f"转账 0.1 ETH 给 {RECIPIENT}", PendingKind.TRANSFER, None),
            ("stake NFT #4", PendingKind.NFT, NftOperation.STAKE),
            ("unstake NFT #4", PendingKind.NFT, NftOperation.UNSTAKE),
            ("list NFT 3 for 0.1 ETH", PendingKind.NFT, NftOperation.LIST),
            ("buy NFT #7", PendingKind.NFT, NftOperation.BUY),
            ("repay loan 3", PendingKind.NFT, NftOperation.REPAY_LOAN),
            ("fund loan 3", PendingKind.NFT, NftOperation.FULFILL_LOAN),
            ("mint an NFT", PendingKind.NFT, NftOperation.MINT),
            ("what's my balance", PendingKind.BALANCE, None),
            (f"check balance of {RECIPIENT}", PendingKind.BALANCE, None),
        ],
    )
    def test_detect(self, text, kind, operation):
        """Test each trigger family."""
        trigger = detect_trigger(text)
        assert trigger is not None
        assert trigger.kind is kind
        assert trigger.operation is operation

    @pytest.mark.parametrize("text", ["show the blacklist 12", "stake my NFT", "good morning"])
    def test_no_trigger(self, text):
        """Test word boundaries and the token id requirement."""
        assert detect_trigger(text) is None

    def test_transfer_needs_amount(self):
        """Test that an address without an amount does not trigger a transfer."""
        trigger = detect_trigger(f"send to {RECIPIENT}")
        assert trigger is None or trigger.kind is not PendingKind.TRANSFER

    def test_intent_hint(self):
        """Test mapping externally classified intents."""
        assert trigger_from_intent("transfer").kind is PendingKind.TRANSFER
        stake = trigger_from_intent("Stake")
        assert stake.kind is PendingKind.NFT and stake.operation is NftOperation.STAKE
        assert trigger_from_intent("nft") is None
        assert trigger_from_intent("weather") is None
