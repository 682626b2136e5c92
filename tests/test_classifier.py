"""Tests for error classification."""

import pytest
from eth_abi import encode as abi_encode
from web3.exceptions import ContractLogicError

from chain_prophet.classifier import ErrorClassifier
from chain_prophet.exceptions import (
    AuthorizationRequiredError,
    InvalidAddressError,
    NetworkError,
    NotOwnerError,
)
from chain_prophet.types import ErrorCategory


@pytest.fixture
def classifier():
    return ErrorClassifier()


class TestRuleTable:
    """Test message-based classification."""

    @pytest.mark.parametrize(
        "message,category",
        [
            ("execution reverted: ERC721InsufficientApproval", ErrorCategory.AUTHORIZATION_REQUIRED),
            ("ERC721: caller is not token owner or approved", ErrorCategory.AUTHORIZATION_REQUIRED),
            ("Ownable: caller is not the owner", ErrorCategory.NOT_OWNER),
            ("insufficient funds for gas * price + value", ErrorCategory.INSUFFICIENT_BALANCE),
            ("NFT already listed", ErrorCategory.INVALID_STATE),
            ("ERC721NonexistentToken(42)", ErrorCategory.INVALID_TOKEN),
            ("Invalid price", ErrorCategory.INVALID_AMOUNT),
            ("429 Client Error: Too Many Requests", ErrorCategory.RATE_LIMITED),
            ("EXECUTION REVERTED", ErrorCategory.EXECUTION_REVERTED),
            ("HTTPSConnectionPool: Read timed out", ErrorCategory.NETWORK_ERROR),
        ],
    )
    def test_categories(self, classifier, message, category):
        """Test one representative message per rule."""
        assert classifier.classify(RuntimeError(message), "Stake NFT").category is category

    def test_429_inside_address_is_not_rate_limit(self, classifier):
        """Test that a revert quoting an address containing 429 stays a revert."""
        error = RuntimeError(
            "execution reverted: transfer to 0x4290000000000000000000000000000000000001 failed"
        )
        analysis = classifier.classify(error, "Transfer")
        assert analysis.category is ErrorCategory.EXECUTION_REVERTED

    def test_first_match_wins(self, classifier):
        """Test that the earlier rule decides when several markers appear."""
        analysis = classifier.classify("not authorized: sender is not the owner", "List NFT")
        assert analysis.category is ErrorCategory.AUTHORIZATION_REQUIRED

    def test_user_message_layout(self, classifier):
        """Test the headline, reason and suggestion are all rendered."""
        analysis = classifier.classify(RuntimeError("already staked"), "Stake NFT")
        assert analysis.user_message.startswith("Stake NFT failed: NFT state conflict")
        assert "Reason:" in analysis.user_message
        assert "What to do:" in analysis.user_message
        assert analysis.raw == "already staked"

    def test_unknown_keeps_raw_text(self, classifier):
        """Test the fallback category carries the original message."""
        analysis = classifier.classify(RuntimeError("kaboom"), "Buy NFT")
        assert analysis.category is ErrorCategory.UNKNOWN
        assert "kaboom" in analysis.user_message


class TestStructuredErrors:
    """Test typed exceptions and decoded revert data."""

    def test_typed_exception_maps_directly(self, classifier):
        """Test that library exceptions keep their own category and message."""
        analysis = classifier.classify(NotOwnerError("Address 0x1 is not the owner of NFT #1"), "Stake NFT")
        assert analysis.category is ErrorCategory.NOT_OWNER
        assert analysis.user_message == "Stake NFT failed: Address 0x1 is not the owner of NFT #1"

    def test_validation_error(self, classifier):
        """Test validation errors map to their own category."""
        analysis = classifier.classify(InvalidAddressError("Invalid address: 0x12"), "Transfer")
        assert analysis.category is ErrorCategory.INVALID_ADDRESS

    def test_network_error_fallback(self, classifier):
        """Test a NetworkError without recognisable markers."""
        analysis = classifier.classify(NetworkError("Failed to submit transaction: boom"), "Transfer")
        assert analysis.category is ErrorCategory.NETWORK_ERROR

    def test_decoded_revert_reason(self, classifier):
        """Test that Error(string) revert data is decoded before matching."""
        data = "0x08c379a0" + abi_encode(["string"], ["Not the owner"]).hex()
        analysis = classifier.classify(ContractLogicError("execution reverted", data=data), "Unstake NFT")
        assert analysis.category is ErrorCategory.NOT_OWNER

    def test_wrapped_cause_is_inspected(self, classifier):
        """Test that chained causes contribute to the match."""
        try:
            try:
                raise ValueError("ERC721InsufficientApproval")
            except ValueError as inner:
                raise RuntimeError("transaction failed") from inner
        except RuntimeError as outer:
            analysis = classifier.classify(outer, "List NFT")
        assert analysis.category is ErrorCategory.AUTHORIZATION_REQUIRED

    def test_is_authorization_error(self, classifier):
        """Test the helper used by the auto-authorizer."""
        assert classifier.is_authorization_error(AuthorizationRequiredError("missing"))
        assert classifier.is_authorization_error(RuntimeError("0x177e802f"))
        assert not classifier.is_authorization_error(NotOwnerError("not authorized"))
        assert not classifier.is_authorization_error(RuntimeError("execution reverted"))
