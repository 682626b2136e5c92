"""Tests for the transfer and balance executors."""

import pytest

from chain_prophet.exceptions import NetworkError
from chain_prophet.operations import BalanceExecutor, TransferExecutor
from chain_prophet.types import ErrorCategory, SettlementStatus, ValueTransfer

RECIPIENT = "0x2222222222222222222222222222222222222222"


@pytest.fixture
def transfer(chain):
    return TransferExecutor(chain, explorer_url="https://sepolia.etherscan.io", gas_limit=21_000)


@pytest.fixture
def balance(chain):
    return BalanceExecutor(chain)


class TestTransferExecutor:
    """Test balance checks, submission and settlement reporting."""

    def test_confirmed_transfer(self, chain, transfer):
        """Test the happy path end to end."""
        notes = []
        result = transfer.execute(RECIPIENT, "0.01", notify=notes.append)

        assert result.success
        assert chain.submitted == [ValueTransfer(to=RECIPIENT, value=10**16)]
        assert result.values["settlement"] == "confirmed"
        assert result.values["amount"] == "0.01"
        assert result.values["block_number"] == 100
        assert result.values["explorer_url"].startswith("https://sepolia.etherscan.io/tx/0x")
        assert any(note.startswith("Sending 0.01 ETH") for note in notes)
        assert any("Waiting for confirmation" in note for note in notes)

    def test_insufficient_balance(self, chain, transfer):
        """Test the proactive check reports balance, requirement and shortfall."""
        chain.balance = 10**15
        result = transfer.execute(RECIPIENT, "0.01")

        assert result.error is ErrorCategory.INSUFFICIENT_BALANCE
        assert result.values["balance"] == "0.001"
        assert result.values["required"] == "0.010021"
        assert result.values["shortfall"] == "0.009021"
        assert chain.submitted == []

    def test_invalid_address(self, chain, transfer):
        """Test that a bad recipient fails before any chain access."""
        result = transfer.execute("0x1234", "0.01")
        assert result.error is ErrorCategory.INVALID_ADDRESS
        assert chain.balance_requests == []

    def test_invalid_amount(self, transfer):
        """Test that a non-positive amount is rejected."""
        assert transfer.execute(RECIPIENT, "-1").error is ErrorCategory.INVALID_AMOUNT

    def test_reverted(self, chain, transfer):
        """Test a mined but reverted transaction."""
        chain.settlement = SettlementStatus.REVERTED
        result = transfer.execute(RECIPIENT, "0.01")
        assert result.error is ErrorCategory.EXECUTION_REVERTED
        assert result.values["tx_hash"].startswith("0x")

    def test_unconfirmed_is_qualified_success(self, chain, transfer):
        """Test that a missing receipt is still a submitted transfer."""
        chain.settlement = SettlementStatus.UNCONFIRMED
        result = transfer.execute(RECIPIENT, "0.01")
        assert result.success
        assert result.values["settlement"] == "unconfirmed"
        assert "could not be observed" in result.text

    def test_submission_failure_classified(self, chain, transfer):
        """Test that a broadcast failure is classified."""
        chain.submit_errors.append(NetworkError("Failed to submit transaction: boom"))
        result = transfer.execute(RECIPIENT, "0.01")
        assert result.error is ErrorCategory.NETWORK_ERROR


class TestBalanceExecutor:
    """Test balance lookups."""

    def test_defaults_to_signer(self, chain, balance):
        """Test that no address means the agent wallet."""
        chain.balance = 1_500_000_000_000_000_000
        result = balance.execute()
        assert result.success
        assert result.values["address"] == chain.address
        assert result.values["balance"] == "1.5"
        assert chain.balance_requests == [chain.address]

    def test_explicit_address(self, chain, balance):
        """Test a lookup for another account."""
        result = balance.execute(RECIPIENT)
        assert result.values["address"] == RECIPIENT
        assert chain.balance_requests == [RECIPIENT]

    def test_invalid_address(self, balance):
        """Test that a malformed address is reported."""
        assert balance.execute("0xnope").error is ErrorCategory.INVALID_ADDRESS
