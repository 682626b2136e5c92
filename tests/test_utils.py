"""Tests for utility functions."""

from decimal import Decimal

import pytest
from eth_abi import encode as abi_encode
from hexbytes import HexBytes
from web3 import Web3

from chain_prophet.exceptions import InvalidAddressError, InvalidAmountError
from chain_prophet.utils import (
    decode_revert_reason,
    explorer_tx_url,
    format_eth,
    from_wei,
    is_hex_address,
    mask_secret,
    normalise_address,
    parse_eth_amount,
    same_address,
    serialise_receipt,
    to_wei,
)


class TestAmountConversion:
    """Test ETH/wei conversion helpers."""

    def test_to_wei_decimal_string(self):
        """Test converting a decimal string to wei."""
        assert to_wei("0.01") == 10_000_000_000_000_000

    def test_to_wei_integer(self):
        """Test converting a whole number of ETH to wei."""
        assert to_wei(2) == 2 * 10**18

    def test_to_wei_smallest_unit(self):
        """Test that 18 decimals are accepted exactly."""
        assert to_wei("0.000000000000000001") == 1

    def test_too_many_decimals(self):
        """Test that amounts below one wei are rejected."""
        with pytest.raises(InvalidAmountError, match="more than 18 decimals"):
            to_wei("0.0000000000000000001")

    @pytest.mark.parametrize("value", ["0", "-1", "abc", "", "nan"])
    def test_rejects_non_positive_or_garbage(self, value):
        """Test that non-positive and unparseable amounts raise."""
        with pytest.raises(InvalidAmountError) as exc_info:
            parse_eth_amount(value, field="price")
        assert exc_info.value.field == "price"

    def test_from_wei(self):
        """Test converting wei back to ETH."""
        assert from_wei(1_500_000_000_000_000_000) == Decimal("1.5")

    def test_format_eth_trims_zeros(self):
        """Test that rendering drops trailing zeros and exponents."""
        assert format_eth(1_500_000_000_000_000_000) == "1.5"
        assert format_eth(10**18) == "1"
        assert format_eth(0) == "0"
        assert format_eth(1) == "0.000000000000000001"


class TestAddresses:
    """Test address validation and normalisation."""

    def test_normalise_checksums(self):
        """Test that a lowercase address comes back checksummed."""
        lowered = "0x5c7c76fe8ea314fdb49b9388f3ac92f7a159f330"
        result = normalise_address(lowered)
        assert result == Web3.to_checksum_address(lowered)
        assert result != lowered

    def test_wrong_length(self):
        """Test that a 39-hex value is rejected with the field name attached."""
        with pytest.raises(InvalidAddressError) as exc_info:
            normalise_address("0x" + "1" * 39, field="to")
        assert exc_info.value.field == "to"

    @pytest.mark.parametrize(
        "value", [None, "", "1111111111111111111111111111111111111111", "0x" + "g" * 40]
    )
    def test_is_hex_address_rejects(self, value):
        """Test shapes that are not addresses."""
        assert is_hex_address(value) is False

    def test_same_address_ignores_case(self):
        """Test case-insensitive address comparison."""
        upper = "0xABCDEF0000000000000000000000000000000000"
        assert same_address(upper, upper.lower())
        assert not same_address(None, upper)


class TestRevertDecoding:
    """Test revert payload decoding."""

    def test_error_string(self):
        """Test decoding an Error(string) payload."""
        payload = "0x08c379a0" + abi_encode(["string"], ["Not the owner"]).hex()
        assert decode_revert_reason(payload) == "Not the owner"

    def test_known_custom_error_bytes(self):
        """Test mapping a custom error selector from raw bytes."""
        payload = HexBytes("0x177e802f" + "00" * 64)
        assert decode_revert_reason(payload) == "ERC721InsufficientApproval"

    def test_unknown_payload(self):
        """Test that unknown selectors and non-hex data decode to None."""
        assert decode_revert_reason("0xdeadbeef") is None
        assert decode_revert_reason("execution reverted") is None
        assert decode_revert_reason(None) is None


class TestMiscHelpers:
    """Test small formatting helpers."""

    def test_mask_secret(self):
        """Test masking of long and short secrets."""
        assert mask_secret("0x" + "ab" * 32) == "0xabab...abab"
        assert mask_secret("short") == "****"

    def test_explorer_url(self):
        """Test explorer link construction with a trailing slash."""
        assert explorer_tx_url("https://sepolia.etherscan.io/", "0xabc") == (
            "https://sepolia.etherscan.io/tx/0xabc"
        )

    def test_serialise_receipt(self):
        """Test that nested bytes become 0x hex strings."""
        receipt = {
            "blockNumber": 7,
            "transactionHash": HexBytes("0x" + "aa" * 32),
            "logs": [{"topics": [HexBytes("0x" + "01" * 32)]}],
        }
        serialised = serialise_receipt(receipt)
        assert serialised["blockNumber"] == 7
        assert serialised["transactionHash"] == "0x" + "aa" * 32
        assert serialised["logs"][0]["topics"] == ["0x" + "01" * 32]
