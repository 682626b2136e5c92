"""Tests for configuration loading."""

import pytest

from chain_prophet.config import ChainClientConfig, Settings
from chain_prophet.constants import DEFAULT_RPC_ENDPOINTS, SEPOLIA_CHAIN_ID
from chain_prophet.exceptions import ConfigurationError

ENV_NAMES = (
    "EVM_PRIVATE_KEY",
    "SEPOLIA_RPC_URL",
    "CHAIN_PROPHET_RPC_URLS",
    "CHAIN_PROPHET_CHAIN_ID",
    "CHAIN_PROPHET_PENDING_TTL",
    "CHAIN_PROPHET_AUTH_SETTLE_SECONDS",
    "NFT_CONTRACT_ADDRESS",
    "NFT_MARKETPLACE_ADDRESS",
    "NFT_STAKING_ADDRESS",
    "NFT_LOAN_ADDRESS",
)
PRIVATE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"


@pytest.fixture
def clean_env(monkeypatch):
    # setenv first so monkeypatch restores variables that load_dotenv writes
    for name in ENV_NAMES:
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    return monkeypatch


@pytest.fixture
def empty_dotenv(tmp_path):
    path = tmp_path / ".env"
    path.write_text("")
    return str(path)


def test_missing_private_key(clean_env, empty_dotenv) -> None:
    with pytest.raises(ConfigurationError, match="EVM_PRIVATE_KEY"):
        Settings.from_env(empty_dotenv)


def test_defaults(clean_env, empty_dotenv) -> None:
    clean_env.setenv("EVM_PRIVATE_KEY", PRIVATE_KEY)
    settings = Settings.from_env(empty_dotenv)
    assert settings.private_key == PRIVATE_KEY
    assert settings.chain.rpc_urls == DEFAULT_RPC_ENDPOINTS
    assert settings.chain.chain_id == SEPOLIA_CHAIN_ID
    assert settings.engine.pending_ttl == 600
    assert PRIVATE_KEY not in repr(settings)


def test_rpc_urls_ordered(clean_env, empty_dotenv) -> None:
    clean_env.setenv("EVM_PRIVATE_KEY", PRIVATE_KEY)
    clean_env.setenv("SEPOLIA_RPC_URL", "https://primary")
    clean_env.setenv("CHAIN_PROPHET_RPC_URLS", "https://x, ,https://y")
    urls = Settings.from_env(empty_dotenv).chain.rpc_urls
    assert urls[:3] == ("https://primary", "https://x", "https://y")
    assert urls[3:] == DEFAULT_RPC_ENDPOINTS


def test_dotenv_file(clean_env, tmp_path) -> None:
    path = tmp_path / ".env"
    path.write_text(
        f"EVM_PRIVATE_KEY={PRIVATE_KEY}\n"
        "NFT_STAKING_ADDRESS=0x5555555555555555555555555555555555555555\n"
        "CHAIN_PROPHET_PENDING_TTL=120\n"
    )
    settings = Settings.from_env(str(path))
    assert settings.contracts.staking == "0x5555555555555555555555555555555555555555"
    assert settings.engine.pending_ttl == 120.0


def test_invalid_contract_address(clean_env, empty_dotenv) -> None:
    clean_env.setenv("EVM_PRIVATE_KEY", PRIVATE_KEY)
    clean_env.setenv("NFT_LOAN_ADDRESS", "0x123")
    with pytest.raises(ConfigurationError) as exc_info:
        Settings.from_env(empty_dotenv)
    assert exc_info.value.details == {"field": "NFT_LOAN_ADDRESS"}


def test_invalid_number(clean_env, empty_dotenv) -> None:
    clean_env.setenv("EVM_PRIVATE_KEY", PRIVATE_KEY)
    clean_env.setenv("CHAIN_PROPHET_CHAIN_ID", "sepolia")
    with pytest.raises(ConfigurationError, match="CHAIN_PROPHET_CHAIN_ID"):
        Settings.from_env(empty_dotenv)


def test_chain_config_validation() -> None:
    with pytest.raises(ConfigurationError):
        ChainClientConfig(rpc_urls=())
    with pytest.raises(ConfigurationError):
        ChainClientConfig(max_failover_attempts=0)
