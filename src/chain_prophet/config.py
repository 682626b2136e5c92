"""Configuration containers for Chain Prophet."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv
from web3.types import ChecksumAddress

from .constants import (
    CONTRACT_GAS_LIMIT,
    DEFAULT_GAS_PRICE_WEI,
    DEFAULT_RPC_ENDPOINTS,
    MAX_FAILOVER_ATTEMPTS,
    SEPOLIA_CHAIN_ID,
    SEPOLIA_EXPLORER_URL,
    TRANSFER_GAS_LIMIT,
    DefaultContract,
)
from .exceptions import ConfigurationError, ValidationError
from .utils import normalise_address

DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_RECEIPT_TIMEOUT = 60.0
DEFAULT_FAILOVER_BACKOFF = 1.0
DEFAULT_PENDING_TTL = 600.0
DEFAULT_HISTORY_WINDOW = 20
DEFAULT_AUTH_SETTLE_SECONDS = 3.0


@dataclass(frozen=True)
class ChainClientConfig:
    """Settings for the failover-aware chain access client."""

    rpc_urls: tuple[str, ...] = DEFAULT_RPC_ENDPOINTS
    chain_id: int = SEPOLIA_CHAIN_ID
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    receipt_timeout: float = DEFAULT_RECEIPT_TIMEOUT
    max_failover_attempts: int = MAX_FAILOVER_ATTEMPTS
    failover_backoff: float = DEFAULT_FAILOVER_BACKOFF
    default_gas_price: int = DEFAULT_GAS_PRICE_WEI
    transfer_gas_limit: int = TRANSFER_GAS_LIMIT
    contract_gas_limit: int = CONTRACT_GAS_LIMIT
    explorer_url: str = SEPOLIA_EXPLORER_URL

    def __post_init__(self) -> None:
        if not self.rpc_urls:
            raise ConfigurationError("At least one RPC endpoint is required")
        if self.max_failover_attempts < 1:
            raise ConfigurationError(
                "max_failover_attempts must be at least 1",
                details={"max_failover_attempts": self.max_failover_attempts},
            )


@dataclass(frozen=True)
class ContractAddresses:
    """Deployed contract addresses for the NFT suite."""

    nft: ChecksumAddress
    marketplace: ChecksumAddress
    staking: ChecksumAddress
    loan: ChecksumAddress

    @classmethod
    def defaults(cls) -> ContractAddresses:
        return cls(
            nft=normalise_address(DefaultContract.NFT.value),
            marketplace=normalise_address(DefaultContract.MARKETPLACE.value),
            staking=normalise_address(DefaultContract.STAKING.value),
            loan=normalise_address(DefaultContract.LOAN.value),
        )


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for the confirmation engine and auto-authorization."""

    pending_ttl: float = DEFAULT_PENDING_TTL
    history_window: int = DEFAULT_HISTORY_WINDOW
    auth_settle_seconds: float = DEFAULT_AUTH_SETTLE_SECONDS


@dataclass(frozen=True)
class Settings:
    """Aggregated configuration used to construct the agent."""

    private_key: str = field(repr=False)
    chain: ChainClientConfig = ChainClientConfig()
    contracts: ContractAddresses = field(default_factory=ContractAddresses.defaults)
    engine: EngineConfig = EngineConfig()

    @classmethod
    def from_env(cls, dotenv_path: str | None = None) -> Settings:
        """Build settings from the process environment and an optional ``.env`` file."""

        load_dotenv(dotenv_path)

        private_key = os.getenv("EVM_PRIVATE_KEY", "").strip()
        if not private_key:
            raise ConfigurationError("EVM_PRIVATE_KEY is not set")

        rpc_urls: list[str] = []
        primary = os.getenv("SEPOLIA_RPC_URL", "").strip()
        if primary:
            rpc_urls.append(primary)
        extra = os.getenv("CHAIN_PROPHET_RPC_URLS", "")
        rpc_urls.extend(url.strip() for url in extra.split(",") if url.strip())
        for url in DEFAULT_RPC_ENDPOINTS:
            if url not in rpc_urls:
                rpc_urls.append(url)

        defaults = ContractAddresses.defaults()
        try:
            contracts = ContractAddresses(
                nft=_env_address("NFT_CONTRACT_ADDRESS", defaults.nft),
                marketplace=_env_address("NFT_MARKETPLACE_ADDRESS", defaults.marketplace),
                staking=_env_address("NFT_STAKING_ADDRESS", defaults.staking),
                loan=_env_address("NFT_LOAN_ADDRESS", defaults.loan),
            )
        except ValidationError as exc:
            raise ConfigurationError(exc.message, details={"field": exc.field}) from exc

        chain = ChainClientConfig(
            rpc_urls=tuple(rpc_urls),
            chain_id=_env_number("CHAIN_PROPHET_CHAIN_ID", SEPOLIA_CHAIN_ID, int),
        )
        engine = EngineConfig(
            pending_ttl=_env_number("CHAIN_PROPHET_PENDING_TTL", DEFAULT_PENDING_TTL, float),
            auth_settle_seconds=_env_number(
                "CHAIN_PROPHET_AUTH_SETTLE_SECONDS", DEFAULT_AUTH_SETTLE_SECONDS, float
            ),
        )
        return cls(private_key=private_key, chain=chain, contracts=contracts, engine=engine)


def _env_address(name: str, default: ChecksumAddress) -> ChecksumAddress:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    return normalise_address(raw, field=name)


def _env_number(name: str, default, parser):
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return parser(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be numeric", details={"value": raw}) from exc
