"""Constants and mappings for Chain Prophet."""

from enum import Enum

SEPOLIA_CHAIN_ID = 11155111
SEPOLIA_EXPLORER_URL = "https://sepolia.etherscan.io"

# Public Sepolia endpoints tried after any user-supplied RPC URL
DEFAULT_RPC_ENDPOINTS = (
    "https://rpc.sepolia.org",
    "https://ethereum-sepolia-rpc.publicnode.com",
    "https://sepolia.gateway.tenderly.co",
)

DEFAULT_GAS_PRICE_WEI = 20_000_000_000  # 20 gwei
TRANSFER_GAS_LIMIT = 21_000
CONTRACT_GAS_LIMIT = 300_000

MAX_FAILOVER_ATTEMPTS = 3

LOAN_MIN_DAYS = 7
LOAN_MAX_DAYS = 365
LOAN_DEFAULT_DAYS = 30
SECONDS_PER_DAY = 24 * 60 * 60

# Least recently active sessions beyond this are evicted from in-process state.
MAX_TRACKED_SESSIONS = 1024


class DefaultContract(str, Enum):
    """Sepolia deployments used when no address override is configured."""

    NFT = "0x5c7c76fe8eA314fdb49b9388f3ac92F7a159f330"
    MARKETPLACE = "0x96D1227aCD29057607601Afdf16BF853D5B58203"
    STAKING = "0x0Ef064805ecad331F2d1ED363E6C7cD7E06831e9"
    LOAN = "0xbeB3110F3563BD63dDb05F0813213d2dAC3e0BE1"


# 4-byte selectors of custom errors raised by the NFT contracts
ERROR_SELECTORS = {
    "0x177e802f": "ERC721InsufficientApproval",
    "0x7e273289": "ERC721NonexistentToken",
    "0x64283d7b": "ERC721IncorrectOwner",
    "0x118cdaa7": "OwnableUnauthorizedAccount",
    "0xa9fbf51f": "ERC721InvalidApprover",
}

REVERT_REASON_SELECTOR = "0x08c379a0"  # Error(string)

# keccak256("Transfer(address,address,uint256)")
TRANSFER_EVENT_TOPIC = "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
