"""Minimal ABIs for the NFT, marketplace, staking and loan contracts."""

from typing import Any


def _fn(
    name: str,
    inputs: list[tuple[str, str]],
    outputs: list[tuple[str, str]] | None = None,
    mutability: str = "nonpayable",
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": [{"name": arg, "type": kind} for arg, kind in inputs],
        "outputs": [{"name": arg, "type": kind} for arg, kind in outputs or []],
        "stateMutability": mutability,
    }


ERC721_abi = [
    _fn("approve", [("to", "address"), ("tokenId", "uint256")]),
    _fn("getApproved", [("tokenId", "uint256")], [("", "address")], "view"),
    _fn(
        "isApprovedForAll",
        [("owner", "address"), ("operator", "address")],
        [("", "bool")],
        "view",
    ),
    _fn("ownerOf", [("tokenId", "uint256")], [("", "address")], "view"),
]

MintableNFT_abi = ERC721_abi + [
    _fn("mint", [("to", "address")], [("", "uint256")]),
    _fn("owner", [], [("", "address")], "view"),
]

NFTMarketplace_abi = [
    _fn("listNFT", [("tokenId", "uint256"), ("price", "uint256")]),
    _fn("cancelListing", [("tokenId", "uint256")]),
    _fn("buyNFT", [("tokenId", "uint256")], mutability="payable"),
    _fn(
        "getListing",
        [("tokenId", "uint256")],
        [("seller", "address"), ("price", "uint256"), ("active", "bool")],
        "view",
    ),
]

NFTStaking_abi = [
    _fn("stakeNFT", [("tokenId", "uint256")]),
    _fn("unstakeNFT", [("tokenId", "uint256")]),
    _fn(
        "getStakingInfo",
        [("tokenId", "uint256")],
        [("staker", "address"), ("startTime", "uint256"), ("rewards", "uint256")],
        "view",
    ),
]

NFTLoan_abi = [
    _fn(
        "createLoan",
        [("tokenId", "uint256"), ("loanAmount", "uint256"), ("duration", "uint256")],
    ),
    _fn("fulfillLoan", [("loanId", "uint256")], mutability="payable"),
    _fn("repayLoan", [("loanId", "uint256")], mutability="payable"),
    _fn(
        "loans",
        [("loanId", "uint256")],
        [
            ("borrower", "address"),
            ("lender", "address"),
            ("tokenId", "uint256"),
            ("loanAmount", "uint256"),
            ("interestRate", "uint256"),
            ("startTime", "uint256"),
            ("dueDate", "uint256"),
            ("repaymentAmount", "uint256"),
            ("active", "bool"),
            ("repaid", "bool"),
        ],
        "view",
    ),
]
