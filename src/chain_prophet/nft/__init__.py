"""NFT contract services."""

from .service import NftService

__all__ = ["NftService"]
