"""Connection helpers for the chain access client."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping, Sequence
from typing import Any

from web3 import HTTPProvider, Web3
from web3.contract import Contract

from ..config import ChainClientConfig
from ..exceptions import NetworkError
from .endpoints import EndpointPool

logger = logging.getLogger(__name__)


class Web3Connections:
    """Manage one Web3 instance per configured endpoint."""

    def __init__(self, config: ChainClientConfig, pool: EndpointPool | None = None):
        self.config = config
        self.pool = pool or EndpointPool(config.rpc_urls)
        self._web3s: dict[str, Web3] = {}
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------
    def web3_for(self, url: str) -> Web3:
        with self._lock:
            web3 = self._web3s.get(url)
            if web3 is None:
                web3 = self._build_web3(url)
                self._web3s[url] = web3
            return web3

    def contract_for(
        self, url: str, address: str, abi: Sequence[Mapping[str, Any]]
    ) -> Contract:
        return self.web3_for(url).eth.contract(address=Web3.to_checksum_address(address), abi=abi)

    # ------------------------------------------------------------------
    # Internal wiring
    # ------------------------------------------------------------------
    def _build_web3(self, url: str) -> Web3:
        try:
            provider = HTTPProvider(url, request_kwargs={"timeout": self.config.request_timeout})
        except Exception as exc:
            raise NetworkError(
                "Unable to build RPC provider", endpoint=url, details={"error": str(exc)}
            ) from exc
        logger.debug("Created Web3 provider for %s", url)
        return Web3(provider)
