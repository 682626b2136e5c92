"""Application facade wiring the chain layer, executors and confirmation engine."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from .authorization import AutoAuthorizer
from .base import ChainAccess
from .chain import Account, ChainClient
from .classifier import ErrorClassifier
from .config import Settings
from .confirmation import (
    Callback,
    ConfirmationEngine,
    ConversationHistory,
    InboundMessage,
    InMemoryHistory,
)
from .nft import NftService
from .operations import BalanceExecutor, NftExecutor, Notify, TransferExecutor
from .types import OperationResult, PendingKind, PendingRequest
from .verifier import PreconditionVerifier

logger = logging.getLogger(__name__)


class ChainProphet:
    """Entry point for an external message dispatcher.

    Typical use::

        agent = ChainProphet.from_settings(Settings.from_env())
        agent.handle(InboundMessage("chat-1", TextSignal("send 0.01 ETH to 0x...")), print)
    """

    def __init__(
        self,
        settings: Settings,
        chain: ChainAccess,
        *,
        history: ConversationHistory | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.chain = chain
        self.classifier = ErrorClassifier()

        contracts = settings.contracts
        self.verifier = PreconditionVerifier(chain, contracts.nft)
        self.authorizer = AutoAuthorizer(
            chain,
            self.verifier,
            contracts.nft,
            classifier=self.classifier,
            settle_seconds=settings.engine.auth_settle_seconds,
            sleep=sleep,
        )
        self.nft_service = NftService(
            chain,
            contracts,
            self.verifier,
            self.authorizer,
            gas_limit=settings.chain.contract_gas_limit,
        )

        explorer = settings.chain.explorer_url
        self.balance = BalanceExecutor(chain, classifier=self.classifier, explorer_url=explorer)
        self.transfer = TransferExecutor(
            chain,
            classifier=self.classifier,
            explorer_url=explorer,
            gas_limit=settings.chain.transfer_gas_limit,
        )
        self.nft = NftExecutor(
            chain, self.nft_service, classifier=self.classifier, explorer_url=explorer
        )

        self.engine = ConfirmationEngine(
            {
                PendingKind.BALANCE: self._run_balance,
                PendingKind.TRANSFER: self._run_transfer,
                PendingKind.NFT: self._run_nft,
            },
            history=history if history is not None else InMemoryHistory(),
            config=settings.engine,
            classifier=self.classifier,
            clock=clock,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, *, history: ConversationHistory | None = None
    ) -> ChainProphet:
        account = Account.from_private_key(settings.private_key)
        chain = ChainClient(settings.chain, account)
        logger.info(
            "Chain Prophet ready for %s on chain %s via %s endpoint(s)",
            account.address,
            settings.chain.chain_id,
            len(settings.chain.rpc_urls),
        )
        return cls(settings, chain, history=history)

    def handle(
        self, message: InboundMessage, callback: Callback | None = None
    ) -> OperationResult | None:
        return self.engine.handle(message, callback)

    # ------------------------------------------------------------------
    # Executor adapters
    # ------------------------------------------------------------------
    def _run_balance(self, request: PendingRequest, notify: Notify) -> OperationResult:
        return self.balance.execute(request.resolved_parameters.get("address"))

    def _run_transfer(self, request: PendingRequest, notify: Notify) -> OperationResult:
        params = request.resolved_parameters
        return self.transfer.execute(params["address"], params["amount"], notify=notify)

    def _run_nft(self, request: PendingRequest, notify: Notify) -> OperationResult:
        params = request.resolved_parameters
        return self.nft.execute(params["operation"], params, notify=notify)
