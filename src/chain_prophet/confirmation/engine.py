"""Two-phase confirmation engine."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from ..classifier import ErrorClassifier
from ..config import EngineConfig
from ..exceptions import ValidationError
from ..types import (
    CallbackSignal,
    ErrorCategory,
    HistoryEntry,
    InboundSignal,
    NftOperation,
    OperationResult,
    PendingKind,
    PendingRequest,
    Reply,
    Role,
)
from . import extraction
from .history import ConversationHistory
from .prompts import build_prompt
from .recovery import Extractor, recover_pending
from .session import SessionState, SessionStore
from .vocabulary import (
    Decision,
    Response,
    Trigger,
    detect_trigger,
    parse_response,
    trigger_from_intent,
)

logger = logging.getLogger(__name__)

Callback = Callable[[Reply], None]
Notify = Callable[[str], None]
Executor = Callable[[PendingRequest, Notify], OperationResult]

_KIND_LABELS = {
    PendingKind.TRANSFER: "transfer",
    PendingKind.BALANCE: "balance lookup",
    PendingKind.NFT: "NFT operation",
}


@dataclass(frozen=True)
class InboundMessage:
    """One inbound message; ``intent`` is an optional hint from an external classifier."""

    session: str
    signal: InboundSignal
    intent: str | None = None


def _normalise_signal(signal: InboundSignal) -> tuple[str, str | None]:
    if isinstance(signal, CallbackSignal):
        return signal.token, signal.token
    return signal.text or "", None


def _label(request: PendingRequest) -> str:
    operation = request.resolved_parameters.get("operation")
    if operation:
        return NftOperation(operation).value.replace("_", " ")
    return _KIND_LABELS[request.kind]


class ConfirmationEngine:
    """Gate state-mutating operations behind an explicit accept.

    Each session keeps at most one pending request per :class:`PendingKind`.
    A pending request is removed under the session lock before its executor
    runs, so a repeated accept can never execute it twice. When session state
    has been lost, the newest unresolved prompt is recovered from history.
    """

    def __init__(
        self,
        executors: Mapping[PendingKind, Executor],
        *,
        history: ConversationHistory | None = None,
        store: SessionStore | None = None,
        config: EngineConfig | None = None,
        extract: Extractor = extraction.extract,
        classifier: ErrorClassifier | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._executors = dict(executors)
        self._history = history
        self._store = store or SessionStore()
        self._config = config or EngineConfig()
        self._extract = extract
        self._classifier = classifier or ErrorClassifier()
        self._clock = clock

    @property
    def store(self) -> SessionStore:
        return self._store

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------
    def handle(
        self, message: InboundMessage, callback: Callback | None = None
    ) -> OperationResult | None:
        """Process one message; returns ``None`` when it is neither a response nor a trigger."""

        text, token = _normalise_signal(message.signal)
        self._record(
            message.session,
            HistoryEntry(
                text=extraction.redact_private_keys(text),
                role=Role.USER,
                created_at=self._clock(),
            ),
        )
        emit = self._emitter(message.session, callback)
        state = self._store.get(message.session)

        response = parse_response(text, token)
        if response is not None:
            return self._resolve(state, response, emit)

        trigger = trigger_from_intent(message.intent) if message.intent else None
        if trigger is None:
            trigger = detect_trigger(text)
        if trigger is None:
            return None
        return self._open(state, trigger, text, emit)

    # ------------------------------------------------------------------
    # NONE -> AWAITING_CONFIRMATION
    # ------------------------------------------------------------------
    def _open(
        self, state: SessionState, trigger: Trigger, text: str, emit: Callback
    ) -> OperationResult:
        kind = trigger.kind
        reminder = False
        with state.lock:
            now = self._clock()
            existing = state.get(kind)
            if existing is not None and not existing.is_expired(now, self._config.pending_ttl):
                request = existing
                reminder = True
            else:
                if existing is not None:
                    state.pop(kind)
                    logger.info("Expired %s request in %s superseded", kind.value, state.session_id)
                try:
                    params = self._extract(kind, text, trigger.operation)
                except ValidationError as exc:
                    logger.info("Rejected %s request in %s: %s", kind.value, state.session_id, exc)
                    result = OperationResult.failure(
                        exc.category,
                        exc.message,
                        values={"field": exc.field, "value": exc.value},
                    )
                    emit(Reply(text=result.text, result=result))
                    return result
                request = PendingRequest(
                    kind=kind,
                    created_at=now,
                    raw_input=extraction.redact_private_keys(text),
                    resolved_parameters=params,
                )
                state.put(request)

        if reminder:
            logger.info("A %s request is already waiting in %s", kind.value, state.session_id)
        else:
            logger.info("Awaiting %s confirmation in %s", kind.value, state.session_id)

        prompt = build_prompt(request, reminder=reminder)
        result = OperationResult.ok(
            prompt.text,
            values={
                "status": "awaiting_confirmation",
                "kind": kind.value,
                "reminder": reminder,
            },
            data={"parameters": dict(request.resolved_parameters)},
        )
        emit(
            Reply(
                text=prompt.text,
                affordances=prompt.affordances,
                actions=prompt.actions,
                result=result,
            )
        )
        return result

    # ------------------------------------------------------------------
    # AWAITING_CONFIRMATION -> EXECUTING | CANCELLED
    # ------------------------------------------------------------------
    def _resolve(self, state: SessionState, response: Response, emit: Callback) -> OperationResult:
        expired = False
        with state.lock:
            now = self._clock()
            request = self._locate(state, response.kind, now)
            if request is not None:
                state.pop(request.kind)
                state.mark_resolved(request.kind, now)
                expired = request.is_expired(now, self._config.pending_ttl)

        if request is None:
            if response.decision is Decision.REJECT:
                result = OperationResult.ok(
                    "There is no pending operation to cancel.",
                    values={"status": "nothing_to_cancel"},
                )
            else:
                result = OperationResult.failure(
                    ErrorCategory.PENDING_NOT_FOUND,
                    "There is no pending operation to confirm. Please send the request again.",
                )
            emit(Reply(text=result.text, result=result))
            return result

        kind = request.kind
        resolution = (kind.resolution_action,)

        if response.decision is Decision.REJECT:
            logger.info("%s request cancelled in %s", kind.value, state.session_id)
            result = OperationResult.ok(
                f"The {_label(request)} has been cancelled.",
                values={"status": "cancelled", "kind": kind.value},
            )
            emit(Reply(text=result.text, actions=resolution, result=result))
            return result

        if expired:
            logger.info("%s request in %s expired before confirmation", kind.value, state.session_id)
            result = OperationResult.failure(
                ErrorCategory.PENDING_NOT_FOUND,
                f"The {_label(request)} request has expired. Please send it again.",
                values={"kind": kind.value, "expired": True},
            )
            emit(Reply(text=result.text, actions=resolution, result=result))
            return result

        emit(Reply(text=f"Confirmed. Executing the {_label(request)}...", actions=resolution))
        result = self._execute(request, emit)
        emit(Reply(text=result.text, actions=resolution, result=result))
        return result

    def _locate(
        self, state: SessionState, kind: PendingKind | None, now: float
    ) -> PendingRequest | None:
        if kind is not None:
            return state.get(kind) or self._recover(state, kind, now)

        live = state.newest()
        if live is not None:
            return live
        recovered: list[PendingRequest] = []
        for candidate in PendingKind:
            request = self._recover(state, candidate, now)
            if request is not None:
                recovered.append(request)
        if not recovered:
            return None
        return max(recovered, key=lambda request: request.created_at)

    def _recover(self, state: SessionState, kind: PendingKind, now: float) -> PendingRequest | None:
        if self._history is None:
            return None
        entries = self._history.recent(state.session_id, self._config.history_window)
        return recover_pending(
            entries,
            kind,
            now,
            extract=self._extract,
            ttl=self._config.pending_ttl,
            resolved_after=state.resolved_at(kind),
        )

    def _execute(self, request: PendingRequest, emit: Callback) -> OperationResult:
        executor = self._executors.get(request.kind)
        label = _label(request)
        if executor is None:
            return OperationResult.failure(
                ErrorCategory.UNKNOWN, f"No executor is configured for the {label}."
            )

        def notify(text: str) -> None:
            emit(Reply(text=text))

        try:
            return executor(request, notify)
        except Exception as exc:
            logger.exception("Executor for %s raised", label)
            analysis = self._classifier.classify(exc, label.capitalize())
            return OperationResult.failure(
                analysis.category,
                analysis.user_message,
                data={"raw_error": analysis.raw},
            )

    # ------------------------------------------------------------------
    # Outbound plumbing
    # ------------------------------------------------------------------
    def _emitter(self, session_id: str, callback: Callback | None) -> Callback:
        def emit(reply: Reply) -> None:
            self._record(session_id, HistoryEntry.from_reply(reply, self._clock()))
            if callback is not None:
                callback(reply)

        return emit

    def _record(self, session_id: str, entry: HistoryEntry) -> None:
        if self._history is not None:
            self._history.append(session_id, entry)
