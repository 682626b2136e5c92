"""Per-session pending confirmation state."""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict

from ..constants import MAX_TRACKED_SESSIONS
from ..types import PendingKind, PendingRequest

logger = logging.getLogger(__name__)


class SessionState:
    """Pending requests of one conversation, at most one per kind.

    Callers hold :attr:`lock` across any read-modify-write sequence so that a
    request is consumed exactly once even when messages of the same session
    race on different threads.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id
        self.lock = threading.RLock()
        self._pending: dict[PendingKind, PendingRequest] = {}
        self._resolved_at: dict[PendingKind, float] = {}

    def get(self, kind: PendingKind) -> PendingRequest | None:
        with self.lock:
            return self._pending.get(kind)

    def put(self, request: PendingRequest) -> None:
        with self.lock:
            self._pending[request.kind] = request

    def pop(self, kind: PendingKind) -> PendingRequest | None:
        with self.lock:
            return self._pending.pop(kind, None)

    def newest(self) -> PendingRequest | None:
        """Most recently created pending request of any kind."""
        with self.lock:
            if not self._pending:
                return None
            return max(self._pending.values(), key=lambda request: request.created_at)

    def pending_kinds(self) -> tuple[PendingKind, ...]:
        with self.lock:
            return tuple(self._pending)

    def mark_resolved(self, kind: PendingKind, at: float) -> None:
        with self.lock:
            self._resolved_at[kind] = at

    def resolved_at(self, kind: PendingKind) -> float | None:
        with self.lock:
            return self._resolved_at.get(kind)


class SessionStore:
    """Hands out one :class:`SessionState` per session id.

    At most ``max_sessions`` states are kept; the least recently used one is
    dropped first. A dropped session's unanswered prompt can still be
    recovered from conversation history.
    """

    def __init__(self, max_sessions: int = MAX_TRACKED_SESSIONS) -> None:
        self._max_sessions = max(1, max_sessions)
        self._sessions: OrderedDict[str, SessionState] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def get(self, session_id: str) -> SessionState:
        with self._lock:
            state = self._sessions.get(session_id)
            if state is None:
                state = SessionState(session_id)
                self._sessions[session_id] = state
                while len(self._sessions) > self._max_sessions:
                    evicted, _ = self._sessions.popitem(last=False)
                    logger.debug("Evicted idle session %s", evicted)
            else:
                self._sessions.move_to_end(session_id)
            return state
