"""Conversation history collaborator."""

from __future__ import annotations

import threading
from collections import OrderedDict, deque
from collections.abc import Sequence
from typing import Protocol

from ..constants import MAX_TRACKED_SESSIONS
from ..types import HistoryEntry


class ConversationHistory(Protocol):
    """Stored messages of a session, oldest first."""

    def recent(self, session_id: str, limit: int) -> Sequence[HistoryEntry]: ...

    def append(self, session_id: str, entry: HistoryEntry) -> None: ...


class InMemoryHistory:
    """Bounded in-process history, mainly for tests and single-process agents.

    Each session keeps its last ``max_entries`` entries, and only the
    ``max_sessions`` most recently written sessions are retained.
    """

    def __init__(self, max_entries: int = 200, max_sessions: int = MAX_TRACKED_SESSIONS):
        self._max_entries = max_entries
        self._max_sessions = max(1, max_sessions)
        self._entries: OrderedDict[str, deque[HistoryEntry]] = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def recent(self, session_id: str, limit: int) -> Sequence[HistoryEntry]:
        with self._lock:
            entries = list(self._entries.get(session_id, ()))
        return entries[-limit:] if limit > 0 else entries

    def append(self, session_id: str, entry: HistoryEntry) -> None:
        with self._lock:
            bucket = self._entries.get(session_id)
            if bucket is None:
                bucket = deque(maxlen=self._max_entries)
                self._entries[session_id] = bucket
            else:
                self._entries.move_to_end(session_id)
            bucket.append(entry)
            while len(self._entries) > self._max_sessions:
                self._entries.popitem(last=False)
