"""Confirmation protocol: triggers, pending state, recovery and dispatch."""

from .engine import Callback, ConfirmationEngine, Executor, InboundMessage
from .history import ConversationHistory, InMemoryHistory
from .recovery import recover_pending
from .session import SessionState, SessionStore
from .vocabulary import Decision, detect_trigger, parse_response

__all__ = [
    "Callback",
    "ConfirmationEngine",
    "ConversationHistory",
    "Decision",
    "Executor",
    "InMemoryHistory",
    "InboundMessage",
    "SessionState",
    "SessionStore",
    "detect_trigger",
    "parse_response",
    "recover_pending",
]
