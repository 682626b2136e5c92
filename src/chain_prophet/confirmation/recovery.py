"""Rebuild a pending request from conversation history."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from ..exceptions import ValidationError
from ..types import HistoryEntry, NftOperation, PendingKind, PendingRequest, Role
from .prompts import PROMPT_HEADERS, REMINDER_ACTION, operation_from_actions

logger = logging.getLogger(__name__)

Extractor = Callable[[PendingKind, str, NftOperation | None], Mapping[str, Any]]


def is_prompt(entry: HistoryEntry, kind: PendingKind) -> bool:
    if entry.role is not Role.AGENT:
        return False
    return (
        kind.prompt_action in entry.actions
        or kind.accept_token in entry.affordance_tokens
        or entry.text.startswith(PROMPT_HEADERS[kind])
    )


def is_resolution(entry: HistoryEntry, kind: PendingKind) -> bool:
    return entry.role is Role.AGENT and kind.resolution_action in entry.actions


def recover_pending(
    entries: Sequence[HistoryEntry],
    kind: PendingKind,
    now: float,
    *,
    extract: Extractor,
    ttl: float,
    resolved_after: float | None = None,
) -> PendingRequest | None:
    """Find the newest unresolved prompt of ``kind`` and re-extract its parameters.

    ``entries`` are ordered oldest to newest. Scanning stops at the first
    resolution reply of this kind, since anything older has been handled.
    """

    for index in range(len(entries) - 1, -1, -1):
        entry = entries[index]
        if is_resolution(entry, kind):
            return None
        if not is_prompt(entry, kind) or REMINDER_ACTION in entry.actions:
            continue

        if ttl > 0 and now - entry.created_at > ttl:
            logger.debug("Newest %s prompt is older than %ss; not recovering", kind.value, ttl)
            return None
        if resolved_after is not None and entry.created_at <= resolved_after:
            return None

        source = next(
            (entries[i] for i in range(index - 1, -1, -1) if entries[i].role is Role.USER),
            None,
        )
        if source is None:
            return None

        try:
            params = extract(kind, source.text, operation_from_actions(entry.actions))
        except ValidationError as exc:
            logger.info("Could not re-extract %s parameters from history: %s", kind.value, exc)
            return None

        logger.info("Recovered pending %s request from history", kind.value)
        return PendingRequest(
            kind=kind,
            created_at=entry.created_at,
            raw_input=source.text,
            resolved_parameters=dict(params),
        )
    return None
