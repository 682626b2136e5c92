"""Endpoint pool and rate-limit failover."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Sequence
from typing import TypeVar

import requests

from ..constants import MAX_FAILOVER_ATTEMPTS
from ..exceptions import ConfigurationError
from ..utils import mentions_rate_limit

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EndpointPool:
    """Ordered node URLs with a rotating cursor.

    The URL tuple never changes after construction; only the cursor moves,
    and it wraps back to the first endpoint after the last one.
    """

    def __init__(self, urls: Sequence[str]):
        cleaned = tuple(url.strip() for url in urls if url and url.strip())
        if not cleaned:
            raise ConfigurationError("Endpoint pool requires at least one URL")
        self._urls = cleaned
        self._index = 0
        self._lock = threading.Lock()

    @property
    def urls(self) -> tuple[str, ...]:
        return self._urls

    def __len__(self) -> int:
        return len(self._urls)

    def current(self) -> str:
        with self._lock:
            return self._urls[self._index]

    def rotate(self) -> str:
        """Advance the cursor and return the newly active URL."""
        with self._lock:
            self._index = (self._index + 1) % len(self._urls)
            return self._urls[self._index]


def _status_of(exc: BaseException) -> int | None:
    if isinstance(exc, requests.HTTPError) and exc.response is not None:
        return exc.response.status_code
    for attr in ("status", "status_code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int):
            return value
    return None


def is_rate_limited(exc: BaseException) -> bool:
    """Return ``True`` when ``exc`` (or anything it wraps) signals HTTP 429."""
    seen: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if _status_of(current) == 429:
            return True
        if mentions_rate_limit(str(current)):
            return True
        current = current.__cause__ or current.__context__
    return False


class Failover:
    """Run a call against the active endpoint, rotating on rate limiting."""

    def __init__(
        self,
        pool: EndpointPool,
        *,
        max_attempts: int = MAX_FAILOVER_ATTEMPTS,
        backoff: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._pool = pool
        self._max_attempts = max(1, max_attempts)
        self._backoff = backoff
        self._sleep = sleep

    @property
    def pool(self) -> EndpointPool:
        return self._pool

    @property
    def attempts(self) -> int:
        return min(self._max_attempts, len(self._pool))

    def run(self, fn: Callable[[str], T], *, label: str = "rpc") -> T:
        """Call ``fn(url)``; on a rate-limit signal rotate and retry the same call."""
        attempts = self.attempts
        url = self._pool.current()
        for attempt in range(1, attempts + 1):
            try:
                return fn(url)
            except Exception as exc:
                if not is_rate_limited(exc) or attempt >= attempts:
                    raise
                next_url = self._pool.rotate()
                logger.warning(
                    "Rate limited on %s during %s (attempt %s/%s); switching to %s",
                    url,
                    label,
                    attempt,
                    attempts,
                    next_url,
                )
                url = next_url
                self._sleep(self._backoff * attempt)
        raise AssertionError("unreachable")  # pragma: no cover
