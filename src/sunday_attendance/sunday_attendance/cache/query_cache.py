"""Request-level read cache with stale time and retry policies.

Reads are served from memory while fresh and re-fetched once stale. Failed
loads and mutations are retried with the configured policy. Only the policy's
``retry_on`` errors (backend failures) are retried, and after the last attempt
the error surfaces once.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterable, Optional, Tuple, Type, TypeVar

from ..core.constants import (
    INITIAL_RETRY_DELAY,
    MAX_MUTATION_RETRIES,
    MAX_QUERY_RETRIES,
    MAX_RETRY_DELAY,
    STALE_TIME_DEFAULT,
)
from ..core.exceptions import AbsenceAlertError, DataAccessError

logger = logging.getLogger(__name__)

T = TypeVar("T")
Key = Tuple[Hashable, ...]


@dataclass(frozen=True)
class RetryPolicy:
    retries: int
    initial_delay: float = INITIAL_RETRY_DELAY
    max_delay: float = MAX_RETRY_DELAY
    exponential: bool = True
    retry_on: Tuple[Type[Exception], ...] = (DataAccessError,)

    def delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0-based)."""
        if not self.exponential:
            return self.initial_delay
        return min(self.initial_delay * (2 ** attempt), self.max_delay)


# alert computation wraps backend failures, so reads retry on both
QUERY_RETRY = RetryPolicy(retries=MAX_QUERY_RETRIES, retry_on=(DataAccessError, AbsenceAlertError))
MUTATION_RETRY = RetryPolicy(retries=MAX_MUTATION_RETRIES, exponential=False)


def run_with_retry(
    fn: Callable[[], T],
    policy: RetryPolicy,
    *,
    sleep: Callable[[float], None] = time.sleep,
    label: str = "request",
) -> T:
    attempt = 0
    while True:
        try:
            return fn()
        except policy.retry_on as e:
            if attempt >= policy.retries:
                raise
            wait = policy.delay(attempt)
            logger.warning("%s failed (attempt %d/%d), retrying in %.1fs: %s", label, attempt + 1, policy.retries + 1, wait, e)
            sleep(wait)
            attempt += 1


class QueryCache:
    def __init__(
        self,
        *,
        stale_time: float = STALE_TIME_DEFAULT,
        query_retry: RetryPolicy = QUERY_RETRY,
        mutation_retry: RetryPolicy = MUTATION_RETRY,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._stale_time = float(stale_time)
        self._query_retry = query_retry
        self._mutation_retry = mutation_retry
        self._clock = clock
        self._sleep = sleep
        self._entries: Dict[Key, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def fetch(self, key: Key, loader: Callable[[], T], *, stale_time: Optional[float] = None) -> T:
        ttl = self._stale_time if stale_time is None else float(stale_time)
        now = self._clock()
        with self._lock:
            hit = self._entries.get(key)
        if hit is not None and now - hit[0] < ttl:
            return hit[1]

        value = run_with_retry(loader, self._query_retry, sleep=self._sleep, label=f"query {key!r}")
        with self._lock:
            self._entries[key] = (self._clock(), value)
        return value

    def mutate(self, fn: Callable[[], T], *, invalidates: Iterable[Hashable] = ()) -> T:
        """Run a write with the mutation policy, then drop cache keys starting with any of ``invalidates``."""

        result = run_with_retry(fn, self._mutation_retry, sleep=self._sleep, label="mutation")
        for prefix in invalidates:
            self.invalidate(prefix)
        return result

    def invalidate(self, prefix: Hashable) -> int:
        with self._lock:
            doomed = [k for k in self._entries if k and k[0] == prefix]
            for k in doomed:
                del self._entries[k]
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __contains__(self, key: Key) -> bool:
        with self._lock:
            return key in self._entries
