"""
Request Scheduler - Global request pacing and bounded retry on top of PrintavoClient.

Printavo allows 10 requests per 5 seconds per credential. Going over it gets
requests throttled and, if sustained, the credential blocked, which would end
the whole run. Two pieces keep us under it:

  RateGate          One shared object per process. Grants permission to send a
                    request no sooner than ``min_interval`` seconds after the
                    previous grant, across all threads. Every attempt, including
                    retries, passes through it.

  RequestScheduler  Wraps a transport. Retries TransientFailure up to
                    ``max_attempts`` total attempts, waiting
                    ``retry_delay * attempt`` between attempts (or the server's
                    Retry-After, if longer). FatalFailure is never retried.

The gate is injected into every scheduler rather than kept at module level, so
tests and concurrent fetchers can share or isolate it explicitly.
"""

import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from tenacity import RetryCallState, Retrying, retry_if_exception_type, stop_after_attempt

from .exceptions import TransientFailure

logger = logging.getLogger(__name__)


class RateGate:
    """Mutex-guarded minimum-interval gate shared by every request path.

    Attributes:
        min_interval: Minimum seconds between two grants.
        grants: Number of grants issued so far.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_interval = max(0.0, min_interval)
        self.grants = 0
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_at: Optional[float] = None

    def acquire(self) -> float:
        """Block until a request may be sent. Returns the seconds spent waiting.

        The lock is held while sleeping so concurrent callers queue behind each
        other instead of all waking at the same instant.
        """
        with self._lock:
            waited = 0.0
            now = self._clock()
            if self._next_at is not None and now < self._next_at:
                waited = self._next_at - now
                self._sleep(waited)
                now = max(self._clock(), self._next_at)
            self._next_at = now + self.min_interval
            self.grants += 1
            return waited


class RequestScheduler:
    """Paces and retries GraphQL calls.

    Attributes:
        transport: Object with ``execute_graphql(query, variables)``.
        gate: The process-wide RateGate.
        max_attempts: Total attempts per call (first try included).
        retry_delay: Base delay in seconds; attempt N waits ``retry_delay * N``.
        attempts: Total transport calls issued through this scheduler.
    """

    def __init__(
        self,
        transport,
        gate: RateGate,
        max_attempts: int = 3,
        retry_delay: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.transport = transport
        self.gate = gate
        self.max_attempts = max_attempts
        self.retry_delay = max(0.0, retry_delay)
        self.attempts = 0
        self._sleep = sleep
        self._count_lock = threading.Lock()

    def execute(self, query: str, variables: Optional[Dict] = None, description: str = "") -> Dict[str, Any]:
        """Run one query with pacing and retries.

        Raises:
            TransientFailure: Still failing after ``max_attempts`` attempts.
            FatalFailure: Immediately, on the first non-retriable failure.
        """
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self._backoff,
            retry=retry_if_exception_type(TransientFailure),
            sleep=self._sleep,
            before_sleep=lambda state: self._log_retry(state, description),
            reraise=True,
        )
        return retrying(self._attempt, query, variables)

    def _attempt(self, query: str, variables: Optional[Dict]) -> Dict[str, Any]:
        self.gate.acquire()
        with self._count_lock:
            self.attempts += 1
        return self.transport.execute_graphql(query, variables)

    def _backoff(self, retry_state: RetryCallState) -> float:
        delay = self.retry_delay * retry_state.attempt_number
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        retry_after = getattr(exc, "retry_after", None)
        if retry_after is not None:
            delay = max(delay, retry_after)
        return delay

    def _log_retry(self, retry_state: RetryCallState, description: str):
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        wait = retry_state.next_action.sleep if retry_state.next_action else 0
        logger.warning(
            "Request failed%s (attempt %d/%d): %s. Waiting %.1fs before retry",
            f" [{description}]" if description else "",
            retry_state.attempt_number,
            self.max_attempts,
            exc,
            wait,
        )
