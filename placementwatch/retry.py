"""
Retry, pacing and quota circuit-breaking for upstream calls.

Transient transport failures are retried with exponential backoff. Quota
exhaustion is not transient: it latches a per-service breaker that stays open
for the life of the process, so later calls cost nothing and other services
keep working.
"""

import time
import functools
from typing import Any, Callable, Dict, List, Type, Tuple, Optional
from datetime import datetime


class RetryError(Exception):
    """Raised when all retry attempts are exhausted."""
    pass


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable] = None,
):
    """
    Decorator for retrying functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (0 = no retries)
        base_delay: Initial delay in seconds
        max_delay: Maximum delay between retries in seconds
        exponential_base: Base for exponential calculation (delay *= base)
        exceptions: Tuple of exceptions to catch and retry
        on_retry: Optional callback function(attempt, exception, delay)

    Example:
        @exponential_backoff(max_retries=2, base_delay=1.0)
        def search(query):
            return requests.post(SERPER_ENDPOINT, json={"q": query}, timeout=10)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            delay = base_delay
            last_exception = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e

                    if attempt < max_retries:
                        current_delay = min(delay, max_delay)

                        if on_retry:
                            on_retry(attempt + 1, e, current_delay)

                        time.sleep(current_delay)
                        delay *= exponential_base
                    else:
                        raise RetryError(
                            f"Failed after {max_retries + 1} attempts: {str(e)}"
                        ) from e

            raise RetryError(
                f"Unexpected retry exhaustion: {str(last_exception)}"
            ) from last_exception

        return wrapper
    return decorator


QUOTA_KEYWORDS = (
    "quota",
    "credit",
    "credits",
    "limit exceeded",
    "rate limit",
    "usage limit",
    "not enough",
    "insufficient",
    "exhausted",
    "out of searches",
    "upgrade your plan",
    "payment required",
)


def _payload_messages(payload: Any) -> List[str]:
    if isinstance(payload, str):
        return [payload]
    if not isinstance(payload, dict):
        return []
    messages = []
    for key in ("message", "error", "detail", "errors"):
        value = payload.get(key)
        if isinstance(value, str):
            messages.append(value)
        elif isinstance(value, dict):
            messages.extend(_payload_messages(value))
        elif isinstance(value, list):
            messages.extend(str(v) for v in value)
    return messages


def is_quota_exhausted(status_code: Optional[int], payload: Any = None) -> bool:
    """
    Decide whether an upstream response means the account is out of quota.

    HTTP 402 always counts. Other error statuses count only when the payload
    uses quota or credit vocabulary, since a 429 alone may just be a burst.
    """
    if status_code == 402:
        return True
    if status_code is not None and status_code < 400 and not isinstance(payload, dict):
        return False
    text = " ".join(_payload_messages(payload)).lower()
    if not text:
        return False
    return any(keyword in text for keyword in QUOTA_KEYWORDS)


class CircuitBreaker:
    """
    Latched breaker for one upstream service.

    States:
    - CLOSED: Normal operation, requests pass through
    - OPEN: Quota exhausted, requests are refused until reset()
    """

    CLOSED = "closed"
    OPEN = "open"

    def __init__(self, service: str):
        self.service = service
        self.state = self.CLOSED
        self.reason: Optional[str] = None
        self.opened_at: Optional[datetime] = None
        self.refused_calls = 0

    @property
    def is_open(self) -> bool:
        return self.state == self.OPEN

    def allow(self) -> bool:
        """True if a call may go out; counts refusals while open."""
        if self.state == self.OPEN:
            self.refused_calls += 1
            return False
        return True

    def trip(self, reason: str = ""):
        """Open the breaker. Idempotent; the first reason is kept."""
        if self.state == self.OPEN:
            return
        self.state = self.OPEN
        self.reason = reason
        self.opened_at = datetime.now()

    def reset(self):
        """Manually close the breaker (e.g. after credits are topped up)."""
        self.state = self.CLOSED
        self.reason = None
        self.opened_at = None
        self.refused_calls = 0


class BreakerRegistry:
    """One CircuitBreaker per upstream service name."""

    def __init__(self):
        self._breakers: Dict[str, CircuitBreaker] = {}

    def get(self, service: str) -> CircuitBreaker:
        if service not in self._breakers:
            self._breakers[service] = CircuitBreaker(service)
        return self._breakers[service]

    def open_services(self) -> List[str]:
        return sorted(name for name, b in self._breakers.items() if b.is_open)

    def reset_all(self):
        for breaker in self._breakers.values():
            breaker.reset()


class RateLimiter:
    """
    Enforce a minimum interval between calls to the same service.

    The clock and sleep functions are injectable so tests run instantly.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_interval = max(0.0, min_interval)
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None

    def wait(self):
        if self._last_call is not None and self.min_interval > 0:
            elapsed = self._clock() - self._last_call
            if elapsed < self.min_interval:
                self._sleep(self.min_interval - elapsed)
        self._last_call = self._clock()


def is_transient_error(exception: Exception) -> bool:
    """
    Determine if an exception is likely transient and should be retried.

    Args:
        exception: Exception to check

    Returns:
        True if error is likely transient (timeout, connection, 5xx)
    """
    error_str = str(exception).lower()

    transient_keywords = [
        'timeout',
        'timed out',
        'connection',
        'temporary failure',
        'service unavailable',
        '503',
        '502',
        '500',
        'connection reset',
    ]

    return any(keyword in error_str for keyword in transient_keywords)


def should_retry_http_status(status_code: int) -> bool:
    """
    Check if HTTP status code indicates a retryable error.

    429 is absent: search APIs answer 429 for exhausted credits, which the
    quota breaker handles.
    """
    retryable_codes = {
        408,  # Request Timeout
        500,  # Internal Server Error
        502,  # Bad Gateway
        503,  # Service Unavailable
        504,  # Gateway Timeout
    }

    return status_code in retryable_codes
