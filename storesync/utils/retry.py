"""
Retry helpers for database work.

Only failures of the connection itself are retried: the whole unit of work
is replayed on a fresh connection after its transaction was rolled back.
Constraint violations, bad data and programming errors surface immediately.
"""
import functools
import random
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from sqlalchemy.exc import DBAPIError, DisconnectionError, OperationalError

from storesync.utils.logger import log

# Fragments of driver messages that indicate a dropped or unusable connection
_CONNECTION_ERROR_MARKERS = (
    "connection reset",
    "connection refused",
    "connection terminated",
    "server closed the connection",
    "could not connect",
    "terminating connection",
    "connection already closed",
)


@dataclass
class RetryStats:
    """Attempts made by the most recent call of a retrying function"""
    attempts: int = 0
    total_delay_seconds: float = 0.0
    errors: List[str] = field(default_factory=list)
    success: bool = False

    @property
    def last_error(self) -> Optional[str]:
        return self.errors[-1] if self.errors else None


def calculate_backoff(
    attempt: int,
    base_delay: float = 0.1,
    max_delay: float = 5.0,
    exponential_base: float = 2.0,
    jitter: bool = True
) -> float:
    """
    Delay before the next attempt: base_delay * exponential_base^(attempt-1),
    capped at max_delay, plus up to 25% random jitter.
    """
    delay = min(base_delay * (exponential_base ** (attempt - 1)), max_delay)
    if jitter:
        delay *= 1 + random.uniform(0, 0.25)
    return delay


def is_connection_error(error: Exception) -> bool:
    """True if the error means the connection failed, not the statement"""
    if isinstance(error, DisconnectionError):
        return True

    if isinstance(error, DBAPIError) and error.connection_invalidated:
        return True

    if isinstance(error, OperationalError):
        message = str(error).lower()
        return any(marker in message for marker in _CONNECTION_ERROR_MARKERS)

    return isinstance(error, (ConnectionError, TimeoutError))


def retry_sync(
    max_attempts: int = 3,
    base_delay: float = 0.1,
    max_delay: float = 5.0,
    exponential_base: float = 2.0,
    should_retry: Callable[[Exception], bool] = is_connection_error,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None
):
    """
    Decorator that replays a function on transient errors.

    Args:
        max_attempts: Total attempts including the first
        base_delay: Delay after the first failure
        max_delay: Upper bound for any single delay
        exponential_base: Growth factor between delays
        should_retry: Predicate deciding whether an error is transient
        on_retry: Called as on_retry(attempt, error, delay) before sleeping

    The wrapped function exposes get_retry_stats() for its most recent call.
    """
    def decorator(func: Callable):
        latest = {"stats": None}

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            stats = RetryStats()
            latest["stats"] = stats
            attempt = 0

            while True:
                attempt += 1
                stats.attempts = attempt
                try:
                    result = func(*args, **kwargs)
                except Exception as e:
                    stats.errors.append(f"{type(e).__name__}: {e}")
                    if attempt >= max_attempts or not should_retry(e):
                        if attempt > 1:
                            log.error(f"{func.__name__} gave up after {attempt} attempts: {e}")
                        raise

                    delay = calculate_backoff(attempt, base_delay, max_delay, exponential_base)
                    stats.total_delay_seconds += delay
                    log.warning(f"{func.__name__} lost its connection (attempt {attempt}): {e}. Retrying in {delay:.2f}s")

                    if on_retry:
                        on_retry(attempt, e, delay)
                    time.sleep(delay)
                    continue

                stats.success = True
                if attempt > 1:
                    log.info(f"{func.__name__} recovered on attempt {attempt}")
                return result

        wrapper.get_retry_stats = lambda: latest["stats"]
        return wrapper

    return decorator
