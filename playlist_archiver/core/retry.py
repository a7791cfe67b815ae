"""
Generic retry combinator for playlist-archiver.

Wraps any zero-argument callable and retries it according to an explicit
policy value. The daemon wraps each whole refresh cycle with it; nothing in
this module knows what a refresh cycle is.

Policies:
    - immediate: retry right away
    - delay: sleep a fixed number of seconds between attempts
    - exponential: the n-th retry (counted from 0) sleeps base * 2**n

Usage:
    from playlist_archiver.core.retry import RetryOptions, RetryPolicy, retry_call

    options = RetryOptions(max_retries=3, policy=RetryPolicy.exponential(1.0))
    result = retry_call(lambda: fetch(url), options, "fetch failed")
"""

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, TypeVar

from playlist_archiver.core.logger import get_logger

logger = get_logger(__name__)


T = TypeVar("T")


class BackoffKind(Enum):
    """How long to wait between attempts."""
    IMMEDIATE = "immediate"
    DELAY = "delay"
    EXPONENTIAL = "exponential"


@dataclass(frozen=True)
class RetryPolicy:
    """
    Wait strategy between attempts.

    Use the constructors instead of building instances directly:
        RetryPolicy.immediate()
        RetryPolicy.delay(5.0)
        RetryPolicy.exponential(1.0)

    Attributes:
        kind: The backoff strategy.
        interval: Seconds. Fixed wait for DELAY, base wait for EXPONENTIAL,
                  unused for IMMEDIATE.
    """
    kind: BackoffKind = BackoffKind.IMMEDIATE
    interval: float = 0.0

    @classmethod
    def immediate(cls) -> "RetryPolicy":
        return cls(BackoffKind.IMMEDIATE, 0.0)

    @classmethod
    def delay(cls, seconds: float) -> "RetryPolicy":
        return cls(BackoffKind.DELAY, seconds)

    @classmethod
    def exponential(cls, base_seconds: float) -> "RetryPolicy":
        return cls(BackoffKind.EXPONENTIAL, base_seconds)

    def wait_time(self, retry_number: int) -> float:
        """
        Seconds to sleep before retry number `retry_number` (0-indexed).

        Example:
            RetryPolicy.exponential(2.0).wait_time(3)  # 16.0
        """
        if self.kind is BackoffKind.IMMEDIATE:
            return 0.0
        if self.kind is BackoffKind.DELAY:
            return self.interval
        return self.interval * (2 ** retry_number)


@dataclass(frozen=True)
class RetryOptions:
    """
    Retry budget and policy.

    Attributes:
        max_retries: Retries allowed after the first attempt. None means
                     unlimited, which turns a persistent failure into an
                     endless loop; pair it with a non-immediate policy.
        policy: Wait strategy between attempts.
    """
    max_retries: int | None = None
    policy: RetryPolicy = field(default_factory=RetryPolicy.immediate)

    @property
    def is_unbounded_hot_loop(self) -> bool:
        """True when a persistent failure would retry forever without waiting."""
        return self.max_retries is None and self.policy.kind is BackoffKind.IMMEDIATE


DEFAULT_OPTIONS = RetryOptions(max_retries=3, policy=RetryPolicy.exponential(1.0))


def retry_call(
    func: Callable[[], T],
    options: RetryOptions = DEFAULT_OPTIONS,
    message: str = "operation failed",
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call `func` until it succeeds or the retry budget is spent.

    Args:
        func: Zero-argument callable to run.
        options: Retry budget and wait policy.
        message: Prefix for the log line written on each failure.
        retry_on: Exception types that trigger a retry. Anything else
                  propagates immediately.
        sleep: Sleep function, replaceable in tests.

    Returns:
        Whatever `func` returns on its first successful call.

    Raises:
        The last exception raised by `func` once max_retries retries
        have failed.

    Behavior:
        1. Call func; return its value on success
        2. On failure, log "<message> (<retry count>): <error>"
        3. If max_retries is set and already reached, re-raise
        4. Sleep per policy, increment the retry count, go to 1
    """
    retries = 0

    while True:
        try:
            return func()
        except retry_on as e:
            logger.error(f"{message} ({retries}): {e}")

            if options.max_retries is not None and retries >= options.max_retries:
                logger.error(f"{message}: giving up after {retries} retries")
                raise

            wait = options.policy.wait_time(retries)
            if wait > 0:
                logger.info(f"Retrying in {wait:.1f}s")
                sleep(wait)

            retries += 1
