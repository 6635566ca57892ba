"""
Retry and backoff execution for icloud-album.

Every data-fetching network call runs through RetryExecutor.execute(),
which takes the unit of work (usually one HTTP round trip plus decode) as
a zero-argument callable and a RetryPolicy describing how long to wait
between attempts.

Classification:
    Only errors for which core.exceptions.is_retryable() is True are
    retried (TransientNetworkError, RateLimitedError). Anything else,
    including ClientRejectedError and SchemaViolationError, propagates
    on the first attempt.

Backoff (attempt n starts at 1, b = base_delay):
    CONSTANT             b
    LINEAR               b * n
    EXPONENTIAL          b * 2^(n-1)
    EXPONENTIAL_JITTER   uniform in [0, min(b * 2^(n-1), jitter_bound)]

A RateLimitedError carrying Retry-After raises the delay to that value,
capped at max_retry_after.

On final failure the last error is re-raised unchanged, so callers see
the root cause rather than a generic "retries exhausted" error.

Usage:
    executor = RetryExecutor(RetryPolicy(max_attempts=3, base_delay=0.5))
    payload = executor.execute(lambda: transport.post_json(url, body))
"""

import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, TypeVar

from icloud_album.core.exceptions import RateLimitedError, is_retryable
from icloud_album.core.logger import get_logger

logger = get_logger(__name__)


T = TypeVar("T")


class BackoffStrategy(Enum):
    """How the delay grows between attempts."""
    CONSTANT = "constant"
    LINEAR = "linear"
    EXPONENTIAL = "exponential"
    EXPONENTIAL_JITTER = "exponential_jitter"


@dataclass(frozen=True)
class RetryPolicy:
    """
    Immutable retry configuration for one execute() call.

    Attributes:
        max_attempts: Total attempts including the first one. Must be >= 1.
        strategy: Backoff strategy.
        base_delay: Base delay in seconds.
        jitter_bound: Upper cap in seconds for the random window of
                      EXPONENTIAL_JITTER. None means uncapped.
        max_retry_after: Longest server-requested wait (Retry-After) that
                         is honoured, in seconds.
    """
    max_attempts: int = 3
    strategy: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    base_delay: float = 0.5
    jitter_bound: float | None = None
    max_retry_after: float = 60.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.base_delay < 0:
            raise ValueError(f"base_delay must be >= 0, got {self.base_delay}")
        if self.jitter_bound is not None and self.jitter_bound < 0:
            raise ValueError(f"jitter_bound must be >= 0, got {self.jitter_bound}")
        if self.max_retry_after < 0:
            raise ValueError(f"max_retry_after must be >= 0, got {self.max_retry_after}")

    def delay_for(self, attempt: int, rng: Callable[[], float] = random.random) -> float:
        """
        Calculate the delay to sleep after a failed attempt.

        Args:
            attempt: The attempt that just failed (1-indexed).
            rng: Source of uniform floats in [0, 1). Only used by
                 EXPONENTIAL_JITTER.

        Returns:
            Delay in seconds.
        """
        if self.strategy is BackoffStrategy.CONSTANT:
            return self.base_delay
        if self.strategy is BackoffStrategy.LINEAR:
            return self.base_delay * attempt

        ceiling = self.base_delay * (2 ** (attempt - 1))
        if self.strategy is BackoffStrategy.EXPONENTIAL:
            return ceiling

        if self.jitter_bound is not None:
            ceiling = min(ceiling, self.jitter_bound)
        return rng() * ceiling


@dataclass
class RetryStats:
    """
    Diagnostics recorded by RetryExecutor.execute().

    Attributes:
        attempts: Number of attempts started.
        delays: Delay slept after each failed attempt, in order.
    """
    attempts: int = 0
    delays: list[float] = field(default_factory=list)

    @property
    def retries(self) -> int:
        """Number of retries performed (attempts after the first)."""
        return len(self.delays)


class RetryExecutor:
    """
    Runs fallible operations under a RetryPolicy.

    The executor holds no per-call state, so one instance can be shared
    by several fetchers and threads.

    Attributes:
        policy: Default policy used when execute() gets none.
    """

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        rng: Callable[[], float] = random.random
    ) -> None:
        """
        Initialize the executor.

        Args:
            policy: Default RetryPolicy. Defaults to RetryPolicy().
            sleep: Function used to wait between attempts. Tests pass a
                   recorder instead of time.sleep.
            rng: Uniform random source for jittered backoff.
        """
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._rng = rng

    def execute(
        self,
        operation: Callable[[], T],
        policy: RetryPolicy | None = None,
        stats: RetryStats | None = None,
        description: str = "request"
    ) -> T:
        """
        Run an operation, retrying transient failures.

        Args:
            operation: Zero-argument callable performing one attempt.
            policy: Policy for this call; falls back to self.policy.
            stats: Optional RetryStats to fill in. Never affects control flow.
            description: Short label used in log messages.

        Returns:
            Whatever the operation returns on its first successful attempt.

        Raises:
            The operation's own exception: immediately if it is not
            retryable, or the last one once max_attempts is reached.
        """
        policy = policy or self.policy
        attempt = 1

        while True:
            if stats is not None:
                stats.attempts = attempt
            try:
                return operation()
            except Exception as e:
                if not is_retryable(e):
                    raise
                if attempt >= policy.max_attempts:
                    logger.warning(
                        f"{description} failed after {attempt} attempt(s): {e}"
                    )
                    raise

                delay = policy.delay_for(attempt, self._rng)
                if isinstance(e, RateLimitedError) and e.retry_after:
                    delay = max(delay, min(e.retry_after, policy.max_retry_after))

                logger.debug(
                    f"{description} attempt {attempt}/{policy.max_attempts} failed: {e}. "
                    f"Retrying in {delay:.2f}s"
                )
                if stats is not None:
                    stats.delays.append(delay)
                self._sleep(delay)
                attempt += 1
