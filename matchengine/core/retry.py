"""
Retry policy and a generic async retry combinator.

The policy decides how long to wait; the combinator decides whether to
call again. Neither knows anything about HTTP: callers supply predicates
that classify an attempt's outcome.
"""

import asyncio
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from matchengine.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """
    Bounded exponential backoff.

    Attributes:
        max_attempts: Total attempts, including the first
        base_delay: Delay before the second attempt, in seconds
        max_delay: Cap on any single wait
        jitter: Upper bound of the uniform random jitter added to each wait
    """

    max_attempts: int = 3
    base_delay: float = 0.5
    max_delay: float = 30.0
    jitter: float = 0.3
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def compute_delay(self, attempt: int, retry_after: Optional[float] = None) -> float:
        """
        Seconds to wait after a failed ``attempt`` (1-based).

        An upstream Retry-After value, when present, replaces the exponential
        delay. Jitter is added afterwards and the result is capped at
        ``max_delay``.
        """
        if retry_after is not None and retry_after >= 0:
            delay = retry_after
        else:
            delay = self.base_delay * (2 ** (attempt - 1))

        if self.jitter > 0:
            delay += self.rng.uniform(0, self.jitter)

        return min(delay, self.max_delay)


@dataclass
class RetryOutcome:
    """Last attempt's result plus bookkeeping."""

    value: object
    attempts: int
    total_wait: float


async def run_with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    should_retry: Callable[[T], bool],
    retry_after_of: Optional[Callable[[T], Optional[float]]] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> RetryOutcome:
    """
    Call ``operation`` until it yields a non-retryable outcome or the
    policy's attempts run out.

    Args:
        operation: Zero-argument coroutine factory; one call per attempt
        policy: Backoff policy
        should_retry: True when an outcome is transient
        retry_after_of: Extracts an upstream wait hint from an outcome
        sleep: Awaitable sleep (injectable for tests)

    Returns:
        RetryOutcome wrapping the last outcome seen
    """
    attempts = 0
    total_wait = 0.0
    max_attempts = max(1, policy.max_attempts)

    while True:
        attempts += 1
        outcome = await operation()

        if attempts >= max_attempts or not should_retry(outcome):
            return RetryOutcome(value=outcome, attempts=attempts, total_wait=total_wait)

        hint = retry_after_of(outcome) if retry_after_of else None
        delay = policy.compute_delay(attempts, hint)
        logger.warning(
            f"Transient failure on attempt {attempts}/{max_attempts}, "
            f"retrying in {delay:.2f}s"
        )
        total_wait += delay
        await sleep(delay)
