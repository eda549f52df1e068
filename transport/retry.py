"""Retry policy for data-path transport calls (uploads and piece fetches)."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from common.constants import FETCH_RETRY_DELAY_SECONDS, UPLOAD_RETRY_DELAY_SECONDS

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    How often and how long to retry a failing operation.

    Attributes:
        max_attempts: Total attempts before giving up; None retries forever
        delay: Delay in seconds before the first retry
        backoff: Multiplier applied to the delay after each failure (1.0 = fixed delay)
        max_delay: Upper bound for the computed delay
    """
    max_attempts: Optional[int] = None
    delay: float = UPLOAD_RETRY_DELAY_SECONDS
    backoff: float = 1.0
    max_delay: Optional[float] = None

    def delay_for(self, attempt: int) -> float:
        """
        Delay to wait after the given (zero-based) failed attempt.
        """
        delay = self.delay * (self.backoff ** attempt)
        if self.max_delay is not None:
            delay = min(delay, self.max_delay)
        return delay

    def should_retry(self, attempt: int) -> bool:
        return self.max_attempts is None or attempt + 1 < self.max_attempts


UPLOAD_RETRY = RetryPolicy(delay=UPLOAD_RETRY_DELAY_SECONDS)
FETCH_RETRY = RetryPolicy(delay=FETCH_RETRY_DELAY_SECONDS)


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    description: str,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
) -> T:
    """
    Run an async operation under a retry policy.

    Args:
        operation: Zero-argument coroutine factory, called once per attempt
        policy: Retry policy to apply
        description: Short label for log messages
        retry_on: Exception types that trigger a retry; anything else propagates

    Returns:
        Result of the first successful attempt

    Raises:
        The last exception once the policy runs out of attempts
    """
    attempt = 0

    while True:
        try:
            return await operation()
        except retry_on as e:
            if not policy.should_retry(attempt):
                logger.error(f"{description} failed after {attempt + 1} attempt(s): {e}")
                raise

            delay = policy.delay_for(attempt)
            attempts_label = policy.max_attempts if policy.max_attempts is not None else "inf"
            logger.warning(
                f"{description} failed (attempt {attempt + 1}/{attempts_label}), "
                f"retrying in {delay}s: {e}"
            )
            await asyncio.sleep(delay)
            attempt += 1
