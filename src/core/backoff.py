"""Exponential backoff with jitter for remote calls."""

import asyncio
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

from loguru import logger

from src.core.exceptions import ConfigurationError, MalformedResponse

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3

# Retrying cannot fix these.
NON_RETRYABLE = (MalformedResponse, ConfigurationError)


@dataclass
class BackoffPolicy:
    """Retry policy shared by every remote call in a run.

    Delays double with each attempt, starting at ``base_delay`` and capped at
    ``max_delay``, plus a random jitter of up to the same amount so that
    concurrent units do not retry in lockstep.
    """

    base_delay: float = 1.0
    max_delay: float = 30.0
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    rng: random.Random = field(default_factory=random.Random, repr=False)

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given (1-based) failed attempt."""
        ceiling = min(self.max_delay, self.base_delay * 2 ** max(attempt - 1, 0))
        return ceiling + self.rng.uniform(0, ceiling)

    async def retry(
        self,
        operation: Callable[[], Awaitable[T]],
        max_attempts: int | None = None,
        description: str = "remote call",
    ) -> T:
        """Run ``operation`` until it succeeds or the attempt budget is spent.

        Args:
            operation: Zero-argument callable returning a fresh awaitable per attempt
            max_attempts: Attempt cap, defaults to the policy's cap
            description: Used in log lines

        Returns:
            The first successful result

        Raises:
            The last failure once every attempt has failed, or a non-retryable
            failure immediately
        """
        attempts = max_attempts or self.max_attempts
        attempt = 1
        while True:
            try:
                return await operation()
            except NON_RETRYABLE:
                raise
            except Exception as e:
                if attempt >= attempts:
                    logger.error(f"[retry] {description} failed after {attempt} attempts: {e}")
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    f"[retry] {description} attempt {attempt}/{attempts} failed: {e}; "
                    f"retrying in {delay:.2f}s"
                )
                await asyncio.sleep(delay)
                attempt += 1
