"""Bounded retry with exponential backoff for quote submission."""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from loanquote.config import QUOTE_MAX_RETRIES, QUOTE_BASE_BACKOFF_MS
from loanquote.exceptions import error_kind, is_retryable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryStats:
    """Statistics for the most recent run()."""
    attempts: int = 0
    retries: int = 0
    total_backoff_ms: float = 0.0
    last_error: Optional[BaseException] = None


class RetryExecutor:
    """Runs a fallible coroutine, retrying transient failures.

    Validation and rate-limit failures are raised at once. Everything else
    is retried up to max_retries more times, waiting
    base_backoff_ms * 2**k before retry k (no jitter). The final failure is
    raised as-is.

    Attributes:
        max_retries: Additional attempts after the first.
        base_backoff_ms: Backoff before the first retry.
        stats: RetryStats for the last run.
    """

    def __init__(self, max_retries: int = QUOTE_MAX_RETRIES,
                 base_backoff_ms: float = QUOTE_BASE_BACKOFF_MS,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.max_retries = max_retries
        self.base_backoff_ms = base_backoff_ms
        self._sleep = sleep
        self.stats = RetryStats()

    def backoff_ms(self, attempt: int) -> float:
        """Delay before the attempt following attempt number `attempt` (0-based)."""
        return self.base_backoff_ms * (2 ** attempt)

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        self.stats = RetryStats()

        for attempt in range(self.max_retries + 1):
            self.stats.attempts += 1
            try:
                return await operation()
            except Exception as e:
                self.stats.last_error = e

                if not is_retryable(e) or attempt == self.max_retries:
                    raise

                delay_ms = self.backoff_ms(attempt)
                logger.warning(
                    f"Attempt {attempt + 1}/{self.max_retries + 1} failed with "
                    f"{error_kind(e)}: {e}. Retrying in {delay_ms:.0f}ms"
                )
                self.stats.retries += 1
                self.stats.total_backoff_ms += delay_ms
                await self._sleep(delay_ms / 1000)
