"""Debounced, fire-and-forget snapshot persistence."""
import asyncio
import logging
from typing import Callable, Generic, Optional, TypeVar

from loanquote.config import PERSIST_DEBOUNCE_SECONDS
from loanquote.exceptions import StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class DebouncedSaver(Generic[T]):
    """Coalesces bursts of updates into a single save.

    Each schedule() restarts the quiet-period timer; only the most recent
    value is written. Save failures are logged and dropped. Without a
    running event loop the value is written immediately.

    Attributes:
        delay: Quiet period in seconds.
        pending: Value waiting to be written, if any.
    """

    def __init__(self, save: Callable[[T], None], delay: float = PERSIST_DEBOUNCE_SECONDS):
        self._save = save
        self.delay = delay
        self.pending: Optional[T] = None
        self._handle: Optional[asyncio.TimerHandle] = None

    def schedule(self, value: T) -> None:
        self.pending = value
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self.flush()
            return
        self._handle = loop.call_later(self.delay, self.flush)

    def flush(self) -> bool:
        """Write the pending value now.

        Returns:
            True if a value was written, False if nothing was pending or
            the save failed.
        """
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        if self.pending is None:
            return False

        value, self.pending = self.pending, None
        try:
            self._save(value)
        except StorageError as e:
            logger.warning(f"Failed to save state: {e}")
            return False
        return True

    def save_now(self, value: T) -> bool:
        """Write a value immediately, replacing anything pending."""
        self.pending = value
        return self.flush()

    def cancel(self) -> None:
        """Drop the pending value without writing it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.pending = None

    @property
    def is_pending(self) -> bool:
        return self.pending is not None
