"""Services package for LoanQuote.

This package contains the collaborators the calculator engine drives:
the quote backend, the retry policy around it and the local state cache.
"""

from .rate_limiter import RateLimiter
from .quote_api import QuoteApi
from .retry import RetryExecutor, RetryStats
from .state_store import StateStore
from .persistence import DebouncedSaver

__all__ = ['RateLimiter', 'QuoteApi', 'RetryExecutor', 'RetryStats',
           'StateStore', 'DebouncedSaver']
