"""Simulated quote backend for LoanQuote.

This service stands in for the remote quote API. It enforces the request
contract (amount and term bounds), throttles callers and injects the same
classified failures a real deployment produces, so the engine's retry and
error handling can be exercised end to end.
"""
import asyncio
import logging
import random
import time
import uuid
from datetime import datetime
from typing import Awaitable, Callable, Dict, Optional, Tuple

from loanquote.config import (
    DEFAULT_CONFIG,
    CONFIG_FAILURE_RATE,
    QUOTE_FAILURE_RATE,
    HEALTH_FAILURE_RATE,
    NETWORK_DELAY_SECONDS,
    RATE_LIMIT_RETRY_AFTER_SECONDS,
    MIN_QUOTE_AMOUNT,
    MAX_QUOTE_AMOUNT,
    MIN_QUOTE_TERM_MONTHS,
    MAX_QUOTE_TERM_MONTHS,
    QUOTE_SUCCESS_MESSAGE,
    QUOTE_PROCESSING_TIME_MS,
)
from loanquote.data_structures import LoanConfig, LoanQuoteRequest, QuoteResult
from loanquote.exceptions import (
    ApiError,
    NetworkError,
    ServerError,
    QuoteValidationError,
    RequestTimeoutError,
    RateLimitError,
)
from .rate_limiter import RateLimiter

logger = logging.getLogger(__name__)

# (factory, weight) pairs; weights sum to 1
SIMULATED_ERRORS = (
    (lambda: NetworkError("Network connection failed. Please check your internet connection."), 0.30),
    (lambda: ServerError("Server is temporarily unavailable. Please try again later.", code="SERVER_500"), 0.25),
    (lambda: RequestTimeoutError("Request timed out. Please try again."), 0.20),
    (lambda: QuoteValidationError("Invalid request data. Please refresh the page and try again.",
                                  code="VALIDATION_400"), 0.15),
    (lambda: RateLimitError("Too many requests. Please wait before trying again.", code="RATE_LIMIT_429",
                            retry_after=RATE_LIMIT_RETRY_AFTER_SECONDS), 0.10),
)


class QuoteApi:
    """Quote submission boundary with simulated latency and failures.

    Attributes:
        config_payload: camelCase mapping served by get_loan_config().
        rate_limiter: Request quota shared by every call on this instance.
        config_failure_rate: Probability that loading the config fails.
        quote_failure_rate: Probability that a valid submission fails.
        network_delay: (min, max) simulated latency in seconds.
    """

    def __init__(self, config: LoanConfig = DEFAULT_CONFIG,
                 rate_limiter: RateLimiter = None,
                 config_failure_rate: float = CONFIG_FAILURE_RATE,
                 quote_failure_rate: float = QUOTE_FAILURE_RATE,
                 health_failure_rate: float = HEALTH_FAILURE_RATE,
                 network_delay: Tuple[float, float] = NETWORK_DELAY_SECONDS,
                 rng: random.Random = None,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.config_payload = config.to_dict()
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()
        self.config_failure_rate = config_failure_rate
        self.quote_failure_rate = quote_failure_rate
        self.health_failure_rate = health_failure_rate
        self.network_delay = network_delay
        self._rng = rng or random.Random()
        self._sleep = sleep

    async def _delay(self, seconds: float = None) -> None:
        if seconds is None:
            seconds = self._rng.uniform(*self.network_delay)
        await self._sleep(seconds)

    def _check_rate_limit(self) -> None:
        if not self.rate_limiter.try_acquire():
            raise RateLimitError(
                "Rate limit exceeded. Please wait before making more requests.",
                code="RATE_LIMIT_429",
                retry_after=RATE_LIMIT_RETRY_AFTER_SECONDS,
            )

    def _simulate_error(self, failure_rate: float) -> Optional[ApiError]:
        """Draw a weighted random failure, or None if the call succeeds."""
        if self._rng.random() >= failure_rate:
            return None

        roll = self._rng.random()
        accumulator = 0.0
        for factory, weight in SIMULATED_ERRORS:
            accumulator += weight
            if roll <= accumulator:
                return factory()
        return SIMULATED_ERRORS[0][0]()

    @staticmethod
    def validate_request(request: LoanQuoteRequest) -> None:
        """Check the request against the accepted bounds.

        Raises:
            QuoteValidationError: If the amount or term is out of range.
        """
        if not request.loan_amount or not MIN_QUOTE_AMOUNT <= request.loan_amount <= MAX_QUOTE_AMOUNT:
            raise QuoteValidationError(
                "Loan amount must be between £1,000 and £25,000",
                code="VALIDATION_AMOUNT",
            )
        if not request.loan_term or not MIN_QUOTE_TERM_MONTHS <= request.loan_term <= MAX_QUOTE_TERM_MONTHS:
            raise QuoteValidationError(
                "Loan term must be between 12 and 60 months",
                code="VALIDATION_TERM",
            )

    async def get_loan_config(self) -> LoanConfig:
        """Fetch the session configuration.

        Raises:
            ApiError: A simulated backend failure.
            ConfigurationError: If the served mapping is malformed.
        """
        await self._delay()
        self._check_rate_limit()

        error = self._simulate_error(self.config_failure_rate)
        if error:
            raise error
        return LoanConfig.from_dict(self.config_payload)

    async def submit_quote(self, request: LoanQuoteRequest) -> QuoteResult:
        """Submit a quote request.

        Returns:
            QuoteResult carrying the generated quote ID.

        Raises:
            ApiError: A classified failure; validation failures are raised
                before any other processing.
        """
        self.validate_request(request)

        await self._delay()
        self._check_rate_limit()

        error = self._simulate_error(self.quote_failure_rate)
        if error:
            logger.debug(f"Simulated {error.kind} for quote request")
            raise error

        quote_id = f"QUOTE_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"
        return QuoteResult(
            success=True,
            quote_id=quote_id,
            message=QUOTE_SUCCESS_MESSAGE,
            estimated_processing_time_ms=QUOTE_PROCESSING_TIME_MS,
        )

    async def health_check(self) -> Dict[str, str]:
        await self._delay(0.1)

        if self._rng.random() < self.health_failure_rate:
            raise ServerError("Service is currently unavailable", code="SERVICE_DOWN")

        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
        }
