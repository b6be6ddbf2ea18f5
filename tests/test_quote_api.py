"""Tests for the simulated quote backend and its rate limiter."""
import random
import unittest
from unittest.mock import Mock

from loanquote.config import DEFAULT_CONFIG, QUOTE_SUCCESS_MESSAGE, QUOTE_PROCESSING_TIME_MS
from loanquote.data_structures import LoanQuoteRequest
from loanquote.exceptions import (
    ConfigurationError,
    ErrorKind,
    NetworkError,
    ServerError,
    QuoteValidationError,
    RateLimitError,
    RequestTimeoutError,
)
from loanquote.services.quote_api import QuoteApi
from loanquote.services.rate_limiter import RateLimiter


async def no_sleep(seconds):
    return None


def make_api(**kwargs):
    defaults = dict(
        config_failure_rate=0.0,
        quote_failure_rate=0.0,
        health_failure_rate=0.0,
        network_delay=(0, 0),
        sleep=no_sleep,
    )
    defaults.update(kwargs)
    return QuoteApi(**defaults)


class FakeClock:
    def __init__(self, now=0.0):
        self.now = now

    def __call__(self):
        return self.now


class TestRateLimiter(unittest.TestCase):

    def test_admits_up_to_quota(self):
        limiter = RateLimiter(max_requests=3, window_seconds=60, clock=FakeClock())
        self.assertTrue(limiter.try_acquire())
        self.assertTrue(limiter.try_acquire())
        self.assertTrue(limiter.try_acquire())
        self.assertFalse(limiter.try_acquire())
        self.assertEqual(limiter.remaining, 0)

    def test_window_slides(self):
        clock = FakeClock()
        limiter = RateLimiter(max_requests=2, window_seconds=60, clock=clock)
        limiter.try_acquire()
        clock.now = 30
        limiter.try_acquire()
        self.assertFalse(limiter.try_acquire())

        clock.now = 61
        self.assertEqual(limiter.remaining, 1)
        self.assertTrue(limiter.try_acquire())

    def test_separate_instances_do_not_share_state(self):
        first = RateLimiter(max_requests=1, clock=FakeClock())
        second = RateLimiter(max_requests=1, clock=FakeClock())
        self.assertTrue(first.try_acquire())
        self.assertTrue(second.try_acquire())

    def test_reset(self):
        limiter = RateLimiter(max_requests=1, clock=FakeClock())
        limiter.try_acquire()
        limiter.reset()
        self.assertTrue(limiter.try_acquire())


class TestSubmitQuote(unittest.IsolatedAsyncioTestCase):

    async def test_successful_submission(self):
        api = make_api()
        result = await api.submit_quote(LoanQuoteRequest(7500, 30))

        self.assertTrue(result.success)
        self.assertTrue(result.quote_id.startswith("QUOTE_"))
        self.assertEqual(result.message, QUOTE_SUCCESS_MESSAGE)
        self.assertEqual(result.estimated_processing_time_ms, QUOTE_PROCESSING_TIME_MS)

    async def test_quote_ids_are_unique(self):
        api = make_api()
        first = await api.submit_quote(LoanQuoteRequest(7500, 30))
        second = await api.submit_quote(LoanQuoteRequest(7500, 30))
        self.assertNotEqual(first.quote_id, second.quote_id)

    async def test_amount_bounds_are_inclusive(self):
        api = make_api()
        await api.submit_quote(LoanQuoteRequest(1000, 12))
        await api.submit_quote(LoanQuoteRequest(25000, 60))

    async def test_amount_out_of_range(self):
        api = make_api()
        for amount in (0, 999, 25001):
            with self.assertRaises(QuoteValidationError) as context:
                await api.submit_quote(LoanQuoteRequest(amount, 30))
            self.assertEqual(context.exception.kind, ErrorKind.VALIDATION_ERROR)
            self.assertEqual(context.exception.message, "Loan amount must be between £1,000 and £25,000")

    async def test_term_out_of_range(self):
        api = make_api()
        for term in (0, 11, 61, 2.5):
            with self.assertRaises(QuoteValidationError) as context:
                await api.submit_quote(LoanQuoteRequest(7500, term))
            self.assertEqual(context.exception.message, "Loan term must be between 12 and 60 months")

    async def test_validation_precedes_rate_limiting(self):
        limiter = RateLimiter(max_requests=1, clock=FakeClock())
        api = make_api(rate_limiter=limiter)

        with self.assertRaises(QuoteValidationError):
            await api.submit_quote(LoanQuoteRequest(100, 30))
        self.assertEqual(limiter.remaining, 1)

    async def test_rate_limit_exceeded(self):
        api = make_api(rate_limiter=RateLimiter(max_requests=2, clock=FakeClock()))
        await api.submit_quote(LoanQuoteRequest(7500, 30))
        await api.submit_quote(LoanQuoteRequest(7500, 30))

        with self.assertRaises(RateLimitError) as context:
            await api.submit_quote(LoanQuoteRequest(7500, 30))
        self.assertEqual(context.exception.retry_after, 60)
        self.assertEqual(context.exception.code, "RATE_LIMIT_429")

    async def test_network_delay_is_awaited(self):
        sleep = Mock(side_effect=no_sleep)
        api = make_api(network_delay=(0.2, 0.2), sleep=sleep)
        await api.submit_quote(LoanQuoteRequest(7500, 30))
        sleep.assert_called_once_with(0.2)


class TestSimulatedErrors(unittest.IsolatedAsyncioTestCase):
    """Weighted failure injection: network .30, server .25, timeout .20,
    validation .15, rate limit .10."""

    async def assert_simulated(self, roll, error_class):
        rng = Mock(spec=random.Random)
        rng.uniform.return_value = 0
        rng.random.side_effect = [0.0, roll]
        api = make_api(quote_failure_rate=0.5, rng=rng)
        with self.assertRaises(error_class):
            await api.submit_quote(LoanQuoteRequest(7500, 30))

    async def test_weighted_selection(self):
        await self.assert_simulated(0.10, NetworkError)
        await self.assert_simulated(0.50, ServerError)
        await self.assert_simulated(0.70, RequestTimeoutError)
        await self.assert_simulated(0.80, QuoteValidationError)
        await self.assert_simulated(0.95, RateLimitError)

    async def test_always_failing_backend(self):
        api = make_api(quote_failure_rate=1.0, rng=random.Random(7))
        for _ in range(5):
            with self.assertRaises(Exception) as context:
                await api.submit_quote(LoanQuoteRequest(7500, 30))
            self.assertIn(context.exception.kind, {
                ErrorKind.NETWORK_ERROR, ErrorKind.SERVER_ERROR, ErrorKind.TIMEOUT_ERROR,
                ErrorKind.VALIDATION_ERROR, ErrorKind.RATE_LIMIT_ERROR,
            })


class TestConfigAndHealth(unittest.IsolatedAsyncioTestCase):

    async def test_get_loan_config(self):
        api = make_api()
        self.assertEqual(await api.get_loan_config(), DEFAULT_CONFIG)

    async def test_get_loan_config_is_built_from_served_mapping(self):
        api = make_api()
        self.assertEqual(api.config_payload["loanAmount"]["default"], 7500)
        api.config_payload["loanAmount"]["default"] = 5000

        config = await api.get_loan_config()

        self.assertEqual(config.loan_amount.default, 5000)
        self.assertEqual(config.interest_rates, DEFAULT_CONFIG.interest_rates)

    async def test_malformed_config_mapping(self):
        api = make_api()
        del api.config_payload["interestRates"]
        with self.assertRaises(ConfigurationError):
            await api.get_loan_config()

    async def test_get_loan_config_failure(self):
        api = make_api(config_failure_rate=1.0)
        with self.assertRaises(Exception):
            await api.get_loan_config()

    async def test_health_check(self):
        api = make_api()
        health = await api.health_check()
        self.assertEqual(health["status"], "healthy")
        self.assertIn("timestamp", health)

    async def test_health_check_down(self):
        api = make_api(health_failure_rate=1.0)
        with self.assertRaises(ServerError) as context:
            await api.health_check()
        self.assertEqual(context.exception.code, "SERVICE_DOWN")


if __name__ == '__main__':
    unittest.main()
