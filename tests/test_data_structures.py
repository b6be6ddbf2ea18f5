"""Tests for configuration records and state snapshots."""
import unittest
from datetime import datetime

from loanquote.config import DEFAULT_CONFIG
from loanquote.data_structures import LoanConfig, RangeConfig, EngineState, SavedState
from loanquote.exceptions import ConfigurationError


BACKEND_CONFIG = {
    "currency": {"symbol": "€", "code": "EUR", "locale": "de-DE"},
    "loanAmount": {"min": 500, "max": 15000, "step": 250, "default": 5000},
    "loanTerm": {"min": 1, "max": 4, "step": 0.25, "default": 2},
    "interestRates": [
        {"minAmount": 500, "maxAmount": 7499, "rate": 6.5},
        {"minAmount": 7500, "maxAmount": 15000, "rate": 5.9},
    ],
    "resetOnQuote": False,
}


class TestLoanConfig(unittest.TestCase):

    def test_default_config_values(self):
        self.assertEqual(DEFAULT_CONFIG.currency.code, "GBP")
        self.assertEqual(DEFAULT_CONFIG.loan_amount.default, 7500)
        self.assertEqual(DEFAULT_CONFIG.loan_term.default, 2.5)
        self.assertEqual(len(DEFAULT_CONFIG.interest_rates), 3)
        self.assertTrue(DEFAULT_CONFIG.reset_on_quote)

    def test_from_dict(self):
        config = LoanConfig.from_dict(BACKEND_CONFIG)
        self.assertEqual(config.currency.locale, "de-DE")
        self.assertEqual(config.loan_amount.step, 250)
        self.assertEqual(config.loan_term.max, 4)
        self.assertEqual(config.interest_rates[1].rate, 5.9)
        self.assertFalse(config.reset_on_quote)

    def test_to_dict_uses_backend_keys(self):
        data = LoanConfig.from_dict(BACKEND_CONFIG).to_dict()
        self.assertEqual(data, BACKEND_CONFIG)

    def test_from_dict_missing_section(self):
        data = dict(BACKEND_CONFIG)
        del data["loanTerm"]
        with self.assertRaises(ConfigurationError) as context:
            LoanConfig.from_dict(data)
        self.assertIn("loanTerm", str(context.exception))

    def test_config_is_immutable(self):
        with self.assertRaises(AttributeError):
            DEFAULT_CONFIG.reset_on_quote = False


class TestRangeConfig(unittest.TestCase):

    def setUp(self):
        self.amount = RangeConfig(min=1000, max=20000, step=100, default=7500)

    def test_clamp_within_bounds_snaps_to_step(self):
        self.assertEqual(self.amount.clamp(7549), 7500)
        self.assertEqual(self.amount.clamp(7551), 7600)

    def test_clamp_out_of_bounds(self):
        self.assertEqual(self.amount.clamp(200), 1000)
        self.assertEqual(self.amount.clamp(50000), 20000)

    def test_clamp_fractional_step(self):
        term = RangeConfig(min=1, max=5, step=0.5, default=2.5)
        self.assertEqual(term.clamp(2.6), 2.5)
        self.assertEqual(term.clamp(2.8), 3.0)


class TestSnapshots(unittest.TestCase):

    def test_engine_state_snapshot(self):
        state = EngineState(loan_amount=9000, loan_term=3, has_quoted=True, last_error="boom")
        saved_at = datetime(2026, 1, 1, 12, 0)
        snapshot = state.snapshot(saved_at)
        self.assertEqual(snapshot, SavedState(9000, 3, True, saved_at))

    def test_saved_state_to_dict(self):
        snapshot = SavedState(5000, 2, False, datetime(2026, 1, 1, 12, 0))
        self.assertEqual(snapshot.to_dict(), {
            "loan_amount": 5000,
            "loan_term": 2,
            "has_quoted": False,
            "saved_at": "2026-01-01T12:00:00",
        })


if __name__ == '__main__':
    unittest.main()
