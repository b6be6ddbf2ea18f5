"""Centralized configuration for LoanQuote.

This module contains the default loan configuration and all business rule
constants used by the calculator, the quote backend and the local cache.
"""
from loanquote.data_structures import CurrencyConfig, LoanConfig, RangeConfig, RateBracket

# =============================================================================
# LOAN DEFAULTS
# =============================================================================

DEFAULT_CONFIG = LoanConfig(
    currency=CurrencyConfig(symbol="£", code="GBP", locale="en-GB"),
    loan_amount=RangeConfig(min=1000, max=20000, step=100, default=7500),
    # Term bounds are expressed in years
    loan_term=RangeConfig(min=1, max=5, step=0.5, default=2.5),
    interest_rates=(
        RateBracket(min_amount=1000, max_amount=4999, rate=7.8),
        RateBracket(min_amount=5000, max_amount=9999, rate=8.5),
        RateBracket(min_amount=10000, max_amount=20000, rate=9.7),
    ),
    reset_on_quote=True,
)

# =============================================================================
# QUOTE SUBMISSION
# =============================================================================

# Additional attempts after the first failure
QUOTE_MAX_RETRIES = 3

# Backoff before retry k is QUOTE_BASE_BACKOFF_MS * 2**k
QUOTE_BASE_BACKOFF_MS = 1000

# Accepted request bounds (amount in currency units, term in months)
MIN_QUOTE_AMOUNT = 1000
MAX_QUOTE_AMOUNT = 25000
MIN_QUOTE_TERM_MONTHS = 12
MAX_QUOTE_TERM_MONTHS = 60

QUOTE_SUCCESS_MESSAGE = "Quote submitted successfully! We'll be in touch within 24 hours."

# 24 hours
QUOTE_PROCESSING_TIME_MS = 24 * 60 * 60 * 1000

# =============================================================================
# SIMULATED BACKEND
# =============================================================================

CONFIG_FAILURE_RATE = 0.05
QUOTE_FAILURE_RATE = 0.15
HEALTH_FAILURE_RATE = 0.01

# Network latency range in seconds
NETWORK_DELAY_SECONDS = (0.2, 1.0)

RATE_LIMIT_MAX_REQUESTS = 10
RATE_LIMIT_WINDOW_SECONDS = 60
RATE_LIMIT_RETRY_AFTER_SECONDS = 60

# =============================================================================
# LOCAL STATE CACHE
# =============================================================================

STATE_DB_NAME = "loan_quote_cache.db"

DATE_FORMAT_STORAGE = "%Y-%m-%d"

# Snapshots older than this are discarded on load
STATE_MAX_AGE_DAYS = 7

# Quiet period before a burst of updates is written
PERSIST_DEBOUNCE_SECONDS = 0.5

# =============================================================================
# DISPLAY FORMATS
# =============================================================================

QUARTER_GLYPHS = {0.25: "¼", 0.5: "½", 0.75: "¾"}

# Year/month heuristic: plain values above this are read as months
MONTHS_HEURISTIC_THRESHOLD = 5
