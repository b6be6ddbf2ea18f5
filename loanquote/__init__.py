"""LoanQuote: loan quote figures and quote submission workflow."""

from loanquote.calculations import rate_for, monthly_payment, amortization_schedule, repayment_summary
from loanquote.config import DEFAULT_CONFIG
from loanquote.engine import LoanCalculatorEngine, EngineStatus, load_config
from loanquote.formatting import format_currency, format_years, format_quote_summary

__all__ = ['rate_for', 'monthly_payment', 'amortization_schedule', 'repayment_summary',
           'DEFAULT_CONFIG', 'LoanCalculatorEngine', 'EngineStatus', 'load_config',
           'format_currency', 'format_years', 'format_quote_summary']
