"""Loan figure calculations for LoanQuote.

Pure functions only: tiered rate lookup, the amortized monthly payment and
the repayment schedule derived from it.
"""
import math
from typing import Sequence

import pandas as pd

from loanquote.data_structures import RateBracket, RepaymentSummary
from loanquote.exceptions import ConfigurationError

SCHEDULE_COLUMNS = ["month", "payment", "interest", "principal", "balance"]


def _round_half_up(value: float) -> float:
    return math.floor(value + 0.5)


def rate_for(amount: float, brackets: Sequence[RateBracket]) -> float:
    """Look up the annual interest rate for a loan amount.

    Amounts below every bracket take the first bracket's rate; amounts
    that fall above or between brackets take the last bracket's rate.

    Raises:
        ConfigurationError: If no brackets are configured.
    """
    if not brackets:
        raise ConfigurationError("No interest rate brackets configured")

    for bracket in brackets:
        if bracket.contains(amount):
            return bracket.rate

    if amount < brackets[0].min_amount:
        return brackets[0].rate
    return brackets[-1].rate


def monthly_payment(principal: float, annual_rate_percent: float, term_years: float) -> float:
    """Calculate the fixed monthly repayment for an amortized loan.

    PMT = P * r(1 + r)^n / ((1 + r)^n - 1), with r the monthly rate and
    n = term_years * 12 (fractional n is used as-is). Interest-bearing
    payments are rounded to the nearest whole currency unit.
    """
    monthly_rate = annual_rate_percent / 100 / 12
    payments = term_years * 12

    if monthly_rate == 0:
        return principal / payments

    growth = (1 + monthly_rate) ** payments
    return _round_half_up(principal * monthly_rate * growth / (growth - 1))


def amortization_schedule(principal: float, annual_rate_percent: float, term_years: float) -> pd.DataFrame:
    """Build the month-by-month repayment schedule.

    Every row pays monthly_payment() except the last, which settles the
    remaining balance.

    Returns:
        DataFrame with columns month, payment, interest, principal, balance.
    """
    monthly_rate = annual_rate_percent / 100 / 12
    payment_count = math.ceil(term_years * 12)
    installment = monthly_payment(principal, annual_rate_percent, term_years)

    rows = []
    balance = principal
    for month in range(1, payment_count + 1):
        interest = balance * monthly_rate
        payment = installment
        if month == payment_count or payment >= balance + interest:
            payment = balance + interest
        principal_portion = payment - interest
        balance = max(balance - principal_portion, 0.0)
        rows.append((month, payment, interest, principal_portion, balance))
        if balance == 0:
            break

    return pd.DataFrame(rows, columns=SCHEDULE_COLUMNS)


def repayment_summary(principal: float, annual_rate_percent: float, term_years: float) -> RepaymentSummary:
    """Summarize the total cost of a loan."""
    schedule = amortization_schedule(principal, annual_rate_percent, term_years)
    total = float(schedule["payment"].sum())
    return RepaymentSummary(
        monthly_payment=monthly_payment(principal, annual_rate_percent, term_years),
        total_repayable=round(total, 2),
        total_interest=round(total - principal, 2),
        payment_count=len(schedule),
    )
