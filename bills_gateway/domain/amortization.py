"""Reducing-balance amortization math for loan-like liabilities"""

import math
from datetime import date
from typing import Optional, Union

from bills_gateway.domain.models import PaymentBreakdown

# Interest accrual between payment dates uses a flat 30-day month
DAYS_PER_ACCRUAL_MONTH = 30


def monthly_rate(annual_rate: float) -> float:
    """Annual percentage rate -> monthly decimal rate (8.4 -> 0.007)"""
    return annual_rate / 12 / 100 if annual_rate > 0 else 0.0


def calculate_payment_breakdown(
    payment_amount: float,
    current_balance: float,
    annual_rate: float,
    payment_date: Optional[date] = None,
    last_payment_date: Optional[date] = None,
) -> PaymentBreakdown:
    """
    Split a payment into interest and principal.

    Interest is one month on the outstanding balance, or prorated by elapsed
    days over a 30-day month when both payment dates are given. A payment that
    covers balance + interest discharges the balance completely.

    Example:
        35000 against 4200000 at 8.4% -> interest 29400, principal 5600,
        remaining 4194400
    """
    if payment_amount <= 0:
        return PaymentBreakdown(
            total_amount=0.0,
            principal=0.0,
            interest=0.0,
            remaining_balance=current_balance,
        )

    rate = monthly_rate(annual_rate)
    interest = 0.0
    if rate > 0:
        if payment_date is not None and last_payment_date is not None:
            days = max(1, (payment_date - last_payment_date).days)
            interest = current_balance * rate * (days / DAYS_PER_ACCRUAL_MONTH)
        else:
            interest = current_balance * rate
    interest = round(interest, 2)

    if payment_amount >= current_balance + interest:
        return PaymentBreakdown(
            total_amount=payment_amount,
            principal=current_balance,
            interest=interest,
            remaining_balance=0.0,
        )

    principal = max(0.0, min(payment_amount - interest, current_balance))
    return PaymentBreakdown(
        total_amount=payment_amount,
        principal=principal,
        interest=interest,
        remaining_balance=max(0.0, current_balance - principal),
    )


def calculate_remaining_payments(
    balance: float,
    monthly_payment: float,
    annual_rate: float,
) -> Union[int, float]:
    """
    Number of monthly payments left, or math.inf if the loan never pays off.

    Uses n = -ln(1 - B*r/P) / ln(1 + r). Infinity means the payment does not
    exceed the interest accruing each month; callers must render it as
    "never", not as a term.
    """
    if balance <= 0:
        return 0
    if monthly_payment <= 0:
        return math.inf

    rate = monthly_rate(annual_rate)
    if rate == 0:
        return math.ceil(balance / monthly_payment)

    if monthly_payment <= balance * rate:
        return math.inf

    ratio = 1 - (balance * rate) / monthly_payment
    if ratio <= 0:
        return math.inf

    n = -math.log(ratio) / math.log(1 + rate)
    # Guard against 59.99999999 / 60.00000001 float noise before ceiling
    return math.ceil(round(n, 9))


def calculate_total_interest(
    balance: float,
    monthly_payment: float,
    annual_rate: float,
) -> float:
    """Interest paid over the remaining term; math.inf when it never converges"""
    if balance <= 0:
        return 0.0
    if monthly_rate(annual_rate) == 0:
        return 0.0 if monthly_payment > 0 else math.inf

    payments = calculate_remaining_payments(balance, monthly_payment, annual_rate)
    if payments == math.inf:
        return math.inf
    return round(payments * monthly_payment - balance, 2)


def calculate_monthly_payment(principal: float, annual_rate: float, months: int) -> float:
    """Level annuity payment PMT = P*r(1+r)^n / ((1+r)^n - 1), rounded to cents"""
    if months <= 0:
        raise ValueError(f"months must be positive, got {months}")
    rate = monthly_rate(annual_rate)
    if rate == 0:
        return round(principal / months, 2)
    growth = (1 + rate) ** months
    return round(principal * rate * growth / (growth - 1), 2)
