"""POST /v1/amortization/* - liability detail calculations"""

import math

from fastapi import APIRouter

from bills_gateway.api.v1.schemas import BreakdownRequest, BreakdownResponse, PayoffRequest, PayoffResponse
from bills_gateway.domain.amortization import (
    calculate_payment_breakdown,
    calculate_remaining_payments,
    calculate_total_interest,
)

router = APIRouter()


@router.post("/amortization/breakdown", response_model=BreakdownResponse)
def payment_breakdown(request_body: BreakdownRequest):
    """Principal/interest split of a single payment"""
    breakdown = calculate_payment_breakdown(
        request_body.payment_amount,
        request_body.current_balance,
        request_body.annual_rate,
        request_body.payment_date,
        request_body.last_payment_date,
    )
    return BreakdownResponse(
        total_amount=breakdown.total_amount,
        principal=breakdown.principal,
        interest=breakdown.interest,
        remaining_balance=breakdown.remaining_balance,
    )


@router.post("/amortization/payoff", response_model=PayoffResponse)
def payoff_projection(request_body: PayoffRequest):
    """
    Remaining term and total interest at the current payment.

    JSON has no infinity, so a loan that never pays off is reported as
    converges=false with null figures.
    """
    payments = calculate_remaining_payments(
        request_body.balance, request_body.monthly_payment, request_body.annual_rate
    )
    if math.isinf(payments):
        return PayoffResponse(converges=False)

    return PayoffResponse(
        converges=True,
        remaining_payments=payments,
        total_interest=calculate_total_interest(
            request_body.balance, request_body.monthly_payment, request_body.annual_rate
        ),
    )
