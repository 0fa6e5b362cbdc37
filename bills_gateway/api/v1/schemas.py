"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date
from typing import Any, Dict, List, Optional

from bills_gateway.domain.models import ObligationStatus, SourceType


class RecurrenceSchema(BaseModel):
    """Recurrence rule as submitted by a screen (UI or store frequency tokens)"""

    frequency: str = Field(..., min_length=1, description="day | week | month | quarter | year | custom")
    interval: int = Field(1, description="Repeat every N periods")
    start_date: date
    end_date: Optional[date] = None
    date_of_occurrence: Optional[int] = Field(
        None, description="Day of month (1-31), or weekday 0=Sunday..6=Saturday for weekly rules"
    )
    custom_unit: Optional[str] = None
    custom_interval: Optional[int] = None


class NextOccurrenceRequest(BaseModel):
    """Request body for POST /v1/recurrence/next"""

    recurrence: RecurrenceSchema
    from_date: date


class NextOccurrenceResponse(BaseModel):
    """Response for POST /v1/recurrence/next; next_date is null once the series has ended"""

    next_date: Optional[date] = None
    description: str


class ScheduleRequest(BaseModel):
    """Request body for POST /v1/recurrence/schedule"""

    recurrence: RecurrenceSchema
    start_date: date
    end_date: date
    as_of_date: Optional[date] = None


class OccurrenceSchema(BaseModel):
    """Single projected occurrence"""

    date: date
    status: ObligationStatus
    days_from_now: int


class ScheduleResponse(BaseModel):
    """Response for POST /v1/recurrence/schedule"""

    description: str
    occurrences: List[OccurrenceSchema]


class BreakdownRequest(BaseModel):
    """Request body for POST /v1/amortization/breakdown"""

    payment_amount: float = Field(..., ge=0)
    current_balance: float = Field(..., ge=0)
    annual_rate: float = Field(..., ge=0, description="Annual interest rate in percent (8.4 = 8.4%)")
    payment_date: Optional[date] = None
    last_payment_date: Optional[date] = None


class BreakdownResponse(BaseModel):
    """Response for POST /v1/amortization/breakdown"""

    total_amount: float
    principal: float
    interest: float
    remaining_balance: float


class PayoffRequest(BaseModel):
    """Request body for POST /v1/amortization/payoff"""

    balance: float = Field(..., ge=0)
    monthly_payment: float = Field(..., ge=0)
    annual_rate: float = Field(..., ge=0)


class PayoffResponse(BaseModel):
    """Response for POST /v1/amortization/payoff; converges=false means it never pays off"""

    converges: bool
    remaining_payments: Optional[int] = None
    total_interest: Optional[float] = None


class ObligationRecordSchema(BaseModel):
    """Single row of the Bills view"""

    id: str
    source_type: SourceType
    source_id: str
    title: str
    amount: Optional[float] = None
    currency: str
    due_date: date
    status: ObligationStatus
    days_until: int
    description: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    account_id: Optional[str] = None
    account_name: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    metadata: Dict[str, Any] = {}


class UpcomingResponse(BaseModel):
    """Response for GET /v1/bills"""

    user_id: str
    start_date: date
    end_date: date
    as_of_date: date
    partial: bool
    failed_sources: List[SourceType]
    records: List[ObligationRecordSchema]


class SourceTotalsSchema(BaseModel):
    count: int
    amount: float


class SummaryResponse(BaseModel):
    """Response for GET /v1/bills/summary"""

    user_id: str
    total: int
    total_amount: float
    counts_by_status: Dict[ObligationStatus, int]
    amounts_by_source: Dict[SourceType, SourceTotalsSchema]
    partial: bool
