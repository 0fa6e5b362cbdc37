"""POST /v1/recurrence/* - project dates for a single recurrence rule"""

from datetime import date

from fastapi import APIRouter, HTTPException

from bills_gateway.api.v1.schemas import (
    NextOccurrenceRequest,
    NextOccurrenceResponse,
    OccurrenceSchema,
    ScheduleRequest,
    ScheduleResponse,
)
from bills_gateway.config import settings
from bills_gateway.domain.exceptions import InvalidRecurrenceDefinition, InvalidWindowError
from bills_gateway.domain.models import Window
from bills_gateway.domain.recurrence import (
    calculate_next_occurrence,
    decode_recurrence,
    describe_recurrence,
    generate_schedule,
)

router = APIRouter()


@router.post("/recurrence/next", response_model=NextOccurrenceResponse)
def next_occurrence(request_body: NextOccurrenceRequest):
    """
    When is this due next?

    Returns next_date = null when the series ends before from_date.
    """
    try:
        definition = decode_recurrence(request_body.recurrence.model_dump())
    except InvalidRecurrenceDefinition as e:
        raise HTTPException(status_code=422, detail=str(e))

    return NextOccurrenceResponse(
        next_date=calculate_next_occurrence(definition, request_body.from_date),
        description=describe_recurrence(definition),
    )


@router.post("/recurrence/schedule", response_model=ScheduleResponse)
def project_schedule(request_body: ScheduleRequest):
    """All occurrences of a rule inside a window, with status against as_of_date (default: today)"""
    try:
        definition = decode_recurrence(request_body.recurrence.model_dump())
        window = Window(
            start_date=request_body.start_date,
            end_date=request_body.end_date,
            as_of_date=request_body.as_of_date or date.today(),
        )
    except (InvalidRecurrenceDefinition, InvalidWindowError) as e:
        raise HTTPException(status_code=422, detail=str(e))

    occurrences = generate_schedule(definition, window, max_iterations=settings.max_schedule_iterations)

    return ScheduleResponse(
        description=describe_recurrence(definition),
        occurrences=[
            OccurrenceSchema(date=o.date, status=o.status, days_from_now=o.days_from_now)
            for o in occurrences
        ],
    )
