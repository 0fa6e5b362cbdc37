"""GET /v1/bills and /v1/bills/summary - aggregated Bills view"""

import time
import logging
from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from bills_gateway.api.dependencies import get_aggregation_service, get_request_id
from bills_gateway.api.v1.schemas import (
    ObligationRecordSchema,
    SourceTotalsSchema,
    SummaryResponse,
    UpcomingResponse,
)
from bills_gateway.config import settings
from bills_gateway.domain.aggregation import AggregationService
from bills_gateway.domain.exceptions import InvalidWindowError
from bills_gateway.domain.models import BillsFilters, ObligationStatus, SourceType, Window, window_for_view
from bills_gateway.infrastructure.observability.logging import log_aggregation
from bills_gateway.infrastructure.observability.metrics import aggregation_latency_histogram, record_aggregation

router = APIRouter()

VIEW_PATTERN = "^(day|week|month|year)$"


def build_window(
    start_date: Optional[date],
    end_date: Optional[date],
    as_of_date: Optional[date],
    view: Optional[str],
) -> Window:
    """
    Resolve the query window.

    as_of_date defaults to today; missing bounds come from the view type
    (day/week/month/year) around as_of_date.
    """
    as_of = as_of_date or date.today()
    if start_date is None or end_date is None:
        view_window = window_for_view(view or settings.default_view, as_of)
        start_date = start_date or view_window.start_date
        end_date = end_date or view_window.end_date
    return Window(start_date=start_date, end_date=end_date, as_of_date=as_of)


@router.get("/bills", response_model=UpcomingResponse)
async def list_upcoming(
    request: Request,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    as_of_date: Optional[date] = Query(None, description="Reference date for status (default: today)"),
    view: Optional[str] = Query(None, pattern=VIEW_PATTERN),
    source_type: Optional[List[SourceType]] = Query(None),
    status: Optional[List[ObligationStatus]] = Query(None),
    category_id: Optional[str] = Query(None),
    account_id: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    include_paid: bool = Query(False),
    include_cancelled: bool = Query(False),
    service: AggregationService = Depends(get_aggregation_service),
):
    """
    Merged, ordered obligations from every source.

    A failing source does not fail the request: the response is marked
    partial and lists the failed sources.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        window = build_window(start_date, end_date, as_of_date, view)
    except InvalidWindowError as e:
        raise HTTPException(status_code=422, detail=str(e))

    filters = BillsFilters(
        source_types=source_type,
        statuses=status,
        category_id=category_id,
        account_id=account_id,
        search=search,
        include_paid=include_paid,
        include_cancelled=include_cancelled,
    )

    with aggregation_latency_histogram.time():
        result = await service.fetch_all_upcoming(user_id, window, filters)

    failed = [s.value for s in result.failed_sources]
    record_aggregation(result.partial, len(result.records), failed)
    log_aggregation(
        request_id, user_id, len(result.records), result.partial, failed, (time.time() - start_time) * 1000
    )
    if result.partial:
        logging.warning(
            "Bills view is partial",
            extra={"request_id": request_id, "user_id": user_id, "failed_sources": failed},
        )

    return UpcomingResponse(
        user_id=user_id,
        start_date=window.start_date,
        end_date=window.end_date,
        as_of_date=window.as_of_date,
        partial=result.partial,
        failed_sources=result.failed_sources,
        records=[ObligationRecordSchema(**asdict(r)) for r in result.records],
    )


@router.get("/bills/summary", response_model=SummaryResponse)
async def get_bills_summary(
    user_id: str = Query(..., min_length=1, description="User identifier"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    as_of_date: Optional[date] = Query(None),
    view: Optional[str] = Query(None, pattern=VIEW_PATTERN),
    service: AggregationService = Depends(get_aggregation_service),
):
    """
    Counts and totals by status and by source.

    Paid and cancelled obligations are excluded.
    """
    try:
        window = build_window(start_date, end_date, as_of_date, view)
    except InvalidWindowError as e:
        raise HTTPException(status_code=422, detail=str(e))

    summary = await service.get_summary(user_id, window)

    return SummaryResponse(
        user_id=user_id,
        total=summary.total,
        total_amount=summary.total_amount,
        counts_by_status=summary.counts_by_status,
        amounts_by_source={
            source: SourceTotalsSchema(count=totals.count, amount=totals.amount)
            for source, totals in summary.amounts_by_source.items()
        },
        partial=summary.partial,
    )
