"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import sessionmaker

from bills_gateway.config import settings
from bills_gateway.domain.aggregation import AggregationService
from bills_gateway.domain.sources import (
    GoalContributionAdapter,
    LiabilityScheduleAdapter,
    RecurringObligationAdapter,
    ScheduledPaymentAdapter,
)
from bills_gateway.infrastructure.database.repositories import (
    GoalRepository,
    LiabilityScheduleRepository,
    LookupRepository,
    RecurringTransactionRepository,
    ScheduledPaymentRepository,
)
from bills_gateway.infrastructure.database.session import get_session_factory


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_aggregation_service(session_factory: sessionmaker = Depends(get_session_factory)) -> AggregationService:
    """Wire the four source adapters to their repositories and a shared name resolver"""
    resolver = LookupRepository(session_factory)
    currency = settings.default_currency
    return AggregationService(
        [
            RecurringObligationAdapter(
                RecurringTransactionRepository(session_factory),
                resolver,
                currency,
                max_iterations=settings.max_schedule_iterations,
            ),
            LiabilityScheduleAdapter(LiabilityScheduleRepository(session_factory), resolver, currency),
            ScheduledPaymentAdapter(ScheduledPaymentRepository(session_factory), resolver, currency),
            GoalContributionAdapter(GoalRepository(session_factory), resolver, currency),
        ]
    )
