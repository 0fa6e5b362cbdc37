"""Unit tests for the aggregation service"""

import pytest
from datetime import date
from bills_gateway.domain.aggregation import AggregationService
from bills_gateway.domain.models import (
    BillsFilters,
    Goal,
    LiabilityScheduleEntry,
    ObligationStatus,
    RecurringObligation,
    ScheduledPayment,
    SourceType,
    Window,
)
from bills_gateway.domain.sources import (
    GoalContributionAdapter,
    LiabilityScheduleAdapter,
    RecurringObligationAdapter,
    ScheduledPaymentAdapter,
)
from conftest import StubAccessor

MID_JUNE = date(2025, 6, 15)


@pytest.fixture
def window() -> Window:
    return Window(start_date=date(2025, 6, 1), end_date=date(2025, 6, 30), as_of_date=MID_JUNE)


@pytest.fixture
def accessors():
    """One obligation per source, all due on June 15th, plus a paid installment"""
    return {
        SourceType.RECURRING_TRANSACTION: StubAccessor(
            [
                RecurringObligation(
                    id="rt-rent",
                    title="Rent",
                    amount=25000.0,
                    currency="INR",
                    recurrence={"frequency": "month", "interval": 1, "start_date": "2025-01-15"},
                    category_id="cat-home",
                    account_id="acc-main",
                )
            ]
        ),
        SourceType.LIABILITY: StubAccessor(
            [
                LiabilityScheduleEntry(
                    id="ls-7",
                    liability_id="li-car",
                    liability_title="Car Loan",
                    due_date=MID_JUNE,
                    amount=12000.0,
                    currency="INR",
                    status="pending",
                ),
                LiabilityScheduleEntry(
                    id="ls-6",
                    liability_id="li-car",
                    liability_title="Car Loan",
                    due_date=date(2025, 6, 1),
                    amount=12000.0,
                    currency="INR",
                    status="completed",
                ),
            ]
        ),
        SourceType.SCHEDULED_PAYMENT: StubAccessor(
            [
                ScheduledPayment(
                    id="sp-tax",
                    title="Property tax",
                    amount=4000.5,
                    currency="INR",
                    due_date=MID_JUNE,
                    status="scheduled",
                    description="Half-yearly municipal tax",
                )
            ]
        ),
        SourceType.GOAL_CONTRIBUTION: StubAccessor(
            [
                Goal(
                    id="goal-bike",
                    title="Bike",
                    target_amount=40000.0,
                    current_amount=32000.0,
                    currency="INR",
                    target_date=date(2025, 9, 15),
                )
            ]
        ),
    }


def build_service(accessors) -> AggregationService:
    return AggregationService(
        [
            RecurringObligationAdapter(accessors[SourceType.RECURRING_TRANSACTION]),
            LiabilityScheduleAdapter(accessors[SourceType.LIABILITY]),
            ScheduledPaymentAdapter(accessors[SourceType.SCHEDULED_PAYMENT]),
            GoalContributionAdapter(accessors[SourceType.GOAL_CONTRIBUTION]),
        ]
    )


async def test_same_day_records_ordered_by_source(accessors, window):
    view = await build_service(accessors).fetch_all_upcoming("user_1", window)

    assert [r.source_type for r in view.records] == [
        SourceType.GOAL_CONTRIBUTION,
        SourceType.LIABILITY,
        SourceType.RECURRING_TRANSACTION,
        SourceType.SCHEDULED_PAYMENT,
    ]
    assert all(r.status == ObligationStatus.DUE_TODAY for r in view.records)
    assert all(r.days_until == 0 for r in view.records)
    assert not view.partial
    assert view.failed_sources == []


async def test_repeated_calls_are_identical(accessors, window):
    service = build_service(accessors)
    first = await service.fetch_all_upcoming("user_1", window)
    second = await service.fetch_all_upcoming("user_1", window)
    assert first == second


async def test_paid_excluded_unless_requested(accessors, window):
    service = build_service(accessors)

    default_view = await service.fetch_all_upcoming("user_1", window)
    with_paid = await service.fetch_all_upcoming("user_1", window, BillsFilters(include_paid=True))

    assert "ls-6" not in [r.id for r in default_view.records]
    assert with_paid.records[0].id == "ls-6"
    assert with_paid.records[0].status == ObligationStatus.PAID


async def test_failing_source_marks_view_partial(accessors, window):
    accessors[SourceType.LIABILITY] = StubAccessor(error=TimeoutError("liabilities timed out"))

    view = await build_service(accessors).fetch_all_upcoming("user_1", window)

    assert view.partial
    assert view.failed_sources == [SourceType.LIABILITY]
    assert SourceType.LIABILITY not in {r.source_type for r in view.records}
    assert len(view.records) == 3


async def test_unexpected_error_propagates(accessors, window):
    class ExplodingAdapter(ScheduledPaymentAdapter):
        async def fetch_occurrences_in_window(self, user_id, window, filters=None):
            raise RuntimeError("bug")

    service = AggregationService(
        [
            RecurringObligationAdapter(accessors[SourceType.RECURRING_TRANSACTION]),
            ExplodingAdapter(accessors[SourceType.SCHEDULED_PAYMENT]),
        ]
    )
    with pytest.raises(RuntimeError):
        await service.fetch_all_upcoming("user_1", window)


async def test_source_selection_skips_other_accessors(accessors, window):
    service = build_service(accessors)

    view = await service.fetch_all_upcoming(
        "user_1", window, BillsFilters(source_types=[SourceType.SCHEDULED_PAYMENT])
    )

    assert [r.id for r in view.records] == ["sp-tax"]
    assert accessors[SourceType.LIABILITY].calls == 0
    assert accessors[SourceType.SCHEDULED_PAYMENT].calls == 1


@pytest.mark.parametrize(
    "filters,expected_ids",
    [
        (BillsFilters(search="MUNICIPAL"), ["sp-tax"]),
        (BillsFilters(search="car loan"), ["ls-7"]),
        (BillsFilters(category_id="cat-home"), ["rt-rent_2025-06-15"]),
        (BillsFilters(account_id="acc-main"), ["rt-rent_2025-06-15"]),
        (BillsFilters(statuses=[ObligationStatus.OVERDUE]), []),
    ],
)
async def test_filters(accessors, window, filters, expected_ids):
    view = await build_service(accessors).fetch_all_upcoming("user_1", window, filters)
    assert [r.id for r in view.records] == expected_ids


async def test_days_until_follows_as_of(accessors):
    window = Window(start_date=date(2025, 6, 1), end_date=date(2025, 6, 30), as_of_date=date(2025, 6, 12))
    view = await build_service(accessors).fetch_all_upcoming(
        "user_1", window, BillsFilters(source_types=[SourceType.LIABILITY])
    )
    assert [(r.id, r.days_until) for r in view.records] == [("ls-7", 3)]


async def test_summary(accessors, window):
    summary = await build_service(accessors).get_summary("user_1", window)

    assert summary.total == 4
    assert summary.counts_by_status[ObligationStatus.DUE_TODAY] == 4
    assert summary.counts_by_status[ObligationStatus.OVERDUE] == 0
    assert summary.counts_by_status[ObligationStatus.UPCOMING] == 0
    assert summary.amounts_by_source[SourceType.GOAL_CONTRIBUTION].amount == 2608.7
    assert summary.amounts_by_source[SourceType.LIABILITY].count == 1
    assert summary.total_amount == pytest.approx(25000 + 12000 + 4000.5 + 2608.7)
    assert not summary.partial


async def test_summary_empty_window():
    service = AggregationService([ScheduledPaymentAdapter(StubAccessor())])
    window = Window(start_date=date(2025, 6, 1), end_date=date(2025, 6, 30), as_of_date=MID_JUNE)

    summary = await service.get_summary("user_1", window)

    assert summary.total == 0
    assert summary.total_amount == 0
    assert summary.amounts_by_source == {}


async def test_unrepresentable_rule_does_not_abort_view(accessors, window):
    accessors[SourceType.RECURRING_TRANSACTION] = StubAccessor(
        [
            RecurringObligation(
                id="rt-runaway",
                title="Runaway rule",
                amount=10.0,
                currency="INR",
                recurrence={"frequency": "day", "interval": 5_000_000, "start_date": "2024-01-01"},
            )
        ]
    )

    view = await build_service(accessors).fetch_all_upcoming(
        "user_1", window, BillsFilters(source_types=[SourceType.RECURRING_TRANSACTION, SourceType.SCHEDULED_PAYMENT])
    )

    assert [r.id for r in view.records] == ["sp-tax"]
    assert not view.partial
