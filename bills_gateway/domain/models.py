"""Domain models - pure Python dataclasses representing obligations and their schedules"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

from bills_gateway.domain.exceptions import InvalidRecurrenceDefinition, InvalidWindowError
from bills_gateway.utils.date_utils import window_bounds_for_view


class Frequency(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"
    CUSTOM = "custom"


class ObligationStatus(str, Enum):
    UPCOMING = "upcoming"
    DUE_TODAY = "due_today"
    OVERDUE = "overdue"
    PAID = "paid"
    CANCELLED = "cancelled"
    SKIPPED = "skipped"
    POSTPONED = "postponed"


TERMINAL_STATUSES = frozenset(
    {
        ObligationStatus.PAID,
        ObligationStatus.CANCELLED,
        ObligationStatus.SKIPPED,
        ObligationStatus.POSTPONED,
    }
)


class SourceType(str, Enum):
    RECURRING_TRANSACTION = "recurring_transaction"
    LIABILITY = "liability"
    SCHEDULED_PAYMENT = "scheduled_payment"
    GOAL_CONTRIBUTION = "goal_contribution"


@dataclass(frozen=True)
class RecurrenceDefinition:
    """
    How an obligation repeats over time.

    date_of_occurrence is a day of month (1-31) for month/quarter/year units
    and a weekday (0=Sunday .. 6=Saturday) for the week unit.
    """

    frequency: Frequency
    interval: int
    start_date: date
    end_date: Optional[date] = None
    date_of_occurrence: Optional[int] = None
    custom_unit: Optional[Frequency] = None
    custom_interval: Optional[int] = None

    def __post_init__(self) -> None:
        if self.interval is None or self.interval <= 0:
            raise InvalidRecurrenceDefinition(f"interval must be positive, got {self.interval}")
        if self.end_date is not None and self.end_date < self.start_date:
            raise InvalidRecurrenceDefinition(
                f"end_date {self.end_date} is before start_date {self.start_date}"
            )

        if self.frequency == Frequency.CUSTOM:
            if self.custom_unit is None or self.custom_interval is None:
                raise InvalidRecurrenceDefinition("custom frequency requires custom_unit and custom_interval")
            if self.custom_unit == Frequency.CUSTOM:
                raise InvalidRecurrenceDefinition("custom_unit must be a concrete unit")
            if self.custom_interval <= 0:
                raise InvalidRecurrenceDefinition(
                    f"custom_interval must be positive, got {self.custom_interval}"
                )
        elif self.custom_unit is not None or self.custom_interval is not None:
            raise InvalidRecurrenceDefinition("custom_unit/custom_interval are only valid with custom frequency")

        if self.date_of_occurrence is not None:
            if self.unit == Frequency.WEEK:
                if not 0 <= self.date_of_occurrence <= 6:
                    raise InvalidRecurrenceDefinition(
                        f"weekday must be 0-6, got {self.date_of_occurrence}"
                    )
            elif self.unit != Frequency.DAY and not 1 <= self.date_of_occurrence <= 31:
                raise InvalidRecurrenceDefinition(
                    f"day of month must be 1-31, got {self.date_of_occurrence}"
                )

    @property
    def unit(self) -> Frequency:
        """Calendar unit actually stepped (resolves custom)"""
        return self.custom_unit if self.frequency == Frequency.CUSTOM else self.frequency

    @property
    def step(self) -> int:
        """Number of units per step (resolves custom)"""
        return self.custom_interval if self.frequency == Frequency.CUSTOM else self.interval


@dataclass(frozen=True)
class Window:
    """Bounded date range plus the reference date used for status"""

    start_date: date
    end_date: date
    as_of_date: date

    def __post_init__(self) -> None:
        if self.end_date < self.start_date:
            raise InvalidWindowError(f"window end {self.end_date} precedes start {self.start_date}")

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


def window_for_view(view_type: str, anchor: date, as_of: Optional[date] = None) -> Window:
    """Day, week (Mon-Sun), month or year window around anchor; as_of defaults to anchor"""
    start, end = window_bounds_for_view(view_type, anchor)
    return Window(start_date=start, end_date=end, as_of_date=as_of or anchor)


@dataclass
class ObligationOccurrence:
    """Single computed instance of a recurring obligation"""

    date: date
    status: ObligationStatus
    days_from_now: int
    amount: Optional[float] = None


@dataclass
class PaymentBreakdown:
    """Principal/interest split of one liability payment"""

    total_amount: float
    principal: float
    interest: float
    remaining_balance: float


@dataclass
class RecurringObligation:
    """Recurring transaction row; recurrence fields are still undecoded"""

    id: str
    title: str
    amount: Optional[float]
    currency: str
    recurrence: Dict[str, Any]
    status: str = "active"  # active | paused | completed | cancelled
    amount_type: str = "fixed"  # fixed | variable
    estimated_amount: Optional[float] = None
    nature: Optional[str] = None  # subscription | bill | payment | income
    description: Optional[str] = None
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    next_due_date: Optional[date] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class LiabilityScheduleEntry:
    """Materialized liability installment joined with its parent liability"""

    id: str
    liability_id: str
    liability_title: str
    due_date: date
    amount: float
    currency: Optional[str]
    status: str  # pending | completed | cancelled | overdue | ...
    account_id: Optional[str] = None
    principal_amount: Optional[float] = None
    interest_amount: Optional[float] = None
    payment_number: Optional[int] = None
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ScheduledPayment:
    """One-off future payment"""

    id: str
    title: str
    amount: float
    currency: str
    due_date: date
    status: str  # scheduled | due_today | overdue | paid | cancelled | skipped | postponed
    description: Optional[str] = None
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Goal:
    """Savings goal; contribution targets are synthesized from it"""

    id: str
    title: str
    target_amount: float
    current_amount: float
    currency: Optional[str]
    target_date: Optional[date]
    description: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None


@dataclass
class UnifiedObligationRecord:
    """Canonical Bills view row produced by every source adapter"""

    id: str
    source_type: SourceType
    source_id: str
    title: str
    amount: Optional[float]
    currency: str
    due_date: date
    status: ObligationStatus
    days_until: int = 0
    description: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    account_id: Optional[str] = None
    account_name: Optional[str] = None
    color: Optional[str] = None
    icon: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class BillsFilters:
    """Post-filters and source selection for the Bills view"""

    source_types: Optional[List[SourceType]] = None
    statuses: Optional[List[ObligationStatus]] = None
    category_id: Optional[str] = None
    account_id: Optional[str] = None
    search: Optional[str] = None
    include_paid: bool = False
    include_cancelled: bool = False


@dataclass
class UpcomingView:
    """Ordered Bills view; partial when at least one source failed"""

    records: List[UnifiedObligationRecord]
    partial: bool = False
    failed_sources: List[SourceType] = field(default_factory=list)


@dataclass
class SourceTotals:
    count: int = 0
    amount: float = 0.0


@dataclass
class ObligationSummary:
    """Aggregate statistics over a Bills view"""

    total: int
    total_amount: float
    counts_by_status: Dict[ObligationStatus, int]
    amounts_by_source: Dict[SourceType, SourceTotals]
    partial: bool = False
