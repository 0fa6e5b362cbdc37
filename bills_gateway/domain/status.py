"""Obligation status classification relative to an explicit as-of date"""

from datetime import date
from typing import Optional, Union

from bills_gateway.domain.models import ObligationStatus, TERMINAL_STATUSES
from bills_gateway.utils.date_utils import days_between

# Store vocabularies that mean "settled" in one of the shared terminal states
_STATUS_ALIASES = {
    "completed": ObligationStatus.PAID,
    "complete": ObligationStatus.PAID,
    "paid": ObligationStatus.PAID,
    "cancelled": ObligationStatus.CANCELLED,
    "canceled": ObligationStatus.CANCELLED,
    "skipped": ObligationStatus.SKIPPED,
    "postponed": ObligationStatus.POSTPONED,
}


def normalize_status(raw: Union[str, ObligationStatus, None]) -> Optional[ObligationStatus]:
    """
    Map a persisted status onto the shared enum.

    Only terminal states survive; time-driven values such as "scheduled",
    "pending", "overdue" or "due_today" return None because they are always
    recomputed from dates.
    """
    if raw is None:
        return None
    value = raw.value if isinstance(raw, ObligationStatus) else str(raw).strip().lower()
    return _STATUS_ALIASES.get(value)


def is_terminal(status: Optional[ObligationStatus]) -> bool:
    return status in TERMINAL_STATUSES


def calculate_status(
    due_date: date,
    as_of: date,
    persisted_status: Union[str, ObligationStatus, None] = None,
) -> ObligationStatus:
    """
    Classify an obligation against the as-of date.

    Terminal statuses (paid, cancelled, skipped, postponed) are sticky and
    returned unchanged regardless of dates.
    """
    terminal = normalize_status(persisted_status)
    if terminal is not None:
        return terminal

    if due_date < as_of:
        return ObligationStatus.OVERDUE
    if due_date == as_of:
        return ObligationStatus.DUE_TODAY
    return ObligationStatus.UPCOMING


def get_days_until(due_date: date, as_of: date) -> int:
    """Signed days from as_of to due_date (negative = overdue)"""
    return days_between(as_of, due_date)


def is_overdue(due_date: date, as_of: date) -> bool:
    return get_days_until(due_date, as_of) < 0
