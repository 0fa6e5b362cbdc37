"""Unit tests for obligation status classification"""

import pytest
from datetime import date
from bills_gateway.domain.models import ObligationStatus
from bills_gateway.domain.status import (
    calculate_status,
    get_days_until,
    is_overdue,
    is_terminal,
    normalize_status,
)


def test_due_today():
    assert calculate_status(date(2025, 6, 10), date(2025, 6, 10), None) == ObligationStatus.DUE_TODAY
    assert get_days_until(date(2025, 6, 10), date(2025, 6, 10)) == 0


def test_overdue_and_upcoming():
    as_of = date(2025, 6, 10)
    assert calculate_status(date(2025, 6, 9), as_of) == ObligationStatus.OVERDUE
    assert calculate_status(date(2025, 6, 11), as_of) == ObligationStatus.UPCOMING
    assert get_days_until(date(2025, 6, 3), as_of) == -7
    assert get_days_until(date(2025, 7, 10), as_of) == 30
    assert is_overdue(date(2025, 6, 9), as_of)
    assert not is_overdue(date(2025, 6, 10), as_of)


@pytest.mark.parametrize("persisted", ["paid", "cancelled", "skipped", "postponed"])
@pytest.mark.parametrize(
    "due_date,as_of",
    [
        (date(2025, 1, 1), date(2025, 6, 10)),
        (date(2025, 6, 10), date(2025, 6, 10)),
        (date(2026, 1, 1), date(2025, 6, 10)),
    ],
)
def test_terminal_status_is_sticky(persisted, due_date, as_of):
    assert calculate_status(due_date, as_of, persisted) == ObligationStatus(persisted)


def test_store_vocabulary_is_normalized():
    assert calculate_status(date(2020, 1, 1), date(2025, 6, 10), "completed") == ObligationStatus.PAID
    assert calculate_status(date(2020, 1, 1), date(2025, 6, 10), "Canceled") == ObligationStatus.CANCELLED


@pytest.mark.parametrize("persisted", ["scheduled", "pending", "overdue", "due_today", "upcoming", "active"])
def test_time_driven_statuses_are_recomputed(persisted):
    """A stale persisted 'overdue' does not stick once dates say otherwise"""
    assert normalize_status(persisted) is None
    assert calculate_status(date(2025, 7, 1), date(2025, 6, 10), persisted) == ObligationStatus.UPCOMING


def test_is_terminal():
    assert is_terminal(ObligationStatus.PAID)
    assert not is_terminal(ObligationStatus.OVERDUE)
    assert not is_terminal(None)
