"""Unit tests for date utilities"""

import pytest
from datetime import date
from bills_gateway.domain.exceptions import InvalidWindowError
from bills_gateway.domain.models import Window, window_for_view
from bills_gateway.utils.date_utils import add_months, last_day_of_month, window_bounds_for_view


def test_last_day_of_month():
    assert last_day_of_month(2024, 2) == 29
    assert last_day_of_month(2025, 2) == 28
    assert last_day_of_month(2025, 4) == 30


def test_add_months_clamps_and_keeps_anchor():
    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2025, 2, 28), 1, anchor_day=31) == date(2025, 3, 31)
    assert add_months(date(2025, 11, 15), 3) == date(2026, 2, 15)


@pytest.mark.parametrize(
    "view,expected",
    [
        ("day", (date(2025, 6, 11), date(2025, 6, 11))),
        ("week", (date(2025, 6, 9), date(2025, 6, 15))),
        ("month", (date(2025, 6, 1), date(2025, 6, 30))),
        ("year", (date(2025, 1, 1), date(2025, 12, 31))),
    ],
)
def test_window_bounds_for_view(view, expected):
    # 2025-06-11 is a Wednesday
    assert window_bounds_for_view(view, date(2025, 6, 11)) == expected


def test_unknown_view_rejected():
    with pytest.raises(ValueError):
        window_bounds_for_view("fortnight", date(2025, 6, 11))


def test_window_end_before_start_rejected():
    with pytest.raises(InvalidWindowError):
        Window(start_date=date(2025, 6, 30), end_date=date(2025, 6, 1), as_of_date=date(2025, 6, 1))


def test_window_for_view_defaults_as_of_to_anchor():
    window = window_for_view("week", date(2025, 6, 11))
    assert (window.start_date, window.end_date, window.as_of_date) == (
        date(2025, 6, 9),
        date(2025, 6, 15),
        date(2025, 6, 11),
    )
    assert window_for_view("month", date(2025, 6, 11), as_of=date(2025, 6, 1)).as_of_date == date(2025, 6, 1)
