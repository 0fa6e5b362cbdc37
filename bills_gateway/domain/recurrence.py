"""
Recurrence engine - calendar arithmetic for recurring obligations.

Every definition describes a series anchored on its start date:

- day:   start + k * step days
- week:  first matching weekday on/after start + k * step weeks
- month/quarter/year: start month + k * step * (1 | 3 | 12) months, landing on
  the anchor day clamped to the month's length

All functions are pure; "now" is always passed in.
"""

import logging
from datetime import date, timedelta
from typing import Any, List, Mapping, Optional

from bills_gateway.domain.exceptions import InvalidRecurrenceDefinition
from bills_gateway.domain.models import Frequency, ObligationOccurrence, RecurrenceDefinition, Window
from bills_gateway.domain.status import calculate_status, get_days_until
from bills_gateway.utils.date_utils import add_months, month_index

MAX_SCHEDULE_ITERATIONS = 10_000

_MONTHS_PER_UNIT = {
    Frequency.MONTH: 1,
    Frequency.QUARTER: 3,
    Frequency.YEAR: 12,
}

# Shortest possible gap between two consecutive occurrences of one unit step
# (Jan 31 -> Feb 28, Jan 31 -> Apr 30, Feb 29 -> Feb 28)
_MIN_DAYS_PER_UNIT = {
    Frequency.DAY: 1,
    Frequency.WEEK: 7,
    Frequency.MONTH: 28,
    Frequency.QUARTER: 89,
    Frequency.YEAR: 365,
}

_FREQUENCY_TOKENS = {
    "day": Frequency.DAY,
    "days": Frequency.DAY,
    "daily": Frequency.DAY,
    "week": Frequency.WEEK,
    "weeks": Frequency.WEEK,
    "weekly": Frequency.WEEK,
    "month": Frequency.MONTH,
    "months": Frequency.MONTH,
    "monthly": Frequency.MONTH,
    "quarter": Frequency.QUARTER,
    "quarters": Frequency.QUARTER,
    "quarterly": Frequency.QUARTER,
    "year": Frequency.YEAR,
    "years": Frequency.YEAR,
    "yearly": Frequency.YEAR,
    "annual": Frequency.YEAR,
    "annually": Frequency.YEAR,
    "custom": Frequency.CUSTOM,
}

_WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def _first_weekly_date(definition: RecurrenceDefinition) -> date:
    """First weekly occurrence: start_date, or the first requested weekday on/after it"""
    start = definition.start_date
    if definition.date_of_occurrence is None:
        return start
    # 0=Sunday convention -> Python's 0=Monday
    target = (definition.date_of_occurrence - 1) % 7
    return start + timedelta(days=(target - start.weekday()) % 7)


def _series_date(definition: RecurrenceDefinition, k: int) -> date:
    """The k-th date of the series (k = 0 is the first candidate)"""
    unit = definition.unit
    step = definition.step

    if unit == Frequency.DAY:
        return definition.start_date + timedelta(days=k * step)
    if unit == Frequency.WEEK:
        return _first_weekly_date(definition) + timedelta(weeks=k * step)

    anchor_day = definition.date_of_occurrence or definition.start_date.day
    return add_months(definition.start_date, k * step * _MONTHS_PER_UNIT[unit], anchor_day)


def _index_estimate(definition: RecurrenceDefinition, lower: date) -> int:
    """Largest series index whose date cannot exceed lower (never overshoots)"""
    unit = definition.unit
    step = definition.step

    if unit == Frequency.DAY:
        return max(0, (lower - definition.start_date).days // step)
    if unit == Frequency.WEEK:
        first = _first_weekly_date(definition)
        return max(0, (lower - first).days // (7 * step))

    months = month_index(lower) - month_index(definition.start_date)
    return max(0, months // (step * _MONTHS_PER_UNIT[unit]))


def calculate_next_occurrence(definition: RecurrenceDefinition, from_date: date) -> Optional[date]:
    """
    First occurrence on or after from_date.

    Returns None when the series has ended (from_date past end_date, the
    next candidate falls after end_date, or it lies beyond the last
    representable date).
    """
    lower = max(from_date, definition.start_date)
    if definition.end_date is not None and lower > definition.end_date:
        return None

    try:
        k = _index_estimate(definition, lower)
        candidate = _series_date(definition, k)
        while candidate < lower:
            k += 1
            candidate = _series_date(definition, k)
    except (OverflowError, ValueError):
        # Next step lies past date.max; the series has left the calendar
        return None

    if definition.end_date is not None and candidate > definition.end_date:
        return None
    return candidate


def _iteration_budget(definition: RecurrenceDefinition, start: date, end: date) -> int:
    min_gap = _MIN_DAYS_PER_UNIT[definition.unit] * definition.step
    return (end - start).days // min_gap + 2


def generate_schedule(
    definition: RecurrenceDefinition,
    window: Window,
    amount: Optional[float] = None,
    max_iterations: int = MAX_SCHEDULE_ITERATIONS,
) -> List[ObligationOccurrence]:
    """
    All occurrences inside the window, classified against window.as_of_date.

    Generation stops at the window end, at the series end, or after a bounded
    number of steps derived from the window span and the shortest step.
    """
    cursor = max(definition.start_date, window.start_date)
    if cursor > window.end_date:
        return []

    occurrences: List[ObligationOccurrence] = []
    limit = min(max_iterations, _iteration_budget(definition, cursor, window.end_date))

    for _ in range(limit):
        next_date = calculate_next_occurrence(definition, cursor)
        if next_date is None or next_date > window.end_date:
            return occurrences
        if next_date < cursor:
            raise RuntimeError(f"Schedule generation moved backwards: {next_date} < {cursor}")

        occurrences.append(
            ObligationOccurrence(
                date=next_date,
                status=calculate_status(next_date, window.as_of_date),
                days_from_now=get_days_until(next_date, window.as_of_date),
                amount=amount,
            )
        )
        if next_date == date.max:
            return occurrences
        cursor = next_date + timedelta(days=1)

    logging.warning(
        "Schedule generation hit iteration limit",
        extra={"limit": limit, "frequency": definition.frequency.value, "collected": len(occurrences)},
    )
    return occurrences


def count_occurrences_between(definition: RecurrenceDefinition, start: date, end: date) -> int:
    """Number of occurrences in [start, end]"""
    return len(generate_schedule(definition, Window(start_date=start, end_date=end, as_of_date=start)))


def _ordinal(n: int) -> str:
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def describe_recurrence(definition: RecurrenceDefinition) -> str:
    """Human-readable rule, e.g. "Every 2 months on the 15th until 2026-01-31" """
    unit = definition.unit.value
    step = definition.step
    text = f"Every {unit}" if step == 1 else f"Every {step} {unit}s"

    if definition.date_of_occurrence is not None:
        if definition.unit == Frequency.WEEK:
            text += f" on {_WEEKDAY_NAMES[definition.date_of_occurrence]}"
        elif definition.unit != Frequency.DAY:
            text += f" on the {_ordinal(definition.date_of_occurrence)}"

    if definition.end_date is not None:
        text += f" until {definition.end_date.isoformat()}"
    return text


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_frequency(value: Any, field_name: str) -> Frequency:
    if isinstance(value, Frequency):
        return value
    token = str(value).strip().lower()
    if token not in _FREQUENCY_TOKENS:
        raise InvalidRecurrenceDefinition(f"Unknown {field_name}: {value!r}")
    return _FREQUENCY_TOKENS[token]


def _parse_date(value: Any, field_name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        # Accept full timestamps by keeping the date part
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError as e:
        raise InvalidRecurrenceDefinition(f"Invalid {field_name}: {value!r}") from e


def _parse_int(value: Any, field_name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise InvalidRecurrenceDefinition(f"Invalid {field_name}: {value!r}") from e


def decode_recurrence(raw: Mapping[str, Any]) -> RecurrenceDefinition:
    """
    Decode stored recurrence fields into a validated definition.

    Accepts UI tokens (month) and store tokens (monthly), plural custom units,
    ISO strings or dates. Custom fields are ignored unless the frequency is
    custom.

    Raises:
        InvalidRecurrenceDefinition: missing/unknown fields or broken invariants
    """
    if _blank(raw.get("frequency")):
        raise InvalidRecurrenceDefinition("frequency is required")
    if _blank(raw.get("start_date")):
        raise InvalidRecurrenceDefinition("start_date is required")

    frequency = _parse_frequency(raw["frequency"], "frequency")
    interval = 1 if _blank(raw.get("interval")) else _parse_int(raw["interval"], "interval")
    start_date = _parse_date(raw["start_date"], "start_date")
    end_date = None if _blank(raw.get("end_date")) else _parse_date(raw["end_date"], "end_date")
    date_of_occurrence = (
        None
        if _blank(raw.get("date_of_occurrence"))
        else _parse_int(raw["date_of_occurrence"], "date_of_occurrence")
    )

    custom_unit = None
    custom_interval = None
    if frequency == Frequency.CUSTOM:
        if not _blank(raw.get("custom_unit")):
            custom_unit = _parse_frequency(raw["custom_unit"], "custom_unit")
        if not _blank(raw.get("custom_interval")):
            custom_interval = _parse_int(raw["custom_interval"], "custom_interval")

    return RecurrenceDefinition(
        frequency=frequency,
        interval=interval,
        start_date=start_date,
        end_date=end_date,
        date_of_occurrence=date_of_occurrence,
        custom_unit=custom_unit,
        custom_interval=custom_interval,
    )
