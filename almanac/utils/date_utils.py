# File: utils/date_utils.py
"""Calendar-agnostic date arithmetic for Almanac.

Pure Python functions over DateComponents and a CalendarProvider. Every
function receives the provider explicitly; there is no "current calendar".

When ``calendar`` is None the functions degrade to no-ops: arithmetic returns
its input unchanged, measurements return 0 and predicates return False. The
recurrence engine relies on that to stay silent in hot loops.

Functions:
    - compare_dates: Three-way compare including hour and minute
    - compare_days: Three-way compare on year, month and day only
    - is_same_day: Day-level equality
    - days_in_month: Length of the date's month
    - day_of_year: 0-indexed day of year
    - day_number: Absolute day count since the calendar epoch
    - date_from_day_number: Inverse of day_number
    - days_between: Whole days from one date to another
    - months_between: Month index delta between two dates
    - years_between: Year delta between two dates
    - day_of_week: Weekday index honoring fixed month starts and intercalary days
    - add_days: Shift a date by whole days
    - next_day: The following calendar day
    - add_months: Shift a date by months, clamping the day
    - add_years: Shift a date by years, clamping the day
    - is_valid_date: Check components against the calendar shape
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .. import const
from ..models import DateComponents

if TYPE_CHECKING:
    from ..providers import CalendarProvider

# Module-level logger
_LOGGER = logging.getLogger(__name__)


# ==============================================================================
# Comparison
# ==============================================================================


def compare_dates(first: DateComponents, second: DateComponents) -> int:
    """Compare two dates including time of day.

    Missing hour/minute values compare as 0.

    Returns:
        -1, 0 or 1.
    """
    left = (first.year, first.month, first.day, first.hour or 0, first.minute or 0)
    right = (second.year, second.month, second.day, second.hour or 0, second.minute or 0)
    if left == right:
        return 0
    return -1 if left < right else 1


def compare_days(first: DateComponents, second: DateComponents) -> int:
    """Compare two dates on year, month and day only.

    Returns:
        -1, 0 or 1.
    """
    left = (first.year, first.month, first.day)
    right = (second.year, second.month, second.day)
    if left == right:
        return 0
    return -1 if left < right else 1


def is_same_day(first: DateComponents, second: DateComponents) -> bool:
    """Return True if both dates fall on the same calendar day."""
    return compare_days(first, second) == 0


# ==============================================================================
# Measurements
# ==============================================================================


def days_in_month(calendar: CalendarProvider | None, date: DateComponents) -> int:
    """Return the length of the month containing ``date``.

    Falls back to const.FALLBACK_DAYS_IN_MONTH without a calendar.
    """
    if calendar is None:
        return const.FALLBACK_DAYS_IN_MONTH
    return calendar.days_in_month(date.month, date.year)


def day_of_year(calendar: CalendarProvider | None, date: DateComponents) -> int:
    """Return the 0-indexed day of year of ``date``.

    Sums the lengths of the preceding months (leap aware) and adds the day.

    Examples:
        Gregorian 2024-03-01 (month=2, day=1) → 60
        Gregorian 2023-03-01 (month=2, day=1) → 59
    """
    if calendar is None:
        return 0
    preceding = sum(
        calendar.days_in_month(month, date.year) for month in range(date.month)
    )
    return preceding + date.day - 1


def day_number(calendar: CalendarProvider | None, date: DateComponents) -> int:
    """Return the absolute day count of ``date`` since the calendar epoch.

    Negative for dates before the epoch; time of day is ignored.
    """
    if calendar is None:
        return 0
    time = calendar.components_to_time(date.year, day_of_year(calendar, date))
    return time // calendar.seconds_per_day()


def date_from_day_number(
    calendar: CalendarProvider, number: int, hour: int | None = None, minute: int | None = None
) -> DateComponents:
    """Build the DateComponents for an absolute day count."""
    components = calendar.time_to_components(number * calendar.seconds_per_day())
    return DateComponents(
        year=components["year"],
        month=components["month"],
        day=components["day_of_month"] + 1,
        hour=hour,
        minute=minute,
    )


def days_between(
    calendar: CalendarProvider | None, start: DateComponents, end: DateComponents
) -> int:
    """Return the number of whole days from ``start`` to ``end``.

    Time of day is ignored, so two dates on consecutive days are always one
    day apart. Negative when ``end`` precedes ``start``.

    Examples:
        Gregorian 2024-01-01 → 2024-03-01 = 60
    """
    if calendar is None:
        return 0
    return day_number(calendar, end) - day_number(calendar, start)


def months_between(
    calendar: CalendarProvider | None, start: DateComponents, end: DateComponents
) -> int:
    """Return the month index delta ``(years * monthCount) + months``."""
    if calendar is None:
        return 0
    years = _internal_year(calendar, end.year) - _internal_year(calendar, start.year)
    return years * calendar.month_count() + (end.month - start.month)


def years_between(
    calendar: CalendarProvider | None, start: DateComponents, end: DateComponents
) -> int:
    """Return the year delta between two dates, skipping an absent year 0."""
    if calendar is None:
        return 0
    return _internal_year(calendar, end.year) - _internal_year(calendar, start.year)


# ==============================================================================
# Weekdays
# ==============================================================================


def day_of_week(calendar: CalendarProvider | None, date: DateComponents) -> int:
    """Return the 0-indexed weekday of ``date``.

    Months with a fixed starting weekday are computed from that start, skipping
    the non-counting days that precede the date inside the month. Every other
    month uses the absolute day count minus all non-counting days accrued
    since the epoch, plus the calendar's first weekday.

    Examples:
        Gregorian 2024-01-01 (Sunday-first weekdays) → 1 (Monday)
    """
    if calendar is None:
        return 0
    week_length = calendar.week_length()
    if week_length < 1:
        return 0

    day0 = date.day - 1
    fixed_start = calendar.month_starting_weekday(date.month)
    if fixed_start is not None:
        skipped = calendar.non_weekday_days_before(
            date.year, date.month, day0
        ) - calendar.non_weekday_days_before(date.year, date.month, 0)
        return (fixed_start + day0 - skipped) % week_length

    skipped = calendar.non_weekday_days_before_year(
        date.year
    ) + calendar.non_weekday_days_before(date.year, date.month, day0)
    return (day_number(calendar, date) - skipped + calendar.first_weekday()) % week_length


# ==============================================================================
# Arithmetic
# ==============================================================================


def _internal_year(calendar: CalendarProvider, year: int) -> int:
    """Map a display year onto a contiguous axis (skipping an absent year 0)."""
    if not calendar.year_zero_exists() and year < 0:
        return year + 1
    return year


def _display_year(calendar: CalendarProvider, internal: int) -> int:
    if not calendar.year_zero_exists() and internal <= 0:
        return internal - 1
    return internal


def _clamped(
    calendar: CalendarProvider, date: DateComponents, year: int, month: int
) -> DateComponents:
    """Rebuild ``date`` in a new year/month with the day clamped to fit."""
    length = calendar.days_in_month(month, year)
    day = max(1, min(date.day, length))
    return DateComponents(year, month, day, date.hour, date.minute)


def add_days(
    calendar: CalendarProvider | None, date: DateComponents, days: int
) -> DateComponents:
    """Shift ``date`` by ``days`` whole days, keeping its time of day.

    Examples:
        Gregorian 2024-02-28 + 1 → 2024-02-29
        Gregorian 2023-12-31 + 1 → 2024-01-01
    """
    if calendar is None or days == 0:
        return date
    return date_from_day_number(
        calendar, day_number(calendar, date) + days, date.hour, date.minute
    )


def next_day(calendar: CalendarProvider | None, date: DateComponents) -> DateComponents:
    """Return the day after ``date`` without a round trip through linear time.

    Empty months are skipped.
    """
    if calendar is None:
        return date
    if date.day < calendar.days_in_month(date.month, date.year):
        return DateComponents(date.year, date.month, date.day + 1, date.hour, date.minute)

    year, month = date.year, date.month
    for _ in range(calendar.month_count() * 2 + 1):
        month += 1
        if month >= calendar.month_count():
            month = 0
            year = _display_year(calendar, _internal_year(calendar, year) + 1)
        if calendar.days_in_month(month, year) > 0:
            return DateComponents(year, month, 1, date.hour, date.minute)
    return add_days(calendar, date, 1)


def add_months(
    calendar: CalendarProvider | None, date: DateComponents, months: int
) -> DateComponents:
    """Shift ``date`` by ``months``, carrying across years and clamping the day.

    Examples:
        Gregorian 2024-01-31 + 1 month → 2024-02-29
        Gregorian 2024-11-15 + 3 months → 2025-02-15
    """
    if calendar is None or months == 0:
        return date
    month_count = calendar.month_count()
    if month_count < 1:
        _LOGGER.debug("add_months: calendar has no months, date left unchanged")
        return date
    carry, month = divmod(date.month + months, month_count)
    year = _display_year(calendar, _internal_year(calendar, date.year) + carry)
    return _clamped(calendar, date, year, month)


def add_years(
    calendar: CalendarProvider | None, date: DateComponents, years: int
) -> DateComponents:
    """Shift ``date`` by ``years``, clamping leap days into common years.

    Examples:
        Gregorian 2024-02-29 + 1 year → 2025-02-28
    """
    if calendar is None or years == 0:
        return date
    year = _display_year(calendar, _internal_year(calendar, date.year) + years)
    return _clamped(calendar, date, year, date.month)


# ==============================================================================
# Validation
# ==============================================================================


def is_valid_date(calendar: CalendarProvider | None, date: DateComponents) -> bool:
    """Return True if ``date`` exists in ``calendar``.

    Without a calendar only the component types are checked.
    """
    for value in (date.year, date.month, date.day):
        if isinstance(value, bool) or not isinstance(value, int):
            return False
    for value in (date.hour, date.minute):
        if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
            return False
    if calendar is None:
        return True

    if not calendar.year_zero_exists() and date.year == 0:
        return False
    if not 0 <= date.month < calendar.month_count():
        return False
    if not 1 <= date.day <= calendar.days_in_month(date.month, date.year):
        return False
    if date.hour is not None and not 0 <= date.hour < calendar.hours_per_day():
        return False
    if date.minute is not None and not 0 <= date.minute < const.DEFAULT_MINUTES_PER_HOUR:
        return False
    return True
