"""Calendar providers and rule resolvers.

The engines never read ambient state: every call receives a
``CalendarProvider`` (calendar shape facts) and, for linked events, a
``RuleResolver`` (lookup of other rules by id). Both are read-only for the
duration of a call.

``DefinitionCalendar`` is the concrete provider built from a validated
``CalendarDefinition``. Linear time is measured in seconds from the first day
of display year ``year_zero``. Year-length sums are computed in closed form
through leap counting, so converting a date far from the epoch costs the same
as converting one next to it.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any, Protocol

from . import const
from .models import (
    CalendarDefinition,
    Cycle,
    Daylight,
    Era,
    Festival,
    LeapYearRule,
    Moon,
    RecurrenceRule,
    Season,
)
from .schemas import calendar_from_dict
from .utils.leap_year import count_leap_years, is_leap_year

if TYPE_CHECKING:
    from .type_defs import CalendarDefinitionData, TimeComponents


# =============================================================================
# Protocols
# =============================================================================


class CalendarProvider(Protocol):
    """Read-only calendar facts consumed by the engines.

    Years are display years; months and days-of-year are 0-indexed.
    """

    def month_count(self) -> int:
        """Return the number of months in a year."""

    def days_in_month(self, month: int, year: int) -> int:
        """Return the length of ``month`` in ``year``."""

    def days_in_year(self, year: int) -> int:
        """Return the length of ``year``."""

    def is_leap_year(self, year: int) -> bool:
        """Return True if ``year`` is a leap year."""

    def week_length(self) -> int:
        """Return the number of named weekdays."""

    def first_weekday(self) -> int:
        """Return the weekday index of the epoch day."""

    def hours_per_day(self) -> int:
        """Return the number of hours in a day."""

    def seconds_per_day(self) -> int:
        """Return the number of seconds in a day."""

    def month_starting_weekday(self, month: int) -> int | None:
        """Return the fixed starting weekday of ``month``, if it has one."""

    def is_intercalary(self, month: int) -> bool:
        """Return True if ``month`` sits outside the week cycle."""

    def month_name(self, month: int) -> str:
        """Return the display name of ``month``."""

    def weekday_name(self, weekday: int) -> str:
        """Return the display name of ``weekday``."""

    def components_to_time(
        self, year: int, day_of_year: int, hour: int = 0, minute: int = 0, second: int = 0
    ) -> int:
        """Convert a year and 0-indexed day of year to linear time."""

    def time_to_components(self, time: int) -> TimeComponents:
        """Convert linear time back to components."""

    def non_weekday_days_before(self, year: int, month: int, day_of_month: int) -> int:
        """Count non-weekday-counting days of ``year`` before the given day."""

    def non_weekday_days_before_year(self, year: int) -> int:
        """Count non-weekday-counting days between the epoch and ``year``."""

    def seasons(self) -> tuple[Season, ...]:
        """Return the seasons."""

    def moons(self) -> tuple[Moon, ...]:
        """Return the moons."""

    def eras(self) -> tuple[Era, ...]:
        """Return the eras, oldest first."""

    def cycles(self) -> tuple[Cycle, ...]:
        """Return the numeric cycles."""

    def daylight(self) -> Daylight | None:
        """Return solstice settings, if configured."""

    def leap_year_rule(self) -> LeapYearRule:
        """Return the leap year rule."""

    def year_zero_exists(self) -> bool:
        """Return False if the calendar jumps from year -1 to year 1."""


class RuleResolver(Protocol):
    """Lookup of recurrence rules by identifier (used for linked events)."""

    def resolve_rule(self, rule_id: str) -> RecurrenceRule | None:
        """Return the rule with ``rule_id`` or None."""


# =============================================================================
# Rule Resolver
# =============================================================================


class MappingRuleResolver:
    """RuleResolver backed by an in-memory mapping of rules."""

    def __init__(
        self, rules: Mapping[str, RecurrenceRule] | Iterable[RecurrenceRule]
    ) -> None:
        """Initialize from a mapping or an iterable of rules with ids."""
        if isinstance(rules, Mapping):
            self._rules: dict[str, RecurrenceRule] = dict(rules)
        else:
            self._rules = {rule.rule_id: rule for rule in rules if rule.rule_id}

    def resolve_rule(self, rule_id: str) -> RecurrenceRule | None:
        """Return the rule with ``rule_id`` or None."""
        return self._rules.get(rule_id)


# =============================================================================
# Definition-backed Calendar
# =============================================================================


class DefinitionCalendar:
    """CalendarProvider implementation over a CalendarDefinition."""

    def __init__(self, definition: CalendarDefinition) -> None:
        """Initialize the provider and precompute per-year constants.

        Args:
            definition: Validated calendar definition.
        """
        self._definition = definition
        self._months = definition.months
        self._year_zero_exists = definition.year_zero_exists
        self._seconds_per_minute = definition.seconds_per_minute
        self._seconds_per_hour = definition.minutes_per_hour * definition.seconds_per_minute
        self._seconds_per_day = definition.hours_per_day * self._seconds_per_hour

        self._common_days = sum(month.length(False) for month in self._months)
        self._leap_days = sum(month.length(True) for month in self._months)
        self._common_non_counting = self._non_counting_before(False, len(self._months), 0)
        self._leap_non_counting = self._non_counting_before(True, len(self._months), 0)
        self._epoch = self._internal_year(definition.year_zero)

    @classmethod
    def from_dict(cls, data: CalendarDefinitionData | dict[str, Any]) -> DefinitionCalendar:
        """Validate raw definition data and build a provider.

        Raises:
            InvalidCalendarError: If the data fails validation.
        """
        return cls(calendar_from_dict(data))

    @property
    def definition(self) -> CalendarDefinition:
        """Return the underlying definition."""
        return self._definition

    # -------------------------------------------------------------------------
    # Year axis
    # -------------------------------------------------------------------------

    def _internal_year(self, year: int) -> int:
        """Map a display year onto the contiguous internal axis."""
        if not self._year_zero_exists and year < 0:
            return year + 1
        return year

    def _display_year(self, internal: int) -> int:
        """Map an internal year back to its display year."""
        if not self._year_zero_exists and internal <= 0:
            return internal - 1
        return internal

    def _leaps_from_epoch(self, internal: int) -> int:
        """Signed count of leap years between the epoch and ``internal``."""
        rule = self._definition.leap_year
        if internal >= self._epoch:
            return count_leap_years(rule, self._epoch, internal)
        return -count_leap_years(rule, internal, self._epoch)

    def _days_before_internal(self, internal: int) -> int:
        """Days from the epoch to the first day of an internal year."""
        span = internal - self._epoch
        leaps = self._leaps_from_epoch(internal)
        return span * self._common_days + leaps * (self._leap_days - self._common_days)

    def _is_leap_internal(self, internal: int) -> bool:
        """Leap decision on the contiguous axis (year zero always present)."""
        return is_leap_year(self._definition.leap_year, internal, True)

    # -------------------------------------------------------------------------
    # Shape
    # -------------------------------------------------------------------------

    def month_count(self) -> int:
        """Return the number of months in a year."""
        return len(self._months)

    def is_leap_year(self, year: int) -> bool:
        """Return True if ``year`` is a leap year."""
        return is_leap_year(self._definition.leap_year, year, self._year_zero_exists)

    def days_in_month(self, month: int, year: int) -> int:
        """Return the length of ``month`` in ``year`` (0 for unknown months)."""
        if not 0 <= month < len(self._months):
            return 0
        return self._months[month].length(self.is_leap_year(year))

    def days_in_year(self, year: int) -> int:
        """Return the length of ``year``."""
        return self._leap_days if self.is_leap_year(year) else self._common_days

    def week_length(self) -> int:
        """Return the number of named weekdays."""
        return len(self._definition.weekdays) or const.DEFAULT_WEEK_LENGTH

    def first_weekday(self) -> int:
        """Return the weekday index of the epoch day."""
        return self._definition.first_weekday

    def hours_per_day(self) -> int:
        """Return the number of hours in a day."""
        return self._definition.hours_per_day

    def seconds_per_day(self) -> int:
        """Return the number of seconds in a day."""
        return self._seconds_per_day

    def month_starting_weekday(self, month: int) -> int | None:
        """Return the fixed starting weekday of ``month``, if it has one."""
        if not 0 <= month < len(self._months):
            return None
        return self._months[month].starting_weekday

    def is_intercalary(self, month: int) -> bool:
        """Return True if ``month`` sits outside the week cycle."""
        if not 0 <= month < len(self._months):
            return False
        return self._months[month].intercalary

    def month_name(self, month: int) -> str:
        """Return the display name of ``month``."""
        if 0 <= month < len(self._months):
            return self._months[month].name
        return f"Month {month + 1}"

    def weekday_name(self, weekday: int) -> str:
        """Return the display name of ``weekday``."""
        weekdays = self._definition.weekdays
        if 0 <= weekday < len(weekdays):
            return weekdays[weekday]
        return f"Day {weekday + 1}"

    # -------------------------------------------------------------------------
    # Linear time
    # -------------------------------------------------------------------------

    def components_to_time(
        self, year: int, day_of_year: int, hour: int = 0, minute: int = 0, second: int = 0
    ) -> int:
        """Convert a year and 0-indexed day of year to seconds since the epoch."""
        days = self._days_before_internal(self._internal_year(year)) + day_of_year
        return (
            days * self._seconds_per_day
            + hour * self._seconds_per_hour
            + minute * self._seconds_per_minute
            + second
        )

    def time_to_components(self, time: int) -> TimeComponents:
        """Convert seconds since the epoch back to date components."""
        days, remainder = divmod(int(time), self._seconds_per_day)

        internal = self._epoch + days // max(1, self._common_days)
        while self._days_before_internal(internal) > days:
            internal -= 1
        while self._days_before_internal(internal + 1) <= days:
            internal += 1

        day_of_year = days - self._days_before_internal(internal)
        leap = self._is_leap_internal(internal)

        month = 0
        day_of_month = day_of_year
        for index, month_def in enumerate(self._months):
            length = month_def.length(leap)
            if day_of_month < length:
                month = index
                break
            day_of_month -= length

        hour, remainder = divmod(remainder, self._seconds_per_hour)
        minute, second = divmod(remainder, self._seconds_per_minute)
        return {
            "year": self._display_year(internal),
            "month": month,
            "day_of_month": day_of_month,
            "day_of_year": day_of_year,
            "hour": hour,
            "minute": minute,
            "second": second,
        }

    # -------------------------------------------------------------------------
    # Non-weekday-counting days
    # -------------------------------------------------------------------------

    def _non_counting_before(self, leap: bool, month: int, day_of_month: int) -> int:
        """Count non-counting days of a (leap or common) year before a day."""
        total = 0
        for month_def in self._months[:month]:
            if month_def.intercalary:
                total += month_def.length(leap)
        if month < len(self._months) and self._months[month].intercalary:
            total += day_of_month

        for festival in self._definition.festivals:
            if festival.counts_for_weekday:
                continue
            festival_month = festival.month - 1
            festival_day = festival.day - 1
            if not 0 <= festival_month < len(self._months):
                continue
            month_def = self._months[festival_month]
            # Intercalary months are already fully excluded
            if month_def.intercalary or festival_day >= month_def.length(leap):
                continue
            if (festival_month, festival_day) < (month, day_of_month):
                total += 1
        return total

    def non_weekday_days_before(self, year: int, month: int, day_of_month: int) -> int:
        """Count non-counting days of ``year`` before a 0-indexed day of month."""
        return self._non_counting_before(self.is_leap_year(year), month, day_of_month)

    def non_weekday_days_before_year(self, year: int) -> int:
        """Count non-counting days from the epoch to the start of ``year``.

        Negative for years before the epoch.
        """
        internal = self._internal_year(year)
        span = internal - self._epoch
        leaps = self._leaps_from_epoch(internal)
        return span * self._common_non_counting + leaps * (
            self._leap_non_counting - self._common_non_counting
        )

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    def festivals(self) -> tuple[Festival, ...]:
        """Return the festival days."""
        return self._definition.festivals

    def seasons(self) -> tuple[Season, ...]:
        """Return the seasons."""
        return self._definition.seasons

    def moons(self) -> tuple[Moon, ...]:
        """Return the moons."""
        return self._definition.moons

    def eras(self) -> tuple[Era, ...]:
        """Return the eras, oldest first."""
        return self._definition.eras

    def cycles(self) -> tuple[Cycle, ...]:
        """Return the numeric cycles."""
        return self._definition.cycles

    def daylight(self) -> Daylight | None:
        """Return solstice settings, if configured."""
        return self._definition.daylight

    def leap_year_rule(self) -> LeapYearRule:
        """Return the leap year rule."""
        return self._definition.leap_year

    def year_zero_exists(self) -> bool:
        """Return False if the calendar jumps from year -1 to year 1."""
        return self._year_zero_exists
