"""Immutable models for calendars and recurrence rules.

All models are frozen, slotted dataclasses: every engine call receives plain
value data and nothing is ever mutated in place.

Repeat strategies are modelled as a closed set of pattern variants (one class
per strategy, each carrying only its own payload). ``RepeatPattern`` is the
union of all variants; the recurrence engine dispatches on it with
``isinstance`` checks ending in ``assert_never`` so a type checker flags any
strategy added here but not handled there.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar

from . import const

# =============================================================================
# Dates
# =============================================================================


@dataclass(frozen=True, slots=True)
class DateComponents:
    """A calendar date in display years.

    Attributes:
        year: Display year (may be negative)
        month: Month index, 0-indexed
        day: Day of month, 1-indexed
        hour: Optional hour of day
        minute: Optional minute of hour
    """

    year: int
    month: int
    day: int
    hour: int | None = None
    minute: int | None = None

    def as_day(self) -> DateComponents:
        """Return the same date without time of day."""
        return DateComponents(self.year, self.month, self.day)


# =============================================================================
# Calendar Definition
# =============================================================================


@dataclass(frozen=True, slots=True)
class Month:
    """A month of the calendar."""

    name: str
    days: int
    leap_days: int | None = None
    starting_weekday: int | None = None
    intercalary: bool = False

    def length(self, leap: bool) -> int:
        """Return the month length for a leap or common year."""
        if leap and self.leap_days is not None:
            return self.leap_days
        return self.days


@dataclass(frozen=True, slots=True)
class LeapYearRule:
    """Leap year rule: none, simple(interval, start), gregorian or custom(pattern)."""

    rule: str = const.LEAP_RULE_NONE
    interval: int = 0
    start: int = 0
    pattern: str = ""


@dataclass(frozen=True, slots=True)
class Festival:
    """A named festival day (month and day 1-indexed, as stored)."""

    name: str
    month: int
    day: int
    counts_for_weekday: bool = True


@dataclass(frozen=True, slots=True)
class Season:
    """A season spanning 0-indexed days of year; ``day_start > day_end`` wraps."""

    name: str
    day_start: int
    day_end: int

    @property
    def wraps(self) -> bool:
        """Return True if the season crosses the year boundary."""
        return self.day_start > self.day_end


@dataclass(frozen=True, slots=True)
class MoonPhase:
    """One phase bucket covering ``[start, end)`` of a moon's cycle."""

    name: str
    start: float
    end: float


@dataclass(frozen=True, slots=True)
class Moon:
    """A moon with its cycle length, reference new-moon date and phases."""

    name: str
    cycle_length: float
    reference_date: DateComponents
    phases: tuple[MoonPhase, ...] = ()
    cycle_day_adjust: float = 0.0


@dataclass(frozen=True, slots=True)
class Era:
    """A named era; ``end_year`` None means the era is still running."""

    name: str
    start_year: int
    end_year: int | None = None
    abbreviation: str = ""

    def contains(self, year: int) -> bool:
        """Return True if ``year`` lies within the era (inclusive)."""
        if year < self.start_year:
            return False
        return self.end_year is None or year <= self.end_year


@dataclass(frozen=True, slots=True)
class Cycle:
    """A numeric cycle of named entries (e.g. a 12-year zodiac)."""

    name: str
    length: int
    entries: tuple[str, ...] = ()
    offset: int = 0
    based_on: str = const.CYCLE_BASED_ON_YEAR


@dataclass(frozen=True, slots=True)
class Daylight:
    """Solstice positions as 0-indexed days of year."""

    summer_solstice: int
    winter_solstice: int


@dataclass(frozen=True, slots=True)
class CalendarDefinition:
    """Complete, validated calendar definition.

    ``year_zero`` is the display year at linear time 0 and ``first_weekday``
    the weekday index of that first day.
    """

    name: str
    months: tuple[Month, ...]
    weekdays: tuple[str, ...]
    first_weekday: int = const.DEFAULT_FIRST_WEEKDAY
    year_zero: int = const.DEFAULT_YEAR_ZERO
    year_zero_exists: bool = True
    hours_per_day: int = const.DEFAULT_HOURS_PER_DAY
    minutes_per_hour: int = const.DEFAULT_MINUTES_PER_HOUR
    seconds_per_minute: int = const.DEFAULT_SECONDS_PER_MINUTE
    leap_year: LeapYearRule = field(default_factory=LeapYearRule)
    festivals: tuple[Festival, ...] = ()
    seasons: tuple[Season, ...] = ()
    moons: tuple[Moon, ...] = ()
    eras: tuple[Era, ...] = ()
    cycles: tuple[Cycle, ...] = ()
    daylight: Daylight | None = None


# =============================================================================
# Rule Building Blocks
# =============================================================================


@dataclass(frozen=True, slots=True)
class RangeBit:
    """Per-field constraint: wildcard, exact value or inclusive interval.

    Both bounds None is a wildcard; equal bounds an exact value; either bound
    None leaves that side open.
    """

    minimum: int | None = None
    maximum: int | None = None

    @classmethod
    def exact(cls, value: int) -> RangeBit:
        """Build a range bit matching exactly ``value``."""
        return cls(value, value)

    @property
    def is_wildcard(self) -> bool:
        """Return True if the bit matches any value."""
        return self.minimum is None and self.maximum is None

    def matches(self, value: int) -> bool:
        """Return True if ``value`` satisfies the bit."""
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True


@dataclass(frozen=True, slots=True)
class MoonCondition:
    """Phase window for one moon; ``phase_start > phase_end`` wraps past 0/1."""

    moon_index: int
    phase_start: float
    phase_end: float


@dataclass(frozen=True, slots=True)
class Condition:
    """Generic field condition.

    Attributes:
        field: Name of a derived date fact (see const.CONDITION_FIELDS)
        op: Comparison operator (see const.CONDITION_OPERATORS)
        value: Right-hand operand (number or boolean)
        value2: Auxiliary selector, e.g. moon or cycle index
        offset: Origin shift used by the modulo operator
    """

    field: str
    op: str
    value: float | int | bool
    value2: int | None = None
    offset: int = 0


@dataclass(frozen=True, slots=True)
class LinkedEvent:
    """Reference to another rule, shifted by ``offset`` days."""

    rule_id: str
    offset: int = 0


# =============================================================================
# Repeat Pattern Variants
# =============================================================================


@dataclass(frozen=True, slots=True)
class NeverPattern:
    """Single occurrence on the start date."""

    repeat: ClassVar[str] = const.REPEAT_NEVER


@dataclass(frozen=True, slots=True)
class DailyPattern:
    """Every N days."""

    repeat: ClassVar[str] = const.REPEAT_DAILY


@dataclass(frozen=True, slots=True)
class WeeklyPattern:
    """Every N weeks on the start date's weekday."""

    repeat: ClassVar[str] = const.REPEAT_WEEKLY


@dataclass(frozen=True, slots=True)
class MonthlyPattern:
    """Every N months on the start date's day (clamped to month length)."""

    repeat: ClassVar[str] = const.REPEAT_MONTHLY


@dataclass(frozen=True, slots=True)
class YearlyPattern:
    """Every N years on the start date's month and day (clamped)."""

    repeat: ClassVar[str] = const.REPEAT_YEARLY


@dataclass(frozen=True, slots=True)
class WeekOfMonthPattern:
    """Nth weekday of the month; negative ``week_number`` counts from the end.

    None values are derived from the rule's start date.
    """

    weekday: int | None = None
    week_number: int | None = None
    repeat: ClassVar[str] = const.REPEAT_WEEK_OF_MONTH


@dataclass(frozen=True, slots=True)
class SeasonalPattern:
    """Days of a season selected by ``trigger`` (entire, firstDay, lastDay)."""

    season_index: int = 0
    trigger: str = const.SEASON_TRIGGER_ENTIRE
    repeat: ClassVar[str] = const.REPEAT_SEASONAL


@dataclass(frozen=True, slots=True)
class RangePattern:
    """Every date whose year, month (0-indexed) and day satisfy the bits."""

    year: RangeBit = field(default_factory=RangeBit)
    month: RangeBit = field(default_factory=RangeBit)
    day: RangeBit = field(default_factory=RangeBit)
    repeat: ClassVar[str] = const.REPEAT_RANGE


@dataclass(frozen=True, slots=True)
class RandomPattern:
    """Deterministic pseudo-random occurrence with ``probability`` percent."""

    seed: int = 0
    probability: float = 10.0
    check_interval: str = const.CHECK_INTERVAL_DAILY
    repeat: ClassVar[str] = const.REPEAT_RANDOM


@dataclass(frozen=True, slots=True)
class MoonPattern:
    """Occurs whenever any of the rule's moon conditions holds."""

    repeat: ClassVar[str] = const.REPEAT_MOON


@dataclass(frozen=True, slots=True)
class InvalidPattern:
    """Malformed repeat configuration; never matches."""

    requested: str
    reason: str = ""
    repeat: ClassVar[str] = "invalid"


RepeatPattern = (
    NeverPattern
    | DailyPattern
    | WeeklyPattern
    | MonthlyPattern
    | YearlyPattern
    | WeekOfMonthPattern
    | SeasonalPattern
    | RangePattern
    | RandomPattern
    | MoonPattern
    | InvalidPattern
)


# =============================================================================
# Recurrence Rule
# =============================================================================


@dataclass(frozen=True, slots=True, kw_only=True)
class RecurrenceRule:
    """A recurring event rule.

    ``linked_event``, when set, overrides ``pattern`` entirely: occurrences are
    those of the referenced rule shifted by the link offset.

    Attributes:
        start_date: First possible occurrence
        pattern: Repeat strategy variant
        rule_id: Identifier used by resolvers and random caches
        name: Display name (used in linked-event descriptions)
        end_date: End of a multi-day span (not a recurrence horizon)
        repeat_interval: Every Nth unit (values below 1 behave as 1)
        repeat_end_date: Last date on which the rule may occur
        max_occurrences: Lifetime cap, 0 means unlimited
        moon_conditions: Moon windows (sole matcher for MoonPattern, filter otherwise)
        conditions: Generic AND-filter
        linked_event: Relative-event modifier
    """

    start_date: DateComponents
    pattern: RepeatPattern = field(default_factory=NeverPattern)
    rule_id: str = ""
    name: str = ""
    end_date: DateComponents | None = None
    repeat_interval: int = const.DEFAULT_REPEAT_INTERVAL
    repeat_end_date: DateComponents | None = None
    max_occurrences: int = 0
    moon_conditions: tuple[MoonCondition, ...] = ()
    conditions: tuple[Condition, ...] = ()
    linked_event: LinkedEvent | None = None

    @property
    def repeat(self) -> str:
        """Return the repeat type key of the rule."""
        if self.linked_event is not None:
            return const.REPEAT_LINKED
        return self.pattern.repeat

    @property
    def interval(self) -> int:
        """Return the effective repeat interval (always >= 1)."""
        return max(1, self.repeat_interval) if self.repeat_interval else 1

    @property
    def has_span(self) -> bool:
        """Return True if the rule describes a multi-day event."""
        if self.end_date is None:
            return False
        start, end = self.start_date, self.end_date
        return (start.year, start.month, start.day) != (end.year, end.month, end.day)


@dataclass(frozen=True, slots=True)
class RandomOccurrenceCache:
    """Precomputed random occurrences covering ``[valid_from, valid_until]``.

    ``occurrences`` must be in chronological order.
    """

    valid_from: DateComponents
    valid_until: DateComponents
    occurrences: tuple[DateComponents, ...] = ()
