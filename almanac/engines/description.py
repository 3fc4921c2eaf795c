"""Human-readable recurrence summaries.

Examples:
    "Every 2 weeks"
    "2nd Tuesday of every month"
    "15% chance each day"
    "Every day during Summer"
    '3 days after "Harvest Festival"'
    "Every year (5 times) until 3/1/1500"

Calendar and resolver are optional: without them names fall back to generic
labels ("Season 2", "Day 3", "Unknown event").
"""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

from .. import const
from ..models import (
    DailyPattern,
    InvalidPattern,
    MonthlyPattern,
    MoonCondition,
    MoonPattern,
    NeverPattern,
    RandomPattern,
    RangeBit,
    RangePattern,
    RecurrenceRule,
    SeasonalPattern,
    WeeklyPattern,
    WeekOfMonthPattern,
    YearlyPattern,
)
from ..utils import date_utils

if TYPE_CHECKING:
    from ..providers import CalendarProvider, RuleResolver


def _ordinal(number: int) -> str:
    """Return ``1st``, ``2nd``, ``3rd``, ``4th``, ``11th``, ``22nd``..."""
    if 10 <= number % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")
    return f"{number}{suffix}"


def _plural(count: int, unit: str) -> str:
    return unit if count == 1 else f"{unit}s"


def _number(value: float) -> str:
    """Format a percentage without a trailing ``.0``."""
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


# =============================================================================
# Per-pattern phrases
# =============================================================================


def _describe_week_of_month(
    rule: RecurrenceRule, pattern: WeekOfMonthPattern, calendar: CalendarProvider | None
) -> str:
    week_length = calendar.week_length() if calendar else const.DEFAULT_WEEK_LENGTH
    weekday = pattern.weekday
    if weekday is None:
        weekday = date_utils.day_of_week(calendar, rule.start_date)
    week_number = pattern.week_number or -(-rule.start_date.day // max(1, week_length))

    if week_number == -1:
        position = "Last"
    elif week_number < 0:
        position = f"{_ordinal(-week_number)} to last"
    else:
        position = _ordinal(week_number)

    name = calendar.weekday_name(weekday) if calendar else f"Day {weekday + 1}"
    interval = rule.interval
    period = "every month" if interval == 1 else f"every {interval} months"
    return f"{position} {name} of {period}"


def _describe_seasonal(pattern: SeasonalPattern, calendar: CalendarProvider | None) -> str:
    seasons = calendar.seasons() if calendar else ()
    if 0 <= pattern.season_index < len(seasons):
        name = seasons[pattern.season_index].name
    else:
        name = f"Season {pattern.season_index + 1}"
    if pattern.trigger == const.SEASON_TRIGGER_FIRST_DAY:
        return f"First day of {name}"
    if pattern.trigger == const.SEASON_TRIGGER_LAST_DAY:
        return f"Last day of {name}"
    return f"Every day during {name}"


def _describe_moon(conditions: tuple[MoonCondition, ...], calendar: CalendarProvider | None) -> str:
    moons = calendar.moons() if calendar else ()
    parts: list[str] = []
    for condition in conditions:
        if 0 <= condition.moon_index < len(moons):
            moon = moons[condition.moon_index]
            moon_name = moon.name
            phase = next(
                (
                    item.name
                    for item in moon.phases
                    if item.start <= condition.phase_start < item.end
                ),
                None,
            )
        else:
            moon_name = f"Moon {condition.moon_index + 1}"
            phase = None
        if phase is None:
            phase = f"between {condition.phase_start:g} and {condition.phase_end:g}"
        parts.append(f"{moon_name} is {phase}")
    return "When " + " or ".join(parts) if parts else const.DESCRIPTION_UNKNOWN


def _describe_bit(label: str, bit: RangeBit, shift: int = 0) -> str:
    if bit.is_wildcard:
        return f"{label} {const.DESCRIPTION_ANY}"
    low = None if bit.minimum is None else bit.minimum + shift
    high = None if bit.maximum is None else bit.maximum + shift
    if low is not None and low == high:
        return f"{label} {low}"
    if low is None:
        return f"{label}s up to {high}"
    if high is None:
        return f"{label}s {low}+"
    return f"{label}s {low}-{high}"


def _describe_range(pattern: RangePattern) -> str:
    text = ", ".join(
        (
            _describe_bit("year", pattern.year),
            _describe_bit("month", pattern.month, shift=1),
            _describe_bit("day", pattern.day),
        )
    )
    return text[0].upper() + text[1:]


def _describe_linked(rule: RecurrenceRule, resolver: RuleResolver | None) -> str:
    link = rule.linked_event
    if link is None:
        return const.DESCRIPTION_UNKNOWN
    base = resolver.resolve_rule(link.rule_id) if resolver else None
    name = base.name if base is not None and base.name else const.DESCRIPTION_UNKNOWN_EVENT
    if link.offset == 0:
        return f'Same day as "{name}"'
    days = abs(link.offset)
    direction = "after" if link.offset > 0 else "before"
    return f'{days} {_plural(days, "day")} {direction} "{name}"'


def _describe_pattern(rule: RecurrenceRule, calendar: CalendarProvider | None) -> str:
    pattern = rule.pattern
    if isinstance(pattern, (DailyPattern, WeeklyPattern, MonthlyPattern, YearlyPattern)):
        interval = rule.interval
        unit = const.REPEAT_UNIT_LABELS[pattern.repeat]
        if interval == 1:
            return f"Every {unit}"
        return f"Every {interval} {unit}s"
    if isinstance(pattern, WeekOfMonthPattern):
        return _describe_week_of_month(rule, pattern, calendar)
    if isinstance(pattern, SeasonalPattern):
        return _describe_seasonal(pattern, calendar)
    if isinstance(pattern, RandomPattern):
        unit = const.CHECK_INTERVAL_LABELS.get(pattern.check_interval, "day")
        return f"{_number(pattern.probability)}% chance each {unit}"
    if isinstance(pattern, MoonPattern):
        return _describe_moon(rule.moon_conditions, calendar)
    if isinstance(pattern, RangePattern):
        return _describe_range(pattern)
    if isinstance(pattern, NeverPattern):
        return const.DESCRIPTION_NEVER
    if isinstance(pattern, InvalidPattern):
        return const.DESCRIPTION_UNKNOWN
    assert_never(pattern)


# =============================================================================
# Public API
# =============================================================================


def get_recurrence_description(
    rule: RecurrenceRule,
    calendar: CalendarProvider | None = None,
    resolver: RuleResolver | None = None,
) -> str:
    """Return a one-line human-readable summary of ``rule``.

    Args:
        rule: Rule to describe.
        calendar: Provider used for weekday, season and moon names.
        resolver: Lookup used to name the target of a linked event.

    Returns:
        Description with optional " (N times)" and " until M/D/Y" suffixes.
    """
    if rule.linked_event is not None:
        text = _describe_linked(rule, resolver)
    elif isinstance(rule.pattern, NeverPattern):
        return const.DESCRIPTION_NEVER
    else:
        text = _describe_pattern(rule, calendar)

    if rule.max_occurrences > 0:
        text += f" ({rule.max_occurrences} {_plural(rule.max_occurrences, 'time')})"
    end = rule.repeat_end_date
    if end is not None:
        text += f" until {end.month + 1}/{end.day}/{end.year}"
    return text
