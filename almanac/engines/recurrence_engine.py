"""Recurrence Engine for Almanac.

Answers two questions about a RecurrenceRule on an arbitrary calendar:

- does the rule occur on date D? (``is_recurring_match``)
- which dates in ``[A, B]`` does it occur on? (``get_occurrences_in_range``)

plus ``count_occurrences_up_to`` for lifetime caps. The engine holds a calendar
provider, an optional rule resolver (linked events) and optional random
occurrence caches; it never mutates any of them. Apart from remembering
whether the calendar's weekday cycle ever breaks, it keeps no state between
calls.

Counts that fall back to enumeration report whether they finished. A lifetime
cap rejects any date whose count was cut short by the iteration limit.

Matching precedence:
    1. linked events (bounds, then the referenced rule on the shifted date)
    2. random rules (cache membership or seeded roll, then the lifetime cap)
    3. moon rules (any moon window, then the lifetime cap)
    4. moon conditions as a mandatory filter for every other rule
    5. never: the start day only, then generic conditions
    6. bounds, multi-day span, per-pattern matcher
    7. lifetime cap, then generic conditions

Every scan is bounded by const.MAX_ITERATIONS.
"""

from __future__ import annotations

from collections.abc import Mapping
import dataclasses
import math
from typing import TYPE_CHECKING, assert_never

from .. import const
from ..models import (
    DailyPattern,
    DateComponents,
    InvalidPattern,
    MonthlyPattern,
    MoonPattern,
    NeverPattern,
    RandomPattern,
    RangePattern,
    RecurrenceRule,
    SeasonalPattern,
    WeeklyPattern,
    WeekOfMonthPattern,
    YearlyPattern,
)
from ..utils import date_utils
from ..utils.leap_year import leap_cycle_length
from .condition_engine import ConditionEngine
from .random_engine import matches_random

if TYPE_CHECKING:
    from ..models import RandomOccurrenceCache
    from ..providers import CalendarProvider, RuleResolver


class RecurrenceEngine:
    """Matches, enumerates and counts occurrences of recurrence rules."""

    def __init__(
        self,
        calendar: CalendarProvider | None,
        resolver: RuleResolver | None = None,
        random_caches: Mapping[str, RandomOccurrenceCache] | None = None,
    ) -> None:
        """Initialize the engine.

        Args:
            calendar: Calendar provider; without one nothing ever matches.
            resolver: Lookup used by linked events.
            random_caches: Precomputed random occurrences keyed by rule id.
        """
        self._calendar = calendar
        self._resolver = resolver
        self._random_caches: Mapping[str, RandomOccurrenceCache] = random_caches or {}
        self._conditions = ConditionEngine(calendar)
        self._weekday_breaks: bool | None = None

    @property
    def calendar(self) -> CalendarProvider | None:
        """Return the calendar provider."""
        return self._calendar

    @property
    def conditions(self) -> ConditionEngine:
        """Return the condition engine bound to the same calendar."""
        return self._conditions

    # =========================================================================
    # Public API
    # =========================================================================

    def is_recurring_match(self, rule: RecurrenceRule, target: DateComponents) -> bool:
        """Return True if ``rule`` occurs on the day of ``target``."""
        if self._calendar is None:
            const.LOGGER.debug("RecurrenceEngine: No calendar, nothing matches")
            return False
        return self._matches(rule, target, enforce_cap=True)

    def get_occurrences_in_range(
        self,
        rule: RecurrenceRule,
        range_start: DateComponents,
        range_end: DateComponents,
        max_occurrences: int = const.DEFAULT_MAX_OCCURRENCES,
    ) -> list[DateComponents]:
        """Return occurrences of ``rule`` within ``[range_start, range_end]``.

        Args:
            rule: Rule to enumerate.
            range_start: First day of the range (inclusive).
            range_end: Last day of the range (inclusive).
            max_occurrences: Maximum number of dates returned.

        Returns:
            Dates in ascending order, at most ``max_occurrences`` of them.
        """
        if self._calendar is None:
            const.LOGGER.debug("RecurrenceEngine: No calendar, no occurrences")
            return []
        if max_occurrences <= 0 or date_utils.compare_days(range_start, range_end) > 0:
            return []
        found, _ = self._enumerate(
            rule, range_start, range_end, max_occurrences, enforce_cap=True
        )
        return found

    def count_occurrences_up_to(self, rule: RecurrenceRule, target: DateComponents) -> int:
        """Return how many occurrences fall between the start date and ``target``.

        The start date counts as occurrence 1 for the regular repeat types.
        """
        if self._calendar is None:
            return 0
        if date_utils.compare_days(target, rule.start_date) < 0:
            return 0
        count, _ = self._count(rule, target)
        return count

    # =========================================================================
    # Matching
    # =========================================================================

    def _matches(self, rule: RecurrenceRule, target: DateComponents, enforce_cap: bool) -> bool:
        """Apply the full matching precedence to one date."""
        if rule.linked_event is not None:
            return self._matches_linked(rule, target, enforce_cap)

        pattern = rule.pattern
        if isinstance(pattern, RandomPattern):
            if not self._in_bounds(rule, target):
                return False
            cache = self._cache_for(rule)
            if cache is not None:
                hit = any(date_utils.is_same_day(day, target) for day in cache.occurrences)
            else:
                hit = matches_random(self._cal, pattern, target, rule.start_date)
            return hit and (not enforce_cap or self._within_cap(rule, target))

        if isinstance(pattern, MoonPattern):
            if not rule.moon_conditions or not self._in_bounds(rule, target):
                return False
            if not self._matches_any_moon(rule, target):
                return False
            return not enforce_cap or self._within_cap(rule, target)

        if rule.moon_conditions and not self._matches_any_moon(rule, target):
            return False

        if isinstance(pattern, NeverPattern):
            if not date_utils.is_same_day(rule.start_date, target):
                return False
            return self._conditions.evaluate_conditions(rule.conditions, target)

        if isinstance(pattern, InvalidPattern):
            return False

        if not self._in_bounds(rule, target):
            return False

        if rule.has_span and rule.end_date is not None:
            if date_utils.compare_days(target, rule.end_date) <= 0:
                return True

        if not self._matches_pattern(rule, target):
            return False
        if enforce_cap and not self._within_cap(rule, target):
            return False
        return self._conditions.evaluate_conditions(rule.conditions, target)

    def _matches_linked(
        self, rule: RecurrenceRule, target: DateComponents, enforce_cap: bool
    ) -> bool:
        """Match the referenced rule on the date shifted back by the link offset."""
        link = rule.linked_event
        if link is None or not self._in_bounds(rule, target):
            return False
        base = self._resolve_base(rule)
        if base is None:
            return False
        shifted = date_utils.add_days(self._cal, target, -link.offset)
        if not self._matches(base, shifted, enforce_cap):
            return False
        return not enforce_cap or self._within_cap(rule, target)

    def _matches_pattern(self, rule: RecurrenceRule, target: DateComponents) -> bool:
        """Dispatch to the per-pattern matcher (bounds already checked)."""
        calendar = self._cal
        pattern = rule.pattern
        start = rule.start_date
        interval = rule.interval

        if isinstance(pattern, DailyPattern):
            days = date_utils.days_between(calendar, start, target)
            return days >= 0 and days % interval == 0
        if isinstance(pattern, WeeklyPattern):
            days = date_utils.days_between(calendar, start, target)
            if days < 0:
                return False
            if date_utils.day_of_week(calendar, start) != date_utils.day_of_week(calendar, target):
                return False
            return (days // self._week_length()) % interval == 0
        if isinstance(pattern, MonthlyPattern):
            months = date_utils.months_between(calendar, start, target)
            if months < 0 or months % interval != 0:
                return False
            return target.day == min(start.day, date_utils.days_in_month(calendar, target))
        if isinstance(pattern, YearlyPattern):
            years = date_utils.years_between(calendar, start, target)
            if years < 0 or years % interval != 0 or target.month != start.month:
                return False
            return target.day == min(start.day, date_utils.days_in_month(calendar, target))
        if isinstance(pattern, RangePattern):
            return (
                pattern.year.matches(target.year)
                and pattern.month.matches(target.month)
                and pattern.day.matches(target.day)
            )
        if isinstance(pattern, WeekOfMonthPattern):
            return self._matches_week_of_month(rule, pattern, target)
        if isinstance(pattern, SeasonalPattern):
            return self._matches_seasonal(pattern, target)
        if isinstance(pattern, NeverPattern):
            return date_utils.is_same_day(start, target)
        if isinstance(pattern, RandomPattern):
            return matches_random(calendar, pattern, target, start)
        if isinstance(pattern, MoonPattern):
            return self._matches_any_moon(rule, target)
        if isinstance(pattern, InvalidPattern):
            return False
        assert_never(pattern)

    def _matches_week_of_month(
        self, rule: RecurrenceRule, pattern: WeekOfMonthPattern, target: DateComponents
    ) -> bool:
        weekday, week_number = self._week_of_month_target(rule, pattern)
        months = date_utils.months_between(self._cal, rule.start_date, target)
        if months < 0 or months % rule.interval != 0:
            return False
        return self._nth_weekday_day(target.year, target.month, weekday, week_number) == target.day

    def _matches_seasonal(self, pattern: SeasonalPattern, target: DateComponents) -> bool:
        seasons = self._cal.seasons()
        if not 0 <= pattern.season_index < len(seasons):
            return False
        season = seasons[pattern.season_index]
        day = date_utils.day_of_year(self._cal, target)
        if season.wraps:
            inside = day >= season.day_start or day <= season.day_end
        else:
            inside = season.day_start <= day <= season.day_end
        if not inside:
            return False
        if pattern.trigger == const.SEASON_TRIGGER_FIRST_DAY:
            return day == season.day_start
        if pattern.trigger == const.SEASON_TRIGGER_LAST_DAY:
            last = min(season.day_end, self._cal.days_in_year(target.year) - 1)
            return day == last
        return True

    def _matches_any_moon(self, rule: RecurrenceRule, target: DateComponents) -> bool:
        return any(
            self._conditions.matches_moon_condition(condition, target)
            for condition in rule.moon_conditions
        )

    def _within_cap(self, rule: RecurrenceRule, target: DateComponents) -> bool:
        """Return False once ``target`` lies beyond the rule's lifetime cap.

        A count cut short by the iteration limit is treated as beyond the cap.
        """
        if rule.max_occurrences <= 0:
            return True
        count, complete = self._count(rule, target, rule.max_occurrences + 1)
        if not complete:
            const.LOGGER.debug(
                "RecurrenceEngine: Incomplete count for capped rule %s, rejecting %s",
                rule.rule_id or "<unnamed>",
                target,
            )
            return False
        return count <= rule.max_occurrences

    # =========================================================================
    # Enumeration
    # =========================================================================

    def _enumerate(
        self,
        rule: RecurrenceRule,
        range_start: DateComponents,
        range_end: DateComponents,
        limit: int,
        enforce_cap: bool,
    ) -> tuple[list[DateComponents], bool]:
        """Collect occurrences in range, then apply the lifetime cap.

        Returns:
            The dates and whether the walk finished. A walk that stops at
            ``limit`` finished; one cut short by MAX_ITERATIONS did not.
        """
        pattern = rule.pattern
        complete = True

        # Clip the window to the rule's own bounds
        low = range_start.as_day()
        if date_utils.compare_days(low, rule.start_date) < 0:
            low = rule.start_date.as_day()
        high = range_end.as_day()
        if rule.repeat_end_date is not None and date_utils.compare_days(
            rule.repeat_end_date, high
        ) < 0:
            high = rule.repeat_end_date.as_day()

        if rule.linked_event is not None:
            found, complete = self._enumerate_linked(rule, low, high, limit)
        elif isinstance(pattern, RandomPattern) and self._cache_for(rule) is not None:
            # The cache is the complete chronological record, so the cap is a prefix
            return self._enumerate_cached(rule, range_start, range_end, limit, enforce_cap), True
        elif isinstance(pattern, NeverPattern):
            start = rule.start_date
            in_range = (
                date_utils.compare_days(start, range_start) >= 0
                and date_utils.compare_days(start, range_end) <= 0
            )
            found = [start] if in_range and self._matches(rule, start, False) else []
        elif isinstance(pattern, InvalidPattern) or date_utils.compare_days(low, high) > 0:
            found = []
        elif rule.has_span:
            found, complete = self._scan_days(rule, low, high, limit)
        elif isinstance(pattern, DailyPattern):
            found, complete = self._step_days(rule, low, high, limit, rule.interval)
        elif isinstance(pattern, WeeklyPattern) and not self._breaks_weekday_cycle():
            found, complete = self._step_days(
                rule, low, high, limit, rule.interval * self._week_length()
            )
        elif isinstance(pattern, MonthlyPattern):
            found, complete = self._step_calendar(rule, low, high, limit, monthly=True)
        elif isinstance(pattern, YearlyPattern):
            found, complete = self._step_calendar(rule, low, high, limit, monthly=False)
        elif isinstance(pattern, WeekOfMonthPattern):
            found, complete = self._step_week_of_month(rule, pattern, low, high, limit)
        else:
            found, complete = self._scan_days(rule, low, high, limit)

        if enforce_cap and rule.max_occurrences > 0 and found:
            # Matches are chronological, so the first one's count fixes the rest
            first_count, counted = self._count(rule, found[0], rule.max_occurrences + 1)
            allowed = max(0, rule.max_occurrences - first_count + 1) if counted else 0
            found = found[:allowed]
        return found[:limit], complete

    def _enumerate_linked(
        self, rule: RecurrenceRule, low: DateComponents, high: DateComponents, limit: int
    ) -> tuple[list[DateComponents], bool]:
        """Enumerate the base rule over the shifted window and shift back."""
        link = rule.linked_event
        base = self._resolve_base(rule)
        if link is None or base is None or date_utils.compare_days(low, high) > 0:
            return [], True
        calendar = self._cal
        base_low = date_utils.add_days(calendar, low, -link.offset)
        base_high = date_utils.add_days(calendar, high, -link.offset)
        base_dates, complete = self._enumerate(base, base_low, base_high, limit, enforce_cap=True)
        shifted = [date_utils.add_days(calendar, day, link.offset) for day in base_dates]
        return [day for day in shifted if self._in_bounds(rule, day)], complete

    def _enumerate_cached(
        self,
        rule: RecurrenceRule,
        range_start: DateComponents,
        range_end: DateComponents,
        limit: int,
        enforce_cap: bool,
    ) -> list[DateComponents]:
        cache = self._cache_for(rule)
        if cache is None:
            return []
        occurrences = [day for day in cache.occurrences if self._in_bounds(rule, day)]
        if enforce_cap and rule.max_occurrences > 0:
            occurrences = occurrences[: rule.max_occurrences]
        found = [
            day
            for day in occurrences
            if date_utils.compare_days(day, range_start) >= 0
            and date_utils.compare_days(day, range_end) <= 0
        ]
        return found[:limit]

    def _scan_days(
        self, rule: RecurrenceRule, low: DateComponents, high: DateComponents, limit: int
    ) -> tuple[list[DateComponents], bool]:
        """Test every day of ``[low, high]``."""
        found: list[DateComponents] = []
        current = low
        iterations = 0
        while date_utils.compare_days(current, high) <= 0:
            if iterations >= const.MAX_ITERATIONS:
                self._warn_iterations(rule)
                return found, False
            if self._matches(rule, current, False):
                found.append(current)
                if len(found) >= limit:
                    break
            current = date_utils.next_day(self._cal, current)
            iterations += 1
        return found, True

    def _step_days(
        self,
        rule: RecurrenceRule,
        low: DateComponents,
        high: DateComponents,
        limit: int,
        step: int,
    ) -> tuple[list[DateComponents], bool]:
        """Test ``start + k * step`` days, fast-forwarded to ``low``."""
        calendar = self._cal
        start = rule.start_date
        offset = date_utils.days_between(calendar, start, low)
        k = max(0, math.ceil(offset / step))
        base = date_utils.day_number(calendar, start)

        found: list[DateComponents] = []
        for _ in range(const.MAX_ITERATIONS):
            candidate = date_utils.date_from_day_number(
                calendar, base + k * step, start.hour, start.minute
            )
            if date_utils.compare_days(candidate, high) > 0:
                return found, True
            if self._matches(rule, candidate, False):
                found.append(candidate)
                if len(found) >= limit:
                    return found, True
            k += 1
        self._warn_iterations(rule)
        return found, False

    def _step_calendar(
        self,
        rule: RecurrenceRule,
        low: DateComponents,
        high: DateComponents,
        limit: int,
        monthly: bool,
    ) -> tuple[list[DateComponents], bool]:
        """Test ``start + k * interval`` months or years, each clamped from the start."""
        calendar = self._cal
        start = rule.start_date
        interval = rule.interval
        if monthly:
            elapsed = date_utils.months_between(calendar, start, low)
        else:
            elapsed = date_utils.years_between(calendar, start, low)
        k = max(0, elapsed // interval)

        found: list[DateComponents] = []
        for _ in range(const.MAX_ITERATIONS):
            if monthly:
                candidate = date_utils.add_months(calendar, start, k * interval)
            else:
                candidate = date_utils.add_years(calendar, start, k * interval)
            if date_utils.compare_days(candidate, high) > 0:
                return found, True
            if date_utils.compare_days(candidate, low) >= 0 and self._matches(
                rule, candidate, False
            ):
                found.append(candidate)
                if len(found) >= limit:
                    return found, True
            k += 1
        self._warn_iterations(rule)
        return found, False

    def _step_week_of_month(
        self,
        rule: RecurrenceRule,
        pattern: WeekOfMonthPattern,
        low: DateComponents,
        high: DateComponents,
        limit: int,
    ) -> tuple[list[DateComponents], bool]:
        """Visit every eligible month once and test its computed weekday."""
        calendar = self._cal
        start = rule.start_date
        interval = rule.interval
        weekday, week_number = self._week_of_month_target(rule, pattern)

        elapsed = max(0, date_utils.months_between(calendar, start, low))
        k = elapsed // interval
        month_start = DateComponents(start.year, start.month, 1)

        found: list[DateComponents] = []
        for _ in range(const.MAX_ITERATIONS):
            month = date_utils.add_months(calendar, month_start, k * interval)
            if date_utils.compare_days(month, high) > 0:
                return found, True
            day = self._nth_weekday_day(month.year, month.month, weekday, week_number)
            if day is not None:
                candidate = DateComponents(month.year, month.month, day, start.hour, start.minute)
                if (
                    date_utils.compare_days(candidate, low) >= 0
                    and date_utils.compare_days(candidate, high) <= 0
                    and self._matches(rule, candidate, False)
                ):
                    found.append(candidate)
                    if len(found) >= limit:
                        return found, True
            k += 1
        self._warn_iterations(rule)
        return found, False

    # =========================================================================
    # Counting
    # =========================================================================

    def _count(
        self,
        rule: RecurrenceRule,
        target: DateComponents,
        stop_after: int = const.MAX_ITERATIONS,
    ) -> tuple[int, bool]:
        """Count occurrences from the start date through ``target``.

        Args:
            rule: Rule to count.
            target: Last day counted (inclusive).
            stop_after: Enumerated counts stop once this many are found; the
                result then means "at least ``stop_after``".

        Returns:
            The count and whether it is complete. Closed forms are always
            complete; an enumeration cut short by MAX_ITERATIONS is not.
        """
        calendar = self._cal
        start = rule.start_date
        if date_utils.compare_days(target, start) < 0:
            return 0, True
        if rule.repeat_end_date is not None and date_utils.compare_days(
            target, rule.repeat_end_date
        ) > 0:
            target = rule.repeat_end_date

        pattern = rule.pattern
        if isinstance(pattern, RandomPattern) and rule.linked_event is None:
            cache = self._cache_for(rule)
            if cache is not None:
                cached = sum(
                    1
                    for day in cache.occurrences
                    if self._in_bounds(rule, day) and date_utils.compare_days(day, target) <= 0
                )
                return cached, True

        closed_form = (
            rule.linked_event is None
            and not rule.has_span
            and not rule.conditions
            and not rule.moon_conditions
        )
        if closed_form:
            interval = rule.interval
            if isinstance(pattern, DailyPattern):
                return date_utils.days_between(calendar, start, target) // interval + 1, True
            if isinstance(pattern, WeeklyPattern) and not self._breaks_weekday_cycle():
                days = date_utils.days_between(calendar, start, target)
                return days // (interval * self._week_length()) + 1, True
            if isinstance(pattern, MonthlyPattern):
                months = date_utils.months_between(calendar, start, target)
                count = months // interval + 1
                if months % interval == 0:
                    due = min(start.day, date_utils.days_in_month(calendar, target))
                    if target.day < due:
                        count -= 1
                return count, True
            if isinstance(pattern, YearlyPattern):
                years = date_utils.years_between(calendar, start, target)
                count = years // interval + 1
                if years % interval == 0:
                    due = min(start.day, calendar.days_in_month(start.month, target.year))
                    if (target.month, target.day) < (start.month, due):
                        count -= 1
                return count, True
            counted = None
            if isinstance(pattern, WeekOfMonthPattern):
                counted = self._count_week_of_month(rule, pattern, target)
            elif isinstance(pattern, RangePattern):
                counted = self._count_range(rule, pattern, target)
            if counted is not None:
                return counted, True

        found, complete = self._enumerate(rule, start, target, stop_after, enforce_cap=False)
        return len(found), complete

    def _count_range(
        self, rule: RecurrenceRule, pattern: RangePattern, target: DateComponents
    ) -> int | None:
        """Count a range rule pinned to one month and day, one candidate per year.

        Returns None when the month or day is not an exact value.
        """
        month, day = pattern.month, pattern.day
        if month.minimum is None or month.minimum != month.maximum:
            return None
        if day.minimum is None or day.minimum != day.maximum:
            return None
        start = rule.start_date
        if target.year - start.year >= const.MAX_ITERATIONS:
            return None

        calendar = self._cal
        count = 0
        for year in range(start.year, target.year + 1):
            if not pattern.year.matches(year):
                continue
            candidate = DateComponents(year, month.minimum, day.minimum)
            if not date_utils.is_valid_date(calendar, candidate):
                continue
            if (
                date_utils.compare_days(candidate, start) >= 0
                and date_utils.compare_days(candidate, target) <= 0
            ):
                count += 1
        return count

    def _count_week_of_month(
        self, rule: RecurrenceRule, pattern: WeekOfMonthPattern, target: DateComponents
    ) -> int | None:
        """Closed-form count when every month holds the requested weekday.

        Returns None when some month may lack it (intercalary months, skipped
        festival days or a week number too large for the shortest month).
        """
        calendar = self._cal
        start = rule.start_date
        weekday, week_number = self._week_of_month_target(rule, pattern)
        needed = abs(week_number) * self._week_length()
        for month in range(calendar.month_count()):
            if calendar.is_intercalary(month) or calendar.days_in_month(month, start.year) < needed:
                return None
            if calendar.days_in_month(month, target.year) < needed:
                return None
        if self._breaks_weekday_cycle():
            return None

        months = date_utils.months_between(calendar, start, target)
        first_day = self._nth_weekday_day(start.year, start.month, weekday, week_number)
        if months == 0:
            if first_day is None:
                return 0
            return 1 if start.day <= first_day <= target.day else 0

        count = months // rule.interval + 1
        if first_day is None or first_day < start.day:
            count -= 1
        if months % rule.interval == 0:
            last_day = self._nth_weekday_day(target.year, target.month, weekday, week_number)
            if last_day is None or last_day > target.day:
                count -= 1
        return count

    # =========================================================================
    # Helpers
    # =========================================================================

    @property
    def _cal(self) -> CalendarProvider:
        calendar = self._calendar
        if calendar is None:
            raise RuntimeError("RecurrenceEngine used without a calendar")
        return calendar

    def _week_length(self) -> int:
        return max(1, self._cal.week_length())

    def _in_bounds(self, rule: RecurrenceRule, target: DateComponents) -> bool:
        if date_utils.compare_days(target, rule.start_date) < 0:
            return False
        if rule.repeat_end_date is not None:
            return date_utils.compare_days(target, rule.repeat_end_date) <= 0
        return True

    def _cache_for(self, rule: RecurrenceRule) -> RandomOccurrenceCache | None:
        if not rule.rule_id:
            return None
        return self._random_caches.get(rule.rule_id)

    def _resolve_base(self, rule: RecurrenceRule) -> RecurrenceRule | None:
        """Resolve a linked rule's target with its own link cleared."""
        link = rule.linked_event
        if link is None:
            return None
        if self._resolver is None:
            const.LOGGER.debug(
                "RecurrenceEngine: No resolver for linked rule %s -> %s", rule.rule_id, link.rule_id
            )
            return None
        base = self._resolver.resolve_rule(link.rule_id)
        if base is None:
            const.LOGGER.debug(
                "RecurrenceEngine: Linked rule %s not found (from %s)", link.rule_id, rule.rule_id
            )
            return None
        # Clearing the nested link breaks reference cycles
        return dataclasses.replace(base, linked_event=None)

    def _breaks_weekday_cycle(self) -> bool:
        """Return True if weekdays anywhere in the calendar stop advancing one per day.

        Intercalary months, fixed-start months and festivals outside the week
        all qualify; festivals are checked in both a common and a leap year.
        """
        if self._weekday_breaks is None:
            self._weekday_breaks = self._find_weekday_breaks()
        return self._weekday_breaks

    def _find_weekday_breaks(self) -> bool:
        calendar = self._cal
        months = range(calendar.month_count())
        if any(calendar.is_intercalary(month) for month in months):
            return True
        if any(calendar.month_starting_weekday(month) is not None for month in months):
            return True
        seen: set[bool] = set()
        for year in range(1, leap_cycle_length(calendar.leap_year_rule()) + 2):
            leap = calendar.is_leap_year(year)
            if leap in seen:
                continue
            seen.add(leap)
            if calendar.non_weekday_days_before(year, calendar.month_count(), 0) > 0:
                return True
            if len(seen) == 2:
                break
        return False

    def _week_of_month_target(
        self, rule: RecurrenceRule, pattern: WeekOfMonthPattern
    ) -> tuple[int, int]:
        """Return the (weekday, week number) pair, deriving blanks from the start."""
        start = rule.start_date
        weekday = pattern.weekday
        if weekday is None:
            weekday = date_utils.day_of_week(self._cal, start)
        week_number = pattern.week_number
        if not week_number:
            week_number = math.ceil(start.day / self._week_length())
        return weekday, week_number

    def _month_weekdays(self, year: int, month: int) -> list[int | None]:
        """Weekday of every day in a month, None for non-counting days."""
        calendar = self._cal
        length = calendar.days_in_month(month, year)
        if length < 1:
            return []
        if calendar.is_intercalary(month):
            return [None] * length
        week_length = self._week_length()
        current = date_utils.day_of_week(calendar, DateComponents(year, month, 1))
        weekdays: list[int | None] = []
        skipped = calendar.non_weekday_days_before(year, month, 0)
        for day0 in range(length):
            after = calendar.non_weekday_days_before(year, month, day0 + 1)
            if after > skipped:
                weekdays.append(None)
            else:
                weekdays.append(current)
                current = (current + 1) % week_length
            skipped = after
        return weekdays

    def _nth_weekday_day(
        self, year: int, month: int, weekday: int, week_number: int
    ) -> int | None:
        """Return the day of the Nth ``weekday`` in a month (negative counts from the end)."""
        days = [
            index + 1
            for index, value in enumerate(self._month_weekdays(year, month))
            if value == weekday
        ]
        if week_number > 0 and week_number <= len(days):
            return days[week_number - 1]
        if week_number < 0 and -week_number <= len(days):
            return days[week_number]
        return None

    def _warn_iterations(self, rule: RecurrenceRule) -> None:
        const.LOGGER.warning(
            "RecurrenceEngine: Hit max iterations (%d) for rule %s",
            const.MAX_ITERATIONS,
            rule.rule_id or "<unnamed>",
        )


# =============================================================================
# Module-level convenience API
# =============================================================================


def is_recurring_match(
    rule: RecurrenceRule,
    target: DateComponents,
    calendar: CalendarProvider | None,
    resolver: RuleResolver | None = None,
    random_caches: Mapping[str, RandomOccurrenceCache] | None = None,
) -> bool:
    """Return True if ``rule`` occurs on ``target``."""
    return RecurrenceEngine(calendar, resolver, random_caches).is_recurring_match(rule, target)


def get_occurrences_in_range(
    rule: RecurrenceRule,
    range_start: DateComponents,
    range_end: DateComponents,
    calendar: CalendarProvider | None,
    max_occurrences: int = const.DEFAULT_MAX_OCCURRENCES,
    resolver: RuleResolver | None = None,
    random_caches: Mapping[str, RandomOccurrenceCache] | None = None,
) -> list[DateComponents]:
    """Return occurrences of ``rule`` within ``[range_start, range_end]``."""
    engine = RecurrenceEngine(calendar, resolver, random_caches)
    return engine.get_occurrences_in_range(rule, range_start, range_end, max_occurrences)


def count_occurrences_up_to(
    rule: RecurrenceRule,
    target: DateComponents,
    calendar: CalendarProvider | None,
    resolver: RuleResolver | None = None,
    random_caches: Mapping[str, RandomOccurrenceCache] | None = None,
) -> int:
    """Return the number of occurrences from the start date through ``target``."""
    return RecurrenceEngine(calendar, resolver, random_caches).count_occurrences_up_to(
        rule, target
    )
