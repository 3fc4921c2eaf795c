"""Condition Engine for Almanac.

Evaluates generic field conditions against a date. A condition names a derived
date fact (see const.CONDITION_FIELDS), an operator and a right-hand value:

    Condition(field="weekday", op="==", value=6)           # every Friday
    Condition(field="year", op="%", value=4, offset=1)     # years 1, 5, 9...
    Condition(field="moonPhaseIndex", op="==", value=4, value2=1)

Indexing conventions:
- month, dayOfYear, weekday and seasonDay are 1-indexed
- season, era, cycle and moonPhaseIndex are 0-indexed
- moonPhase is the position within the cycle in [0, 1)

Fields that cannot be resolved (no calendar, no seasons, unknown moon...) make
the condition false whatever the operator. Nothing here raises for bad data.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
import math
from typing import TYPE_CHECKING, cast

from .. import const
from ..models import Condition, DateComponents, MoonCondition, Season
from ..utils import date_utils

if TYPE_CHECKING:
    from ..models import Moon
    from ..providers import CalendarProvider

FieldValue = float | int | bool | None


class ConditionEngine:
    """Resolves condition fields and evaluates conditions for one calendar."""

    def __init__(self, calendar: CalendarProvider | None) -> None:
        """Initialize the engine.

        Args:
            calendar: Calendar provider, or None (every condition then fails).
        """
        self._calendar = calendar
        self._resolvers: dict[str, Callable[[DateComponents, int], FieldValue]] = {
            const.FIELD_YEAR: self._year,
            const.FIELD_MONTH: self._month,
            const.FIELD_DAY: self._day,
            const.FIELD_DAY_OF_YEAR: self._day_of_year,
            const.FIELD_DAYS_BEFORE_MONTH_END: self._days_before_month_end,
            const.FIELD_WEEKDAY: self._weekday,
            const.FIELD_WEEK_NUMBER_IN_MONTH: self._week_number_in_month,
            const.FIELD_INVERSE_WEEK_NUMBER: self._inverse_week_number,
            const.FIELD_WEEK_IN_MONTH: self._week_in_month,
            const.FIELD_WEEK_IN_YEAR: self._week_in_year,
            const.FIELD_TOTAL_WEEK: self._total_week,
            const.FIELD_WEEKS_BEFORE_MONTH_END: self._weeks_before_month_end,
            const.FIELD_WEEKS_BEFORE_YEAR_END: self._weeks_before_year_end,
            const.FIELD_SEASON: self._season,
            const.FIELD_SEASON_PERCENT: self._season_percent,
            const.FIELD_SEASON_DAY: self._season_day,
            const.FIELD_IS_LONGEST_DAY: self._is_longest_day,
            const.FIELD_IS_SHORTEST_DAY: self._is_shortest_day,
            const.FIELD_IS_SPRING_EQUINOX: self._is_spring_equinox,
            const.FIELD_IS_AUTUMN_EQUINOX: self._is_autumn_equinox,
            const.FIELD_MOON_PHASE: self._moon_phase,
            const.FIELD_MOON_PHASE_INDEX: self._moon_phase_index,
            const.FIELD_MOON_PHASE_COUNT_MONTH: self._moon_phase_count_month,
            const.FIELD_MOON_PHASE_COUNT_YEAR: self._moon_phase_count_year,
            const.FIELD_CYCLE: self._cycle,
            const.FIELD_ERA: self._era,
            const.FIELD_ERA_YEAR: self._era_year,
            const.FIELD_INTERCALARY: self._intercalary,
        }

    # =========================================================================
    # Public API
    # =========================================================================

    def evaluate_conditions(
        self, conditions: Iterable[Condition], date: DateComponents
    ) -> bool:
        """Return True if every condition holds (an empty list always holds)."""
        return all(self.evaluate_condition(condition, date) for condition in conditions)

    def evaluate_condition(self, condition: Condition, date: DateComponents) -> bool:
        """Evaluate a single condition against ``date``."""
        value = self.get_field_value(condition.field, date, condition.value2)
        if value is None:
            return False
        return _apply_operator(condition.op, value, condition.value, condition.offset)

    def get_field_value(
        self, field: str, date: DateComponents, value2: int | None = None
    ) -> FieldValue:
        """Resolve a condition field for ``date``.

        Args:
            field: Field name from const.CONDITION_FIELDS.
            date: Date to inspect.
            value2: Auxiliary selector (moon or cycle index, default 0).

        Returns:
            The field value, or None when it cannot be resolved.
        """
        if self._calendar is None:
            const.LOGGER.debug("ConditionEngine: No calendar, field %s unresolved", field)
            return None
        resolver = self._resolvers.get(field)
        if resolver is None:
            const.LOGGER.debug("ConditionEngine: Unknown condition field '%s'", field)
            return None
        return resolver(date, value2 or 0)

    # -------------------------------------------------------------------------
    # Moon helpers (also used by the recurrence engine)
    # -------------------------------------------------------------------------

    def moon_position(self, moon_index: int, date: DateComponents) -> float | None:
        """Return the cycle position in [0, 1) of moon ``moon_index`` on ``date``."""
        moon = self._moon(moon_index)
        if moon is None:
            return None
        return self._position(moon, date)

    def matches_moon_condition(self, condition: MoonCondition, date: DateComponents) -> bool:
        """Return True if the moon's position lies in the condition's window.

        Windows are inclusive on both ends; ``phase_start > phase_end`` wraps
        across the new moon.
        """
        position = self.moon_position(condition.moon_index, date)
        if position is None:
            return False
        if condition.phase_start <= condition.phase_end:
            return condition.phase_start <= position <= condition.phase_end
        return position >= condition.phase_start or position <= condition.phase_end

    def moon_phase_name(self, moon_index: int, date: DateComponents) -> str | None:
        """Return the name of the moon's current phase, if it has phases."""
        moon = self._moon(moon_index)
        if moon is None:
            return None
        index = _phase_index(moon, self._position(moon, date))
        return None if index is None else moon.phases[index].name

    # =========================================================================
    # Internal helpers
    # =========================================================================

    @property
    def _cal(self) -> CalendarProvider:
        # Resolvers only run after get_field_value checked the calendar
        return cast("CalendarProvider", self._calendar)

    def _week_length(self) -> int:
        return max(1, self._cal.week_length())

    def _moon(self, moon_index: int) -> Moon | None:
        if self._calendar is None:
            return None
        moons = self._calendar.moons()
        if not 0 <= moon_index < len(moons):
            return None
        return moons[moon_index]

    def _position(self, moon: Moon, date: DateComponents) -> float:
        days = date_utils.days_between(self._cal, moon.reference_date, date)
        position = ((days + moon.cycle_day_adjust) % moon.cycle_length) / moon.cycle_length
        # Float modulo can land exactly on the cycle length
        return 0.0 if position >= 1.0 else position

    def _phase_index_on(self, moon: Moon, date: DateComponents) -> int | None:
        return _phase_index(moon, self._position(moon, date))

    def _current_season(self, date: DateComponents) -> tuple[int, Season] | None:
        day = date_utils.day_of_year(self._cal, date)
        for index, season in enumerate(self._cal.seasons()):
            if _season_contains(season, day):
                return index, season
        return None

    def _solstices(self, year: int) -> tuple[int, int] | None:
        """Return (summer, winter) solstice days of year, if derivable."""
        daylight = self._cal.daylight()
        if daylight is not None:
            return daylight.summer_solstice, daylight.winter_solstice

        seasons = self._cal.seasons()
        if not seasons:
            return None
        days_in_year = self._cal.days_in_year(year)
        summer = _season_by_hint(seasons, const.SEASON_HINT_SUMMER, const.SEASON_FALLBACK_SUMMER_INDEX)
        winter = _season_by_hint(seasons, const.SEASON_HINT_WINTER, const.SEASON_FALLBACK_WINTER_INDEX)
        if summer is None or winter is None:
            return None
        return _season_midpoint(summer, days_in_year), _season_midpoint(winter, days_in_year)

    def _equinoxes(self, year: int) -> tuple[int, int] | None:
        """Return (spring, autumn) equinox days of year, if derivable."""
        solstices = self._solstices(year)
        if solstices is None:
            return None
        summer, winter = solstices
        days_in_year = self._cal.days_in_year(year)
        spring = (winter + ((summer - winter) % days_in_year) // 2) % days_in_year
        autumn = (summer + ((winter - summer) % days_in_year) // 2) % days_in_year
        return spring, autumn

    def _phase_entries(self, moon: Moon, first: DateComponents, date: DateComponents) -> int | None:
        """Count entries into the date's phase from ``first`` through ``date``."""
        current = self._phase_index_on(moon, date)
        if current is None:
            return None
        count = 0
        previous: int | None = None
        day = first
        for _ in range(const.MAX_ITERATIONS):
            index = self._phase_index_on(moon, day)
            if index == current and previous != current:
                count += 1
            if date_utils.is_same_day(day, date):
                break
            previous = index
            day = date_utils.add_days(self._cal, day, 1)
        return count

    def _era_index(self, year: int) -> int | None:
        eras = self._cal.eras()
        for index in range(len(eras) - 1, -1, -1):
            if eras[index].contains(year):
                return index
        return None

    # =========================================================================
    # Field resolvers
    # =========================================================================

    # --- Date fields ---

    def _year(self, date: DateComponents, _: int) -> FieldValue:
        return date.year

    def _month(self, date: DateComponents, _: int) -> FieldValue:
        return date.month + 1

    def _day(self, date: DateComponents, _: int) -> FieldValue:
        return date.day

    def _day_of_year(self, date: DateComponents, _: int) -> FieldValue:
        return date_utils.day_of_year(self._cal, date) + 1

    def _days_before_month_end(self, date: DateComponents, _: int) -> FieldValue:
        return date_utils.days_in_month(self._cal, date) - date.day

    # --- Weekday fields ---

    def _weekday(self, date: DateComponents, _: int) -> FieldValue:
        return date_utils.day_of_week(self._cal, date) + 1

    def _week_number_in_month(self, date: DateComponents, _: int) -> FieldValue:
        return math.ceil(date.day / self._week_length())

    def _inverse_week_number(self, date: DateComponents, _: int) -> FieldValue:
        remaining = date_utils.days_in_month(self._cal, date) - date.day + 1
        return math.ceil(remaining / self._week_length())

    # --- Week fields ---

    def _week_in_month(self, date: DateComponents, _: int) -> FieldValue:
        first = DateComponents(date.year, date.month, 1)
        lead = date_utils.day_of_week(self._cal, first)
        return (date.day - 1 + lead) // self._week_length() + 1

    def _week_in_year(self, date: DateComponents, _: int) -> FieldValue:
        first = DateComponents(date.year, 0, 1)
        lead = date_utils.day_of_week(self._cal, first)
        return (date_utils.day_of_year(self._cal, date) + lead) // self._week_length() + 1

    def _total_week(self, date: DateComponents, _: int) -> FieldValue:
        return date_utils.day_number(self._cal, date) // self._week_length()

    def _weeks_before_month_end(self, date: DateComponents, _: int) -> FieldValue:
        return (date_utils.days_in_month(self._cal, date) - date.day) // self._week_length()

    def _weeks_before_year_end(self, date: DateComponents, _: int) -> FieldValue:
        remaining = self._cal.days_in_year(date.year) - date_utils.day_of_year(self._cal, date) - 1
        return remaining // self._week_length()

    # --- Season fields ---

    def _season(self, date: DateComponents, _: int) -> FieldValue:
        found = self._current_season(date)
        return None if found is None else found[0]

    def _season_elapsed(self, date: DateComponents) -> tuple[int, int] | None:
        """Return (days elapsed, season length) for the date's season."""
        found = self._current_season(date)
        if found is None:
            return None
        _, season = found
        days_in_year = self._cal.days_in_year(date.year)
        day = date_utils.day_of_year(self._cal, date)
        length = (season.day_end - season.day_start) % days_in_year + 1
        return (day - season.day_start) % days_in_year, length

    def _season_percent(self, date: DateComponents, _: int) -> FieldValue:
        elapsed = self._season_elapsed(date)
        if elapsed is None:
            return None
        days, length = elapsed
        return (days * 100) // length

    def _season_day(self, date: DateComponents, _: int) -> FieldValue:
        elapsed = self._season_elapsed(date)
        return None if elapsed is None else elapsed[0] + 1

    def _is_longest_day(self, date: DateComponents, _: int) -> FieldValue:
        solstices = self._solstices(date.year)
        if solstices is None:
            return None
        return date_utils.day_of_year(self._cal, date) == solstices[0]

    def _is_shortest_day(self, date: DateComponents, _: int) -> FieldValue:
        solstices = self._solstices(date.year)
        if solstices is None:
            return None
        return date_utils.day_of_year(self._cal, date) == solstices[1]

    def _is_spring_equinox(self, date: DateComponents, _: int) -> FieldValue:
        equinoxes = self._equinoxes(date.year)
        if equinoxes is None:
            return None
        return date_utils.day_of_year(self._cal, date) == equinoxes[0]

    def _is_autumn_equinox(self, date: DateComponents, _: int) -> FieldValue:
        equinoxes = self._equinoxes(date.year)
        if equinoxes is None:
            return None
        return date_utils.day_of_year(self._cal, date) == equinoxes[1]

    # --- Moon fields ---

    def _moon_phase(self, date: DateComponents, moon_index: int) -> FieldValue:
        return self.moon_position(moon_index, date)

    def _moon_phase_index(self, date: DateComponents, moon_index: int) -> FieldValue:
        moon = self._moon(moon_index)
        return None if moon is None else self._phase_index_on(moon, date)

    def _moon_phase_count_month(self, date: DateComponents, moon_index: int) -> FieldValue:
        moon = self._moon(moon_index)
        if moon is None:
            return None
        return self._phase_entries(moon, DateComponents(date.year, date.month, 1), date)

    def _moon_phase_count_year(self, date: DateComponents, moon_index: int) -> FieldValue:
        moon = self._moon(moon_index)
        if moon is None:
            return None
        return self._phase_entries(moon, DateComponents(date.year, 0, 1), date)

    # --- Other ---

    def _cycle(self, date: DateComponents, cycle_index: int) -> FieldValue:
        cycles = self._cal.cycles()
        if not 0 <= cycle_index < len(cycles):
            return None
        cycle = cycles[cycle_index]
        basis = self._cycle_basis(cycle.based_on, date)
        return (basis - cycle.offset) % cycle.length

    def _cycle_basis(self, based_on: str, date: DateComponents) -> int:
        if based_on == const.CYCLE_BASED_ON_ERA_YEAR:
            era_year = self._era_year(date, 0)
            return date.year if era_year is None else int(era_year)
        if based_on == const.CYCLE_BASED_ON_MONTH:
            return date.month
        if based_on == const.CYCLE_BASED_ON_MONTH_DAY:
            return date.day
        if based_on == const.CYCLE_BASED_ON_YEAR_DAY:
            return date_utils.day_of_year(self._cal, date) + 1
        if based_on == const.CYCLE_BASED_ON_DAY:
            return date_utils.day_number(self._cal, date)
        return date.year

    def _era(self, date: DateComponents, _: int) -> FieldValue:
        return self._era_index(date.year)

    def _era_year(self, date: DateComponents, _: int) -> FieldValue:
        index = self._era_index(date.year)
        if index is None:
            return None
        return date.year - self._cal.eras()[index].start_year + 1

    def _intercalary(self, date: DateComponents, _: int) -> FieldValue:
        if self._cal.is_intercalary(date.month):
            return True
        day0 = date.day - 1
        before = self._cal.non_weekday_days_before(date.year, date.month, day0)
        after = self._cal.non_weekday_days_before(date.year, date.month, day0 + 1)
        return after > before


# =============================================================================
# Module helpers
# =============================================================================


def _apply_operator(
    op: str, value: float | int | bool, target: float | int | bool, offset: int = 0
) -> bool:
    """Apply a comparison operator; unknown operators never match."""
    if op == const.OP_EQ:
        return value == target
    if op == const.OP_NE:
        return value != target
    if op == const.OP_MOD:
        if not target:
            return False
        return (value - offset) % target == 0
    if op == const.OP_GTE:
        return value >= target
    if op == const.OP_LTE:
        return value <= target
    if op == const.OP_GT:
        return value > target
    if op == const.OP_LT:
        return value < target
    const.LOGGER.debug("ConditionEngine: Unknown operator '%s'", op)
    return False


def _phase_index(moon: Moon, position: float) -> int | None:
    """Return the 0-indexed phase bucket holding ``position``."""
    if not moon.phases:
        return None
    for index, phase in enumerate(moon.phases):
        if phase.start <= position < phase.end:
            return index
    # Position 1.0 boundary or gaps fall into the last phase
    return len(moon.phases) - 1


def _season_contains(season: Season, day: int) -> bool:
    if season.wraps:
        return day >= season.day_start or day <= season.day_end
    return season.day_start <= day <= season.day_end


def _season_by_hint(seasons: tuple[Season, ...], hint: str, fallback: int) -> Season | None:
    for season in seasons:
        if hint in season.name.lower():
            return season
    if 0 <= fallback < len(seasons):
        return seasons[fallback]
    return None


def _season_midpoint(season: Season, days_in_year: int) -> int:
    length = (season.day_end - season.day_start) % days_in_year
    return (season.day_start + length // 2) % days_in_year


def evaluate_conditions(
    calendar: CalendarProvider | None,
    conditions: Iterable[Condition],
    date: DateComponents,
) -> bool:
    """Evaluate conditions against ``date`` with a throwaway engine."""
    return ConditionEngine(calendar).evaluate_conditions(conditions, date)


def get_field_value(
    calendar: CalendarProvider | None,
    field: str,
    date: DateComponents,
    value2: int | None = None,
) -> FieldValue:
    """Resolve one condition field with a throwaway engine."""
    return ConditionEngine(calendar).get_field_value(field, date, value2)
