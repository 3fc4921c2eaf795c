"""Unit tests for engines/recurrence_engine.py.

Covers:
- RE-01: Simple repeat types (never, daily, weekly, monthly, yearly)
- RE-02: Nth weekday of the month
- RE-03: Seasonal and range rules
- RE-04: Moon rules and moon filters
- RE-05: Generic conditions, multi-day spans and repeat end dates
- RE-06: Random rules (live rolls and caches)
- RE-07: Linked events
- RE-08: Occurrence counting and lifetime caps
- RE-09: Degenerate input and iteration limits

Scenarios use Gregorian dates (month 0-indexed) unless a test says otherwise.
"""

import logging

import pytest

from almanac import (
    Condition,
    DateComponents,
    DefinitionCalendar,
    LinkedEvent,
    MappingRuleResolver,
    MoonCondition,
    RandomOccurrenceCache,
    RangeBit,
    RecurrenceEngine,
    RecurrenceRule,
    count_occurrences_up_to,
    get_occurrences_in_range,
    is_recurring_match,
)
from almanac.models import (
    DailyPattern,
    InvalidPattern,
    MonthlyPattern,
    MoonPattern,
    NeverPattern,
    RandomPattern,
    RangePattern,
    SeasonalPattern,
    WeeklyPattern,
    WeekOfMonthPattern,
    YearlyPattern,
)
from tests.helpers import MIDSUMMER, d, day_key

FRIDAY = 5
TUESDAY = 2


@pytest.fixture
def engine(gregorian: DefinitionCalendar) -> RecurrenceEngine:
    """Return a recurrence engine for the Gregorian calendar."""
    return RecurrenceEngine(gregorian)


@pytest.fixture
def fantasy_engine(fantasy: DefinitionCalendar) -> RecurrenceEngine:
    """Return a recurrence engine for the fantasy calendar."""
    return RecurrenceEngine(fantasy)


def _days(dates: list[DateComponents]) -> list[tuple[int, int, int]]:
    return [day_key(date) for date in dates]


def _rule(pattern, start: DateComponents = d(2024, 0, 1), **kwargs) -> RecurrenceRule:
    return RecurrenceRule(start_date=start, pattern=pattern, **kwargs)


# =============================================================================
# RE-01: Simple repeat types
# =============================================================================


class TestSimpleRepeats:
    """Test never, daily, weekly, monthly and yearly rules."""

    def test_never(self, engine: RecurrenceEngine) -> None:
        """A one-off rule matches its start day only."""
        rule = _rule(NeverPattern(), d(2024, 2, 10))
        assert engine.is_recurring_match(rule, d(2024, 2, 10))
        assert not engine.is_recurring_match(rule, d(2025, 2, 10))
        assert engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 11, 31)) == [
            d(2024, 2, 10)
        ]
        assert engine.get_occurrences_in_range(rule, d(2024, 3, 1), d(2024, 11, 31)) == []

    def test_never_with_failing_condition(self, engine: RecurrenceEngine) -> None:
        """Generic conditions still apply to one-off rules."""
        rule = _rule(NeverPattern(), d(2024, 2, 10), conditions=(Condition("day", "==", 11),))
        assert not engine.is_recurring_match(rule, d(2024, 2, 10))

    def test_daily_interval(self, engine: RecurrenceEngine) -> None:
        """Every third day from the start."""
        rule = _rule(DailyPattern(), repeat_interval=3)
        found = engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 0, 31))
        assert [date.day for date in found] == [1, 4, 7, 10, 13, 16, 19, 22, 25, 28, 31]
        assert not engine.is_recurring_match(rule, d(2024, 0, 2))
        assert not engine.is_recurring_match(rule, d(2023, 11, 29))

    def test_daily_enumeration_is_repeatable(self, engine: RecurrenceEngine) -> None:
        """Enumerating twice gives the same answer."""
        rule = _rule(DailyPattern(), repeat_interval=2)
        first = engine.get_occurrences_in_range(rule, d(2024, 1, 10), d(2024, 2, 10))
        assert first == engine.get_occurrences_in_range(rule, d(2024, 1, 10), d(2024, 2, 10))

    def test_daily_across_missing_year_zero(self, engine: RecurrenceEngine) -> None:
        """31 December 1 BC is followed by 1 January AD 1."""
        rule = _rule(DailyPattern(), d(-1, 11, 30))
        found = engine.get_occurrences_in_range(rule, d(-1, 11, 30), d(1, 0, 2))
        assert _days(found) == [(-1, 11, 30), (-1, 11, 31), (1, 0, 1), (1, 0, 2)]

    def test_daily_through_intercalary_month(self, fantasy_engine: RecurrenceEngine) -> None:
        """Daily rules visit intercalary days like any other day."""
        rule = _rule(DailyPattern(), d(1, 5, 27))
        found = fantasy_engine.get_occurrences_in_range(rule, d(1, 5, 27), d(1, 7, 2))
        assert _days(found) == [(1, 5, 27), (1, 5, 28), (1, MIDSUMMER, 1), (1, 7, 1), (1, 7, 2)]

    def test_weekly_keeps_time_of_day(self, fantasy_engine: RecurrenceEngine) -> None:
        """A weekly rule matches a week later at any time of day."""
        rule = _rule(WeeklyPattern(), d(1, 0, 1, 14))
        assert fantasy_engine.is_recurring_match(rule, d(1, 0, 8, 14))
        assert fantasy_engine.is_recurring_match(rule, d(1, 0, 8))
        assert not fantasy_engine.is_recurring_match(rule, d(1, 0, 9))

    def test_weekly_on_fantasy_calendar(self, fantasy_engine: RecurrenceEngine) -> None:
        """Weekly enumeration with intercalary days falls back to a day scan."""
        rule = _rule(WeeklyPattern(), d(1, 0, 1))
        found = fantasy_engine.get_occurrences_in_range(rule, d(1, 0, 1), d(1, 1, 28))
        assert _days(found) == [
            (1, 0, 1),
            (1, 0, 8),
            (1, 0, 15),
            (1, 0, 22),
            (1, 1, 1),
            (1, 1, 8),
            (1, 1, 15),
            (1, 1, 22),
        ]
        assert found[0].hour is None

    def test_weekly_interval(self, engine: RecurrenceEngine) -> None:
        """Every other Monday from 1 January 2024."""
        rule = _rule(WeeklyPattern(), repeat_interval=2)
        assert engine.is_recurring_match(rule, d(2024, 0, 15))
        assert engine.is_recurring_match(rule, d(2024, 0, 29))
        assert not engine.is_recurring_match(rule, d(2024, 0, 8))
        assert not engine.is_recurring_match(rule, d(2024, 0, 16))

    def test_monthly_clamps_to_month_end(self, engine: RecurrenceEngine) -> None:
        """A rule on the 31st lands on the last day of shorter months."""
        rule = _rule(MonthlyPattern(), d(2024, 0, 31))
        found = engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 4, 31))
        assert _days(found) == [
            (2024, 0, 31),
            (2024, 1, 29),
            (2024, 2, 31),
            (2024, 3, 30),
            (2024, 4, 31),
        ]
        assert not engine.is_recurring_match(rule, d(2024, 1, 28))

    def test_yearly_interval_and_leap_day(self, engine: RecurrenceEngine) -> None:
        """A leap-day rule every two years falls back to 28 February."""
        rule = _rule(YearlyPattern(), d(2020, 1, 29), repeat_interval=2)
        assert engine.is_recurring_match(rule, d(2022, 1, 28))
        assert engine.is_recurring_match(rule, d(2024, 1, 29))
        assert not engine.is_recurring_match(rule, d(2021, 1, 28))
        assert not engine.is_recurring_match(rule, d(2022, 2, 1))


# =============================================================================
# RE-02: Nth weekday of the month
# =============================================================================


class TestWeekOfMonth:
    """Test Nth-weekday rules."""

    def test_second_tuesday(self, engine: RecurrenceEngine) -> None:
        """The 2nd Tuesday of September 2024 is the 10th."""
        rule = _rule(WeekOfMonthPattern(weekday=TUESDAY, week_number=2))
        assert engine.is_recurring_match(rule, d(2024, 8, 10))
        assert not engine.is_recurring_match(rule, d(2024, 8, 3))
        assert not engine.is_recurring_match(rule, d(2024, 8, 17))

    def test_last_friday(self, engine: RecurrenceEngine) -> None:
        """Negative week numbers count from the end of the month."""
        rule = _rule(WeekOfMonthPattern(weekday=FRIDAY, week_number=-1))
        found = engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 2, 31))
        assert _days(found) == [(2024, 0, 26), (2024, 1, 23), (2024, 2, 29)]
        second_to_last = _rule(WeekOfMonthPattern(weekday=FRIDAY, week_number=-2))
        assert engine.is_recurring_match(second_to_last, d(2024, 0, 19))

    def test_derived_from_start(self, engine: RecurrenceEngine) -> None:
        """Missing weekday and week number come from the start date."""
        rule = _rule(WeekOfMonthPattern(), d(2024, 0, 9))
        assert engine.is_recurring_match(rule, d(2024, 1, 13))
        assert not engine.is_recurring_match(rule, d(2024, 1, 6))

    def test_month_interval(self, engine: RecurrenceEngine) -> None:
        """Every third month from the start month."""
        rule = _rule(WeekOfMonthPattern(), d(2024, 0, 9), repeat_interval=3)
        assert engine.is_recurring_match(rule, d(2024, 3, 9))
        assert not engine.is_recurring_match(rule, d(2024, 1, 13))

    def test_fifth_week_skips_short_months(self, engine: RecurrenceEngine) -> None:
        """Months without a 5th Friday produce nothing."""
        rule = _rule(WeekOfMonthPattern(weekday=FRIDAY, week_number=5))
        found = engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 5, 30))
        assert _days(found) == [(2024, 2, 29), (2024, 4, 31)]
        assert engine.count_occurrences_up_to(rule, d(2024, 5, 30)) == 2

    def test_fixed_start_month(self) -> None:
        """Months with a fixed starting weekday ignore the running week."""
        calendar = DefinitionCalendar.from_dict(
            {
                "months": [
                    {"name": "Opening", "days": 30, "startingWeekday": 0},
                    {"name": "Closing", "days": 30},
                ],
                "weekdays": ["A", "B", "C", "D", "E", "F", "G"],
            }
        )
        rule = _rule(WeekOfMonthPattern(weekday=1, week_number=2), d(0, 0, 1))
        assert RecurrenceEngine(calendar).is_recurring_match(rule, d(1, 0, 9))


# =============================================================================
# RE-03: Seasonal and range rules
# =============================================================================


class TestSeasonalAndRange:
    """Test seasonal and range rules."""

    def test_entire_season(self, engine: RecurrenceEngine) -> None:
        """Every day of summer 2023."""
        rule = _rule(SeasonalPattern(season_index=1), d(2023, 0, 1))
        found = engine.get_occurrences_in_range(rule, d(2023, 0, 1), d(2023, 11, 31), 400)
        assert len(found) == 92
        assert day_key(found[0]) == (2023, 5, 1)
        assert day_key(found[-1]) == (2023, 7, 31)

    def test_first_and_last_day(self, engine: RecurrenceEngine) -> None:
        """Triggers select the season's first or last day."""
        first = _rule(SeasonalPattern(season_index=1, trigger="firstDay"), d(2023, 0, 1))
        last = _rule(SeasonalPattern(season_index=3, trigger="lastDay"), d(2023, 0, 1))
        assert _days(
            engine.get_occurrences_in_range(first, d(2023, 0, 1), d(2023, 11, 31))
        ) == [(2023, 5, 1)]
        assert _days(
            engine.get_occurrences_in_range(last, d(2023, 0, 1), d(2023, 11, 31))
        ) == [(2023, 1, 28)]

    def test_wrapping_season(self, engine: RecurrenceEngine) -> None:
        """Winter covers both ends of the year."""
        rule = _rule(SeasonalPattern(season_index=3), d(2023, 0, 1))
        assert engine.is_recurring_match(rule, d(2023, 0, 10))
        assert engine.is_recurring_match(rule, d(2023, 11, 15))
        assert not engine.is_recurring_match(rule, d(2023, 6, 1))

    def test_unknown_season(self, engine: RecurrenceEngine) -> None:
        """Season indices past the list never match."""
        rule = _rule(SeasonalPattern(season_index=9), d(2023, 0, 1))
        assert not engine.is_recurring_match(rule, d(2023, 6, 1))

    def test_range_every_year(self, engine: RecurrenceEngine) -> None:
        """10-20 June of any year."""
        rule = _rule(
            RangePattern(month=RangeBit.exact(5), day=RangeBit(10, 20)), d(2023, 0, 1)
        )
        found = engine.get_occurrences_in_range(rule, d(2023, 0, 1), d(2024, 11, 31))
        expected = [(year, 5, day) for year in (2023, 2024) for day in range(10, 21)]
        assert _days(found) == expected

    def test_range_open_bounds(self, engine: RecurrenceEngine) -> None:
        """Open bounds only constrain one side."""
        rule = _rule(RangePattern(year=RangeBit(2025, None), day=RangeBit(None, 2)))
        assert engine.is_recurring_match(rule, d(2030, 4, 2))
        assert not engine.is_recurring_match(rule, d(2030, 4, 3))
        assert not engine.is_recurring_match(rule, d(2024, 4, 1))


# =============================================================================
# RE-04: Moons
# =============================================================================


class TestMoonRules:
    """Test moon rules and moon filters on the fantasy calendar."""

    FULL_AELA = MoonCondition(0, 0.5, 0.6)
    NEW_SELUNE = MoonCondition(1, 0.0, 0.0)

    def test_moon_rule(self, fantasy_engine: RecurrenceEngine) -> None:
        """Aela's 28-day cycle lines up with the 28-day months."""
        rule = _rule(MoonPattern(), d(0, 0, 1), moon_conditions=(self.FULL_AELA,))
        found = fantasy_engine.get_occurrences_in_range(rule, d(0, 0, 1), d(0, 1, 28))
        assert _days(found) == [
            (0, 0, 15),
            (0, 0, 16),
            (0, 0, 17),
            (0, 1, 15),
            (0, 1, 16),
            (0, 1, 17),
        ]

    def test_any_moon_matches(self, fantasy_engine: RecurrenceEngine) -> None:
        """Several moon conditions are combined with OR."""
        rule = _rule(
            MoonPattern(), d(0, 0, 1), moon_conditions=(self.FULL_AELA, self.NEW_SELUNE)
        )
        found = fantasy_engine.get_occurrences_in_range(rule, d(0, 0, 1), d(0, 0, 28))
        assert [date.day for date in found] == [1, 11, 15, 16, 17, 21]

    def test_moon_rule_without_conditions(self, fantasy_engine: RecurrenceEngine) -> None:
        """A moon rule with no windows never matches."""
        rule = _rule(MoonPattern(), d(0, 0, 1))
        assert not fantasy_engine.is_recurring_match(rule, d(0, 0, 15))

    def test_moon_filter_on_daily_rule(self, fantasy_engine: RecurrenceEngine) -> None:
        """Moon conditions filter other repeat types."""
        rule = _rule(DailyPattern(), d(0, 0, 1), moon_conditions=(self.FULL_AELA,))
        found = fantasy_engine.get_occurrences_in_range(rule, d(0, 0, 1), d(0, 0, 28))
        assert [date.day for date in found] == [15, 16, 17]


# =============================================================================
# RE-05: Conditions, spans, repeat end
# =============================================================================


class TestFilters:
    """Test generic conditions, multi-day spans and repeat end dates."""

    def test_condition_filter(self, engine: RecurrenceEngine) -> None:
        """A daily rule restricted to Fridays."""
        rule = _rule(DailyPattern(), conditions=(Condition("weekday", "==", FRIDAY + 1),))
        found = engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 0, 31))
        assert [date.day for date in found] == [5, 12, 19, 26]
        assert engine.count_occurrences_up_to(rule, d(2024, 0, 31)) == 4

    def test_span(self, engine: RecurrenceEngine) -> None:
        """Every day of the first occurrence's span matches."""
        rule = _rule(YearlyPattern(), d(2024, 2, 10), end_date=d(2024, 2, 12))
        found = engine.get_occurrences_in_range(rule, d(2024, 2, 1), d(2024, 2, 31))
        assert [date.day for date in found] == [10, 11, 12]
        assert not engine.is_recurring_match(rule, d(2024, 2, 13))
        assert engine.is_recurring_match(rule, d(2025, 2, 10))
        assert not engine.is_recurring_match(rule, d(2025, 2, 11))

    def test_span_ignores_conditions(self, engine: RecurrenceEngine) -> None:
        """Span days match even when conditions would reject them."""
        rule = _rule(
            YearlyPattern(),
            d(2024, 2, 10),
            end_date=d(2024, 2, 12),
            conditions=(Condition("day", "==", 1),),
        )
        assert engine.is_recurring_match(rule, d(2024, 2, 11))

    def test_repeat_end(self, engine: RecurrenceEngine) -> None:
        """The repeat end date is the last possible occurrence."""
        rule = _rule(DailyPattern(), repeat_end_date=d(2024, 0, 10))
        assert engine.is_recurring_match(rule, d(2024, 0, 10))
        assert not engine.is_recurring_match(rule, d(2024, 0, 11))
        assert len(engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 0, 31))) == 10

    def test_invalid_pattern(self, engine: RecurrenceEngine) -> None:
        """Malformed rules never match."""
        rule = _rule(InvalidPattern(requested="fortnightly"))
        assert not engine.is_recurring_match(rule, d(2024, 0, 1))
        assert engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 0, 31)) == []


# =============================================================================
# RE-06: Random rules
# =============================================================================


class TestRandomRules:
    """Test random rules with and without a cache."""

    def test_live_roll(self, engine: RecurrenceEngine) -> None:
        """A certain rule fires every day from its start."""
        rule = _rule(RandomPattern(seed=1, probability=100), rule_id="dice")
        found = engine.get_occurrences_in_range(rule, d(2023, 11, 25), d(2024, 0, 10))
        assert [date.day for date in found] == list(range(1, 11))

    def test_cache_membership_and_cap(self, gregorian: DefinitionCalendar) -> None:
        """Cached rules match cache entries only, up to the lifetime cap."""
        rule = _rule(
            RandomPattern(seed=1, probability=100), rule_id="dice", max_occurrences=3
        )
        cache = RandomOccurrenceCache(
            d(2024, 0, 1),
            d(2024, 11, 31),
            (d(2024, 0, 3), d(2024, 0, 7), d(2024, 0, 20), d(2024, 1, 2)),
        )
        engine = RecurrenceEngine(gregorian, random_caches={"dice": cache})
        assert engine.is_recurring_match(rule, d(2024, 0, 20))
        assert not engine.is_recurring_match(rule, d(2024, 0, 4))
        assert not engine.is_recurring_match(rule, d(2024, 1, 2))
        found = engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 1, 28))
        assert _days(found) == [(2024, 0, 3), (2024, 0, 7), (2024, 0, 20)]
        assert engine.count_occurrences_up_to(rule, d(2024, 11, 31)) == 4

    def test_cache_for_other_rule_ignored(self, gregorian: DefinitionCalendar) -> None:
        """Caches are looked up by rule id."""
        rule = _rule(RandomPattern(seed=1, probability=100), rule_id="dice")
        cache = RandomOccurrenceCache(d(2024, 0, 1), d(2024, 11, 31), ())
        engine = RecurrenceEngine(gregorian, random_caches={"other": cache})
        assert engine.is_recurring_match(rule, d(2024, 0, 4))


# =============================================================================
# RE-07: Linked events
# =============================================================================


class TestLinkedEvents:
    """Test rules defined relative to another rule."""

    BASE = RecurrenceRule(
        start_date=d(2024, 0, 5), pattern=WeeklyPattern(), rule_id="base", name="Market"
    )
    LINKED = RecurrenceRule(
        start_date=d(2024, 0, 1),
        rule_id="prep",
        repeat_end_date=d(2024, 2, 31),
        linked_event=LinkedEvent("base", -3),
    )

    @pytest.fixture
    def linked_engine(self, gregorian: DefinitionCalendar) -> RecurrenceEngine:
        """Return an engine that can resolve the base rule."""
        return RecurrenceEngine(gregorian, MappingRuleResolver([self.BASE, self.LINKED]))

    def test_three_days_before(self, linked_engine: RecurrenceEngine) -> None:
        """Occurrences are the base Fridays shifted to Tuesdays, within bounds."""
        found = linked_engine.get_occurrences_in_range(self.LINKED, d(2024, 0, 1), d(2024, 5, 30))
        assert _days(found) == [
            (2024, 0, 2),
            (2024, 0, 9),
            (2024, 0, 16),
            (2024, 0, 23),
            (2024, 0, 30),
            (2024, 1, 6),
            (2024, 1, 13),
            (2024, 1, 20),
            (2024, 1, 27),
            (2024, 2, 5),
            (2024, 2, 12),
            (2024, 2, 19),
            (2024, 2, 26),
        ]
        assert linked_engine.is_recurring_match(self.LINKED, d(2024, 0, 2))
        assert not linked_engine.is_recurring_match(self.LINKED, d(2024, 0, 5))
        assert not linked_engine.is_recurring_match(self.LINKED, d(2024, 3, 2))

    def test_link_ignores_own_filters(self, gregorian: DefinitionCalendar) -> None:
        """A linked rule's own conditions and moon windows are not applied."""
        linked = RecurrenceRule(
            start_date=d(2024, 0, 1),
            linked_event=LinkedEvent("base", -3),
            conditions=(Condition("weekday", "==", 1),),
            moon_conditions=(MoonCondition(0, 0.0, 0.01),),
        )
        engine = RecurrenceEngine(gregorian, MappingRuleResolver([self.BASE]))
        assert engine.is_recurring_match(linked, d(2024, 0, 9))

    def test_unresolved(self, gregorian: DefinitionCalendar) -> None:
        """Without a resolver or a target the link never matches."""
        assert not RecurrenceEngine(gregorian).is_recurring_match(self.LINKED, d(2024, 0, 2))
        engine = RecurrenceEngine(gregorian, MappingRuleResolver([]))
        assert not engine.is_recurring_match(self.LINKED, d(2024, 0, 2))
        assert engine.get_occurrences_in_range(self.LINKED, d(2024, 0, 1), d(2024, 0, 31)) == []

    def test_cycle_terminates(self, gregorian: DefinitionCalendar) -> None:
        """Mutually linked rules resolve one level deep."""
        first = RecurrenceRule(
            start_date=d(2024, 0, 1), rule_id="a", linked_event=LinkedEvent("b", 1)
        )
        second = RecurrenceRule(
            start_date=d(2024, 0, 5), rule_id="b", linked_event=LinkedEvent("a", 1)
        )
        engine = RecurrenceEngine(gregorian, MappingRuleResolver([first, second]))
        assert engine.is_recurring_match(first, d(2024, 0, 6))
        assert _days(
            engine.get_occurrences_in_range(first, d(2024, 0, 1), d(2024, 0, 31))
        ) == [(2024, 0, 6)]


# =============================================================================
# RE-08: Counting and caps
# =============================================================================


class TestCounting:
    """Test occurrence counting and lifetime caps."""

    def test_kth_occurrence_counts_k(self, engine: RecurrenceEngine) -> None:
        """The start is occurrence 1 and each week adds one."""
        rule = _rule(WeeklyPattern())
        assert engine.count_occurrences_up_to(rule, d(2024, 0, 1)) == 1
        assert engine.count_occurrences_up_to(rule, d(2024, 0, 8)) == 2
        assert engine.count_occurrences_up_to(rule, d(2024, 0, 10)) == 2
        assert engine.count_occurrences_up_to(rule, d(2024, 0, 29)) == 5

    def test_before_start(self, engine: RecurrenceEngine) -> None:
        """Nothing occurs before the start."""
        assert engine.count_occurrences_up_to(_rule(DailyPattern()), d(2023, 11, 31)) == 0

    def test_closed_forms(self, engine: RecurrenceEngine) -> None:
        """Daily, monthly and yearly counts without enumeration."""
        assert engine.count_occurrences_up_to(
            _rule(DailyPattern(), repeat_interval=3), d(2024, 0, 31)
        ) == 11
        monthly = _rule(MonthlyPattern(), d(2024, 0, 31))
        assert engine.count_occurrences_up_to(monthly, d(2024, 1, 28)) == 1
        assert engine.count_occurrences_up_to(monthly, d(2024, 1, 29)) == 2
        yearly = _rule(YearlyPattern(), d(2020, 1, 29))
        assert engine.count_occurrences_up_to(yearly, d(2021, 1, 27)) == 1
        assert engine.count_occurrences_up_to(yearly, d(2021, 1, 28)) == 2

    def test_never(self, engine: RecurrenceEngine) -> None:
        """A one-off rule counts once."""
        assert engine.count_occurrences_up_to(_rule(NeverPattern()), d(2030, 0, 1)) == 1

    def test_week_of_month(self, engine: RecurrenceEngine) -> None:
        """2nd Tuesdays in the first half of 2024."""
        rule = _rule(WeekOfMonthPattern(weekday=TUESDAY, week_number=2))
        assert engine.count_occurrences_up_to(rule, d(2024, 5, 30)) == 6
        assert engine.count_occurrences_up_to(rule, d(2024, 5, 10)) == 5
        late_start = _rule(WeekOfMonthPattern(weekday=TUESDAY, week_number=2), d(2024, 0, 15))
        assert engine.count_occurrences_up_to(late_start, d(2024, 5, 30)) == 5

    def test_max_occurrences(self, engine: RecurrenceEngine) -> None:
        """The lifetime cap applies to matching and enumeration."""
        rule = _rule(DailyPattern(), max_occurrences=5)
        assert engine.is_recurring_match(rule, d(2024, 0, 5))
        assert not engine.is_recurring_match(rule, d(2024, 0, 6))
        assert len(engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 0, 31))) == 5
        assert [
            date.day
            for date in engine.get_occurrences_in_range(rule, d(2024, 0, 3), d(2024, 0, 31))
        ] == [3, 4, 5]

    def test_max_occurrences_on_live_random(self, engine: RecurrenceEngine) -> None:
        """Random rules without a cache honor the cap too."""
        rule = _rule(RandomPattern(seed=1, probability=100), rule_id="dice", max_occurrences=5)
        assert len(engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 0, 10))) == 5
        assert not engine.is_recurring_match(rule, d(2024, 0, 6))

    def test_range_pinned_to_one_day_counts_per_year(self, engine: RecurrenceEngine) -> None:
        """New Year's Day since 2000 is counted far past the scan limit."""
        rule = _rule(
            RangePattern(month=RangeBit.exact(0), day=RangeBit.exact(1)),
            d(2000, 0, 1),
            max_occurrences=40,
        )
        assert engine.count_occurrences_up_to(rule, d(2060, 0, 1)) == 61
        assert engine.is_recurring_match(rule, d(2039, 0, 1))
        assert not engine.is_recurring_match(rule, d(2040, 0, 1))
        assert not engine.is_recurring_match(rule, d(2060, 0, 1))
        found = engine.get_occurrences_in_range(rule, d(2038, 0, 1), d(2045, 11, 31))
        assert _days(found) == [(2038, 0, 1), (2039, 0, 1)]

    def test_range_pinned_to_leap_day(self, engine: RecurrenceEngine) -> None:
        """Years without the day are skipped."""
        rule = _rule(RangePattern(month=RangeBit.exact(1), day=RangeBit.exact(29)), d(2000, 0, 1))
        assert engine.count_occurrences_up_to(rule, d(2024, 11, 31)) == 7

    def test_cap_rejects_incomplete_count(
        self, engine: RecurrenceEngine, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A count cut short by the iteration limit never lets a date past the cap."""
        rule = _rule(
            DailyPattern(),
            d(2000, 0, 1),
            conditions=(Condition("month", "==", 1), Condition("day", "==", 1)),
            max_occurrences=40,
        )
        assert engine.is_recurring_match(rule, d(2020, 0, 1))
        with caplog.at_level(logging.WARNING, logger="almanac"):
            assert not engine.is_recurring_match(rule, d(2060, 0, 1))
        assert "Hit max iterations" in caplog.text

    def test_module_level_functions(self, gregorian: DefinitionCalendar) -> None:
        """The convenience functions build a throwaway engine."""
        rule = _rule(DailyPattern(), repeat_interval=7)
        assert is_recurring_match(rule, d(2024, 0, 8), gregorian)
        assert len(get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 11, 31), gregorian, 10)) == 10
        assert count_occurrences_up_to(rule, d(2024, 0, 15), gregorian) == 3


# =============================================================================
# RE-09: Degenerate input
# =============================================================================


class TestDegenerateInput:
    """Test empty inputs and iteration limits."""

    def test_no_calendar(self) -> None:
        """Nothing matches without a calendar."""
        engine = RecurrenceEngine(None)
        rule = _rule(DailyPattern())
        assert not engine.is_recurring_match(rule, d(2024, 0, 1))
        assert engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 0, 31)) == []
        assert engine.count_occurrences_up_to(rule, d(2024, 0, 31)) == 0

    def test_empty_ranges(self, engine: RecurrenceEngine) -> None:
        """Reversed ranges and non-positive limits give nothing."""
        rule = _rule(DailyPattern())
        assert engine.get_occurrences_in_range(rule, d(2024, 0, 31), d(2024, 0, 1)) == []
        assert engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 0, 31), 0) == []

    def test_limit(self, engine: RecurrenceEngine) -> None:
        """Enumeration stops at the requested number of dates."""
        rule = _rule(DailyPattern())
        assert len(engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2024, 11, 31), 7)) == 7

    def test_iteration_limit(
        self, engine: RecurrenceEngine, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Scans give up after MAX_ITERATIONS days with a warning."""
        rule = _rule(RangePattern(year=RangeBit(5000, None)), rule_id="far")
        with caplog.at_level(logging.WARNING, logger="almanac"):
            found = engine.get_occurrences_in_range(rule, d(2024, 0, 1), d(2100, 0, 1))
        assert found == []
        assert "Hit max iterations" in caplog.text
