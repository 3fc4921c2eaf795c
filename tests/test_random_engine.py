"""Unit tests for engines/random_engine.py.

Covers:
- RN-01: Seeded rolls (determinism, range, seed sensitivity)
- RN-02: Probability edges and check-interval gating
- RN-03: Precomputing occurrences into a cache
- RN-04: Cache staleness
"""

import pytest

from almanac import DateComponents, DefinitionCalendar, RecurrenceRule
from almanac.engines.random_engine import (
    generate_random_occurrences,
    matches_random,
    needs_regeneration,
    seeded_random,
)
from almanac.models import DailyPattern, RandomOccurrenceCache, RandomPattern
from almanac.utils import date_utils
from tests.helpers import d

START = d(2024, 0, 1)  # Monday


def _random_rule(probability: float, check_interval: str = "daily", **kwargs) -> RecurrenceRule:
    return RecurrenceRule(
        start_date=kwargs.pop("start_date", START),
        pattern=RandomPattern(seed=42, probability=probability, check_interval=check_interval),
        rule_id="dice",
        **kwargs,
    )


# =============================================================================
# RN-01: Seeded rolls
# =============================================================================


class TestSeededRandom:
    """Test the deterministic per-date roll."""

    def test_deterministic(self) -> None:
        """The same inputs always give the same value."""
        assert seeded_random(42, 2024, 100) == seeded_random(42, 2024, 100)

    def test_range(self) -> None:
        """Values lie in [0, 100)."""
        for day in range(366):
            value = seeded_random(7, 2024, day)
            assert 0 <= value < 100

    def test_inputs_change_the_roll(self) -> None:
        """Seed, year and day of year all feed the roll."""
        base = seeded_random(1, 2024, 10)
        assert seeded_random(2, 2024, 10) != base
        assert seeded_random(1, 2025, 10) != base
        assert seeded_random(1, 2024, 11) != base

    def test_negative_years(self) -> None:
        """Negative years still produce values in range."""
        assert 0 <= seeded_random(3, -500, 12) < 100


# =============================================================================
# RN-02: Probability and gating
# =============================================================================


class TestMatchesRandom:
    """Test the random matcher."""

    def test_probability_edges(self, gregorian: DefinitionCalendar) -> None:
        """0% never fires and 100% always fires."""
        never = RandomPattern(seed=1, probability=0)
        always = RandomPattern(seed=1, probability=100)
        day = START
        for _ in range(60):
            assert not matches_random(gregorian, never, day, START)
            assert matches_random(gregorian, always, day, START)
            day = date_utils.next_day(gregorian, day)

    def test_weekly_gating(self, gregorian: DefinitionCalendar) -> None:
        """Weekly checks only happen on the start date's weekday."""
        pattern = RandomPattern(seed=1, probability=100, check_interval="weekly")
        assert matches_random(gregorian, pattern, d(2024, 0, 8), START)
        assert not matches_random(gregorian, pattern, d(2024, 0, 9), START)

    def test_monthly_gating(self, gregorian: DefinitionCalendar) -> None:
        """Monthly checks only happen on the start date's day of month."""
        pattern = RandomPattern(seed=1, probability=100, check_interval="monthly")
        start = d(2024, 0, 15)
        assert matches_random(gregorian, pattern, d(2024, 5, 15), start)
        assert not matches_random(gregorian, pattern, d(2024, 5, 16), start)

    def test_rough_frequency(self, gregorian: DefinitionCalendar) -> None:
        """A 30% rule fires on roughly 30% of days over ten years."""
        pattern = RandomPattern(seed=12345, probability=30)
        day = START
        hits = 0
        for _ in range(3650):
            if matches_random(gregorian, pattern, day, START):
                hits += 1
            day = date_utils.next_day(gregorian, day)
        assert 0.15 * 3650 < hits < 0.45 * 3650

    def test_roll_matches_probability(self, gregorian: DefinitionCalendar) -> None:
        """A daily check fires exactly when the roll is below the probability."""
        pattern = RandomPattern(seed=42, probability=50)
        target = d(2024, 2, 1)
        roll = seeded_random(42, 2024, date_utils.day_of_year(gregorian, target))
        assert matches_random(gregorian, pattern, target, START) is (roll < 50)


# =============================================================================
# RN-03: Precomputing occurrences
# =============================================================================


class TestGenerateRandomOccurrences:
    """Test cache generation."""

    def test_matches_live_rolls(self, gregorian: DefinitionCalendar) -> None:
        """The cache holds exactly the days the live matcher accepts."""
        rule = _random_rule(30)
        cache = generate_random_occurrences(gregorian, rule, d(2024, 0, 1), d(2024, 2, 31))
        expected = []
        day = d(2024, 0, 1)
        while date_utils.compare_days(day, d(2024, 2, 31)) <= 0:
            if matches_random(gregorian, rule.pattern, day, rule.start_date):
                expected.append(day)
            day = date_utils.next_day(gregorian, day)
        assert list(cache.occurrences) == expected
        assert cache.valid_from == d(2024, 0, 1)
        assert cache.valid_until == d(2024, 2, 31)

    def test_respects_rule_bounds(self, gregorian: DefinitionCalendar) -> None:
        """Days before the start or after the repeat end are skipped."""
        rule = _random_rule(
            100, start_date=d(2024, 0, 10), repeat_end_date=d(2024, 0, 20)
        )
        cache = generate_random_occurrences(gregorian, rule, d(2024, 0, 1), d(2024, 0, 31))
        assert cache.occurrences[0] == d(2024, 0, 10)
        assert cache.occurrences[-1] == d(2024, 0, 20)
        assert len(cache.occurrences) == 11
        assert cache.valid_from == d(2024, 0, 1)

    def test_time_of_day_dropped(self, gregorian: DefinitionCalendar) -> None:
        """Cached occurrences and the window are whole days."""
        rule = _random_rule(100, start_date=DateComponents(2024, 0, 1, 9, 30))
        cache = generate_random_occurrences(
            gregorian, rule, DateComponents(2024, 0, 1, 12), d(2024, 0, 2)
        )
        assert cache.occurrences == (d(2024, 0, 1), d(2024, 0, 2))
        assert cache.valid_from == d(2024, 0, 1)

    @pytest.mark.parametrize("use_calendar", [False, True])
    def test_empty_cache(self, gregorian: DefinitionCalendar, use_calendar: bool) -> None:
        """No calendar or a non-random rule gives an empty cache."""
        if use_calendar:
            rule = RecurrenceRule(start_date=START, pattern=DailyPattern(), rule_id="daily")
            cache = generate_random_occurrences(gregorian, rule, START, d(2024, 0, 31))
        else:
            cache = generate_random_occurrences(None, _random_rule(100), START, d(2024, 0, 31))
        assert cache.occurrences == ()
        assert cache.valid_until == d(2024, 0, 31)


# =============================================================================
# RN-04: Staleness
# =============================================================================


class TestNeedsRegeneration:
    """Test the cache window check."""

    CACHE = RandomOccurrenceCache(d(2024, 0, 1), d(2024, 11, 31), ())

    def test_missing_cache(self) -> None:
        """No cache always needs generating."""
        assert needs_regeneration(None, START)

    @pytest.mark.parametrize(
        ("as_of", "expected"),
        [
            (d(2023, 11, 31), True),
            (d(2024, 0, 1), False),
            (d(2024, 6, 4), False),
            (DateComponents(2024, 11, 31, 23, 59), False),
            (d(2025, 0, 1), True),
        ],
    )
    def test_window(self, as_of: DateComponents, expected: bool) -> None:
        """Dates outside the inclusive window are stale."""
        assert needs_regeneration(self.CACHE, as_of) is expected
