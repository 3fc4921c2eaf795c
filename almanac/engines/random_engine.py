"""Seeded randomness for random recurrence rules.

Random rules must give every caller the same answer for the same date without
shared state, so the "dice roll" for a date is a pure hash of the rule seed,
the year and the day of year.

Precomputed occurrences live in an explicit ``RandomOccurrenceCache`` the
caller owns and hands to the recurrence engine; this module builds caches and
tells the caller when one has gone stale.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const
from ..models import RandomOccurrenceCache, RandomPattern
from ..utils import date_utils

if TYPE_CHECKING:
    from ..models import DateComponents, RecurrenceRule
    from ..providers import CalendarProvider

_MASK_31 = 0x7FFFFFFF
_LCG_MULTIPLIER = 1103515245
_LCG_INCREMENT = 12345
_YEAR_PRIME = 374761393
_DAY_PRIME = 668265263


def seeded_random(seed: int, year: int, day_of_year: int) -> float:
    """Return a deterministic pseudo-random value in ``[0, 100)``.

    The seed, year and day of year are mixed with two multiplicative hashes,
    then run through two linear-congruential steps.

    Examples:
        seeded_random(42, 1, 0) == seeded_random(42, 1, 0)  # always
    """
    value = (seed ^ (year * _YEAR_PRIME) ^ (day_of_year * _DAY_PRIME)) & _MASK_31
    value = (value * _LCG_MULTIPLIER + _LCG_INCREMENT) & _MASK_31
    value = (value * _LCG_MULTIPLIER + _LCG_INCREMENT) & _MASK_31
    return value / (_MASK_31 + 1) * 100


def matches_random(
    calendar: CalendarProvider | None,
    config: RandomPattern,
    target: DateComponents,
    start: DateComponents,
) -> bool:
    """Decide whether a random rule fires on ``target``.

    Weekly checks only consider the start date's weekday and monthly checks
    only the start date's day of month. Probabilities at or below 0 never
    fire; at or above 100 always fire (after interval gating).
    """
    if config.probability <= 0:
        return False
    if config.check_interval == const.CHECK_INTERVAL_WEEKLY:
        if date_utils.day_of_week(calendar, target) != date_utils.day_of_week(calendar, start):
            return False
    elif config.check_interval == const.CHECK_INTERVAL_MONTHLY:
        if target.day != start.day:
            return False
    if config.probability >= 100:
        return True
    roll = seeded_random(config.seed, target.year, date_utils.day_of_year(calendar, target))
    return roll < config.probability


def generate_random_occurrences(
    calendar: CalendarProvider | None,
    rule: RecurrenceRule,
    range_start: DateComponents,
    range_end: DateComponents,
) -> RandomOccurrenceCache:
    """Precompute the live random occurrences of ``rule`` in a range.

    Dates before the rule start or after its repeat end are skipped. The scan
    stops after const.MAX_ITERATIONS days.

    Returns:
        Cache valid for ``[range_start, range_end]``.
    """
    occurrences: list[DateComponents] = []
    pattern = rule.pattern
    if calendar is None or not isinstance(pattern, RandomPattern):
        const.LOGGER.debug(
            "RandomEngine: Rule %s has no random pattern or no calendar", rule.rule_id
        )
        return RandomOccurrenceCache(range_start, range_end, ())

    current = range_start.as_day()
    if date_utils.compare_days(current, rule.start_date) < 0:
        current = rule.start_date.as_day()
    last = range_end
    if rule.repeat_end_date is not None and date_utils.compare_days(rule.repeat_end_date, last) < 0:
        last = rule.repeat_end_date

    iterations = 0
    while date_utils.compare_days(current, last) <= 0:
        if iterations >= const.MAX_ITERATIONS:
            const.LOGGER.warning(
                "RandomEngine: Hit max iterations (%d) generating occurrences for rule %s",
                const.MAX_ITERATIONS,
                rule.rule_id,
            )
            break
        if matches_random(calendar, pattern, current, rule.start_date):
            occurrences.append(current)
        current = date_utils.next_day(calendar, current)
        iterations += 1

    return RandomOccurrenceCache(range_start.as_day(), range_end.as_day(), tuple(occurrences))


def needs_regeneration(
    cache: RandomOccurrenceCache | None, as_of: DateComponents
) -> bool:
    """Return True when ``cache`` is missing or ``as_of`` lies outside its window."""
    if cache is None:
        return True
    if date_utils.compare_days(as_of, cache.valid_from) < 0:
        return True
    return date_utils.compare_days(as_of, cache.valid_until) > 0
