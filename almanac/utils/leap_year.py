# File: utils/leap_year.py
"""Leap year engine for Almanac.

Pure Python functions with ZERO calendar-provider dependencies.

A leap pattern is a comma-separated list of interval terms, for example
``"400,!100,4"`` (the Gregorian rule). Every term votes on a year:

- ``allow`` (+1) when the year is divisible by the term's interval
- ``deny`` (-1) when the term is a subtracting term (``!`` prefix) and divisible
- ``abstain`` (0) otherwise

A year is a leap year when the sum of all votes is strictly positive. A ``+``
prefix makes a term ignore the rule's start offset.

Functions:
    - parse_interval: Parse a single pattern term
    - parse_pattern: Parse a whole pattern string
    - vote_on_year: Vote of one term on one year
    - is_leap_year: Leap year decision for a LeapYearRule
    - leap_cycle_length: Period after which a rule's leap pattern repeats
    - count_leap_years: Count leap years in a half-open year range
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import logging
from math import lcm

from .. import const
from ..models import LeapYearRule

# Module-level logger
_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class IntervalSpec:
    """Parsed leap pattern term.

    Attributes:
        interval: Divisor of the term (always >= 1)
        subtracts: True for ``!`` terms, which deny instead of allow
        offset: Start offset normalized into ``[0, interval)``
    """

    interval: int
    subtracts: bool
    offset: int


# ==============================================================================
# Pattern Parsing
# ==============================================================================


def parse_interval(term: str, offset: int = 0) -> IntervalSpec | None:
    """Parse one leap pattern term.

    Args:
        term: Term text such as ``"4"``, ``"!100"`` or ``"+!25"``.
        offset: Start offset of the owning rule.

    Returns:
        Parsed IntervalSpec, or None when the term has no positive interval.

    Examples:
        parse_interval("!100") → IntervalSpec(100, True, 0)
        parse_interval("4", 5) → IntervalSpec(4, False, 1)
        parse_interval("+4", 5) → IntervalSpec(4, False, 0)
    """
    text = term.strip()
    subtracts = False
    ignore_offset = False

    # Markers may appear in either order ("!+4" and "+!4")
    while text[:1] in (const.LEAP_TERM_SUBTRACT, const.LEAP_TERM_IGNORE_OFFSET):
        if text[0] == const.LEAP_TERM_SUBTRACT:
            subtracts = True
        else:
            ignore_offset = True
        text = text[1:].strip()

    try:
        interval = int(text)
    except ValueError:
        _LOGGER.debug("Ignoring unparseable leap pattern term: %r", term)
        return None

    if interval < 1:
        _LOGGER.debug("Ignoring non-positive leap interval: %r", term)
        return None

    # An interval of 1 fires every year regardless of the offset
    if ignore_offset or interval == 1:
        normalized = 0
    else:
        normalized = offset % interval

    return IntervalSpec(interval=interval, subtracts=subtracts, offset=normalized)


def parse_pattern(pattern: str, offset: int = 0) -> list[IntervalSpec]:
    """Parse a comma-separated leap pattern into interval specs.

    Unparseable terms are skipped.

    Args:
        pattern: Pattern text, e.g. ``"400,!100,4"``.
        offset: Start offset of the owning rule.

    Returns:
        List of IntervalSpec in pattern order.
    """
    specs: list[IntervalSpec] = []
    for term in pattern.split(const.LEAP_TERM_SEPARATOR):
        if not term.strip():
            continue
        spec = parse_interval(term, offset)
        if spec is not None:
            specs.append(spec)
    return specs


# ==============================================================================
# Voting
# ==============================================================================


def _effective_year(year: int, year_zero_exists: bool) -> int:
    """Shift years below zero by one when the calendar has no year 0."""
    if not year_zero_exists and year < 0:
        return year + 1
    return year


def vote_on_year(spec: IntervalSpec, year: int, year_zero_exists: bool = True) -> int:
    """Return the vote of one interval term on ``year``.

    Returns:
        const.LEAP_VOTE_ALLOW, const.LEAP_VOTE_DENY or const.LEAP_VOTE_ABSTAIN.
    """
    effective = _effective_year(year, year_zero_exists)
    if (effective - spec.offset) % spec.interval != 0:
        return const.LEAP_VOTE_ABSTAIN
    return const.LEAP_VOTE_DENY if spec.subtracts else const.LEAP_VOTE_ALLOW


def _rule_specs(rule: LeapYearRule) -> tuple[IntervalSpec, ...]:
    """Return the interval specs equivalent to ``rule``."""
    return _cached_specs(rule.rule, rule.interval, rule.start, rule.pattern)


@lru_cache(maxsize=64)
def _cached_specs(
    rule: str, interval: int, start: int, pattern: str
) -> tuple[IntervalSpec, ...]:
    """Parse rule parameters once; rules are immutable and reused constantly."""
    if rule == const.LEAP_RULE_SIMPLE:
        if interval < 1:
            return ()
        return (IntervalSpec(interval, False, 0 if interval == 1 else start % interval),)
    if rule == const.LEAP_RULE_GREGORIAN:
        return tuple(parse_pattern(const.GREGORIAN_LEAP_PATTERN, start))
    if rule == const.LEAP_RULE_CUSTOM:
        return tuple(parse_pattern(pattern, start))
    return ()


def _is_leap_effective(specs: tuple[IntervalSpec, ...], effective_year: int) -> bool:
    """Sum votes for an already-shifted year."""
    total = 0
    for spec in specs:
        if (effective_year - spec.offset) % spec.interval == 0:
            total += const.LEAP_VOTE_DENY if spec.subtracts else const.LEAP_VOTE_ALLOW
    return total > 0


def is_leap_year(
    rule: LeapYearRule | None, year: int, year_zero_exists: bool = True
) -> bool:
    """Decide whether ``year`` is a leap year under ``rule``.

    Args:
        rule: Leap year rule, or None for calendars without leap years.
        year: Display year.
        year_zero_exists: False when the calendar jumps from -1 to 1.

    Returns:
        True if the vote sum is strictly positive.

    Examples:
        is_leap_year(LeapYearRule("gregorian"), 2000) → True
        is_leap_year(LeapYearRule("gregorian"), 1900) → False
    """
    if rule is None:
        return False
    specs = _rule_specs(rule)
    if not specs:
        return False
    return _is_leap_effective(specs, _effective_year(year, year_zero_exists))


# ==============================================================================
# Leap Counting
# ==============================================================================


def leap_cycle_length(rule: LeapYearRule | None) -> int:
    """Return the period (in years) after which the leap pattern repeats.

    The period is the least common multiple of all term intervals; 1 for rules
    without leap years.
    """
    if rule is None:
        return 1
    specs = _rule_specs(rule)
    if not specs:
        return 1
    return lcm(*(spec.interval for spec in specs))


@lru_cache(maxsize=64)
def _leap_prefix(specs: tuple[IntervalSpec, ...], period: int) -> tuple[int, ...]:
    """Running leap counts over one period starting at effective year 0.

    ``prefix[n]`` is the number of leap years in ``[0, n)``.
    """
    prefix = [0]
    for year in range(period):
        prefix.append(prefix[-1] + (1 if _is_leap_effective(specs, year) else 0))
    return tuple(prefix)


def _leaps_before(specs: tuple[IntervalSpec, ...], period: int, year: int) -> int:
    """Signed count of leap years in ``[0, year)`` (negative below zero)."""
    prefix = _leap_prefix(specs, period)
    cycles, remainder = divmod(year, period)
    return cycles * prefix[period] + prefix[remainder]


def count_leap_years(rule: LeapYearRule | None, first: int, last: int) -> int:
    """Count leap years in ``[first, last)`` over a contiguous year axis.

    Years are treated as already shifted (year zero exists). Callers working in
    display years of a calendar without year zero convert to the contiguous
    axis first.

    Args:
        rule: Leap year rule.
        first: First year of the range (inclusive).
        last: End of the range (exclusive).

    Returns:
        Number of leap years, 0 for empty ranges.

    Examples:
        count_leap_years(LeapYearRule("gregorian"), 1, 401) → 97
    """
    if rule is None or last <= first:
        return 0
    specs = _rule_specs(rule)
    if not specs:
        return 0

    period = leap_cycle_length(rule)
    if period > const.MAX_ITERATIONS:
        span = last - first
        if span > const.MAX_ITERATIONS:
            _LOGGER.warning(
                "count_leap_years: brute-force counting %d years (period %d)",
                span,
                period,
            )
        return sum(1 for year in range(first, last) if _is_leap_effective(specs, year))

    # The vote pattern repeats every `period` years, so prefix sums over one
    # period give the count for any range
    return _leaps_before(specs, period, last) - _leaps_before(specs, period, first)
