"""Test helpers for the Almanac test suite.

This module re-exports the helpers for convenient imports:

    from tests.helpers import FANTASY_CALENDAR, d, from_date, to_date

See calendars.py for the fantasy calendar layout.
"""

from tests.helpers.calendars import (
    FANTASY_CALENDAR,
    MIDSUMMER,
    d,
    day_key,
    from_date,
    gregorian_weekday,
    to_date,
)

__all__ = [
    "FANTASY_CALENDAR",
    "MIDSUMMER",
    "d",
    "day_key",
    "from_date",
    "gregorian_weekday",
    "to_date",
]
