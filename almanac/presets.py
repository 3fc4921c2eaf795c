"""Built-in calendar definitions.

Definitions are stored in the raw JSON shape so they go through exactly the
same validation as user-supplied calendars.
"""

from __future__ import annotations

from typing import Final

from .providers import DefinitionCalendar
from .type_defs import CalendarDefinitionData

# Proleptic Gregorian calendar. Linear time 0 is 1 January of year 1, a Monday
# (index 1 with Sunday-first weekdays); 1 BC is displayed as year -1.
GREGORIAN: Final[CalendarDefinitionData] = {
    "name": "Gregorian",
    "months": [
        {"name": "January", "days": 31},
        {"name": "February", "days": 28, "leapDays": 29},
        {"name": "March", "days": 31},
        {"name": "April", "days": 30},
        {"name": "May", "days": 31},
        {"name": "June", "days": 30},
        {"name": "July", "days": 31},
        {"name": "August", "days": 31},
        {"name": "September", "days": 30},
        {"name": "October", "days": 31},
        {"name": "November", "days": 30},
        {"name": "December", "days": 31},
    ],
    "weekdays": [
        "Sunday",
        "Monday",
        "Tuesday",
        "Wednesday",
        "Thursday",
        "Friday",
        "Saturday",
    ],
    "firstWeekday": 1,
    "yearZero": 1,
    "yearZeroExists": False,
    "leapYear": {"rule": "gregorian"},
    # Meteorological seasons, 0-indexed days of a common year
    "seasons": [
        {"name": "Spring", "dayStart": 59, "dayEnd": 150},
        {"name": "Summer", "dayStart": 151, "dayEnd": 242},
        {"name": "Autumn", "dayStart": 243, "dayEnd": 333},
        {"name": "Winter", "dayStart": 334, "dayEnd": 58},
    ],
    "daylight": {"summerSolstice": 171, "winterSolstice": 354},
    "moons": [
        {
            "name": "Luna",
            "cycleLength": 29.53059,
            # New moon of 6 January 2000
            "referenceDate": {"year": 2000, "month": 0, "day": 6},
            "phases": [
                {"name": "New Moon", "start": 0.0, "end": 0.0625},
                {"name": "Waxing Crescent", "start": 0.0625, "end": 0.1875},
                {"name": "First Quarter", "start": 0.1875, "end": 0.3125},
                {"name": "Waxing Gibbous", "start": 0.3125, "end": 0.4375},
                {"name": "Full Moon", "start": 0.4375, "end": 0.5625},
                {"name": "Waning Gibbous", "start": 0.5625, "end": 0.6875},
                {"name": "Last Quarter", "start": 0.6875, "end": 0.8125},
                {"name": "Waning Crescent", "start": 0.8125, "end": 1.0},
            ],
        }
    ],
    "eras": [{"name": "Anno Domini", "abbreviation": "AD", "startYear": 1}],
}


def gregorian_calendar() -> DefinitionCalendar:
    """Return a provider for the built-in Gregorian calendar."""
    return DefinitionCalendar.from_dict(GREGORIAN)
