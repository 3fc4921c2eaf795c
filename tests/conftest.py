"""Shared fixtures for Almanac tests."""

import pytest

from almanac import DefinitionCalendar, gregorian_calendar
from tests.helpers import FANTASY_CALENDAR


@pytest.fixture(scope="session")
def gregorian() -> DefinitionCalendar:
    """Return the built-in Gregorian calendar."""
    return gregorian_calendar()


@pytest.fixture(scope="session")
def fantasy() -> DefinitionCalendar:
    """Return the 13x28+1 fantasy calendar (see tests/helpers/calendars.py)."""
    return DefinitionCalendar.from_dict(FANTASY_CALENDAR)
