"""Type definitions for raw Almanac data structures.

ARCHITECTURE DECISION: TypedDict for RAW data, dataclasses for MODELS
=====================================================================

Calendars and recurrence rules arrive as JSON-shaped dictionaries with
camelCase keys (the format the surrounding application persists). Those raw
shapes are described here as TypedDicts so the schema layer and tests get
static checking on the keys they build.

Once validated by ``schemas.py`` the data is converted into the frozen
dataclasses in ``models.py``; the engines only ever see models.

NOTE: TypedDict is STATIC ANALYSIS ONLY. Runtime validation lives in
schemas.py (voluptuous).
"""

from typing import Any, NotRequired, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

RuleId = str
RangeBitData = int | list[int | None] | None  # any / exact / [min, max]


# =============================================================================
# Dates
# =============================================================================


class DateData(TypedDict):
    """Raw date components (month 0-indexed, day 1-indexed)."""

    year: int
    month: int
    day: int
    hour: NotRequired[int | None]
    minute: NotRequired[int | None]


class TimeComponents(TypedDict):
    """Components produced by a calendar provider from linear time.

    ``month``, ``day_of_month`` and ``day_of_year`` are all 0-indexed, and
    ``year`` is the display year.
    """

    year: int
    month: int
    day_of_month: int
    day_of_year: int
    hour: int
    minute: int
    second: int


# =============================================================================
# Calendar Definition
# =============================================================================


class MonthData(TypedDict):
    """Raw month definition."""

    name: str
    days: int
    leapDays: NotRequired[int | None]
    startingWeekday: NotRequired[int | None]
    intercalary: NotRequired[bool]


class LeapYearData(TypedDict, total=False):
    """Raw leap year rule (``rule`` is none/simple/gregorian/custom)."""

    rule: str
    interval: int
    start: int
    pattern: str


class FestivalData(TypedDict):
    """Raw festival day (month and day are 1-indexed)."""

    name: str
    month: int
    day: int
    countsForWeekday: NotRequired[bool]


class SeasonData(TypedDict):
    """Raw season; day-of-year bounds are 0-indexed and may wrap."""

    name: str
    dayStart: int
    dayEnd: int


class MoonPhaseData(TypedDict):
    """Raw moon phase covering ``[start, end)`` of the cycle."""

    name: str
    start: float
    end: float


class MoonData(TypedDict):
    """Raw moon definition."""

    name: str
    cycleLength: float
    cycleDayAdjust: NotRequired[float]
    referenceDate: DateData
    phases: list[MoonPhaseData]


class EraData(TypedDict):
    """Raw era definition (``endYear`` None means open-ended)."""

    name: str
    abbreviation: NotRequired[str]
    startYear: int
    endYear: NotRequired[int | None]


class CycleEntryData(TypedDict):
    """Raw named cycle entry."""

    name: str


class CycleData(TypedDict):
    """Raw numeric cycle definition."""

    name: str
    length: int
    offset: NotRequired[int]
    basedOn: NotRequired[str]
    entries: list[CycleEntryData]


class DaylightData(TypedDict, total=False):
    """Raw daylight settings (solstice days are 0-indexed days of year)."""

    summerSolstice: int
    winterSolstice: int


class CalendarDefinitionData(TypedDict, total=False):
    """Raw calendar definition.

    ``months``, ``weekdays`` and ``seasons`` may also be given wrapped as
    ``{"values": [...]}``.
    """

    name: str
    months: list[MonthData] | dict[str, Any]
    weekdays: list[str] | dict[str, Any]
    firstWeekday: int
    yearZero: int
    yearZeroExists: bool
    hoursPerDay: int
    minutesPerHour: int
    secondsPerMinute: int
    leapYear: LeapYearData | None
    festivals: list[FestivalData]
    seasons: list[SeasonData] | dict[str, Any]
    moons: list[MoonData]
    eras: list[EraData]
    cycles: list[CycleData]
    daylight: DaylightData | None


# =============================================================================
# Recurrence Rule Data (note flag data)
# =============================================================================


class MoonConditionData(TypedDict):
    """Raw moon phase window."""

    moonIndex: int
    phaseStart: float
    phaseEnd: float


class RandomConfigData(TypedDict, total=False):
    """Raw random-occurrence configuration."""

    seed: int
    probability: float
    checkInterval: str


class LinkedEventData(TypedDict):
    """Raw linked-event reference."""

    noteId: RuleId
    offset: NotRequired[int]


class RangePatternData(TypedDict, total=False):
    """Raw per-field range bits."""

    year: RangeBitData
    month: RangeBitData
    day: RangeBitData


class SeasonalConfigData(TypedDict, total=False):
    """Raw seasonal configuration."""

    seasonIndex: int
    trigger: str


class ConditionData(TypedDict):
    """Raw generic field condition."""

    field: str
    op: str
    value: Any
    value2: NotRequired[Any]
    offset: NotRequired[int]


class RuleData(TypedDict, total=False):
    """Raw recurrence rule as stored with an event.

    All fields except ``startDate`` are optional (total=False) to support
    partial data; extra keys are tolerated by the schema.
    """

    id: RuleId
    name: str
    startDate: DateData
    endDate: DateData | None
    repeat: str
    repeatInterval: int
    repeatEndDate: DateData | None
    maxOccurrences: int
    moonConditions: list[MoonConditionData]
    randomConfig: RandomConfigData | None
    linkedEvent: LinkedEventData | None
    rangePattern: RangePatternData | None
    weekday: int | None
    weekNumber: int | None
    seasonalConfig: SeasonalConfigData | None
    conditions: list[ConditionData]
    cachedRandomOccurrences: list[DateData]
