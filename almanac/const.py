# File: const.py
"""Constants for the Almanac recurrence engine.

This file centralizes repeat types, condition field names, operators, raw data
keys, defaults and safety limits so that the engines, the schema layer and the
tests all agree on the same literal values.
"""

import logging

# ------------------------------------------------------------------------------------------------
# General
# ------------------------------------------------------------------------------------------------
ALMANAC_TITLE = "Almanac"

# Logger
LOGGER = logging.getLogger(__package__)

# ------------------------------------------------------------------------------------------------
# Safety Limits & Defaults
# ------------------------------------------------------------------------------------------------
# Hard ceiling for every iterative scan (range enumeration, day-by-day searches,
# occurrence counting fallbacks). Independent of caller-supplied limits.
MAX_ITERATIONS = 10000

# Default number of occurrences returned by range enumeration
DEFAULT_MAX_OCCURRENCES = 100

# Default repeat interval ("every 1 unit")
DEFAULT_REPEAT_INTERVAL = 1

# Calendar shape defaults
DEFAULT_WEEK_LENGTH = 7
DEFAULT_HOURS_PER_DAY = 24
DEFAULT_MINUTES_PER_HOUR = 60
DEFAULT_SECONDS_PER_MINUTE = 60
DEFAULT_FIRST_WEEKDAY = 0
DEFAULT_YEAR_ZERO = 0

# Fallback month length when no calendar is available
FALLBACK_DAYS_IN_MONTH = 30

# ------------------------------------------------------------------------------------------------
# Repeat Types
# ------------------------------------------------------------------------------------------------
REPEAT_NEVER = "never"
REPEAT_DAILY = "daily"
REPEAT_WEEKLY = "weekly"
REPEAT_MONTHLY = "monthly"
REPEAT_YEARLY = "yearly"
REPEAT_WEEK_OF_MONTH = "weekOfMonth"
REPEAT_SEASONAL = "seasonal"
REPEAT_RANGE = "range"
REPEAT_RANDOM = "random"
REPEAT_MOON = "moon"
REPEAT_LINKED = "linked"

REPEAT_TYPES = [
    REPEAT_NEVER,
    REPEAT_DAILY,
    REPEAT_WEEKLY,
    REPEAT_MONTHLY,
    REPEAT_YEARLY,
    REPEAT_WEEK_OF_MONTH,
    REPEAT_SEASONAL,
    REPEAT_RANGE,
    REPEAT_RANDOM,
    REPEAT_MOON,
    REPEAT_LINKED,
]

# Seasonal triggers
SEASON_TRIGGER_ENTIRE = "entire"
SEASON_TRIGGER_FIRST_DAY = "firstDay"
SEASON_TRIGGER_LAST_DAY = "lastDay"
SEASON_TRIGGERS = [
    SEASON_TRIGGER_ENTIRE,
    SEASON_TRIGGER_FIRST_DAY,
    SEASON_TRIGGER_LAST_DAY,
]

# Random check intervals
CHECK_INTERVAL_DAILY = "daily"
CHECK_INTERVAL_WEEKLY = "weekly"
CHECK_INTERVAL_MONTHLY = "monthly"
CHECK_INTERVALS = [
    CHECK_INTERVAL_DAILY,
    CHECK_INTERVAL_WEEKLY,
    CHECK_INTERVAL_MONTHLY,
]

# weekOfMonth ordinal bounds (negative counts from the end of the month)
WEEK_NUMBER_MIN = -5
WEEK_NUMBER_MAX = 5

# ------------------------------------------------------------------------------------------------
# Leap Year Rules
# ------------------------------------------------------------------------------------------------
LEAP_RULE_NONE = "none"
LEAP_RULE_SIMPLE = "simple"
LEAP_RULE_GREGORIAN = "gregorian"
LEAP_RULE_CUSTOM = "custom"
LEAP_RULES = [
    LEAP_RULE_NONE,
    LEAP_RULE_SIMPLE,
    LEAP_RULE_GREGORIAN,
    LEAP_RULE_CUSTOM,
]

GREGORIAN_LEAP_PATTERN = "400,!100,4"

# Pattern term markers
LEAP_TERM_SEPARATOR = ","
LEAP_TERM_SUBTRACT = "!"
LEAP_TERM_IGNORE_OFFSET = "+"

# Votes
LEAP_VOTE_ALLOW = 1
LEAP_VOTE_DENY = -1
LEAP_VOTE_ABSTAIN = 0

# ------------------------------------------------------------------------------------------------
# Cycles
# ------------------------------------------------------------------------------------------------
CYCLE_BASED_ON_YEAR = "year"
CYCLE_BASED_ON_ERA_YEAR = "eraYear"
CYCLE_BASED_ON_MONTH = "month"
CYCLE_BASED_ON_MONTH_DAY = "monthDay"
CYCLE_BASED_ON_YEAR_DAY = "yearDay"
CYCLE_BASED_ON_DAY = "day"
CYCLE_BASED_ON = [
    CYCLE_BASED_ON_YEAR,
    CYCLE_BASED_ON_ERA_YEAR,
    CYCLE_BASED_ON_MONTH,
    CYCLE_BASED_ON_MONTH_DAY,
    CYCLE_BASED_ON_YEAR_DAY,
    CYCLE_BASED_ON_DAY,
]

# ------------------------------------------------------------------------------------------------
# Condition Operators
# ------------------------------------------------------------------------------------------------
OP_EQ = "=="
OP_NE = "!="
OP_GTE = ">="
OP_LTE = "<="
OP_GT = ">"
OP_LT = "<"
OP_MOD = "%"
CONDITION_OPERATORS = [OP_EQ, OP_NE, OP_GTE, OP_LTE, OP_GT, OP_LT, OP_MOD]

# ------------------------------------------------------------------------------------------------
# Condition Fields
# ------------------------------------------------------------------------------------------------
# --- Date fields ---
FIELD_YEAR = "year"
FIELD_MONTH = "month"
FIELD_DAY = "day"
FIELD_DAY_OF_YEAR = "dayOfYear"
FIELD_DAYS_BEFORE_MONTH_END = "daysBeforeMonthEnd"

# --- Weekday fields ---
FIELD_WEEKDAY = "weekday"
FIELD_WEEK_NUMBER_IN_MONTH = "weekNumberInMonth"
FIELD_INVERSE_WEEK_NUMBER = "inverseWeekNumber"

# --- Week fields ---
FIELD_WEEK_IN_MONTH = "weekInMonth"
FIELD_WEEK_IN_YEAR = "weekInYear"
FIELD_TOTAL_WEEK = "totalWeek"
FIELD_WEEKS_BEFORE_MONTH_END = "weeksBeforeMonthEnd"
FIELD_WEEKS_BEFORE_YEAR_END = "weeksBeforeYearEnd"

# --- Season fields ---
FIELD_SEASON = "season"
FIELD_SEASON_PERCENT = "seasonPercent"
FIELD_SEASON_DAY = "seasonDay"
FIELD_IS_LONGEST_DAY = "isLongestDay"
FIELD_IS_SHORTEST_DAY = "isShortestDay"
FIELD_IS_SPRING_EQUINOX = "isSpringEquinox"
FIELD_IS_AUTUMN_EQUINOX = "isAutumnEquinox"

# --- Moon fields (moon index carried in value2) ---
FIELD_MOON_PHASE = "moonPhase"
FIELD_MOON_PHASE_INDEX = "moonPhaseIndex"
FIELD_MOON_PHASE_COUNT_MONTH = "moonPhaseCountMonth"
FIELD_MOON_PHASE_COUNT_YEAR = "moonPhaseCountYear"

# --- Other ---
FIELD_CYCLE = "cycle"
FIELD_ERA = "era"
FIELD_ERA_YEAR = "eraYear"
FIELD_INTERCALARY = "intercalary"

CONDITION_FIELDS = [
    FIELD_YEAR,
    FIELD_MONTH,
    FIELD_DAY,
    FIELD_DAY_OF_YEAR,
    FIELD_DAYS_BEFORE_MONTH_END,
    FIELD_WEEKDAY,
    FIELD_WEEK_NUMBER_IN_MONTH,
    FIELD_INVERSE_WEEK_NUMBER,
    FIELD_WEEK_IN_MONTH,
    FIELD_WEEK_IN_YEAR,
    FIELD_TOTAL_WEEK,
    FIELD_WEEKS_BEFORE_MONTH_END,
    FIELD_WEEKS_BEFORE_YEAR_END,
    FIELD_SEASON,
    FIELD_SEASON_PERCENT,
    FIELD_SEASON_DAY,
    FIELD_IS_LONGEST_DAY,
    FIELD_IS_SHORTEST_DAY,
    FIELD_IS_SPRING_EQUINOX,
    FIELD_IS_AUTUMN_EQUINOX,
    FIELD_MOON_PHASE,
    FIELD_MOON_PHASE_INDEX,
    FIELD_MOON_PHASE_COUNT_MONTH,
    FIELD_MOON_PHASE_COUNT_YEAR,
    FIELD_CYCLE,
    FIELD_ERA,
    FIELD_ERA_YEAR,
    FIELD_INTERCALARY,
]

# Season name hints used when a calendar has no daylight settings
SEASON_HINT_SUMMER = "summer"
SEASON_HINT_WINTER = "winter"
SEASON_FALLBACK_SUMMER_INDEX = 1
SEASON_FALLBACK_WINTER_INDEX = 3

# ------------------------------------------------------------------------------------------------
# Raw Data Keys - Dates
# ------------------------------------------------------------------------------------------------
DATA_YEAR = "year"
DATA_MONTH = "month"
DATA_DAY = "day"
DATA_HOUR = "hour"
DATA_MINUTE = "minute"

# ------------------------------------------------------------------------------------------------
# Raw Data Keys - Calendar Definitions
# ------------------------------------------------------------------------------------------------
CAL_NAME = "name"
CAL_MONTHS = "months"
CAL_WEEKDAYS = "weekdays"
CAL_DAYS = "days"
CAL_VALUES = "values"
CAL_FIRST_WEEKDAY = "firstWeekday"
CAL_YEAR_ZERO = "yearZero"
CAL_YEAR_ZERO_EXISTS = "yearZeroExists"
CAL_YEARS = "years"
CAL_HOURS_PER_DAY = "hoursPerDay"
CAL_MINUTES_PER_HOUR = "minutesPerHour"
CAL_SECONDS_PER_MINUTE = "secondsPerMinute"
CAL_LEAP_YEAR = "leapYear"
CAL_LEAP_YEAR_CONFIG = "leapYearConfig"
CAL_FESTIVALS = "festivals"
CAL_SEASONS = "seasons"
CAL_MOONS = "moons"
CAL_ERAS = "eras"
CAL_CYCLES = "cycles"
CAL_DAYLIGHT = "daylight"

MONTH_NAME = "name"
MONTH_DAYS = "days"
MONTH_LEAP_DAYS = "leapDays"
MONTH_STARTING_WEEKDAY = "startingWeekday"
MONTH_INTERCALARY = "intercalary"
MONTH_TYPE = "type"
MONTH_TYPE_INTERCALARY = "intercalary"

LEAP_RULE = "rule"
LEAP_INTERVAL = "interval"
LEAP_START = "start"
LEAP_PATTERN = "pattern"

FESTIVAL_NAME = "name"
FESTIVAL_MONTH = "month"
FESTIVAL_DAY = "day"
FESTIVAL_COUNTS_FOR_WEEKDAY = "countsForWeekday"

SEASON_NAME = "name"
SEASON_DAY_START = "dayStart"
SEASON_DAY_END = "dayEnd"

MOON_NAME = "name"
MOON_CYCLE_LENGTH = "cycleLength"
MOON_CYCLE_DAY_ADJUST = "cycleDayAdjust"
MOON_REFERENCE_DATE = "referenceDate"
MOON_PHASES = "phases"
PHASE_NAME = "name"
PHASE_START = "start"
PHASE_END = "end"

ERA_NAME = "name"
ERA_ABBREVIATION = "abbreviation"
ERA_START_YEAR = "startYear"
ERA_END_YEAR = "endYear"

CYCLE_NAME = "name"
CYCLE_LENGTH = "length"
CYCLE_OFFSET = "offset"
CYCLE_BASED_ON_KEY = "basedOn"
CYCLE_ENTRIES = "entries"
CYCLE_ENTRY_NAME = "name"

DAYLIGHT_SUMMER_SOLSTICE = "summerSolstice"
DAYLIGHT_WINTER_SOLSTICE = "winterSolstice"

# ------------------------------------------------------------------------------------------------
# Raw Data Keys - Rules (note flag data)
# ------------------------------------------------------------------------------------------------
RULE_ID = "id"
RULE_NAME = "name"
RULE_START_DATE = "startDate"
RULE_END_DATE = "endDate"
RULE_REPEAT = "repeat"
RULE_REPEAT_INTERVAL = "repeatInterval"
RULE_REPEAT_END_DATE = "repeatEndDate"
RULE_MAX_OCCURRENCES = "maxOccurrences"
RULE_MOON_CONDITIONS = "moonConditions"
RULE_RANDOM_CONFIG = "randomConfig"
RULE_LINKED_EVENT = "linkedEvent"
RULE_RANGE_PATTERN = "rangePattern"
RULE_WEEKDAY = "weekday"
RULE_WEEK_NUMBER = "weekNumber"
RULE_SEASONAL_CONFIG = "seasonalConfig"
RULE_CONDITIONS = "conditions"
RULE_CACHED_RANDOM_OCCURRENCES = "cachedRandomOccurrences"

MOON_CONDITION_MOON_INDEX = "moonIndex"
MOON_CONDITION_PHASE_START = "phaseStart"
MOON_CONDITION_PHASE_END = "phaseEnd"

RANDOM_SEED = "seed"
RANDOM_PROBABILITY = "probability"
RANDOM_CHECK_INTERVAL = "checkInterval"

LINKED_NOTE_ID = "noteId"
LINKED_OFFSET = "offset"

SEASONAL_SEASON_INDEX = "seasonIndex"
SEASONAL_TRIGGER = "trigger"

CONDITION_FIELD = "field"
CONDITION_OP = "op"
CONDITION_VALUE = "value"
CONDITION_VALUE2 = "value2"
CONDITION_OFFSET = "offset"

# ------------------------------------------------------------------------------------------------
# Descriptions
# ------------------------------------------------------------------------------------------------
DESCRIPTION_NEVER = "Does not repeat"
DESCRIPTION_UNKNOWN = "Unknown recurrence"
DESCRIPTION_UNKNOWN_EVENT = "Unknown event"
DESCRIPTION_ANY = "any"

REPEAT_UNIT_LABELS = {
    REPEAT_DAILY: "day",
    REPEAT_WEEKLY: "week",
    REPEAT_MONTHLY: "month",
    REPEAT_YEARLY: "year",
}

CHECK_INTERVAL_LABELS = {
    CHECK_INTERVAL_DAILY: "day",
    CHECK_INTERVAL_WEEKLY: "week",
    CHECK_INTERVAL_MONTHLY: "month",
}

# ------------------------------------------------------------------------------------------------
# Raw Data Keys - Random Occurrence Cache
# ------------------------------------------------------------------------------------------------
RANDOM_CACHE_VALID_FROM = "validFrom"
RANDOM_CACHE_VALID_UNTIL = "validUntil"
RANDOM_CACHE_OCCURRENCES = "occurrences"
