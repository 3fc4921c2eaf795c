"""Almanac: calendar-agnostic date model and recurrence engine.

Answers "does event X occur on date D?" and "list the occurrences of X in
[A, B]" for arbitrary calendars: custom month lengths, intercalary days,
custom week lengths, leap-year voting patterns, seasons, moons, eras and
numeric cycles.

Typical use:
    calendar = DefinitionCalendar.from_dict(definition_data)
    rule = rule_from_dict(note_data)
    engine = RecurrenceEngine(calendar)
    engine.get_occurrences_in_range(rule, start, end)
"""

from .engines import (
    ConditionEngine,
    RecurrenceEngine,
    count_occurrences_up_to,
    evaluate_conditions,
    generate_random_occurrences,
    get_field_value,
    get_occurrences_in_range,
    get_recurrence_description,
    is_recurring_match,
    matches_random,
    needs_regeneration,
    seeded_random,
)
from .exceptions import AlmanacError, InvalidCalendarError, InvalidRuleError
from .models import (
    CalendarDefinition,
    Condition,
    DateComponents,
    LeapYearRule,
    LinkedEvent,
    MoonCondition,
    RandomOccurrenceCache,
    RangeBit,
    RecurrenceRule,
    RepeatPattern,
)
from .presets import GREGORIAN, gregorian_calendar
from .providers import (
    CalendarProvider,
    DefinitionCalendar,
    MappingRuleResolver,
    RuleResolver,
)
from .schemas import (
    calendar_from_dict,
    condition_from_dict,
    random_cache_from_dict,
    rule_from_dict,
)
from .utils.leap_year import count_leap_years, is_leap_year, leap_cycle_length

__all__ = [
    "GREGORIAN",
    "AlmanacError",
    "CalendarDefinition",
    "CalendarProvider",
    "Condition",
    "ConditionEngine",
    "DateComponents",
    "DefinitionCalendar",
    "InvalidCalendarError",
    "InvalidRuleError",
    "LeapYearRule",
    "LinkedEvent",
    "MappingRuleResolver",
    "MoonCondition",
    "RandomOccurrenceCache",
    "RangeBit",
    "RecurrenceEngine",
    "RecurrenceRule",
    "RepeatPattern",
    "RuleResolver",
    "calendar_from_dict",
    "condition_from_dict",
    "count_leap_years",
    "count_occurrences_up_to",
    "evaluate_conditions",
    "generate_random_occurrences",
    "get_field_value",
    "get_occurrences_in_range",
    "get_recurrence_description",
    "gregorian_calendar",
    "is_leap_year",
    "is_recurring_match",
    "leap_cycle_length",
    "matches_random",
    "needs_regeneration",
    "random_cache_from_dict",
    "rule_from_dict",
    "seeded_random",
]
