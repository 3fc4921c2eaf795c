"""Engine modules for Almanac.

Contains the computation engines:
- condition_engine: Generic field conditions over dates
- random_engine: Seeded randomness and random occurrence caches
- recurrence_engine: Matching, enumeration and counting of recurrence rules
- description: Human-readable recurrence summaries
"""

from .condition_engine import ConditionEngine, evaluate_conditions, get_field_value
from .description import get_recurrence_description
from .random_engine import (
    generate_random_occurrences,
    matches_random,
    needs_regeneration,
    seeded_random,
)
from .recurrence_engine import (
    RecurrenceEngine,
    count_occurrences_up_to,
    get_occurrences_in_range,
    is_recurring_match,
)

__all__ = [
    "ConditionEngine",
    "RecurrenceEngine",
    "count_occurrences_up_to",
    "evaluate_conditions",
    "generate_random_occurrences",
    "get_field_value",
    "get_occurrences_in_range",
    "get_recurrence_description",
    "is_recurring_match",
    "matches_random",
    "needs_regeneration",
    "seeded_random",
]
