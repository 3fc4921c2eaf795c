"""Voluptuous schemas and converters for raw calendar and rule data.

Raw data uses the camelCase JSON shape of the surrounding application. The
converters validate it with voluptuous and build the frozen models the engines
consume. Validation failures are re-raised as ``InvalidCalendarError`` or
``InvalidRuleError`` with the voluptuous error chained as ``__cause__``.

Rule conversion is lenient by default: a rule that is structurally sound but
whose repeat configuration is unusable (unknown repeat type, missing
type-specific config) becomes an ``InvalidPattern`` that never matches.
Pass ``strict=True`` to raise instead.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import voluptuous as vol

from . import const
from .exceptions import InvalidCalendarError, InvalidRuleError
from .models import (
    CalendarDefinition,
    Condition,
    Cycle,
    DailyPattern,
    DateComponents,
    Daylight,
    Era,
    Festival,
    InvalidPattern,
    LeapYearRule,
    LinkedEvent,
    Month,
    MonthlyPattern,
    Moon,
    MoonCondition,
    MoonPattern,
    MoonPhase,
    NeverPattern,
    RandomOccurrenceCache,
    RandomPattern,
    RangeBit,
    RangePattern,
    RecurrenceRule,
    RepeatPattern,
    Season,
    SeasonalPattern,
    WeeklyPattern,
    WeekOfMonthPattern,
    YearlyPattern,
)

# =============================================================================
# Primitive Validators
# =============================================================================

_INT = vol.All(int, msg="expected an integer")
_NON_NEGATIVE_INT = vol.All(int, vol.Range(min=0))
_POSITIVE_INT = vol.All(int, vol.Range(min=1))
_NUMBER = vol.All(vol.Any(int, float, msg="expected a number"), vol.Coerce(float))
_FRACTION = vol.All(_NUMBER, vol.Range(min=0.0, max=1.0))
_OPTIONAL_STR = vol.Any(None, str)


def _unwrap_values(value: Any) -> Any:
    """Accept ``{"values": [...]}`` (or keyed ``{"values": {...}}``) wrappers."""
    if isinstance(value, Mapping) and const.CAL_VALUES in value:
        value = value[const.CAL_VALUES]
    if isinstance(value, Mapping):
        return list(value.values())
    return value


def _named(value: Any) -> Any:
    """Accept either a bare name or a ``{"name": ...}`` entry."""
    if isinstance(value, Mapping):
        return value.get(const.CYCLE_ENTRY_NAME, "")
    return value


DATE_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_YEAR): _INT,
        vol.Required(const.DATA_MONTH): _NON_NEGATIVE_INT,
        vol.Required(const.DATA_DAY): _POSITIVE_INT,
        vol.Optional(const.DATA_HOUR): vol.Any(None, _NON_NEGATIVE_INT),
        vol.Optional(const.DATA_MINUTE): vol.Any(None, _NON_NEGATIVE_INT),
    },
    extra=vol.ALLOW_EXTRA,
)


def date_from_dict(data: Mapping[str, Any]) -> DateComponents:
    """Build DateComponents from an already validated date mapping."""
    return DateComponents(
        year=data[const.DATA_YEAR],
        month=data[const.DATA_MONTH],
        day=data[const.DATA_DAY],
        hour=data.get(const.DATA_HOUR),
        minute=data.get(const.DATA_MINUTE),
    )


# =============================================================================
# Calendar Definition Schemas
# =============================================================================

MONTH_SCHEMA = vol.Schema(
    {
        vol.Required(const.MONTH_NAME): str,
        vol.Required(const.MONTH_DAYS): _NON_NEGATIVE_INT,
        vol.Optional(const.MONTH_LEAP_DAYS): vol.Any(None, _NON_NEGATIVE_INT),
        vol.Optional(const.MONTH_STARTING_WEEKDAY): vol.Any(None, _NON_NEGATIVE_INT),
        vol.Optional(const.MONTH_INTERCALARY, default=False): bool,
    },
    extra=vol.ALLOW_EXTRA,
)

LEAP_YEAR_SCHEMA = vol.Schema(
    {
        vol.Optional(const.LEAP_RULE, default=const.LEAP_RULE_NONE): vol.In(
            const.LEAP_RULES
        ),
        vol.Optional(const.LEAP_INTERVAL, default=0): _NON_NEGATIVE_INT,
        vol.Optional(const.LEAP_START, default=0): _INT,
        vol.Optional(const.LEAP_PATTERN, default=""): vol.Any(None, str),
    },
    extra=vol.ALLOW_EXTRA,
)

FESTIVAL_SCHEMA = vol.Schema(
    {
        vol.Required(const.FESTIVAL_NAME): str,
        vol.Required(const.FESTIVAL_MONTH): _POSITIVE_INT,
        vol.Required(const.FESTIVAL_DAY): _POSITIVE_INT,
        vol.Optional(const.FESTIVAL_COUNTS_FOR_WEEKDAY, default=True): bool,
    },
    extra=vol.ALLOW_EXTRA,
)

SEASON_SCHEMA = vol.Schema(
    {
        vol.Required(const.SEASON_NAME): str,
        vol.Required(const.SEASON_DAY_START): _NON_NEGATIVE_INT,
        vol.Required(const.SEASON_DAY_END): _NON_NEGATIVE_INT,
    },
    extra=vol.ALLOW_EXTRA,
)

MOON_PHASE_SCHEMA = vol.Schema(
    {
        vol.Optional(const.PHASE_NAME, default=""): str,
        vol.Required(const.PHASE_START): _FRACTION,
        vol.Required(const.PHASE_END): _FRACTION,
    },
    extra=vol.ALLOW_EXTRA,
)

MOON_SCHEMA = vol.Schema(
    {
        vol.Required(const.MOON_NAME): str,
        vol.Required(const.MOON_CYCLE_LENGTH): vol.All(_NUMBER, vol.Range(min=0.0, min_included=False)),
        vol.Optional(const.MOON_CYCLE_DAY_ADJUST, default=0.0): _NUMBER,
        vol.Required(const.MOON_REFERENCE_DATE): DATE_SCHEMA,
        vol.Optional(const.MOON_PHASES, default=list): [MOON_PHASE_SCHEMA],
    },
    extra=vol.ALLOW_EXTRA,
)

ERA_SCHEMA = vol.Schema(
    {
        vol.Required(const.ERA_NAME): str,
        vol.Optional(const.ERA_ABBREVIATION, default=""): vol.Any(None, str),
        vol.Required(const.ERA_START_YEAR): _INT,
        vol.Optional(const.ERA_END_YEAR): vol.Any(None, _INT),
    },
    extra=vol.ALLOW_EXTRA,
)

CYCLE_SCHEMA = vol.Schema(
    {
        vol.Required(const.CYCLE_NAME): str,
        vol.Required(const.CYCLE_LENGTH): _POSITIVE_INT,
        vol.Optional(const.CYCLE_OFFSET, default=0): _INT,
        vol.Optional(const.CYCLE_BASED_ON_KEY, default=const.CYCLE_BASED_ON_YEAR): vol.In(
            const.CYCLE_BASED_ON
        ),
        vol.Optional(const.CYCLE_ENTRIES, default=list): [vol.All(_named, str)],
    },
    extra=vol.ALLOW_EXTRA,
)

DAYLIGHT_SCHEMA = vol.Schema(
    {
        vol.Required(const.DAYLIGHT_SUMMER_SOLSTICE): _NON_NEGATIVE_INT,
        vol.Required(const.DAYLIGHT_WINTER_SOLSTICE): _NON_NEGATIVE_INT,
    },
    extra=vol.ALLOW_EXTRA,
)

CALENDAR_SCHEMA = vol.Schema(
    {
        vol.Optional(const.CAL_NAME, default=""): str,
        vol.Required(const.CAL_MONTHS): vol.All([MONTH_SCHEMA], vol.Length(min=1)),
        vol.Required(const.CAL_WEEKDAYS): vol.All([vol.All(_named, str)], vol.Length(min=1)),
        vol.Optional(const.CAL_FIRST_WEEKDAY, default=const.DEFAULT_FIRST_WEEKDAY): _NON_NEGATIVE_INT,
        vol.Optional(const.CAL_YEAR_ZERO, default=const.DEFAULT_YEAR_ZERO): _INT,
        vol.Optional(const.CAL_YEAR_ZERO_EXISTS, default=True): bool,
        vol.Optional(const.CAL_HOURS_PER_DAY, default=const.DEFAULT_HOURS_PER_DAY): _POSITIVE_INT,
        vol.Optional(
            const.CAL_MINUTES_PER_HOUR, default=const.DEFAULT_MINUTES_PER_HOUR
        ): _POSITIVE_INT,
        vol.Optional(
            const.CAL_SECONDS_PER_MINUTE, default=const.DEFAULT_SECONDS_PER_MINUTE
        ): _POSITIVE_INT,
        vol.Optional(const.CAL_LEAP_YEAR): vol.Any(None, LEAP_YEAR_SCHEMA),
        vol.Optional(const.CAL_FESTIVALS, default=list): [FESTIVAL_SCHEMA],
        vol.Optional(const.CAL_SEASONS, default=list): [SEASON_SCHEMA],
        vol.Optional(const.CAL_MOONS, default=list): [MOON_SCHEMA],
        vol.Optional(const.CAL_ERAS, default=list): [ERA_SCHEMA],
        vol.Optional(const.CAL_CYCLES, default=list): [CYCLE_SCHEMA],
        vol.Optional(const.CAL_DAYLIGHT): vol.Any(None, DAYLIGHT_SCHEMA),
    },
    extra=vol.ALLOW_EXTRA,
)


def _normalize_calendar(data: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten the nested layouts the application also stores.

    Handles ``{"values": [...]}`` wrappers, weekdays and time units nested
    under ``days``, ``yearZero``/``firstWeekday`` nested under ``years``,
    ``leapYearConfig`` as an alias of ``leapYear`` and months flagged
    intercalary through ``type``.
    """
    result = dict(data)

    days = result.get(const.CAL_DAYS)
    if isinstance(days, Mapping):
        if const.CAL_WEEKDAYS not in result:
            result[const.CAL_WEEKDAYS] = days.get(const.CAL_VALUES, [])
        for key in (
            const.CAL_HOURS_PER_DAY,
            const.CAL_MINUTES_PER_HOUR,
            const.CAL_SECONDS_PER_MINUTE,
        ):
            if key in days and key not in result:
                result[key] = days[key]

    years = result.get(const.CAL_YEARS)
    if isinstance(years, Mapping):
        for key in (const.CAL_YEAR_ZERO, const.CAL_FIRST_WEEKDAY, const.CAL_YEAR_ZERO_EXISTS):
            if key in years and key not in result:
                result[key] = years[key]

    if const.CAL_LEAP_YEAR not in result and const.CAL_LEAP_YEAR_CONFIG in result:
        result[const.CAL_LEAP_YEAR] = result[const.CAL_LEAP_YEAR_CONFIG]

    for key in (const.CAL_MONTHS, const.CAL_WEEKDAYS, const.CAL_SEASONS):
        if key in result:
            result[key] = _unwrap_values(result[key])

    months = result.get(const.CAL_MONTHS)
    if isinstance(months, list):
        normalized = []
        for month in months:
            if (
                isinstance(month, Mapping)
                and month.get(const.MONTH_TYPE) == const.MONTH_TYPE_INTERCALARY
            ):
                month = {**month, const.MONTH_INTERCALARY: True}
            normalized.append(month)
        result[const.CAL_MONTHS] = normalized
    return result


def _check_calendar_shape(definition: CalendarDefinition) -> None:
    """Cross-field checks voluptuous cannot express per key."""
    week_length = len(definition.weekdays)
    if definition.first_weekday >= week_length:
        raise InvalidCalendarError(
            f"firstWeekday must be below the week length ({week_length})",
            [const.CAL_FIRST_WEEKDAY],
        )
    for index, month in enumerate(definition.months):
        if month.starting_weekday is not None and month.starting_weekday >= week_length:
            raise InvalidCalendarError(
                f"startingWeekday must be below the week length ({week_length})",
                [const.CAL_MONTHS, index, const.MONTH_STARTING_WEEKDAY],
            )
    if sum(month.days for month in definition.months) < 1:
        raise InvalidCalendarError("a common year must contain at least one day", [const.CAL_MONTHS])
    if definition.year_zero == 0 and not definition.year_zero_exists:
        raise InvalidCalendarError(
            "yearZero cannot be 0 when the calendar has no year 0", [const.CAL_YEAR_ZERO]
        )


def calendar_from_dict(data: Mapping[str, Any]) -> CalendarDefinition:
    """Validate raw calendar data and build a CalendarDefinition.

    Args:
        data: Calendar definition in the application's JSON shape.

    Returns:
        Immutable CalendarDefinition.

    Raises:
        InvalidCalendarError: If the data fails validation.
    """
    if not isinstance(data, Mapping):
        raise InvalidCalendarError("calendar definition must be a mapping")
    try:
        valid = CALENDAR_SCHEMA(_normalize_calendar(data))
    except vol.Invalid as err:
        raise InvalidCalendarError(str(err.msg), list(err.path)) from err

    leap = valid.get(const.CAL_LEAP_YEAR) or {}
    daylight = valid.get(const.CAL_DAYLIGHT)
    definition = CalendarDefinition(
        name=valid[const.CAL_NAME],
        months=tuple(
            Month(
                name=month[const.MONTH_NAME],
                days=month[const.MONTH_DAYS],
                leap_days=month.get(const.MONTH_LEAP_DAYS),
                starting_weekday=month.get(const.MONTH_STARTING_WEEKDAY),
                intercalary=month[const.MONTH_INTERCALARY],
            )
            for month in valid[const.CAL_MONTHS]
        ),
        weekdays=tuple(valid[const.CAL_WEEKDAYS]),
        first_weekday=valid[const.CAL_FIRST_WEEKDAY],
        year_zero=valid[const.CAL_YEAR_ZERO],
        year_zero_exists=valid[const.CAL_YEAR_ZERO_EXISTS],
        hours_per_day=valid[const.CAL_HOURS_PER_DAY],
        minutes_per_hour=valid[const.CAL_MINUTES_PER_HOUR],
        seconds_per_minute=valid[const.CAL_SECONDS_PER_MINUTE],
        leap_year=LeapYearRule(
            rule=leap.get(const.LEAP_RULE, const.LEAP_RULE_NONE),
            interval=leap.get(const.LEAP_INTERVAL, 0),
            start=leap.get(const.LEAP_START, 0),
            pattern=leap.get(const.LEAP_PATTERN) or "",
        ),
        festivals=tuple(
            Festival(
                name=festival[const.FESTIVAL_NAME],
                month=festival[const.FESTIVAL_MONTH],
                day=festival[const.FESTIVAL_DAY],
                counts_for_weekday=festival[const.FESTIVAL_COUNTS_FOR_WEEKDAY],
            )
            for festival in valid[const.CAL_FESTIVALS]
        ),
        seasons=tuple(
            Season(
                name=season[const.SEASON_NAME],
                day_start=season[const.SEASON_DAY_START],
                day_end=season[const.SEASON_DAY_END],
            )
            for season in valid[const.CAL_SEASONS]
        ),
        moons=tuple(
            Moon(
                name=moon[const.MOON_NAME],
                cycle_length=moon[const.MOON_CYCLE_LENGTH],
                reference_date=date_from_dict(moon[const.MOON_REFERENCE_DATE]),
                phases=tuple(
                    MoonPhase(
                        name=phase[const.PHASE_NAME],
                        start=phase[const.PHASE_START],
                        end=phase[const.PHASE_END],
                    )
                    for phase in moon[const.MOON_PHASES]
                ),
                cycle_day_adjust=moon[const.MOON_CYCLE_DAY_ADJUST],
            )
            for moon in valid[const.CAL_MOONS]
        ),
        eras=tuple(
            Era(
                name=era[const.ERA_NAME],
                start_year=era[const.ERA_START_YEAR],
                end_year=era.get(const.ERA_END_YEAR),
                abbreviation=era.get(const.ERA_ABBREVIATION) or "",
            )
            for era in valid[const.CAL_ERAS]
        ),
        cycles=tuple(
            Cycle(
                name=cycle[const.CYCLE_NAME],
                length=cycle[const.CYCLE_LENGTH],
                entries=tuple(cycle[const.CYCLE_ENTRIES]),
                offset=cycle[const.CYCLE_OFFSET],
                based_on=cycle[const.CYCLE_BASED_ON_KEY],
            )
            for cycle in valid[const.CAL_CYCLES]
        ),
        daylight=(
            Daylight(
                summer_solstice=daylight[const.DAYLIGHT_SUMMER_SOLSTICE],
                winter_solstice=daylight[const.DAYLIGHT_WINTER_SOLSTICE],
            )
            if daylight
            else None
        ),
    )
    _check_calendar_shape(definition)
    return definition


# =============================================================================
# Rule Schemas
# =============================================================================

_RANGE_BIT = vol.Any(
    None,
    _INT,
    vol.All([vol.Any(None, _INT)], vol.Length(min=2, max=2)),
    msg="expected null, an integer or a [min, max] pair",
)

RANGE_PATTERN_SCHEMA = vol.Schema(
    {
        vol.Optional(const.DATA_YEAR): _RANGE_BIT,
        vol.Optional(const.DATA_MONTH): _RANGE_BIT,
        vol.Optional(const.DATA_DAY): _RANGE_BIT,
    },
    extra=vol.ALLOW_EXTRA,
)

MOON_CONDITION_SCHEMA = vol.Schema(
    {
        vol.Required(const.MOON_CONDITION_MOON_INDEX): _NON_NEGATIVE_INT,
        vol.Required(const.MOON_CONDITION_PHASE_START): _FRACTION,
        vol.Required(const.MOON_CONDITION_PHASE_END): _FRACTION,
    },
    extra=vol.ALLOW_EXTRA,
)

RANDOM_CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(const.RANDOM_SEED, default=0): _INT,
        vol.Optional(const.RANDOM_PROBABILITY, default=10.0): _NUMBER,
        vol.Optional(const.RANDOM_CHECK_INTERVAL, default=const.CHECK_INTERVAL_DAILY): vol.In(
            const.CHECK_INTERVALS
        ),
    },
    extra=vol.ALLOW_EXTRA,
)

LINKED_EVENT_SCHEMA = vol.Schema(
    {
        vol.Required(const.LINKED_NOTE_ID): vol.All(str, vol.Length(min=1)),
        vol.Optional(const.LINKED_OFFSET, default=0): _INT,
    },
    extra=vol.ALLOW_EXTRA,
)

SEASONAL_CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(const.SEASONAL_SEASON_INDEX, default=0): _NON_NEGATIVE_INT,
        vol.Optional(const.SEASONAL_TRIGGER, default=const.SEASON_TRIGGER_ENTIRE): vol.In(
            const.SEASON_TRIGGERS
        ),
    },
    extra=vol.ALLOW_EXTRA,
)

CONDITION_SCHEMA = vol.Schema(
    {
        vol.Required(const.CONDITION_FIELD): str,
        vol.Required(const.CONDITION_OP): str,
        vol.Required(const.CONDITION_VALUE): vol.Any(bool, int, float),
        vol.Optional(const.CONDITION_VALUE2): vol.Any(None, _INT),
        vol.Optional(const.CONDITION_OFFSET, default=0): _INT,
    },
    extra=vol.ALLOW_EXTRA,
)

RULE_SCHEMA = vol.Schema(
    {
        vol.Optional(const.RULE_ID): _OPTIONAL_STR,
        vol.Optional(const.RULE_NAME): _OPTIONAL_STR,
        vol.Required(const.RULE_START_DATE): DATE_SCHEMA,
        vol.Optional(const.RULE_END_DATE): vol.Any(None, DATE_SCHEMA),
        vol.Optional(const.RULE_REPEAT): _OPTIONAL_STR,
        vol.Optional(const.RULE_REPEAT_INTERVAL): vol.Any(None, _INT),
        vol.Optional(const.RULE_REPEAT_END_DATE): vol.Any(None, DATE_SCHEMA),
        vol.Optional(const.RULE_MAX_OCCURRENCES): vol.Any(None, _NON_NEGATIVE_INT),
        vol.Optional(const.RULE_MOON_CONDITIONS, default=list): vol.Any(
            None, [MOON_CONDITION_SCHEMA]
        ),
        vol.Optional(const.RULE_RANDOM_CONFIG): vol.Any(None, RANDOM_CONFIG_SCHEMA),
        vol.Optional(const.RULE_LINKED_EVENT): vol.Any(None, LINKED_EVENT_SCHEMA),
        vol.Optional(const.RULE_RANGE_PATTERN): vol.Any(None, RANGE_PATTERN_SCHEMA),
        vol.Optional(const.RULE_WEEKDAY): vol.Any(None, _NON_NEGATIVE_INT),
        vol.Optional(const.RULE_WEEK_NUMBER): vol.Any(
            None,
            vol.All(
                _INT,
                vol.Range(min=const.WEEK_NUMBER_MIN, max=const.WEEK_NUMBER_MAX),
                vol.NotIn([0], msg="weekNumber cannot be 0"),
            ),
        ),
        vol.Optional(const.RULE_SEASONAL_CONFIG): vol.Any(None, SEASONAL_CONFIG_SCHEMA),
        vol.Optional(const.RULE_CONDITIONS, default=list): vol.Any(None, [CONDITION_SCHEMA]),
        vol.Optional(const.RULE_CACHED_RANDOM_OCCURRENCES): vol.Any(None, [DATE_SCHEMA]),
    },
    extra=vol.ALLOW_EXTRA,
)


def _range_bit(value: Any) -> RangeBit:
    if value is None:
        return RangeBit()
    if isinstance(value, int):
        return RangeBit.exact(value)
    return RangeBit(value[0], value[1])


def _condition_from_valid(valid: Mapping[str, Any]) -> Condition:
    return Condition(
        field=valid[const.CONDITION_FIELD],
        op=valid[const.CONDITION_OP],
        value=valid[const.CONDITION_VALUE],
        value2=valid.get(const.CONDITION_VALUE2),
        offset=valid[const.CONDITION_OFFSET],
    )


def condition_from_dict(data: Mapping[str, Any], strict: bool = False) -> Condition:
    """Validate and convert one generic field condition.

    Unknown fields and operators are kept unless ``strict`` is set; the
    condition evaluator treats them as never satisfied.

    Raises:
        InvalidRuleError: If the data fails validation.
    """
    try:
        valid = CONDITION_SCHEMA(data)
    except vol.Invalid as err:
        raise InvalidRuleError(str(err.msg), path=list(err.path)) from err
    condition = _condition_from_valid(valid)
    if strict:
        _check_condition(condition, None, [])
    return condition


def _check_condition(condition: Condition, rule_id: str | None, path: list[str | int]) -> None:
    if condition.field not in const.CONDITION_FIELDS:
        raise InvalidRuleError(
            f"unknown condition field '{condition.field}'",
            rule_id,
            [*path, const.CONDITION_FIELD],
        )
    if condition.op not in const.CONDITION_OPERATORS:
        raise InvalidRuleError(
            f"unknown condition operator '{condition.op}'", rule_id, [*path, const.CONDITION_OP]
        )


def _invalid_pattern(
    requested: str, reason: str, rule_id: str | None, key: str, strict: bool
) -> InvalidPattern:
    """Raise in strict mode, otherwise log and return a never-matching pattern."""
    if strict:
        raise InvalidRuleError(reason, rule_id, [key])
    const.LOGGER.warning(
        "Rule %s: %s; the rule will never match", rule_id or "<unnamed>", reason
    )
    return InvalidPattern(requested=requested, reason=reason)


def _build_pattern(
    valid: Mapping[str, Any], rule_id: str | None, strict: bool
) -> RepeatPattern:
    """Build the repeat pattern variant for a validated rule mapping."""
    repeat = valid.get(const.RULE_REPEAT) or const.REPEAT_NEVER

    if repeat == const.REPEAT_NEVER:
        return NeverPattern()
    if repeat == const.REPEAT_DAILY:
        return DailyPattern()
    if repeat == const.REPEAT_WEEKLY:
        return WeeklyPattern()
    if repeat == const.REPEAT_MONTHLY:
        return MonthlyPattern()
    if repeat == const.REPEAT_YEARLY:
        return YearlyPattern()
    if repeat == const.REPEAT_WEEK_OF_MONTH:
        return WeekOfMonthPattern(
            weekday=valid.get(const.RULE_WEEKDAY),
            week_number=valid.get(const.RULE_WEEK_NUMBER),
        )
    if repeat == const.REPEAT_SEASONAL:
        config = valid.get(const.RULE_SEASONAL_CONFIG)
        if not config:
            return _invalid_pattern(
                repeat, "seasonal rule requires seasonalConfig", rule_id,
                const.RULE_SEASONAL_CONFIG, strict,
            )
        return SeasonalPattern(
            season_index=config[const.SEASONAL_SEASON_INDEX],
            trigger=config[const.SEASONAL_TRIGGER],
        )
    if repeat == const.REPEAT_RANGE:
        config = valid.get(const.RULE_RANGE_PATTERN)
        if config is None:
            return _invalid_pattern(
                repeat, "range rule requires rangePattern", rule_id,
                const.RULE_RANGE_PATTERN, strict,
            )
        return RangePattern(
            year=_range_bit(config.get(const.DATA_YEAR)),
            month=_range_bit(config.get(const.DATA_MONTH)),
            day=_range_bit(config.get(const.DATA_DAY)),
        )
    if repeat == const.REPEAT_RANDOM:
        config = valid.get(const.RULE_RANDOM_CONFIG)
        if not config:
            return _invalid_pattern(
                repeat, "random rule requires randomConfig", rule_id,
                const.RULE_RANDOM_CONFIG, strict,
            )
        return RandomPattern(
            seed=config[const.RANDOM_SEED],
            probability=config[const.RANDOM_PROBABILITY],
            check_interval=config[const.RANDOM_CHECK_INTERVAL],
        )
    if repeat == const.REPEAT_MOON:
        if not valid.get(const.RULE_MOON_CONDITIONS):
            return _invalid_pattern(
                repeat, "moon rule requires moonConditions", rule_id,
                const.RULE_MOON_CONDITIONS, strict,
            )
        return MoonPattern()
    if repeat == const.REPEAT_LINKED:
        if not valid.get(const.RULE_LINKED_EVENT):
            return _invalid_pattern(
                repeat, "linked rule requires linkedEvent", rule_id,
                const.RULE_LINKED_EVENT, strict,
            )
        # The link overrides the pattern entirely
        return NeverPattern()
    return _invalid_pattern(
        repeat, f"unknown repeat type '{repeat}'", rule_id, const.RULE_REPEAT, strict
    )


def rule_from_dict(data: Mapping[str, Any], strict: bool = False) -> RecurrenceRule:
    """Validate raw rule data and build a RecurrenceRule.

    Args:
        data: Rule data in the application's note-flag shape. Unrelated keys
            (colors, icons, reminders...) are ignored.
        strict: Raise on unusable repeat configuration instead of building a
            never-matching rule.

    Returns:
        Immutable RecurrenceRule.

    Raises:
        InvalidRuleError: If the data is structurally invalid (always) or the
            repeat configuration is unusable (strict mode only).
    """
    if not isinstance(data, Mapping):
        raise InvalidRuleError("rule data must be a mapping")
    rule_id = data.get(const.RULE_ID) if isinstance(data.get(const.RULE_ID), str) else None
    try:
        valid = RULE_SCHEMA(data)
    except vol.Invalid as err:
        raise InvalidRuleError(str(err.msg), rule_id, list(err.path)) from err

    interval = valid.get(const.RULE_REPEAT_INTERVAL)
    if interval is None:
        interval = const.DEFAULT_REPEAT_INTERVAL
    if strict and interval < 1:
        raise InvalidRuleError(
            "repeatInterval must be at least 1", rule_id, [const.RULE_REPEAT_INTERVAL]
        )

    conditions = tuple(
        _condition_from_valid(item) for item in valid.get(const.RULE_CONDITIONS) or []
    )
    if strict:
        for index, condition in enumerate(conditions):
            _check_condition(condition, rule_id, [const.RULE_CONDITIONS, index])

    linked = valid.get(const.RULE_LINKED_EVENT)
    end_date = valid.get(const.RULE_END_DATE)
    repeat_end_date = valid.get(const.RULE_REPEAT_END_DATE)

    return RecurrenceRule(
        start_date=date_from_dict(valid[const.RULE_START_DATE]),
        pattern=_build_pattern(valid, rule_id, strict),
        rule_id=rule_id or "",
        name=valid.get(const.RULE_NAME) or "",
        end_date=date_from_dict(end_date) if end_date else None,
        repeat_interval=interval,
        repeat_end_date=date_from_dict(repeat_end_date) if repeat_end_date else None,
        max_occurrences=valid.get(const.RULE_MAX_OCCURRENCES) or 0,
        moon_conditions=tuple(
            MoonCondition(
                moon_index=item[const.MOON_CONDITION_MOON_INDEX],
                phase_start=item[const.MOON_CONDITION_PHASE_START],
                phase_end=item[const.MOON_CONDITION_PHASE_END],
            )
            for item in valid.get(const.RULE_MOON_CONDITIONS) or []
        ),
        conditions=conditions,
        linked_event=(
            LinkedEvent(
                rule_id=linked[const.LINKED_NOTE_ID],
                offset=linked[const.LINKED_OFFSET],
            )
            if linked
            else None
        ),
    )


# =============================================================================
# Random Occurrence Cache
# =============================================================================

RANDOM_CACHE_SCHEMA = vol.Schema(
    {
        vol.Required(const.RANDOM_CACHE_VALID_FROM): DATE_SCHEMA,
        vol.Required(const.RANDOM_CACHE_VALID_UNTIL): DATE_SCHEMA,
        vol.Optional(const.RANDOM_CACHE_OCCURRENCES, default=list): [DATE_SCHEMA],
    },
    extra=vol.ALLOW_EXTRA,
)


def _day_key(date: DateComponents) -> tuple[int, int, int]:
    return (date.year, date.month, date.day)


def random_cache_from_dict(
    data: Mapping[str, Any] | list[Any],
) -> RandomOccurrenceCache | None:
    """Convert stored random occurrences into a RandomOccurrenceCache.

    Accepts either ``{"validFrom", "validUntil", "occurrences"}`` or the
    legacy bare ``cachedRandomOccurrences`` list, whose validity window is
    taken from its first and last entries. Occurrences are sorted.

    Returns:
        The cache, or None for an empty legacy list.

    Raises:
        InvalidRuleError: If the data fails validation.
    """
    try:
        if isinstance(data, list):
            dates = [DATE_SCHEMA(item) for item in data]
            if not dates:
                return None
            occurrences = sorted((date_from_dict(item) for item in dates), key=_day_key)
            return RandomOccurrenceCache(
                valid_from=occurrences[0].as_day(),
                valid_until=occurrences[-1].as_day(),
                occurrences=tuple(occurrences),
            )
        valid = RANDOM_CACHE_SCHEMA(data)
    except vol.Invalid as err:
        raise InvalidRuleError(
            str(err.msg), path=[const.RULE_CACHED_RANDOM_OCCURRENCES, *err.path]
        ) from err

    return RandomOccurrenceCache(
        valid_from=date_from_dict(valid[const.RANDOM_CACHE_VALID_FROM]),
        valid_until=date_from_dict(valid[const.RANDOM_CACHE_VALID_UNTIL]),
        occurrences=tuple(
            sorted(
                (date_from_dict(item) for item in valid[const.RANDOM_CACHE_OCCURRENCES]),
                key=_day_key,
            )
        ),
    )
