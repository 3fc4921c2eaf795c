"""Exceptions raised by the Almanac schema layer.

The matching engines never raise for bad data; they log and fall back to safe
defaults. Only converting raw dictionaries into models can fail loudly.
"""

from __future__ import annotations


class AlmanacError(Exception):
    """Base class for all Almanac errors."""


class InvalidCalendarError(AlmanacError):
    """Raised when a calendar definition fails validation.

    Attributes:
        path: Location of the offending value inside the definition
    """

    def __init__(self, message: str, path: list[str | int] | None = None) -> None:
        """Initialize InvalidCalendarError.

        Args:
            message: Human-readable validation message
            path: Key path of the invalid value, if known
        """
        self.path = path or []
        location = "/".join(str(part) for part in self.path)
        super().__init__(f"{message} @ {location}" if location else message)


class InvalidRuleError(AlmanacError):
    """Raised when recurrence rule data fails validation.

    Attributes:
        rule_id: Identifier of the rule, when the raw data carried one
        path: Location of the offending value inside the rule data
    """

    def __init__(
        self,
        message: str,
        rule_id: str | None = None,
        path: list[str | int] | None = None,
    ) -> None:
        """Initialize InvalidRuleError.

        Args:
            message: Human-readable validation message
            rule_id: Identifier of the rule being parsed
            path: Key path of the invalid value, if known
        """
        self.rule_id = rule_id
        self.path = path or []
        location = "/".join(str(part) for part in self.path)
        text = f"{message} @ {location}" if location else message
        if rule_id:
            text = f"Rule {rule_id}: {text}"
        super().__init__(text)
