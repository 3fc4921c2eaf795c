# File: utils/__init__.py
"""Pure Python utilities for Almanac.

This module contains pure functions over models and a caller-supplied
calendar provider. Nothing here reads ambient state.

Submodules:
    - leap_year: Leap pattern parsing, voting and leap counting
    - date_utils: Date comparison, measurement and arithmetic

Usage:
    from . import date_utils
    from .leap_year import is_leap_year
"""

from . import date_utils, leap_year

__all__ = ["date_utils", "leap_year"]
