"""Type utilities for configuration processing.

These coerce raw YAML (or command line) values into the types the
calculators expect, raising `ConfigError` with the offending key.
"""

import datetime

from .exceptions import ConfigError

DATE_FORMAT = "%Y-%m-%d"


def expand_key(key) -> str:
    """
    Expand an option key for display or lookup, e.g. `start_date` -> `start date`.
    """
    return str(key).replace("_", " ").lower()


def force_list(val) -> list:
    """
    Ensure the value is a list.
    """
    return list(val) if isinstance(val, (list, tuple)) else [val]


def force_int(key, value) -> int:
    """
    Convert value to int, raise ConfigError on failure.
    """
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"Could not convert value `{value}` for key `{expand_key(key)}` to integer"
        ) from None


def force_float(key, value) -> float:
    """
    Convert value to float, raise ConfigError on failure.
    """
    try:
        return float(value)
    except (TypeError, ValueError):
        raise ConfigError(
            f"Could not convert value `{value}` for key `{expand_key(key)}` to decimal"
        ) from None


def force_date(key, value) -> datetime.date:
    """
    Ensure value is a datetime.date. Strings must be in YYYY-MM-DD format.
    """
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        try:
            return datetime.datetime.strptime(value.strip(), DATE_FORMAT).date()
        except ValueError:
            pass
    raise ConfigError(f"Value `{value}` for key `{expand_key(key)}` is not a date")
