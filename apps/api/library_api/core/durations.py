"""Parsing of human readable token lifetimes such as ``"1d"`` or ``"30m"``."""

from __future__ import annotations

import math
import re
from datetime import timedelta
from typing import Union

DurationLike = Union[int, float, str, timedelta]

_DURATION_PATTERN = re.compile(
    r"^(?P<amount>-?(?:\d+)?\.?\d+)\s*(?P<unit>[a-z]+)?$",
    re.IGNORECASE,
)

_UNIT_SECONDS = {
    "ms": 0.001,
    "msec": 0.001,
    "msecs": 0.001,
    "millisecond": 0.001,
    "milliseconds": 0.001,
    "s": 1,
    "sec": 1,
    "secs": 1,
    "second": 1,
    "seconds": 1,
    "m": 60,
    "min": 60,
    "mins": 60,
    "minute": 60,
    "minutes": 60,
    "h": 3600,
    "hr": 3600,
    "hrs": 3600,
    "hour": 3600,
    "hours": 3600,
    "d": 86400,
    "day": 86400,
    "days": 86400,
    "w": 604800,
    "week": 604800,
    "weeks": 604800,
    "y": 31557600,
    "yr": 31557600,
    "yrs": 31557600,
    "year": 31557600,
    "years": 31557600,
}


def parse_expires_in(value: DurationLike) -> timedelta:
    """Convert a token lifetime into a positive ``timedelta``.

    Numbers are seconds. Strings carry an optional unit (``"90s"``,
    ``"12h"``, ``"1.5 hours"``); a string without a unit is read as
    milliseconds, matching the ``JWT_EXPIRES_IN`` format the API has always
    accepted.
    """
    if isinstance(value, timedelta):
        delta = value
    elif isinstance(value, bool):
        raise ValueError("expiry must be a number, a duration string or a timedelta")
    elif isinstance(value, (int, float)):
        if not math.isfinite(value):
            raise ValueError("expiry must be finite")
        try:
            delta = timedelta(seconds=value)
        except OverflowError as exc:
            raise ValueError(f"duration {value!r} is too large") from exc
    elif isinstance(value, str):
        match = _DURATION_PATTERN.match(value.strip())
        if match is None:
            raise ValueError(f"unrecognised duration {value!r}")
        unit = (match.group("unit") or "ms").lower()
        if unit not in _UNIT_SECONDS:
            raise ValueError(f"unknown duration unit {unit!r} in {value!r}")
        try:
            delta = timedelta(seconds=float(match.group("amount")) * _UNIT_SECONDS[unit])
        except OverflowError as exc:
            raise ValueError(f"duration {value!r} is too large") from exc
    else:
        raise ValueError("expiry must be a number, a duration string or a timedelta")

    if delta.total_seconds() <= 0:
        raise ValueError("expiry must be positive")
    return delta
