"""
unicache — TTL helpers

TTLs are accepted as ``datetime.timedelta`` or as a number of seconds.
A zero TTL means "never expires"; a negative TTL is rejected.
"""

import math
import re
from datetime import timedelta
from numbers import Real

from .errors import InvalidTTLError

TTL = timedelta | int | float

_UNIT_SECONDS: dict[str, float] = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_BARE_NUMBER = re.compile(r"[-+]?(\d+(\.\d*)?|\.\d+)")


def validate_ttl(ttl: TTL, scheme: str | None = None) -> float:
    """
    Validate a TTL and normalize it to seconds.

    Args:
        ttl: timedelta or number of seconds
        scheme: Driver scheme, used to label the error

    Returns:
        TTL in seconds (0.0 = no expiry)

    Raises:
        InvalidTTLError: If the TTL is negative, infinite or not a duration
    """
    if isinstance(ttl, timedelta):
        seconds = ttl.total_seconds()
    elif isinstance(ttl, Real) and not isinstance(ttl, bool):
        seconds = float(ttl)
    else:
        raise InvalidTTLError(ttl, scheme=scheme)

    if seconds < 0 or not math.isfinite(seconds):
        raise InvalidTTLError(ttl, scheme=scheme)
    return seconds


def parse_duration(text: str) -> timedelta:
    """
    Parse a duration string such as ``"300ms"``, ``"1.5h"`` or ``"2h45m"``.

    A bare number is read as seconds. Valid units are
    ``ns``, ``us`` (or ``µs``), ``ms``, ``s``, ``m`` and ``h``.

    Raises:
        ValueError: If the string is not a duration
    """
    raw = text.strip()
    if not raw:
        raise ValueError("empty duration")

    if _BARE_NUMBER.fullmatch(raw):
        return timedelta(seconds=float(raw))

    sign = 1.0
    body = raw
    if body[0] in "+-":
        sign = -1.0 if body[0] == "-" else 1.0
        body = body[1:]

    total = 0.0
    pos = 0
    for match in _COMPONENT.finditer(body):
        if match.start() != pos:
            break
        total += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
        pos = match.end()

    if pos == 0 or pos != len(body):
        raise ValueError(f"invalid duration: {text!r}")

    return timedelta(seconds=sign * total)
