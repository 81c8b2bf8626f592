"""Parsing helpers for human-readable duration settings (``30d``, ``15m``)."""

from __future__ import annotations

import math
import re
from datetime import timedelta
from typing import Final

_DURATION_RE: Final = re.compile(r"^(\d+)(ms|s|m|h|d)?$", re.IGNORECASE)

_UNIT_SECONDS: Final[dict[str, int]] = {
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
}


def parse_duration(value: str | None, default: timedelta) -> timedelta:
    """Convert a duration string into a :class:`~datetime.timedelta`.

    Parameters
    ----------
    value: str | None
        Text such as ``"30d"``, ``"1h"``, ``"900s"`` or ``"900"`` (no unit
        means seconds). ``ms`` values are rounded up to whole seconds.
    default: datetime.timedelta
        Returned when ``value`` is missing or malformed.

    Returns
    -------
    datetime.timedelta
        Parsed duration with one-second resolution.
    """
    if value is None:
        return default
    match = _DURATION_RE.match(value.strip())
    if not match:
        return default
    amount = int(match.group(1))
    unit = (match.group(2) or "s").lower()
    if unit == "ms":
        return timedelta(seconds=math.ceil(amount / 1000))
    return timedelta(seconds=amount * _UNIT_SECONDS[unit])


__all__ = ["parse_duration"]
