"""Human-readable durations and sizes, and parsing of size strings."""

from __future__ import annotations

import re
from datetime import timedelta
from typing import Mapping, Sequence, Union

KB = 1000
MB = 1000 * KB
GB = 1000 * MB
TB = 1000 * GB
PB = 1000 * TB

KiB = 1024
MiB = 1024 * KiB
GiB = 1024 * MiB
TiB = 1024 * GiB
PiB = 1024 * TiB

_DECIMAL_MAP = {"k": KB, "m": MB, "g": GB, "t": TB, "p": PB}
_BINARY_MAP = {"k": KiB, "m": MiB, "g": GiB, "t": TiB, "p": PiB}
_SIZE_RE = re.compile(r"([0-9]+)([kKmMgGtTpP])?[bB]?")
_INT64_MAX = 2**63 - 1

DECIMAL_ABBRS = ("B", "kB", "MB", "GB", "TB", "PB", "EB", "ZB", "YB")
BINARY_ABBRS = ("B", "KiB", "MiB", "GiB", "TiB", "PiB", "EiB", "ZiB", "YiB")


def human_duration(duration: Union[timedelta, float, int]) -> str:
    """Return an approximate description of a duration, e.g. "About a minute".

    ``duration`` is a ``timedelta`` or a number of seconds.
    """
    total = duration.total_seconds() if isinstance(duration, timedelta) else float(duration)
    seconds = int(total)
    if seconds < 1:
        return "Less than a second"
    if seconds < 60:
        return f"{seconds} seconds"
    minutes = int(total / 60)
    if minutes == 1:
        return "About a minute"
    if minutes < 60:
        return f"{minutes} minutes"
    hours = int(total / 3600)
    if hours == 1:
        return "About an hour"
    if hours < 48:
        return f"{hours} hours"
    if hours < 24 * 7 * 2:
        return f"{hours // 24} days"
    if hours < 24 * 30 * 3:
        return f"{hours // 24 // 7} weeks"
    if hours < 24 * 365 * 2:
        return f"{hours // 24 // 30} months"
    return f"{hours // 24 // 365} years"


def custom_size(fmt: str, size: float, base: float, abbrs: Sequence[str]) -> str:
    """Scale ``size`` by ``base`` until it drops below it and format it with ``fmt``."""
    index = 0
    while size >= base:
        size /= base
        index += 1
    return fmt % (size, abbrs[index])


def human_size(size: float) -> str:
    """Return a decimal size with at most four significant digits, e.g. "2.746 MB"."""
    return custom_size("%.4g %s", size, 1000.0, DECIMAL_ABBRS)


def bytes_size(size: float) -> str:
    """Return a binary size with at most four significant digits, e.g. "17 MiB"."""
    return custom_size("%.4g %s", size, 1024.0, BINARY_ABBRS)


def from_human_size(size: str) -> int:
    """Parse a decimal size such as "44kB" into a number of bytes."""
    return _parse_size(size, _DECIMAL_MAP)


def ram_in_bytes(size: str) -> int:
    """Parse a binary size such as "17MB" (meaning MiB) into a number of bytes."""
    return _parse_size(size, _BINARY_MAP)


def _parse_size(text: str, units: Mapping[str, int]) -> int:
    match = _SIZE_RE.fullmatch(text)
    if match is None:
        raise ValueError(f"invalid size: '{text}'")
    value = int(match.group(1))
    if value > _INT64_MAX:
        raise ValueError(f"value out of range: '{match.group(1)}'")
    prefix = (match.group(2) or "").lower()
    return value * units.get(prefix, 1)