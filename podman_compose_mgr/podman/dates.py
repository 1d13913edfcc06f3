"""Parsing and presentation of the timestamps podman reports."""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from ..errors import DateParseError

#: Ordering stand-in for images the runtime has never seen; sorts oldest.
NEVER_OBSERVED = datetime(1900, 1, 1, tzinfo=timezone.utc)

_DATE_PATTERN = re.compile(
    r"(?P<date>\d{4}-\d{2}-\d{2}) +(?P<time>\d{2}:\d{2}:\d{2})(?:\.(?P<fraction>\d+))?"
    r" *(?P<tz_offset>[+-]\d{2}:?\d{2}|Z)?"
)


def parse_podman_date(raw: str) -> datetime:
    """Parse a podman date string into an aware datetime.

    podman prints shapes such as ``2024-10-03 12:28:30.701255218 +0100 +0100``,
    ``2024-10-03T12:28:30Z`` or a bare ``2024-10-03 12:28:30``. The first
    datetime and offset are used; a missing offset means UTC.
    """
    text = raw.strip().replace("T", " ")
    match = _DATE_PATTERN.search(text)
    if match is None:
        raise DateParseError(f"Unrecognized podman date: {raw!r}")

    try:
        parsed = datetime.strptime(f"{match.group('date')} {match.group('time')}", "%Y-%m-%d %H:%M:%S")
    except ValueError as exc:
        raise DateParseError(f"Invalid podman date {raw!r}: {exc}") from exc

    fraction = match.group("fraction")
    if fraction:
        parsed = parsed.replace(microsecond=int(fraction[:6].ljust(6, "0")))

    return parsed.replace(tzinfo=_offset(match.group("tz_offset")))


def _offset(value: Optional[str]) -> timezone:
    if not value or value == "Z":
        return timezone.utc
    sign = -1 if value[0] == "-" else 1
    digits = value[1:].replace(":", "")
    hours, minutes = int(digits[:2]), int(digits[2:])
    if hours > 23 or minutes > 59:
        raise DateParseError(f"Invalid timezone offset: {value!r}")
    return timezone(sign * timedelta(hours=hours, minutes=minutes))


def staleness_key(value: Optional[datetime]) -> datetime:
    """Sort key that places never-observed images before everything else."""
    return value if value is not None else NEVER_OBSERVED


def format_time_ago(value: Optional[datetime], now: Optional[datetime] = None) -> str:
    if value is None:
        return "never"
    current = now or datetime.now(timezone.utc)
    seconds = max(0, int((current - value).total_seconds()))
    days, rest = divmod(seconds, 86_400)
    if days > 0:
        return f"{days} days ago"
    hours, rest = divmod(rest, 3_600)
    if hours > 0:
        return f"{hours} hours ago"
    minutes, seconds = divmod(rest, 60)
    if minutes > 0:
        return f"{minutes} minutes ago"
    return f"{seconds} seconds ago"


__all__ = ["NEVER_OBSERVED", "format_time_ago", "parse_podman_date", "staleness_key"]
