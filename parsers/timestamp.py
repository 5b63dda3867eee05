# ABOUTME: RFC3339 timestamp codec for OSV "modified", "published" and "withdrawn" fields
# ABOUTME: Decodes zoned RFC3339 text to UTC datetimes and encodes them back with a "Z" suffix

import re
from datetime import datetime, timedelta, timezone
from typing import Any

from .errors import DecodeError

RFC3339_PATTERN = re.compile(
    r"^(?P<year>\d{4})-(?P<month>\d{2})-(?P<day>\d{2})"
    r"[Tt](?P<hour>\d{2}):(?P<minute>\d{2}):(?P<second>\d{2})"
    r"(?:\.(?P<fraction>\d+))?"
    r"(?P<offset>[Zz]|[+-]\d{2}:\d{2})$",
    re.ASCII,
)


def decode_timestamp(text: Any, path: str = "") -> datetime:
    """Parse an RFC3339 date-time with an explicit offset into a UTC datetime.

    Fractional seconds beyond microseconds are truncated.
    """
    if not isinstance(text, str):
        raise DecodeError(path, "malformed timestamp: expected a string", text)

    match = RFC3339_PATTERN.fullmatch(text)
    if not match:
        raise DecodeError(path, f"malformed timestamp: {text}", text)

    fraction = (match.group("fraction") or "")[:6].ljust(6, "0")

    try:
        tz = _parse_offset(match.group("offset"))
        value = datetime(
            int(match.group("year")),
            int(match.group("month")),
            int(match.group("day")),
            int(match.group("hour")),
            int(match.group("minute")),
            int(match.group("second")),
            int(fraction),
            tzinfo=tz,
        )
        return value.astimezone(timezone.utc)
    except (ValueError, OverflowError) as e:
        raise DecodeError(path, f"malformed timestamp: {text} ({e})", text)


def encode_timestamp(value: datetime) -> str:
    """Format a datetime as RFC3339 in UTC.

    Fractional seconds are written in millisecond or microsecond groups and
    omitted entirely when zero.
    """
    if value.tzinfo is None or value.utcoffset() is None:
        raise ValueError("Cannot encode a naive datetime as an instant")

    instant = value.astimezone(timezone.utc)
    text = (
        f"{instant.year:04d}-{instant.month:02d}-{instant.day:02d}"
        f"T{instant.hour:02d}:{instant.minute:02d}:{instant.second:02d}"
    )

    if instant.microsecond:
        if instant.microsecond % 1000 == 0:
            text += f".{instant.microsecond // 1000:03d}"
        else:
            text += f".{instant.microsecond:06d}"

    return text + "Z"


def _parse_offset(token: str) -> timezone:
    if token in ("Z", "z"):
        return timezone.utc

    sign = -1 if token[0] == "-" else 1
    hours, minutes = int(token[1:3]), int(token[4:6])
    if hours > 23 or minutes > 59:
        raise ValueError(f"offset out of range: {token}")

    return timezone(sign * timedelta(hours=hours, minutes=minutes))
