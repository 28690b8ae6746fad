"""
Timestamp normalization for parsed log lines.

Converts the timestamp text captured by the line parser into a UTC
datetime. Normalization never fails: when no known format matches, the
current time is returned and the fallback is flagged so the caller can
count it as a soft error.

Supported formats, tried in order:
- Date-time: 2024-01-15 10:30:45
- ISO 8601 with Z: 2024-01-15T10:30:45Z
- ISO 8601 no Z: 2024-01-15T10:30:45
- Syslog: Jan 15 10:30:45 (current year assumed)
"""

import logging
from datetime import datetime, timezone
from typing import Callable, NamedTuple, Optional

logger = logging.getLogger(__name__)

TIMESTAMP_FORMATS = [
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%SZ",
    "%Y-%m-%dT%H:%M:%S",
]

SYSLOG_FORMAT = "%Y %b %d %H:%M:%S"


class NormalizedTimestamp(NamedTuple):
    """Normalized value plus whether the current-time fallback was used."""

    value: datetime
    is_fallback: bool


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def normalize_timestamp(
    ts_str: Optional[str],
    now: Callable[[], datetime] = utc_now,
) -> NormalizedTimestamp:
    """
    Normalize timestamp string to a UTC datetime.

    Args:
        ts_str: Timestamp text captured from a log line
        now: Clock used for the fallback and the syslog year

    Returns:
        NormalizedTimestamp; is_fallback is True when nothing matched
    """
    current = now()
    if not ts_str or not ts_str.strip():
        return NormalizedTimestamp(current, True)

    ts_str = ts_str.strip()

    for fmt in TIMESTAMP_FORMATS:
        try:
            dt = datetime.strptime(ts_str, fmt)
            return NormalizedTimestamp(dt.replace(tzinfo=timezone.utc), False)
        except ValueError:
            continue

    # Syslog lines carry no year
    try:
        dt = datetime.strptime(f"{current.year} {ts_str}", SYSLOG_FORMAT)
        return NormalizedTimestamp(dt.replace(tzinfo=timezone.utc), False)
    except ValueError:
        pass

    logger.warning("Could not parse timestamp: %s, using current time", ts_str)
    return NormalizedTimestamp(current, True)
