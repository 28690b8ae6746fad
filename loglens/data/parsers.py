"""
Log line parsing rules.

Converts a raw text line into a ParsedRecord (timestamp, level, message).
Parsing never fails for a non-blank line: patterns are tried in a fixed
order, first match wins, and a line that matches nothing becomes an
UNKNOWN-level record carrying the whole line as its message.

Supported shapes, in order:
    2024-01-15 10:30:45 [INFO] Message
    2024-01-15T10:30:45Z [INFO] Message
    Jan 15 10:30:45 [INFO] Message
    [INFO] Message          (also a bare upper-case severity: INFO Message)
    anything else           -> level UNKNOWN, timestamp now

Brackets around the level token are optional after a timestamp.
"""

import logging
import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, List

from loglens.data.normalizers import normalize_timestamp, utc_now
from loglens.data.schema import UNKNOWN_LEVEL, ParsedRecord

logger = logging.getLogger(__name__)

_LEVEL = r"\s*\[?(\w+)\]?\s+(.+)$"

TIMESTAMPED_PATTERNS: List[re.Pattern] = [
    # Standard: 2024-01-15 10:30:45 [INFO] Message
    re.compile(r"^(\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2})" + _LEVEL),
    # ISO 8601: 2024-01-15T10:30:45Z [INFO] Message
    re.compile(r"^(\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z?)" + _LEVEL),
    # Syslog: Jan 15 10:30:45 [INFO] Message
    re.compile(r"^([A-Za-z]{3}\s+\d{1,2}\s+\d{2}:\d{2}:\d{2})" + _LEVEL),
]

LEVEL_ONLY_PATTERNS: List[re.Pattern] = [
    # [INFO] Message
    re.compile(r"^\[(\w+)\]\s*(.+)$"),
    # INFO Message / INFO: Message
    re.compile(
        r"^(TRACE|DEBUG|INFO|NOTICE|WARN|WARNING|ERROR|ERR|CRITICAL|CRIT|FATAL|SEVERE):?\s+(.+)$"
    ),
]


class ParsingError(Exception):
    """Raised when a line cannot be handed to the parser at all."""
    pass


class BaseParser(ABC):
    """
    Abstract base for line parsers.
    """

    @abstractmethod
    def parse(self, line: str) -> ParsedRecord:
        """
        Parse one non-blank log line.

        Raises:
            ParsingError: If the line is blank
        """
        pass


class LineParser(BaseParser):
    """
    Pattern-based parser for plain-text application logs.

    The captured message is kept exactly as found; only the level token
    is upper-cased.
    """

    def __init__(self, now: Callable[[], datetime] = utc_now):
        self.now = now

    def parse(self, line: str) -> ParsedRecord:
        if line is None or not line.strip():
            raise ParsingError("Empty log line")

        line = line.strip()

        for pattern in TIMESTAMPED_PATTERNS:
            match = pattern.match(line)
            if match and match.group(3).strip():
                timestamp = normalize_timestamp(match.group(1), now=self.now)
                return ParsedRecord(
                    timestamp=timestamp.value,
                    level=match.group(2).upper(),
                    message=match.group(3),
                    timestamp_fallback=timestamp.is_fallback,
                )

        for pattern in LEVEL_ONLY_PATTERNS:
            match = pattern.match(line)
            if match and match.group(2).strip():
                return ParsedRecord(
                    timestamp=self.now(),
                    level=match.group(1).upper(),
                    message=match.group(2),
                )

        logger.debug("No pattern matched, keeping line as %s: %.80s", UNKNOWN_LEVEL, line)
        return ParsedRecord(timestamp=self.now(), level=UNKNOWN_LEVEL, message=line)
