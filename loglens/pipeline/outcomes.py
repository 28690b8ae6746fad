"""
Typed results of the per-line pipeline.

Each worker returns exactly one of these instead of raising, and the
orchestrator counts a LineSuccess as processed and a LineFailure as an error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from loglens.data.schema import LogRecord


@dataclass(frozen=True)
class LineSuccess:
    record: LogRecord
    timestamp_fallback: bool = False


@dataclass(frozen=True)
class LineFailure:
    line: str
    error: str


LineOutcome = Union[LineSuccess, LineFailure]
