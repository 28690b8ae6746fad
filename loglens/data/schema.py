"""
Canonical data model for the log ingestion pipeline.

This module defines the parsed form of a single log line, the persisted
log record with its embedding and anomaly verdict, and the value objects
returned from one file-processing run.

Design rationale:
- All timestamps are timezone-aware UTC
- Level is kept as the upper-cased token found in the line (not an enum),
  with "UNKNOWN" when the line carries none
- ProcessingStats is the only mutable accumulator and is touched solely
  by the orchestrating thread
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel, Field, PrivateAttr, field_validator

UNKNOWN_LEVEL = "UNKNOWN"


class User(BaseModel):
    """
    Resolved caller identity. Owns zero or more LogRecords.
    """

    id: str = Field(..., min_length=1)
    email: Optional[str] = None
    name: Optional[str] = None


class ParsedRecord(BaseModel):
    """
    Structured form of one raw log line.

    Attributes:
        timestamp: Event time (ingestion time when the line had none)
        level: Upper-cased level token, or UNKNOWN
        message: Non-blank message text, unmodified apart from trimming
        timestamp_fallback: True when a timestamp was present but unparseable
    """

    timestamp: datetime
    level: str = UNKNOWN_LEVEL
    message: str = Field(..., min_length=1)
    timestamp_fallback: bool = False

    @field_validator("message")
    @classmethod
    def _message_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("message must not be blank")
        return value


class LogRecord(BaseModel):
    """
    Persisted log entry owned by a user.

    Attributes:
        id: Storage identifier, assigned on save
        user_id: Owning user
        timestamp: Event time from the parsed line
        message: Log message text
        level: Level token
        embedding: Semantic vector computed by the provider
        is_anomaly: Verdict against the user's baseline
        explanation: Provider explanation (anomalies only)
        similarity_score: Similarity to the nearest baseline log (anomalies only)
        created_at: Set when first persisted
    """

    id: Optional[int] = None
    user_id: str
    timestamp: datetime
    message: str
    level: str
    embedding: List[float] = Field(default_factory=list)
    is_anomaly: bool = False
    explanation: Optional[str] = None
    similarity_score: Optional[float] = None
    created_at: Optional[datetime] = None


class ProcessingStats(BaseModel):
    """
    Aggregate counters for one file-processing run.

    The orchestrator mutates one instance while a file is processed and
    returns a frozen snapshot of it; assigning to a snapshot raises
    AttributeError.
    """

    file_name: Optional[str] = None
    file_size: int = 0
    total_lines: int = 0
    processed_lines: int = 0
    anomalies_detected: int = 0
    error_count: int = 0
    timestamp_fallbacks: int = 0
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    error_message: Optional[str] = None

    _frozen: bool = PrivateAttr(default=False)

    def __setattr__(self, name: str, value: object) -> None:
        if not name.startswith("_") and getattr(self, "_frozen", False):
            raise AttributeError(f"ProcessingStats is read-only, cannot set {name!r}")
        super().__setattr__(name, value)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> ProcessingStats:
        """Return a read-only copy of the current counters."""
        snapshot = self.model_copy()
        snapshot._frozen = True
        return snapshot

    def increment_error_count(self) -> None:
        self.error_count += 1

    @property
    def anomaly_percentage(self) -> float:
        if self.processed_lines <= 0:
            return 0.0
        return self.anomalies_detected / self.processed_lines * 100

    @property
    def success_rate(self) -> float:
        if self.total_lines <= 0:
            return 0.0
        return self.processed_lines / self.total_lines * 100

    @property
    def processing_duration(self) -> Optional[timedelta]:
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time - self.start_time

    def summary(self) -> dict:
        """Serializable view including derived metrics."""
        data = self.model_dump(mode="json")
        data["anomaly_percentage"] = self.anomaly_percentage
        data["success_rate"] = self.success_rate
        duration = self.processing_duration
        data["processing_duration_ms"] = (
            int(duration.total_seconds() * 1000) if duration is not None else None
        )
        return data


class ProcessingResult(BaseModel):
    """
    Terminal output of a file-processing run. Callers must check success.
    """

    stats: ProcessingStats
    records: List[LogRecord] = Field(default_factory=list)
    success: bool
    error_message: Optional[str] = None


class UploadedFile(BaseModel):
    """
    An uploaded file as received at the upload boundary.
    """

    file_name: Optional[str] = None
    content_type: Optional[str] = None
    content: bytes = b""

    @property
    def size(self) -> int:
        return len(self.content)


class Page(BaseModel):
    """
    One page of stored log records.
    """

    items: List[LogRecord] = Field(default_factory=list)
    page: int = Field(0, ge=0)
    size: int = Field(20, ge=1)
    total_elements: int = Field(0, ge=0)

    @property
    def total_pages(self) -> int:
        if self.total_elements == 0:
            return 0
        return (self.total_elements + self.size - 1) // self.size
