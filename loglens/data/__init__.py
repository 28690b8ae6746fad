"""
Data module: Upload validation, line parsing, timestamp normalization, and
the record schema.

Pipeline:

    Uploaded file bytes
        ↓
    Validation + line reading (loglens/data/ingestion.py)
        ↓
    Parsing (loglens/data/parsers.py) → ParsedRecord
        ↓
    Timestamp normalization (loglens/data/normalizers.py)
        ↓
    Ready for embedding and anomaly scoring
"""

from loglens.data.ingestion import (
    create_batches,
    is_supported_content_type,
    read_lines,
    validate_upload,
)
from loglens.data.normalizers import (
    NormalizedTimestamp,
    normalize_timestamp,
)
from loglens.data.parsers import (
    BaseParser,
    LineParser,
    ParsingError,
)
from loglens.data.schema import (
    UNKNOWN_LEVEL,
    LogRecord,
    Page,
    ParsedRecord,
    ProcessingResult,
    ProcessingStats,
    UploadedFile,
    User,
)

__all__ = [
    # Schema
    "UNKNOWN_LEVEL",
    "User",
    "ParsedRecord",
    "LogRecord",
    "ProcessingStats",
    "ProcessingResult",
    "UploadedFile",
    "Page",

    # Ingestion
    "validate_upload",
    "is_supported_content_type",
    "read_lines",
    "create_batches",

    # Parsing
    "BaseParser",
    "LineParser",
    "ParsingError",

    # Normalization
    "NormalizedTimestamp",
    "normalize_timestamp",
]
