"""
Upload validation and line reading.

Checks an uploaded file before any processing starts, decodes it into
non-blank lines, and slices the lines into fixed-size batches for the
orchestrator.

Design:
- Validation errors are raised, never returned
- The whole file is read before processing begins
- Blank lines are dropped here and never reach the parser
"""

import logging
import re
from typing import List, Optional, Sequence, TypeVar

from loglens.core.config import ProcessingConfig
from loglens.core.exceptions import EmptyFileError, FileTooLargeError, UnsupportedTypeError
from loglens.data.schema import UploadedFile

logger = logging.getLogger(__name__)

_LINE_BREAK = re.compile(r"\r\n|\r|\n")

T = TypeVar("T")


def validate_upload(upload: UploadedFile, settings: ProcessingConfig) -> None:
    """
    Validate size and declared content type of an upload.

    Raises:
        EmptyFileError: File has zero bytes
        FileTooLargeError: File exceeds settings.max_file_size_bytes
        UnsupportedTypeError: Content type is neither text nor octet-stream
    """
    if upload.size == 0:
        raise EmptyFileError("Uploaded file is empty")

    if upload.size > settings.max_file_size_bytes:
        limit_mb = settings.max_file_size_bytes // (1024 * 1024)
        raise FileTooLargeError(f"File size exceeds maximum limit of {limit_mb}MB")

    if not is_supported_content_type(upload.content_type, settings):
        raise UnsupportedTypeError("Invalid file type. Only text files are supported.")


def is_supported_content_type(content_type: Optional[str], settings: ProcessingConfig) -> bool:
    """
    A missing content type is accepted; parameters such as charset are ignored.
    """
    if not content_type:
        return True
    media_type = content_type.split(";", 1)[0].strip().lower()
    if media_type in settings.allowed_content_types:
        return True
    return any(media_type.startswith(prefix) for prefix in settings.allowed_content_type_prefixes)


def read_lines(content: bytes, encoding: str = "utf-8") -> List[str]:
    """
    Decode file content and return its non-blank lines, trimmed.

    Undecodable bytes are replaced rather than failing the file.
    """
    text = content.decode(encoding, errors="replace").lstrip("\ufeff")
    lines = []
    for line in _LINE_BREAK.split(text):
        line = line.strip()
        if line:
            lines.append(line)
    return lines


def create_batches(items: Sequence[T], batch_size: int) -> List[List[T]]:
    """
    Split items into contiguous slices of at most batch_size.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    return [list(items[i:i + batch_size]) for i in range(0, len(items), batch_size)]
