"""
Custom exceptions for LogLens.

These exceptions provide clear error semantics across the system.
Use them to distinguish between rejected input, provider failures,
and data integrity problems.
"""


class LogLensError(Exception):
    """Base exception for all LogLens failures."""
    pass


class DataValidationError(LogLensError):
    """Raised when an uploaded file fails validation."""
    pass


class EmptyFileError(DataValidationError):
    """Raised when an uploaded file has zero bytes."""
    pass


class FileTooLargeError(DataValidationError):
    """Raised when an uploaded file exceeds the size ceiling."""
    pass


class UnsupportedTypeError(DataValidationError):
    """Raised when the declared content type is not a text type."""
    pass


class EmptyInputError(LogLensError, ValueError):
    """Raised when a blank message is handed to the provider client. Never retried."""
    pass


class AIServiceError(LogLensError):
    """Base class for provider failures that are worth retrying."""
    pass


class ServiceError(AIServiceError):
    """Raised when the provider answers with a non-success status or an unusable body."""
    pass


class TransportError(AIServiceError):
    """Raised on connection failures and timeouts."""
    pass


class DimensionMismatchError(LogLensError, ValueError):
    """Raised when two embeddings of different length are compared."""
    pass


class ConfigurationError(LogLensError):
    """Raised when configuration is invalid or missing."""
    pass


class NotFoundError(LogLensError):
    """Raised when a stored log record does not exist or belongs to another user."""
    pass
