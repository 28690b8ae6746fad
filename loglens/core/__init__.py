"""
Core module: Configuration, logging, and exception handling.
"""

from .config import AIServiceConfig, Config, ProcessingConfig, config
from .exceptions import (
    AIServiceError,
    ConfigurationError,
    DataValidationError,
    DimensionMismatchError,
    EmptyFileError,
    EmptyInputError,
    FileTooLargeError,
    LogLensError,
    NotFoundError,
    ServiceError,
    TransportError,
    UnsupportedTypeError,
)

__all__ = [
    "Config",
    "config",
    "ProcessingConfig",
    "AIServiceConfig",
    "LogLensError",
    "DataValidationError",
    "EmptyFileError",
    "FileTooLargeError",
    "UnsupportedTypeError",
    "EmptyInputError",
    "AIServiceError",
    "ServiceError",
    "TransportError",
    "DimensionMismatchError",
    "ConfigurationError",
    "NotFoundError",
]
