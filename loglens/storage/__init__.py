"""
Storage module: persistence contract and in-memory implementation.
"""

from .repository import InMemoryLogRepository, LogRepository

__all__ = ["LogRepository", "InMemoryLogRepository"]
