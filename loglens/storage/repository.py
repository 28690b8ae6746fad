"""
Log record persistence.

LogRepository is the contract the pipeline and HTTP surface depend on.
InMemoryLogRepository is a thread-safe implementation that keeps records
per user and answers similarity queries with a brute-force euclidean
scan over the user's baseline (non-anomalous records).
"""

from __future__ import annotations

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np

from loglens.core.exceptions import NotFoundError
from loglens.data.schema import LogRecord, Page, User

logger = logging.getLogger(__name__)


class LogRepository(ABC):
    """
    Storage contract for log records keyed by user.
    """

    @abstractmethod
    def save(self, user: User, records: Sequence[LogRecord]) -> List[LogRecord]:
        """Persist records for user in one call and return them with ids assigned."""
        pass

    @abstractmethod
    def find_top_k_similar(self, user_id: str, embedding: Sequence[float], k: int) -> List[LogRecord]:
        """Return up to k non-anomalous records of user_id, nearest first."""
        pass

    @abstractmethod
    def count(self, user: User) -> int:
        pass

    @abstractmethod
    def count_anomalies(self, user: User) -> int:
        pass

    @abstractmethod
    def find_by_id(self, user: User, record_id: int) -> LogRecord:
        """Raises NotFoundError when missing or owned by another user."""
        pass

    @abstractmethod
    def find_by_user(self, user: User, page: int = 0, size: int = 20) -> Page:
        pass

    @abstractmethod
    def find_anomalies_by_user(self, user: User, page: int = 0, size: int = 20) -> Page:
        pass

    @abstractmethod
    def delete(self, user: User, record_id: int) -> None:
        pass

    @abstractmethod
    def delete_all_for_user(self, user: User) -> int:
        pass


class InMemoryLogRepository(LogRepository):
    """
    Process-local repository.

    Records are stored as copies so callers cannot mutate persisted state.
    """

    def __init__(self):
        self._records: Dict[str, Dict[int, LogRecord]] = {}
        self._ids = itertools.count(1)
        self._lock = threading.RLock()

    def save(self, user: User, records: Sequence[LogRecord]) -> List[LogRecord]:
        now = datetime.now(timezone.utc)
        saved: List[LogRecord] = []
        with self._lock:
            bucket = self._records.setdefault(user.id, {})
            for record in records:
                stored = record.model_copy(deep=True)
                stored.user_id = user.id
                if stored.id is None:
                    stored.id = next(self._ids)
                if stored.created_at is None:
                    stored.created_at = now
                bucket[stored.id] = stored
                saved.append(stored.model_copy(deep=True))
        logger.debug("Saved %d records for user %s", len(saved), user.id)
        return saved

    def find_top_k_similar(self, user_id: str, embedding: Sequence[float], k: int) -> List[LogRecord]:
        if k <= 0:
            return []

        query = np.asarray(embedding, dtype=float)
        with self._lock:
            baseline = [
                r for r in self._records.get(user_id, {}).values()
                if not r.is_anomaly and len(r.embedding) == query.shape[0]
            ]
            if not baseline:
                return []

            matrix = np.asarray([r.embedding for r in baseline], dtype=float)
            distances = np.linalg.norm(matrix - query, axis=1)
            order = np.argsort(distances, kind="stable")[:k]
            return [baseline[i].model_copy(deep=True) for i in order]

    def count(self, user: User) -> int:
        with self._lock:
            return len(self._records.get(user.id, {}))

    def count_anomalies(self, user: User) -> int:
        with self._lock:
            return sum(1 for r in self._records.get(user.id, {}).values() if r.is_anomaly)

    def find_by_id(self, user: User, record_id: int) -> LogRecord:
        with self._lock:
            record = self._records.get(user.id, {}).get(record_id)
            if record is None:
                raise NotFoundError(f"Log entry {record_id} not found")
            return record.model_copy(deep=True)

    def find_by_user(self, user: User, page: int = 0, size: int = 20) -> Page:
        with self._lock:
            records = list(self._records.get(user.id, {}).values())
        return _paginate(records, page, size)

    def find_anomalies_by_user(self, user: User, page: int = 0, size: int = 20) -> Page:
        with self._lock:
            records = [r for r in self._records.get(user.id, {}).values() if r.is_anomaly]
        return _paginate(records, page, size)

    def delete(self, user: User, record_id: int) -> None:
        with self._lock:
            bucket = self._records.get(user.id, {})
            if record_id not in bucket:
                raise NotFoundError(f"Log entry {record_id} not found")
            del bucket[record_id]

    def delete_all_for_user(self, user: User) -> int:
        with self._lock:
            removed = self._records.pop(user.id, {})
        return len(removed)


def _paginate(records: Iterable[LogRecord], page: int, size: int) -> Page:
    ordered = sorted(records, key=lambda r: (r.timestamp, r.id or 0), reverse=True)
    start = page * size
    items = [r.model_copy(deep=True) for r in ordered[start:start + size]]
    return Page(items=items, page=page, size=size, total_elements=len(ordered))
