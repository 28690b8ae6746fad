"""
Pytest configuration and shared fixtures.

Provides test configuration instances, fake provider collaborators, and
sample log content for unit and integration tests.
"""

import threading
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import pytest

from loglens.core.config import AIServiceConfig, Config, ProcessingConfig
from loglens.core.exceptions import ServiceError
from loglens.data.schema import User
from loglens.pipeline.workers import WorkerPool
from loglens.storage.repository import InMemoryLogRepository


FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class FakeEmbeddingClient:
    """
    In-process stand-in for the provider client.

    Returns the configured vector for every message (or a per-message
    vector from `vectors`), and records every call.
    """

    def __init__(
        self,
        vector: Optional[List[float]] = None,
        vectors: Optional[Dict[str, List[float]]] = None,
        explanation: str = "This error indicates a database connectivity issue",
        fail_on: Sequence[str] = (),
        explain_error: Optional[Exception] = None,
    ):
        self.vector = vector or [0.1, 0.2, 0.3, 0.4]
        self.vectors = vectors or {}
        self.explanation = explanation
        self.fail_on = set(fail_on)
        self.explain_error = explain_error
        self.embed_calls: List[str] = []
        self.explain_calls: List[tuple] = []
        self._lock = threading.Lock()

    def embed(self, message: str) -> List[float]:
        with self._lock:
            self.embed_calls.append(message)
        if message in self.fail_on:
            raise ServiceError("AI service returned status: 500")
        return list(self.vectors.get(message, self.vector))

    def explain(self, anomalous_message: str, similar_messages=None) -> str:
        with self._lock:
            self.explain_calls.append((anomalous_message, list(similar_messages or [])))
        if self.explain_error is not None:
            raise self.explain_error
        return self.explanation

    def health_check(self) -> bool:
        return True


class SequenceDetector:
    """
    Detector stub returning preset verdicts in call order.
    """

    def __init__(self, verdicts: Sequence[bool], similarity: Optional[float] = 0.15):
        self._verdicts = list(verdicts)
        self.similarity = similarity
        self.calls = 0
        self._lock = threading.Lock()

    def detect_anomaly(self, embedding, user_id, threshold) -> bool:
        with self._lock:
            verdict = self._verdicts[self.calls] if self.calls < len(self._verdicts) else False
            self.calls += 1
        return verdict

    def calculate_similarity_score(self, embedding, user_id):
        return self.similarity


@pytest.fixture
def test_config(tmp_path) -> Config:
    """
    Fixture providing test configuration with explicit values (not from .env).
    """
    return Config(
        log_level="WARNING",
        logs_dir=tmp_path / "logs",
        processing=ProcessingConfig(batch_size=50, worker_count=4),
        ai_service=AIServiceConfig(base_url="http://ai.test", timeout_seconds=5.0),
    )


@pytest.fixture
def processing_settings(test_config) -> ProcessingConfig:
    return test_config.processing


@pytest.fixture
def user() -> User:
    return User(id="user-1", email="test@example.com", name="Test User")


@pytest.fixture
def repository() -> InMemoryLogRepository:
    return InMemoryLogRepository()


@pytest.fixture
def worker_pool():
    pool = WorkerPool(max_workers=4)
    yield pool
    pool.shutdown()


@pytest.fixture
def fake_client() -> FakeEmbeddingClient:
    return FakeEmbeddingClient()


@pytest.fixture
def sample_log_content() -> bytes:
    """
    Three well-formed application log lines, as in a small upload.
    """
    return (
        "2024-01-15 10:30:45 [INFO] Application started successfully\n"
        "2024-01-15 10:30:46 [ERROR] Database connection failed\n"
        "2024-01-15 10:30:47 [WARN] Retrying database connection\n"
    ).encode("utf-8")


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )
