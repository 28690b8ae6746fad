"""
Unit tests for configuration defaults and environment overrides.
"""

import pytest
from pydantic import ValidationError

from loglens.core.config import AIServiceConfig, Config, ProcessingConfig


def test_processing_defaults():
    settings = ProcessingConfig()

    assert settings.anomaly_threshold == 0.2
    assert settings.batch_size == 50
    assert settings.max_similar_logs == 5
    assert settings.worker_count == 4
    assert settings.max_file_size_bytes == 50 * 1024 * 1024


def test_ai_service_defaults():
    settings = AIServiceConfig()

    assert settings.timeout_seconds == 30.0
    assert settings.max_attempts == 3
    assert settings.backoff_initial_seconds == 1.0
    assert settings.backoff_multiplier == 2.0


def test_bounds_are_enforced():
    with pytest.raises(ValidationError):
        ProcessingConfig(batch_size=0)


def test_nested_environment_override(monkeypatch, tmp_path):
    monkeypatch.setenv("LOGLENS_PROCESSING__BATCH_SIZE", "10")
    monkeypatch.setenv("LOGLENS_AI_SERVICE__BASE_URL", "http://embedder:9000")

    settings = Config(logs_dir=tmp_path / "logs")

    assert settings.processing.batch_size == 10
    assert settings.ai_service.base_url == "http://embedder:9000"
    assert settings.logs_dir.exists()
