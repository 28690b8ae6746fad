"""
Application configuration for LogLens.

Provides environment-aware settings with conservative defaults. Processing
limits and provider retry behaviour are configurable to avoid hard-coded
"magic numbers".
"""

from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ProcessingConfig(BaseModel):
    """
    Settings for the file ingestion pipeline.

    Notes:
    - anomaly_threshold: similarity to the nearest baseline log below which
      a record is flagged. Low similarity means novel.
    - batch_size: lines dispatched together before waiting on the batch.
    - worker_count: size of the shared worker pool.
    - max_similar_logs: context logs sent along with an explanation request.
    """

    anomaly_threshold: float = Field(0.2, ge=0.0, le=1.0)
    batch_size: int = Field(50, ge=1)
    max_similar_logs: int = Field(5, ge=1)
    worker_count: int = Field(4, ge=1)
    max_file_size_bytes: int = Field(50 * 1024 * 1024, ge=1)
    allowed_content_type_prefixes: List[str] = Field(default_factory=lambda: ["text/"])
    allowed_content_types: List[str] = Field(
        default_factory=lambda: ["application/octet-stream"]
    )


class AIServiceConfig(BaseModel):
    """
    Settings for the remote embedding/explanation provider.

    Retry delays grow as backoff_initial_seconds * backoff_multiplier ** n.
    """

    base_url: str = Field("http://localhost:8001", description="Provider root URL")
    embeddings_path: str = "/api/v1/embeddings"
    explain_path: str = "/api/v1/explain"
    health_path: str = "/health"
    timeout_seconds: float = Field(30.0, gt=0.0)
    max_attempts: int = Field(3, ge=1)
    backoff_initial_seconds: float = Field(1.0, ge=0.0)
    backoff_multiplier: float = Field(2.0, ge=1.0)
    user_agent: str = "LogLens-Backend/1.0"


class Config(BaseSettings):
    """
    Global configuration with environment overrides.

    Nested values use a double underscore, e.g.
    LOGLENS_PROCESSING__BATCH_SIZE=100.
    """

    model_config = SettingsConfigDict(
        env_prefix="LOGLENS_",
        env_file=".env",
        env_nested_delimiter="__",
        extra="ignore",
    )

    log_level: str = Field("INFO", description="Default logging level")
    logs_dir: Path = Field(Path("logs"), description="Directory for log files")
    processing: ProcessingConfig = ProcessingConfig()
    ai_service: AIServiceConfig = AIServiceConfig()

    def model_post_init(self, __context: object) -> None:
        self.logs_dir.mkdir(parents=True, exist_ok=True)


config = Config()
