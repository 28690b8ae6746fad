"""
Wire schema for the embedding/explanation provider.

Request bodies are built from these models; response bodies are
validated against them before use. Response fields are optional so an
absent value surfaces as a ServiceError in the client rather than a
validation crash.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class EmbeddingRequest(BaseModel):
    """Body of POST /api/v1/embeddings."""

    log_message: str = Field(min_length=1)


class EmbeddingResponse(BaseModel):
    """
    Fields:
    - embedding: fixed-dimension vector (dimension chosen by the provider)
    - model_name: provider model identifier
    - dimension: reported vector length
    """

    embedding: Optional[List[float]] = None
    model_name: Optional[str] = None
    dimension: Optional[int] = None


class ExplanationRequest(BaseModel):
    """Body of POST /api/v1/explain. similar_logs may be empty."""

    anomalous_log: str = Field(min_length=1)
    similar_logs: List[str] = Field(default_factory=list)


class ExplanationResponse(BaseModel):
    explanation: Optional[str] = None
    confidence_score: Optional[float] = None
    model_used: Optional[str] = None
