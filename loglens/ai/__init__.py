"""
AI module: client for the remote embedding/explanation provider.
"""

from .client import EmbeddingClient
from .retry import is_transient, retry
from .schema import EmbeddingRequest, EmbeddingResponse, ExplanationRequest, ExplanationResponse

__all__ = [
    "EmbeddingClient",
    "retry",
    "is_transient",
    "EmbeddingRequest",
    "EmbeddingResponse",
    "ExplanationRequest",
    "ExplanationResponse",
]
