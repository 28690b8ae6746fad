"""
HTTP client for the remote embedding/explanation provider.

Wraps the two provider capabilities (embedding, explanation) plus a
health probe. Every network call carries the configured timeout, and the
two capabilities are wrapped in the retry policy from loglens.ai.retry.

Error taxonomy:
- EmptyInputError: blank message, raised before any request, never retried
- TransportError: connection failure or timeout
- ServiceError: non-200 status, invalid JSON, or missing payload
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests
from pydantic import ValidationError

from loglens.core.config import AIServiceConfig, config
from loglens.core.exceptions import ConfigurationError, EmptyInputError, ServiceError, TransportError

from .retry import retry
from .schema import EmbeddingRequest, EmbeddingResponse, ExplanationRequest, ExplanationResponse

logger = logging.getLogger(__name__)


class EmbeddingClient:
    """
    Provider client.

    Args:
        settings: Provider settings (defaults to the global config)
        session: requests-compatible session; one is created when omitted
        sleep: Delay function used between retries
    """

    def __init__(
        self,
        settings: Optional[AIServiceConfig] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or config.ai_service
        if not self.settings.base_url.strip():
            raise ConfigurationError("AI service base_url is not configured")
        self.session = session or requests.Session()
        self._headers = {
            "Content-Type": "application/json",
            "User-Agent": self.settings.user_agent,
        }

        policy = retry(
            max_attempts=self.settings.max_attempts,
            base_delay=self.settings.backoff_initial_seconds,
            multiplier=self.settings.backoff_multiplier,
            sleep=sleep,
        )
        self._embed_with_retry = policy(self._request_embedding)
        self._explain_with_retry = policy(self._request_explanation)

    def embed(self, message: str) -> List[float]:
        """
        Compute the embedding of a log message.

        Raises:
            EmptyInputError: If message is blank
            ServiceError: If the provider rejects the call or returns no embedding
            TransportError: On connection failure or timeout
        """
        if message is None or not message.strip():
            raise EmptyInputError("Log message cannot be null or empty")
        return self._embed_with_retry(message.strip())

    def explain(self, anomalous_message: str, similar_messages: Optional[Sequence[str]] = None) -> str:
        """
        Ask the provider to explain an anomalous log given similar logs as context.
        """
        if anomalous_message is None or not anomalous_message.strip():
            raise EmptyInputError("Anomalous log cannot be null or empty")
        return self._explain_with_retry(anomalous_message.strip(), list(similar_messages or []))

    def health_check(self) -> bool:
        """
        Probe the provider. Never raises and is not retried.
        """
        try:
            response = self.session.get(
                self._url(self.settings.health_path),
                headers={"User-Agent": self.settings.user_agent},
                timeout=self.settings.timeout_seconds,
            )
            return response.status_code == 200
        except Exception as exc:
            logger.warning("AI service health check failed: %s", exc)
            return False

    def close(self) -> None:
        self.session.close()

    def _request_embedding(self, message: str) -> List[float]:
        logger.debug("Generating embedding for log message: %s", message)
        body = self._post(
            self.settings.embeddings_path,
            EmbeddingRequest(log_message=message).model_dump(),
        )
        try:
            response = EmbeddingResponse.model_validate(body or {})
        except ValidationError as exc:
            raise ServiceError(f"AI service returned malformed embedding payload: {exc}") from exc

        if not response.embedding:
            raise ServiceError("AI service returned null or empty embedding")

        logger.debug("Generated embedding with %d dimensions", len(response.embedding))
        return response.embedding

    def _request_explanation(self, anomalous_message: str, similar_messages: List[str]) -> str:
        logger.debug("Getting explanation for anomalous log with %d similar logs", len(similar_messages))
        body = self._post(
            self.settings.explain_path,
            ExplanationRequest(anomalous_log=anomalous_message, similar_logs=similar_messages).model_dump(),
        )
        try:
            response = ExplanationResponse.model_validate(body or {})
        except ValidationError as exc:
            raise ServiceError(f"AI service returned malformed explanation payload: {exc}") from exc

        if not response.explanation:
            raise ServiceError("AI service returned null explanation")
        return response.explanation

    def _post(self, path: str, payload: Dict[str, Any]) -> Any:
        url = self._url(path)
        try:
            response = self.session.post(
                url,
                json=payload,
                headers=self._headers,
                timeout=self.settings.timeout_seconds,
            )
        except requests.Timeout as exc:
            raise TransportError(f"AI service call to {url} timed out") from exc
        except requests.RequestException as exc:
            raise TransportError(f"AI service call to {url} failed: {exc}") from exc

        if response.status_code != 200:
            raise ServiceError(f"AI service returned status: {response.status_code}")

        try:
            return response.json()
        except ValueError as exc:
            raise ServiceError("AI service returned a non-JSON body") from exc

    def _url(self, path: str) -> str:
        return self.settings.base_url.rstrip("/") + path
