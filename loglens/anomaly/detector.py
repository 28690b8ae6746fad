"""
Baseline-backed anomaly detection.

Looks up the user's nearest non-anomalous log through the repository and
scores a new embedding against it. Scoring problems (storage errors,
dimension mismatches) never fail the record: they are logged and the log
is treated as normal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from loglens.storage.repository import LogRepository

from .similarity import is_anomaly, score_against_baseline

logger = logging.getLogger(__name__)


@dataclass
class AnomalyDetector:
    """
    Nearest-neighbour novelty detector.

    Notes:
    - Only the single nearest baseline entry is scored (k=1).
    - Empty baseline means insufficient data, reported as normal.
    """

    repository: LogRepository

    def calculate_similarity_score(self, embedding: Sequence[float], user_id: str) -> Optional[float]:
        try:
            nearest = self.repository.find_top_k_similar(user_id, embedding, 1)
            return score_against_baseline(embedding, [r.embedding for r in nearest])
        except Exception as exc:
            logger.error("Error calculating similarity score: %s", exc)
            return None

    def detect_anomaly(self, embedding: Sequence[float], user_id: str, threshold: float) -> bool:
        try:
            similarity = self.calculate_similarity_score(embedding, user_id)
            if similarity is None:
                logger.debug("No baseline data available for user %s, treating as normal", user_id)
                return False

            anomalous = is_anomaly(similarity, threshold)
            logger.debug(
                "Similarity score: %s, Threshold: %s, Is anomaly: %s",
                similarity, threshold, anomalous,
            )
            return anomalous
        except Exception as exc:
            logger.error("Error during anomaly detection: %s", exc)
            return False
