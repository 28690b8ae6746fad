"""
Anomaly module: semantic similarity scoring against a per-user baseline.
"""

from .detector import AnomalyDetector
from .similarity import cosine_similarity, is_anomaly, score_against_baseline

__all__ = [
    "AnomalyDetector",
    "cosine_similarity",
    "score_against_baseline",
    "is_anomaly",
]
