"""
Pipeline module: batch orchestration over a bounded worker pool.
"""

from .orchestrator import EXPLANATION_FAILED_PREFIX, LogProcessingService
from .outcomes import LineFailure, LineOutcome, LineSuccess
from .workers import WorkerPool

__all__ = [
    "LogProcessingService",
    "EXPLANATION_FAILED_PREFIX",
    "WorkerPool",
    "LineSuccess",
    "LineFailure",
    "LineOutcome",
]
