"""
File-processing pipeline driver.

Turns one uploaded log file into persisted, anomaly-scored LogRecords:

    validate → read lines → batches → worker pool (per-line pipeline)
             → aggregate stats → single bulk save

Per-line pipeline (runs on a worker):
    parse → embed → score against baseline → build record
          → if anomalous: fetch similar logs, explain, record similarity

A line that fails for any reason becomes a LineFailure and is counted in
error_count; it never aborts the file. Validation errors are raised before
any network call. Any other failure at file level is returned as
ProcessingResult(success=False).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from loglens.ai.client import EmbeddingClient
from loglens.anomaly.detector import AnomalyDetector
from loglens.core.config import ProcessingConfig, config
from loglens.data.ingestion import create_batches, read_lines, validate_upload
from loglens.data.parsers import BaseParser, LineParser
from loglens.data.schema import LogRecord, ProcessingResult, ProcessingStats, UploadedFile, User
from loglens.storage.repository import LogRepository

from .outcomes import LineFailure, LineOutcome, LineSuccess
from .workers import WorkerPool

logger = logging.getLogger(__name__)

EXPLANATION_FAILED_PREFIX = "Anomaly detected but explanation generation failed: "


class LogProcessingService:
    """
    Batch orchestrator.

    Args:
        ai_client: Provider client (embed / explain)
        repository: Persistence collaborator
        worker_pool: Shared pool owned by the caller
        detector: Baseline scorer (built on repository when omitted)
        settings: Processing limits (defaults to the global config)
        parser: Line parser
    """

    def __init__(
        self,
        ai_client: EmbeddingClient,
        repository: LogRepository,
        worker_pool: WorkerPool,
        detector: Optional[AnomalyDetector] = None,
        settings: Optional[ProcessingConfig] = None,
        parser: Optional[BaseParser] = None,
    ):
        self.ai_client = ai_client
        self.repository = repository
        self.worker_pool = worker_pool
        self.detector = detector or AnomalyDetector(repository=repository)
        self.settings = settings or config.processing
        self.parser = parser or LineParser()

    def process_file(self, upload: UploadedFile, user: User) -> ProcessingResult:
        """
        Process an uploaded log file for user.

        Raises:
            DataValidationError: If the upload is empty, too large, or not text
        """
        logger.info("Starting log file processing for user: %s with file: %s", user.id, upload.file_name)

        validate_upload(upload, self.settings)

        stats = ProcessingStats(
            file_name=upload.file_name,
            file_size=upload.size,
            start_time=_now(),
        )

        try:
            lines = read_lines(upload.content)
            stats.total_lines = len(lines)
            logger.info("Processing %d log lines", len(lines))

            records = self._process_batches(lines, user, stats)

            stats.processed_lines = len(records)
            stats.anomalies_detected = sum(1 for r in records if r.is_anomaly)
            stats.end_time = _now()

            saved = self.repository.save(user, records)

            logger.info(
                "Log processing completed. Processed: %d, Anomalies: %d, Errors: %d",
                stats.processed_lines, stats.anomalies_detected, stats.error_count,
            )
            return ProcessingResult(stats=stats.freeze(), records=saved, success=True)

        except Exception as exc:
            logger.error("Error processing log file: %s", exc, exc_info=True)
            stats.end_time = _now()
            stats.error_message = str(exc)
            return ProcessingResult(stats=stats.freeze(), success=False, error_message=str(exc))

    def _process_batches(self, lines: Sequence[str], user: User, stats: ProcessingStats) -> List[LogRecord]:
        records: List[LogRecord] = []
        batches = create_batches(lines, self.settings.batch_size)

        for index, batch in enumerate(batches, start=1):
            futures = self.worker_pool.run_batch(lambda line: self._run_line(line, user), batch)

            # Submission order is kept; failures occupy no slot
            for future in futures:
                try:
                    outcome = future.result()
                except Exception as exc:
                    logger.error("Error processing log entry: %s", exc)
                    stats.increment_error_count()
                    continue

                if isinstance(outcome, LineSuccess):
                    records.append(outcome.record)
                    if outcome.timestamp_fallback:
                        stats.timestamp_fallbacks += 1
                else:
                    stats.increment_error_count()

            logger.info(
                "Processed batch %d/%d of %d entries. Total processed: %d",
                index, len(batches), len(batch), len(records),
            )

        return records

    def _run_line(self, line: str, user: User) -> LineOutcome:
        try:
            return self.process_line(line, user)
        except Exception as exc:
            logger.error("Error processing log line '%s': %s", line, exc)
            return LineFailure(line=line, error=str(exc))

    def process_line(self, line: str, user: User) -> LineSuccess:
        """
        Run the per-line pipeline. Parse and embedding errors propagate.
        """
        logger.debug("Processing log line: %s", line)
        parsed = self.parser.parse(line)

        embedding = self.ai_client.embed(parsed.message)

        record = LogRecord(
            user_id=user.id,
            timestamp=parsed.timestamp,
            message=parsed.message,
            level=parsed.level,
            embedding=embedding,
            is_anomaly=False,
        )

        record.is_anomaly = self.detector.detect_anomaly(
            embedding, user.id, self.settings.anomaly_threshold
        )

        if record.is_anomaly:
            self._explain(record, user)

        return LineSuccess(record=record, timestamp_fallback=parsed.timestamp_fallback)

    def find_similar_messages(self, embedding: Sequence[float], user: User) -> List[str]:
        """
        Messages of the user's nearest baseline logs, used as explanation context.
        """
        try:
            similar = self.repository.find_top_k_similar(
                user.id, embedding, self.settings.max_similar_logs
            )
            return [r.message for r in similar]
        except Exception as exc:
            logger.warning("Error finding similar logs: %s", exc)
            return []

    def _explain(self, record: LogRecord, user: User) -> None:
        try:
            similar = self.find_similar_messages(record.embedding, user)
            record.explanation = self.ai_client.explain(record.message, similar)
        except Exception as exc:
            logger.warning("Failed to generate explanation for anomaly: %s", exc)
            record.explanation = EXPLANATION_FAILED_PREFIX + str(exc)

        try:
            record.similarity_score = self.detector.calculate_similarity_score(record.embedding, user.id)
        except Exception as exc:
            logger.warning("Failed to record similarity score: %s", exc)
            record.similarity_score = None

        logger.info("Anomaly detected in log: %s (similarity: %s)", record.message, record.similarity_score)


def _now() -> datetime:
    return datetime.now(timezone.utc)
