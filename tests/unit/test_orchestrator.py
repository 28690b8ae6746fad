"""
Unit tests for the batch orchestrator.
"""

from datetime import datetime, timezone

import pytest

from loglens.core.config import ProcessingConfig
from loglens.core.exceptions import EmptyFileError, ServiceError, UnsupportedTypeError
from loglens.data.schema import LogRecord, UploadedFile
from loglens.pipeline.orchestrator import EXPLANATION_FAILED_PREFIX, LogProcessingService
from loglens.pipeline.outcomes import LineFailure, LineSuccess
from loglens.pipeline.workers import WorkerPool

from conftest import FakeEmbeddingClient, SequenceDetector


def _upload(text, content_type="text/plain"):
    return UploadedFile(file_name="app.log", content_type=content_type, content=text.encode("utf-8"))


def _service(client, repository, pool, detector=None, **settings):
    return LogProcessingService(
        ai_client=client,
        repository=repository,
        worker_pool=pool,
        detector=detector,
        settings=ProcessingConfig(**settings),
    )


class _RecordingRepository:
    """Wraps a repository and records save calls."""

    def __init__(self, inner, fail_save=False):
        self.inner = inner
        self.fail_save = fail_save
        self.save_calls = []

    def save(self, user, records):
        self.save_calls.append(list(records))
        if self.fail_save:
            raise RuntimeError("disk full")
        return self.inner.save(user, records)

    def find_top_k_similar(self, user_id, embedding, k):
        return self.inner.find_top_k_similar(user_id, embedding, k)


class TestValidation:
    def test_empty_file_fails_before_any_call(self, fake_client, repository, worker_pool, user):
        service = _service(fake_client, repository, worker_pool)

        with pytest.raises(EmptyFileError):
            service.process_file(_upload(""), user)
        assert fake_client.embed_calls == []

    def test_unsupported_type_raises(self, fake_client, repository, worker_pool, user):
        service = _service(fake_client, repository, worker_pool)

        with pytest.raises(UnsupportedTypeError):
            service.process_file(_upload("[INFO] hi", content_type="image/png"), user)


class TestProcessFile:
    def test_blank_only_file_succeeds_with_no_records(self, fake_client, repository, worker_pool, user):
        service = _service(fake_client, repository, worker_pool)

        result = service.process_file(_upload("\n   \n\t\n"), user)

        assert result.success is True
        assert result.stats.total_lines == 0
        assert result.stats.processed_lines == 0
        assert result.stats.success_rate == 0.0
        assert result.records == []

    def test_failed_lines_are_counted_and_dropped(self, repository, worker_pool, user):
        client = FakeEmbeddingClient(fail_on=["second"])
        service = _service(client, repository, worker_pool)

        result = service.process_file(_upload("[INFO] first\n[INFO] second\n[INFO] third\n"), user)

        assert result.success is True
        assert result.stats.total_lines == 3
        assert result.stats.processed_lines == 2
        assert result.stats.error_count == 1
        assert [r.message for r in result.records] == ["first", "third"]

    def test_order_preserved_across_batches(self, fake_client, repository, worker_pool, user):
        lines = "\n".join(f"[INFO] line {i}" for i in range(7))
        service = _service(fake_client, repository, worker_pool, batch_size=3)

        result = service.process_file(_upload(lines), user)

        assert [r.message for r in result.records] == [f"line {i}" for i in range(7)]

    def test_records_are_persisted_in_one_call(self, fake_client, repository, worker_pool, user):
        recording = _RecordingRepository(repository)
        service = _service(fake_client, recording, worker_pool, batch_size=2)

        result = service.process_file(_upload("[INFO] a\n[INFO] b\n[INFO] c\n"), user)

        assert len(recording.save_calls) == 1
        assert len(recording.save_calls[0]) == 3
        assert all(r.id is not None for r in result.records)
        assert repository.count(user) == 3

    def test_persistence_failure_is_returned_not_raised(self, fake_client, repository, worker_pool, user):
        service = _service(fake_client, _RecordingRepository(repository, fail_save=True), worker_pool)

        result = service.process_file(_upload("[INFO] a\n"), user)

        assert result.success is False
        assert result.error_message == "disk full"
        assert result.stats.error_message == "disk full"
        assert result.stats.end_time is not None
        assert result.records == []

    def test_timestamp_fallbacks_are_counted(self, fake_client, repository, worker_pool, user):
        service = _service(fake_client, repository, worker_pool)

        result = service.process_file(
            _upload("2024-99-99 10:30:45 [INFO] bad date\n2024-01-15 10:30:45 [INFO] good date\n"), user
        )

        assert result.stats.processed_lines == 2
        assert result.stats.timestamp_fallbacks == 1
        assert result.stats.error_count == 0

    def test_stats_are_stamped(self, fake_client, repository, worker_pool, user):
        service = _service(fake_client, repository, worker_pool)

        result = service.process_file(_upload("[INFO] a\n"), user)

        assert result.stats.file_name == "app.log"
        assert result.stats.file_size == len("[INFO] a\n")
        assert result.stats.start_time <= result.stats.end_time

    @pytest.mark.parametrize("fail_save", [False, True])
    def test_returned_stats_are_read_only(self, fake_client, repository, worker_pool, user, fail_save):
        service = _service(fake_client, _RecordingRepository(repository, fail_save=fail_save), worker_pool)

        result = service.process_file(_upload("[INFO] a\n"), user)

        assert result.stats.frozen is True
        with pytest.raises(AttributeError):
            result.stats.error_count = 99


class TestProcessLine:
    def test_normal_line_has_no_explanation(self, fake_client, repository, worker_pool, user):
        service = _service(fake_client, repository, worker_pool, detector=SequenceDetector([False]))

        outcome = service.process_line("2024-01-15 10:30:45 [INFO] ok", user)

        assert isinstance(outcome, LineSuccess)
        assert outcome.record.is_anomaly is False
        assert outcome.record.explanation is None
        assert outcome.record.similarity_score is None
        assert outcome.record.embedding == fake_client.vector
        assert fake_client.explain_calls == []

    def test_anomalous_line_is_explained_with_similar_logs(self, repository, worker_pool, user):
        repository.save(user, [
            LogRecord(
                user_id=user.id,
                timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc),
                message="Database connected",
                level="INFO",
                embedding=[0.1, 0.2, 0.3, 0.4],
            )
        ])
        client = FakeEmbeddingClient()
        service = _service(
            client, repository, worker_pool,
            detector=SequenceDetector([True], similarity=0.05),
            max_similar_logs=3,
        )

        outcome = service.process_line("[ERROR] Database connection failed", user)

        assert outcome.record.is_anomaly is True
        assert outcome.record.explanation == client.explanation
        assert outcome.record.similarity_score == 0.05
        assert client.explain_calls == [("Database connection failed", ["Database connected"])]

    def test_explanation_failure_keeps_record(self, repository, worker_pool, user):
        client = FakeEmbeddingClient(explain_error=ServiceError("AI service returned status: 500"))
        service = _service(client, repository, worker_pool, detector=SequenceDetector([True]))

        outcome = service.process_line("[ERROR] boom", user)

        assert outcome.record.is_anomaly is True
        assert outcome.record.explanation.startswith(EXPLANATION_FAILED_PREFIX)
        assert "500" in outcome.record.explanation

    def test_similarity_failure_leaves_score_absent(self, fake_client, repository, worker_pool, user):
        class _Detector(SequenceDetector):
            def calculate_similarity_score(self, embedding, user_id):
                raise RuntimeError("index offline")

        service = _service(fake_client, repository, worker_pool, detector=_Detector([True]))

        outcome = service.process_line("[ERROR] boom", user)

        assert outcome.record.explanation == fake_client.explanation
        assert outcome.record.similarity_score is None

    def test_embedding_error_becomes_line_failure(self, repository, worker_pool, user):
        client = FakeEmbeddingClient(fail_on=["boom"])
        service = _service(client, repository, worker_pool)

        outcome = service._run_line("[ERROR] boom", user)

        assert isinstance(outcome, LineFailure)
        assert outcome.line == "[ERROR] boom"
        assert "500" in outcome.error

    def test_find_similar_messages_tolerates_storage_failure(self, fake_client, worker_pool, user):
        class _Broken:
            def find_top_k_similar(self, user_id, embedding, k):
                raise RuntimeError("down")

        service = _service(fake_client, _Broken(), worker_pool, detector=SequenceDetector([]))

        assert service.find_similar_messages([1.0], user) == []
