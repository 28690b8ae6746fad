"""
Minimal backend HTTP server for LogLens.

Exposes upload, listing, stats and deletion endpoints around the ingestion
pipeline without introducing a web framework. Caller identity is resolved
from the X-User-Id header; authentication is handled upstream.
"""

from __future__ import annotations

import argparse
import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, Optional, Tuple
from urllib.parse import parse_qs, urlparse

from dotenv import load_dotenv

from loglens.ai import EmbeddingClient
from loglens.core.config import config
from loglens.core.exceptions import (
    AIServiceError,
    DataValidationError,
    FileTooLargeError,
    LogLensError,
    NotFoundError,
)
from loglens.core.logging_config import setup_logging
from loglens.data.schema import Page, UploadedFile, User
from loglens.pipeline import LogProcessingService, WorkerPool
from loglens.storage import InMemoryLogRepository, LogRepository

load_dotenv()

logger = logging.getLogger("backend")

SERVICE: Optional[LogProcessingService] = None

STATUS_BY_ERROR = [
    (DataValidationError, 400),
    (NotFoundError, 404),
    (AIServiceError, 503),
    (LogLensError, 500),
]


def status_for(exc: Exception) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def user_stats(repository: LogRepository, user: User) -> Dict[str, object]:
    total_logs = repository.count(user)
    total_anomalies = repository.count_anomalies(user)
    return {
        "total_logs": total_logs,
        "total_anomalies": total_anomalies,
        "anomaly_percentage": total_anomalies / total_logs * 100 if total_logs > 0 else 0.0,
    }


def page_to_json(page: Page) -> Dict[str, object]:
    return {
        "items": [item.model_dump(mode="json") for item in page.items],
        "page": page.page,
        "size": page.size,
        "total_elements": page.total_elements,
        "total_pages": page.total_pages,
    }


def _parse_content_disposition(value: str) -> Dict[str, str]:
    params: Dict[str, str] = {}
    for part in value.split(";"):
        if "=" not in part:
            continue
        key, raw = part.strip().split("=", 1)
        params[key.strip()] = raw.strip().strip('"')
    return params


def parse_multipart(body: bytes, boundary: bytes) -> Dict[str, Tuple[Dict[str, str], bytes]]:
    """
    Split a multipart/form-data body into {field: (params + content-type, bytes)}.
    """
    fields: Dict[str, Tuple[Dict[str, str], bytes]] = {}
    delimiter = b"--" + boundary
    for part in body.split(delimiter):
        if part.startswith(b"\r\n"):
            part = part[2:]
        if not part or part.startswith(b"--"):
            continue
        header_blob, sep, content = part.partition(b"\r\n\r\n")
        if not sep:
            continue
        headers: Dict[str, str] = {}
        for line in header_blob.decode("utf-8", errors="ignore").split("\r\n"):
            if ":" not in line:
                continue
            key, value = line.split(":", 1)
            headers[key.strip().lower()] = value.strip()
        if content.endswith(b"\r\n"):
            content = content[:-2]
        params = _parse_content_disposition(headers.get("content-disposition", ""))
        if "content-type" in headers:
            params["content_type"] = headers["content-type"]
        name = params.get("name")
        if name:
            fields[name] = (params, content)
    return fields


# Room for boundaries and part headers around the file bytes.
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def request_body_length(header_value: Optional[str], max_file_size_bytes: int) -> int:
    """
    Validate a Content-Length header before the body is read.

    Raises DataValidationError for a malformed value and FileTooLargeError
    when the body could not hold a file within the size ceiling.
    """
    try:
        length = int(header_value or "0")
    except ValueError:
        raise DataValidationError(f"Invalid Content-Length: {header_value!r}") from None
    if length < 0:
        raise DataValidationError(f"Invalid Content-Length: {header_value!r}")
    if length > max_file_size_bytes + MULTIPART_OVERHEAD_BYTES:
        raise FileTooLargeError(
            f"Request body of {length} bytes exceeds the {max_file_size_bytes} byte file limit"
        )
    return length


def _int_param(query: Dict[str, list], name: str, default: int, minimum: int) -> int:
    try:
        return max(int(query.get(name, [default])[0]), minimum)
    except (TypeError, ValueError):
        return default


class BackendHandler(BaseHTTPRequestHandler):
    server_version = "LogLensBackend/1.0"

    def _send_json(self, status: int, payload: object) -> None:
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type, X-User-Id")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, DELETE, OPTIONS")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_error(self, exc: Exception) -> None:
        self._send_json(status_for(exc), {"detail": str(exc)})

    def _user(self) -> Optional[User]:
        user_id = (self.headers.get("X-User-Id") or "").strip()
        if not user_id:
            self._send_json(401, {"detail": "Missing X-User-Id header"})
            return None
        return User(id=user_id)

    def _record_id(self, path: str) -> Optional[int]:
        try:
            return int(path.rsplit("/", 1)[1])
        except (IndexError, ValueError):
            self._send_json(400, {"detail": "Invalid log id"})
            return None

    def do_OPTIONS(self) -> None:
        self.send_response(204)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type, X-User-Id")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, DELETE, OPTIONS")
        self.end_headers()

    def do_GET(self) -> None:
        url = urlparse(self.path)
        path = url.path.rstrip("/")

        if path == "/health":
            self._send_json(200, {"status": "ok"})
            return

        if path == "/api/ai/health":
            healthy = SERVICE.ai_client.health_check()
            self._send_json(200 if healthy else 503, {"healthy": healthy})
            return

        if not path.startswith("/api/logs"):
            self._send_json(404, {"detail": "Not found"})
            return

        user = self._user()
        if user is None:
            return

        repository = SERVICE.repository
        query = parse_qs(url.query)
        page = _int_param(query, "page", 0, 0)
        size = _int_param(query, "size", 20, 1)

        try:
            if path == "/api/logs":
                self._send_json(200, page_to_json(repository.find_by_user(user, page, size)))
            elif path == "/api/logs/anomalies":
                self._send_json(200, page_to_json(repository.find_anomalies_by_user(user, page, size)))
            elif path == "/api/logs/stats":
                self._send_json(200, user_stats(repository, user))
            else:
                record_id = self._record_id(path)
                if record_id is not None:
                    self._send_json(200, repository.find_by_id(user, record_id).model_dump(mode="json"))
        except LogLensError as exc:
            self._send_error(exc)

    def do_POST(self) -> None:
        if urlparse(self.path).path.rstrip("/") == "/api/logs/upload":
            self._handle_upload()
            return
        self._send_json(404, {"detail": "Not found"})

    def do_DELETE(self) -> None:
        path = urlparse(self.path).path.rstrip("/")
        if not path.startswith("/api/logs/"):
            self._send_json(404, {"detail": "Not found"})
            return

        user = self._user()
        if user is None:
            return

        if path == "/api/logs/all":
            deleted = SERVICE.repository.delete_all_for_user(user)
            self._send_json(200, {"deleted_count": deleted, "message": "All logs deleted successfully"})
            return

        record_id = self._record_id(path)
        if record_id is None:
            return
        try:
            SERVICE.repository.delete(user, record_id)
        except LogLensError as exc:
            self._send_error(exc)
            return
        self._send_json(200, {"deleted": record_id})

    def _handle_upload(self) -> None:
        user = self._user()
        if user is None:
            return

        content_type = self.headers.get("Content-Type", "")
        if "multipart/form-data" not in content_type:
            self._send_json(400, {"detail": "Expected multipart/form-data"})
            return

        boundary_token = None
        for part in content_type.split(";"):
            part = part.strip()
            if part.startswith("boundary="):
                boundary_token = part.split("=", 1)[1].strip('"')
                break

        if not boundary_token:
            self._send_json(400, {"detail": "Missing multipart boundary"})
            return

        try:
            length = request_body_length(
                self.headers.get("Content-Length"), config.processing.max_file_size_bytes
            )
        except DataValidationError as exc:
            self._send_error(exc)
            return
        body = self.rfile.read(length) if length > 0 else b""
        fields = parse_multipart(body, boundary_token.encode("utf-8"))
        if "file" not in fields:
            self._send_json(400, {"detail": "Missing file field"})
            return

        file_meta, data = fields["file"]
        upload = UploadedFile(
            file_name=file_meta.get("filename", "upload.log"),
            content_type=file_meta.get("content_type"),
            content=data,
        )

        logger.info("Received log file upload request from user: %s", user.id)
        try:
            result = SERVICE.process_file(upload, user)
        except DataValidationError as exc:
            self._send_error(exc)
            return

        payload = result.model_dump(mode="json")
        payload["stats"] = result.stats.summary()
        self._send_json(200 if result.success else 400, payload)


def build_service(worker_pool: WorkerPool) -> LogProcessingService:
    return LogProcessingService(
        ai_client=EmbeddingClient(config.ai_service),
        repository=InMemoryLogRepository(),
        worker_pool=worker_pool,
        settings=config.processing,
    )


def run(host: str, port: int) -> None:
    global SERVICE
    setup_logging("backend")
    setup_logging("loglens")

    with WorkerPool(max_workers=config.processing.worker_count) as pool:
        SERVICE = build_service(pool)
        logger.info("Starting backend server on %s:%s", host, port)
        logger.info("AI service at %s", config.ai_service.base_url)
        server = ThreadingHTTPServer((host, port), BackendHandler)
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            logger.info("Shutting down")
        finally:
            server.server_close()
            SERVICE.ai_client.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="LogLens backend server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8000)
    args = parser.parse_args()

    run(args.host, args.port)


if __name__ == "__main__":
    main()
