"""HTTP entrypoints for exporting and browsing archived invoices."""

from __future__ import annotations

import errno
import json
import re
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

from .archive import FileBackend, InvoiceArchive
from .config import ARCHIVE_PATH, DOWNLOAD_DIR, LISTEN_BACKLOG, MAX_BODY_BYTES as MAX_BODY_BYTES_CONFIG
from .downloads import DirectorySink, MemorySink
from .errors import DependencyError, UnknownDocumentError
from .logs import logger
from .formatting import assign_invoice_number
from .models import CompanyInfo, Job

log = logger(__name__)

ValidationError = Tuple[int, Dict[str, Any]]

RECORD_PATH = re.compile(r"^/invoices/(?P<id>\d+)(?:/(?P<action>view|download))?/?$")

DISCONNECT_ERRNOS = {errno.EPIPE, errno.ECONNRESET, errno.ETIMEDOUT}

EXPORT_ERROR_STATUS = {
    "export_in_progress": 409,
    "export_timeout": 504,
    "export_failed": 500,
    "download_failed": 500,
}


def is_client_disconnect(exc: BaseException) -> bool:
    if isinstance(exc, (BrokenPipeError, ConnectionResetError, TimeoutError)):
        return True
    return isinstance(exc, OSError) and exc.errno in DISCONNECT_ERRNOS


@dataclass
class InvoiceServices:
    archive: Any
    orchestrator: Any
    viewer: Any


def build_services(archive_path: str = ARCHIVE_PATH, download_dir: str = DOWNLOAD_DIR) -> InvoiceServices:
    """Wire the archive, exporter and viewer; fails fast when a rendering dependency is missing."""
    try:
        from .exporter import ExportOrchestrator
        from .viewer import ArchiveViewer
    except ModuleNotFoundError as exc:
        if exc.name in ("fpdf", "PIL", "httpx"):
            raise DependencyError(
                f"Missing dependency '{exc.name}'. Install project dependencies with "
                "'pip install -e .'."
            ) from exc
        raise

    archive = InvoiceArchive(FileBackend(archive_path))
    archive.load()
    orchestrator = ExportOrchestrator(archive, DirectorySink(download_dir))
    return InvoiceServices(archive=archive, orchestrator=orchestrator, viewer=ArchiveViewer())


def validate_export_payload(
    body: bytes,
) -> Tuple[Optional[Tuple[Job, CompanyInfo]], Optional[ValidationError]]:
    try:
        payload = json.loads(body.decode("utf-8"))
    except UnicodeDecodeError:
        return None, (
            400,
            {"error": "invalid_encoding", "detail": "Body must be UTF-8 encoded JSON."},
        )
    except json.JSONDecodeError as exc:
        return None, (
            400,
            {
                "error": "invalid_json",
                "detail": f"{exc.msg} (line {exc.lineno}, column {exc.colno})",
            },
        )

    if not isinstance(payload, dict):
        return None, (
            400,
            {"error": "invalid_payload", "detail": "JSON root must be an object."},
        )

    job_data = payload.get("job")
    company_data = payload.get("company")
    if not isinstance(job_data, dict) or not isinstance(company_data, dict):
        return None, (
            400,
            {"error": "invalid_payload", "detail": "'job' and 'company' must be objects."},
        )

    job = Job.from_dict(job_data)
    if not job.id or not job.ob_number:
        return None, (
            422,
            {"error": "invalid_job", "detail": "Job requires 'id' and 'obNumber'."},
        )
    return (job, CompanyInfo.from_dict(company_data)), None


class InvoiceHandler(BaseHTTPRequestHandler):
    MAX_BODY_BYTES = MAX_BODY_BYTES_CONFIG
    services: InvoiceServices

    def _write_response(
        self,
        status: int,
        content_type: str,
        body: bytes,
        headers: Optional[Dict[str, str]] = None,
    ) -> bool:
        try:
            self.send_response(status)
            self.send_header("Content-Type", content_type)
            self.send_header("Content-Length", str(len(body)))
            for name, value in (headers or {}).items():
                self.send_header(name, value)
            self.end_headers()
            self.wfile.write(body)
            return True
        except Exception as exc:
            if is_client_disconnect(exc):
                return False
            raise

    def _send_json(self, status: int, payload: Any) -> bool:
        body = json.dumps(payload).encode("utf-8")
        return self._write_response(status, "application/json", body)

    def _send_pdf(self, filename: str, data: bytes, headers: Optional[Dict[str, str]] = None) -> bool:
        pdf_headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
        pdf_headers.update(headers or {})
        return self._write_response(200, "application/pdf", data, pdf_headers)

    def _read_body(self) -> Optional[bytes]:
        header = self.headers.get("Content-Length")
        if header is None:
            self._send_json(
                411,
                {
                    "error": "missing_content_length",
                    "detail": "Content-Length header is required.",
                },
            )
            return None

        try:
            content_length = int(header)
        except ValueError:
            self._send_json(
                400,
                {
                    "error": "invalid_content_length",
                    "detail": "Content-Length must be an integer.",
                },
            )
            return None

        if content_length <= 0:
            self._send_json(400, {"error": "empty_body", "detail": "Request body cannot be empty."})
            return None

        if content_length > self.MAX_BODY_BYTES:
            self._send_json(
                413,
                {
                    "error": "payload_too_large",
                    "detail": f"Body exceeds {self.MAX_BODY_BYTES} bytes.",
                },
            )
            return None

        try:
            return self.rfile.read(content_length)
        except Exception as exc:
            if is_client_disconnect(exc):
                return None
            raise

    def _find_record(self, match: "re.Match[str]") -> Optional[Any]:
        record = self.services.archive.get(int(match.group("id")))
        if record is None:
            self._send_json(404, {"error": "not_found", "detail": "No archived invoice with that id."})
        return record

    def do_POST(self) -> None:
        if urlsplit(self.path).path.rstrip("/") != "/invoices/export":
            self._send_json(404, {"error": "not_found", "detail": "Unsupported endpoint."})
            return

        body = self._read_body()
        if body is None:
            return

        parsed, validation_error = validate_export_payload(body)
        if validation_error is not None:
            status, payload_body = validation_error
            self._send_json(status, payload_body)
            return

        if parsed is None:
            return
        job, company = parsed
        headers: Dict[str, str] = {}
        # Companies that keep a counter number their invoices sequentially.
        if not job.invoice_number and company.next_invoice_number is not None:
            job, company = assign_invoice_number(job, company)
            headers["X-Next-Invoice-Number"] = str(company.next_invoice_number)

        sink = MemorySink()
        result = self.services.orchestrator.export_invoice(job, company, sink=sink)
        if not result.ok:
            self._send_json(
                EXPORT_ERROR_STATUS.get(result.error, 500),
                {"error": result.error, "detail": result.detail},
            )
            return

        filename, data = sink.downloads[-1]
        headers["X-Invoice-Number"] = result.invoice_number
        self._send_pdf(filename, data, headers)

    def do_GET(self) -> None:
        path = urlsplit(self.path).path
        if path in ("/", "/health", "/healthz", "/ready"):
            self._send_json(200, {"status": "ok"})
            return
        if path.rstrip("/") == "/invoices":
            self._send_json(200, [record.summary() for record in self.services.archive.list()])
            return

        match = RECORD_PATH.match(path)
        if match is None or match.group("action") is None:
            self._send_json(404, {"error": "not_found", "detail": "Unsupported endpoint."})
            return
        record = self._find_record(match)
        if record is None:
            return

        viewer = self.services.viewer
        try:
            if match.group("action") == "view":
                page = viewer.view(record)
                self._write_response(200, "text/html; charset=utf-8", page.html.encode("utf-8"))
            else:
                download = viewer.download(record)
                self._send_pdf(download.filename, download.data)
        except UnknownDocumentError as exc:
            self._send_json(422, {"error": "unknown_document", "detail": str(exc)})
        except Exception as exc:
            log.exception("Failed to reopen archived invoice %s", record.invoice_number)
            self._send_json(500, {"error": "download_failed", "detail": str(exc)})

    def do_DELETE(self) -> None:
        parts = urlsplit(self.path)
        match = RECORD_PATH.match(parts.path)
        if match is None or match.group("action") is not None:
            self._send_json(404, {"error": "not_found", "detail": "Unsupported endpoint."})
            return
        record = self._find_record(match)
        if record is None:
            return

        confirmed = parse_qs(parts.query).get("confirm", [""])[-1].lower() in ("1", "true", "yes")
        if not confirmed:
            self._send_json(
                409,
                {
                    "error": "confirmation_required",
                    "detail": "Repeat the request with ?confirm=true to delete this invoice record.",
                },
            )
            return

        if not self.services.archive.delete(record.id, lambda _record: True):
            self._send_json(500, {"error": "archive_write_failed", "detail": "Invoice record was not deleted."})
            return
        self._send_json(200, {"deleted": record.id})

    def handle_one_request(self) -> None:
        try:
            super().handle_one_request()
        except Exception as exc:
            if is_client_disconnect(exc):
                return
            raise

    def log_message(self, format: str, *args: Any) -> None:
        log.debug("%s - %s", self.address_string(), format % args)


class InvoiceHTTPServer(ThreadingHTTPServer):
    daemon_threads = True
    allow_reuse_address = True
    request_queue_size = LISTEN_BACKLOG


def make_handler(services: InvoiceServices) -> type:
    return type("BoundInvoiceHandler", (InvoiceHandler,), {"services": services})


def run(host: str = "0.0.0.0", port: int = 8080, services: Optional[InvoiceServices] = None) -> None:
    services = services or build_services()
    server = InvoiceHTTPServer((host, port), make_handler(services))
    log.info("Invoice API server listening on http://%s:%s", host, port)
    server.serve_forever()
