"""Invoice export: layout -> raster -> PDF -> archive -> download."""

from __future__ import annotations

import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Optional, Tuple

from .archive import InvoiceArchive
from .config import CAPTURE_DELAY_MS, EXPORT_TIMEOUT_MS, JPEG_QUALITY, PAGINATION_POLICY
from .downloads import DownloadSink
from .fonts import FontManager
from .formatting import derive_invoice_number, download_filename, invoice_date
from .layout import LayoutSnapshot, build_layout
from .logs import logger
from .models import ArchivedDocument, CompanyInfo, InvoiceRecord, Job
from .rasterizer import DEFAULT_SCALE, PillowRasterizer, Rasterizer, encode_jpeg
from .rendering import RenderedDocument, render_document

log = logger(__name__)

EXPORT_FAILED_MESSAGE = "Failed to generate PDF. Please try again."
DOWNLOAD_FAILED_MESSAGE = "Failed to save the PDF. Please try again."

Notifier = Callable[[str], None]


@dataclass(frozen=True)
class ExportResult:
    invoice_number: Optional[str] = None
    filename: Optional[str] = None
    location: Optional[str] = None
    page_count: int = 0
    archived: bool = False
    error: Optional[str] = None
    detail: Optional[str] = None
    document: Optional[bytes] = field(default=None, repr=False)

    @property
    def ok(self) -> bool:
        return self.error is None


def _log_notification(message: str) -> None:
    log.warning("User notification: %s", message)


class ExportOrchestrator:
    """Runs at most one invoice export at a time.

    A second ``export_invoice`` call made while one is in flight is rejected
    with ``export_in_progress`` and has no side effects. Rasterizing and
    paginating happen before anything is written, so a failure there leaves
    the archive untouched and nothing is delivered. Archiving is best-effort:
    if the archive cannot be written the document is still delivered.
    """

    def __init__(
        self,
        archive: InvoiceArchive,
        sink: DownloadSink,
        rasterizer: Optional[Rasterizer] = None,
        fonts: Optional[FontManager] = None,
        policy: str = PAGINATION_POLICY,
        scale: float = DEFAULT_SCALE,
        jpeg_quality: int = JPEG_QUALITY,
        capture_delay_ms: int = CAPTURE_DELAY_MS,
        timeout_ms: Optional[int] = EXPORT_TIMEOUT_MS,
        notify: Optional[Notifier] = None,
        clock: Callable[[], date] = date.today,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.archive = archive
        self.sink = sink
        self.fonts = fonts
        self.rasterizer = rasterizer
        self.policy = policy
        self.scale = scale
        self.jpeg_quality = jpeg_quality
        self.capture_delay_ms = capture_delay_ms
        self.timeout_ms = timeout_ms
        self.notify = notify or _log_notification
        self.clock = clock
        self.sleep = sleep
        self._in_flight = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._in_flight.locked()

    def _get_fonts(self) -> FontManager:
        if self.fonts is None:
            self.fonts = FontManager()
        return self.fonts

    def _get_rasterizer(self) -> Rasterizer:
        if self.rasterizer is None:
            self.rasterizer = PillowRasterizer(self._get_fonts())
        return self.rasterizer

    def export_invoice(
        self,
        job: Job,
        company: CompanyInfo,
        layout: Optional[LayoutSnapshot] = None,
        sink: Optional[DownloadSink] = None,
    ) -> ExportResult:
        if not self._in_flight.acquire(blocking=False):
            log.info("Rejected export for job %s: another export is in flight", job.id)
            return ExportResult(
                error="export_in_progress",
                detail="An invoice export is already running.",
            )
        try:
            return self._export(job, company, layout, sink or self.sink)
        finally:
            self._in_flight.release()

    def _render(self, layout: LayoutSnapshot) -> Tuple[bytes, RenderedDocument]:
        raster = self._get_rasterizer().rasterize(layout, self.scale)
        image_data = encode_jpeg(raster, self.jpeg_quality)
        return image_data, render_document(image_data, self.policy)

    def _capture(self, layout: LayoutSnapshot) -> Tuple[bytes, RenderedDocument]:
        if self.timeout_ms is None:
            return self._render(layout)
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="invoice-export")
        try:
            future = executor.submit(self._render, layout)
            return future.result(timeout=self.timeout_ms / 1000.0)
        finally:
            executor.shutdown(wait=False)

    def _fail(self, error: str, detail: str, invoice_number: Optional[str], message: str) -> ExportResult:
        self.notify(message)
        return ExportResult(invoice_number=invoice_number, error=error, detail=detail)

    def _export(
        self,
        job: Job,
        company: CompanyInfo,
        layout: Optional[LayoutSnapshot],
        sink: DownloadSink,
    ) -> ExportResult:
        invoice_number = derive_invoice_number(job)
        issued = invoice_date(self.clock())

        try:
            if self.capture_delay_ms:
                self.sleep(self.capture_delay_ms / 1000.0)
            if layout is None:
                layout = build_layout(job, company, invoice_number, issued, self._get_fonts())
            image_data, document = self._capture(layout)
        except FutureTimeoutError:
            log.error("Export of %s timed out after %s ms", invoice_number, self.timeout_ms)
            return self._fail(
                "export_timeout",
                f"Export exceeded timeout of {self.timeout_ms} ms.",
                invoice_number,
                EXPORT_FAILED_MESSAGE,
            )
        except Exception as exc:
            log.exception("Error generating PDF for %s", invoice_number)
            return self._fail("export_failed", str(exc), invoice_number, EXPORT_FAILED_MESSAGE)

        record = InvoiceRecord(
            invoice_number=invoice_number,
            date=issued,
            customer_name=job.customer_name,
            ob_number=job.ob_number,
            amount=job.price,
            document=ArchivedDocument.raster(image_data),
        )
        try:
            archived = self.archive.upsert(record)
        except Exception:
            log.exception("Archiving invoice %s failed", invoice_number)
            archived = False
        if not archived:
            log.warning("Invoice %s was not archived; delivering the document anyway", invoice_number)

        filename = download_filename(invoice_number)
        try:
            location = sink.deliver(filename, document.data)
        except Exception as exc:
            log.exception("Delivering %s failed", filename)
            return self._fail("download_failed", str(exc), invoice_number, DOWNLOAD_FAILED_MESSAGE)

        log.info("Exported %s (%d page(s)) to %s", invoice_number, document.page_count, location)
        return ExportResult(
            invoice_number=invoice_number,
            filename=filename,
            location=location,
            page_count=document.page_count,
            archived=archived,
            document=document.data,
        )
