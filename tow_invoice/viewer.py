"""Reopen archived invoices for viewing or downloading."""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import UnidentifiedImageError

from .config import PAGINATION_POLICY
from .downloads import DownloadSink
from .errors import UnknownDocumentError
from .formatting import download_filename
from .logs import logger
from .models import DocumentKind, InvoiceRecord
from .pagination import A4, PageFormat, estimate_page_count
from .rasterizer import image_size
from .rendering import render_document

log = logger(__name__)

VIEW_PAGE_TEMPLATE = """<html>
  <head>
    <title>Invoice {number}</title>
    <style>
      body {{ margin: 0; padding: 0; background: #525659; font-family: sans-serif; }}
      .toolbar {{
        position: fixed; top: 0; left: 0; right: 0; z-index: 1000;
        background: #1f2937; padding: 10px 20px;
        display: flex; justify-content: space-between; align-items: center;
        box-shadow: 0 2px 4px rgba(0,0,0,0.3);
      }}
      .close-btn {{
        background: #dc2626; color: white; border: none; padding: 8px 16px;
        border-radius: 6px; cursor: pointer; font-weight: bold; font-size: 14px;
      }}
      .close-btn:hover {{ background: #b91c1c; }}
      .invoice-info {{ color: white; font-size: 14px; }}
      .content {{ margin-top: 50px; height: calc(100vh - 50px); display: flex; justify-content: center; overflow: auto; }}
      iframe {{ width: 100%; height: 100%; border: none; }}
      img {{ max-width: 100%; margin: 20px; box-shadow: 0 0 20px rgba(0,0,0,0.5); background: white; align-self: flex-start; }}
    </style>
  </head>
  <body>
    <div class="toolbar">
      <div class="invoice-info">Invoice: {number} - {customer}{pages}</div>
      <button class="close-btn" onclick="window.close()">&larr; Back</button>
    </div>
    <div class="content">
      {body}
    </div>
  </body>
</html>
"""


@dataclass(frozen=True)
class ViewPage:
    title: str
    html: str


@dataclass(frozen=True)
class DocumentDownload:
    filename: str
    data: bytes
    page_count: Optional[int]
    location: Optional[str] = None


def _unreadable(record: InvoiceRecord) -> UnknownDocumentError:
    return UnknownDocumentError(
        f"Invoice {record.invoice_number} has no readable document; it may be corrupt."
    )


def _require_known(record: InvoiceRecord) -> Optional[Tuple[int, int]]:
    """Reject unreadable records; returns the raster size for image snapshots."""
    kind = record.document.kind
    if kind is DocumentKind.UNKNOWN:
        raise _unreadable(record)
    if kind is DocumentKind.PAGINATED:
        return None
    try:
        return image_size(record.document.data)
    except (UnidentifiedImageError, OSError) as exc:
        raise _unreadable(record) from exc


class ArchiveViewer:
    """Rebuilds documents from archived records without the original job or layout.

    Raster snapshots are shown as-is on screen and re-paginated with the
    export policy when downloaded; stored PDFs are passed through untouched.
    """

    def __init__(self, policy: str = PAGINATION_POLICY, page_format: PageFormat = A4) -> None:
        self.policy = policy
        self.page_format = page_format

    def view(self, record: InvoiceRecord) -> ViewPage:
        size = _require_known(record)
        number = html.escape(record.invoice_number)
        source = html.escape(record.document.to_data_uri(), quote=True)
        pages = ""
        if size is None:
            body = f'<iframe src="{source}" frameborder="0" allowfullscreen></iframe>'
        else:
            body = f'<img src="{source}" alt="Invoice {number}" />'
            count = estimate_page_count(size[0], size[1], self.page_format, self.policy)
            pages = f" ({count} page{'' if count == 1 else 's'})"
        page = VIEW_PAGE_TEMPLATE.format(
            number=number,
            customer=html.escape(record.customer_name),
            pages=pages,
            body=body,
        )
        return ViewPage(title=f"Invoice {record.invoice_number}", html=page)

    def download(self, record: InvoiceRecord, sink: Optional[DownloadSink] = None) -> DocumentDownload:
        _require_known(record)
        filename = download_filename(record.invoice_number)
        if record.document.kind is DocumentKind.PAGINATED:
            data = record.document.data
            page_count: Optional[int] = None
        else:
            rendered = render_document(record.document.data, self.policy, self.page_format)
            data = rendered.data
            page_count = rendered.page_count

        location = sink.deliver(filename, data) if sink is not None else None
        log.info("Re-exported archived invoice %s", record.invoice_number)
        return DocumentDownload(filename=filename, data=data, page_count=page_count, location=location)
