"""Assemble paginated PDF documents from an encoded invoice raster."""

from __future__ import annotations

import io
from dataclasses import dataclass

from fpdf import FPDF  # type: ignore

from .config import PAGINATION_POLICY
from .pagination import A4, PageFormat, PagePlan, plan_pages
from .rasterizer import image_size


@dataclass(frozen=True)
class RenderedDocument:
    data: bytes
    page_count: int


class DocumentRenderer:
    def __init__(self, image_data: bytes, plan: PagePlan) -> None:
        self.image_data = image_data
        self.plan = plan
        fmt = plan.page_format
        self.pdf = FPDF(orientation="portrait", unit=fmt.unit, format=(fmt.width, fmt.height))
        self.pdf.set_auto_page_break(False)
        self.pdf.set_margins(0, 0, 0)

    def render(self) -> RenderedDocument:
        for placement in self.plan.placements:
            self.pdf.add_page()
            self.pdf.image(
                io.BytesIO(self.image_data),
                x=placement.x,
                y=placement.y,
                w=placement.width,
                h=placement.height,
            )

        pdf_blob = self.pdf.output()
        if isinstance(pdf_blob, (bytes, bytearray)):
            return RenderedDocument(bytes(pdf_blob), self.plan.page_count)
        if isinstance(pdf_blob, str):
            return RenderedDocument(pdf_blob.encode("latin-1"), self.plan.page_count)
        raise RuntimeError(f"Unexpected PDF output type: {type(pdf_blob).__name__}")


def render_document(
    image_data: bytes,
    policy: str = PAGINATION_POLICY,
    page_format: PageFormat = A4,
) -> RenderedDocument:
    """Paginate one encoded image onto fixed-size pages and return the PDF bytes."""
    width, height = image_size(image_data)
    plan = plan_pages(width, height, page_format, policy)
    return DocumentRenderer(image_data, plan).render()
