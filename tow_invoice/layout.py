"""Resolve a job and company profile into a fixed-width invoice layout.

The exporter never reaches into live UI state: everything it rasterizes is
described by the :class:`LayoutSnapshot` built here, with every position and
wrapped line already computed in logical pixels.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple, Union

from .config import LAYOUT_MIN_HEIGHT_PX, LAYOUT_WIDTH_PX
from .formatting import TextWidthProvider, fmt_amount_due, fmt_date, wrap_text
from .models import CompanyInfo, Job

COLOR_ACCENT = "#10b981"
COLOR_ACCENT_DARK = "#059669"
COLOR_TEXT = "#1f2937"
COLOR_MUTED = "#6b7280"
COLOR_BODY = "#4b5563"
COLOR_BORDER = "#e5e7eb"
COLOR_PANEL = "#f9fafb"
COLOR_HEADER_BG = "#f0fdf4"
COLOR_PICKUP_BORDER = "#d1fae5"
COLOR_DROPOFF_BG = "#fef2f2"
COLOR_DROPOFF_BORDER = "#fecaca"
COLOR_DROPOFF_ACCENT = "#ef4444"
COLOR_DROPOFF_LABEL = "#dc2626"
COLOR_WHITE = "#ffffff"

PAD_X = 24
PAD_Y = 20
LOGO_H = 48
INFO_BOX_W = 200
PAYMENT_CARD_W = 300
FOOTER_BAND_H = 48


@dataclass(frozen=True)
class TextElement:
    x: float
    y: float
    text: str
    size: int
    color: str = COLOR_TEXT
    bold: bool = False


@dataclass(frozen=True)
class BoxElement:
    x: float
    y: float
    width: float
    height: float
    fill: str
    outline: Optional[str] = None
    radius: float = 0


@dataclass(frozen=True)
class ImageElement:
    x: float
    y: float
    height: float
    source: str


LayoutElement = Union[TextElement, BoxElement, ImageElement]


@dataclass(frozen=True)
class LayoutSnapshot:
    width: int
    height: int
    elements: Tuple[LayoutElement, ...] = field(default_factory=tuple)
    background: str = COLOR_WHITE

    def texts(self) -> List[str]:
        return [el.text for el in self.elements if isinstance(el, TextElement)]

    def images(self) -> List[ImageElement]:
        return [el for el in self.elements if isinstance(el, ImageElement)]


class InvoiceLayout:
    """Builds the invoice page top to bottom, tracking a vertical cursor."""

    def __init__(
        self,
        fonts: TextWidthProvider,
        width: int = LAYOUT_WIDTH_PX,
        min_height: int = LAYOUT_MIN_HEIGHT_PX,
    ) -> None:
        self.fonts = fonts
        self.width = width
        self.min_height = min_height
        self.elements: List[LayoutElement] = []

    def _text(self, x: float, y: float, text: str, size: int, color: str = COLOR_TEXT, bold: bool = False) -> None:
        self.elements.append(TextElement(x, y, text, size, color, bold))

    def _text_right(self, right: float, y: float, text: str, size: int, color: str = COLOR_TEXT, bold: bool = False) -> None:
        self._text(right - self.fonts.text_width(text, size, bold=bold), y, text, size, color, bold)

    def _paragraph(
        self,
        x: float,
        y: float,
        text: str,
        size: int,
        max_width: float,
        line_h: float,
        color: str = COLOR_TEXT,
        bold: bool = False,
    ) -> float:
        for line in wrap_text(self.fonts, text, max_width, size, bold=bold):
            self._text(x, y, line, size, color, bold)
            y += line_h
        return y

    def _measure_lines(self, text: str, size: int, max_width: float) -> int:
        return max(1, len(wrap_text(self.fonts, text, max_width, size)))

    def _heading(self, x: float, y: float, title: str) -> float:
        self._text(x, y, title.upper(), 12, COLOR_ACCENT, bold=True)
        return y + 24

    def _divider(self, y: float) -> None:
        self.elements.append(BoxElement(0, y, self.width, 1, COLOR_BORDER))

    def header(self, company: CompanyInfo, invoice_number: str, invoice_date: str) -> float:
        start = len(self.elements)
        box_x = self.width - PAD_X - INFO_BOX_W
        left_w = box_x - 2 * PAD_X

        y = float(PAD_Y)
        if company.logo_url:
            self.elements.append(ImageElement(PAD_X, y, LOGO_H, company.logo_url))
            y += LOGO_H + 12
        self._text(PAD_X, y, "INVOICE", 28, COLOR_ACCENT, bold=True)
        y += 38
        y = self._paragraph(PAD_X, y, company.name, 16, left_w, 22, bold=True)
        y = self._paragraph(PAD_X, y, company.address, 13, min(320, left_w), 20, COLOR_MUTED)

        contact = [value for value in (company.phone and f"Tel: {company.phone}", company.email) if value]
        if contact:
            y += 6
            x = float(PAD_X)
            for value in contact:
                self._text(x, y, value, 13, COLOR_MUTED)
                x += self.fonts.text_width(value, 13) + 16
            y += 20
        if company.registration_number:
            y += 6
            self._text(PAD_X, y, f"Reg: {company.registration_number}", 13, COLOR_MUTED)
            y += 20

        box_y = float(PAD_Y)
        box_h = 16 + 15 + 34 + 15 + 20 + 16
        self.elements.append(BoxElement(box_x, box_y, INFO_BOX_W, box_h, COLOR_PANEL, COLOR_BORDER, radius=12))
        inner_right = box_x + INFO_BOX_W - 16
        cy = box_y + 16
        self._text_right(inner_right, cy, "INVOICE NUMBER", 11, COLOR_MUTED, bold=True)
        cy += 15
        self._text_right(inner_right, cy, invoice_number, 20, COLOR_ACCENT, bold=True)
        cy += 34
        self._text_right(inner_right, cy, "INVOICE DATE", 11, COLOR_MUTED, bold=True)
        cy += 15
        self._text_right(inner_right, cy, invoice_date, 14, COLOR_TEXT, bold=True)

        bottom = max(y, box_y + box_h) + PAD_Y
        self.elements.insert(start, BoxElement(0, 0, self.width, bottom, COLOR_HEADER_BG))
        self.elements.append(BoxElement(0, bottom, self.width, 4, COLOR_ACCENT))
        return bottom + 4

    def parties(self, y: float, job: Job) -> float:
        mid = self.width / 2
        top = y

        ly = self._heading(PAD_X, y + PAD_Y, "Bill To")
        ly = self._paragraph(PAD_X, ly, job.customer_name, 16, mid - 2 * PAD_X, 22, bold=True)
        self._text(PAD_X, ly + 4, f"OB Number: {job.ob_number}", 13, COLOR_MUTED)
        ly += 24

        rx = mid + PAD_X
        value_x = rx + 90
        value_w = self.width - PAD_X - value_x
        ry = self._heading(rx, y + PAD_Y, "Job Details")
        rows: List[Tuple[str, str]] = [("Vehicle:", job.vehicle_details)]
        if job.date.strip():
            rows.append(("Date:", fmt_date(job.date)))
        rows.append(("Received:", job.time_received))
        rows.append(("Type:", f"{job.tow_class} - {job.vehicle_use}"))
        for label, value in rows:
            self._text(rx, ry, label, 13, COLOR_TEXT, bold=True)
            end = self._paragraph(value_x, ry, value, 13, value_w, 20, COLOR_BODY)
            ry = max(ry + 20, end) + 8

        bottom = max(ly, ry) + PAD_Y
        self.elements.append(BoxElement(mid, top, 1, bottom - top, COLOR_BORDER))
        self._divider(bottom)
        return bottom + 1

    def _location_card(
        self,
        x: float,
        y: float,
        width: float,
        label: str,
        text: str,
        colors: Tuple[str, str, str, str],
    ) -> float:
        background, border, accent, label_color = colors
        lines = self._measure_lines(text, 14, width - 32)
        height = 12 + 16 + lines * 21 + 12
        self.elements.append(BoxElement(x, y, width, height, background, border, radius=8))
        self.elements.append(BoxElement(x, y, 3, height, accent))
        self._text(x + 16, y + 12, label.upper(), 10, label_color, bold=True)
        self._paragraph(x + 16, y + 28, text, 14, width - 32, 21)
        return y + height

    def locations(self, y: float, job: Job) -> float:
        y = self._heading(PAD_X, y + PAD_Y, "Service Locations")
        card_w = (self.width - 2 * PAD_X - 16) / 2
        bottom = self._location_card(
            PAD_X,
            y,
            card_w,
            "Pickup Location",
            job.pickup_location,
            (COLOR_HEADER_BG, COLOR_PICKUP_BORDER, COLOR_ACCENT, COLOR_ACCENT_DARK),
        )
        if job.dropoff_location:
            bottom = max(
                bottom,
                self._location_card(
                    PAD_X + card_w + 16,
                    y,
                    card_w,
                    "Dropoff Location",
                    job.dropoff_location,
                    (COLOR_DROPOFF_BG, COLOR_DROPOFF_BORDER, COLOR_DROPOFF_ACCENT, COLOR_DROPOFF_LABEL),
                ),
            )
        bottom += PAD_Y
        self._divider(bottom)
        return bottom + 1

    def notes(self, y: float, job: Job) -> float:
        if not job.notes:
            return y
        y = self._heading(PAD_X, y + PAD_Y, "Notes")
        width = self.width - 2 * PAD_X
        lines = self._measure_lines(job.notes, 14, width - 32)
        height = 12 + lines * 22 + 12
        self.elements.append(BoxElement(PAD_X, y, width, height, COLOR_PANEL, "#f3f4f6", radius=8))
        self._paragraph(PAD_X + 16, y + 12, job.notes, 14, width - 32, 22, COLOR_BODY)
        bottom = y + height + PAD_Y
        self._divider(bottom)
        return bottom + 1

    def _payment_rows(self, company: CompanyInfo) -> List[Tuple[str, str]]:
        rows = [
            ("Bank:", company.bank_name),
            ("Account:", company.account_number),
            ("Branch Code:", company.sort_code),
        ]
        return [(label, value) for label, value in rows if value]

    def footer(self, y: float, job: Job, company: CompanyInfo) -> float:
        rows = self._payment_rows(company)
        card_h = 16 + 24 + 26 * len(rows) + 10 if rows else 0
        total_h = 12 + 6 + 44 + (20 if not job.price else 0)
        footer_h = 2 * PAD_X + max(card_h, total_h)

        # The footer sits at the bottom of the page when the body is short.
        y = max(y, self.min_height - footer_h - FOOTER_BAND_H - 3)
        self.elements.append(BoxElement(0, y, self.width, 3, COLOR_ACCENT))
        y += 3
        self.elements.append(BoxElement(0, y, self.width, footer_h, COLOR_PANEL))
        inner_bottom = y + footer_h - PAD_X

        if rows:
            cx = float(PAD_X)
            cy = inner_bottom - card_h
            self.elements.append(BoxElement(cx, cy, PAYMENT_CARD_W, card_h, COLOR_WHITE, COLOR_BORDER, radius=10))
            self._text(cx + 16, cy + 16, "PAYMENT DETAILS", 11, COLOR_MUTED, bold=True)
            ry = cy + 40
            for label, value in rows:
                self._text(cx + 16, ry, label, 13, COLOR_MUTED)
                self._text_right(cx + PAYMENT_CARD_W - 16, ry, value, 13, COLOR_TEXT, bold=True)
                ry += 26

        right = self.width - PAD_X
        ty = inner_bottom - total_h
        self._text_right(right, ty, "TOTAL AMOUNT DUE", 12, COLOR_MUTED, bold=True)
        self._text_right(right, ty + 18, fmt_amount_due(job.price), 36, COLOR_ACCENT, bold=True)
        if not job.price:
            self._text_right(right, ty + 68, "* Amount needs to be entered *", 11, COLOR_DROPOFF_ACCENT)

        y += footer_h
        self.elements.append(BoxElement(0, y, self.width, FOOTER_BAND_H, COLOR_ACCENT))
        thanks = f"Thank you for choosing {company.name}!"
        self._text((self.width - self.fonts.text_width(thanks, 13)) / 2, y + 16, thanks, 13, COLOR_WHITE)
        return y + FOOTER_BAND_H

    def build(self, job: Job, company: CompanyInfo, invoice_number: str, invoice_date: str) -> LayoutSnapshot:
        self.elements = []
        y = self.header(company, invoice_number, invoice_date)
        y = self.parties(y, job)
        y = self.locations(y, job)
        y = self.notes(y, job)
        y = self.footer(y, job, company)
        height = max(self.min_height, int(math.ceil(y)))
        return LayoutSnapshot(width=self.width, height=height, elements=tuple(self.elements))


def build_layout(
    job: Job,
    company: CompanyInfo,
    invoice_number: str,
    invoice_date: str,
    fonts: Optional[TextWidthProvider] = None,
) -> LayoutSnapshot:
    if fonts is None:
        from .fonts import FontManager

        fonts = FontManager()
    return InvoiceLayout(fonts).build(job, company, invoice_number, invoice_date)
