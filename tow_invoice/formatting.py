"""Formatting, text wrapping and invoice numbering helpers."""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import List, Optional, Protocol, Tuple

from dateutil import parser as dateutil_parser

from .models import CompanyInfo, Job

CURRENCY_SYMBOL = "R"
DEFAULT_FIRST_INVOICE_NUMBER = 1001


class TextWidthProvider(Protocol):
    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        ...


def fmt_money(amount: float, symbol: str = CURRENCY_SYMBOL) -> str:
    return f"{symbol}{amount:.2f}"


def fmt_amount_due(price: Optional[float]) -> str:
    if not price:
        return f"{CURRENCY_SYMBOL} [Manual]"
    return fmt_money(price)


def fmt_date(raw: str) -> str:
    """Parse a date string and return it formatted as 'Mar 14, 2025'."""
    raw = raw.strip()
    if not raw:
        return raw
    try:
        dt = dateutil_parser.parse(raw)
        return dt.strftime("%b %d, %Y")
    except (ValueError, OverflowError):
        return raw


def invoice_date(today: Optional[date] = None) -> str:
    return (today or date.today()).strftime("%b %d, %Y")


def wrap_text(
    fonts_obj: TextWidthProvider,
    text: str,
    max_width: float,
    font_size: int,
    bold: bool = False,
) -> List[str]:
    def line_width(value: str) -> float:
        return fonts_obj.text_width(value, font_size, bold=bold)

    def wrap_paragraph(paragraph: str) -> List[str]:
        words = paragraph.split()
        if not words:
            return []

        lines: List[str] = []
        current = ""
        for word in words:
            candidate = word if not current else f"{current} {word}"
            if line_width(candidate) <= max_width:
                current = candidate
                continue

            if current:
                lines.append(current)
                if line_width(word) <= max_width:
                    current = word
                    continue

            # Break words wider than the column character by character.
            chunk = ""
            for char in word:
                candidate_chunk = chunk + char
                if chunk and line_width(candidate_chunk) > max_width:
                    lines.append(chunk)
                    chunk = char
                else:
                    chunk = candidate_chunk
            current = chunk

        if current:
            lines.append(current)
        return lines

    result: List[str] = []
    for paragraph in text.split("\n"):
        result.extend(wrap_paragraph(paragraph))
    return result


def derive_invoice_number(job: Job) -> str:
    """Use the job's assigned number, else ``INV-<obNumber>-<last 4 of job id>``."""
    if job.invoice_number:
        return job.invoice_number
    return f"INV-{job.ob_number}-{job.id[-4:]}"


def assign_invoice_number(job: Job, company: CompanyInfo) -> Tuple[Job, CompanyInfo]:
    """Allocate the company's next sequential number to a job that has none.

    Returns the updated job and company settings; jobs that already carry a
    generated number are returned unchanged.
    """
    if job.invoice_generated and job.invoice_number:
        return job, company

    next_number = company.next_invoice_number or DEFAULT_FIRST_INVOICE_NUMBER
    updated_job = replace(job, invoice_generated=True, invoice_number=f"INV-{next_number}")
    updated_company = replace(company, next_invoice_number=next_number + 1)
    return updated_job, updated_company


def safe_filename_part(value: str) -> str:
    cleaned = "".join(ch for ch in value if ch not in '\\/*?:"<>|').strip()
    return cleaned or "Invoice"


def download_filename(invoice_number: str) -> str:
    return f"Invoice-{safe_filename_part(invoice_number)}.pdf"
