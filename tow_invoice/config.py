"""Runtime configuration loaded from environment variables."""

from __future__ import annotations

import os
from typing import Iterable


def env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= minimum else default


def env_str(name: str, default: str, choices: Iterable[str] = ()) -> str:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip()
    allowed = tuple(choices)
    if allowed and value.lower() not in allowed:
        return default
    return value.lower() if allowed else value


ARCHIVE_PATH = env_str("INVOICE_ARCHIVE_PATH", "saved_invoices.json")
ARCHIVE_CAPACITY = env_int("INVOICE_ARCHIVE_CAPACITY", 30, minimum=1)
DOWNLOAD_DIR = env_str("INVOICE_DOWNLOAD_DIR", "downloads")

# Stability delay before capture; long enough for pending transitions to settle.
CAPTURE_DELAY_MS = env_int("INVOICE_CAPTURE_DELAY_MS", 300, minimum=0)
EXPORT_TIMEOUT_MS = env_int("INVOICE_EXPORT_TIMEOUT_MS", 60000, minimum=1000)

# 794 px is an A4 page width at 96 DPI. The minimum height is the A4 height
# at that width, rounded down so a minimum-height page never spills over.
LAYOUT_WIDTH_PX = 794
LAYOUT_MIN_HEIGHT_PX = LAYOUT_WIDTH_PX * 297 // 210
RASTER_SCALE_PERCENT = env_int("INVOICE_RASTER_SCALE_PERCENT", 150, minimum=25)
JPEG_QUALITY = env_int("INVOICE_JPEG_QUALITY", 95, minimum=1)
LOGO_FETCH_TIMEOUT_MS = env_int("INVOICE_LOGO_FETCH_TIMEOUT_MS", 5000, minimum=100)

PAGINATION_POLICY = env_str("INVOICE_PAGINATION_POLICY", "fit", choices=("fit", "tile"))

MAX_BODY_BYTES = env_int("INVOICE_MAX_BODY_BYTES", 1024 * 1024, minimum=1024)
LISTEN_BACKLOG = env_int("INVOICE_LISTEN_BACKLOG", 64, minimum=1)
