"""Font discovery and text measuring for the invoice rasterizer."""

from __future__ import annotations

import os
import threading
from typing import Dict, List, Optional, Tuple, Union

from PIL import ImageFont

from .logs import logger

log = logger(__name__)

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

PilFont = Union[ImageFont.FreeTypeFont, ImageFont.ImageFont]


def find_font_path(env_var: str, candidates: List[str]) -> Optional[str]:
    override = os.getenv(env_var)
    if override and os.path.exists(override):
        return override

    for path in candidates:
        if os.path.exists(path):
            return path
    return None


FONT_CACHE_LOCK = threading.Lock()


class FontManager:
    BUNDLED_REGULAR = os.path.join(_PROJECT_ROOT, "fonts", "DejaVuSans.ttf")
    BUNDLED_BOLD = os.path.join(_PROJECT_ROOT, "fonts", "DejaVuSans-Bold.ttf")
    SYSTEM_REGULAR_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
        "/Library/Fonts/DejaVuSans.ttf",
    ]
    SYSTEM_BOLD_CANDIDATES = [
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
        "/Library/Fonts/DejaVuSans-Bold.ttf",
    ]

    def __init__(self) -> None:
        self.regular_path = find_font_path(
            "INVOICE_FONT_PATH",
            [self.BUNDLED_REGULAR, *self.SYSTEM_REGULAR_CANDIDATES],
        )
        self.bold_path = find_font_path(
            "INVOICE_FONT_BOLD_PATH",
            [self.BUNDLED_BOLD, *self.SYSTEM_BOLD_CANDIDATES],
        )
        if not self.regular_path:
            log.warning("No TrueType font found; falling back to Pillow's default font")
        self._cache: Dict[Tuple[int, bool], PilFont] = {}

    @property
    def has_bold(self) -> bool:
        return self.bold_path is not None

    def font(self, size: int, bold: bool = False) -> PilFont:
        size = max(1, int(round(size)))
        key = (size, bold and self.has_bold)
        with FONT_CACHE_LOCK:
            cached = self._cache.get(key)
            if cached is not None:
                return cached
            path = self.bold_path if key[1] else self.regular_path
            if path:
                loaded: PilFont = ImageFont.truetype(path, size)
            else:
                loaded = ImageFont.load_default(size=size)
            self._cache[key] = loaded
            return loaded

    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        return float(self.font(size, bold).getlength(text))
