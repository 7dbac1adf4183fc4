"""Rasterize a resolved invoice layout into an opaque image."""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Protocol, Tuple

import httpx
from PIL import Image, ImageDraw

from .config import JPEG_QUALITY, LOGO_FETCH_TIMEOUT_MS, RASTER_SCALE_PERCENT
from .fonts import FontManager
from .layout import BoxElement, ImageElement, LayoutSnapshot, TextElement
from .logs import logger

log = logger(__name__)

DEFAULT_SCALE = RASTER_SCALE_PERCENT / 100.0

ImageFetcher = Callable[[str], bytes]


@dataclass(frozen=True)
class RasterImage:
    image: Image.Image

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


class Rasterizer(Protocol):
    def rasterize(self, layout: LayoutSnapshot, scale: float = DEFAULT_SCALE) -> RasterImage:
        ...


def fetch_remote_image(url: str) -> bytes:
    """Download an image referenced by the layout, e.g. a company logo URL."""
    response = httpx.get(
        url,
        headers={"User-Agent": "tow-invoice/1.0"},
        timeout=LOGO_FETCH_TIMEOUT_MS / 1000.0,
        follow_redirects=True,
    )
    response.raise_for_status()
    return response.content


class PillowRasterizer:
    """Draws a :class:`LayoutSnapshot` at its fixed logical width times ``scale``.

    The canvas is always filled with the layout's opaque background so the
    JPEG encoding step never sees transparency. Remote images are fetched and
    composited directly; an image that cannot be fetched or decoded is logged
    and left out of the raster.
    """

    def __init__(
        self,
        fonts: Optional[FontManager] = None,
        fetch_image: Optional[ImageFetcher] = None,
    ) -> None:
        self.fonts = fonts or FontManager()
        self.fetch_image = fetch_image or fetch_remote_image
        self._image_cache: Dict[str, Optional[Image.Image]] = {}

    def _load_image(self, source: str) -> Optional[Image.Image]:
        if source in self._image_cache:
            return self._image_cache[source]
        loaded: Optional[Image.Image] = None
        try:
            with Image.open(io.BytesIO(self.fetch_image(source))) as img:
                img.load()
                loaded = img.convert("RGBA")
        except Exception as exc:
            log.warning("Skipping layout image %s: %s", source, exc)
        self._image_cache[source] = loaded
        return loaded

    def _draw_image(self, canvas: Image.Image, element: ImageElement, scale: float) -> None:
        source = self._load_image(element.source)
        if source is None or source.height == 0:
            return
        height = max(1, int(round(element.height * scale)))
        width = max(1, int(round(source.width * height / source.height)))
        resized = source.resize((width, height), Image.LANCZOS)
        canvas.paste(resized, (int(round(element.x * scale)), int(round(element.y * scale))), resized)

    def rasterize(self, layout: LayoutSnapshot, scale: float = DEFAULT_SCALE) -> RasterImage:
        if scale <= 0:
            raise ValueError(f"Raster scale must be positive, got {scale}")
        size = (int(round(layout.width * scale)), int(round(layout.height * scale)))
        canvas = Image.new("RGB", size, layout.background)
        draw = ImageDraw.Draw(canvas)

        for element in layout.elements:
            if isinstance(element, BoxElement):
                box = (
                    element.x * scale,
                    element.y * scale,
                    (element.x + element.width) * scale - 1,
                    (element.y + element.height) * scale - 1,
                )
                if box[2] < box[0] or box[3] < box[1]:
                    continue
                if element.radius:
                    draw.rounded_rectangle(
                        box,
                        radius=element.radius * scale,
                        fill=element.fill,
                        outline=element.outline,
                    )
                else:
                    draw.rectangle(box, fill=element.fill, outline=element.outline)
            elif isinstance(element, TextElement):
                font = self.fonts.font(int(round(element.size * scale)), element.bold)
                draw.text((element.x * scale, element.y * scale), element.text, font=font, fill=element.color)
            elif isinstance(element, ImageElement):
                self._draw_image(canvas, element, scale)

        return RasterImage(canvas)


def encode_jpeg(raster: RasterImage, quality: int = JPEG_QUALITY) -> bytes:
    buffer = io.BytesIO()
    raster.image.convert("RGB").save(buffer, format="JPEG", quality=quality)
    return buffer.getvalue()


def image_size(data: bytes) -> Tuple[int, int]:
    """Intrinsic ``(width, height)`` of an encoded image."""
    with Image.open(io.BytesIO(data)) as img:
        return img.size
