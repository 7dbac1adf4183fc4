import io
import threading
from typing import Optional, Tuple

from tow_invoice.layout import LayoutSnapshot


class FixedWidthFonts:
    """Measures every character as half the font size."""

    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        return len(text) * size * 0.5


def job_payload(**overrides) -> dict:
    payload = {
        "id": "1700000001234",
        "date": "2026-10-19",
        "timeReceived": "08:15",
        "obNumber": "OB-100",
        "customerName": "J. Doe",
        "contactOnScene": "Sam",
        "pickupLocation": "12 Main Road, Durbanville",
        "dropoffLocation": "Panel Shop, Bellville",
        "vehicleDetails": "Toyota Corolla CA 123-456",
        "towClass": "Normal Recovery",
        "vehicleUse": "Normal Sling",
        "price": 450.00,
    }
    payload.update(overrides)
    return payload


def company_payload(**overrides) -> dict:
    payload = {
        "name": "Cape Tow Services",
        "address": "1 Harbour Road, Cape Town",
        "phone": "021 555 0100",
        "email": "dispatch@capetow.example",
    }
    payload.update(overrides)
    return payload


def jpeg_bytes(size: Tuple[int, int]) -> bytes:
    from PIL import Image

    buffer = io.BytesIO()
    Image.new("RGB", size, "white").save(buffer, format="JPEG", quality=90)
    return buffer.getvalue()


class SolidRasterizer:
    def __init__(self, size: Tuple[int, int] = (794, 1122)) -> None:
        self.size = size
        self.calls = 0

    def rasterize(self, layout: LayoutSnapshot, scale: float = 1.0):
        from PIL import Image

        from tow_invoice.rasterizer import RasterImage

        self.calls += 1
        return RasterImage(Image.new("RGB", self.size, layout.background))


class BlockingRasterizer(SolidRasterizer):
    """Holds the export inside ``rasterize`` until ``release`` is set."""

    def __init__(self, size: Tuple[int, int] = (794, 1122), wait: Optional[float] = 5.0) -> None:
        super().__init__(size)
        self.entered = threading.Event()
        self.release = threading.Event()
        self.wait = wait

    def rasterize(self, layout: LayoutSnapshot, scale: float = 1.0):
        self.entered.set()
        self.release.wait(self.wait)
        return super().rasterize(layout, scale)


class FailingRasterizer:
    def rasterize(self, layout: LayoutSnapshot, scale: float = 1.0):
        raise RuntimeError("canvas is tainted")
