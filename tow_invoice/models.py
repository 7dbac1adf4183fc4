"""Value types shared by the export pipeline and the invoice archive."""

from __future__ import annotations

import base64
import binascii
import threading
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

PDF_MIME = "application/pdf"
JPEG_MIME = "image/jpeg"


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _opt_float(value: Any) -> Optional[float]:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Job:
    """A dispatched towing job. The export pipeline reads it, never mutates it."""

    id: str
    ob_number: str
    customer_name: str
    date: str = ""
    time_received: str = ""
    contact_on_scene: str = ""
    pickup_location: str = ""
    dropoff_location: Optional[str] = None
    vehicle_details: str = ""
    tow_class: str = ""
    vehicle_use: str = ""
    notes: Optional[str] = None
    invoice_generated: bool = False
    price: Optional[float] = None
    invoice_number: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Job":
        return cls(
            id=str(data.get("id", "")),
            ob_number=str(data.get("obNumber", "")).strip(),
            customer_name=str(data.get("customerName", "")).strip(),
            date=str(data.get("date", "") or ""),
            time_received=str(data.get("timeReceived", "") or ""),
            contact_on_scene=str(data.get("contactOnScene", "") or ""),
            pickup_location=str(data.get("pickupLocation", "") or ""),
            dropoff_location=_opt_str(data.get("dropoffLocation")),
            vehicle_details=str(data.get("vehicleDetails", "") or ""),
            tow_class=str(data.get("towClass", "") or ""),
            vehicle_use=str(data.get("vehicleUse", "") or ""),
            notes=_opt_str(data.get("notes")),
            invoice_generated=bool(data.get("invoiceGenerated", False)),
            price=_opt_float(data.get("price")),
            invoice_number=_opt_str(data.get("invoiceNumber")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "date": self.date,
            "timeReceived": self.time_received,
            "obNumber": self.ob_number,
            "customerName": self.customer_name,
            "contactOnScene": self.contact_on_scene,
            "pickupLocation": self.pickup_location,
            "dropoffLocation": self.dropoff_location,
            "vehicleDetails": self.vehicle_details,
            "towClass": self.tow_class,
            "vehicleUse": self.vehicle_use,
            "notes": self.notes,
            "invoiceGenerated": self.invoice_generated,
            "price": self.price,
            "invoiceNumber": self.invoice_number,
        }


@dataclass(frozen=True)
class CompanyInfo:
    name: str
    address: str = ""
    phone: str = ""
    email: str = ""
    registration_number: Optional[str] = None
    bank_name: Optional[str] = None
    account_number: Optional[str] = None
    sort_code: Optional[str] = None
    logo_url: Optional[str] = None
    next_invoice_number: Optional[int] = None

    @property
    def has_bank_details(self) -> bool:
        return bool(self.bank_name or self.account_number or self.sort_code)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CompanyInfo":
        next_number = data.get("nextInvoiceNumber")
        try:
            next_number = int(next_number) if next_number is not None else None
        except (TypeError, ValueError):
            next_number = None
        return cls(
            name=str(data.get("name", "")).strip(),
            address=str(data.get("address", "") or ""),
            phone=str(data.get("phone", "") or ""),
            email=str(data.get("email", "") or ""),
            registration_number=_opt_str(data.get("registrationNumber")),
            bank_name=_opt_str(data.get("bankName")),
            account_number=_opt_str(data.get("accountNumber")),
            sort_code=_opt_str(data.get("sortCode")),
            logo_url=_opt_str(data.get("logoUrl")),
            next_invoice_number=next_number,
        )


class DocumentKind(str, Enum):
    RASTER = "raster"
    PAGINATED = "document"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ArchivedDocument:
    """Tagged snapshot held by an archive record.

    ``RASTER`` holds an encoded image that is re-paginated on download,
    ``PAGINATED`` a ready-made PDF byte stream. ``UNKNOWN`` keeps the raw
    stored text so the record survives a load/save cycle untouched.
    """

    kind: DocumentKind
    data: bytes = b""
    mime: str = ""
    raw: Optional[str] = None

    @classmethod
    def raster(cls, data: bytes, mime: str = JPEG_MIME) -> "ArchivedDocument":
        return cls(DocumentKind.RASTER, data, mime)

    @classmethod
    def paginated(cls, data: bytes) -> "ArchivedDocument":
        return cls(DocumentKind.PAGINATED, data, PDF_MIME)

    def to_data_uri(self) -> str:
        if self.kind is DocumentKind.UNKNOWN:
            return self.raw or ""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime};base64,{encoded}"

    @classmethod
    def from_data_uri(cls, uri: Any, kind: Optional[str] = None) -> "ArchivedDocument":
        """Decode a stored ``data:`` URI.

        ``kind`` is the explicit tag written by this package. Records without a
        tag come from older stores and are classified by their media type.
        """
        if not isinstance(uri, str) or not uri.startswith("data:") or "," not in uri:
            return cls(DocumentKind.UNKNOWN, raw=uri if isinstance(uri, str) else None)

        header, payload = uri.split(",", 1)
        mime = header[len("data:"):].split(";", 1)[0].strip().lower()
        try:
            data = base64.b64decode(payload, validate=True)
        except (binascii.Error, ValueError):
            return cls(DocumentKind.UNKNOWN, raw=uri)

        if kind is None:
            if mime == PDF_MIME:
                kind = DocumentKind.PAGINATED.value
            elif mime.startswith("image/"):
                kind = DocumentKind.RASTER.value
            else:
                kind = DocumentKind.UNKNOWN.value

        try:
            tag = DocumentKind(kind)
        except ValueError:
            tag = DocumentKind.UNKNOWN
        if tag is DocumentKind.UNKNOWN or not data:
            return cls(DocumentKind.UNKNOWN, raw=uri)
        return cls(tag, data, mime)


_ID_LOCK = threading.Lock()
_LAST_ID = 0


def new_record_id() -> int:
    """Millisecond timestamp, bumped when two records are created in the same millisecond."""
    global _LAST_ID
    with _ID_LOCK:
        candidate = time.time_ns() // 1_000_000
        if candidate <= _LAST_ID:
            candidate = _LAST_ID + 1
        _LAST_ID = candidate
        return candidate


@dataclass(frozen=True)
class InvoiceRecord:
    invoice_number: str
    date: str
    customer_name: str
    ob_number: str
    amount: Optional[float]
    document: ArchivedDocument
    id: int = field(default_factory=new_record_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "invoiceNumber": self.invoice_number,
            "date": self.date,
            "customerName": self.customer_name,
            "obNumber": self.ob_number,
            "amount": self.amount,
            "pdfData": self.document.to_data_uri(),
            "kind": self.document.kind.value,
        }

    def summary(self) -> Dict[str, Any]:
        data = self.to_dict()
        del data["pdfData"]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InvoiceRecord":
        try:
            record_id = int(data.get("id"))
        except (TypeError, ValueError):
            record_id = new_record_id()
        return cls(
            id=record_id,
            invoice_number=str(data.get("invoiceNumber", "")),
            date=str(data.get("date", "") or ""),
            customer_name=str(data.get("customerName", "") or ""),
            ob_number=str(data.get("obNumber", "") or ""),
            amount=_opt_float(data.get("amount")),
            document=ArchivedDocument.from_data_uri(data.get("pdfData"), data.get("kind")),
        )
