"""Capped, keyed archive of exported invoices.

The persisted layout is a JSON array of invoice records in insertion order.
Records are unique by ``invoiceNumber``: re-exporting an invoice replaces its
record in place. At most ``capacity`` records are kept, evicting the oldest
insertion first.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from typing import Callable, List, Optional, Protocol

from .config import ARCHIVE_CAPACITY
from .errors import ArchivePersistenceError
from .logs import logger
from .models import InvoiceRecord

log = logger(__name__)

ConfirmDelete = Callable[[InvoiceRecord], bool]


class ArchiveBackend(Protocol):
    def read(self) -> Optional[str]:
        ...

    def write(self, text: str) -> None:
        ...


class FileBackend:
    """JSON file store. Writes go through a temp file and an atomic replace."""

    def __init__(self, path: str) -> None:
        self.path = path
        self._write_lock = threading.Lock()

    def read(self) -> Optional[str]:
        try:
            with open(self.path, "r", encoding="utf-8") as handle:
                return handle.read()
        except FileNotFoundError:
            return None

    def write(self, text: str) -> None:
        directory = os.path.dirname(os.path.abspath(self.path))
        with self._write_lock:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".archive-", suffix=".json", dir=directory)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    handle.write(text)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise


class MemoryBackend:
    """In-process store with an optional size quota, mirroring browser storage limits."""

    def __init__(self, text: Optional[str] = None, quota_bytes: Optional[int] = None) -> None:
        self.text = text
        self.quota_bytes = quota_bytes

    def read(self) -> Optional[str]:
        return self.text

    def write(self, text: str) -> None:
        if self.quota_bytes is not None and len(text.encode("utf-8")) > self.quota_bytes:
            raise ArchivePersistenceError(
                f"Archive of {len(text)} characters exceeds quota of {self.quota_bytes} bytes"
            )
        self.text = text


class InvoiceArchive:
    def __init__(self, backend: ArchiveBackend, capacity: int = ARCHIVE_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError("Archive capacity must be at least 1")
        self.backend = backend
        self.capacity = capacity
        self._records: List[InvoiceRecord] = []
        self._lock = threading.RLock()

    def load(self) -> List[InvoiceRecord]:
        """Replace the in-memory records with the persisted ones.

        A missing, empty or unreadable store yields an empty archive.
        """
        with self._lock:
            try:
                text = self.backend.read()
            except (OSError, ArchivePersistenceError) as exc:
                log.warning("Could not read invoice archive: %s", exc)
                text = None

            records: List[InvoiceRecord] = []
            if text and text.strip():
                try:
                    payload = json.loads(text)
                except json.JSONDecodeError as exc:
                    log.warning("Invoice archive is not valid JSON, starting empty: %s", exc)
                    payload = []
                if not isinstance(payload, list):
                    log.warning("Invoice archive root is not an array, starting empty")
                    payload = []
                for entry in payload:
                    if isinstance(entry, dict):
                        records.append(InvoiceRecord.from_dict(entry))

            self._records = records
            return list(records)

    def list(self) -> List[InvoiceRecord]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def get(self, record_id: int) -> Optional[InvoiceRecord]:
        with self._lock:
            for record in self._records:
                if record.id == record_id:
                    return record
        return None

    def upsert(self, record: InvoiceRecord) -> bool:
        """Insert or replace by invoice number, evict past capacity, persist.

        Returns ``False`` when the store could not be written; the in-memory
        records then still match the last persisted state.
        """
        with self._lock:
            updated = list(self._records)
            for index, existing in enumerate(updated):
                if existing.invoice_number == record.invoice_number:
                    updated[index] = record
                    break
            else:
                updated.append(record)

            while len(updated) > self.capacity:
                evicted = updated.pop(0)
                log.info("Evicting archived invoice %s", evicted.invoice_number)

            return self._commit(updated)

    def delete(self, record_id: int, confirm: ConfirmDelete) -> bool:
        """Remove a record once ``confirm`` approves it; declining leaves the store untouched."""
        with self._lock:
            record = self.get(record_id)
            if record is None:
                return False
            if not confirm(record):
                return False
            updated = [r for r in self._records if r.id != record_id]
            return self._commit(updated)

    def _commit(self, updated: List[InvoiceRecord]) -> bool:
        text = json.dumps([record.to_dict() for record in updated])
        try:
            self.backend.write(text)
        except (OSError, ArchivePersistenceError) as exc:
            log.warning("Invoice archive write failed: %s", exc)
            return False
        self._records = updated
        return True
