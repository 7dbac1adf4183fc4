"""Delivery targets for generated invoice documents."""

from __future__ import annotations

import os
import tempfile
from typing import List, Protocol, Tuple


class DownloadSink(Protocol):
    def deliver(self, filename: str, data: bytes) -> str:
        """Hand ``data`` to the user under ``filename`` and return where it went."""
        ...


class DirectorySink:
    """Saves documents into a downloads directory.

    Bytes are staged in a temporary file that is always removed, whether the
    final rename succeeds or not.
    """

    def __init__(self, directory: str) -> None:
        self.directory = directory

    def deliver(self, filename: str, data: bytes) -> str:
        os.makedirs(self.directory, exist_ok=True)
        target = os.path.join(self.directory, os.path.basename(filename))
        fd, tmp_path = tempfile.mkstemp(prefix=".download-", suffix=".pdf", dir=self.directory)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(data)
            os.replace(tmp_path, target)
        finally:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
        return target


class MemorySink:
    def __init__(self) -> None:
        self.downloads: List[Tuple[str, bytes]] = []

    def deliver(self, filename: str, data: bytes) -> str:
        self.downloads.append((filename, data))
        return filename
