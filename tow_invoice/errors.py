"""Exception types raised across the export pipeline."""

from __future__ import annotations


class DependencyError(RuntimeError):
    """Raised when a required runtime dependency is missing."""


class ArchivePersistenceError(RuntimeError):
    """Raised by archive backends when the store cannot be written."""


class UnknownDocumentError(ValueError):
    """Raised when an archived record holds neither a raster nor a PDF."""
