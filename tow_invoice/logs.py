"""Logger factory shared by the export pipeline and the HTTP server."""

from __future__ import annotations

import logging
import os
from pathlib import Path

_LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def logger(name: str) -> logging.Logger:
    """Return a configured logger; file paths such as ``__file__`` are reduced to the module stem."""
    if "/" in name or "\\" in name:
        name = Path(name).stem

    log = logging.getLogger(name)
    if not log.handlers:
        log.setLevel(getattr(logging, _LOG_LEVEL, logging.INFO))
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )
        log.addHandler(handler)

    return log
