"""Run the invoice export server: ``python -m tow_invoice``."""

from __future__ import annotations

import os
import sys

from .config import ARCHIVE_PATH, DOWNLOAD_DIR, env_int
from .errors import DependencyError


def main() -> None:
    host = os.getenv("INVOICE_HOST", "0.0.0.0")
    port = env_int("INVOICE_PORT", 8080, minimum=1)
    try:
        from .server import build_services, run

        services = build_services(ARCHIVE_PATH, DOWNLOAD_DIR)
    except DependencyError as exc:
        print(str(exc), file=sys.stderr)
        raise SystemExit(1) from exc
    run(host, port, services)


if __name__ == "__main__":
    main()
