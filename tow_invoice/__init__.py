"""Public package API for towing invoice export and archiving."""

from __future__ import annotations

from typing import Any, Dict, Optional


def export_invoice(
    job: Dict[str, Any],
    company: Dict[str, Any],
    archive_path: Optional[str] = None,
    download_dir: Optional[str] = None,
):
    """Export one job's invoice to ``download_dir`` and archive it at ``archive_path``."""
    from .models import CompanyInfo, Job
    from .server import build_services

    kwargs = {}
    if archive_path is not None:
        kwargs["archive_path"] = archive_path
    if download_dir is not None:
        kwargs["download_dir"] = download_dir
    services = build_services(**kwargs)
    return services.orchestrator.export_invoice(Job.from_dict(job), CompanyInfo.from_dict(company))


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    from .server import run as _run

    _run(host, port)


__all__ = ["export_invoice", "run"]
