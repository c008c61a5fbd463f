"""
Orthanc API Client — Verify Orthanc connectivity.

Quick standalone script to check if Orthanc is running and responsive.
Usage: python scripts/verify_orthanc.py
"""

from __future__ import annotations

import sys

from rich.console import Console

from orthanc_api.config.settings import get_settings
from orthanc_api.core.logging import setup_logging_from_settings
from orthanc_api.dicom.orthanc_client import OrthancClient

console = Console()


def main() -> None:
    settings = get_settings()
    setup_logging_from_settings(settings)
    url = settings.orthanc.base_url
    console.print(f"Checking Orthanc at [cyan]{url}[/] …")

    with OrthancClient.from_settings(settings.orthanc) as client:
        if not client.is_alive():
            console.print("[bold red]✗ Orthanc is not reachable.[/]")
            sys.exit(1)

        system = client.get_system()
        stats = client.get_statistics()
        modalities = client.list_modalities()
        peers = client.list_peers()

    console.print("[bold green]✓ Orthanc is running[/]")
    console.print(f"  Name         : {system.name}")
    console.print(f"  Version      : {system.version} (API {system.api_version})")
    console.print(f"  DICOM AET    : {system.dicom_aet} (port {system.dicom_port})")
    console.print(f"  Patients     : {stats.count_patients}")
    console.print(f"  Studies      : {stats.count_studies}")
    console.print(f"  Series       : {stats.count_series}")
    console.print(f"  Instances    : {stats.count_instances}")
    console.print(f"  Modalities   : {', '.join(modalities) or '-'}")
    console.print(f"  Peers        : {', '.join(peers) or '-'}")


if __name__ == "__main__":
    main()
