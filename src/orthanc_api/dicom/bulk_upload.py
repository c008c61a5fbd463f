"""
Orthanc API Client — Bulk Upload Tool.

Uploads every file found under a directory to an Orthanc server and
prints a summary of what was stored.

Usage:
    python -m orthanc_api.dicom.bulk_upload ./dicom          # uses defaults from .env
    python -m orthanc_api.dicom.bulk_upload ./dicom --pattern "*.dcm"
    orthanc-upload --help                                     # if installed via pip
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table
from tqdm import tqdm

from orthanc_api.config.settings import OrthancSettings, get_settings
from orthanc_api.core.logging import setup_logging
from orthanc_api.dicom.errors import OrthancError, TransportError
from orthanc_api.dicom.orthanc_client import OrthancClient

logger = logging.getLogger(__name__)
console = Console()


def collect_files(directory: Path, pattern: str = "*") -> list[Path]:
    """Return the regular files under *directory* matching *pattern*, sorted."""
    return sorted(path for path in directory.rglob(pattern) if path.is_file())


def upload_files(client: OrthancClient, dicom_files: list[Path]) -> dict[str, int]:
    """Upload a list of DICOM files to Orthanc and return upload statistics.

    A file that cannot be read, or that the server rejects or answers
    with an unexpected body, is logged and counted as failed. Losing the
    connection aborts the run.
    """
    stats = {"uploaded": 0, "already_stored": 0, "failed": 0}

    for path in tqdm(dicom_files, desc="Uploading to Orthanc", unit="file"):
        try:
            result = client.upload_dicom_file(path)
        except TransportError:
            raise
        except (OrthancError, OSError) as exc:
            logger.warning("Failed to upload %s: %s", path.name, exc)
            stats["failed"] += 1
            continue
        if result.already_stored:
            stats["already_stored"] += 1
        else:
            stats["uploaded"] += 1

    return stats


def _print_summary(client: OrthancClient, upload_stats: dict[str, int]) -> None:
    """Print a rich summary table after the upload run."""
    server_stats = client.get_statistics()

    table = Table(title="Orthanc Upload — Summary", show_header=True)
    table.add_column("Metric", style="cyan", no_wrap=True)
    table.add_column("Value", style="green", justify="right")

    table.add_row("Files uploaded (new)", str(upload_stats["uploaded"]))
    table.add_row("Files already stored", str(upload_stats["already_stored"]))
    table.add_row("Files failed", str(upload_stats["failed"]))
    table.add_row("─" * 25, "─" * 10)
    table.add_row("Total patients in Orthanc", str(server_stats.count_patients))
    table.add_row("Total studies in Orthanc", str(server_stats.count_studies))
    table.add_row("Total series in Orthanc", str(server_stats.count_series))
    table.add_row("Total instances in Orthanc", str(server_stats.count_instances))
    table.add_row("Total disk size", f"{server_stats.total_disk_size_mb} MB")

    console.print()
    console.print(table)


def run(directory: Path, pattern: str, settings: OrthancSettings) -> dict[str, int]:
    """Upload every matching file under *directory* to the configured server.

    Args:
        directory: Root directory to scan recursively.
        pattern: Glob applied to file names (e.g. ``"*.dcm"``).
        settings: Connection settings of the target server.

    Returns:
        Upload statistics (``uploaded``, ``already_stored``, ``failed``).
    """
    files = collect_files(directory, pattern)
    if not files:
        logger.error("No files matching '%s' under %s.", pattern, directory)
        sys.exit(1)

    with OrthancClient.from_settings(settings) as client:
        if not client.is_alive():
            logger.error("Orthanc at %s is not reachable.", settings.base_url)
            sys.exit(1)

        logger.info("Uploading %d file(s) from %s to %s", len(files), directory, settings.base_url)
        upload_stats = upload_files(client, files)
        _print_summary(client, upload_stats)

    return upload_stats


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments, falling back to pydantic-settings defaults."""
    settings = get_settings()

    parser = argparse.ArgumentParser(
        prog="orthanc-upload",
        description="Upload a directory of DICOM files to an Orthanc server.",
    )
    parser.add_argument("directory", type=Path, help="Directory containing DICOM files")
    parser.add_argument(
        "-p",
        "--pattern",
        default="*",
        help="Glob for files to upload (default: every file)",
    )
    parser.add_argument(
        "--orthanc-url",
        default=settings.orthanc.base_url,
        help=f"Orthanc REST API URL (default: {settings.orthanc.base_url})",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Log verbosity (default: {settings.log_level})",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint."""
    args = parse_args(argv)
    settings = get_settings()
    setup_logging(level=args.log_level, fmt=settings.log_format)

    orthanc = settings.orthanc.model_copy(update={"url": args.orthanc_url})
    console.print("[bold]Orthanc API Client — Bulk Upload[/]")
    console.print(f"  Directory  : {args.directory}")
    console.print(f"  Pattern    : {args.pattern}")
    console.print(f"  Orthanc URL: {orthanc.base_url}")

    stats = run(args.directory, args.pattern, orthanc)
    if stats["failed"]:
        console.print(f"\n[bold yellow]! {stats['failed']} file(s) failed to upload.[/]\n")
    else:
        console.print("\n[bold green]✓ Upload complete.[/]\n")


if __name__ == "__main__":
    main()
