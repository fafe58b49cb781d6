"""``enginecache extract`` — unpack a local archive with traversal checks."""

from __future__ import annotations

from pathlib import Path

import typer

from enginecache.cli._common import console, fail, load_settings
from enginecache.core.errors import EngineCacheError
from enginecache.core.extractor import ArchiveExtractor
from enginecache.models.artifacts import ArchiveFormat


def extract_cmd(
    archive: Path = typer.Argument(..., exists=True, dir_okay=False, help="Archive file."),
    target: Path = typer.Argument(..., help="Directory to extract into."),
    archive_format: str = typer.Option(
        None,
        "--format",
        "-f",
        help="Archive format: zip or tar.gz. Inferred from the name when omitted.",
    ),
    log_level: str = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Extract a ZIP or TAR.GZ archive, refusing entries outside TARGET."""
    load_settings(None, log_level)
    try:
        fmt = ArchiveFormat(archive_format) if archive_format else ArchiveFormat.from_filename(archive.name)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--format") from exc

    try:
        ArchiveExtractor().extract(archive, fmt, target)
    except EngineCacheError as exc:
        fail(exc)
    console.print(f"Extracted [cyan]{archive.name}[/cyan] into [cyan]{target}[/cyan]")
