"""Main Typer application — imports and registers all CLI commands.

Entry point: ``enginecache`` (configured via pyproject.toml scripts).
"""

from __future__ import annotations

from pathlib import Path

import typer

from enginecache.cli._common import console, fail, load_settings
from enginecache.cli.commands.extract import extract_cmd
from enginecache.cli.commands.fetch import fetch_cmd

app = typer.Typer(
    name="enginecache",
    help="enginecache: verified, content-addressed cache for engine bundles.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="fetch", help="Resolve a bundle through the cache.")(fetch_cmd)
app.command(name="extract", help="Safely extract a ZIP or TAR.GZ archive.")(extract_cmd)


@app.command(name="lookup", help="Print the cached path of a bundle.")
def lookup_cmd(
    filename: str = typer.Argument(..., help="Bundle file name."),
    digest: str = typer.Argument(..., metavar="HASH", help="Expected hex digest."),
    cache_dir: Path = typer.Option(None, "--cache-dir", help="Cache root directory."),
    log_level: str = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Print the cached path for FILENAME and HASH; exit 1 on a miss."""
    from enginecache.core.file_cache import FileCache

    settings = load_settings(cache_dir, log_level)
    cached = FileCache.from_settings(settings).lookup(filename, digest)
    if cached is None:
        console.print(f"[yellow]Not cached:[/yellow] {filename} ({digest})")
        raise typer.Exit(code=1)
    console.print(str(cached), soft_wrap=True)


@app.command(name="prune-temp", help="Delete abandoned downloads from the temp directory.")
def prune_temp_cmd(
    max_age: int = typer.Option(
        None, "--max-age", help="Minimum age in seconds of files to delete."
    ),
    cache_dir: Path = typer.Option(None, "--cache-dir", help="Cache root directory."),
    log_level: str = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Remove stale files left in the cache temp directory."""
    from enginecache.core.file_cache import FileCache

    settings = load_settings(cache_dir, log_level)
    age = settings.temp_max_age_seconds if max_age is None else max_age
    try:
        removed = FileCache.from_settings(settings).prune_temp(age)
    except ValueError as exc:
        fail(exc)
    console.print(f"Removed {removed} stale temp file(s).")


@app.command(name="info", help="Show the effective cache settings.")
def info_cmd(
    cache_dir: Path = typer.Option(None, "--cache-dir", help="Cache root directory."),
    log_level: str = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Show the effective settings and what the cache holds."""
    from rich.table import Table

    from enginecache.core.file_cache import FileCache

    settings = load_settings(cache_dir, log_level)
    cache = FileCache.from_settings(settings)

    table = Table(title="enginecache")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("cache root", str(cache.root))
    table.add_row("temp dir", str(cache.temp_dir))
    table.add_row("hash algorithm", settings.hash_algorithm)
    table.add_row("log level", settings.log_level)
    table.add_row("cleanup mismatched", str(settings.cleanup_mismatched_downloads))
    table.add_row("published hashes", str(len(cache.hashes())))
    console.print(table)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
