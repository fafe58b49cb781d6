"""``enginecache fetch`` — resolve a bundle from a mirror through the cache.

Downloads on a miss, verifies the hash, publishes into the cache and, with
``--extract-to``, unpacks the archive.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.panel import Panel

from enginecache.cli._common import console, fail, load_settings
from enginecache.core.errors import EngineCacheError
from enginecache.core.fetchers import MirrorFetcher
from enginecache.core.file_cache import FileCache
from enginecache.core.resolver import CachedArtifactResolver


def fetch_cmd(
    filename: str = typer.Argument(..., help="Bundle file name, e.g. engine.jar."),
    digest: str = typer.Argument(..., metavar="HASH", help="Expected hex digest."),
    mirror: Path = typer.Option(
        ...,
        "--mirror",
        "-m",
        help="Directory to download bundles from.",
    ),
    algorithm: str = typer.Option(
        None,
        "--algorithm",
        "-a",
        help="Hash algorithm (md5, sha1, sha256, sha512).",
    ),
    extract_to: Path = typer.Option(
        None,
        "--extract-to",
        "-x",
        help="Extract the archive into this directory.",
    ),
    cache_dir: Path = typer.Option(None, "--cache-dir", help="Cache root directory."),
    log_level: str = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Resolve a bundle through the cache, downloading it on a miss."""
    settings = load_settings(cache_dir, log_level)
    resolver = CachedArtifactResolver(FileCache.from_settings(settings))
    fetcher = MirrorFetcher(mirror)
    hash_algorithm = algorithm or settings.hash_algorithm

    try:
        if extract_to is not None:
            target = resolver.resolve_and_extract(
                filename, digest, hash_algorithm, fetcher, extract_to
            )
            console.print(Panel(f"Extracted {filename} into [cyan]{target}[/cyan]"))
            return
        artifact = resolver.resolve(filename, digest, hash_algorithm, fetcher)
    except (EngineCacheError, ValueError) as exc:
        fail(exc)

    source = "cache" if artifact.already_present else "mirror"
    console.print(
        Panel(
            f"[cyan]{artifact.path}[/cyan]\n"
            f"source: {source} | outcome: {artifact.outcome.value}",
            title=filename,
        )
    )
