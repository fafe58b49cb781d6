"""Shared CLI plumbing: settings overrides, logging setup, error exit."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler

from enginecache.config import CacheSettings

console = Console()
err_console = Console(stderr=True)


def load_settings(cache_dir: Path | None, log_level: str | None) -> CacheSettings:
    """Read settings from the environment and apply command-line overrides."""
    settings = CacheSettings()
    overrides: dict[str, object] = {}
    if cache_dir is not None:
        overrides["cache_dir"] = cache_dir
    if log_level is not None:
        overrides["log_level"] = log_level
    if overrides:
        settings = settings.model_copy(update=overrides)
    configure_logging(settings.log_level)
    return settings


def configure_logging(level: str) -> None:
    """Route ``enginecache`` log records to a Rich handler on stderr."""
    root = logging.getLogger("enginecache")
    root.setLevel(level.upper())
    if not any(isinstance(h, RichHandler) for h in root.handlers):
        root.addHandler(
            RichHandler(console=err_console, show_path=False, rich_tracebacks=True)
        )


def fail(exc: Exception) -> NoReturn:
    """Print a failure and exit with status 1."""
    err_console.print(f"[red]{type(exc).__name__}:[/red] {exc}")
    raise typer.Exit(code=1)
