"""Fetch callbacks — the transport boundary of the cache.

The cache only knows the ``Fetcher`` shape: given a file name and a
destination path, write the complete bytes there or raise.  A fetcher must
not leave a partially written destination behind when it fails.

HTTP transports live with the caller.  ``MirrorFetcher`` serves bundles
from a local or mounted mirror directory.
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Callable
from pathlib import Path
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class Fetcher(Protocol):
    """Writes the bytes for ``filename`` to ``destination``."""

    def __call__(self, filename: str, destination: Path) -> None:
        ...


class MirrorFetcher:
    """Copies bundles from a mirror directory.

    Parameters
    ----------
    base_dir:
        Directory holding one file per bundle name.
    """

    def __init__(self, base_dir: Path) -> None:
        self._base = Path(base_dir)

    @property
    def base_dir(self) -> Path:
        return self._base

    def __call__(self, filename: str, destination: Path) -> None:
        source = self._base / filename
        logger.debug("Download %s to %s", source, Path(destination).absolute())
        if not source.is_file():
            raise FileNotFoundError(f"Bundle not found in mirror: {source}")
        try:
            with source.open("rb") as src, Path(destination).open("wb") as dst:
                shutil.copyfileobj(src, dst)
        except OSError:
            Path(destination).unlink(missing_ok=True)
            raise


class _CallableFetcher:
    def __init__(self, fn: Callable[[str, Path], None]) -> None:
        self._fn = fn

    def __call__(self, filename: str, destination: Path) -> None:
        try:
            self._fn(filename, destination)
        except Exception:
            Path(destination).unlink(missing_ok=True)
            raise


def fetch_from(fn: Callable[[str, Path], None]) -> Fetcher:
    """Adapt a plain two-argument callable into a ``Fetcher``.

    The adapter removes the destination when ``fn`` raises, so transports
    that stream straight into the file do not leave half-written bytes.
    """
    return _CallableFetcher(fn)
