"""Shared test fixtures for enginecache."""

from __future__ import annotations

import io
import tarfile
import zipfile
from collections.abc import Callable
from pathlib import Path

import pytest

from enginecache.core.extractor import ArchiveExtractor
from enginecache.core.file_cache import FileCache
from enginecache.core.hasher import bytes_digest
from enginecache.core.resolver import CachedArtifactResolver

ENGINE_BYTES = b"engine bundle v10.4 payload"


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def cache_root(tmp_dir: Path) -> Path:
    return tmp_dir / "cache"


@pytest.fixture
def file_cache(cache_root: Path) -> FileCache:
    """Provide a fresh FileCache in a temp directory."""
    return FileCache(cache_root)


@pytest.fixture
def extractor() -> ArchiveExtractor:
    return ArchiveExtractor()


@pytest.fixture
def resolver(file_cache: FileCache) -> CachedArtifactResolver:
    """Provide a resolver wired to the test cache."""
    return CachedArtifactResolver(file_cache)


@pytest.fixture
def engine_sha256() -> str:
    return bytes_digest(ENGINE_BYTES, "sha256")


class RecordingFetcher:
    """Fetch callback that writes fixed bytes and counts its calls."""

    def __init__(self, payload: bytes = ENGINE_BYTES) -> None:
        self.payload = payload
        self.calls: list[tuple[str, Path]] = []

    def __call__(self, filename: str, destination: Path) -> None:
        self.calls.append((filename, destination))
        destination.write_bytes(self.payload)


@pytest.fixture
def make_fetcher() -> Callable[..., RecordingFetcher]:
    """Factory fixture: build a RecordingFetcher for some payload."""

    def _factory(payload: bytes = ENGINE_BYTES) -> RecordingFetcher:
        return RecordingFetcher(payload)

    return _factory


# ---------------------------------------------------------------------------
# Archive factories: built in memory, written to disk on request
# ---------------------------------------------------------------------------


@pytest.fixture
def make_zip() -> Callable[..., bytes]:
    """Factory fixture: ZIP bytes from ``{name: bytes | None}`` (None = directory)."""

    def _factory(entries: dict[str, bytes | None]) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            for name, data in entries.items():
                if data is None:
                    zf.writestr(zipfile.ZipInfo(name.rstrip("/") + "/"), b"")
                else:
                    zf.writestr(zipfile.ZipInfo(name), data)
        return buf.getvalue()

    return _factory


@pytest.fixture
def make_tar_gz() -> Callable[..., bytes]:
    """Factory fixture: TAR.GZ bytes from ``{name: (bytes | None, mode)}``."""

    def _factory(entries: dict[str, tuple[bytes | None, int]]) -> bytes:
        buf = io.BytesIO()
        with tarfile.open(fileobj=buf, mode="w:gz") as tf:
            for name, (data, mode) in entries.items():
                info = tarfile.TarInfo(name=name)
                info.mode = mode
                if data is None:
                    info.type = tarfile.DIRTYPE
                    tf.addfile(info)
                else:
                    info.size = len(data)
                    tf.addfile(info, io.BytesIO(data))
        return buf.getvalue()

    return _factory
