"""Content-addressed file cache shared across process invocations.

Storage layout::

    {root}/temp/                 — in-flight downloads, process private
    {root}/{hash}/{filename}     — published artifacts, write-once

The checksum is what identifies a file.  Names are not trustworthy on their
own: two servers can ship different bytes under the same file name.

No locks are taken.  Cross-process safety comes from idempotent directory
creation and an atomic publish step: a reader calling ``lookup`` either sees
nothing or the complete, hash-verified file.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
import tempfile
import time
from collections.abc import Callable
from pathlib import Path

from pydantic import ValidationError

from enginecache.core.errors import (
    DirectoryCreationFailure,
    GenericIOFailure,
    HashMismatch,
    TransferFailure,
)
from enginecache.core.hasher import file_digest
from enginecache.models.artifacts import (
    CachedArtifact,
    CacheKey,
    HashAlgorithm,
    PublishOutcome,
)

logger = logging.getLogger(__name__)

TEMP_DIR_NAME = "temp"

# Filesystems that refuse hard links still support an atomic replace
_NO_HARDLINK_ERRNOS = frozenset({errno.EPERM, errno.EMLINK, errno.ENOTSUP, errno.EOPNOTSUPP})

FetchFn = Callable[[str, Path], None]


class FileCache:
    """Hash-keyed, write-once cache of downloaded files.

    Parameters
    ----------
    root:
        Cache root directory.  Created if absent.
    cleanup_mismatched:
        Delete a download whose digest does not match instead of leaving it
        in ``temp/`` for inspection.
    log:
        Logger receiving cache events.  Defaults to this module's logger.
    """

    def __init__(
        self,
        root: Path,
        *,
        cleanup_mismatched: bool = False,
        log: logging.Logger | None = None,
    ) -> None:
        self._log = log or logger
        self._cleanup_mismatched = cleanup_mismatched
        self._root = _create_dir(Path(root), "user cache", self._log)
        self._log.info("User cache: %s", self._root)
        self._temp_dir = _create_dir(self._root / TEMP_DIR_NAME, "temp dir", self._log)

    @classmethod
    def create(cls, user_home: Path, **kwargs) -> FileCache:
        """Build the cache under ``<user_home>/cache``."""
        return cls(Path(user_home) / "cache", **kwargs)

    @classmethod
    def from_settings(cls, settings, **kwargs) -> FileCache:
        """Build the cache described by a ``CacheSettings`` instance."""
        kwargs.setdefault("cleanup_mismatched", settings.cleanup_mismatched_downloads)
        return cls(settings.cache_root, **kwargs)

    @property
    def root(self) -> Path:
        return self._root

    @property
    def temp_dir(self) -> Path:
        return self._temp_dir

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def lookup(self, filename: str, hash: str) -> Path | None:
        """Return the cached path for ``(filename, hash)`` or ``None``.

        Content is not re-verified here; trust is established at publish.
        A filename or hash that cannot address a cache entry is a miss.
        """
        try:
            key = CacheKey(filename=filename, hash=hash)
        except ValidationError:
            self._log.debug("Not a valid cache key: name %r, hash %r", filename, hash)
            return None
        cached = self._target_path(key)
        if cached.exists():
            return cached
        self._log.debug(
            "No file found in the cache with name %s and hash %s", key.filename, key.hash
        )
        return None

    def hashes(self) -> list[str]:
        """List the hashes that have been published, sorted."""
        return sorted(
            p.name for p in self._root.iterdir() if p.is_dir() and p.name != TEMP_DIR_NAME
        )

    # ------------------------------------------------------------------
    # Fetch and publish
    # ------------------------------------------------------------------

    def get_or_fetch(
        self,
        filename: str,
        hash: str,
        hash_algorithm: str | HashAlgorithm,
        fetch: FetchFn,
    ) -> CachedArtifact:
        """Return the cached file, downloading and publishing it on a miss.

        Raises
        ------
        TransferFailure
            If ``fetch`` raises.
        HashMismatch
            If the downloaded bytes do not hash to ``hash``.
        GenericIOFailure
            If the temp file cannot be created or the publish step fails.
        UnsupportedHashAlgorithmError
            If ``hash_algorithm`` names no supported digest.
        """
        algorithm = HashAlgorithm.parse(hash_algorithm)
        key = CacheKey(filename=filename, hash=hash, hash_algorithm=algorithm)
        target = self._target_path(key)
        if target.exists():
            return CachedArtifact(
                path=target, already_present=True, outcome=PublishOutcome.CACHE_HIT
            )

        temp_path = self._new_temp_file()
        self._download(fetch, key.filename, temp_path)
        self._verify(key, temp_path)

        hash_dir = target.parent
        try:
            hash_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise DirectoryCreationFailure(hash_dir, str(exc)) from exc

        outcome = self._publish(temp_path, target)
        return CachedArtifact(path=target, already_present=False, outcome=outcome)

    def _download(self, fetch: FetchFn, filename: str, temp_path: Path) -> None:
        try:
            fetch(filename, temp_path)
        except Exception as exc:
            raise TransferFailure(filename, temp_path) from exc

    def _verify(self, key: CacheKey, temp_path: Path) -> None:
        try:
            actual = file_digest(temp_path, key.hash_algorithm)
        except OSError as exc:
            raise GenericIOFailure(f"Fail to read downloaded file {temp_path}") from exc
        if actual == key.hash:
            return
        if self._cleanup_mismatched:
            _delete_quietly(temp_path, self._log)
        raise HashMismatch(
            expected=key.hash,
            actual=actual,
            algorithm=key.hash_algorithm.value,
            temp_path=temp_path.absolute(),
        )

    def _publish(self, temp_path: Path, target: Path) -> PublishOutcome:
        """Make ``temp_path`` visible as ``target`` in one atomic step.

        ``os.link`` never replaces an existing name, so losing a race to
        another process surfaces as ``FileExistsError``.  Any file already
        at ``target`` holds the same verified content.
        """
        try:
            os.link(temp_path, target)
        except FileExistsError:
            self._log.debug("%s was cached by another process in the meantime", target)
            _delete_quietly(temp_path, self._log)
            return PublishOutcome.ALREADY_PRESENT_FROM_RACE
        except OSError as exc:
            if exc.errno == errno.EXDEV:
                return self._move_non_atomic(temp_path, target)
            if exc.errno in _NO_HARDLINK_ERRNOS:
                return self._replace(temp_path, target)
            raise GenericIOFailure(
                f"Fail to move {temp_path.absolute()} to {target}"
            ) from exc
        _delete_quietly(temp_path, self._log)
        return PublishOutcome.PUBLISHED

    def _replace(self, temp_path: Path, target: Path) -> PublishOutcome:
        # A published inode is never swapped out
        if target.exists():
            self._log.debug("%s was cached by another process in the meantime", target)
            _delete_quietly(temp_path, self._log)
            return PublishOutcome.ALREADY_PRESENT_FROM_RACE
        try:
            os.replace(temp_path, target)
        except OSError as exc:
            raise GenericIOFailure(
                f"Fail to move {temp_path.absolute()} to {target}"
            ) from exc
        return PublishOutcome.PUBLISHED

    def _move_non_atomic(self, temp_path: Path, target: Path) -> PublishOutcome:
        self._log.warning(
            "Unable to rename %s to %s", temp_path.absolute(), target.absolute()
        )
        self._log.warning("A copy/delete will be tempted but with no guarantee of atomicity")
        if target.exists():
            _delete_quietly(temp_path, self._log)
            return PublishOutcome.ALREADY_PRESENT_FROM_RACE
        try:
            shutil.move(str(temp_path), str(target))
        except OSError as exc:
            raise GenericIOFailure(
                f"Fail to move {temp_path.absolute()} to {target}"
            ) from exc
        return PublishOutcome.PUBLISHED_NON_ATOMIC

    # ------------------------------------------------------------------
    # Temp garbage
    # ------------------------------------------------------------------

    def prune_temp(self, max_age_seconds: int) -> int:
        """Delete temp files older than ``max_age_seconds``.

        In-flight downloads of other processes are younger than any sane
        threshold, so only abandoned files are removed.  Returns the number
        of files deleted.
        """
        if max_age_seconds < 0:
            raise ValueError("max_age_seconds must be >= 0")
        cutoff = time.time() - max_age_seconds
        removed = 0
        for candidate in self._temp_dir.iterdir():
            try:
                if candidate.is_file() and candidate.stat().st_mtime <= cutoff:
                    candidate.unlink()
                    removed += 1
            except FileNotFoundError:
                # Published or pruned concurrently
                continue
        if removed:
            self._log.info("Pruned %d stale file(s) from %s", removed, self._temp_dir)
        return removed

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _target_path(self, key: CacheKey) -> Path:
        return self._root / key.hash / key.filename

    def _new_temp_file(self) -> Path:
        try:
            fd, name = tempfile.mkstemp(prefix="fileCache", suffix=".tmp", dir=self._temp_dir)
        except OSError as exc:
            raise GenericIOFailure(f"Fail to create temp file in {self._temp_dir}") from exc
        os.close(fd)
        return Path(name)


def _create_dir(path: Path, title: str, log: logging.Logger) -> Path:
    log.debug("Create: %s", path)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreationFailure(path, f"unable to create {title}: {exc}") from exc
    return path


def _delete_quietly(path: Path, log: logging.Logger) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        log.debug("Could not delete %s: %s", path, exc)
