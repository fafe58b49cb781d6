"""Cached artifact resolver — cache lookup, download, verify, extract.

Owns no state of its own: it composes a ``FileCache`` and an
``ArchiveExtractor`` around a caller-supplied fetch callback.
"""

from __future__ import annotations

import logging
from pathlib import Path

from enginecache.core.extractor import ArchiveExtractor, MemberFilter
from enginecache.core.file_cache import FetchFn, FileCache
from enginecache.models.artifacts import (
    ArchiveFormat,
    CachedArtifact,
    CacheKey,
    HashAlgorithm,
)

logger = logging.getLogger(__name__)


class CachedArtifactResolver:
    """Resolve artifacts through the cache and optionally unpack them.

    Parameters
    ----------
    cache:
        The content-addressed cache to resolve through.
    extractor:
        Archive extractor.  A default one is created when omitted.
    log:
        Logger receiving resolution events.
    """

    def __init__(
        self,
        cache: FileCache,
        extractor: ArchiveExtractor | None = None,
        *,
        log: logging.Logger | None = None,
    ) -> None:
        self._cache = cache
        self._log = log or logger
        self._extractor = extractor or ArchiveExtractor(log=self._log)

    @property
    def cache(self) -> FileCache:
        return self._cache

    def resolve(
        self,
        filename: str,
        hash: str,
        hash_algorithm: str | HashAlgorithm,
        fetch: FetchFn,
    ) -> CachedArtifact:
        """Return the verified cached file, downloading it on a miss."""
        artifact = self._cache.get_or_fetch(filename, hash, hash_algorithm, fetch)
        if artifact.already_present:
            self._log.info("Using %s from cache: %s", filename, artifact.path)
        else:
            self._log.info(
                "Downloaded %s to %s (%s)", filename, artifact.path, artifact.outcome.value
            )
        return artifact

    def resolve_key(self, key: CacheKey, fetch: FetchFn) -> CachedArtifact:
        """``resolve`` for a prebuilt ``CacheKey``."""
        return self.resolve(key.filename, key.hash, key.hash_algorithm, fetch)

    def resolve_and_extract(
        self,
        filename: str,
        hash: str,
        hash_algorithm: str | HashAlgorithm,
        fetch: FetchFn,
        extract_dir: Path,
        *,
        archive_format: ArchiveFormat | str | None = None,
        member_filter: MemberFilter | None = None,
    ) -> Path:
        """Resolve an archive and unpack it into ``extract_dir``.

        The archive format is inferred from ``filename`` when not given.
        Returns ``extract_dir``.
        """
        fmt = (
            ArchiveFormat(archive_format)
            if archive_format is not None
            else ArchiveFormat.from_filename(filename)
        )
        artifact = self.resolve(filename, hash, hash_algorithm, fetch)
        self._log.debug("Extracting %s into %s", artifact.path, extract_dir)
        return self._extractor.extract(
            artifact.path, fmt, Path(extract_dir), member_filter=member_filter
        )
