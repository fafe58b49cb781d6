"""Cache key, cached artifact and archive models."""

from __future__ import annotations

import re
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator

from enginecache.core.errors import UnsupportedHashAlgorithmError

_HEX_RE = re.compile(r"^[0-9a-f]+$")


class HashAlgorithm(str, Enum):
    """Digest algorithms accepted for content identity."""

    MD5 = "md5"
    SHA1 = "sha1"
    SHA256 = "sha256"
    SHA512 = "sha512"

    @classmethod
    def parse(cls, name: str | HashAlgorithm) -> HashAlgorithm:
        """Parse ``"MD5"``, ``"SHA-256"``, ``"sha256"`` and friends."""
        if isinstance(name, HashAlgorithm):
            return name
        normalized = name.strip().lower().replace("-", "").replace("_", "")
        try:
            return cls(normalized)
        except ValueError:
            raise UnsupportedHashAlgorithmError(name) from None


class PublishOutcome(str, Enum):
    """How a ``get_or_fetch`` call obtained its final path."""

    CACHE_HIT = "cache_hit"
    PUBLISHED = "published"
    ALREADY_PRESENT_FROM_RACE = "already_present_from_race"
    PUBLISHED_NON_ATOMIC = "published_non_atomic"


class ArchiveFormat(str, Enum):
    """Archive formats the extractor understands."""

    ZIP = "zip"
    TAR_GZ = "tar.gz"

    @classmethod
    def from_filename(cls, filename: str) -> ArchiveFormat:
        """Infer the archive format from a file name suffix."""
        lowered = filename.lower()
        if lowered.endswith((".zip", ".jar")):
            return cls.ZIP
        if lowered.endswith((".tar.gz", ".tgz")):
            return cls.TAR_GZ
        raise ValueError(f"Cannot infer archive format from file name: {filename}")


class CacheKey(BaseModel):
    """Identity of a cached artifact.

    The hash alone determines content identity; ``filename`` only shapes
    the final path ``<root>/<hash>/<filename>``.
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    hash: str
    hash_algorithm: HashAlgorithm = HashAlgorithm.SHA256

    @field_validator("filename")
    @classmethod
    def _single_component(cls, value: str) -> str:
        if not value or value in (".", "..") or "/" in value or "\\" in value:
            raise ValueError(f"filename must be a single path component: {value!r}")
        return value

    @field_validator("hash")
    @classmethod
    def _lowercase_hex(cls, value: str) -> str:
        value = value.strip().lower()
        if not _HEX_RE.match(value):
            raise ValueError(f"hash must be a hex digest: {value!r}")
        return value

    @field_validator("hash_algorithm", mode="before")
    @classmethod
    def _parse_algorithm(cls, value: object) -> object:
        if isinstance(value, str):
            return HashAlgorithm.parse(value)
        return value


class CachedArtifact(BaseModel):
    """Result of resolving an artifact through the cache.

    ``already_present`` tells whether a network round-trip was avoided.  It
    is meant for reporting, callers must not branch on it for correctness.
    """

    model_config = ConfigDict(frozen=True)

    path: Path
    already_present: bool
    outcome: PublishOutcome


class ArchiveEntry(BaseModel):
    """A single member as seen by the extractor."""

    model_config = ConfigDict(frozen=True)

    name: str
    is_directory: bool
    mode: int | None = None
