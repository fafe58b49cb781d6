"""Hardened extraction of ZIP and gzip-compressed TAR archives.

Every entry's destination is resolved and checked against the extraction
root before anything is written for it ("zip-slip" protection).  TAR entries
get their POSIX permission bits restored when the host supports them.

A failed extraction is not rolled back: treat the target directory as
contaminated.
"""

from __future__ import annotations

import logging
import os
import shutil
import stat
import tarfile
import zipfile
from collections.abc import Callable
from pathlib import Path
from typing import IO

from enginecache.core.errors import (
    DirectoryCreationFailure,
    GenericIOFailure,
    InvalidFileMode,
    PathTraversalViolation,
)
from enginecache.models.artifacts import ArchiveEntry, ArchiveFormat

logger = logging.getLogger(__name__)

ArchiveSource = Path | str | IO[bytes]
MemberFilter = Callable[[zipfile.ZipInfo], bool]

# Indexed by bit position of the standard octal mode (little endian):
# 0o644 is 110 100 100, the set bits select owner_read, owner_write, ...
POSIX_PERMISSIONS: tuple[tuple[str, int], ...] = (
    ("others_execute", stat.S_IXOTH),
    ("others_write", stat.S_IWOTH),
    ("others_read", stat.S_IROTH),
    ("group_execute", stat.S_IXGRP),
    ("group_write", stat.S_IWGRP),
    ("group_read", stat.S_IRGRP),
    ("owner_execute", stat.S_IXUSR),
    ("owner_write", stat.S_IWUSR),
    ("owner_read", stat.S_IRUSR),
)
MAX_MODE = (1 << len(POSIX_PERMISSIONS)) - 1


def permissions_from_mode(mode: int) -> frozenset[str]:
    """Translate the low nine mode bits into symbolic permission names."""
    if mode < 0 or (mode & MAX_MODE) != mode:
        raise InvalidFileMode(mode)
    return frozenset(
        name for bit, (name, _) in enumerate(POSIX_PERMISSIONS) if mode & (1 << bit)
    )


def mode_from_permissions(permissions: frozenset[str] | set[str]) -> int:
    """Inverse of ``permissions_from_mode``."""
    flags = dict(POSIX_PERMISSIONS)
    unknown = set(permissions) - flags.keys()
    if unknown:
        raise ValueError(f"Unknown permission(s): {sorted(unknown)}")
    mode = 0
    for name in permissions:
        mode |= flags[name]
    return mode


def supports_posix_permissions() -> bool:
    """Whether the host filesystem model has POSIX permission bits."""
    return os.name == "posix"


class ArchiveExtractor:
    """Stateless archive extractor.

    All context (source, format, target, filter) is passed per call, so a
    single instance can be shared freely between threads.

    Parameters
    ----------
    log:
        Logger receiving extraction events.  Defaults to this module's logger.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def extract(
        self,
        archive: ArchiveSource,
        fmt: ArchiveFormat | str,
        target_dir: Path,
        *,
        member_filter: MemberFilter | None = None,
    ) -> Path:
        """Extract ``archive`` into ``target_dir`` and return ``target_dir``.

        Raises
        ------
        PathTraversalViolation
            If any selected entry would land outside ``target_dir``.
        InvalidFileMode
            If a TAR entry carries a mode outside ``0..0o777``.
        GenericIOFailure
            On unreadable archives and filesystem errors.
        """
        fmt = ArchiveFormat(fmt)
        target_dir = Path(target_dir)
        if member_filter is not None and fmt is not ArchiveFormat.ZIP:
            raise ValueError("member_filter is only supported for ZIP archives")
        _mkdirs(target_dir)

        try:
            if fmt is ArchiveFormat.ZIP:
                self._extract_zip(archive, target_dir, member_filter)
            else:
                self._extract_tar_gz(archive, target_dir)
        except (zipfile.BadZipFile, tarfile.TarError, EOFError) as exc:
            raise GenericIOFailure(f"Corrupt {fmt.value} archive: {exc}") from exc
        except OSError as exc:
            raise GenericIOFailure(f"Fail to extract archive into {target_dir}: {exc}") from exc
        return target_dir

    # ------------------------------------------------------------------
    # ZIP
    # ------------------------------------------------------------------

    def _extract_zip(
        self,
        archive: ArchiveSource,
        target_dir: Path,
        member_filter: MemberFilter | None,
    ) -> None:
        with zipfile.ZipFile(archive) as zf:
            for info in zf.infolist():
                if member_filter is not None and not member_filter(info):
                    continue
                entry = ArchiveEntry(name=info.filename, is_directory=info.is_dir())
                target = _checked_target(entry.name, target_dir)
                if entry.is_directory:
                    _mkdirs(target)
                    continue
                _mkdirs(target.parent)
                with zf.open(info) as src, target.open("wb") as dst:
                    shutil.copyfileobj(src, dst)

    # ------------------------------------------------------------------
    # TAR.GZ
    # ------------------------------------------------------------------

    def _extract_tar_gz(self, archive: ArchiveSource, target_dir: Path) -> None:
        if isinstance(archive, (str, Path)):
            tf = tarfile.open(name=archive, mode="r|gz")
        else:
            tf = tarfile.open(fileobj=archive, mode="r|gz")
        with tf:
            for member in tf:
                if not (member.isfile() or member.isdir()):
                    self._log.debug(
                        "Skipping non-regular tar entry %s (type %r)", member.name, member.type
                    )
                    continue
                entry = ArchiveEntry(
                    name=member.name, is_directory=member.isdir(), mode=member.mode
                )
                target = _checked_target(entry.name, target_dir)
                if entry.is_directory:
                    _mkdirs(target)
                    continue
                _mkdirs(target.parent)
                src = tf.extractfile(member)
                if src is None:
                    continue
                with src, target.open("wb") as dst:
                    shutil.copyfileobj(src, dst)
                if entry.mode and supports_posix_permissions():
                    os.chmod(target, mode_from_permissions(permissions_from_mode(entry.mode)))


def unzip(
    zip_path: Path,
    to_dir: Path,
    member_filter: MemberFilter | None = None,
) -> Path:
    """Unzip ``zip_path`` into ``to_dir``, optionally selecting entries."""
    return ArchiveExtractor().extract(
        zip_path, ArchiveFormat.ZIP, to_dir, member_filter=member_filter
    )


def extract_tar_gz(archive_path: Path, to_dir: Path) -> Path:
    """Extract a ``.tar.gz`` file into ``to_dir``."""
    return ArchiveExtractor().extract(archive_path, ArchiveFormat.TAR_GZ, to_dir)


def _checked_target(entry_name: str, target_dir: Path) -> Path:
    """Resolve ``entry_name`` under ``target_dir`` or refuse it."""
    root = os.path.normpath(os.path.abspath(target_dir))
    resolved = os.path.normpath(os.path.join(root, entry_name))
    if os.path.isabs(entry_name):
        raise PathTraversalViolation(entry_name, target_dir)
    try:
        inside = os.path.commonpath([root, resolved]) == root
    except ValueError:
        # Different drives on Windows
        inside = False
    if not inside:
        raise PathTraversalViolation(entry_name, target_dir)
    return Path(resolved)


def _mkdirs(path: Path) -> None:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise DirectoryCreationFailure(path, str(exc)) from exc
