"""Tests for fetch callbacks at the transport boundary."""

from __future__ import annotations

from pathlib import Path

import pytest

from enginecache.core.fetchers import Fetcher, MirrorFetcher, fetch_from


class TestMirrorFetcher:
    def test_copies_bundle(self, tmp_path: Path):
        mirror = tmp_path / "mirror"
        mirror.mkdir()
        (mirror / "engine.jar").write_bytes(b"jar bytes")
        dest = tmp_path / "dest.tmp"
        MirrorFetcher(mirror)("engine.jar", dest)
        assert dest.read_bytes() == b"jar bytes"

    def test_missing_bundle(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError, match="not found in mirror"):
            MirrorFetcher(tmp_path)("engine.jar", tmp_path / "dest.tmp")

    def test_is_a_fetcher(self, tmp_path: Path):
        assert isinstance(MirrorFetcher(tmp_path), Fetcher)
        assert MirrorFetcher(tmp_path).base_dir == tmp_path


class TestFetchFrom:
    def test_delegates(self, tmp_path: Path):
        seen: list[str] = []

        def transport(filename: str, destination: Path) -> None:
            seen.append(filename)
            destination.write_bytes(b"ok")

        dest = tmp_path / "d"
        fetch_from(transport)("engine.jar", dest)
        assert seen == ["engine.jar"]
        assert dest.read_bytes() == b"ok"

    def test_partial_destination_removed_on_failure(self, tmp_path: Path):
        def flaky(filename: str, destination: Path) -> None:
            destination.write_bytes(b"half")
            raise ConnectionResetError("peer went away")

        dest = tmp_path / "d"
        with pytest.raises(ConnectionResetError):
            fetch_from(flaky)("engine.jar", dest)
        assert not dest.exists()
