"""Unit tests for the CLI — Typer command registration and basic behavior."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from enginecache.cli.app import app
from enginecache.core.hasher import bytes_digest

runner = CliRunner()

HELLO_MD5 = "5d41402abc4b2a76b9719d911017c592"


@pytest.fixture
def mirror(tmp_path: Path) -> Path:
    mirror = tmp_path / "mirror"
    mirror.mkdir()
    (mirror / "engine.jar").write_bytes(b"hello")
    return mirror


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


class TestCliApp:
    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        # Typer's no_args_is_help may exit with 0 or 2 depending on version
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for name in ("fetch", "extract", "lookup", "prune-temp", "info"):
            assert name in result.output


class TestFetchCommand:
    def test_fetch_then_lookup(self, mirror: Path, cache_dir: Path):
        result = runner.invoke(
            app,
            ["fetch", "engine.jar", HELLO_MD5, "--mirror", str(mirror),
             "--algorithm", "md5", "--cache-dir", str(cache_dir)],
        )
        assert result.exit_code == 0, result.output
        assert (cache_dir / HELLO_MD5 / "engine.jar").read_bytes() == b"hello"

        lookup = runner.invoke(app, ["lookup", "engine.jar", HELLO_MD5, "--cache-dir", str(cache_dir)])
        assert lookup.exit_code == 0
        assert HELLO_MD5 in lookup.output

    def test_fetch_hash_mismatch_exits_1(self, mirror: Path, cache_dir: Path):
        result = runner.invoke(
            app,
            ["fetch", "engine.jar", "d41d8cd98f00b204e9800998ecf8427e", "--mirror", str(mirror),
             "-a", "MD5", "--cache-dir", str(cache_dir)],
        )
        assert result.exit_code == 1
        assert "HashMismatch" in result.output

    def test_fetch_missing_bundle_exits_1(self, tmp_path: Path, cache_dir: Path):
        result = runner.invoke(
            app,
            ["fetch", "engine.jar", HELLO_MD5, "--mirror", str(tmp_path),
             "-a", "md5", "--cache-dir", str(cache_dir)],
        )
        assert result.exit_code == 1
        assert "TransferFailure" in result.output

    def test_fetch_and_extract(self, tmp_path: Path, cache_dir: Path):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("lib/core.jar", b"core")
        mirror = tmp_path / "mirror"
        mirror.mkdir()
        (mirror / "engine.zip").write_bytes(buf.getvalue())
        digest = bytes_digest(buf.getvalue(), "sha256")
        out = tmp_path / "out"

        result = runner.invoke(
            app,
            ["fetch", "engine.zip", digest, "--mirror", str(mirror),
             "--extract-to", str(out), "--cache-dir", str(cache_dir)],
        )
        assert result.exit_code == 0, result.output
        assert (out / "lib" / "core.jar").read_bytes() == b"core"


class TestOtherCommands:
    def test_lookup_miss_exits_1(self, cache_dir: Path):
        result = runner.invoke(app, ["lookup", "engine.jar", HELLO_MD5, "--cache-dir", str(cache_dir)])
        assert result.exit_code == 1
        assert "Not cached" in result.output

    def test_lookup_bad_filename_exits_1(self, cache_dir: Path):
        result = runner.invoke(app, ["lookup", "../engine.jar", HELLO_MD5, "--cache-dir", str(cache_dir)])
        assert result.exit_code == 1
        assert "Not cached" in result.output

    def test_extract_refuses_traversal(self, tmp_path: Path):
        archive = tmp_path / "evil.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("../evil.txt", b"x")
        result = runner.invoke(app, ["extract", str(archive), str(tmp_path / "out")])
        assert result.exit_code == 1
        assert "PathTraversalViolation" in result.output
        assert not (tmp_path / "evil.txt").exists()

    def test_extract_unknown_format(self, tmp_path: Path):
        archive = tmp_path / "bundle.rar"
        archive.write_bytes(b"rar")
        result = runner.invoke(app, ["extract", str(archive), str(tmp_path / "out")])
        assert result.exit_code == 2

    def test_prune_temp(self, cache_dir: Path):
        (cache_dir / "temp").mkdir(parents=True)
        (cache_dir / "temp" / "fileCacheX.tmp").write_bytes(b"garbage")
        result = runner.invoke(app, ["prune-temp", "--max-age", "0", "--cache-dir", str(cache_dir)])
        assert result.exit_code == 0
        assert "Removed" in result.output

    def test_info(self, cache_dir: Path):
        result = runner.invoke(app, ["info", "--cache-dir", str(cache_dir)])
        assert result.exit_code == 0
        assert "enginecache" in result.output

    def test_info_accepts_log_level(self, cache_dir: Path):
        result = runner.invoke(app, ["info", "--cache-dir", str(cache_dir), "--log-level", "DEBUG"])
        assert result.exit_code == 0
        assert "DEBUG" in result.output

    def test_fetch_unknown_algorithm_exits_1(self, mirror: Path, cache_dir: Path):
        result = runner.invoke(
            app,
            ["fetch", "engine.jar", HELLO_MD5, "--mirror", str(mirror),
             "-a", "crc32", "--cache-dir", str(cache_dir)],
        )
        assert result.exit_code == 1
        assert "UnsupportedHashAlgorithmError" in result.output
        assert not (cache_dir / HELLO_MD5).exists()
