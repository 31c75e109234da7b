"""Tests for the shardcache CLI.

These tests verify:
- Path, get, set, exists and info commands
- Bulk chmod
- Error handling and exit codes
"""

import os
import stat

import pytest
from click.testing import CliRunner

from shardcache import CacheConfig, CacheStore
from shardcache.cli.main import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cache_dir(tmp_path):
    path = tmp_path / "cache"
    path.mkdir()
    return path


@pytest.fixture
def store(cache_dir):
    return CacheStore(CacheConfig(cache_dir=str(cache_dir)))


class TestPath:
    """Test path command."""

    def test_logical_path(self, runner):
        result = runner.invoke(cli, ["--dir", "/public", "path", "helloworld.txt"])

        assert result.exit_code == 0
        assert result.output.strip() == "/public/h/e/l/l/o/helloworld.txt"

    def test_actual_path(self, runner):
        result = runner.invoke(
            cli,
            ["--dir", "/public", "--actual-dir", "/srv", "--depth", "2", "path", "abc", "--actual"],
        )

        assert result.exit_code == 0
        assert result.output.strip() == "/srv/a/b/abc"

    def test_env_fallback(self, runner, monkeypatch):
        monkeypatch.setenv("SHARDCACHE_DIR", "/from-env")
        monkeypatch.setenv("SHARDCACHE_SHARD_DEPTH", "1")
        result = runner.invoke(cli, ["path", "abc"])

        assert result.exit_code == 0
        assert result.output.strip() == "/from-env/a/abc"

    def test_invalid_depth(self, runner):
        result = runner.invoke(cli, ["--depth=-1", "path", "abc"])
        assert result.exit_code != 0
        assert "Invalid cache configuration" in result.output


class TestSetAndGet:
    """Test set and get commands."""

    def test_set_from_stdin(self, runner, cache_dir, store):
        result = runner.invoke(
            cli, ["--dir", str(cache_dir), "set", "greeting.txt"], input=b"hi there"
        )

        assert result.exit_code == 0
        assert "Stored 'greeting.txt'" in result.output
        assert store.get("greeting.txt") == b"hi there"

    def test_set_from_file(self, runner, cache_dir, store, tmp_path):
        source = tmp_path / "source.bin"
        source.write_bytes(b"\x00\x01binary")
        result = runner.invoke(cli, ["--dir", str(cache_dir), "set", "blob", str(source)])

        assert result.exit_code == 0
        assert store.get("blob") == b"\x00\x01binary"

    def test_set_applies_file_mode(self, runner, cache_dir, store):
        result = runner.invoke(
            cli, ["--dir", str(cache_dir), "--file-mode", "600", "set", "k"], input=b"x"
        )

        assert result.exit_code == 0
        path = store.get_cache_file("k", actual=True)
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600

    def test_get(self, runner, cache_dir, store):
        store.set("key", b"payload")
        result = runner.invoke(cli, ["--dir", str(cache_dir), "get", "key"])

        assert result.exit_code == 0
        assert result.stdout_bytes == b"payload"

    def test_get_miss(self, runner, cache_dir):
        result = runner.invoke(cli, ["--dir", str(cache_dir), "get", "missing"])
        assert result.exit_code == 1

    def test_get_with_conditions(self, runner, cache_dir, store):
        store.set("key", b"abc")

        result = runner.invoke(
            cli, ["--dir", str(cache_dir), "get", "key", "--min-size", "4"]
        )
        assert result.exit_code == 1

        result = runner.invoke(
            cli, ["--dir", str(cache_dir), "get", "key", "--min-size", "3"]
        )
        assert result.exit_code == 0


class TestExists:
    """Test exists command."""

    def test_valid(self, runner, cache_dir, store):
        store.set("key", b"abc")
        result = runner.invoke(cli, ["--dir", str(cache_dir), "exists", "key"])

        assert result.exit_code == 0
        assert "is cached and valid" in result.output

    def test_missing(self, runner, cache_dir):
        result = runner.invoke(cli, ["--dir", str(cache_dir), "exists", "key"])

        assert result.exit_code == 1
        assert "missing or stale" in result.output

    def test_younger_than(self, runner, cache_dir, store, tmp_path):
        path = store.set("thumb", b"abc")
        source = tmp_path / "source"
        source.write_bytes(b"")
        os.utime(path, (1_000, 1_000))
        os.utime(source, (2_000, 2_000))

        result = runner.invoke(
            cli,
            ["--dir", str(cache_dir), "exists", "thumb", "--younger-than", str(source)],
        )
        assert result.exit_code == 1


class TestInfo:
    """Test info command."""

    def test_info(self, runner, cache_dir, store):
        store.set("key", b"12345")
        result = runner.invoke(cli, ["--dir", str(cache_dir), "info", "key"])

        assert result.exit_code == 0
        assert "5 bytes" in result.output

    def test_info_missing(self, runner, cache_dir):
        result = runner.invoke(cli, ["--dir", str(cache_dir), "info", "key"])

        assert result.exit_code == 1
        assert "not cached" in result.output


class TestChmod:
    """Test chmod command."""

    def test_chmod(self, runner, cache_dir, store):
        path = store.set("key", b"x")
        result = runner.invoke(
            cli,
            ["--dir", str(cache_dir), "chmod", "--dir-mode", "700", "--file-mode", "600"],
        )

        assert result.exit_code == 0
        assert "Updated permissions" in result.output
        assert stat.S_IMODE(os.stat(path).st_mode) == 0o600
        assert stat.S_IMODE(os.stat(cache_dir / "k").st_mode) == 0o700

    def test_chmod_invalid_mode(self, runner, cache_dir):
        result = runner.invoke(
            cli, ["--dir", str(cache_dir), "chmod", "--dir-mode", "rwx"]
        )

        assert result.exit_code == 1
        assert "Error" in result.output
