"""Tests for cache configuration."""

import dataclasses
from pathlib import Path

import orjson
import pytest

from shardcache.config import CacheConfig, parse_mode


class TestDefaults:
    """Test default configuration values."""

    def test_defaults(self):
        config = CacheConfig()

        assert config.cache_dir == "cache"
        assert config.actual_cache_dir is None
        assert config.actual_dir == "cache"
        assert config.shard_depth == 5
        assert config.dir_mode is None
        assert config.file_mode is None

    def test_actual_dir_override(self):
        config = CacheConfig(cache_dir="public", actual_cache_dir="/srv/cache")
        assert config.actual_dir == "/srv/cache"

    def test_empty_actual_dir_means_unset(self):
        config = CacheConfig(cache_dir="public", actual_cache_dir="")
        assert config.actual_cache_dir is None
        assert config.actual_dir == "public"

    def test_path_objects_become_strings(self, tmp_path):
        config = CacheConfig(cache_dir=tmp_path)
        assert config.cache_dir == str(tmp_path)

    def test_home_is_expanded(self):
        config = CacheConfig(cache_dir="~/cache")
        assert config.cache_dir == str(Path.home() / "cache")

    def test_immutable(self):
        config = CacheConfig()
        with pytest.raises(dataclasses.FrozenInstanceError):
            config.shard_depth = 3


class TestValidation:
    """Test configuration validation."""

    def test_negative_depth(self):
        with pytest.raises(ValueError):
            CacheConfig(shard_depth=-1)

    def test_non_integer_depth(self):
        with pytest.raises(TypeError):
            CacheConfig(shard_depth="5")

    def test_empty_cache_dir(self):
        with pytest.raises(ValueError):
            CacheConfig(cache_dir="")

    @pytest.mark.parametrize("mode", ["755", 1.5, True])
    def test_bad_mode_type(self, mode):
        with pytest.raises(TypeError):
            CacheConfig(dir_mode=mode)

    def test_mode_out_of_range(self):
        with pytest.raises(ValueError):
            CacheConfig(file_mode=0o10000)


class TestReplace:
    """Test copying configuration with changes."""

    def test_replace(self):
        config = CacheConfig(cache_dir="a")
        changed = config.replace(shard_depth=2, file_mode=0o644)

        assert changed.shard_depth == 2
        assert changed.file_mode == 0o644
        assert changed.cache_dir == "a"
        assert config.shard_depth == 5

    def test_replace_validates(self):
        with pytest.raises(ValueError):
            CacheConfig().replace(shard_depth=-3)


class TestParseMode:
    """Test octal mode parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [("755", 0o755), ("0644", 0o644), ("0o700", 0o700), (0o600, 0o600)],
    )
    def test_parse(self, value, expected):
        assert parse_mode(value) == expected

    def test_empty(self):
        assert parse_mode(None) is None
        assert parse_mode("") is None

    def test_invalid(self):
        with pytest.raises(ValueError):
            parse_mode("899")


class TestLoadSave:
    """Test file persistence."""

    def test_save_and_load(self, tmp_path):
        config = CacheConfig(
            cache_dir="/public",
            actual_cache_dir=str(tmp_path / "actual"),
            shard_depth=3,
            dir_mode=0o755,
            file_mode=0o644,
        )
        config_path = tmp_path / "nested" / "config.json"
        config.save(config_path)

        assert CacheConfig.load(config_path) == config

    def test_load_missing_returns_defaults(self, tmp_path):
        assert CacheConfig.load(tmp_path / "missing.json") == CacheConfig()

    def test_load_partial_with_octal_strings(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_bytes(
            orjson.dumps({"cache_dir": "/srv/cache", "file_mode": "640"})
        )

        config = CacheConfig.load(config_path)
        assert config.cache_dir == "/srv/cache"
        assert config.file_mode == 0o640
        assert config.shard_depth == 5


class TestFromEnv:
    """Test configuration from environment variables."""

    def test_empty_env(self):
        assert CacheConfig.from_env({}) == CacheConfig()

    def test_all_variables(self):
        env = {
            "SHARDCACHE_DIR": "/public",
            "SHARDCACHE_ACTUAL_DIR": "/srv/cache",
            "SHARDCACHE_SHARD_DEPTH": "2",
            "SHARDCACHE_DIR_MODE": "750",
            "SHARDCACHE_FILE_MODE": "640",
        }
        config = CacheConfig.from_env(env)

        assert config.cache_dir == "/public"
        assert config.actual_dir == "/srv/cache"
        assert config.shard_depth == 2
        assert config.dir_mode == 0o750
        assert config.file_mode == 0o640

    def test_reads_os_environ(self, monkeypatch):
        monkeypatch.setenv("SHARDCACHE_SHARD_DEPTH", "1")
        assert CacheConfig.from_env().shard_depth == 1
