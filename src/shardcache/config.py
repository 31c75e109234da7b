"""Cache configuration management."""

import dataclasses
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import orjson

ENV_PREFIX = "SHARDCACHE_"


def parse_mode(value: Union[str, int, None]) -> Optional[int]:
    """Parse a permission mode given as an octal string or integer.

    Examples:
        >>> parse_mode('755')
        493
        >>> parse_mode('0o644')
        420
        >>> parse_mode(None) is None
        True
    """
    if value is None or value == "":
        return None
    if isinstance(value, int):
        return value
    text = value.strip().lower()
    if text.startswith("0o"):
        text = text[2:]
    return int(text, 8)


def _check_mode(name: str, mode: Optional[int]) -> None:
    if mode is None:
        return
    if isinstance(mode, bool) or not isinstance(mode, int):
        raise TypeError(f"{name} must be an integer or None, got {mode!r}")
    if not 0 <= mode <= 0o7777:
        raise ValueError(f"{name} must be between 0 and 0o7777, got {oct(mode)}")


@dataclass(frozen=True)
class CacheConfig:
    """Configuration for a sharded file cache.

    Attributes:
        cache_dir: Logical cache directory, used for paths reported to callers
        actual_cache_dir: Directory where files are physically stored. If None,
            cache_dir is used.
        shard_depth: Number of single-character prefix directories. With 5,
            the key 'helloworld.txt' is stored as 'h/e/l/l/o/helloworld.txt'.
        dir_mode: Permission bits for created directories (None = 0o777 minus umask)
        file_mode: Permission bits applied to written files (None = 0o666 minus umask)
    """

    cache_dir: str = "cache"
    actual_cache_dir: Optional[str] = None
    shard_depth: int = 5
    dir_mode: Optional[int] = None
    file_mode: Optional[int] = None

    def __post_init__(self):
        """Normalize directories to strings and validate numeric settings."""
        if self.cache_dir is None or str(self.cache_dir) == "":
            raise ValueError("cache_dir must be a non-empty path")
        object.__setattr__(self, "cache_dir", _normalize_dir(self.cache_dir))
        if self.actual_cache_dir is not None and str(self.actual_cache_dir) != "":
            object.__setattr__(
                self, "actual_cache_dir", _normalize_dir(self.actual_cache_dir)
            )
        else:
            object.__setattr__(self, "actual_cache_dir", None)

        if isinstance(self.shard_depth, bool) or not isinstance(self.shard_depth, int):
            raise TypeError(f"shard_depth must be an integer, got {self.shard_depth!r}")
        if self.shard_depth < 0:
            raise ValueError(f"shard_depth must be non-negative, got {self.shard_depth}")
        _check_mode("dir_mode", self.dir_mode)
        _check_mode("file_mode", self.file_mode)

    @property
    def actual_dir(self) -> str:
        """Directory where cache files are physically stored."""
        return self.actual_cache_dir or self.cache_dir

    def replace(self, **changes: Any) -> "CacheConfig":
        """Return a copy of this configuration with some fields changed.

        Examples:
            >>> CacheConfig().replace(shard_depth=2).shard_depth
            2
        """
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize configuration to a plain dict."""
        return dataclasses.asdict(self)

    @classmethod
    def load(cls, config_path: Union[str, Path]) -> "CacheConfig":
        """Load configuration from a JSON file.

        Missing keys keep their defaults. Modes may be stored as integers or
        as octal strings such as "755".

        Args:
            config_path: Path to config file

        Returns:
            CacheConfig instance
        """
        config_path = Path(config_path)
        if not config_path.exists():
            return cls()

        with open(config_path, "rb") as f:
            data = orjson.loads(f.read())

        for key in ("dir_mode", "file_mode"):
            if key in data:
                data[key] = parse_mode(data[key])

        return cls(**data)

    def save(self, config_path: Union[str, Path]) -> None:
        """Save configuration to a JSON file.

        Args:
            config_path: Path to config file
        """
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "wb") as f:
            f.write(orjson.dumps(self.to_dict(), option=orjson.OPT_INDENT_2))

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "CacheConfig":
        """Create configuration from environment variables.

        Environment variables:
            SHARDCACHE_DIR: Logical cache directory
            SHARDCACHE_ACTUAL_DIR: Physical cache directory
            SHARDCACHE_SHARD_DEPTH: Number of prefix directories
            SHARDCACHE_DIR_MODE: Directory mode as an octal string (e.g. 755)
            SHARDCACHE_FILE_MODE: File mode as an octal string (e.g. 644)

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            CacheConfig instance
        """
        env = os.environ if environ is None else environ
        values: Dict[str, Any] = {}

        if env.get(f"{ENV_PREFIX}DIR"):
            values["cache_dir"] = env[f"{ENV_PREFIX}DIR"]

        if env.get(f"{ENV_PREFIX}ACTUAL_DIR"):
            values["actual_cache_dir"] = env[f"{ENV_PREFIX}ACTUAL_DIR"]

        if env.get(f"{ENV_PREFIX}SHARD_DEPTH"):
            values["shard_depth"] = int(env[f"{ENV_PREFIX}SHARD_DEPTH"])

        if env.get(f"{ENV_PREFIX}DIR_MODE"):
            values["dir_mode"] = parse_mode(env[f"{ENV_PREFIX}DIR_MODE"])

        if env.get(f"{ENV_PREFIX}FILE_MODE"):
            values["file_mode"] = parse_mode(env[f"{ENV_PREFIX}FILE_MODE"])

        return cls(**values)


def _normalize_dir(directory: Union[str, Path]) -> str:
    text = str(directory)
    if text.startswith("~"):
        text = str(Path(text).expanduser())
    return text
