"""shardcache: A filesystem cache with sharded directories and freshness conditions."""

__version__ = "0.1.0"

from shardcache.config import CacheConfig
from shardcache.errors import (
    CacheError,
    CachePermissionError,
    CacheWriteError,
    InvalidModeError,
    ProducerError,
    UnsupportedConditionError,
)
from shardcache.producers import WrittenDirectly
from shardcache.storage import LocalFilesystem
from shardcache.store import CacheStore

__all__ = [
    "CacheStore",
    "CacheConfig",
    "LocalFilesystem",
    "WrittenDirectly",
    "CacheError",
    "CacheWriteError",
    "CachePermissionError",
    "InvalidModeError",
    "ProducerError",
    "UnsupportedConditionError",
    "__version__",
]
