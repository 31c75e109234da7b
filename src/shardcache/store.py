"""Sharded file cache store."""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional, Union

from shardcache.config import CacheConfig
from shardcache.errors import (
    CachePermissionError,
    CacheWriteError,
    InvalidModeError,
    ProducerError,
)
from shardcache.paths import build_directory, build_path, validate_key
from shardcache.producers import Contents, Producer, WrittenDirectly, coerce_contents
from shardcache.storage import LocalFilesystem
from shardcache.validation import check_conditions, normalize_conditions

logger = logging.getLogger(__name__)

Conditions = Optional[Mapping[str, Any]]


class CacheStore:
    """A cache system based on files.

    Each key is stored as a file below the cache directory, inside one
    single-character directory per leading character of the key (up to
    ``shard_depth``), which keeps directories small for large caches.

    Examples:
        >>> store = CacheStore(CacheConfig(cache_dir='/tmp/cache'))
        >>> store.set('helloworld.txt', b'hi')
        '/tmp/cache/h/e/l/l/o/helloworld.txt'
        >>> store.get('helloworld.txt', {'max-age': 60})
        b'hi'
    """

    def __init__(
        self,
        config: Optional[CacheConfig] = None,
        filesystem: Optional[LocalFilesystem] = None,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize cache store.

        Args:
            config: Cache configuration (defaults to CacheConfig())
            filesystem: Filesystem backend (defaults to LocalFilesystem())
            clock: Returns the current POSIX timestamp, used for max-age
        """
        self.config = config or CacheConfig()
        self.filesystem = filesystem or LocalFilesystem()
        self.clock = clock

    def __repr__(self) -> str:
        return f"CacheStore({self.config!r})"

    @property
    def cache_dir(self) -> str:
        """Logical cache directory."""
        return self.config.cache_dir

    @property
    def actual_cache_dir(self) -> str:
        """Physical cache directory."""
        return self.config.actual_dir

    def with_config(self, **changes: Any) -> "CacheStore":
        """Return a store sharing this store's backend with a changed config.

        Examples:
            >>> CacheStore().with_config(shard_depth=2).config.shard_depth
            2
        """
        return CacheStore(
            self.config.replace(**changes), filesystem=self.filesystem, clock=self.clock
        )

    # =========================================================================
    # Paths
    # =========================================================================

    def _mkdir(self, directory: str) -> bool:
        """Create a cache directory, best-effort.

        Failures are logged and swallowed; a later write into the directory
        reports the real error.

        Returns:
            True if the directory exists afterwards
        """
        if self.filesystem.is_dir(directory):
            return True
        try:
            self.filesystem.mkdir(directory, self.config.dir_mode)
        except OSError as e:
            logger.warning(f"Could not create cache directory {directory}: {e}")
            return False
        return True

    def get_cache_file(self, key: str, actual: bool = False, mkdir: bool = False) -> str:
        """Get the path of a key's cache file.

        Args:
            key: The cache key (filename)
            actual: Return the physical path instead of the logical one
            mkdir: Create the file's directory under the physical cache
                directory if it is missing

        Returns:
            Path of the cache file

        Raises:
            ValueError: If key is empty, "." or "..", or contains "/" or NUL
        """
        validate_key(key)

        depth = self.config.shard_depth
        if mkdir:
            self._mkdir(build_directory(self.config.actual_dir, key, depth))

        base = self.config.actual_dir if actual else self.config.cache_dir
        return build_path(base, key, depth)

    resolve_path = get_cache_file

    # =========================================================================
    # Read / write
    # =========================================================================

    def _is_valid(self, cache_file: str, conditions: Conditions) -> bool:
        return check_conditions(
            cache_file, conditions, filesystem=self.filesystem, now=self.clock()
        )

    def exists(self, key: str, conditions: Conditions = None) -> bool:
        """Check if a key is cached and its conditions are respected.

        Args:
            key: The cache key
            conditions: Mapping of condition kind to value, e.g.
                ``{'max-age': 3600, 'younger-than': 'src/image.png'}``

        Returns:
            True if the cache file exists and every condition passes

        Raises:
            UnsupportedConditionError: If a condition kind is unknown
        """
        return self._is_valid(self.get_cache_file(key, actual=True), conditions)

    check = exists

    def _write_file(self, cache_file: str, data: bytes) -> None:
        try:
            self.filesystem.write_bytes(cache_file, data)
        except PermissionError as e:
            raise CachePermissionError(
                f"Cannot write to cache file {cache_file}: {e}"
            ) from e
        except OSError as e:
            raise CacheWriteError(f"Cannot write cache file {cache_file}: {e}") from e

    def _apply_file_mode(self, cache_file: str) -> None:
        mode = self.config.file_mode
        if mode is None:
            return
        try:
            self.filesystem.chmod(cache_file, mode)
        except PermissionError as e:
            raise CachePermissionError(
                f"Cannot chmod cache file {cache_file} to {oct(mode)}: {e}"
            ) from e
        except OSError as e:
            raise CacheWriteError(
                f"Cannot chmod cache file {cache_file} to {oct(mode)}: {e}"
            ) from e

    def set(self, key: str, contents: Contents = b"") -> str:
        """Write data in the cache.

        Existing content is overwritten. The configured file mode is applied
        after writing.

        Args:
            key: The cache key
            contents: Bytes to store (str is encoded as UTF-8)

        Returns:
            Physical path of the written cache file

        Raises:
            CacheWriteError: If the file cannot be written
            CachePermissionError: If permissions prevent the write
        """
        data = coerce_contents(contents)
        cache_file = self.get_cache_file(key, actual=True, mkdir=True)
        self._write_file(cache_file, data)
        self._apply_file_mode(cache_file)
        logger.debug(f"Cached {len(data)} bytes at {cache_file}")
        return cache_file

    write = set

    def get(self, key: str, conditions: Conditions = None) -> Optional[bytes]:
        """Get data from the cache.

        Args:
            key: The cache key
            conditions: Mapping of condition kind to value

        Returns:
            Content of the cache file if it is valid, else None
        """
        cache_file = self.get_cache_file(key, actual=True)
        if not self._is_valid(cache_file, conditions):
            logger.debug(f"Cache miss for {key}")
            return None
        logger.debug(f"Cache hit for {key}")
        return self.filesystem.read_bytes(cache_file)

    # =========================================================================
    # Get or create
    # =========================================================================

    def _remove_stale(self, cache_file: str) -> None:
        try:
            self.filesystem.delete_file(cache_file, missing_ok=True)
        except OSError as e:
            logger.warning(f"Could not remove stale cache file {cache_file}: {e}")

    def _produce(self, key: str, cache_file: str, produce: Producer) -> bytes:
        """Run a producer and return the content it produced.

        If the producer wrote the cache file itself, its return value is
        ignored and the file is read back. Otherwise the return value is
        written to the cache.
        """
        self._remove_stale(cache_file)
        result = produce(cache_file)

        if not self.filesystem.is_file(cache_file):
            if result is WrittenDirectly:
                raise ProducerError(
                    f"Producer for {key} returned WrittenDirectly but "
                    f"{cache_file} does not exist"
                )
            data = coerce_contents(result)
            self.set(key, data)
            return data

        self._apply_file_mode(cache_file)
        logger.debug(f"Producer for {key} wrote {cache_file} directly")
        return self.filesystem.read_bytes(cache_file)

    def get_or_create(
        self,
        key: str,
        produce: Producer,
        conditions: Conditions = None,
        as_file: bool = False,
        actual: bool = False,
    ) -> Union[bytes, str]:
        """Get a cache entry, creating it with ``produce`` if it is not valid.

        The producer is called with the physical path of the cache file. It
        can either return the content (bytes, str or None), or write the file
        at that path and return anything (``WrittenDirectly`` by convention).
        Exceptions raised by the producer propagate unchanged.

        Args:
            key: The cache key
            produce: Callable creating the content
            conditions: Mapping of condition kind to value
            as_file: Return the path of the cache file instead of its content
            actual: With as_file, return the physical path instead of the
                logical one

        Returns:
            Content of the cache file, or its path if as_file is True

        Raises:
            UnsupportedConditionError: If a condition kind is unknown
            CacheWriteError: If the produced content cannot be written
            ProducerError: If the producer returned WrittenDirectly without
                writing the file
        """
        normalize_conditions(conditions)
        cache_file = self.get_cache_file(key, actual=True, mkdir=True)

        if self._is_valid(cache_file, conditions):
            logger.debug(f"Cache hit for {key}")
            data = self.filesystem.read_bytes(cache_file)
        else:
            logger.debug(f"Cache miss for {key}, producing")
            data = self._produce(key, cache_file, produce)

        if as_file:
            return self.get_cache_file(key, actual=actual)
        return data

    def get_or_create_file(
        self,
        key: str,
        produce: Producer,
        conditions: Conditions = None,
        actual: bool = False,
    ) -> str:
        """Alias for get_or_create with as_file=True."""
        return self.get_or_create(key, produce, conditions, as_file=True, actual=actual)

    # =========================================================================
    # Maintenance
    # =========================================================================

    def chmod(self, dir_mode: Optional[int] = None, file_mode: Optional[int] = None) -> int:
        """Change recursively all cache directories and files permissions.

        This scans the entire physical cache directory, so it may take time
        for a large cache. Prefer setting dir_mode and file_mode in the
        configuration before the cache is populated.

        Args:
            dir_mode: Mode for directories, or None to keep current modes
            file_mode: Mode for files, or None to keep current modes

        Returns:
            Number of paths whose mode could not be changed

        Raises:
            InvalidModeError: If a mode is neither None nor an integer in
                the range 0..0o7777
        """
        if dir_mode is None and file_mode is None:
            return 0
        for mode in (dir_mode, file_mode):
            if mode is None:
                continue
            if isinstance(mode, bool) or not isinstance(mode, int):
                raise InvalidModeError(
                    f"chmod requires integer modes or None, got {mode!r}"
                )
            if not 0 <= mode <= 0o7777:
                raise InvalidModeError(f"Mode out of range: {oct(mode)}")

        cache_directory = self.config.actual_dir
        if not self.filesystem.is_dir(cache_directory):
            return 0

        errors = 0
        # Finish the walk before changing any directory mode
        entries = list(self.filesystem.walk(cache_directory))
        for path, is_dir in entries:
            mode = dir_mode if is_dir else file_mode
            if mode is None:
                continue
            try:
                self.filesystem.chmod(path, mode)
            except OSError as e:
                logger.debug(f"Could not chmod {path} to {oct(mode)}: {e}")
                errors += 1

        if errors:
            logger.warning(f"chmod failed for {errors} paths in {cache_directory}")
        return errors

    def status(self, key: str) -> Optional[Dict[str, Any]]:
        """Get cache status for a key.

        Args:
            key: The cache key

        Returns:
            Status dict with cache information, or None if not cached
        """
        cache_file = self.get_cache_file(key, actual=True)
        if not self.filesystem.is_file(cache_file):
            return None

        info = self.filesystem.stat(cache_file)
        return {
            "key": key,
            "cache_path": cache_file,
            "public_path": self.get_cache_file(key),
            "size_bytes": info.size,
            "modified_at": datetime.fromtimestamp(info.mtime, timezone.utc).isoformat(),
            "age_seconds": max(0.0, self.clock() - info.mtime),
        }
