"""Exceptions raised by the cache store."""


class CacheError(Exception):
    """Base exception for cache-related errors."""

    pass


class CacheWriteError(CacheError):
    """Raised when a cache file cannot be written."""

    pass


class CachePermissionError(CacheWriteError):
    """Raised when cache file or directory permissions are insufficient."""

    pass


class InvalidModeError(CacheError, TypeError):
    """Raised when a permission mode is neither None nor a valid integer."""

    pass


class ProducerError(CacheError):
    """Raised when a producer claims to have written a file it did not write."""

    pass


class UnsupportedConditionError(CacheError, ValueError):
    """Raised when a cache condition kind is not recognized."""

    def __init__(self, kind):
        super().__init__(f"Cache condition {kind!r} not supported")
        self.kind = kind
