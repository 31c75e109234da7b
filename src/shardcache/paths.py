"""Path helpers for sharded cache entries."""

from pathlib import Path
from typing import Union

REMOTE_PREFIXES = ("http://", "https://")
INVALID_KEYS = (".", "..")


def validate_key(key: str) -> None:
    """Check that a key can be used as a cache filename.

    Raises:
        ValueError: If the key is empty, is "." or "..", or contains a path
            separator or NUL byte
    """
    if not isinstance(key, str) or not key:
        raise ValueError(f"Cache key must be a non-empty string, got {key!r}")
    if key in INVALID_KEYS or "/" in key or "\0" in key:
        raise ValueError(f"Cache key must be a plain filename, got {key!r}")


def is_remote(path: Union[str, Path]) -> bool:
    """Check if a path is a remote URL.

    Args:
        path: Path to check

    Returns:
        True if path starts with http:// or https://

    Examples:
        >>> is_remote('https://example.com/logo.png')
        True
        >>> is_remote('/local/path/logo.png')
        False
    """
    return str(path).startswith(REMOTE_PREFIXES)


def shard_fragment(key: str, depth: int) -> str:
    """Build the shard directory fragment for a key.

    One single-character directory per character, for the first
    ``min(len(key), depth)`` characters of the key.

    Examples:
        >>> shard_fragment('helloworld.txt', 5)
        'h/e/l/l/o'
        >>> shard_fragment('ab', 5)
        'a/b'
        >>> shard_fragment('ab', 0)
        ''
    """
    return "/".join(key[: max(depth, 0)])


def join_paths(*parts: Union[str, Path]) -> str:
    """Join path components with forward slashes, skipping empty ones.

    Examples:
        >>> join_paths('cache', 'h/e/l', 'hello.txt')
        'cache/h/e/l/hello.txt'
        >>> join_paths('cache/', '', 'hello.txt')
        'cache/hello.txt'
    """
    head, *rest = [str(part) for part in parts]
    pieces = [piece.strip("/") for piece in rest]
    return "/".join([head.rstrip("/")] + [piece for piece in pieces if piece])


def build_path(base: Union[str, Path], key: str, depth: int) -> str:
    """Compute the full sharded path of a key under a base directory.

    Examples:
        >>> build_path('cache', 'helloworld.txt', 5)
        'cache/h/e/l/l/o/helloworld.txt'
    """
    return f"{build_directory(base, key, depth)}/{key}"


def build_directory(base: Union[str, Path], key: str, depth: int) -> str:
    """Compute the directory holding a key's cache file."""
    return join_paths(base, shard_fragment(key, depth))
