"""Producer results for get-or-create.

A producer receives the physical path of the cache file and either returns
the content to cache, or writes the file at that path itself. Producers that
write the file can return ``WrittenDirectly`` to say so explicitly.
"""

from typing import Callable, Union


class _WrittenDirectly:
    """Marker returned by producers that wrote the cache file themselves."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "WrittenDirectly"

    def __bool__(self) -> bool:
        return False


WrittenDirectly = _WrittenDirectly()

Contents = Union[bytes, bytearray, memoryview, str, None]
ProducerResult = Union[Contents, _WrittenDirectly]
Producer = Callable[[str], ProducerResult]


def coerce_contents(contents: Contents) -> bytes:
    """Convert cache contents to bytes.

    Strings are encoded as UTF-8 and None becomes an empty payload.

    Examples:
        >>> coerce_contents('héllo')
        b'h\\xc3\\xa9llo'
        >>> coerce_contents(None)
        b''
    """
    if contents is None:
        return b""
    if isinstance(contents, str):
        return contents.encode("utf-8")
    if isinstance(contents, (bytes, bytearray, memoryview)):
        return bytes(contents)
    raise TypeError(
        f"Cache contents must be bytes, str or None, got {type(contents).__name__}"
    )
