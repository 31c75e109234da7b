"""Filesystem backend for cache file I/O.

This module isolates every filesystem call the cache store makes, so the
store can be exercised against a substitute backend in tests.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Tuple, Union

PathLike = Union[str, Path]


@dataclass(frozen=True)
class FileInfo:
    """Metadata of a cache file.

    Attributes:
        mtime: Modification time as a POSIX timestamp
        size: File size in bytes
    """

    mtime: float
    size: int


class LocalFilesystem:
    """Handles all file I/O operations for a CacheStore.

    Examples:
        >>> fs = LocalFilesystem()
        >>> fs.write_bytes('/tmp/cache/a/abc', b'payload')
        >>> fs.read_bytes('/tmp/cache/a/abc')
        b'payload'
    """

    def exists(self, path: PathLike) -> bool:
        """Check if a path exists."""
        return Path(path).exists()

    def is_file(self, path: PathLike) -> bool:
        """Check if a path is a regular file."""
        return Path(path).is_file()

    def is_dir(self, path: PathLike) -> bool:
        """Check if a path is a directory."""
        return Path(path).is_dir()

    def read_bytes(self, path: PathLike) -> bytes:
        """Read the entire contents of a file."""
        with open(path, "rb") as f:
            return f.read()

    def write_bytes(self, path: PathLike, data: bytes) -> None:
        """Write data to a file, creating or truncating it."""
        with open(path, "wb") as f:
            f.write(data)

    def delete_file(self, path: PathLike, missing_ok: bool = True) -> None:
        """Delete a file.

        Args:
            path: File path to delete
            missing_ok: Don't error if the file is already gone
        """
        Path(path).unlink(missing_ok=missing_ok)

    def mkdir(self, path: PathLike, mode: Optional[int] = None) -> None:
        """Create a directory and its parents.

        Args:
            path: Directory path to create
            mode: Permission bits for created directories. If None, the
                platform default (0o777 minus umask) applies.
        """
        if mode is None:
            os.makedirs(path, exist_ok=True)
            return

        # os.makedirs only applies mode to the leaf, so create each level
        target = Path(path)
        if target.exists() and not target.is_dir():
            raise FileExistsError(f"Not a directory: {target}")

        missing = []
        current = target
        while not current.exists() and current != current.parent:
            missing.append(current)
            current = current.parent
        for directory in reversed(missing):
            try:
                directory.mkdir(mode=mode)
            except FileExistsError:
                if not directory.is_dir():
                    raise

    def stat(self, path: PathLike) -> FileInfo:
        """Get modification time and size of a file."""
        st = os.stat(path)
        return FileInfo(mtime=st.st_mtime, size=st.st_size)

    def chmod(self, path: PathLike, mode: int) -> None:
        """Change permission bits of a path."""
        os.chmod(path, mode)

    def walk(self, root: PathLike) -> Iterator[Tuple[str, bool]]:
        """Recursively list everything below a directory.

        Directories are yielded before their contents. The root itself is
        not yielded.

        Yields:
            Tuples of (path, is_directory)
        """
        for dirpath, dirnames, filenames in os.walk(root):
            for name in dirnames:
                yield os.path.join(dirpath, name), True
            for name in filenames:
                yield os.path.join(dirpath, name), False
