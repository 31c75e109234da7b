"""Validity conditions for cache entries.

A condition set is a mapping from condition kind to value, evaluated
conjunctively against a cache file's metadata:

- ``max-age``: maximum age in seconds
- ``younger-than``: a path (or iterable of paths) the entry must be newer than
- ``min-size``: minimum file size in bytes
"""

import logging
import time
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from shardcache.errors import UnsupportedConditionError
from shardcache.paths import is_remote
from shardcache.storage import FileInfo, LocalFilesystem

logger = logging.getLogger(__name__)

MAX_AGE = "max-age"
YOUNGER_THAN = "younger-than"
MIN_SIZE = "min-size"

CONDITION_ALIASES: Dict[str, str] = {
    "max-age": MAX_AGE,
    "maxage": MAX_AGE,
    "max_age": MAX_AGE,
    "younger-than": YOUNGER_THAN,
    "youngerthan": YOUNGER_THAN,
    "younger_than": YOUNGER_THAN,
    "min-size": MIN_SIZE,
    "minsize": MIN_SIZE,
    "min_size": MIN_SIZE,
}


def normalize_conditions(
    conditions: Optional[Mapping[str, Any]],
) -> List[Tuple[str, Any]]:
    """Resolve condition aliases to their canonical kinds.

    Args:
        conditions: Mapping of condition kind to value, or None

    Returns:
        List of (canonical_kind, value) pairs, in mapping order

    Raises:
        UnsupportedConditionError: If any kind is unknown
    """
    if not conditions:
        return []

    normalized = []
    for kind, value in conditions.items():
        canonical = CONDITION_ALIASES.get(kind) if isinstance(kind, str) else None
        if canonical is None:
            raise UnsupportedConditionError(kind)
        normalized.append((canonical, value))
    return normalized


def _as_references(value: Any) -> Iterable[Union[str, Path]]:
    if isinstance(value, (str, Path)):
        return [value]
    return value


def is_older_than_reference(
    info: FileInfo,
    reference: Union[str, Path],
    filesystem: LocalFilesystem,
) -> bool:
    """Check if a cache file fails a younger-than reference.

    Remote references and references that do not exist never invalidate.

    Args:
        info: Metadata of the cache file
        reference: Path the cache file must be strictly newer than
        filesystem: Backend used to inspect the reference

    Returns:
        True if the reference exists locally and is at least as new as the
        cache file
    """
    if is_remote(reference) or not filesystem.exists(reference):
        return False
    return info.mtime <= filesystem.stat(reference).mtime


def check_conditions(
    cache_file: Union[str, Path],
    conditions: Optional[Mapping[str, Any]] = None,
    filesystem: Optional[LocalFilesystem] = None,
    now: Optional[float] = None,
) -> bool:
    """Check that a cache file exists and respects all conditions.

    Condition kinds are validated before anything else, so an unsupported
    kind raises even when the cache file is missing.

    Args:
        cache_file: Physical path of the cache file
        conditions: Mapping of condition kind to value
        filesystem: Backend used for filesystem queries
        now: Current POSIX timestamp (defaults to time.time())

    Returns:
        True if the file exists and every condition passes

    Raises:
        UnsupportedConditionError: If a condition kind is unknown

    Examples:
        >>> check_conditions('cache/a/b/abc', {'max-age': 3600})
        False
    """
    normalized = normalize_conditions(conditions)
    filesystem = filesystem or LocalFilesystem()

    # Implicit condition: the cache file should exist as a regular file
    if not filesystem.is_file(cache_file):
        return False

    if not normalized:
        return True

    info = filesystem.stat(cache_file)
    if now is None:
        now = time.time()

    for kind, value in normalized:
        if kind == MAX_AGE:
            age = now - info.mtime
            if age > value:
                logger.debug(f"{cache_file} is {age:.0f}s old, max-age is {value}")
                return False
        elif kind == YOUNGER_THAN:
            for reference in _as_references(value):
                if is_older_than_reference(info, reference, filesystem):
                    logger.debug(f"{cache_file} is not younger than {reference}")
                    return False
        elif kind == MIN_SIZE:
            if info.size < value:
                logger.debug(f"{cache_file} is {info.size} bytes, min-size is {value}")
                return False

    return True
