"""
Shared file-based cache utility.

Used by the ailment service as a read-through cache in front of the store.
Cache entries are JSON files named by a SHA-256 hash of the key; each entry
records its key so that glob patterns (``ailment:*``) can be invalidated.

The cache is advisory: any failure to read or write it is logged and treated
as a miss, never raised to the caller.
"""

import fnmatch
import hashlib
import json
import logging
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from ailment_tracker.constants import CACHE_TTL, DEFAULT_CACHE_DIR

logger = logging.getLogger(__name__)


def cache_key(key: str) -> str:
    """Return a deterministic hex digest for the given key."""
    return hashlib.sha256(key.encode()).hexdigest()


def cache_get(key: str, cache_dir: Path) -> Any | None:
    """Return cached data if present and unexpired, otherwise None."""
    path = cache_dir / f"{cache_key(key)}.json"
    if not path.exists():
        return None
    try:
        entry = json.loads(path.read_text())
        if not isinstance(entry, dict):
            raise ValueError(f"cache entry is {type(entry).__name__}, not an object")
        age = (
            datetime.now() - datetime.fromisoformat(entry["cached_at"])
        ).total_seconds()
        if age > entry.get("ttl", CACHE_TTL):
            path.unlink(missing_ok=True)
            return None
        return entry["data"]
    except (json.JSONDecodeError, KeyError, TypeError, ValueError):
        path.unlink(missing_ok=True)
        return None


def cache_set(
    key: str,
    data: Any,
    cache_dir: Path,
    ttl: int | None = None,
) -> None:
    """Write data to the cache under the given key."""
    cache_dir.mkdir(parents=True, exist_ok=True)
    entry = {
        "key": key,
        "data": data,
        "cached_at": datetime.now().isoformat(),
        "ttl": ttl if ttl is not None else CACHE_TTL,
    }
    (cache_dir / f"{cache_key(key)}.json").write_text(json.dumps(entry, default=str))


def cache_invalidate(pattern: str, cache_dir: Path) -> int:
    """Delete the entry for ``pattern``, or every entry whose key matches it.

    Glob characters (``*``, ``?``, ``[``) switch to a scan of the directory.
    Returns the number of entries removed.
    """
    if not any(c in pattern for c in "*?["):
        path = cache_dir / f"{cache_key(pattern)}.json"
        if path.exists():
            path.unlink(missing_ok=True)
            return 1
        return 0

    if not cache_dir.exists():
        return 0
    removed = 0
    for path in cache_dir.glob("*.json"):
        try:
            key = json.loads(path.read_text()).get("key", "")
        except (json.JSONDecodeError, AttributeError):
            path.unlink(missing_ok=True)
            continue
        if fnmatch.fnmatchcase(key, pattern):
            path.unlink(missing_ok=True)
            removed += 1
    return removed


class AilmentCache:
    """Cache-aside wrapper with failure isolation."""

    def __init__(
        self,
        cache_dir: Path = DEFAULT_CACHE_DIR,
        ttl: int = CACHE_TTL,
        enabled: bool = True,
    ):
        self.cache_dir = cache_dir
        self.ttl = ttl
        self.enabled = enabled

    def get(self, key: str) -> Any | None:
        if not self.enabled:
            return None
        try:
            data = cache_get(key, self.cache_dir)
        except OSError as e:
            logger.warning("Cache get error for %s: %s", key, e)
            return None
        logger.debug("Cache %s for %s", "miss" if data is None else "hit", key)
        return data

    def set(self, key: str, data: Any, ttl: int | None = None) -> None:
        if not self.enabled:
            return
        try:
            cache_set(key, data, self.cache_dir, ttl=ttl if ttl is not None else self.ttl)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Cache set error for %s: %s", key, e)

    def get_or_compute(
        self, key: str, compute: Callable[[], Any], ttl: int | None = None
    ) -> Any:
        """Return the cached value, or compute, cache and return it.

        ``None`` results are returned but not cached.
        """
        cached = self.get(key)
        if cached is not None:
            return cached
        data = compute()
        if data is not None:
            self.set(key, data, ttl)
        return data

    def invalidate(self, pattern: str) -> None:
        if not self.enabled:
            return
        try:
            removed = cache_invalidate(pattern, self.cache_dir)
        except OSError as e:
            logger.warning("Cache invalidate error for %s: %s", pattern, e)
            return
        logger.debug("Invalidated %d cache entries for %s", removed, pattern)
