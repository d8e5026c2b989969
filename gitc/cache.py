"""
Completion cache for gitc.

This module persists repository listings and repository counts per owner and
decides whether a cached value is still fresh.
"""

import logging
import os
import re
import tempfile
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple, Union

from gitc.schemas import CacheEntry, CacheKind

logger = logging.getLogger("gitc.cache")

Clock = Callable[[], float]
Payload = Union[List[str], int]

_FILE_SUFFIXES = {
    CacheKind.LISTING: "repos",
    CacheKind.COUNT: "count",
}


class CompletionCache(ABC):
    """Base class for completion caches.

    An entry is fresh while ``now - written_at < ttl``. Stale entries are
    reported as absent.
    """

    def __init__(
        self,
        ttl: float = 3600,
        count_ttl: Optional[float] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize the cache.

        Args:
            ttl: Time-to-live in seconds for listings (and counts, unless count_ttl is set)
            count_ttl: Separate time-to-live in seconds for repository counts
            clock: Returns the current time as a UNIX timestamp
        """
        self.ttl = ttl
        self.count_ttl = ttl if count_ttl is None else count_ttl
        self.clock = clock or time.time

    def ttl_for(self, kind: CacheKind) -> float:
        return self.count_ttl if kind == CacheKind.COUNT else self.ttl

    def is_fresh(self, entry: CacheEntry) -> bool:
        return self.clock() - entry.written_at < self.ttl_for(entry.kind)

    def get(self, owner: str, kind: CacheKind) -> Optional[CacheEntry]:
        """Get a fresh cache entry.

        Args:
            owner: Repository owner
            kind: Kind of cached value

        Returns:
            Optional[CacheEntry]: The entry, or None if absent or stale
        """
        entry = self._read(owner, kind)
        if entry is None:
            logger.debug(f"Cache miss for {owner} ({kind.value})")
            return None
        if not self.is_fresh(entry):
            logger.debug(f"Cache entry for {owner} ({kind.value}) is stale")
            return None
        logger.debug(f"Cache hit for {owner} ({kind.value})")
        return entry

    def put(self, owner: str, kind: CacheKind, payload: Payload) -> CacheEntry:
        """Overwrite the cache entry for an owner.

        Args:
            owner: Repository owner
            kind: Kind of cached value
            payload: List of ``owner/name`` strings for listings, an integer for counts

        Returns:
            CacheEntry: The entry that was written
        """
        if kind == CacheKind.COUNT:
            payload = int(payload)
        else:
            payload = [str(item) for item in payload]
        entry = CacheEntry(owner=owner, kind=kind, payload=payload, written_at=self.clock())
        self._write(entry)
        return entry

    @abstractmethod
    def clear(self, owner: Optional[str] = None) -> None:
        """Remove cached entries for one owner, or for every owner."""
        pass

    @abstractmethod
    def _read(self, owner: str, kind: CacheKind) -> Optional[CacheEntry]:
        pass

    @abstractmethod
    def _write(self, entry: CacheEntry) -> None:
        pass


class InMemoryCompletionCache(CompletionCache):
    """Dictionary-backed cache."""

    def __init__(self, ttl: float = 3600, count_ttl: Optional[float] = None, clock: Optional[Clock] = None):
        super().__init__(ttl=ttl, count_ttl=count_ttl, clock=clock)
        self._entries: Dict[Tuple[str, CacheKind], CacheEntry] = {}

    def clear(self, owner: Optional[str] = None) -> None:
        if owner is None:
            self._entries.clear()
            return
        for key in [key for key in self._entries if key[0] == owner]:
            del self._entries[key]

    def _read(self, owner: str, kind: CacheKind) -> Optional[CacheEntry]:
        return self._entries.get((owner, kind))

    def _write(self, entry: CacheEntry) -> None:
        self._entries[(entry.owner, entry.kind)] = entry


class FileCompletionCache(CompletionCache):
    """Cache stored as one file per owner and kind.

    Listing files hold one ``owner/name`` per line and count files hold a
    single integer. The file modification time is the write time. Files are
    replaced atomically so a reader never sees a partial listing.
    """

    def __init__(
        self,
        cache_dir: str,
        ttl: float = 3600,
        count_ttl: Optional[float] = None,
        clock: Optional[Clock] = None,
        prefix: str = "gitc",
    ):
        super().__init__(ttl=ttl, count_ttl=count_ttl, clock=clock)
        self.cache_dir = cache_dir
        self.prefix = prefix

    def path_for(self, owner: str, kind: CacheKind) -> str:
        """Get the cache file path for an owner and kind."""
        safe_owner = re.sub(r"[^A-Za-z0-9._-]", "_", owner)
        return os.path.join(self.cache_dir, f"{self.prefix}-{safe_owner}-{_FILE_SUFFIXES[kind]}")

    def clear(self, owner: Optional[str] = None) -> None:
        if owner is not None:
            paths = [self.path_for(owner, kind) for kind in CacheKind]
        elif os.path.isdir(self.cache_dir):
            suffixes = tuple(f"-{suffix}" for suffix in _FILE_SUFFIXES.values())
            paths = [
                os.path.join(self.cache_dir, name)
                for name in os.listdir(self.cache_dir)
                if name.startswith(f"{self.prefix}-") and name.endswith(suffixes)
            ]
        else:
            paths = []

        for path in paths:
            try:
                os.remove(path)
            except FileNotFoundError:
                continue

    def _read(self, owner: str, kind: CacheKind) -> Optional[CacheEntry]:
        path = self.path_for(owner, kind)
        try:
            written_at = os.path.getmtime(path)
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read cache file {path}: {str(e)}")
            return None

        if kind == CacheKind.COUNT:
            try:
                payload = int(content.strip())
            except ValueError:
                logger.warning(f"Ignoring corrupt repository count in {path}")
                return None
        else:
            payload = [line.strip() for line in content.splitlines() if line.strip()]

        return CacheEntry(owner=owner, kind=kind, payload=payload, written_at=written_at)

    def _write(self, entry: CacheEntry) -> None:
        if entry.kind == CacheKind.COUNT:
            content = f"{entry.payload}\n"
        else:
            content = "".join(f"{item}\n" for item in entry.payload)

        os.makedirs(self.cache_dir, exist_ok=True)
        path = self.path_for(entry.owner, entry.kind)

        # Write next to the target and rename over it
        fd, tmp_path = tempfile.mkstemp(prefix=f".{os.path.basename(path)}.", dir=self.cache_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.utime(tmp_path, (entry.written_at, entry.written_at))
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.remove(tmp_path)
            except FileNotFoundError:
                pass
            raise

        logger.debug(f"Wrote cache file {path}")
