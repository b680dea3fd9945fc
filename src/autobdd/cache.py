"""
TTL-bounded caches for DOM snapshots.

``DomCache`` persists entries as JSON files keyed by an md5 digest of the
source (usually the page URL). ``ResultCache`` is the bounded in-memory
companion; once full it evicts the oldest-inserted entry.

Entries expire strictly by wall-clock time since insertion. Reads never raise:
a missing, expired or malformed entry is a miss.
"""

from __future__ import annotations

import hashlib
import json
import shutil
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_TTL_MS = 3_600_000
DEFAULT_MEMORY_CAPACITY = 50

Clock = Callable[[], float]


def wall_clock_ms() -> float:
    """Current wall-clock time in milliseconds."""
    return time.time() * 1000


def content_hash(data: str) -> str:
    """md5 hex digest used for cache keys and content fingerprints."""
    return hashlib.md5(data.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class CacheEntry:
    """A cached payload with its insertion time and content hash."""

    timestamp: float
    data: Any
    hash: str

    def is_fresh(self, now: float, ttl_ms: float) -> bool:
        return now - self.timestamp < ttl_ms

    def to_json(self) -> str:
        return json.dumps({"timestamp": self.timestamp, "data": self.data, "hash": self.hash})

    @classmethod
    def from_json(cls, raw: str) -> CacheEntry:
        payload = json.loads(raw)
        if not isinstance(payload, dict):
            raise ValueError("cache entry is not an object")
        timestamp = payload["timestamp"]
        if not isinstance(timestamp, int | float):
            raise ValueError("cache entry timestamp is not numeric")
        return cls(timestamp=float(timestamp), data=payload["data"], hash=str(payload.get("hash", "")))


@dataclass(frozen=True)
class CacheStats:
    total_files: int
    total_size: int
    expired_files: int


class DomCache:
    """File-backed TTL cache for DOM snapshots."""

    def __init__(
        self,
        directory: str | Path,
        ttl_ms: float = DEFAULT_TTL_MS,
        clock: Clock = wall_clock_ms,
    ) -> None:
        self._directory = Path(directory)
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._log = logger.bind(component="dom_cache")

    @property
    def directory(self) -> Path:
        return self._directory

    def _path_for(self, key: str) -> Path:
        return self._directory / f"{content_hash(key)}.json"

    def get(self, key: str) -> str | None:
        """Return the cached payload for ``key`` or None on miss."""
        path = self._path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            self._log.debug("Unreadable cache entry", key=key, error=str(e))
            return None

        try:
            entry = CacheEntry.from_json(raw)
        except (ValueError, KeyError, TypeError) as e:
            self._log.debug("Malformed cache entry treated as miss", key=key, error=str(e))
            return None

        if entry.is_fresh(self._clock(), self._ttl_ms):
            return entry.data

        self._log.debug("Cache entry expired", key=key)
        path.unlink(missing_ok=True)
        return None

    def put(self, key: str, payload: str) -> None:
        """Store ``payload`` under ``key`` with the current timestamp."""
        entry = CacheEntry(timestamp=self._clock(), data=payload, hash=content_hash(payload))
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            self._path_for(key).write_text(entry.to_json(), encoding="utf-8")
        except OSError as e:
            self._log.warning("Failed to write cache entry", key=key, error=str(e))

    def clear(self) -> None:
        """Remove every entry."""
        if self._directory.exists():
            shutil.rmtree(self._directory, ignore_errors=True)

    def clear_expired(self) -> int:
        """Remove expired entries and return how many were removed."""
        removed = 0
        now = self._clock()
        for path in self._entry_files():
            try:
                entry = CacheEntry.from_json(path.read_text(encoding="utf-8"))
            except (OSError, ValueError, KeyError, TypeError):
                continue
            if not entry.is_fresh(now, self._ttl_ms):
                path.unlink(missing_ok=True)
                removed += 1
        return removed

    def stats(self) -> CacheStats:
        total_size = 0
        expired = 0
        files = self._entry_files()
        now = self._clock()
        for path in files:
            try:
                total_size += path.stat().st_size
                entry = CacheEntry.from_json(path.read_text(encoding="utf-8"))
            except (OSError, ValueError, KeyError, TypeError):
                continue
            if not entry.is_fresh(now, self._ttl_ms):
                expired += 1
        return CacheStats(total_files=len(files), total_size=total_size, expired_files=expired)

    def _entry_files(self) -> list[Path]:
        if not self._directory.is_dir():
            return []
        return sorted(self._directory.glob("*.json"))


class ResultCache:
    """
    Bounded in-memory TTL cache.

    Eviction is first-in-first-out: reads do not refresh an entry's position,
    while overwriting a key counts as a new insertion.
    """

    def __init__(
        self,
        capacity: int = DEFAULT_MEMORY_CAPACITY,
        ttl_ms: float = DEFAULT_TTL_MS,
        clock: Clock = wall_clock_ms,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._ttl_ms = ttl_ms
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_fresh(self._clock(), self._ttl_ms):
            return entry.data
        del self._entries[key]
        return None

    def put(self, key: str, value: Any) -> None:
        self._entries.pop(key, None)
        while len(self._entries) >= self._capacity:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        self._entries[key] = CacheEntry(timestamp=self._clock(), data=value, hash="")

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
