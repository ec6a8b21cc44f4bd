"""
In-memory cache store for normalized directory results.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Optional, Tuple

from shared.logging import get_logger


@dataclass(frozen=True)
class CacheEntry:
    """A cached payload and the clock reading taken when it was written."""

    key: str
    payload: Tuple[Any, ...]
    recorded_at: float

    def age(self, now: float) -> float:
        return now - self.recorded_at


class CacheStore:
    """Thread-safe key/value store of immutable cache entries.

    The store never expires or evicts anything on its own. Callers decide
    whether an entry is fresh; a write always replaces the previous entry
    for its key with a new ``CacheEntry`` object, so readers see either the
    old entry or the new one, never a mix.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None) -> None:
        self.clock = clock or time.monotonic
        self.logger = get_logger("directory.cache")
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[CacheEntry]:
        """Return the entry stored under ``key``, fresh or not."""
        with self._lock:
            return self._entries.get(key)

    def set(self, key: str, payload: Iterable[Any]) -> CacheEntry:
        """Store ``payload`` under ``key`` stamped with the current clock reading."""
        entry = CacheEntry(key=key, payload=tuple(payload), recorded_at=self.clock())
        with self._lock:
            self._entries[key] = entry
        self.logger.debug("Cached value", key=key, items=len(entry.payload))
        return entry

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._entries
