"""In-process (L1) cache tier.

Each service instance owns one LocalCache. Entries carry their own TTL so
the catalog listing and individual products can expire on different
schedules. Nothing here is shared across instances; the distributed tier
is the source for repopulation.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from cachetools import TLRUCache

logger = logging.getLogger(__name__)

DEFAULT_MAXSIZE = 1024


@dataclass(frozen=True)
class _Entry:
    value: Any
    ttl: float


def _time_to_use(key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class LocalCache:
    """Per-key TTL cache backed by ``cachetools.TLRUCache``.

    All access happens on the event loop thread, so no lock is taken.
    Values should be immutable (frozen models, tuples) because the same
    object is returned to every caller.
    """

    def __init__(
        self,
        maxsize: int = DEFAULT_MAXSIZE,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=maxsize, ttu=_time_to_use, timer=timer
        )

    def get(self, key: str) -> Any | None:
        """Return the cached value or None if absent or expired."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: float) -> None:
        """Store a value for ``ttl`` seconds."""
        if ttl <= 0:
            self._cache.pop(key, None)
            return
        self._cache[key] = _Entry(value, ttl)
        logger.debug("Local cache set: %s (ttl=%ss)", key, ttl)

    def remove(self, key: str) -> None:
        """Drop a key; missing keys are ignored."""
        self._cache.pop(key, None)

    def clear(self) -> None:
        self._cache.clear()

    def __contains__(self, key: str) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        self._cache.expire()
        return len(self._cache)
