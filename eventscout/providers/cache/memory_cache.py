"""In-memory cache provider using cachetools.

Backs the search cache in single-process deployments.  Finished search
envelopes are stored as-is (they are frozen models, so sharing them between
callers is safe).  Swap for Redis via ICacheProvider when running several
workers.
"""

from __future__ import annotations

from typing import Any, NamedTuple

import structlog
from cachetools import TLRUCache

from eventscout.interfaces.cache_provider import ICacheProvider

logger = structlog.get_logger(logger_name=__name__)


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryCacheProvider(ICacheProvider):
    """In-memory cache with per-item expiry, backed by ``cachetools.TLRUCache``.

    Parameters
    ----------
    max_size:
        Maximum number of entries; the least-recently-used entry is
        evicted beyond that.
    ttl:
        Default time-to-live in seconds, used when :meth:`set` gets none.
    """

    def __init__(self, max_size: int = 256, ttl: int = 900) -> None:
        self._default_ttl = ttl
        self._cache: TLRUCache[str, _Entry] = TLRUCache(maxsize=max_size, ttu=_time_to_use)

    # ------------------------------------------------------------------
    # ICacheProvider implementation
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        entry = self._cache.get(key)
        if entry is None:
            logger.debug("cache_miss", key=key)
            return None
        logger.debug("cache_hit", key=key)
        return entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        effective_ttl = self._default_ttl if ttl is None else ttl
        if effective_ttl <= 0:
            # Nothing to keep; also drop any stale entry under the same key.
            self._cache.pop(key, None)
            return
        self._cache[key] = _Entry(value, float(effective_ttl))
        logger.debug("cache_set", key=key, ttl=effective_ttl)

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)
        logger.debug("cache_delete", key=key)

    async def exists(self, key: str) -> bool:
        return key in self._cache

    def __len__(self) -> int:
        return len(self._cache)
