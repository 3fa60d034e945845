"""Result cache around the search orchestrator.

The orchestrator itself keeps no state between runs.  This wrapper is the
one place where results outlive a request: finished envelopes are stored
under :meth:`SearchRequest.fingerprint` and a hit skips the pipeline
entirely, returning the stored :class:`OrchestratorResult` unchanged.

Runs rescued by the demo dataset are kept for ``fallback_ttl`` only, so a
short outage of every tier does not pin sample events in the cache.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from eventscout.models.event import EventOrigin
from eventscout.models.result import OrchestratorResult

if TYPE_CHECKING:
    from eventscout.interfaces.cache_provider import ICacheProvider
    from eventscout.models.search import SearchRequest
    from eventscout.pipeline.orchestrator import SearchOrchestrator

logger = structlog.get_logger(logger_name=__name__)

_KEY_PREFIX = "search:"


class CachedSearchService:
    """Run searches through an optional fingerprint-keyed cache.

    Parameters
    ----------
    orchestrator:
        The pipeline to run on a cache miss.
    cache:
        Any :class:`ICacheProvider`; ``None`` disables caching.
    ttl:
        Seconds to keep a result.  ``ttl <= 0`` disables caching.
    fallback_ttl:
        Seconds to keep a result made of demo data; ``0`` skips the store.
    """

    def __init__(
        self,
        orchestrator: SearchOrchestrator,
        cache: ICacheProvider | None = None,
        ttl: int = 900,
        fallback_ttl: int = 60,
    ) -> None:
        self._orchestrator = orchestrator
        self._cache = cache
        self._ttl = ttl
        self._fallback_ttl = min(fallback_ttl, ttl)

    @property
    def enabled(self) -> bool:
        return self._cache is not None and self._ttl > 0

    async def search(self, request: SearchRequest) -> OrchestratorResult:
        if not self.enabled:
            return await self._orchestrator.run(request)

        key = _KEY_PREFIX + request.fingerprint()
        cached = await self._cache.get(key)
        if isinstance(cached, OrchestratorResult):
            logger.info("search_cache_hit", key=key, search_id=cached.telemetry.search_id)
            return cached

        result = await self._orchestrator.run(request)
        ttl = self._ttl_for(result)
        if ttl > 0:
            await self._cache.set(key, result, ttl=ttl)
            logger.debug("search_cache_store", key=key, items=len(result.items), ttl=ttl)
        return result

    def _ttl_for(self, result: OrchestratorResult) -> int:
        if result.trace.fallbacks.source == EventOrigin.DEMO.value:
            return self._fallback_ttl
        return self._ttl
