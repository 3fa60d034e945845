"""Unit tests for MemoryCacheProvider and the cached search service."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from eventscout.models.result import (
    DateRange,
    FallbackTrace,
    OrchestratorResult,
    SearchTelemetry,
    SearchTrace,
)
from eventscout.pipeline.orchestrator import SearchOrchestrator
from eventscout.providers.cache.memory_cache import MemoryCacheProvider
from eventscout.services.search_cache import CachedSearchService


def _result(request, search_id: str = "search_1") -> OrchestratorResult:
    window = DateRange(date_from=request.date_from, date_to=request.date_to)
    return OrchestratorResult(
        trace=SearchTrace(marker=search_id, date_range=window, user_country=request.country),
        telemetry=SearchTelemetry(
            search_id=search_id,
            query=request.query,
            country=request.country,
            date_range=window,
            flags=request.flags,
        ),
    )


def _orchestrator(result: OrchestratorResult) -> SearchOrchestrator:
    orchestrator = MagicMock(spec=SearchOrchestrator)
    orchestrator.run = AsyncMock(return_value=result)
    return orchestrator


# ======================================================================
# MemoryCacheProvider
# ======================================================================


class TestMemoryCacheProvider:
    @pytest.fixture()
    def cache(self) -> MemoryCacheProvider:
        return MemoryCacheProvider(max_size=2, ttl=60)

    @pytest.mark.asyncio
    async def test_get_missing_key_returns_none(self, cache: MemoryCacheProvider) -> None:
        assert await cache.get("nonexistent") is None

    @pytest.mark.asyncio
    async def test_set_and_get(self, cache: MemoryCacheProvider) -> None:
        await cache.set("key1", "value1")
        assert await cache.get("key1") == "value1"
        assert await cache.exists("key1") is True

    @pytest.mark.asyncio
    async def test_delete(self, cache: MemoryCacheProvider) -> None:
        await cache.set("key1", "value1")
        await cache.delete("key1")
        assert await cache.get("key1") is None
        await cache.delete("key1")  # no-op

    @pytest.mark.asyncio
    async def test_zero_ttl_does_not_store(self, cache: MemoryCacheProvider) -> None:
        await cache.set("key1", "old")
        await cache.set("key1", "new", ttl=0)
        assert await cache.exists("key1") is False

    @pytest.mark.asyncio
    async def test_evicts_beyond_max_size(self, cache: MemoryCacheProvider) -> None:
        await cache.set("a", 1)
        await cache.set("b", 2)
        await cache.set("c", 3)
        assert len(cache) == 2
        assert await cache.exists("c") is True


# ======================================================================
# CachedSearchService
# ======================================================================


class TestCachedSearchService:
    @pytest.mark.asyncio
    async def test_miss_runs_pipeline_and_stores(self, make_request) -> None:
        request = make_request()
        cache = MemoryCacheProvider()
        orchestrator = _orchestrator(_result(request))
        service = CachedSearchService(orchestrator, cache, ttl=60)

        result = await service.search(request)

        orchestrator.run.assert_awaited_once_with(request)
        assert await cache.get("search:" + request.fingerprint()) is result

    @pytest.mark.asyncio
    async def test_hit_returns_stored_result_unchanged(self, make_request) -> None:
        request = make_request()
        orchestrator = _orchestrator(_result(request))
        service = CachedSearchService(orchestrator, MemoryCacheProvider(), ttl=60)

        first = await service.search(request)
        second = await service.search(make_request())

        assert second is first
        assert orchestrator.run.await_count == 1

    @pytest.mark.asyncio
    async def test_different_flags_miss(self, make_request) -> None:
        orchestrator = _orchestrator(_result(make_request()))
        service = CachedSearchService(orchestrator, MemoryCacheProvider(), ttl=60)

        await service.search(make_request())
        await service.search(make_request(flags={"bypass_ai_ranking": True}))

        assert orchestrator.run.await_count == 2

    @pytest.mark.asyncio
    async def test_disabled_without_cache_or_ttl(self, make_request) -> None:
        orchestrator = _orchestrator(_result(make_request()))
        for service in (
            CachedSearchService(orchestrator, None),
            CachedSearchService(orchestrator, MemoryCacheProvider(), ttl=0),
        ):
            assert service.enabled is False
            await service.search(make_request())
            await service.search(make_request())
        assert orchestrator.run.await_count == 4

    @pytest.mark.asyncio
    async def test_foreign_cache_value_is_ignored(self, make_request) -> None:
        request = make_request()
        cache = MemoryCacheProvider()
        await cache.set("search:" + request.fingerprint(), {"not": "a result"})
        orchestrator = _orchestrator(_result(request))

        await CachedSearchService(orchestrator, cache, ttl=60).search(request)

        orchestrator.run.assert_awaited_once()


def _demo_result(request) -> OrchestratorResult:
    result = _result(request)
    fallbacks = FallbackTrace(used=True, reason="no items", source="demo", items_added=3)
    trace = result.trace.model_copy(update={"fallbacks": fallbacks})
    return result.model_copy(update={"trace": trace, "fallback_used": True})


class TestDemoFallbackCaching:
    @pytest.mark.asyncio
    async def test_demo_results_use_the_short_ttl(self, make_request) -> None:
        request = make_request()
        cache = MagicMock(spec=MemoryCacheProvider)
        cache.get = AsyncMock(return_value=None)
        cache.set = AsyncMock()
        service = CachedSearchService(
            _orchestrator(_demo_result(request)), cache, ttl=900, fallback_ttl=30
        )

        await service.search(request)

        assert cache.set.await_args.kwargs["ttl"] == 30

    @pytest.mark.asyncio
    async def test_zero_fallback_ttl_skips_the_store(self, make_request) -> None:
        request = make_request()
        cache = MemoryCacheProvider()
        orchestrator = _orchestrator(_demo_result(request))
        service = CachedSearchService(orchestrator, cache, ttl=900, fallback_ttl=0)

        await service.search(request)
        await service.search(request)

        assert await cache.exists("search:" + request.fingerprint()) is False
        assert orchestrator.run.await_count == 2

    @pytest.mark.asyncio
    async def test_regular_results_keep_the_full_ttl(self, make_request) -> None:
        request = make_request()
        cache = MagicMock(spec=MemoryCacheProvider)
        cache.get = AsyncMock(return_value=None)
        cache.set = AsyncMock()

        await CachedSearchService(
            _orchestrator(_result(request)), cache, ttl=900, fallback_ttl=30
        ).search(request)

        assert cache.set.await_args.kwargs["ttl"] == 900

    @pytest.mark.asyncio
    async def test_different_relaxation_order_misses(self, make_request) -> None:
        orchestrator = _orchestrator(_result(make_request()))
        service = CachedSearchService(orchestrator, MemoryCacheProvider(), ttl=60)

        await service.search(make_request(relaxation_order=("quality", "date-window", "country")))
        await service.search(make_request(relaxation_order=("country",)))

        assert orchestrator.run.await_count == 2
