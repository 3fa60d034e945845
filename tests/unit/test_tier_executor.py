"""Unit tests for the concurrent discovery tier executor."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from eventscout.interfaces.discovery_provider import IDiscoveryProvider
from eventscout.models.result import ErrorKind
from eventscout.pipeline.tier_executor import DiscoveryTier, TierExecutor
from eventscout.utils.errors import DiscoveryError, RateLimitError


def _urls(result) -> list[str]:
    return [item.url for item in result.candidates]


class TestMergeOrder:
    @pytest.mark.asyncio
    async def test_merges_in_priority_order_not_completion_order(
        self, make_request, make_candidate, fake_discovery
    ) -> None:
        slow_curated = fake_discovery(
            items=[make_candidate(url="https://curated.de/1")], delay=0.05, name="curated"
        )
        fast_search = fake_discovery(items=[make_candidate(url="https://search.de/1")], name="ddg")
        executor = TierExecutor([
            DiscoveryTier("curated", slow_curated, 1.0, shape_query=False),
            DiscoveryTier("search", fast_search, 0.8),
        ])

        result = await executor.execute_all_tiers(make_request())

        assert _urls(result) == ["https://curated.de/1", "https://search.de/1"]
        assert result.tiers_executed == ["curated", "search"]
        assert result.exhausted is False

    @pytest.mark.asyncio
    async def test_stamps_tier_and_source_query(
        self, make_request, make_candidate, fake_discovery
    ) -> None:
        provider = fake_discovery(items=[make_candidate(tier="")])
        executor = TierExecutor([DiscoveryTier("search", provider)])

        result = await executor.execute_all_tiers(make_request())

        item = result.candidates[0]
        assert item.tier == "search"
        assert item.source_query == result.reports[0].query
        assert "2025" in item.source_query

    @pytest.mark.asyncio
    async def test_unshaped_tier_sends_raw_query(
        self, make_request, make_candidate, fake_discovery
    ) -> None:
        provider = fake_discovery(items=[make_candidate()])
        executor = TierExecutor([DiscoveryTier("curated", provider, shape_query=False)])

        await executor.execute_all_tiers(make_request(query="legal tech"))

        assert provider.search.await_args.args[0] == "legal tech"


class TestTierIsolation:
    @pytest.mark.asyncio
    async def test_failing_tier_does_not_abort_siblings(
        self, make_request, make_candidate, fake_discovery
    ) -> None:
        broken = fake_discovery(error=RuntimeError("upstream 500"))
        healthy = fake_discovery(items=[make_candidate(url="https://ok.de/1")])
        executor = TierExecutor([
            DiscoveryTier("search", broken),
            DiscoveryTier("crawl", healthy),
        ])

        result = await executor.execute_all_tiers(make_request())

        assert _urls(result) == ["https://ok.de/1"]
        assert [e.kind for e in result.errors] == [ErrorKind.TIER_ERROR]
        assert result.errors[0].source == "search"
        assert result.issues == ["Tier 'search' failed (TierError): upstream 500"]
        failed_report = next(r for r in result.reports if r.tier == "search")
        assert failed_report.error.startswith("TierError")

    @pytest.mark.asyncio
    async def test_slow_tier_times_out(self, make_request, make_candidate, fake_discovery) -> None:
        slow = fake_discovery(items=[make_candidate(url="https://slow.de/1")], delay=1.0)
        fast = fake_discovery(items=[make_candidate(url="https://fast.de/1")])
        executor = TierExecutor(
            [DiscoveryTier("search", slow), DiscoveryTier("crawl", fast)],
            stage_grace_seconds=0.5,
        )

        result = await executor.execute_all_tiers(make_request(timeouts={"discovery": 0.05}))

        assert _urls(result) == ["https://fast.de/1"]
        assert result.errors[0].kind is ErrorKind.TIER_TIMEOUT
        assert result.errors[0].source == "search"

    @pytest.mark.asyncio
    async def test_stage_deadline_from_remaining_run_time(
        self, make_request, make_candidate, fake_discovery
    ) -> None:
        slow = fake_discovery(items=[make_candidate()], delay=1.0)
        executor = TierExecutor([DiscoveryTier("search", slow)])

        result = await executor.execute_all_tiers(make_request(), remaining_seconds=0.05)

        assert result.candidates == []
        assert result.exhausted is True
        assert result.errors[0].kind is ErrorKind.TIER_TIMEOUT
        assert "stage deadline" in result.errors[0].message

    @pytest.mark.asyncio
    async def test_all_tiers_failing_is_exhausted(self, make_request, fake_discovery) -> None:
        executor = TierExecutor([
            DiscoveryTier("search", fake_discovery(error=ValueError("bad"))),
            DiscoveryTier("crawl", fake_discovery(error=ConnectionError())),
        ])

        result = await executor.execute_all_tiers(make_request())

        assert result.exhausted is True
        assert len(result.errors) == 2
        assert "ConnectionError" in result.errors[1].message


class TestTierSelection:
    @pytest.mark.asyncio
    async def test_curated_tier_skipped_when_disabled(
        self, make_request, make_candidate, fake_discovery
    ) -> None:
        curated = fake_discovery(items=[make_candidate(url="https://curated.de/1")])
        search = fake_discovery(items=[make_candidate(url="https://search.de/1")])
        executor = TierExecutor([
            DiscoveryTier("curated", curated, shape_query=False),
            DiscoveryTier("search", search),
        ])

        result = await executor.execute_all_tiers(
            make_request(flags={"enable_curated_tier": False})
        )

        assert _urls(result) == ["https://search.de/1"]
        curated.search.assert_not_awaited()
        assert all(report.tier != "curated" for report in result.reports)

    @pytest.mark.asyncio
    async def test_unavailable_tier_reported_but_not_an_error(
        self, make_request, make_candidate, fake_discovery
    ) -> None:
        no_key = fake_discovery(available=False)
        search = fake_discovery(items=[make_candidate()])
        executor = TierExecutor([DiscoveryTier("crawl", no_key), DiscoveryTier("search", search)])

        result = await executor.execute_all_tiers(make_request())

        assert result.errors == []
        assert result.issues == []
        crawl_report = next(r for r in result.reports if r.tier == "crawl")
        assert crawl_report.error == "unavailable"
        no_key.search.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_tiers(self, make_request) -> None:
        result = await TierExecutor([]).execute_all_tiers(make_request())
        assert result.exhausted is True
        assert result.reports == []


class TestLimits:
    @pytest.mark.asyncio
    async def test_truncates_to_max_candidates_keeping_priority(
        self, make_request, make_candidate, fake_discovery
    ) -> None:
        first = fake_discovery(items=[make_candidate(url=f"https://a.de/{i}") for i in range(3)])
        second = fake_discovery(items=[make_candidate(url=f"https://b.de/{i}") for i in range(3)])
        executor = TierExecutor([DiscoveryTier("curated", first), DiscoveryTier("search", second)])

        result = await executor.execute_all_tiers(make_request(limits={"max_candidates": 4}))

        assert _urls(result) == [
            "https://a.de/0", "https://a.de/1", "https://a.de/2", "https://b.de/0",
        ]

    @pytest.mark.asyncio
    async def test_results_per_tier_cap(self, make_request, make_candidate, fake_discovery) -> None:
        provider = fake_discovery(items=[make_candidate(url=f"https://a.de/{i}") for i in range(5)])
        executor = TierExecutor([DiscoveryTier("search", provider)], results_per_tier=2)

        result = await executor.execute_all_tiers(make_request())

        assert len(result.candidates) == 2
        assert result.reports[0].results == 2

    def test_tier_weights(self, fake_discovery) -> None:
        executor = TierExecutor([
            DiscoveryTier("curated", fake_discovery(), 1.0),
            DiscoveryTier("search", fake_discovery(), 0.8),
        ])
        assert executor.tier_weights() == {"curated": 1.0, "search": 0.8}


class TestTierRetries:
    @pytest.mark.asyncio
    async def test_rate_limited_tier_is_retried(self, make_request, make_candidate) -> None:
        flaky = MagicMock(spec=IDiscoveryProvider)
        flaky.search = AsyncMock(
            side_effect=[
                RateLimitError("Firecrawl rate limit exceeded", provider_name="firecrawl"),
                [make_candidate(url="https://crawl.de/1")],
            ]
        )
        flaky.is_available.return_value = True
        flaky.get_provider_name.return_value = "firecrawl"
        executor = TierExecutor([DiscoveryTier("crawl", flaky)])

        result = await executor.execute_all_tiers(make_request())

        assert _urls(result) == ["https://crawl.de/1"]
        assert result.errors == []
        assert result.reports[0].attempts == 2

    @pytest.mark.asyncio
    async def test_retries_stop_at_max_attempts(self, make_request, fake_discovery) -> None:
        throttled = fake_discovery(error=RateLimitError("slow down", provider_name="ddg"))
        executor = TierExecutor([DiscoveryTier("search", throttled)])

        result = await executor.execute_all_tiers(make_request(limits={"max_attempts": 3}))

        assert throttled.search.await_count == 3
        assert [e.kind for e in result.errors] == [ErrorKind.TIER_ERROR]
        assert result.reports[0].attempts == 3

    @pytest.mark.asyncio
    async def test_non_retryable_error_fails_fast(self, make_request, fake_discovery) -> None:
        broken = fake_discovery(error=DiscoveryError("Firecrawl HTTP 401", provider_name="fc"))
        executor = TierExecutor([DiscoveryTier("crawl", broken)])

        result = await executor.execute_all_tiers(make_request())

        assert broken.search.await_count == 1
        assert result.reports[0].attempts == 1

    @pytest.mark.asyncio
    async def test_unavailable_tier_records_no_attempts(self, make_request, fake_discovery) -> None:
        executor = TierExecutor([DiscoveryTier("crawl", fake_discovery(available=False))])
        result = await executor.execute_all_tiers(make_request())
        assert result.reports[0].attempts == 0
