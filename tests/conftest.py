"""Shared pytest fixtures for the eventScout test suite.

Most fixtures are *factories*: they return a function so each test can
build exactly the request, candidates, events and fake providers it needs.
Fake providers are ``MagicMock(spec=Interface)`` objects whose async
methods are ``AsyncMock``s, so a typo in a method name fails loudly.
"""

from __future__ import annotations

import asyncio
from datetime import date, datetime, timezone
from typing import Any, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest

from eventscout.interfaces.article_provider import IArticleProvider
from eventscout.interfaces.discovery_provider import IDiscoveryProvider
from eventscout.interfaces.extraction_provider import IExtractionProvider
from eventscout.interfaces.llm_provider import ILLMProvider
from eventscout.interfaces.ranking_provider import IRankingProvider, RankedOutput
from eventscout.models.candidate import CandidateItem
from eventscout.models.event import ExtractedEvent, Speaker
from eventscout.models.search import FeatureFlags, Limits, SearchRequest, Thresholds, Timeouts
from eventscout.pipeline.extraction import event_confidence

WINDOW_FROM = date(2025, 3, 1)
WINDOW_TO = date(2025, 4, 30)


def _at(day: date) -> datetime:
    return datetime(day.year, day.month, day.day, 9, 0, tzinfo=timezone.utc)  # noqa: UP017


# ---------------------------------------------------------------------------
# Requests, candidates, events
# ---------------------------------------------------------------------------


@pytest.fixture
def make_request() -> Callable[..., SearchRequest]:
    """Factory for a DE request over a fixed two-month window with short timeouts."""

    def _make(
        query: str = "legal compliance conference",
        country: str = "DE",
        date_from: date = WINDOW_FROM,
        date_to: date = WINDOW_TO,
        flags: dict[str, bool] | None = None,
        thresholds: dict[str, float] | None = None,
        limits: dict[str, int] | None = None,
        timeouts: dict[str, float] | None = None,
        **extra: Any,
    ) -> SearchRequest:
        timeout_values = {
            "discovery": 1.0,
            "prioritization": 1.0,
            "parsing": 1.0,
            "extraction_stage": 3.0,
            "run": 10.0,
            "retry_backoff": 0.01,
        }
        timeout_values.update(timeouts or {})
        return SearchRequest(
            query=query,
            country=country,
            date_from=date_from,
            date_to=date_to,
            flags=FeatureFlags(**(flags or {})),
            thresholds=Thresholds(**(thresholds or {})),
            limits=Limits(**(limits or {})),
            timeouts=Timeouts(**timeout_values),
            **extra,
        )

    return _make


@pytest.fixture
def make_candidate() -> Callable[..., CandidateItem]:
    def _make(
        url: str = "https://legaltech.de/events/compliance-tag-2025",
        title: str = "Compliance Konferenz 2025",
        snippet: str = "Legal compliance conference in Berlin",
        tier: str = "search",
        **extra: Any,
    ) -> CandidateItem:
        return CandidateItem(url=url, title=title, snippet=snippet, tier=tier, **extra)

    return _make


@pytest.fixture
def make_event() -> Callable[..., ExtractedEvent]:
    """Factory for a fully populated, successful event inside the window."""

    def _make(
        url: str = "https://legaltech.de/events/compliance-tag-2025",
        title: str = "Compliance Tag 2025",
        starts_on: date | None = date(2025, 3, 20),
        country: str | None = "DE",
        city: str | None = "Berlin",
        success: bool = True,
        speakers: list[Speaker] | None = None,
        **extra: Any,
    ) -> ExtractedEvent:
        event = ExtractedEvent(
            url=url,
            title=title,
            description=extra.pop("description", "Annual legal compliance conference"),
            starts_at=_at(starts_on) if starts_on else None,
            venue=extra.pop("venue", "Congress Center"),
            city=city,
            country=country,
            speakers=speakers if speakers is not None else [Speaker(name="Anna Schmidt")],
            success=success,
            extractor=extra.pop("extractor", "fake"),
            **extra,
        )
        return event.model_copy(update={"confidence": event_confidence(event)})

    return _make


# ---------------------------------------------------------------------------
# Fake providers
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_discovery() -> Callable[..., IDiscoveryProvider]:
    """Factory for a discovery tier returning *items*, raising *error* or sleeping *delay*."""

    def _make(
        items: list[CandidateItem] | None = None,
        error: BaseException | None = None,
        delay: float = 0.0,
        available: bool = True,
        name: str = "fake-discovery",
    ) -> IDiscoveryProvider:
        async def _search(query: str, constraints: Any) -> list[CandidateItem]:
            if delay:
                await asyncio.sleep(delay)
            if error is not None:
                raise error
            return list(items or [])

        provider = MagicMock(spec=IDiscoveryProvider)
        provider.search = AsyncMock(side_effect=_search)
        provider.is_available.return_value = available
        provider.get_provider_name.return_value = name
        return provider

    return _make


@pytest.fixture
def fake_extractor() -> Callable[..., IExtractionProvider]:
    """Factory for an extractor answering from ``{url: event | exception}``.

    URLs missing from *answers* return ``None``.  *delay* applies to every call.
    """

    def _make(
        answers: dict[str, ExtractedEvent | BaseException] | None = None,
        delay: float = 0.0,
        available: bool = True,
        name: str = "fake-extractor",
    ) -> IExtractionProvider:
        answers = answers or {}

        async def _extract(url: str) -> ExtractedEvent | None:
            if delay:
                await asyncio.sleep(delay)
            answer = answers.get(url)
            if isinstance(answer, BaseException):
                raise answer
            return answer

        provider = MagicMock(spec=IExtractionProvider)
        provider.extract = AsyncMock(side_effect=_extract)
        provider.is_available.return_value = available
        provider.get_provider_name.return_value = name
        return provider

    return _make


@pytest.fixture
def fake_ranker() -> Callable[..., IRankingProvider]:
    """Factory for a ranking provider answering *raw*, raising *error* or sleeping *delay*."""

    def _make(
        raw: str = "[]",
        error: BaseException | None = None,
        delay: float = 0.0,
        available: bool = True,
        name: str = "fake-ranker",
    ) -> IRankingProvider:
        async def _rank(candidates: list[CandidateItem], context: Any) -> RankedOutput:
            if delay:
                await asyncio.sleep(delay)
            if error is not None:
                raise error
            return RankedOutput(raw=raw, provider=name)

        provider = MagicMock(spec=IRankingProvider)
        provider.rank = AsyncMock(side_effect=_rank)
        provider.is_available.return_value = available
        provider.get_provider_name.return_value = name
        return provider

    return _make


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """An available LLM whose ``complete`` returns an empty JSON object by default."""
    provider = MagicMock(spec=ILLMProvider)
    provider.complete = AsyncMock(return_value="{}")
    provider.get_provider_name.return_value = "mock-llm"
    provider.is_available.return_value = True
    return provider


@pytest.fixture
def mock_article_provider() -> IArticleProvider:
    provider = MagicMock(spec=IArticleProvider)
    provider.extract_content = AsyncMock(return_value=None)
    provider.fetch_html = AsyncMock(return_value="<html></html>")
    provider.get_provider_name.return_value = "mock-articles"
    provider.is_available.return_value = True
    return provider
