"""Unit tests for the page fetcher and the two event extractors."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from eventscout.interfaces.article_provider import ArticleContent
from eventscout.providers.article.web_scraper_provider import WebScraperProvider
from eventscout.providers.extraction.event_mapping import as_text, build_event, speakers_from
from eventscout.providers.extraction.llm_extraction_provider import LLMEventExtractionProvider
from eventscout.providers.extraction.structured_data_provider import (
    StructuredDataExtractionProvider,
    parse_event_html,
)
from eventscout.utils.errors import ExtractionError, LLMError

PAGE_URL = "https://legaltech.de/events/compliance-tag-2025"

JSON_LD_PAGE = """
<html><head>
<script type="application/ld+json">
{"@context": "https://schema.org",
 "@graph": [
   {"@type": "Organization", "name": "Legal Tech e.V."},
   {"@type": "BusinessEvent",
    "name": "Compliance Tag 2025",
    "description": "Jahreskonferenz für Compliance-Verantwortliche",
    "startDate": "2025-03-20T09:00:00+01:00",
    "endDate": "2025-03-20T17:30:00+01:00",
    "location": {"@type": "Place", "name": "Congress Center",
                 "address": {"addressLocality": "Berlin", "addressCountry": "DE"}},
    "performer": [{"@type": "Person", "name": "Dr. Anna Schmidt",
                   "worksFor": {"name": "Acme GmbH"}, "jobTitle": "General Counsel"}]}
 ]}
</script>
</head><body></body></html>
"""

META_PAGE = """
<html><head>
<title>Fallback title</title>
<meta property="og:title" content="Datenschutz Forum">
<meta name="description" content="Forum zu DSGVO">
</head><body><time datetime="2025-04-02">2. April</time></body></html>
"""


# ======================================================================
# Mapping helpers
# ======================================================================


class TestEventMapping:
    def test_as_text_variants(self) -> None:
        assert as_text("  Berlin  ") == "Berlin"
        assert as_text(["", "Wien"]) == "Wien"
        assert as_text({"name": "Acme"}) == "Acme"
        assert as_text(42) is None

    def test_speakers_from_strings_and_dicts(self) -> None:
        speakers = speakers_from(["Anna Schmidt", {"name": "Jonas Weber", "affiliation": "ACME"}, 7])
        assert [s.name for s in speakers] == ["Anna Schmidt", "Jonas Weber"]
        assert speakers[1].organization == "ACME"

    def test_build_event_without_title_is_not_success(self) -> None:
        event = build_event(PAGE_URL, {"title": None, "city": "Berlin"}, extractor="x")
        assert event.success is False
        assert event.city == "Berlin"

    def test_build_event_tolerates_bad_dates(self) -> None:
        event = build_event(PAGE_URL, {"title": "T", "starts_at": "soon"}, extractor="x")
        assert event.starts_at is None
        assert event.success is True


# ======================================================================
# Structured-data extractor
# ======================================================================


class TestParseEventHtml:
    def test_json_ld_graph_event(self) -> None:
        event = parse_event_html(JSON_LD_PAGE, PAGE_URL)

        assert event is not None
        assert event.title == "Compliance Tag 2025"
        assert event.starts_at == datetime(2025, 3, 20, 8, 0, tzinfo=timezone.utc)  # noqa: UP017
        assert (event.venue, event.city, event.country) == ("Congress Center", "Berlin", "DE")
        assert event.speakers[0].organization == "Acme GmbH"
        assert event.speakers[0].role == "General Counsel"
        assert event.extractor == "structured-data"

    def test_meta_tags_with_time_element(self) -> None:
        event = parse_event_html(META_PAGE, PAGE_URL)
        assert event is not None
        assert event.title == "Datenschutz Forum"
        assert event.description == "Forum zu DSGVO"
        assert event.starts_at.date() == date(2025, 4, 2)

    def test_meta_without_date_is_not_an_event(self) -> None:
        html = '<html><head><meta property="og:title" content="About us"></head></html>'
        assert parse_event_html(html, PAGE_URL) is None

    def test_broken_json_ld_is_skipped(self) -> None:
        html = '<script type="application/ld+json">{not json</script>'
        assert parse_event_html(html, PAGE_URL) is None


class TestStructuredDataExtractionProvider:
    @pytest.mark.asyncio
    async def test_extract_fetches_html(self, mock_article_provider) -> None:
        mock_article_provider.fetch_html = AsyncMock(return_value=JSON_LD_PAGE)
        provider = StructuredDataExtractionProvider(mock_article_provider)

        event = await provider.extract(PAGE_URL)

        mock_article_provider.fetch_html.assert_awaited_once_with(PAGE_URL)
        assert event is not None and event.success is True
        assert provider.is_available() is True


# ======================================================================
# LLM extractor
# ======================================================================


def _content(text: str = "Compliance Tag 2025 am 20. März in Berlin") -> ArticleContent:
    return ArticleContent(title="Compliance Tag", text=text, url=PAGE_URL)


class TestLLMEventExtractionProvider:
    @pytest.mark.asyncio
    async def test_extracts_event(self, mock_llm_provider, mock_article_provider) -> None:
        mock_article_provider.extract_content = AsyncMock(return_value=_content())
        mock_llm_provider.complete = AsyncMock(
            return_value=json.dumps({
                "title": "Compliance Tag 2025",
                "starts_at": "2025-03-20",
                "city": "Berlin",
                "country": "Germany",
                "speakers": [{"name": "Anna Schmidt", "organization": "Acme"}],
            })
        )
        provider = LLMEventExtractionProvider(mock_llm_provider, mock_article_provider)

        event = await provider.extract(PAGE_URL)

        assert event is not None
        assert event.success is True
        assert event.country == "DE"
        assert event.extractor == "llm:mock-llm"
        assert event.speakers[0].name == "Anna Schmidt"

    @pytest.mark.asyncio
    async def test_page_text_is_truncated(self, mock_llm_provider, mock_article_provider) -> None:
        mock_article_provider.extract_content = AsyncMock(return_value=_content("x" * 500))
        provider = LLMEventExtractionProvider(
            mock_llm_provider, mock_article_provider, max_page_chars=100
        )

        await provider.extract(PAGE_URL)

        prompt = mock_llm_provider.complete.await_args.kwargs["user_prompt"]
        assert "x" * 100 in prompt
        assert "x" * 101 not in prompt

    @pytest.mark.asyncio
    async def test_fenced_answer_is_accepted(self, mock_llm_provider, mock_article_provider) -> None:
        mock_article_provider.extract_content = AsyncMock(return_value=_content())
        mock_llm_provider.complete = AsyncMock(
            return_value='```json\n{"title": "Compliance Tag", "city": "Berlin",}\n```'
        )
        event = await LLMEventExtractionProvider(mock_llm_provider, mock_article_provider).extract(
            PAGE_URL
        )
        assert event.title == "Compliance Tag"

    @pytest.mark.asyncio
    async def test_no_page_text(self, mock_llm_provider, mock_article_provider) -> None:
        provider = LLMEventExtractionProvider(mock_llm_provider, mock_article_provider)
        assert await provider.extract(PAGE_URL) is None
        mock_llm_provider.complete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_event_on_page(self, mock_llm_provider, mock_article_provider) -> None:
        mock_article_provider.extract_content = AsyncMock(return_value=_content())
        mock_llm_provider.complete = AsyncMock(return_value='{"title": null}')
        event = await LLMEventExtractionProvider(mock_llm_provider, mock_article_provider).extract(
            PAGE_URL
        )
        assert event.success is False

    @pytest.mark.asyncio
    async def test_unparseable_answer(self, mock_llm_provider, mock_article_provider) -> None:
        mock_article_provider.extract_content = AsyncMock(return_value=_content())
        mock_llm_provider.complete = AsyncMock(return_value="I cannot find an event here.")
        with pytest.raises(ExtractionError, match="Unparseable"):
            await LLMEventExtractionProvider(mock_llm_provider, mock_article_provider).extract(
                PAGE_URL
            )

    @pytest.mark.asyncio
    async def test_model_failure_is_wrapped(self, mock_llm_provider, mock_article_provider) -> None:
        mock_article_provider.extract_content = AsyncMock(return_value=_content())
        mock_llm_provider.complete = AsyncMock(side_effect=LLMError("quota", provider_name="mock"))
        with pytest.raises(ExtractionError, match="quota"):
            await LLMEventExtractionProvider(mock_llm_provider, mock_article_provider).extract(
                PAGE_URL
            )


# ======================================================================
# Web scraper
# ======================================================================


class TestWebScraperProvider:
    def test_get_provider_name(self) -> None:
        assert WebScraperProvider(http_client=AsyncMock()).get_provider_name() == "web_scraper"

    @pytest.mark.asyncio
    async def test_extract_content_success(self) -> None:
        mock_response = MagicMock()
        mock_response.text = "<html><body><p>Compliance Tag 2025</p></body></html>"
        mock_response.raise_for_status = MagicMock()
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=mock_response)

        with patch(
            "eventscout.providers.article.web_scraper_provider.trafilatura.extract",
            side_effect=[
                "Compliance Tag 2025 in Berlin am 20. März.",
                '{"title": "Compliance Tag", "date": "2025-01-15"}',
            ],
        ):
            result = await WebScraperProvider(http_client=mock_client).extract_content(PAGE_URL)

        assert result is not None
        assert result.title == "Compliance Tag"
        assert result.date == date(2025, 1, 15)
        assert result.html == mock_response.text

    @pytest.mark.asyncio
    async def test_extract_content_no_text(self) -> None:
        mock_response = MagicMock()
        mock_response.text = "<html></html>"
        mock_response.raise_for_status = MagicMock()
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(return_value=mock_response)

        with patch(
            "eventscout.providers.article.web_scraper_provider.trafilatura.extract",
            return_value=None,
        ):
            result = await WebScraperProvider(http_client=mock_client).extract_content(PAGE_URL)

        assert result is None

    @pytest.mark.asyncio
    async def test_fetch_timeout(self) -> None:
        mock_client = AsyncMock()
        mock_client.get = AsyncMock(side_effect=httpx.TimeoutException("Timed out"))
        with pytest.raises(ExtractionError, match="Timeout"):
            await WebScraperProvider(http_client=mock_client).fetch_html(PAGE_URL)

    @pytest.mark.asyncio
    async def test_fetch_status_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="gone")

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        with pytest.raises(ExtractionError, match="HTTP 404"):
            await WebScraperProvider(http_client=client).fetch_html(PAGE_URL)
