"""Secondary extractor: schema.org JSON-LD, OpenGraph and HTML heuristics.

Runs without a model, so it is the fallback whenever the primary extractor
times out, errors or finds nothing.  Sources are tried in order of how much
we trust them:

1. ``<script type="application/ld+json">`` blocks with an ``Event`` type
   (including ``@graph`` containers and subtypes such as ``BusinessEvent``)
2. OpenGraph / standard meta tags for title and description
3. ``<time datetime=...>`` elements and the ``<title>`` tag

An event found only through 2/3 counts as a success when it has both a
title and a start date; otherwise the page is reported as "nothing here".
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog
from bs4 import BeautifulSoup

from eventscout.interfaces.extraction_provider import IExtractionProvider
from eventscout.providers.extraction.event_mapping import as_text, build_event

if TYPE_CHECKING:
    from eventscout.interfaces.article_provider import IArticleProvider
    from eventscout.models.event import ExtractedEvent

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER_NAME = "structured-data"


class StructuredDataExtractionProvider(IExtractionProvider):
    """Model-free extractor over the page's machine-readable markup."""

    def __init__(self, article_provider: IArticleProvider) -> None:
        self._articles = article_provider

    async def extract(self, url: str) -> ExtractedEvent | None:
        html = await self._articles.fetch_html(url)
        event = parse_event_html(html, url)
        logger.debug(
            "structured_extraction_complete",
            url=url,
            found=event is not None,
        )
        return event

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_available(self) -> bool:
        return True


# ---------------------------------------------------------------------------
# Parsing (pure; exercised directly by tests)
# ---------------------------------------------------------------------------

def parse_event_html(html: str, url: str) -> ExtractedEvent | None:
    """Extract an event from *html*, or ``None`` when the page has none."""
    soup = BeautifulSoup(html, "html.parser")

    for node in _json_ld_nodes(soup):
        if _is_event(node):
            return build_event(url, _fields_from_json_ld(node), extractor=_PROVIDER_NAME)

    fields = _fields_from_meta(soup)
    if not fields.get("title") or not fields.get("starts_at"):
        return None
    return build_event(url, fields, extractor=_PROVIDER_NAME)


def _json_ld_nodes(soup: BeautifulSoup) -> list[dict]:
    nodes: list[dict] = []
    for script in soup.find_all("script", type="application/ld+json"):
        raw = script.string or script.get_text()
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            continue
        stack = data if isinstance(data, list) else [data]
        while stack:
            node = stack.pop(0)
            if not isinstance(node, dict):
                continue
            nodes.append(node)
            graph = node.get("@graph")
            if isinstance(graph, list):
                stack.extend(graph)
    return nodes


def _is_event(node: dict) -> bool:
    types = node.get("@type")
    if isinstance(types, str):
        types = [types]
    if not isinstance(types, list):
        return False
    return any(isinstance(t, str) and t.endswith("Event") for t in types)


def _fields_from_json_ld(node: dict) -> dict[str, Any]:
    location = node.get("location")
    if isinstance(location, list):
        location = next((entry for entry in location if isinstance(entry, dict)), None)
    venue = city = country = None
    if isinstance(location, dict):
        venue = as_text(location.get("name"))
        address = location.get("address")
        if isinstance(address, dict):
            city = as_text(address.get("addressLocality"))
            country = as_text(address.get("addressCountry"))
        elif isinstance(address, str):
            city = address

    people = []
    for key in ("performer", "performers", "speaker", "speakers"):
        value = node.get(key)
        if isinstance(value, dict):
            value = [value]
        if isinstance(value, list):
            people.extend(value)

    return {
        "title": node.get("name"),
        "description": node.get("description"),
        "starts_at": node.get("startDate"),
        "ends_at": node.get("endDate"),
        "venue": venue,
        "city": city,
        "country": country,
        "speakers": people,
    }


def _meta(soup: BeautifulSoup, *names: str) -> str | None:
    for name in names:
        tag = soup.find("meta", attrs={"property": name}) or soup.find(
            "meta", attrs={"name": name}
        )
        if tag and tag.get("content"):
            return tag["content"]
    return None


def _fields_from_meta(soup: BeautifulSoup) -> dict[str, Any]:
    title = _meta(soup, "og:title", "twitter:title")
    if not title and soup.title and soup.title.string:
        title = soup.title.string

    starts_at = _meta(soup, "event:start_time", "og:event:start_time")
    if not starts_at:
        time_tag = soup.find("time", attrs={"datetime": True})
        starts_at = time_tag["datetime"] if time_tag else None

    return {
        "title": title,
        "description": _meta(soup, "og:description", "description", "twitter:description"),
        "starts_at": starts_at,
        "ends_at": _meta(soup, "event:end_time", "og:event:end_time"),
        "city": _meta(soup, "og:locality", "event:location:locality"),
        "country": _meta(soup, "og:country-name", "event:location:country"),
    }
