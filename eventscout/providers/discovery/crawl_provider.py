"""Crawl discovery tier backed by the Firecrawl search API.

Firecrawl runs a web search on its side and returns result URLs together
with titles and descriptions.  Requests go over the shared
``httpx.AsyncClient``; the API key is sent as a bearer token.  Without a key
the provider reports itself unavailable and the tier executor skips it.

Response shapes differ between API versions: v2 nests hits under
``data.web``, v1 returns ``data`` as a flat list.  Both are accepted.
"""

from __future__ import annotations

import httpx
import structlog

from eventscout.config.domain_knowledge import COUNTRY_NAMES
from eventscout.interfaces.discovery_provider import IDiscoveryProvider, SearchConstraints
from eventscout.models.candidate import CandidateItem
from eventscout.services.query_builder import firecrawl_tbs
from eventscout.utils.errors import DiscoveryError, ProviderUnavailableError, RateLimitError
from eventscout.utils.text_normalizer import parse_date

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER_NAME = "firecrawl"
_SEARCH_PATH = "/v2/search"
# Firecrawl caps a single search at 20 hits on the standard plan.
_MAX_LIMIT = 20


class CrawlDiscoveryProvider(IDiscoveryProvider):
    """Firecrawl search adapter.

    Parameters
    ----------
    http_client:
        Shared async client; the provider never closes it.
    api_key:
        Firecrawl API key.  Empty means "not configured".
    base_url:
        API root, overridable for self-hosted Firecrawl.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        api_key: str,
        base_url: str = "https://api.firecrawl.dev",
    ) -> None:
        self._client = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")

    async def search(self, query: str, constraints: SearchConstraints) -> list[CandidateItem]:
        if not self.is_available():
            raise ProviderUnavailableError(
                message="FIRECRAWL_API_KEY is not configured",
                provider_name=_PROVIDER_NAME,
            )

        payload = {
            "query": query,
            "limit": min(constraints.max_results, _MAX_LIMIT),
            "country": constraints.country,
            "location": COUNTRY_NAMES.get(constraints.country, constraints.country),
            "tbs": firecrawl_tbs(constraints.date_from, constraints.date_to),
            "ignoreInvalidURLs": True,
        }
        try:
            response = await self._client.post(
                f"{self._base_url}{_SEARCH_PATH}",
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 429:
                raise RateLimitError(
                    message="Firecrawl rate limit exceeded", provider_name=_PROVIDER_NAME
                ) from exc
            raise DiscoveryError(
                message=f"Firecrawl HTTP {exc.response.status_code}",
                provider_name=_PROVIDER_NAME,
                retryable=exc.response.status_code >= 500,
            ) from exc
        except httpx.HTTPError as exc:
            raise DiscoveryError(
                message=f"Firecrawl request failed: {exc}",
                provider_name=_PROVIDER_NAME,
                retryable=isinstance(exc, httpx.TransportError),
            ) from exc
        except ValueError as exc:
            raise DiscoveryError(
                message="Firecrawl returned a non-JSON body", provider_name=_PROVIDER_NAME
            ) from exc

        if not body.get("success", True):
            raise DiscoveryError(
                message=f"Firecrawl search unsuccessful: {body.get('error', 'unknown error')}",
                provider_name=_PROVIDER_NAME,
            )

        items = [_to_candidate(hit) for hit in _hits(body)]
        items = [item for item in items if item is not None]
        logger.debug("firecrawl_results", count=len(items))
        return items

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_available(self) -> bool:
        return bool(self._api_key)


def _hits(body: dict) -> list[dict]:
    data = body.get("data")
    if isinstance(data, dict):
        data = data.get("web")
    return [hit for hit in data or [] if isinstance(hit, dict)]


def _to_candidate(hit: dict) -> CandidateItem | None:
    url = hit.get("url")
    if not url:
        return None
    metadata = hit.get("metadata") or {}
    return CandidateItem(
        url=url,
        title=hit.get("title") or metadata.get("title") or "",
        snippet=hit.get("description") or metadata.get("description") or "",
        published=parse_date(metadata.get("publishedTime") or metadata.get("modifiedTime")),
    )
