"""DuckDuckGo web-search provider implementing IWebSearchProvider.

Uses the duckduckgo_search library for free, keyless web searches.  The
library is synchronous, so every call runs in ``asyncio.to_thread`` and the
event loop stays free for the other discovery tiers.

Unlike a best-effort research lookup, a discovery tier must *report*
failure: rate limits and engine errors are raised as
:class:`RateLimitError` / :class:`DiscoveryError` so the tier executor can
record them in the trace instead of mistaking them for "no results".
"""

from __future__ import annotations

import asyncio

import structlog
from duckduckgo_search import DDGS
from duckduckgo_search.exceptions import DuckDuckGoSearchException, RatelimitException

from eventscout.interfaces.web_search_provider import IWebSearchProvider, SearchResult
from eventscout.utils.errors import DiscoveryError, RateLimitError
from eventscout.utils.text_normalizer import parse_date

logger = structlog.get_logger(logger_name=__name__)

_PROVIDER_NAME = "duckduckgo"


class DuckDuckGoSearchProvider(IWebSearchProvider):
    """DuckDuckGo web-search provider.

    Parameters
    ----------
    default_region:
        Region used when the caller passes none.  ``"wt-wt"`` means
        "no region".
    """

    def __init__(self, default_region: str = "wt-wt") -> None:
        self._default_region = default_region
        logger.info("duckduckgo_provider_initialized", region=default_region)

    async def search(
        self,
        query: str,
        num_results: int = 10,
        region: str | None = None,
        timelimit: str | None = None,
    ) -> list[SearchResult]:
        """Run a DuckDuckGo text search and map hits to :class:`SearchResult`."""
        effective_region = region or self._default_region
        try:
            raw_results = await asyncio.to_thread(
                self._sync_search, query, num_results, effective_region, timelimit
            )
        except RatelimitException as exc:
            logger.warning("duckduckgo_rate_limited", query=query, error=str(exc))
            raise RateLimitError(
                message=f"DuckDuckGo rate limit: {exc}", provider_name=_PROVIDER_NAME
            ) from exc
        except DuckDuckGoSearchException as exc:
            logger.warning("duckduckgo_search_failed", query=query, error=str(exc))
            raise DiscoveryError(
                message=f"DuckDuckGo search failed: {exc}", provider_name=_PROVIDER_NAME
            ) from exc

        results: list[SearchResult] = []
        for item in raw_results or []:
            url = item.get("href", item.get("url", ""))
            if not url:
                continue
            results.append(
                SearchResult(
                    title=item.get("title", ""),
                    url=url,
                    snippet=item.get("body"),
                    date=parse_date(item.get("date")),
                )
            )

        logger.debug(
            "duckduckgo_search_complete",
            query=query,
            region=effective_region,
            result_count=len(results),
        )
        return results

    @staticmethod
    def _sync_search(
        query: str, max_results: int, region: str, timelimit: str | None
    ) -> list[dict]:
        """Run the synchronous DDGS search (called via to_thread)."""
        with DDGS() as ddgs:
            return list(
                ddgs.text(query, region=region, timelimit=timelimit, max_results=max_results)
            )

    def get_provider_name(self) -> str:
        return _PROVIDER_NAME

    def is_available(self) -> bool:
        """DuckDuckGo needs no API key."""
        return True
