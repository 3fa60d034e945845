"""Search-engine discovery tier.

Adapts any :class:`IWebSearchProvider` (DuckDuckGo in production) to the
discovery contract: region and recency hints come from the constraints,
hits become :class:`CandidateItem` objects.
"""

from __future__ import annotations

import structlog

from eventscout.interfaces.discovery_provider import IDiscoveryProvider, SearchConstraints
from eventscout.interfaces.web_search_provider import IWebSearchProvider
from eventscout.models.candidate import CandidateItem
from eventscout.services.query_builder import ddg_region, ddg_timelimit

logger = structlog.get_logger(logger_name=__name__)


class SearchEngineDiscoveryProvider(IDiscoveryProvider):
    """Discovery backed by a general web-search engine.

    Parameters
    ----------
    web_search:
        The engine adapter.
    region_by_country:
        Localise results to the request country (``de-de`` etc.).
    """

    def __init__(self, web_search: IWebSearchProvider, region_by_country: bool = True) -> None:
        self._web_search = web_search
        self._region_by_country = region_by_country

    async def search(self, query: str, constraints: SearchConstraints) -> list[CandidateItem]:
        region = ddg_region(constraints.country) if self._region_by_country else None
        results = await self._web_search.search(
            query,
            num_results=constraints.max_results,
            region=region,
            timelimit=ddg_timelimit(constraints.date_from, constraints.date_to),
        )
        items = [
            CandidateItem(
                url=result.url,
                title=result.title or "",
                snippet=result.snippet or "",
                published=result.date,
            )
            for result in results
            if result.url
        ]
        logger.debug(
            "search_engine_results",
            engine=self._web_search.get_provider_name(),
            region=region,
            count=len(items),
        )
        return items

    def get_provider_name(self) -> str:
        return f"search:{self._web_search.get_provider_name()}"

    def is_available(self) -> bool:
        return self._web_search.is_available()
