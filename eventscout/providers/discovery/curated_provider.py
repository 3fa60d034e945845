"""Curated discovery tier: hand-picked event calendars.

The highest-priority tier.  It does no network I/O: it turns the curated
source list (``config/domain_knowledge.CURATED_SOURCES``) into candidates
for the request country, plus international sources that have no country.
The pages are event calendars, so the ranker and extractors decide which
of them actually match the query.
"""

from __future__ import annotations

import structlog

from eventscout.config.domain_knowledge import CURATED_SOURCES
from eventscout.interfaces.discovery_provider import IDiscoveryProvider, SearchConstraints
from eventscout.models.candidate import CandidateItem

logger = structlog.get_logger(logger_name=__name__)


class CuratedDiscoveryProvider(IDiscoveryProvider):
    """Static list of trusted event sources.

    Parameters
    ----------
    sources:
        ``{domain: {"country": ISO2 | None, "title": str, "path": str}}``.
        Defaults to the built-in list.
    """

    def __init__(self, sources: dict[str, dict[str, object]] | None = None) -> None:
        self._sources = dict(CURATED_SOURCES if sources is None else sources)

    async def search(self, query: str, constraints: SearchConstraints) -> list[CandidateItem]:
        items: list[CandidateItem] = []
        for domain, meta in self._sources.items():
            source_country = meta.get("country")
            if source_country and source_country != constraints.country:
                continue
            path = str(meta.get("path") or "/")
            title = str(meta.get("title") or domain)
            items.append(
                CandidateItem(
                    url=f"https://{domain}{path}",
                    title=title,
                    snippet=f"{title}: curated event calendar for '{query}'",
                )
            )
            if len(items) >= constraints.max_results:
                break

        logger.debug(
            "curated_sources_matched",
            country=constraints.country,
            matched=len(items),
        )
        return items

    def get_provider_name(self) -> str:
        return "curated"

    def is_available(self) -> bool:
        return bool(self._sources)
