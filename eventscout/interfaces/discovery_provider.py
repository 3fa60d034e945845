"""Abstract base class for discovery tiers.

A *discovery provider* is one source of candidate event pages: a web
search engine, a crawl API, or a hand-curated list of event sites.  The
tier executor fans out to every provider concurrently and merges what they
return, so each provider only has to answer one question: "given this
query and these constraints, which pages might be events?"
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

from eventscout.models.candidate import CandidateItem


@dataclass(frozen=True)
class SearchConstraints:
    """Request-derived hints passed to every discovery provider.

    Attributes
    ----------
    country:
        ISO-3166 alpha-2 code of the user's country.
    date_from, date_to:
        The requested event window.
    locale:
        ``"de"`` or ``"en"``; providers may localise their queries.
    max_results:
        Upper bound on the number of candidates a single provider returns.
    prefer_tld:
        When ``True`` the search tier biases the query to the country TLD.
    """

    country: str
    date_from: date
    date_to: date
    locale: str = "en"
    max_results: int = 20
    prefer_tld: bool = False


# Concrete implementations (eventscout/providers/discovery/):
#   CuratedDiscoveryProvider, SearchEngineDiscoveryProvider, CrawlDiscoveryProvider
class IDiscoveryProvider(ABC):
    """Contract for one discovery tier."""

    @abstractmethod
    async def search(self, query: str, constraints: SearchConstraints) -> list[CandidateItem]:
        """Return candidate items for *query*.

        Implementations should not stamp ``tier`` on the items; the tier
        executor does that so one provider can back several tiers.

        Raises
        ------
        eventscout.utils.errors.DiscoveryError
            If the underlying source fails.  The tier executor records the
            failure and carries on with the other tiers.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"curated"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (keys present etc.)."""
