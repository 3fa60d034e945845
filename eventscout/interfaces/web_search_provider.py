"""Abstract base class for general-purpose web-search providers.

The search-engine discovery tier does not talk to a search engine directly;
it goes through this contract so the engine (DuckDuckGo today) can be
swapped without touching discovery or ranking code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date


# frozen=True keeps the value object immutable; a plain dataclass is enough
# here because results are converted into CandidateItem models right away.
@dataclass(frozen=True)
class SearchResult:
    """A single web-search hit.

    Attributes
    ----------
    title:
        Page title as returned by the engine.
    url:
        Result URL (not yet canonicalised).
    snippet:
        Optional text excerpt.
    date:
        Publication or last-modified date when the engine reports one.
    """

    title: str
    url: str
    snippet: str | None = None
    date: date | None = None


# Concrete implementation: DuckDuckGoSearchProvider (eventscout/providers/search/)
class IWebSearchProvider(ABC):
    """Contract for web-search engines used by the search discovery tier."""

    @abstractmethod
    async def search(
        self,
        query: str,
        num_results: int = 10,
        region: str | None = None,
        timelimit: str | None = None,
    ) -> list[SearchResult]:
        """Run *query* and return up to *num_results* hits.

        Parameters
        ----------
        query:
            The search query string.
        num_results:
            Maximum number of results to return.
        region:
            Engine-specific region code (e.g. ``"de-de"``).  Providers that
            cannot localise ignore it.
        timelimit:
            Engine-specific recency filter (``"d"``, ``"w"``, ``"m"``, ``"y"``).

        Raises
        ------
        eventscout.utils.errors.DiscoveryError
            If the engine call fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"duckduckgo"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the engine is configured and usable."""
