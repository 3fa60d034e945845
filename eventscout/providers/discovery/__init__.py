"""Discovery tier adapters (implementations of IDiscoveryProvider).

Tier priority order, fixed by the tier executor:
    1. CuratedDiscoveryProvider       -- hand-picked event calendars
    2. SearchEngineDiscoveryProvider  -- DuckDuckGo web search
    3. CrawlDiscoveryProvider         -- Firecrawl search API
"""

from eventscout.providers.discovery.crawl_provider import CrawlDiscoveryProvider
from eventscout.providers.discovery.curated_provider import CuratedDiscoveryProvider
from eventscout.providers.discovery.search_engine_provider import SearchEngineDiscoveryProvider

__all__ = [
    "CrawlDiscoveryProvider",
    "CuratedDiscoveryProvider",
    "SearchEngineDiscoveryProvider",
]
