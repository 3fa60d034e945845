"""Public interface definitions for all external service providers.

Every external API or service in the eventScout pipeline is reached
exclusively through the abstract base classes in this package.  Concrete
adapters implement them and are wired together in ``eventscout/main.py``;
tests inject ``MagicMock(spec=...)`` fakes instead.

CONCRETE PROVIDER MAP:
    Interface                  →  Concrete implementations (in eventscout/providers/)
    ─────────────────────────────────────────────────────────────────────
    IDiscoveryProvider         →  CuratedDiscoveryProvider,
                                  SearchEngineDiscoveryProvider,
                                  CrawlDiscoveryProvider
    IWebSearchProvider         →  DuckDuckGoSearchProvider
    IRankingProvider           →  LLMRankingProvider
    IExtractionProvider        →  LLMEventExtractionProvider,
                                  StructuredDataExtractionProvider
    IArticleProvider           →  WebScraperProvider
    ILLMProvider               →  AnthropicLLMProvider, OpenAILLMProvider
    ICacheProvider             →  MemoryCacheProvider
"""

from eventscout.interfaces.article_provider import ArticleContent, IArticleProvider
from eventscout.interfaces.cache_provider import ICacheProvider
from eventscout.interfaces.discovery_provider import IDiscoveryProvider, SearchConstraints
from eventscout.interfaces.extraction_provider import IExtractionProvider
from eventscout.interfaces.llm_provider import ILLMProvider
from eventscout.interfaces.ranking_provider import IRankingProvider, RankedOutput, RankingContext
from eventscout.interfaces.web_search_provider import IWebSearchProvider, SearchResult

__all__ = [
    "ArticleContent",
    "IArticleProvider",
    "ICacheProvider",
    "IDiscoveryProvider",
    "IExtractionProvider",
    "ILLMProvider",
    "IRankingProvider",
    "IWebSearchProvider",
    "RankedOutput",
    "RankingContext",
    "SearchConstraints",
    "SearchResult",
]
