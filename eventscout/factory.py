"""Builders that wire real providers into a :class:`SearchOrchestrator`.

Shared by the web app (``eventscout/main.py``) and the CLI so both run the
same pipeline.  Nothing here has import-time side effects; logging must be
configured by the caller.
"""

from __future__ import annotations

import httpx
import structlog

from eventscout.config.loader import load_config, tier_weights
from eventscout.config.settings import Settings
from eventscout.interfaces.discovery_provider import IDiscoveryProvider
from eventscout.interfaces.llm_provider import ILLMProvider
from eventscout.pipeline.extraction import ExtractionEngine
from eventscout.pipeline.fallback import FallbackDataset
from eventscout.pipeline.orchestrator import SearchOrchestrator
from eventscout.pipeline.prioritizer import (
    HeuristicRankingStrategy,
    ModelRankingStrategy,
    PrioritizationEngine,
)
from eventscout.pipeline.tier_executor import CURATED_TIER, DiscoveryTier, TierExecutor
from eventscout.providers.article.web_scraper_provider import WebScraperProvider
from eventscout.providers.discovery.crawl_provider import CrawlDiscoveryProvider
from eventscout.providers.discovery.curated_provider import CuratedDiscoveryProvider
from eventscout.providers.discovery.search_engine_provider import SearchEngineDiscoveryProvider
from eventscout.providers.extraction.llm_extraction_provider import LLMEventExtractionProvider
from eventscout.providers.extraction.structured_data_provider import (
    StructuredDataExtractionProvider,
)
from eventscout.providers.llm.anthropic_provider import AnthropicLLMProvider
from eventscout.providers.llm.openai_provider import OpenAILLMProvider
from eventscout.providers.ranking.llm_ranking_provider import LLMRankingProvider
from eventscout.providers.search.duckduckgo_provider import DuckDuckGoSearchProvider

_logger: structlog.BoundLogger = structlog.get_logger(logger_name=__name__)

# Tier order when config.yaml does not list one.
_DEFAULT_TIER_ORDER = ("curated", "search", "crawl")


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def build_llm_provider(app_settings: Settings) -> ILLMProvider | None:
    """Select the first configured LLM provider.

    Priority order: Anthropic -> OpenAI (or an OpenAI-compatible endpoint).
    Returns ``None`` when no key is set; ranking then falls back to the
    heuristic and extraction to structured data.
    """
    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    return None


def _build_discovery_providers(
    app_settings: Settings, http_client: httpx.AsyncClient
) -> dict[str, IDiscoveryProvider]:
    return {
        "curated": CuratedDiscoveryProvider(),
        "search": SearchEngineDiscoveryProvider(
            DuckDuckGoSearchProvider(),
            region_by_country=app_settings.search_region_by_country,
        ),
        "crawl": CrawlDiscoveryProvider(
            http_client,
            api_key=app_settings.firecrawl_api_key,
            base_url=app_settings.firecrawl_base_url,
        ),
    }


def _build_tiers(
    providers: dict[str, IDiscoveryProvider], app_config: dict
) -> list[DiscoveryTier]:
    weights = tier_weights(app_config)
    order = list(weights) or list(_DEFAULT_TIER_ORDER)
    tiers: list[DiscoveryTier] = []
    for name in order:
        provider = providers.get(name)
        if provider is None:
            _logger.warning("unknown_discovery_tier", tier=name)
            continue
        tiers.append(
            DiscoveryTier(
                name=name,
                provider=provider,
                weight=weights.get(name, 1.0),
                # Curated sources are site lists; the raw query is enough.
                shape_query=name != CURATED_TIER,
            )
        )
    return tiers


# ---------------------------------------------------------------------------
# Orchestrator factory
# ---------------------------------------------------------------------------


def build_orchestrator(
    app_settings: Settings,
    http_client: httpx.AsyncClient,
    app_config: dict | None = None,
    llm: ILLMProvider | None = None,
) -> SearchOrchestrator:
    """Build a :class:`SearchOrchestrator` wired to the real providers.

    Parameters
    ----------
    app_settings:
        Source of API keys and discovery switches.
    http_client:
        Shared client for scraping and the crawl tier; the caller owns it.
    app_config:
        Output of :func:`load_config`; loaded on demand when omitted.
    llm:
        Overrides the LLM chosen from *app_settings*.
    """
    app_config = app_config if app_config is not None else load_config(settings=app_settings)
    llm = llm or build_llm_provider(app_settings)
    discovery_cfg = app_config.get("discovery", {})
    ranking_cfg = app_config.get("ranking", {})
    extraction_cfg = app_config.get("extraction", {})
    fallback_cfg = app_config.get("fallback", {})

    tier_executor = TierExecutor(
        _build_tiers(_build_discovery_providers(app_settings, http_client), app_config),
        stage_grace_seconds=float(discovery_cfg.get("stage_grace_seconds", 2.0)),
        results_per_tier=int(discovery_cfg.get("results_per_tier", 20)),
        prefer_tld=app_settings.enable_tld_preference,
    )

    ranking_provider = (
        LLMRankingProvider(
            llm,
            max_candidates_in_prompt=int(ranking_cfg.get("max_candidates_in_prompt", 50)),
            temperature=float(ranking_cfg.get("temperature", 0.0)),
            max_tokens=int(ranking_cfg.get("max_tokens", 2000)),
        )
        if llm is not None
        else None
    )
    prioritizer = PrioritizationEngine(
        ModelRankingStrategy(ranking_provider),
        HeuristicRankingStrategy(tier_executor.tier_weights()),
    )

    article_provider = WebScraperProvider(http_client=http_client)
    primary = (
        LLMEventExtractionProvider(
            llm,
            article_provider,
            max_page_chars=int(extraction_cfg.get("max_page_chars", 6000)),
            temperature=float(extraction_cfg.get("temperature", 0.0)),
            max_tokens=int(extraction_cfg.get("max_tokens", 1500)),
        )
        if llm is not None
        else None
    )
    extraction = ExtractionEngine(
        primary=primary,
        secondary=StructuredDataExtractionProvider(article_provider),
    )

    fallback = FallbackDataset(
        tier_executor,
        rerun_window_days=int(fallback_cfg.get("rerun_window_days", 90)),
        max_rerun_queries=int(fallback_cfg.get("max_rerun_queries", 3)),
    )

    _logger.info(
        "orchestrator_built",
        tiers=[tier.name for tier in tier_executor.tiers],
        llm=llm.get_provider_name() if llm else None,
    )
    return SearchOrchestrator(tier_executor, prioritizer, extraction, fallback)


