"""eventScout FastAPI application entry point.

Wires providers, pipeline stages and routes together via dependency
injection.  Loads configuration from ``.env`` and ``config/config.yaml`` and
configures structured logging.

The orchestrator itself is built in ``eventscout/factory.py``, which the
CLI shares so a search can run without the web server.

# ─── WIRING ───────────────────────────────────────────────────────────
#
#   DuckDuckGoSearchProvider ─► SearchEngineDiscoveryProvider ─┐
#   CuratedDiscoveryProvider ──────────────────────────────────┼─► TierExecutor
#   CrawlDiscoveryProvider (httpx, Firecrawl key) ─────────────┘       │
#                                                                      ▼
#   ILLMProvider ─► LLMRankingProvider ─► ModelRankingStrategy ─► PrioritizationEngine
#               └─► LLMEventExtractionProvider (primary) ─┐
#   WebScraperProvider ─► StructuredDataExtractionProvider ┴─► ExtractionEngine
#
#   SearchOrchestrator(tier executor, prioritizer, extraction, fallback)
#   CachedSearchService(orchestrator, MemoryCacheProvider)
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from eventscout import __version__
from eventscout.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from eventscout.api.routes import router as api_router
from eventscout.config.loader import load_config, relaxation_order
from eventscout.config.settings import Settings
from eventscout.factory import build_llm_provider, build_orchestrator
from eventscout.providers.article.web_scraper_provider import build_http_client
from eventscout.providers.cache.memory_cache import MemoryCacheProvider
from eventscout.services.search_cache import CachedSearchService
from eventscout.utils.logging import configure_logging, get_logger

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


def _build_all(app_settings: Settings, app_config: dict) -> dict[str, Any]:
    """Construct every component the routes read from ``app.state``."""
    http_client = build_http_client()
    llm = build_llm_provider(app_settings)
    orchestrator = build_orchestrator(app_settings, http_client, app_config, llm=llm)

    cache_cfg = app_config.get("cache", {})
    ttl = int(cache_cfg.get("ttl", app_settings.search_cache_ttl))
    fallback_ttl = int(cache_cfg.get("fallback_ttl", app_settings.search_cache_fallback_ttl))
    cache = MemoryCacheProvider(
        max_size=int(cache_cfg.get("max_size", app_settings.search_cache_max_size)),
        ttl=ttl,
    )

    crawl_ready = bool(app_settings.firecrawl_api_key)
    provider_list: list[dict[str, Any]] = [
        {"name": "curated", "type": "discovery", "available": True},
        {"name": "duckduckgo", "type": "discovery", "available": True},
        {"name": "firecrawl", "type": "discovery", "available": crawl_ready},
        {"name": "structured-data", "type": "extraction", "available": True},
        {"name": "memory", "type": "cache", "available": ttl > 0},
    ]
    for name in ("anthropic", "openai"):
        provider_list.append(
            {
                "name": name,
                "type": "llm",
                "available": name in app_settings.get_available_llm_providers(),
            }
        )

    return {
        "settings": app_settings,
        "http_client": http_client,
        "orchestrator": orchestrator,
        "search_service": CachedSearchService(
            orchestrator, cache, ttl=ttl, fallback_ttl=fallback_ttl
        ),
        "relaxation_order": relaxation_order(app_config),
        "primary_llm_name": llm.get_provider_name() if llm else None,
        "provider_list": provider_list,
        "provider_registry": {
            "discovery": True,
            "crawl": crawl_ready,
            "llm": llm is not None,
            "cache": ttl > 0,
        },
    }


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Publish components on ``app.state`` and close the shared HTTP client on exit."""
    components = _build_all(settings, config)

    for name, component in components.items():
        setattr(application.state, name, component)

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        primary_llm=components["primary_llm_name"],
        providers=len(components["provider_list"]),
    )

    yield

    http_client: httpx.AsyncClient = components["http_client"]
    await http_client.aclose()
    _logger.info("app_shutdown")


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="eventScout API",
        version=__version__,
        description=(
            "Discover events for a query, country and date window: tiered "
            "discovery, AI ranking with heuristic fallback, structured "
            "extraction and progressive filter relaxation."
        ),
        lifespan=_lifespan,
    )

    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.include_router(api_router)
    return application


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "eventscout.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
