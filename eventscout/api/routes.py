"""FastAPI routes for the eventScout search API.

Service dependencies are resolved from ``app.state`` (populated in
``eventscout/main.py``) via ``Depends`` using the ``Annotated`` pattern.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                     Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/v1/events/search        POST    Run one event search → envelope
# /api/v1/health               GET     Health check + provider status
# /api/v1/providers            GET     List all configured providers
#
# The search response is the orchestrator envelope
#     {items, trace, telemetry, fallbackUsed, issues}
# A malformed request (blank query, bad country, inverted window) is
# rejected with 422 before the pipeline runs.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from eventscout import __version__
from eventscout.api.middleware import error_response
from eventscout.api.schemas import (
    ErrorResponse,
    HealthResponse,
    ProvidersResponse,
    SearchRequestBody,
)
from eventscout.config.settings import Settings
from eventscout.services.request_builder import build_search_request
from eventscout.services.search_cache import CachedSearchService
from eventscout.utils.errors import InvalidSearchRequestError
from eventscout.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_search_service(request: Request) -> CachedSearchService:
    """Return the (cache-wrapped) search service from application state."""
    return request.app.state.search_service


def _get_settings(request: Request) -> Settings:
    return request.app.state.settings


SearchServiceDep = Annotated[CachedSearchService, Depends(_get_search_service)]
SettingsDep = Annotated[Settings, Depends(_get_settings)]


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------


@router.post(
    "/events/search",
    summary="Search for events",
    responses={422: {"model": ErrorResponse}},
)
async def search_events(
    body: SearchRequestBody,
    request: Request,
    service: SearchServiceDep,
    settings: SettingsDep,
) -> JSONResponse:
    """Run the search pipeline and return the result envelope."""
    relaxation = body.relaxation_order or getattr(request.app.state, "relaxation_order", None)
    try:
        search_request = build_search_request(
            query=body.query,
            country=body.country,
            date_from=body.date_from,
            date_to=body.date_to,
            days=body.days,
            settings=settings,
            flag_overrides=body.flag_overrides(),
            relaxation_order=tuple(relaxation) if relaxation else None,
        )
    except InvalidSearchRequestError as exc:
        _logger.warning("search_request_rejected", reason=exc.message)
        return error_response(exc)

    result = await service.search(search_request)
    return JSONResponse(content=result.to_envelope())


# ---------------------------------------------------------------------------
# System endpoints
# ---------------------------------------------------------------------------


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability.

    ``healthy`` needs at least one discovery tier and an LLM; without an
    LLM the pipeline still runs on heuristics and structured data
    (``degraded``); without any discovery tier only fallbacks remain.
    """
    providers: dict[str, Any] = dict(getattr(request.app.state, "provider_registry", {}))

    discovery_ok = bool(providers.get("discovery", False))
    if discovery_ok and providers.get("llm", False):
        status = "healthy"
    elif discovery_ok:
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(status=status, version=__version__, providers=providers)


@router.get(
    "/providers",
    response_model=ProvidersResponse,
    summary="List configured providers",
)
async def list_providers(request: Request) -> ProvidersResponse:
    """List all configured providers, their types, and availability status."""
    return ProvidersResponse(providers=list(getattr(request.app.state, "provider_list", [])))
