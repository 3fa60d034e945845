"""Pydantic request/response schemas for the eventScout API.

The search response body is the orchestrator envelope itself
(``OrchestratorResult.to_envelope()``), so only the request body and the
small system responses are declared here.

Request bodies accept camelCase keys (``dateFrom``, ``bypassAiRanking``)
as well as snake_case, matching the envelope's own aliases.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SearchRequestBody(BaseModel):
    """Body of ``POST /api/v1/events/search``.

    Only shape is checked here; domain validation (ISO country, window
    order, relaxation filter names) happens in ``build_search_request`` so
    the API and the CLI reject the same inputs with the same messages.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    query: str = ""
    country: str | None = None
    date_from: date | None = None
    date_to: date | None = None
    days: int | None = Field(default=None, description="Window length when dateTo is omitted")
    relaxation_order: list[str] | None = None

    # Per-request flag overrides; None keeps the server default.
    bypass_ai_ranking: bool | None = None
    relax_quality: bool | None = None
    relax_date: bool | None = None
    relax_country: bool | None = None
    allow_undated: bool | None = None
    enable_curated_tier: bool | None = None
    enable_widened_rerun: bool | None = None
    enable_demo_fallback: bool | None = None

    def flag_overrides(self) -> dict[str, bool]:
        names = (
            "bypass_ai_ranking", "relax_quality", "relax_date", "relax_country",
            "allow_undated", "enable_curated_tier", "enable_widened_rerun",
            "enable_demo_fallback",
        )
        return {name: getattr(self, name) for name in names if getattr(self, name) is not None}


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    providers: dict[str, Any]


class ProvidersResponse(BaseModel):
    """List of configured service providers and their availability."""

    providers: list[dict[str, Any]]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
