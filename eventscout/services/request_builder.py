"""Build validated :class:`SearchRequest` objects from loose caller input.

The HTTP route and the CLI both accept a query, a country and an optional
date window.  This module fills in the window, snapshots the per-run knobs
from :class:`~eventscout.config.settings.Settings`, and turns pydantic
validation failures into :class:`InvalidSearchRequestError` so callers see
one error type with a readable message.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from pydantic import ValidationError

from eventscout.config.settings import Settings
from eventscout.models.search import FeatureFlags, Limits, SearchRequest, Thresholds, Timeouts
from eventscout.utils.errors import InvalidSearchRequestError

_VALUE_ERROR_PREFIX = "Value error, "


def default_flags(settings: Settings, overrides: dict[str, bool] | None = None) -> FeatureFlags:
    """Snapshot feature flags from *settings*, then apply per-call *overrides*."""
    values = {name: getattr(settings, name) for name in FeatureFlags.model_fields}
    values.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return FeatureFlags(**values)


def default_thresholds(settings: Settings) -> Thresholds:
    return Thresholds(
        prioritization=settings.default_prioritization_threshold,
        confidence=settings.default_confidence_threshold,
        parse_quality=settings.default_parse_quality_threshold,
    )


def default_limits(settings: Settings) -> Limits:
    return Limits(
        max_candidates=settings.default_max_candidates,
        max_extractions=settings.default_max_extractions,
        extraction_concurrency=settings.default_extraction_concurrency,
        early_termination=settings.default_early_termination,
        max_attempts=settings.default_max_attempts,
    )


def default_timeouts(settings: Settings) -> Timeouts:
    return Timeouts(
        discovery=settings.default_discovery_timeout,
        prioritization=settings.default_prioritization_timeout,
        parsing=settings.default_parsing_timeout,
        extraction_stage=settings.default_extraction_stage_timeout,
        run=settings.default_run_timeout,
        retry_backoff=settings.default_retry_backoff,
    )


def build_search_request(
    query: str,
    country: str | None,
    date_from: date | None = None,
    date_to: date | None = None,
    days: int | None = None,
    settings: Settings | None = None,
    flag_overrides: dict[str, bool] | None = None,
    relaxation_order: tuple[str, ...] | None = None,
) -> SearchRequest:
    """Validate caller input and return a frozen :class:`SearchRequest`.

    Parameters
    ----------
    query, country:
        Free-text query and a country code or name ("DE", "Germany").
    date_from, date_to:
        Explicit window.  ``date_from`` defaults to today; ``date_to``
        defaults to ``date_from + days``.
    days:
        Window length when ``date_to`` is omitted; defaults to
        ``settings.default_window_days``.
    settings:
        Source of flags, thresholds, limits and timeouts.  A fresh
        :class:`Settings` is read from the environment when omitted.
    flag_overrides:
        Per-call flag values, e.g. ``{"bypass_ai_ranking": True}``.
        ``None`` values are ignored.
    relaxation_order:
        Order in which filters are relaxed; defaults to the model default.

    Raises
    ------
    InvalidSearchRequestError
        When the input does not form a valid request.
    """
    settings = settings or Settings()
    if days is not None and days < 0:
        raise InvalidSearchRequestError("days must not be negative")

    start = date_from or date.today()
    end = date_to or start + timedelta(days=days if days is not None else settings.default_window_days)

    fields: dict[str, Any] = {
        "query": query or "",
        "country": country or "",
        "date_from": start,
        "date_to": end,
        "thresholds": default_thresholds(settings),
        "limits": default_limits(settings),
        "timeouts": default_timeouts(settings),
        "date_grace_days": settings.default_date_grace_days,
    }
    if relaxation_order is not None:
        fields["relaxation_order"] = tuple(relaxation_order)

    try:
        fields["flags"] = default_flags(settings, flag_overrides)
        return SearchRequest(**fields)
    except ValidationError as exc:
        raise InvalidSearchRequestError(_describe(exc)) from exc


def _describe(exc: ValidationError) -> str:
    """First validation error as ``"field: message"`` (or just the message)."""
    first = exc.errors()[0]
    message = str(first.get("msg", "invalid search request"))
    if message.startswith(_VALUE_ERROR_PREFIX):
        message = message[len(_VALUE_ERROR_PREFIX):]
    location = ".".join(str(part) for part in first.get("loc", ()))
    # Field validators already name their field ("country (ISO2) required").
    if not location or message.split(" ", 1)[0] in location:
        return message
    return f"{location}: {message}"
