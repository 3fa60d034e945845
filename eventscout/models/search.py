"""Search request models.

A :class:`SearchRequest` is the single input of an orchestrator run.  It is
built once (by the HTTP route, the CLI or a test), validated, and then
threaded unchanged through every stage.  Feature flags, thresholds, limits
and timeouts are *snapshotted* into it so that no stage consults ambient
configuration mid-run.

All models are frozen; use ``model_copy(update={...})`` to derive variants
(the widened fallback re-run does exactly that).
"""

from __future__ import annotations

import hashlib
import json
from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from eventscout.config.domain_knowledge import (
    GERMAN_SPEAKING,
    RELAXABLE_FILTERS,
    normalize_country,
)

_MODEL_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class FeatureFlags(BaseModel):
    """Immutable flag snapshot taken when the request is built."""

    model_config = _MODEL_CONFIG

    bypass_ai_ranking: bool = False
    relax_quality: bool = True
    relax_date: bool = True
    relax_country: bool = True
    allow_undated: bool = False
    enable_curated_tier: bool = True
    enable_widened_rerun: bool = True
    enable_demo_fallback: bool = True

    def relaxation_enabled(self, filter_name: str) -> bool:
        """Whether weaker variants of *filter_name* may be tried."""
        return {
            "quality": self.relax_quality,
            "date-window": self.relax_date,
            "country": self.relax_country,
        }.get(filter_name, False)


class Thresholds(BaseModel):
    """Per-run score cutoffs, all in [0, 1]."""

    model_config = _MODEL_CONFIG

    # Candidates scoring below this are dropped by the prioritization engine.
    prioritization: float = Field(default=0.25, ge=0.0, le=1.0)
    # Extraction stops early once enough events reach this confidence.
    confidence: float = Field(default=0.8, ge=0.0, le=1.0)
    # Minimum event confidence for the strict quality filter.
    parse_quality: float = Field(default=0.4, ge=0.0, le=1.0)


class Limits(BaseModel):
    """Per-run size limits."""

    model_config = _MODEL_CONFIG

    max_candidates: int = Field(default=40, ge=1)
    max_extractions: int = Field(default=12, ge=1)
    extraction_concurrency: int = Field(default=4, ge=1)
    # 0 disables early termination.
    early_termination: int = Field(default=8, ge=0)
    # Attempts per discovery or ranking call; retries only repeat retryable errors.
    max_attempts: int = Field(default=2, ge=1)


class Timeouts(BaseModel):
    """Per-call and per-stage timeouts in seconds."""

    model_config = _MODEL_CONFIG

    discovery: float = Field(default=10.0, gt=0)
    prioritization: float = Field(default=12.0, gt=0)
    parsing: float = Field(default=15.0, gt=0)
    extraction_stage: float = Field(default=45.0, gt=0)
    run: float = Field(default=90.0, gt=0)
    # Wait before the first retry; doubles per further attempt.
    retry_backoff: float = Field(default=0.5, ge=0)


class SearchRequest(BaseModel):
    """One event search: query, country, date window and the run's knobs.

    Raises ``pydantic.ValidationError`` for malformed input (empty query,
    country that is not ISO-3166 alpha-2, inverted date window, unknown
    relaxation filter).
    """

    model_config = _MODEL_CONFIG

    query: str = Field(min_length=1, max_length=500)
    country: str
    date_from: date
    date_to: date
    flags: FeatureFlags = Field(default_factory=FeatureFlags)
    thresholds: Thresholds = Field(default_factory=Thresholds)
    limits: Limits = Field(default_factory=Limits)
    timeouts: Timeouts = Field(default_factory=Timeouts)
    relaxation_order: tuple[str, ...] = RELAXABLE_FILTERS
    date_grace_days: int = Field(default=7, ge=0)

    @field_validator("query")
    @classmethod
    def _strip_query(cls, value: str) -> str:
        cleaned = " ".join(value.split())
        if not cleaned:
            raise ValueError("query must not be blank")
        return cleaned

    @field_validator("country", mode="before")
    @classmethod
    def _normalize_country(cls, value: object) -> str:
        code = normalize_country(value) if isinstance(value, str) else None
        if code is None or len(code) != 2:
            raise ValueError("country (ISO2) required")
        return code

    @field_validator("relaxation_order")
    @classmethod
    def _check_relaxation_order(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        unknown = [name for name in value if name not in RELAXABLE_FILTERS]
        if unknown:
            raise ValueError(f"unknown relaxation filter(s): {', '.join(unknown)}")
        if len(set(value)) != len(value):
            raise ValueError("relaxation_order must not repeat a filter")
        return value

    @model_validator(mode="after")
    def _check_window(self) -> SearchRequest:
        if self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    @property
    def locale(self) -> str:
        """``"de"`` for German-speaking countries, ``"en"`` otherwise."""
        return "de" if self.country in GERMAN_SPEAKING else "en"

    @property
    def window_days(self) -> int:
        return (self.date_to - self.date_from).days

    def fingerprint(self) -> str:
        """Cache key: sha256 over everything that shapes the result set.

        Timeouts are left out; they bound latency, not which events match.
        """
        payload = {
            "query": self.query.lower(),
            "country": self.country,
            "date_from": self.date_from.isoformat(),
            "date_to": self.date_to.isoformat(),
            "flags": self.flags.model_dump(),
            "thresholds": self.thresholds.model_dump(),
            "limits": self.limits.model_dump(),
            "relaxation_order": list(self.relaxation_order),
            "date_grace_days": self.date_grace_days,
        }
        encoded = json.dumps(payload, sort_keys=True).encode("utf-8")
        return hashlib.sha256(encoded).hexdigest()
