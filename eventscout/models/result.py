"""Result envelope, trace and telemetry models.

Architecture note:
    The orchestrator returns one :class:`OrchestratorResult` per run:

        {items, trace, telemetry, fallbackUsed, issues}

    *Trace* is the verbose sibling, one section per stage plus one
    :class:`StageRecord` per pipeline stage, kept for debugging UIs.
    *Telemetry* is the compact sibling, flat counters and durations for
    dashboards and alerting.  Both are built fresh per run and never
    mutated; stages hand their section back and the orchestrator assembles
    the trace during finalization.

    Recovered errors are data, not exceptions: every caught failure becomes
    a :class:`StageError` tagged with an :class:`ErrorKind`.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from eventscout.models.candidate import ScoredUrl
from eventscout.models.event import ExtractedEvent
from eventscout.models.search import FeatureFlags

_MODEL_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Stage bookkeeping
# ---------------------------------------------------------------------------
class PipelineStage(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Stages of one orchestrator run, in execution order.

        DISCOVER → DEDUPLICATE → PRIORITIZE → EXTRACT → FILTER → FINALIZE
    """

    DISCOVER = "discover"
    DEDUPLICATE = "deduplicate"
    PRIORITIZE = "prioritize"
    EXTRACT = "extract"
    FILTER = "filter"
    FINALIZE = "finalize"


class StageStatus(str, Enum):  # noqa: UP042
    OK = "ok"
    DEGRADED = "degraded"   # ran, but recovered from at least one error
    SKIPPED = "skipped"     # short-circuited (empty input or run deadline)


class ErrorKind(str, Enum):  # noqa: UP042
    """Taxonomy of recovered failures."""

    TIER_TIMEOUT = "TierTimeout"
    TIER_ERROR = "TierError"
    RANKING_TIMEOUT = "RankingTimeout"
    RANKING_MALFORMED_OUTPUT = "RankingMalformedOutput"
    EXTRACTION_TIMEOUT = "ExtractionTimeout"
    EXTRACTION_PARSE_FAILURE = "ExtractionParseFailure"
    FILTER_EXHAUSTED = "FilterExhausted"
    FALLBACK_EXHAUSTED = "FallbackExhausted"
    # Unexpected exception caught at a stage boundary.
    STAGE_FAILURE = "StageFailure"


class StageError(BaseModel):
    """A failure that was caught and recovered from."""

    model_config = _MODEL_CONFIG

    kind: ErrorKind
    message: str
    # Tier, provider or URL the error is about.
    source: str | None = None


class StageRecord(BaseModel):
    """Boundary record for one pipeline stage."""

    model_config = _MODEL_CONFIG

    stage: PipelineStage
    status: StageStatus = StageStatus.OK
    items_in: int = 0
    items_out: int = 0
    duration_ms: float = 0.0
    errors: list[StageError] = Field(default_factory=list)
    notes: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Trace sections
# ---------------------------------------------------------------------------
class DateRange(BaseModel):
    model_config = _MODEL_CONFIG

    date_from: date
    date_to: date


class QueryRecord(BaseModel):
    """One tier call: what was sent and what came back."""

    model_config = _MODEL_CONFIG

    tier: str
    query: str
    length: int
    results: int = 0
    duration_ms: float = 0.0
    # Calls made, retries included.
    attempts: int = 1
    error: str | None = None


class ResultsTrace(BaseModel):
    """Discovery + dedup counters."""

    model_config = _MODEL_CONFIG

    urls_seen: int = 0
    urls_kept: int = 0
    duplicates_removed: int = 0
    unidentifiable: int = 0
    sample: list[str] = Field(default_factory=list)
    tiers_executed: list[str] = Field(default_factory=list)


class PrioritizationTrace(BaseModel):
    model_config = _MODEL_CONFIG

    # "model", "heuristic" or "none" when the stage was skipped.
    strategy: str = "none"
    model: str | None = None
    items_in: int = 0
    items_out: int = 0
    repair_used: bool = False
    bypassed: bool = False
    # Ranking calls made, retries included; 0 when no model was asked.
    model_attempts: int = 0
    reasons: list[str] = Field(default_factory=list)
    below_threshold: list[ScoredUrl] = Field(default_factory=list)
    errors: list[StageError] = Field(default_factory=list)


class ExtractTrace(BaseModel):
    model_config = _MODEL_CONFIG

    attempted: int = 0
    successful: int = 0
    failed: int = 0
    timed_out: int = 0
    primary_successes: int = 0
    secondary_successes: int = 0
    speakers_found: int = 0
    stopped_early: bool = False


class FilterStat(BaseModel):
    """Cardinality of one relaxation filter and the variant that was kept."""

    model_config = _MODEL_CONFIG

    filter: str
    items_in: int = 0
    items_out: int = 0
    variant: str = "strict"
    notes: list[str] = Field(default_factory=list)


class FiltersTrace(BaseModel):
    model_config = _MODEL_CONFIG

    stats: list[FilterStat] = Field(default_factory=list)
    relaxation_applied: list[str] = Field(default_factory=list)
    exhausted: list[str] = Field(default_factory=list)


class FallbackTrace(BaseModel):
    model_config = _MODEL_CONFIG

    used: bool = False
    reason: str | None = None
    # "widened_rerun", "demo" or None.
    source: str | None = None
    items_added: int = 0


class PerformanceTrace(BaseModel):
    """Wall-clock milliseconds per stage and for the whole run."""

    model_config = _MODEL_CONFIG

    search_ms: float = 0.0
    dedupe_ms: float = 0.0
    prioritization_ms: float = 0.0
    extraction_ms: float = 0.0
    filtering_ms: float = 0.0
    finalize_ms: float = 0.0
    total_ms: float = 0.0


class SearchTrace(BaseModel):
    """Verbose per-run diagnostic record."""

    model_config = _MODEL_CONFIG

    # The search id; lets a UI correlate the trace with log lines.
    marker: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))  # noqa: UP017
    date_range: DateRange
    user_country: str
    queries: list[QueryRecord] = Field(default_factory=list)
    results: ResultsTrace = Field(default_factory=ResultsTrace)
    prioritization: PrioritizationTrace = Field(default_factory=PrioritizationTrace)
    extract: ExtractTrace = Field(default_factory=ExtractTrace)
    filters: FiltersTrace = Field(default_factory=FiltersTrace)
    fallbacks: FallbackTrace = Field(default_factory=FallbackTrace)
    performance: PerformanceTrace = Field(default_factory=PerformanceTrace)
    stages: list[StageRecord] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Telemetry + envelope
# ---------------------------------------------------------------------------
class ResultCounts(BaseModel):
    model_config = _MODEL_CONFIG

    total: int = 0
    successful: int = 0
    failed: int = 0
    undated: int = 0


class SearchTelemetry(BaseModel):
    """Compact per-run metrics record."""

    model_config = _MODEL_CONFIG

    search_id: str
    query: str
    country: str
    date_range: DateRange
    stage_durations_ms: dict[str, float] = Field(default_factory=dict)
    flags: FeatureFlags
    results: ResultCounts = Field(default_factory=ResultCounts)
    fallback_used: bool = False
    issue_count: int = 0
    # 0-100, see SearchOrchestrator._quality_score.
    quality_score: int = Field(default=0, ge=0, le=100)


class OrchestratorResult(BaseModel):
    """The envelope returned by every orchestrator run."""

    model_config = _MODEL_CONFIG

    items: list[ExtractedEvent] = Field(default_factory=list)
    trace: SearchTrace
    telemetry: SearchTelemetry
    fallback_used: bool = False
    issues: list[str] = Field(default_factory=list)

    def to_envelope(self) -> dict:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)
