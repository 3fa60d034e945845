"""eventScout domain models -- re-exports all public model classes.

The models are organized across four submodules:
    - search.py     -- SearchRequest and its flag/threshold/limit/timeout snapshots
    - candidate.py  -- discovery candidates and ranked candidates
    - event.py      -- extracted events and speakers
    - result.py     -- result envelope, trace, telemetry and stage records

Every model is a frozen pydantic v2 model with camelCase JSON aliases.
"""

from __future__ import annotations

from eventscout.models.candidate import CandidateItem, CandidateKind, PrioritizedItem, ScoredUrl
from eventscout.models.event import EventOrigin, ExtractedEvent, Speaker
from eventscout.models.result import (
    DateRange,
    ErrorKind,
    ExtractTrace,
    FallbackTrace,
    FiltersTrace,
    FilterStat,
    OrchestratorResult,
    PerformanceTrace,
    PipelineStage,
    PrioritizationTrace,
    QueryRecord,
    ResultCounts,
    ResultsTrace,
    SearchTelemetry,
    SearchTrace,
    StageError,
    StageRecord,
    StageStatus,
)
from eventscout.models.search import FeatureFlags, Limits, SearchRequest, Thresholds, Timeouts

__all__ = [
    "CandidateItem",
    "CandidateKind",
    "DateRange",
    "ErrorKind",
    "EventOrigin",
    "ExtractTrace",
    "ExtractedEvent",
    "FallbackTrace",
    "FeatureFlags",
    "FilterStat",
    "FiltersTrace",
    "Limits",
    "OrchestratorResult",
    "PerformanceTrace",
    "PipelineStage",
    "PrioritizationTrace",
    "PrioritizedItem",
    "QueryRecord",
    "ResultCounts",
    "ResultsTrace",
    "ScoredUrl",
    "SearchRequest",
    "SearchTelemetry",
    "SearchTrace",
    "Speaker",
    "StageError",
    "StageRecord",
    "StageStatus",
    "Thresholds",
    "Timeouts",
]
