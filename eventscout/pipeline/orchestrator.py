"""Search orchestrator: the six-stage state machine behind every search.

ARCHITECTURE NOTE:
    One call to :meth:`SearchOrchestrator.run` moves a frozen
    :class:`SearchRequest` through

        DISCOVER → DEDUPLICATE → PRIORITIZE → EXTRACT → FILTER → FINALIZE

    Every stage leaves exactly one :class:`StageRecord` in the trace.  A
    stage with no input, or one that would start after the run deadline
    (``timeouts.run``), is recorded as ``skipped`` instead of running.

    Degraded conditions never raise.  Providers raise, stages catch and
    record, and anything unexpected that escapes a stage is caught at the
    stage boundary, recorded as a ``StageFailure`` on that stage, and the
    pipeline carries on with an empty hand-off.

    Rescue paths, in the order they can fire:
        - discovery found nothing               → issue, later stages skip
        - prioritization kept nothing           → heuristic rescue over all
                                                  candidates, threshold ignored
        - no primary extraction succeeded       → secondary/stub events carry on
        - finalize has no items                 → widened re-run, then demo data

    All per-run state lives in a :class:`_RunState` created inside
    :meth:`run`; the orchestrator itself is stateless and safe to share
    between concurrent requests.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

import structlog

from eventscout.models.candidate import CandidateItem, PrioritizedItem
from eventscout.models.event import ExtractedEvent
from eventscout.models.result import (
    DateRange,
    ErrorKind,
    ExtractTrace,
    FallbackTrace,
    FiltersTrace,
    OrchestratorResult,
    PerformanceTrace,
    PipelineStage,
    PrioritizationTrace,
    QueryRecord,
    ResultsTrace,
    SearchTelemetry,
    SearchTrace,
    StageError,
)
from eventscout.models.search import SearchRequest
from eventscout.pipeline.deduplicator import dedupe
from eventscout.pipeline.extraction import ExtractionEngine
from eventscout.pipeline.fallback import FallbackDataset
from eventscout.pipeline.prioritizer import PrioritizationEngine
from eventscout.pipeline.relaxation import apply_relaxed_filters
from eventscout.pipeline.tier_executor import TierExecutor
from eventscout.pipeline.trace import StageLedger, elapsed_ms, quality_score, result_counts
from eventscout.utils.logging import bind_search_context, get_logger

_T = TypeVar("_T")

ISSUE_NO_RESULTS = "No search results found"
ISSUE_PRIORITIZATION_RESCUE = "Prioritization kept no candidates; heuristic rescue applied"
ISSUE_NO_PRIMARY = "Primary extraction produced no events"
ISSUE_ALL_FILTERED = "All extracted events were filtered out"
ISSUE_FALLBACKS_EXHAUSTED = "All fallbacks exhausted"
ISSUE_DEADLINE = "Run deadline exceeded; remaining stages skipped"


@dataclass
class _RunState:
    """Mutable bookkeeping for one run; never outlives :meth:`SearchOrchestrator.run`."""

    request: SearchRequest
    search_id: str
    deadline: float
    started: float = field(default_factory=time.perf_counter)
    ledger: StageLedger = field(default_factory=StageLedger)
    issues: list[str] = field(default_factory=list)
    fallback_used: bool = False
    queries: list[QueryRecord] = field(default_factory=list)
    results: ResultsTrace = field(default_factory=ResultsTrace)
    prioritization: PrioritizationTrace = field(default_factory=PrioritizationTrace)
    extract: ExtractTrace = field(default_factory=ExtractTrace)
    filters: FiltersTrace = field(default_factory=FiltersTrace)
    fallbacks: FallbackTrace = field(default_factory=FallbackTrace)

    def remaining(self) -> float:
        return self.deadline - asyncio.get_running_loop().time()

    def expired(self) -> bool:
        return self.remaining() <= 0

    def add_issue(self, issue: str) -> None:
        if issue not in self.issues:
            self.issues.append(issue)


class SearchOrchestrator:
    """Runs the search pipeline and always returns a result envelope.

    All collaborators are injected (see ``eventscout/main.py``); tests
    build the orchestrator around fake providers.
    """

    def __init__(
        self,
        tier_executor: TierExecutor,
        prioritizer: PrioritizationEngine,
        extraction_engine: ExtractionEngine,
        fallback: FallbackDataset,
    ) -> None:
        self._tiers = tier_executor
        self._prioritizer = prioritizer
        self._extraction = extraction_engine
        self._fallback = fallback
        self._logger: structlog.BoundLogger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(self, request: SearchRequest) -> OrchestratorResult:
        """Execute one search.

        Parameters
        ----------
        request:
            A validated request; build it with
            :func:`eventscout.services.request_builder.build_search_request`.

        Returns
        -------
        OrchestratorResult
            Items, trace, telemetry, ``fallback_used`` and issues.  Items
            are empty only when every tier and both fallbacks came back
            empty, which is reported in ``issues``.
        """
        search_id = f"search_{uuid.uuid4().hex[:12]}"
        loop = asyncio.get_running_loop()
        run = _RunState(
            request=request,
            search_id=search_id,
            deadline=loop.time() + request.timeouts.run,
        )

        with bind_search_context(search_id, country=request.country):
            self._logger.info(
                "search_started",
                query=request.query,
                date_from=request.date_from.isoformat(),
                date_to=request.date_to.isoformat(),
                flags=request.flags.model_dump(),
            )

            candidates = await self._guarded(
                run, PipelineStage.DISCOVER, max(len(self._tiers.tiers), 1),
                lambda started: self._discover(run, started), default=[],
            )
            if not candidates:
                run.add_issue(ISSUE_NO_RESULTS)

            unique = await self._guarded(
                run, PipelineStage.DEDUPLICATE, len(candidates),
                lambda started: self._deduplicate(run, started, candidates), default=[],
            )

            prioritized = await self._guarded(
                run, PipelineStage.PRIORITIZE, len(unique),
                lambda started: self._prioritize(run, started, unique), default=[],
            )

            urls = [item.url for item in prioritized if item.url]
            events = await self._guarded(
                run, PipelineStage.EXTRACT, len(urls),
                lambda started: self._extract(run, started, prioritized), default=[],
            )

            kept = await self._guarded(
                run, PipelineStage.FILTER, len(events),
                lambda started: self._filter(run, started, events), default=[],
            )

            result = await self._finalize(run, kept)

        return result

    # ------------------------------------------------------------------
    # Stage boundary
    # ------------------------------------------------------------------

    async def _guarded(
        self,
        run: _RunState,
        stage: PipelineStage,
        items_in: int,
        action: Callable[[float], Awaitable[_T]],
        default: _T,
    ) -> _T:
        if items_in == 0:
            run.ledger.skip(stage, "no input")
            return default
        if run.expired():
            run.ledger.skip(stage, "run deadline exceeded", items_in=items_in)
            run.add_issue(ISSUE_DEADLINE)
            return default

        started = time.perf_counter()
        try:
            return await action(started)
        except Exception as exc:  # noqa: BLE001 -- a stage failure must not end the run
            self._logger.exception("stage_failed", stage=stage.value, error=str(exc))
            run.ledger.record(
                stage,
                started,
                items_in=items_in,
                items_out=0,
                errors=[
                    StageError(
                        kind=ErrorKind.STAGE_FAILURE,
                        message=str(exc) or type(exc).__name__,
                        source=stage.value,
                    )
                ],
            )
            run.add_issue(f"Stage '{stage.value}' failed: {type(exc).__name__}")
            return default

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    async def _discover(self, run: _RunState, started: float) -> list[CandidateItem]:
        discovery = await self._tiers.execute_all_tiers(run.request, run.remaining())
        run.queries.extend(discovery.reports)
        run.results = run.results.model_copy(
            update={
                "urls_seen": len(discovery.candidates),
                "tiers_executed": discovery.tiers_executed,
            }
        )
        for issue in discovery.issues:
            run.add_issue(issue)
        run.ledger.record(
            PipelineStage.DISCOVER,
            started,
            items_in=len(discovery.reports),
            items_out=len(discovery.candidates),
            errors=discovery.errors,
            notes=["all tiers exhausted"] if discovery.exhausted else [],
        )
        return discovery.candidates

    async def _deduplicate(
        self, run: _RunState, started: float, candidates: list[CandidateItem]
    ) -> list[CandidateItem]:
        outcome = dedupe(candidates)
        run.results = run.results.model_copy(
            update={
                "urls_kept": len(outcome.unique),
                "duplicates_removed": outcome.removed_count,
                "unidentifiable": outcome.unidentifiable,
                "sample": [item.url for item in outcome.unique[:5] if item.url],
            }
        )
        run.ledger.record(
            PipelineStage.DEDUPLICATE,
            started,
            items_in=len(candidates),
            items_out=len(outcome.unique),
        )
        return outcome.unique

    async def _prioritize(
        self, run: _RunState, started: float, unique: list[CandidateItem]
    ) -> list[PrioritizedItem]:
        request = run.request
        result = await self._prioritizer.prioritize(unique, request, run.remaining())
        notes: list[str] = []

        if not result.prioritized:
            rescue = self._prioritizer.heuristic_rescue(unique, request)
            rescue.errors = result.errors
            rescue.model = result.model
            rescue.model_attempts = result.model_attempts
            rescue.stats.below_threshold = result.stats.below_threshold
            rescue.stats.reasons = result.stats.reasons + rescue.stats.reasons
            result = rescue
            run.fallback_used = True
            run.add_issue(ISSUE_PRIORITIZATION_RESCUE)
            notes.append("heuristic rescue")
        elif result.bypassed and not request.flags.bypass_ai_ranking:
            run.add_issue("AI ranking unavailable or failed; heuristic ranking used")

        run.prioritization = PrioritizationTrace(
            strategy=result.strategy,
            model=result.model,
            items_in=len(unique),
            items_out=len(result.prioritized),
            repair_used=result.repair_used,
            bypassed=result.bypassed,
            model_attempts=result.model_attempts,
            reasons=result.stats.reasons,
            below_threshold=result.stats.below_threshold,
            errors=result.errors,
        )
        run.ledger.record(
            PipelineStage.PRIORITIZE,
            started,
            items_in=len(unique),
            items_out=len(result.prioritized),
            errors=result.errors,
            notes=notes,
        )
        return result.prioritized

    async def _extract(
        self, run: _RunState, started: float, prioritized: list[PrioritizedItem]
    ) -> list[ExtractedEvent]:
        request = run.request
        with_url = [item for item in prioritized if item.url]
        urls = [item.url for item in with_url]
        outcome = await self._extraction.extract_with_fallbacks(
            urls,
            request,
            candidates={item.url: item.candidate for item in with_url},
            remaining_seconds=run.remaining(),
        )
        stats = outcome.stats

        if stats.attempted and stats.primary_successes == 0:
            run.fallback_used = True
            run.add_issue(ISSUE_NO_PRIMARY)
        if stats.timed_out:
            run.add_issue(f"{stats.timed_out} extraction(s) timed out")

        # Re-establish priority order (score, then discovery order).
        rank = {url: index for index, url in enumerate(urls)}
        events = sorted(outcome.events, key=lambda event: rank.get(event.url, len(rank)))

        run.extract = ExtractTrace(
            attempted=stats.attempted,
            successful=stats.successful,
            failed=stats.failed,
            timed_out=stats.timed_out,
            primary_successes=stats.primary_successes,
            secondary_successes=stats.secondary_successes,
            speakers_found=stats.speakers_found,
            stopped_early=stats.stopped_early,
        )
        run.ledger.record(
            PipelineStage.EXTRACT,
            started,
            items_in=len(urls),
            items_out=len(events),
            errors=outcome.errors,
            notes=["early termination"] if stats.stopped_early else [],
        )
        return events

    async def _filter(
        self, run: _RunState, started: float, events: list[ExtractedEvent]
    ) -> list[ExtractedEvent]:
        outcome = apply_relaxed_filters(events, run.request)
        if not outcome.kept:
            run.add_issue(ISSUE_ALL_FILTERED)
        run.filters = FiltersTrace(
            stats=outcome.stats,
            relaxation_applied=outcome.relaxation_applied,
            exhausted=outcome.exhausted,
        )
        run.ledger.record(
            PipelineStage.FILTER,
            started,
            items_in=len(events),
            items_out=len(outcome.kept),
            errors=outcome.errors,
            notes=[f"relaxed: {', '.join(outcome.relaxation_applied)}"]
            if outcome.relaxation_applied
            else [],
        )
        return outcome.kept

    async def _finalize(self, run: _RunState, kept: list[ExtractedEvent]) -> OrchestratorResult:
        started = time.perf_counter()
        request = run.request
        items = list(kept)
        errors: list[StageError] = []
        notes: list[str] = []

        if not items:
            items = await self._inject_fallback(run, errors, notes)

        items = [
            item.model_copy(update={"id": f"{run.search_id}-{index}"})
            for index, item in enumerate(items)
        ]
        run.ledger.record(
            PipelineStage.FINALIZE,
            started,
            items_in=len(kept),
            items_out=len(items),
            errors=errors,
            notes=notes,
        )

        date_range = DateRange(date_from=request.date_from, date_to=request.date_to)
        ledger = run.ledger
        trace = SearchTrace(
            marker=run.search_id,
            date_range=date_range,
            user_country=request.country,
            queries=run.queries,
            results=run.results,
            prioritization=run.prioritization,
            extract=run.extract,
            filters=run.filters,
            fallbacks=run.fallbacks,
            performance=PerformanceTrace(
                search_ms=ledger.duration_ms(PipelineStage.DISCOVER),
                dedupe_ms=ledger.duration_ms(PipelineStage.DEDUPLICATE),
                prioritization_ms=ledger.duration_ms(PipelineStage.PRIORITIZE),
                extraction_ms=ledger.duration_ms(PipelineStage.EXTRACT),
                filtering_ms=ledger.duration_ms(PipelineStage.FILTER),
                finalize_ms=ledger.duration_ms(PipelineStage.FINALIZE),
                total_ms=elapsed_ms(run.started),
            ),
            stages=ledger.records(),
        )

        counts = result_counts(items)
        score = quality_score(counts, len(run.issues), run.fallback_used)
        telemetry = SearchTelemetry(
            search_id=run.search_id,
            query=request.query,
            country=request.country,
            date_range=date_range,
            stage_durations_ms=ledger.durations(),
            flags=request.flags,
            results=counts,
            fallback_used=run.fallback_used,
            issue_count=len(run.issues),
            quality_score=score,
        )

        self._logger.info(
            "search_completed",
            items=len(items),
            fallback_used=run.fallback_used,
            issues=len(run.issues),
            total_ms=trace.performance.total_ms,
        )
        self._logger.info(
            "search_quality",
            quality_score=score,
            successful=counts.successful,
            undated=counts.undated,
            relaxed=run.filters.relaxation_applied,
        )
        return OrchestratorResult(
            items=items,
            trace=trace,
            telemetry=telemetry,
            fallback_used=run.fallback_used,
            issues=list(run.issues),
        )

    async def _inject_fallback(
        self,
        run: _RunState,
        errors: list[StageError],
        notes: list[str],
    ) -> list[ExtractedEvent]:
        """Widened re-run first, demo data second; appends to *errors*/*notes*."""
        request = run.request
        flags = request.flags
        run.fallback_used = True
        items: list[ExtractedEvent] = []
        source: str | None = None

        if flags.enable_widened_rerun:
            if run.expired():
                notes.append("widened re-run skipped: run deadline exceeded")
            else:
                try:
                    rerun = await self._fallback.widened_rerun(request, run.remaining())
                except Exception as exc:  # noqa: BLE001 -- demo data may still rescue the run
                    self._logger.exception("widened_rerun_failed", error=str(exc))
                    errors.append(
                        StageError(
                            kind=ErrorKind.STAGE_FAILURE,
                            message=f"widened re-run failed: {exc}",
                            source="widened_rerun",
                        )
                    )
                else:
                    run.queries.extend(rerun.queries)
                    errors.extend(rerun.errors)
                    if rerun.events:
                        items, source = rerun.events, "widened_rerun"

        if not items and flags.enable_demo_fallback:
            items = self._fallback.demo_events(request)
            source = "demo" if items else None

        if items:
            run.add_issue(f"Results come from the {source} fallback")
        else:
            errors.append(
                StageError(
                    kind=ErrorKind.FALLBACK_EXHAUSTED,
                    message="widened re-run and demo data produced no events",
                )
            )
            run.add_issue(ISSUE_FALLBACKS_EXHAUSTED)

        run.fallbacks = FallbackTrace(
            used=True,
            reason="no items after filtering",
            source=source,
            items_added=len(items),
        )
        self._logger.info("fallback_applied", source=source, items=len(items))
        return items
