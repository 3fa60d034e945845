"""Last-resort data sources used when a run would return no items.

1. **Widened re-run**: discovery again with broad fallback queries for the
   user's country and a date window widened by ``rerun_window_days`` on
   both sides.  Hits become ``WIDENED_RERUN`` stub events, since there is no
   time budget left for another extraction pass.
2. **Demo dataset**: a small curated set of sample events stamped with the
   request country and dates inside the window, so a UI always has
   something to render.

Both are opt-out via ``flags.enable_widened_rerun`` / ``flags.enable_demo_fallback``;
the orchestrator checks the flags.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone

import structlog

from eventscout.config.domain_knowledge import DEMO_CITIES, DEMO_EVENT_TEMPLATES, fallback_queries
from eventscout.models.event import EventOrigin, ExtractedEvent
from eventscout.models.result import QueryRecord, StageError
from eventscout.models.search import SearchRequest
from eventscout.pipeline.deduplicator import dedupe
from eventscout.pipeline.extraction import event_confidence, stub_event
from eventscout.pipeline.tier_executor import TierExecutor

logger = structlog.get_logger(logger_name=__name__)


@dataclass
class RerunResult:
    events: list[ExtractedEvent] = field(default_factory=list)
    queries: list[QueryRecord] = field(default_factory=list)
    errors: list[StageError] = field(default_factory=list)


class FallbackDataset:
    """Produces fallback events for an otherwise empty run.

    Parameters
    ----------
    tier_executor:
        Reused for the widened re-run (curated tier excluded).
    rerun_window_days:
        Days added before ``date_from`` and after ``date_to``.
    max_rerun_queries:
        Fallback queries tried, in order, until one yields candidates.
    """

    def __init__(
        self,
        tier_executor: TierExecutor,
        rerun_window_days: int = 90,
        max_rerun_queries: int = 3,
    ) -> None:
        self._executor = tier_executor
        self._window = timedelta(days=rerun_window_days)
        self._max_queries = max_rerun_queries

    async def widened_rerun(
        self,
        request: SearchRequest,
        remaining_seconds: float | None = None,
    ) -> RerunResult:
        """Re-run discovery with broad queries and a widened window.

        *remaining_seconds* is one budget shared by all fallback queries;
        queries left when it runs out are not sent.
        """
        result = RerunResult()
        flags = request.flags.model_copy(update={"enable_curated_tier": False})
        loop = asyncio.get_running_loop()
        deadline = None if remaining_seconds is None else loop.time() + remaining_seconds
        for query in fallback_queries(request.country)[: self._max_queries]:
            budget = None if deadline is None else deadline - loop.time()
            if budget is not None and budget <= 0:
                logger.info("widened_rerun_out_of_time", query_records=len(result.queries))
                break
            widened = request.model_copy(
                update={
                    "query": query,
                    "date_from": request.date_from - self._window,
                    "date_to": request.date_to + self._window,
                    "flags": flags,
                }
            )
            discovery = await self._executor.execute_all_tiers(widened, budget)
            result.queries.extend(discovery.reports)
            result.errors.extend(discovery.errors)
            unique = dedupe(discovery.candidates).unique
            if unique:
                result.events = [
                    stub_event(item.url, item, origin=EventOrigin.WIDENED_RERUN)
                    for item in unique
                    if item.url
                ]
                break

        logger.info(
            "widened_rerun_complete",
            queries=len(result.queries),
            events=len(result.events),
        )
        return result

    def demo_events(self, request: SearchRequest) -> list[ExtractedEvent]:
        """Sample events placed evenly inside the request window."""
        cities = DEMO_CITIES.get(request.country, ())
        count = len(DEMO_EVENT_TEMPLATES)
        span = max(request.window_days, 0)
        events: list[ExtractedEvent] = []
        for index, template in enumerate(DEMO_EVENT_TEMPLATES):
            day = request.date_from + timedelta(days=span * (index + 1) // (count + 1))
            starts_at = datetime.combine(day, time(9, 0), tzinfo=timezone.utc)  # noqa: UP017
            event = ExtractedEvent(
                url=f"https://example.com/demo/{template['slug']}-{request.country.lower()}",
                title=template["title"],
                description=template["description"],
                starts_at=starts_at,
                ends_at=starts_at + timedelta(hours=8),
                venue=template["venue"],
                city=cities[index % len(cities)] if cities else None,
                country=request.country,
                success=False,
                extractor=EventOrigin.DEMO.value,
                origin=EventOrigin.DEMO,
            )
            events.append(event.model_copy(update={"confidence": event_confidence(event)}))
        logger.info("demo_events_injected", count=len(events), country=request.country)
        return events
