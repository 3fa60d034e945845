"""Extraction engine: primary extractor, secondary fallback, stub of last resort.

Each prioritized URL goes through::

    primary (LLM)  --timeout / error / nothing-->  secondary (structured data)
                                                  --timeout / error / nothing-->  stub

All URLs run concurrently behind a semaphore (``limits.extraction_concurrency``)
inside one stage deadline.  URLs still running at the deadline are
cancelled and stubbed; with early termination enabled, the stage stops as
soon as enough confident events are in hand.

Confidence is derived here (not by the extractors) from which expected
fields an event has.  The parse-quality threshold is *not* applied in this
stage; that is the relaxation filter's job.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import structlog

from eventscout.interfaces.extraction_provider import IExtractionProvider
from eventscout.models.candidate import CandidateItem
from eventscout.models.event import EventOrigin, ExtractedEvent
from eventscout.models.result import ErrorKind, StageError
from eventscout.models.search import SearchRequest
from eventscout.pipeline.deduplicator import dedupe_speakers
from eventscout.utils.concurrency import collect_within
from eventscout.utils.confidence import populated_confidence

logger = structlog.get_logger(logger_name=__name__)

# Weights of the expected event fields; they sum to 1.0.
CONFIDENCE_WEIGHTS: dict[str, float] = {
    "title": 0.25,
    "starts_at": 0.25,
    "description": 0.10,
    "venue": 0.10,
    "city": 0.10,
    "country": 0.10,
    "speakers": 0.10,
}

_PRIMARY = "primary"
_SECONDARY = "secondary"
_STUB = "stub"


def event_confidence(event: ExtractedEvent) -> float:
    """Weighted share of populated expected fields, in [0, 1]."""
    return populated_confidence(
        {
            "title": bool(event.title),
            "starts_at": event.starts_at is not None,
            "description": bool(event.description),
            "venue": bool(event.venue),
            "city": bool(event.city),
            "country": bool(event.country),
            "speakers": bool(event.speakers),
        },
        CONFIDENCE_WEIGHTS,
    )


def stub_event(
    url: str,
    candidate: CandidateItem | None,
    origin: EventOrigin = EventOrigin.STUB,
    error: str | None = None,
) -> ExtractedEvent:
    """Event built from candidate data only (``success=False``)."""
    event = ExtractedEvent(
        url=url,
        title=(candidate.title if candidate else "") or url,
        description=candidate.snippet if candidate else "",
        success=False,
        extractor=origin.value,
        origin=origin,
        error=error,
    )
    return event.model_copy(update={"confidence": event_confidence(event)})


@dataclass
class ExtractionStats:
    attempted: int = 0
    successful: int = 0
    failed: int = 0
    timed_out: int = 0
    primary_successes: int = 0
    secondary_successes: int = 0
    speakers_found: int = 0
    stopped_early: bool = False


@dataclass
class ExtractionOutcome:
    """Events in input URL order, counters and recovered errors."""

    events: list[ExtractedEvent] = field(default_factory=list)
    stats: ExtractionStats = field(default_factory=ExtractionStats)
    errors: list[StageError] = field(default_factory=list)


@dataclass
class _UrlResult:
    event: ExtractedEvent
    source: str
    errors: list[StageError]
    timed_out: bool = False


class ExtractionEngine:
    """Runs the extractor chain over a batch of URLs.

    Parameters
    ----------
    primary:
        Model-backed extractor; may be ``None`` when no model is configured.
    secondary:
        Model-free fallback extractor; may be ``None`` in tests.
    """

    def __init__(
        self,
        primary: IExtractionProvider | None,
        secondary: IExtractionProvider | None,
    ) -> None:
        self._primary = primary
        self._secondary = secondary

    async def extract_with_fallbacks(
        self,
        urls: list[str],
        request: SearchRequest,
        candidates: dict[str, CandidateItem] | None = None,
        remaining_seconds: float | None = None,
    ) -> ExtractionOutcome:
        """Extract events for up to ``limits.max_extractions`` of *urls*.

        Parameters
        ----------
        urls:
            Prioritized URLs, best first.
        request:
            Supplies limits, per-call timeout and thresholds.
        candidates:
            ``{url: candidate}`` used to build stub events.
        remaining_seconds:
            Time left on the run deadline; caps the stage deadline.
        """
        candidates = candidates or {}
        batch = list(dict.fromkeys(url for url in urls if url))[: request.limits.max_extractions]
        outcome = ExtractionOutcome()
        outcome.stats.attempted = len(batch)
        if not batch:
            return outcome

        semaphore = asyncio.Semaphore(request.limits.extraction_concurrency)
        stage_timeout = request.timeouts.extraction_stage
        if remaining_seconds is not None:
            stage_timeout = min(stage_timeout, max(remaining_seconds, 0.0))

        confident_target = request.limits.early_termination
        confidence_cutoff = request.thresholds.confidence

        def _enough(done: dict) -> bool:
            confident = sum(
                1
                for value in done.values()
                if isinstance(value, _UrlResult)
                and value.event.success
                and value.event.confidence >= confidence_cutoff
            )
            return confident >= confident_target

        collected = await collect_within(
            {
                url: self._extract_one(url, request, candidates.get(url), semaphore)
                for url in batch
            },
            timeout=stage_timeout,
            stop_when=_enough if confident_target > 0 else None,
        )
        outcome.stats.stopped_early = collected.stopped_early

        for url in batch:
            value = collected.results.get(url)
            if isinstance(value, _UrlResult):
                self._tally(outcome, value)
                continue
            if value is None and collected.stopped_early:
                # Enough confident events already; skipped URLs are not stubbed.
                continue
            if value is None:
                error = StageError(
                    kind=ErrorKind.EXTRACTION_TIMEOUT,
                    message=f"cancelled at stage deadline of {stage_timeout:.1f}s",
                    source=url,
                )
                timed_out = True
            else:
                error = StageError(kind=ErrorKind.STAGE_FAILURE, message=str(value), source=url)
                timed_out = False
            self._tally(
                outcome,
                _UrlResult(
                    event=stub_event(url, candidates.get(url), error=error.message),
                    source=_STUB,
                    errors=[error],
                    timed_out=timed_out,
                ),
            )

        logger.info(
            "extraction_complete",
            attempted=outcome.stats.attempted,
            successful=outcome.stats.successful,
            primary=outcome.stats.primary_successes,
            secondary=outcome.stats.secondary_successes,
            timed_out=outcome.stats.timed_out,
            stopped_early=outcome.stats.stopped_early,
        )
        return outcome

    # ------------------------------------------------------------------
    # Per-URL chain
    # ------------------------------------------------------------------

    async def _extract_one(
        self,
        url: str,
        request: SearchRequest,
        candidate: CandidateItem | None,
        semaphore: asyncio.Semaphore,
    ) -> _UrlResult:
        errors: list[StageError] = []
        timed_out = False
        async with semaphore:
            for source, extractor in ((_PRIMARY, self._primary), (_SECONDARY, self._secondary)):
                if extractor is None or not extractor.is_available():
                    continue
                name = extractor.get_provider_name()
                try:
                    event = await asyncio.wait_for(extractor.extract(url), request.timeouts.parsing)
                except asyncio.TimeoutError:
                    timed_out = True
                    errors.append(
                        StageError(
                            kind=ErrorKind.EXTRACTION_TIMEOUT,
                            message=f"{name} gave no answer within {request.timeouts.parsing:.1f}s",
                            source=url,
                        )
                    )
                    continue
                except Exception as exc:  # noqa: BLE001 -- one URL never blocks another
                    errors.append(
                        StageError(
                            kind=ErrorKind.EXTRACTION_PARSE_FAILURE,
                            message=f"{name}: {exc}",
                            source=url,
                        )
                    )
                    continue
                if event is None or not event.success:
                    errors.append(
                        StageError(
                            kind=ErrorKind.EXTRACTION_PARSE_FAILURE,
                            message=f"{name} found no event",
                            source=url,
                        )
                    )
                    continue
                return _UrlResult(
                    event=_finish(event, url, name), source=source, errors=errors, timed_out=timed_out
                )

        last_error = errors[-1].message if errors else "no extractor available"
        return _UrlResult(
            event=stub_event(url, candidate, error=last_error),
            source=_STUB,
            errors=errors,
            timed_out=timed_out,
        )

    @staticmethod
    def _tally(outcome: ExtractionOutcome, result: _UrlResult) -> None:
        stats = outcome.stats
        outcome.events.append(result.event)
        outcome.errors.extend(result.errors)
        if result.timed_out:
            stats.timed_out += 1
        if result.event.success:
            stats.successful += 1
            stats.speakers_found += len(result.event.speakers)
        else:
            stats.failed += 1
        if result.source == _PRIMARY:
            stats.primary_successes += 1
        elif result.source == _SECONDARY:
            stats.secondary_successes += 1


def _finish(event: ExtractedEvent, url: str, extractor_name: str) -> ExtractedEvent:
    speakers = dedupe_speakers(event.speakers)
    finished = event.model_copy(
        update={
            "url": event.url or url,
            "speakers": speakers,
            "extractor": event.extractor or extractor_name,
            "origin": EventOrigin.EXTRACTED,
            "error": None,
        }
    )
    return finished.model_copy(update={"confidence": event_confidence(finished)})
