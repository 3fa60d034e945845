"""Concurrent discovery across tiers with per-call and per-stage deadlines.

Tiers are queried in parallel but merged in *priority* order (curated →
search → crawl), never in completion order, so a fast low-priority tier
cannot push a curated hit out of the candidate budget.  A failing or slow
tier is recorded and ignored; it never aborts its siblings.

Retryable tier failures (rate limits, 5xx) are repeated inside the per-call
timeout; the attempt count lands in the tier's :class:`QueryRecord`.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field

import structlog

from eventscout.interfaces.discovery_provider import IDiscoveryProvider, SearchConstraints
from eventscout.models.candidate import CandidateItem
from eventscout.models.result import ErrorKind, QueryRecord, StageError
from eventscout.models.search import SearchRequest
from eventscout.services.query_builder import shape_query
from eventscout.utils.concurrency import collect_within
from eventscout.utils.retry import AttemptCounter, call_with_retries

logger = structlog.get_logger(logger_name=__name__)

CURATED_TIER = "curated"


@dataclass(frozen=True)
class DiscoveryTier:
    """One discovery source in the priority list.

    Attributes
    ----------
    name:
        Stamped on every candidate as ``CandidateItem.tier``.
    provider:
        The adapter answering for this tier.
    weight:
        Source-tier weight used by the heuristic ranker, in [0, 1].
    shape_query:
        Bias the query towards country/year (and TLD) before sending.
        Off for tiers that match on the raw query.
    """

    name: str
    provider: IDiscoveryProvider
    weight: float = 1.0
    shape_query: bool = True


@dataclass
class TierExecutionResult:
    """Merged output of one discovery fan-out."""

    candidates: list[CandidateItem] = field(default_factory=list)
    reports: list[QueryRecord] = field(default_factory=list)
    errors: list[StageError] = field(default_factory=list)
    issues: list[str] = field(default_factory=list)
    tiers_executed: list[str] = field(default_factory=list)
    exhausted: bool = False


@dataclass
class _TierAttempt:
    items: list[CandidateItem]
    duration_ms: float
    error: BaseException | None = None


class TierExecutor:
    """Fan out one request to every enabled tier.

    Parameters
    ----------
    tiers:
        Tiers in priority order.
    stage_grace_seconds:
        Added to the per-call discovery timeout to form the stage deadline,
        so a call that times out right at its limit is still collected.
    results_per_tier:
        Upper bound requested from (and kept per) tier.
    prefer_tld:
        Apply the soft country-TLD preference to shaped queries.
    """

    def __init__(
        self,
        tiers: list[DiscoveryTier],
        stage_grace_seconds: float = 2.0,
        results_per_tier: int = 20,
        prefer_tld: bool = False,
    ) -> None:
        self._tiers = list(tiers)
        self._grace = stage_grace_seconds
        self._results_per_tier = results_per_tier
        self._prefer_tld = prefer_tld

    @property
    def tiers(self) -> list[DiscoveryTier]:
        return list(self._tiers)

    def tier_weights(self) -> dict[str, float]:
        return {tier.name: tier.weight for tier in self._tiers}

    async def execute_all_tiers(
        self,
        request: SearchRequest,
        remaining_seconds: float | None = None,
    ) -> TierExecutionResult:
        """Query every enabled tier concurrently and merge in priority order.

        Parameters
        ----------
        request:
            The (possibly widened) search request.
        remaining_seconds:
            Time left on the run deadline; caps the stage deadline.
        """
        result = TierExecutionResult()
        constraints = SearchConstraints(
            country=request.country,
            date_from=request.date_from,
            date_to=request.date_to,
            locale=request.locale,
            max_results=self._results_per_tier,
            prefer_tld=self._prefer_tld,
        )

        active: list[tuple[DiscoveryTier, str]] = []
        for tier in self._tiers:
            if tier.name == CURATED_TIER and not request.flags.enable_curated_tier:
                continue
            query = shape_query(request.query, constraints) if tier.shape_query else request.query
            if not tier.provider.is_available():
                result.reports.append(
                    QueryRecord(
                        tier=tier.name,
                        query=query,
                        length=len(query),
                        attempts=0,
                        error="unavailable",
                    )
                )
                continue
            active.append((tier, query))

        per_call = request.timeouts.discovery
        stage_timeout = per_call + self._grace
        if remaining_seconds is not None:
            stage_timeout = min(stage_timeout, max(remaining_seconds, 0.0))

        counters = {tier.name: AttemptCounter() for tier, _ in active}
        collected = await collect_within(
            {
                tier.name: self._run_tier(tier, query, constraints, request, counters[tier.name])
                for tier, query in active
            },
            timeout=stage_timeout,
        )

        merged: list[CandidateItem] = []
        for tier, query in active:
            attempt = collected.results.get(tier.name)
            if attempt is None:
                self._record_failure(
                    result, tier.name, query, ErrorKind.TIER_TIMEOUT,
                    f"stage deadline of {stage_timeout:.1f}s reached",
                    duration_ms=stage_timeout * 1000,
                    attempts=counters[tier.name].count,
                )
                continue
            if attempt.error is not None:
                kind = (
                    ErrorKind.TIER_TIMEOUT
                    if isinstance(attempt.error, asyncio.TimeoutError)
                    else ErrorKind.TIER_ERROR
                )
                message = (
                    f"no answer within {per_call:.1f}s"
                    if kind is ErrorKind.TIER_TIMEOUT
                    else str(attempt.error) or type(attempt.error).__name__
                )
                self._record_failure(
                    result, tier.name, query, kind, message, attempt.duration_ms,
                    attempts=counters[tier.name].count,
                )
                continue

            items = [
                item.model_copy(update={"tier": tier.name, "source_query": query})
                for item in attempt.items[: self._results_per_tier]
            ]
            result.tiers_executed.append(tier.name)
            result.reports.append(
                QueryRecord(
                    tier=tier.name,
                    query=query,
                    length=len(query),
                    results=len(items),
                    duration_ms=round(attempt.duration_ms, 2),
                    attempts=counters[tier.name].count,
                )
            )
            merged.extend(items)

        result.candidates = merged[: request.limits.max_candidates]
        result.exhausted = not result.candidates
        logger.info(
            "discovery_complete",
            tiers=len(active),
            tiers_ok=len(result.tiers_executed),
            candidates=len(result.candidates),
            truncated=len(merged) - len(result.candidates),
            errors=len(result.errors),
        )
        return result

    @staticmethod
    async def _run_tier(
        tier: DiscoveryTier,
        query: str,
        constraints: SearchConstraints,
        request: SearchRequest,
        counter: AttemptCounter,
    ) -> _TierAttempt:
        start = time.perf_counter()
        calls = call_with_retries(
            lambda: tier.provider.search(query, constraints),
            max_attempts=request.limits.max_attempts,
            backoff=request.timeouts.retry_backoff,
            counter=counter,
        )
        try:
            items = await asyncio.wait_for(calls, request.timeouts.discovery)
        except asyncio.TimeoutError as exc:
            return _TierAttempt([], (time.perf_counter() - start) * 1000, exc)
        except Exception as exc:  # noqa: BLE001 -- tier isolation
            return _TierAttempt([], (time.perf_counter() - start) * 1000, exc)
        return _TierAttempt(list(items or []), (time.perf_counter() - start) * 1000)

    @staticmethod
    def _record_failure(
        result: TierExecutionResult,
        tier_name: str,
        query: str,
        kind: ErrorKind,
        message: str,
        duration_ms: float,
        attempts: int = 1,
    ) -> None:
        logger.warning("tier_failed", tier=tier_name, kind=kind.value, error=message)
        result.errors.append(StageError(kind=kind, message=message, source=tier_name))
        result.issues.append(f"Tier '{tier_name}' failed ({kind.value}): {message}")
        result.reports.append(
            QueryRecord(
                tier=tier_name,
                query=query,
                length=len(query),
                duration_ms=round(duration_ms, 2),
                attempts=attempts,
                error=f"{kind.value}: {message}",
            )
        )
