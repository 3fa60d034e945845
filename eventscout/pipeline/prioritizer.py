"""Candidate prioritization: model ranking with a heuristic fallback.

Strategy chain
--------------
1. :class:`ModelRankingStrategy` asks an :class:`IRankingProvider` to score
   the candidates.  Its raw answer is parsed strictly, then leniently
   (``utils/llm_json``).  It is skipped (``bypassed``) when the flag
   says so or no model is configured, and abandoned for the heuristic on
   timeout, provider error or unrepairable output.
2. :class:`HeuristicRankingStrategy` scores every candidate from textual
   and source signals.  It cannot fail, which is what makes it the
   fallback.

A syntactically valid *empty* model ranking is an answer, not an error:
it is not retried here, and the empty result goes back to the
orchestrator, which decides on a rescue.

Scores are clamped to [0, 1]; ties keep discovery order; anything below
``thresholds.prioritization`` is dropped but reported in
``stats.below_threshold``.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any

import structlog

from eventscout.config.domain_knowledge import (
    EVENT_KEYWORDS,
    EVENT_URL_HINTS,
    LEGAL_KEYWORDS,
    SPAM_INDICATORS,
    TRUSTED_EVENT_DOMAINS,
    has_date_segment,
)
from eventscout.interfaces.ranking_provider import IRankingProvider, RankingContext
from eventscout.models.candidate import CandidateItem, PrioritizedItem, ScoredUrl
from eventscout.models.result import ErrorKind, StageError
from eventscout.models.search import SearchRequest
from eventscout.utils.confidence import clamp_score
from eventscout.utils.errors import RankingOutputError
from eventscout.utils.llm_json import parse_json_lenient
from eventscout.utils.retry import AttemptCounter, call_with_retries
from eventscout.utils.text_normalizer import host_of, similarity, token_overlap, tokenize

logger = structlog.get_logger(logger_name=__name__)

STRATEGY_MODEL = "model"
STRATEGY_HEURISTIC = "heuristic"

# Tier weight for tiers the config does not mention.
_DEFAULT_TIER_WEIGHT = 0.8
# Keys under which models sometimes nest the ranking array.
_WRAPPER_KEYS = ("rankings", "ranking", "results", "items", "candidates")


@dataclass
class PrioritizationStats:
    total: int = 0
    prioritized: int = 0
    reasons: list[str] = field(default_factory=list)
    below_threshold: list[ScoredUrl] = field(default_factory=list)


@dataclass
class PrioritizationResult:
    """Outcome of :meth:`PrioritizationEngine.prioritize`."""

    prioritized: list[PrioritizedItem] = field(default_factory=list)
    stats: PrioritizationStats = field(default_factory=PrioritizationStats)
    bypassed: bool = False
    repair_used: bool = False
    strategy: str = STRATEGY_HEURISTIC
    model: str | None = None
    errors: list[StageError] = field(default_factory=list)
    model_attempts: int = 0

    @property
    def prioritized_urls(self) -> list[str]:
        return [item.url for item in self.prioritized if item.url]


# ---------------------------------------------------------------------------
# Model strategy
# ---------------------------------------------------------------------------

@dataclass
class ModelRanking:
    """Parsed model answer: one entry per candidate the model scored."""

    scores: dict[int, tuple[float, str]]
    repair_used: bool
    model: str


class ModelRankingStrategy:
    """Wraps an :class:`IRankingProvider` and validates what it returns."""

    def __init__(self, provider: IRankingProvider | None) -> None:
        self._provider = provider

    @property
    def model_name(self) -> str | None:
        return self._provider.get_provider_name() if self._provider else None

    def is_available(self) -> bool:
        return self._provider is not None and self._provider.is_available()

    async def rank(
        self,
        candidates: list[CandidateItem],
        request: SearchRequest,
        timeout: float | None = None,
        counter: AttemptCounter | None = None,
    ) -> ModelRanking:
        """Score *candidates* with the model.

        Retryable failures, unparseable answers included, are repeated up to
        ``limits.max_attempts`` times in total, all within *timeout*
        (``timeouts.prioritization`` by default).

        Raises
        ------
        asyncio.TimeoutError
            When no attempt succeeds within *timeout*.
        RankingError
            When the provider call fails.
        RankingOutputError
            When the answer cannot be parsed even after repair.
        """
        assert self._provider is not None
        context = RankingContext(
            query=request.query,
            country=request.country,
            date_from=request.date_from,
            date_to=request.date_to,
            locale=request.locale,
        )
        provider = self._provider

        async def _ask() -> ModelRanking:
            output = await provider.rank(candidates, context)
            try:
                data, repaired = parse_json_lenient(output.raw)
            except ValueError as exc:
                raise RankingOutputError(
                    message=f"Ranking output is not JSON: {exc}", provider_name=output.provider
                ) from exc
            scores = _parse_ranking(data, candidates)
            return ModelRanking(scores=scores, repair_used=repaired, model=output.provider)

        return await asyncio.wait_for(
            call_with_retries(
                _ask,
                max_attempts=request.limits.max_attempts,
                backoff=request.timeouts.retry_backoff,
                counter=counter,
            ),
            request.timeouts.prioritization if timeout is None else timeout,
        )


def _parse_ranking(data: Any, candidates: list[CandidateItem]) -> dict[int, tuple[float, str]]:
    """Map a decoded answer to ``{candidate index: (score, reason)}``.

    Entries may reference candidates by ``index`` or by ``url``.  Entries
    with an unknown reference or a non-numeric score are skipped; an answer
    that is not an array (or wraps none) raises :class:`RankingOutputError`,
    as does a non-empty array in which no entry is usable.
    """
    if isinstance(data, dict):
        data = next((data[key] for key in _WRAPPER_KEYS if isinstance(data.get(key), list)), None)
    if not isinstance(data, list):
        raise RankingOutputError(message="Ranking output is not an array")

    by_url = {item.url: index for index, item in enumerate(candidates) if item.url}
    scores: dict[int, tuple[float, str]] = {}
    for entry in data:
        if not isinstance(entry, dict):
            continue
        index = _entry_index(entry, by_url, len(candidates))
        score = clamp_score(entry.get("score"))
        if index is None or score is None or index in scores:
            continue
        scores[index] = (score, str(entry.get("reason") or "model ranking"))

    if data and not scores:
        raise RankingOutputError(message="Ranking output has no usable entries")
    return scores


def _entry_index(entry: dict, by_url: dict[str, int], size: int) -> int | None:
    raw_index = entry.get("index", entry.get("id"))
    if isinstance(raw_index, bool):
        return None
    if isinstance(raw_index, (int, float)) and float(raw_index).is_integer():
        index = int(raw_index)
        return index if 0 <= index < size else None
    if isinstance(raw_index, str) and raw_index.strip().isdigit():
        index = int(raw_index.strip())
        return index if index < size else None
    url = entry.get("url")
    if isinstance(url, str):
        return by_url.get(url)
    return None


# ---------------------------------------------------------------------------
# Heuristic strategy
# ---------------------------------------------------------------------------

class HeuristicRankingStrategy:
    """Deterministic scoring from query match, event signals and source quality.

    Signal weights (before clamping and tier weighting)::

        query token overlap      0.35 x share of query tokens found
        fuzzy similarity         0.15 x rapidfuzz token-set ratio
        event keyword            +0.15
        domain (legal) keyword   +0.05
        request year mentioned   +0.10
        date-like URL segment    +0.05
        published inside window  +0.05
        trusted event domain     +0.10
        event-ish URL path       +0.05
        spam marker              -0.10 each (max -0.20)

    The sum is clamped to [0, 1] and scaled by ``0.5 + 0.5 * tier_weight``.
    """

    def __init__(self, tier_weights: dict[str, float] | None = None) -> None:
        self._tier_weights = dict(tier_weights or {})

    def score(self, candidate: CandidateItem, request: SearchRequest) -> tuple[float, list[str]]:
        text = " ".join(
            part for part in (candidate.title, candidate.snippet, candidate.name) if part
        )
        tokens = tokenize(text)
        url = candidate.url or ""
        reasons: list[str] = []

        overlap = token_overlap(request.query, text)
        fuzzy = similarity(request.query, candidate.title or text)
        total = 0.35 * overlap + 0.15 * fuzzy
        if overlap:
            reasons.append(f"query overlap {overlap:.2f}")

        if tokens & EVENT_KEYWORDS:
            total += 0.15
            reasons.append("event keyword")
        if tokens & LEGAL_KEYWORDS:
            total += 0.05
            reasons.append("domain keyword")

        year = str(request.date_from.year)
        if year in text or year in url:
            total += 0.10
            reasons.append(f"mentions {year}")
        if has_date_segment(url):
            total += 0.05
            reasons.append("dated url")
        if candidate.published and request.date_from <= candidate.published <= request.date_to:
            total += 0.05
            reasons.append("published in window")

        host = host_of(url)
        if host and any(host == d or host.endswith(f".{d}") for d in TRUSTED_EVENT_DOMAINS):
            total += 0.10
            reasons.append("trusted domain")
        if any(hint in url.lower() for hint in EVENT_URL_HINTS):
            total += 0.05
            reasons.append("event url")

        spam_hits = len(tokens & SPAM_INDICATORS)
        if spam_hits:
            total -= min(0.10 * spam_hits, 0.20)
            reasons.append("spam marker")

        weight = self._tier_weights.get(candidate.tier, _DEFAULT_TIER_WEIGHT)
        final = clamp_score(total) or 0.0
        final = clamp_score(final * (0.5 + 0.5 * weight)) or 0.0
        return round(final, 4), reasons

    def rank(self, candidates: list[CandidateItem], request: SearchRequest) -> list[PrioritizedItem]:
        """Score every candidate; result is sorted but *not* thresholded."""
        items = []
        for index, candidate in enumerate(candidates):
            score, reasons = self.score(candidate, request)
            items.append(
                PrioritizedItem(
                    candidate=candidate, score=score, reasons=reasons, discovery_index=index
                )
            )
        return _sorted(items)


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class PrioritizationEngine:
    """Runs the strategy chain and applies the threshold."""

    def __init__(
        self,
        model_strategy: ModelRankingStrategy,
        heuristic_strategy: HeuristicRankingStrategy,
    ) -> None:
        self._model = model_strategy
        self._heuristic = heuristic_strategy

    async def prioritize(
        self,
        candidates: list[CandidateItem],
        request: SearchRequest,
        remaining_seconds: float | None = None,
    ) -> PrioritizationResult:
        """Rank *candidates* and keep those at or above the threshold.

        The model gets ``timeouts.prioritization`` or *remaining_seconds*
        (time left on the run deadline), whichever is shorter.
        """
        if not candidates:
            return PrioritizationResult(strategy="none")

        reasons: list[str] = []
        errors: list[StageError] = []
        model_attempts = 0
        if request.flags.bypass_ai_ranking:
            reasons.append("AI ranking bypassed by flag")
        elif not self._model.is_available():
            reasons.append("no ranking model configured")
        else:
            model_name = self._model.model_name
            budget = request.timeouts.prioritization
            if remaining_seconds is not None:
                budget = min(budget, max(remaining_seconds, 0.0))
            counter = AttemptCounter()
            try:
                ranking = await self._model.rank(candidates, request, budget, counter)
            except asyncio.TimeoutError:
                errors.append(
                    StageError(
                        kind=ErrorKind.RANKING_TIMEOUT,
                        message=f"no ranking within {budget:.1f}s",
                        source=model_name,
                    )
                )
            except RankingOutputError as exc:
                errors.append(
                    StageError(
                        kind=ErrorKind.RANKING_MALFORMED_OUTPUT,
                        message=exc.message,
                        source=model_name,
                    )
                )
            except Exception as exc:  # noqa: BLE001 -- any provider failure falls back
                errors.append(
                    StageError(
                        kind=ErrorKind.STAGE_FAILURE,
                        message=str(exc) or type(exc).__name__,
                        source=model_name,
                    )
                )
            else:
                items = [
                    PrioritizedItem(
                        candidate=candidates[index],
                        score=score,
                        reasons=[reason],
                        discovery_index=index,
                    )
                    for index, (score, reason) in ranking.scores.items()
                ]
                result = self._threshold(
                    _sorted(items),
                    request,
                    total=len(candidates),
                    strategy=STRATEGY_MODEL,
                    reasons=[f"ranked by {ranking.model}"]
                    + (["model output repaired"] if ranking.repair_used else []),
                )
                result.model = ranking.model
                result.repair_used = ranking.repair_used
                result.model_attempts = counter.count
                logger.info(
                    "prioritization_complete",
                    strategy=STRATEGY_MODEL,
                    total=len(candidates),
                    kept=len(result.prioritized),
                    repaired=ranking.repair_used,
                    attempts=counter.count,
                )
                return result

            for error in errors:
                logger.warning(
                    "model_ranking_failed",
                    kind=error.kind.value,
                    error=error.message,
                    attempts=counter.count,
                )
            model_attempts = counter.count
            reasons.append(f"model ranking failed ({errors[-1].kind.value})")

        result = self._threshold(
            self._heuristic.rank(candidates, request),
            request,
            total=len(candidates),
            strategy=STRATEGY_HEURISTIC,
            reasons=reasons,
        )
        result.bypassed = True
        result.errors = errors
        result.model_attempts = model_attempts
        logger.info(
            "prioritization_complete",
            strategy=STRATEGY_HEURISTIC,
            total=len(candidates),
            kept=len(result.prioritized),
        )
        return result

    def heuristic_rescue(
        self,
        candidates: list[CandidateItem],
        request: SearchRequest,
    ) -> PrioritizationResult:
        """Heuristic ranking over all candidates, ignoring the threshold.

        Used by the orchestrator when regular prioritization kept nothing.
        """
        ranked = self._heuristic.rank(candidates, request)
        return PrioritizationResult(
            prioritized=ranked,
            stats=PrioritizationStats(
                total=len(candidates),
                prioritized=len(ranked),
                reasons=["heuristic rescue, threshold ignored"],
            ),
            bypassed=True,
            strategy=STRATEGY_HEURISTIC,
        )

    @staticmethod
    def _threshold(
        ranked: list[PrioritizedItem],
        request: SearchRequest,
        total: int,
        strategy: str,
        reasons: list[str],
    ) -> PrioritizationResult:
        cutoff = request.thresholds.prioritization
        kept = [item for item in ranked if item.score >= cutoff]
        dropped = [
            ScoredUrl(url=item.url, score=item.score)
            for item in ranked
            if item.score < cutoff and item.url
        ]
        stats_reasons = list(reasons)
        if dropped:
            stats_reasons.append(f"{len(dropped)} below threshold {cutoff:.2f}")
        return PrioritizationResult(
            prioritized=kept,
            stats=PrioritizationStats(
                total=total,
                prioritized=len(kept),
                reasons=stats_reasons,
                below_threshold=dropped,
            ),
            strategy=strategy,
        )


def _sorted(items: list[PrioritizedItem]) -> list[PrioritizedItem]:
    # sorted() is stable; the explicit secondary key keeps discovery order
    # even when items arrive out of order (model answers often do).
    return sorted(items, key=lambda item: (-item.score, item.discovery_index))
