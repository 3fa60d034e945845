"""LLM-backed candidate ranking.

Sends the numbered candidate list to an :class:`ILLMProvider` and returns
the model's answer *unparsed*.  The prioritization engine owns parsing,
repair, clamping and thresholds, so this adapter stays a thin prompt
wrapper.

Expected answer shape (the model is asked for exactly this)::

    [{"index": 0, "score": 0.92, "reason": "conference page, Berlin, in window"}, ...]
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from eventscout.interfaces.ranking_provider import IRankingProvider, RankedOutput, RankingContext
from eventscout.utils.errors import EventScoutError, RankingError

if TYPE_CHECKING:
    from eventscout.interfaces.llm_provider import ILLMProvider
    from eventscout.models.candidate import CandidateItem

logger = structlog.get_logger(logger_name=__name__)

_RANKING_SYSTEM_PROMPT = (
    "You rank web search results for an event discovery tool. "
    "You answer with JSON only, no prose."
)

# {candidates} is a numbered block; indexes in the answer refer to it.
_RANKING_USER_PROMPT = """\
Search: "{query}"
User country: {country}
Date window: {date_from} to {date_to}

Score each candidate from 0.0 to 1.0 for how likely it is a page about a
specific event (conference, seminar, workshop, summit ...) that matches the
search, takes place in or near the user country and falls in the window.
Listing pages of an event calendar score lower than a single event page.

Return a JSON array: [{{"index": <int>, "score": <float>, "reason": "<short>"}}]
Omit candidates that are clearly not events.

Candidates:
{candidates}"""

_SNIPPET_CHARS = 240


class LLMRankingProvider(IRankingProvider):
    """Ranking provider that delegates scoring to an LLM.

    Parameters
    ----------
    llm:
        The completion backend.
    max_candidates_in_prompt:
        Candidates beyond this index are not sent (and thus not ranked by
        the model).
    temperature, max_tokens:
        Passed through to :meth:`ILLMProvider.complete`.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        max_candidates_in_prompt: int = 50,
        temperature: float = 0.0,
        max_tokens: int = 2000,
    ) -> None:
        self._llm = llm
        self._max_candidates = max_candidates_in_prompt
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def rank(
        self,
        candidates: list[CandidateItem],
        context: RankingContext,
    ) -> RankedOutput:
        user_prompt = _RANKING_USER_PROMPT.format(
            query=context.query,
            country=context.country,
            date_from=context.date_from.isoformat(),
            date_to=context.date_to.isoformat(),
            candidates=_format_candidates(candidates[: self._max_candidates]),
        )
        try:
            raw = await self._llm.complete(
                system_prompt=_RANKING_SYSTEM_PROMPT,
                user_prompt=user_prompt,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except EventScoutError as exc:
            raise RankingError(
                message=f"Ranking model call failed: {exc.message}",
                provider_name=self.get_provider_name(),
                retryable=exc.retryable,
            ) from exc

        logger.debug("ranking_model_answered", candidates=len(candidates), chars=len(raw))
        return RankedOutput(raw=raw, provider=self.get_provider_name())

    def get_provider_name(self) -> str:
        return f"llm-ranker:{self._llm.get_provider_name()}"

    def is_available(self) -> bool:
        return self._llm.is_available()


def _format_candidates(candidates: list[CandidateItem]) -> str:
    lines = []
    for index, item in enumerate(candidates):
        label = item.title or item.name or "(untitled)"
        snippet = (item.snippet or "")[:_SNIPPET_CHARS]
        lines.append(f"[{index}] {label}\n    url: {item.url or '-'}\n    {snippet}")
    return "\n".join(lines)
