"""Abstract base class for model-backed candidate ranking.

The prioritization engine owns parsing, repair, clamping and thresholds.
A ranking provider only produces *raw* model output for a list of
candidates, which keeps the malformed-output handling in one place and
lets tests feed arbitrary broken text through the real repair path.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

from eventscout.models.candidate import CandidateItem


@dataclass(frozen=True)
class RankingContext:
    """What the ranker needs to know about the search."""

    query: str
    country: str
    date_from: date
    date_to: date
    locale: str = "en"


@dataclass(frozen=True)
class RankedOutput:
    """Unparsed ranking response.

    Attributes
    ----------
    raw:
        Model text; expected to hold a JSON array of
        ``{"index": int, "score": float, "reason": str}`` objects but may be
        fenced, commented, truncated or otherwise malformed.
    provider:
        Name of the model/provider that produced *raw* (for the trace).
    """

    raw: str
    provider: str


class IRankingProvider(ABC):
    """Contract for AI ranking of discovery candidates."""

    @abstractmethod
    async def rank(
        self,
        candidates: list[CandidateItem],
        context: RankingContext,
    ) -> RankedOutput:
        """Ask the model to score *candidates* for *context*.

        Raises
        ------
        eventscout.utils.errors.RankingError
            If the model call itself fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"llm-ranker:anthropic"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if a backing model is configured."""
