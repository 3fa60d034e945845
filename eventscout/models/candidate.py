"""Candidate models produced by discovery and consumed by ranking.

One structural type covers every discovery source: pages found by the
search engine or crawler carry a ``url``; person-like candidates (speaker
profiles from curated sources) may carry only ``name`` + ``organization``.
Optional fields are explicit so the core never probes for attributes.
"""

from __future__ import annotations

from datetime import date
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_MODEL_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class CandidateKind(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """What a candidate points at."""

    PAGE = "page"          # an event page or listing
    PROFILE = "profile"    # a person/organisation (speaker-like)


class CandidateItem(BaseModel):
    """One raw discovery hit.

    ``url`` is the deduplication key.  It may be empty only for
    ``PROFILE`` candidates, which then dedupe on name + organization.
    """

    model_config = _MODEL_CONFIG

    url: str = ""
    title: str = ""
    snippet: str = ""
    # Name of the tier that produced the item (stamped by the tier executor).
    tier: str = ""
    # Query string the tier actually sent.
    source_query: str = ""
    kind: CandidateKind = CandidateKind.PAGE
    name: str | None = None
    organization: str | None = None
    # Publication/last-modified date, when the source reports one.
    published: date | None = None


class PrioritizedItem(BaseModel):
    """A candidate with its ranking score and the reasons behind it."""

    model_config = _MODEL_CONFIG

    candidate: CandidateItem
    score: float = Field(ge=0.0, le=1.0)
    reasons: list[str] = Field(default_factory=list)
    # Position in the deduplicated discovery order; breaks score ties.
    discovery_index: int = Field(default=0, ge=0)

    @property
    def url(self) -> str:
        return self.candidate.url


class ScoredUrl(BaseModel):
    """A url/score pair kept for diagnostics (e.g. dropped below threshold)."""

    model_config = _MODEL_CONFIG

    url: str
    score: float = Field(ge=0.0, le=1.0)
