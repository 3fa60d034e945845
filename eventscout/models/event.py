"""Extracted event models.

:class:`ExtractedEvent` is what the extraction engine produces for each
prioritized URL, what the relaxation filter keeps or drops, and what ends up
in ``OrchestratorResult.items``.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from eventscout.config.domain_knowledge import normalize_country

_MODEL_CONFIG = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class EventOrigin(str, Enum):  # noqa: UP042 -- StrEnum requires Python 3.11+
    """Which data path produced an event."""

    EXTRACTED = "extracted"           # primary or secondary extractor parsed the page
    STUB = "stub"                     # both extractors failed; built from candidate data
    WIDENED_RERUN = "widened_rerun"   # last-resort re-run of discovery
    DEMO = "demo"                     # last-resort demo dataset


class Speaker(BaseModel):
    """A speaker listed on an event page."""

    model_config = _MODEL_CONFIG

    name: str | None = None
    organization: str | None = None
    role: str | None = None
    profile_url: str | None = None


class ExtractedEvent(BaseModel):
    """Structured event data parsed from one page.

    ``success`` is ``True`` only when an extractor produced the event from
    page content.  ``confidence`` is derived from how many expected fields
    are populated (see the extraction engine) and is what the quality
    filter compares against ``thresholds.parse_quality``.
    """

    model_config = _MODEL_CONFIG

    # Assigned during finalization as "<search id>-<index>".
    id: str = ""
    url: str
    title: str = ""
    description: str = ""
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    venue: str | None = None
    city: str | None = None
    country: str | None = None
    speakers: list[Speaker] = Field(default_factory=list)
    success: bool = False
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    # Provider name of the extractor, "stub" or the fallback source.
    extractor: str = ""
    origin: EventOrigin = EventOrigin.EXTRACTED
    error: str | None = None

    @field_validator("country", mode="before")
    @classmethod
    def _normalize_country(cls, value: object) -> str | None:
        # Keep unknown spellings as-is; the country filter treats them as
        # "no signal" rather than guessing.
        if not isinstance(value, str) or not value.strip():
            return None
        return normalize_country(value) or value.strip()

    @property
    def undated(self) -> bool:
        return self.starts_at is None
