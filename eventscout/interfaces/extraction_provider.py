"""Abstract base class for event extractors.

An extractor turns one URL into an :class:`ExtractedEvent`.  The extraction
engine runs a *primary* extractor (model-backed) and falls back to a
*secondary* one (structured data in the HTML) when the primary times out,
raises or returns nothing useful.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from eventscout.models.event import ExtractedEvent


# Concrete implementations (eventscout/providers/extraction/):
#   LLMEventExtractionProvider (primary), StructuredDataExtractionProvider (secondary)
class IExtractionProvider(ABC):
    """Contract for URL → event extraction."""

    @abstractmethod
    async def extract(self, url: str) -> ExtractedEvent | None:
        """Extract event data from the page at *url*.

        Returns
        -------
        ExtractedEvent or None
            ``None`` (or an event with ``success=False``) means "nothing
            usable here"; the engine then tries the next extractor.

        Raises
        ------
        eventscout.utils.errors.ExtractionError
            On fetch or parse failure.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"structured-data"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the extractor can run (model configured etc.)."""
