"""Abstract base class for page-content providers.

The primary extractor needs the readable text of an event page before it
can ask a model to structure it.  Fetching and boilerplate removal sit
behind this contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class ArticleContent:
    """Readable content extracted from one page.

    Attributes
    ----------
    title:
        Page title or headline.
    text:
        Main body text with markup stripped.
    date:
        Publication date if the page exposes one.
    url:
        The source URL.
    html:
        Raw HTML as fetched.  Kept so structured-data parsing can reuse the
        download instead of fetching the page twice.
    """

    title: str
    text: str
    date: date | None = None
    url: str = ""
    html: str = ""


class IArticleProvider(ABC):
    """Contract for services that fetch a URL and extract readable text."""

    @abstractmethod
    async def extract_content(self, url: str) -> ArticleContent | None:
        """Fetch *url* and extract its readable content.

        Returns ``None`` when the page has no usable text.

        Raises
        ------
        eventscout.utils.errors.ExtractionError
            If the HTTP request fails.
        """

    @abstractmethod
    async def fetch_html(self, url: str) -> str:
        """Fetch *url* and return the raw HTML.

        Raises
        ------
        eventscout.utils.errors.ExtractionError
            If the HTTP request fails or returns a non-2xx status.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a short identifier, e.g. ``"trafilatura"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider's dependencies are usable."""
