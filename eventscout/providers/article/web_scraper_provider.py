"""Page-content provider using httpx and trafilatura.

Fetches event pages over a shared ``httpx.AsyncClient`` and extracts the
main text with trafilatura, dropping navigation, cookie banners and other
boilerplate before the text is handed to a model.  The raw HTML rides
along in :class:`ArticleContent` for structured-data parsing.
"""

from __future__ import annotations

import json
from datetime import date, datetime

import httpx
import structlog
import trafilatura

from eventscout.interfaces.article_provider import ArticleContent, IArticleProvider
from eventscout.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 10.0
_DEFAULT_HEADERS = {
    "User-Agent": "Mozilla/5.0 (compatible; eventScout/0.1)",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "de-DE,de;q=0.9,en;q=0.8",
}


def build_http_client(timeout: float = _DEFAULT_TIMEOUT) -> httpx.AsyncClient:
    """Create the shared client used by scraping and crawl providers."""
    return httpx.AsyncClient(
        timeout=httpx.Timeout(timeout),
        headers=_DEFAULT_HEADERS,
        follow_redirects=True,
    )


class WebScraperProvider(IArticleProvider):
    """Page fetching + readable-text extraction backed by httpx + trafilatura."""

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._client = http_client or build_http_client()

    # ------------------------------------------------------------------
    # IArticleProvider implementation
    # ------------------------------------------------------------------

    async def fetch_html(self, url: str) -> str:
        try:
            response = await self._client.get(url)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise ExtractionError(
                message=f"Timeout fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise ExtractionError(
                message=f"HTTP {exc.response.status_code} for {url}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ExtractionError(
                message=f"HTTP error fetching {url}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        return response.text

    async def extract_content(self, url: str) -> ArticleContent | None:
        html = await self.fetch_html(url)
        text = trafilatura.extract(html, include_comments=False, include_tables=True)
        if not text:
            logger.warning("trafilatura_extraction_empty", url=url)
            return None

        title, pub_date = _metadata(html, url)
        logger.debug("page_text_extracted", url=url, title=title, text_length=len(text))
        return ArticleContent(title=title, text=text, date=pub_date, url=url, html=html)

    def is_available(self) -> bool:
        return True

    def get_provider_name(self) -> str:
        return "web_scraper"


def _metadata(html: str, url: str) -> tuple[str, date | None]:
    raw = trafilatura.extract(
        html, include_comments=False, output_format="json", with_metadata=True
    )
    if not raw:
        return "", None
    try:
        meta = json.loads(raw)
        title = meta.get("title") or ""
        raw_date = meta.get("date")
        pub_date = datetime.strptime(raw_date, "%Y-%m-%d").date() if raw_date else None
    except (json.JSONDecodeError, ValueError, TypeError):
        logger.debug("metadata_parse_failed", url=url)
        return "", None
    return title, pub_date
