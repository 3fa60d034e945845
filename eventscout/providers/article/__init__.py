"""Page-content providers.

WebScraperProvider fetches event pages (httpx) and extracts their readable
text (trafilatura).  Both extractors reuse it for fetching.
"""

from eventscout.providers.article.web_scraper_provider import WebScraperProvider, build_http_client

__all__ = ["WebScraperProvider", "build_http_client"]
