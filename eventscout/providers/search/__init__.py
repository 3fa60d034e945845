"""Web-search provider implementations.

Only DuckDuckGo (free, no API key) for now.  A paid engine would implement
IWebSearchProvider and be injected in main.py without touching discovery.
"""

from eventscout.providers.search.duckduckgo_provider import DuckDuckGoSearchProvider

__all__ = ["DuckDuckGoSearchProvider"]
