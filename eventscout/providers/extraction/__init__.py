"""Event extractors (implementations of IExtractionProvider).

    - LLMEventExtractionProvider        -- primary: page text + LLM JSON
    - StructuredDataExtractionProvider  -- secondary: JSON-LD / OpenGraph
"""

from eventscout.providers.extraction.llm_extraction_provider import LLMEventExtractionProvider
from eventscout.providers.extraction.structured_data_provider import (
    StructuredDataExtractionProvider,
    parse_event_html,
)

__all__ = [
    "LLMEventExtractionProvider",
    "StructuredDataExtractionProvider",
    "parse_event_html",
]
