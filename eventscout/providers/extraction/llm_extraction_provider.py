"""Primary extractor: page text + LLM structured output.

Fetches the page through an :class:`IArticleProvider` (httpx +
trafilatura), trims the readable text, and asks the model for a single JSON
object describing the event.  Model output goes through the lenient JSON
parser, so fenced or slightly broken answers still count.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from eventscout.interfaces.extraction_provider import IExtractionProvider
from eventscout.providers.extraction.event_mapping import build_event
from eventscout.utils.errors import EventScoutError, ExtractionError
from eventscout.utils.llm_json import parse_json_lenient

if TYPE_CHECKING:
    from eventscout.interfaces.article_provider import IArticleProvider
    from eventscout.interfaces.llm_provider import ILLMProvider
    from eventscout.models.event import ExtractedEvent

logger = structlog.get_logger(logger_name=__name__)

_EXTRACTION_SYSTEM_PROMPT = (
    "You extract structured event data from web pages. "
    "Only use facts stated in the page. Answer with one JSON object and nothing else."
)

_EXTRACTION_USER_PROMPT = """\
Page URL: {url}
Page title: {title}

Extract the main event described on this page as JSON:
{{"title": str, "description": str, "starts_at": "YYYY-MM-DD[THH:MM]" | null,
  "ends_at": "YYYY-MM-DD[THH:MM]" | null, "venue": str | null, "city": str | null,
  "country": "ISO-3166 alpha-2" | null,
  "speakers": [{{"name": str, "organization": str | null, "role": str | null}}]}}
If the page does not describe a specific event, return {{"title": null}}.

Page text:
{text}"""


class LLMEventExtractionProvider(IExtractionProvider):
    """Model-backed event extractor.

    Parameters
    ----------
    llm:
        Completion backend.
    article_provider:
        Fetches the page and extracts readable text.
    max_page_chars:
        Page text is cut to this many characters before prompting.
    """

    def __init__(
        self,
        llm: ILLMProvider,
        article_provider: IArticleProvider,
        max_page_chars: int = 6000,
        temperature: float = 0.0,
        max_tokens: int = 1500,
    ) -> None:
        self._llm = llm
        self._articles = article_provider
        self._max_page_chars = max_page_chars
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def extract(self, url: str) -> ExtractedEvent | None:
        content = await self._articles.extract_content(url)
        if content is None:
            return None

        try:
            raw = await self._llm.complete(
                system_prompt=_EXTRACTION_SYSTEM_PROMPT,
                user_prompt=_EXTRACTION_USER_PROMPT.format(
                    url=url,
                    title=content.title or "-",
                    text=content.text[: self._max_page_chars],
                ),
                temperature=self._temperature,
                max_tokens=self._max_tokens,
            )
        except EventScoutError as exc:
            raise ExtractionError(
                message=f"Extraction model call failed: {exc.message}",
                provider_name=self.get_provider_name(),
            ) from exc

        try:
            data, repaired = parse_json_lenient(raw)
        except ValueError as exc:
            raise ExtractionError(
                message=f"Unparseable extraction output for {url}",
                provider_name=self.get_provider_name(),
            ) from exc
        if isinstance(data, list):
            data = next((entry for entry in data if isinstance(entry, dict)), None)
        if not isinstance(data, dict):
            raise ExtractionError(
                message=f"Extraction output for {url} is not an object",
                provider_name=self.get_provider_name(),
            )

        event = build_event(url, data, extractor=self.get_provider_name())
        logger.debug(
            "llm_extraction_complete",
            url=url,
            success=event.success,
            repaired=repaired,
            speakers=len(event.speakers),
        )
        return event

    def get_provider_name(self) -> str:
        return f"llm:{self._llm.get_provider_name()}"

    def is_available(self) -> bool:
        return self._llm.is_available()
