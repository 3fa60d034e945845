"""Exception types raised by eventScout adapters and the search pipeline.

Adapters raise these; each pipeline stage catches them at its boundary and
records a :class:`~eventscout.models.result.StageError`, so a run never
aborts because one provider misbehaved.  :class:`InvalidSearchRequestError`
is the exception: it rejects a request before any stage starts.

    EventScoutError
    +-- DiscoveryError
    +-- RankingError
    |   +-- RankingOutputError
    +-- ExtractionError
    +-- LLMError
    +-- RateLimitError
    +-- ProviderUnavailableError
    +-- ConfigurationError
    +-- InvalidSearchRequestError
"""


class EventScoutError(Exception):
    """Root of the hierarchy.

    ``provider_name`` names the adapter at fault ("duckduckgo",
    "structured_data", ...) and is shown in brackets by ``str()`` so log
    lines read like ``[duckduckgo] Rate limit exceeded``.

    ``retryable`` marks failures worth a second try, such as throttling or a
    5xx answer; ``utils.retry`` repeats only those.
    """

    default_message = "Event search failed"
    default_retryable = False

    def __init__(
        self,
        message: str | None = None,
        provider_name: str | None = None,
        *,
        retryable: bool | None = None,
    ) -> None:
        self._message = message or self.default_message
        self._provider_name = provider_name
        self.retryable = self.default_retryable if retryable is None else retryable
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if not self._provider_name:
            return self._message
        return f"[{self._provider_name}] {self._message}"


class DiscoveryError(EventScoutError):
    """A discovery tier (web search, crawler, curated list) failed."""

    default_message = "Discovery tier failed"


class RankingError(EventScoutError):
    default_message = "Ranking provider failed"


class RankingOutputError(RankingError):
    """Ranking output stayed unusable after the repair pass."""

    default_message = "Ranking output is malformed"
    default_retryable = True


class ExtractionError(EventScoutError):
    """An event page could not be fetched or parsed."""

    default_message = "Event extraction failed"


class ProviderUnavailableError(EventScoutError):
    default_message = "Provider is unavailable"


class RateLimitError(EventScoutError):
    """The remote API answered with a rate-limit response."""

    default_message = "Rate limit exceeded"
    default_retryable = True


class LLMError(EventScoutError):
    """An LLM call failed or came back without text."""

    default_message = "LLM call failed"


class ConfigurationError(EventScoutError):
    default_message = "Invalid or missing configuration"


class InvalidSearchRequestError(EventScoutError):
    """A search request failed validation.

    Raised before the orchestrator starts, so no trace exists for it.
    """

    default_message = "Malformed search request"
