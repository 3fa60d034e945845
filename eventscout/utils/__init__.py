"""Utility modules for eventScout.

- **confidence** -- score clamping, weighted confidence and display levels.
- **errors** -- exception hierarchy rooted at EventScoutError; adapters raise
  these and pipeline stages turn them into recorded stage errors.
- **concurrency** -- the deadline-bounded ``collect_within`` fan-out used by
  the tier and extraction stages.
- **llm_json** -- strict and lenient (json-repair) parsing of model output.
- **logging** -- structlog setup (console in development, JSON in
  production) and per-run ``search_id`` context binding.
- **retry** -- tenacity backoff for provider calls that fail transiently.
- **text_normalizer** -- tokens, similarity, name/organisation keys, dates.
"""

from eventscout.utils.concurrency import collect_within
from eventscout.utils.confidence import (
    ConfidenceLevel,
    calculate_confidence,
    clamp_score,
    confidence_to_level,
    populated_confidence,
)
from eventscout.utils.errors import (
    ConfigurationError,
    DiscoveryError,
    EventScoutError,
    ExtractionError,
    InvalidSearchRequestError,
    LLMError,
    ProviderUnavailableError,
    RankingError,
    RankingOutputError,
    RateLimitError,
)
from eventscout.utils.llm_json import parse_json_lenient, parse_json_strict
from eventscout.utils.logging import bind_search_context, configure_logging, get_logger
from eventscout.utils.retry import AttemptCounter, call_with_retries, is_retryable

__all__ = [
    "AttemptCounter",
    "ConfidenceLevel",
    "ConfigurationError",
    "DiscoveryError",
    "EventScoutError",
    "ExtractionError",
    "InvalidSearchRequestError",
    "LLMError",
    "ProviderUnavailableError",
    "RankingError",
    "RankingOutputError",
    "RateLimitError",
    "bind_search_context",
    "calculate_confidence",
    "call_with_retries",
    "clamp_score",
    "collect_within",
    "configure_logging",
    "confidence_to_level",
    "get_logger",
    "is_retryable",
    "parse_json_lenient",
    "parse_json_strict",
    "populated_confidence",
]
