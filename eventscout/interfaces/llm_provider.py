"""Abstract base class for LLM service providers.

Two pipeline stages use a language model: AI ranking of discovery
candidates and primary (structured) event extraction.  Both call
:meth:`ILLMProvider.complete`; neither knows which vendor answers.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: AnthropicLLMProvider, OpenAILLMProvider
# Located in: eventscout/providers/llm/
class ILLMProvider(ABC):
    """Contract for text-completion LLM backends."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.0,
        max_tokens: int = 2000,
    ) -> str:
        """Generate a text completion.

        Parameters
        ----------
        system_prompt:
            Instruction message that sets the model's behaviour.
        user_prompt:
            The request itself (candidate list, page text, ...).
        temperature:
            Sampling temperature.  Ranking and extraction use 0.0.
        max_tokens:
            Upper bound on response tokens.

        Returns
        -------
        str
            The raw model text.  Callers parse it; it may be fenced or
            malformed JSON.

        Raises
        ------
        eventscout.utils.errors.LLMError
            If the API call fails or returns no text.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"anthropic"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials are present (no network call)."""

    @abstractmethod
    async def validate_credentials(self) -> bool:
        """Make a lightweight API call to confirm the credentials work.

        Unlike :meth:`is_available`, this contacts the remote service.
        Used by the ``/providers`` endpoint only, never during a search.
        """
