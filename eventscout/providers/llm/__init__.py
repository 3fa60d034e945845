"""LLM provider adapters.

Two concrete implementations of ILLMProvider (eventscout/interfaces/llm_provider.py):
    - AnthropicLLMProvider -- Claude via the Messages API
    - OpenAILLMProvider    -- OpenAI or any OpenAI-compatible endpoint

main.py picks the first provider with a configured key (Anthropic first).
Without any key the pipeline runs on heuristic ranking and structured-data
extraction only.
"""

from eventscout.providers.llm.anthropic_provider import AnthropicLLMProvider
from eventscout.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "OpenAILLMProvider"]
