"""Cache provider implementations."""

from eventscout.providers.cache.memory_cache import MemoryCacheProvider

__all__ = ["MemoryCacheProvider"]
