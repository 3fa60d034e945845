"""Abstract base class for key-value cache providers.

The only cross-run state in eventScout is the optional search cache,
which stores finished :class:`~eventscout.models.result.OrchestratorResult`
envelopes keyed by request fingerprint.  The backend is hidden behind this
contract so an in-memory store can be replaced by Redis or similar.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class ICacheProvider(ABC):
    """Contract for async key-value caches."""

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the value under *key*, or ``None`` when absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store *value* under *key*.

        Parameters
        ----------
        key:
            The cache key (a request fingerprint in practice).
        value:
            Any Python object; in-memory backends store it as-is.
        ttl:
            Time-to-live in seconds.  ``None`` uses the backend default.
        """

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove *key*; a no-op when it is not present."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Return ``True`` if *key* is present and not expired."""
