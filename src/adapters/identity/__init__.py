"""Identity provider adapters."""

from .in_memory import InMemoryIdentityProvider

__all__ = ["InMemoryIdentityProvider"]
