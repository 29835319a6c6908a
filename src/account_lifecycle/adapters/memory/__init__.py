"""In-memory adapters for tests and local development."""

from __future__ import annotations

from .identity_provider import InMemoryIdentityProvider
from .profile_store import InMemoryProfileStore

__all__: list[str] = ["InMemoryIdentityProvider", "InMemoryProfileStore"]
