"""MongoDB (Motor) adapters."""

from __future__ import annotations

from .connection import MongoConnectionManager
from .profile_store import DEFAULT_COLLECTION, MongoProfileStore

__all__: list[str] = ["DEFAULT_COLLECTION", "MongoConnectionManager", "MongoProfileStore"]
