"""InMemoryProfileStore: dict-backed profile store for tests and development."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ...domain.profile import normalize_identifier
from ...exceptions import DuplicateProfileError, PersistenceError, ProfileNotFoundError
from ...ports import IProfileStore

if TYPE_CHECKING:
    from ...domain.profile import UserProfile


class InMemoryProfileStore(IProfileStore):
    """In-memory implementation of ``IProfileStore``.

    Profiles are kept in a dict keyed by ``identity_ref`` with secondary
    indexes for the unique ``email`` and ``username`` fields. Stored and
    returned profiles are copies, so callers cannot mutate the store.
    Failures can be injected per method with :meth:`fail_next`.
    """

    def __init__(self) -> None:
        self._profiles: dict[str, UserProfile] = {}
        self._by_email: dict[str, str] = {}
        self._by_username: dict[str, str] = {}
        self._failures: dict[str, Exception] = {}

    def fail_next(self, method: str, exc: Exception | None = None) -> None:
        """Make the next call to *method* raise *exc*."""
        self._failures[method] = exc or PersistenceError(f"{method} unavailable")

    def _maybe_fail(self, method: str) -> None:
        exc = self._failures.pop(method, None)
        if exc is not None:
            raise exc

    def __len__(self) -> int:
        return len(self._profiles)

    async def find_by_identity_ref(self, identity_ref: str) -> UserProfile | None:
        self._maybe_fail("find_by_identity_ref")
        profile = self._profiles.get(identity_ref)
        return profile.model_copy(deep=True) if profile else None

    async def find_by_email(self, email: str) -> UserProfile | None:
        self._maybe_fail("find_by_email")
        identity_ref = self._by_email.get(normalize_identifier(email))
        return await self.find_by_identity_ref(identity_ref) if identity_ref else None

    async def exists_by_username(self, username: str) -> bool:
        self._maybe_fail("exists_by_username")
        return normalize_identifier(username) in self._by_username

    async def insert(self, profile: UserProfile) -> UserProfile:
        self._maybe_fail("insert")
        if profile.identity_ref in self._profiles:
            raise DuplicateProfileError("identity_ref", profile.identity_ref)
        if profile.email in self._by_email:
            raise DuplicateProfileError("email", profile.email)
        if profile.username in self._by_username:
            raise DuplicateProfileError("username", profile.username)

        stored = profile.model_copy(deep=True)
        self._profiles[stored.identity_ref] = stored
        self._by_email[stored.email] = stored.identity_ref
        self._by_username[stored.username] = stored.identity_ref
        return stored.model_copy(deep=True)

    async def update_by_identity_ref(
        self, identity_ref: str, fields: dict[str, Any]
    ) -> UserProfile:
        self._maybe_fail("update_by_identity_ref")
        current = self._profiles.get(identity_ref)
        if current is None:
            raise ProfileNotFoundError(identity_ref)

        updated = current.with_changes(fields)
        for field, index in (("email", self._by_email), ("username", self._by_username)):
            old, new = getattr(current, field), getattr(updated, field)
            if old != new and new in index:
                raise DuplicateProfileError(field, new)

        self._by_email.pop(current.email, None)
        self._by_username.pop(current.username, None)
        self._profiles[identity_ref] = updated
        self._by_email[updated.email] = identity_ref
        self._by_username[updated.username] = identity_ref
        return updated.model_copy(deep=True)


__all__: list[str] = ["InMemoryProfileStore"]
