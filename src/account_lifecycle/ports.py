"""Ports (protocols) for the collaborators of the account lifecycle core.

The core never talks to Firebase, Keycloak, MongoDB or an SMTP server
directly. It depends on these protocols; adapters live in
``account_lifecycle.adapters`` and ``account_lifecycle.notifications``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from .audit.events import AccountAuditEvent, AccountEventType
    from .domain.profile import UserProfile


# ═══════════════════════════════════════════════════════════════
# DATA TRANSFER OBJECTS
# ═══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ExternalAccount:
    """Account record owned by the identity provider.

    Attributes:
        identity_ref: Opaque, stable identifier in the provider.
        email: Account email.
        display_name: Display name (full name at registration).
        email_verified: Whether the provider considers the email verified.
        phone_number: Phone number known to the provider, if any.
    """

    identity_ref: str
    email: str
    display_name: str | None = None
    email_verified: bool = False
    phone_number: str | None = None


@dataclass(frozen=True)
class TokenClaims:
    """Claims resolved from a verified bearer token."""

    identity_ref: str
    email: str | None = None
    email_verified: bool = False
    name: str | None = None
    phone_number: str | None = None


# ═══════════════════════════════════════════════════════════════
# IDENTITY PROVIDER
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IIdentityProvider(Protocol):
    """Protocol for the external identity provider.

    All methods are async to support remote IdP API calls. Adapters raise
    ``IdentityProviderError`` subclasses (``EmailAlreadyExistsError``,
    ``AccountNotFoundError``, ``InvalidBearerTokenError``).
    """

    async def create_account(
        self, email: str, password: str, display_name: str
    ) -> ExternalAccount:
        """Create an account.

        Raises:
            EmailAlreadyExistsError: If the email is already registered.
        """
        ...

    async def delete_account(self, identity_ref: str) -> None:
        """Delete an account."""
        ...

    async def update_credential(self, identity_ref: str, *, password: str) -> None:
        """Replace the account password."""
        ...

    async def verify_bearer_token(self, token: str) -> TokenClaims:
        """Verify a bearer (ID) token.

        Raises:
            InvalidBearerTokenError: If the token is invalid or expired.
        """
        ...

    async def issue_exchange_token(self, identity_ref: str) -> str:
        """Issue a short-lived token the client swaps for a provider session."""
        ...

    async def generate_email_verification_link(self, email: str) -> str:
        """Return an email verification URL for *email*."""
        ...


# ═══════════════════════════════════════════════════════════════
# PROFILE STORE
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IProfileStore(Protocol):
    """Protocol for durable profile storage.

    Implementations must enforce uniqueness of ``identity_ref``, ``email``
    and ``username`` and raise ``DuplicateProfileError`` on violation.
    Lookups by email and username use the normalised (lower-cased) value.
    """

    async def find_by_identity_ref(self, identity_ref: str) -> UserProfile | None:
        ...

    async def find_by_email(self, email: str) -> UserProfile | None:
        ...

    async def exists_by_username(self, username: str) -> bool:
        ...

    async def insert(self, profile: UserProfile) -> UserProfile:
        """Insert a new profile.

        Raises:
            DuplicateProfileError: If a unique index is violated.
        """
        ...

    async def update_by_identity_ref(
        self, identity_ref: str, fields: dict[str, Any]
    ) -> UserProfile:
        """Apply a partial update and return the updated profile.

        Raises:
            ProfileNotFoundError: If no profile has this identity_ref.
        """
        ...


# ═══════════════════════════════════════════════════════════════
# NOTIFICATIONS
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class INotificationDispatcher(Protocol):
    """Protocol for delivering account notifications."""

    async def send_recovery_code(self, profile: UserProfile) -> None:
        """Deliver the profile's current reset code to its email."""
        ...

    async def send_verification_link(self, email: str, url: str) -> None:
        """Deliver an email verification link."""
        ...


# ═══════════════════════════════════════════════════════════════
# AUDIT
# ═══════════════════════════════════════════════════════════════


@runtime_checkable
class IAuditStore(Protocol):
    """Protocol for account audit event storage.

    Orphaned accounts (failed registration compensation) are recorded
    here and are the input for manual reconciliation.
    """

    async def record(self, event: AccountAuditEvent) -> None:
        ...

    async def get_events(
        self,
        identity_ref: str,
        *,
        event_types: list[AccountEventType] | None = None,
        limit: int = 100,
    ) -> list[AccountAuditEvent]:
        ...

    async def get_events_by_type(
        self,
        event_type: AccountEventType,
        *,
        limit: int = 100,
    ) -> list[AccountAuditEvent]:
        ...


__all__: list[str] = [
    "ExternalAccount",
    "TokenClaims",
    "IIdentityProvider",
    "IProfileStore",
    "INotificationDispatcher",
    "IAuditStore",
]
