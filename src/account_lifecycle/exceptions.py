"""Account lifecycle exceptions.

Two families live here:

* **Domain errors**: the fixed taxonomy callers see (``InvalidInputError``,
  ``ConflictError``, ``UnauthorizedError``, ``NotFoundError``,
  ``ExpiredError``, ``InternalError``). Each carries a human message and a
  machine-readable ``code``.
* **Infrastructure errors**: raised by collaborator adapters (identity
  provider, profile store, notification delivery). The core catches these,
  logs them, and re-raises a domain error; their text never reaches callers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .sagas.state import SagaState

# ═══════════════════════════════════════════════════════════════
# ROOT
# ═══════════════════════════════════════════════════════════════


class AccountLifecycleError(Exception):
    """Root exception for the account lifecycle package."""


class ConfigurationError(AccountLifecycleError):
    """Raised when the package is configured with invalid values."""


# ═══════════════════════════════════════════════════════════════
# DOMAIN ERRORS (caller-facing taxonomy)
# ═══════════════════════════════════════════════════════════════


class AccountError(AccountLifecycleError):
    """Base class for every error reported to callers.

    Attributes:
        message: Human-readable message with a fixed shape.
        code: Machine-readable error code.
    """

    default_message: str = "Account operation failed"
    default_code: str = "account_error"

    def __init__(self, message: str | None = None, *, code: str | None = None) -> None:
        self.message = message or self.default_message
        self.code = code or self.default_code
        super().__init__(self.message)


class InvalidInputError(AccountError):
    """Raised for malformed or missing input, mismatches and bad codes.

    Attributes:
        errors: Field-level details ``{field: [messages]}``.
    """

    default_message = "Invalid input"
    default_code = "invalid_input"

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        errors: dict[str, list[str]] | None = None,
    ) -> None:
        super().__init__(message, code=code)
        self.errors: dict[str, list[str]] = errors or {}


class ConflictError(AccountError):
    """Raised when a username or email is already taken."""

    default_message = "Resource already exists"
    default_code = "conflict"


class UnauthorizedError(AccountError):
    """Raised for invalid or expired bearer tokens and rejected TFA logins.

    The message is deliberately generic so that callers cannot tell which
    check failed.
    """

    default_message = "Invalid or expired token"
    default_code = "unauthorized"


class NotFoundError(AccountError):
    """Raised when an operation needs a profile that does not exist."""

    default_message = "User not found"
    default_code = "not_found"


class ExpiredError(AccountError):
    """Raised when a recovery code is used after its expiry."""

    default_message = "The code has expired"
    default_code = "expired"


class InternalError(AccountError):
    """Raised when a collaborator fails, including failed compensations."""

    default_message = "Internal error"
    default_code = "internal_error"


# ═══════════════════════════════════════════════════════════════
# INFRASTRUCTURE ERRORS (collaborator failures)
# ═══════════════════════════════════════════════════════════════


class InfrastructureError(AccountLifecycleError):
    """Base class for all collaborator failures."""


class IdentityProviderError(InfrastructureError):
    """Raised by identity provider adapters.

    Attributes:
        code: Provider error code, if the provider reported one.
    """

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class EmailAlreadyExistsError(IdentityProviderError):
    """Raised when the provider already holds an account for the email."""

    def __init__(self, email: str) -> None:
        super().__init__(
            f"An account already exists for {email!r}",
            code="email-already-exists",
        )
        self.email = email


class AccountNotFoundError(IdentityProviderError):
    """Raised when the provider has no account for the identity reference."""

    def __init__(self, identity_ref: str) -> None:
        super().__init__(
            f"No account with identity_ref={identity_ref!r}",
            code="user-not-found",
        )
        self.identity_ref = identity_ref


class InvalidBearerTokenError(IdentityProviderError):
    """Raised when a bearer token cannot be verified."""

    def __init__(self, message: str = "Bearer token verification failed") -> None:
        super().__init__(message, code="invalid-id-token")


class PersistenceError(InfrastructureError):
    """Base class for profile store failures."""


class DuplicateProfileError(PersistenceError):
    """Raised when an insert violates a unique index.

    Attributes:
        field: The indexed field that collided (``username``, ``email``,
            ``identity_ref``), or ``None`` if the store could not tell.
    """

    def __init__(self, field: str | None, value: object = None) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Duplicate value for unique field {field or 'unknown'}")


class StoreConnectionError(PersistenceError):
    """Raised when the profile store cannot be reached or is not connected."""


class ProfileNotFoundError(PersistenceError):
    """Raised when an update targets a profile that does not exist."""

    def __init__(self, identity_ref: str) -> None:
        self.identity_ref = identity_ref
        super().__init__(f"Profile with identity_ref={identity_ref!r} not found")


class NotificationError(InfrastructureError):
    """Base exception for notification failures."""


class NotificationDeliveryError(NotificationError):
    """Raised when delivery fails (network, provider error, etc.)."""

    def __init__(self, channel: str, recipient: str, reason: str) -> None:
        self.channel = channel
        self.recipient = recipient
        super().__init__(f"Failed to deliver via {channel} to {recipient}: {reason}")


class SecretDecryptionError(AccountLifecycleError):
    """Raised in strict mode when a well-formed ciphertext fails to decrypt."""


# ═══════════════════════════════════════════════════════════════
# SAGA ERRORS
# ═══════════════════════════════════════════════════════════════


class SagaConfigurationError(ConfigurationError):
    """Raised when a saga is built with invalid steps (e.g. duplicate names)."""


class SagaExecutionError(AccountLifecycleError):
    """Raised when a saga step fails, after compensations have run.

    Attributes:
        state: Final saga state (``COMPENSATED`` or ``FAILED``).
        failed_step: Name of the forward step that failed.
        cause: The exception raised by the failed step.
    """

    def __init__(self, state: SagaState, failed_step: str, cause: BaseException) -> None:
        self.state = state
        self.failed_step = failed_step
        self.cause = cause
        super().__init__(
            f"Saga {state.saga_type} ({state.saga_id}) failed at step "
            f"'{failed_step}': {cause}"
        )

    @property
    def is_orphaned(self) -> bool:
        """True when at least one compensation failed."""
        return bool(self.state.failed_compensations)


__all__: list[str] = [
    # Root
    "AccountLifecycleError",
    "ConfigurationError",
    # Domain
    "AccountError",
    "InvalidInputError",
    "ConflictError",
    "UnauthorizedError",
    "NotFoundError",
    "ExpiredError",
    "InternalError",
    # Infrastructure
    "InfrastructureError",
    "IdentityProviderError",
    "EmailAlreadyExistsError",
    "AccountNotFoundError",
    "InvalidBearerTokenError",
    "PersistenceError",
    "DuplicateProfileError",
    "StoreConnectionError",
    "ProfileNotFoundError",
    "NotificationError",
    "NotificationDeliveryError",
    # Crypto
    "SecretDecryptionError",
    # Saga
    "SagaConfigurationError",
    "SagaExecutionError",
]
