"""Audit events for account lifecycle operations.

Event naming follows the pattern ``<resource>.<action>``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class AccountEventType(Enum):
    """Types of account audit events."""

    # Registration
    ACCOUNT_REGISTERED = "account.registered"
    ACCOUNT_ORPHANED = "account.orphaned"

    # Password recovery
    PASSWORD_RESET_REQUESTED = "password.reset_requested"  # noqa: S105
    PASSWORD_RESET_COMPLETED = "password.reset_completed"  # noqa: S105

    # Two-factor enrollment
    TFA_SECRET_GENERATED = "tfa.secret_generated"
    TFA_ENABLED = "tfa.enabled"

    # Login
    LOGIN_SUCCESS = "login.success"
    LOGIN_TFA_REQUIRED = "login.tfa_required"
    LOGIN_FAILED = "login.failed"


@dataclass(frozen=True)
class AccountAuditEvent:
    """Account audit event.

    Attributes:
        event_type: The type of account event.
        identity_ref: Identity-provider reference of the account, if known.
        timestamp: When the event occurred (UTC).
        success: Whether the operation was successful.
        error_code: Error code if the operation failed.
        metadata: Additional event-specific data. Never holds secrets,
            codes or passwords.
    """

    event_type: AccountEventType
    identity_ref: str | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    success: bool = True
    error_code: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.success and not self.error_code:
            object.__setattr__(self, "error_code", "UNKNOWN_ERROR")

    def to_dict(self) -> dict[str, Any]:
        """Convert event to a JSON-serialisable dictionary."""
        return {
            "event_type": self.event_type.value,
            "identity_ref": self.identity_ref,
            "timestamp": self.timestamp.isoformat(),
            "success": self.success,
            "error_code": self.error_code,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccountAuditEvent:
        """Create event from dictionary.

        Raises:
            ValueError: If required fields are missing or invalid.
        """
        event_type_str = data.get("event_type")
        if event_type_str is None:
            raise ValueError("Missing required 'event_type'")

        try:
            event_type = AccountEventType(event_type_str)
        except ValueError as e:
            raise ValueError(f"Invalid event_type: {event_type_str}") from e

        timestamp = data.get("timestamp")
        if isinstance(timestamp, str):
            timestamp = datetime.fromisoformat(timestamp)
            if timestamp.tzinfo is None:
                timestamp = timestamp.replace(tzinfo=timezone.utc)
        elif timestamp is None:
            timestamp = datetime.now(timezone.utc)

        return cls(
            event_type=event_type,
            identity_ref=data.get("identity_ref"),
            timestamp=timestamp,
            success=data.get("success", True),
            error_code=data.get("error_code"),
            metadata=data.get("metadata", {}),
        )


# ═══════════════════════════════════════════════════════════════
# EVENT FACTORY FUNCTIONS
# ═══════════════════════════════════════════════════════════════


def account_registered_event(identity_ref: str, *, username: str) -> AccountAuditEvent:
    """Create an account registered event."""
    return AccountAuditEvent(
        event_type=AccountEventType.ACCOUNT_REGISTERED,
        identity_ref=identity_ref,
        metadata={"username": username},
    )


def account_orphaned_event(
    identity_ref: str,
    *,
    email: str,
    saga_id: str,
    failed_step: str,
    compensation_errors: list[dict[str, Any]],
) -> AccountAuditEvent:
    """Create the reconciliation record for an account left without a profile."""
    return AccountAuditEvent(
        event_type=AccountEventType.ACCOUNT_ORPHANED,
        identity_ref=identity_ref,
        success=False,
        error_code="COMPENSATION_FAILED",
        metadata={
            "email": email,
            "saga_id": saga_id,
            "failed_step": failed_step,
            "compensation_errors": compensation_errors,
        },
    )


def reset_requested_event(identity_ref: str) -> AccountAuditEvent:
    """Create a password reset requested event."""
    return AccountAuditEvent(
        event_type=AccountEventType.PASSWORD_RESET_REQUESTED,
        identity_ref=identity_ref,
    )


def reset_completed_event(identity_ref: str) -> AccountAuditEvent:
    """Create a password reset completed event."""
    return AccountAuditEvent(
        event_type=AccountEventType.PASSWORD_RESET_COMPLETED,
        identity_ref=identity_ref,
    )


def tfa_secret_generated_event(identity_ref: str) -> AccountAuditEvent:
    return AccountAuditEvent(
        event_type=AccountEventType.TFA_SECRET_GENERATED,
        identity_ref=identity_ref,
        metadata={"method": "totp"},
    )


def tfa_enabled_event(identity_ref: str) -> AccountAuditEvent:
    return AccountAuditEvent(
        event_type=AccountEventType.TFA_ENABLED,
        identity_ref=identity_ref,
        metadata={"method": "totp"},
    )


def login_success_event(identity_ref: str, *, method: str = "token") -> AccountAuditEvent:
    """Create a successful login event."""
    return AccountAuditEvent(
        event_type=AccountEventType.LOGIN_SUCCESS,
        identity_ref=identity_ref,
        metadata={"method": method},
    )


def login_tfa_required_event(identity_ref: str) -> AccountAuditEvent:
    """Create an event for a login that stopped at the second factor."""
    return AccountAuditEvent(
        event_type=AccountEventType.LOGIN_TFA_REQUIRED,
        identity_ref=identity_ref,
        metadata={"method": "token"},
    )


def login_failed_event(
    *,
    identity_ref: str | None = None,
    method: str = "token",
    error_code: str = "AUTHENTICATION_FAILED",
) -> AccountAuditEvent:
    """Create a failed login event."""
    return AccountAuditEvent(
        event_type=AccountEventType.LOGIN_FAILED,
        identity_ref=identity_ref,
        success=False,
        error_code=error_code,
        metadata={"method": method},
    )


__all__: list[str] = [
    "AccountEventType",
    "AccountAuditEvent",
    "account_registered_event",
    "account_orphaned_event",
    "reset_requested_event",
    "reset_completed_event",
    "tfa_secret_generated_event",
    "tfa_enabled_event",
    "login_success_event",
    "login_tfa_required_event",
    "login_failed_event",
]
