"""Audit events, storage and the audit trail used by the account services."""

from __future__ import annotations

from .events import (
    AccountAuditEvent,
    AccountEventType,
    account_orphaned_event,
    account_registered_event,
    login_failed_event,
    login_success_event,
    login_tfa_required_event,
    reset_completed_event,
    reset_requested_event,
    tfa_enabled_event,
    tfa_secret_generated_event,
)
from .memory import InMemoryAuditStore
from .trail import AuditTrail

__all__: list[str] = [
    # Event types and classes
    "AccountEventType",
    "AccountAuditEvent",
    # Event factory functions
    "account_registered_event",
    "account_orphaned_event",
    "reset_requested_event",
    "reset_completed_event",
    "tfa_secret_generated_event",
    "tfa_enabled_event",
    "login_success_event",
    "login_tfa_required_event",
    "login_failed_event",
    # Store and trail
    "InMemoryAuditStore",
    "AuditTrail",
]
