"""Domain model: profiles and their TFA state."""

from __future__ import annotations

from .mixins import AuditableMixin, ensure_utc, utc_now
from .profile import DEFAULT_ROLE, TfaState, UserProfile, normalize_identifier

__all__: list[str] = [
    "AuditableMixin",
    "DEFAULT_ROLE",
    "TfaState",
    "UserProfile",
    "ensure_utc",
    "normalize_identifier",
    "utc_now",
]
