"""UserProfile: the locally owned half of an account."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field, field_validator, model_validator

from .mixins import AuditableMixin, ensure_utc

DEFAULT_ROLE = "free"


class TfaState(str, Enum):
    """Two-factor enrollment state derived from a profile."""

    NOT_ENROLLED = "NOT_ENROLLED"
    PENDING_CONFIRMATION = "PENDING_CONFIRMATION"
    ENABLED = "ENABLED"


def normalize_identifier(value: str) -> str:
    """Trim and lower-case an email or username."""
    return value.strip().lower()


class UserProfile(AuditableMixin):
    """Profile document stored alongside an identity-provider account.

    ``identity_ref``, ``email`` and ``username`` are unique across all
    profiles. Invariants (checked on every validation):

    * ``reset_code`` and ``reset_expiry`` are both set or both unset.
    * ``tfa_enabled`` requires ``tfa_secret``.
    """

    model_config = ConfigDict(validate_assignment=False, extra="ignore")

    identity_ref: str = Field(min_length=1)
    email: str
    username: str
    full_name: str
    phone: str | None = None
    role: str = DEFAULT_ROLE

    reset_code: str | None = None
    reset_expiry: datetime | None = None

    tfa_secret: str | None = None
    tfa_enabled: bool = False

    @field_validator("email", "username", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        if isinstance(value, str):
            return normalize_identifier(value)
        return value

    @field_validator("reset_expiry", mode="after")
    @classmethod
    def _expiry_is_utc(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _check_invariants(self) -> UserProfile:
        if (self.reset_code is None) != (self.reset_expiry is None):
            raise ValueError("reset_code and reset_expiry must be set together")
        if self.tfa_enabled and self.tfa_secret is None:
            raise ValueError("tfa_enabled requires tfa_secret")
        return self

    @property
    def tfa_state(self) -> TfaState:
        if self.tfa_secret is None:
            return TfaState.NOT_ENROLLED
        if self.tfa_enabled:
            return TfaState.ENABLED
        return TfaState.PENDING_CONFIRMATION

    def with_changes(self, fields: dict[str, Any]) -> UserProfile:
        """Return a re-validated copy with *fields* applied and ``updated_at`` bumped."""
        updated = type(self).model_validate({**self.model_dump(), **fields})
        updated.touch()
        return updated


__all__: list[str] = [
    "DEFAULT_ROLE",
    "TfaState",
    "UserProfile",
    "normalize_identifier",
]
