"""Reusable domain mixins."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator


def utc_now() -> datetime:
    """Timezone-aware *now* in UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (BSON round-trips drop the tzinfo)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class AuditableMixin(BaseModel):
    """Mixin that adds created_at / updated_at timestamps."""

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at", "updated_at", mode="after")
    @classmethod
    def _audit_timestamps_are_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value) or value

    def touch(self) -> None:
        """Update the ``updated_at`` timestamp to *now*."""
        object.__setattr__(self, "updated_at", utc_now())
