"""Saga state model for step-by-step lifecycle tracking."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..domain.mixins import AuditableMixin, utc_now


class SagaStatus(str, Enum):
    """Possible lifecycle states for a saga instance."""

    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    COMPENSATING = "COMPENSATING"
    COMPENSATED = "COMPENSATED"


class StepRecord(BaseModel):
    """Immutable record of a single saga step transition."""

    model_config = ConfigDict(frozen=True)

    step_name: str
    event_type: str
    occurred_at: datetime = Field(default_factory=utc_now)
    metadata: dict[str, Any] = Field(default_factory=dict)


class SagaState(AuditableMixin):
    """
    State of one saga execution.

    Uses :class:`AuditableMixin` for ``created_at`` / ``updated_at``.
    ``failed_compensations`` is the list of undo actions that could not be
    executed; a non-empty list means external state was left behind.
    """

    saga_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    saga_type: str = ""
    status: SagaStatus = SagaStatus.PENDING

    # ── Step Tracking ────────────────────────────────────────────────
    current_step: str = "init"
    step_history: list[StepRecord] = Field(default_factory=list)
    completed_steps: list[str] = Field(default_factory=list)

    # ── Compensation ─────────────────────────────────────────────────
    failed_compensations: list[dict[str, Any]] = Field(default_factory=list)

    # ── Error Tracking ──────────────────────────────────────────────
    error: str | None = None

    # ── Completion timestamps ────────────────────────────────────────
    completed_at: datetime | None = None
    failed_at: datetime | None = None

    correlation_id: str | None = None

    def record_step(
        self,
        step_name: str,
        event_type: str,
        *,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        """Append a step record and update ``current_step``."""
        self.current_step = step_name
        self.step_history.append(
            StepRecord(
                step_name=step_name,
                event_type=event_type,
                metadata=metadata or {},
            )
        )
        self.touch()

    @property
    def is_terminal(self) -> bool:
        """Return *True* if the saga has reached a final state."""
        return self.status in (
            SagaStatus.COMPLETED,
            SagaStatus.FAILED,
            SagaStatus.COMPENSATED,
        )


__all__: list[str] = ["SagaStatus", "StepRecord", "SagaState"]
