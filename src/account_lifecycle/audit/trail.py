"""Fan-out of audit events to the optional store and to metrics."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..observability.metrics import AccountMetrics

if TYPE_CHECKING:
    from ..ports import IAuditStore
    from .events import AccountAuditEvent

logger = logging.getLogger(__name__)


class AuditTrail:
    """Records audit events without letting audit failures fail the caller.

    Args:
        store: Optional audit store. Without one, events only reach metrics.
    """

    def __init__(self, store: IAuditStore | None = None) -> None:
        self.store = store

    async def emit(self, event: AccountAuditEvent) -> None:
        AccountMetrics.record_event(event)
        if self.store is None:
            return
        try:
            await self.store.record(event)
        except Exception:
            logger.exception(
                "Failed to record audit event %s for %s",
                event.event_type.value,
                event.identity_ref,
            )


__all__: list[str] = ["AuditTrail"]
