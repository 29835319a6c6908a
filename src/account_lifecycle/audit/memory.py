"""In-memory audit store for testing and development."""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from ..ports import IAuditStore

if TYPE_CHECKING:
    from .events import AccountAuditEvent, AccountEventType


class InMemoryAuditStore(IAuditStore):
    """In-memory implementation of IAuditStore.

    Note:
        Events are stored in memory and will be lost on restart.
        Not suitable for production use.

    Example:
        ```python
        store = InMemoryAuditStore()
        await store.record(reset_requested_event("uid-123"))
        events = await store.get_events("uid-123")
        ```
    """

    def __init__(self) -> None:
        self._events: list[AccountAuditEvent] = []
        self._by_identity: dict[str, list[int]] = defaultdict(list)
        self._by_type: dict[str, list[int]] = defaultdict(list)

    async def record(self, event: AccountAuditEvent) -> None:
        index = len(self._events)
        self._events.append(event)

        if event.identity_ref:
            self._by_identity[event.identity_ref].append(index)

        self._by_type[event.event_type.value].append(index)

    async def get_events(
        self,
        identity_ref: str,
        *,
        event_types: list[AccountEventType] | None = None,
        limit: int = 100,
    ) -> list[AccountAuditEvent]:
        """Get audit events for an account, most recent first."""
        results: list[AccountAuditEvent] = []
        for idx in reversed(self._by_identity.get(identity_ref, [])):
            event = self._events[idx]
            if event_types and event.event_type not in event_types:
                continue
            results.append(event)
            if len(results) >= limit:
                break
        return results

    async def get_events_by_type(
        self,
        event_type: AccountEventType,
        *,
        limit: int = 100,
    ) -> list[AccountAuditEvent]:
        """Get audit events by type across all accounts, most recent first."""
        indices = self._by_type.get(event_type.value, [])
        return [self._events[idx] for idx in reversed(indices)][:limit]

    def clear(self) -> None:
        """Clear all stored events.

        Useful for test cleanup.
        """
        self._events.clear()
        self._by_identity.clear()
        self._by_type.clear()

    def count(self) -> int:
        return len(self._events)

    def count_by_type(self, event_type: AccountEventType) -> int:
        return len(self._by_type.get(event_type.value, []))


__all__: list[str] = ["InMemoryAuditStore"]
