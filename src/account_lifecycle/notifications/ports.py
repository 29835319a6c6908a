"""Notification sender and template renderer ports."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from .delivery import DeliveryRecord, NotificationChannel, RenderedNotification


@runtime_checkable
class INotificationSender(Protocol):
    """
    Port for sending a rendered notification over one channel.

    Senders report delivery problems through a failed
    :class:`DeliveryRecord` instead of raising.
    """

    async def send(
        self,
        recipient: str,
        content: RenderedNotification,
        channel: NotificationChannel,
        metadata: dict[str, object] | None = None,
    ) -> DeliveryRecord:
        """Send notification and return delivery record."""
        ...


@dataclass(frozen=True)
class NotificationTemplate:
    """Immutable template definition."""

    template_id: str
    channel: NotificationChannel
    subject_template: str | None = None
    body_template: str = ""
    text_template: str | None = None


@runtime_checkable
class ITemplateRenderer(Protocol):
    """Protocol for rendering notification templates."""

    async def render(
        self,
        template: NotificationTemplate,
        context: dict[str, Any],
    ) -> RenderedNotification:
        """Render template with context."""
        ...
