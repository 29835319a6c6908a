"""Account e-mail notifications: rendering, senders and the dispatcher."""

from __future__ import annotations

from .delivery import (
    DeliveryRecord,
    DeliveryStatus,
    NotificationChannel,
    RenderedNotification,
)
from .dispatcher import EmailNotificationDispatcher
from .ports import INotificationSender, ITemplateRenderer, NotificationTemplate
from .senders import ConsoleSender, InMemorySender, SentMessage, SmtpEmailSender
from .templates import (
    RECOVERY_CODE_TEMPLATE,
    VERIFICATION_LINK_TEMPLATE,
    JinjaTemplateRenderer,
)

__all__: list[str] = [
    # Delivery
    "DeliveryRecord",
    "DeliveryStatus",
    "NotificationChannel",
    "RenderedNotification",
    # Ports
    "INotificationSender",
    "ITemplateRenderer",
    "NotificationTemplate",
    # Rendering
    "JinjaTemplateRenderer",
    "RECOVERY_CODE_TEMPLATE",
    "VERIFICATION_LINK_TEMPLATE",
    # Senders
    "ConsoleSender",
    "InMemorySender",
    "SentMessage",
    "SmtpEmailSender",
    # Dispatcher
    "EmailNotificationDispatcher",
]
