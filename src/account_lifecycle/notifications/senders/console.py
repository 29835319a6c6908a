"""Console sender for development debugging."""

from __future__ import annotations

import logging

from ..delivery import DeliveryRecord, NotificationChannel, RenderedNotification
from ..ports import INotificationSender

logger = logging.getLogger(__name__)


class ConsoleSender(INotificationSender):
    """
    Development adapter that prints notifications to the console.

    The body only goes to stdout; the log line carries the envelope so
    recovery codes never reach log files.
    """

    def __init__(self, output_to_stdout: bool = True):
        self.output_to_stdout = output_to_stdout

    async def send(
        self,
        recipient: str,
        content: RenderedNotification,
        channel: NotificationChannel,
        metadata: dict[str, object] | None = None,
    ) -> DeliveryRecord:
        logger.info(
            "Notification via %s to %s: %s",
            channel.value,
            recipient,
            content.subject or "(No Subject)",
        )

        if self.output_to_stdout:
            output = [
                "═" * 50,
                f"NOTIFICATION SENT VIA {channel.value.upper()}",
                f"To:      {recipient}",
                f"Subject: {content.subject or '(No Subject)'}",
                f"Body:    {content.body_text}",
                "═" * 50,
            ]
            print("\n".join(output))

        return DeliveryRecord.sent(recipient, channel, provider_id="console-debug")
