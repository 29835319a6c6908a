"""In-memory sender for test assertions."""

from __future__ import annotations

from dataclasses import dataclass

from ..delivery import DeliveryRecord, NotificationChannel, RenderedNotification
from ..ports import INotificationSender


@dataclass
class SentMessage:
    """Record of a sent message for test assertions."""

    recipient: str
    content: RenderedNotification
    channel: NotificationChannel
    metadata: dict[str, object] | None


class InMemorySender(INotificationSender):
    """
    Test double (Fake) that stores messages in a list for assertions.

    Set ``fail_with`` to make every send return a failed delivery record.
    """

    def __init__(self) -> None:
        self.sent_messages: list[SentMessage] = []
        self.fail_with: str | None = None

    async def send(
        self,
        recipient: str,
        content: RenderedNotification,
        channel: NotificationChannel,
        metadata: dict[str, object] | None = None,
    ) -> DeliveryRecord:
        if self.fail_with is not None:
            return DeliveryRecord.failed(recipient, channel, error=self.fail_with)
        self.sent_messages.append(SentMessage(recipient, content, channel, metadata))
        return DeliveryRecord.sent(recipient, channel, provider_id="test-id")

    def assert_sent(
        self,
        recipient: str,
        channel: NotificationChannel = NotificationChannel.EMAIL,
        count: int = 1,
    ) -> None:
        """Helper for test assertions."""
        matches = [
            m for m in self.sent_messages if m.recipient == recipient and m.channel == channel
        ]
        if len(matches) != count:
            raise AssertionError(
                f"Expected {count} messages to {recipient} via {channel.value}, "
                f"but found {len(matches)}."
            )

    def clear(self) -> None:
        """Clear all sent messages."""
        self.sent_messages.clear()
