"""SMTP email sender."""

from __future__ import annotations

import email.message
import email.policy
import logging

import aiosmtplib

from ..delivery import DeliveryRecord, NotificationChannel, RenderedNotification
from ..ports import INotificationSender

logger = logging.getLogger(__name__)


class SmtpEmailSender(INotificationSender):
    """
    Async SMTP email sender using aiosmtplib.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        timeout: float = 10.0,
        from_email: str | None = None,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout
        self.from_email = from_email

    def build_message(
        self, recipient: str, content: RenderedNotification, from_addr: str
    ) -> email.message.EmailMessage:
        message = email.message.EmailMessage(policy=email.policy.default)
        message["To"] = recipient
        message["From"] = from_addr
        if content.subject:
            message["Subject"] = content.subject

        if content.body_html:
            message.set_content(content.body_text, subtype="plain", charset="utf-8")
            message.add_alternative(content.body_html, subtype="html", charset="utf-8")
        else:
            message.set_content(content.body_text, charset="utf-8")
        return message

    async def send(
        self,
        recipient: str,
        content: RenderedNotification,
        channel: NotificationChannel,
        metadata: dict[str, object] | None = None,
    ) -> DeliveryRecord:
        if channel != NotificationChannel.EMAIL:
            raise ValueError(f"SmtpEmailSender does not support {channel}")

        from_addr = (metadata or {}).get("from_email") or self.from_email
        if not from_addr:
            raise ValueError("Sender email (from_email) is required.")

        message = self.build_message(recipient, content, str(from_addr))
        try:
            async with aiosmtplib.SMTP(
                hostname=self.host,
                port=self.port,
                timeout=self.timeout,
                start_tls=self.use_tls,
            ) as smtp:
                if self.username and self.password:
                    await smtp.login(self.username, self.password)
                await smtp.send_message(message)
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", recipient, e)
            return DeliveryRecord.failed(recipient, channel, error=str(e))

        logger.info("Email sent to %s via SMTP", recipient)
        return DeliveryRecord.sent(recipient, channel, provider_id="smtp")
