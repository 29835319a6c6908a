"""E-mail implementation of the account notification dispatcher."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..exceptions import NotificationDeliveryError, NotificationError
from ..ports import INotificationDispatcher
from .delivery import NotificationChannel
from .templates import (
    RECOVERY_CODE_TEMPLATE,
    VERIFICATION_LINK_TEMPLATE,
    JinjaTemplateRenderer,
)

if TYPE_CHECKING:
    from ..domain.profile import UserProfile
    from .ports import INotificationSender, ITemplateRenderer, NotificationTemplate

logger = logging.getLogger(__name__)


class EmailNotificationDispatcher(INotificationDispatcher):
    """Renders the account e-mails and hands them to a sender.

    Raises :class:`NotificationError` subclasses on failure, which the
    account services translate into an internal error.
    """

    def __init__(
        self,
        sender: INotificationSender,
        renderer: ITemplateRenderer | None = None,
        *,
        from_email: str | None = None,
        recovery_template: NotificationTemplate = RECOVERY_CODE_TEMPLATE,
        verification_template: NotificationTemplate = VERIFICATION_LINK_TEMPLATE,
    ) -> None:
        self.sender = sender
        self.renderer = renderer or JinjaTemplateRenderer()
        self.from_email = from_email
        self.recovery_template = recovery_template
        self.verification_template = verification_template

    async def _deliver(
        self, recipient: str, template: NotificationTemplate, context: dict[str, Any]
    ) -> None:
        try:
            content = await self.renderer.render(template, context)
        except Exception as exc:
            raise NotificationError(
                f"Template {template.template_id} could not be rendered"
            ) from exc

        metadata: dict[str, object] = {"template_id": template.template_id}
        if self.from_email:
            metadata["from_email"] = self.from_email

        try:
            record = await self.sender.send(
                recipient, content, NotificationChannel.EMAIL, metadata
            )
        except Exception as exc:
            raise NotificationError(
                f"Sender failed to deliver {template.template_id}"
            ) from exc
        if not record.ok:
            raise NotificationDeliveryError(
                NotificationChannel.EMAIL.value, recipient, record.error or "unknown"
            )
        logger.debug("Delivered %s to %s", template.template_id, recipient)

    async def send_recovery_code(self, profile: UserProfile) -> None:
        if profile.reset_code is None:
            raise NotificationError("Profile has no recovery code to send")
        await self._deliver(
            profile.email,
            self.recovery_template,
            {"email": profile.email, "code": profile.reset_code},
        )

    async def send_verification_link(self, email: str, url: str) -> None:
        await self._deliver(email, self.verification_template, {"email": email, "link": url})


__all__: list[str] = ["EmailNotificationDispatcher"]
