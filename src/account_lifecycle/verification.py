"""E-mail address verification links."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .domain.profile import normalize_identifier
from .exceptions import InfrastructureError, InternalError, InvalidInputError
from .observability import AccountMetrics
from .results import OperationResult

if TYPE_CHECKING:
    from .ports import IIdentityProvider, INotificationDispatcher

logger = logging.getLogger(__name__)

VERIFICATION_SENT_MESSAGE = "Verification email sent successfully."


class EmailVerificationService:
    """Generates a provider verification link and mails it to the address."""

    def __init__(
        self,
        identity_provider: IIdentityProvider,
        notifications: INotificationDispatcher,
    ) -> None:
        self.identity_provider = identity_provider
        self.notifications = notifications

    async def send_verification_link(self, email: str | None) -> OperationResult:
        """
        Raises:
            InvalidInputError: ``email_required`` when *email* is empty.
            InternalError: If link generation or delivery fails.
        """
        if not email or not email.strip():
            raise InvalidInputError("Email is required.", code="email_required")
        email = normalize_identifier(email)

        with AccountMetrics.operation("verify_email"):
            try:
                link = await self.identity_provider.generate_email_verification_link(email)
                await self.notifications.send_verification_link(email, link)
            except InfrastructureError as exc:
                logger.error("Verification link could not be sent: %s", exc)
                raise InternalError(
                    "The verification link could not be generated."
                ) from exc

        logger.info("Verification link sent")
        return OperationResult(success=True, message=VERIFICATION_SENT_MESSAGE)


__all__: list[str] = ["EmailVerificationService", "VERIFICATION_SENT_MESSAGE"]
