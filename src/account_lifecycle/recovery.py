"""Password recovery with short-lived six-digit codes."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from .audit import AuditTrail, reset_completed_event, reset_requested_event
from .domain.mixins import ensure_utc, utc_now
from .domain.profile import normalize_identifier
from .exceptions import (
    ExpiredError,
    InfrastructureError,
    InternalError,
    InvalidInputError,
    NotFoundError,
)
from .observability import AccountMetrics
from .results import OperationResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from .ports import IAuditStore, IIdentityProvider, INotificationDispatcher, IProfileStore

logger = logging.getLogger(__name__)

GENERIC_RESET_MESSAGE = "If the email is registered, a recovery code has been sent."  # noqa: S105
RESET_SUCCESS_MESSAGE = "Password reset successfully."  # noqa: S105

CODE_MIN = 100_000
CODE_SPAN = 900_000


@dataclass(frozen=True)
class RecoveryConfig:
    """Password recovery settings.

    Attributes:
        code_ttl: How long a recovery code stays valid.
    """

    code_ttl: timedelta = timedelta(hours=1)


def generate_recovery_code() -> str:
    """Uniform six-digit code in ``100000..999999``."""
    return str(CODE_MIN + secrets.randbelow(CODE_SPAN))


class PasswordRecoveryManager:
    """Issues and redeems password recovery codes.

    ``request_reset`` answers identically whether or not the email is
    registered, so it cannot be used to enumerate accounts.
    """

    def __init__(
        self,
        identity_provider: IIdentityProvider,
        profiles: IProfileStore,
        notifications: INotificationDispatcher,
        config: RecoveryConfig | None = None,
        *,
        audit_store: IAuditStore | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.identity_provider = identity_provider
        self.profiles = profiles
        self.notifications = notifications
        self.config = config or RecoveryConfig()
        self.audit = AuditTrail(audit_store)
        self.clock = clock

    async def request_reset(self, email: str) -> OperationResult:
        """Issue a recovery code and send it, if the email is registered.

        Raises:
            InternalError: If the store or the notification dispatch fails.
        """
        with AccountMetrics.operation("request_reset"):
            try:
                profile = await self.profiles.find_by_email(normalize_identifier(email))
                if profile is None:
                    logger.debug("Password reset requested for an unknown email")
                    return OperationResult(success=True, message=GENERIC_RESET_MESSAGE)

                profile = await self.profiles.update_by_identity_ref(
                    profile.identity_ref,
                    {
                        "reset_code": generate_recovery_code(),
                        "reset_expiry": self.clock() + self.config.code_ttl,
                    },
                )
                await self.notifications.send_recovery_code(profile)
            except InfrastructureError as exc:
                logger.error("Password reset request failed: %s", exc)
                raise InternalError(
                    "Error processing the password recovery request."
                ) from exc

            logger.info("Recovery code issued for %s", profile.identity_ref)
            await self.audit.emit(reset_requested_event(profile.identity_ref))
            return OperationResult(success=True, message=GENERIC_RESET_MESSAGE)

    async def confirm_reset(
        self,
        email: str,
        code: str,
        new_password: str,
        confirm_new_password: str,
    ) -> OperationResult:
        """Redeem a recovery code and set the new password.

        Checks run in order: profile, code, expiry, password confirmation.
        The code is only cleared after the provider accepted the password.

        Raises:
            NotFoundError: No profile for *email*.
            InvalidInputError: ``code_mismatch`` or ``password_mismatch``.
            ExpiredError: The code is past its expiry.
            InternalError: The provider or the store failed.
        """
        with AccountMetrics.operation("confirm_reset"):
            try:
                profile = await self.profiles.find_by_email(normalize_identifier(email))
            except InfrastructureError as exc:
                logger.error("Profile lookup failed during password reset: %s", exc)
                raise InternalError() from exc
            if profile is None:
                raise NotFoundError()

            if profile.reset_code is None or profile.reset_code != code:
                logger.warning("Rejected recovery code for %s", profile.identity_ref)
                raise InvalidInputError("Invalid code.", code="code_mismatch")

            expiry = ensure_utc(profile.reset_expiry)
            if expiry is None or expiry < self.clock():
                raise ExpiredError("The code has expired.")

            if new_password != confirm_new_password:
                raise InvalidInputError(
                    "The new password and its confirmation do not match.",
                    code="password_mismatch",
                )

            try:
                await self.identity_provider.update_credential(
                    profile.identity_ref, password=new_password
                )
            except InfrastructureError as exc:
                logger.error(
                    "Identity provider rejected password update for %s: %s",
                    profile.identity_ref,
                    exc,
                )
                raise InternalError("The password could not be updated.") from exc

            try:
                await self.profiles.update_by_identity_ref(
                    profile.identity_ref, {"reset_code": None, "reset_expiry": None}
                )
            except InfrastructureError as exc:
                logger.error(
                    "Password for %s was updated but the code was not cleared: %s",
                    profile.identity_ref,
                    exc,
                )
                raise InternalError() from exc

            logger.info("Password reset completed for %s", profile.identity_ref)
            await self.audit.emit(reset_completed_event(profile.identity_ref))
            return OperationResult(success=True, message=RESET_SUCCESS_MESSAGE)


__all__: list[str] = [
    "GENERIC_RESET_MESSAGE",
    "RESET_SUCCESS_MESSAGE",
    "PasswordRecoveryManager",
    "RecoveryConfig",
    "generate_recovery_code",
]
