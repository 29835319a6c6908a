"""TOTP enrollment state machine.

``NOT_ENROLLED -> PENDING_CONFIRMATION -> ENABLED``. The secret is stored
encrypted by :class:`SecretCipher` in ``UserProfile.tfa_secret``; only
``confirm_enrollment`` flips ``tfa_enabled``. There is no transition back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..audit import AuditTrail, tfa_enabled_event, tfa_secret_generated_event
from ..domain.profile import TfaState
from ..exceptions import (
    InfrastructureError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    ProfileNotFoundError,
    SecretDecryptionError,
    UnauthorizedError,
)
from ..observability import AccountMetrics
from .totp import TotpService

if TYPE_CHECKING:
    from ..crypto.cipher import SecretCipher
    from ..domain.profile import UserProfile
    from ..ports import IAuditStore, IProfileStore

logger = logging.getLogger(__name__)

TFA_ENABLED_MESSAGE = "TFA enabled"


@dataclass(frozen=True)
class TfaSetup:
    """Data returned when a secret is generated.

    Attributes:
        uri: ``otpauth://`` provisioning URI for the QR code.
        secret: Raw base32 secret. For diagnostics only; never sent over HTTP.
    """

    uri: str
    secret: str

    @property
    def manual_key(self) -> str:
        return TotpService.format_secret(self.secret)


class TfaEnrollmentManager:
    """Enrolls users in TOTP and verifies their login codes."""

    def __init__(
        self,
        profiles: IProfileStore,
        cipher: SecretCipher,
        totp: TotpService | None = None,
        *,
        audit_store: IAuditStore | None = None,
    ) -> None:
        self.profiles = profiles
        self.cipher = cipher
        self.totp = totp or TotpService()
        self.audit = AuditTrail(audit_store)

    async def _load(self, identity_ref: str) -> UserProfile | None:
        try:
            return await self.profiles.find_by_identity_ref(identity_ref)
        except InfrastructureError as exc:
            logger.error("Profile lookup failed for %s: %s", identity_ref, exc)
            raise InternalError() from exc

    async def _update(self, identity_ref: str, fields: dict[str, object]) -> None:
        try:
            await self.profiles.update_by_identity_ref(identity_ref, fields)
        except ProfileNotFoundError as exc:
            raise NotFoundError() from exc
        except InfrastructureError as exc:
            logger.error("Profile update failed for %s: %s", identity_ref, exc)
            raise InternalError() from exc

    def _matches(self, profile: UserProfile, code: str) -> bool:
        if profile.tfa_secret is None:
            return False
        try:
            secret = self.cipher.decrypt(profile.tfa_secret)
        except SecretDecryptionError:
            logger.warning(
                "Stored TFA secret for %s could not be decrypted", profile.identity_ref
            )
            return False
        return self.totp.verify(secret, code)

    async def generate_secret(self, identity_ref: str) -> TfaSetup:
        """Create and store a new (unconfirmed) secret for the account.

        Calling this again before confirmation replaces the pending secret.

        Raises:
            NotFoundError: If the account has no profile.
            InvalidInputError: ``already_enabled`` when TFA is active.
            InternalError: If the profile store fails.
        """
        with AccountMetrics.operation("tfa_generate"):
            profile = await self._load(identity_ref)
            if profile is None:
                raise NotFoundError()
            if profile.tfa_state is TfaState.ENABLED:
                raise InvalidInputError(
                    "TFA is already enabled for this user", code="already_enabled"
                )

            secret = self.totp.generate_secret()
            uri = self.totp.provisioning_uri(secret, profile.email)
            await self._update(
                identity_ref,
                {"tfa_secret": self.cipher.encrypt(secret), "tfa_enabled": False},
            )

            logger.info("TFA secret generated for %s", identity_ref)
            await self.audit.emit(tfa_secret_generated_event(identity_ref))
            return TfaSetup(uri=uri, secret=secret)

    async def confirm_enrollment(self, identity_ref: str, code: str) -> str:
        """Verify the first code from the authenticator and enable TFA.

        Returns:
            The confirmation message.

        Raises:
            InvalidInputError: ``code_required``, ``not_started`` or ``bad_code``.
            InternalError: If the profile store fails.
        """
        code = (code or "").strip()
        if not code:
            raise InvalidInputError("The TFA code is required", code="code_required")

        with AccountMetrics.operation("tfa_confirm"):
            profile = await self._load(identity_ref)
            if profile is None or profile.tfa_state is TfaState.NOT_ENROLLED:
                raise InvalidInputError(
                    "TFA enrollment was not started for this user", code="not_started"
                )

            if not self._matches(profile, code):
                logger.warning("Rejected TFA confirmation code for %s", identity_ref)
                raise InvalidInputError("Invalid TFA code", code="bad_code")

            await self._update(identity_ref, {"tfa_enabled": True})

            logger.info("TFA enabled for %s", identity_ref)
            await self.audit.emit(tfa_enabled_event(identity_ref))
            return TFA_ENABLED_MESSAGE

    async def verify_login(self, identity_ref: str, code: str) -> None:
        """Check a login code for an account with TFA enabled.

        Never mutates the profile.

        Raises:
            UnauthorizedError: If TFA is not enabled or the code does not verify.
        """
        profile = await self._load(identity_ref)
        if profile is None or profile.tfa_state is not TfaState.ENABLED:
            raise UnauthorizedError()
        if not self._matches(profile, (code or "").strip()):
            raise UnauthorizedError()


__all__: list[str] = ["TFA_ENABLED_MESSAGE", "TfaEnrollmentManager", "TfaSetup"]
