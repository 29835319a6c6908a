"""Login with an identity-provider bearer token and an optional second factor.

The client authenticates against the identity provider first and sends the
resulting bearer (ID) token. Accounts without TFA receive an exchange token
right away; accounts with TFA must call ``login_with_tfa_code``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .audit import (
    AuditTrail,
    login_failed_event,
    login_success_event,
    login_tfa_required_event,
)
from .domain.profile import TfaState
from .exceptions import (
    AccountError,
    InfrastructureError,
    InternalError,
    UnauthorizedError,
)
from .observability import AccountMetrics
from .token import extract_bearer_token

if TYPE_CHECKING:
    from .mfa.enrollment import TfaEnrollmentManager
    from .ports import IAuditStore, IIdentityProvider, IProfileStore, TokenClaims

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoginResult:
    """Outcome of the first login step.

    ``token`` is only set when no second factor is required.
    """

    tfa_required: bool
    token: str | None
    authenticated: bool


@dataclass(frozen=True)
class TfaLoginResult:
    token: str
    authenticated: bool = True


@dataclass(frozen=True)
class TokenVerification:
    """Public view of a verified bearer token and its profile."""

    identity_ref: str
    email: str | None
    email_verified: bool
    phone_number: str | None
    name: str | None
    username: str | None
    tfa_enabled: bool


class LoginOrchestrator:
    """Coordinates token verification, TFA checks and exchange-token issuance."""

    def __init__(
        self,
        identity_provider: IIdentityProvider,
        profiles: IProfileStore,
        enrollment: TfaEnrollmentManager,
        *,
        audit_store: IAuditStore | None = None,
    ) -> None:
        self.identity_provider = identity_provider
        self.profiles = profiles
        self.enrollment = enrollment
        self.audit = AuditTrail(audit_store)

    async def _claims(self, bearer_token: str) -> TokenClaims:
        try:
            return await self.identity_provider.verify_bearer_token(bearer_token)
        except InfrastructureError as exc:
            logger.warning("Bearer token rejected: %s", type(exc).__name__)
            await self.audit.emit(login_failed_event(error_code="INVALID_TOKEN"))
            raise UnauthorizedError() from exc

    async def login(self, bearer_token: str) -> LoginResult:
        """First login step.

        Raises:
            UnauthorizedError: If the bearer token does not verify.
            InternalError: If the store or token issuance fails.
        """
        with AccountMetrics.operation("login"):
            claims = await self._claims(bearer_token)
            try:
                profile = await self.profiles.find_by_identity_ref(claims.identity_ref)
                if profile is not None and profile.tfa_state is TfaState.ENABLED:
                    logger.info("Login for %s requires TFA", claims.identity_ref)
                    await self.audit.emit(login_tfa_required_event(claims.identity_ref))
                    return LoginResult(tfa_required=True, token=None, authenticated=False)

                token = await self.identity_provider.issue_exchange_token(
                    claims.identity_ref
                )
            except InfrastructureError as exc:
                logger.error("Login failed for %s: %s", claims.identity_ref, exc)
                raise InternalError() from exc

            logger.info("Login succeeded for %s", claims.identity_ref)
            await self.audit.emit(login_success_event(claims.identity_ref))
            return LoginResult(tfa_required=False, token=token, authenticated=True)

    async def login_with_tfa_code(self, bearer_token: str, code: str) -> TfaLoginResult:
        """Second login step for accounts with TFA enabled.

        Every failure (token, profile, TFA state, code, issuance) raises the
        same :class:`UnauthorizedError`.
        """
        with AccountMetrics.operation("login_tfa"):
            identity_ref: str | None = None
            try:
                claims = await self.identity_provider.verify_bearer_token(bearer_token)
                identity_ref = claims.identity_ref
                await self.enrollment.verify_login(identity_ref, code)
                token = await self.identity_provider.issue_exchange_token(identity_ref)
            except (AccountError, InfrastructureError) as exc:
                logger.warning(
                    "TFA login rejected for %s: %s",
                    identity_ref or "unverified token",
                    type(exc).__name__,
                )
                await self.audit.emit(
                    login_failed_event(
                        identity_ref=identity_ref, method="totp", error_code="TFA_REJECTED"
                    )
                )
                raise UnauthorizedError() from exc

            logger.info("TFA login succeeded for %s", identity_ref)
            await self.audit.emit(login_success_event(identity_ref, method="totp"))
            return TfaLoginResult(token=token, authenticated=True)

    async def verify_token(self, bearer_token: str) -> TokenVerification:
        """Resolve a bearer token into public account data.

        Raises:
            UnauthorizedError: If the token does not verify or the lookup fails.
        """
        try:
            claims = await self.identity_provider.verify_bearer_token(bearer_token)
            profile = await self.profiles.find_by_identity_ref(claims.identity_ref)
        except InfrastructureError as exc:
            logger.warning("Token verification failed: %s", type(exc).__name__)
            raise UnauthorizedError() from exc

        return TokenVerification(
            identity_ref=claims.identity_ref,
            email=claims.email,
            email_verified=claims.email_verified,
            phone_number=claims.phone_number,
            name=claims.name,
            username=profile.username if profile is not None else None,
            tfa_enabled=profile.tfa_enabled if profile is not None else False,
        )


__all__: list[str] = [
    "LoginOrchestrator",
    "LoginResult",
    "TfaLoginResult",
    "TokenVerification",
    "extract_bearer_token",
]
