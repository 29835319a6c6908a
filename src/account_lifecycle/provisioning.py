"""Account registration across the identity provider and the profile store.

Registration is a two-step saga:

1. ``create_account`` in the identity provider, compensated by deleting it;
2. ``create_profile`` in the profile store.

A profile failure therefore rolls the provider account back. When the
rollback itself fails, the account is *orphaned*: it exists in the
provider without a profile. Orphans are logged at CRITICAL and recorded
as ``account.orphaned`` audit events for manual reconciliation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .audit import AuditTrail, account_orphaned_event, account_registered_event
from .domain.profile import UserProfile
from .exceptions import (
    AccountError,
    ConflictError,
    DuplicateProfileError,
    EmailAlreadyExistsError,
    InfrastructureError,
    InternalError,
    InvalidInputError,
    SagaExecutionError,
)
from .observability import AccountMetrics
from .sagas import Saga, SagaContext, SagaStep
from .validation import validate_registration

if TYPE_CHECKING:
    from .ports import ExternalAccount, IAuditStore, IIdentityProvider, IProfileStore

logger = logging.getLogger(__name__)

REGISTRATION_SAGA = "account_registration"

USERNAME_TAKEN_MESSAGE = "The username is already in use."
EMAIL_EXISTS_MESSAGE = "The email is already registered."


@dataclass(frozen=True)
class RegistrationResult:
    """Identity of a newly registered account."""

    identity_ref: str
    email: str


def _conflict_for(field: str | None) -> ConflictError:
    if field == "username":
        return ConflictError(USERNAME_TAKEN_MESSAGE, code="username_taken")
    if field == "email":
        return ConflictError(EMAIL_EXISTS_MESSAGE, code="email_exists")
    return ConflictError("The profile already exists.", code="profile_exists")


class AccountProvisioningCoordinator:
    """Registers accounts with compensated cross-system consistency."""

    def __init__(
        self,
        identity_provider: IIdentityProvider,
        profiles: IProfileStore,
        *,
        audit_store: IAuditStore | None = None,
    ) -> None:
        self.identity_provider = identity_provider
        self.profiles = profiles
        self.audit = AuditTrail(audit_store)
        self.saga = Saga(
            REGISTRATION_SAGA,
            [
                SagaStep(
                    "create_account",
                    self._create_account,
                    compensation=self._delete_account,
                ),
                SagaStep("create_profile", self._create_profile),
            ],
        )

    # ── Saga steps ───────────────────────────────────────────────────

    async def _create_account(self, context: SagaContext) -> ExternalAccount:
        form = context.data["form"]
        return await self.identity_provider.create_account(
            form.email, form.password, form.full_name
        )

    async def _delete_account(self, context: SagaContext) -> None:
        account: ExternalAccount = context.results["create_account"]
        await self.identity_provider.delete_account(account.identity_ref)
        logger.info(
            "Rolled back identity provider account %s", account.identity_ref
        )

    async def _create_profile(self, context: SagaContext) -> UserProfile:
        form = context.data["form"]
        account: ExternalAccount = context.results["create_account"]
        profile = UserProfile(
            identity_ref=account.identity_ref,
            email=account.email or form.email,
            username=form.username,
            full_name=form.full_name,
            phone=form.phone,
        )
        return await self.profiles.insert(profile)

    # ── Public API ───────────────────────────────────────────────────

    async def register_account(
        self,
        email: str,
        password: str,
        confirm_password: str,
        full_name: str,
        username: str,
        phone: str | None = None,
    ) -> RegistrationResult:
        """Create the provider account and its profile.

        Raises:
            InvalidInputError: ``validation_failed`` with field ``errors``.
            ConflictError: ``username_taken``, ``email_exists`` or
                ``profile_exists``.
            InternalError: On any other collaborator failure, including a
                failed rollback.
        """
        with AccountMetrics.operation("register"):
            form, validation = validate_registration(
                {
                    "email": email,
                    "password": password,
                    "confirm_password": confirm_password,
                    "full_name": full_name,
                    "username": username,
                    "phone": phone,
                }
            )
            if form is None:
                raise InvalidInputError(
                    "Validation failed",
                    code="validation_failed",
                    errors=validation.errors,
                )

            try:
                taken = await self.profiles.exists_by_username(form.username)
            except InfrastructureError as exc:
                logger.error("Username lookup failed: %s", exc)
                raise InternalError() from exc
            if taken:
                raise _conflict_for("username")

            context = SagaContext(data={"form": form})
            try:
                await self.saga.execute(context)
            except SagaExecutionError as exc:
                raise await self._translate_failure(exc, context, form.email) from exc

            profile: UserProfile = context.results["create_profile"]
            logger.info("Registered account %s", profile.identity_ref)
            await self.audit.emit(
                account_registered_event(profile.identity_ref, username=profile.username)
            )
            return RegistrationResult(identity_ref=profile.identity_ref, email=profile.email)

    async def _translate_failure(
        self, exc: SagaExecutionError, context: SagaContext, email: str
    ) -> AccountError:
        """Map a failed saga to the caller-facing error."""
        cause = exc.cause

        if exc.is_orphaned:
            account: ExternalAccount = context.results["create_account"]
            AccountMetrics.record_compensation("failed")
            logger.critical(
                "Orphaned identity provider account %s (%s): profile step '%s' "
                "failed with %s and rollback failed: %s. Manual reconciliation required.",
                account.identity_ref,
                email,
                exc.failed_step,
                type(cause).__name__,
                exc.state.failed_compensations,
            )
            await self.audit.emit(
                account_orphaned_event(
                    account.identity_ref,
                    email=email,
                    saga_id=exc.state.saga_id,
                    failed_step=exc.failed_step,
                    compensation_errors=exc.state.failed_compensations,
                )
            )
            return InternalError("Error creating profile, contact support.")

        if exc.failed_step == "create_profile":
            AccountMetrics.record_compensation("succeeded")

        if isinstance(cause, EmailAlreadyExistsError):
            return _conflict_for("email")
        if isinstance(cause, DuplicateProfileError):
            return _conflict_for(cause.field)

        logger.error(
            "Registration step '%s' failed: %s", exc.failed_step, cause, exc_info=cause
        )
        if exc.failed_step == "create_account":
            return InternalError("Error creating user.")
        return InternalError("Error creating profile, contact support.")


__all__: list[str] = [
    "AccountProvisioningCoordinator",
    "REGISTRATION_SAGA",
    "RegistrationResult",
]
