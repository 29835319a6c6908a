"""Factory functions wiring the account services from settings and adapters."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from .config import AccountSettings
from .login import LoginOrchestrator
from .mfa.enrollment import TfaEnrollmentManager
from .mfa.totp import TotpService
from .notifications import EmailNotificationDispatcher, SmtpEmailSender
from .provisioning import AccountProvisioningCoordinator
from .recovery import PasswordRecoveryManager
from .verification import EmailVerificationService

if TYPE_CHECKING:
    from .notifications import INotificationSender
    from .ports import IAuditStore, IIdentityProvider, INotificationDispatcher, IProfileStore


@dataclass(frozen=True)
class AccountServices:
    """The account services sharing one set of collaborators."""

    provisioning: AccountProvisioningCoordinator
    recovery: PasswordRecoveryManager
    enrollment: TfaEnrollmentManager
    login: LoginOrchestrator
    verification: EmailVerificationService


def create_email_dispatcher(
    settings: AccountSettings,
    sender: INotificationSender | None = None,
) -> EmailNotificationDispatcher:
    """E-mail dispatcher over *sender*, or over SMTP from *settings*."""
    if sender is None:
        sender = SmtpEmailSender(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=(
                settings.smtp_password.get_secret_value()
                if settings.smtp_password
                else None
            ),
            use_tls=settings.smtp_use_tls,
            from_email=settings.mail_from,
        )
    return EmailNotificationDispatcher(sender, from_email=settings.mail_from)


def create_account_services(
    identity_provider: IIdentityProvider,
    profiles: IProfileStore,
    notifications: INotificationDispatcher,
    *,
    settings: AccountSettings | None = None,
    audit_store: IAuditStore | None = None,
) -> AccountServices:
    """Build every account service.

    Example:
        ```python
        services = create_account_services(
            InMemoryIdentityProvider(),
            InMemoryProfileStore(),
            EmailNotificationDispatcher(InMemorySender()),
        )
        await services.provisioning.register_account(...)
        ```

    Raises:
        ConfigurationError: If the configured encryption key is malformed.
    """
    settings = settings or AccountSettings()
    enrollment = TfaEnrollmentManager(
        profiles,
        settings.build_cipher(),
        TotpService(settings.tfa_config()),
        audit_store=audit_store,
    )
    return AccountServices(
        provisioning=AccountProvisioningCoordinator(
            identity_provider, profiles, audit_store=audit_store
        ),
        recovery=PasswordRecoveryManager(
            identity_provider,
            profiles,
            notifications,
            settings.recovery_config(),
            audit_store=audit_store,
        ),
        enrollment=enrollment,
        login=LoginOrchestrator(
            identity_provider, profiles, enrollment, audit_store=audit_store
        ),
        verification=EmailVerificationService(identity_provider, notifications),
    )


__all__: list[str] = ["AccountServices", "create_account_services", "create_email_dispatcher"]
