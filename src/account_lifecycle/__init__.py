"""account-lifecycle: account and credential lifecycle services.

Registration with compensating rollback across an identity provider and a
profile store, password recovery codes, and TOTP two-factor enrollment
with encrypted secrets.

Optional integrations live in subpackages that are not imported here:
``account_lifecycle.adapters.mongo`` and ``account_lifecycle.contrib.fastapi``.
"""

from __future__ import annotations

from .audit import AccountAuditEvent, AccountEventType, InMemoryAuditStore
from .config import AccountSettings
from .crypto import SecretCipher
from .domain import TfaState, UserProfile
from .exceptions import (
    AccountError,
    AccountLifecycleError,
    ConfigurationError,
    ConflictError,
    ExpiredError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from .factory import AccountServices, create_account_services, create_email_dispatcher
from .login import (
    LoginOrchestrator,
    LoginResult,
    TfaLoginResult,
    TokenVerification,
    extract_bearer_token,
)
from .mfa import TfaConfig, TfaEnrollmentManager, TfaSetup, TotpService, render_qr_png
from .ports import (
    ExternalAccount,
    IAuditStore,
    IIdentityProvider,
    INotificationDispatcher,
    IProfileStore,
    TokenClaims,
)
from .provisioning import AccountProvisioningCoordinator, RegistrationResult
from .recovery import GENERIC_RESET_MESSAGE, PasswordRecoveryManager, RecoveryConfig
from .results import OperationResult
from .verification import EmailVerificationService

__version__ = "0.1.0"

__all__: list[str] = [
    # Services
    "AccountProvisioningCoordinator",
    "PasswordRecoveryManager",
    "TfaEnrollmentManager",
    "LoginOrchestrator",
    "EmailVerificationService",
    "AccountServices",
    "create_account_services",
    "create_email_dispatcher",
    # Results
    "OperationResult",
    "RegistrationResult",
    "LoginResult",
    "TfaLoginResult",
    "TokenVerification",
    "TfaSetup",
    "GENERIC_RESET_MESSAGE",
    # Domain
    "UserProfile",
    "TfaState",
    # Crypto / TOTP
    "SecretCipher",
    "TotpService",
    "render_qr_png",
    "extract_bearer_token",
    # Config
    "AccountSettings",
    "TfaConfig",
    "RecoveryConfig",
    # Ports
    "ExternalAccount",
    "TokenClaims",
    "IIdentityProvider",
    "IProfileStore",
    "INotificationDispatcher",
    "IAuditStore",
    # Audit
    "AccountAuditEvent",
    "AccountEventType",
    "InMemoryAuditStore",
    # Errors
    "AccountLifecycleError",
    "ConfigurationError",
    "AccountError",
    "InvalidInputError",
    "ConflictError",
    "UnauthorizedError",
    "NotFoundError",
    "ExpiredError",
    "InternalError",
]
