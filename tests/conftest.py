"""Test configuration and fixtures."""

from __future__ import annotations

import base64
import os

import pytest

from account_lifecycle import (
    AccountServices,
    AccountSettings,
    InMemoryAuditStore,
    RegistrationResult,
    SecretCipher,
    TotpService,
    create_account_services,
)
from account_lifecycle.adapters.memory import (
    InMemoryIdentityProvider,
    InMemoryProfileStore,
)
from account_lifecycle.notifications import EmailNotificationDispatcher, InMemorySender

ALICE = {
    "email": "alice@acme.io",
    "password": "wonderland-42",
    "confirm_password": "wonderland-42",
    "full_name": "Alice Liddell",
    "username": "alice",
    "phone": "+34600111222",
}


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: marks tests as integration tests that require external services",
    )


@pytest.fixture
def identity_provider() -> InMemoryIdentityProvider:
    return InMemoryIdentityProvider()


@pytest.fixture
def profile_store() -> InMemoryProfileStore:
    return InMemoryProfileStore()


@pytest.fixture
def sender() -> InMemorySender:
    """Sender that keeps every message for assertions."""
    return InMemorySender()


@pytest.fixture
def dispatcher(sender: InMemorySender) -> EmailNotificationDispatcher:
    return EmailNotificationDispatcher(sender, from_email="support@acme.io")


@pytest.fixture
def audit_store() -> InMemoryAuditStore:
    return InMemoryAuditStore()


@pytest.fixture
def encryption_key() -> bytes:
    return os.urandom(32)


@pytest.fixture
def cipher(encryption_key: bytes) -> SecretCipher:
    return SecretCipher(encryption_key)


@pytest.fixture
def totp() -> TotpService:
    return TotpService()


@pytest.fixture
def settings(encryption_key: bytes) -> AccountSettings:
    """Settings with a fresh TFA key and no ``.env`` lookup."""
    return AccountSettings(
        _env_file=None,
        tfa_encryption_key=base64.b64encode(encryption_key).decode("ascii"),
    )


@pytest.fixture
def services(
    identity_provider: InMemoryIdentityProvider,
    profile_store: InMemoryProfileStore,
    dispatcher: EmailNotificationDispatcher,
    settings: AccountSettings,
    audit_store: InMemoryAuditStore,
) -> AccountServices:
    """Every account service wired over the in-memory adapters."""
    return create_account_services(
        identity_provider,
        profile_store,
        dispatcher,
        settings=settings,
        audit_store=audit_store,
    )


@pytest.fixture
async def registered(services: AccountServices) -> RegistrationResult:
    """Alice, registered through the provisioning coordinator."""
    return await services.provisioning.register_account(**ALICE)


@pytest.fixture
def bearer_token(
    registered: RegistrationResult, identity_provider: InMemoryIdentityProvider
) -> str:
    """Bearer token for Alice, as issued by the identity provider."""
    return identity_provider.sign_in(ALICE["email"], ALICE["password"])
