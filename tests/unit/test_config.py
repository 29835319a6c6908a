"""Tests for environment-driven settings and service wiring."""

from __future__ import annotations

import base64
import os
from datetime import timedelta

import pytest
from pydantic import ValidationError

from account_lifecycle import AccountServices, create_account_services
from account_lifecycle.adapters.memory import InMemoryIdentityProvider, InMemoryProfileStore
from account_lifecycle.config import AccountSettings
from account_lifecycle.exceptions import ConfigurationError
from account_lifecycle.factory import create_email_dispatcher
from account_lifecycle.notifications import InMemorySender, SmtpEmailSender

ENV_NAMES = [
    "ACCOUNTS_TFA_ENCRYPTION_KEY",
    "TFA_ENCRYPTION_KEY",
    "ACCOUNTS_TFA_APP_NAME",
    "TFA_APP_NAME",
    "ACCOUNTS_TFA_STRICT_DECRYPTION",
    "ACCOUNTS_RESET_CODE_TTL_SECONDS",
    "ACCOUNTS_SMTP_HOST",
    "ACCOUNTS_MAIL_FROM",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)


def key_b64() -> str:
    return base64.b64encode(os.urandom(32)).decode("ascii")


class TestAccountSettings:
    def test_defaults(self) -> None:
        settings = AccountSettings(_env_file=None)

        assert settings.tfa_encryption_key is None
        assert settings.tfa_app_name == "PapuDrive"
        assert settings.reset_code_ttl_seconds == 3600
        assert settings.mongo_database == "accounts"
        assert not settings.build_cipher().enabled
        assert settings.recovery_config().code_ttl == timedelta(hours=1)

    def test_prefixed_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ACCOUNTS_TFA_ENCRYPTION_KEY", key_b64())

        assert AccountSettings(_env_file=None).build_cipher().enabled

    def test_unprefixed_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TFA_ENCRYPTION_KEY", key_b64())
        monkeypatch.setenv("TFA_APP_NAME", "Acme")

        settings = AccountSettings(_env_file=None)

        assert settings.build_cipher().enabled
        assert settings.tfa_config().issuer == "Acme"

    def test_key_is_not_displayed(self, monkeypatch: pytest.MonkeyPatch) -> None:
        key = key_b64()
        monkeypatch.setenv("TFA_ENCRYPTION_KEY", key)

        assert key not in repr(AccountSettings(_env_file=None))

    def test_malformed_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TFA_ENCRYPTION_KEY", base64.b64encode(b"too short").decode())

        with pytest.raises(ConfigurationError):
            AccountSettings(_env_file=None).build_cipher()

    def test_strict_decryption(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ACCOUNTS_TFA_ENCRYPTION_KEY", key_b64())
        monkeypatch.setenv("ACCOUNTS_TFA_STRICT_DECRYPTION", "true")

        assert AccountSettings(_env_file=None).build_cipher().strict

    def test_reset_ttl(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ACCOUNTS_RESET_CODE_TTL_SECONDS", "600")

        config = AccountSettings(_env_file=None).recovery_config()

        assert config.code_ttl == timedelta(minutes=10)

    def test_reset_ttl_must_be_positive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ACCOUNTS_RESET_CODE_TTL_SECONDS", "0")

        with pytest.raises(ValidationError):
            AccountSettings(_env_file=None)

    def test_settings_are_frozen(self) -> None:
        settings = AccountSettings(_env_file=None)

        with pytest.raises(ValidationError):
            settings.smtp_host = "elsewhere"  # type: ignore[misc]


class TestFactory:
    def test_email_dispatcher_defaults_to_smtp(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("ACCOUNTS_SMTP_HOST", "smtp.acme.io")
        monkeypatch.setenv("ACCOUNTS_MAIL_FROM", "support@acme.io")

        dispatcher = create_email_dispatcher(AccountSettings(_env_file=None))

        assert isinstance(dispatcher.sender, SmtpEmailSender)
        assert dispatcher.sender.host == "smtp.acme.io"
        assert dispatcher.from_email == "support@acme.io"

    def test_email_dispatcher_with_custom_sender(self) -> None:
        sender = InMemorySender()

        dispatcher = create_email_dispatcher(AccountSettings(_env_file=None), sender)

        assert dispatcher.sender is sender

    def test_services_share_collaborators(self) -> None:
        idp, profiles = InMemoryIdentityProvider(), InMemoryProfileStore()
        dispatcher = create_email_dispatcher(AccountSettings(_env_file=None), InMemorySender())

        services = create_account_services(
            idp, profiles, dispatcher, settings=AccountSettings(_env_file=None)
        )

        assert isinstance(services, AccountServices)
        assert services.login.enrollment is services.enrollment
        assert services.provisioning.profiles is profiles
        assert services.recovery.identity_provider is idp

    def test_bad_key_fails_at_wiring(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TFA_ENCRYPTION_KEY", "!!!")

        with pytest.raises(ConfigurationError):
            create_account_services(
                InMemoryIdentityProvider(),
                InMemoryProfileStore(),
                create_email_dispatcher(AccountSettings(_env_file=None), InMemorySender()),
                settings=AccountSettings(_env_file=None),
            )
