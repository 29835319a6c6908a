"""Configuration loaded from the environment.

``AccountSettings`` reads ``ACCOUNTS_*`` variables once at startup and
builds the frozen component configs. The TFA key and label also accept
the unprefixed ``TFA_ENCRYPTION_KEY`` / ``TFA_APP_NAME`` names.

Example::

    settings = AccountSettings()
    cipher = settings.build_cipher()
"""

from __future__ import annotations

from datetime import timedelta

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from .crypto.cipher import SecretCipher
from .mfa.totp import TfaConfig
from .recovery import RecoveryConfig


class AccountSettings(BaseSettings):
    """Environment-driven settings for the account services."""

    model_config = SettingsConfigDict(
        env_prefix="ACCOUNTS_",
        env_file=".env",
        extra="ignore",
        frozen=True,
        populate_by_name=True,
    )

    # ── TFA ──────────────────────────────────────────────────────────
    tfa_encryption_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("ACCOUNTS_TFA_ENCRYPTION_KEY", "TFA_ENCRYPTION_KEY"),
        description="Base64 32-byte AES key; unset means secrets are stored in plaintext",
    )
    tfa_app_name: str = Field(
        default="PapuDrive",
        validation_alias=AliasChoices("ACCOUNTS_TFA_APP_NAME", "TFA_APP_NAME"),
    )
    tfa_strict_decryption: bool = False

    # ── Recovery ─────────────────────────────────────────────────────
    reset_code_ttl_seconds: int = Field(default=3600, gt=0)

    # ── MongoDB ──────────────────────────────────────────────────────
    mongo_url: str = "mongodb://localhost:27017"
    mongo_database: str = "accounts"
    profiles_collection: str = "user_profiles"

    # ── SMTP ─────────────────────────────────────────────────────────
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: SecretStr | None = None
    smtp_use_tls: bool = True
    mail_from: str = '"Support team" <support@localhost>'

    def build_cipher(self) -> SecretCipher:
        """Raises ``ConfigurationError`` for a malformed key."""
        key = self.tfa_encryption_key.get_secret_value() if self.tfa_encryption_key else None
        return SecretCipher.from_base64(key, strict=self.tfa_strict_decryption)

    def tfa_config(self) -> TfaConfig:
        return TfaConfig(issuer=self.tfa_app_name)

    def recovery_config(self) -> RecoveryConfig:
        return RecoveryConfig(code_ttl=timedelta(seconds=self.reset_code_ttl_seconds))


__all__: list[str] = ["AccountSettings", "RecoveryConfig", "TfaConfig"]
