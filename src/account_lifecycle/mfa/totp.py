"""TOTP (Time-based One-Time Password) primitives.

Works with any RFC 6238 authenticator app (Google Authenticator,
Microsoft Authenticator, Authy, 1Password). Uses pyotp internally.
"""

from __future__ import annotations

from dataclasses import dataclass

import pyotp


@dataclass(frozen=True)
class TfaConfig:
    """TOTP parameters.

    Attributes:
        issuer: Application label shown in the authenticator app.
        digits: Number of digits in a code.
        interval: Time step in seconds.
        valid_window: Accept codes within +-N steps for clock drift.
    """

    issuer: str = "PapuDrive"
    digits: int = 6
    interval: int = 30
    valid_window: int = 1


class TotpService:
    """Stateless TOTP generation and verification.

    Example:
        ```python
        totp = TotpService(TfaConfig(issuer="MyApp"))
        secret = totp.generate_secret()
        uri = totp.provisioning_uri(secret, "alice@acme.io")
        totp.verify(secret, "123456")
        ```
    """

    def __init__(self, config: TfaConfig | None = None) -> None:
        self.config = config or TfaConfig()

    def _totp(self, secret: str) -> pyotp.TOTP:
        return pyotp.TOTP(
            secret,
            digits=self.config.digits,
            interval=self.config.interval,
            issuer=self.config.issuer,
        )

    def generate_secret(self) -> str:
        """Return a fresh random base32 secret."""
        return pyotp.random_base32()

    def provisioning_uri(self, secret: str, account_name: str) -> str:
        """Build the ``otpauth://`` URI binding *secret* to *account_name*."""
        return self._totp(secret).provisioning_uri(
            name=account_name,
            issuer_name=self.config.issuer,
        )

    def current_code(self, secret: str) -> str:
        """Code for the current time step (used by tests and diagnostics)."""
        return self._totp(secret).now()

    def verify(self, secret: str, code: str) -> bool:
        """Verify *code* against *secret* within the configured window.

        A secret that is not valid base32 never verifies.
        """
        try:
            return self._totp(secret).verify(code, valid_window=self.config.valid_window)
        except ValueError:
            # binascii.Error for a secret that is not base32
            return False

    @staticmethod
    def format_secret(secret: str) -> str:
        """Format secret for manual entry as groups of 4 characters."""
        secret = secret.rstrip("=")
        return " ".join(secret[i : i + 4] for i in range(0, len(secret), 4))


__all__: list[str] = ["TfaConfig", "TotpService"]
