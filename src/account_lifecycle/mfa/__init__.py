"""TOTP two-factor authentication.

Supports any RFC 6238 authenticator app (Google Authenticator,
Microsoft Authenticator, Authy).
"""

from __future__ import annotations

from .enrollment import TFA_ENABLED_MESSAGE, TfaEnrollmentManager, TfaSetup
from .qr import render_qr_png
from .totp import TfaConfig, TotpService

__all__: list[str] = [
    "TFA_ENABLED_MESSAGE",
    "TfaConfig",
    "TfaEnrollmentManager",
    "TfaSetup",
    "TotpService",
    "render_qr_png",
]
