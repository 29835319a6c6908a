"""Encryption of secrets at rest."""

from __future__ import annotations

from .cipher import SecretCipher

__all__: list[str] = ["SecretCipher"]
