"""AES-256-GCM encryption for TOTP secrets at rest.

Token format: ``b64(nonce).b64(tag).b64(ciphertext)`` using standard
base64. A 96-bit nonce is generated for every encryption; the 128-bit
authentication tag is stored separately from the ciphertext.

Without a key the cipher runs in *degraded mode*: ``encrypt`` returns its
input and ``decrypt`` returns any token unchanged. Profiles written in
degraded mode (or before a key existed) therefore keep working after a key
is configured, because base32 TOTP secrets never contain ``.``.
"""

from __future__ import annotations

import base64
import binascii
import logging
import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..exceptions import ConfigurationError, SecretDecryptionError

logger = logging.getLogger(__name__)

AES_KEY_SIZE = 32  # 256 bits
NONCE_SIZE = 12  # 96 bits (recommended for GCM)
AUTH_TAG_SIZE = 16  # 128 bits
TOKEN_SEPARATOR = "."


class SecretCipher:
    """
    Reversible encryption of short secrets with graceful degradation.

    Usage::

        cipher = SecretCipher.from_base64(settings.tfa_encryption_key)
        token = cipher.encrypt(secret)
        assert cipher.decrypt(token) == secret

    Args:
        key: 32-byte key, or ``None`` for degraded (plaintext) mode.
        strict: Raise :class:`SecretDecryptionError` when a well-formed token
            fails to decrypt instead of returning it unchanged.

    Raises:
        ConfigurationError: If *key* is not exactly 32 bytes.
    """

    def __init__(self, key: bytes | None = None, *, strict: bool = False) -> None:
        if key is not None and len(key) != AES_KEY_SIZE:
            raise ConfigurationError(
                f"AES-256 requires exactly {AES_KEY_SIZE} bytes (256 bits). "
                f"Got {len(key)} bytes."
            )
        self._aesgcm = AESGCM(key) if key is not None else None
        self.strict = strict
        if self._aesgcm is None:
            logger.debug("SecretCipher running without a key; secrets stored in plaintext")

    @classmethod
    def from_base64(cls, value: str | None, *, strict: bool = False) -> SecretCipher:
        """Build a cipher from a base64 key; empty or ``None`` means degraded mode.

        Raises:
            ConfigurationError: If *value* is not valid base64 or does not
                decode to 32 bytes.
        """
        if not value:
            return cls(None, strict=strict)
        try:
            key = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise ConfigurationError("Encryption key is not valid base64") from exc
        return cls(key, strict=strict)

    @property
    def enabled(self) -> bool:
        """True when a key is configured."""
        return self._aesgcm is not None

    def encrypt(self, plaintext: str) -> str:
        """Encrypt *plaintext*; returns it unchanged in degraded mode."""
        if self._aesgcm is None:
            return plaintext

        nonce = os.urandom(NONCE_SIZE)
        sealed = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        # AESGCM appends the tag to the ciphertext.
        ciphertext, tag = sealed[:-AUTH_TAG_SIZE], sealed[-AUTH_TAG_SIZE:]
        return TOKEN_SEPARATOR.join(
            base64.b64encode(part).decode("ascii") for part in (nonce, tag, ciphertext)
        )

    def decrypt(self, token: str) -> str:
        """Decrypt *token*.

        Tokens that are not three dot-separated segments, and every token in
        degraded mode, are returned unchanged. A well-formed token that fails
        to decode or authenticate is returned unchanged and logged as
        suspected tampering (or raises in strict mode).

        Raises:
            SecretDecryptionError: In strict mode, on a failed decryption.
        """
        parts = token.split(TOKEN_SEPARATOR)
        if len(parts) != 3 or self._aesgcm is None:
            return token

        try:
            nonce, tag, ciphertext = (
                base64.b64decode(part, validate=True) for part in parts
            )
            if len(nonce) != NONCE_SIZE or len(tag) != AUTH_TAG_SIZE:
                raise ValueError("unexpected nonce or tag length")
            return self._aesgcm.decrypt(nonce, ciphertext + tag, None).decode("utf-8")
        except (InvalidTag, binascii.Error, ValueError) as exc:
            if self.strict:
                raise SecretDecryptionError(
                    "Stored secret could not be decrypted"
                ) from exc
            logger.warning(
                "Secret token failed to decrypt (%s); possible tampering or key change",
                type(exc).__name__,
            )
            return token


__all__: list[str] = ["SecretCipher", "AES_KEY_SIZE", "NONCE_SIZE", "AUTH_TAG_SIZE"]
