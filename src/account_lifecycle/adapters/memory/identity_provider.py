"""InMemoryIdentityProvider: dict-backed identity provider fake."""

from __future__ import annotations

import secrets
from dataclasses import dataclass, replace
from urllib.parse import quote

from ...domain.profile import normalize_identifier
from ...exceptions import (
    AccountNotFoundError,
    EmailAlreadyExistsError,
    IdentityProviderError,
    InvalidBearerTokenError,
)
from ...ports import ExternalAccount, IIdentityProvider, TokenClaims


@dataclass
class _StoredAccount:
    account: ExternalAccount
    password: str


class InMemoryIdentityProvider(IIdentityProvider):
    """In-memory implementation of ``IIdentityProvider``.

    Bearer tokens are opaque random strings created by :meth:`sign_in`,
    which stands in for the client-side sign-in against the real provider.
    Failures can be injected per method with :meth:`fail_next`.

    Example::

        idp = InMemoryIdentityProvider()
        account = await idp.create_account("a@x.com", "password1", "Alice")
        token = idp.sign_in("a@x.com", "password1")
    """

    def __init__(self, *, link_base_url: str = "https://auth.local/verify") -> None:
        self.link_base_url = link_base_url
        self._accounts: dict[str, _StoredAccount] = {}
        self._by_email: dict[str, str] = {}
        self._bearer_tokens: dict[str, str] = {}
        self._failures: dict[str, Exception] = {}
        self.deleted: list[str] = []
        self.exchange_tokens: dict[str, str] = {}

    # ── Test helpers ────────────────────────────────────────────────

    def fail_next(self, method: str, exc: Exception | None = None) -> None:
        """Make the next call to *method* raise *exc*."""
        self._failures[method] = exc or IdentityProviderError(f"{method} unavailable")

    def _maybe_fail(self, method: str) -> None:
        exc = self._failures.pop(method, None)
        if exc is not None:
            raise exc

    def sign_in(self, email: str, password: str) -> str:
        """Return a bearer token for valid credentials."""
        identity_ref = self._by_email.get(normalize_identifier(email))
        stored = self._accounts.get(identity_ref) if identity_ref else None
        if stored is None or stored.password != password:
            raise InvalidBearerTokenError("Invalid credentials")
        token = secrets.token_urlsafe(24)
        self._bearer_tokens[token] = stored.account.identity_ref
        return token

    def revoke(self, token: str) -> None:
        self._bearer_tokens.pop(token, None)

    def get_account(self, identity_ref: str) -> ExternalAccount | None:
        stored = self._accounts.get(identity_ref)
        return stored.account if stored else None

    def mark_email_verified(self, identity_ref: str) -> None:
        stored = self._accounts[identity_ref]
        stored.account = replace(stored.account, email_verified=True)

    # ── IIdentityProvider ───────────────────────────────────────────

    async def create_account(
        self, email: str, password: str, display_name: str
    ) -> ExternalAccount:
        self._maybe_fail("create_account")
        email = normalize_identifier(email)
        if email in self._by_email:
            raise EmailAlreadyExistsError(email)

        account = ExternalAccount(
            identity_ref=secrets.token_hex(14),
            email=email,
            display_name=display_name,
        )
        self._accounts[account.identity_ref] = _StoredAccount(account, password)
        self._by_email[email] = account.identity_ref
        return account

    async def delete_account(self, identity_ref: str) -> None:
        self._maybe_fail("delete_account")
        stored = self._accounts.pop(identity_ref, None)
        if stored is None:
            raise AccountNotFoundError(identity_ref)
        self._by_email.pop(stored.account.email, None)
        self._bearer_tokens = {
            token: ref for token, ref in self._bearer_tokens.items() if ref != identity_ref
        }
        self.deleted.append(identity_ref)

    async def update_credential(self, identity_ref: str, *, password: str) -> None:
        self._maybe_fail("update_credential")
        stored = self._accounts.get(identity_ref)
        if stored is None:
            raise AccountNotFoundError(identity_ref)
        stored.password = password

    async def verify_bearer_token(self, token: str) -> TokenClaims:
        self._maybe_fail("verify_bearer_token")
        identity_ref = self._bearer_tokens.get(token)
        stored = self._accounts.get(identity_ref) if identity_ref else None
        if stored is None:
            raise InvalidBearerTokenError()
        account = stored.account
        return TokenClaims(
            identity_ref=account.identity_ref,
            email=account.email,
            email_verified=account.email_verified,
            name=account.display_name,
            phone_number=account.phone_number,
        )

    async def issue_exchange_token(self, identity_ref: str) -> str:
        self._maybe_fail("issue_exchange_token")
        if identity_ref not in self._accounts:
            raise AccountNotFoundError(identity_ref)
        token = secrets.token_urlsafe(32)
        self.exchange_tokens[token] = identity_ref
        return token

    async def generate_email_verification_link(self, email: str) -> str:
        self._maybe_fail("generate_email_verification_link")
        email = normalize_identifier(email)
        if email not in self._by_email:
            raise AccountNotFoundError(email)
        return f"{self.link_base_url}?email={quote(email)}&oob={secrets.token_urlsafe(16)}"


__all__: list[str] = ["InMemoryIdentityProvider"]
