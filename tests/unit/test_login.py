"""Tests for the login orchestrator."""

from __future__ import annotations

import pytest

from account_lifecycle import AccountServices, RegistrationResult
from account_lifecycle.adapters.memory import InMemoryIdentityProvider, InMemoryProfileStore
from account_lifecycle.audit import AccountEventType, InMemoryAuditStore
from account_lifecycle.exceptions import InternalError, UnauthorizedError
from account_lifecycle.login import LoginOrchestrator


async def enable_tfa(services: AccountServices, identity_ref: str) -> str:
    """Enroll the account in TFA and return the raw secret."""
    setup = await services.enrollment.generate_secret(identity_ref)
    totp = services.enrollment.totp
    await services.enrollment.confirm_enrollment(identity_ref, totp.current_code(setup.secret))
    return setup.secret


@pytest.fixture
def orchestrator(services: AccountServices) -> LoginOrchestrator:
    return services.login


class TestLogin:
    """Test the first login step."""

    @pytest.mark.asyncio
    async def test_without_tfa_issues_token(
        self,
        orchestrator: LoginOrchestrator,
        identity_provider: InMemoryIdentityProvider,
        registered: RegistrationResult,
        bearer_token: str,
        audit_store: InMemoryAuditStore,
    ) -> None:
        result = await orchestrator.login(bearer_token)

        assert result.authenticated
        assert not result.tfa_required
        assert result.token is not None
        assert identity_provider.exchange_tokens[result.token] == registered.identity_ref
        assert audit_store.count_by_type(AccountEventType.LOGIN_SUCCESS) == 1

    @pytest.mark.asyncio
    async def test_with_tfa_withholds_token(
        self,
        orchestrator: LoginOrchestrator,
        services: AccountServices,
        identity_provider: InMemoryIdentityProvider,
        registered: RegistrationResult,
        bearer_token: str,
        audit_store: InMemoryAuditStore,
    ) -> None:
        await enable_tfa(services, registered.identity_ref)

        result = await orchestrator.login(bearer_token)

        assert result.tfa_required
        assert result.token is None
        assert not result.authenticated
        assert identity_provider.exchange_tokens == {}
        assert audit_store.count_by_type(AccountEventType.LOGIN_TFA_REQUIRED) == 1

    @pytest.mark.asyncio
    async def test_pending_enrollment_does_not_require_tfa(
        self,
        orchestrator: LoginOrchestrator,
        services: AccountServices,
        registered: RegistrationResult,
        bearer_token: str,
    ) -> None:
        await services.enrollment.generate_secret(registered.identity_ref)

        result = await orchestrator.login(bearer_token)

        assert not result.tfa_required
        assert result.token is not None

    @pytest.mark.asyncio
    async def test_invalid_token(
        self,
        orchestrator: LoginOrchestrator,
        registered: RegistrationResult,
        audit_store: InMemoryAuditStore,
    ) -> None:
        with pytest.raises(UnauthorizedError):
            await orchestrator.login("forged-token")

        failures = await audit_store.get_events_by_type(AccountEventType.LOGIN_FAILED)
        assert failures[0].error_code == "INVALID_TOKEN"

    @pytest.mark.asyncio
    async def test_revoked_token(
        self,
        orchestrator: LoginOrchestrator,
        identity_provider: InMemoryIdentityProvider,
        bearer_token: str,
    ) -> None:
        identity_provider.revoke(bearer_token)

        with pytest.raises(UnauthorizedError):
            await orchestrator.login(bearer_token)

    @pytest.mark.asyncio
    async def test_issuance_failure_is_internal(
        self,
        orchestrator: LoginOrchestrator,
        identity_provider: InMemoryIdentityProvider,
        bearer_token: str,
    ) -> None:
        identity_provider.fail_next("issue_exchange_token")

        with pytest.raises(InternalError):
            await orchestrator.login(bearer_token)

    @pytest.mark.asyncio
    async def test_store_failure_is_internal(
        self,
        orchestrator: LoginOrchestrator,
        profile_store: InMemoryProfileStore,
        bearer_token: str,
    ) -> None:
        profile_store.fail_next("find_by_identity_ref")

        with pytest.raises(InternalError):
            await orchestrator.login(bearer_token)


class TestLoginWithTfaCode:
    """Test the second login step."""

    @pytest.mark.asyncio
    async def test_valid_code_issues_token(
        self,
        orchestrator: LoginOrchestrator,
        services: AccountServices,
        identity_provider: InMemoryIdentityProvider,
        registered: RegistrationResult,
        bearer_token: str,
    ) -> None:
        secret = await enable_tfa(services, registered.identity_ref)

        result = await orchestrator.login_with_tfa_code(
            bearer_token, services.enrollment.totp.current_code(secret)
        )

        assert result.authenticated
        assert identity_provider.exchange_tokens[result.token] == registered.identity_ref

    @pytest.mark.asyncio
    async def test_failures_are_indistinguishable(
        self,
        orchestrator: LoginOrchestrator,
        services: AccountServices,
        identity_provider: InMemoryIdentityProvider,
        registered: RegistrationResult,
        bearer_token: str,
        audit_store: InMemoryAuditStore,
    ) -> None:
        """Bad token, TFA off, bad code and issuance failure look the same."""
        errors: list[UnauthorizedError] = []

        async def attempt(token: str, code: str) -> None:
            with pytest.raises(UnauthorizedError) as exc_info:
                await orchestrator.login_with_tfa_code(token, code)
            errors.append(exc_info.value)

        # TFA not enabled yet
        await attempt(bearer_token, "123456")

        secret = await enable_tfa(services, registered.identity_ref)
        code = services.enrollment.totp.current_code(secret)

        await attempt("forged-token", code)
        await attempt(bearer_token, "abcdef")
        identity_provider.fail_next("issue_exchange_token")
        await attempt(bearer_token, code)

        assert {(e.message, e.code) for e in errors} == {
            (UnauthorizedError.default_message, UnauthorizedError.default_code)
        }
        assert identity_provider.exchange_tokens == {}
        assert audit_store.count_by_type(AccountEventType.LOGIN_FAILED) == 4


class TestVerifyToken:
    @pytest.mark.asyncio
    async def test_returns_claims_and_profile_data(
        self,
        orchestrator: LoginOrchestrator,
        identity_provider: InMemoryIdentityProvider,
        registered: RegistrationResult,
        bearer_token: str,
    ) -> None:
        identity_provider.mark_email_verified(registered.identity_ref)

        info = await orchestrator.verify_token(bearer_token)

        assert info.identity_ref == registered.identity_ref
        assert info.email == "alice@acme.io"
        assert info.email_verified
        assert info.name == "Alice Liddell"
        assert info.username == "alice"
        assert not info.tfa_enabled

    @pytest.mark.asyncio
    async def test_reports_tfa_enabled(
        self,
        orchestrator: LoginOrchestrator,
        services: AccountServices,
        registered: RegistrationResult,
        bearer_token: str,
    ) -> None:
        await enable_tfa(services, registered.identity_ref)

        assert (await orchestrator.verify_token(bearer_token)).tfa_enabled

    @pytest.mark.asyncio
    async def test_invalid_token(self, orchestrator: LoginOrchestrator) -> None:
        with pytest.raises(UnauthorizedError):
            await orchestrator.verify_token("forged-token")
