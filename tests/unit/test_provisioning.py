"""Tests for account registration and its compensation."""

from __future__ import annotations

import logging

import pytest

from account_lifecycle import AccountServices
from account_lifecycle.adapters.memory import InMemoryIdentityProvider, InMemoryProfileStore
from account_lifecycle.audit import AccountEventType, InMemoryAuditStore
from account_lifecycle.domain import DEFAULT_ROLE, TfaState
from account_lifecycle.exceptions import (
    ConflictError,
    DuplicateProfileError,
    IdentityProviderError,
    InternalError,
    InvalidBearerTokenError,
    InvalidInputError,
)
from account_lifecycle.provisioning import AccountProvisioningCoordinator


def registration(**overrides: str | None) -> dict[str, str | None]:
    data: dict[str, str | None] = {
        "email": "alice@acme.io",
        "password": "wonderland-42",
        "confirm_password": "wonderland-42",
        "full_name": "Alice Liddell",
        "username": "alice",
        "phone": "+34600111222",
    }
    data.update(overrides)
    return data


@pytest.fixture
def coordinator(services: AccountServices) -> AccountProvisioningCoordinator:
    return services.provisioning


class TestRegisterAccount:
    """Test the successful path."""

    @pytest.mark.asyncio
    async def test_creates_account_and_profile(
        self,
        coordinator: AccountProvisioningCoordinator,
        identity_provider: InMemoryIdentityProvider,
        profile_store: InMemoryProfileStore,
        audit_store: InMemoryAuditStore,
    ) -> None:
        result = await coordinator.register_account(**registration())

        assert result.email == "alice@acme.io"
        account = identity_provider.get_account(result.identity_ref)
        assert account is not None
        assert account.display_name == "Alice Liddell"

        profile = await profile_store.find_by_identity_ref(result.identity_ref)
        assert profile is not None
        assert profile.username == "alice"
        assert profile.phone == "+34600111222"
        assert profile.role == DEFAULT_ROLE
        assert profile.tfa_state is TfaState.NOT_ENROLLED
        assert profile.reset_code is None

        events = await audit_store.get_events(result.identity_ref)
        assert [e.event_type for e in events] == [AccountEventType.ACCOUNT_REGISTERED]
        assert events[0].metadata == {"username": "alice"}

    @pytest.mark.asyncio
    async def test_identifiers_are_normalised(
        self,
        coordinator: AccountProvisioningCoordinator,
        profile_store: InMemoryProfileStore,
    ) -> None:
        result = await coordinator.register_account(
            **registration(email="  Alice@ACME.io ", username=" Alice ")
        )

        assert result.email == "alice@acme.io"
        profile = await profile_store.find_by_email("alice@acme.io")
        assert profile is not None
        assert profile.username == "alice"

    @pytest.mark.asyncio
    async def test_phone_is_optional(
        self,
        coordinator: AccountProvisioningCoordinator,
        profile_store: InMemoryProfileStore,
    ) -> None:
        result = await coordinator.register_account(**registration(phone=None))

        profile = await profile_store.find_by_identity_ref(result.identity_ref)
        assert profile is not None
        assert profile.phone is None


class TestRegisterValidation:
    @pytest.mark.asyncio
    async def test_invalid_input_touches_nothing(
        self,
        coordinator: AccountProvisioningCoordinator,
        profile_store: InMemoryProfileStore,
        identity_provider: InMemoryIdentityProvider,
    ) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            await coordinator.register_account(
                **registration(email="nope", password="short", username="al")
            )

        error = exc_info.value
        assert error.code == "validation_failed"
        assert {"email", "password", "username", "confirm_password"} <= set(error.errors)
        assert len(profile_store) == 0
        with pytest.raises(InvalidBearerTokenError):
            identity_provider.sign_in("nope", "short")

    @pytest.mark.asyncio
    async def test_password_mismatch(self, coordinator: AccountProvisioningCoordinator) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            await coordinator.register_account(**registration(confirm_password="different-1"))

        assert list(exc_info.value.errors) == ["confirm_password"]


class TestRegisterConflicts:
    @pytest.mark.asyncio
    async def test_username_taken(
        self,
        coordinator: AccountProvisioningCoordinator,
        identity_provider: InMemoryIdentityProvider,
        profile_store: InMemoryProfileStore,
    ) -> None:
        await coordinator.register_account(**registration())

        with pytest.raises(ConflictError) as exc_info:
            await coordinator.register_account(
                **registration(email="other@acme.io", username="ALICE")
            )

        assert exc_info.value.code == "username_taken"
        assert len(profile_store) == 1
        # The username check runs before the provider is called.
        with pytest.raises(InvalidBearerTokenError):
            identity_provider.sign_in("other@acme.io", "wonderland-42")
        assert identity_provider.deleted == []

    @pytest.mark.asyncio
    async def test_email_exists(
        self,
        coordinator: AccountProvisioningCoordinator,
        identity_provider: InMemoryIdentityProvider,
        profile_store: InMemoryProfileStore,
    ) -> None:
        await coordinator.register_account(**registration())

        with pytest.raises(ConflictError) as exc_info:
            await coordinator.register_account(**registration(username="alice2"))

        assert exc_info.value.code == "email_exists"
        assert len(profile_store) == 1
        assert identity_provider.deleted == []

    @pytest.mark.asyncio
    async def test_profile_race_rolls_back_and_reports_conflict(
        self,
        coordinator: AccountProvisioningCoordinator,
        identity_provider: InMemoryIdentityProvider,
        profile_store: InMemoryProfileStore,
    ) -> None:
        """A username taken between the check and the insert is a conflict."""
        profile_store.fail_next("insert", DuplicateProfileError("username", "alice"))

        with pytest.raises(ConflictError) as exc_info:
            await coordinator.register_account(**registration())

        assert exc_info.value.code == "username_taken"
        assert len(identity_provider.deleted) == 1
        assert len(profile_store) == 0


class TestRegisterCompensation:
    """Test rollback of the provider account."""

    @pytest.mark.asyncio
    async def test_profile_failure_deletes_account_once(
        self,
        coordinator: AccountProvisioningCoordinator,
        identity_provider: InMemoryIdentityProvider,
        profile_store: InMemoryProfileStore,
    ) -> None:
        profile_store.fail_next("insert")

        with pytest.raises(InternalError):
            await coordinator.register_account(**registration())

        assert len(identity_provider.deleted) == 1
        assert identity_provider.get_account(identity_provider.deleted[0]) is None
        assert len(profile_store) == 0
        with pytest.raises(InvalidBearerTokenError):
            identity_provider.sign_in("alice@acme.io", "wonderland-42")

    @pytest.mark.asyncio
    async def test_email_can_register_after_rollback(
        self,
        coordinator: AccountProvisioningCoordinator,
        profile_store: InMemoryProfileStore,
    ) -> None:
        profile_store.fail_next("insert")
        with pytest.raises(InternalError):
            await coordinator.register_account(**registration())

        result = await coordinator.register_account(**registration())

        assert result.email == "alice@acme.io"

    @pytest.mark.asyncio
    async def test_failed_rollback_orphans_account(
        self,
        coordinator: AccountProvisioningCoordinator,
        identity_provider: InMemoryIdentityProvider,
        profile_store: InMemoryProfileStore,
        audit_store: InMemoryAuditStore,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        profile_store.fail_next("insert")
        identity_provider.fail_next("delete_account")

        with caplog.at_level(logging.CRITICAL, logger="account_lifecycle.provisioning"):
            with pytest.raises(InternalError):
                await coordinator.register_account(**registration())

        assert identity_provider.deleted == []
        orphans = await audit_store.get_events_by_type(AccountEventType.ACCOUNT_ORPHANED)
        assert len(orphans) == 1
        orphan = orphans[0]
        assert not orphan.success
        assert orphan.metadata["email"] == "alice@acme.io"
        assert orphan.metadata["failed_step"] == "create_profile"
        assert orphan.metadata["compensation_errors"][0]["step"] == "create_account"
        assert identity_provider.get_account(orphan.identity_ref) is not None
        assert any(
            r.levelno == logging.CRITICAL and orphan.identity_ref in r.getMessage()
            for r in caplog.records
        )

    @pytest.mark.asyncio
    async def test_provider_failure_needs_no_rollback(
        self,
        coordinator: AccountProvisioningCoordinator,
        identity_provider: InMemoryIdentityProvider,
        profile_store: InMemoryProfileStore,
    ) -> None:
        identity_provider.fail_next("create_account", IdentityProviderError("quota"))

        with pytest.raises(InternalError) as exc_info:
            await coordinator.register_account(**registration())

        assert "quota" not in exc_info.value.message
        assert identity_provider.deleted == []
        assert len(profile_store) == 0

    @pytest.mark.asyncio
    async def test_username_lookup_failure(
        self,
        coordinator: AccountProvisioningCoordinator,
        profile_store: InMemoryProfileStore,
    ) -> None:
        profile_store.fail_next("exists_by_username")

        with pytest.raises(InternalError):
            await coordinator.register_account(**registration())
