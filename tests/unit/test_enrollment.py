"""Tests for the TOTP enrollment state machine."""

from __future__ import annotations

import pytest

from account_lifecycle.adapters.memory import InMemoryProfileStore
from account_lifecycle.audit import AccountEventType, InMemoryAuditStore
from account_lifecycle.crypto import SecretCipher
from account_lifecycle.domain import TfaState, UserProfile
from account_lifecycle.exceptions import (
    InternalError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from account_lifecycle.mfa import TFA_ENABLED_MESSAGE, TfaEnrollmentManager, TotpService

UID = "uid-alice"


@pytest.fixture
async def store() -> InMemoryProfileStore:
    store = InMemoryProfileStore()
    await store.insert(
        UserProfile(
            identity_ref=UID,
            email="alice@acme.io",
            username="alice",
            full_name="Alice Liddell",
        )
    )
    return store


@pytest.fixture
def manager(
    store: InMemoryProfileStore,
    cipher: SecretCipher,
    totp: TotpService,
    audit_store: InMemoryAuditStore,
) -> TfaEnrollmentManager:
    return TfaEnrollmentManager(store, cipher, totp, audit_store=audit_store)


async def tfa_state(store: InMemoryProfileStore) -> TfaState:
    profile = await store.find_by_identity_ref(UID)
    assert profile is not None
    return profile.tfa_state


class TestGenerateSecret:
    """Test NOT_ENROLLED -> PENDING_CONFIRMATION."""

    @pytest.mark.asyncio
    async def test_stores_encrypted_pending_secret(
        self,
        manager: TfaEnrollmentManager,
        store: InMemoryProfileStore,
        cipher: SecretCipher,
    ) -> None:
        setup = await manager.generate_secret(UID)

        profile = await store.find_by_identity_ref(UID)
        assert profile is not None
        assert profile.tfa_state is TfaState.PENDING_CONFIRMATION
        assert profile.tfa_secret != setup.secret
        assert cipher.decrypt(profile.tfa_secret) == setup.secret
        assert setup.uri.startswith("otpauth://totp/")
        assert f"secret={setup.secret}" in setup.uri
        assert setup.manual_key.replace(" ", "") == setup.secret

    @pytest.mark.asyncio
    async def test_regenerating_replaces_pending_secret(
        self, manager: TfaEnrollmentManager
    ) -> None:
        first = await manager.generate_secret(UID)
        second = await manager.generate_secret(UID)

        assert first.secret != second.secret
        profile = await manager.profiles.find_by_identity_ref(UID)
        assert profile is not None and profile.tfa_secret is not None
        assert manager.cipher.decrypt(profile.tfa_secret) == second.secret
        assert await manager.confirm_enrollment(
            UID, manager.totp.current_code(second.secret)
        ) == TFA_ENABLED_MESSAGE

    @pytest.mark.asyncio
    async def test_unknown_profile(self, manager: TfaEnrollmentManager) -> None:
        with pytest.raises(NotFoundError):
            await manager.generate_secret("uid-nobody")

    @pytest.mark.asyncio
    async def test_already_enabled(
        self, manager: TfaEnrollmentManager, store: InMemoryProfileStore
    ) -> None:
        setup = await manager.generate_secret(UID)
        await manager.confirm_enrollment(UID, manager.totp.current_code(setup.secret))
        before = await store.find_by_identity_ref(UID)

        with pytest.raises(InvalidInputError) as exc_info:
            await manager.generate_secret(UID)

        assert exc_info.value.code == "already_enabled"
        after = await store.find_by_identity_ref(UID)
        assert after is not None and before is not None
        assert after.tfa_secret == before.tfa_secret
        assert after.tfa_state is TfaState.ENABLED

    @pytest.mark.asyncio
    async def test_store_failure_is_internal(
        self, manager: TfaEnrollmentManager, store: InMemoryProfileStore
    ) -> None:
        store.fail_next("find_by_identity_ref")

        with pytest.raises(InternalError):
            await manager.generate_secret(UID)

    @pytest.mark.asyncio
    async def test_audit_event(
        self, manager: TfaEnrollmentManager, audit_store: InMemoryAuditStore
    ) -> None:
        setup = await manager.generate_secret(UID)

        events = await audit_store.get_events(UID)
        assert [e.event_type for e in events] == [AccountEventType.TFA_SECRET_GENERATED]
        assert setup.secret not in str(events[0].to_dict())


class TestConfirmEnrollment:
    """Test PENDING_CONFIRMATION -> ENABLED."""

    @pytest.mark.asyncio
    async def test_correct_code_enables(
        self,
        manager: TfaEnrollmentManager,
        store: InMemoryProfileStore,
        audit_store: InMemoryAuditStore,
    ) -> None:
        setup = await manager.generate_secret(UID)

        message = await manager.confirm_enrollment(UID, manager.totp.current_code(setup.secret))

        assert message == TFA_ENABLED_MESSAGE == "TFA enabled"
        assert await tfa_state(store) is TfaState.ENABLED
        assert audit_store.count_by_type(AccountEventType.TFA_ENABLED) == 1

    @pytest.mark.asyncio
    async def test_wrong_code_leaves_state_unchanged(
        self, manager: TfaEnrollmentManager, store: InMemoryProfileStore
    ) -> None:
        await manager.generate_secret(UID)

        with pytest.raises(InvalidInputError) as exc_info:
            await manager.confirm_enrollment(UID, "abcdef")

        assert exc_info.value.code == "bad_code"
        assert await tfa_state(store) is TfaState.PENDING_CONFIRMATION

    @pytest.mark.asyncio
    @pytest.mark.parametrize("code", ["", "   "])
    async def test_code_required(self, manager: TfaEnrollmentManager, code: str) -> None:
        await manager.generate_secret(UID)

        with pytest.raises(InvalidInputError) as exc_info:
            await manager.confirm_enrollment(UID, code)

        assert exc_info.value.code == "code_required"

    @pytest.mark.asyncio
    async def test_not_started(
        self, manager: TfaEnrollmentManager, store: InMemoryProfileStore
    ) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            await manager.confirm_enrollment(UID, "123456")

        assert exc_info.value.code == "not_started"
        assert await tfa_state(store) is TfaState.NOT_ENROLLED

    @pytest.mark.asyncio
    async def test_unknown_profile_is_not_started(
        self, manager: TfaEnrollmentManager
    ) -> None:
        with pytest.raises(InvalidInputError) as exc_info:
            await manager.confirm_enrollment("uid-nobody", "123456")

        assert exc_info.value.code == "not_started"

    @pytest.mark.asyncio
    async def test_tampered_secret_never_confirms(
        self, manager: TfaEnrollmentManager, store: InMemoryProfileStore
    ) -> None:
        setup = await manager.generate_secret(UID)
        profile = await store.find_by_identity_ref(UID)
        assert profile is not None and profile.tfa_secret is not None
        nonce, tag, _ = profile.tfa_secret.split(".")
        await store.update_by_identity_ref(
            UID, {"tfa_secret": f"{nonce}.{tag}.AAAAAAAAAAAAAAAA"}
        )

        with pytest.raises(InvalidInputError) as exc_info:
            await manager.confirm_enrollment(UID, manager.totp.current_code(setup.secret))

        assert exc_info.value.code == "bad_code"
        assert await tfa_state(store) is TfaState.PENDING_CONFIRMATION

    @pytest.mark.asyncio
    async def test_strict_cipher_rejects_tampered_secret(
        self, store: InMemoryProfileStore, encryption_key: bytes, totp: TotpService
    ) -> None:
        manager = TfaEnrollmentManager(store, SecretCipher(encryption_key, strict=True), totp)
        setup = await manager.generate_secret(UID)
        profile = await store.find_by_identity_ref(UID)
        assert profile is not None and profile.tfa_secret is not None
        nonce, tag, _ = profile.tfa_secret.split(".")
        await store.update_by_identity_ref(
            UID, {"tfa_secret": f"{nonce}.{tag}.AAAAAAAAAAAAAAAA"}
        )

        with pytest.raises(InvalidInputError) as exc_info:
            await manager.confirm_enrollment(UID, totp.current_code(setup.secret))

        assert exc_info.value.code == "bad_code"


class TestDegradedCipher:
    """Without a key, secrets are stored in plaintext and still work."""

    @pytest.mark.asyncio
    async def test_plaintext_round_trip(
        self, store: InMemoryProfileStore, totp: TotpService
    ) -> None:
        manager = TfaEnrollmentManager(store, SecretCipher(), totp)

        setup = await manager.generate_secret(UID)
        profile = await store.find_by_identity_ref(UID)

        assert profile is not None
        assert profile.tfa_secret == setup.secret
        assert await manager.confirm_enrollment(
            UID, totp.current_code(setup.secret)
        ) == TFA_ENABLED_MESSAGE

    @pytest.mark.asyncio
    async def test_key_added_later_keeps_plaintext_secrets_working(
        self,
        store: InMemoryProfileStore,
        totp: TotpService,
        cipher: SecretCipher,
    ) -> None:
        setup = await TfaEnrollmentManager(store, SecretCipher(), totp).generate_secret(UID)

        keyed = TfaEnrollmentManager(store, cipher, totp)

        assert await keyed.confirm_enrollment(
            UID, totp.current_code(setup.secret)
        ) == TFA_ENABLED_MESSAGE


class TestVerifyLogin:
    @pytest.mark.asyncio
    async def test_accepts_valid_code(
        self, manager: TfaEnrollmentManager, store: InMemoryProfileStore
    ) -> None:
        setup = await manager.generate_secret(UID)
        await manager.confirm_enrollment(UID, manager.totp.current_code(setup.secret))
        before = await store.find_by_identity_ref(UID)

        await manager.verify_login(UID, manager.totp.current_code(setup.secret))

        assert await store.find_by_identity_ref(UID) == before

    @pytest.mark.asyncio
    async def test_rejects_bad_code(self, manager: TfaEnrollmentManager) -> None:
        setup = await manager.generate_secret(UID)
        await manager.confirm_enrollment(UID, manager.totp.current_code(setup.secret))

        with pytest.raises(UnauthorizedError):
            await manager.verify_login(UID, "abcdef")

    @pytest.mark.asyncio
    async def test_rejects_pending_enrollment(self, manager: TfaEnrollmentManager) -> None:
        """A correct code is not enough before enrollment is confirmed."""
        setup = await manager.generate_secret(UID)

        with pytest.raises(UnauthorizedError):
            await manager.verify_login(UID, manager.totp.current_code(setup.secret))

    @pytest.mark.asyncio
    async def test_rejects_unknown_profile(self, manager: TfaEnrollmentManager) -> None:
        with pytest.raises(UnauthorizedError):
            await manager.verify_login("uid-nobody", "123456")
