"""Unit tests for AuthOrchestrator.

Tests cover:
- register: validation, conflicts, derived username suffixing,
  notifications (a failing notifier never fails the operation)
- verify_email
- forgot_password / resend_verification: generic responses, rate limiting,
  per-user suppression, latency floor
- reset_password / change_password: policy first, revoke-all with retries
- change_email, deactivate_account, MFA management guards

Architecture:
- Mocked collaborators, RecordingNotifier, FakeClock
"""

import time
from datetime import timedelta
from unittest.mock import AsyncMock, Mock

import pytest
from uuid_extensions import uuid7

from personalpod_auth.application.dtos import GenericResponse, RegistrationProfile
from personalpod_auth.application.services import AuthOrchestrator, AuthPolicy
from personalpod_auth.core.enums import ErrorCode
from personalpod_auth.core.errors import ConflictError, NotFoundError, ValidationError
from personalpod_auth.core.result import Failure, Success
from personalpod_auth.domain.entities import User
from personalpod_auth.domain.enums import NotificationKind, TokenKind
from personalpod_auth.domain.errors import (
    AlreadyUsedError,
    InvalidCredentialsError,
    RateLimitedError,
)
from tests.utils.fakes import (
    FakeClock,
    FakeRateLimiter,
    RecordingNotifier,
    SequentialRandomSource,
)


def make_user(clock, **overrides) -> User:
    fields = {
        "id": uuid7(),
        "email": "jane@example.com",
        "username": "jane",
        "created_at": clock.now(),
        "updated_at": clock.now(),
    }
    fields.update(overrides)
    return User(**fields)


@pytest.fixture
def parts(mock_logger):
    clock = FakeClock()
    user_repo = AsyncMock()
    user_repo.exists_by_email.return_value = False
    user_repo.exists_by_username.return_value = False
    user_repo.find_by_email.return_value = None

    credential_store = Mock()
    credential_store.check_policy.return_value = Success(value=None)
    credential_store.set_password = AsyncMock(return_value=Success(value=None))
    credential_store.replace_password = AsyncMock(return_value=Success(value=None))
    credential_store.verify_password = AsyncMock(return_value=Success(value=True))

    token_vault = AsyncMock()
    token_vault.issue.return_value = "a" * 64
    token_vault.count_recent.return_value = 0
    token_vault.revoke_all.return_value = 1

    mfa_engine = AsyncMock()
    notifier = RecordingNotifier()

    def build(policy=None, **kwargs):
        return AuthOrchestrator(
            user_repo=user_repo,
            credential_store=credential_store,
            token_vault=token_vault,
            mfa_engine=mfa_engine,
            notifier=notifier,
            clock=clock,
            random_source=SequentialRandomSource(),
            logger=mock_logger,
            policy=policy
            or AuthPolicy(anti_enumeration_min_latency=timedelta(0)),
            **kwargs,
        )

    return {
        "build": build,
        "clock": clock,
        "user_repo": user_repo,
        "credential_store": credential_store,
        "token_vault": token_vault,
        "mfa_engine": mfa_engine,
        "notifier": notifier,
        "logger": mock_logger,
    }


@pytest.mark.unit
class TestRegister:
    """Test account registration."""

    async def test_register_success(self, parts):
        # Arrange
        orchestrator = parts["build"]()
        profile = RegistrationProfile(
            email="  Jane@Example.com ", password="Aa1!aaaa", first_name="Jane"
        )

        # Act
        result = await orchestrator.register(profile)

        # Assert
        assert isinstance(result, Success)
        assert result.value.email == "jane@example.com"
        assert result.value.username == "jane"
        assert result.value.email_verified is False
        assert not hasattr(result.value, "password_hash")
        saved_user = parts["user_repo"].save.call_args[0][0]
        parts["credential_store"].set_password.assert_awaited_once_with(
            saved_user.id, "Aa1!aaaa"
        )
        parts["token_vault"].issue.assert_awaited_once_with(
            saved_user.id, TokenKind.EMAIL_VERIFICATION, timedelta(hours=24)
        )
        notifier = parts["notifier"]
        assert notifier.last_token(NotificationKind.EMAIL_VERIFICATION) == "a" * 64
        assert len(notifier.of_kind(NotificationKind.WELCOME)) == 1

    async def test_invalid_email(self, parts):
        result = await parts["build"]().register(
            RegistrationProfile(email="not-an-email", password="Aa1!aaaa")
        )

        assert isinstance(result.error, ValidationError)
        assert result.error.code == ErrorCode.INVALID_EMAIL
        parts["user_repo"].save.assert_not_called()

    async def test_invalid_username(self, parts):
        result = await parts["build"]().register(
            RegistrationProfile(email="jane@example.com", password="Aa1!aaaa", username="jane doe!")
        )

        assert result.error.code == ErrorCode.INVALID_USERNAME

    async def test_weak_password_stops_before_persistence(self, parts):
        weak = ValidationError(
            code=ErrorCode.PASSWORD_TOO_WEAK, message="weak", field="password"
        )
        parts["credential_store"].check_policy.return_value = Failure(error=weak)

        result = await parts["build"]().register(
            RegistrationProfile(email="jane@example.com", password="weak")
        )

        assert result == Failure(error=weak)
        parts["user_repo"].save.assert_not_called()

    async def test_duplicate_email(self, parts):
        parts["user_repo"].exists_by_email.return_value = True

        result = await parts["build"]().register(
            RegistrationProfile(email="jane@example.com", password="Aa1!aaaa")
        )

        assert isinstance(result.error, ConflictError)
        assert result.error.code == ErrorCode.EMAIL_ALREADY_EXISTS
        assert parts["notifier"].sent == []

    async def test_explicit_username_taken_is_conflict(self, parts):
        parts["user_repo"].exists_by_username.return_value = True

        result = await parts["build"]().register(
            RegistrationProfile(
                email="jane@example.com", password="Aa1!aaaa", username="jane_doe"
            )
        )

        assert result.error.code == ErrorCode.USERNAME_ALREADY_EXISTS

    async def test_derived_username_taken_gets_suffix(self, parts):
        parts["user_repo"].exists_by_username.side_effect = [True, False]

        result = await parts["build"]().register(
            RegistrationProfile(email="jane@example.com", password="Aa1!aaaa")
        )

        assert result.value.username.startswith("jane-")
        assert len(result.value.username) == len("jane-") + 4

    async def test_notifier_failure_is_logged_not_raised(self, parts):
        parts["notifier"].fail = True

        result = await parts["build"]().register(
            RegistrationProfile(email="jane@example.com", password="Aa1!aaaa")
        )

        assert isinstance(result, Success)
        events = [c.args[0] for c in parts["logger"].error.call_args_list]
        assert events.count("notification_failed") == 2


@pytest.mark.unit
class TestVerifyEmail:
    """Test email verification."""

    async def test_verify_marks_user_verified(self, parts):
        user = make_user(parts["clock"])
        parts["token_vault"].redeem.return_value = Success(value=user.id)
        parts["user_repo"].find_by_id.return_value = user

        result = await parts["build"]().verify_email("token")

        assert result.value.email_verified is True
        assert user.email_verified_at == parts["clock"].now()
        parts["token_vault"].redeem.assert_awaited_once_with(
            "token", TokenKind.EMAIL_VERIFICATION
        )

    async def test_used_token_failure_passed_through(self, parts):
        parts["token_vault"].redeem.return_value = Failure(error=AlreadyUsedError())

        result = await parts["build"]().verify_email("token")

        assert isinstance(result.error, AlreadyUsedError)
        parts["user_repo"].update.assert_not_called()


@pytest.mark.unit
class TestEmailFlows:
    """Test anti-enumeration behaviour of the email-based flows."""

    async def test_forgot_password_identical_for_unknown_and_known(self, parts):
        orchestrator = parts["build"]()

        unknown = await orchestrator.forgot_password("ghost@example.com")
        parts["user_repo"].find_by_email.return_value = make_user(parts["clock"])
        known = await orchestrator.forgot_password("jane@example.com")

        assert unknown == known == Success(value=GenericResponse())
        assert len(parts["notifier"].of_kind(NotificationKind.PASSWORD_RESET)) == 1

    async def test_forgot_password_sends_reset_token(self, parts):
        user = make_user(parts["clock"])
        parts["user_repo"].find_by_email.return_value = user

        await parts["build"]().forgot_password("Jane@Example.com")

        parts["token_vault"].issue.assert_awaited_once_with(
            user.id, TokenKind.PASSWORD_RESET, timedelta(hours=1)
        )
        sent = parts["notifier"].of_kind(NotificationKind.PASSWORD_RESET)[0]
        assert sent.recipient == "jane@example.com"
        assert sent.data["expires_at"] == (
            parts["clock"].now() + timedelta(hours=1)
        ).isoformat()

    async def test_forgot_password_ignores_deactivated_account(self, parts):
        parts["user_repo"].find_by_email.return_value = make_user(
            parts["clock"], is_active=False
        )

        result = await parts["build"]().forgot_password("jane@example.com")

        assert result == Success(value=GenericResponse())
        parts["token_vault"].issue.assert_not_called()

    async def test_forgot_password_suppressed_after_hourly_cap(self, parts):
        parts["user_repo"].find_by_email.return_value = make_user(parts["clock"])
        parts["token_vault"].count_recent.return_value = 3

        result = await parts["build"]().forgot_password("jane@example.com")

        assert result == Success(value=GenericResponse())
        parts["token_vault"].issue.assert_not_called()

    async def test_forgot_password_malformed_email_is_generic(self, parts):
        result = await parts["build"]().forgot_password("nonsense")

        assert result == Success(value=GenericResponse())
        parts["user_repo"].find_by_email.assert_not_called()

    async def test_forgot_password_rate_limited(self, parts):
        limiter = FakeRateLimiter(blocked_scopes={"password_reset"})

        result = await parts["build"](rate_limiter=limiter).forgot_password(
            "jane@example.com", client_ip="198.51.100.7"
        )

        assert isinstance(result.error, RateLimitedError)
        assert limiter.keys == ["password_reset:198.51.100.7:jane@example.com"]

    async def test_resend_skips_verified_user(self, parts):
        parts["user_repo"].find_by_email.return_value = make_user(
            parts["clock"], email_verified=True
        )

        result = await parts["build"]().resend_verification("jane@example.com")

        assert result == Success(value=GenericResponse())
        parts["token_vault"].issue.assert_not_called()

    async def test_resend_sends_for_unverified_user(self, parts):
        parts["user_repo"].find_by_email.return_value = make_user(parts["clock"])

        await parts["build"]().resend_verification("jane@example.com")

        assert len(parts["notifier"].of_kind(NotificationKind.EMAIL_VERIFICATION)) == 1

    async def test_latency_floor_applies(self, parts):
        policy = AuthPolicy(anti_enumeration_min_latency=timedelta(milliseconds=50))
        orchestrator = parts["build"](policy=policy)

        started = time.perf_counter()
        await orchestrator.resend_verification("ghost@example.com")
        elapsed = time.perf_counter() - started

        assert elapsed >= 0.05

    async def test_latency_floor_applies_when_rate_limited(self, parts):
        policy = AuthPolicy(anti_enumeration_min_latency=timedelta(milliseconds=50))
        limiter = FakeRateLimiter(blocked_scopes={"verification_resend"})
        orchestrator = parts["build"](policy=policy, rate_limiter=limiter)

        started = time.perf_counter()
        result = await orchestrator.resend_verification("ghost@example.com")
        elapsed = time.perf_counter() - started

        assert isinstance(result, Failure)
        assert elapsed >= 0.05


@pytest.mark.unit
class TestPasswordChanges:
    """Test reset and change of passwords."""

    async def test_reset_checks_policy_before_redeeming(self, parts):
        parts["credential_store"].check_policy.return_value = Failure(
            error=ValidationError(
                code=ErrorCode.PASSWORD_TOO_WEAK, message="weak", field="password"
            )
        )

        result = await parts["build"]().reset_password("token", "weak")

        assert isinstance(result.error, ValidationError)
        parts["token_vault"].redeem.assert_not_called()

    async def test_reset_success_revokes_sessions_and_notifies(self, parts):
        user = make_user(parts["clock"])
        parts["token_vault"].redeem.return_value = Success(value=user.id)
        parts["user_repo"].find_by_id.return_value = user

        result = await parts["build"]().reset_password("token", "Bb2@bbbb")

        assert result == Success(value=None)
        parts["credential_store"].set_password.assert_awaited_once_with(
            user.id, "Bb2@bbbb"
        )
        parts["token_vault"].revoke_all.assert_awaited_once_with(
            user.id, "password_reset"
        )
        assert len(parts["notifier"].of_kind(NotificationKind.PASSWORD_CHANGED)) == 1

    async def test_reset_with_spent_token(self, parts):
        parts["token_vault"].redeem.return_value = Failure(error=AlreadyUsedError())

        result = await parts["build"]().reset_password("token", "Bb2@bbbb")

        assert isinstance(result.error, AlreadyUsedError)
        parts["credential_store"].set_password.assert_not_called()

    async def test_revoke_all_retried_then_reconcile_logged(self, parts):
        user = make_user(parts["clock"])
        parts["token_vault"].redeem.return_value = Success(value=user.id)
        parts["token_vault"].revoke_all.side_effect = ConnectionError("db down")
        parts["user_repo"].find_by_id.return_value = user

        result = await parts["build"]().reset_password("token", "Bb2@bbbb")

        assert isinstance(result, Success)
        assert parts["token_vault"].revoke_all.await_count == 3
        parts["logger"].error.assert_called_once()
        assert parts["logger"].error.call_args.kwargs["reconcile"] is True

    async def test_revoke_all_recovers_on_retry(self, parts):
        user = make_user(parts["clock"])
        parts["token_vault"].redeem.return_value = Success(value=user.id)
        parts["token_vault"].revoke_all.side_effect = [ConnectionError("blip"), 2]
        parts["user_repo"].find_by_id.return_value = user

        await parts["build"]().reset_password("token", "Bb2@bbbb")

        assert parts["token_vault"].revoke_all.await_count == 2
        parts["logger"].error.assert_not_called()

    async def test_change_password_wrong_old_password(self, parts):
        parts["user_repo"].find_by_id.return_value = make_user(parts["clock"])
        parts["credential_store"].verify_password.return_value = Success(value=False)

        result = await parts["build"]().change_password(uuid7(), "bad", "Bb2@bbbb")

        assert isinstance(result.error, InvalidCredentialsError)
        parts["credential_store"].replace_password.assert_not_called()

    async def test_change_password_revokes_sessions(self, parts):
        user = make_user(parts["clock"])
        parts["user_repo"].find_by_id.return_value = user

        result = await parts["build"]().change_password(user.id, "Aa1!aaaa", "Bb2@bbbb")

        assert isinstance(result, Success)
        parts["token_vault"].revoke_all.assert_awaited_once_with(
            user.id, "password_changed"
        )

    async def test_change_password_unknown_user(self, parts):
        parts["user_repo"].find_by_id.return_value = None

        result = await parts["build"]().change_password(uuid7(), "a", "b")

        assert isinstance(result.error, NotFoundError)


@pytest.mark.unit
class TestAccountChanges:
    """Test email change, profile update and deactivation."""

    async def test_change_email_resets_verification(self, parts):
        user = make_user(parts["clock"], email_verified=True)
        parts["user_repo"].find_by_id.return_value = user

        result = await parts["build"]().change_email(user.id, "new@example.com", "pw")

        assert result.value.email == "new@example.com"
        assert result.value.email_verified is False
        verification = parts["notifier"].of_kind(NotificationKind.EMAIL_VERIFICATION)
        changed = parts["notifier"].of_kind(NotificationKind.EMAIL_CHANGED)
        assert verification[0].recipient == "new@example.com"
        assert changed[0].recipient == "jane@example.com"

    async def test_change_email_to_taken_address(self, parts):
        parts["user_repo"].find_by_id.return_value = make_user(parts["clock"])
        parts["user_repo"].exists_by_email.return_value = True

        result = await parts["build"]().change_email(uuid7(), "taken@example.com", "pw")

        assert result.error.code == ErrorCode.EMAIL_ALREADY_EXISTS

    async def test_update_profile_username_conflict(self, parts):
        parts["user_repo"].find_by_id.return_value = make_user(parts["clock"])
        parts["user_repo"].exists_by_username.return_value = True

        result = await parts["build"]().update_profile(uuid7(), username="taken")

        assert isinstance(result.error, ConflictError)

    async def test_deactivate_revokes_sessions(self, parts):
        user = make_user(parts["clock"])
        parts["user_repo"].find_by_id.return_value = user

        result = await parts["build"]().deactivate_account(user.id, "pw")

        assert isinstance(result, Success)
        assert user.is_active is False
        parts["token_vault"].revoke_all.assert_awaited_once_with(
            user.id, "account_deactivated"
        )

    async def test_deactivate_requires_password(self, parts):
        parts["user_repo"].find_by_id.return_value = make_user(parts["clock"])
        parts["credential_store"].verify_password.return_value = Success(value=False)

        result = await parts["build"]().deactivate_account(uuid7(), "bad")

        assert isinstance(result.error, InvalidCredentialsError)
        parts["user_repo"].update.assert_not_called()


@pytest.mark.unit
class TestMFAManagement:
    """Test the password gate on MFA management."""

    async def test_disable_requires_password(self, parts):
        parts["credential_store"].verify_password.return_value = Success(value=False)

        result = await parts["build"]().disable_mfa(uuid7(), "bad")

        assert isinstance(result.error, InvalidCredentialsError)
        parts["mfa_engine"].disable.assert_not_called()

    async def test_disable_with_password(self, parts):
        user_id = uuid7()

        result = await parts["build"]().disable_mfa(user_id, "pw")

        assert result == Success(value=None)
        parts["mfa_engine"].disable.assert_awaited_once_with(user_id)

    async def test_regenerate_requires_password(self, parts):
        parts["credential_store"].verify_password.return_value = Success(value=False)

        result = await parts["build"]().regenerate_backup_codes(uuid7(), "bad")

        assert isinstance(result.error, InvalidCredentialsError)
        parts["mfa_engine"].regenerate_backup_codes.assert_not_called()

    async def test_begin_setup_unknown_user(self, parts):
        parts["user_repo"].find_by_id.return_value = None

        result = await parts["build"]().begin_mfa_setup(uuid7())

        assert result.error.code == ErrorCode.USER_NOT_FOUND
