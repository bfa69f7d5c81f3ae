"""End-to-end auth flows against a real SQLite database.

Tests cover:
- Register -> verify email -> login -> refresh -> logout
- MFA enrollment and two-step login (TOTP and backup codes)
- Password reset ends every session
- Email change, deactivation
- Refresh token reuse detection
- Expiry driven by the injected clock
- Anti-enumeration for the email-based flows
- Maintenance purge

Architecture:
- Real repositories, argon2, AES-GCM, pyotp, PyJWT
- FakeClock, RecordingNotifier, SequentialRandomSource
"""

import time
from datetime import timedelta

import pyotp
import pytest
from sqlalchemy import select

from personalpod_auth.application.dtos import GenericResponse, RegistrationProfile
from personalpod_auth.application.services import AuthPolicy, hash_token
from personalpod_auth.core.result import Failure, Success
from personalpod_auth.domain.entities import Authenticated, MFAPending, Unauthenticated
from personalpod_auth.domain.enums import MFACodeType, MFAState, NotificationKind
from personalpod_auth.domain.errors import (
    AccountDisabledError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidTokenError,
    RateLimitedError,
)
from personalpod_auth.infrastructure.persistence.models.refresh_token import (
    RefreshToken,
)
from personalpod_auth.infrastructure.persistence.models.verification_token import (
    VerificationToken,
)
from tests.conftest import TEST_PASSWORD
from tests.utils.fakes import FakeRateLimiter

NEW_PASSWORD = "N3w!Passw0rd-x"


async def register_verified(stack, notifier, email="jane@example.com"):
    registered = await stack.orchestrator.register(
        RegistrationProfile(email=email, password=TEST_PASSWORD)
    )
    assert isinstance(registered, Success)
    token = notifier.last_token(NotificationKind.EMAIL_VERIFICATION)
    verified = await stack.orchestrator.verify_email(token)
    assert isinstance(verified, Success)
    return verified.value


async def enable_mfa(stack, clock, user_id):
    setup = (await stack.orchestrator.begin_mfa_setup(user_id)).value
    code = pyotp.TOTP(setup.secret).at(clock.now())
    backup_codes = (await stack.orchestrator.confirm_mfa_setup(user_id, code)).value
    return setup.secret, backup_codes


@pytest.mark.integration
class TestRegistrationAndLogin:
    """Test the basic account lifecycle."""

    async def test_register_verify_login_refresh_logout(
        self, test_database, build_stack, notifier
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)

            # Arrange
            profile = await register_verified(stack, notifier)

            # Act
            login = await stack.session_issuer.login("Jane@Example.com", TEST_PASSWORD)
            refreshed = await stack.session_issuer.refresh(
                login.value.tokens.refresh_token
            )
            await stack.session_issuer.logout(refreshed.value.refresh_token)
            after_logout = await stack.session_issuer.refresh(
                refreshed.value.refresh_token
            )

            # Assert
            assert profile.email_verified is True
            assert isinstance(login.value, Authenticated)
            claims = stack.session_issuer.validate_access_token(
                login.value.tokens.access_token
            )
            assert claims.value.user_id == profile.id
            assert isinstance(refreshed, Success)
            assert isinstance(after_logout.error, InvalidTokenError)

    async def test_only_token_digests_are_stored(
        self, test_database, build_stack, notifier
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            await stack.orchestrator.register(
                RegistrationProfile(email="jane@example.com", password=TEST_PASSWORD)
            )
            token = notifier.last_token(NotificationKind.EMAIL_VERIFICATION)
            login = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)
            refresh_token = login.value.tokens.refresh_token

            verification_hashes = (
                await session.scalars(select(VerificationToken.token_hash))
            ).all()
            refresh_hashes = (await session.scalars(select(RefreshToken.token_hash))).all()

        assert verification_hashes == [hash_token(token)]
        assert refresh_hashes == [hash_token(refresh_token)]

    async def test_wrong_password_and_unknown_account_match(
        self, test_database, build_stack, notifier
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            await register_verified(stack, notifier)

            wrong = await stack.session_issuer.login("jane@example.com", "Wr0ng!pass")
            unknown = await stack.session_issuer.login("nobody@example.com", "Wr0ng!pass")

        assert wrong == unknown
        assert isinstance(wrong.error, InvalidCredentialsError)

    async def test_unverified_login_blocked_by_policy(
        self, test_database, build_stack, policy
    ):
        strict = AuthPolicy(
            backup_code_pepper=policy.backup_code_pepper,
            anti_enumeration_min_latency=timedelta(0),
            block_unverified_login=True,
        )
        async with test_database.get_session() as session:
            stack = build_stack(session, auth_policy=strict)
            await stack.orchestrator.register(
                RegistrationProfile(email="jane@example.com", password=TEST_PASSWORD)
            )

            result = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)

        assert isinstance(result, Failure)

    async def test_verification_token_expires(
        self, test_database, build_stack, notifier, clock
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            await stack.orchestrator.register(
                RegistrationProfile(email="jane@example.com", password=TEST_PASSWORD)
            )
            token = notifier.last_token(NotificationKind.EMAIL_VERIFICATION)

            clock.advance(hours=25)
            result = await stack.orchestrator.verify_email(token)

        assert isinstance(result.error, InvalidTokenError)

    async def test_resend_supersedes_earlier_token(
        self, test_database, build_stack, notifier
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            await stack.orchestrator.register(
                RegistrationProfile(email="jane@example.com", password=TEST_PASSWORD)
            )
            first = notifier.last_token(NotificationKind.EMAIL_VERIFICATION)
            await stack.orchestrator.resend_verification("jane@example.com")
            second = notifier.last_token(NotificationKind.EMAIL_VERIFICATION)

            stale = await stack.orchestrator.verify_email(first)
            fresh = await stack.orchestrator.verify_email(second)

        assert first != second
        assert isinstance(stale, Failure)
        assert isinstance(fresh, Success)


@pytest.mark.integration
class TestMFAFlows:
    """Test MFA enrollment and two-step login."""

    async def test_totp_login(self, test_database, build_stack, notifier, clock):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            profile = await register_verified(stack, notifier)
            secret, backup_codes = await enable_mfa(stack, clock, profile.id)

            clock.advance(seconds=30)
            pending = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)
            wrong = await stack.session_issuer.complete_mfa(
                pending.value.mfa_session_token, "000000", MFACodeType.TOTP
            )
            code = pyotp.TOTP(secret).at(clock.now())
            completed = await stack.session_issuer.complete_mfa(
                pending.value.mfa_session_token, code, MFACodeType.TOTP
            )
            replayed = await stack.session_issuer.complete_mfa(
                pending.value.mfa_session_token, code, MFACodeType.TOTP
            )

        assert len(backup_codes) == 10
        assert isinstance(pending.value, MFAPending)
        assert not hasattr(pending.value, "tokens")
        assert isinstance(wrong.error, InvalidCodeError)
        assert isinstance(completed.value, Authenticated)
        assert isinstance(replayed.error, InvalidTokenError)

    async def test_totp_code_cannot_be_replayed(
        self, test_database, build_stack, notifier, clock
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            profile = await register_verified(stack, notifier)
            secret, _ = await enable_mfa(stack, clock, profile.id)
            clock.advance(seconds=30)
            code = pyotp.TOTP(secret).at(clock.now())

            first_login = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)
            first = await stack.session_issuer.complete_mfa(
                first_login.value.mfa_session_token, code, MFACodeType.TOTP
            )
            second_login = await stack.session_issuer.login(
                "jane@example.com", TEST_PASSWORD
            )
            second = await stack.session_issuer.complete_mfa(
                second_login.value.mfa_session_token, code, MFACodeType.TOTP
            )

        assert isinstance(first, Success)
        assert isinstance(second.error, InvalidCodeError)

    async def test_backup_codes_are_single_use_and_regenerable(
        self, test_database, build_stack, notifier, clock
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            profile = await register_verified(stack, notifier)
            _, backup_codes = await enable_mfa(stack, clock, profile.id)

            login = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)
            used = await stack.session_issuer.complete_mfa(
                login.value.mfa_session_token,
                backup_codes[0].lower(),
                MFACodeType.BACKUP,
            )
            login = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)
            reused = await stack.session_issuer.complete_mfa(
                login.value.mfa_session_token, backup_codes[0], MFACodeType.BACKUP
            )

            regenerated = await stack.orchestrator.regenerate_backup_codes(
                profile.id, TEST_PASSWORD
            )
            old_after_regen = await stack.session_issuer.complete_mfa(
                login.value.mfa_session_token, backup_codes[1], MFACodeType.BACKUP
            )
            status = await stack.orchestrator.mfa_status(profile.id)

        assert used.value.backup_codes_remaining == 9
        assert isinstance(reused.error, InvalidCodeError)
        assert len(regenerated.value) == 10
        assert set(regenerated.value).isdisjoint(backup_codes)
        assert isinstance(old_after_regen.error, InvalidCodeError)
        assert status.state == MFAState.ENABLED
        assert status.backup_codes_remaining == 10

    async def test_backup_code_exhaustion_warns(
        self, test_database, build_stack, notifier, clock, policy
    ):
        small = AuthPolicy(
            backup_code_pepper=policy.backup_code_pepper,
            anti_enumeration_min_latency=timedelta(0),
            backup_code_count=4,
        )
        async with test_database.get_session() as session:
            stack = build_stack(session, auth_policy=small)
            profile = await register_verified(stack, notifier)
            _, backup_codes = await enable_mfa(stack, clock, profile.id)

            outcomes = []
            for code in backup_codes:
                login = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)
                outcomes.append(
                    await stack.session_issuer.complete_mfa(
                        login.value.mfa_session_token, code, MFACodeType.BACKUP
                    )
                )

        assert [o.value.backup_codes_remaining for o in outcomes] == [3, 2, 1, 0]
        assert [o.value.low_backup_codes for o in outcomes] == [True, True, True, True]

    async def test_mfa_session_expires(self, test_database, build_stack, notifier, clock):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            profile = await register_verified(stack, notifier)
            secret, _ = await enable_mfa(stack, clock, profile.id)

            pending = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)
            token = pending.value.mfa_session_token
            live = await stack.session_issuer.pending_state(token)

            clock.advance(minutes=6)
            lapsed = await stack.session_issuer.pending_state(token)
            result = await stack.session_issuer.complete_mfa(
                token, pyotp.TOTP(secret).at(clock.now()), MFACodeType.TOTP
            )

        assert isinstance(live, MFAPending)
        assert live.mfa_session_token is None
        assert lapsed == Unauthenticated()
        assert isinstance(result.error, InvalidTokenError)

    async def test_disable_is_idempotent_and_requires_password(
        self, test_database, build_stack, notifier, clock
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            profile = await register_verified(stack, notifier)
            await enable_mfa(stack, clock, profile.id)

            refused = await stack.orchestrator.disable_mfa(profile.id, "Wr0ng!pass")
            first = await stack.orchestrator.disable_mfa(profile.id, TEST_PASSWORD)
            second = await stack.orchestrator.disable_mfa(profile.id, TEST_PASSWORD)
            login = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)
            status = await stack.orchestrator.mfa_status(profile.id)

        assert isinstance(refused.error, InvalidCredentialsError)
        assert isinstance(first, Success)
        assert isinstance(second, Success)
        assert isinstance(login.value, Authenticated)
        assert status.state == MFAState.UNENROLLED

    async def test_setup_refused_while_enabled(
        self, test_database, build_stack, notifier, clock
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            profile = await register_verified(stack, notifier)
            await enable_mfa(stack, clock, profile.id)

            result = await stack.orchestrator.begin_mfa_setup(profile.id)

        assert isinstance(result, Failure)


@pytest.mark.integration
class TestCredentialChanges:
    """Test that credential changes end existing sessions."""

    async def test_reset_password_revokes_every_session(
        self, test_database, build_stack, notifier
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            await register_verified(stack, notifier)
            first = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)
            second = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)

            await stack.orchestrator.forgot_password("jane@example.com")
            reset_token = notifier.last_token(NotificationKind.PASSWORD_RESET)
            assert await stack.orchestrator.validate_reset_token(reset_token)
            reset = await stack.orchestrator.reset_password(reset_token, NEW_PASSWORD)
            reused_link = await stack.orchestrator.reset_password(
                reset_token, NEW_PASSWORD
            )

            r1 = await stack.session_issuer.refresh(first.value.tokens.refresh_token)
            r2 = await stack.session_issuer.refresh(second.value.tokens.refresh_token)
            old_login = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)
            new_login = await stack.session_issuer.login("jane@example.com", NEW_PASSWORD)

        assert isinstance(reset, Success)
        assert isinstance(reused_link.error, InvalidTokenError)
        assert isinstance(r1.error, InvalidTokenError)
        assert isinstance(r2.error, InvalidTokenError)
        assert isinstance(old_login.error, InvalidCredentialsError)
        assert isinstance(new_login.value, Authenticated)
        assert len(notifier.of_kind(NotificationKind.PASSWORD_CHANGED)) == 1

    async def test_weak_reset_password_keeps_link_usable(
        self, test_database, build_stack, notifier
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            await register_verified(stack, notifier)
            await stack.orchestrator.forgot_password("jane@example.com")
            reset_token = notifier.last_token(NotificationKind.PASSWORD_RESET)

            weak = await stack.orchestrator.reset_password(reset_token, "weak")
            strong = await stack.orchestrator.reset_password(reset_token, NEW_PASSWORD)

        assert isinstance(weak, Failure)
        assert isinstance(strong, Success)

    async def test_change_password_revokes_sessions(
        self, test_database, build_stack, notifier
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            profile = await register_verified(stack, notifier)
            login = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)

            changed = await stack.orchestrator.change_password(
                profile.id, TEST_PASSWORD, NEW_PASSWORD
            )
            refreshed = await stack.session_issuer.refresh(
                login.value.tokens.refresh_token
            )

        assert isinstance(changed, Success)
        assert isinstance(refreshed.error, InvalidTokenError)

    async def test_refresh_reuse_revokes_descendants(
        self, test_database, build_stack, notifier
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            await register_verified(stack, notifier)
            login = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)
            original = login.value.tokens.refresh_token

            rotated = await stack.session_issuer.refresh(original)
            reuse = await stack.session_issuer.refresh(original)
            descendant = await stack.session_issuer.refresh(rotated.value.refresh_token)

        assert isinstance(rotated, Success)
        assert isinstance(reuse.error, InvalidTokenError)
        assert isinstance(descendant.error, InvalidTokenError)

    async def test_refresh_token_expires(self, test_database, build_stack, notifier, clock):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            await register_verified(stack, notifier)
            login = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)

            clock.advance(days=31)
            result = await stack.session_issuer.refresh(login.value.tokens.refresh_token)

        assert isinstance(result.error, InvalidTokenError)


@pytest.mark.integration
class TestAccountChanges:
    """Test email change and deactivation."""

    async def test_change_email_requires_new_verification(
        self, test_database, build_stack, notifier
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            profile = await register_verified(stack, notifier)

            changed = await stack.orchestrator.change_email(
                profile.id, "jane.new@example.com", TEST_PASSWORD
            )
            token = notifier.last_token(NotificationKind.EMAIL_VERIFICATION)
            verified = await stack.orchestrator.verify_email(token)
            old_address = await stack.session_issuer.login(
                "jane@example.com", TEST_PASSWORD
            )
            new_address = await stack.session_issuer.login(
                "jane.new@example.com", TEST_PASSWORD
            )

        assert changed.value.email_verified is False
        assert verified.value.email == "jane.new@example.com"
        assert verified.value.email_verified is True
        assert isinstance(old_address.error, InvalidCredentialsError)
        assert isinstance(new_address.value, Authenticated)

    async def test_deactivation_blocks_login_and_refresh(
        self, test_database, build_stack, notifier
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            profile = await register_verified(stack, notifier)
            login = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)

            deactivated = await stack.orchestrator.deactivate_account(
                profile.id, TEST_PASSWORD
            )
            relogin = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)
            refreshed = await stack.session_issuer.refresh(
                login.value.tokens.refresh_token
            )
            forgot = await stack.orchestrator.forgot_password("jane@example.com")

        assert isinstance(deactivated, Success)
        assert isinstance(relogin.error, AccountDisabledError)
        assert isinstance(refreshed, Failure)
        assert forgot == Success(value=GenericResponse())
        assert notifier.of_kind(NotificationKind.PASSWORD_RESET) == []

    async def test_duplicate_registration_conflicts(
        self, test_database, build_stack, notifier
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            await register_verified(stack, notifier)

            duplicate = await stack.orchestrator.register(
                RegistrationProfile(email="JANE@example.com", password=TEST_PASSWORD)
            )
            same_local_part = await stack.orchestrator.register(
                RegistrationProfile(email="jane@example.org", password=TEST_PASSWORD)
            )

        assert isinstance(duplicate, Failure)
        assert same_local_part.value.username.startswith("jane-")


@pytest.mark.integration
class TestAntiEnumeration:
    """Test the email-based flows reveal nothing about account existence."""

    async def test_responses_identical_and_padded(
        self, test_database, build_stack, notifier, policy
    ):
        padded = AuthPolicy(
            backup_code_pepper=policy.backup_code_pepper,
            anti_enumeration_min_latency=timedelta(milliseconds=100),
        )
        async with test_database.get_session() as session:
            stack = build_stack(session, auth_policy=padded)
            await register_verified(stack, notifier)

            timings = []
            responses = []
            for email in ("jane@example.com", "ghost@example.com"):
                started = time.perf_counter()
                responses.append(await stack.orchestrator.forgot_password(email))
                timings.append(time.perf_counter() - started)

        assert responses[0] == responses[1]
        assert all(elapsed >= 0.1 for elapsed in timings)

    async def test_reset_requests_capped_per_hour(
        self, test_database, build_stack, notifier, clock
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            await register_verified(stack, notifier)

            for _ in range(5):
                result = await stack.orchestrator.forgot_password("jane@example.com")
                assert result == Success(value=GenericResponse())
            capped = len(notifier.of_kind(NotificationKind.PASSWORD_RESET))

            clock.advance(hours=1, seconds=1)
            await stack.orchestrator.forgot_password("jane@example.com")

        assert capped == 3
        assert len(notifier.of_kind(NotificationKind.PASSWORD_RESET)) == 4

    async def test_rate_limited_login(self, test_database, build_stack, notifier):
        limiter = FakeRateLimiter(blocked_scopes={"login"})
        async with test_database.get_session() as session:
            stack = build_stack(session, rate_limiter=limiter)
            await register_verified(stack, notifier)

            result = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)

        assert isinstance(result.error, RateLimitedError)


@pytest.mark.integration
class TestMaintenance:
    """Test the purge of stale records."""

    async def test_purge_removes_only_stale_rows(
        self, test_database, build_stack, notifier, clock
    ):
        async with test_database.get_session() as session:
            stack = build_stack(session)
            profile = await register_verified(stack, notifier)
            login = await stack.session_issuer.login("jane@example.com", TEST_PASSWORD)
            await stack.session_issuer.refresh(login.value.tokens.refresh_token)
            _, backup_codes = await enable_mfa(stack, clock, profile.id)
            pending_login = await stack.session_issuer.login(
                "jane@example.com", TEST_PASSWORD
            )
            await stack.session_issuer.complete_mfa(
                pending_login.value.mfa_session_token, backup_codes[0], MFACodeType.BACKUP
            )

            immediate = await stack.maintenance.run()
            clock.advance(hours=2)
            later = await stack.maintenance.run()
            repeat = await stack.maintenance.run()
            remaining_refresh = (await session.scalars(select(RefreshToken))).all()

        assert immediate.total == 0
        assert later.verification_tokens == 2
        assert later.refresh_tokens == 1
        assert later.backup_codes == 1
        assert repeat.total == 0
        assert all(row.revoked_at is None for row in remaining_refresh)
