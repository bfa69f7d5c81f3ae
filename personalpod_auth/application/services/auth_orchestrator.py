"""AuthOrchestrator: registration, verification, recovery and account flows.

Composes CredentialStore, TokenVault, MFAEngine and the Notifier.

Anti-enumeration:
    `forgot_password` and `resend_verification` return the same
    GenericResponse whether or not the account exists, and every call is
    padded to a minimum latency so the work done for existing accounts is
    not observable in response time.

Notifications:
    Fire-and-forget. A failing notifier is logged and never turns a
    completed operation into a failure.

Credential changes:
    After a password replacement (reset, change) or deactivation, all
    refresh tokens of the user are revoked. Revocation is retried; if it
    keeps failing the operation still succeeds and an ERROR with
    ``reconcile=True`` is logged for out-of-band cleanup.
"""

import asyncio
import time
from datetime import timedelta
from typing import Callable
from uuid import UUID

from uuid_extensions import uuid7

from personalpod_auth.application.dtos import (
    GenericResponse,
    MFASetup,
    MFAStatus,
    RegistrationProfile,
    UserProfile,
)
from personalpod_auth.application.services.credential_store import CredentialStore
from personalpod_auth.application.services.mfa_engine import MFAEngine
from personalpod_auth.application.services.policy import AuthPolicy
from personalpod_auth.application.services.token_vault import TokenVault
from personalpod_auth.core.constants import (
    REVOKE_REASON_ACCOUNT_DEACTIVATED,
    REVOKE_REASON_PASSWORD_CHANGED,
    REVOKE_REASON_PASSWORD_RESET,
    USERNAME_MAX_LENGTH,
)
from personalpod_auth.core.enums import ErrorCode
from personalpod_auth.core.errors import ConflictError, NotFoundError, ValidationError
from personalpod_auth.core.result import Failure, Result, Success
from personalpod_auth.domain.entities import User
from personalpod_auth.domain.enums import NotificationKind, TokenKind
from personalpod_auth.domain.errors import (
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidTokenError,
    RateLimitedError,
)
from personalpod_auth.domain.protocols import (
    ClockProtocol,
    EncryptionError,
    LoggerProtocol,
    NotifierProtocol,
    RandomSourceProtocol,
    RateLimiterProtocol,
    UserRepository,
)
from personalpod_auth.domain.value_objects import (
    derive_username,
    normalize_email,
    validate_username,
)

PASSWORD_RESET_SCOPE = "password_reset"
VERIFICATION_RESEND_SCOPE = "verification_resend"

_USER = "User"
_USERNAME_SUFFIX_ATTEMPTS = 5
# Room left for a "-xxxxxxxx" suffix
_USERNAME_BASE_LENGTH = USERNAME_MAX_LENGTH - 9
_ONE_HOUR = timedelta(hours=1)


class AuthOrchestrator:
    """Entry point for account-level auth flows.

    Example:
        >>> match await orchestrator.register(
        ...     RegistrationProfile(email="a@x.com", password="Aa1!aaaa")
        ... ):
        ...     case Success(value=profile):
        ...         ...
        ...     case Failure(error=ValidationError(violations=violations)):
        ...         ...
    """

    def __init__(
        self,
        *,
        user_repo: UserRepository,
        credential_store: CredentialStore,
        token_vault: TokenVault,
        mfa_engine: MFAEngine,
        notifier: NotifierProtocol,
        clock: ClockProtocol,
        random_source: RandomSourceProtocol,
        logger: LoggerProtocol,
        policy: AuthPolicy,
        rate_limiter: RateLimiterProtocol | None = None,
        id_factory: Callable[[], UUID] = uuid7,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            user_repo: User persistence.
            credential_store: Password storage and verification.
            token_vault: Verification and reset tokens, session revocation.
            mfa_engine: MFA enrollment and status.
            notifier: Outbound notification requests.
            clock: Time source.
            random_source: Secure randomness (username suffixes).
            logger: Structured logger.
            policy: Auth tunables.
            rate_limiter: Optional throttle for the email-based flows.
            id_factory: New user id generator (UUIDv7).
        """
        self._user_repo = user_repo
        self._credential_store = credential_store
        self._token_vault = token_vault
        self._mfa_engine = mfa_engine
        self._notifier = notifier
        self._clock = clock
        self._random_source = random_source
        self._logger = logger
        self._policy = policy
        self._rate_limiter = rate_limiter
        self._id_factory = id_factory

    # ------------------------------------------------------------------
    # Registration and verification
    # ------------------------------------------------------------------

    async def register(
        self, profile: RegistrationProfile
    ) -> Result[UserProfile, ValidationError | ConflictError]:
        """Create an unverified account and send the verification email.

        Returns:
            Success(UserProfile) without any credential material.
            Failure(ValidationError) for a bad email, username or password.
            Failure(ConflictError) when the email or chosen username is taken.
        """
        # Step 1: Validate input
        try:
            email = normalize_email(profile.email)
        except ValueError as e:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.INVALID_EMAIL, message=str(e), field="email"
                )
            )

        username: str | None = None
        if profile.username is not None:
            try:
                username = validate_username(profile.username)
            except ValueError as e:
                return Failure(
                    error=ValidationError(
                        code=ErrorCode.INVALID_USERNAME, message=str(e), field="username"
                    )
                )

        policy_result = self._credential_store.check_policy(profile.password)
        if isinstance(policy_result, Failure):
            return policy_result

        # Step 2: Uniqueness
        if await self._user_repo.exists_by_email(email):
            self._logger.info("registration_rejected", reason="email_taken")
            return Failure(error=self._email_taken())

        if username is None:
            username = await self._available_username(derive_username(email))
        elif await self._user_repo.exists_by_username(username):
            self._logger.info("registration_rejected", reason="username_taken")
            return Failure(error=self._username_taken())

        # Step 3: Persist user and credential
        now = self._clock.now()
        user = User(
            id=self._id_factory(),
            email=email,
            username=username,
            first_name=profile.first_name,
            last_name=profile.last_name,
            created_at=now,
            updated_at=now,
        )
        await self._user_repo.save(user)

        password_result = await self._credential_store.set_password(
            user.id, profile.password
        )
        if isinstance(password_result, Failure):
            return password_result

        # Step 4: Verification token and notifications
        await self._send_verification(user)
        await self._notify(
            NotificationKind.WELCOME, user.email, {"username": user.username}
        )

        self._logger.info("user_registered", user_id=str(user.id))
        return Success(value=UserProfile.from_user(user))

    async def verify_email(self, token: str) -> Result[UserProfile, InvalidTokenError]:
        """Redeem an email verification token.

        Failure is terminal and surfaced as-is.
        """
        redeemed = await self._token_vault.redeem(token, TokenKind.EMAIL_VERIFICATION)
        if isinstance(redeemed, Failure):
            return redeemed

        user = await self._user_repo.find_by_id(redeemed.value)
        if user is None:
            return Failure(error=InvalidTokenError())

        user.mark_email_verified(self._clock.now())
        await self._user_repo.update(user)

        self._logger.info("email_verified", user_id=str(user.id))
        return Success(value=UserProfile.from_user(user))

    async def resend_verification(
        self, email: str, *, client_ip: str = "unknown"
    ) -> Result[GenericResponse, RateLimitedError]:
        """Send a fresh verification token if the account needs one.

        The response never reveals whether the account exists.
        """
        started = time.perf_counter()
        try:
            return await self._resend_verification(email, client_ip)
        finally:
            await self._pad_latency(started)

    async def forgot_password(
        self, email: str, *, client_ip: str = "unknown"
    ) -> Result[GenericResponse, RateLimitedError]:
        """Send a password reset token if the account exists.

        The response never reveals whether the account exists.
        """
        started = time.perf_counter()
        try:
            return await self._forgot_password(email, client_ip)
        finally:
            await self._pad_latency(started)

    # ------------------------------------------------------------------
    # Password recovery and change
    # ------------------------------------------------------------------

    async def validate_reset_token(self, token: str) -> bool:
        """Read-only check that a reset link is still usable."""
        result = await self._token_vault.validate_without_consuming(
            token, TokenKind.PASSWORD_RESET
        )
        return isinstance(result, Success)

    async def reset_password(
        self, token: str, new_password: str
    ) -> Result[None, InvalidTokenError | ValidationError]:
        """Set a new password with a reset token and end every session.

        The password is checked before the token is redeemed, so a rejected
        password does not burn the link.
        """
        policy_result = self._credential_store.check_policy(new_password)
        if isinstance(policy_result, Failure):
            return policy_result

        redeemed = await self._token_vault.redeem(token, TokenKind.PASSWORD_RESET)
        if isinstance(redeemed, Failure):
            return redeemed
        user_id = redeemed.value

        password_result = await self._credential_store.set_password(user_id, new_password)
        if isinstance(password_result, Failure):
            return password_result

        await self._revoke_all_sessions(user_id, REVOKE_REASON_PASSWORD_RESET)

        user = await self._user_repo.find_by_id(user_id)
        if user is not None:
            await self._notify_password_changed(user)

        self._logger.info("password_reset_completed", user_id=str(user_id))
        return Success(value=None)

    async def change_password(
        self, user_id: UUID, old_password: str, new_password: str
    ) -> Result[None, InvalidCredentialsError | ValidationError | NotFoundError]:
        """Change the password of an authenticated user and end every session."""
        user = await self._user_repo.find_by_id(user_id)
        if user is None:
            return Failure(error=self._user_not_found(user_id))

        if not await self._password_matches(user_id, old_password):
            self._logger.warning(
                "password_change_rejected", user_id=str(user_id), reason="bad_password"
            )
            return Failure(error=InvalidCredentialsError(message="Invalid password"))

        replaced = await self._credential_store.replace_password(user_id, new_password)
        if isinstance(replaced, Failure):
            return replaced

        await self._revoke_all_sessions(user_id, REVOKE_REASON_PASSWORD_CHANGED)
        await self._notify_password_changed(user)

        self._logger.info("password_changed", user_id=str(user_id))
        return Success(value=None)

    # ------------------------------------------------------------------
    # Profile and account
    # ------------------------------------------------------------------

    async def get_profile(self, user_id: UUID) -> Result[UserProfile, NotFoundError]:
        user = await self._user_repo.find_by_id(user_id)
        if user is None:
            return Failure(error=self._user_not_found(user_id))
        return Success(value=UserProfile.from_user(user))

    async def update_profile(
        self,
        user_id: UUID,
        *,
        username: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> Result[UserProfile, ValidationError | ConflictError | NotFoundError]:
        """Partially update profile fields (None leaves a field unchanged)."""
        user = await self._user_repo.find_by_id(user_id)
        if user is None:
            return Failure(error=self._user_not_found(user_id))

        if username is not None:
            try:
                username = validate_username(username)
            except ValueError as e:
                return Failure(
                    error=ValidationError(
                        code=ErrorCode.INVALID_USERNAME, message=str(e), field="username"
                    )
                )
            if username.lower() != user.username.lower() and (
                await self._user_repo.exists_by_username(username)
            ):
                return Failure(error=self._username_taken())

        user.update_profile(
            now=self._clock.now(),
            username=username,
            first_name=first_name,
            last_name=last_name,
        )
        await self._user_repo.update(user)

        self._logger.info("profile_updated", user_id=str(user_id))
        return Success(value=UserProfile.from_user(user))

    async def change_email(
        self, user_id: UUID, new_email: str, password: str
    ) -> Result[
        UserProfile,
        ValidationError | ConflictError | InvalidCredentialsError | NotFoundError,
    ]:
        """Move the account to a new, unverified email address.

        The old address is told about the change; the new one receives a
        verification token.
        """
        try:
            email = normalize_email(new_email)
        except ValueError as e:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.INVALID_EMAIL, message=str(e), field="email"
                )
            )

        user = await self._user_repo.find_by_id(user_id)
        if user is None:
            return Failure(error=self._user_not_found(user_id))

        if not await self._password_matches(user_id, password):
            return Failure(error=InvalidCredentialsError(message="Invalid password"))

        if email == user.email:
            return Success(value=UserProfile.from_user(user))

        if await self._user_repo.exists_by_email(email):
            return Failure(error=self._email_taken())

        old_email = user.email
        user.change_email(email, self._clock.now())
        await self._user_repo.update(user)

        await self._send_verification(user)
        await self._notify(
            NotificationKind.EMAIL_CHANGED,
            old_email,
            {"username": user.username, "new_email": email},
        )

        self._logger.info("email_changed", user_id=str(user_id))
        return Success(value=UserProfile.from_user(user))

    async def deactivate_account(
        self, user_id: UUID, password: str
    ) -> Result[None, InvalidCredentialsError | NotFoundError]:
        """Soft-delete the account and end every session."""
        user = await self._user_repo.find_by_id(user_id)
        if user is None:
            return Failure(error=self._user_not_found(user_id))

        if not await self._password_matches(user_id, password):
            return Failure(error=InvalidCredentialsError(message="Invalid password"))

        user.deactivate(self._clock.now())
        await self._user_repo.update(user)
        await self._revoke_all_sessions(user_id, REVOKE_REASON_ACCOUNT_DEACTIVATED)

        self._logger.info("account_deactivated", user_id=str(user_id))
        return Success(value=None)

    # ------------------------------------------------------------------
    # MFA management
    # ------------------------------------------------------------------

    async def begin_mfa_setup(
        self, user_id: UUID
    ) -> Result[MFASetup, NotFoundError | ConflictError | EncryptionError]:
        user = await self._user_repo.find_by_id(user_id)
        if user is None:
            return Failure(error=self._user_not_found(user_id))
        return await self._mfa_engine.begin_setup(user_id, user.email)

    async def confirm_mfa_setup(
        self, user_id: UUID, code: str
    ) -> Result[
        list[str], InvalidCodeError | NotFoundError | ConflictError | EncryptionError
    ]:
        """Enable MFA; returns the one-time plaintext backup codes."""
        return await self._mfa_engine.verify_setup(user_id, code)

    async def disable_mfa(
        self, user_id: UUID, password: str
    ) -> Result[None, InvalidCredentialsError]:
        """Turn MFA off. Requires the password, not just a session."""
        if not await self._password_matches(user_id, password):
            self._logger.warning(
                "mfa_disable_rejected", user_id=str(user_id), reason="bad_password"
            )
            return Failure(error=InvalidCredentialsError(message="Invalid password"))

        await self._mfa_engine.disable(user_id)
        return Success(value=None)

    async def regenerate_backup_codes(
        self, user_id: UUID, password: str
    ) -> Result[list[str], InvalidCredentialsError | ConflictError]:
        """Replace all backup codes. Requires the password."""
        if not await self._password_matches(user_id, password):
            return Failure(error=InvalidCredentialsError(message="Invalid password"))
        return await self._mfa_engine.regenerate_backup_codes(user_id)

    async def mfa_status(self, user_id: UUID) -> MFAStatus:
        return await self._mfa_engine.status(user_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _resend_verification(
        self, email: str, client_ip: str
    ) -> Result[GenericResponse, RateLimitedError]:
        throttled = await self._throttle(VERIFICATION_RESEND_SCOPE, client_ip, email)
        if throttled is not None:
            return Failure(error=throttled)

        try:
            normalized = normalize_email(email)
        except ValueError:
            return Success(value=GenericResponse())

        user = await self._user_repo.find_by_email(normalized)
        if user is None or user.email_verified or not user.is_active:
            self._logger.debug("verification_resend_skipped", email=normalized)
            return Success(value=GenericResponse())

        await self._send_verification(user)
        self._logger.info("verification_resent", user_id=str(user.id))
        return Success(value=GenericResponse())

    async def _forgot_password(
        self, email: str, client_ip: str
    ) -> Result[GenericResponse, RateLimitedError]:
        throttled = await self._throttle(PASSWORD_RESET_SCOPE, client_ip, email)
        if throttled is not None:
            return Failure(error=throttled)

        try:
            normalized = normalize_email(email)
        except ValueError:
            return Success(value=GenericResponse())

        user = await self._user_repo.find_by_email(normalized)
        if user is None or not user.is_active:
            self._logger.debug("password_reset_skipped", email=normalized)
            return Success(value=GenericResponse())

        recent = await self._token_vault.count_recent(
            user.id, TokenKind.PASSWORD_RESET, _ONE_HOUR
        )
        if recent >= self._policy.password_reset_max_per_hour:
            self._logger.warning(
                "password_reset_suppressed", user_id=str(user.id), recent=recent
            )
            return Success(value=GenericResponse())

        token = await self._token_vault.issue(
            user.id, TokenKind.PASSWORD_RESET, self._policy.password_reset_ttl
        )
        expires_at = self._clock.now() + self._policy.password_reset_ttl
        await self._notify(
            NotificationKind.PASSWORD_RESET,
            user.email,
            {
                "username": user.username,
                "token": token,
                "expires_at": expires_at.isoformat(),
            },
        )
        self._logger.info("password_reset_requested", user_id=str(user.id))
        return Success(value=GenericResponse())

    async def _throttle(
        self, scope: str, client_ip: str, email: str
    ) -> RateLimitedError | None:
        if self._rate_limiter is None:
            return None
        decision = await self._rate_limiter.check(
            f"{scope}:{client_ip}:{email.strip().lower()}"
        )
        if decision.allowed:
            return None
        return RateLimitedError(retry_after=decision.retry_after)

    async def _pad_latency(self, started: float) -> None:
        floor = self._policy.anti_enumeration_min_latency.total_seconds()
        remaining = floor - (time.perf_counter() - started)
        if remaining > 0:
            await asyncio.sleep(remaining)

    async def _send_verification(self, user: User) -> None:
        ttl = self._policy.email_verification_ttl
        token = await self._token_vault.issue(user.id, TokenKind.EMAIL_VERIFICATION, ttl)
        await self._notify(
            NotificationKind.EMAIL_VERIFICATION,
            user.email,
            {
                "username": user.username,
                "token": token,
                "expires_at": (self._clock.now() + ttl).isoformat(),
            },
        )

    async def _notify_password_changed(self, user: User) -> None:
        await self._notify(
            NotificationKind.PASSWORD_CHANGED,
            user.email,
            {
                "username": user.username,
                "changed_at": self._clock.now().isoformat(),
            },
        )

    async def _notify(
        self, kind: NotificationKind, recipient: str, template_data: dict[str, str]
    ) -> None:
        try:
            await self._notifier.send(kind, recipient, template_data)
        except Exception as e:
            self._logger.error("notification_failed", error=e, kind=kind.value)

    async def _revoke_all_sessions(self, user_id: UUID, reason: str) -> None:
        attempts = max(1, self._policy.revoke_all_attempts)
        last_error: Exception | None = None
        for attempt in range(1, attempts + 1):
            try:
                await self._token_vault.revoke_all(user_id, reason)
                return
            except Exception as e:
                last_error = e
                self._logger.warning(
                    "revoke_all_retry",
                    user_id=str(user_id),
                    attempt=attempt,
                    reason=reason,
                )
        self._logger.error(
            "revoke_all_failed",
            error=last_error,
            user_id=str(user_id),
            reason=reason,
            reconcile=True,
        )

    async def _password_matches(self, user_id: UUID, password: str) -> bool:
        verified = await self._credential_store.verify_password(user_id, password)
        return isinstance(verified, Success) and verified.value

    async def _available_username(self, base: str) -> str:
        """Return `base`, or `base` with a short random suffix when taken."""
        candidate = base
        for _ in range(_USERNAME_SUFFIX_ATTEMPTS):
            if not await self._user_repo.exists_by_username(candidate):
                return candidate
            suffix = self._random_source.token_bytes(2).hex()
            candidate = f"{base[:_USERNAME_BASE_LENGTH]}-{suffix}"
        suffix = self._random_source.token_bytes(4).hex()
        return f"{base[:_USERNAME_BASE_LENGTH]}-{suffix}"

    @staticmethod
    def _user_not_found(user_id: UUID) -> NotFoundError:
        return NotFoundError(
            code=ErrorCode.USER_NOT_FOUND,
            message="User not found",
            resource_type=_USER,
            resource_id=str(user_id),
        )

    @staticmethod
    def _email_taken() -> ConflictError:
        return ConflictError(
            code=ErrorCode.EMAIL_ALREADY_EXISTS,
            message="Email is already registered",
            resource_type=_USER,
            conflicting_field="email",
        )

    @staticmethod
    def _username_taken() -> ConflictError:
        return ConflictError(
            code=ErrorCode.USERNAME_ALREADY_EXISTS,
            message="Username is already taken",
            resource_type=_USER,
            conflicting_field="username",
        )
