"""SessionIssuer: login, the pending-MFA step, and the token pair.

Flow (login):
1. Throttle by ``login:<ip>:<email>``
2. Look up the user (unknown accounts still pay for a hash verification)
3. Verify the password (mismatch and unknown account look identical)
4. Refuse disabled accounts (and unverified ones when configured)
5. MFA enabled: issue a single-use MFA session token -> MFAPending
6. Otherwise: issue access + refresh tokens -> Authenticated

Flow (complete_mfa):
1. Check the MFA session token is live (not consumed yet)
2. Verify the second factor (a wrong code leaves the session usable)
3. Redeem the MFA session token; only one concurrent completion wins
4. Issue the token pair

Access token validation is pure: signature and expiry against the
injected clock, never persistence.
"""

from datetime import timedelta
from uuid import UUID

from personalpod_auth.application.services.credential_store import CredentialStore
from personalpod_auth.application.services.mfa_engine import MFAEngine
from personalpod_auth.application.services.token_vault import TokenVault
from personalpod_auth.core.constants import (
    REVOKE_REASON_ACCOUNT_DEACTIVATED,
    REVOKE_REASON_LOGOUT,
    REVOKE_REASON_LOGOUT_ALL,
    REVOKE_REASON_REUSE_DETECTED,
)
from personalpod_auth.core.result import Failure, Result, Success
from personalpod_auth.domain.entities import (
    AccessTokenClaims,
    Authenticated,
    AuthState,
    AuthTokens,
    LoginOutcome,
    MFAPending,
    Unauthenticated,
    User,
)
from personalpod_auth.domain.enums import MFACodeType, TokenKind
from personalpod_auth.domain.errors import (
    AccountDisabledError,
    EmailNotVerifiedError,
    ExpiredTokenError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidTokenError,
    RateLimitedError,
    RefreshTokenReuseError,
)
from personalpod_auth.domain.protocols import (
    AccessTokenProtocol,
    ClockProtocol,
    LoggerProtocol,
    RateLimiterProtocol,
    UserRepository,
)
from personalpod_auth.domain.value_objects import normalize_email

LOGIN_SCOPE = "login"

type LoginError = (
    InvalidCredentialsError
    | AccountDisabledError
    | EmailNotVerifiedError
    | RateLimitedError
)


class SessionIssuer:
    """Produces authenticated sessions.

    Example:
        >>> match await issuer.login("a@x.com", "Aa1!aaaa", client_ip="203.0.113.9"):
        ...     case Success(value=MFAPending(mfa_session_token=token)):
        ...         ...  # ask for the second factor
        ...     case Success(value=Authenticated(tokens=tokens)):
        ...         ...
        ...     case Failure(error=error):
        ...         ...
    """

    def __init__(
        self,
        *,
        user_repo: UserRepository,
        credential_store: CredentialStore,
        token_vault: TokenVault,
        mfa_engine: MFAEngine,
        access_token_service: AccessTokenProtocol,
        clock: ClockProtocol,
        logger: LoggerProtocol,
        mfa_session_ttl: timedelta,
        block_unverified_login: bool = False,
        backup_code_low_threshold: int = 3,
        rate_limiter: RateLimiterProtocol | None = None,
    ) -> None:
        """Initialize the issuer.

        Args:
            user_repo: User lookup and last-login updates.
            credential_store: Password verification.
            token_vault: MFA session and refresh tokens.
            mfa_engine: Second-factor verification.
            access_token_service: Signed access token codec.
            clock: Time source.
            logger: Structured logger.
            mfa_session_ttl: Lifetime of the MFA session token.
            block_unverified_login: Refuse login before email verification.
            backup_code_low_threshold: Remaining count that flags a warning.
            rate_limiter: Optional throttle for login attempts.
        """
        self._user_repo = user_repo
        self._credential_store = credential_store
        self._token_vault = token_vault
        self._mfa_engine = mfa_engine
        self._access_token_service = access_token_service
        self._clock = clock
        self._logger = logger
        self._mfa_session_ttl = mfa_session_ttl
        self._block_unverified_login = block_unverified_login
        self._backup_code_low_threshold = backup_code_low_threshold
        self._rate_limiter = rate_limiter

    async def login(
        self, email: str, password: str, *, client_ip: str = "unknown"
    ) -> Result[LoginOutcome, LoginError]:
        """Authenticate with email and password.

        Returns:
            Success(MFAPending) carrying an MFA session token and no tokens.
            Success(Authenticated) carrying the token pair.
            Failure(InvalidCredentialsError) for unknown account or wrong
            password (indistinguishable), Failure(AccountDisabledError),
            Failure(EmailNotVerifiedError), Failure(RateLimitedError).
        """
        try:
            email = normalize_email(email)
        except ValueError:
            email = email.strip().lower()

        # Step 1: Throttle
        if self._rate_limiter is not None:
            decision = await self._rate_limiter.check(
                f"{LOGIN_SCOPE}:{client_ip}:{email}"
            )
            if not decision.allowed:
                return Failure(error=RateLimitedError(retry_after=decision.retry_after))

        # Step 2: Look up user
        user = await self._user_repo.find_by_email(email)
        if user is None:
            self._credential_store.simulate_verification(password)
            self._logger.warning("login_failed", reason="unknown_account")
            return Failure(error=InvalidCredentialsError())

        # Step 3: Verify password
        verified = await self._credential_store.verify_password(user.id, password)
        if not (isinstance(verified, Success) and verified.value):
            self._logger.warning(
                "login_failed", user_id=str(user.id), reason="bad_password"
            )
            return Failure(error=InvalidCredentialsError())

        # Step 4: Account state
        if not user.is_active:
            self._logger.warning(
                "login_failed", user_id=str(user.id), reason="account_disabled"
            )
            return Failure(error=AccountDisabledError())

        if self._block_unverified_login and not user.email_verified:
            self._logger.warning(
                "login_failed", user_id=str(user.id), reason="email_not_verified"
            )
            return Failure(error=EmailNotVerifiedError())

        # Step 5: Second factor pending
        if await self._mfa_engine.is_enabled(user.id):
            mfa_session_token = await self._token_vault.issue(
                user.id, TokenKind.MFA_SESSION, self._mfa_session_ttl
            )
            self._logger.info("login_mfa_required", user_id=str(user.id))
            return Success(
                value=MFAPending(
                    user_id=user.id,
                    expires_at=self._clock.now() + self._mfa_session_ttl,
                    mfa_session_token=mfa_session_token,
                )
            )

        # Step 6: Fully authenticated
        tokens = await self._complete_login(user)
        return Success(value=Authenticated(user_id=user.id, tokens=tokens))

    async def complete_mfa(
        self, mfa_session_token: str, code: str, code_type: MFACodeType
    ) -> Result[
        Authenticated, InvalidTokenError | InvalidCodeError | AccountDisabledError
    ]:
        """Finish an MFA login.

        Returns:
            Success(Authenticated) with the token pair.
            Failure(InvalidTokenError) when the MFA session token is unknown,
            expired or already consumed.
            Failure(InvalidCodeError) for a wrong code; the session token
            stays usable until it expires.

        The session token is redeemed before the code is checked, so a
        caller that loses the race for the session never consumes its
        backup code or TOTP step. A wrong code releases the session again.
        """
        pending = await self._token_vault.validate_without_consuming(
            mfa_session_token, TokenKind.MFA_SESSION
        )
        if isinstance(pending, Failure):
            return Failure(error=InvalidTokenError())
        user_id = pending.value

        user = await self._user_repo.find_by_id(user_id)
        if user is None:
            return Failure(error=InvalidTokenError())
        if not user.is_active:
            return Failure(error=AccountDisabledError())

        redeemed = await self._token_vault.redeem(
            mfa_session_token, TokenKind.MFA_SESSION
        )
        if isinstance(redeemed, Failure):
            return Failure(error=InvalidTokenError())

        verification = await self._mfa_engine.verify_login(user_id, code, code_type)
        if isinstance(verification, Failure):
            self._logger.warning("login_mfa_failed", user_id=str(user_id))
            await self._token_vault.release(mfa_session_token, TokenKind.MFA_SESSION)
            return verification

        tokens = await self._complete_login(user)
        remaining = verification.value.backup_codes_remaining
        low = remaining <= self._backup_code_low_threshold
        if low:
            self._logger.warning(
                "backup_codes_low", user_id=str(user_id), remaining=remaining
            )
        return Success(
            value=Authenticated(
                user_id=user_id,
                tokens=tokens,
                backup_codes_remaining=remaining,
                low_backup_codes=low,
            )
        )

    async def pending_state(self, mfa_session_token: str) -> AuthState:
        """Report where an MFA session token stands, without consuming it.

        Returns:
            MFAPending (without the token) while it is live, otherwise
            Unauthenticated.
        """
        match await self._token_vault.inspect(mfa_session_token, TokenKind.MFA_SESSION):
            case Success(value=record):
                return MFAPending(user_id=record.user_id, expires_at=record.expires_at)
            case _:
                return Unauthenticated()

    async def issue_tokens(self, user_id: UUID) -> AuthTokens:
        """Mint an access token and a refresh token for a user."""
        access_token = self._access_token_service.generate_access_token(
            user_id=user_id, issued_at=self._clock.now()
        )
        refresh_token = await self._token_vault.issue_refresh(user_id)
        return AuthTokens(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_in=self._access_token_service.expires_in_seconds,
        )

    async def refresh(
        self, refresh_token: str
    ) -> Result[AuthTokens, InvalidTokenError | AccountDisabledError]:
        """Exchange a refresh token for a new pair (rotation).

        Presenting an already-rotated token revokes every session of its
        owner and fails like any invalid token.
        """
        rotated = await self._token_vault.rotate_refresh(refresh_token)
        if isinstance(rotated, Failure):
            if isinstance(rotated.error, RefreshTokenReuseError):
                await self._token_vault.revoke_all(
                    rotated.error.user_id, REVOKE_REASON_REUSE_DETECTED
                )
                return Failure(error=InvalidTokenError())
            return rotated
        user_id, new_refresh_token = rotated.value

        user = await self._user_repo.find_by_id(user_id)
        if user is None or not user.is_active:
            await self._token_vault.revoke_all(user_id, REVOKE_REASON_ACCOUNT_DEACTIVATED)
            return Failure(error=AccountDisabledError())

        access_token = self._access_token_service.generate_access_token(
            user_id=user_id, issued_at=self._clock.now()
        )
        return Success(
            value=AuthTokens(
                access_token=access_token,
                refresh_token=new_refresh_token,
                expires_in=self._access_token_service.expires_in_seconds,
            )
        )

    async def logout(self, refresh_token: str) -> None:
        """Revoke one refresh token. Unknown or revoked tokens are ignored."""
        revoked = await self._token_vault.revoke_refresh(
            refresh_token, REVOKE_REASON_LOGOUT
        )
        self._logger.info("logout", revoked=revoked)

    async def logout_all(self, user_id: UUID) -> int:
        """Revoke every refresh token of a user."""
        return await self._token_vault.revoke_all(user_id, REVOKE_REASON_LOGOUT_ALL)

    def validate_access_token(
        self, access_token: str
    ) -> Result[AccessTokenClaims, ExpiredTokenError | InvalidTokenError]:
        """Verify signature and expiry and extract the claims."""
        return self._access_token_service.validate_access_token(
            access_token, now=self._clock.now()
        )

    async def _complete_login(self, user: User) -> AuthTokens:
        tokens = await self.issue_tokens(user.id)
        user.record_login(self._clock.now())
        await self._user_repo.update(user)
        self._logger.info("login_succeeded", user_id=str(user.id))
        return tokens
