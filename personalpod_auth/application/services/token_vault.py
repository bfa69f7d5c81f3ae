"""TokenVault: single-purpose opaque tokens and refresh tokens.

Tokens are 32 random bytes rendered as 64 hex characters. Only their
SHA-256 digest is persisted; the plaintext leaves the vault exactly once,
as the return value of `issue` / `issue_refresh` / `rotate_refresh`.

Single use:
    Redemption and rotation are conditional updates in the repositories
    (``used_at IS NULL`` / ``revoked_at IS NULL``). Of N concurrent calls
    with the same token, one sees an affected row and wins; the others get
    AlreadyUsedError.
"""

import hashlib
from datetime import timedelta
from uuid import UUID

from personalpod_auth.application.dtos import MaintenanceReport
from personalpod_auth.core.constants import (
    REFRESH_TOKEN_BYTES,
    REVOKE_REASON_ROTATED,
    TOKEN_BYTES,
)
from personalpod_auth.core.result import Failure, Result, Success
from personalpod_auth.domain.enums import TokenKind
from personalpod_auth.domain.errors import (
    AlreadyUsedError,
    InvalidTokenError,
    RefreshTokenReuseError,
)
from personalpod_auth.domain.protocols import (
    ClockProtocol,
    LoggerProtocol,
    RandomSourceProtocol,
    RefreshTokenRepository,
    VerificationTokenData,
    VerificationTokenRepository,
)


def hash_token(token: str) -> str:
    """SHA-256 hex digest used as the lookup key for a stored token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


class TokenVault:
    """Lifecycle of verification, reset, MFA-session and refresh tokens.

    Example:
        >>> token = await vault.issue(user.id, TokenKind.PASSWORD_RESET, timedelta(hours=1))
        >>> match await vault.redeem(token, TokenKind.PASSWORD_RESET):
        ...     case Success(value=user_id):
        ...         ...
    """

    def __init__(
        self,
        *,
        verification_token_repo: VerificationTokenRepository,
        refresh_token_repo: RefreshTokenRepository,
        clock: ClockProtocol,
        random_source: RandomSourceProtocol,
        logger: LoggerProtocol,
        refresh_token_ttl: timedelta,
        purge_grace: timedelta,
    ) -> None:
        self._verification_token_repo = verification_token_repo
        self._refresh_token_repo = refresh_token_repo
        self._clock = clock
        self._random_source = random_source
        self._logger = logger
        self._refresh_token_ttl = refresh_token_ttl
        self._purge_grace = purge_grace

    # ------------------------------------------------------------------
    # Single-purpose tokens
    # ------------------------------------------------------------------

    async def issue(self, user_id: UUID, kind: TokenKind, ttl: timedelta) -> str:
        """Create a token and return its plaintext.

        Earlier unused tokens of the same kind for this user stop working.

        Args:
            user_id: Owner.
            kind: Purpose the token can be redeemed for.
            ttl: Lifetime from now.

        Returns:
            The plaintext token (the only time it is exposed).
        """
        now = self._clock.now()
        token = self._new_token(TOKEN_BYTES)

        superseded = await self._verification_token_repo.invalidate_unused(
            user_id, kind, now
        )
        await self._verification_token_repo.save(
            user_id=user_id,
            kind=kind,
            token_hash=hash_token(token),
            expires_at=now + ttl,
            now=now,
        )

        self._logger.info(
            "token_issued",
            user_id=str(user_id),
            kind=kind.value,
            superseded=superseded,
        )
        return token

    async def redeem(
        self, token: str, kind: TokenKind
    ) -> Result[UUID, InvalidTokenError]:
        """Consume a token.

        Returns:
            Success(user_id) for the single winning redemption.
            Failure(InvalidTokenError) when unknown, of another kind or
            expired; Failure(AlreadyUsedError) when already consumed.
        """
        lookup = await self.inspect(token, kind)
        if isinstance(lookup, Failure):
            return lookup
        record = lookup.value

        consumed = await self._verification_token_repo.mark_as_used(
            record.id, self._clock.now()
        )
        if not consumed:
            # Lost a race with a concurrent redemption (or expired meanwhile)
            self._logger.warning(
                "token_rejected",
                user_id=str(record.user_id),
                kind=kind.value,
                reason="already_used",
            )
            return Failure(error=AlreadyUsedError())

        self._logger.info("token_redeemed", user_id=str(record.user_id), kind=kind.value)
        return Success(value=record.user_id)

    async def release(self, token: str, kind: TokenKind) -> bool:
        """Make a token redeemed by this caller usable again.

        Used when the redemption only reserved the token and the step it
        guarded failed. Expired tokens stay consumed.

        Returns:
            True when the token can be redeemed again.
        """
        record = await self._verification_token_repo.find_by_token_hash(hash_token(token))
        if record is None or record.kind != kind or record.used_at is None:
            return False

        released = await self._verification_token_repo.release(
            record.id, record.used_at, self._clock.now()
        )
        if released:
            self._logger.info(
                "token_released", user_id=str(record.user_id), kind=kind.value
            )
        return released

    async def validate_without_consuming(
        self, token: str, kind: TokenKind
    ) -> Result[UUID, InvalidTokenError]:
        """Read-only validity check; never marks the token used."""
        lookup = await self.inspect(token, kind)
        if isinstance(lookup, Failure):
            return lookup
        return Success(value=lookup.value.user_id)

    async def count_recent(
        self, user_id: UUID, kind: TokenKind, since_window: timedelta
    ) -> int:
        """Count tokens of `kind` issued to the user within the last window."""
        since = self._clock.now() - since_window
        return await self._verification_token_repo.count_recent(user_id, kind, since)

    # ------------------------------------------------------------------
    # Refresh tokens
    # ------------------------------------------------------------------

    async def issue_refresh(self, user_id: UUID) -> str:
        """Create a refresh token and return its plaintext."""
        now = self._clock.now()
        token = self._new_token(REFRESH_TOKEN_BYTES)
        await self._refresh_token_repo.save(
            user_id=user_id,
            token_hash=hash_token(token),
            expires_at=now + self._refresh_token_ttl,
            now=now,
        )
        self._logger.info("refresh_token_issued", user_id=str(user_id))
        return token

    async def rotate_refresh(
        self, old_token: str
    ) -> Result[tuple[UUID, str], InvalidTokenError]:
        """Invalidate `old_token` and issue its replacement atomically.

        Returns:
            Success((user_id, new_token)) for the single winning rotation.
            Failure(RefreshTokenReuseError) when the token was rotated
            before (possible theft; the caller revokes all sessions).
            Failure(AlreadyUsedError) when a concurrent rotation won.
            Failure(InvalidTokenError) when unknown, revoked or expired.
        """
        now = self._clock.now()
        record = await self._refresh_token_repo.find_by_token_hash(hash_token(old_token))

        if record is None:
            self._logger.warning("refresh_token_rejected", reason="unknown")
            return Failure(error=InvalidTokenError())

        if record.revoked_at is not None:
            if record.revoked_reason == REVOKE_REASON_ROTATED:
                self._logger.warning(
                    "refresh_token_reuse_detected", user_id=str(record.user_id)
                )
                return Failure(error=RefreshTokenReuseError(user_id=record.user_id))
            self._logger.warning(
                "refresh_token_rejected",
                user_id=str(record.user_id),
                reason="revoked",
            )
            return Failure(error=InvalidTokenError())

        if record.expires_at <= now:
            self._logger.warning(
                "refresh_token_rejected",
                user_id=str(record.user_id),
                reason="expired",
            )
            return Failure(error=InvalidTokenError())

        new_token = self._new_token(REFRESH_TOKEN_BYTES)
        rotated = await self._refresh_token_repo.rotate(
            old_token_id=record.id,
            new_token_hash=hash_token(new_token),
            new_expires_at=now + self._refresh_token_ttl,
            now=now,
            reason=REVOKE_REASON_ROTATED,
        )
        if rotated is None:
            self._logger.warning(
                "refresh_token_rejected",
                user_id=str(record.user_id),
                reason="concurrent_rotation",
            )
            return Failure(error=AlreadyUsedError())

        self._logger.info("refresh_token_rotated", user_id=str(record.user_id))
        return Success(value=(record.user_id, new_token))

    async def revoke_refresh(self, token: str, reason: str) -> bool:
        """Revoke one refresh token. Returns False if it was not active."""
        return await self._refresh_token_repo.revoke(
            hash_token(token), self._clock.now(), reason
        )

    async def revoke_all(self, user_id: UUID, reason: str) -> int:
        """Revoke every active refresh token of a user."""
        revoked = await self._refresh_token_repo.revoke_all_for_user(
            user_id, self._clock.now(), reason
        )
        self._logger.info(
            "refresh_tokens_revoked", user_id=str(user_id), count=revoked, reason=reason
        )
        return revoked

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def purge_expired(self) -> MaintenanceReport:
        """Delete expired, used or revoked tokens older than the grace window.

        Idempotent; concurrent runs delete disjoint or already-deleted rows.
        """
        now = self._clock.now()
        created_before = now - self._purge_grace
        verification = await self._verification_token_repo.delete_stale(
            now=now, created_before=created_before
        )
        refresh = await self._refresh_token_repo.delete_stale(
            now=now, created_before=created_before
        )
        return MaintenanceReport(verification_tokens=verification, refresh_tokens=refresh)

    async def inspect(
        self, token: str, kind: TokenKind
    ) -> Result[VerificationTokenData, InvalidTokenError]:
        """Look up a live token of `kind` without consuming it."""
        record = await self._verification_token_repo.find_by_token_hash(hash_token(token))

        if record is None or record.kind != kind:
            self._logger.warning("token_rejected", kind=kind.value, reason="unknown")
            return Failure(error=InvalidTokenError())

        if record.used_at is not None:
            self._logger.warning(
                "token_rejected",
                user_id=str(record.user_id),
                kind=kind.value,
                reason="already_used",
            )
            return Failure(error=AlreadyUsedError())

        if record.expires_at <= self._clock.now():
            self._logger.warning(
                "token_rejected",
                user_id=str(record.user_id),
                kind=kind.value,
                reason="expired",
            )
            return Failure(error=InvalidTokenError())

        return Success(value=record)

    def _new_token(self, nbytes: int) -> str:
        return self._random_source.token_bytes(nbytes).hex()
