"""MFAEngine: TOTP enrollment, second-factor verification and backup codes.

State machine per user:
    Unenrolled -> PendingVerification   begin_setup (secret generated)
    PendingVerification -> Enabled      verify_setup (first valid code)
    Enabled -> Unenrolled               disable

Replay defense:
    The enrollment remembers the highest TOTP time step accepted so far.
    A code is accepted only if its step is strictly newer, enforced by a
    conditional update, so the same code cannot be used twice inside the
    tolerance window, not even by two concurrent requests.

Backup codes:
    Stored as HMAC-SHA256(pepper, "<user_id>:<normalized code>"). The
    plaintext batch is returned once by verify_setup or
    regenerate_backup_codes and is never retrievable again.
"""

import base64
import hashlib
import hmac
from datetime import timedelta
from uuid import UUID

from personalpod_auth.application.dtos import (
    MaintenanceReport,
    MFASetup,
    MFAStatus,
    MFAVerification,
)
from personalpod_auth.core.constants import BACKUP_CODE_BYTES, TOTP_SECRET_BYTES
from personalpod_auth.core.enums import ErrorCode
from personalpod_auth.core.errors import ConflictError, NotFoundError
from personalpod_auth.core.result import Failure, Result, Success
from personalpod_auth.domain.entities import MFAEnrollment
from personalpod_auth.domain.enums import MFACodeType, MFAState
from personalpod_auth.domain.errors import InvalidCodeError
from personalpod_auth.domain.protocols import (
    BackupCodeRepository,
    ClockProtocol,
    EncryptionError,
    EncryptionProtocol,
    LoggerProtocol,
    MFAEnrollmentRepository,
    RandomSourceProtocol,
    TOTPProtocol,
)
from personalpod_auth.domain.value_objects import (
    format_backup_code,
    normalize_backup_code,
)

_ENROLLMENT = "MFAEnrollment"


class MFAEngine:
    """TOTP and backup-code second factor.

    Example:
        >>> setup = (await engine.begin_setup(user.id, user.email)).value
        >>> # user scans setup.provisioning_uri, then types a code
        >>> match await engine.verify_setup(user.id, "123456"):
        ...     case Success(value=backup_codes):
        ...         show_once(backup_codes)
    """

    def __init__(
        self,
        *,
        enrollment_repo: MFAEnrollmentRepository,
        backup_code_repo: BackupCodeRepository,
        totp_service: TOTPProtocol,
        encryption_service: EncryptionProtocol,
        clock: ClockProtocol,
        random_source: RandomSourceProtocol,
        logger: LoggerProtocol,
        issuer: str,
        valid_window: int,
        backup_code_count: int,
        backup_code_pepper: str,
        pending_ttl: timedelta,
        purge_grace: timedelta,
    ) -> None:
        """Initialize the engine.

        Args:
            enrollment_repo: TOTP enrollment persistence.
            backup_code_repo: Backup code persistence.
            totp_service: TOTP matching and provisioning adapter.
            encryption_service: Encrypts TOTP secrets at rest.
            clock: Time source for code matching and timestamps.
            random_source: Secure randomness for secrets and backup codes.
            logger: Structured logger.
            issuer: Issuer label shown by authenticator apps.
            valid_window: Adjacent time steps accepted for clock skew.
            backup_code_count: Codes per batch.
            backup_code_pepper: HMAC key for backup code digests.
            pending_ttl: Age after which an unfinished setup is purged.
            purge_grace: Age after which used backup codes are purged.
        """
        self._enrollment_repo = enrollment_repo
        self._backup_code_repo = backup_code_repo
        self._totp_service = totp_service
        self._encryption_service = encryption_service
        self._clock = clock
        self._random_source = random_source
        self._logger = logger
        self._issuer = issuer
        self._valid_window = valid_window
        self._backup_code_count = backup_code_count
        self._backup_code_key = backup_code_pepper.encode("utf-8")
        self._pending_ttl = pending_ttl
        self._purge_grace = purge_grace

    # ------------------------------------------------------------------
    # Enrollment
    # ------------------------------------------------------------------

    async def begin_setup(
        self, user_id: UUID, account_name: str
    ) -> Result[MFASetup, ConflictError | EncryptionError]:
        """Generate a fresh secret and store it pending verification.

        Overwrites any earlier pending secret. Refused while MFA is enabled.

        Args:
            user_id: User starting enrollment.
            account_name: Label shown in the authenticator (usually email).
        """
        existing = await self._enrollment_repo.find_by_user_id(user_id)
        if existing is not None and existing.enabled:
            return Failure(error=self._already_enabled())

        secret = base64.b32encode(
            self._random_source.token_bytes(TOTP_SECRET_BYTES)
        ).decode("ascii")

        encrypted = self._encryption_service.encrypt_text(secret)
        if isinstance(encrypted, Failure):
            self._logger.error(
                "mfa_secret_encryption_failed",
                user_id=str(user_id),
                reason=encrypted.error.code.value,
            )
            return encrypted

        await self._enrollment_repo.save_pending(
            user_id, encrypted.value, self._clock.now()
        )

        self._logger.info("mfa_setup_started", user_id=str(user_id))
        return Success(
            value=MFASetup(
                secret=secret,
                provisioning_uri=self._totp_service.provisioning_uri(
                    secret, account_name=account_name, issuer=self._issuer
                ),
            )
        )

    async def verify_setup(
        self, user_id: UUID, code: str
    ) -> Result[
        list[str], InvalidCodeError | NotFoundError | ConflictError | EncryptionError
    ]:
        """Confirm enrollment with a first valid TOTP code.

        Returns:
            Success(backup_codes): MFA is now enabled; the plaintext backup
            codes are shown to the user exactly once.
            Failure(InvalidCodeError): wrong code, MFA stays pending.
            Failure(NotFoundError): no setup in progress.
            Failure(ConflictError): MFA already enabled.
        """
        enrollment = await self._enrollment_repo.find_by_user_id(user_id)
        if enrollment is None:
            return Failure(
                error=NotFoundError(
                    code=ErrorCode.MFA_NOT_ENROLLED,
                    message="No MFA setup in progress",
                    resource_type=_ENROLLMENT,
                    resource_id=str(user_id),
                )
            )
        if enrollment.enabled:
            return Failure(error=self._already_enabled())

        secret = self._decrypt_secret(enrollment)
        if isinstance(secret, Failure):
            return secret

        now = self._clock.now()
        step = self._totp_service.match_step(
            secret.value, code, at=now, valid_window=self._valid_window
        )
        if step is None:
            self._logger.warning("mfa_setup_code_rejected", user_id=str(user_id))
            return Failure(error=InvalidCodeError())

        backup_codes, code_hashes = self._new_backup_codes(user_id)
        if not await self._enrollment_repo.enable(
            user_id, step=step, now=now, backup_code_hashes=code_hashes
        ):
            # A concurrent verify_setup enabled it first
            return Failure(error=InvalidCodeError())

        self._logger.info("mfa_enabled", user_id=str(user_id))
        return Success(value=backup_codes)

    async def disable(self, user_id: UUID) -> None:
        """Remove the secret and every backup code. Idempotent."""
        removed = await self._enrollment_repo.delete(user_id)
        codes = await self._backup_code_repo.delete_all(user_id)
        if removed:
            self._logger.info(
                "mfa_disabled", user_id=str(user_id), backup_codes_removed=codes
            )

    # ------------------------------------------------------------------
    # Verification
    # ------------------------------------------------------------------

    async def verify_login(
        self, user_id: UUID, code: str, code_type: MFACodeType
    ) -> Result[MFAVerification, InvalidCodeError]:
        """Check a second factor during login.

        TOTP codes must match a step newer than the last accepted one.
        Backup codes are consumed permanently on success.

        Returns:
            Success(MFAVerification) with the remaining backup code count.
            Failure(InvalidCodeError) for a wrong, replayed or used code, or
            when the user has no enabled enrollment.
        """
        enrollment = await self._enrollment_repo.find_by_user_id(user_id)
        if enrollment is None or not enrollment.enabled:
            self._logger.warning(
                "mfa_code_rejected", user_id=str(user_id), reason="not_enabled"
            )
            return Failure(error=InvalidCodeError())

        if code_type == MFACodeType.BACKUP:
            accepted = await self._accept_backup_code(user_id, code)
        else:
            accepted = await self._accept_totp(enrollment, code)

        if not accepted:
            return Failure(error=InvalidCodeError())

        remaining = await self._backup_code_repo.count_unused(user_id)
        self._logger.info(
            "mfa_code_accepted",
            user_id=str(user_id),
            code_type=code_type.value,
            backup_codes_remaining=remaining,
        )
        return Success(
            value=MFAVerification(code_type=code_type, backup_codes_remaining=remaining)
        )

    async def regenerate_backup_codes(
        self, user_id: UUID
    ) -> Result[list[str], ConflictError]:
        """Replace every backup code with a fresh batch (MFA must be enabled)."""
        enrollment = await self._enrollment_repo.find_by_user_id(user_id)
        if enrollment is None or not enrollment.enabled:
            return Failure(
                error=ConflictError(
                    code=ErrorCode.MFA_NOT_ENABLED,
                    message="MFA is not enabled",
                    resource_type=_ENROLLMENT,
                    conflicting_field="enabled",
                )
            )

        backup_codes = await self._issue_backup_codes(user_id)
        self._logger.info("backup_codes_regenerated", user_id=str(user_id))
        return Success(value=backup_codes)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def status(self, user_id: UUID) -> MFAStatus:
        enrollment = await self._enrollment_repo.find_by_user_id(user_id)
        if enrollment is None:
            return MFAStatus(state=MFAState.UNENROLLED)
        if not enrollment.enabled:
            return MFAStatus(state=MFAState.PENDING_VERIFICATION)
        return MFAStatus(
            state=MFAState.ENABLED,
            backup_codes_remaining=await self._backup_code_repo.count_unused(user_id),
            last_used_at=enrollment.last_used_at,
        )

    async def is_enabled(self, user_id: UUID) -> bool:
        enrollment = await self._enrollment_repo.find_by_user_id(user_id)
        return enrollment is not None and enrollment.enabled

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    async def purge_stale(self) -> MaintenanceReport:
        """Delete abandoned pending setups and old used backup codes."""
        now = self._clock.now()
        pending = await self._enrollment_repo.delete_pending_before(
            now - self._pending_ttl
        )
        used_codes = await self._backup_code_repo.delete_used_before(
            now - self._purge_grace
        )
        return MaintenanceReport(
            pending_mfa_enrollments=pending, backup_codes=used_codes
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _accept_totp(self, enrollment: MFAEnrollment, code: str) -> bool:
        secret = self._decrypt_secret(enrollment)
        if isinstance(secret, Failure):
            return False

        now = self._clock.now()
        step = self._totp_service.match_step(
            secret.value, code, at=now, valid_window=self._valid_window
        )
        if step is None:
            self._logger.warning(
                "mfa_code_rejected", user_id=str(enrollment.user_id), reason="mismatch"
            )
            return False

        if not await self._enrollment_repo.record_step(
            enrollment.user_id, step=step, now=now
        ):
            self._logger.warning(
                "mfa_code_rejected", user_id=str(enrollment.user_id), reason="replay"
            )
            return False
        return True

    async def _accept_backup_code(self, user_id: UUID, code: str) -> bool:
        normalized = normalize_backup_code(code)
        if not normalized:
            return False

        consumed = await self._backup_code_repo.consume(
            user_id, self._hash_backup_code(user_id, normalized), self._clock.now()
        )
        if not consumed:
            self._logger.warning(
                "mfa_code_rejected", user_id=str(user_id), reason="backup_code_invalid"
            )
            return False

        await self._enrollment_repo.touch(user_id, self._clock.now())
        return True

    async def _issue_backup_codes(self, user_id: UUID) -> list[str]:
        backup_codes, code_hashes = self._new_backup_codes(user_id)
        await self._backup_code_repo.replace_all(user_id, code_hashes, self._clock.now())
        return backup_codes

    def _new_backup_codes(self, user_id: UUID) -> tuple[list[str], list[str]]:
        """Return a fresh batch as (display codes, digests to store)."""
        raw_codes: set[str] = set()
        while len(raw_codes) < self._backup_code_count:
            raw_codes.add(
                base64.b32encode(
                    self._random_source.token_bytes(BACKUP_CODE_BYTES)
                ).decode("ascii")
            )
        ordered = sorted(raw_codes)
        return (
            [format_backup_code(raw) for raw in ordered],
            [self._hash_backup_code(user_id, raw) for raw in ordered],
        )

    def _hash_backup_code(self, user_id: UUID, normalized: str) -> str:
        message = f"{user_id}:{normalized}".encode("utf-8")
        return hmac.new(self._backup_code_key, message, hashlib.sha256).hexdigest()

    def _decrypt_secret(
        self, enrollment: MFAEnrollment
    ) -> Result[str, EncryptionError]:
        decrypted = self._encryption_service.decrypt_text(enrollment.encrypted_secret)
        if isinstance(decrypted, Failure):
            self._logger.error(
                "mfa_secret_decryption_failed",
                user_id=str(enrollment.user_id),
                reason=decrypted.error.code.value,
            )
        return decrypted

    @staticmethod
    def _already_enabled() -> ConflictError:
        return ConflictError(
            code=ErrorCode.MFA_ALREADY_ENABLED,
            message="MFA is already enabled",
            resource_type=_ENROLLMENT,
            conflicting_field="enabled",
        )
