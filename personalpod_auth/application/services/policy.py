"""AuthPolicy: every tunable the auth services consume.

Services never read Settings directly; the container builds one policy
from settings and injects it. Tests construct policies inline.
"""

from dataclasses import dataclass
from datetime import timedelta

from personalpod_auth.core.config import Settings
from personalpod_auth.domain.value_objects import PasswordPolicy


@dataclass(frozen=True, kw_only=True)
class AuthPolicy:
    """Immutable auth tunables.

    Attributes:
        password_policy: Complexity rules for new passwords.
        email_verification_ttl: Lifetime of email verification tokens.
        password_reset_ttl: Lifetime of password reset tokens.
        mfa_session_ttl: Lifetime of the token bridging login and MFA.
        refresh_token_ttl: Lifetime of refresh tokens.
        password_reset_max_per_hour: In-core cap on reset tokens per user.
        totp_valid_window: Adjacent TOTP steps accepted for clock drift.
        backup_code_count: Codes per generated batch.
        backup_code_low_threshold: Remaining count that triggers a warning.
        backup_code_pepper: HMAC key for backup code digests.
        mfa_issuer: Issuer label in provisioning URIs.
        block_unverified_login: Refuse login until the email is verified.
        anti_enumeration_min_latency: Floor on email-flow response time.
        revoke_all_attempts: Retries for revoke-all after a credential change.
        token_purge_grace: Age before spent tokens are purged.
        pending_mfa_ttl: Age before abandoned MFA setups are purged.
    """

    password_policy: PasswordPolicy = PasswordPolicy()
    email_verification_ttl: timedelta = timedelta(hours=24)
    password_reset_ttl: timedelta = timedelta(hours=1)
    mfa_session_ttl: timedelta = timedelta(minutes=5)
    refresh_token_ttl: timedelta = timedelta(days=30)
    password_reset_max_per_hour: int = 3
    totp_valid_window: int = 1
    backup_code_count: int = 10
    backup_code_low_threshold: int = 3
    backup_code_pepper: str = ""
    mfa_issuer: str = "PersonalPod"
    block_unverified_login: bool = False
    anti_enumeration_min_latency: timedelta = timedelta(milliseconds=250)
    revoke_all_attempts: int = 3
    token_purge_grace: timedelta = timedelta(hours=1)
    pending_mfa_ttl: timedelta = timedelta(hours=24)

    @classmethod
    def from_settings(cls, settings: Settings) -> "AuthPolicy":
        return cls(
            password_policy=PasswordPolicy(min_length=settings.password_min_length),
            email_verification_ttl=timedelta(
                hours=settings.email_verification_ttl_hours
            ),
            password_reset_ttl=timedelta(minutes=settings.password_reset_ttl_minutes),
            mfa_session_ttl=timedelta(minutes=settings.mfa_session_ttl_minutes),
            refresh_token_ttl=timedelta(days=settings.refresh_token_expire_days),
            password_reset_max_per_hour=settings.password_reset_max_per_hour,
            totp_valid_window=settings.totp_valid_window,
            backup_code_count=settings.backup_code_count,
            backup_code_low_threshold=settings.backup_code_low_threshold,
            backup_code_pepper=settings.backup_code_pepper,
            mfa_issuer=settings.mfa_issuer,
            block_unverified_login=settings.block_unverified_login,
            anti_enumeration_min_latency=timedelta(
                milliseconds=settings.anti_enumeration_min_latency_ms
            ),
            revoke_all_attempts=settings.revoke_all_attempts,
            token_purge_grace=timedelta(minutes=settings.token_purge_grace_minutes),
            pending_mfa_ttl=timedelta(hours=settings.pending_mfa_ttl_hours),
        )
