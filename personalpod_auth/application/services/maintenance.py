"""TokenMaintenance: periodic cleanup run by an external scheduler.

Never called from the request path. Every step is an idempotent bulk
delete, so overlapping runs from several instances are harmless.
"""

from personalpod_auth.application.dtos import MaintenanceReport
from personalpod_auth.application.services.mfa_engine import MFAEngine
from personalpod_auth.application.services.token_vault import TokenVault
from personalpod_auth.domain.protocols import LoggerProtocol


class TokenMaintenance:
    """Purges spent tokens, used backup codes and abandoned MFA setups."""

    def __init__(
        self, *, token_vault: TokenVault, mfa_engine: MFAEngine, logger: LoggerProtocol
    ) -> None:
        self._token_vault = token_vault
        self._mfa_engine = mfa_engine
        self._logger = logger

    async def run(self) -> MaintenanceReport:
        tokens = await self._token_vault.purge_expired()
        mfa = await self._mfa_engine.purge_stale()
        report = MaintenanceReport(
            verification_tokens=tokens.verification_tokens,
            refresh_tokens=tokens.refresh_tokens,
            pending_mfa_enrollments=mfa.pending_mfa_enrollments,
            backup_codes=mfa.backup_codes,
        )
        self._logger.info(
            "maintenance_completed",
            verification_tokens=report.verification_tokens,
            refresh_tokens=report.refresh_tokens,
            pending_mfa_enrollments=report.pending_mfa_enrollments,
            backup_codes=report.backup_codes,
        )
        return report
