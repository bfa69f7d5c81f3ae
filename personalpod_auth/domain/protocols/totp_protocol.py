"""TOTPProtocol (port) for RFC 6238 one-time passwords."""

from datetime import datetime
from typing import Protocol


class TOTPProtocol(Protocol):
    """TOTP code matching and provisioning.

    Implementations:
        - PyOTPService: personalpod_auth/infrastructure/security/
    """

    def provisioning_uri(self, secret: str, *, account_name: str, issuer: str) -> str:
        """Build the ``otpauth://`` URI rendered as a QR code."""
        ...

    def time_step(self, at: datetime) -> int:
        """Return the TOTP counter for the given instant."""
        ...

    def match_step(
        self, secret: str, code: str, *, at: datetime, valid_window: int
    ) -> int | None:
        """Find the time step a code belongs to.

        Args:
            secret: Base32 shared secret.
            code: Submitted code.
            at: Verification instant.
            valid_window: Steps accepted on either side of the current one.

        Returns:
            The matching time step, or None when no step in the window
            matches. Comparisons are constant-time.
        """
        ...
