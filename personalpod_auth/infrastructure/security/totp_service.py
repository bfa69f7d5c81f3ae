"""TOTP service (adapter) built on pyotp.

Implements TOTPProtocol: 6-digit codes, 30-second steps (RFC 6238).
Matching walks the whole tolerance window with constant-time comparisons
and reports which step matched, which MFAEngine needs for replay defense.
"""

import hmac
from datetime import datetime

import pyotp

from personalpod_auth.core.constants import TOTP_DIGITS, TOTP_INTERVAL_SECONDS


class PyOTPService:
    """pyotp-backed TOTP matching and provisioning."""

    def __init__(
        self,
        *,
        digits: int = TOTP_DIGITS,
        interval: int = TOTP_INTERVAL_SECONDS,
    ) -> None:
        self._digits = digits
        self._interval = interval

    def _totp(self, secret: str) -> pyotp.TOTP:
        return pyotp.TOTP(secret, digits=self._digits, interval=self._interval)

    def provisioning_uri(self, secret: str, *, account_name: str, issuer: str) -> str:
        return self._totp(secret).provisioning_uri(name=account_name, issuer_name=issuer)

    def time_step(self, at: datetime) -> int:
        return int(at.timestamp()) // self._interval

    def match_step(
        self, secret: str, code: str, *, at: datetime, valid_window: int
    ) -> int | None:
        """Return the time step whose code equals `code`, if any in the window."""
        candidate = code.replace(" ", "")
        # isdigit() alone also accepts non-ASCII digits such as "١٢٣"
        well_formed = candidate.isascii() and candidate.isdigit()
        if len(candidate) != self._digits or not well_formed:
            return None

        totp = self._totp(secret)
        current = self.time_step(at)
        matched: int | None = None
        # Check every step so timing does not reveal which offset matched
        for offset in range(-valid_window, valid_window + 1):
            step = current + offset
            if hmac.compare_digest(totp.generate_otp(step), candidate) and matched is None:
                matched = step
        return matched
