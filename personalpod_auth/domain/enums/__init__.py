"""Domain enums."""

from personalpod_auth.domain.enums.mfa import MFACodeType, MFAState
from personalpod_auth.domain.enums.notification_kind import NotificationKind
from personalpod_auth.domain.enums.token_kind import TokenKind

__all__ = ["MFACodeType", "MFAState", "NotificationKind", "TokenKind"]
