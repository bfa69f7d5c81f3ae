"""Outbound notification kinds requested from the Notifier."""

from enum import Enum


class NotificationKind(str, Enum):
    """Notification templates the auth core can request."""

    WELCOME = "welcome"
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"
    PASSWORD_CHANGED = "password_changed"
    EMAIL_CHANGED = "email_changed"
