"""Notifier protocol (port) for outbound user notifications.

The auth core only requests that a notification be sent; rendering and
delivery belong to the adapter. Calls are fire-and-forget from the core's
point of view: failures are logged by the caller, never surfaced to users.
"""

from typing import Protocol

from personalpod_auth.domain.enums import NotificationKind


class NotifierProtocol(Protocol):
    """Outbound notification port.

    Template data keys by kind:
        - welcome: username
        - email_verification: username, token, expires_at
        - password_reset: username, token, expires_at
        - password_changed: username, changed_at
        - email_changed: username, new_email
    """

    async def send(
        self,
        kind: NotificationKind,
        recipient_email: str,
        template_data: dict[str, str],
    ) -> None:
        """Request delivery of a notification.

        Args:
            kind: Template to render.
            recipient_email: Destination address.
            template_data: Values for the template (plain strings only).

        Raises:
            Exception: Any delivery failure. Callers catch and log.
        """
        ...
