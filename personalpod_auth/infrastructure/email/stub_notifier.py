"""Stub notifier that logs instead of delivering.

Stands in for a real mail adapter (SES, SendGrid, SMTP) until one is
wired. Template data may carry single-use tokens, so only the template
keys are logged, never their values.
"""

from personalpod_auth.domain.enums import NotificationKind
from personalpod_auth.domain.protocols.logger_protocol import LoggerProtocol


class StubNotifier:
    """Notifier implementation that records a log event per request.

    Example:
        >>> notifier = StubNotifier(logger=get_logger())
        >>> await notifier.send(
        ...     NotificationKind.WELCOME, "user@example.com", {"username": "user"}
        ... )
        >>> # Log output: {"event": "notification_requested", "kind": "welcome", ...}
    """

    def __init__(self, logger: LoggerProtocol) -> None:
        self._logger = logger

    async def send(
        self,
        kind: NotificationKind,
        recipient_email: str,
        template_data: dict[str, str],
    ) -> None:
        self._logger.info(
            "notification_requested",
            kind=kind.value,
            recipient=recipient_email,
            template_keys=sorted(template_data),
        )
