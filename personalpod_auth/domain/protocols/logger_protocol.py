"""LoggerProtocol definition for structured logging.

Backend-agnostic structured logging for the auth core. Every call is a
snake_case event name plus key-value context.

Security:
    - NEVER log passwords, password hashes, tokens, TOTP secrets or backup codes
    - Log user ids, not email addresses, outside the email-based flows

Usage:
    logger.info("user_registered", user_id=str(user.id))
    scoped = logger.bind(user_id=str(user_id))
    scoped.warning("refresh_token_reuse_detected")
"""

from __future__ import annotations

from typing import Any, Protocol


class LoggerProtocol(Protocol):
    """Protocol for structured logging adapters.

    Implementations:
        - ConsoleAdapter: personalpod_auth/infrastructure/logging/
    """

    def debug(self, message: str, /, **context: Any) -> None:
        """Log a debug-level event."""
        ...

    def info(self, message: str, /, **context: Any) -> None:
        """Log an info-level event."""
        ...

    def warning(self, message: str, /, **context: Any) -> None:
        """Log a warning-level event (rejected tokens, throttling, replay)."""
        ...

    def error(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log an error-level event with optional exception details.

        Args:
            message: Event name.
            error: Optional exception; adapters add error_type and
                error_message fields.
            **context: Structured key-value context fields.
        """
        ...

    def critical(
        self, message: str, /, *, error: Exception | None = None, **context: Any
    ) -> None:
        """Log a critical-level event with optional exception details."""
        ...

    def bind(self, **context: Any) -> LoggerProtocol:
        """Return a new logger with context bound to every subsequent call."""
        ...
