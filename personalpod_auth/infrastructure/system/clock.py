"""Wall-clock adapter for ClockProtocol."""

from datetime import UTC, datetime


class SystemClock:
    """Reads the system clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)
