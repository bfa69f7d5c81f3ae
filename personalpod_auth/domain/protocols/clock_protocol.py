"""Clock protocol (port).

Every expiry and TTL decision reads time from an injected clock rather than
a global, so tests can move time deterministically.
"""

from datetime import datetime
from typing import Protocol


class ClockProtocol(Protocol):
    """Source of the current time."""

    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...
