"""RandomSource protocol (port)."""

from typing import Protocol


class RandomSourceProtocol(Protocol):
    """Cryptographically secure randomness for tokens, secrets and backup codes.

    Implementations MUST use a CSPRNG (`secrets`, `os.urandom`). Test doubles
    may return deterministic bytes.
    """

    def token_bytes(self, nbytes: int) -> bytes:
        """Return `nbytes` random bytes."""
        ...
