"""PasswordHashingProtocol (port).

Infrastructure provides the algorithm (argon2id, with legacy bcrypt
verification). Only CredentialStore talks to this port.
"""

from typing import Protocol


class PasswordHashingProtocol(Protocol):
    """Password hashing and verification.

    Implementations:
        - Argon2PasswordService: personalpod_auth/infrastructure/security/
    """

    def hash_password(self, password: str) -> str:
        """Hash a password with a fresh random salt.

        Args:
            password: Plaintext password.

        Returns:
            Self-describing hash string (algorithm, parameters, salt, digest).
        """
        ...

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against a stored hash in constant time.

        Args:
            password: Plaintext password.
            password_hash: Stored hash.

        Returns:
            True on match. False on mismatch or unreadable hash; never raises
            for either.
        """
        ...

    def needs_rehash(self, password_hash: str) -> bool:
        """Whether a stored hash uses an outdated algorithm or parameters."""
        ...
