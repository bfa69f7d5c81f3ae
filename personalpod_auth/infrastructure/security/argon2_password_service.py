"""Argon2id password hashing service (adapter).

Implements PasswordHashingProtocol with argon2id (memory-hard) for every
new hash. Hashes created by the previous bcrypt-based scheme are still
verified, and `needs_rehash` reports them so CredentialStore can upgrade
them after the next successful login.

Security:
    - Per-hash random salt (generated by argon2-cffi)
    - Constant-time verification
    - Parameters are encoded in the hash, so raising them later only
      affects new hashes and rehash-on-login

Reference:
    - RFC 9106 (Argon2)
"""

import bcrypt
from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError

_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


class Argon2PasswordService:
    """Argon2id password hashing with legacy bcrypt verification.

    Usage:
        service = Argon2PasswordService(time_cost=3, memory_cost=65536, parallelism=4)
        password_hash = service.hash_password("Aa1!aaaa")
        service.verify_password("Aa1!aaaa", password_hash)  # True
    """

    def __init__(
        self,
        *,
        time_cost: int = 3,
        memory_cost: int = 65536,
        parallelism: int = 4,
    ) -> None:
        """Initialize the hasher.

        Args:
            time_cost: Number of iterations.
            memory_cost: Memory in KiB.
            parallelism: Number of lanes.

        Raises:
            ValueError: If the parameters are below argon2's minimums.
        """
        if time_cost < 1:
            msg = "time_cost must be at least 1"
            raise ValueError(msg)
        if parallelism < 1:
            msg = "parallelism must be at least 1"
            raise ValueError(msg)
        if memory_cost < 8 * parallelism:
            msg = "memory_cost must be at least 8 KiB per lane"
            raise ValueError(msg)

        self._hasher = PasswordHasher(
            time_cost=time_cost,
            memory_cost=memory_cost,
            parallelism=parallelism,
            type=Type.ID,
        )

    def hash_password(self, password: str) -> str:
        """Hash a password.

        Returns:
            PHC-format string (``$argon2id$v=19$m=...,t=...,p=...$salt$hash``).
        """
        return self._hasher.hash(password)

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against an argon2 or legacy bcrypt hash.

        Returns:
            True on match; False on mismatch or malformed hash.
        """
        if password_hash.startswith(_BCRYPT_PREFIXES):
            try:
                return bcrypt.checkpw(
                    password.encode("utf-8"), password_hash.encode("utf-8")
                )
            except ValueError:
                # Malformed hash, or password longer than bcrypt's 72 bytes
                return False

        try:
            return self._hasher.verify(password_hash, password)
        except (VerificationError, InvalidHashError):
            return False

    def needs_rehash(self, password_hash: str) -> bool:
        """True for bcrypt hashes and argon2 hashes with stale parameters."""
        if password_hash.startswith(_BCRYPT_PREFIXES):
            return True
        try:
            return self._hasher.check_needs_rehash(password_hash)
        except (InvalidHashError, ValueError):
            return True
