"""EncryptionProtocol (port) and encryption errors.

Used to keep TOTP secrets encrypted at rest. Errors are defined here so the
domain and application layers can name them without importing
infrastructure.
"""

from dataclasses import dataclass
from typing import Protocol

from personalpod_auth.core.errors import DomainError
from personalpod_auth.core.result import Result


@dataclass(frozen=True, slots=True, kw_only=True)
class EncryptionError(DomainError):
    """Encryption operation failed."""


@dataclass(frozen=True, slots=True, kw_only=True)
class EncryptionKeyError(EncryptionError):
    """Encryption key is missing or malformed."""


@dataclass(frozen=True, slots=True, kw_only=True)
class DecryptionError(EncryptionError):
    """Ciphertext could not be decrypted (wrong key or tampered data)."""


class EncryptionProtocol(Protocol):
    """Authenticated symmetric encryption of short text values."""

    def encrypt_text(self, plaintext: str) -> Result[bytes, EncryptionError]:
        """Encrypt a UTF-8 string."""
        ...

    def decrypt_text(self, ciphertext: bytes) -> Result[str, EncryptionError]:
        """Decrypt bytes produced by `encrypt_text`."""
        ...
