"""AES-256-GCM encryption service.

Keeps TOTP shared secrets encrypted at rest.

Security Properties:
    - Confidentiality: only the key holder can decrypt
    - Integrity: tampering is detected via the GCM authentication tag
    - Uniqueness: random 96-bit nonce per encryption

Format:
    nonce (12 bytes) || ciphertext || tag (16 bytes)
"""

import os

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from personalpod_auth.core.constants import AES_KEY_LENGTH
from personalpod_auth.core.enums import ErrorCode
from personalpod_auth.core.result import Failure, Result, Success
from personalpod_auth.domain.protocols.encryption_protocol import (
    DecryptionError,
    EncryptionError,
    EncryptionKeyError,
)


class EncryptionService:
    """AES-256-GCM encryption of short text values.

    Usage:
        >>> match EncryptionService.create(settings.encryption_key.encode()):
        ...     case Success(value=service):
        ...         encrypted = service.encrypt_text(secret)
        ...     case Failure(error=error):
        ...         ...
    """

    IV_SIZE = 12  # 96 bits - NIST recommended for GCM
    MIN_ENCRYPTED_SIZE = 12 + 16  # IV + auth tag

    def __init__(self, aesgcm: AESGCM) -> None:
        """Use `EncryptionService.create()` instead of direct construction."""
        self._aesgcm = aesgcm

    @classmethod
    def create(cls, key: bytes) -> Result["EncryptionService", EncryptionKeyError]:
        """Create encryption service with a validated 32-byte key.

        Returns:
            Success(EncryptionService) if key is valid.
            Failure(EncryptionKeyError) otherwise.
        """
        if len(key) != AES_KEY_LENGTH:
            return Failure(
                error=EncryptionKeyError(
                    code=ErrorCode.ENCRYPTION_KEY_INVALID,
                    message=(
                        f"Encryption key must be exactly {AES_KEY_LENGTH} bytes, "
                        f"got {len(key)} bytes"
                    ),
                    details={
                        "expected_length": str(AES_KEY_LENGTH),
                        "actual_length": str(len(key)),
                    },
                )
            )
        return Success(value=cls(AESGCM(key)))

    def encrypt_text(self, plaintext: str) -> Result[bytes, EncryptionError]:
        iv = os.urandom(self.IV_SIZE)
        ciphertext = self._aesgcm.encrypt(iv, plaintext.encode("utf-8"), None)
        return Success(value=iv + ciphertext)

    def decrypt_text(self, ciphertext: bytes) -> Result[str, EncryptionError]:
        """Decrypt bytes produced by `encrypt_text`.

        Returns:
            Success(str) with the original text.
            Failure(DecryptionError) if the data is truncated, tampered with,
            or was encrypted under another key.
        """
        if len(ciphertext) < self.MIN_ENCRYPTED_SIZE:
            return Failure(
                error=DecryptionError(
                    code=ErrorCode.DECRYPTION_FAILED,
                    message=(
                        f"Encrypted data too short: {len(ciphertext)} bytes "
                        f"(minimum {self.MIN_ENCRYPTED_SIZE} bytes)"
                    ),
                )
            )

        iv, body = ciphertext[: self.IV_SIZE], ciphertext[self.IV_SIZE :]
        try:
            plaintext = self._aesgcm.decrypt(iv, body, None)
        except InvalidTag:
            return Failure(
                error=DecryptionError(
                    code=ErrorCode.DECRYPTION_FAILED,
                    message="Failed to decrypt: invalid key or tampered data",
                )
            )
        return Success(value=plaintext.decode("utf-8"))
