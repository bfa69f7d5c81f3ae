"""Domain value objects."""

from personalpod_auth.domain.value_objects.backup_code import (
    format_backup_code,
    normalize_backup_code,
)
from personalpod_auth.domain.value_objects.email_address import (
    derive_username,
    normalize_email,
    validate_username,
)
from personalpod_auth.domain.value_objects.password_policy import PasswordPolicy

__all__ = [
    "PasswordPolicy",
    "derive_username",
    "format_backup_code",
    "normalize_backup_code",
    "normalize_email",
    "validate_username",
]
