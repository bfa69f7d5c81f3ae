"""Core error classes.

Usage:
    from personalpod_auth.core.errors import DomainError, ValidationError
"""

from personalpod_auth.core.errors.common_errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
)
from personalpod_auth.core.errors.domain_error import DomainError

__all__ = [
    "ConflictError",
    "DomainError",
    "NotFoundError",
    "ValidationError",
]
