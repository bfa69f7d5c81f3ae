"""Common error classes used across components.

Error Types:
- ValidationError: malformed or policy-violating input (user-correctable)
- NotFoundError: resource missing (internal; translated at the orchestrator
  boundary for account-existence-sensitive flows)
- ConflictError: duplicate email/username, illegal MFA state transition
"""

from dataclasses import dataclass

from personalpod_auth.core.errors.domain_error import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationError(DomainError):
    """Input validation failure.

    Attributes:
        field: Field name that failed validation.
        violations: Every policy rule the input broke, in check order.
    """

    field: str | None = None
    violations: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True, kw_only=True)
class NotFoundError(DomainError):
    """Resource not found.

    Attributes:
        resource_type: Type of resource (User, PasswordCredential, ...).
        resource_id: Identifier of the missing resource.
    """

    resource_type: str
    resource_id: str


@dataclass(frozen=True, slots=True, kw_only=True)
class ConflictError(DomainError):
    """Resource conflict (duplicate value or state conflict).

    Attributes:
        resource_type: Type of resource in conflict.
        conflicting_field: Field that has the conflict (email, username, ...).
    """

    resource_type: str
    conflicting_field: str | None = None
