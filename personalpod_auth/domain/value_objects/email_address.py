"""Email and username normalization.

Emails are validated with the email-validator library (syntax only, no
deliverability lookup) and lowercased so uniqueness checks are
case-insensitive.
"""

import re

from email_validator import EmailNotValidError, validate_email

from personalpod_auth.core.constants import USERNAME_MAX_LENGTH

_USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9._+-]+$")
_USERNAME_DISALLOWED = re.compile(r"[^A-Za-z0-9._+-]")
_FALLBACK_USERNAME = "user"


def normalize_email(value: str) -> str:
    """Validate and normalize an email address.

    Args:
        value: Raw email address.

    Returns:
        Normalized, lowercased address.

    Raises:
        ValueError: If the address is syntactically invalid.

    Example:
        >>> normalize_email("  Alice@Example.COM ")
        'alice@example.com'
    """
    try:
        validated = validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError as e:
        raise ValueError(f"Invalid email: {e}") from e
    return validated.normalized.lower()


def derive_username(email: str) -> str:
    """Default username: the local part of the email address.

    Characters a username may not contain are dropped.

    Example:
        >>> derive_username("o'brien@example.com")
        'obrien'
    """
    local_part = _USERNAME_DISALLOWED.sub("", email.split("@", 1)[0])
    return local_part[:USERNAME_MAX_LENGTH] or _FALLBACK_USERNAME


def validate_username(value: str) -> str:
    """Validate a username.

    Args:
        value: Candidate username.

    Returns:
        The stripped username.

    Raises:
        ValueError: If empty, too long, or containing unsupported characters.
    """
    username = value.strip()
    if not username:
        raise ValueError("Username cannot be empty")
    if len(username) > USERNAME_MAX_LENGTH:
        raise ValueError(f"Username must be at most {USERNAME_MAX_LENGTH} characters")
    if not _USERNAME_PATTERN.match(username):
        raise ValueError(
            "Username may only contain letters, digits, dots, underscores, plus and hyphens"
        )
    return username
